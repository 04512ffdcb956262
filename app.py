from flask import Flask, render_template, request, jsonify
from functools import lru_cache
import logging

from jsonstat_reader import JsonStat
from pivot_errors import InvalidLayoutError, MalformedDatasetError, SourceUnavailableError, UnknownSourceError
from pivot_grid import LayoutConfig, layout_to_dict
from renderer_table import RendererTable
from settings import Config

app = Flask(__name__)
app.config.from_object(Config)

logger = logging.getLogger(__name__)

TRUE_VALUES = ('1', 'true', 'yes', 'on')
FALSE_VALUES = ('0', 'false', 'no', 'off')


@lru_cache(maxsize=16)
def _read_dataset(path):
    return JsonStat.from_file(path)


def load_reader(source):
    """Return the reader for a configured source, datasets are immutable so they are cached"""
    names = [name for name, _ in app.config['RESOURCES']]
    if source not in names:
        raise UnknownSourceError("Unknown source", {'source': source, 'available': names})
    path = str(app.config['DATA_DIR'] / source)
    try:
        return _read_dataset(path)
    except OSError as e:
        logger.exception(f"Cannot read source {source}")
        raise SourceUnavailableError(f"Cannot read source: {e.strerror or e}", {'source': source, 'path': path}) from e


def _parse_bool(name, default):
    raw = request.args.get(name)
    if raw is None or raw == '':
        return default
    raw = raw.lower()
    if raw in TRUE_VALUES:
        return True
    if raw in FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be one of {TRUE_VALUES + FALSE_VALUES}")


def layout_from_request():
    """Build the layout configuration from the query string"""
    raw_num = request.args.get('num_row_dims')
    try:
        num_row_dims = int(raw_num) if raw_num not in (None, '') else app.config['DEFAULT_NUM_ROW_DIMS']
    except ValueError:
        raise ValueError(f"num_row_dims must be an integer, got {raw_num!r}")

    return LayoutConfig(
        num_row_dims=num_row_dims,
        no_label_last_dim=_parse_bool('no_label_last_dim', app.config['DEFAULT_NO_LABEL_LAST_DIM']),
        use_row_spans=_parse_bool('use_row_spans', app.config['DEFAULT_USE_ROW_SPANS']),
        blank_repeated_labels=_parse_bool('blank_repeated_labels', False),
    )


def dimension_table(reader):
    """Dimension metadata of a dataset"""
    sample = reader.to_frame().head(3).astype(object)
    sample = sample.where(sample.notna(), None)
    return {
        'caption': reader.caption,
        'dimensions': [
            {
                'id': reader.dimension_id(i),
                'label': reader.label(i),
                'size': size,
                'constant': size == 1,
                'categories': [{'id': cid, 'label': label} for cid, label in reader.categories(i)],
            }
            for i, size in enumerate(reader.sizes)
        ],
        'num_values': reader.num_values(),
        'sample_data': sample.to_dict('records'),
    }


@app.route('/')
def index():
    source = request.args.get('source', app.config['DEFAULT_SOURCE'])
    context = {
        'resources': app.config['RESOURCES'],
        'source': source,
        'grid': None,
        'config': None,
        'row_dim_options': [],
        'error': None,
    }
    try:
        reader = load_reader(source)
        config = layout_from_request()
        context['config'] = config
        context['row_dim_options'] = list(range(len(reader.dimension_sizes()) + 1))
        context['grid'] = RendererTable(reader, config).render()
    except UnknownSourceError as e:
        context['error'] = str(e)
        return render_template('index.html', **context), 404
    except (InvalidLayoutError, ValueError) as e:
        context['error'] = str(e)
        return render_template('index.html', **context), 400
    except (MalformedDatasetError, SourceUnavailableError) as e:
        logger.error(f"Cannot render {source}: {e}")
        context['error'] = str(e)
        return render_template('index.html', **context), 500
    return render_template('index.html', **context)


@app.route('/api/sources')
def get_sources():
    """Configured json-stat resources"""
    return jsonify({
        'sources': [{'name': name, 'title': title} for name, title in app.config['RESOURCES']],
        'default': app.config['DEFAULT_SOURCE'],
    })


@app.route('/api/dimensions')
def get_dimensions():
    """Dimension metadata for the selected source"""
    source = request.args.get('source', app.config['DEFAULT_SOURCE'])
    try:
        return jsonify(dimension_table(load_reader(source)))
    except UnknownSourceError as e:
        return jsonify({'error': str(e)}), 404
    except (MalformedDatasetError, SourceUnavailableError) as e:
        logger.error(f"Cannot render {source}: {e}")
        return jsonify({'error': str(e)}), 500


@app.route('/api/grid')
def get_grid():
    """Pivot grid for the selected source and layout"""
    source = request.args.get('source', app.config['DEFAULT_SOURCE'])
    try:
        reader = load_reader(source)
        config = layout_from_request()
        grid = RendererTable(reader, config).render()
    except UnknownSourceError as e:
        return jsonify({'error': str(e)}), 404
    except (InvalidLayoutError, ValueError) as e:
        logger.info(f"Rejected layout for {source}: {e}")
        return jsonify({'error': str(e)}), 400
    except (MalformedDatasetError, SourceUnavailableError) as e:
        logger.error(f"Cannot render {source}: {e}")
        return jsonify({'error': str(e)}), 500

    result = grid.to_dict()
    result['source'] = source
    result['config_used'] = layout_to_dict(config)
    return jsonify(result)


if __name__ == '__main__':
    logging.basicConfig(level=app.config['LOG_LEVEL'])
    logger.info(f"Serving {len(app.config['RESOURCES'])} json-stat sources from {app.config['DATA_DIR']}")
    app.run(debug=True, host='0.0.0.0', port=5000)
