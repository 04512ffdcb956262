import copy
import json

import pytest

from jsonstat_reader import JsonStat, KeyedCategoryIndex, OrderedCategoryIndex
from pivot_errors import MalformedDatasetError, UnresolvedCategoryError
from util_array import product


def test_category_index_variants_agree():
    ordered = OrderedCategoryIndex(['a', 'b', 'c'])
    keyed = KeyedCategoryIndex({'c': 2, 'a': 0, 'b': 1})
    for position, category_id in enumerate(['a', 'b', 'c']):
        assert ordered.id_at(position) == keyed.id_at(position) == category_id
        assert ordered.position_of(category_id) == keyed.position_of(category_id) == position
    assert ordered.id_at(3) is None
    assert keyed.id_at(3) is None


def test_dimension_sizes(forest_reader):
    assert forest_reader.dimension_sizes() == [3, 2]
    assert forest_reader.dimension_sizes(exclude_constant=False) == [1, 3, 2]
    assert forest_reader.constant_dimensions() == [0]


def test_num_values_matches_product_of_sizes(forest_reader, make_reader):
    assert forest_reader.num_values() == product(forest_reader.dimension_sizes(exclude_constant=False))
    reader = make_reader([2, 1, 3, 4])
    assert reader.num_values() == product(reader.dimension_sizes(exclude_constant=False)) == 24


def test_labels_are_escaped(forest_reader):
    assert forest_reader.label(1) == "Region"
    assert forest_reader.category_label(1, 1) == "Central &amp; Plateau"
    assert forest_reader.caption == "Growing stock &lt;by region&gt;"


def test_escape_html_quotes():
    escaped = JsonStat.escape_html("\"O'Neil\" & <co>")
    assert "&amp;" in escaped
    assert "&lt;co&gt;" in escaped
    assert '"' not in escaped
    assert "'" not in escaped


def test_category_label_with_keyed_index(forest_reader):
    assert forest_reader.category_label(2, 0) == "Conifers"
    assert forest_reader.category_label(2, 1) == "Broadleaves"


def test_constant_dimension_without_index_ignores_category_index(forest_reader):
    assert forest_reader.category_label(0, 0) == "Growing stock"
    assert forest_reader.category_label(0, 5) == "Growing stock"
    assert forest_reader.category_label(0) == "Growing stock"


def test_categories(forest_reader):
    assert forest_reader.categories(2) == [('conifer', "Conifers"), ('broadleaf', "Broadleaves")]
    assert forest_reader.categories(0) == [('stock', "Growing stock")]


def test_missing_category_label_raises(forest_data):
    del forest_data['dimension']['region']['category']['label']['south']
    reader = JsonStat(forest_data)
    with pytest.raises(UnresolvedCategoryError) as excinfo:
        reader.category_label(1, 2)
    assert "south" in str(excinfo.value)
    assert isinstance(excinfo.value, MalformedDatasetError)


def test_category_position_out_of_range_raises(forest_reader):
    with pytest.raises(UnresolvedCategoryError):
        forest_reader.category_label(1, 3)


@pytest.mark.parametrize("key", ['id', 'size', 'dimension', 'value'])
def test_missing_top_level_field(forest_data, key):
    del forest_data[key]
    with pytest.raises(MalformedDatasetError):
        JsonStat(forest_data)


def test_value_count_mismatch(forest_data):
    forest_data['value'] = forest_data['value'][:-1]
    with pytest.raises(MalformedDatasetError, match="Number of values"):
        JsonStat(forest_data)


def test_category_count_mismatch(forest_data):
    forest_data['size'][1] = 4
    with pytest.raises(MalformedDatasetError):
        JsonStat(forest_data)


def test_missing_dimension_and_category(forest_data):
    broken = copy.deepcopy(forest_data)
    del broken['dimension']['species']
    with pytest.raises(MalformedDatasetError, match="Dimension is missing"):
        JsonStat(broken)

    del forest_data['dimension']['species']['category']
    with pytest.raises(MalformedDatasetError, match="no category"):
        JsonStat(forest_data)


def test_sparse_values_are_densified(forest_data):
    forest_data['value'] = {'0': 10, '5': 31}
    reader = JsonStat(forest_data)
    assert reader.values == [10, None, None, None, None, 31]
    assert reader.num_values() == 6


def test_sparse_value_offset_out_of_range(forest_data):
    forest_data['value'] = {'6': 1}
    with pytest.raises(MalformedDatasetError):
        JsonStat(forest_data)


def test_sparse_value_offset_not_an_integer(forest_data):
    forest_data['value'] = {'first': 1}
    with pytest.raises(MalformedDatasetError, match="not an integer"):
        JsonStat(forest_data)


def test_dimension_block_must_be_an_object(forest_data):
    forest_data['dimension'] = []
    with pytest.raises(MalformedDatasetError, match="'dimension' must be a json object"):
        JsonStat(forest_data)


def test_dimension_entry_must_be_an_object(forest_data):
    forest_data['dimension']['region'] = "oops"
    with pytest.raises(MalformedDatasetError) as excinfo:
        JsonStat(forest_data)
    assert "region" in str(excinfo.value)


def test_to_frame(forest_reader):
    frame = forest_reader.to_frame()
    assert list(frame.columns) == ['indicator', 'region', 'species', 'value']
    assert len(frame) == 6
    # labels are raw text in the frame, the last dimension varies fastest
    assert frame.loc[2, 'region'] == "Central & Plateau"
    assert frame.loc[2, 'species'] == "Conifers"
    assert frame.loc[1, 'value'] == 11.5


def test_from_file(tmp_path, forest_data):
    path = tmp_path / "forest.json"
    path.write_text(json.dumps(forest_data), encoding='utf-8')
    reader = JsonStat.from_file(path)
    assert reader.sizes == [1, 3, 2]


def test_from_file_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding='utf-8')
    with pytest.raises(MalformedDatasetError, match="Invalid JSON"):
        JsonStat.from_file(path)
