"""
Reader for json-stat datasets.

See https://json-stat.org. A dataset lists its dimension ids in `id`, their
sizes in `size`, the dimension metadata in `dimension` and the flat, row-major
`value` array. Labels handed out by the reader are HTML-escaped because they
end up in table headers.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd
from markupsafe import escape

from pivot_errors import MalformedDatasetError, UnresolvedCategoryError
from util_array import product

logger = logging.getLogger(__name__)


class CategoryIndex:
    """Maps category ids to their position within a dimension and back."""

    def position_of(self, category_id: str) -> int:
        raise NotImplementedError

    def id_at(self, position: int) -> Optional[str]:
        raise NotImplementedError

    def __len__(self) -> int:
        raise NotImplementedError


class OrderedCategoryIndex(CategoryIndex):
    """Index given as a list of ids, the position is the list index."""

    def __init__(self, ids: Sequence[str]):
        self.ids = list(ids)

    def position_of(self, category_id: str) -> int:
        return self.ids.index(category_id)

    def id_at(self, position: int) -> Optional[str]:
        if 0 <= position < len(self.ids):
            return self.ids[position]
        return None

    def __len__(self) -> int:
        return len(self.ids)


class KeyedCategoryIndex(CategoryIndex):
    """Index given as a mapping from id to position."""

    def __init__(self, positions: Mapping[str, int]):
        self.positions = dict(positions)

    def position_of(self, category_id: str) -> int:
        return self.positions[category_id]

    def id_at(self, position: int) -> Optional[str]:
        # scan for the key, the mapping is not necessarily ordered by position
        for category_id, pos in self.positions.items():
            if pos == position:
                return category_id
        return None

    def __len__(self) -> int:
        return len(self.positions)


def make_category_index(index):
    if index is None:
        return None
    if isinstance(index, Mapping):
        return KeyedCategoryIndex(index)
    if isinstance(index, (list, tuple)):
        return OrderedCategoryIndex(index)
    raise MalformedDatasetError("Category index must be a list or an object", {'index': type(index).__name__})


class JsonStat:
    """Read access to a json-stat dataset."""

    def __init__(self, data: Dict[str, Any]):
        self.data = data
        self._validate()
        self._indexes = [make_category_index(self._category(i).get('index')) for i in range(len(self.ids))]
        self._values = self._dense_values(data['value'])
        if len(self._values) != product(self.sizes):
            raise MalformedDatasetError(
                "Number of values does not match the dimension sizes",
                {'values': len(self._values), 'expected': product(self.sizes)}
            )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'JsonStat':
        """Load a json-stat file from disk"""
        path = Path(path)
        logger.info(f"Loading json-stat dataset from {path}")
        with path.open(encoding='utf-8') as fh:
            try:
                data = json.load(fh)
            except json.JSONDecodeError as e:
                raise MalformedDatasetError(f"Invalid JSON: {e}", {'path': str(path)}) from e
        reader = cls(data)
        logger.info(f"Loaded {path.name}: sizes {reader.sizes}, {reader.num_values()} values")
        return reader

    def _validate(self):
        data = self.data
        if not isinstance(data, Mapping):
            raise MalformedDatasetError("Dataset must be a json object")
        for key in ('id', 'size', 'dimension', 'value'):
            if key not in data:
                raise MalformedDatasetError(f"Dataset has no '{key}'", {'key': key})
        if len(data['id']) != len(data['size']):
            raise MalformedDatasetError(
                "'id' and 'size' differ in length",
                {'id': len(data['id']), 'size': len(data['size'])}
            )
        if not isinstance(data['dimension'], Mapping):
            raise MalformedDatasetError("'dimension' must be a json object")

        for dim_idx, dim_id in enumerate(data['id']):
            dim = data['dimension'].get(dim_id)
            if dim is None:
                raise MalformedDatasetError("Dimension is missing", {'dimension': dim_id})
            if not isinstance(dim, Mapping):
                raise MalformedDatasetError("Dimension must be a json object", {'dimension': dim_id})
            category = dim.get('category')
            if not isinstance(category, Mapping):
                raise MalformedDatasetError("Dimension has no category", {'dimension': dim_id})

            index = category.get('index')
            if index is not None:
                num_categories = len(index)
            elif category.get('label'):
                num_categories = len(category['label'])
                if num_categories != 1:
                    raise MalformedDatasetError(
                        "Dimension without index must have exactly one category",
                        {'dimension': dim_id, 'categories': num_categories}
                    )
            else:
                raise MalformedDatasetError("Dimension has neither index nor label", {'dimension': dim_id})

            if num_categories != data['size'][dim_idx]:
                raise MalformedDatasetError(
                    "Number of categories does not match the dimension size",
                    {'dimension': dim_id, 'categories': num_categories, 'size': data['size'][dim_idx]}
                )

    def _dense_values(self, value):
        if isinstance(value, Mapping):
            # json-stat 2.0 allows a sparse object keyed by offset
            dense = [None] * product(self.sizes)
            for key, val in value.items():
                try:
                    offset = int(key)
                except ValueError:
                    raise MalformedDatasetError("Value offset is not an integer", {'offset': key})
                if not 0 <= offset < len(dense):
                    raise MalformedDatasetError("Value offset out of range", {'offset': offset})
                dense[offset] = val
            return dense
        if not isinstance(value, list):
            raise MalformedDatasetError("'value' must be a list or an object")
        return value

    @property
    def ids(self) -> List[str]:
        return self.data['id']

    @property
    def sizes(self) -> List[int]:
        return self.data['size']

    @property
    def values(self) -> List[Optional[float]]:
        return self._values

    @property
    def caption(self) -> str:
        return self.escape_html(self.data.get('label', ''))

    def _dimension(self, dim_idx):
        return self.data['dimension'][self.ids[dim_idx]]

    def _category(self, dim_idx):
        return self._dimension(dim_idx)['category']

    def dimension_id(self, dim_idx):
        return self.ids[dim_idx]

    def label(self, dim_idx: int) -> str:
        """Label of a dimension, falls back to the dimension id"""
        dim = self._dimension(dim_idx)
        return self.escape_html(dim.get('label', self.dimension_id(dim_idx)))

    def dimension_sizes(self, exclude_constant: bool = True) -> List[int]:
        """Sizes of the dimensions, optionally without the dimensions of size one"""
        min_size = 1 if exclude_constant else 0
        return [size for size in self.sizes if size > min_size]

    def constant_dimensions(self) -> List[int]:
        return [i for i, size in enumerate(self.sizes) if size == 1]

    def num_values(self) -> int:
        return len(self._values)

    def _raw_category_label(self, dim_idx, category_idx=None):
        category = self._category(dim_idx)
        labels = category.get('label') or {}
        index = self._indexes[dim_idx]

        if index is None:
            # constant dimension with a single category and no index
            return next(iter(labels.values()))

        category_id = index.id_at(category_idx)
        if category_id is None:
            raise UnresolvedCategoryError(
                "No category at this position",
                {'dimension': self.dimension_id(dim_idx), 'position': category_idx}
            )
        if category_id not in labels:
            raise UnresolvedCategoryError(
                "Category has no label",
                {'dimension': self.dimension_id(dim_idx), 'category': category_id}
            )
        return labels[category_id]

    def category_label(self, dim_idx: int, category_idx: Optional[int] = None) -> str:
        """
        Label of a category by dimension index and category index.

        dim_idx counts over all dimensions of the dataset, constant ones
        included.
        """
        return self.escape_html(self._raw_category_label(dim_idx, category_idx))

    def categories(self, dim_idx: int) -> List[Tuple[str, str]]:
        """Ordered (id, label) pairs of a dimension"""
        index = self._indexes[dim_idx]
        if index is None:
            labels = self._category(dim_idx)['label']
            return [(key, self.escape_html(val)) for key, val in labels.items()]
        return [(index.id_at(i), self.category_label(dim_idx, i)) for i in range(len(index))]

    def to_frame(self) -> pd.DataFrame:
        """Long format frame: one column per dimension plus a value column"""
        if not self.ids:
            return pd.DataFrame({'value': self._values})
        levels = [
            [self._raw_category_label(dim_idx, i) for i in range(size)]
            for dim_idx, size in enumerate(self.sizes)
        ]
        index = pd.MultiIndex.from_product(levels, names=self.ids)
        frame = pd.DataFrame({'value': self._values}, index=index)
        return frame.reset_index()

    @staticmethod
    def escape_html(text):
        """Escape a string so it can be safely inserted into html"""
        return str(escape(text))
