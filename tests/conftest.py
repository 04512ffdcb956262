"""Shared fixtures: small json-stat datasets built in memory."""

from typing import Any, Dict, Sequence

import pytest

from jsonstat_reader import JsonStat
from util_array import product


def build_jsonstat(sizes: Sequence[int], keyed: bool = False, bare_constants: bool = True) -> Dict[str, Any]:
    """
    Dataset with dimensions d0, d1, ... of the given sizes.

    Category j of dimension k has the label "Cat k.j" and the values are the
    offsets 0, 1, 2, ...
    """
    ids = [f"d{k}" for k in range(len(sizes))]
    dimension = {}
    for k, size in enumerate(sizes):
        cat_ids = [f"c{k}_{j}" for j in range(size)]
        category = {'label': {cid: f"Cat {k}.{j}" for j, cid in enumerate(cat_ids)}}
        if not (size == 1 and bare_constants):
            category['index'] = {cid: j for j, cid in enumerate(cat_ids)} if keyed else cat_ids
        dimension[ids[k]] = {'label': f"Dim {k}", 'category': category}
    return {
        'label': "Test dataset",
        'id': ids,
        'size': list(sizes),
        'dimension': dimension,
        'value': list(range(product(sizes))),
    }


@pytest.fixture
def make_reader():
    def factory(sizes, **kwargs):
        return JsonStat(build_jsonstat(sizes, **kwargs))
    return factory


@pytest.fixture
def forest_data():
    """Constant dimension without index, ordered and keyed indexes, a null value"""
    return {
        'label': "Growing stock <by region>",
        'id': ['indicator', 'region', 'species'],
        'size': [1, 3, 2],
        'dimension': {
            'indicator': {
                'label': "Indicator",
                'category': {'label': {'stock': "Growing stock"}},
            },
            'region': {
                'label': "Region",
                'category': {
                    'index': ['north', 'central', 'south'],
                    'label': {'north': "North", 'central': "Central & Plateau", 'south': "South"},
                },
            },
            'species': {
                'label': "Tree species",
                'category': {
                    'index': {'broadleaf': 1, 'conifer': 0},
                    'label': {'conifer': "Conifers", 'broadleaf': "Broadleaves"},
                },
            },
        },
        'value': [10, 11.5, 20, None, 30, 31],
    }


@pytest.fixture
def forest_reader(forest_data):
    return JsonStat(forest_data)
