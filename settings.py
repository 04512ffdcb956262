import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


class Config:
    """Default settings, loaded with app.config.from_object"""
    DATA_DIR = Path(os.environ.get('PIVOT_DATA_DIR', BASE_DIR / 'data'))

    # (file name in DATA_DIR, title shown in the source selector)
    RESOURCES = [
        ('forest_stock.json', 'Forest stock'),
        ('population.json', 'Population'),
        ('regional_accounts.json', 'Regional accounts'),
    ]
    DEFAULT_SOURCE = 'forest_stock.json'

    DEFAULT_NUM_ROW_DIMS = 1
    DEFAULT_NO_LABEL_LAST_DIM = False
    DEFAULT_USE_ROW_SPANS = True

    LOG_LEVEL = os.environ.get('PIVOT_LOG_LEVEL', 'INFO')
