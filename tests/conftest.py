"""Shared test fixtures."""

from pathlib import Path

import pytest

from platesearch.engine import PlateSearchEngine
from platesearch.reader import read_members


DATA_DIR = Path(__file__).resolve().parent.parent / 'data'


@pytest.fixture(scope='session')
def data_dir() -> Path:
    """Path to the data directory."""
    return DATA_DIR


@pytest.fixture(scope='session')
def members():
    """All members from members_data.csv."""
    return read_members(DATA_DIR / 'members_data.csv')


@pytest.fixture(scope='session')
def engine(members):
    """Search engine over the sample roster."""
    return PlateSearchEngine(members)
