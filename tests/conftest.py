"""
Global pytest configuration and fixtures for the dbresource_core test suite.
"""
import gc

import pytest

from dbresource_core.config_objects.common import GeneralColumnType
from dbresource_core.config_objects.result_set import RdhKey, ResultSetData, ResultSetMeta


@pytest.fixture(autouse=True)
def cleanup_resources():
    """Collect garbage after each test so pandas frames do not pile up."""
    yield
    gc.collect()


@pytest.fixture
def orders_result_set():
    keys = [
        RdhKey(name="id", type=GeneralColumnType.INTEGER),
        RdhKey(name="status", type=GeneralColumnType.TEXT),
        RdhKey(name="amount", type=GeneralColumnType.NUMERIC),
    ]
    records = [
        {"id": 1, "status": "open", "amount": 10},
        {"id": 2, "status": "closed", "amount": -5},
        {"id": 3, "status": None, "amount": 0},
        {"id": 4, "status": "open"},
    ]
    return ResultSetData.from_records(keys, records, meta=ResultSetMeta(table_name="orders"))
