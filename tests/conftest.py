"""
Pytest configuration and shared fixtures.
"""
import pytest
from typing import Any, Callable, Dict, List
import pandas as pd

from data_pipeline.apply_sales_data_contract import apply_contract
from data_pipeline.pipeline_io import init_report


COLUMNS = [
    "transaction_id", "sale_date", "sale_time", "customer_id", "gender", "age",
    "category", "quantity", "price_per_unit", "cogs", "total_sale",
]

SAMPLE_ROWS = [
    (1, "2022-11-01", "09:15:00", 101, "Male", 30, "Clothing", 2, 25.0, 10.0, 50.0),
    (2, "2022-11-02", "12:00:00", 102, "Female", 25, "Clothing", 5, 60.0, 20.0, 300.0),
    (3, "2022-11-03", "18:30:00", 103, "Female", 41, "Clothing", 8, 50.0, 15.0, 400.0),
    (4, "2022-12-10", "17:59:59", 101, "Male", 30, "Beauty", 4, 300.0, 100.0, 1200.0),
    (5, "2022-12-11", "11:59:59", 104, "Female", 52, "Beauty", 2, 500.0, 150.0, 1000.0),
    (6, "2023-01-05", "20:00:00", 105, "Male", 19, "Electronics", 3, 300.0, 90.0, 900.0),
    (7, "2023-02-14", "13:45:00", 102, "Female", 25, "Electronics", 1, 30.0, 10.0, 30.0),
    (8, "2023-02-20", "08:00:00", 106, "Male", 64, "Beauty", 2, 25.0, 8.0, 50.0),
]

DEFAULT_ROW = {
    "sale_date": "2022-11-01",
    "sale_time": "10:00:00",
    "gender": "Female",
    "age": 30,
    "category": "Clothing",
    "quantity": 1,
    "price_per_unit": 10.0,
    "cogs": 5.0,
    "total_sale": 10.0,
}


@pytest.fixture
def sample_records() -> List[Dict[str, Any]]:
    """Complete sale records, as they would be read from CSV."""
    return [dict(zip(COLUMNS, row)) for row in SAMPLE_ROWS]


@pytest.fixture
def dirty_records(sample_records) -> List[Dict[str, Any]]:
    """Records that break the contract in different ways."""
    missing_customer = dict(sample_records[0], transaction_id=9, customer_id=None)
    bad_quantity = dict(sample_records[1], transaction_id=10, quantity="n/a")
    blank_category = dict(sample_records[2], transaction_id=11, category="  ")
    exact_duplicate = dict(sample_records[0])
    return [missing_customer, bad_quantity, blank_category, exact_duplicate]


@pytest.fixture
def raw_sales_df(sample_records, dirty_records) -> pd.DataFrame:
    """Raw table: the sample records followed by the dirty ones."""
    return pd.DataFrame(sample_records + dirty_records, columns=COLUMNS)


@pytest.fixture
def sales_df(sample_records) -> pd.DataFrame:
    """Contracted sample table."""
    contracted, _ = apply_contract(pd.DataFrame(sample_records, columns=COLUMNS), init_report())
    return contracted


@pytest.fixture
def make_sales() -> Callable[[List[Dict[str, Any]]], pd.DataFrame]:
    """Build a contracted table from partial rows filled with defaults."""

    def _make(rows: List[Dict[str, Any]]) -> pd.DataFrame:
        records = []
        for i, overrides in enumerate(rows, start=1):
            record = dict(DEFAULT_ROW, transaction_id=i, customer_id=100 + i)
            record.update(overrides)
            records.append(record)
        contracted, _ = apply_contract(pd.DataFrame(records, columns=COLUMNS), init_report())
        return contracted

    return _make
