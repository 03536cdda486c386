"""
Shared fixtures for the record generator tests.
"""

import json

import pytest

from column_schema import ColumnSpec, DataType
import fake_values


SCENARIO_SCHEMA = [
    {"Order": "1", "ExcelColumnName": "id", "DataType": "Numeric", "IsInteger": "1"},
    {"Order": "2", "ExcelColumnName": "name", "DataType": "String", "Format": "10"},
]


@pytest.fixture
def scenario_schema():
    return [dict(raw) for raw in SCENARIO_SCHEMA]


@pytest.fixture
def scenario_columns():
    return [
        ColumnSpec(data_type=DataType.NUMERIC, format=None, order="1", output_name="id", is_integer=True),
        ColumnSpec(data_type=DataType.STRING, format="10", order="2", output_name="name"),
    ]


@pytest.fixture
def schema_file(tmp_path):
    """Write a list of raw column dicts to input.json and return its path."""
    def _write(raw_specs, name="input.json"):
        path = tmp_path / name
        path.write_text(json.dumps(raw_specs), encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture(autouse=True)
def reset_string_pool():
    yield
    fake_values.disable_pool()
