"""
Tests for the Faker-backed value provider.
"""

import re

from column_schema import ColumnSpec, DataType
import fake_values
from fake_values import StringPool, enable_pool, generate_value, generate_values, seed_values


def make_column(data_type, fmt=None, **flags):
    return ColumnSpec(data_type=data_type, format=fmt, order="1", output_name="c", **flags)


def test_string_respects_max_length():
    column = make_column(DataType.STRING, "10")
    for _ in range(200):
        value = generate_value(column)
        assert 1 <= len(value) <= 10
        assert value.isalpha()


def test_string_defaults_to_fifty_characters():
    column = make_column(DataType.STRING)
    assert all(len(generate_value(column)) <= 50 for _ in range(200))


def test_numeric_integer():
    value = generate_value(make_column(DataType.NUMERIC, is_integer=True))
    assert isinstance(value, int)
    assert 0 <= value <= fake_values.MAX_SAFE_INTEGER


def test_numeric_double_is_rounded():
    for _ in range(50):
        value = generate_value(make_column(DataType.NUMERIC, is_double=True))
        assert isinstance(value, float)
        assert round(value, 2) == value


def test_numeric_plain_float():
    assert isinstance(generate_value(make_column(DataType.NUMERIC)), float)


def test_date_us_format():
    value = generate_value(make_column(DataType.DATE, "MM/DD/YYYY"))
    assert re.fullmatch(r"\d{2}/\d{2}/\d{4}", value)


def test_date_defaults_to_iso_timestamp():
    value = generate_value(make_column(DataType.DATE))
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", value)


def test_unknown_type_yields_none():
    assert generate_value(make_column("Boolean")) is None


def test_seed_makes_values_reproducible():
    columns = [make_column(DataType.STRING, "20"), make_column(DataType.NUMERIC, is_integer=True)]

    seed_values(42)
    first = [generate_values(columns) for _ in range(5)]
    seed_values(42)
    second = [generate_values(columns) for _ in range(5)]

    assert first == second


def test_string_pool_rotates_and_truncates():
    pool = StringPool(size=3, max_length=5)
    values = [pool.take(5) for _ in range(4)]
    assert values[3] == values[0]
    assert len(pool.take(2)) == 2
    assert len(pool.take(12)) == 12


def test_pooled_strings_respect_column_length():
    enable_pool(size=20)
    column = make_column(DataType.STRING, "8")
    assert all(1 <= len(generate_value(column)) <= 8 for _ in range(100))
