"""
Tests for the command-line entry point.
"""

import pytest

from generate_records import DEFAULT_RECORDS, main, parse_record_count


@pytest.mark.parametrize("raw, expected", [
    (None, DEFAULT_RECORDS),
    ("abc", DEFAULT_RECORDS),
    ("0", DEFAULT_RECORDS),
    ("-5", DEFAULT_RECORDS),
    ("42", 42),
])
def test_parse_record_count_soft_default(raw, expected):
    assert parse_record_count(raw) == expected


def test_csv_run(tmp_path, schema_file, scenario_schema):
    schema = schema_file(scenario_schema)
    exit_code = main(["7", "-s", schema, "-w", "2", "-d", str(tmp_path)])

    assert exit_code == 0
    lines = (tmp_path / "output.csv").read_text(encoding="utf-8").splitlines()
    assert lines[0] == "id,name"
    assert len(lines) == 8
    assert not list(tmp_path.glob("output_part_*"))


def test_pipe_delimiter(tmp_path, schema_file, scenario_schema):
    schema = schema_file(scenario_schema)
    output = tmp_path / "out.txt"
    assert main(["3", "-s", schema, "-w", "1", "-o", str(output), "--delimiter", "pipe"]) == 0
    assert output.read_text(encoding="utf-8").splitlines()[0] == "id|name"


def test_duplicate_orders_exit_non_zero(tmp_path, schema_file):
    schema = schema_file([
        {"Order": "3", "ExcelColumnName": "a", "DataType": "String"},
        {"Order": "3", "ExcelColumnName": "b", "DataType": "String"},
    ])
    assert main(["5", "-s", schema, "-d", str(tmp_path / "work")]) == 1
    assert not (tmp_path / "work").exists()


def test_missing_schema_exit_non_zero(tmp_path):
    assert main(["5", "-s", str(tmp_path / "nope.json"), "-d", str(tmp_path)]) == 1


def test_xlsx_rejects_invalid_count(schema_file, scenario_schema):
    schema = schema_file(scenario_schema)
    with pytest.raises(SystemExit) as exc:
        main(["zero", "-s", schema, "--format", "xlsx"])
    assert exc.value.code == 2


def test_xlsx_run(tmp_path, schema_file, scenario_schema):
    schema = schema_file(scenario_schema)
    output = tmp_path / "output.xlsx"
    assert main(["4", "-s", schema, "--format", "xlsx", "-o", str(output)]) == 0
    assert output.exists()


def test_rejects_bad_options(schema_file, scenario_schema):
    schema = schema_file(scenario_schema)
    with pytest.raises(SystemExit):
        main(["5", "-s", schema, "-w", "0"])
    with pytest.raises(SystemExit):
        main(["5", "-s", schema, "--delimiter", "::"])
    with pytest.raises(SystemExit):
        main(["5", "-s", schema, "--worker-timeout", "0"])
