"""
Tests for the shard writer and its bounded sink.
"""

import itertools

import pytest

from shard_writer import BufferedSink, WorkerIOError, shard_file_name, write_shard


def counting_provider():
    counter = itertools.count()

    def provide(column):
        if column.output_name == "id":
            return next(counter)
        return "x"
    return provide


def read_lines(path):
    with open(path, encoding="utf-8") as f:
        return f.read().splitlines()


def test_shard_file_name():
    assert shard_file_name(3) == "output_part_3.csv"


def test_writes_header_and_rows_in_generation_order(tmp_path, scenario_columns):
    path = tmp_path / "shard.csv"
    rows = write_shard(scenario_columns, 25, str(path), batch_size=7,
                       value_provider=counting_provider())

    lines = read_lines(path)
    assert rows == 25
    assert lines[0] == "id,name"
    assert lines[1:] == [f"{i},x" for i in range(25)]


def test_zero_records_writes_only_header(tmp_path, scenario_columns):
    path = tmp_path / "shard.csv"
    assert write_shard(scenario_columns, 0, str(path)) == 0
    assert path.read_text(encoding="utf-8") == "id,name\n"


def test_default_provider_values(tmp_path, scenario_columns):
    path = tmp_path / "shard.csv"
    write_shard(scenario_columns, 30, str(path), batch_size=4)

    lines = read_lines(path)[1:]
    assert len(lines) == 30
    for line in lines:
        id_value, name = line.split(",")
        assert id_value.isdigit()
        assert 1 <= len(name) <= 10


def test_unwritable_sink_raises_worker_io_error(tmp_path, scenario_columns):
    path = tmp_path / "missing" / "shard.csv"
    with pytest.raises(WorkerIOError):
        write_shard(scenario_columns, 5, str(path))


def test_invalid_arguments(tmp_path, scenario_columns):
    with pytest.raises(ValueError):
        write_shard(scenario_columns, -1, str(tmp_path / "a.csv"))
    with pytest.raises(ValueError):
        write_shard(scenario_columns, 1, str(tmp_path / "b.csv"), batch_size=0)


def test_sink_reports_saturation_and_holds_data_until_drained(tmp_path):
    path = tmp_path / "sink.txt"
    sink = BufferedSink(str(path), high_water_mark=10)

    assert sink.write("abc") is True
    assert sink.write("defghijk") is False
    assert sink.saturated
    assert path.read_text(encoding="utf-8") == ""

    sink.drain()
    assert not sink.saturated
    assert sink.pending_size == 0
    assert path.read_text(encoding="utf-8") == "abcdefghijk"

    sink.write("z")
    sink.close()
    assert path.read_text(encoding="utf-8") == "abcdefghijkz"


def test_sink_rejects_writes_after_close(tmp_path):
    sink = BufferedSink(str(tmp_path / "sink.txt"))
    sink.close()
    with pytest.raises(ValueError):
        sink.write("late")
