"""Unit tests for stats snapshot parsing and toggle commands."""

import inspect

from haproxy_monitor.models import FIELD_COUNT, RecordError, StatRow
from haproxy_monitor.stats import (
    build_toggle_command,
    parse_line,
    parse_snapshot,
    stat_rows,
)


def test_parse_snapshot_is_lazy(snapshot, stat_line):
    result = parse_snapshot(snapshot(stat_line()))
    assert inspect.isgenerator(result)


def test_rows_keep_input_order(snapshot, stat_line):
    data = snapshot(
        stat_line(name="app1"),
        stat_line(name="app2"),
        stat_line(group="api", name="app3"),
    )
    rows = stat_rows(parse_snapshot(data))

    assert [row.name for row in rows] == ["app1", "app2", "app3"]
    assert rows[2].group == "api"


def test_aggregate_rows_are_dropped(snapshot, stat_line):
    data = snapshot(
        stat_line(name="FRONTEND"),
        stat_line(name="app1"),
        stat_line(name="BACKEND"),
        stat_line(name="app2"),
    )
    entries = list(parse_snapshot(data))

    assert [entry.name for entry in entries] == ["app1", "app2"]
    assert all(isinstance(entry, StatRow) for entry in entries)


def test_wrong_field_count_becomes_inline_error(snapshot, stat_line):
    data = snapshot(
        stat_line(name="app1"),
        stat_line(name="short", field_count=10),
        stat_line(name="app2"),
    )
    entries = list(parse_snapshot(data))

    assert len(entries) == 3
    assert isinstance(entries[1], RecordError)
    assert entries[1].message == f"expected {FIELD_COUNT} fields, got 10"
    assert [row.name for row in stat_rows(entries)] == ["app1", "app2"]


def test_unparseable_line_becomes_inline_error(snapshot, stat_line):
    data = snapshot(
        stat_line(name="app1"),
        'web,"unterminated',
        stat_line(name="app2"),
    )
    entries = list(parse_snapshot(data))

    assert isinstance(entries[1], RecordError)
    assert entries[1].message
    assert [row.name for row in stat_rows(entries)] == ["app1", "app2"]


def test_quoted_fields_are_unescaped(stat_line):
    line = stat_line(name="app1").replace("web", '"web,eu"', 1)
    entry = parse_line(line)

    assert isinstance(entry, StatRow)
    assert entry.group == "web,eu"
    assert entry.name == "app1"


def test_accepts_text_and_crlf(stat_line):
    data = f"{stat_line(name='app1')}\r\n{stat_line(name='app2')}\r\n"
    rows = stat_rows(parse_snapshot(data))
    assert [row.name for row in rows] == ["app1", "app2"]
    assert rows[0].status == "UP"


def test_empty_snapshot_has_no_rows():
    assert list(parse_snapshot(b"")) == []


def test_stat_row_accessors(stat_line):
    row = parse_line(stat_line(group="web", name="app1", scur="7", bin_="100", bout="200", status="DOWN"))

    assert row.group == "web"
    assert row.name == "app1"
    assert row.current_sessions == "7"
    assert row.bytes_in == "100"
    assert row.bytes_out == "200"
    assert row.status == "DOWN"
    assert not row.is_up
    assert len(row.fields) == FIELD_COUNT
    assert row.display_values() == ["web", "app1", "7", "100", "200", "DOWN"]


class TestToggleCommand:
    def test_up_server_is_disabled(self, stat_line):
        row = parse_line(stat_line(group="web", name="app1", status="UP"))
        assert build_toggle_command(row) == "disable server web/app1"

    def test_down_server_is_enabled(self, stat_line):
        row = parse_line(stat_line(group="web", name="app1", status="DOWN"))
        assert build_toggle_command(row) == "enable server web/app1"

    def test_maintenance_server_is_enabled(self, stat_line):
        row = parse_line(stat_line(group="api", name="b2", status="MAINT"))
        assert build_toggle_command(row) == "enable server api/b2"

    def test_status_match_is_exact(self, stat_line):
        row = parse_line(stat_line(status="UP 1/3"))
        assert build_toggle_command(row).startswith("enable ")
