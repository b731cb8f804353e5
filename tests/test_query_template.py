#!/usr/bin/env python3
"""
Unit tests for query template loading and rendering.
"""

import re
from uuid import UUID

from querybench.core.query_template import QueryTemplate, load_query_template

_UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"
)


def test_render_replaces_every_marker_with_same_value():
    tpl = QueryTemplate("SELECT '%guid%' AS a, '%guid%' AS b, '%guid%' AS c")
    assert tpl.marker_count == 3

    sql = tpl.render()
    assert "%guid%" not in sql
    values = _UUID_RE.findall(sql)
    assert len(values) == 3
    assert len(set(values)) == 1
    UUID(values[0])


def test_render_never_reuses_values():
    tpl = QueryTemplate("SELECT * FROM t WHERE id = '%guid%' OR id = '%guid%'")
    seen = set()
    for _ in range(2000):
        value = _UUID_RE.search(tpl.render()).group(0)
        assert value not in seen
        seen.add(value)


def test_render_without_marker_is_identity():
    tpl = QueryTemplate("SELECT 1")
    assert tpl.marker_count == 0
    assert tpl.render() == "SELECT 1"


def test_load_literal_query():
    assert load_query_template("SELECT 1") == "SELECT 1"


def test_load_query_from_file(tmp_path):
    path = tmp_path / "query.sql"
    path.write_text("SELECT *\nFROM benchmark_table\nWHERE id = '%guid%'\n")
    assert load_query_template(str(path)) == path.read_text()


def test_load_missing_file_falls_back_to_literal(tmp_path):
    missing = str(tmp_path / "nope.sql")
    assert load_query_template(missing) == missing


def test_load_directory_is_treated_as_literal(tmp_path):
    assert load_query_template(str(tmp_path)) == str(tmp_path)
