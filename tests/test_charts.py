"""
Tests for gva/charts.py: each chart projection renders to a Vega-Lite spec
with the projection's colors; tables are refused.
"""
import pytest

from gva.charts import AXIS_LABEL_EXPR, build_chart, to_vega_spec
from gva.filters import filter_records
from gva.projections import PALETTE, project


def _spec(small_snapshot, mode, years):
    recs = filter_records(small_snapshot, list(small_snapshot.categories), years)
    return to_vega_spec(build_chart(project(recs, mode, years), mode))


def test_single_year_bar_spec(small_snapshot):
    spec = _spec(small_snapshot, "bar", ["2021/22"])
    assert spec["mark"]["type"] == "bar"
    assert spec["encoding"]["x"]["field"] == "display_label"
    assert spec["encoding"]["color"]["scale"]["range"] == [PALETTE[0], PALETTE[1]]
    assert spec["encoding"]["y"]["axis"]["labelExpr"] == AXIS_LABEL_EXPR


def test_line_spec(small_snapshot):
    spec = _spec(small_snapshot, "line", list(small_snapshot.years))
    assert spec["mark"]["type"] == "line"
    assert spec["encoding"]["x"]["field"] == "year"
    assert spec["encoding"]["color"]["scale"]["domain"] == ["Agriculture", "Mining and quarrying"]


def test_grouped_bar_spec(small_snapshot):
    spec = _spec(small_snapshot, "bar", ["2020/21", "2021/22"])
    assert spec["mark"]["type"] == "bar"
    assert spec["encoding"]["xOffset"]["field"] == "full_name"


def test_table_is_not_a_chart(small_snapshot):
    recs = filter_records(small_snapshot, ["Agriculture"], ["2020/21"])
    with pytest.raises(TypeError):
        build_chart(project(recs, "table", ["2020/21"]))


def test_unknown_projection_is_rejected():
    with pytest.raises(TypeError):
        build_chart(object())
