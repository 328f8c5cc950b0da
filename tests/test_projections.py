"""
Unit tests for gva/projections.py across all three projection kinds, plus
the label, key, color and axis helpers.
"""
import pytest

from gva.dataset import build_snapshot, load_snapshot
from gva.filters import SelectionState, filter_records
from gva.projections import (
    NO_DATA,
    PALETTE,
    MultiYearChartProjection,
    SingleYearChartProjection,
    TableProjection,
    abbreviate_name,
    assign_color_keys,
    assign_colors,
    format_axis_value,
    project,
    project_selection,
    projection_to_dict,
    sanitize_key,
)


# ── abbreviate_name ───────────────────────────────────────────────────────────

def test_abbreviate_short_name_unchanged():
    assert abbreviate_name("Construction") == "Construction"
    assert abbreviate_name("Exactly twenty chars") == "Exactly twenty chars"


def test_abbreviate_names_below_threshold_skip_lookup_table():
    assert abbreviate_name("Electricity and gas") == "Electricity and gas"


def test_abbreviate_lookup_table():
    assert abbreviate_name("Mining and quarrying") == "Mining & Quarrying"
    assert abbreviate_name("Gross Domestic Product (GDP)") == "Total GDP"


def test_abbreviate_generic_many_words():
    out = abbreviate_name("Extraordinarily complicated industrial activities")
    assert out == "Extra compl..."
    assert out != "Extraordinarily complicated industrial activities"


def test_abbreviate_generic_two_words():
    out = abbreviate_name("Supercalifragilistic expialidocious")
    assert out == "Supercalifragilist..."


def test_abbreviate_long_names_never_returned_verbatim():
    for name in load_snapshot().categories:
        if len(name) > 20:
            assert abbreviate_name(name) != name


# ── sanitize_key / assign_color_keys ──────────────────────────────────────────

def test_sanitize_key_collapses_runs():
    assert sanitize_key("Water supply; sewerage and waste management") == "Water_supply_sewerage_and_waste_management"
    assert sanitize_key("Gross Domestic Product (GDP)") == "Gross_Domestic_Product_GDP_"


def test_sanitize_key_keeps_underscores_and_digits():
    assert sanitize_key("R_T 2") == "R_T_2"


def test_color_key_collision_gets_suffix():
    assert sanitize_key("A & B") == sanitize_key("A; B")
    assert assign_color_keys(["A & B", "A; B", "A, B"]) == ["A_B", "A_B_2", "A_B_3"]


def test_color_key_never_shadows_year_field():
    assert assign_color_keys(["year"]) == ["year_2"]


# ── assign_colors ─────────────────────────────────────────────────────────────

def test_colors_positional_and_deterministic():
    names = ["A", "B", "C"]
    assert assign_colors(names) == assign_colors(names)
    assert assign_colors(names) == list(PALETTE[:3])


def test_colors_wrap_around_palette():
    names = [f"c{i}" for i in range(len(PALETTE) + 2)]
    colors = assign_colors(names)
    assert colors[len(PALETTE)] == PALETTE[0]
    assert colors[len(PALETTE) + 1] == PALETTE[1]


def test_reordering_changes_color_mapping(small_snapshot):
    years = ["2020/21", "2021/22"]
    recs = filter_records(small_snapshot, ["Agriculture", "Mining and quarrying"], years)
    first = project(recs, "line", years)
    second = project(list(reversed(recs)), "line", years)
    first_map = {s.full_name: s.color for s in first.series}
    second_map = {s.full_name: s.color for s in second.series}
    assert first_map["Agriculture"] == second_map["Mining and quarrying"]
    assert first_map["Agriculture"] != second_map["Agriculture"]


# ── format_axis_value ─────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "value,expected",
    [(950, "950"), (1500, "1.5K"), (2500000, "2.5M"), (0, "0"), (1000, "1.0K"), (999999, "1000.0K")],
)
def test_format_axis_value(value, expected):
    assert format_axis_value(value) == expected


# ── table projection ──────────────────────────────────────────────────────────

def test_table_is_full_grid_with_no_data_marker(small_snapshot):
    years = list(small_snapshot.years)
    recs = filter_records(small_snapshot, list(small_snapshot.categories), years)
    table = project(recs, "table", years)
    assert isinstance(table, TableProjection)
    assert table.kind == "table"
    assert len(table.rows) == 2
    for row in table.rows:
        assert list(row.cells) == years
        for cell in row.cells.values():
            assert cell is not None
    agri = table.rows[0]
    assert agri.cells == {"2020/21": 100, "2021/22": 1250, "2022/23": NO_DATA}
    assert table.rows[1].cells == {"2020/21": 10, "2021/22": 20, "2022/23": 30}


def test_table_cells_for_years_missing_from_record(small_snapshot):
    recs = filter_records(small_snapshot, ["Agriculture"], ["2020/21"])
    table = project(recs, "table", ["2020/21", "2021/22"])
    assert table.rows[0].cells == {"2020/21": 100, "2021/22": NO_DATA}


def test_table_to_frame(small_snapshot):
    years = ["2020/21", "2022/23"]
    recs = filter_records(small_snapshot, ["Agriculture", "Mining and quarrying"], years)
    frame = project(recs, "table", years).to_frame()
    assert list(frame.columns) == ["2020-21", "2022-23"]
    assert list(frame.index) == ["Agriculture", "Mining and quarrying"]
    assert frame.loc["Agriculture", "2022-23"] == NO_DATA
    assert frame.loc["Mining and quarrying", "2022-23"] == 30


def test_table_empty_selection(small_snapshot):
    table = project(filter_records(small_snapshot, [], ["2020/21"]), "table", ["2020/21"])
    assert table.rows == ()


# ── single-year chart ─────────────────────────────────────────────────────────

def test_single_year_bar_projection(small_snapshot):
    recs = filter_records(small_snapshot, ["Agriculture", "Mining and quarrying"], ["2021/22"])
    proj = project(recs, "bar", ["2021/22"])
    assert isinstance(proj, SingleYearChartProjection)
    assert proj.year == "2021/22"
    first, second = proj.rows
    assert first.full_name == "Agriculture"
    assert first.display_label == "Agriculture"
    assert first.color_key == "Agriculture"
    assert first.value == 1250
    assert second.display_label == "Mining & Quarrying"
    assert second.color_key == "Mining_and_quarrying"
    assert (first.color, second.color) == (PALETTE[0], PALETTE[1])


def test_single_year_bar_null_value(small_snapshot):
    recs = filter_records(small_snapshot, ["Agriculture"], ["2022/23"])
    proj = project(recs, "bar", ["2022/23"])
    assert proj.rows[0].value is None


# ── multi-year chart ──────────────────────────────────────────────────────────

def test_multi_year_line_projection(small_snapshot):
    years = list(small_snapshot.years)
    recs = filter_records(small_snapshot, list(small_snapshot.categories), years)
    proj = project(recs, "line", years)
    assert isinstance(proj, MultiYearChartProjection)
    assert [s.color_key for s in proj.series] == ["Agriculture", "Mining_and_quarrying"]
    assert proj.rows[0] == {"year": "2020-21", "Agriculture": 100, "Mining_and_quarrying": 10}
    assert proj.rows[2] == {"year": "2022-23", "Agriculture": None, "Mining_and_quarrying": 30}


def test_bar_with_several_years_is_multi_year(small_snapshot):
    years = ["2020/21", "2021/22"]
    recs = filter_records(small_snapshot, ["Agriculture"], years)
    proj = project(recs, "bar", years)
    assert isinstance(proj, MultiYearChartProjection)
    assert len(proj.rows) == 2


def test_line_with_one_year_is_multi_year(small_snapshot):
    recs = filter_records(small_snapshot, ["Agriculture"], ["2020/21"])
    assert isinstance(project(recs, "line", ["2020/21"]), MultiYearChartProjection)


def test_unknown_mode_raises(small_snapshot):
    with pytest.raises(ValueError):
        project([], "pie", ["2020/21"])


# ── purity / end to end ───────────────────────────────────────────────────────

def test_projection_is_referentially_transparent(small_snapshot):
    sel = SelectionState(selected_categories=["Agriculture", "Mining and quarrying"], selected_year="2021/22")
    assert project_selection(small_snapshot, sel) == project_selection(small_snapshot, sel)


def test_project_selection_table_view(small_snapshot):
    sel = SelectionState(
        selected_categories=["Mining and quarrying", "Agriculture"],
        selected_years=["2022/23", "2020/21", "2021/22"],
        view_mode="table",
    )
    table = project_selection(small_snapshot, sel)
    assert isinstance(table, TableProjection)
    assert table.years == ("2020/21", "2021/22", "2022/23")
    assert [r.name for r in table.rows] == ["Agriculture", "Mining and quarrying"]


def test_project_selection_line_chart_spans_all_years(small_snapshot):
    sel = SelectionState(selected_categories=["Agriculture"], selected_year="2021/22", chart_mode="line")
    proj = project_selection(small_snapshot, sel)
    assert isinstance(proj, MultiYearChartProjection)
    assert proj.years == small_snapshot.years


def test_round_trip_no_value_drift():
    headers = [("2077/78", "2020/21"), ("2078/79", "2021/22"), ("2079/80", "2022/23")]
    rows = [
        {"code": "X", "name": "Alpha", "values": [1, None, "3,000"]},
        {"code": "Y", "name": "Beta", "values": [4.5, 5, 6]},
    ]
    snap = build_snapshot(headers, rows)
    years = list(snap.years)
    table = project(filter_records(snap, ["Alpha", "Beta"], years), "table", years)
    grid = [[row.cells[y] for y in years] for row in table.rows]
    assert grid == [[1, NO_DATA, 3000], [4.5, 5, 6]]


def test_projection_to_dict_tags_kind(small_snapshot):
    recs = filter_records(small_snapshot, ["Agriculture"], ["2020/21"])
    assert projection_to_dict(project(recs, "table", ["2020/21"]))["kind"] == "table"
    assert projection_to_dict(project(recs, "bar", ["2020/21"]))["kind"] == "single_year"
    assert projection_to_dict(project(recs, "line", ["2020/21"]))["kind"] == "multi_year"


def test_projection_to_dict_rejects_unknown():
    with pytest.raises(TypeError):
        projection_to_dict(object())
