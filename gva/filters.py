from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Literal, Optional, Union

from gva.config import Settings
from gva.dataset import CategoryRecord, DatasetSnapshot

ChartMode = Literal["line", "bar"]
ViewMode = Literal["chart", "table"]

CHART_MODES = ("line", "bar")
VIEW_MODES = ("chart", "table")

EMPTY_SELECTION_MESSAGE = "Please select a year and at least one industrial division."


class SelectionError(ValueError):
    """User-facing validation failure: the action needs a non-empty selection."""


@dataclass
class SelectionState:
    selected_categories: List[str] = field(default_factory=list)
    selected_year: Optional[str] = None
    selected_years: List[str] = field(default_factory=list)
    chart_mode: ChartMode = "bar"
    view_mode: ViewMode = "chart"
    playing: bool = False

    def table_years(self) -> List[str]:
        if self.selected_years:
            return list(self.selected_years)
        return [self.selected_year] if self.selected_year else []

    def chart_years(self, snapshot: DatasetSnapshot) -> List[str]:
        # Line charts are time series over every year in the snapshot.
        if self.chart_mode == "line":
            return list(snapshot.years)
        return self.table_years()


def default_selection(snapshot: DatasetSnapshot, settings: Optional[Settings] = None) -> SelectionState:
    settings = settings or Settings()
    return SelectionState(
        selected_categories=list(snapshot.categories[: settings.default_category_count]),
        selected_year=snapshot.years[-1] if snapshot.years else None,
    )


def _as_str_list(values: Optional[Iterable[object]]) -> List[str]:
    if not values:
        return []
    if isinstance(values, str):
        return [values]
    return [str(v) for v in values if v is not None]


def normalize_selection(raw: dict, snapshot: DatasetSnapshot) -> SelectionState:
    """Coerce raw widget/API values into a SelectionState; unknown years are dropped."""
    known_years = set(snapshot.years)

    selected_year = raw.get("selected_year")
    selected_year = str(selected_year) if selected_year is not None else None
    if selected_year not in known_years:
        selected_year = None
    selected_years = [y for y in _as_str_list(raw.get("selected_years")) if y in known_years]

    chart_mode = raw.get("chart_mode") or "bar"
    if chart_mode not in CHART_MODES:
        chart_mode = "bar"
    view_mode = raw.get("view_mode") or "chart"
    if view_mode not in VIEW_MODES:
        view_mode = "chart"

    return SelectionState(
        selected_categories=_as_str_list(raw.get("selected_categories")),
        selected_year=selected_year,
        selected_years=selected_years,
        chart_mode=chart_mode,
        view_mode=view_mode,
        playing=bool(raw.get("playing", False)),
    )


def filter_records(
    snapshot: DatasetSnapshot,
    categories: Iterable[str],
    years: Union[str, Iterable[str], None],
) -> List[CategoryRecord]:
    """Subset of the snapshot for the given categories and years.

    Output follows the snapshot's category order and each series stays
    chronological. Unknown category names are ignored, as are records left
    without any requested year; an empty category or year selection gives an
    empty list.
    """
    wanted_categories = set(_as_str_list(categories))
    wanted_years = {years} if isinstance(years, str) else set(_as_str_list(years))
    if not wanted_categories or not wanted_years:
        return []

    out: List[CategoryRecord] = []
    for rec in snapshot.records:
        if rec.name not in wanted_categories:
            continue
        data = tuple(yv for yv in rec.data if yv.gregorian_year in wanted_years)
        if not data:
            continue
        out.append(CategoryRecord(code=rec.code, name=rec.name, data=data))
    return out


def require_selection(categories: Iterable[str], years: Iterable[str]) -> None:
    if not _as_str_list(categories) or not _as_str_list(years):
        raise SelectionError(EMPTY_SELECTION_MESSAGE)
