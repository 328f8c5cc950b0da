"""Reshape filtered records into table and chart projections.

Three projection kinds exist and every consumer handles all of them:

- ``TableProjection``: one row per category, one cell per year; missing
  values are the ``NO_DATA`` sentinel.
- ``SingleYearChartProjection``: one bar per category for a single year.
- ``MultiYearChartProjection``: one row per year, one column per category
  (keyed by the category's sanitized color key).

All builders are pure; identical inputs give identical projections.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Literal, Optional, Sequence, Tuple, Union

import pandas as pd

from gva.dataset import CategoryRecord, DatasetSnapshot, Number
from gva.filters import SelectionState, filter_records

NO_DATA = "-"
ABBREVIATION_THRESHOLD = 20
GENERIC_WORD_CHARS = 5
GENERIC_PREFIX_CHARS = 18
TRUNCATION_MARKER = "..."
YEAR_FIELD = "year"

PALETTE: Tuple[str, ...] = (
    "hsl(12, 76%, 61%)",
    "hsl(173, 58%, 39%)",
    "hsl(197, 37%, 24%)",
    "hsl(43, 74%, 66%)",
    "hsl(27, 87%, 67%)",
    "hsl(231, 48%, 48%)",
    "hsl(174, 100%, 29%)",
    "hsl(220, 70%, 50%)",
    "hsl(160, 60%, 45%)",
    "hsl(30, 80%, 55%)",
    "hsl(280, 60%, 60%)",
    "hsl(0, 70%, 60%)",
    "hsl(60, 70%, 45%)",
    "hsl(200, 75%, 55%)",
    "hsl(330, 70%, 60%)",
)

ABBREVIATIONS: Dict[str, str] = {
    "Agriculture, forestry and fishing": "Agri, Forest, Fish",
    "Mining and quarrying": "Mining & Quarrying",
    "Water supply; sewerage and waste management": "Water & Waste Mgmt",
    "Wholesale and retail trade; repair of motor vehicles and motorcycles": "Wholesale/Retail Trade",
    "Transportation and storage": "Transport & Storage",
    "Accommodation and food service activities": "Accommodation & Food",
    "Information and communication": "Info & Comms",
    "Financial and insurance activities": "Finance & Insurance",
    "Real estate activities": "Real Estate",
    "Professional, scientific and technical activities": "Professional Services",
    "Administrative and support service activities": "Admin Services",
    "Public administration and defence; compulsory social security": "Public Admin & Defence",
    "Human health and social work activities": "Health & Social Work",
    "Total Agriculture, Forestry and Fishing": "Total Agri.",
    "Total Non-Agriculture": "Total Non-Agri.",
    "Gross Domestic Product (GDP) at basic prices": "GDP (Basic Prices)",
    "Taxes less subsidies on products": "Taxes less Subsidies",
    "Gross Domestic Product (GDP)": "Total GDP",
}

ProjectionMode = Literal["table", "line", "bar"]
Cell = Union[Number, str]


# ---------------- Label / key helpers ----------------
def sanitize_key(name: str) -> str:
    """Identifier-safe key: every run of characters outside [A-Za-z0-9_] becomes one '_'."""
    return re.sub(r"_+", "_", re.sub(r"[^A-Za-z0-9_]", "_", name))


def assign_color_keys(names: Sequence[str]) -> List[str]:
    """Sanitized keys in list order; later names that collide get a '_2', '_3', ... suffix."""
    used = {YEAR_FIELD}
    keys: List[str] = []
    for name in names:
        base = sanitize_key(name)
        key = base
        n = 2
        while key in used:
            key = f"{base}_{n}"
            n += 1
        used.add(key)
        keys.append(key)
    return keys


def assign_colors(names: Sequence[str]) -> List[str]:
    return [PALETTE[i % len(PALETTE)] for i in range(len(names))]


def abbreviate_name(name: str) -> str:
    if len(name) < ABBREVIATION_THRESHOLD:
        return name
    # The lookup table still applies at exactly the threshold ("Mining and quarrying").
    if name in ABBREVIATIONS:
        return ABBREVIATIONS[name]
    if len(name) <= ABBREVIATION_THRESHOLD:
        return name
    words = name.split(" ")
    if len(words) > 2:
        return " ".join(w[:GENERIC_WORD_CHARS] for w in words[:2]) + TRUNCATION_MARKER
    return name[:GENERIC_PREFIX_CHARS] + TRUNCATION_MARKER


def format_axis_value(value: Number) -> str:
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def display_year(year: str) -> str:
    return year.replace("/", "-")


# ---------------- Projection types ----------------
@dataclass(frozen=True)
class TableRow:
    name: str
    code: str
    cells: Dict[str, Cell]


@dataclass(frozen=True)
class TableProjection:
    years: Tuple[str, ...]
    rows: Tuple[TableRow, ...]
    kind: Literal["table"] = "table"

    def to_frame(self) -> pd.DataFrame:
        data = {display_year(y): [row.cells[y] for row in self.rows] for y in self.years}
        frame = pd.DataFrame(data, index=[row.name for row in self.rows], dtype=object)
        frame.index.name = "Industrial Division"
        return frame


@dataclass(frozen=True)
class SingleYearRow:
    display_label: str
    full_name: str
    color_key: str
    color: str
    value: Optional[Number]


@dataclass(frozen=True)
class SingleYearChartProjection:
    year: str
    rows: Tuple[SingleYearRow, ...]
    kind: Literal["single_year"] = "single_year"


@dataclass(frozen=True)
class ChartSeries:
    color_key: str
    full_name: str
    color: str


@dataclass(frozen=True)
class MultiYearChartProjection:
    years: Tuple[str, ...]
    series: Tuple[ChartSeries, ...]
    rows: Tuple[Dict[str, Any], ...]
    kind: Literal["multi_year"] = "multi_year"


Projection = Union[TableProjection, SingleYearChartProjection, MultiYearChartProjection]


# ---------------- Builders ----------------
def _values_by_year(record: CategoryRecord) -> Dict[str, Optional[Number]]:
    return {yv.gregorian_year: yv.value for yv in record.data}


def build_table(records: Sequence[CategoryRecord], years: Iterable[str]) -> TableProjection:
    years = tuple(years)
    rows = []
    for rec in records:
        values = _values_by_year(rec)
        cells: Dict[str, Cell] = {}
        for y in years:
            v = values.get(y)
            cells[y] = NO_DATA if v is None else v
        rows.append(TableRow(name=rec.name, code=rec.code, cells=cells))
    return TableProjection(years=years, rows=tuple(rows))


def build_single_year_chart(records: Sequence[CategoryRecord], year: str) -> SingleYearChartProjection:
    names = [rec.name for rec in records]
    keys = assign_color_keys(names)
    colors = assign_colors(names)
    rows = tuple(
        SingleYearRow(
            display_label=abbreviate_name(rec.name),
            full_name=rec.name,
            color_key=key,
            color=color,
            value=_values_by_year(rec).get(year),
        )
        for rec, key, color in zip(records, keys, colors)
    )
    return SingleYearChartProjection(year=year, rows=rows)


def build_multi_year_chart(records: Sequence[CategoryRecord], years: Iterable[str]) -> MultiYearChartProjection:
    years = tuple(years)
    names = [rec.name for rec in records]
    keys = assign_color_keys(names)
    colors = assign_colors(names)
    series = tuple(ChartSeries(color_key=k, full_name=n, color=c) for n, k, c in zip(names, keys, colors))
    lookups = [_values_by_year(rec) for rec in records]

    rows = []
    for y in years:
        entry: Dict[str, Any] = {YEAR_FIELD: display_year(y)}
        for s, values in zip(series, lookups):
            entry[s.color_key] = values.get(y)
        rows.append(entry)
    return MultiYearChartProjection(years=years, series=series, rows=tuple(rows))


def project(records: Sequence[CategoryRecord], mode: ProjectionMode, years: Iterable[str]) -> Projection:
    years = tuple(years)
    if mode == "table":
        return build_table(records, years)
    if mode == "bar" and len(years) == 1:
        return build_single_year_chart(records, years[0])
    if mode in ("bar", "line"):
        return build_multi_year_chart(records, years)
    raise ValueError(f"Unknown projection mode: {mode!r}")


def project_selection(snapshot: DatasetSnapshot, selection: SelectionState) -> Projection:
    if selection.view_mode == "table":
        years = selection.table_years()
        mode: ProjectionMode = "table"
    else:
        years = selection.chart_years(snapshot)
        mode = selection.chart_mode
    records = filter_records(snapshot, selection.selected_categories, years)
    # Keep years in snapshot order regardless of selection order.
    ordered_years = [y for y in snapshot.years if y in set(years)]
    return project(records, mode, ordered_years)


def projection_to_dict(projection: Projection) -> Dict[str, Any]:
    if isinstance(projection, TableProjection):
        return {
            "kind": projection.kind,
            "years": list(projection.years),
            "rows": [{"name": r.name, "code": r.code, "cells": dict(r.cells)} for r in projection.rows],
        }
    if isinstance(projection, SingleYearChartProjection):
        return {
            "kind": projection.kind,
            "year": projection.year,
            "rows": [
                {
                    "display_label": r.display_label,
                    "full_name": r.full_name,
                    "color_key": r.color_key,
                    "color": r.color,
                    "value": r.value,
                }
                for r in projection.rows
            ],
        }
    if isinstance(projection, MultiYearChartProjection):
        return {
            "kind": projection.kind,
            "years": list(projection.years),
            "series": [{"color_key": s.color_key, "full_name": s.full_name, "color": s.color} for s in projection.series],
            "rows": [dict(r) for r in projection.rows],
        }
    raise TypeError(f"Unsupported projection: {type(projection).__name__}")
