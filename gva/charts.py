from __future__ import annotations

from typing import Any, Dict

import altair as alt
import pandas as pd

from gva.projections import (
    MultiYearChartProjection,
    Projection,
    SingleYearChartProjection,
    TableProjection,
    YEAR_FIELD,
)

alt.data_transformers.disable_max_rows()

# Vega mirror of projections.format_axis_value.
AXIS_LABEL_EXPR = (
    "datum.value >= 1000000 ? format(datum.value / 1000000, '.1f') + 'M' : "
    "datum.value >= 1000 ? format(datum.value / 1000, '.1f') + 'K' : "
    "format(datum.value, 'd')"
)
CHART_HEIGHT = 400


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _y_axis(title: str = "GVA (Rs. million)") -> alt.Y:
    return alt.Y("value:Q", title=title, axis=alt.Axis(labelExpr=AXIS_LABEL_EXPR, gridDash=[3, 3], domain=False, ticks=False))


def single_year_bar_chart(projection: SingleYearChartProjection) -> alt.Chart:
    df = pd.DataFrame(
        [{"display_label": r.display_label, "full_name": r.full_name, "value": r.value} for r in projection.rows]
    )
    names = [r.full_name for r in projection.rows]
    colors = [r.color for r in projection.rows]
    return (
        alt.Chart(df)
        .mark_bar(cornerRadiusTopLeft=4, cornerRadiusTopRight=4)
        .encode(
            x=alt.X("display_label:N", title=None, sort=None, axis=alt.Axis(labelAngle=-45, labelLimit=160)),
            y=_y_axis(),
            color=alt.Color("full_name:N", title="Industrial Division", scale=alt.Scale(domain=names, range=colors)),
            tooltip=[
                alt.Tooltip("full_name:N", title="Division"),
                alt.Tooltip("value:Q", title=f"GVA {projection.year.replace('/', '-')}", format=","),
            ],
        )
        .properties(height=CHART_HEIGHT)
    )


def _long_frame(projection: MultiYearChartProjection) -> pd.DataFrame:
    wide = pd.DataFrame(list(projection.rows), columns=[YEAR_FIELD] + [s.color_key for s in projection.series])
    long_df = wide.melt(id_vars=YEAR_FIELD, var_name="color_key", value_name="value")
    names = {s.color_key: s.full_name for s in projection.series}
    long_df["full_name"] = long_df["color_key"].map(names)
    return long_df


def multi_year_chart(projection: MultiYearChartProjection, chart_mode: str = "line") -> alt.Chart:
    long_df = _long_frame(projection)
    names = [s.full_name for s in projection.series]
    colors = [s.color for s in projection.series]
    color = alt.Color("full_name:N", title="Industrial Division", scale=alt.Scale(domain=names, range=colors))
    x = alt.X(f"{YEAR_FIELD}:O", title="Fiscal Year", sort=None, axis=alt.Axis(labelAngle=-45, grid=False))
    tooltip = [
        alt.Tooltip(f"{YEAR_FIELD}:O", title="Year"),
        alt.Tooltip("full_name:N", title="Division"),
        alt.Tooltip("value:Q", title="GVA", format=","),
    ]

    base = alt.Chart(long_df)
    if chart_mode == "bar":
        chart = base.mark_bar(cornerRadiusTopLeft=4, cornerRadiusTopRight=4).encode(
            x=x, xOffset=alt.XOffset("full_name:N", sort=names), y=_y_axis(), color=color, tooltip=tooltip
        )
    else:
        hover = alt.selection_point(fields=["full_name"], on="mouseover", empty="all")
        chart = (
            base.mark_line(point={"filled": True, "size": 50} if len(projection.years) <= 5 else False, strokeWidth=2)
            .encode(
                x=x,
                y=_y_axis(),
                color=color,
                opacity=alt.condition(hover, alt.value(1), alt.value(0.2)),
                tooltip=tooltip,
            )
            .add_params(hover)
        )
    return chart.properties(height=CHART_HEIGHT)


def build_chart(projection: Projection, chart_mode: str = "line") -> alt.Chart:
    if isinstance(projection, SingleYearChartProjection):
        return single_year_bar_chart(projection)
    if isinstance(projection, MultiYearChartProjection):
        return multi_year_chart(projection, chart_mode)
    if isinstance(projection, TableProjection):
        raise TypeError("Table projections are rendered as tables, not charts")
    raise TypeError(f"Unsupported projection: {type(projection).__name__}")
