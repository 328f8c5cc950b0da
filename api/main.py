from __future__ import annotations

import logging
import math
from functools import lru_cache

from fastapi import Depends, FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import CategoryModel, InsightResponse, MetaCategoriesResponse, MetaYearsResponse, SelectionModel
from gva.charts import build_chart, to_vega_spec
from gva.config import Settings, load_settings
from gva.dataset import DatasetSnapshot, load_snapshot
from gva.export import export_csv, export_filename
from gva.filters import SelectionError, SelectionState, filter_records, normalize_selection, require_selection
from gva.insights import (
    FALLBACK_SUMMARY,
    GeminiInsightGenerator,
    InsightGenerator,
    build_insight_request,
)
from gva.projections import TableProjection, abbreviate_name, project_selection, projection_to_dict


logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def get_snapshot() -> DatasetSnapshot:
    return load_snapshot()


def get_insight_generator() -> InsightGenerator:
    return GeminiInsightGenerator(get_settings())


app = FastAPI(title="GVA Dashboard API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _selection_from_model(model: SelectionModel, snapshot: DatasetSnapshot) -> SelectionState:
    return normalize_selection(model.model_dump(), snapshot)


def _json(data: object) -> JSONResponse:
    """Return JSON with NaN/inf mapped to null."""

    def _safe_float(value: float) -> float | None:
        if math.isnan(value) or math.isinf(value):
            return None
        return value

    return JSONResponse(content=jsonable_encoder(data, custom_encoder={float: _safe_float}))


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _ordered_years(snapshot: DatasetSnapshot, selection: SelectionState) -> list[str]:
    wanted = set(selection.table_years())
    return [y for y in snapshot.years if y in wanted]


@app.get("/meta/years", response_model=MetaYearsResponse)
def meta_years(snapshot: DatasetSnapshot = Depends(get_snapshot)):
    return MetaYearsResponse(years=list(snapshot.years), labels=[snapshot.year_label(y) for y in snapshot.years])


@app.get("/meta/categories", response_model=MetaCategoriesResponse)
def meta_categories(snapshot: DatasetSnapshot = Depends(get_snapshot)):
    return MetaCategoriesResponse(
        categories=[CategoryModel(code=r.code, name=r.name, short_name=abbreviate_name(r.name)) for r in snapshot.records]
    )


@app.post("/projection")
def projection(selection: SelectionModel, snapshot: DatasetSnapshot = Depends(get_snapshot)):
    try:
        state = _selection_from_model(selection, snapshot)
        proj = project_selection(snapshot, state)
        payload = projection_to_dict(proj)
        if not isinstance(proj, TableProjection) and proj.rows:
            payload["chart"] = to_vega_spec(build_chart(proj, state.chart_mode))
        return _json(payload)
    except Exception as exc:
        logger.exception("projection failed")
        return _error(exc)


@app.post("/insights", response_model=InsightResponse)
def insights(
    selection: SelectionModel,
    snapshot: DatasetSnapshot = Depends(get_snapshot),
    generator: InsightGenerator = Depends(get_insight_generator),
):
    state = _selection_from_model(selection, snapshot)
    years = _ordered_years(snapshot, state)
    try:
        request = build_insight_request(filter_records(snapshot, state.selected_categories, years), state.selected_categories, years)
    except SelectionError as exc:
        return _error(exc, status_code=422)
    try:
        return InsightResponse(summary=generator(request))
    except Exception:
        logger.exception("insights failed")
        return InsightResponse(summary=FALLBACK_SUMMARY, fallback=True)


@app.post("/export")
def export(selection: SelectionModel, snapshot: DatasetSnapshot = Depends(get_snapshot)):
    state = _selection_from_model(selection, snapshot)
    years = _ordered_years(snapshot, state)
    try:
        require_selection(state.selected_categories, years)
        csv_text = export_csv(snapshot, state.selected_categories, years)
    except SelectionError as exc:
        return _error(exc, status_code=422)
    filename = export_filename(years)
    return Response(
        content=csv_text.encode("utf-8"),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
