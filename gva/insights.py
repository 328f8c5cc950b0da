from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from langchain_core.prompts import ChatPromptTemplate
from langchain_google_genai import ChatGoogleGenerativeAI

from gva.config import Settings
from gva.dataset import CategoryRecord, DatasetSnapshot, numeric_year
from gva.filters import SelectionError, SelectionState, filter_records, require_selection

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = "Failed to generate insights. Please try again."
BUSY_MESSAGE = "Insights are already being generated. Please wait."

PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            (
                "You are an expert economic analyst. "
                "You are provided with GVA data for various industrial divisions across a range of years. "
                "Identify and summarize the key trends and insights, such as the fastest-growing sectors "
                "or significant changes in GVA over the selected period. "
                "Only use numbers present in the data; do not invent values."
            ),
        ),
        (
            "human",
            (
                "The data is provided as a JSON string:\n{data}\n\n"
                "The years included in the analysis are: {years}\n\n"
                "The industrial divisions included in the analysis are: {categories}\n\n"
                "Provide a concise summary of the key trends and insights."
            ),
        ),
    ]
)


class InsightGenerationError(RuntimeError):
    """The text-generation call failed (transport, model, or empty output)."""


@dataclass(frozen=True)
class InsightRequest:
    years: List[int]
    categories: List[str]
    data: str

    def to_payload(self) -> Dict[str, Any]:
        return {"years": list(self.years), "categories": list(self.categories), "data": self.data}


def serialize_records(records: Sequence[CategoryRecord]) -> str:
    return json.dumps(
        [
            {
                "name": rec.name,
                "code": rec.code,
                "values": [{"year": numeric_year(yv.gregorian_year), "value": yv.value} for yv in rec.data],
            }
            for rec in records
        ],
        ensure_ascii=False,
    )


def build_insight_request(
    records: Sequence[CategoryRecord],
    categories: Iterable[str],
    years: Iterable[str],
) -> InsightRequest:
    """Request for the text-generation call; refuses an empty category or year selection."""
    categories = list(categories)
    years = list(years)
    require_selection(categories, years)
    if not records:
        raise SelectionError("No data available for the selected divisions and years.")
    return InsightRequest(
        years=[numeric_year(y) for y in years],
        categories=categories,
        data=serialize_records(records),
    )


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict):
                parts.append(str(part.get("text", "")))
        return "".join(parts)
    return str(content or "")


class GeminiInsightGenerator:
    def __init__(self, settings: Settings):
        self.settings = settings

    def _model(self) -> ChatGoogleGenerativeAI:
        if not self.settings.google_api_key:
            raise InsightGenerationError("GOOGLE_API_KEY is not configured")
        return ChatGoogleGenerativeAI(model=self.settings.gemini_model, google_api_key=self.settings.google_api_key)

    def __call__(self, request: InsightRequest) -> str:
        model = self._model()
        messages = PROMPT.format_messages(
            data=request.data,
            years=", ".join(str(y) for y in request.years),
            categories=", ".join(request.categories),
        )
        try:
            response = model.invoke(messages)
        except Exception as exc:
            raise InsightGenerationError(f"{type(exc).__name__}: {exc}") from exc
        summary = _content_text(response.content).strip()
        if not summary:
            raise InsightGenerationError("Model returned an empty summary")
        return summary


InsightGenerator = Callable[[InsightRequest], str]


@dataclass
class InsightSession:
    """Owns the loading flag and last result for one dashboard session."""

    generator: InsightGenerator
    loading: bool = False
    summary: Optional[str] = None
    error: Optional[str] = None
    years_label: Optional[str] = None

    def generate(self, snapshot: DatasetSnapshot, selection: SelectionState) -> Optional[str]:
        if self.loading:
            self.error = BUSY_MESSAGE
            return None

        years = [y for y in snapshot.years if y in set(selection.table_years())]
        records = filter_records(snapshot, selection.selected_categories, years)
        try:
            request = build_insight_request(records, selection.selected_categories, years)
        except SelectionError as exc:
            self.error = str(exc)
            return None

        self.loading = True
        self.summary = None
        self.error = None
        try:
            self.summary = self.generator(request)
        except Exception as exc:
            logger.exception("Insight generation failed")
            self.summary = FALLBACK_SUMMARY
            self.error = str(exc) or type(exc).__name__
        finally:
            self.loading = False
        self.years_label = ", ".join(snapshot.year_label(y, with_status=False) for y in years)
        return self.summary
