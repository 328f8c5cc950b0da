from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class SelectionModel(BaseModel):
    selected_categories: List[str] = Field(default_factory=list)
    selected_year: Optional[str] = None
    selected_years: List[str] = Field(default_factory=list)
    chart_mode: Literal["line", "bar"] = "bar"
    view_mode: Literal["chart", "table"] = "chart"


class MetaYearsResponse(BaseModel):
    years: List[str]
    labels: List[str]


class CategoryModel(BaseModel):
    code: str
    name: str
    short_name: str


class MetaCategoriesResponse(BaseModel):
    categories: List[CategoryModel]


class InsightResponse(BaseModel):
    summary: str
    fallback: bool = False
