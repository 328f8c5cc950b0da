from __future__ import annotations

from typing import Iterable, List

import pandas as pd

from gva.dataset import DatasetSnapshot
from gva.filters import filter_records, require_selection

CATEGORY_HEADER = "Industrial Division"


def _ordered_years(snapshot: DatasetSnapshot, years: Iterable[str]) -> List[str]:
    wanted = set(years)
    return [y for y in snapshot.years if y in wanted]


def export_frame(snapshot: DatasetSnapshot, categories: Iterable[str], years: Iterable[str]) -> pd.DataFrame:
    categories = list(categories)
    years = _ordered_years(snapshot, years)
    require_selection(categories, years)

    records = filter_records(snapshot, categories, years)
    rows = []
    for rec in records:
        row = {CATEGORY_HEADER: rec.name}
        for y in years:
            row[f"GVA ({y.replace('/', '-')})"] = rec.value_for(y)
        rows.append(row)
    columns = [CATEGORY_HEADER] + [f"GVA ({y.replace('/', '-')})" for y in years]
    return pd.DataFrame(rows, columns=columns, dtype=object)


def export_csv(snapshot: DatasetSnapshot, categories: Iterable[str], years: Iterable[str]) -> str:
    """CSV text for the selection; missing values are empty fields."""
    frame = export_frame(snapshot, categories, years)
    return frame.to_csv(index=False, na_rep="", lineterminator="\r\n")


def export_filename(years: Iterable[str]) -> str:
    labels = [y.replace("/", "-") for y in years]
    if not labels:
        return "gva_data.csv"
    if len(labels) == 1:
        return f"gva_data_{labels[0]}.csv"
    return f"gva_data_{labels[0]}_{labels[-1]}.csv"
