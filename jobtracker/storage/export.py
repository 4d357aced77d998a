from __future__ import annotations
from typing import Iterable

import pandas as pd
from openpyxl.utils import get_column_letter

from ..schemas import COLUMNS, JobApplication

SHEET_NAME = "Applications"

_COLUMN_WIDTHS = {
    "id": 6,
    "company": 30,
    "position": 40,
    "location": 25,
    "salary_range": 25,
    "workplace_type": 15,
    "status": 18,
    "notes": 50,
    "website": 30,
    "date_applied": 14,
}


def records_to_frame(records: Iterable[JobApplication]) -> pd.DataFrame:
    rows = [{"id": job.id, **job.to_row()} for job in records]
    return pd.DataFrame(rows, columns=COLUMNS)


def export_to_excel(records: Iterable[JobApplication], out_path: str) -> int:
    df = records_to_frame(records)
    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=SHEET_NAME)
        ws = writer.sheets[SHEET_NAME]
        _set_column_widths(ws, df)
    return len(df)


def export_to_csv(records: Iterable[JobApplication], out_path: str) -> int:
    df = records_to_frame(records)
    df.to_csv(out_path, index=False)
    return len(df)


def _set_column_widths(ws, df: pd.DataFrame) -> None:
    for idx, col_name in enumerate(df.columns, start=1):
        letter = get_column_letter(idx)
        ws.column_dimensions[letter].width = _COLUMN_WIDTHS.get(col_name, 20)
