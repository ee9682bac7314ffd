from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

"""Upload reader.

The first row of the first sheet is the header row; every following row is a
data row. Rows whose cells are all empty are skipped (spreadsheet padding), all
other rows are returned so that nothing is silently lost downstream.

.xlsx / .xls go through pandas (openpyxl engine for .xlsx); .csv through
pandas.read_csv with every cell kept as text.
"""

EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}
CSV_SUFFIXES = {".csv"}


class UploadReadError(Exception):
    """Raised when the uploaded bytes cannot be read as a table."""


@dataclass(frozen=True)
class RawRow:
    row_number: int  # spreadsheet row number (header = 1)
    cells: dict[str, Any]


@dataclass
class UploadSheet:
    file_name: str
    columns: list[str]
    rows: list[RawRow]


def read_upload_frame(source: Path | bytes, file_name: str | None = None) -> pd.DataFrame:
    """Read the first sheet of an upload as a header-less DataFrame.

    Parameters
    ----------
    source: path of the uploaded file, or its raw bytes
    file_name: original file name, required with bytes to pick the parser
    """
    name = file_name or (source.name if isinstance(source, Path) else "")
    suffix = Path(name).suffix.lower()
    handle: Any = io.BytesIO(source) if isinstance(source, bytes) else source

    try:
        if suffix in CSV_SUFFIXES:
            # keep_default_na=False: a client literally called "NA" stays text
            return pd.read_csv(handle, header=None, dtype=object, keep_default_na=False)
        if suffix in EXCEL_SUFFIXES:
            return pd.read_excel(
                handle, sheet_name=0, header=None, keep_default_na=False, na_values=[""]
            )
    except Exception as e:  # pandas, zipfile and openpyxl each raise their own types
        raise UploadReadError(f"cannot read upload '{name}': {e}") from e
    raise UploadReadError(f"unsupported upload type '{suffix or name}' (expected .xlsx or .csv)")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def normalize_frame(df: pd.DataFrame, file_name: str) -> UploadSheet:
    """Split a raw frame into header columns and RawRows.

    An empty frame yields no columns; the schema validator reports that.
    """
    if df.shape[0] == 0:
        return UploadSheet(file_name=file_name, columns=[], rows=[])

    header = df.iloc[0].tolist()
    columns = ["" if _is_blank(c) else str(c).strip() for c in header]

    rows: list[RawRow] = []
    for offset, raw in enumerate(df.iloc[1:].itertuples(index=False, name=None)):
        values = [None if _is_blank(v) else v for v in raw]
        if all(v is None for v in values):
            continue
        cells = {col: val for col, val in zip(columns, values, strict=False) if col}
        # header row is row 1, so the first data row is row 2
        rows.append(RawRow(row_number=offset + 2, cells=cells))
    return UploadSheet(file_name=file_name, columns=columns, rows=rows)


def read_upload(source: Path | bytes, file_name: str | None = None) -> UploadSheet:
    name = file_name or (source.name if isinstance(source, Path) else "upload")
    df = read_upload_frame(source, name)
    return normalize_frame(df, name)
