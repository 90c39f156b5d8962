"""
Data ingestion for the station prioritizer.

Handles:
- CSV/Excel upload (first sheet, first row as headers)
- Header cleanup (newlines, surrounding spaces)
- Empty cells normalized to ""
- Column status report for UI feedback
"""

import logging
from pathlib import Path
from typing import IO, List, Optional, Union

import pandas as pd

from config import prioritizer as config
from core import columns
from core.dates import is_blank

logger = logging.getLogger(__name__)


def clean_column_name(col) -> str:
    """Remove newlines and surrounding whitespace from a header."""
    return str(col).replace("\n", " ").replace("\r", " ").strip()


def check_extension(filename: Optional[str]) -> None:
    """
    Reject files that are not CSV or Excel.

    Raises:
        ValueError: If the extension is not in ALLOWED_UPLOAD_EXTENSIONS
    """
    if not filename:
        return
    suffix = Path(filename).suffix.lower()
    if suffix not in config.ALLOWED_UPLOAD_EXTENSIONS:
        allowed = ", ".join(config.ALLOWED_UPLOAD_EXTENSIONS)
        raise ValueError(f"Invalid file type: {suffix or filename}. Please upload a valid CSV or Excel file ({allowed})")


def dataframe_to_rows(df: pd.DataFrame) -> List[dict]:
    """
    Convert a DataFrame to row records.

    Headers are cleaned, blank cells become "" and every row keeps every
    header, in sheet order.
    """
    df = df.copy()
    df.columns = [clean_column_name(c) for c in df.columns]
    df = df.loc[:, [not c.startswith("Unnamed:") for c in df.columns]]

    rows = []
    for record in df.to_dict(orient="records"):
        row = {key: ("" if is_blank(value) else value) for key, value in record.items()}
        if any(value != "" for value in row.values()):
            rows.append(row)
    return rows


def _read_csv(file_like) -> pd.DataFrame:
    return pd.read_csv(file_like, dtype=object, keep_default_na=False, encoding="utf-8-sig")


def _read_excel(file_like) -> pd.DataFrame:
    xl = pd.ExcelFile(file_like)
    return xl.parse(xl.sheet_names[0], dtype=object)


def load_station_file(
    file_like: Union[str, Path, IO],
    filename: Optional[str] = None,
) -> List[dict]:
    """
    Load an uploaded station file (CSV or Excel) into row records.

    Excel is tried first for .xlsx/.xls names, CSV first otherwise; the
    other reader is the fallback.

    Args:
        file_like: File path or file-like object (e.g. Streamlit UploadedFile)
        filename: Original file name, used for the extension check

    Returns:
        List of row records (header -> raw cell value)

    Raises:
        ValueError: If the file type is not supported, the file cannot be
            read, or it holds no rows
    """
    if filename is None and isinstance(file_like, (str, Path)):
        filename = str(file_like)
    check_extension(filename)

    readers = [_read_csv, _read_excel]
    if filename and Path(filename).suffix.lower() in (".xlsx", ".xls"):
        readers.reverse()

    df = None
    errors = []
    for reader in readers:
        if hasattr(file_like, "seek"):
            file_like.seek(0)
        try:
            df = reader(file_like)
            break
        except Exception as exc:
            errors.append(f"{reader.__name__.strip('_')}: {exc}")

    if df is None:
        raise ValueError(
            "Failed to parse file. Please ensure it is a valid CSV or Excel file. "
            + "; ".join(errors)
        )

    rows = dataframe_to_rows(df)
    if not rows:
        raise ValueError("File is empty or could not be parsed")

    logger.info("Loaded %d rows with %d columns from %s", len(rows), len(df.columns), filename or "upload")
    return rows


def get_column_status(rows: List[dict]) -> dict:
    """
    Report which semantic fields the uploaded rows provide.

    Useful for UI feedback showing which columns were recognized.

    Returns:
        Dict of field name -> bool, plus "headers" (first row's headers)
    """
    if not rows:
        return {"headers": []}
    first = rows[0]
    headers = list(first.keys())
    return {
        "headers": headers,
        "work_center": any(alias in first for alias in config.WORK_CENTER_ALIASES),
        "team": any(alias in first for alias in config.TEAM_ALIASES),
        "expected_completion": columns.find_expected_completion_header(headers) is not None,
        "quantity": bool(columns.quantity_columns(first)),
        "remaining": columns.resolve(first, "remaining") is not None,
        "priority_note": any(alias in first for alias in config.PRIORITY_NOTE_ALIASES),
    }
