"""
Export utilities for prioritized station results.

- Excel: one sheet per partition, "#" rank column first, dates as real dates
- CSV: all partitions in one file, blank line between them, UTF-8 with BOM
"""
import csv
import io
import logging
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from config import prioritizer as config
from core import columns
from core.dates import format_date, format_date_cell, format_standard_time, is_blank, normalize_date
from core.prioritization import Partition, RankedRow

logger = logging.getLogger(__name__)

CSV_BOM = "\ufeff"


def cell_text(value) -> str:
    """Plain-text rendering of a raw cell for CSV and tables."""
    if is_blank(value):
        return ""
    if isinstance(value, (datetime, date)):
        return format_date_cell(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def display_value(row: RankedRow, header: str):
    """Value of a cell as shown in the results table."""
    if header == config.SUPPLY_COMPLETION_COLUMN:
        return format_date(row.supply_date)
    value = row.record.get(header, "")
    if header in config.EXPECTED_COMPLETION_ALIASES:
        return format_date_cell(value)
    if columns.is_standard_time_header(header):
        return format_standard_time(value)
    return cell_text(value)


def table_columns(headers: Sequence[str]) -> List[Tuple[str, Optional[str]]]:
    """
    Output columns as (title, source header) pairs, rank first.

    The rank column has no source header. An input column that is itself
    called "#" keeps its values under a separate title.
    """
    result: List[Tuple[str, Optional[str]]] = [(config.RANK_COLUMN, None)]
    for header in headers:
        title = config.SOURCE_RANK_COLUMN if header == config.RANK_COLUMN else header
        result.append((title, header))
    return result


def export_value(row: RankedRow, header: str):
    """Value of a cell for Excel: dates stay ``datetime.date``, the rest is raw."""
    if header == config.SUPPLY_COMPLETION_COLUMN:
        return row.supply_date
    raw = row.record.get(header, "")
    if header in config.EXPECTED_COMPLETION_ALIASES:
        return normalize_date(raw) or raw
    return raw


def partition_to_dataframe(partition: Partition, for_display: bool = True) -> pd.DataFrame:
    """
    Build the table of one partition: "#" then the partition headers.

    Args:
        partition: Ranked partition
        for_display: Render dates and times as text (True) or keep dates as
            ``datetime.date`` for Excel (False)

    Returns:
        DataFrame with one row per ranked row
    """
    cols = table_columns(partition.headers)
    cell = display_value if for_display else export_value
    data = [
        [row.rank if header is None else cell(row, header) for _, header in cols]
        for row in partition.rows
    ]
    return pd.DataFrame(data, columns=[title for title, _ in cols])


def sheet_name_for(label: str, used: set) -> str:
    """Excel-safe, unique sheet name (31 chars, no []:*?/\\)."""
    name = "".join("_" if ch in config.FORBIDDEN_SHEET_NAME_CHARS else ch for ch in label).strip("'")
    name = (name or "Sheet")[: config.MAX_SHEET_NAME_LENGTH]
    candidate = name
    counter = 2
    while candidate.lower() in used:
        suffix = f" ({counter})"
        candidate = name[: config.MAX_SHEET_NAME_LENGTH - len(suffix)] + suffix
        counter += 1
    used.add(candidate.lower())
    return candidate


def export_partitions_to_excel(partitions: Sequence[Partition]) -> bytes:
    """
    Export all partitions to a multi-sheet Excel workbook.

    Expected and supply completion cells are written as dates with the
    dd.mm.yyyy number format; everything else is passed through.

    Returns:
        Excel file as bytes
    """
    output = io.BytesIO()
    used: set = set()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        if not partitions:
            pd.DataFrame().to_excel(writer, sheet_name="Sheet1", index=False)
        for partition in partitions:
            sheet_name = sheet_name_for(partition.label, used)
            df = partition_to_dataframe(partition, for_display=False)
            df.to_excel(writer, sheet_name=sheet_name, index=False)

            worksheet = writer.sheets[sheet_name]
            date_headers = [config.SUPPLY_COMPLETION_COLUMN] + config.EXPECTED_COMPLETION_ALIASES
            for col_idx, header in enumerate(df.columns, start=1):
                if header not in date_headers:
                    continue
                for row_idx in range(2, len(df) + 2):
                    cell = worksheet.cell(row=row_idx, column=col_idx)
                    if isinstance(cell.value, (datetime, date)):
                        cell.number_format = config.EXCEL_DATE_NUMBER_FORMAT

    logger.info("Exported %d partitions to Excel", len(partitions))
    return output.getvalue()


def export_partitions_to_csv(
    partitions: Sequence[Partition],
    headers: Optional[List[str]] = None,
) -> bytes:
    """
    Export all partitions to one CSV file.

    One header line ("#" plus headers, defaulting to the first partition's),
    then each partition's rows as shown in the results table, with every
    field double-quoted and a blank line between partitions. Encoded UTF-8
    with a BOM so spreadsheet applications pick up the Hebrew headers.

    Returns:
        CSV file as bytes
    """
    if headers is None:
        headers = list(partitions[0].headers) if partitions else []
    cols = table_columns(headers)

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([title for title, _ in cols])
    for idx, partition in enumerate(partitions):
        if idx > 0:
            buffer.write("\n")
        for row in partition.rows:
            writer.writerow([
                str(row.rank) if header is None else display_value(row, header)
                for _, header in cols
            ])

    logger.info("Exported %d partitions to CSV", len(partitions))
    return (CSV_BOM + buffer.getvalue()).encode("utf-8")


def summarize_partitions(partitions: Sequence[Partition]) -> pd.DataFrame:
    """
    Overview table: rows, dated rows and earliest/latest supply date per partition.
    """
    records: List[Dict] = []
    for partition in partitions:
        dates = [r.supply_date for r in partition.rows if r.supply_date is not None]
        records.append({
            "Partition": partition.label,
            "Rows": len(partition.rows),
            "With supply date": len(dates),
            "Earliest supply date": format_date(min(dates)) if dates else "",
            "Latest supply date": format_date(max(dates)) if dates else "",
        })
    return pd.DataFrame(records, columns=[
        "Partition", "Rows", "With supply date", "Earliest supply date", "Latest supply date",
    ])
