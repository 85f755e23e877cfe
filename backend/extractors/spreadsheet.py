"""Spreadsheet (xlsx) parser: first worksheet, header row, non-empty rows."""

from __future__ import annotations

import io
import logging
import zipfile
from datetime import date, datetime, time
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from backend.core.errors import ParseError
from backend.domain.records import ParseResult, Record

logger = logging.getLogger(__name__)

MAX_COLUMNS = 100

_LOAD_ERRORS = (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError, TypeError)


def format_cell(value: Any) -> str:
    """Render a cell the way it reads in the sheet, trimmed."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value).strip()


def _load(content: bytes):
    try:
        return load_workbook(io.BytesIO(content), data_only=True)
    except _LOAD_ERRORS as exc:
        raise ParseError(f"Failed to parse Excel file: {exc}") from exc


def _data_extent(rows: list[tuple[Any, ...]]) -> tuple[int, int]:
    """Return (last row, last column) holding a non-empty value, 1-based."""

    last_row = 0
    last_col = 0
    for row_index, row in enumerate(rows, start=1):
        for col_index, value in enumerate(row, start=1):
            if format_cell(value):
                last_row = row_index
                last_col = max(last_col, col_index)
    return last_row, last_col


def parse(content: bytes, max_columns: int = MAX_COLUMNS) -> ParseResult:
    workbook = _load(content)
    try:
        sheet = workbook.worksheets[0]
        sheet_name = sheet.title
        sheet_count = len(workbook.worksheets)
        rows = list(sheet.iter_rows(values_only=True))
    finally:
        workbook.close()

    last_row, last_col = _data_extent(rows)
    if last_col > max_columns:
        logger.warning(
            "Excel file has too many columns, limiting to first %d",
            max_columns,
            extra={"ctx_columns": last_col},
        )
        last_col = max_columns

    meta: dict[str, Any] = {
        "sheet_name": sheet_name,
        "sheet_count": sheet_count,
        "dimensions": f"{get_column_letter(last_col)}{last_row}" if last_col else "A1",
    }
    if last_row == 0:
        return ParseResult(records=[], headers=[], source_meta=meta)

    header_row = rows[0]
    headers: list[str] = []
    for col in range(1, last_col + 1):
        label = format_cell(header_row[col - 1]) if col <= len(header_row) else ""
        headers.append(label or f"Column_{col}")

    records: list[Record] = []
    for row in rows[1:last_row]:
        record: Record = {}
        has_data = False
        for col in range(1, last_col + 1):
            value = format_cell(row[col - 1]) if col <= len(row) else ""
            if value:
                has_data = True
            record[headers[col - 1]] = value
        if has_data:
            records.append(record)

    logger.info(
        "Excel parsing completed",
        extra={"ctx_records": len(records), "ctx_sheet": sheet_name},
    )
    return ParseResult(records=records, headers=headers, source_meta=meta)


def describe(content: bytes) -> dict[str, Any]:
    """Workbook summary without building records; errors are reported, not raised."""

    try:
        workbook = _load(content)
    except ParseError as exc:
        logger.error("Failed to get Excel file info: %s", exc.reason)
        return {"error": exc.reason, "file_size": len(content)}
    try:
        sheet = workbook.worksheets[0]
        return {
            "sheet_count": len(workbook.worksheets),
            "active_sheet": workbook.active.title if workbook.active is not None else sheet.title,
            "dimensions": {"row": sheet.max_row, "column": get_column_letter(sheet.max_column)},
            "file_size": len(content),
        }
    finally:
        workbook.close()


__all__ = ["MAX_COLUMNS", "describe", "format_cell", "parse"]
