"""Delimited-text (CSV) parser with delimiter auto-detection."""

from __future__ import annotations

import csv
import io
import logging

import pandas as pd

from backend.core.errors import ParseError
from backend.domain.records import ParseResult, Record

logger = logging.getLogger(__name__)

CANDIDATE_DELIMITERS = (",", ";", "\t", "|")


def _decode(content: bytes) -> tuple[str, str]:
    try:
        return content.decode("utf-8-sig"), "utf-8"
    except UnicodeDecodeError:
        return content.decode("latin-1"), "latin-1"


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line
    return ""


def _field_count(line: str, delimiter: str) -> int:
    row = next(csv.reader([line], delimiter=delimiter), [])
    return len(row)


def detect_delimiter(content: bytes | str) -> str:
    """Pick the candidate that splits the header line into the most fields.

    Ties keep the earlier candidate, so a single-column file resolves to ``,``.
    """

    text = _decode(content)[0] if isinstance(content, bytes) else content
    header = _first_line(text)
    best, best_count = CANDIDATE_DELIMITERS[0], 0
    for delimiter in CANDIDATE_DELIMITERS:
        count = _field_count(header, delimiter)
        if count > best_count:
            best, best_count = delimiter, count
    return best


def _unique_headers(names: list[str]) -> list[str]:
    """Trim header names and keep them unique.

    Duplicate names get a ``.N`` suffix, the convention pandas applies to
    repeated columns (``a``, ``a.1``); names that only collide after trimming
    are suffixed the same way, so no column is lost from the records. Blank
    names become ``Column_N`` (1-based), as in the spreadsheet parser.
    """

    headers: list[str] = []
    seen: set[str] = set()
    for index, raw in enumerate(names, start=1):
        name = raw.strip() or f"Column_{index}"
        candidate, suffix = name, 0
        while candidate in seen:
            suffix += 1
            candidate = f"{name}.{suffix}"
        seen.add(candidate)
        headers.append(candidate)
    return headers


def parse(content: bytes, delimiter: str | None = None) -> ParseResult:
    """Parse delimited text; the first non-blank line is the header row.

    Rows shorter than the header leave the missing fields as ``None``; fields
    beyond the header width are dropped and the row is kept. Renamed headers
    are listed in ``source_meta["renamed_headers"]``.
    """

    text, encoding = _decode(content)
    if not text.strip():
        meta = {"delimiter": delimiter, "encoding": encoding, "renamed_headers": []}
        return ParseResult(records=[], headers=[], source_meta=meta)

    delimiter = delimiter or detect_delimiter(text)
    width = _field_count(_first_line(text), delimiter)
    try:
        frame = pd.read_csv(
            io.StringIO(text),
            sep=delimiter,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False,
            usecols=range(width),
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as exc:
        raise ParseError(f"Malformed CSV: {exc}") from exc

    source_names = next(csv.reader([_first_line(text)], delimiter=delimiter), [])
    headers = _unique_headers(source_names)
    frame.columns = headers
    renamed = [
        {"column": index, "original": original, "name": header}
        for index, (original, header) in enumerate(zip(source_names, headers), start=1)
        if original != header
    ]

    records: list[Record] = []
    for row in frame.itertuples(index=False, name=None):
        values = [None if pd.isna(value) else str(value) for value in row]
        if not any(value and value.strip() for value in values):
            continue
        # short rows leave the trailing fields as None
        records.append(dict(zip(headers, values)))

    logger.info(
        "CSV parsing completed",
        extra={"ctx_records": len(records), "ctx_delimiter": delimiter},
    )
    return ParseResult(
        records=records,
        headers=headers,
        source_meta={"delimiter": delimiter, "encoding": encoding, "renamed_headers": renamed},
    )


__all__ = ["CANDIDATE_DELIMITERS", "detect_delimiter", "parse"]
