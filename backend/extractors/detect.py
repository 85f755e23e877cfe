"""Content-type detection for files fetched from the share.

The extension of the configured source path is authoritative; the HTTP
content type is only consulted when the path carries no extension.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath

from backend.core.errors import UnsupportedFormatError

SUPPORTED_FORMATS = ["csv", "xml", "xlsx", "xls"]

EXTENSION_KINDS = {
    "csv": "csv",
    "xml": "xml",
    "xlsx": "spreadsheet",
    "xls": "spreadsheet",
}

CONTENT_TYPE_KINDS = {
    "text/csv": "csv",
    "application/csv": "csv",
    "application/xml": "xml",
    "text/xml": "xml",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "spreadsheet",
    "application/vnd.ms-excel": "spreadsheet",
}


@dataclass
class DetectedFormat:
    kind: str
    extension: str


def _extension(path: str) -> str:
    return PurePosixPath(path).suffix.lower().lstrip(".")


def detect(source_path: str, content_type: str | None = None) -> DetectedFormat:
    extension = _extension(source_path)
    if extension:
        kind = EXTENSION_KINDS.get(extension)
        if kind is None:
            raise UnsupportedFormatError(extension, SUPPORTED_FORMATS)
        return DetectedFormat(kind=kind, extension=extension)

    mime = (content_type or "").split(";", 1)[0].strip().lower()
    kind = CONTENT_TYPE_KINDS.get(mime)
    if kind is None:
        raise UnsupportedFormatError(mime, SUPPORTED_FORMATS)
    return DetectedFormat(kind=kind, extension=kind if kind != "spreadsheet" else "xlsx")
