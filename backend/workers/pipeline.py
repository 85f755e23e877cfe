from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from backend.core.errors import EmptyPayloadError
from backend.domain.records import ParseResult, RawPayload
from backend.extractors import delimited, detect, spreadsheet, xml_tree

logger = logging.getLogger(__name__)

Parser = Callable[[bytes], ParseResult]


@dataclass
class PipelineOutcome:
    payload: RawPayload
    detected: detect.DetectedFormat
    result: ParseResult


class ParsePipeline:
    """Route a fetched payload to the parser matching its detected format."""

    def __init__(self, parsers: dict[str, Parser] | None = None) -> None:
        self._parsers: dict[str, Parser] = parsers or {
            "csv": delimited.parse,
            "xml": xml_tree.parse,
            "spreadsheet": spreadsheet.parse,
        }

    def run(self, payload: RawPayload) -> PipelineOutcome:
        # an empty body is a fetch failure, not a parse failure
        if payload.is_empty:
            raise EmptyPayloadError("File is empty or could not be read", url=payload.source_path)
        detected = detect.detect(payload.source_path, payload.content_type)

        logger.info(
            "Parsing %s file",
            detected.kind,
            extra={"ctx_extension": detected.extension, "ctx_bytes": payload.size},
        )
        result = self._parsers[detected.kind](payload.content)
        logger.info(
            "File parsing completed successfully",
            extra={"ctx_file_type": detected.extension, "ctx_records": result.total_count},
        )
        return PipelineOutcome(payload=payload, detected=detected, result=result)


_pipeline: ParsePipeline | None = None


def get_parse_pipeline() -> ParsePipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = ParsePipeline()
    return _pipeline
