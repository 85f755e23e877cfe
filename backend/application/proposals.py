"""Proposal list: WebDAV file -> parsed tabular envelope."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from backend.core.errors import EmptyPayloadError, ParseError, TransportError, UnsupportedFormatError
from backend.infrastructure.webdav import WebDavClient
from backend.workers.pipeline import ParsePipeline

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProposalService:
    """Builds the ``/proposals`` and ``/parser/health`` envelopes.

    Methods return ``(status_code, body)`` so the router only has to wrap
    them in a response.
    """

    def __init__(self, webdav: WebDavClient, pipeline: ParsePipeline, file_path: str) -> None:
        self._webdav = webdav
        self._pipeline = pipeline
        self._file_path = file_path

    def parse(self) -> tuple[int, dict[str, Any]]:
        file_path = self._file_path
        logger.info("Starting file parsing request", extra={"ctx_file_path": file_path})

        if not self._webdav.test_connection():
            return 503, {
                "success": False,
                "error": "Unable to connect to Nextcloud server",
                "message": "Please check Nextcloud credentials and server availability",
            }

        try:
            payload = self._webdav.get_file(file_path)
            outcome = self._pipeline.run(payload)
        except EmptyPayloadError:
            return 404, {
                "success": False,
                "error": "File is empty or could not be read",
                "file_path": file_path,
            }
        except UnsupportedFormatError as exc:
            return 400, {
                "success": False,
                "error": "Unsupported file format",
                "supported_formats": exc.supported,
                "detected_format": exc.extension,
            }
        except TransportError as exc:
            logger.error("Failed to fetch file from Nextcloud: %s", exc, extra={"ctx_status": exc.status})
            return 503, {
                "success": False,
                "error": "Failed to fetch file from Nextcloud",
                "message": exc.message,
                "timestamp": _timestamp(),
            }
        except ParseError as exc:
            logger.error("File parsing failed: %s", exc.reason)
            return 500, {
                "success": False,
                "error": "File parsing failed",
                "message": exc.reason,
                "timestamp": _timestamp(),
            }

        parsing_result = outcome.result.to_dict()
        parsing_result["parsed_at"] = _timestamp()
        return 200, {
            "success": True,
            "file_info": {
                "path": file_path,
                "type": outcome.detected.extension,
                "size": payload.size,
            },
            "parsing_result": parsing_result,
            "timestamp": _timestamp(),
        }

    def health(self) -> tuple[int, dict[str, Any]]:
        connected = self._webdav.test_connection()
        checks = {
            "nextcloud_connection": connected,
            "services_loaded": True,
            "timestamp": _timestamp(),
        }
        healthy = connected and checks["services_loaded"]
        return (200 if healthy else 503), {
            "success": healthy,
            "status": "healthy" if healthy else "degraded",
            "checks": checks,
        }


__all__ = ["ProposalService"]
