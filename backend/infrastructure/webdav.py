"""Read-only access to files on a Nextcloud WebDAV share."""
from __future__ import annotations

import logging
from urllib.parse import quote

from backend.core.errors import TransportError
from backend.domain.records import RawPayload

from .transport import HttpTransport

logger = logging.getLogger(__name__)


class WebDavClient:
    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        *,
        transport: HttpTransport,
        account_id: str | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required")
        self._auth = (username, password)
        self._transport = transport
        # The account segment of the DAV path is fixed for the client's lifetime.
        self.account_id = account_id or username
        self.files_root = f"{base_url.rstrip('/')}/remote.php/dav/files/{quote(self.account_id)}"

    def file_url(self, path: str) -> str:
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.files_root}{quote(path)}"

    def get_file(self, path: str) -> RawPayload:
        url = self.file_url(path)
        logger.info("Fetching file from Nextcloud", extra={"ctx_file_path": path})
        payload = self._transport.fetch(url, auth=self._auth)
        payload.source_path = path
        return payload

    def test_connection(self) -> bool:
        try:
            status = self._transport.propfind(f"{self.files_root}/", auth=self._auth, depth="0")
        except TransportError as exc:
            logger.error("Nextcloud connection test failed: %s", exc, extra={"ctx_status": exc.status})
            return False
        return status == 207


__all__ = ["WebDavClient"]
