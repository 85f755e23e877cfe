"""HTTP client for the Studierendenwerk menu XML feed."""
from __future__ import annotations

from backend.core.errors import EmptyPayloadError
from backend.domain.records import RawPayload

from .transport import HttpTransport

# The feed ignores shorter windows, so the full week is always requested and
# filtered locally.
FEED_WINDOW_DAYS = "7"


class MenuFeedClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        location_id: str,
        *,
        transport: HttpTransport,
    ) -> None:
        self._base_url = base_url
        self._api_key = api_key
        self._location_id = location_id
        self._transport = transport

    def params(self) -> dict[str, str]:
        return {
            "type": "98",
            "tx_speiseplan_pi1[apiKey]": self._api_key,
            "tx_speiseplan_pi1[tage]": FEED_WINDOW_DAYS,
            "tx_speiseplan_pi1[ort]": self._location_id,
        }

    def fetch_xml(self) -> RawPayload:
        payload = self._transport.fetch(self._base_url, params=self.params())
        if payload.is_empty:
            raise EmptyPayloadError("Empty response from Mensa API", status=payload.status_code, url=self._base_url)
        return payload


__all__ = ["MenuFeedClient", "FEED_WINDOW_DAYS"]
