"""
Catalog search plumbing shared by the YouTube and TMDB adapters.

Adapters map a mood label to provider queries through a static table (with a
mandatory "neutral" entry) and return CandidateItems. HTTP goes through
requests in a worker thread; every failure is classified into an AdapterError
subclass so the orchestrator can skip the source instead of aborting.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, TypeVar

import requests

from ..engine.models.candidate import CandidateItem
from ..errors import AdapterError, Forbidden, NotConfigured, QuotaExceeded, Transient

logger = logging.getLogger(__name__)

DEFAULT_MOOD = "neutral"
DEFAULT_HTTP_TIMEOUT = 10.0  # seconds

T = TypeVar("T")


class CatalogSearchAdapter(Protocol):
    """Protocol for a mood-keyed media catalog."""

    name: str

    async def fetch_by_mood(
        self,
        label: str,
        category: Optional[str] = None,
        max_results: int = 10,
    ) -> List[CandidateItem]:
        """Candidate items for the mood. Raises AdapterError subclasses on failure."""
        ...


def lookup_mood(table: Mapping[str, T], label: Optional[str]) -> T:
    """Case-insensitive lookup; unknown or empty labels resolve to the neutral entry."""
    key = (label or "").strip().lower()
    if key in table:
        return table[key]
    return table[DEFAULT_MOOD]


def dedupe_by_native_id(batches: Iterable[Sequence[CandidateItem]]) -> List[CandidateItem]:
    """Merge result batches, keeping the first occurrence of each native id."""
    seen = set()
    merged: List[CandidateItem] = []
    for batch in batches:
        for item in batch:
            if item.native_id in seen:
                continue
            seen.add(item.native_id)
            merged.append(item)
    return merged


def _error_reason(response: requests.Response) -> str:
    """Best-effort provider error reason (YouTube: error.errors[0].reason; TMDB: status_message)."""
    try:
        body = response.json()
    except ValueError:
        return ""
    if not isinstance(body, dict):
        return ""
    err = body.get("error")
    if isinstance(err, dict):
        errors = err.get("errors") or []
        if errors and isinstance(errors[0], dict) and errors[0].get("reason"):
            return str(errors[0]["reason"])
        return str(err.get("status") or err.get("message") or "")
    return str(body.get("status_message") or "")


QUOTA_REASONS = {"quotaexceeded", "ratelimitexceeded", "dailylimitexceeded", "userratelimitexceeded"}


def classify_http_error(source: str, response: requests.Response) -> AdapterError:
    """Map a non-2xx response to the adapter error taxonomy."""
    status = response.status_code
    reason = _error_reason(response)
    message = f"HTTP {status}" + (f" ({reason})" if reason else f" {response.reason or ''}".rstrip())
    if status == 429 or reason.lower() in QUOTA_REASONS:
        return QuotaExceeded(source, message, status)
    if status in (401, 403):
        return Forbidden(source, message, status)
    return Transient(source, message, status)


class HttpCatalogClient:
    """
    Base for catalog adapters: API key handling and JSON GET with error mapping.

    Subclasses set `name` and call `_get_json` from their async methods.
    """

    name = "catalog"
    api_key_env = ""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = (api_key or "").strip() or None
        self.timeout = timeout
        self._session = session or requests.Session()

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _require_key(self) -> str:
        if not self.api_key:
            raise NotConfigured(self.name, f"{self.api_key_env or 'API key'} is not set")
        return self.api_key

    def _get_json_sync(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise Transient(self.name, f"timeout after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise Transient(self.name, f"request failed: {type(e).__name__}: {e}") from e
        if not response.ok:
            raise classify_http_error(self.name, response)
        try:
            data = response.json()
        except ValueError as e:
            raise Transient(self.name, "response was not valid JSON") from e
        if not isinstance(data, dict):
            raise Transient(self.name, "unexpected response shape")
        return data

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """GET url with params off the event loop; raises AdapterError subclasses."""
        return await asyncio.to_thread(self._get_json_sync, url, params)

    def close(self) -> None:
        self._session.close()
