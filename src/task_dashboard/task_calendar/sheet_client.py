"""HTTP client for the spreadsheet backend."""

import logging
import time
from types import TracebackType
from typing import Any

import httpx

from .config import DEFAULT_BACKEND_URL, DEFAULT_REQUEST_TIMEOUT, FETCH_ACTION
from .exceptions import (
    BackendTimeoutError,
    ConfigurationError,
    PayloadShapeError,
    SheetFetchError,
)
from .interfaces import SheetSource

logger = logging.getLogger(__name__)


def extract_rows(payload: Any, sheet_name: str) -> list[Any]:
    """
    Pull ``table.rows`` out of a backend payload.

    Args:
        payload: Decoded JSON response body
        sheet_name: Sheet the payload belongs to, for error messages

    Returns:
        Raw table rows

    Raises:
        PayloadShapeError: If the payload reports failure or has no row list
    """
    if not isinstance(payload, dict):
        raise PayloadShapeError(
            f"Sheet '{sheet_name}' returned {type(payload).__name__}, expected an object",
            sheet=sheet_name,
        )

    if payload.get("success") is False:
        reason = payload.get("error") or "backend reported failure"
        raise PayloadShapeError(f"Sheet '{sheet_name}': {reason}", sheet=sheet_name)

    table = payload.get("table")
    rows = table.get("rows") if isinstance(table, dict) else None
    if not isinstance(rows, list):
        raise PayloadShapeError(f"Sheet '{sheet_name}' has no table rows", sheet=sheet_name)

    return rows


class SheetClient(SheetSource):
    """Reads sheets from the backend with ``GET ?sheet=<name>&action=fetch``."""

    def __init__(
        self,
        base_url: str = DEFAULT_BACKEND_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the sheet client.

        Args:
            base_url: Backend endpoint URL
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        if not base_url:
            raise ConfigurationError("Backend URL is not configured")
        if timeout <= 0:
            raise ConfigurationError(f"Timeout must be positive, got {timeout}")

        self.base_url = base_url
        self.timeout = timeout
        # Apps Script answers with a redirect to the content host
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    async def fetch_rows(self, sheet_name: str) -> list[Any]:
        params = {"sheet": sheet_name, "action": FETCH_ACTION}
        start_time = time.time()

        try:
            response = await self._client.get(self.base_url, params=params)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error(f"Timeout fetching sheet '{sheet_name}': {e}")
            raise BackendTimeoutError(
                f"Request for sheet '{sheet_name}' timed out after {self.timeout}s",
                sheet=sheet_name,
            ) from e
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error fetching sheet '{sheet_name}': {e}")
            raise SheetFetchError(
                f"Sheet '{sheet_name}' returned HTTP {e.response.status_code}",
                sheet=sheet_name,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Connection error fetching sheet '{sheet_name}': {e}")
            raise SheetFetchError(
                f"Request for sheet '{sheet_name}' failed: {e}", sheet=sheet_name
            ) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise PayloadShapeError(
                f"Sheet '{sheet_name}' returned invalid JSON: {e}", sheet=sheet_name
            ) from e

        rows = extract_rows(payload, sheet_name)
        logger.info(
            f"Fetched sheet '{sheet_name}': {len(rows)} rows "
            f"in {time.time() - start_time:.3f}s"
        )
        return rows

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "SheetClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
