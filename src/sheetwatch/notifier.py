"""HTTP client that delivers change records to the notification service."""

from __future__ import annotations

import ssl
from collections.abc import Sequence
from typing import TYPE_CHECKING

import certifi
import httpx
from loguru import logger

from sheetwatch.exceptions import NotificationError

if TYPE_CHECKING:
    from sheetwatch.diff import ChangeRecord

DEFAULT_TIMEOUT = 30


class ChangeNotifier:
    """Posts change records as a JSON list to the notification service."""

    def __init__(self, url: str, timeout: int = DEFAULT_TIMEOUT) -> None:
        self._url = url
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        self._client = httpx.AsyncClient(timeout=timeout, verify=ssl_context)

    async def send_changes(
        self, sheet_name: str, changes: Sequence[ChangeRecord]
    ) -> None:
        """Send the changes detected on one sheet.

        Nothing is sent for an empty list.

        Raises:
            NotificationError: If the request fails or the service answers
                with any status other than 200.
        """
        if not changes:
            return

        payload = [change.to_payload() for change in changes]
        try:
            response = await self._client.post(self._url, json=payload)
        except httpx.RequestError as e:
            raise NotificationError(f"Failed to send changes: {e}") from e

        if response.status_code != httpx.codes.OK:
            raise NotificationError(
                f"Failed to send changes for sheet {sheet_name!r}, "
                f"status code: {response.status_code}",
                status_code=response.status_code,
            )
        logger.debug(f"Delivered {len(payload)} change(s) for sheet {sheet_name!r}")

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
