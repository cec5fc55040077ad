"""HTTP source for the job attachment event stream.

The dashboard exposes job photos as a server-sent event stream. This module
only moves bytes; decoding and state live in `core.services`.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
from loguru import logger

from core.services.interfaces import StreamTransportError


def parse_job_id(job_id: int | str) -> int:
    """Return `job_id` as a positive integer or raise ValueError."""
    text = str(job_id).strip()
    if not text or text == "undefined":
        raise ValueError("Invalid job ID.")
    try:
        value = int(text)
    except ValueError as exc:
        raise ValueError("Job ID must be a positive integer.") from exc
    if value <= 0:
        raise ValueError("Job ID must be a positive integer.")
    return value


class AttachmentStreamClient:
    """Streams the attachment import for one job."""

    def __init__(
        self,
        base_url: str,
        company_id: int = 0,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.company_id = company_id
        self.timeout = timeout
        self._transport = transport

    def attachments_url(self, job_id: int | str) -> str:
        return f"{self.base_url}/api/simpro/jobs/{parse_job_id(job_id)}/attachments"

    async def iter_chunks(self, job_id: int | str) -> AsyncIterator[bytes]:
        """Yield raw body chunks of the stream as they arrive.

        Raises:
            StreamTransportError: On a non-success status or any HTTP failure.
        """
        url = self.attachments_url(job_id)
        # Read timeout is disabled: the stream stays open while photos load
        timeout = httpx.Timeout(self.timeout, read=None)
        async with httpx.AsyncClient(
            timeout=timeout,
            transport=self._transport,
            headers={"Accept": "text/event-stream"},
        ) as client:
            try:
                async with client.stream(
                    "GET", url, params={"companyId": self.company_id}
                ) as response:
                    if response.is_error:
                        await response.aread()
                        logger.warning(
                            "Attachment stream {} returned HTTP {}", url, response.status_code
                        )
                        raise StreamTransportError(
                            f"Stream connect failed: HTTP {response.status_code}",
                            status_code=response.status_code,
                        )
                    logger.info("Attachment stream connected: {}", url)
                    async for chunk in response.aiter_bytes():
                        if chunk:
                            yield chunk
            except httpx.HTTPError as exc:
                logger.warning("Attachment stream {} failed: {}", url, exc)
                raise StreamTransportError(f"Failed to fetch photos: {exc}") from exc
