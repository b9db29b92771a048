from __future__ import annotations
import logging
import httpx
from dataclasses import dataclass, field
from typing import Optional
from template_service.core.errors import UpstreamUnavailable

log = logging.getLogger(__name__)

@dataclass
class GitHubArchiveClient:
    """Downloads the template repository as a single ZIP archive."""
    archive_url: str
    timeout: float = 60.0
    token: Optional[str] = None
    transport: Optional[httpx.AsyncBaseTransport] = field(default=None, repr=False)

    def _headers(self) -> dict:
        headers = {"Accept": "application/zip"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def fetch_archive(self) -> bytes:
        # GitHub answers archive URLs with a redirect to codeload.
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self.transport,
        ) as client:
            try:
                r = await client.get(self.archive_url, headers=self._headers())
            except httpx.HTTPError as e:
                log.error("Upstream fetch failed: %s", e)
                raise UpstreamUnavailable(f"Could not reach {self.archive_url}: {e}") from e
        if r.status_code != 200:
            log.error("Upstream returned HTTP %d for %s", r.status_code, self.archive_url)
            raise UpstreamUnavailable(
                f"Upstream returned HTTP {r.status_code} for {self.archive_url}"
            )
        return r.content
