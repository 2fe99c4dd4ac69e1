"""HTTP access to the public stem library."""
import asyncio
from pathlib import Path
from typing import Optional

import httpx

from facetrack.core.config import settings
from facetrack.core.exceptions import MixFailureError
from facetrack.core.logging import get_logger
from facetrack.domain.interfaces.audio.mixer import StemSource

logger = get_logger(__name__)


class HttpStemSource(StemSource):
    """Checks and downloads stems over HTTP using httpx.

    Downloads are retried a fixed number of times with a fixed delay; there
    is no backoff.
    """

    def __init__(
        self,
        check_timeout: Optional[float] = None,
        download_timeout: Optional[float] = None,
        attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.check_timeout = check_timeout or settings.STEM_CHECK_TIMEOUT
        self.download_timeout = download_timeout or settings.STEM_DOWNLOAD_TIMEOUT
        self.attempts = max(1, attempts or settings.STEM_DOWNLOAD_ATTEMPTS)
        self.retry_delay = settings.STEM_DOWNLOAD_RETRY_DELAY if retry_delay is None else retry_delay
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    async def exists(self, url: str) -> bool:
        """HEAD the stem URL; unreachable or non-2xx counts as missing."""
        try:
            async with self._client(self.check_timeout) as http:
                resp = await http.head(url)
        except httpx.HTTPError as e:
            logger.warning("Stem check failed", url=url, error=str(e))
            return False
        if not resp.is_success:
            logger.warning("Stem not available", url=url, status=resp.status_code)
            return False
        return True

    async def download(self, url: str, destination: Path) -> Path:
        """Stream a stem to ``destination``.

        Raises:
            MixFailureError: If every attempt fails
        """
        last_error: Optional[Exception] = None
        for attempt in range(1, self.attempts + 1):
            try:
                async with self._client(self.download_timeout) as http:
                    async with http.stream("GET", url) as resp:
                        resp.raise_for_status()
                        with open(destination, "wb") as f:
                            async for chunk in resp.aiter_bytes():
                                f.write(chunk)
                logger.debug("Downloaded stem", url=url, path=str(destination), attempt=attempt)
                return destination
            except httpx.HTTPError as e:
                last_error = e
                logger.warning(
                    "Stem download failed",
                    url=url,
                    attempt=attempt,
                    attempts=self.attempts,
                    error=str(e),
                )
                if attempt < self.attempts:
                    await asyncio.sleep(self.retry_delay)

        raise MixFailureError(
            f"Failed to download stem {url}: {last_error}",
            details={"url": url, "attempts": self.attempts},
        )
