"""HTTP catalog document fetcher."""

import time

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from wq_extract.domain.errors import RetrievalError
from wq_extract.domain.ports import CatalogFetchPort
from wq_extract.infrastructure.config.settings import Settings
from wq_extract.infrastructure.observability.metrics import catalog_fetches, fetch_duration_seconds

logger = structlog.get_logger()


class HttpCatalogClient(CatalogFetchPort):
    """httpx-based catalog fetcher with per-request timeout and retries."""

    def __init__(
        self,
        timeout: float = 60.0,
        retry_attempts: int = 3,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize catalog client."""
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpCatalogClient":
        return cls(timeout=settings.request_timeout_seconds, retry_attempts=settings.retry_attempts)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpCatalogClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def fetch_document(self, url: str) -> str:
        """Fetch catalog text, retrying transport failures with backoff."""
        client = await self._get_client()
        started = time.perf_counter()
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.retry_attempts),
                wait=wait_exponential(multiplier=1, min=1, max=10),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    response = await client.get(url)
                    response.raise_for_status()
        except httpx.TimeoutException as e:
            catalog_fetches.labels(status="timeout").inc()
            logger.error("catalog_fetch_timeout", url=url, timeout=self.timeout)
            raise RetrievalError(f"Catalog request timed out after {self.timeout}s", url) from e
        except httpx.HTTPStatusError as e:
            catalog_fetches.labels(status="http_error").inc()
            logger.error("catalog_fetch_failed", url=url, status_code=e.response.status_code)
            raise RetrievalError(f"Catalog request failed with HTTP {e.response.status_code}", url) from e
        except httpx.HTTPError as e:
            catalog_fetches.labels(status="error").inc()
            logger.error("catalog_fetch_failed", url=url, error=str(e))
            raise RetrievalError(f"Catalog unreachable: {e}", url) from e
        finally:
            fetch_duration_seconds.labels(kind="catalog").observe(time.perf_counter() - started)

        catalog_fetches.labels(status="ok").inc()
        logger.info("catalog_fetched", url=url, size_bytes=len(response.content))
        return response.text
