"""
Outbound HTTP for Jira REST calls.

Built on httpx with tenacity retries for transient transport failures.
HTTP error statuses are raised on the first response, never retried.
"""

from typing import Any, Dict, Optional

import httpx
from loguru import logger
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from jiralink.config.settings import settings

RETRY_ATTEMPTS = 3
TRANSIENT_ERRORS = (httpx.TimeoutException, httpx.NetworkError)


class AsyncHTTPClient:
    """Shared httpx.AsyncClient with the app's user agent, timeout and retry policy."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        verify_ssl: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            timeout: Seconds per attempt (defaults to settings.http_timeout)
            user_agent: User-Agent header (defaults to settings.http_user_agent)
            verify_ssl: Verify the Jira site's certificate
            transport: Alternative transport, e.g. httpx.MockTransport
        """
        self.timeout = settings.http_timeout if timeout is None else timeout
        self.user_agent = user_agent or settings.http_user_agent
        self.client = httpx.AsyncClient(
            timeout=self.timeout,
            verify=verify_ssl,
            headers={"User-Agent": self.user_agent},
            follow_redirects=True,
            transport=transport,
        )

    @retry(
        stop=stop_after_attempt(RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        before_sleep=before_sleep_log(logger, logger.level("WARNING").no),
        reraise=True,
    )
    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        json: Optional[Any] = None,
    ) -> httpx.Response:
        """
        Send one request, retrying timeouts and connection failures.

        ``url`` must be absolute and already carry its final query string,
        since the Authorization token is bound to it.

        Raises:
            httpx.HTTPStatusError: Jira answered with 4xx/5xx
            httpx.TimeoutException: Still timing out after the last attempt
            httpx.NetworkError: Still unreachable after the last attempt
        """
        logger.debug(f"Jira {method} {url}")
        try:
            response = await self.client.request(method, url, headers=headers, json=json)
        except httpx.TimeoutException:
            logger.error(f"Jira {method} {url} timed out after {self.timeout}s")
            raise
        except httpx.NetworkError as e:
            logger.error(f"Jira {method} {url} unreachable: {e}")
            raise

        if response.is_error:
            logger.warning(f"Jira {method} {url} returned {response.status_code}")
        response.raise_for_status()
        return response

    async def close(self):
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
