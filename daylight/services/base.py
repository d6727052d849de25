"""
Shared HTTP plumbing for the venue collectors.
"""

import logging
import time
from typing import Any, Dict, Optional

import requests

from .. import config

logger = logging.getLogger(__name__)


class BaseCollector:
    """
    Session holder with bounded timeouts and retry/backoff.

    Subclasses implement fetch_snapshot(), returning the decoded response
    and raising requests.RequestException when the venue is unreachable.
    """

    venue = ""

    def __init__(
        self,
        base_url: str,
        timeout: float = config.DEFAULT_FETCH_TIMEOUT,
        retry_attempts: int = config.RETRY_ATTEMPTS,
        backoff_base: float = config.RETRY_BACKOFF_BASE,
    ):
        """
        Initialize collector.

        Args:
            base_url: Base URL for the venue API
            timeout: Request timeout in seconds
            retry_attempts: Attempts per request before giving up
            backoff_base: Base delay for exponential backoff (seconds)
        """
        self.base_url = base_url
        self.timeout = timeout
        self.retry_attempts = max(1, retry_attempts)
        self.backoff_base = backoff_base
        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": "Daylight/1.0",
            "Accept": "application/json",
        })

    def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> Any:
        """
        Make HTTP request with exponential backoff retry logic.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            params: Query parameters
            **kwargs: Additional requests arguments

        Returns:
            Decoded JSON response

        Raises:
            requests.RequestException: If all retries fail
        """
        url = f"{self.base_url}{endpoint}"

        for attempt in range(self.retry_attempts):
            try:
                response = self.session.request(
                    method=method,
                    url=url,
                    params=params,
                    timeout=self.timeout,
                    **kwargs
                )
                response.raise_for_status()
                return response.json()

            except requests.exceptions.HTTPError as e:
                status_code = e.response.status_code if e.response is not None else None

                # Retry on rate limit or server errors
                if status_code in config.RETRY_STATUS_CODES and attempt < self.retry_attempts - 1:
                    delay = self.backoff_base * (2 ** attempt)
                    logger.warning(
                        f"{self.venue} HTTP {status_code} error, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{self.retry_attempts})"
                    )
                    time.sleep(delay)
                    continue

                logger.error(f"{self.venue} HTTP error {status_code}: {e}")
                raise

            # Includes requests.JSONDecodeError for non-JSON bodies
            except requests.exceptions.RequestException as e:
                if attempt < self.retry_attempts - 1:
                    delay = self.backoff_base * (2 ** attempt)
                    logger.warning(
                        f"{self.venue} request failed: {e}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{self.retry_attempts})"
                    )
                    time.sleep(delay)
                    continue

                logger.error(f"{self.venue} request failed after {self.retry_attempts} attempts: {e}")
                raise

        raise requests.exceptions.RetryError("All retry attempts exhausted")

    def fetch_snapshot(self) -> Any:
        raise NotImplementedError

    def close(self) -> None:
        self.session.close()
