"""
HTTP client for fetching external calendar feeds.

Airbnb and Expedia expose each listing's bookings as an iCal document at a
secret URL, so the URL itself is the credential: only its host is logged.
Requests are bounded by a timeout and retried on rate limiting, server errors
and timeouts.
"""

import time
from typing import Optional
from urllib.parse import urlparse

import requests
import structlog

from bnb_booking.config import CALENDAR_FETCH_TIMEOUT, CALENDAR_USER_AGENT
from bnb_booking.errors import FetchFailedError
from bnb_booking.metrics import feed_fetch_latency

logger = structlog.get_logger(__name__)

MAX_RETRIES = 2
RETRY_DELAY = 2.0


def should_retry(res: Optional[requests.Response], err: Optional[Exception]) -> bool:
    """
    Determine whether the request should be retried based on response or error.

    Args:
        res (Optional[requests.Response]): Response object if available.
        err (Optional[Exception]): Exception raised by the request, if any.

    Returns:
        bool: True if the request should be retried, False otherwise.
    """
    if res is not None and res.status_code == 429:
        return True
    if isinstance(err, (requests.Timeout, requests.ConnectionError)):
        return True
    if res is not None and 500 <= res.status_code < 600:
        return True
    return False


def feed_host(url: str) -> str:
    return urlparse(url).netloc or "unknown"


def fetch_calendar(url: str, timeout: float = CALENDAR_FETCH_TIMEOUT) -> str:
    """
    Fetch an external calendar feed as text.

    Args:
        url (str): Feed URL.
        timeout (float): Per-request timeout in seconds.

    Returns:
        str: The feed body.

    Raises:
        FetchFailedError: Non-2xx response or transport failure after all retries.
    """
    headers = {"User-Agent": CALENDAR_USER_AGENT, "Accept": "text/calendar"}
    host = feed_host(url)
    retries = 0

    while True:
        res: Optional[requests.Response] = None
        err: Optional[Exception] = None
        start_time = time.time()
        try:
            res = requests.get(url, headers=headers, timeout=timeout)
        except requests.RequestException as e:
            err = e

        latency = time.time() - start_time
        status_code = str(res.status_code) if res is not None else "error"
        feed_fetch_latency.labels(status_code=status_code).observe(latency)

        if res is not None and res.ok:
            logger.debug("calendar_fetched", host=host, bytes=len(res.content), latency=latency)
            return res.text

        if retries < MAX_RETRIES and should_retry(res, err):
            retries += 1
            logger.warning(
                "calendar_fetch_retry",
                host=host,
                status_code=status_code,
                attempt=retries,
                error=str(err) if err else None,
            )
            time.sleep(RETRY_DELAY * retries)
            continue

        if res is not None:
            logger.warning("calendar_fetch_failed", host=host, status_code=res.status_code)
            raise FetchFailedError(
                f"Failed to fetch calendar: HTTP {res.status_code} {res.reason}",
                {"host": host, "status_code": res.status_code},
            )

        logger.warning("calendar_fetch_failed", host=host, error=str(err))
        raise FetchFailedError(
            f"Failed to fetch calendar: {err}", {"host": host}
        ) from err
