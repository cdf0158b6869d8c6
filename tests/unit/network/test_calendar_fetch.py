from unittest.mock import Mock, patch

import pytest
import requests

from bnb_booking.errors import FetchFailedError
from bnb_booking.network.client import MAX_RETRIES, feed_host, fetch_calendar, should_retry

FEED_URL = "https://www.airbnb.com/calendar/ical/12345.ics?s=secret-token"


def _response(status_code: int, text: str = "") -> Mock:
    res = Mock(spec=requests.Response)
    res.status_code = status_code
    res.ok = 200 <= status_code < 300
    res.text = text
    res.content = text.encode()
    res.reason = "Error" if status_code >= 400 else "OK"
    return res


@pytest.mark.unit
@patch("bnb_booking.network.client.requests.get")
def test_fetch_calendar_returns_body(mock_get: Mock) -> None:
    """
    Test that fetch_calendar returns the feed text and sends the sync User-Agent.

    Args:
        mock_get (Mock): Mocked requests.get call.
    """
    mock_get.return_value = _response(200, "BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n")

    body = fetch_calendar(FEED_URL, timeout=5)

    assert body.startswith("BEGIN:VCALENDAR")
    _, kwargs = mock_get.call_args
    assert kwargs["timeout"] == 5
    assert "User-Agent" in kwargs["headers"]


@pytest.mark.unit
@patch("bnb_booking.network.client.time.sleep")
@patch("bnb_booking.network.client.requests.get")
def test_fetch_calendar_retries_server_errors(mock_get: Mock, mock_sleep: Mock) -> None:
    mock_get.side_effect = [_response(503), _response(200, "BEGIN:VCALENDAR")]

    assert fetch_calendar(FEED_URL) == "BEGIN:VCALENDAR"
    assert mock_get.call_count == 2
    mock_sleep.assert_called_once()


@pytest.mark.unit
@patch("bnb_booking.network.client.time.sleep")
@patch("bnb_booking.network.client.requests.get")
def test_fetch_calendar_gives_up_after_max_retries(mock_get: Mock, mock_sleep: Mock) -> None:
    mock_get.side_effect = requests.Timeout("read timed out")

    with pytest.raises(FetchFailedError) as exc_info:
        fetch_calendar(FEED_URL)

    assert mock_get.call_count == MAX_RETRIES + 1
    assert exc_info.value.details == {"host": "www.airbnb.com"}


@pytest.mark.unit
@patch("bnb_booking.network.client.time.sleep")
@patch("bnb_booking.network.client.requests.get")
def test_fetch_calendar_does_not_retry_client_errors(mock_get: Mock, mock_sleep: Mock) -> None:
    mock_get.return_value = _response(404)

    with pytest.raises(FetchFailedError) as exc_info:
        fetch_calendar(FEED_URL)

    assert mock_get.call_count == 1
    mock_sleep.assert_not_called()
    assert exc_info.value.details["status_code"] == 404
    assert "secret-token" not in exc_info.value.message


@pytest.mark.unit
def test_should_retry_decisions() -> None:
    assert should_retry(_response(429), None)
    assert should_retry(_response(500), None)
    assert should_retry(None, requests.ConnectionError())
    assert not should_retry(_response(403), None)
    assert not should_retry(None, ValueError())


@pytest.mark.unit
def test_feed_host_strips_path_and_query() -> None:
    assert feed_host(FEED_URL) == "www.airbnb.com"
    assert feed_host("not a url") == "unknown"
