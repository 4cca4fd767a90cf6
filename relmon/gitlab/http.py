"""HTTP client abstraction for the GitLab API.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import http.client
import json
import ssl
import threading
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from relmon import __version__
from relmon.core.result import Err, Ok, Result

__all__ = [
    "HttpClient",
    "RealHttpClient",
    "MockHttpClient",
    "HttpError",
]


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network and decode errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations.

    Implementations must be safe to call from several threads at once; the
    aggregator fetches projects in parallel through a single client.
    """

    def get_json(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
    ) -> Result[object, HttpError]:
        """Fetch URL and decode the body as JSON.

        Args:
            url: URL to fetch
            headers: Extra request headers (e.g. authentication)

        Returns:
            Ok with the decoded JSON value (any type), or Err with HttpError
        """
        ...


class RealHttpClient:
    """HTTP client using urllib with system certificates."""

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = f"relmon/{__version__}",
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def _request(self, url: str, headers: Mapping[str, str] | None) -> Result[bytes, HttpError]:
        request_headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        if headers:
            request_headers.update(headers)
        try:
            req = urllib.request.Request(url, headers=request_headers)
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                return Ok(response.read())
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except http.client.HTTPException as e:
            return Err(HttpError(url=url, status=0, message=str(e) or type(e).__name__))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def get_json(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
    ) -> Result[object, HttpError]:
        result = self._request(url, headers)
        if isinstance(result, Err):
            return result

        try:
            data: object = json.loads(result.value.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))
        return Ok(data)


class MockHttpClient:
    """Mock HTTP client for testing.

    Usage:
        client = MockHttpClient()
        client.set_json("https://gitlab.com/api/v4/projects/a%2Fb/releases", [])
        result = client.get_json("https://gitlab.com/api/v4/projects/a%2Fb/releases")
        assert result == Ok([])
    """

    def __init__(self) -> None:
        self._json_responses: dict[str, object | HttpError] = {}
        self._lock = threading.Lock()
        self.calls: list[tuple[str, dict[str, str]]] = []

    def set_json(self, url: str, response: object | HttpError) -> None:
        """Set JSON response (or error) for URL."""
        self._json_responses[url] = response

    def get_json(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
    ) -> Result[object, HttpError]:
        with self._lock:
            self.calls.append((url, dict(headers or {})))

        if url not in self._json_responses:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))

        response = self._json_responses[url]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    @property
    def urls(self) -> list[str]:
        """URLs requested so far, in call order."""
        with self._lock:
            return [url for url, _ in self.calls]
