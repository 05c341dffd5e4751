import asyncio
from typing import Optional

import httpx

from gateway.core.config import settings
from .base import BaseFetcher, FailureKind, FetchFailure, FetchOutcome, FetchResult

class _ResponseTooLarge(Exception):
    pass

def _declared_length(response: httpx.Response) -> Optional[int]:
    raw = response.headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None

def _status_text(response: httpx.Response) -> str:
    # HTTP/2 responses carry no reason phrase
    return response.reason_phrase or httpx.codes.get_reason_phrase(response.status_code) or "Unknown Error"

class HttpxFetcher(BaseFetcher):
    """
    Fetch exactly one resource with httpx under a wall-clock timeout and a size cap.

    A fresh client is opened for every fetch, so no cookies or caller headers
    ever reach the upstream.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        max_bytes: Optional[int] = None,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout if timeout is not None else settings.FETCH_TIMEOUT_SECONDS
        self.max_bytes = max_bytes if max_bytes is not None else settings.MAX_RESPONSE_BYTES
        self.user_agent = user_agent or settings.USER_AGENT
        self.transport = transport

    async def fetch(self, url: str) -> FetchOutcome:
        try:
            return await asyncio.wait_for(self._fetch(url), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return FetchFailure(FailureKind.TIMEOUT, detail=f"timed out after {self.timeout}s")
        except _ResponseTooLarge as e:
            return FetchFailure(FailureKind.TOO_LARGE, detail=str(e), limit=self.max_bytes)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return FetchFailure(FailureKind.NETWORK_ERROR, detail=repr(e))

    async def _fetch(self, url: str) -> FetchOutcome:
        headers = {"User-Agent": self.user_agent}

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            headers=headers,
            follow_redirects=True,
            transport=self.transport,
        ) as client:
            async with client.stream("GET", url) as response:
                if not response.is_success:
                    return FetchFailure(
                        FailureKind.UPSTREAM_ERROR,
                        status_code=response.status_code,
                        status_text=_status_text(response),
                    )

                declared = _declared_length(response)
                if declared is not None and declared > self.max_bytes:
                    raise _ResponseTooLarge(f"declared content-length {declared} exceeds {self.max_bytes}")

                chunks = []
                total = 0
                async for chunk in response.aiter_bytes():
                    total += len(chunk)
                    if total > self.max_bytes:
                        raise _ResponseTooLarge(f"body exceeded {self.max_bytes} bytes while reading")
                    chunks.append(chunk)

                content = b"".join(chunks)
                encoding = response.charset_encoding or "utf-8"
                try:
                    body = content.decode(encoding, errors="replace")
                except LookupError:
                    body = content.decode("utf-8", errors="replace")

                return FetchResult(
                    body=body,
                    final_url=url,
                    response_url=str(response.url),
                    status_code=response.status_code,
                    content_type=response.headers.get("content-type"),
                    size=total,
                )
