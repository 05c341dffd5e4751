from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

class FailureKind(str, Enum):
    TIMEOUT = "timeout"
    UPSTREAM_ERROR = "upstream_error"
    TOO_LARGE = "too_large"
    NETWORK_ERROR = "network_error"

@dataclass
class FetchResult:
    body: str
    final_url: str  # the URL as requested, not the redirect target
    response_url: str
    status_code: int
    content_type: Optional[str]
    size: int

@dataclass
class FetchFailure:
    kind: FailureKind
    status_code: Optional[int] = None
    status_text: Optional[str] = None
    detail: Optional[str] = None
    limit: Optional[int] = None  # byte cap that was exceeded, for TOO_LARGE

FetchOutcome = Union[FetchResult, FetchFailure]

class BaseFetcher:
    async def fetch(self, url: str) -> FetchOutcome:
        raise NotImplementedError
