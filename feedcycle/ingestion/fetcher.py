"""Conditional feed fetcher."""

from typing import Dict, Optional

import httpx

from ..models import CachedValidators
from ..errors import ErrorKind, LinkProcessingError
from .models import FetchResult

HTTP_NOT_MODIFIED = 304


class FeedFetcher:
    """Fetch feeds with If-Modified-Since / If-None-Match support."""

    def __init__(
        self,
        timeout: float = 15.0,
        user_agent: str = "feedcycle/0.1",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize feed fetcher."""
        self.timeout = timeout
        self.user_agent = user_agent
        self.transport = transport

    def client(self) -> httpx.AsyncClient:
        """Create a client to share across one batch."""
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers={
                "User-Agent": self.user_agent,
                "Accept": "application/rss+xml, application/atom+xml, application/xml;q=0.9, */*;q=0.8",
            },
            transport=self.transport,
        )

    def build_headers(self, validators: Optional[CachedValidators]) -> Dict[str, str]:
        if validators is None:
            return {}
        return {
            "If-Modified-Since": validators.last_modified,
            "If-None-Match": validators.etag,
        }

    async def fetch_url(
        self,
        client: httpx.AsyncClient,
        url: str,
        validators: Optional[CachedValidators] = None,
    ) -> FetchResult:
        """Fetch a feed, returning a not-modified result on 304."""
        try:
            response = await client.get(url, headers=self.build_headers(validators))
        except httpx.HTTPError as e:
            raise LinkProcessingError(ErrorKind.FETCH, f"Request failed: {e}", url)

        if response.status_code == HTTP_NOT_MODIFIED:
            return FetchResult(url=url, not_modified=True, status_code=response.status_code)

        if response.status_code != 200:
            raise LinkProcessingError(
                ErrorKind.FETCH, f"Bad status code {response.status_code}", url
            )

        fresh = None
        last_modified = response.headers.get("last-modified")
        etag = response.headers.get("etag")
        if last_modified and etag:
            fresh = CachedValidators(last_modified=last_modified, etag=etag)

        return FetchResult(
            url=url,
            status_code=response.status_code,
            content=response.content,
            charset=response.charset_encoding,
            validators=fresh,
        )
