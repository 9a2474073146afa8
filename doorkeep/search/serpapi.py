"""SerpAPI search client.

Provides :class:`SerpApiClient`, which runs one Google search through the
SerpAPI JSON endpoint and returns the organic results. Any failure to obtain
a well-formed batch is raised as :class:`~doorkeep.errors.FetchError`; a
batch is either complete or absent, never partially parsed.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from doorkeep.errors import FetchError
from doorkeep.models import SearchResult
from doorkeep.search.base import SearchClient
from doorkeep.utils.logger import log_api_response, log_error, log_info

SERPAPI_URL = "https://serpapi.com/search.json"
SERPAPI_ACCOUNT_URL = "https://serpapi.com/account.json"


def parse_results(query: str, data: Any) -> List[SearchResult]:
    """Validate a decoded SerpAPI response and extract its organic results."""
    if not isinstance(data, dict):
        raise FetchError(query, f"Unexpected response type: {type(data).__name__}")

    if data.get("error"):
        raise FetchError(query, f"SerpAPI error: {data['error']}")

    # SerpAPI omits organic_results when nothing matched
    raw_results = data.get("organic_results", [])
    if not isinstance(raw_results, list):
        raise FetchError(query, "organic_results is not a list")

    results = []
    for index, item in enumerate(raw_results):
        try:
            results.append(SearchResult.model_validate(item))
        except ValidationError as e:
            raise FetchError(query, f"Invalid result #{index}: {e.errors()[0]['msg']}") from e
    return results


class SerpApiClient(SearchClient):
    """Single-attempt SerpAPI client.

    Args:
        api_key: SerpAPI key.
        engine: Search engine (``google``).
        google_domain: Google domain to query.
        gl: Country code.
        hl: Language code.
        num: Results per page; 0 leaves the provider default.
        timeout: Request timeout in seconds.
        base_url: Search endpoint.
        session: Optional ``requests.Session``.
    """

    def __init__(
        self,
        api_key: str,
        *,
        engine: str = "google",
        google_domain: str = "google.com",
        gl: str = "us",
        hl: str = "en",
        num: int = 0,
        timeout: float = 20.0,
        base_url: str = SERPAPI_URL,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.engine = engine
        self.google_domain = google_domain
        self.gl = gl
        self.hl = hl
        self.num = num
        self.timeout = timeout
        self.base_url = base_url
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config) -> "SerpApiClient":
        return cls(
            config.serpapi_api_key,
            engine=config.serpapi_engine,
            google_domain=config.serpapi_google_domain,
            gl=config.serpapi_gl,
            hl=config.serpapi_hl,
            num=config.serpapi_num,
            timeout=config.http_timeout,
            base_url=config.serpapi_url,
        )

    def build_params(self, query: str) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "engine": self.engine,
            "q": query,
            "google_domain": self.google_domain,
            "gl": self.gl,
            "hl": self.hl,
            "api_key": self.api_key,
        }
        if self.num:
            params["num"] = self.num
        return params

    def search(self, query: str) -> List[SearchResult]:
        log_info("Searching", query=query, engine=self.engine)
        try:
            resp = self.session.get(self.base_url, params=self.build_params(query), timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            log_error("SerpAPI request failed", query=query, error=str(e))
            raise FetchError(query, f"Failed to get SerpAPI response: {e}") from e

        log_api_response("SerpAPI search", resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            log_error("SerpAPI returned undecodable JSON", query=query, error=str(e))
            raise FetchError(query, f"Failed to decode SerpAPI response: {e}") from e

        results = parse_results(query, data)
        log_info("Search results collected", query=query, total_results=len(results))
        return results

    def account(self) -> Dict[str, Any]:
        """Fetch account information (quota); used by the health check."""
        try:
            resp = self.session.get(SERPAPI_ACCOUNT_URL, params={"api_key": self.api_key}, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            raise FetchError("<account>", f"SerpAPI account lookup failed: {e}") from e
