"""REST API client for the repo-search and list-membership collaborators."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import requests

from .config import Config
from .errors import ApiError, ConfigurationError
from .models import ListMember, RepoRef, RepoSearchQuery

logger = logging.getLogger(__name__)


class InsightsApiClient:
    """Small, typed client for the repository and user-list APIs."""

    _LIST_PAGE_SIZE = 100
    _MAX_RETRIES = 5
    _MAX_BACKOFF_SECONDS = 30

    def __init__(self, config: Config, timeout_seconds: int = 30) -> None:
        """Initialize an API client.

        Args:
            config: Validated runtime configuration including the API base URL
                and optional bearer token.
            timeout_seconds: Per-request timeout in seconds.

        Raises:
            ConfigurationError: If no API base URL is configured.
        """
        if not config.api_base_url:
            raise ConfigurationError(
                "Missing API base URL. Pass --api-url or set the 'PR_INSIGHTS_API_URL' environment variable."
            )

        self._config = config
        self._timeout_seconds = timeout_seconds
        self._base_url = config.api_base_url

        self._session = requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        if config.api_token:
            self._session.headers.update({"Authorization": f"Bearer {config.api_token}"})

    def _build_url(self, path: str) -> str:
        """Build a fully qualified API URL from a path below the base URL."""
        return f"{self._base_url}/{path.lstrip('/')}"

    def _backoff_seconds(self, attempt: int, response: Optional[requests.Response] = None) -> int:
        """Exponential backoff capped at ``_MAX_BACKOFF_SECONDS``; a numeric Retry-After wins."""
        retry_after = response.headers.get("Retry-After", "") if response is not None else ""
        if retry_after.strip().isdigit():
            return min(self._MAX_BACKOFF_SECONDS, max(1, int(retry_after)))

        return min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1))

    def _decode_payload(self, url: str, response: requests.Response) -> Dict[str, Any]:
        """Turn a final response into a JSON object or raise ``ApiError``."""
        if response.status_code >= 400:
            raise ApiError(f"API request failed: GET {url} returned {response.status_code} - {response.text}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise ApiError(f"API returned invalid JSON: GET {url}") from exc

        if not isinstance(payload, dict):
            raise ApiError(f"API returned unexpected payload shape: GET {url}")

        return payload

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Execute a GET request, retrying transport failures and 429/5xx responses.

        Raises:
            ApiError: If the request repeatedly fails, returns HTTP >= 400,
                or does not return a JSON object.
        """
        url = self._build_url(path)
        query = {key: value for key, value in (params or {}).items() if value is not None}

        for attempt in range(1, self._MAX_RETRIES + 1):
            final_attempt = attempt == self._MAX_RETRIES

            try:
                response = self._session.get(url, params=query, timeout=self._timeout_seconds)
            except requests.RequestException as exc:
                if final_attempt:
                    raise ApiError(f"API request failed after retries: GET {url}") from exc
                delay = self._backoff_seconds(attempt)
                logger.debug("Retrying API request after transport error", extra={"url": url, "attempt": attempt})
                time.sleep(delay)
                continue

            retryable = response.status_code == 429 or 500 <= response.status_code <= 599
            if retryable and not final_attempt:
                delay = self._backoff_seconds(attempt, response)
                logger.debug(
                    "Retrying API request",
                    extra={"url": url, "attempt": attempt, "status_code": response.status_code, "delay": delay},
                )
                time.sleep(delay)
                continue

            return self._decode_payload(url, response)

        raise ApiError(f"API request failed after retries: GET {url}")

    def search_repos(self, query: RepoSearchQuery) -> List[RepoRef]:
        """Search repositories by topic and/or named filter.

        Only a single page of ``query.limit`` results is requested; the search
        result set is capped by the API, not by this client.
        """
        payload = self._get_json(
            "repos/search",
            params={
                "filter": query.filter,
                "topic": query.topic,
                "range": query.range,
                "limit": query.limit,
                "skip": query.skip,
            },
        )

        repositories: List[RepoRef] = []
        for item in payload.get("data", []):
            full_name = item.get("full_name")
            if full_name:
                repositories.append(RepoRef(full_name=str(full_name)))

        return repositories

    def list_members(self, list_id: str, skip: int = 0) -> List[ListMember]:
        """List members of a user list starting at ``skip``.

        Uses offset pagination via ``skip``/``limit`` and keeps requesting
        pages until a partial page is returned.
        """
        members: List[ListMember] = []
        offset = skip

        while True:
            payload = self._get_json(
                f"lists/{list_id}/contributors",
                params={"skip": offset, "limit": self._LIST_PAGE_SIZE},
            )

            page_items = payload.get("data", [])
            for item in page_items:
                username = item.get("username")
                if username:
                    members.append(ListMember(username=str(username)))

            if len(page_items) < self._LIST_PAGE_SIZE:
                break

            offset += self._LIST_PAGE_SIZE

        return members


class ApiRepoSearch:
    """``RepoSearch`` backed by :class:`InsightsApiClient`."""

    def __init__(self, client: InsightsApiClient) -> None:
        self._client = client

    def resolve(self, query: RepoSearchQuery) -> Sequence[RepoRef]:
        return self._client.search_repos(query)


class ApiListMembership:
    """``ListMembership`` backed by :class:`InsightsApiClient`."""

    def __init__(self, client: InsightsApiClient) -> None:
        self._client = client

    def resolve(self, list_id: str, skip: int = 0) -> Sequence[ListMember]:
        return self._client.list_members(list_id, skip=skip)
