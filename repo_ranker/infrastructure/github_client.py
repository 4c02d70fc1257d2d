"""GitHub REST API client with pagination and retry logic."""

import time
import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


class GitHubAPIError(Exception):
    """Raised when GitHub answers with an error status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class GitHubRestClient:
    """Client for the GitHub REST API listing endpoints."""

    API_URL = "https://api.github.com"
    PER_PAGE = 100
    MAX_PAGES = 10
    MAX_RETRIES = 3
    RETRY_DELAY_SECONDS = 1
    TIMEOUT_SECONDS = 30

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: str = API_URL,
        session: Optional[requests.Session] = None,
        max_pages: int = MAX_PAGES,
    ):
        """
        Initialize GitHub REST client.

        Args:
            token: GitHub personal access token. If None, requests are unauthenticated.
            api_url: Base URL of the API (GitHub Enterprise installs differ)
            session: HTTP session to reuse
            max_pages: Upper bound on pages followed per listing
        """
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.max_pages = max_pages
        self.session = session or requests.Session()
        self.headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

        if self.token:
            self.headers["Authorization"] = f"Bearer {self.token}"

    def _request(self, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """
        Execute a GET request, retrying transport failures with exponential backoff.

        Raises:
            GitHubAPIError: If GitHub answers with an error status
            requests.RequestException: If the request fails after retries
        """
        for attempt in range(self.MAX_RETRIES):
            try:
                response = self.session.get(
                    url,
                    params=params,
                    headers=self.headers,
                    timeout=self.TIMEOUT_SECONDS,
                )
            except requests.exceptions.RequestException as e:
                if attempt < self.MAX_RETRIES - 1:
                    delay = self.RETRY_DELAY_SECONDS * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.MAX_RETRIES}): {e}. "
                        f"Retrying in {delay}s..."
                    )
                    time.sleep(delay)
                    continue
                raise

            if response.status_code == 200:
                return response

            message = self._error_message(response)
            if response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0":
                logger.warning(f"Rate limit exhausted: {message}")
            raise GitHubAPIError(response.status_code, message)

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason or "Unknown error"
        if isinstance(body, dict) and body.get("message"):
            return body["message"]
        return response.text or "Unknown error"

    def _paginate(self, path: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Collect every item of a listing endpoint by following Link rel="next"."""
        url: Optional[str] = f"{self.api_url}{path}"
        query: Optional[Dict[str, Any]] = {**params, "per_page": self.PER_PAGE}
        items: List[Dict[str, Any]] = []
        pages = 0

        while url and pages < self.max_pages:
            response = self._request(url, query)
            page = response.json()
            items.extend(page)
            pages += 1

            # The next link already carries the query string
            url = response.links.get("next", {}).get("url")
            query = None

        if url:
            logger.warning(f"Stopped after {pages} pages of {path}; more results were available")

        logger.info(f"Fetched {len(items)} items from {path} in {pages} page(s)")
        return items

    def list_repositories(self) -> List[Dict[str, Any]]:
        """List repositories the authenticated user owns, collaborates on, or sees via an organization."""
        return self._paginate(
            "/user/repos",
            {"sort": "updated", "affiliation": "owner,collaborator,organization_member"},
        )

    def list_repositories_for_owner(self, owner: str) -> List[Dict[str, Any]]:
        """List public repositories of a user or organization."""
        return self._paginate(f"/users/{owner}/repos", {"sort": "updated"})

    def get_authenticated_user(self) -> Dict[str, Any]:
        response = self._request(f"{self.api_url}/user")
        return response.json()
