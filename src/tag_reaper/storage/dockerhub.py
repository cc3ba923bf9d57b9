"""Minimalist function set of the Docker Hub API.

We must be able to log in, to list tags a page at a time, and to delete
tags.
"""

from types import TracebackType
from typing import Any, Self

import httpx
import structlog

from ..config import DOCKERHUB_API_URL, RegistryAuth
from ..exceptions import (
    AuthenticationError,
    NetworkError,
    NotFoundError,
    RegistryError,
)
from ..models.tag import Tag, TagPage

TIMEOUT = 60.0
ALL_TAGS_PAGE_SIZE = 100


class DockerHubClient:
    """Client for talking to hub.docker.com, or anything with its API.

    These calls are synchronous on purpose.  Nothing can be decided until
    the full tag listing is in hand, and deletions happen one at a time,
    so there is nothing to gain from async here.

    The bearer token is fetched on first use and reused for the life of
    the client.  It is never refreshed: if it expires mid-run, the next
    request fails with `AuthenticationError`.

    Parameters
    ----------
    auth
        Credentials for the login endpoint.
    url
        Root of the v2 API.
    http_client
        Client to use instead of building one; the test suite uses this to
        inject a mock transport.
    """

    def __init__(
        self,
        auth: RegistryAuth,
        url: str = DOCKERHUB_API_URL,
        *,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._auth = auth
        self._url = url.rstrip("/")
        self._http_client = http_client or httpx.Client(timeout=TIMEOUT)
        self._http_client.headers["content-type"] = "application/json"
        self._token: str | None = None
        self._logger = structlog.get_logger(__name__)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._http_client.close()

    def authenticate(self) -> str:
        url = f"{self._url}/users/login"
        body = {
            "username": self._auth.username,
            "password": (
                self._auth.password.get_secret_value()
                if self._auth.password
                else ""
            ),
        }
        self._logger.debug(f"Logging in '{self._auth.username}' at {url}")
        try:
            r = self._http_client.post(url, json=body)
        except httpx.TransportError as exc:
            raise NetworkError(
                f"Login request to {url} failed: {exc}", details={"url": url}
            ) from exc
        if not r.is_success:
            raise AuthenticationError(
                f"Login as '{self._auth.username}' failed with status "
                f"{r.status_code}",
                details={"url": url, "status": r.status_code},
            )
        try:
            token = r.json()["token"]
        except (ValueError, KeyError, TypeError) as exc:
            raise AuthenticationError(
                f"Cannot parse login response from {url}",
                details={"url": url},
            ) from exc
        if not isinstance(token, str) or not token:
            raise AuthenticationError(
                f"Login response from {url} contained no token",
                details={"url": url},
            )
        self._token = token
        self._logger.debug(f"Authenticated '{self._auth.username}'")
        return token

    def ensure_token(self) -> str:
        if self._token is None:
            return self.authenticate()
        return self._token

    def _request(
        self, method: str, url: str, params: dict[str, Any] | None = None
    ) -> httpx.Response:
        headers = {"authorization": f"Bearer {self.ensure_token()}"}
        try:
            r = self._http_client.request(
                method, url, params=params, headers=headers
            )
        except httpx.TransportError as exc:
            raise NetworkError(
                f"{method} {url} failed: {exc}", details={"url": url}
            ) from exc
        if r.is_success:
            return r
        details = {"url": str(r.url), "status": r.status_code}
        msg = f"{method} {r.url} returned {r.status_code}"
        if r.status_code in (401, 403):
            raise AuthenticationError(msg, details=details)
        if r.status_code == 404:
            raise NotFoundError(msg, details=details)
        raise RegistryError(msg, details=details)

    def _get_page(
        self, url: str, params: dict[str, Any] | None = None
    ) -> TagPage:
        r = self._request("GET", url, params=params)
        try:
            return TagPage.from_dict(r.json())
        except (ValueError, TypeError, AttributeError) as exc:
            raise RegistryError(
                f"Cannot parse tag listing from {r.url}",
                details={"url": str(r.url)},
            ) from exc

    def list_tags_page(
        self,
        namespace: str,
        repository: str,
        page: int = 1,
        page_size: int = 10,
    ) -> TagPage:
        if not namespace or not repository:
            raise ValueError("namespace and repository must be non-empty")
        if page < 1 or page_size < 1:
            raise ValueError("page and page_size must be positive")
        url = f"{self._url}/namespaces/{namespace}/repositories/{repository}/tags"
        self._logger.debug(
            f"Requesting {namespace}/{repository}: tags "
            f"{(page - 1) * page_size + 1}-{page * page_size}"
        )
        return self._get_page(url, {"page": page, "page_size": page_size})

    def list_all_tags(self, namespace: str, repository: str) -> list[Tag]:
        """Follow the ``next`` links until the registry stops sending one.

        There is no cap on the number of pages.
        """
        tags: list[Tag] = []
        page = self.list_tags_page(
            namespace, repository, page=1, page_size=ALL_TAGS_PAGE_SIZE
        )
        tags.extend(page.results)
        while page.next:
            self._logger.debug(f"Requesting {page.next}")
            page = self._get_page(page.next)
            tags.extend(page.results)
        self._logger.debug(
            f"Found {len(tags)} tags in {namespace}/{repository}"
        )
        return tags

    def delete_tag(
        self, namespace: str, repository: str, tag_name: str
    ) -> None:
        url = f"{self._url}/repositories/{namespace}/{repository}/tags/{tag_name}"
        self._request("DELETE", url)
        self._logger.debug(f"Deleted {namespace}/{repository}:{tag_name}")
