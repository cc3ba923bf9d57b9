"""Fake Docker Hub API for the test suite."""

import json
from dataclasses import dataclass, field

import httpx

BASE_URL = "https://hub.example.com/v2"
USERNAME = "fbooth"
PASSWORD = "hunter2"
TOKEN = "sekrit-token"


@dataclass
class FakeDockerHub:
    """Just enough of the Docker Hub API to list and delete tags."""

    namespace: str
    repository: str
    tags: list[dict[str, str | None]]
    fail_delete: set[str] = field(default_factory=set)
    requests: list[httpx.Request] = field(default_factory=list)
    logins: int = 0

    @property
    def deleted(self) -> list[str]:
        return [
            r.url.path.rsplit("/", 1)[-1]
            for r in self.requests
            if r.method == "DELETE"
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/v2")
        if path == "/users/login":
            return self._login(request)
        if request.headers.get("authorization") != f"Bearer {TOKEN}":
            return httpx.Response(401, json={"detail": "bad token"})
        tags_path = (
            f"/namespaces/{self.namespace}"
            f"/repositories/{self.repository}/tags"
        )
        if request.method == "GET" and path == tags_path:
            return self._list(request)
        prefix = f"/repositories/{self.namespace}/{self.repository}/tags/"
        if request.method == "DELETE" and path.startswith(prefix):
            return self._delete(path.removeprefix(prefix))
        return httpx.Response(404, json={"message": "object not found"})

    def _login(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if body != {"username": USERNAME, "password": PASSWORD}:
            return httpx.Response(401, json={"detail": "Incorrect auth"})
        self.logins += 1
        return httpx.Response(200, json={"token": TOKEN})

    def _list(self, request: httpx.Request) -> httpx.Response:
        page = int(request.url.params.get("page", "1"))
        page_size = int(request.url.params.get("page_size", "10"))
        start = (page - 1) * page_size
        results = self.tags[start : start + page_size]
        next_url = None
        if start + page_size < len(self.tags):
            next_url = (
                f"{BASE_URL}/namespaces/{self.namespace}/repositories/"
                f"{self.repository}/tags?page={page + 1}"
                f"&page_size={page_size}"
            )
        return httpx.Response(
            200,
            json={
                "count": len(self.tags),
                "next": next_url,
                "previous": None,
                "results": results,
            },
        )

    def _delete(self, name: str) -> httpx.Response:
        names = [t["name"] for t in self.tags]
        if name in self.fail_delete or name not in names:
            return httpx.Response(404, json={"message": "tag not found"})
        self.tags = [t for t in self.tags if t["name"] != name]
        return httpx.Response(204)


def make_tag(name: str, last_updated: str | None) -> dict[str, str | None]:
    return {"name": name, "last_updated": last_updated}
