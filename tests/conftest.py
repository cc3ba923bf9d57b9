"""Test fixtures for the tag reaper."""

from collections.abc import Iterator
from pathlib import Path
from tempfile import TemporaryDirectory

import httpx
import pytest
import yaml
from pydantic import SecretStr

from tag_reaper.config import RegistryAuth, RetentionConfig
from tag_reaper.storage.dockerhub import DockerHubClient

from support.fakehub import (
    BASE_URL,
    PASSWORD,
    USERNAME,
    FakeDockerHub,
    make_tag,
)


@pytest.fixture
def fake_hub() -> FakeDockerHub:
    return FakeDockerHub(
        namespace="lsstsqre",
        repository="sciplat-lab",
        tags=[
            make_tag("v1.0", "2024-01-01T00:00:00.000000Z"),
            make_tag("v1.1", "2024-02-01T00:00:00.000000Z"),
            make_tag("beta", "2024-03-01T00:00:00.000000Z"),
            make_tag("V1.2", "2024-04-01T00:00:00.000000Z"),
            make_tag("latest", "2024-04-01T00:00:00.000000Z"),
        ],
    )


@pytest.fixture
def auth() -> RegistryAuth:
    return RegistryAuth(username=USERNAME, password=SecretStr(PASSWORD))


@pytest.fixture
def http_client(fake_hub: FakeDockerHub) -> Iterator[httpx.Client]:
    with httpx.Client(transport=httpx.MockTransport(fake_hub.handler)) as c:
        yield c


@pytest.fixture
def client(
    auth: RegistryAuth, http_client: httpx.Client
) -> DockerHubClient:
    return DockerHubClient(auth, BASE_URL, http_client=http_client)


@pytest.fixture
def retention_cfg() -> RetentionConfig:
    return RetentionConfig(
        docker_username=USERNAME,
        docker_token=SecretStr(PASSWORD),
        docker_api_url=BASE_URL,
        docker_namespace="lsstsqre",
        docker_repository="sciplat-lab",
        keep=1,
        include_tags=[r"^v\d+\.\d+$"],
        debug=True,
    )


@pytest.fixture
def config_file() -> Iterator[Path]:
    """YAML configuration file."""
    with TemporaryDirectory() as td:
        path = Path(td) / "config.yaml"
        config = {
            "docker_username": USERNAME,
            "docker_token": PASSWORD,
            "docker_api_url": BASE_URL,
            "docker_namespace": "lsstsqre",
            "docker_repository": "sciplat-lab",
            "keep": 1,
            "include_tags": "^v\\d+\\.\\d+$\n^beta$\n",
        }
        path.write_text(yaml.dump(config))
        yield path
