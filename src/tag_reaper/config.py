"""Configuration for the tag reaper."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated, Any, Self

import yaml
from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    HttpUrl,
    SecretStr,
    ValidationError,
)
from safir.pydantic import CamelCaseModel

from .exceptions import ConfigurationError

DOCKERHUB_API_URL = "https://hub.docker.com/v2"

INPUT_NAMES = (
    "docker_username",
    "docker_token",
    "docker_api_url",
    "docker_namespace",
    "docker_repository",
    "keep",
    "include_tags",
    "debug",
)


def _split_patterns(inp: Any) -> Any:
    if isinstance(inp, str):
        inp = re.split(r"\r\n|\r|\n", inp)
    if isinstance(inp, list):
        # Trailing newlines in a YAML block scalar would otherwise become
        # an empty pattern, which matches every tag.
        return [x.strip() for x in inp if isinstance(x, str) and x.strip()]
    return inp


def _check_patterns(inp: list[str]) -> list[str]:
    if not inp:
        raise ValueError("at least one include pattern is required")
    for pattern in inp:
        try:
            re.compile(pattern)
        except re.error as exc:
            raise ValueError(
                f"invalid regular expression '{pattern}': {exc}"
            ) from exc
    return inp


def _location(loc: tuple[int | str, ...]) -> str:
    return ".".join(str(x) for x in loc) or "config"


class RegistryAuth(BaseModel):
    """Credentials for the registry login endpoint."""

    username: Annotated[
        str | None,
        Field(
            title="Username",
            description="Username (if any) for authentication.",
            examples=["fbooth"],
        ),
    ] = None

    password: Annotated[
        SecretStr | None,
        Field(
            title="Password",
            description="Secret (password or token) for authentication.",
            examples=["hunter2"],
        ),
    ] = None


class RetentionConfig(CamelCaseModel):
    """Everything one retention run needs.  Built once at startup."""

    model_config = ConfigDict(
        frozen=True, hide_input_in_errors=True, loc_by_alias=False
    )

    docker_username: Annotated[
        str,
        Field(
            title="Docker username",
            description="Registry user to log in as.",
            examples=["lsstsqre"],
            min_length=1,
        ),
    ]

    docker_token: Annotated[
        SecretStr,
        Field(
            title="Docker token",
            description="Password or personal access token for that user.",
        ),
    ]

    docker_namespace: Annotated[
        str,
        Field(
            title="Namespace",
            description="Organization or user owning the repository.",
            examples=["lsstsqre"],
            min_length=1,
        ),
    ]

    docker_repository: Annotated[
        str,
        Field(
            title="Repository",
            description="Repository name",
            examples=["sciplat-lab"],
            min_length=1,
        ),
    ]

    keep: Annotated[
        int,
        Field(
            title="Keep",
            description=(
                "Number of most-recently-updated matching tags to retain."
            ),
            ge=0,
        ),
    ]

    include_tags: Annotated[
        list[str],
        BeforeValidator(_split_patterns),
        AfterValidator(_check_patterns),
        Field(
            title="Include tags",
            description=(
                "Regular expressions (newline-separated when given as a "
                "string).  Only tags matching at least one of them, "
                "case-insensitively, are considered for deletion."
            ),
            examples=[[r"^v\d+\.\d+$"]],
        ),
    ]

    docker_api_url: Annotated[
        HttpUrl,
        Field(
            title="Docker API URL",
            description="Root of the registry's v2 API.",
            examples=[HttpUrl(DOCKERHUB_API_URL)],
        ),
    ] = HttpUrl(DOCKERHUB_API_URL)

    debug: Annotated[
        bool,
        Field(
            title="Debug",
            description="Much more verbose logging.",
        ),
    ] = False

    @property
    def auth(self) -> RegistryAuth:
        return RegistryAuth(
            username=self.docker_username, password=self.docker_token
        )

    @property
    def api_url(self) -> str:
        return str(self.docker_api_url).rstrip("/")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Self:
        """Validate a mapping of options, raising `ConfigurationError`."""
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            # Never echo the input back: it holds the registry token.
            errors = exc.errors(
                include_url=False, include_context=False, include_input=False
            )
            problems = "; ".join(
                f"{_location(e['loc'])}: {e['msg']}" for e in errors
            )
            raise ConfigurationError(
                f"Invalid configuration: {problems}",
                details={"errors": errors},
            ) from exc

    @classmethod
    def from_file(cls, path: Path) -> Self:
        try:
            data = yaml.safe_load(path.read_text())
        except OSError as exc:
            raise ConfigurationError(
                f"Cannot read configuration from {path}: {exc}"
            ) from exc
        except yaml.YAMLError as exc:
            # The parser's message quotes the offending line.
            raise ConfigurationError(
                f"Configuration file {path} is not valid YAML"
            ) from exc
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file {path} must contain a mapping"
            )
        return cls.from_mapping(data)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Self:
        """Read action inputs, as a CI runner exposes them.

        Each option ``name`` is read from ``INPUT_NAME``.  Values are
        trimmed, and empty values count as unset, so that defaults (for
        instance, the Docker Hub API URL) apply.
        """
        if environ is None:
            environ = os.environ
        data: dict[str, str] = {}
        for name in INPUT_NAMES:
            value = environ.get(f"INPUT_{name.upper()}", "").strip()
            if value:
                data[name] = value
        return cls.from_mapping(data)
