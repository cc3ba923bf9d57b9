"""Provides the tag retention workflow for one repository."""

import logging
import re
from collections.abc import Iterable

import structlog

from ..config import RetentionConfig
from ..models.tag import Tag
from ..storage.dockerhub import DockerHubClient


def matches_any(
    name: str, patterns: Iterable[str], *, case_sensitive: bool = False
) -> bool:
    """Return True if any of the regular expressions matches ``name``."""
    flags = 0 if case_sensitive else re.IGNORECASE
    return any(re.search(p, name, flags) for p in patterns)


def _candidates(tags: Iterable[Tag], include_patterns: list[str]) -> list[Tag]:
    matching = [t for t in tags if matches_any(t.name, include_patterns)]
    # sorted() is stable, and stays stable with reverse=True, so tags with
    # identical timestamps keep their listing order.
    return sorted(matching, key=lambda t: t.sort_key, reverse=True)


def select_tags_to_delete(
    tags: Iterable[Tag], include_patterns: list[str], keep: int
) -> list[Tag]:
    """Choose which tags to delete.

    Parameters
    ----------
    tags
        Every tag in the repository.
    include_patterns
        Regular expressions; a tag is eligible only if its name matches at
        least one of them, ignoring case.
    keep
        How many of the most-recently-updated eligible tags to retain.

    Returns
    -------
    list of Tag
        Eligible tags, newest first, minus the first ``keep`` of them.
        Empty if ``keep`` is at least the number of eligible tags.
    """
    if keep < 0:
        raise ValueError(f"keep must be non-negative, not {keep}")
    return _candidates(tags, include_patterns)[keep:]


class Reaper:
    """Implement a keep-the-newest-N retention policy for one repository."""

    def __init__(
        self, cfg: RetentionConfig, *, client: DockerHubClient | None = None
    ) -> None:
        log_level = logging.DEBUG if cfg.debug else logging.INFO
        structlog.configure(
            wrapper_class=structlog.make_filtering_bound_logger(log_level)
        )
        self._namespace = cfg.docker_namespace
        self._repository = cfg.docker_repository
        self._keep = cfg.keep
        self._include_patterns = list(cfg.include_tags)
        self._owns_client = client is None
        self._client = client or DockerHubClient(cfg.auth, url=cfg.api_url)
        self.name = f"{self._namespace}/{self._repository}"
        self._tags: list[Tag] | None = None
        self._candidates: list[Tag] = []
        self._plan: list[Tag] | None = None
        self._logger = structlog.get_logger(f"reaper-{self.name}")
        self._logger.debug(f"Initialized logging for reaper {self.name}")

    @property
    def plan_tags(self) -> list[Tag] | None:
        return self._plan

    def populate(self) -> None:
        self._tags = self._client.list_all_tags(
            self._namespace, self._repository
        )

    def plan(self) -> None:
        """Work out which tags to delete."""
        if self._tags is None:
            self.populate()
        tags = self._tags or []
        self._candidates = _candidates(tags, self._include_patterns)
        # Candidates are already filtered and sorted.
        self._plan = self._candidates[self._keep :]
        self._logger.debug(
            f"{len(self._candidates)} of {len(tags)} tags match; "
            f"keeping {len(self._candidates) - len(self._plan)}, "
            f"deleting {len(self._plan)}"
        )

    def report(self) -> None:
        """Log every tag being considered, newest first."""
        self._logger.info("* List tags:")
        for tag in self._candidates:
            self._logger.info(f"- {tag.name} - {tag.last_updated}")

    def reap(self) -> list[Tag]:
        """Delete the planned tags in order.

        The first failure propagates; later tags are not attempted, and
        earlier ones stay deleted.
        """
        deleted: list[Tag] = []
        if self._plan is None:
            self._logger.warning(
                "No plan has been formulated and thus cannot be executed."
            )
            return deleted
        self._logger.info("* Remove tags:")
        for tag in self._plan:
            self._logger.info(f"- Removing tag {tag.name}")
            self._client.delete_tag(
                self._namespace, self._repository, tag.name
            )
            deleted.append(tag)
        self._logger.info(f"Deleted {len(deleted)} tags from {self.name}")
        self._plan = None
        return deleted

    def run(self) -> list[Tag]:
        try:
            self.populate()
            self.plan()
            self.report()
            return self.reap()
        finally:
            if self._owns_client:
                self._client.close()
