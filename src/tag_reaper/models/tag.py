"""Model for the tag records returned by the registry."""

import datetime
from dataclasses import dataclass, field
from typing import Any, Self, TypeAlias

# Tags without a timestamp sort as the oldest.
NEVER = datetime.datetime.min.replace(tzinfo=datetime.UTC)

JSONTag: TypeAlias = dict[str, Any]


def _parse_date(inp: str) -> datetime.datetime:
    # Docker Hub omits fractional seconds now and then, so the strings
    # cannot be compared as they are.
    date = datetime.datetime.fromisoformat(inp)
    if date.tzinfo is None:
        return date.replace(tzinfo=datetime.UTC)
    return date.astimezone(datetime.UTC)


@dataclass
class Tag:
    """A single tag in a repository.

    Only ``name`` and ``last_updated`` matter for retention.
    ``last_updated`` is kept as the string the registry sent us, for
    logging.
    """

    name: str
    last_updated: str | None = None

    def __str__(self) -> str:
        return f"{self.name} - {self.last_updated}"

    @property
    def date(self) -> datetime.datetime | None:
        if not self.last_updated:
            return None
        return _parse_date(self.last_updated)

    @property
    def sort_key(self) -> datetime.datetime:
        return self.date or NEVER

    @classmethod
    def from_dict(cls, inp: JSONTag) -> Self:
        if not isinstance(inp.get("name"), str):
            raise TypeError(f"'name' field of {inp} must be a string")
        last_updated = inp.get("last_updated")
        if last_updated is not None:
            if not isinstance(last_updated, str):
                raise TypeError(
                    f"'last_updated' field of {inp} must be a string"
                )
            # Reject unparseable dates here rather than mid-sort.
            _parse_date(last_updated)
        return cls(name=inp["name"], last_updated=last_updated or None)


@dataclass
class TagPage:
    """One page of a tag listing, with the URL of the next page if any."""

    results: list[Tag] = field(default_factory=list)
    next: str | None = None

    @classmethod
    def from_dict(cls, inp: JSONTag) -> Self:
        results = inp.get("results") or []
        if not isinstance(results, list):
            raise TypeError("'results' field of page must be a list")
        return cls(
            results=[Tag.from_dict(x) for x in results],
            next=inp.get("next") or None,
        )
