"""Domain model: scopes and the GitHub Projects hierarchy.

A Scope is either an organization or a repository. Each scope owns projects,
each project owns columns, each column owns cards. Cards are only counted.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from project_exporter.config import ConfigurationError


class ScopeKind(Enum):
    """Namespace a scope lives in. The value doubles as the metric label name."""

    ORGANIZATION = "organization"
    REPOSITORY = "repository"

    @property
    def label(self) -> str:
        return self.value


def split_repository_slug(slug: str) -> tuple[str, str] | None:
    """Split 'owner/name' into its two parts.

    Returns:
        (owner, name), or None unless the slug has exactly two non-empty segments
    """
    parts = slug.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


@dataclass(frozen=True)
class Scope:
    """An organization name or a repository slug to export projects for."""

    kind: ScopeKind
    name: str

    @classmethod
    def organization(cls, name: str) -> "Scope":
        """Build an organization scope.

        Raises:
            ConfigurationError: If the name is empty
        """
        if not name:
            raise ConfigurationError(f"invalid organization name: {name!r}")
        return cls(ScopeKind.ORGANIZATION, name)

    @classmethod
    def repository(cls, slug: str) -> "Scope":
        """Build a repository scope from an owner/name slug.

        Raises:
            ConfigurationError: If the slug is not owner/name
        """
        if split_repository_slug(slug) is None:
            raise ConfigurationError(f"invalid repository name: {slug}")
        return cls(ScopeKind.REPOSITORY, slug)

    @property
    def label(self) -> str:
        """Metric label name for this scope (organization or repository)."""
        return self.kind.label

    def __str__(self) -> str:
        return f"{self.kind.value} {self.name}"


def _require(payload: Any, key: str, kind: type) -> Any:
    if not isinstance(payload, dict):
        raise ValueError(f"expected an object, got {type(payload).__name__}")
    value = payload.get(key)
    # bool is an int subclass; never a valid identifier
    if not isinstance(value, kind) or isinstance(value, bool):
        raise ValueError(f"field '{key}' missing or not {kind.__name__}: {value!r}")
    return value


@dataclass(frozen=True)
class Project:
    """A project board owned by one scope."""

    id: int
    number: int
    name: str = ""

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Project":
        """Parse a project object from the REST API.

        Raises:
            ValueError: If id or number is missing
        """
        return cls(
            id=_require(payload, "id", int),
            number=_require(payload, "number", int),
            name=payload.get("name") or "",
        )


@dataclass(frozen=True)
class Column:
    """A column of a project board."""

    id: int
    name: str

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Column":
        return cls(
            id=_require(payload, "id", int),
            name=_require(payload, "name", str),
        )


@dataclass(frozen=True)
class Card:
    """A card in a project column. Only its existence matters."""

    id: int

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Card":
        return cls(id=_require(payload, "id", int))
