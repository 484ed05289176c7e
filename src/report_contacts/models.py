"""Contact directory model types, fetch results and protocols."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Literal, Protocol, Union

from .errors import NoDataAvailable

ContactKind = Literal["email", "form"]
Classification = Literal["email", "form", "multiple"]

CONTACT_KINDS: tuple[ContactKind, ...] = ("email", "form")


class Response(Protocol):
    """Subset of requests.Response used by the fetcher."""

    status_code: int

    def raise_for_status(self) -> None:
        """Raise for non-2xx responses."""

    def json(self) -> Any:
        """Decode the body as JSON."""


class HttpSession(Protocol):
    """Contract for the HTTP session used by the fetcher."""

    def get(self, url: str, **kwargs: Any) -> Response:
        """Issue one GET request."""


def classify_contacts(kinds: Iterable[str]) -> Classification:
    """Both kinds present is "multiple"; only forms is "form"; anything else is "email"."""
    seen = set(kinds)
    if "form" in seen and "email" in seen:
        return "multiple"
    if "form" in seen:
        return "form"
    return "email"


@dataclass(frozen=True)
class ContactRecord:
    """One way of reaching an abuse/report desk."""

    kind: ContactKind
    value: str
    description: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in CONTACT_KINDS:
            raise ValueError(f"Unknown contact kind: {self.kind!r}")
        if not self.value:
            raise ValueError("Contact value must be non-empty.")

    def to_payload(self) -> dict[str, str]:
        payload = {"type": self.kind, "contact": self.value}
        if self.description:
            payload["description"] = self.description
        return payload


@dataclass(frozen=True)
class Entity:
    """A company or vendor with its ordered contacts."""

    name: str
    contacts: tuple[ContactRecord, ...]
    note: str | None = None

    def __post_init__(self) -> None:
        if not self.contacts:
            raise ValueError(f"Entity {self.name!r} has no contacts.")

    @property
    def classification(self) -> Classification:
        return classify_contacts(contact.kind for contact in self.contacts)

    @property
    def emails(self) -> list[str]:
        return [contact.value for contact in self.contacts if contact.kind == "email"]

    @property
    def forms(self) -> list[str]:
        return [contact.value for contact in self.contacts if contact.kind == "form"]

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": self.classification,
            "contacts": [contact.to_payload() for contact in self.contacts],
        }
        if self.note:
            payload["message"] = self.note
        return payload


def find(term: str, directory: Directory | Mapping[str, Entity]) -> Entity | None:
    """Resolve a lookup term to an entity.

    An exact key wins. Otherwise the first key, in the mapping's own iteration
    order, that contains the term case-insensitively is returned.
    """
    entities = directory.entities if isinstance(directory, Directory) else directory
    needle = term.strip()
    if not needle:
        return None
    if needle in entities:
        return entities[needle]
    lowered = needle.lower()
    for key, entity in entities.items():
        if lowered in key.lower():
            return entity
    return None


@dataclass
class Directory:
    """Named entities sharing one source document."""

    source_url: str
    last_updated: date | None = None
    entities: dict[str, Entity] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entities)

    def __iter__(self) -> Iterator[Entity]:
        return iter(self.entities.values())

    def __contains__(self, name: object) -> bool:
        return name in self.entities

    def find(self, term: str) -> Entity | None:
        return find(term, self)

    def names(self) -> list[str]:
        """Entity names sorted for listings."""
        return sorted(self.entities)

    def by_classification(self) -> dict[Classification, list[str]]:
        """Sorted entity names grouped by classification."""
        groups: dict[Classification, list[str]] = {"email": [], "form": [], "multiple": []}
        for name in self.names():
            groups[self.entities[name].classification].append(name)
        return groups

    def to_payload(self) -> dict[str, Any]:
        """Render the canonical JSON shape."""
        return {
            "source": self.source_url,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "companies": {name: entity.to_payload() for name, entity in self.entities.items()},
        }


@dataclass(frozen=True)
class Ok:
    """Directory obtained from the network, possibly served from cache."""

    directory: Directory
    cached: bool = False


@dataclass(frozen=True)
class Fallback:
    """Directory substituted from the bundled offline dataset."""

    directory: Directory


@dataclass(frozen=True)
class Fatal:
    """No data could be produced."""

    error: NoDataAvailable


LoadResult = Union[Ok, Fallback, Fatal]
