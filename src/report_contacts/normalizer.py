"""Parse directory JSON of any known shape into canonical contact records.

Every directory entry is first parsed into exactly one shape variant:

* ``CanonicalEntity``: ``{"contacts": [{"type": ..., "contact": ...}, ...]}``
* ``LegacyList``: a bare list of contact strings
* ``LegacyMixed``: ``{"contacts": [...]}`` mixing strings and partial objects
* ``SingleContact``: ``{"type": ..., "contact": ...}``, company records only
* ``Unrecognized``: anything else

and only then converted to an ``Entity``. Unrecognized entries and entries
left without contacts are skipped with a warning, never raised to callers.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any, Union

from .config import VENDOR_SOURCE_URL
from .errors import UnrecognizedEntityShape
from .models import CONTACT_KINDS, ContactKind, ContactRecord, Directory, Entity
from .validation import clean_text, looks_like_form


@dataclass(frozen=True)
class CanonicalEntity:
    contacts: tuple[Mapping[str, Any], ...]
    note: str | None = None


@dataclass(frozen=True)
class LegacyList:
    items: tuple[Any, ...]


@dataclass(frozen=True)
class LegacyMixed:
    items: tuple[Any, ...]
    note: str | None = None


@dataclass(frozen=True)
class SingleContact:
    kind: Any
    value: Any
    note: str | None = None


@dataclass(frozen=True)
class Unrecognized:
    raw: Any


EntityShape = Union[CanonicalEntity, LegacyList, LegacyMixed, SingleContact, Unrecognized]


def classify_contact(value: str) -> ContactKind:
    """URLs are web forms; everything else is treated as an email address."""
    return "form" if looks_like_form(value) else "email"


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _is_contact_object(item: Any) -> bool:
    return (
        isinstance(item, Mapping)
        and isinstance(item.get("type"), str)
        and isinstance(item.get("contact"), str)
    )


def _note(raw: Mapping[str, Any], key: str) -> str | None:
    for candidate in (key, f"{key}_pt", f"{key}_en"):
        value = clean_text(raw.get(candidate))
        if value:
            return value
    return None


def parse_entity(raw: Any, *, allow_single_contact: bool = False) -> EntityShape:
    """Tag a raw directory entry with the first shape it matches.

    ``SingleContact`` is a company record shape; vendor entries of that shape
    are Unrecognized unless ``allow_single_contact`` is set.
    """
    if _is_sequence(raw):
        return LegacyList(items=tuple(raw))
    if isinstance(raw, Mapping):
        contacts = raw.get("contacts")
        if _is_sequence(contacts):
            if contacts and all(_is_contact_object(item) for item in contacts):
                return CanonicalEntity(contacts=tuple(contacts), note=_note(raw, "message"))
            return LegacyMixed(items=tuple(contacts), note=_note(raw, "message"))
        if allow_single_contact and "contact" in raw:
            return SingleContact(
                kind=raw.get("type"), value=raw.get("contact"), note=_note(raw, "message")
            )
    return Unrecognized(raw=raw)


def contact_from_item(item: Any, declared_kind: Any = None) -> ContactRecord | None:
    """Convert a string or partial contact object; None when no value remains."""
    description = None
    if isinstance(item, str):
        value = clean_text(item)
    elif isinstance(item, Mapping):
        value = clean_text(item.get("contact"))
        declared_kind = item.get("type", declared_kind)
        description = _note(item, "description")
    else:
        return None
    if not value:
        return None
    kind: ContactKind = declared_kind if declared_kind in CONTACT_KINDS else classify_contact(value)
    return ContactRecord(kind=kind, value=value, description=description)


def entity_contacts(shape: EntityShape) -> list[ContactRecord]:
    """Contacts carried by a parsed shape, empty values dropped."""
    if isinstance(shape, Unrecognized):
        raise UnrecognizedEntityShape(f"unsupported entry of type {type(shape.raw).__name__}")
    if isinstance(shape, SingleContact):
        values = shape.value if _is_sequence(shape.value) else [shape.value]
        records = [contact_from_item(value, shape.kind) for value in values]
    elif isinstance(shape, CanonicalEntity):
        records = [contact_from_item(item) for item in shape.contacts]
    else:
        records = [contact_from_item(item) for item in shape.items]
    return [record for record in records if record is not None]


def entity_from_raw(
    name: str, raw: Any, *, allow_single_contact: bool = False
) -> Entity | None:
    """Build an Entity, or None when the entry has no usable contacts."""
    shape = parse_entity(raw, allow_single_contact=allow_single_contact)
    contacts = entity_contacts(shape)
    if not contacts:
        return None
    return Entity(name=name, contacts=tuple(contacts), note=getattr(shape, "note", None))


def collect_entities(
    entries: Mapping[str, Any],
    *,
    logger: logging.Logger,
    allow_single_contact: bool = False,
) -> dict[str, Entity]:
    """Convert every entry that can be converted; warn about the rest."""
    entities: dict[str, Entity] = {}
    for name, raw in entries.items():
        key = str(name)
        try:
            entity = entity_from_raw(key, raw, allow_single_contact=allow_single_contact)
        except UnrecognizedEntityShape as exc:
            logger.warning("Skipping %s: %s", key, exc)
            continue
        if entity is None:
            logger.warning("Skipping %s: no usable contacts", key)
            continue
        entities[key] = entity
    return entities


def is_canonical(payload: Any) -> bool:
    """True when the first entry already carries typed contact objects only."""
    if not isinstance(payload, Mapping):
        return False
    companies = payload.get("companies")
    if not isinstance(companies, Mapping) or not companies:
        return False
    first = next(iter(companies.values()))
    return isinstance(parse_entity(first), CanonicalEntity)


def normalize_vendor_payload(
    payload: Any, *, logger: logging.Logger, today: date | None = None
) -> Mapping[str, Any]:
    """Return vendor JSON in canonical shape.

    Canonical input is returned as is, so normalizing twice is a no-op.
    Raises ValueError when the document is not an object with a
    ``companies`` mapping.
    """
    if not isinstance(payload, Mapping):
        raise ValueError("vendor directory must be a JSON object")
    if is_canonical(payload):
        return payload
    companies = payload.get("companies")
    if not isinstance(companies, Mapping):
        raise ValueError("vendor directory has no 'companies' object")
    logger.info("Converting vendor directory from a legacy layout")
    entities = collect_entities(companies, logger=logger)
    return {
        "source": payload.get("source") or VENDOR_SOURCE_URL,
        "last_updated": payload.get("last_updated") or (today or date.today()).isoformat(),
        "companies": {name: entity.to_payload() for name, entity in entities.items()},
    }


def parse_date(value: Any) -> date | None:
    text = clean_text(value)
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def build_directory(
    payload: Mapping[str, Any],
    *,
    default_source: str,
    logger: logging.Logger,
    allow_single_contact: bool = False,
) -> Directory:
    """Build a Directory from an enveloped ``{source, last_updated, companies}`` document."""
    companies = payload.get("companies")
    if not isinstance(companies, Mapping):
        raise ValueError("directory has no 'companies' object")
    return Directory(
        source_url=clean_text(payload.get("source")) or default_source,
        last_updated=parse_date(payload.get("last_updated")),
        entities=collect_entities(
            companies, logger=logger, allow_single_contact=allow_single_contact
        ),
    )


def parse_vendor_payload(
    payload: Any, *, logger: logging.Logger, today: date | None = None
) -> Directory:
    """Normalize vendor JSON and build its Directory."""
    canonical = normalize_vendor_payload(payload, logger=logger, today=today)
    return build_directory(canonical, default_source=VENDOR_SOURCE_URL, logger=logger)


def parse_company_payload(
    payload: Any, *, source_url: str, logger: logging.Logger
) -> Directory:
    """Build the company Directory from a bare name->record mapping or an envelope."""
    if not isinstance(payload, Mapping):
        raise ValueError("company directory must be a JSON object")
    if isinstance(payload.get("companies"), Mapping):
        return build_directory(
            payload, default_source=source_url, logger=logger, allow_single_contact=True
        )
    return Directory(
        source_url=source_url,
        entities=collect_entities(payload, logger=logger, allow_single_contact=True),
    )
