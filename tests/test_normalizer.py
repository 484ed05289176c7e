import logging
from datetime import date
from typing import Any

import pytest

from report_contacts.config import VENDOR_SOURCE_URL
from report_contacts.errors import UnrecognizedEntityShape
from report_contacts.models import ContactRecord
from report_contacts.normalizer import (
    CanonicalEntity,
    LegacyList,
    LegacyMixed,
    SingleContact,
    Unrecognized,
    classify_contact,
    entity_contacts,
    is_canonical,
    normalize_vendor_payload,
    parse_company_payload,
    parse_entity,
    parse_vendor_payload,
)

LOGGER = logging.getLogger("test")
TODAY = date(2024, 5, 1)


def _canonical() -> dict[str, Any]:
    return {
        "source": "https://example.com/vendors",
        "last_updated": "2024-03-10",
        "companies": {
            "Microsoft": {
                "type": "multiple",
                "contacts": [
                    {"type": "form", "contact": "https://www.microsoft.com/wdsi/filesubmission"},
                    {"type": "email", "contact": "fp@microsoft.com"},
                ],
            }
        },
    }


def test_classify_contact() -> None:
    assert classify_contact("https://x.com/report") == "form"
    assert classify_contact("http://x.com/report") == "form"
    assert classify_contact("abuse@x.com") == "email"
    assert classify_contact("not-a-url-or-email") == "email"


def test_parse_entity_tags_each_shape() -> None:
    assert isinstance(parse_entity(["a@b.com"]), LegacyList)
    canonical = {"contacts": [{"type": "email", "contact": "a@b.com"}]}
    assert isinstance(parse_entity(canonical), CanonicalEntity)
    assert isinstance(parse_entity({"contacts": ["a@b.com", {"contact": "b@b.com"}]}), LegacyMixed)
    single = {"type": "email", "contact": "a@b.com"}
    assert isinstance(parse_entity(single, allow_single_contact=True), SingleContact)
    assert isinstance(parse_entity(single), Unrecognized)
    assert isinstance(parse_entity("a@b.com"), Unrecognized)
    assert isinstance(parse_entity({"name": "nothing useful"}), Unrecognized)


def test_unrecognized_shape_raises_when_converted() -> None:
    with pytest.raises(UnrecognizedEntityShape):
        entity_contacts(parse_entity(42))


def test_mixed_contacts_keep_valid_types_and_drop_empty_values() -> None:
    shape = parse_entity(
        {
            "contacts": [
                "https://x.com/report",
                {"contact": "abuse@x.com"},
                {"type": "form", "contact": "https://x.com/form", "description_pt": "Formulario"},
                {"type": "phone", "contact": "abuse2@x.com"},
                {"type": "email", "contact": "   "},
                "",
                None,
            ]
        }
    )
    assert entity_contacts(shape) == [
        ContactRecord("form", "https://x.com/report"),
        ContactRecord("email", "abuse@x.com"),
        ContactRecord("form", "https://x.com/form", description="Formulario"),
        ContactRecord("email", "abuse2@x.com"),
    ]


def test_is_canonical_requires_typed_contact_objects() -> None:
    assert is_canonical(_canonical()) is True
    assert is_canonical({"companies": {}}) is False
    assert is_canonical({"companies": {"acme": ["a@acme.com"]}}) is False
    assert is_canonical({"companies": {"acme": {"contacts": []}}}) is False
    assert is_canonical({"companies": {"acme": {"contacts": [{"contact": "a@acme.com"}]}}}) is False
    assert is_canonical([]) is False


def test_canonical_payload_is_returned_unchanged() -> None:
    payload = _canonical()
    assert normalize_vendor_payload(payload, logger=LOGGER) is payload


def test_legacy_payload_is_converted() -> None:
    payload = {
        "companies": {
            "acme": ["a@acme.com", "not-a-url-or-email"],
            "both": ["https://x.com/report", "abuse@x.com"],
            "forms": ["https://x.com/report"],
            "mixed": {"contacts": ["abuse@y.com", {"contact": "https://y.com/form"}]},
            "broken": 7,
            "empty": ["", "  "],
        }
    }
    result = normalize_vendor_payload(payload, logger=LOGGER, today=TODAY)

    assert result["source"] == VENDOR_SOURCE_URL
    assert result["last_updated"] == "2024-05-01"
    companies = result["companies"]
    assert set(companies) == {"acme", "both", "forms", "mixed"}
    assert companies["acme"] == {
        "type": "email",
        "contacts": [
            {"type": "email", "contact": "a@acme.com"},
            {"type": "email", "contact": "not-a-url-or-email"},
        ],
    }
    assert companies["both"]["type"] == "multiple"
    assert companies["forms"]["type"] == "form"
    assert companies["mixed"]["type"] == "multiple"


def test_normalizing_twice_is_a_no_op() -> None:
    payload = {
        "source": "https://example.com",
        "companies": {"acme": ["a@acme.com"], "beta": {"contacts": ["https://b.com/f"]}},
    }
    once = normalize_vendor_payload(payload, logger=LOGGER, today=TODAY)
    twice = normalize_vendor_payload(once, logger=LOGGER, today=date(2030, 1, 1))
    assert twice == once


def test_unrecognized_entities_are_logged_and_skipped(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="test"):
        result = normalize_vendor_payload(
            {"companies": {"ok": ["a@ok.com"], "weird": "a@weird.com"}}, logger=LOGGER, today=TODAY
        )
    assert list(result["companies"]) == ["ok"]
    assert "weird" in caplog.text


def test_non_object_vendor_payload_is_rejected() -> None:
    with pytest.raises(ValueError):
        normalize_vendor_payload(["a@b.com"], logger=LOGGER)
    with pytest.raises(ValueError):
        normalize_vendor_payload({"vendors": {}}, logger=LOGGER)


def test_parse_vendor_payload_builds_directory() -> None:
    directory = parse_vendor_payload(_canonical(), logger=LOGGER)
    assert directory.source_url == "https://example.com/vendors"
    assert directory.last_updated == date(2024, 3, 10)
    entity = directory.entities["Microsoft"]
    assert entity.classification == "multiple"
    assert entity.forms == ["https://www.microsoft.com/wdsi/filesubmission"]
    assert entity.emails == ["fp@microsoft.com"]


def test_parse_vendor_payload_tolerates_later_legacy_entities() -> None:
    payload = _canonical()
    payload["companies"]["acme"] = ["a@acme.com"]
    directory = parse_vendor_payload(payload, logger=LOGGER)
    assert directory.entities["acme"].classification == "email"


def test_parse_company_payload_bare_mapping() -> None:
    payload = {
        "Cloudflare": {
            "type": "form",
            "contact": "https://abuse.cloudflare.com",
            "message_pt": "Use o formulario",
        },
        "GitHub": {
            "type": "multiple",
            "message_pt": "Escolha um canal",
            "contacts": [
                {"type": "form", "contact": "https://support.github.com/contact/report-abuse"},
                {"type": "email", "contact": "abuse@github.com", "description_pt": "Spam"},
            ],
        },
        "Nothing": {"type": "email"},
    }
    directory = parse_company_payload(
        payload, source_url="https://example.com/report.json", logger=LOGGER
    )

    assert directory.source_url == "https://example.com/report.json"
    assert directory.last_updated is None
    assert set(directory.entities) == {"Cloudflare", "GitHub"}
    cloudflare = directory.entities["Cloudflare"]
    assert cloudflare.classification == "form"
    assert cloudflare.note == "Use o formulario"
    github = directory.entities["GitHub"]
    assert github.classification == "multiple"
    assert github.contacts[1].description == "Spam"


def test_parse_company_payload_accepts_envelope() -> None:
    directory = parse_company_payload(
        {"last_updated": "2024-01-02", "companies": {"acme": ["a@acme.com"]}},
        source_url="https://example.com/report.json",
        logger=LOGGER,
    )
    assert directory.last_updated == date(2024, 1, 2)
    assert list(directory.entities) == ["acme"]


def test_parse_company_payload_rejects_non_objects() -> None:
    with pytest.raises(ValueError):
        parse_company_payload(["acme"], source_url="https://example.com", logger=LOGGER)


def test_vendor_single_contact_records_are_skipped(caplog: pytest.LogCaptureFixture) -> None:
    payload = {
        "companies": {
            "acme": {"type": "email", "contact": "a@acme.com"},
            "ok": ["b@ok.com"],
        }
    }
    with caplog.at_level(logging.WARNING, logger="test"):
        result = normalize_vendor_payload(payload, logger=LOGGER, today=TODAY)
    assert list(result["companies"]) == ["ok"]
    assert "Skipping acme" in caplog.text
    assert list(parse_vendor_payload(payload, logger=LOGGER, today=TODAY).entities) == ["ok"]
