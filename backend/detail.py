"""Single-record reads and the company cross-reference."""
from __future__ import annotations

from typing import Any, Iterable

from listing import APPLICATIONS, CONTACTS, EntityKind
from log import get_logger
from store import DataStore, StoreError

log = get_logger(__name__)


class NotFound(LookupError):
    """No row with that id belongs to the current user."""

    def __init__(self, kind: EntityKind, record_id: str) -> None:
        super().__init__(f"{kind.noun} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


def _load(store: DataStore, kind: EntityKind, owner_id: str, record_id: str) -> dict[str, Any]:
    try:
        record = store.select_one(kind.table, owner_id, record_id)
    except StoreError as exc:
        log.error("Error fetching %s details: %s", kind.noun, exc)
        raise NotFound(kind, record_id) from exc
    if record is None:
        log.info("%s %s not found for owner %s", kind.noun, record_id, owner_id)
        raise NotFound(kind, record_id)
    return record


def load_application(store: DataStore, owner_id: str, record_id: str) -> dict[str, Any]:
    return _load(store, APPLICATIONS, owner_id, record_id)


def load_contact(store: DataStore, owner_id: str, record_id: str) -> dict[str, Any]:
    return _load(store, CONTACTS, owner_id, record_id)


def company_matches(application_company: str | None, contact_company: str | None) -> bool:
    """True when the contact's company contains the application's, ignoring case."""
    if not application_company:
        return False
    return application_company.lower() in (contact_company or "").lower()


def related_contacts(store: DataStore, owner_id: str, company: str | None) -> list[dict[str, Any]]:
    """Contacts whose company contains ``company``, ordered by name.

    Best effort: a failed lookup is logged and yields no contacts.
    """
    if not company:
        return []
    try:
        return store.select(
            CONTACTS.table,
            owner_id,
            ilike={"company": company},
            order_by="name",
            descending=False,
        )
    except StoreError as exc:
        log.error("Error fetching related contacts: %s", exc)
        return []


def match_by_company(
    applications: Iterable[dict[str, Any]], contacts: Iterable[dict[str, Any]]
) -> dict[str, list[dict[str, Any]]]:
    """Join applications to contacts by company name.

    Company names are free text, so this is a hint rather than a relationship:
    renaming a company silently breaks the link.
    """
    contacts = sorted(contacts, key=lambda c: c.get("name") or "")
    return {
        app["id"]: [c for c in contacts if company_matches(app.get("company"), c.get("company"))]
        for app in applications
    }
