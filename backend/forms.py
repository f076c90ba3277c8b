"""Staged edit state for the create/edit forms.

Form values stay as strings (what the browser posts back) until submission,
where they are validated into the pydantic payloads.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import date
from typing import Any, Mapping

from pydantic import ValidationError

from schemas import (
    ApplicationCreate,
    ApplicationUpdate,
    ContactCreate,
    ContactUpdate,
    suggested_second_contact,
)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _optional_date(value: str) -> str | None:
    return value.strip() or None


def describe_errors(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts)


@dataclass
class ApplicationForm:
    company: str = ""
    link: str = ""
    active_apps: bool = True
    status: str = "Applied"
    username: str = ""
    password: str = ""

    @classmethod
    def blank(cls) -> "ApplicationForm":
        return cls()

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ApplicationForm":
        return cls(
            company=_text(record.get("company")),
            link=_text(record.get("link")),
            active_apps=bool(record.get("active_apps")),
            status=_text(record.get("status")) or "Applied",
            username=_text(record.get("username")),
            password=_text(record.get("password")),
        )

    @classmethod
    def from_form(cls, data: Mapping[str, Any]) -> "ApplicationForm":
        # Unchecked checkboxes are simply absent from the post.
        return cls(
            company=_text(data.get("company")).strip(),
            link=_text(data.get("link")).strip(),
            active_apps="active_apps" in data,
            status=_text(data.get("status")) or "Applied",
            username=_text(data.get("username")),
            password=_text(data.get("password")),
        )

    def to_create(self) -> ApplicationCreate:
        return ApplicationCreate(**asdict(self))

    def to_update(self) -> ApplicationUpdate:
        return ApplicationUpdate(**asdict(self))


@dataclass
class ContactForm:
    name: str = ""
    status: str = "Active"
    company: str = ""
    role: str = ""
    linkedin_profile: str = ""
    location: str = ""
    date_of_first_contact: str = ""
    second_contact: str = ""
    notes: str = ""
    action_items: str = ""

    @classmethod
    def blank(cls, company: str = "") -> "ContactForm":
        return cls(company=company)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ContactForm":
        values = {f.name: _text(record.get(f.name)) for f in fields(cls)}
        values["status"] = values["status"] or "Active"
        return cls(**values)

    @classmethod
    def from_form(cls, data: Mapping[str, Any]) -> "ContactForm":
        values = {f.name: _text(data.get(f.name)) for f in fields(cls)}
        values["name"] = values["name"].strip()
        values["status"] = values["status"] or "Active"
        return cls(**values)

    @property
    def suggested_second_contact(self) -> str:
        """First contact date plus seven days, or "" when that date is unset or invalid."""
        try:
            first = date.fromisoformat(self.date_of_first_contact.strip())
        except ValueError:
            return ""
        return _text(suggested_second_contact(first))

    def _payload(self) -> dict[str, Any]:
        values: dict[str, Any] = asdict(self)
        values["date_of_first_contact"] = _optional_date(self.date_of_first_contact)
        values["second_contact"] = _optional_date(self.second_contact)
        return values

    def to_create(self) -> ContactCreate:
        return ContactCreate(**self._payload())

    def to_update(self) -> ContactUpdate:
        return ContactUpdate(**self._payload())
