"""List/filter reads over one entity table.

A ``ListView`` holds the rows fetched for one user under one query. Status
filtering happens in the store; text search runs over the rows already held.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from log import get_logger
from notifications import Notifier
from store import DataStore, StoreError

log = get_logger(__name__)

ALL_STATUSES = "all"


@dataclass(frozen=True, slots=True)
class EntityKind:
    table: str
    noun: str
    plural: str
    search_fields: tuple[str, ...]


APPLICATIONS = EntityKind(
    table="applications",
    noun="application",
    plural="applications",
    search_fields=("company", "link", "username"),
)
CONTACTS = EntityKind(
    table="network_contacts",
    noun="contact",
    plural="network contacts",
    search_fields=("name", "company", "role", "location", "notes", "action_items"),
)


@dataclass(frozen=True, slots=True)
class ListQuery:
    status: str | None = None
    active_only: bool = False

    @property
    def status_value(self) -> str | None:
        if not self.status or self.status == ALL_STATUSES:
            return None
        return self.status

    def predicates(self) -> dict[str, Any]:
        eq: dict[str, Any] = {}
        if self.status_value is not None:
            eq["status"] = self.status_value
        if self.active_only:
            eq["active_apps"] = True
        return eq

    def depends_on(self) -> frozenset[str]:
        """Fields whose value decides whether a row belongs to this query."""
        return frozenset(self.predicates())

    def matches(self, record: dict[str, Any]) -> bool:
        return all(record.get(k) == v for k, v in self.predicates().items())


def search_records(
    records: Iterable[dict[str, Any]], text: str, fields: Iterable[str]
) -> list[dict[str, Any]]:
    """Case-insensitive substring search across ``fields`` joined by spaces."""
    needle = (text or "").lower()
    fields = tuple(fields)
    matched = []
    for record in records:
        haystack = " ".join(str(record.get(f) or "") for f in fields).lower()
        if needle in haystack:
            matched.append(record)
    return matched


class ListView:
    def __init__(self, kind: EntityKind, owner_id: str | None, query: ListQuery | None = None) -> None:
        self.kind = kind
        self.owner_id = owner_id
        self.query = query or ListQuery()
        self.items: list[dict[str, Any]] = []
        self.loading = False
        self.loaded = False

    def __repr__(self) -> str:
        return f"<ListView {self.kind.table} {self.query} items={len(self.items)}>"

    def set_query(self, query: ListQuery) -> bool:
        """Swap the active query; returns True when it differs from the previous one."""
        changed = query != self.query
        self.query = query
        return changed

    def fetch(self, store: DataStore, notifier: Notifier) -> bool:
        if self.owner_id is None:
            return False
        self.loading = True
        try:
            rows = store.select(
                self.kind.table,
                self.owner_id,
                eq=self.query.predicates(),
                order_by="created_at",
                descending=True,
            )
        except StoreError as exc:
            log.error("Error fetching %s: %s", self.kind.plural, exc)
            notifier.error(f"Failed to load your {self.kind.plural}")
            return False
        finally:
            self.loading = False
        self.items = rows
        self.loaded = True
        return True

    def visible(self, search: str = "") -> list[dict[str, Any]]:
        return search_records(self.items, search, self.kind.search_fields)

    def find(self, record_id: str) -> dict[str, Any] | None:
        for item in self.items:
            if item.get("id") == record_id:
                return item
        return None


def recent(
    store: DataStore,
    owner_id: str,
    kind: EntityKind,
    *,
    limit: int,
    query: ListQuery | None = None,
) -> list[dict[str, Any]]:
    """Newest rows for the dashboard; empty on failure."""
    query = query or ListQuery()
    try:
        return store.select(kind.table, owner_id, eq=query.predicates(), limit=limit)
    except StoreError as exc:
        log.error("Error fetching dashboard %s: %s", kind.plural, exc)
        return []
