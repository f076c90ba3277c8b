"""Create, update and delete rows, then reconcile the held list.

After a successful write the coordinator picks one reconciliation step:

* ``Prepend`` a created row that belongs to the view's query,
* ``Patch`` the held row with the submitted fields,
* ``Remove`` a deleted row,
* ``Refetch`` the view when the write touched a field its query filters on.

A failed write changes nothing locally.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union

from listing import ListQuery, ListView
from log import get_logger
from notifications import Notifier
from store import PROTECTED_COLUMNS, DataStore, StoreError

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Prepend:
    record: dict[str, Any]


@dataclass(frozen=True, slots=True)
class Patch:
    record_id: str
    fields: dict[str, Any]


@dataclass(frozen=True, slots=True)
class Remove:
    record_id: str


@dataclass(frozen=True, slots=True)
class Refetch:
    query: ListQuery


Reconcile = Union[Prepend, Patch, Remove, Refetch]


def plan_create(view: ListView, record: dict[str, Any]) -> Reconcile:
    if view.query.matches(record):
        return Prepend(record)
    return Refetch(view.query)


def plan_update(view: ListView, record_id: str, fields: Mapping[str, Any]) -> Reconcile:
    held = view.find(record_id)
    for column in view.query.depends_on():
        if column in fields and (held is None or held.get(column) != fields[column]):
            return Refetch(view.query)
    return Patch(record_id, dict(fields))


def plan_delete(view: ListView, record_id: str) -> Reconcile:
    return Remove(record_id)


def apply(view: ListView, decision: Reconcile, store: DataStore, notifier: Notifier) -> None:
    if isinstance(decision, Prepend):
        view.items = [decision.record, *view.items]
    elif isinstance(decision, Patch):
        view.items = [
            {**item, **decision.fields} if item.get("id") == decision.record_id else item
            for item in view.items
        ]
    elif isinstance(decision, Remove):
        view.items = [item for item in view.items if item.get("id") != decision.record_id]
    elif isinstance(decision, Refetch):
        view.set_query(decision.query)
        view.fetch(store, notifier)
    else:
        raise TypeError(f"unknown reconcile step {decision!r}")


class MutationCoordinator:
    def __init__(self, store: DataStore, view: ListView, notifier: Notifier) -> None:
        self.store = store
        self.view = view
        self.notifier = notifier
        self.last_decision: Reconcile | None = None

    @property
    def owner_id(self) -> str | None:
        return self.view.owner_id

    @property
    def _noun(self) -> str:
        return self.view.kind.noun

    def _reconcile(self, decision: Reconcile) -> None:
        self.last_decision = decision
        log.debug("Reconciling %s with %s", self.view.kind.table, decision)
        apply(self.view, decision, self.store, self.notifier)

    def create(self, fields: Mapping[str, Any]) -> dict[str, Any] | None:
        if self.owner_id is None:
            return None
        try:
            record = self.store.insert(self.view.kind.table, self.owner_id, fields)
        except StoreError as exc:
            log.error("Error adding %s: %s", self._noun, exc)
            self.notifier.error(f"Failed to add {self._noun}")
            return None
        self.notifier.success(f"{self._noun.capitalize()} added successfully")
        self._reconcile(plan_create(self.view, record))
        return record

    def update(self, record_id: str, fields: Mapping[str, Any]) -> dict[str, Any] | None:
        if self.owner_id is None:
            return None
        submitted = {k: v for k, v in fields.items() if k not in PROTECTED_COLUMNS}
        try:
            record = self.store.update(self.view.kind.table, self.owner_id, record_id, submitted)
        except StoreError as exc:
            log.error("Error updating %s: %s", self._noun, exc)
            self.notifier.error(f"Failed to update {self._noun}")
            return None
        if record is None:
            log.warning("Update skipped: %s %s not found", self._noun, record_id)
            self.notifier.error(f"Failed to update {self._noun}")
            return None
        self.notifier.success(f"{self._noun.capitalize()} updated successfully")
        self._reconcile(plan_update(self.view, record_id, submitted))
        return record

    def delete(self, record_id: str) -> bool:
        if self.owner_id is None:
            return False
        try:
            removed = self.store.delete(self.view.kind.table, self.owner_id, record_id)
        except StoreError as exc:
            log.error("Error deleting %s: %s", self._noun, exc)
            self.notifier.error(f"Failed to delete {self._noun}")
            return False
        self._reconcile(plan_delete(self.view, record_id))
        if not removed:
            log.warning("Delete of %s %s matched no rows", self._noun, record_id)
            self.notifier.error(f"Failed to delete {self._noun}")
            return False
        self.notifier.success(f"{self._noun.capitalize()} deleted successfully")
        return True
