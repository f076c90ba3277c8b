from datetime import datetime

import pytest

from detail import NotFound, load_application
from listing import APPLICATIONS, CONTACTS, ListQuery, ListView
from models import Application
from mutations import (
    MutationCoordinator,
    Patch,
    Prepend,
    Refetch,
    Remove,
    plan_create,
    plan_update,
)
from notifications import Notifier


def coordinator_for(store, owner, kind=APPLICATIONS, query=None):
    view = ListView(kind, owner, query)
    notifier = Notifier()
    view.fetch(store, notifier)
    return MutationCoordinator(store, view, notifier)


def ids(view):
    return [item["id"] for item in view.items]


def test_create_prepends_without_refetch(store, owner):
    coordinator = coordinator_for(store, owner)
    first = coordinator.create({"company": "Acme"})
    second = coordinator.create({"company": "Beta"})

    assert isinstance(coordinator.last_decision, Prepend)
    assert ids(coordinator.view) == [second["id"], first["id"]]
    assert coordinator.notifier.messages == [
        "Application added successfully",
        "Application added successfully",
    ]


def test_create_outside_active_filter_refetches(store, owner):
    coordinator = coordinator_for(store, owner, query=ListQuery(status="Interview"))
    record = coordinator.create({"company": "Acme", "status": "Applied"})

    assert record is not None
    assert isinstance(coordinator.last_decision, Refetch)
    assert coordinator.view.items == []


def test_update_patches_only_submitted_fields(store, owner, db):
    coordinator = coordinator_for(store, owner)
    record = coordinator.create({"company": "Acme", "link": "acme.com"})
    held_before = dict(coordinator.view.items[0])

    coordinator.update(record["id"], {"status": "Interview"})

    assert isinstance(coordinator.last_decision, Patch)
    held = coordinator.view.items[0]
    assert held["status"] == "Interview"
    assert held["link"] == "acme.com"
    assert held["created_at"] == held_before["created_at"]
    assert coordinator.notifier.messages[-1] == "Application updated successfully"


def test_deactivating_under_active_view_refetches(store, owner):
    coordinator = coordinator_for(store, owner, query=ListQuery(active_only=True))
    keep = coordinator.create({"company": "Acme"})
    drop = coordinator.create({"company": "Beta"})

    coordinator.update(drop["id"], {"active_apps": False})

    assert isinstance(coordinator.last_decision, Refetch)
    assert ids(coordinator.view) == [keep["id"]]


def test_status_change_under_status_filter_refetches(store, owner):
    coordinator = coordinator_for(store, owner, CONTACTS, ListQuery(status="Active"))
    contact = coordinator.create({"name": "Ann", "status": "Active"})

    coordinator.update(contact["id"], {"status": "Follow-up"})

    assert isinstance(coordinator.last_decision, Refetch)
    assert coordinator.view.items == []
    assert coordinator.notifier.messages[-1] == "Contact updated successfully"


def test_unchanged_filter_field_still_patches():
    view = ListView(CONTACTS, "u1", ListQuery(status="Active"))
    view.items = [{"id": "c1", "status": "Active", "name": "Ann"}]
    assert isinstance(plan_update(view, "c1", {"status": "Active", "name": "Anne"}), Patch)
    assert isinstance(plan_update(view, "c1", {"status": "Inactive"}), Refetch)


def test_plan_create_checks_the_query():
    view = ListView(APPLICATIONS, "u1", ListQuery(active_only=True))
    assert isinstance(plan_create(view, {"id": "a", "active_apps": True}), Prepend)
    assert isinstance(plan_create(view, {"id": "a", "active_apps": False}), Refetch)


def test_delete_removes_and_second_delete_is_harmless(store, owner):
    coordinator = coordinator_for(store, owner)
    a = coordinator.create({"company": "Acme"})
    b = coordinator.create({"company": "Beta"})

    assert coordinator.delete(a["id"]) is True
    assert isinstance(coordinator.last_decision, Remove)
    assert ids(coordinator.view) == [b["id"]]

    assert coordinator.delete(a["id"]) is False
    assert ids(coordinator.view) == [b["id"]]
    assert coordinator.notifier.messages[-1] == "Failed to delete application"


def test_round_trip_ends_not_found(store, owner):
    coordinator = coordinator_for(store, owner)
    record = coordinator.create({"company": "Acme"})
    coordinator.update(record["id"], {"link": "acme.com/careers"})
    coordinator.delete(record["id"])

    assert record["id"] not in ids(coordinator.view)
    with pytest.raises(NotFound):
        load_application(store, owner, record["id"])


def test_failed_mutations_leave_list_untouched(store, failing_store, owner):
    coordinator = coordinator_for(store, owner)
    record = coordinator.create({"company": "Acme"})
    before = [dict(item) for item in coordinator.view.items]

    failing = MutationCoordinator(failing_store, coordinator.view, Notifier())
    assert failing.create({"company": "Beta"}) is None
    assert failing.update(record["id"], {"status": "Offer"}) is None
    assert failing.delete(record["id"]) is False

    assert coordinator.view.items == before
    assert failing.notifier.messages == [
        "Failed to add application",
        "Failed to update application",
        "Failed to delete application",
    ]


def test_update_of_missing_record_reports_failure(store, owner):
    coordinator = coordinator_for(store, owner)
    assert coordinator.update("missing", {"status": "Offer"}) is None
    assert coordinator.notifier.messages == ["Failed to update application"]


def test_mutations_without_owner_are_noops(failing_store):
    coordinator = MutationCoordinator(failing_store, ListView(APPLICATIONS, None), Notifier())
    assert coordinator.create({"company": "Acme"}) is None
    assert coordinator.update("x", {"status": "Offer"}) is None
    assert coordinator.delete("x") is False
    assert coordinator.notifier.messages == []


def test_refetch_picks_up_rows_written_elsewhere(store, owner, db):
    coordinator = coordinator_for(store, owner, query=ListQuery(active_only=True))
    target = coordinator.create({"company": "Acme"})
    other = Application(user_id=owner, company="Other", created_at=datetime(2020, 1, 1), active_apps=True)
    db.add(other)
    db.commit()
    assert ids(coordinator.view) == [target["id"]]

    coordinator.update(target["id"], {"active_apps": False})
    assert ids(coordinator.view) == [other.id]
