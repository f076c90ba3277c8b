from datetime import datetime

import pytest

from listing import APPLICATIONS, CONTACTS, ListQuery, ListView, recent, search_records
from models import Application
from notifications import Notifier


def add_application(db, owner, company, created_at, **fields):
    row = Application(user_id=owner, company=company, created_at=created_at, **fields)
    db.add(row)
    db.commit()
    return row.id


@pytest.fixture
def applications(db, owner, other_owner):
    add_application(db, owner, "Acme", datetime(2024, 1, 1), status="Applied", link="acme.com/jobs")
    add_application(db, owner, "Beta", datetime(2024, 2, 1), status="Interview", username="jane.b")
    add_application(db, owner, "Gamma", datetime(2024, 3, 1), status="Applied", active_apps=False)
    add_application(db, other_owner, "Delta", datetime(2024, 4, 1), status="Applied")


def test_fetch_returns_owned_rows_newest_first(store, owner, applications):
    view = ListView(APPLICATIONS, owner)
    assert view.fetch(store, Notifier())
    assert [r["company"] for r in view.items] == ["Gamma", "Beta", "Acme"]
    assert all(r["user_id"] == owner for r in view.items)
    assert view.loading is False
    assert view.loaded is True


@pytest.mark.parametrize("status", [None, "", "all"])
def test_all_sentinel_means_no_status_filter(store, owner, applications, status):
    view = ListView(APPLICATIONS, owner, ListQuery(status=status))
    view.fetch(store, Notifier())
    assert len(view.items) == 3


def test_status_filter_is_exact(store, owner, applications):
    view = ListView(APPLICATIONS, owner, ListQuery(status="Applied"))
    view.fetch(store, Notifier())
    assert [r["company"] for r in view.items] == ["Gamma", "Acme"]
    assert {r["status"] for r in view.items} == {"Applied"}


def test_active_only_scope(store, owner, applications):
    view = ListView(APPLICATIONS, owner, ListQuery(active_only=True))
    view.fetch(store, Notifier())
    assert [r["company"] for r in view.items] == ["Beta", "Acme"]


def test_search_over_application_fields(store, owner, applications):
    view = ListView(APPLICATIONS, owner)
    view.fetch(store, Notifier())
    assert [r["company"] for r in view.visible("ACME.COM")] == ["Acme"]
    assert [r["company"] for r in view.visible("jane")] == ["Beta"]
    assert view.visible("") == view.items


def test_search_ignores_fields_outside_the_set():
    records = [{"company": "Acme", "status": "Interview", "password": "hunter2"}]
    assert search_records(records, "interview", APPLICATIONS.search_fields) == []
    assert search_records(records, "hunter", APPLICATIONS.search_fields) == []


def test_contact_search_fields_and_missing_values():
    records = [
        {"name": "Ann", "company": None, "notes": "Met at PyCon", "action_items": ""},
        {"name": "Bob", "company": "Beta", "location": "Berlin"},
    ]
    assert [r["name"] for r in search_records(records, "pycon", CONTACTS.search_fields)] == ["Ann"]
    assert [r["name"] for r in search_records(records, "berlin", CONTACTS.search_fields)] == ["Bob"]


def test_loading_is_set_while_select_runs(owner):
    view = ListView(APPLICATIONS, owner)
    seen = []

    class RecordingStore:
        def select(self, table, owner_id, **kwargs):
            seen.append(view.loading)
            return []

    assert view.fetch(RecordingStore(), Notifier())
    assert seen == [True]
    assert view.loading is False


def test_failed_fetch_keeps_previous_items(store, failing_store, owner, applications):
    view = ListView(APPLICATIONS, owner)
    view.fetch(store, Notifier())
    before = list(view.items)

    notifier = Notifier()
    assert view.fetch(failing_store, notifier) is False
    assert view.items == before
    assert view.loading is False
    assert notifier.messages == ["Failed to load your applications"]


def test_fetch_without_owner_is_noop(failing_store):
    view = ListView(CONTACTS, None)
    notifier = Notifier()
    assert view.fetch(failing_store, notifier) is False
    assert notifier.messages == []


def test_set_query_reports_change(owner):
    view = ListView(APPLICATIONS, owner)
    assert view.set_query(ListQuery()) is False
    assert view.set_query(ListQuery(status="Offer")) is True


def test_recent_limits_and_survives_failure(store, failing_store, owner, applications):
    rows = recent(store, owner, APPLICATIONS, limit=1, query=ListQuery(active_only=True))
    assert [r["company"] for r in rows] == ["Beta"]
    assert recent(failing_store, owner, APPLICATIONS, limit=3) == []
