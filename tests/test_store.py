from datetime import date

import pytest

from store import StoreError


def test_insert_assigns_id_owner_and_timestamp(store, owner):
    record = store.insert("applications", owner, {"company": "Acme"})
    assert record["id"]
    assert record["user_id"] == owner
    assert record["created_at"] is not None
    assert record["status"] == "Applied"
    assert record["active_apps"] is True


def test_insert_ignores_protected_columns(store, owner, other_owner):
    record = store.insert(
        "applications", owner, {"company": "Acme", "id": "forged", "user_id": other_owner}
    )
    assert record["id"] != "forged"
    assert record["user_id"] == owner


def test_unknown_column_is_rejected(store, owner):
    with pytest.raises(StoreError):
        store.insert("applications", owner, {"company": "Acme", "salary": 100})


def test_unknown_table_is_rejected(store, owner):
    with pytest.raises(StoreError):
        store.select("jobs", owner)


def test_select_is_owner_scoped(store, owner, other_owner):
    store.insert("applications", owner, {"company": "Acme"})
    store.insert("applications", other_owner, {"company": "Beta"})
    rows = store.select("applications", owner)
    assert [r["company"] for r in rows] == ["Acme"]


def test_select_one_requires_matching_owner(store, owner, other_owner):
    record = store.insert("applications", owner, {"company": "Acme"})
    assert store.select_one("applications", owner, record["id"])["company"] == "Acme"
    assert store.select_one("applications", other_owner, record["id"]) is None


def test_update_keeps_created_at(store, owner):
    record = store.insert("applications", owner, {"company": "Acme"})
    updated = store.update(
        "applications", owner, record["id"], {"status": "Interview", "created_at": None}
    )
    assert updated["status"] == "Interview"
    assert updated["created_at"] == record["created_at"]


def test_update_of_foreign_row_matches_nothing(store, owner, other_owner):
    record = store.insert("applications", owner, {"company": "Acme"})
    assert store.update("applications", other_owner, record["id"], {"company": "Evil"}) is None
    assert store.select_one("applications", owner, record["id"])["company"] == "Acme"


def test_delete_reports_rows_removed(store, owner, other_owner):
    record = store.insert("applications", owner, {"company": "Acme"})
    assert store.delete("applications", other_owner, record["id"]) == 0
    assert store.delete("applications", owner, record["id"]) == 1
    assert store.delete("applications", owner, record["id"]) == 0


def test_ilike_is_case_insensitive_and_literal(store, owner):
    store.insert("network_contacts", owner, {"name": "Ann", "company": "ACME Corp"})
    store.insert("network_contacts", owner, {"name": "Bob", "company": "100% Growth"})
    store.insert("network_contacts", owner, {"name": "Cy", "company": "1000 Growth"})

    assert [r["name"] for r in store.select("network_contacts", owner, ilike={"company": "acme"})] == ["Ann"]
    assert [r["name"] for r in store.select("network_contacts", owner, ilike={"company": "100%"})] == ["Bob"]


def test_invalid_date_value_becomes_store_error(store, owner):
    with pytest.raises(StoreError):
        store.insert("network_contacts", owner, {"name": "Ann", "date_of_first_contact": "soon"})
    # The session is usable again after the failure.
    record = store.insert("network_contacts", owner, {"name": "Ann", "date_of_first_contact": date(2024, 1, 1)})
    assert record["date_of_first_contact"] == date(2024, 1, 1)
