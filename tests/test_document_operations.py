"""Tests for single-document operations."""

from dataclasses import dataclass

import pytest
from google.cloud import firestore

from firestore_tool.docstore.core.document_operations import (
    add_document,
    delete_document,
    delete_fields,
    get_document,
    new_document_id,
    set_document,
    set_server_timestamp,
    update_document,
)
from firestore_tool.docstore.exceptions import (
    DocumentExistsError,
    DocumentNotFoundError,
    InvalidValueError,
)
from firestore_tool.docstore.values import DELETE


@dataclass
class City:
    name: str
    state: str
    country: str


def test_set_replaces_document(client, fake_db):
    fake_db.docs["cities/LA"] = {"name": "LA", "old": True}

    result = set_document(client, "cities", "LA", {"name": "Los Angeles", "state": "CA"})

    assert fake_db.docs["cities/LA"] == {"name": "Los Angeles", "state": "CA"}
    assert result["id"] == "LA"
    assert result["merge"] is False
    assert result["update_time"] == "2024-01-01T00:00:00+00:00"


def test_set_accepts_dataclass_entity(client, fake_db):
    set_document(client, "cities", "LA", City("Los Angeles", "CA", "USA"))

    assert fake_db.docs["cities/LA"] == {"name": "Los Angeles", "state": "CA", "country": "USA"}


def test_set_merge_keeps_other_fields(client, fake_db):
    fake_db.docs["cities/DC"] = {"name": "Washington"}

    set_document(client, "cities", "DC", {"capital": True}, merge=True)

    assert fake_db.docs["cities/DC"] == {"name": "Washington", "capital": True}


def test_set_without_merge_rejects_delete_marker(client, fake_db):
    with pytest.raises(InvalidValueError):
        set_document(client, "cities", "DC", {"capital": DELETE})

    assert "cities/DC" not in fake_db.docs


def test_add_generates_id(client, fake_db):
    result = add_document(client, "cities", {"name": "Tokyo", "country": "Japan"})

    assert result["id"]
    assert fake_db.docs[f"cities/{result['id']}"] == {"name": "Tokyo", "country": "Japan"}


def test_add_refuses_existing_document(client, fake_db, monkeypatch):
    fake_db.docs["cities/taken"] = {}
    taken = fake_db.collection("cities").document("taken")
    monkeypatch.setattr(client, "document", lambda collection, document_id=None: taken)

    with pytest.raises(DocumentExistsError):
        add_document(client, "cities", {"name": "Tokyo"})


def test_new_document_id_writes_nothing(client, fake_db):
    document_id = new_document_id(client, "cities")

    assert document_id
    assert fake_db.docs == {}


def test_update_merges_nested_fields(client, fake_db):
    fake_db.docs["users/frank"] = {
        "name": "Frank",
        "favorites": {"food": "Pizza", "color": "Blue"},
    }

    data = {"age": 13, "favorites": {"color": "Red"}}
    update_document(client, "users", "frank", data, create_if_missing=False)

    assert fake_db.docs["users/frank"] == {
        "name": "Frank",
        "age": 13,
        "favorites": {"food": "Pizza", "color": "Red"},
    }


def test_update_creates_missing_document(client, fake_db):
    result = update_document(client, "cities", "DC", {"capital": True})

    assert fake_db.docs["cities/DC"] == {"capital": True}
    assert result["fields"] == ["capital"]


def test_update_without_create_requires_document(client, fake_db):
    with pytest.raises(DocumentNotFoundError):
        update_document(client, "cities", "DC", {"capital": True}, create_if_missing=False)

    assert "cities/DC" not in fake_db.docs


def test_update_quotes_unusual_field_names(client, fake_db):
    fake_db.docs["cities/SF"] = {}

    update_document(client, "cities", "SF", {"zip-code": "94105"}, create_if_missing=False)

    assert fake_db.docs["cities/SF"] == {"zip-code": "94105"}


def test_update_requires_fields(client):
    with pytest.raises(InvalidValueError):
        update_document(client, "cities", "SF", {})


def test_server_timestamp_uses_sentinel(client, fake_db):
    fake_db.docs["objects/some-id"] = {"name": "thing"}

    result = set_server_timestamp(client, "objects", "some-id", "timestamp")

    assert fake_db.docs["objects/some-id"]["timestamp"] is firestore.SERVER_TIMESTAMP
    assert fake_db.docs["objects/some-id"]["name"] == "thing"
    assert result["field"] == "timestamp"


def test_delete_fields(client, fake_db):
    fake_db.docs["cities/BJ"] = {"name": "Beijing", "capital": True}

    result = delete_fields(client, "cities", "BJ", ["capital"])

    assert fake_db.docs["cities/BJ"] == {"name": "Beijing"}
    assert result["deleted_fields"] == ["capital"]


def test_delete_fields_requires_document(client):
    with pytest.raises(DocumentNotFoundError):
        delete_fields(client, "cities", "BJ", ["capital"])


def test_delete_fields_requires_a_field(client):
    with pytest.raises(InvalidValueError):
        delete_fields(client, "cities", "BJ", [])


def test_delete_is_idempotent(client, fake_db):
    fake_db.docs["cities/DC"] = {"name": "Washington"}

    delete_document(client, "cities", "DC")
    result = delete_document(client, "cities", "DC")

    assert "cities/DC" not in fake_db.docs
    assert result["deleted"] is True


def test_get_document(client, fake_db):
    fake_db.docs["cities/SF"] = {"name": "San Francisco", "population": 860000}

    result = get_document(client, "cities", "SF")

    assert result["data"] == {"name": "San Francisco", "population": 860000}
    assert result["create_time"] == "2024-01-01T00:00:00+00:00"


def test_get_missing_document(client):
    with pytest.raises(DocumentNotFoundError):
        get_document(client, "cities", "nowhere")


def test_delete_nested_and_literal_dotted_fields(client, fake_db):
    fake_db.docs["cities/BJ"] = {"a.b": 1, "a": {"b": 2, "c": 3}}

    delete_fields(client, "cities", "BJ", ["`a.b`"])
    assert fake_db.docs["cities/BJ"] == {"a": {"b": 2, "c": 3}}

    delete_fields(client, "cities", "BJ", ["a.b"])
    assert fake_db.docs["cities/BJ"] == {"a": {"c": 3}}


def test_update_keeps_dotted_key_literal(client, fake_db):
    fake_db.docs["cities/SF"] = {"a": {"b": 2}}

    update_document(client, "cities", "SF", {"a.b": 1}, create_if_missing=False)

    assert fake_db.docs["cities/SF"] == {"a": {"b": 2}, "a.b": 1}
