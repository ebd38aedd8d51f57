import logging

import pytest

from embedded_json_db_engine import Database, ValidationError, is_simple_filter, matches, scan, strict_equal

def make_db(tmp_path):
    db = Database.open(tmp_path / "users.json")
    db.insert([
        {"name": "Alice", "age": 25, "active": True, "city": "Wien"},
        {"name": "Bob", "age": 10, "active": False, "city": "Graz"},
        {"name": "Charlie", "age": 50, "active": True, "city": "Wien"},
        {"name": "Dora", "age": 25, "active": True},
    ])
    return db

def test_matches_conjunction_of_fields():
    rec = {"_id": "x", "name": "Alice", "age": 25, "extra": [1, 2]}
    assert matches(rec, {"name": "Alice"})
    assert matches(rec, {"name": "Alice", "age": 25})
    assert not matches(rec, {"name": "Alice", "age": 26})
    assert matches(rec, {})

def test_matches_requires_field_presence():
    rec = {"name": "Alice", "note": None}
    assert matches(rec, {"note": None})
    assert not matches(rec, {"missing": None})

@pytest.mark.parametrize("have,want,expected", [
    (1, 1, True),
    (1, 1.0, True),
    (1, "1", False),
    (True, 1, False),
    (1, True, False),
    (False, 0, False),
    (True, True, True),
    (None, False, False),
    ("a", "a", True),
    ({"city": "Wien"}, {"city": "Wien"}, False),
    ([1, 2], [1, 2], False),
])
def test_strict_equal(have, want, expected):
    assert strict_equal(have, want) is expected

def test_strict_equal_same_container_object():
    tags = ["a"]
    assert strict_equal(tags, tags)

def test_scan_returns_records_or_keys_in_order():
    coll = {
        "a": {"_id": "a", "k": 1},
        "b": {"_id": "b", "k": 2},
        "c": {"_id": "c", "k": 1},
    }
    assert scan(coll, {"k": 1}, keys=True) == ["a", "c"]
    assert [r["_id"] for r in scan(coll, {"k": 1})] == ["a", "c"]
    assert scan(coll, {"k": 3}) == []
    assert scan(coll, {}, keys=True) == ["a", "b", "c"]

def test_is_simple_filter():
    assert is_simple_filter({"a": 1, "b": "x"})
    assert not is_simple_filter({})
    assert not is_simple_filter({"a": {"$gt": 1}})
    assert not is_simple_filter({"a": [1]})

def test_find_empty_filter_returns_everything_in_insert_order(tmp_path):
    db = make_db(tmp_path)
    assert [r["name"] for r in db.find({})] == ["Alice", "Bob", "Charlie", "Dora"]
    assert db.find() == db.find({})

def test_find_by_field(tmp_path):
    db = make_db(tmp_path)
    assert [r["name"] for r in db.find({"age": 25})] == ["Alice", "Dora"]
    assert [r["name"] for r in db.find({"city": "Wien", "active": True})] == ["Alice", "Charlie"]
    assert db.find({"age": "25"}) == []
    assert db.find({"city": None}) == []

def test_find_one_and_find_many(tmp_path):
    db = make_db(tmp_path)
    assert db.find_one({"age": 25})["name"] == "Alice"
    assert db.find_one({"age": 99}) is None
    assert db.find_one()["name"] == "Alice"
    assert len(db.find_many({"active": True})) == 3
    assert db.find_many({"name": "Nobody"}) == []

def test_find_by_id(tmp_path):
    db = make_db(tmp_path)
    bob = db.find_one({"name": "Bob"})
    assert db.find_by_id(bob["_id"]) == bob
    assert db.find_by_id("does-not-exist") is None
    assert bob["_id"] in db
    assert "does-not-exist" not in db

def test_exists_and_count(tmp_path):
    db = make_db(tmp_path)
    assert db.exists({"name": "Bob"})
    assert not db.exists({"name": "Bob", "age": 11})
    assert db.exists({})
    assert db.count() == 4
    assert len(db) == 4

def test_returned_records_are_snapshots(tmp_path):
    db = make_db(tmp_path)
    alice = db.find_one({"name": "Alice"})
    alice["name"] = "Mallory"
    alice["_id"] = "hijack"
    assert db.find_one({"name": "Alice"}) is not None
    assert not db.exists({"name": "Mallory"})
    assert db.find_by_id("hijack") is None

def test_bad_filters_are_validation_errors(tmp_path):
    db = make_db(tmp_path)
    with pytest.raises(ValidationError):
        db.find(["name", "Alice"])
    with pytest.raises(ValidationError):
        db.find_one({1: "x"})
    with pytest.raises(ValidationError):
        db.find_by_id(123)

def test_scan_debug_logging(tmp_path, caplog):
    db = make_db(tmp_path)
    with caplog.at_level(logging.DEBUG, logger="embedded_json_db_engine.database"):
        db.find({"age": 25})
    assert any("simple=True" in r.getMessage() and "matched 2" in r.getMessage() for r in caplog.records)

    caplog.clear()
    with caplog.at_level(logging.INFO, logger="embedded_json_db_engine.database"):
        db.find({"age": 25})
    assert not any("scan" in r.getMessage() for r in caplog.records)
