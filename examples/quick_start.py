#!/usr/bin/env python3
# Example usage of embedded_json_db_engine

import logging
import os

from embedded_json_db_engine import Database, IOCorruptionError

def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    path = os.path.join(os.path.dirname(__file__), "data", "demo.json")

    # Create/open the database file; a corrupt file is refused rather than overwritten
    db = Database(path)
    try:
        status = db.connect()
    except IOCorruptionError as e:
        print("Refusing to overwrite:", e)
        return
    print("Connect:", status.value)

    # Insert one and many; _id is assigned by the store
    alice = db.insert_one({"name": "Alice", "age": 33, "active": True})
    db.insert_many([
        {"name": "Bob", "age": 17, "active": True},
        {"name": "Carol", "age": 41, "active": False},
    ])
    print("Inserted:", alice)

    # Fetch it back by id
    print("Loaded:", db.find_by_id(alice["_id"]))

    # Exact-match queries
    for r in db.find({"active": True}):
        print("Active:", r["name"], r["age"])

    # Shallow merge vs full replace
    print("Updated records:", db.update_many({"active": True}, {"checked": True}))
    print("Replaced:", db.find_one_and_replace({"name": "Carol"}, {"name": "Carol", "age": 42}))

    # Delete returns detached copies
    print("Deleted:", db.find_many_and_delete({"name": "Bob"}))
    print("Count:", db.count(), "Size:", db.db_size())

if __name__ == "__main__":
    main()
