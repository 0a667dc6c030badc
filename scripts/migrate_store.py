#!/usr/bin/env python3
"""
Rewrite stored settings and courses in the current versioned format.
Old blobs are default-filled on read anyway; run this once to make it permanent.
"""

import json
import os
import sqlite3
import sys

from studyhall.core.kv_store import SqliteKeyValueStore
from studyhall.core.persistence import COURSES_KEY, SETTINGS_KEY, CourseRepository, SettingsRepository


def migrate_store(db_path: str = "studyhall.db") -> bool:
    print(f"🔄 Migrating store: {db_path}")

    if not os.path.exists(db_path):
        print(f"❌ Store not found: {db_path}")
        return False

    try:
        store = SqliteKeyValueStore(db_path)

        # Unreadable blobs would be replaced by defaults; leave them for inspection instead
        for key in (SETTINGS_KEY, COURSES_KEY):
            raw = store.get(key)
            if raw is not None:
                json.loads(raw)

        settings_repo = SettingsRepository(store)
        course_repo = CourseRepository(store)

        display = settings_repo.load()
        settings_repo.save(display)
        print(f"✅ Settings: {display.model_dump(by_alias=True)}")

        courses = course_repo.load()
        course_repo.save(courses)
        print(f"✅ Courses rewritten: {len(courses)}")
        return True

    except (sqlite3.Error, ValueError) as e:
        print(f"❌ Migration failed: {e}")
        return False


if __name__ == "__main__":
    ok = migrate_store(sys.argv[1] if len(sys.argv) > 1 else "studyhall.db")
    sys.exit(0 if ok else 1)
