from __future__ import annotations

import sqlite3
from pathlib import Path

from session_client.schemas import User
from session_client.services import ProfileCache


def test_load_returns_none_when_nothing_was_saved(profile_cache: ProfileCache) -> None:
    assert profile_cache.load() is None


def test_save_overwrites_previous_profile(profile_cache: ProfileCache) -> None:
    profile_cache.save(User(id="1", email="old@example.com"))
    profile_cache.save(User(id="1", email="new@example.com", name="Ana", plan="pro"))

    cached = profile_cache.load()

    assert cached is not None
    assert cached.email == "new@example.com"
    assert cached.name == "Ana"
    assert cached.model_dump()["plan"] == "pro"


def test_profile_survives_a_new_cache_instance(tmp_path: Path) -> None:
    db_path = str(tmp_path / "nested" / "profile.db")
    ProfileCache(db_path).save(User(id=7, email="ana@example.com"))

    cached = ProfileCache(db_path).load()

    assert cached is not None
    assert cached.id == "7"


def test_clear_removes_profile(profile_cache: ProfileCache) -> None:
    profile_cache.save(User(id="1", email="ana@example.com"))

    profile_cache.clear()
    profile_cache.clear()

    assert profile_cache.load() is None


def test_corrupt_entry_is_ignored(tmp_path: Path) -> None:
    db_path = tmp_path / "profile.db"
    cache = ProfileCache(str(db_path))
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            "INSERT INTO profile_cache (key, data) VALUES (?, ?)",
            ("user", "{not json"),
        )

    assert cache.load() is None


def test_entry_missing_required_fields_is_ignored(tmp_path: Path) -> None:
    db_path = tmp_path / "profile.db"
    cache = ProfileCache(str(db_path))
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            "INSERT INTO profile_cache (key, data) VALUES (?, ?)",
            ("user", '{"name": "No Id"}'),
        )

    assert cache.load() is None
