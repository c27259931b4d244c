from __future__ import annotations

from adapters.sqlite_storage import SQLiteStorage
from core.dedup import DedupStore
from core.models import SearchFilter, TrackedSearch
from core.registry import TrackedSearchRegistry


def test_get_set_delete_roundtrip(tmp_path) -> None:
    storage = SQLiteStorage(str(tmp_path / "carscope.db"))
    storage.init_db()

    assert storage.get("missing") is None

    storage.set("latest_listing:100", "42")
    storage.set("latest_listing:100", "43")
    storage.set("favorites", [{"favorite_id": "fav-1", "listing_id": "42"}])

    assert storage.get("latest_listing:100") == "43"
    assert storage.get("favorites")[0]["listing_id"] == "42"

    storage.delete("latest_listing:100")
    assert storage.get("latest_listing:100") is None


def test_state_survives_reopening_the_database(tmp_path) -> None:
    path = str(tmp_path / "carscope.db")
    storage = SQLiteStorage(path)
    storage.init_db()
    search = TrackedSearch(channel_id="-100123", filter=SearchFilter(brand="RENAULT", price="min-8000"))
    TrackedSearchRegistry(storage).add(search)
    DedupStore(storage).record("-100123", "42")

    reopened = SQLiteStorage(path)
    reopened.init_db()

    assert TrackedSearchRegistry(reopened).list_persisted() == [search]
    assert not DedupStore(reopened).is_new("-100123", "42")
