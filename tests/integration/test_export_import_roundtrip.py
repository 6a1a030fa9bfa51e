"""Export -> file -> import -> export against in-memory stores.

Covers the full transfer pipeline (codec, pagination, batching, file I/O)
without network access.
"""

import pytest

from firestore_explorer.application.services.bulk_deleter import BulkDeleter
from firestore_explorer.application.services.collection_exporter import CollectionExporter
from firestore_explorer.application.services.collection_importer import CollectionImporter
from firestore_explorer.application.services.export_file import (
    read_export_file,
    write_export_file,
)

pytestmark = pytest.mark.integration


def _seed_three_levels(store) -> None:
    store.seed(
        "users/u1",
        {
            "name": {"stringValue": "Ada"},
            "age": {"integerValue": "36"},
            "ratio": {"doubleValue": 0.25},
            "active": {"booleanValue": True},
            "nothing": {"nullValue": None},
            "joined": {"timestampValue": "2024-01-15T10:30:00.000Z"},
            "home": {"geoPointValue": {"latitude": 51.5, "longitude": -0.12}},
            "tags": {"arrayValue": {"values": [{"stringValue": "a"}, {"integerValue": "2"}]}},
            "profile": {
                "mapValue": {"fields": {"bio": {"stringValue": "x"}, "level": {"integerValue": "3"}}}
            },
        },
    )
    store.seed("users/u1/orders/o1", {"total": {"doubleValue": 9.5}})
    store.seed("users/u1/orders/o1/items/i1", {"sku": {"stringValue": "A-1"}})
    store.seed("users/u1/orders/o1/items/i2", {"sku": {"stringValue": "B-2"}})
    store.seed("users/u2", {"name": {"stringValue": "Grace"}})
    store.seed_many("events", 1200)


@pytest.mark.asyncio
async def test_export_file_import_export_is_stable(tmp_path, store_factory, settings, no_sleep) -> None:
    source = store_factory()
    _seed_three_levels(source)

    exported = await CollectionExporter(source, settings=settings, sleep=no_sleep).export_database()
    path = await write_export_file(tmp_path / "export.json", exported)

    target = store_factory()
    loaded = await read_export_file(path)
    result = await CollectionImporter(target, settings=settings, sleep=no_sleep).import_database(loaded)

    assert result.ok
    assert result.succeeded == len(source.docs)
    assert target.docs == source.docs

    re_exported = await CollectionExporter(target, settings=settings, sleep=no_sleep).export_database()
    assert re_exported == exported


@pytest.mark.asyncio
async def test_export_then_clear_then_restore(store, settings, no_sleep) -> None:
    _seed_three_levels(store)
    snapshot = dict(store.docs)

    tree = await CollectionExporter(store, settings=settings, sleep=no_sleep).export("users")
    cleared = await BulkDeleter(store, settings=settings, sleep=no_sleep).clear()
    # Only top-level documents are deleted; nested orders survive.
    assert cleared.succeeded == 2 + 1200
    assert set(store.docs) == {
        "users/u1/orders/o1",
        "users/u1/orders/o1/items/i1",
        "users/u1/orders/o1/items/i2",
    }

    restored = await CollectionImporter(store, settings=settings, sleep=no_sleep).import_collection(
        "users", tree
    )
    assert restored.succeeded == 5
    assert {p: f for p, f in store.docs.items() if p.startswith("users/")} == {
        p: f for p, f in snapshot.items() if p.startswith("users/")
    }
