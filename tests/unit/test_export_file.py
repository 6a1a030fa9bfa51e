"""Tests for reading and writing export files."""

import json

import pytest

from firestore_explorer.application.services.export_file import (
    read_export_file,
    write_export_file,
)
from firestore_explorer.domain.exceptions import ConversionError


@pytest.mark.asyncio
async def test_write_then_read(tmp_path) -> None:
    data = {"users": {"u1": {"_fields": {"name": "Zoë", "n": 1}}}}
    target = await write_export_file(tmp_path / "out" / "export.json", data)
    assert target.exists()
    text = target.read_text(encoding="utf-8")
    assert "Zoë" in text
    assert text.startswith('{\n  "users"')
    assert await read_export_file(target) == data
    assert [p.name for p in target.parent.iterdir()] == ["export.json"]


@pytest.mark.asyncio
async def test_write_replaces_existing_file(tmp_path) -> None:
    target = tmp_path / "export.json"
    target.write_text("old", encoding="utf-8")
    await write_export_file(target, {})
    assert json.loads(target.read_text(encoding="utf-8")) == {}


@pytest.mark.asyncio
async def test_read_rejects_invalid_json(tmp_path) -> None:
    path = tmp_path / "bad.json"
    path.write_text("{nope", encoding="utf-8")
    with pytest.raises(ConversionError, match="not valid JSON"):
        await read_export_file(path)


@pytest.mark.asyncio
async def test_read_rejects_non_object_top_level(tmp_path) -> None:
    path = tmp_path / "list.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConversionError, match="top level"):
        await read_export_file(path)


@pytest.mark.asyncio
async def test_read_rejects_non_object_tree(tmp_path) -> None:
    path = tmp_path / "tree.json"
    path.write_text('{"users": []}', encoding="utf-8")
    with pytest.raises(ConversionError, match="'users'"):
        await read_export_file(path)
