"""Read and write export files.

An export file is a single JSON object mapping each root collection id to
its exported CollectionTree, with no wrapping metadata.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

import aiofiles

from firestore_explorer.domain.exceptions import ConversionError


async def write_export_file(path: str | Path, data: dict[str, Any]) -> Path:
    """Write data as pretty-printed UTF-8 JSON (atomic replace). Returns the path."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(data, indent=2, ensure_ascii=False)
    fd, temp_path = tempfile.mkstemp(dir=target.parent, prefix=".tmp_", suffix=target.suffix)
    os.close(fd)
    try:
        async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
            await f.write(content)
        os.replace(temp_path, target)
    except BaseException:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise
    return target


async def read_export_file(path: str | Path) -> dict[str, dict[str, Any]]:
    """Load an export file.

    Raises:
        ConversionError: If the file is not JSON, or its top level (or any
            collection tree) is not an object.
    """
    async with aiofiles.open(path, "r", encoding="utf-8") as f:
        content = await f.read()
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConversionError(f"Export file is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConversionError("Export file must contain a JSON object at the top level")
    for collection_id, tree in data.items():
        if not isinstance(tree, dict):
            raise ConversionError(f"Collection {collection_id!r} must map document ids to objects")
    return data
