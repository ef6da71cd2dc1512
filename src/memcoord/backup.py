"""
Full-state backup and restore to a single JSON file.

Backup document:
    {"timestamp": "<iso>", "stats": {...}, "data": {"<namespace>:<key>": value}}
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import orjson

from memcoord.exceptions import BackupFormatError
from memcoord.logging import get_logger
from memcoord.types import MemoryStats, utc_now

if TYPE_CHECKING:
    from memcoord.store import EntryStore

logger = get_logger(__name__)


async def backup(
    store: EntryStore,
    path: str | Path,
    stats: MemoryStats | None = None,
) -> Path:
    """Write every live entry to a backup file.

    Args:
        store: Store to export.
        path: Destination file. Parent directories are created.
        stats: Statistics to embed; defaults to the store's own.

    Returns:
        The path written.
    """
    backup_path = Path(path)
    data = await store.export_all()
    document = {
        "timestamp": utc_now().isoformat(),
        "stats": (stats or store.get_stats()).to_dict(),
        "data": data,
    }

    backup_path.parent.mkdir(parents=True, exist_ok=True)
    with open(backup_path, "wb") as f:
        f.write(orjson.dumps(document, option=orjson.OPT_INDENT_2))

    logger.info("Backup written", path=str(backup_path), entries=len(data))
    return backup_path


async def restore(store: EntryStore, path: str | Path) -> int:
    """Import a backup file into a store.

    Entries for namespaces the store does not know are skipped.

    Returns:
        Number of entries restored.

    Raises:
        BackupFormatError: If the file is not a valid backup document.
        OSError: If the file cannot be read.
    """
    backup_path = Path(path)
    with open(backup_path, "rb") as f:
        raw = f.read()

    try:
        document = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise BackupFormatError(
            "Backup is not valid JSON", context={"path": str(backup_path), "reason": str(e)}
        ) from e

    if not isinstance(document, dict) or not isinstance(document.get("data"), dict):
        raise BackupFormatError(
            "Backup has no data object",
            context={"path": str(backup_path), "reason": "missing or non-object 'data'"},
        )

    restored = await store.import_all(document["data"])
    logger.info(
        "Backup restored",
        path=str(backup_path),
        restored=restored,
        backup_timestamp=document.get("timestamp"),
    )
    return restored
