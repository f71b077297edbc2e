from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path

LOGGER = logging.getLogger(__name__)

LOCK_VERSION = 1


def hash_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def hash_text(text: str) -> str:
    return hash_bytes(text.encode("utf-8"))


def load_lock(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        LOGGER.warning("Ignoring unreadable build lock %s", path)
        return {}
    return data if isinstance(data, dict) else {}


def write_lock(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=True, sort_keys=True) + "\n", encoding="utf-8")


def build_manifest(pages: dict[str, str], carried: dict[str, str] | None = None) -> dict:
    hashes = dict(carried or {})
    hashes.update({rel: hash_text(text) for rel, text in pages.items()})
    return {"version": LOCK_VERSION, "pages": dict(sorted(hashes.items()))}


def previous_pages(lock: dict) -> set[str]:
    if lock.get("version") != LOCK_VERSION:
        return set()
    pages = lock.get("pages")
    if not isinstance(pages, dict):
        return set()
    return {str(rel) for rel in pages}


def carried_pages(lock: dict, output_dir: Path, stale: set[str]) -> dict[str, str]:
    pages = lock.get("pages") if lock.get("version") == LOCK_VERSION else None
    if not isinstance(pages, dict):
        return {}
    return {rel: str(pages[rel]) for rel in sorted(stale) if rel in pages and (output_dir / rel).is_file()}


def prune_stale(output_dir: Path, stale: set[str]) -> list[str]:
    """Delete page files from an earlier build that this build no longer produces.

    Only paths inside ``output_dir`` are touched. Directories emptied by the
    deletion are removed, walking up to (not including) ``output_dir``.
    """
    root = output_dir.resolve()
    removed = []
    for rel in sorted(stale):
        path = (root / rel).resolve()
        if path == root or not path.is_relative_to(root):
            LOGGER.warning("Refusing to prune path outside output directory: %s", rel)
            continue
        if not path.is_file():
            continue
        path.unlink()
        removed.append(rel)
        parent = path.parent
        while parent != root and parent.is_relative_to(root) and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent
    return removed
