"""
Record Sources

Loads raw topic records from JSON files so an index can be rebuilt from the
authoritative content at any time.

Accepted file shapes
--------------------
- a single topic object
- a list of topic objects
- a category bundle::

    {"category": "os", "name": "Operating Systems", "topics": [...]}

  whose ``category`` is applied to every topic that does not set one

A directory is read as every ``*.json`` file below it, in sorted path
order, so the resulting record sequence is deterministic.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from .exceptions import SourceError

logger = logging.getLogger("topic_index.sources")

PathLike = Union[str, Path]


def _from_bundle(bundle: Dict[str, Any], origin: Path) -> List[Any]:
    topics = bundle.get("topics")
    if not isinstance(topics, list):
        raise SourceError(f"{origin}: bundle 'topics' must be a list")

    category = bundle.get("category")
    records: List[Any] = []
    for topic in topics:
        if isinstance(topic, dict) and category and not topic.get("category"):
            topic = {**topic, "category": category}
        records.append(topic)
    return records


def read_file(path: PathLike) -> List[Any]:
    """
    Read the records held by one JSON file.

    Raises
    ------
    SourceError
        If the file cannot be read or is not valid JSON of an accepted shape.
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceError(f"Failed to read {path}: {type(exc).__name__}") from exc
    except json.JSONDecodeError as exc:
        raise SourceError(
            f"Malformed JSON in {path} at line {exc.lineno}: {exc.msg}"
        ) from exc

    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        if "topics" in data and "id" not in data:
            return _from_bundle(data, path)
        return [data]

    raise SourceError(f"{path}: expected an object or a list, got {type(data).__name__}")


def load_records(path: PathLike) -> List[Any]:
    """
    Load raw records from a JSON file or a directory of JSON files.

    Records are returned unvalidated; validation belongs to ingestion.
    """
    path = Path(path)

    if path.is_dir():
        files = sorted(p for p in path.rglob("*.json") if p.is_file())
    elif path.is_file():
        files = [path]
    else:
        raise SourceError(f"Record source not found: {path}")

    records: List[Any] = []
    for file in files:
        loaded = read_file(file)
        logger.debug("Loaded %d record(s) from %s", len(loaded), file)
        records.extend(loaded)

    logger.info("Loaded %d record(s) from %d file(s) under %s", len(records), len(files), path)
    return records


def load_into(index, path: PathLike) -> int:
    """
    Rebuild ``index`` from the records found at ``path``.

    Returns the number of committed topics.
    """
    return index.rebuild(load_records(path))
