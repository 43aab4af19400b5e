"""orjson-backed JSON helpers for config files, documents and CLI output."""
from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson


def loads_json(raw: bytes | str) -> Any:
    return orjson.loads(raw)


def dumps_json(obj: Any, *, pretty: bool = False) -> bytes:
    """Serialize with sorted keys; ``pretty`` adds two-space indentation."""
    opts = orjson.OPT_SORT_KEYS
    if pretty:
        opts |= orjson.OPT_INDENT_2
    return orjson.dumps(obj, option=opts)


def load_json(path: Path) -> Any:
    """Load JSON from a file."""
    return orjson.loads(path.read_bytes())


def save_json(obj: Any, path: Path, *, pretty: bool = True) -> None:
    """Save an object as JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(dumps_json(obj, pretty=pretty))
