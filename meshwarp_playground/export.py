"""JSON export of editor snapshots.

The document layout is the snapshot itself: ``vertices``, ``cells``,
``boundaryPoints`` and ``gridConfig``, with camelCase keys so files stay
readable by web tooling that consumes ``mesh-data.json``.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

from .model import EditorState

logger = logging.getLogger(__name__)

DEFAULT_JSON_NAME = "mesh-data.json"
DEFAULT_PNG_NAME = "mesh.png"
PNG_EXPORT_SCALE = 2


def state_to_json(state: EditorState) -> Dict[str, Any]:
    return state.asdict()


def dumps_state(state: EditorState) -> str:
    return json.dumps(state_to_json(state), indent=2)


def write_state(state: EditorState, path: str | os.PathLike | None = None) -> Path:
    """Write ``state`` as indented JSON and return the path written."""
    out_path = Path(path) if path is not None else Path(DEFAULT_JSON_NAME)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", encoding="utf-8") as handle:
        json.dump(state_to_json(state), handle, indent=2)
    logger.info("Exported mesh (%d vertices, %d cells) to %s", len(state.vertices), len(state.cells), out_path)
    return out_path
