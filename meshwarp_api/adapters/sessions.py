"""In-memory editor sessions backing the HTTP routes."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence
from uuid import uuid4

from meshwarp_playground.editor import MeshEditor
from meshwarp_playground.geometry import displacement_color
from meshwarp_playground.model import GridConfig
from meshwarp_playground.settings import EditorSettings

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Session:
    """One editor instance plus bookkeeping."""

    id: str
    name: str
    editor: MeshEditor
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    last_message: Optional[str] = None


class SessionStore:
    """Sessions keyed by uuid; each session is edited by one request at a time."""

    def __init__(self, settings: Optional[EditorSettings] = None) -> None:
        self.settings = settings or EditorSettings()
        self._items: Dict[str, Session] = {}

    def create(self, name: str, grid: Optional[Dict[str, Any]] = None) -> Session:
        settings = self.settings
        if grid:
            settings = replace(
                settings,
                base_cols=grid.get("base_cols", settings.base_cols),
                base_rows=grid.get("base_rows", settings.base_rows),
                rule_string=grid.get("rule_string", settings.rule_string),
            )
        session = Session(id=str(uuid4()), name=name, editor=MeshEditor(settings))
        session.editor.on_status = lambda message: setattr(session, "last_message", message)
        self._items[session.id] = session
        logger.info("Created session %s (%s)", session.id, name)
        return session

    def list(self) -> List[Session]:
        return list(self._items.values())

    def get(self, session_id: str) -> Optional[Session]:
        return self._items.get(session_id)

    def delete(self, session_id: str) -> bool:
        removed = self._items.pop(session_id, None) is not None
        if removed:
            logger.info("Deleted session %s", session_id)
        return removed

    def clear(self) -> None:
        self._items.clear()


_store = SessionStore()


def configure(settings: EditorSettings) -> None:
    """Replace the defaults used for new sessions."""
    _store.settings = settings


def reset_store() -> None:
    _store.clear()


def _session(session_id: str) -> Session:
    session = _store.get(session_id)
    if session is None:
        raise KeyError(session_id)
    return session


def _apply(session_id: str, action: Callable[[MeshEditor], bool], fallback: str) -> Dict[str, Any]:
    """Run an editor call; a ``False`` result becomes a ``ValueError``."""
    session = _session(session_id)
    session.last_message = None
    if not action(session.editor):
        raise ValueError(session.last_message or fallback)
    session.updated_at = _now()
    return serialize_detail(session)


def _touch(session_id: str, action: Callable[[MeshEditor], object]) -> Dict[str, Any]:
    session = _session(session_id)
    action(session.editor)
    session.updated_at = _now()
    return serialize_detail(session)


# ---------------------------------------------------------------------------
# Public operations


def create_session(payload: Dict[str, Any]) -> Dict[str, Any]:
    session = _store.create(name=payload.get("name") or "Untitled", grid=payload.get("grid"))
    return serialize_detail(session)


def list_sessions() -> List[Dict[str, Any]]:
    return [serialize_summary(item) for item in _store.list()]


def get_session(session_id: str) -> Dict[str, Any]:
    return serialize_detail(_session(session_id))


def delete_session(session_id: str) -> None:
    if not _store.delete(session_id):
        raise KeyError(session_id)


def set_grid(session_id: str, grid: Dict[str, Any]) -> Dict[str, Any]:
    def regenerate(editor: MeshEditor) -> None:
        editor.set_pending_config(grid.get("base_cols"), grid.get("base_rows"), grid.get("rule_string"))
        editor.regenerate_grid()

    return _touch(session_id, regenerate)


def reset_positions(session_id: str) -> Dict[str, Any]:
    return _touch(session_id, lambda editor: editor.reset_positions())


def move_vertex(session_id: str, vertex_id: int, x: float, y: float) -> Dict[str, Any]:
    editor = _session(session_id).editor
    if editor.state.vertex(vertex_id) is None:
        raise IndexError(f"Vertex {vertex_id} not found")
    # An unchanged position commits nothing; that is not an error.
    return _touch(session_id, lambda e: e.move_vertex(vertex_id, x, y, finished=True))


def set_mask(session_id: str, points: Sequence[Sequence[float]]) -> Dict[str, Any]:
    return _apply(session_id, lambda editor: editor.commit_mask(points), "Mask rejected")


def clear_mask(session_id: str) -> Dict[str, Any]:
    return _touch(session_id, lambda editor: editor.clear_mask())


def paint_cell(session_id: str, cell_id: int, color: Optional[str] = None) -> Dict[str, Any]:
    editor = _session(session_id).editor
    if not 0 <= cell_id < len(editor.state.cells):
        raise IndexError(f"Cell {cell_id} not found")
    return _apply(session_id, lambda e: e.paint_cell(cell_id, color), "Paint rejected")


def undo(session_id: str) -> Dict[str, Any]:
    return _touch(session_id, lambda editor: editor.undo())


def redo(session_id: str) -> Dict[str, Any]:
    return _touch(session_id, lambda editor: editor.redo())


def displacement(session_id: str, scale: Optional[float] = None) -> Dict[str, Any]:
    editor = _session(session_id).editor
    value = editor.displacement_scale if scale is None else scale
    return {
        "scale": value,
        "cells": [
            {"id": cell.id, "color": displacement_color(cell, editor.vertices, value)}
            for cell in editor.state.cells
        ],
    }


def session_count() -> int:
    return len(_store.list())


# ---------------------------------------------------------------------------
# Serialization


def _grid_dict(config: GridConfig) -> Dict[str, Any]:
    return {"base_cols": config.base_cols, "base_rows": config.base_rows, "rule_string": config.rule_string}


def serialize_summary(session: Session) -> Dict[str, Any]:
    state = session.editor.state
    return {
        "id": session.id,
        "name": session.name,
        "created_at": session.created_at.isoformat(),
        "updated_at": session.updated_at.isoformat(),
        "grid": _grid_dict(state.grid_config),
        "vertex_count": len(state.vertices),
        "cell_count": len(state.cells),
        "has_mask": state.has_mask,
    }


def serialize_detail(session: Session) -> Dict[str, Any]:
    editor = session.editor
    data = serialize_summary(session)
    data.update(
        {
            "can_undo": editor.can_undo,
            "can_redo": editor.can_redo,
            "history_index": editor.history.index,
            "history_length": len(editor.history),
            "document": editor.export_document(),
        }
    )
    return data
