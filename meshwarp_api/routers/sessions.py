from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Tuple

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field, FiniteFloat

from meshwarp_playground.geometry import MAX_DIVISIONS
from meshwarp_playground.model import DEFAULT_BASE_COLS, DEFAULT_BASE_ROWS, DEFAULT_RULES

from ..adapters import sessions as session_adapter


class GridRequest(BaseModel):
    base_cols: int = Field(default=DEFAULT_BASE_COLS, ge=1, le=MAX_DIVISIONS, description="Base column count")
    base_rows: int = Field(default=DEFAULT_BASE_ROWS, ge=1, le=MAX_DIVISIONS, description="Base row count")
    rule_string: str = Field(default=DEFAULT_RULES, description="Subdivision rules, e.g. 'C1:4,R3:2'")


class SessionCreate(BaseModel):
    name: str = Field(default="Untitled", description="Session name")
    grid: Optional[GridRequest] = None


class SessionSummary(BaseModel):
    id: str
    name: str
    created_at: str
    updated_at: str
    grid: Dict[str, Any]
    vertex_count: int
    cell_count: int
    has_mask: bool


class SessionDetail(SessionSummary):
    can_undo: bool
    can_redo: bool
    history_index: int
    history_length: int
    document: Dict[str, Any]


class VertexMove(BaseModel):
    x: FiniteFloat
    y: FiniteFloat


class MaskRequest(BaseModel):
    points: List[Tuple[FiniteFloat, FiniteFloat]] = Field(default_factory=list, description="Polygon vertices in canvas units")


class PaintRequest(BaseModel):
    color: Optional[str] = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$", description="Paint color, defaults to the active color")


class CellColor(BaseModel):
    id: int
    color: str


class DisplacementResponse(BaseModel):
    scale: float
    cells: List[CellColor]


router = APIRouter(prefix="/sessions", tags=["sessions"])


def _detail(call: Callable[[], Dict[str, Any]]) -> SessionDetail:
    try:
        return SessionDetail(**call())
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found") from exc
    except IndexError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/", response_model=List[SessionSummary])
async def list_sessions() -> List[SessionSummary]:
    return [SessionSummary(**item) for item in session_adapter.list_sessions()]


@router.post("/", response_model=SessionDetail, status_code=status.HTTP_201_CREATED)
async def create_session(body: Optional[SessionCreate] = None) -> SessionDetail:
    payload = (body or SessionCreate()).model_dump()
    return SessionDetail(**session_adapter.create_session(payload))


@router.get("/{session_id}", response_model=SessionDetail)
async def get_session(session_id: str) -> SessionDetail:
    return _detail(lambda: session_adapter.get_session(session_id))


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str) -> None:
    try:
        session_adapter.delete_session(session_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found") from exc


@router.post("/{session_id}/grid", response_model=SessionDetail)
async def regenerate_grid(session_id: str, body: GridRequest) -> SessionDetail:
    return _detail(lambda: session_adapter.set_grid(session_id, body.model_dump()))


@router.post("/{session_id}/reset", response_model=SessionDetail)
async def reset_positions(session_id: str) -> SessionDetail:
    return _detail(lambda: session_adapter.reset_positions(session_id))


@router.put("/{session_id}/vertices/{vertex_id}", response_model=SessionDetail)
async def move_vertex(session_id: str, vertex_id: int, body: VertexMove) -> SessionDetail:
    return _detail(lambda: session_adapter.move_vertex(session_id, vertex_id, body.x, body.y))


@router.put("/{session_id}/mask", response_model=SessionDetail)
async def set_mask(session_id: str, body: MaskRequest) -> SessionDetail:
    return _detail(lambda: session_adapter.set_mask(session_id, body.points))


@router.delete("/{session_id}/mask", response_model=SessionDetail)
async def clear_mask(session_id: str) -> SessionDetail:
    return _detail(lambda: session_adapter.clear_mask(session_id))


@router.post("/{session_id}/cells/{cell_id}/paint", response_model=SessionDetail)
async def paint_cell(session_id: str, cell_id: int, body: Optional[PaintRequest] = None) -> SessionDetail:
    color = body.color if body is not None else None
    return _detail(lambda: session_adapter.paint_cell(session_id, cell_id, color))


@router.post("/{session_id}/undo", response_model=SessionDetail)
async def undo(session_id: str) -> SessionDetail:
    return _detail(lambda: session_adapter.undo(session_id))


@router.post("/{session_id}/redo", response_model=SessionDetail)
async def redo(session_id: str) -> SessionDetail:
    return _detail(lambda: session_adapter.redo(session_id))


@router.get("/{session_id}/displacement", response_model=DisplacementResponse)
async def displacement(session_id: str, scale: Optional[float] = Query(default=None, ge=0.0, allow_inf_nan=False)) -> DisplacementResponse:
    try:
        data = session_adapter.displacement(session_id, scale)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found") from exc
    return DisplacementResponse(**data)
