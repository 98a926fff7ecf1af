"""Tests for JSON export."""

import json

from meshwarp_playground.editor import MeshEditor
from meshwarp_playground.export import DEFAULT_JSON_NAME, dumps_state, write_state
from meshwarp_playground.settings import EditorSettings


def _editor() -> MeshEditor:
    editor = MeshEditor(EditorSettings(base_cols=2, base_rows=1, rule_string=""))
    editor.commit_mask([(0, 0), (500, 0), (500, 500)])
    return editor


def test_write_state_round_trips_through_json(tmp_path) -> None:
    editor = _editor()
    out = write_state(editor.state, tmp_path / "nested" / "mesh.json")
    assert out.exists()
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data == editor.export_document()
    assert data["boundaryPoints"] == [{"x": 0.0, "y": 0.0}, {"x": 500.0, "y": 0.0}, {"x": 500.0, "y": 500.0}]
    assert len(data["vertices"]) == 3 * 2


def test_write_state_default_name(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    out = write_state(_editor().state)
    assert out.name == DEFAULT_JSON_NAME
    assert (tmp_path / DEFAULT_JSON_NAME).exists()


def test_dumps_state_is_indented() -> None:
    text = dumps_state(_editor().state)
    assert text.startswith("{\n  ")
    assert json.loads(text)["gridConfig"]["baseCols"] == 2
