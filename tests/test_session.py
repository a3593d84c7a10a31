"""Tests for reconciler wiring over the filesystem stores."""

from __future__ import annotations

from pathlib import Path

from timeline_sync.session import build_reconciler, status_snapshot
from timeline_sync.sync.models import Direction
from timeline_sync.sync.state import STATE_FILENAME


def _workspace(root: Path) -> None:
    notes = root / "notes"
    notes.mkdir()
    (notes / "Launch.md").write_text(
        "---\ndate: 2024-01-01\nendDate: 2024-03-01\nstatus: planned\n---\nBody\n",
        encoding="utf-8",
    )
    (notes / "Retro.md").write_text(
        "---\ndate: 2024-06-01\nendDate: 2024-06-01\n---\n", encoding="utf-8"
    )


class TestFullCycle:
    """End-to-end cycles against a temporary notes folder."""

    def test_first_cycle_writes_timeline_and_state(self, tmp_path: Path, make_config):
        _workspace(tmp_path)
        config = make_config(state_dir=".state")

        result = build_reconciler(config, tmp_path).run_cycle()

        assert result.wrote_timeline
        assert (tmp_path / "timeline.mw").read_text(encoding="utf-8") == (
            "2024-01-01 / 2024-03-01: [[Launch]] #planned\n2024-06-01: [[Retro]]"
        )
        assert (tmp_path / ".state" / STATE_FILENAME).exists()

    def test_timeline_edit_reaches_note(self, tmp_path: Path, make_config):
        _workspace(tmp_path)
        config = make_config(state_dir=".state")
        build_reconciler(config, tmp_path).run_cycle()

        (tmp_path / "timeline.mw").write_text(
            "2024-01-15 / 2024-03-01: [[Launch]] #active\n2024-06-01: [[Retro]]",
            encoding="utf-8",
        )
        # A fresh reconciler picks up the persisted baseline.
        result = build_reconciler(config, tmp_path).run_cycle()

        assert result.drift
        assert result.updated_entries == ["Launch"]
        note = (tmp_path / "notes" / "Launch.md").read_text(encoding="utf-8")
        assert "status: active" in note
        assert "2024-01-15" in note
        assert note.endswith("---\nBody\n")

    def test_to_timeline_after_note_edit(self, tmp_path: Path, make_config):
        _workspace(tmp_path)
        reconciler = build_reconciler(make_config(), tmp_path)
        reconciler.run_cycle()

        (tmp_path / "notes" / "Retro.md").write_text(
            "---\ndate: 2024-07-01\nendDate: 2024-07-02\n---\n", encoding="utf-8"
        )
        result = reconciler.run_cycle(Direction.TO_TIMELINE)

        assert result.wrote_timeline
        assert "2024-07-01 / 2024-07-02: [[Retro]]" in (
            tmp_path / "timeline.mw"
        ).read_text(encoding="utf-8")


class TestStatusSnapshot:
    def test_missing_timeline(self, tmp_path: Path, make_config):
        _workspace(tmp_path)
        status = status_snapshot(build_reconciler(make_config(), tmp_path))

        assert status["timeline_exists"] is False
        assert status["timeline_hash"] is None
        assert status["drift"] is False
        assert status["last_sync"] is None

    def test_after_cycle_and_edit(self, tmp_path: Path, make_config):
        _workspace(tmp_path)
        reconciler = build_reconciler(make_config(), tmp_path)
        reconciler.run_cycle()

        status = status_snapshot(reconciler)
        assert status["timeline_exists"] is True
        assert status["drift"] is False
        assert status["last_sync"] is not None
        assert len(status["timeline_hash"]) == 64

        (tmp_path / "timeline.mw").write_text("edited", encoding="utf-8")
        assert status_snapshot(reconciler)["drift"] is True
