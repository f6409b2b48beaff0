"""
Tests for the edit session use case.
"""
from __future__ import annotations

from unittest.mock import Mock

import numpy as np
import pytest

from studiokit.application.use_cases.edit_session import EditSession, prepare_source
from studiokit.domain.entities.edit_state import DEFAULT_STATE, EditState
from studiokit.domain.errors import LoadError, RenderError, SessionClosedError
from studiokit.domain.services.render_service import RenderService


class TestEditSession:
    """Test live/committed separation and history through the session."""

    def test_begin_renders_default_state(self, gradient_rgb):
        session = EditSession()
        preview = session.begin(gradient_rgb)

        assert session.is_open
        assert preview.state == DEFAULT_STATE
        assert preview.is_live is False
        assert (preview.width, preview.height) == (6, 4)
        assert session.history == (DEFAULT_STATE,)
        assert session.cursor == 0

    @pytest.mark.parametrize(
        "bad",
        [
            np.zeros((0, 10, 3), dtype=np.float32),
            np.zeros((10, 0), dtype=np.float32),
            np.zeros((4, 4, 2), dtype=np.float32),
            np.zeros(5, dtype=np.float32),
            np.array([["a", "b"]]),
            np.full((2, 2, 3), np.nan, dtype=np.float32),
            None,
        ],
    )
    def test_begin_rejects_unusable_rasters(self, bad):
        session = EditSession()
        with pytest.raises(LoadError):
            session.begin(bad)
        assert not session.is_open

    def test_uint8_source_is_normalized(self):
        src = np.full((2, 3, 3), 255, dtype=np.uint8)
        prepared = prepare_source(src)
        assert prepared.dtype == np.float32
        assert np.allclose(prepared, 1.0)
        assert not prepared.flags.writeable

    def test_live_update_does_not_touch_history(self, gradient_rgb):
        session = EditSession()
        begin_preview = session.begin(gradient_rgb)

        preview = session.live_update({"brightness": 120})

        assert preview.is_live
        assert preview.state.brightness == 120
        assert session.effective_state.brightness == 120
        assert session.history == (DEFAULT_STATE,)
        assert session.cursor == 0
        assert not np.array_equal(begin_preview.image, preview.image)
        assert session.preview is preview

    def test_undo_discards_uncommitted_live_state(self, gradient_rgb):
        session = EditSession()
        session.begin(gradient_rgb)
        session.commit_current({"contrast": 80})
        session.live_update({"brightness": 120})

        preview = session.undo()

        assert session.live_state is None
        assert preview.state == DEFAULT_STATE
        assert session.effective_state == DEFAULT_STATE

    def test_live_update_clamps(self, gradient_rgb):
        session = EditSession()
        session.begin(gradient_rgb)
        assert session.live_update({"saturation": 500}).state.saturation == 200

    @pytest.mark.parametrize(
        "value, expected",
        [(10**400, 200), (np.float32(500), 200), (np.int64(-3), 0)],
    )
    def test_live_update_clamps_oversized_and_numpy_numbers(self, gradient_rgb, value, expected):
        session = EditSession()
        session.begin(gradient_rgb)
        assert session.live_update({"saturation": value}).state.saturation == expected
        assert session.is_open

    def test_live_updates_overlay_the_committed_snapshot(self, gradient_rgb):
        session = EditSession()
        session.begin(gradient_rgb)
        session.live_update({"brightness": 120})
        preview = session.live_update({"contrast": 90})
        # the second drag starts again from history[cursor]
        assert preview.state == EditState(contrast=90)

    def test_commit_merges_onto_committed_not_live(self, gradient_rgb):
        session = EditSession()
        session.begin(gradient_rgb)
        session.live_update({"brightness": 140})

        preview = session.commit_current({"contrast": 80})

        assert preview.state == EditState(contrast=80)
        assert session.history == (DEFAULT_STATE, EditState(contrast=80))
        assert session.live_state is None
        assert not preview.is_live

    def test_undo_redo_inverse_law(self, gradient_rgb):
        session = EditSession()
        session.begin(gradient_rgb)
        s1 = session.commit_current({"filter_preset": "sepia"}).state
        s2 = session.commit_current({"crop_ratio": "1:1"}).state

        assert session.undo().state == s1
        assert session.redo().state == s2

    def test_commit_after_undo_truncates(self, gradient_rgb):
        session = EditSession()
        session.begin(gradient_rgb)
        for value in (60, 70, 80, 90, 110):
            session.commit_current({"brightness": value})
        session.undo()
        session.undo()
        session.commit_current({"saturation": 0})

        assert [s.brightness for s in session.history] == [100, 60, 70, 80, 80]
        assert session.history[-1].saturation == 0
        assert not session.can_redo
        assert session.redo().state == session.history[-1]

    def test_rotate_accumulates_quarter_turns(self, gradient_rgb):
        session = EditSession()
        session.begin(gradient_rgb)
        for _ in range(5):
            preview = session.rotate()
        assert preview.state.rotation_degrees == 450
        assert (preview.width, preview.height) == (4, 6)
        assert len(session.history) == 6

    def test_export_ignores_live_state(self, gradient_rgb):
        plain = EditSession()
        plain.begin(gradient_rgb)
        plain.commit_current({"filter_preset": "warm"})
        expected = plain.export_current()

        dragging = EditSession()
        dragging.begin(gradient_rgb)
        dragging.commit_current({"filter_preset": "warm"})
        dragging.live_update({"brightness": 150})
        data = dragging.export_current()

        assert data[:2] == b"\xff\xd8"
        assert data == expected
        # export does not replace the live preview
        assert dragging.preview.is_live

    def test_source_array_is_never_mutated(self, gradient_rgb):
        before = gradient_rgb.copy()
        session = EditSession()
        session.begin(gradient_rgb)
        session.commit_current({"filter_preset": "invert", "brightness": 150})
        session.export_current()
        assert np.array_equal(gradient_rgb, before)
        assert gradient_rgb.flags.writeable

    def test_closed_session_rejects_edits(self, gradient_rgb):
        session = EditSession()
        with pytest.raises(SessionClosedError):
            session.undo()

        session.begin(gradient_rgb)
        session.live_update({"brightness": 120})
        session.close()
        session.close()  # idempotent

        assert not session.is_open
        assert session.live_state is None
        with pytest.raises(SessionClosedError):
            session.live_update({"brightness": 130})
        with pytest.raises(SessionClosedError):
            session.export_current()

    def test_reopen_resets_history(self, gradient_rgb):
        session = EditSession()
        session.begin(gradient_rgb)
        session.commit_current({"brightness": 60})
        session.begin(gradient_rgb)
        assert session.history == (DEFAULT_STATE,)
        assert session.cursor == 0

    def test_render_failure_closes_session(self, gradient_rgb):
        renderer = Mock(spec=RenderService)
        renderer.render.side_effect = [
            np.zeros((4, 6, 4), dtype=np.float32),
            RenderError("boom"),
        ]
        session = EditSession(renderer=renderer)
        session.begin(gradient_rgb)

        with pytest.raises(RenderError, match="boom"):
            session.commit_current({"brightness": 120})
        assert not session.is_open

    def test_invalid_preset_changes_nothing(self, gradient_rgb):
        from studiokit.domain.errors import EditValidationError

        session = EditSession()
        first = session.begin(gradient_rgb)
        with pytest.raises(EditValidationError):
            session.commit_current({"filter_preset": "lomo"})
        assert session.history == (DEFAULT_STATE,)
        assert session.preview is first
