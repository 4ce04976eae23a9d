import json

import pytest

from chart_models import ConnectionPoint, DirectionalNote, Side, SlideKind, SlideNote, TapNote, TempoMarker, Tool
from config import AppConfig, EditorConfig
from editor_session import EditorSession, PointerModifiers

LANE_WIDTH = 80.0
BEAT_HEIGHT = 48.0

ADDITIVE = PointerModifiers(additive=True)


def pixel(beat, lane):
    """Chart pixel at the centre of a lane for a chart without tempo changes."""
    return (lane + 0.5) * LANE_WIDTH, beat * BEAT_HEIGHT


def click(session, beat, lane, modifiers=None):
    x, y = pixel(beat, lane)
    result = session.on_pointer_down(x, y, modifiers)
    session.on_pointer_up(x, y, modifiers)
    return result


@pytest.fixture
def session():
    return EditorSession(AppConfig())


@pytest.fixture
def populated():
    return EditorSession(
        AppConfig(),
        notes=[
            TapNote(beat=1.0, lane=0),
            TapNote(beat=2.0, lane=3),
            TapNote(beat=5.0, lane=1),
        ],
    )


def test_each_placement_is_one_commit(session):
    session.set_tool(Tool.TAP)

    click(session, 1, 2)
    click(session, 1, 2)

    assert session.store.notes() == (TapNote(beat=1.0, lane=2),)
    assert len(session.history) == 2


def test_sub_beat_placement(session):
    session.set_tool(Tool.FLICK)

    click(session, 1.25, 4)

    assert session.store.notes() == (TapNote(beat=1.25, lane=4, flick=True),)


def test_out_of_range_pointer_is_ignored(session):
    result = session.on_pointer_down(-20.0, 10.0)

    assert not result.status.in_range
    assert len(session.store) == 0
    assert len(session.history) == 1


def test_pointer_status_reports_beat_lane_and_seconds(session):
    x, y = pixel(2, 3)

    status = session.on_pointer_move(x, y).status

    assert (status.beat, status.lane) == (2.0, 3)
    assert status.seconds == pytest.approx(1.0)
    assert "lane 3" in status.text()


def test_directional_combo_through_session(session):
    session.set_tool(Tool.DIRECTIONAL_LEFT)
    click(session, 3, 1)
    click(session, 3, 1)
    session.set_tool(Tool.DIRECTIONAL_RIGHT)
    click(session, 3, 1)

    assert session.store.notes() == (DirectionalNote(beat=3.0, lane=1, side=Side.RIGHT, length=1),)


def test_slide_tool_buffers_first_point(session):
    session.set_tool(Tool.SLIDE)

    click(session, 1, 1)
    assert session.pending_slide_point is not None
    assert len(session.store) == 0

    click(session, 4, 2)
    assert session.pending_slide_point is None
    assert session.store.notes() == (
        SlideNote(connections=(ConnectionPoint(beat=1.0, lane=1), ConnectionPoint(beat=4.0, lane=2))),
    )


def test_tool_change_discards_pending_slide_point(session):
    session.set_tool(Tool.SLIDE)
    click(session, 1, 1)

    session.set_tool(Tool.LONG)
    assert session.pending_slide_point is None

    click(session, 2, 2)
    click(session, 3, 2)
    assert session.store.notes() == (
        SlideNote(
            connections=(ConnectionPoint(beat=2.0, lane=2), ConnectionPoint(beat=3.0, lane=2)),
            kind=SlideKind.LONG,
        ),
    )


def test_slides_drawn_end_to_start_merge(session):
    session.set_tool(Tool.SLIDE)
    click(session, 1, 1)
    click(session, 4, 2)
    click(session, 4, 2)
    click(session, 6, 2)

    assert len(session.store) == 1
    merged = session.store[0]
    assert [(point.beat, point.lane) for point in merged.connections] == [(1.0, 1), (4.0, 2), (6.0, 2)]
    assert len(session.history) == 3


def test_same_point_twice_commits_nothing(session):
    session.set_tool(Tool.SLIDE)
    click(session, 2, 2)
    click(session, 2, 2)

    assert len(session.store) == 0
    assert len(session.history) == 1


def test_tempo_tool_uses_pending_bpm(session):
    session.set_tempo_bpm(240)
    session.set_tool(Tool.TEMPO)

    click(session, 8, 0)

    assert session.store.notes() == (TempoMarker(beat=8.0, bpm=240.0),)
    assert session.timeline().beat_to_offset(12) == pytest.approx(8 * BEAT_HEIGHT + 4 * BEAT_HEIGHT / 2)


def test_tempo_bpm_must_be_positive(session):
    with pytest.raises(ValueError):
        session.set_tempo_bpm(0)
    assert session.tempo_bpm == 120.0


def test_select_click_and_additive_toggle(populated):
    populated.set_tool(Tool.SELECT)

    click(populated, 1, 0)
    assert populated.selection.sorted_indices() == [0]

    click(populated, 2, 3, ADDITIVE)
    assert populated.selection.sorted_indices() == [0, 1]

    click(populated, 1, 0, ADDITIVE)
    assert populated.selection.sorted_indices() == [1]


def test_rubber_band_selection(populated):
    populated.set_tool(Tool.SELECT)

    populated.on_pointer_down(10.0, 10.0)
    populated.on_pointer_move(300.0, 100.0)
    assert populated.rubber_band == (10.0, 10.0, 300.0, 100.0)
    populated.on_pointer_up(560.0, 3 * BEAT_HEIGHT)

    assert populated.selection.sorted_indices() == [0, 1]
    assert populated.rubber_band is None


def test_click_on_empty_space_clears_selection(populated):
    populated.set_tool(Tool.SELECT)
    populated.select_all()

    click(populated, 10, 6)

    assert len(populated.selection) == 0


def test_copy_then_paste_at_anchor(populated):
    populated.set_tool(Tool.SELECT)
    click(populated, 1, 0)

    assert populated.copy() == 1
    assert populated.paste(4.0, 3)

    assert populated.store[-1] == TapNote(beat=4.0, lane=3)
    assert len(populated.history) == 2


def test_paste_with_empty_clipboard_does_nothing(populated):
    assert not populated.paste(4.0, 3)
    assert len(populated.history) == 1


def test_cut_removes_and_clears_selection(populated):
    populated.set_tool(Tool.SELECT)
    click(populated, 2, 3)

    assert populated.cut() == 1

    assert TapNote(beat=2.0, lane=3) not in populated.store.notes()
    assert len(populated.selection) == 0
    assert populated.clipboard == [TapNote(beat=2.0, lane=3)]


def test_delete_and_mirror_selected(populated):
    populated.set_tool(Tool.SELECT)
    click(populated, 1, 0)

    assert populated.mirror_selected()
    assert populated.store[0] == TapNote(beat=1.0, lane=6)
    assert populated.selection.sorted_indices() == [0]

    assert populated.delete_selected()
    assert len(populated.store) == 2
    assert len(populated.selection) == 0


def test_undo_undo_redo(session):
    session.set_tool(Tool.TAP)
    click(session, 1, 0)
    click(session, 2, 0)
    second = session.store
    click(session, 3, 0)

    session.undo()
    session.undo()

    assert session.redo() == second


def test_undo_clears_selection(populated):
    populated.set_tool(Tool.SELECT)
    populated.select_all()
    populated.mirror_selected()

    populated.undo()

    assert len(populated.selection) == 0
    assert populated.store[0] == TapNote(beat=1.0, lane=0)


def test_apply_invalid_chart_code_keeps_store(populated):
    before = populated.store

    broken = populated.apply_chart_code("[{")
    invalid = populated.apply_chart_code(json.dumps([{"beat": 1, "lane": 10, "type": "Single"}, {"type": "BPM"}]))

    assert not broken.ok and len(broken.errors) == 1
    assert not invalid.ok and len(invalid.errors) == 3
    assert populated.store == before
    assert len(populated.history) == 1


def test_apply_chart_code_commits_and_can_be_undone(populated):
    before = populated.store

    result = populated.apply_chart_code(json.dumps([{"beat": 7, "lane": 2, "type": "Single", "skill": True}]))

    assert result.ok and result.errors == []
    assert populated.store.notes() == (TapNote(beat=7.0, lane=2, skill=True),)
    assert populated.undo() == before


def test_chart_code_text_round_trips(populated):
    text = populated.chart_code_text()

    fresh = EditorSession()
    assert fresh.apply_chart_code(text).ok
    assert fresh.store == populated.store


def test_load_notes_resets_history(populated):
    populated.set_tool(Tool.TAP)
    click(populated, 9, 0)

    populated.load_notes([TapNote(beat=0.0, lane=0)])

    assert len(populated.history) == 1
    assert populated.store.notes() == (TapNote(beat=0.0, lane=0),)


def test_history_limit_comes_from_config():
    session = EditorSession(AppConfig(editor=EditorConfig(history_limit=2)))
    session.set_tool(Tool.TAP)
    for beat in range(1, 5):
        click(session, beat, 0)

    assert len(session.history) == 2


def test_snap_division_switch_reaches_triplets(session):
    session.set_tool(Tool.TAP)
    click(session, 1.0 / 3.0, 2)
    assert session.store[0].beat == pytest.approx(0.25)

    session.set_snap_division(3)
    click(session, 1.0 / 3.0, 2)

    assert session.snap_division == 3
    assert session.store[-1].beat == pytest.approx(1.0 / 3.0)
    assert session.store[-1].lane == 2

    session.set_tool(Tool.SELECT)
    click(session, 1.0 / 3.0, 2)
    assert session.selection.sorted_indices() == [1]


def test_snap_division_change_discards_pending_slide_point(session):
    session.set_tool(Tool.SLIDE)
    click(session, 1, 1)

    session.set_snap_division(8)

    assert session.pending_slide_point is None
    assert session.tool == Tool.SLIDE


def test_unsupported_snap_division_is_rejected(session):
    with pytest.raises(ValueError, match="snap division"):
        session.set_snap_division(5)
    assert session.snap_division == 4
