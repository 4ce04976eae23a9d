import pytest

from chart_models import ConnectionPoint, DirectionalNote, Side, SlideNote, TapNote, TempoMarker
from note_store import NoteStore
from selection_index import ChartGeometry, SelectionIndex, SelectionState
from tempo_timeline import TempoTimeline

LANE_WIDTH = 80.0
BEAT_HEIGHT = 40.0


@pytest.fixture
def geometry():
    timeline = TempoTimeline([], base_height=BEAT_HEIGHT, beat_ceiling=32.0)
    return ChartGeometry(timeline, lanes_count=7, lane_width=LANE_WIDTH, division=4)


@pytest.fixture
def store():
    return NoteStore(
        [
            TapNote(beat=1.0, lane=0),
            DirectionalNote(beat=2.0, lane=3, side=Side.LEFT),
            SlideNote(
                connections=(
                    ConnectionPoint(beat=4.0, lane=5),
                    ConnectionPoint(beat=5.0, lane=5, hidden=True),
                    ConnectionPoint(beat=6.0, lane=6),
                )
            ),
            TempoMarker(beat=3.0, bpm=120.0),
        ]
    )


def test_pixel_snaps_to_nearest_sub_beat(geometry):
    coordinate = geometry.pixel_to_coordinate(170.0, 52.0)

    assert coordinate.lane == 2
    assert coordinate.precise_beat == pytest.approx(1.25)


@pytest.mark.parametrize("x, y", [(-1.0, 10.0), (7 * LANE_WIDTH, 10.0), (10.0, -5.0), (10.0, 33 * BEAT_HEIGHT)])
def test_out_of_range_pixels_give_none(geometry, x, y):
    assert geometry.pixel_to_coordinate(x, y) is None


def test_point_hit_on_lane_note_and_slide_point(geometry, store):
    index = SelectionIndex(geometry, store)

    assert index.hit_test_point(40.0, 1 * BEAT_HEIGHT) == 0
    assert index.hit_test_point(3.5 * LANE_WIDTH, 2 * BEAT_HEIGHT + 3.0) == 1
    assert index.hit_test_point(5.5 * LANE_WIDTH, 5 * BEAT_HEIGHT) == 2
    assert index.hit_test_point(1.5 * LANE_WIDTH, 1 * BEAT_HEIGHT) is None


def test_point_hit_falls_back_to_tempo_marker(geometry, store):
    index = SelectionIndex(geometry, store)

    assert index.hit_test_point(2.5 * LANE_WIDTH, 3 * BEAT_HEIGHT) == 3


def test_rect_hit_uses_rendered_centres(geometry, store):
    index = SelectionIndex(geometry, store)

    assert index.hit_test_rect(0.0, 0.0, 7 * LANE_WIDTH, 32 * BEAT_HEIGHT) == frozenset({0, 1, 2, 3})
    assert index.hit_test_rect(30.0, 30.0, 50.0, 50.0) == frozenset({0})
    assert index.hit_test_rect(4 * LANE_WIDTH, 4.5 * BEAT_HEIGHT, 7 * LANE_WIDTH, 5.5 * BEAT_HEIGHT) == frozenset()
    assert index.hit_test_rect(7 * LANE_WIDTH, 6.5 * BEAT_HEIGHT, 6 * LANE_WIDTH, 5.5 * BEAT_HEIGHT) == frozenset({2})


def test_click_selection_modes():
    selection = SelectionState().click(1, additive=False)
    assert selection.sorted_indices() == [1]

    selection = selection.click(4, additive=True)
    assert selection.sorted_indices() == [1, 4]

    selection = selection.click(1, additive=True)
    assert selection.sorted_indices() == [4]

    assert selection.click(None, additive=True) == selection
    assert len(selection.click(None, additive=False)) == 0
    assert selection.click(2, additive=False).sorted_indices() == [2]


def test_rect_selection_modes():
    selection = SelectionState(frozenset({1}))

    assert selection.apply_rect([2, 3], additive=True).sorted_indices() == [1, 2, 3]
    assert selection.apply_rect([2, 3], additive=False).sorted_indices() == [2, 3]
