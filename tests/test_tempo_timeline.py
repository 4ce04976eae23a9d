import logging

import pytest

import chart_models
from tempo_timeline import REFERENCE_BPM, TempoEvent, TempoTimeline

BASE_HEIGHT = 48.0


def build_timeline(events, beat_ceiling=64.0):
    return TempoTimeline(
        [TempoEvent(beat=beat, bpm=bpm) for beat, bpm in events],
        base_height=BASE_HEIGHT,
        beat_ceiling=beat_ceiling,
    )


def test_offsets_follow_tempo_segments():
    timeline = build_timeline([(0, 120), (8, 240)])

    assert timeline.beat_to_offset(8) == pytest.approx(8 * BASE_HEIGHT)
    assert timeline.beat_to_offset(12) == pytest.approx(8 * BASE_HEIGHT + 4 * BASE_HEIGHT / 2)


@pytest.mark.parametrize(
    "events",
    [
        [],
        [(0, 120)],
        [(0, 120), (8, 240)],
        [(0, 90), (3.5, 200), (10, 60), (31.25, 333)],
    ],
)
def test_offset_to_beat_inverts_beat_to_offset(events):
    timeline = build_timeline(events)
    beats = [index * 0.37 for index in range(0, 173)] + [8.0, 64.0]
    for beat in beats:
        assert timeline.offset_to_beat(timeline.beat_to_offset(beat)) == pytest.approx(beat, abs=1e-9)


def test_offsets_are_strictly_increasing():
    timeline = build_timeline([(0, 150), (4, 75), (9, 300)])
    offsets = [timeline.beat_to_offset(step / 4.0) for step in range(0, 64 * 4)]
    assert all(later > earlier for earlier, later in zip(offsets, offsets[1:]))


def test_implicit_reference_tempo_at_beat_zero():
    timeline = build_timeline([(4, 240)])

    assert timeline.events()[0] == TempoEvent(beat=0.0, bpm=REFERENCE_BPM)
    assert timeline.bpm_at(2) == REFERENCE_BPM
    assert timeline.beat_to_offset(4) == pytest.approx(4 * BASE_HEIGHT)


def test_duplicate_beats_keep_last_event():
    timeline = build_timeline([(0, 120), (8, 100), (8, 200)])

    assert [event.bpm for event in timeline.events()] == [120.0, 200.0]
    assert timeline.bpm_at(9) == 200.0


def test_invalid_events_are_dropped_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="tempo_timeline"):
        timeline = build_timeline([(0, 120), (4, -30), (-2, 100), (6, 0)])

    assert [event.beat for event in timeline.events()] == [0.0]
    assert "Dropping invalid tempo event" in caplog.text


def test_offset_to_beat_clamps_to_range():
    timeline = build_timeline([(0, 120)], beat_ceiling=16.0)

    assert timeline.offset_to_beat(-10.0) == 0.0
    assert timeline.offset_to_beat(timeline.total_height() + 500.0) == 16.0
    assert timeline.total_height() == pytest.approx(16 * BASE_HEIGHT)


def test_beat_to_seconds_uses_bpm_per_segment():
    timeline = build_timeline([(0, 120), (8, 240)])

    assert timeline.beat_to_seconds(8) == pytest.approx(4.0)
    assert timeline.beat_to_seconds(12) == pytest.approx(5.0)


def test_from_notes_reads_tempo_markers_only():
    notes = [
        chart_models.TapNote(beat=1.0, lane=0),
        chart_models.TempoMarker(beat=2.0, bpm=60.0),
    ]
    timeline = TempoTimeline.from_notes(notes, base_height=BASE_HEIGHT, beat_ceiling=32.0)

    assert [(event.beat, event.bpm) for event in timeline.events()] == [(0.0, 120.0), (2.0, 60.0)]


def test_base_height_must_be_positive():
    with pytest.raises(ValueError):
        TempoTimeline([], base_height=0.0, beat_ceiling=8.0)
