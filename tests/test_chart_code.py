import json

import pytest

import chart_code
import chart_models
from chart_models import ConnectionPoint, DirectionalNote, Side, SlideKind, SlideNote, TapNote, TempoMarker


def test_four_invalid_records_give_four_errors():
    report = chart_code.validate_chart_code(
        [
            {"beat": 0, "type": "BPM", "bpm": -1},
            {"beat": 1, "lane": 10, "type": "Single"},
            {"beat": 2, "lane": 1, "type": "Directional", "direction": "Up", "width": 1},
            {"beat": 3, "lane": 1, "type": "Directional", "direction": "Left", "width": 5},
        ]
    )

    assert report.valid is False
    assert len(report.errors) == 4


def test_valid_records_pass():
    report = chart_code.validate_chart_code(
        [
            {"beat": 0, "type": "BPM", "bpm": 150},
            {"beat": 1.5, "lane": 6, "type": "Single", "flick": True},
            {"beat": 2, "lane": 0, "type": "Directional", "direction": "Right", "width": 3},
            {"type": "Slide", "connections": [{"beat": 3, "lane": 1}, {"beat": 4, "lane": 2, "hidden": False}]},
        ]
    )

    assert report.valid
    assert report.errors == []


@pytest.mark.parametrize(
    "records, fragment",
    [
        ({"type": "Single"}, "must be a list"),
        ([42], "must be an object"),
        ([{"beat": 1, "lane": 1}], "missing type"),
        ([{"beat": 1, "lane": 1, "type": "Hold"}], "unknown type"),
        ([{"beat": -1, "lane": 1, "type": "Single"}], "beat must be a non-negative number"),
        ([{"beat": 1, "lane": 1.5, "type": "Single"}], "lane must be an integer"),
        ([{"beat": 1, "lane": 1, "type": "Single", "flick": "yes"}], "flick must be true or false"),
        ([{"type": "Slide", "connections": [{"beat": 1, "lane": 1}]}], "at least 2 points"),
    ],
)
def test_single_violation_is_reported(records, fragment):
    report = chart_code.validate_chart_code(records)

    assert not report.valid
    assert len(report.errors) == 1
    assert fragment in report.errors[0]


def test_max_lane_is_configurable():
    records = [{"beat": 1, "lane": 8, "type": "Single"}]

    assert not chart_code.validate_chart_code(records).valid
    assert chart_code.validate_chart_code(records, max_lane=8).valid


def test_round_trip_reproduces_notes():
    notes = [
        TempoMarker(beat=0.0, bpm=120.0),
        TapNote(beat=1.0, lane=2),
        TapNote(beat=1.25, lane=3, skill=True),
        DirectionalNote(beat=2.0, lane=4, side=Side.LEFT, length=2, flick=True),
        SlideNote(
            connections=(
                ConnectionPoint(beat=3.0, lane=1, skill=True),
                ConnectionPoint(beat=3.5, lane=2, hidden=True),
                ConnectionPoint(beat=4.0, lane=2, flick=True),
            )
        ),
    ]

    restored = chart_code.load_chart_code(chart_code.dumps_chart_code(notes))

    assert restored == notes


def test_long_notes_normalize_to_slide():
    long_note = SlideNote(
        connections=(ConnectionPoint(beat=1.0, lane=0), ConnectionPoint(beat=2.0, lane=0)),
        kind=SlideKind.LONG,
    )

    records = chart_code.notes_to_chart_code([long_note])
    restored = chart_code.chart_code_to_notes(records)

    assert records[0]["type"] == "Slide"
    assert restored == [SlideNote(connections=long_note.connections, kind=SlideKind.SLIDE)]


def test_records_are_written_in_beat_order_with_clean_numbers():
    notes = [TapNote(beat=4.0, lane=1), TapNote(beat=0.5, lane=2, flick=True)]

    records = chart_code.notes_to_chart_code(notes)

    assert records == [
        {"beat": 0.5, "lane": 2, "type": "Single", "flick": True},
        {"beat": 4, "lane": 1, "type": "Single"},
    ]


def test_duplicate_bpm_records_keep_last():
    notes = chart_code.chart_code_to_notes(
        [
            {"beat": 4, "type": "BPM", "bpm": 100},
            {"beat": 1, "lane": 0, "type": "Single"},
            {"beat": 4, "type": "BPM", "bpm": 180},
        ]
    )

    assert notes == [TempoMarker(beat=4.0, bpm=180.0), TapNote(beat=1.0, lane=0)]


def test_slide_connections_are_sorted_on_load():
    text = json.dumps([{"type": "Slide", "connections": [{"beat": 5, "lane": 1}, {"beat": 2, "lane": 3}]}])

    slide = chart_code.load_chart_code(text)[0]

    assert isinstance(slide, chart_models.SlideNote)
    assert [(point.beat, point.lane) for point in slide.connections] == [(2.0, 3), (5.0, 1)]


def test_malformed_json_raises_parse_error():
    with pytest.raises(chart_code.ChartCodeParseError):
        chart_code.load_chart_code('[{"beat": 1,')


def test_invalid_chart_raises_validation_error_with_all_errors():
    text = json.dumps([{"beat": 0, "type": "BPM", "bpm": 0}, {"beat": 1, "lane": 99, "type": "Single"}])

    with pytest.raises(chart_code.ChartCodeValidationError) as raised:
        chart_code.load_chart_code(text)

    assert len(raised.value.errors) == 2


def test_chart_file_round_trip(tmp_path):
    chart_path = tmp_path / "charts" / "song.json"
    notes = [TempoMarker(beat=0.0, bpm=140.0), TapNote(beat=2.0, lane=5)]

    chart_code.write_chart_file(chart_path, notes)

    assert chart_code.read_chart_file(chart_path) == notes


def test_missing_chart_file_raises_parse_error(tmp_path):
    with pytest.raises(chart_code.ChartCodeParseError):
        chart_code.read_chart_file(tmp_path / "missing.json")
