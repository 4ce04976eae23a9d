# -*- coding: utf-8 -*-
########################
# chart_code.py
########################
# Purpose:
# - Read, write and validate "chart code", the human editable JSON form of a chart.
# - Convert between chart code records and the in-memory chart_models note variants.
#
# Design notes:
# - No Qt usage. Pure parsing and serialization.
# - Chart code is a list of tagged records: BPM, Single, Directional, Slide.
#   - Directional side/length are written as direction/width.
#   - Long notes are written as Slide. This normalization is lossy by design.
# - validate_chart_code never raises and reports every violation, one string per problem.
# - Parsing must never silently accept invalid charts: load_chart_code refuses on any violation.
#
########################
# Interfaces:
# Public exceptions:
# - class ChartCodeError(Exception)
# - class ChartCodeParseError(ChartCodeError)
# - class ChartCodeValidationError(ChartCodeError)  # .errors: list[str]
#
# Public dataclasses:
# - ValidationReport(valid: bool, errors: list[str])
#
# Public functions:
# - notes_to_chart_code(notes: Iterable[ChartNote]) -> list[dict]
# - chart_code_to_notes(records: Sequence[dict]) -> list[ChartNote]
# - validate_chart_code(records: Any, *, max_lane: int = 6) -> ValidationReport
# - dumps_chart_code(notes: Iterable[ChartNote]) -> str
# - parse_chart_code_json(text: str) -> Any
# - load_chart_code(text: str, *, max_lane: int = 6) -> list[ChartNote]
# - read_chart_file(path: pathlib.Path, *, max_lane: int = 6) -> list[ChartNote]
# - write_chart_file(path: pathlib.Path, notes: Iterable[ChartNote]) -> None
#
# Inputs:
# - Chart code text from files, the clipboard or the chart code editor.
#
# Outputs:
# - Note lists for NoteStore, JSON text for display and storage.
#
########################

from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence

import chart_models

DEFAULT_MAX_LANE = 6
DIRECTIONS = ("Left", "Right")

logger = logging.getLogger(__name__)


class ChartCodeError(Exception):
    """Base error for chart code parsing and validation."""


class ChartCodeParseError(ChartCodeError):
    """Raised when text cannot be parsed as chart code JSON."""


class ChartCodeValidationError(ChartCodeError):
    """Raised when chart code parses but violates the chart rules."""

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors = list(errors)
        summary = "; ".join(self.errors[:3])
        if len(self.errors) > 3:
            summary += f" (and {len(self.errors) - 3} more)"
        super().__init__(f"Chart code has {len(self.errors)} error(s): {summary}")


@dataclass(frozen=True)
class ValidationReport:
    valid: bool
    errors: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Model -> chart code
# ---------------------------------------------------------------------------


def _point_record(beat: float, lane: int) -> Dict[str, Any]:
    return {"beat": _clean_number(beat), "lane": int(lane)}


def _clean_number(value: float) -> Any:
    number = float(value)
    if number.is_integer():
        return int(number)
    return number


def _note_to_record(note: chart_models.ChartNote) -> Dict[str, Any]:
    if isinstance(note, chart_models.TempoMarker):
        return {"beat": _clean_number(note.beat), "type": "BPM", "bpm": _clean_number(note.bpm)}

    if isinstance(note, chart_models.TapNote):
        record = _point_record(note.beat, note.lane)
        record["type"] = "Single"
        if note.flick:
            record["flick"] = True
        if note.skill:
            record["skill"] = True
        return record

    if isinstance(note, chart_models.DirectionalNote):
        record = _point_record(note.beat, note.lane)
        record["type"] = "Directional"
        record["direction"] = note.side.value
        record["width"] = int(note.length)
        if note.flick:
            record["flick"] = True
        if note.skill:
            record["skill"] = True
        return record

    if isinstance(note, chart_models.SlideNote):
        connections: List[Dict[str, Any]] = []
        for point in note.connections:
            connection_record = _point_record(point.beat, point.lane)
            if point.hidden:
                connection_record["hidden"] = True
            if point.flick:
                connection_record["flick"] = True
            if point.skill:
                connection_record["skill"] = True
            connections.append(connection_record)
        return {"type": "Slide", "connections": connections}

    chart_models.assert_never(note)


def _record_beat(record: Dict[str, Any]) -> float:
    if record.get("type") == "Slide":
        connections = record.get("connections") or []
        return float(connections[0]["beat"]) if connections else 0.0
    return float(record.get("beat", 0.0))


def notes_to_chart_code(notes: Iterable[chart_models.ChartNote]) -> List[Dict[str, Any]]:
    records = [_note_to_record(note) for note in notes]
    records.sort(key=_record_beat)
    return records


# ---------------------------------------------------------------------------
# Chart code -> model
# ---------------------------------------------------------------------------


def _record_to_note(record: Dict[str, Any]) -> chart_models.ChartNote:
    record_type = record.get("type")

    if record_type == "BPM":
        return chart_models.TempoMarker(beat=float(record["beat"]), bpm=float(record["bpm"]))

    if record_type == "Single":
        return chart_models.TapNote(
            beat=float(record["beat"]),
            lane=int(record["lane"]),
            flick=bool(record.get("flick", False)),
            skill=bool(record.get("skill", False)),
        )

    if record_type == "Directional":
        return chart_models.DirectionalNote(
            beat=float(record["beat"]),
            lane=int(record["lane"]),
            side=chart_models.Side(record["direction"]),
            length=int(record["width"]),
            flick=bool(record.get("flick", False)),
            skill=bool(record.get("skill", False)),
        )

    if record_type == "Slide":
        connections = tuple(
            chart_models.ConnectionPoint(
                beat=float(item["beat"]),
                lane=int(item["lane"]),
                hidden=bool(item.get("hidden", False)),
                flick=bool(item.get("flick", False)),
                skill=bool(item.get("skill", False)),
            )
            for item in record["connections"]
        )
        return chart_models.SlideNote(connections=connections, kind=chart_models.SlideKind.SLIDE)

    raise ChartCodeValidationError([f"Unknown record type {record_type!r}"])


def chart_code_to_notes(records: Sequence[Dict[str, Any]]) -> List[chart_models.ChartNote]:
    """Convert validated records. Tempo records sharing a beat collapse and the last one wins."""
    notes: List[chart_models.ChartNote] = []
    tempo_positions: Dict[float, int] = {}
    for record in records:
        note = _record_to_note(record)
        if isinstance(note, chart_models.TempoMarker):
            beat_key = round(float(note.beat), chart_models.BEAT_KEY_DECIMALS)
            existing_position = tempo_positions.get(beat_key)
            if existing_position is not None:
                notes[existing_position] = note
                continue
            tempo_positions[beat_key] = len(notes)
        notes.append(note)
    return notes


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) and math.isfinite(float(value))


def _is_lane(value: Any, max_lane: int) -> bool:
    if not _is_number(value) or not float(value).is_integer():
        return False
    return 0 <= int(value) <= int(max_lane)


def _check_beat(value: Any, label: str, errors: List[str]) -> None:
    if not _is_number(value) or float(value) < 0.0:
        errors.append(f"{label}: beat must be a non-negative number")


def _check_lane(value: Any, label: str, max_lane: int, errors: List[str]) -> None:
    if not _is_lane(value, max_lane):
        errors.append(f"{label}: lane must be an integer in 0-{int(max_lane)}")


def _check_flags(record: Dict[str, Any], names: Sequence[str], label: str, errors: List[str]) -> None:
    for name in names:
        if name in record and record[name] is not None and not isinstance(record[name], bool):
            errors.append(f"{label}: {name} must be true or false")


def validate_chart_code(records: Any, *, max_lane: int = DEFAULT_MAX_LANE) -> ValidationReport:
    errors: List[str] = []

    if not isinstance(records, list):
        errors.append("Chart code must be a list of records")
        return ValidationReport(valid=False, errors=errors)

    for index, record in enumerate(records):
        if not isinstance(record, dict):
            errors.append(f"Record {index}: must be an object")
            continue

        record_type = record.get("type")
        if not record_type:
            errors.append(f"Record {index}: missing type field")
            continue

        if record_type == "BPM":
            label = f"BPM record {index}"
            _check_beat(record.get("beat"), label, errors)
            bpm = record.get("bpm")
            if not _is_number(bpm) or float(bpm) <= 0.0:
                errors.append(f"{label}: bpm must be a positive number")

        elif record_type == "Single":
            label = f"Single record {index}"
            _check_beat(record.get("beat"), label, errors)
            _check_lane(record.get("lane"), label, max_lane, errors)
            _check_flags(record, ("flick", "skill"), label, errors)

        elif record_type == "Directional":
            label = f"Directional record {index}"
            _check_beat(record.get("beat"), label, errors)
            _check_lane(record.get("lane"), label, max_lane, errors)
            if record.get("direction") not in DIRECTIONS:
                errors.append(f"{label}: direction must be Left or Right")
            width = record.get("width")
            if not _is_number(width) or not float(width).is_integer() or int(width) not in chart_models.COMBO_LENGTHS:
                errors.append(f"{label}: width must be 1, 2 or 3")
            _check_flags(record, ("flick", "skill"), label, errors)

        elif record_type == "Slide":
            label = f"Slide record {index}"
            connections = record.get("connections")
            if not isinstance(connections, list) or len(connections) < 2:
                errors.append(f"{label}: connections must be a list with at least 2 points")
                continue
            for connection_index, connection in enumerate(connections):
                connection_label = f"{label} connection {connection_index}"
                if not isinstance(connection, dict):
                    errors.append(f"{connection_label}: must be an object")
                    continue
                _check_beat(connection.get("beat"), connection_label, errors)
                _check_lane(connection.get("lane"), connection_label, max_lane, errors)
                _check_flags(connection, ("hidden", "flick", "skill"), connection_label, errors)

        else:
            errors.append(f"Record {index}: unknown type {record_type!r}")

    return ValidationReport(valid=not errors, errors=errors)


# ---------------------------------------------------------------------------
# Text and file boundary
# ---------------------------------------------------------------------------


def dumps_chart_code(notes: Iterable[chart_models.ChartNote]) -> str:
    return json.dumps(notes_to_chart_code(notes), ensure_ascii=False, indent=4)


def parse_chart_code_json(text: str) -> Any:
    try:
        return json.loads(text or "")
    except json.JSONDecodeError as exception:
        raise ChartCodeParseError(
            f"Chart code is not valid JSON (line {exception.lineno}, column {exception.colno}): {exception.msg}"
        ) from exception


def load_chart_code(text: str, *, max_lane: int = DEFAULT_MAX_LANE) -> List[chart_models.ChartNote]:
    records = parse_chart_code_json(text)
    report = validate_chart_code(records, max_lane=max_lane)
    if not report.valid:
        logger.info("Rejected chart code with %d error(s)", len(report.errors))
        raise ChartCodeValidationError(report.errors)
    return chart_code_to_notes(records)


def read_chart_file(path: Path, *, max_lane: int = DEFAULT_MAX_LANE) -> List[chart_models.ChartNote]:
    chart_path = Path(path)
    try:
        raw_text = chart_path.read_text(encoding="utf-8")
    except OSError as exception:
        raise ChartCodeParseError(f"Failed to read chart file: {chart_path}. Error: {exception}") from exception
    return load_chart_code(raw_text, max_lane=max_lane)


def write_chart_file(path: Path, notes: Iterable[chart_models.ChartNote]) -> None:
    chart_path = Path(path)
    chart_path.parent.mkdir(parents=True, exist_ok=True)
    chart_path.write_text(dumps_chart_code(notes) + "\n", encoding="utf-8")
    logger.info("Wrote chart file %s", chart_path)


def _run_unit_tests() -> None:
    report = validate_chart_code(
        [
            {"beat": 0, "type": "BPM", "bpm": -1},
            {"beat": 1, "lane": 10, "type": "Single"},
            {"beat": 2, "lane": 1, "type": "Directional", "direction": "Up", "width": 1},
            {"beat": 3, "lane": 1, "type": "Directional", "direction": "Left", "width": 5},
        ]
    )
    assert not report.valid
    assert len(report.errors) == 4

    text = '[{"type": "Slide", "connections": [{"beat": 2, "lane": 1}, {"beat": 1, "lane": 1, "flick": true}]}]'
    notes = load_chart_code(text)
    slide = notes[0]
    assert isinstance(slide, chart_models.SlideNote)
    assert slide.start.beat == 1.0 and slide.start.flick

    try:
        parse_chart_code_json("[{")
    except ChartCodeParseError:
        pass
    else:
        raise AssertionError("Expected ChartCodeParseError for malformed JSON")


if __name__ == "__main__":
    _run_unit_tests()
    print("chart_code.py: ok")
