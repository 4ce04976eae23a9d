# -*- coding: utf-8 -*-
########################
# chart_models.py
########################
# Purpose:
# - Data models for editable charts: the closed set of note variants held by NoteStore.
# - Placement-time coordinates (beat, lane, sub beat) and the exact-match key derived from them.
#
# Design notes:
# - No Qt usage. Pure data definitions plus small pure helpers.
# - All note variants are frozen dataclasses. Transformations return new instances.
# - Sub beats only exist while placing. Coordinate.precise_beat folds them into the stored beat.
# - Every switch over note kind ends in assert_never so a new variant cannot fall through.
#
########################
# Interfaces:
# Public enums:
# - class Side(str, Enum): LEFT | RIGHT
# - class SlideKind(str, Enum): SLIDE | LONG
# - class ConnectionRole(enum.Enum): START | PATHWAY | END
# - class Tool(str, Enum): SELECT | TAP | FLICK | SKILL | DIRECTIONAL_LEFT | DIRECTIONAL_RIGHT | SLIDE | LONG | TEMPO
#
# Public dataclasses:
# - Coordinate(beat: float, lane: int, sub_beat: int = 0, division: int = 1)
# - TapNote(beat: float, lane: int, flick: bool = False, skill: bool = False)
# - DirectionalNote(beat: float, lane: int, side: Side, length: int = 1, flick: bool = False, skill: bool = False)
# - ConnectionPoint(beat: float, lane: int, hidden: bool = False, flick: bool = False, skill: bool = False)
# - SlideNote(connections: tuple[ConnectionPoint, ...], kind: SlideKind = SlideKind.SLIDE)
# - TempoMarker(beat: float, bpm: float)
#
# Public functions:
# - coordinate_key(beat: float, lane: int) -> tuple[float, int]
# - fold_beat(beat: float, sub_beat: int = 0, division: int = 1) -> float
# - note_beat(note) -> float
# - note_points(note) -> list[tuple[float, int]]
# - mirror_note(note, max_lane: int) -> ChartNote
# - shift_note(note, beat_delta: float, lane_delta: int) -> ChartNote
#
########################

from __future__ import annotations

from dataclasses import dataclass, replace
import enum
from typing import List, NoReturn, Sequence, Tuple, Union

BEAT_KEY_DECIMALS = 6
COMBO_LENGTHS = (1, 2, 3)


class Side(str, enum.Enum):
    LEFT = "Left"
    RIGHT = "Right"

    def mirrored(self) -> "Side":
        return Side.RIGHT if self == Side.LEFT else Side.LEFT


class SlideKind(str, enum.Enum):
    SLIDE = "Slide"
    LONG = "Long"


class ConnectionRole(enum.Enum):
    START = "start"
    PATHWAY = "pathway"
    END = "end"


class Tool(str, enum.Enum):
    SELECT = "select"
    TAP = "tap"
    FLICK = "flick"
    SKILL = "skill"
    DIRECTIONAL_LEFT = "directional_left"
    DIRECTIONAL_RIGHT = "directional_right"
    SLIDE = "slide"
    LONG = "long"
    TEMPO = "tempo"

    @property
    def is_directional(self) -> bool:
        return self in (Tool.DIRECTIONAL_LEFT, Tool.DIRECTIONAL_RIGHT)

    @property
    def is_slide(self) -> bool:
        return self in (Tool.SLIDE, Tool.LONG)


def fold_beat(beat: float, sub_beat: int = 0, division: int = 1) -> float:
    division_value = max(1, int(division))
    return float(beat) + (float(sub_beat) / float(division_value))


def coordinate_key(beat: float, lane: int) -> Tuple[float, int]:
    # Folded beats from the same subdivision can differ in the last bits.
    return (round(float(beat), BEAT_KEY_DECIMALS), int(lane))


@dataclass(frozen=True)
class Coordinate:
    beat: float
    lane: int
    sub_beat: int = 0
    division: int = 1

    @property
    def precise_beat(self) -> float:
        return fold_beat(self.beat, self.sub_beat, self.division)

    def key(self) -> Tuple[float, int]:
        return coordinate_key(self.precise_beat, self.lane)


@dataclass(frozen=True)
class TapNote:
    beat: float
    lane: int
    flick: bool = False
    skill: bool = False


@dataclass(frozen=True)
class DirectionalNote:
    beat: float
    lane: int
    side: Side
    length: int = 1
    flick: bool = False
    skill: bool = False

    def __post_init__(self) -> None:
        if int(self.length) not in COMBO_LENGTHS:
            raise ValueError(f"Directional length must be one of {COMBO_LENGTHS}, got {self.length}")


@dataclass(frozen=True)
class ConnectionPoint:
    beat: float
    lane: int
    hidden: bool = False
    flick: bool = False
    skill: bool = False


@dataclass(frozen=True)
class SlideNote:
    """A slide or long note drawn as a polyline of connection points.

    Connections are always held sorted ascending by beat (stable, so points sharing a beat keep
    their given order). The first point is the start, the last is the end and every point in
    between is a pathway point. Slide and Long differ only in how they are drawn and heard.
    """

    connections: Tuple[ConnectionPoint, ...]
    kind: SlideKind = SlideKind.SLIDE

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.connections, key=lambda point: float(point.beat)))
        if len(ordered) < 2:
            raise ValueError("A slide needs at least 2 connection points")
        object.__setattr__(self, "connections", ordered)

    @property
    def start(self) -> ConnectionPoint:
        return self.connections[0]

    @property
    def end(self) -> ConnectionPoint:
        return self.connections[-1]

    def connection_role(self, connection_index: int) -> ConnectionRole:
        if connection_index == 0:
            return ConnectionRole.START
        if connection_index == len(self.connections) - 1:
            return ConnectionRole.END
        return ConnectionRole.PATHWAY

    def with_connection(self, connection_index: int, connection: ConnectionPoint) -> "SlideNote":
        updated = list(self.connections)
        updated[connection_index] = connection
        return SlideNote(connections=tuple(updated), kind=self.kind)


@dataclass(frozen=True)
class TempoMarker:
    beat: float
    bpm: float


ChartNote = Union[TapNote, DirectionalNote, SlideNote, TempoMarker]


def assert_never(value: object) -> NoReturn:
    raise TypeError(f"Unhandled note variant: {type(value).__name__}")


def note_beat(note: ChartNote) -> float:
    if isinstance(note, (TapNote, DirectionalNote, TempoMarker)):
        return float(note.beat)
    if isinstance(note, SlideNote):
        return float(note.start.beat)
    assert_never(note)


def note_points(note: ChartNote) -> List[Tuple[float, int]]:
    """Every (beat, lane) cell a note occupies. Tempo markers occupy no lane."""
    if isinstance(note, (TapNote, DirectionalNote)):
        return [(float(note.beat), int(note.lane))]
    if isinstance(note, SlideNote):
        return [(float(point.beat), int(point.lane)) for point in note.connections]
    if isinstance(note, TempoMarker):
        return []
    assert_never(note)


def mirror_note(note: ChartNote, max_lane: int) -> ChartNote:
    if isinstance(note, TapNote):
        return replace(note, lane=int(max_lane) - int(note.lane))
    if isinstance(note, DirectionalNote):
        return replace(note, lane=int(max_lane) - int(note.lane), side=note.side.mirrored())
    if isinstance(note, SlideNote):
        mirrored = tuple(replace(point, lane=int(max_lane) - int(point.lane)) for point in note.connections)
        return SlideNote(connections=mirrored, kind=note.kind)
    if isinstance(note, TempoMarker):
        return note
    assert_never(note)


def shift_note(note: ChartNote, beat_delta: float, lane_delta: int) -> ChartNote:
    if isinstance(note, (TapNote, DirectionalNote)):
        return replace(note, beat=float(note.beat) + float(beat_delta), lane=int(note.lane) + int(lane_delta))
    if isinstance(note, SlideNote):
        shifted = tuple(
            replace(point, beat=float(point.beat) + float(beat_delta), lane=int(point.lane) + int(lane_delta))
            for point in note.connections
        )
        return SlideNote(connections=shifted, kind=note.kind)
    if isinstance(note, TempoMarker):
        return replace(note, beat=float(note.beat) + float(beat_delta))
    assert_never(note)


def make_slide(points: Sequence[Coordinate], kind: SlideKind = SlideKind.SLIDE) -> SlideNote:
    connections = tuple(ConnectionPoint(beat=point.precise_beat, lane=int(point.lane)) for point in points)
    return SlideNote(connections=connections, kind=kind)


def _run_unit_tests() -> None:
    point = Coordinate(beat=2, lane=3, sub_beat=1, division=4)
    assert point.precise_beat == 2.25
    assert point.key() == (2.25, 3)
    assert Coordinate(beat=0, lane=0, sub_beat=1, division=3).key() == coordinate_key(1.0 / 3.0, 0)

    slide = SlideNote(connections=(ConnectionPoint(beat=4.0, lane=1), ConnectionPoint(beat=1.0, lane=2)))
    assert slide.start.beat == 1.0 and slide.end.beat == 4.0
    assert slide.connection_role(0) == ConnectionRole.START

    mirrored = mirror_note(DirectionalNote(beat=1.0, lane=1, side=Side.LEFT), max_lane=6)
    assert isinstance(mirrored, DirectionalNote)
    assert mirrored.lane == 5 and mirrored.side == Side.RIGHT

    try:
        SlideNote(connections=(ConnectionPoint(beat=1.0, lane=1),))
    except ValueError:
        pass
    else:
        raise AssertionError("Expected ValueError for a one point slide")


if __name__ == "__main__":
    _run_unit_tests()
    print("chart_models.py: ok")
