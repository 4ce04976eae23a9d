# -*- coding: utf-8 -*-
########################
# tempo_timeline.py
########################
# Purpose:
# - Single source of truth for converting chart beats into vertical offsets and back.
# - Piecewise linear mapping driven by tempo markers: one beat is baseHeight * 120 / bpm tall.
#
# Design notes:
# - No Qt usage. Keep this module pure and deterministic.
# - The mapping is strictly increasing and continuous, so it is invertible.
# - Tempo events are sorted by beat and unique per beat (a later duplicate wins).
# - A chart without an event at beat 0 gets an implicit 120 bpm segment from beat 0.
# - Contract: offset_to_beat(beat_to_offset(b)) == b to floating point precision for b in [0, beat_ceiling].
#
########################
# Interfaces:
# Public dataclasses:
# - TempoEvent(beat: float, bpm: float)
#
# Public classes:
# - class TempoTimeline
#   - __init__(events: Iterable[TempoEvent], *, base_height: float, beat_ceiling: float)
#   - from_notes(notes: Iterable[ChartNote], *, base_height: float, beat_ceiling: float) -> TempoTimeline
#   - events() -> list[TempoEvent]
#   - bpm_at(beat: float) -> float
#   - beat_to_offset(beat: float) -> float
#   - offset_to_beat(offset: float) -> float
#   - total_height() -> float
#   - beat_to_seconds(beat: float) -> float
#
# Inputs:
# - Tempo markers from NoteStore, base beat height and beat ceiling from config.
#
# Outputs:
# - Offsets consumed by ChartGeometry (hit testing) and ChartCanvasWidget (painting).
#
########################

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Dict, Iterable, List

import chart_models

REFERENCE_BPM = 120.0

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TempoEvent:
    beat: float
    bpm: float


def _normalize_events(events: Iterable[TempoEvent]) -> List[TempoEvent]:
    by_beat: Dict[float, TempoEvent] = {}
    for event in events:
        beat = float(event.beat)
        bpm = float(event.bpm)
        if not (math.isfinite(beat) and math.isfinite(bpm)) or beat < 0.0 or bpm <= 0.0:
            logger.warning("Dropping invalid tempo event at beat %r with bpm %r", event.beat, event.bpm)
            continue
        by_beat[round(beat, chart_models.BEAT_KEY_DECIMALS)] = TempoEvent(beat=beat, bpm=bpm)

    ordered = sorted(by_beat.values(), key=lambda item: item.beat)
    if not ordered or ordered[0].beat > 0.0:
        ordered.insert(0, TempoEvent(beat=0.0, bpm=REFERENCE_BPM))
    return ordered


class TempoTimeline:
    def __init__(self, events: Iterable[TempoEvent], *, base_height: float, beat_ceiling: float) -> None:
        if float(base_height) <= 0.0:
            raise ValueError("base_height must be positive")
        self._base_height = float(base_height)
        self._beat_ceiling = max(0.0, float(beat_ceiling))
        self._events = _normalize_events(events)

    @classmethod
    def from_notes(
        cls,
        notes: Iterable[chart_models.ChartNote],
        *,
        base_height: float,
        beat_ceiling: float,
    ) -> "TempoTimeline":
        events = [
            TempoEvent(beat=float(note.beat), bpm=float(note.bpm))
            for note in notes
            if isinstance(note, chart_models.TempoMarker)
        ]
        return cls(events, base_height=base_height, beat_ceiling=beat_ceiling)

    def events(self) -> List[TempoEvent]:
        return list(self._events)

    @property
    def base_height(self) -> float:
        return self._base_height

    @property
    def beat_ceiling(self) -> float:
        return self._beat_ceiling

    def _per_beat_height(self, bpm: float) -> float:
        return self._base_height * REFERENCE_BPM / float(bpm)

    def _next_event_beat(self, index: int) -> float:
        if index + 1 < len(self._events):
            return float(self._events[index + 1].beat)
        return math.inf

    def bpm_at(self, beat: float) -> float:
        target = float(beat)
        active = self._events[0]
        for event in self._events:
            if event.beat > target:
                break
            active = event
        return float(active.bpm)

    def beat_to_offset(self, beat: float) -> float:
        target = float(beat)
        if target <= 0.0:
            return 0.0

        offset = 0.0
        for index, event in enumerate(self._events):
            if target <= event.beat:
                break
            next_beat = self._next_event_beat(index)
            segment_end = min(next_beat, target)
            offset += (segment_end - float(event.beat)) * self._per_beat_height(event.bpm)
            if target <= next_beat:
                break
        return offset

    def total_height(self) -> float:
        return self.beat_to_offset(self._beat_ceiling)

    def offset_to_beat(self, offset: float) -> float:
        remaining = float(offset)
        if remaining <= 0.0:
            return 0.0
        if remaining >= self.total_height():
            return self._beat_ceiling

        for index, event in enumerate(self._events):
            per_beat_height = self._per_beat_height(event.bpm)
            next_beat = self._next_event_beat(index)
            if math.isinf(next_beat):
                # Past the last event: extrapolate at that event's rate.
                return float(event.beat) + remaining / per_beat_height

            segment_height = (next_beat - float(event.beat)) * per_beat_height
            if remaining <= segment_height:
                return float(event.beat) + remaining / per_beat_height
            remaining -= segment_height

        return self._beat_ceiling

    def beat_to_seconds(self, beat: float) -> float:
        target = float(beat)
        if target <= 0.0:
            return 0.0

        seconds = 0.0
        for index, event in enumerate(self._events):
            if target <= event.beat:
                break
            next_beat = self._next_event_beat(index)
            segment_end = min(next_beat, target)
            seconds += (segment_end - float(event.beat)) * 60.0 / float(event.bpm)
            if target <= next_beat:
                break
        return seconds


def _run_unit_tests() -> None:
    timeline = TempoTimeline(
        [TempoEvent(beat=0.0, bpm=120.0), TempoEvent(beat=8.0, bpm=240.0)],
        base_height=10.0,
        beat_ceiling=64.0,
    )
    assert abs(timeline.beat_to_offset(8.0) - 80.0) < 1e-9
    assert abs(timeline.beat_to_offset(12.0) - (80.0 + 4.0 * 10.0 / 2.0)) < 1e-9
    for beat in (0.0, 0.5, 7.999, 8.0, 9.25, 63.0, 64.0):
        assert abs(timeline.offset_to_beat(timeline.beat_to_offset(beat)) - beat) < 1e-9

    empty = TempoTimeline([], base_height=10.0, beat_ceiling=16.0)
    assert empty.bpm_at(3.0) == 120.0
    assert abs(empty.beat_to_seconds(4.0) - 2.0) < 1e-9


if __name__ == "__main__":
    _run_unit_tests()
    print("tempo_timeline.py: ok")
