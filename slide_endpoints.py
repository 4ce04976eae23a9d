# -*- coding: utf-8 -*-
########################
# slide_endpoints.py
########################
# Purpose:
# - Index slide/long start and end points by coordinate.
# - Join a freshly drawn two point slide onto an existing slide when their endpoints coincide.
#
########################
# Key Logic:
# - SlideEndpointIndex is a value rebuilt from the current NoteStore before every use.
#   There is no shared module level index, so it can never be stale.
# - Slide connections are kept sorted, so the start is connection 0 and the end is the last connection.
# - SlideMerger.combine orders the two drawn points by beat (on a tie the second click is the start)
#   and then checks, in this priority:
#   1. an existing END at the new start   -> old end becomes a pathway point, new end is appended
#   2. an existing START at the new end   -> old start becomes a pathway point, new start is prepended
#   3. an existing END at the new end, or an existing START at the new start
#                                          -> two independent slides, nothing merges
#   4. otherwise                           -> no relation, nothing merges
#   Rule 1 runs before rule 3 so that a valid chain is never mistaken for an end to end collision.
#
########################
# Interfaces:
# Public enums:
# - class MergeOutcome(enum.Enum)
#
# Public dataclasses:
# - SlideEndpoint(note_index: int, connection_index: int, beat: float, lane: int, is_start: bool)
# - SlideCombination(store: NoteStore, combined: bool, outcome: MergeOutcome, message: str)
#
# Public classes:
# - class SlideEndpointIndex
#   - build(store: NoteStore) -> SlideEndpointIndex
#   - find_start_point(beat: float, lane: int) -> Optional[SlideEndpoint]
#   - find_end_point(beat: float, lane: int) -> Optional[SlideEndpoint]
#   - find_endpoint(beat: float, lane: int) -> Optional[SlideEndpoint]
# - class SlideMerger
#   - combine(store, point_a: Coordinate, point_b: Coordinate) -> SlideCombination
#   - draw(store, point_a: Coordinate, point_b: Coordinate, kind: SlideKind) -> SlideCombination
#
########################

from __future__ import annotations

from dataclasses import dataclass
import enum
import logging
from typing import Dict, List, Optional, Tuple

import chart_models
from note_store import NoteStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlideEndpoint:
    note_index: int
    connection_index: int
    beat: float
    lane: int
    is_start: bool


class SlideEndpointIndex:
    def __init__(
        self,
        start_points: Dict[Tuple[float, int], SlideEndpoint],
        end_points: Dict[Tuple[float, int], SlideEndpoint],
    ) -> None:
        self._start_points = dict(start_points)
        self._end_points = dict(end_points)

    @classmethod
    def build(cls, store: NoteStore) -> "SlideEndpointIndex":
        start_points: Dict[Tuple[float, int], SlideEndpoint] = {}
        end_points: Dict[Tuple[float, int], SlideEndpoint] = {}

        for note_index, note in enumerate(store):
            if not isinstance(note, chart_models.SlideNote):
                continue
            last_index = len(note.connections) - 1
            start = note.start
            end = note.end
            start_points.setdefault(
                chart_models.coordinate_key(start.beat, start.lane),
                SlideEndpoint(note_index, 0, float(start.beat), int(start.lane), True),
            )
            end_points.setdefault(
                chart_models.coordinate_key(end.beat, end.lane),
                SlideEndpoint(note_index, last_index, float(end.beat), int(end.lane), False),
            )

        return cls(start_points, end_points)

    def find_start_point(self, beat: float, lane: int) -> Optional[SlideEndpoint]:
        return self._start_points.get(chart_models.coordinate_key(beat, lane))

    def find_end_point(self, beat: float, lane: int) -> Optional[SlideEndpoint]:
        return self._end_points.get(chart_models.coordinate_key(beat, lane))

    def find_endpoint(self, beat: float, lane: int) -> Optional[SlideEndpoint]:
        return self.find_start_point(beat, lane) or self.find_end_point(beat, lane)

    def all_start_points(self) -> List[SlideEndpoint]:
        return list(self._start_points.values())

    def all_end_points(self) -> List[SlideEndpoint]:
        return list(self._end_points.values())


class MergeOutcome(enum.Enum):
    APPENDED_TO_END = "appended_to_end"
    PREPENDED_TO_START = "prepended_to_start"
    INDEPENDENT_ENDPOINT = "independent_endpoint"
    NO_RELATION = "no_relation"
    IGNORED = "ignored"


@dataclass(frozen=True)
class SlideCombination:
    store: NoteStore
    combined: bool
    outcome: MergeOutcome
    message: str = ""


def _order_points(
    point_a: chart_models.Coordinate,
    point_b: chart_models.Coordinate,
) -> Tuple[chart_models.Coordinate, chart_models.Coordinate]:
    if point_a.precise_beat < point_b.precise_beat:
        return point_a, point_b
    # Later beat first, or a tie: the second click becomes the start.
    return point_b, point_a


def _as_pathway(point: chart_models.ConnectionPoint) -> chart_models.ConnectionPoint:
    return chart_models.ConnectionPoint(beat=point.beat, lane=point.lane, hidden=point.hidden)


class SlideMerger:
    def combine(
        self,
        store: NoteStore,
        point_a: chart_models.Coordinate,
        point_b: chart_models.Coordinate,
    ) -> SlideCombination:
        if point_a.key() == point_b.key():
            return SlideCombination(store, False, MergeOutcome.IGNORED, "Both slide points are the same coordinate")

        new_start, new_end = _order_points(point_a, point_b)
        index = SlideEndpointIndex.build(store)

        existing_end = index.find_end_point(new_start.precise_beat, new_start.lane)
        if existing_end is not None:
            slide = store[existing_end.note_index]
            assert isinstance(slide, chart_models.SlideNote)
            connections = list(slide.connections)
            connections[existing_end.connection_index] = _as_pathway(connections[existing_end.connection_index])
            connections.append(chart_models.ConnectionPoint(beat=new_end.precise_beat, lane=int(new_end.lane)))
            merged = chart_models.SlideNote(connections=tuple(connections), kind=slide.kind)
            logger.debug("Appended slide point to slide %d", existing_end.note_index)
            return SlideCombination(
                store.replace_at(existing_end.note_index, merged),
                True,
                MergeOutcome.APPENDED_TO_END,
                "Existing end meets new start: slides merged",
            )

        existing_start = index.find_start_point(new_end.precise_beat, new_end.lane)
        if existing_start is not None:
            slide = store[existing_start.note_index]
            assert isinstance(slide, chart_models.SlideNote)
            connections = list(slide.connections)
            connections[existing_start.connection_index] = _as_pathway(connections[existing_start.connection_index])
            connections.insert(0, chart_models.ConnectionPoint(beat=new_start.precise_beat, lane=int(new_start.lane)))
            merged = chart_models.SlideNote(connections=tuple(connections), kind=slide.kind)
            logger.debug("Prepended slide point to slide %d", existing_start.note_index)
            return SlideCombination(
                store.replace_at(existing_start.note_index, merged),
                True,
                MergeOutcome.PREPENDED_TO_START,
                "Existing start meets new end: slides merged",
            )

        if index.find_end_point(new_end.precise_beat, new_end.lane) is not None:
            return SlideCombination(store, False, MergeOutcome.INDEPENDENT_ENDPOINT, "End meets end: independent slides")

        if index.find_start_point(new_start.precise_beat, new_start.lane) is not None:
            return SlideCombination(
                store, False, MergeOutcome.INDEPENDENT_ENDPOINT, "Start meets start: independent slides"
            )

        return SlideCombination(store, False, MergeOutcome.NO_RELATION, "No slide to merge with")

    def draw(
        self,
        store: NoteStore,
        point_a: chart_models.Coordinate,
        point_b: chart_models.Coordinate,
        kind: chart_models.SlideKind = chart_models.SlideKind.SLIDE,
    ) -> SlideCombination:
        """Merge the drawn segment into a neighbour, or add it as a new two point slide."""
        result = self.combine(store, point_a, point_b)
        if result.combined or result.outcome == MergeOutcome.IGNORED:
            return result

        new_start, new_end = _order_points(point_a, point_b)
        slide = chart_models.make_slide([new_start, new_end], kind=kind)
        return SlideCombination(result.store.add(slide), False, result.outcome, result.message)


def _run_unit_tests() -> None:
    store = NoteStore(
        [
            chart_models.SlideNote(
                connections=(chart_models.ConnectionPoint(beat=1.0, lane=1), chart_models.ConnectionPoint(beat=4.0, lane=2))
            )
        ]
    )
    index = SlideEndpointIndex.build(store)
    assert index.find_start_point(1.0, 1) is not None
    assert index.find_end_point(4.0, 2) is not None
    assert index.find_end_point(1.0, 1) is None

    merger = SlideMerger()
    result = merger.combine(
        store,
        chart_models.Coordinate(beat=6, lane=2),
        chart_models.Coordinate(beat=4, lane=2),
    )
    assert result.combined and result.outcome == MergeOutcome.APPENDED_TO_END
    merged = result.store[0]
    assert isinstance(merged, chart_models.SlideNote)
    assert [(point.beat, point.lane) for point in merged.connections] == [(1.0, 1), (4.0, 2), (6.0, 2)]
    assert len(result.store) == 1


if __name__ == "__main__":
    _run_unit_tests()
    print("slide_endpoints.py: ok")
