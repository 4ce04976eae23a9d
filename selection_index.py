# -*- coding: utf-8 -*-
########################
# selection_index.py
########################
# Purpose:
# - Map chart pixel coordinates to (beat, lane) and back.
# - Hit test notes by point and by rectangle, and track which notes are selected.
#
# Design notes:
# - No Qt usage. Chart pixel space: x grows across lanes from 0, y equals the timeline offset.
#   The canvas widget owns the conversion from widget pixels (scrolling, flipped y axis).
# - Point hits use the same exact coordinate rule as PlacementEngine (NoteStore.find_at).
# - Rectangle hits: tap/directional by rendered centre, slides by any non-hidden connection centre,
#   tempo markers by their centre on the left timeline edge (x = 0).
# - Selection mode (exclusive or additive) is a flag supplied by the caller.
#
########################
# Interfaces:
# Public dataclasses:
# - SelectionState(indices: frozenset[int])
#   - click(hit: Optional[int], *, additive: bool) -> SelectionState
#   - apply_rect(hits: Iterable[int], *, additive: bool) -> SelectionState
#
# Public classes:
# - class ChartGeometry
#   - __init__(timeline: TempoTimeline, *, lanes_count: int, lane_width: float, division: int)
#   - pixel_to_coordinate(x: float, y: float) -> Optional[Coordinate]
#   - point_center(beat: float, lane: int) -> tuple[float, float]
#   - tempo_center(beat: float) -> tuple[float, float]
# - class SelectionIndex
#   - __init__(geometry: ChartGeometry, store: NoteStore)
#   - hit_test_point(x: float, y: float) -> Optional[int]
#   - hit_test_rect(x0: float, y0: float, x1: float, y1: float) -> frozenset[int]
#
########################

from __future__ import annotations

from dataclasses import dataclass, field
import math
from typing import FrozenSet, Iterable, List, Optional, Tuple

import chart_models
from note_store import NoteStore
from tempo_timeline import TempoTimeline


class ChartGeometry:
    def __init__(self, timeline: TempoTimeline, *, lanes_count: int, lane_width: float, division: int) -> None:
        self._timeline = timeline
        self._lanes_count = max(1, int(lanes_count))
        self._lane_width = float(lane_width)
        self._division = max(1, int(division))

    @property
    def timeline(self) -> TempoTimeline:
        return self._timeline

    @property
    def lanes_count(self) -> int:
        return self._lanes_count

    @property
    def max_lane(self) -> int:
        return self._lanes_count - 1

    @property
    def lane_width(self) -> float:
        return self._lane_width

    @property
    def division(self) -> int:
        return self._division

    @property
    def width(self) -> float:
        return self._lane_width * self._lanes_count

    def pixel_to_coordinate(self, x: float, y: float) -> Optional[chart_models.Coordinate]:
        """Snap a chart pixel to the nearest sub beat of its lane. Out of range input gives None."""
        x_value = float(x)
        y_value = float(y)
        if not (math.isfinite(x_value) and math.isfinite(y_value)):
            return None
        if x_value < 0.0 or x_value >= self.width:
            return None
        if y_value < 0.0 or y_value > self._timeline.total_height():
            return None

        lane = int(x_value // self._lane_width)
        raw_beat = self._timeline.offset_to_beat(y_value)
        steps = int(round(raw_beat * self._division))
        if float(steps) / float(self._division) > self._timeline.beat_ceiling:
            steps -= 1
        whole_beat, sub_beat = divmod(steps, self._division)
        return chart_models.Coordinate(beat=float(whole_beat), lane=lane, sub_beat=int(sub_beat), division=self._division)

    def point_center(self, beat: float, lane: int) -> Tuple[float, float]:
        x = (float(lane) + 0.5) * self._lane_width
        return x, self._timeline.beat_to_offset(beat)

    def tempo_center(self, beat: float) -> Tuple[float, float]:
        return 0.0, self._timeline.beat_to_offset(beat)

    def note_centers(self, note: chart_models.ChartNote) -> List[Tuple[float, float]]:
        """Rendered centres that count for selection."""
        if isinstance(note, (chart_models.TapNote, chart_models.DirectionalNote)):
            return [self.point_center(note.beat, note.lane)]
        if isinstance(note, chart_models.SlideNote):
            return [self.point_center(point.beat, point.lane) for point in note.connections if not point.hidden]
        if isinstance(note, chart_models.TempoMarker):
            return [self.tempo_center(note.beat)]
        chart_models.assert_never(note)


class SelectionIndex:
    def __init__(self, geometry: ChartGeometry, store: NoteStore) -> None:
        self._geometry = geometry
        self._store = store

    def hit_test_point(self, x: float, y: float) -> Optional[int]:
        coordinate = self._geometry.pixel_to_coordinate(x, y)
        if coordinate is None:
            return None
        location = self._store.find_at(coordinate.precise_beat, coordinate.lane)
        if location is not None:
            return location.note_index
        return self._store.find_tempo_at(coordinate.precise_beat)

    def hit_test_rect(self, x0: float, y0: float, x1: float, y1: float) -> FrozenSet[int]:
        left, right = sorted((float(x0), float(x1)))
        bottom, top = sorted((float(y0), float(y1)))

        def inside(center: Tuple[float, float]) -> bool:
            return left <= center[0] <= right and bottom <= center[1] <= top

        hits = set()
        for note_index, note in enumerate(self._store):
            if any(inside(center) for center in self._geometry.note_centers(note)):
                hits.add(note_index)
        return frozenset(hits)


@dataclass(frozen=True)
class SelectionState:
    indices: FrozenSet[int] = field(default_factory=frozenset)

    def __contains__(self, note_index: object) -> bool:
        return note_index in self.indices

    def __len__(self) -> int:
        return len(self.indices)

    def sorted_indices(self) -> List[int]:
        return sorted(self.indices)

    def click(self, hit: Optional[int], *, additive: bool) -> "SelectionState":
        if hit is None:
            return self if additive else SelectionState()
        if not additive:
            return SelectionState(frozenset({int(hit)}))
        if hit in self.indices:
            return SelectionState(self.indices - {int(hit)})
        return SelectionState(self.indices | {int(hit)})

    def apply_rect(self, hits: Iterable[int], *, additive: bool) -> "SelectionState":
        hit_set = frozenset(int(index) for index in hits)
        if additive:
            return SelectionState(self.indices | hit_set)
        return SelectionState(hit_set)


def _run_unit_tests() -> None:
    timeline = TempoTimeline([], base_height=40.0, beat_ceiling=32.0)
    geometry = ChartGeometry(timeline, lanes_count=7, lane_width=80.0, division=4)
    coordinate = geometry.pixel_to_coordinate(170.0, 50.0)
    assert coordinate is not None
    assert coordinate.lane == 2 and coordinate.precise_beat == 1.25
    assert geometry.pixel_to_coordinate(-1.0, 10.0) is None

    store = NoteStore([chart_models.TapNote(beat=1.25, lane=2)])
    index = SelectionIndex(geometry, store)
    assert index.hit_test_point(170.0, 50.0) == 0
    assert index.hit_test_rect(0.0, 0.0, 560.0, 100.0) == frozenset({0})

    selection = SelectionState().click(0, additive=True)
    assert 0 in selection
    assert len(selection.click(0, additive=True)) == 0
    assert len(selection.click(None, additive=True)) == 1


if __name__ == "__main__":
    _run_unit_tests()
    print("selection_index.py: ok")
