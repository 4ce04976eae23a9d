# -*- coding: utf-8 -*-
########################
# note_store.py
########################
# Purpose:
# - The ordered note collection of one chart and its structural invariants.
# - Exact coordinate lookups used by placement, selection and paste.
#
# Design notes:
# - No Qt usage. Pure editor logic.
# - NoteStore is an immutable value: every transformation returns a new store and never touches its input.
#   History snapshots can therefore share stores freely.
# - Order is insertion order, not beat order. sorted_by_beat() recomputes beat order on demand.
# - Coordinate lookups go through a map built once per store. The first note in collection order wins.
#
########################
# Interfaces:
# Public dataclasses:
# - NoteLocation(note_index: int, connection_index: Optional[int] = None)
#
# Public classes:
# - class NoteStore
#   - __init__(notes: Iterable[ChartNote] = ())
#   - notes() -> tuple[ChartNote, ...]
#   - add(note) -> NoteStore
#   - replace_at(index: int, note) -> NoteStore
#   - remove_indices(indices: Iterable[int]) -> NoteStore
#   - mirror_indices(indices: Iterable[int], *, max_lane: int) -> NoteStore
#   - extract(indices: Iterable[int]) -> list[ChartNote]
#   - paste(notes: Sequence[ChartNote], *, beat: float, lane: int, max_lane: int) -> NoteStore
#   - find_at(beat: float, lane: int) -> Optional[NoteLocation]
#   - find_lane_note_at(beat: float, lane: int) -> Optional[int]
#   - find_tempo_at(beat: float) -> Optional[int]
#   - sorted_by_beat() -> list[ChartNote]
#   - tempo_markers() -> list[TempoMarker]
#   - to_serializable() -> list[dict]
#   - from_serializable(data: Any, *, max_lane: int = 6) -> NoteStore
#   - validate(data: Any, *, max_lane: int = 6) -> chart_code.ValidationReport
#
# Inputs:
# - Notes from PlacementEngine, SlideMerger, chart code and the clipboard.
#
# Outputs:
# - Snapshots committed to HistoryManager and read by SelectionIndex and the canvas.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import chart_code
import chart_models


@dataclass(frozen=True)
class NoteLocation:
    note_index: int
    connection_index: Optional[int] = None


class NoteStore:
    def __init__(self, notes: Iterable[chart_models.ChartNote] = ()) -> None:
        self._notes: Tuple[chart_models.ChartNote, ...] = tuple(notes)
        self._occupancy: Optional[Dict[Tuple[float, int], NoteLocation]] = None
        self._lane_notes: Optional[Dict[Tuple[float, int], int]] = None
        self._tempo_beats: Optional[Dict[float, int]] = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def notes(self) -> Tuple[chart_models.ChartNote, ...]:
        return self._notes

    def __len__(self) -> int:
        return len(self._notes)

    def __iter__(self) -> Iterator[chart_models.ChartNote]:
        return iter(self._notes)

    def __getitem__(self, index: int) -> chart_models.ChartNote:
        return self._notes[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NoteStore):
            return NotImplemented
        return self._notes == other._notes

    def __hash__(self) -> int:
        return hash(self._notes)

    def __repr__(self) -> str:
        return f"NoteStore({len(self._notes)} notes)"

    def sorted_by_beat(self) -> List[chart_models.ChartNote]:
        return sorted(self._notes, key=chart_models.note_beat)

    def tempo_markers(self) -> List[chart_models.TempoMarker]:
        return [note for note in self._notes if isinstance(note, chart_models.TempoMarker)]

    # ------------------------------------------------------------------
    # Coordinate lookups
    # ------------------------------------------------------------------

    def _build_indexes(self) -> None:
        occupancy: Dict[Tuple[float, int], NoteLocation] = {}
        lane_notes: Dict[Tuple[float, int], int] = {}
        tempo_beats: Dict[float, int] = {}

        for note_index, note in enumerate(self._notes):
            if isinstance(note, (chart_models.TapNote, chart_models.DirectionalNote)):
                key = chart_models.coordinate_key(note.beat, note.lane)
                occupancy.setdefault(key, NoteLocation(note_index=note_index))
                lane_notes.setdefault(key, note_index)
            elif isinstance(note, chart_models.SlideNote):
                for connection_index, point in enumerate(note.connections):
                    key = chart_models.coordinate_key(point.beat, point.lane)
                    occupancy.setdefault(key, NoteLocation(note_index=note_index, connection_index=connection_index))
            elif isinstance(note, chart_models.TempoMarker):
                tempo_beats.setdefault(round(float(note.beat), chart_models.BEAT_KEY_DECIMALS), note_index)
            else:
                chart_models.assert_never(note)

        self._occupancy = occupancy
        self._lane_notes = lane_notes
        self._tempo_beats = tempo_beats

    def find_at(self, beat: float, lane: int) -> Optional[NoteLocation]:
        if self._occupancy is None:
            self._build_indexes()
        assert self._occupancy is not None
        return self._occupancy.get(chart_models.coordinate_key(beat, lane))

    def find_lane_note_at(self, beat: float, lane: int) -> Optional[int]:
        """Index of the tap or directional note at the exact coordinate, ignoring slides."""
        if self._lane_notes is None:
            self._build_indexes()
        assert self._lane_notes is not None
        return self._lane_notes.get(chart_models.coordinate_key(beat, lane))

    def find_tempo_at(self, beat: float) -> Optional[int]:
        if self._tempo_beats is None:
            self._build_indexes()
        assert self._tempo_beats is not None
        return self._tempo_beats.get(round(float(beat), chart_models.BEAT_KEY_DECIMALS))

    # ------------------------------------------------------------------
    # Transformations (each returns a new store)
    # ------------------------------------------------------------------

    def add(self, note: chart_models.ChartNote) -> "NoteStore":
        return NoteStore(self._notes + (note,))

    def replace_at(self, index: int, note: chart_models.ChartNote) -> "NoteStore":
        if index < 0 or index >= len(self._notes):
            raise IndexError(f"Note index out of range: {index}")
        updated = list(self._notes)
        updated[index] = note
        return NoteStore(updated)

    def remove_indices(self, indices: Iterable[int]) -> "NoteStore":
        removed = set(int(index) for index in indices)
        if not removed:
            return self
        return NoteStore(note for index, note in enumerate(self._notes) if index not in removed)

    def mirror_indices(self, indices: Iterable[int], *, max_lane: int) -> "NoteStore":
        targets = set(int(index) for index in indices)
        if not targets:
            return self
        return NoteStore(
            chart_models.mirror_note(note, max_lane) if index in targets else note
            for index, note in enumerate(self._notes)
        )

    def extract(self, indices: Iterable[int]) -> List[chart_models.ChartNote]:
        wanted = set(int(index) for index in indices)
        return [note for index, note in enumerate(self._notes) if index in wanted]

    def _insert_or_replace(self, note: chart_models.ChartNote) -> "NoteStore":
        if isinstance(note, (chart_models.TapNote, chart_models.DirectionalNote)):
            existing_index = self.find_lane_note_at(note.beat, note.lane)
            if existing_index is not None:
                return self.replace_at(existing_index, note)
        elif isinstance(note, chart_models.TempoMarker):
            existing_index = self.find_tempo_at(note.beat)
            if existing_index is not None:
                return self.replace_at(existing_index, note)
        return self.add(note)

    def paste(
        self,
        notes: Sequence[chart_models.ChartNote],
        *,
        beat: float,
        lane: int,
        max_lane: int,
    ) -> "NoteStore":
        """Paste clipboard notes so their earliest beat lands on beat and their lowest lane on lane.

        Notes that would leave the lane range after translation are dropped.
        """
        if not notes:
            return self

        anchor_beat = min(chart_models.note_beat(note) for note in notes)
        lanes = [point_lane for note in notes for _beat, point_lane in chart_models.note_points(note)]
        anchor_lane = min(lanes) if lanes else 0

        beat_delta = float(beat) - anchor_beat
        lane_delta = int(lane) - int(anchor_lane)

        store = self
        for note in notes:
            moved = chart_models.shift_note(note, beat_delta, lane_delta)
            points = chart_models.note_points(moved)
            if any(point_lane < 0 or point_lane > int(max_lane) for _beat, point_lane in points):
                continue
            if chart_models.note_beat(moved) < 0.0:
                continue
            store = store._insert_or_replace(moved)
        return store

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_serializable(self) -> List[Dict[str, Any]]:
        return chart_code.notes_to_chart_code(self._notes)

    @classmethod
    def from_serializable(cls, data: Any, *, max_lane: int = chart_code.DEFAULT_MAX_LANE) -> "NoteStore":
        report = chart_code.validate_chart_code(data, max_lane=max_lane)
        if not report.valid:
            raise chart_code.ChartCodeValidationError(report.errors)
        return cls(chart_code.chart_code_to_notes(data))

    @staticmethod
    def validate(data: Any, *, max_lane: int = chart_code.DEFAULT_MAX_LANE) -> chart_code.ValidationReport:
        return chart_code.validate_chart_code(data, max_lane=max_lane)


def _run_unit_tests() -> None:
    store = NoteStore()
    store = store.add(chart_models.TapNote(beat=1.0, lane=2))
    store = store.add(
        chart_models.SlideNote(
            connections=(chart_models.ConnectionPoint(beat=2.0, lane=0), chart_models.ConnectionPoint(beat=4.0, lane=1))
        )
    )
    assert store.find_at(1.0, 2) == NoteLocation(note_index=0)
    assert store.find_at(4.0, 1) == NoteLocation(note_index=1, connection_index=1)
    assert store.find_at(3.0, 1) is None

    trimmed = store.remove_indices([0])
    assert len(trimmed) == 1 and len(store) == 2

    pasted = store.paste(store.extract([0]), beat=8.0, lane=6, max_lane=6)
    assert len(pasted) == 3
    assert pasted.find_at(8.0, 6) == NoteLocation(note_index=2)


if __name__ == "__main__":
    _run_unit_tests()
    print("note_store.py: ok")
