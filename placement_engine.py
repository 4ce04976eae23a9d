# -*- coding: utf-8 -*-
########################
# placement_engine.py
########################
# Purpose:
# - Decide what a single placement click does to the chart: insert, replace, mutate or ignore.
# - Implements the note replacement rules keyed by the occupant's role and the incoming tool.
#
# Design notes:
# - No Qt usage. Pure editor logic.
# - Lookup is by exact coordinate against tap/directional notes and every slide connection point.
#   The first note in collection order that occupies the coordinate is the occupant.
# - Ignored outcomes are defined no-ops, not errors: the input store is returned unchanged.
# - Directional notes never attach to slides.
#
# Replacement rules (occupant x tool -> effect):
# - none                     x tap/flick/skill/directional -> insert
# - tap                      x tap                         -> replace with plain tap
# - tap                      x flick / skill               -> set that style, clear the other
# - tap                      x directional                 -> directional, length 1
# - directional (same side)  x same side                   -> length 1 -> 2 -> 3 -> 1
# - directional (side A)     x side B                      -> directional side B, length 1
# - directional              x tap/flick/skill             -> plain or styled tap
# - slide start/pathway      x tap / flick                 -> ignored
# - slide end (styled)       x tap                         -> clear style
# - slide end                x flick                       -> set flick, clear skill
# - slide start/end          x skill                       -> set skill, clear flick
# - slide pathway            x skill                       -> ignored
# - slide any point          x directional                 -> ignored
#
########################
# Interfaces:
# Public enums:
# - class PlacementOutcome(enum.Enum): INSERTED | REPLACED | MUTATED | IGNORED
#
# Public dataclasses:
# - PlacementResult(store: NoteStore, outcome: PlacementOutcome, message: str)
#
# Public classes:
# - class PlacementEngine
#   - __init__(division: int = 1)
#   - place(store, tool, beat, lane, sub_beat=0) -> PlacementResult
#   - place_tempo(store, beat, bpm, sub_beat=0) -> PlacementResult
#
########################

from __future__ import annotations

from dataclasses import dataclass, replace
import enum
import logging
from typing import Union

import chart_models
from chart_models import ConnectionRole, Tool
from note_store import NoteLocation, NoteStore

logger = logging.getLogger(__name__)

POINT_TOOLS = (Tool.TAP, Tool.FLICK, Tool.SKILL, Tool.DIRECTIONAL_LEFT, Tool.DIRECTIONAL_RIGHT)


class PlacementOutcome(enum.Enum):
    INSERTED = "inserted"
    REPLACED = "replaced"
    MUTATED = "mutated"
    IGNORED = "ignored"


@dataclass(frozen=True)
class PlacementResult:
    store: NoteStore
    outcome: PlacementOutcome
    message: str = ""

    @property
    def changed(self) -> bool:
        return self.outcome != PlacementOutcome.IGNORED


def _side_for_tool(tool: Tool) -> chart_models.Side:
    return chart_models.Side.LEFT if tool == Tool.DIRECTIONAL_LEFT else chart_models.Side.RIGHT


def _tap_for_tool(tool: Tool, beat: float, lane: int) -> chart_models.TapNote:
    return chart_models.TapNote(beat=beat, lane=lane, flick=tool == Tool.FLICK, skill=tool == Tool.SKILL)


def _next_combo_length(length: int) -> int:
    return int(length) + 1 if int(length) < 3 else 1


class PlacementEngine:
    def __init__(self, division: int = 1) -> None:
        self._division = max(1, int(division))

    @property
    def division(self) -> int:
        return self._division

    def place(
        self,
        store: NoteStore,
        tool: Union[Tool, str],
        beat: float,
        lane: int,
        sub_beat: int = 0,
    ) -> PlacementResult:
        tool = Tool(tool)
        if tool not in POINT_TOOLS:
            return PlacementResult(store, PlacementOutcome.IGNORED, f"Tool {tool.value} does not place point notes")

        precise_beat = chart_models.fold_beat(beat, sub_beat, self._division)
        lane = int(lane)
        location = store.find_at(precise_beat, lane)

        if location is None:
            result = self._insert(store, tool, precise_beat, lane)
        else:
            occupant = store[location.note_index]
            if isinstance(occupant, chart_models.SlideNote):
                result = self._place_on_slide(store, location, occupant, tool)
            elif isinstance(occupant, (chart_models.TapNote, chart_models.DirectionalNote)):
                result = self._place_on_lane_note(store, location.note_index, occupant, tool)
            elif isinstance(occupant, chart_models.TempoMarker):
                result = PlacementResult(store, PlacementOutcome.IGNORED, "Tempo markers occupy no lane")
            else:
                chart_models.assert_never(occupant)

        logger.debug("place %s at beat=%s lane=%s -> %s (%s)", tool.value, precise_beat, lane, result.outcome.value, result.message)
        return result

    def place_tempo(self, store: NoteStore, beat: float, bpm: float, sub_beat: int = 0) -> PlacementResult:
        bpm_value = float(bpm)
        if bpm_value <= 0.0:
            return PlacementResult(store, PlacementOutcome.IGNORED, "bpm must be positive")

        precise_beat = chart_models.fold_beat(beat, sub_beat, self._division)
        marker = chart_models.TempoMarker(beat=precise_beat, bpm=bpm_value)
        existing_index = store.find_tempo_at(precise_beat)
        if existing_index is None:
            return PlacementResult(store.add(marker), PlacementOutcome.INSERTED, "Added tempo marker")

        existing = store[existing_index]
        if isinstance(existing, chart_models.TempoMarker) and float(existing.bpm) == bpm_value:
            return PlacementResult(store, PlacementOutcome.IGNORED, "Tempo marker already has this bpm")
        return PlacementResult(store.replace_at(existing_index, marker), PlacementOutcome.MUTATED, "Overwrote tempo bpm")

    # ------------------------------------------------------------------
    # Rule branches
    # ------------------------------------------------------------------

    def _insert(self, store: NoteStore, tool: Tool, beat: float, lane: int) -> PlacementResult:
        if tool.is_directional:
            note: chart_models.ChartNote = chart_models.DirectionalNote(
                beat=beat, lane=lane, side=_side_for_tool(tool), length=1
            )
        else:
            note = _tap_for_tool(tool, beat, lane)
        return PlacementResult(store.add(note), PlacementOutcome.INSERTED, "Added new note")

    def _place_on_lane_note(
        self,
        store: NoteStore,
        note_index: int,
        occupant: Union[chart_models.TapNote, chart_models.DirectionalNote],
        tool: Tool,
    ) -> PlacementResult:
        beat = float(occupant.beat)
        lane = int(occupant.lane)

        if tool.is_directional:
            side = _side_for_tool(tool)
            if isinstance(occupant, chart_models.DirectionalNote) and occupant.side == side:
                updated = replace(occupant, length=_next_combo_length(occupant.length))
                return PlacementResult(
                    store.replace_at(note_index, updated),
                    PlacementOutcome.MUTATED,
                    f"Directional combo length {occupant.length} -> {updated.length}",
                )
            directional = chart_models.DirectionalNote(beat=beat, lane=lane, side=side, length=1)
            return PlacementResult(store.replace_at(note_index, directional), PlacementOutcome.REPLACED, "Replaced with directional")

        tap = _tap_for_tool(tool, beat, lane)
        if isinstance(occupant, chart_models.TapNote) and tool != Tool.TAP:
            return PlacementResult(store.replace_at(note_index, tap), PlacementOutcome.MUTATED, f"Applied {tool.value} style")
        return PlacementResult(store.replace_at(note_index, tap), PlacementOutcome.REPLACED, "Replaced with tap")

    def _place_on_slide(
        self,
        store: NoteStore,
        location: NoteLocation,
        slide: chart_models.SlideNote,
        tool: Tool,
    ) -> PlacementResult:
        assert location.connection_index is not None
        connection_index = location.connection_index
        role = slide.connection_role(connection_index)
        point = slide.connections[connection_index]

        def mutate(updated_point: chart_models.ConnectionPoint, message: str) -> PlacementResult:
            updated_slide = slide.with_connection(connection_index, updated_point)
            return PlacementResult(store.replace_at(location.note_index, updated_slide), PlacementOutcome.MUTATED, message)

        if tool.is_directional:
            return PlacementResult(store, PlacementOutcome.IGNORED, "Directional notes never attach to slides")

        if tool == Tool.TAP:
            if role == ConnectionRole.END and (point.flick or point.skill):
                return mutate(replace(point, flick=False, skill=False), "Reverted slide end to plain endpoint")
            return PlacementResult(store, PlacementOutcome.IGNORED, f"Tap ignored on slide {role.value}")

        if tool == Tool.FLICK:
            if role == ConnectionRole.END:
                return mutate(replace(point, flick=True, skill=False), "Set flick on slide end")
            return PlacementResult(store, PlacementOutcome.IGNORED, f"Flick ignored on slide {role.value}")

        if tool == Tool.SKILL:
            if role in (ConnectionRole.START, ConnectionRole.END):
                return mutate(replace(point, skill=True, flick=False), f"Set skill on slide {role.value}")
            return PlacementResult(store, PlacementOutcome.IGNORED, "Skill ignored on slide pathway")

        return PlacementResult(store, PlacementOutcome.IGNORED, f"Tool {tool.value} ignored on slide")


def _run_unit_tests() -> None:
    engine = PlacementEngine(division=4)
    store = NoteStore()

    first = engine.place(store, Tool.TAP, 1, 2, sub_beat=2)
    assert first.outcome == PlacementOutcome.INSERTED
    assert first.store.find_at(1.5, 2) is not None
    again = engine.place(first.store, Tool.TAP, 1, 2, sub_beat=2)
    assert again.store == first.store

    store = NoteStore()
    lengths = []
    for _ in range(4):
        store = engine.place(store, Tool.DIRECTIONAL_LEFT, 3, 0).store
        note = store[0]
        assert isinstance(note, chart_models.DirectionalNote)
        lengths.append(note.length)
    assert lengths == [1, 2, 3, 1]


if __name__ == "__main__":
    _run_unit_tests()
    print("placement_engine.py: ok")
