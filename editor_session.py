# -*- coding: utf-8 -*-
########################
# editor_session.py
########################
# Purpose:
# - Editor-level orchestrator for one open chart.
# - Owns the current tool, the half-drawn slide point, the selection, the clipboard,
#   the rubber-band rectangle, the pending tempo bpm and the undo history.
# - Turns pointer events and menu commands into committed NoteStore snapshots.
#
# Design notes:
# - No Qt usage. The canvas widget converts widget pixels to chart pixels and forwards them here.
# - Every mutation is exactly one HistoryManager.commit. Ignored placements commit nothing.
# - The selection is cleared whenever note indices may shift (delete, cut, undo, redo, apply, load).
# - Chart code parse and validation errors are returned to the caller, never raised.
#   The store is left unchanged when chart code is rejected.
# - Out-of-range pointer input is ignored without a message.
#
########################
# Interfaces:
# Public dataclasses:
# - PointerModifiers(additive: bool = False)
# - PointerStatus(beat: Optional[float], lane: Optional[int], seconds: Optional[float])
# - PointerResult(store: NoteStore, status: PointerStatus, message: str)
# - ChartCodeApplyResult(ok: bool, errors: list[str])
#
# Public classes:
# - class EditorSession
#   - __init__(config: Optional[AppConfig] = None, notes: Iterable[ChartNote] = ())
#   - set_tool(tool) -> None
#   - on_pointer_down(x, y, modifiers) -> PointerResult
#   - on_pointer_move(x, y, modifiers) -> PointerResult
#   - on_pointer_up(x, y, modifiers) -> PointerResult
#   - copy() / cut() / paste(beat, lane) / delete_selected() / mirror_selected() / select_all()
#   - undo() / redo()
#   - set_tempo_bpm(bpm) -> None
#   - set_snap_division(division) -> None
#   - chart_code_text() -> str
#   - apply_chart_code(text) -> ChartCodeApplyResult
#   - load_notes(notes) -> None
#
# Inputs:
# - Pointer events and commands from chart_canvas.py and main_window.py.
#
# Outputs:
# - The current NoteStore and the transient editing state read by the canvas for painting.
#
########################

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Iterable, List, Optional, Tuple, Union

import chart_code
import chart_models
from chart_models import Tool
from config import ALLOWED_SNAP_DIVISIONS, AppConfig
from history import HistoryManager
from note_store import NoteStore
from placement_engine import PlacementEngine
from selection_index import ChartGeometry, SelectionIndex, SelectionState
from slide_endpoints import SlideMerger
from tempo_timeline import TempoTimeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PointerModifiers:
    additive: bool = False


@dataclass(frozen=True)
class PointerStatus:
    beat: Optional[float] = None
    lane: Optional[int] = None
    seconds: Optional[float] = None

    @property
    def in_range(self) -> bool:
        return self.beat is not None and self.lane is not None

    def text(self) -> str:
        if not self.in_range:
            return "-"
        return f"beat {self.beat:.3f}  lane {self.lane}  {self.seconds or 0.0:.3f}s"


@dataclass(frozen=True)
class PointerResult:
    store: NoteStore
    status: PointerStatus
    message: str = ""


@dataclass(frozen=True)
class ChartCodeApplyResult:
    ok: bool
    errors: List[str] = field(default_factory=list)


Rect = Tuple[float, float, float, float]


class EditorSession:
    def __init__(self, config: Optional[AppConfig] = None, notes: Iterable[chart_models.ChartNote] = ()) -> None:
        self._config = config if config is not None else AppConfig()
        editor = self._config.editor

        self._history = HistoryManager(NoteStore(notes), limit=editor.history_limit)
        self._snap_division = int(editor.snap_division)
        self._engine = PlacementEngine(division=self._snap_division)
        self._merger = SlideMerger()

        self._tool = Tool.TAP
        self._tempo_bpm = float(editor.default_tempo_bpm)
        self._pending_slide_point: Optional[chart_models.Coordinate] = None
        self._selection = SelectionState()
        self._clipboard: List[chart_models.ChartNote] = []

        self._rubber_band_origin: Optional[Tuple[float, float]] = None
        self._rubber_band_rect: Optional[Rect] = None
        self._rubber_band_additive = False

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def store(self) -> NoteStore:
        return self._history.current()

    @property
    def history(self) -> HistoryManager:
        return self._history

    @property
    def tool(self) -> Tool:
        return self._tool

    @property
    def snap_division(self) -> int:
        return self._snap_division

    @property
    def tempo_bpm(self) -> float:
        return self._tempo_bpm

    @property
    def selection(self) -> SelectionState:
        return self._selection

    @property
    def clipboard(self) -> List[chart_models.ChartNote]:
        return list(self._clipboard)

    @property
    def pending_slide_point(self) -> Optional[chart_models.Coordinate]:
        return self._pending_slide_point

    @property
    def rubber_band(self) -> Optional[Rect]:
        return self._rubber_band_rect

    @property
    def max_lane(self) -> int:
        return self._config.layout.max_lane

    def timeline(self) -> TempoTimeline:
        layout = self._config.layout
        return TempoTimeline.from_notes(
            self.store,
            base_height=layout.beat_height_pixels,
            beat_ceiling=layout.beat_ceiling,
        )

    def geometry(self) -> ChartGeometry:
        layout = self._config.layout
        return ChartGeometry(
            self.timeline(),
            lanes_count=layout.lanes_count,
            lane_width=layout.lane_width_pixels,
            division=self._snap_division,
        )

    # ------------------------------------------------------------------
    # Tool state
    # ------------------------------------------------------------------

    def set_tool(self, tool: Union[Tool, str]) -> None:
        tool = Tool(tool)
        if tool != self._tool:
            logger.debug("Tool %s -> %s", self._tool.value, tool.value)
        self._tool = tool
        self._pending_slide_point = None
        self._rubber_band_origin = None
        self._rubber_band_rect = None

    def set_snap_division(self, division: int) -> None:
        division_value = int(division)
        if division_value not in ALLOWED_SNAP_DIVISIONS:
            allowed_text = ", ".join(str(item) for item in ALLOWED_SNAP_DIVISIONS)
            raise ValueError(f"snap division must be one of: {allowed_text}")
        if division_value != self._snap_division:
            logger.debug("Snap division %d -> %d", self._snap_division, division_value)
        self._snap_division = division_value
        self._engine = PlacementEngine(division=division_value)
        self._pending_slide_point = None

    def set_tempo_bpm(self, bpm: float) -> None:
        bpm_value = float(bpm)
        if not bpm_value > 0.0:
            raise ValueError(f"bpm must be positive, got {bpm}")
        self._tempo_bpm = bpm_value

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def _status_for(self, geometry: ChartGeometry, coordinate: Optional[chart_models.Coordinate]) -> PointerStatus:
        if coordinate is None:
            return PointerStatus()
        beat = coordinate.precise_beat
        return PointerStatus(beat=beat, lane=int(coordinate.lane), seconds=geometry.timeline.beat_to_seconds(beat))

    def _commit(self, store: NoteStore) -> bool:
        if store == self.store:
            return False
        self._history.commit(store)
        return True

    def on_pointer_down(self, x: float, y: float, modifiers: Optional[PointerModifiers] = None) -> PointerResult:
        modifiers = modifiers or PointerModifiers()
        geometry = self.geometry()
        coordinate = geometry.pixel_to_coordinate(x, y)
        status = self._status_for(geometry, coordinate)

        if self._tool == Tool.SELECT:
            hit = SelectionIndex(geometry, self.store).hit_test_point(x, y) if coordinate is not None else None
            if hit is not None:
                self._selection = self._selection.click(hit, additive=modifiers.additive)
                return PointerResult(self.store, status, f"Selected {len(self._selection)} note(s)")
            self._rubber_band_origin = (float(x), float(y))
            self._rubber_band_rect = (float(x), float(y), float(x), float(y))
            self._rubber_band_additive = bool(modifiers.additive)
            return PointerResult(self.store, status)

        if coordinate is None:
            return PointerResult(self.store, status)

        if self._tool == Tool.TEMPO:
            result = self._engine.place_tempo(self.store, coordinate.beat, self._tempo_bpm, coordinate.sub_beat)
            self._commit(result.store)
            return PointerResult(self.store, status, result.message)

        if self._tool.is_slide:
            if self._pending_slide_point is None:
                self._pending_slide_point = coordinate
                return PointerResult(self.store, status, "Slide start set")
            first_point = self._pending_slide_point
            self._pending_slide_point = None
            kind = chart_models.SlideKind.LONG if self._tool == Tool.LONG else chart_models.SlideKind.SLIDE
            combination = self._merger.draw(self.store, first_point, coordinate, kind=kind)
            self._commit(combination.store)
            return PointerResult(self.store, status, combination.message)

        result = self._engine.place(self.store, self._tool, coordinate.beat, coordinate.lane, coordinate.sub_beat)
        if result.changed:
            self._commit(result.store)
        return PointerResult(self.store, status, result.message)

    def on_pointer_move(self, x: float, y: float, modifiers: Optional[PointerModifiers] = None) -> PointerResult:
        geometry = self.geometry()
        status = self._status_for(geometry, geometry.pixel_to_coordinate(x, y))
        if self._rubber_band_origin is not None:
            origin_x, origin_y = self._rubber_band_origin
            self._rubber_band_rect = (origin_x, origin_y, float(x), float(y))
        return PointerResult(self.store, status)

    def on_pointer_up(self, x: float, y: float, modifiers: Optional[PointerModifiers] = None) -> PointerResult:
        geometry = self.geometry()
        status = self._status_for(geometry, geometry.pixel_to_coordinate(x, y))
        if self._rubber_band_origin is None:
            return PointerResult(self.store, status)

        origin_x, origin_y = self._rubber_band_origin
        hits = SelectionIndex(geometry, self.store).hit_test_rect(origin_x, origin_y, x, y)
        self._selection = self._selection.apply_rect(hits, additive=self._rubber_band_additive)
        self._rubber_band_origin = None
        self._rubber_band_rect = None
        return PointerResult(self.store, status, f"Selected {len(self._selection)} note(s)")

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def select_all(self) -> None:
        self._selection = SelectionState(frozenset(range(len(self.store))))

    def clear_selection(self) -> None:
        self._selection = SelectionState()

    def copy(self) -> int:
        self._clipboard = self.store.extract(self._selection.indices)
        return len(self._clipboard)

    def cut(self) -> int:
        copied = self.copy()
        if copied:
            self._commit(self.store.remove_indices(self._selection.indices))
        self.clear_selection()
        return copied

    def paste(self, beat: float, lane: int) -> bool:
        if not self._clipboard:
            return False
        pasted = self.store.paste(self._clipboard, beat=beat, lane=lane, max_lane=self.max_lane)
        return self._commit(pasted)

    def delete_selected(self) -> bool:
        changed = self._commit(self.store.remove_indices(self._selection.indices))
        self.clear_selection()
        return changed

    def mirror_selected(self) -> bool:
        return self._commit(self.store.mirror_indices(self._selection.indices, max_lane=self.max_lane))

    def undo(self) -> NoteStore:
        self._reset_transient_state()
        return self._history.undo()

    def redo(self) -> NoteStore:
        self._reset_transient_state()
        return self._history.redo()

    def _reset_transient_state(self) -> None:
        self._selection = SelectionState()
        self._pending_slide_point = None
        self._rubber_band_origin = None
        self._rubber_band_rect = None

    # ------------------------------------------------------------------
    # Chart code
    # ------------------------------------------------------------------

    def chart_code_text(self) -> str:
        return chart_code.dumps_chart_code(self.store.notes())

    def apply_chart_code(self, text: str) -> ChartCodeApplyResult:
        try:
            notes = chart_code.load_chart_code(text, max_lane=self.max_lane)
        except chart_code.ChartCodeParseError as exception:
            return ChartCodeApplyResult(ok=False, errors=[str(exception)])
        except chart_code.ChartCodeValidationError as exception:
            return ChartCodeApplyResult(ok=False, errors=list(exception.errors))

        self._reset_transient_state()
        self._commit(NoteStore(notes))
        return ChartCodeApplyResult(ok=True)

    def load_notes(self, notes: Iterable[chart_models.ChartNote]) -> None:
        self._reset_transient_state()
        self._history.reset(NoteStore(notes))
        logger.info("Loaded chart with %d note(s)", len(self.store))


def _run_unit_tests() -> None:
    session = EditorSession()
    session.set_tool(Tool.TAP)
    session.on_pointer_down(200.0, 48.0)
    assert len(session.store) == 1
    session.on_pointer_down(200.0, 48.0)
    assert len(session.history) == 2

    result = session.apply_chart_code("not json")
    assert not result.ok and len(session.store) == 1

    session.undo()
    assert len(session.store) == 0


if __name__ == "__main__":
    _run_unit_tests()
    print("editor_session.py: ok")
