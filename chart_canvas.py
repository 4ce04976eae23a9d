# -*- coding: utf-8 -*-
########################
# chart_canvas.py
########################
# Purpose:
# - Chart editing Qt widget.
# - Paints the lane grid, tempo lines, notes, selection, the pending slide point and the rubber band.
# - Forwards pointer events to EditorSession in chart pixel space.
#
########################
# Key Logic:
# - Chart pixel space:
#   - x = widget x minus the left gutter (tempo markers live in the gutter at chart x = 0)
#   - y = timeline offset, beat 0 at the bottom of the widget, growing upward
#   - the mouse wheel scrolls the visible window of the timeline
# - Strict boundaries:
#   - EditorSession owns every editing decision. This widget only converts coordinates and paints.
#   - ChartGeometry provides beat/lane <-> pixel mapping for painting.
#
########################
# Interfaces:
# Public dataclasses:
# - CanvasStyle(gutter_pixels: float, bottom_margin_pixels: float, note_size_pixels: float, scroll_step_pixels: float)
#
# Public classes:
# - class ChartCanvasWidget(PyQt6.QtWidgets.QWidget)
#   - Signals:
#     - notesChanged()
#     - statusChanged(str)
#   - Methods:
#     - session() -> EditorSession
#     - hovered_status() -> PointerStatus
#     - widget_to_chart(x: float, y: float) -> tuple[float, float]
#     - chart_to_widget(x: float, y: float) -> QPointF
#     - refresh(message: str = "") -> None
#
# Inputs:
# - QMouseEvent and QWheelEvent from the Qt event loop.
#
# Outputs:
# - Painted chart on the widget surface, notesChanged after every pointer mutation.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from PyQt6.QtCore import QPointF, QRectF, Qt, pyqtSignal
from PyQt6.QtGui import QBrush, QColor, QFont, QMouseEvent, QPainter, QPen, QPolygonF, QWheelEvent
from PyQt6.QtWidgets import QSizePolicy, QWidget

import chart_models
from editor_session import EditorSession, PointerModifiers, PointerResult, PointerStatus
from selection_index import ChartGeometry

COLOR_BACKGROUND = QColor(5, 3, 19)
COLOR_LANE_DIVIDER = QColor(60, 60, 80)
COLOR_BEAT_LINE = QColor(120, 120, 150)
COLOR_SUB_BEAT_LINE = QColor(45, 45, 65)
COLOR_TEMPO = QColor(244, 140, 228)
COLOR_TAP = QColor(172, 228, 252)
COLOR_FLICK = QColor(255, 120, 120)
COLOR_SKILL = QColor(255, 220, 120)
COLOR_DIRECTIONAL = QColor(140, 255, 140)
COLOR_SLIDE = QColor(120, 200, 255)
COLOR_LONG = QColor(200, 160, 255)
COLOR_SELECTION = QColor(255, 255, 255)
COLOR_PENDING = QColor(255, 255, 255, 140)


@dataclass(frozen=True)
class CanvasStyle:
    gutter_pixels: float = 64.0
    bottom_margin_pixels: float = 24.0
    note_size_pixels: float = 26.0
    scroll_step_pixels: float = 120.0


class ChartCanvasWidget(QWidget):
    notesChanged = pyqtSignal()
    statusChanged = pyqtSignal(str)

    def __init__(
        self,
        session: EditorSession,
        *,
        style: Optional[CanvasStyle] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._session = session
        self._style = style or CanvasStyle()
        self._scroll_offset = 0.0
        self._hovered_status = PointerStatus()

        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

        layout = session.config.layout
        self.setMinimumWidth(int(self._style.gutter_pixels + layout.lane_width_pixels * layout.lanes_count + 16))

    # ------------------------------------------------------------------
    # Public API used by main_window
    # ------------------------------------------------------------------

    def session(self) -> EditorSession:
        return self._session

    def hovered_status(self) -> PointerStatus:
        return self._hovered_status

    def refresh(self, message: str = "") -> None:
        self._clamp_scroll()
        self.update()
        self._emit_status(message)

    def widget_to_chart(self, x: float, y: float) -> Tuple[float, float]:
        chart_x = float(x) - float(self._style.gutter_pixels)
        chart_y = (float(self.height()) - float(self._style.bottom_margin_pixels) - float(y)) + self._scroll_offset
        return chart_x, chart_y

    def chart_to_widget(self, x: float, y: float) -> QPointF:
        widget_x = float(x) + float(self._style.gutter_pixels)
        widget_y = float(self.height()) - float(self._style.bottom_margin_pixels) - (float(y) - self._scroll_offset)
        return QPointF(widget_x, widget_y)

    # ------------------------------------------------------------------
    # Qt events
    # ------------------------------------------------------------------

    def mousePressEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        if event.button() != Qt.MouseButton.LeftButton:
            super().mousePressEvent(event)
            return
        store_before = self._session.store
        chart_x, chart_y = self.widget_to_chart(event.position().x(), event.position().y())
        result = self._session.on_pointer_down(chart_x, chart_y, self._modifiers_from(event))
        self._after_pointer(result, store_before)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        chart_x, chart_y = self.widget_to_chart(event.position().x(), event.position().y())
        result = self._session.on_pointer_move(chart_x, chart_y, self._modifiers_from(event))
        self._hovered_status = result.status
        self.update()
        self._emit_status("")

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        if event.button() != Qt.MouseButton.LeftButton:
            super().mouseReleaseEvent(event)
            return
        store_before = self._session.store
        chart_x, chart_y = self.widget_to_chart(event.position().x(), event.position().y())
        result = self._session.on_pointer_up(chart_x, chart_y, self._modifiers_from(event))
        self._after_pointer(result, store_before)

    def wheelEvent(self, event: QWheelEvent) -> None:  # noqa: N802
        steps = float(event.angleDelta().y()) / 120.0
        self._scroll_offset += steps * float(self._style.scroll_step_pixels)
        self._clamp_scroll()
        self.update()

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self._clamp_scroll()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _modifiers_from(event: QMouseEvent) -> PointerModifiers:
        modifiers = event.modifiers()
        additive = bool(modifiers & (Qt.KeyboardModifier.ShiftModifier | Qt.KeyboardModifier.ControlModifier))
        return PointerModifiers(additive=additive)

    def _after_pointer(self, result: PointerResult, store_before: object) -> None:
        self._hovered_status = result.status
        self.update()
        if result.store != store_before:
            self.notesChanged.emit()
        self._emit_status(result.message)

    def _emit_status(self, message: str) -> None:
        parts = [f"Tool: {self._session.tool.value}", self._hovered_status.text()]
        if message:
            parts.append(message)
        self.statusChanged.emit("  |  ".join(parts))

    def _clamp_scroll(self) -> None:
        visible_height = float(self.height()) - float(self._style.bottom_margin_pixels)
        total_height = self._session.timeline().total_height()
        maximum = max(0.0, total_height - visible_height * 0.5)
        self._scroll_offset = min(max(0.0, self._scroll_offset), maximum)

    # ------------------------------------------------------------------
    # Painting
    # ------------------------------------------------------------------

    def paintEvent(self, event) -> None:  # type: ignore[override]
        geometry = self._session.geometry()

        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        painter.fillRect(self.rect(), QBrush(COLOR_BACKGROUND))

        visible_low, visible_high = self._visible_beat_range(geometry)
        self._paint_grid(painter, geometry, visible_low, visible_high)
        self._paint_notes(painter, geometry)
        self._paint_pending_slide_point(painter, geometry)
        self._paint_rubber_band(painter)

        painter.end()

    def _visible_beat_range(self, geometry: ChartGeometry) -> Tuple[float, float]:
        timeline = geometry.timeline
        _x, bottom_y = self.widget_to_chart(0.0, float(self.height()))
        _x, top_y = self.widget_to_chart(0.0, 0.0)
        return timeline.offset_to_beat(max(0.0, bottom_y)), timeline.offset_to_beat(max(0.0, top_y))

    def _paint_grid(self, painter: QPainter, geometry: ChartGeometry, low_beat: float, high_beat: float) -> None:
        timeline = geometry.timeline
        chart_width = geometry.width
        top_left = self.chart_to_widget(0.0, timeline.total_height())
        bottom_right = self.chart_to_widget(chart_width, 0.0)

        painter.save()
        painter.setPen(QPen(COLOR_LANE_DIVIDER, 1.0))
        for lane in range(geometry.lanes_count + 1):
            x = self.chart_to_widget(lane * geometry.lane_width, 0.0).x()
            painter.drawLine(QPointF(x, max(0.0, top_left.y())), QPointF(x, bottom_right.y()))

        division = geometry.division
        first_step = max(0, int(low_beat * division) - 1)
        last_step = int(min(high_beat, timeline.beat_ceiling) * division) + 1
        for step in range(first_step, last_step + 1):
            beat = float(step) / float(division)
            y = self.chart_to_widget(0.0, timeline.beat_to_offset(beat)).y()
            is_whole_beat = step % division == 0
            painter.setPen(QPen(COLOR_BEAT_LINE if is_whole_beat else COLOR_SUB_BEAT_LINE, 1.0))
            painter.drawLine(QPointF(top_left.x(), y), QPointF(bottom_right.x(), y))
            if is_whole_beat:
                painter.setPen(QPen(COLOR_BEAT_LINE))
                painter.setFont(QFont("Arial", 8))
                painter.drawText(QPointF(4.0, y - 2.0), str(step // division))

        for event in timeline.events():
            y = self.chart_to_widget(0.0, timeline.beat_to_offset(event.beat)).y()
            painter.setPen(QPen(COLOR_TEMPO, 1.5, Qt.PenStyle.DashLine))
            painter.drawLine(QPointF(0.0, y), QPointF(bottom_right.x(), y))
        painter.restore()

    def _paint_notes(self, painter: QPainter, geometry: ChartGeometry) -> None:
        selection = self._session.selection
        for note_index, note in enumerate(self._session.store):
            is_selected = note_index in selection
            if isinstance(note, chart_models.TapNote):
                self._paint_tap(painter, geometry, note, is_selected)
            elif isinstance(note, chart_models.DirectionalNote):
                self._paint_directional(painter, geometry, note, is_selected)
            elif isinstance(note, chart_models.SlideNote):
                self._paint_slide(painter, geometry, note, is_selected)
            elif isinstance(note, chart_models.TempoMarker):
                self._paint_tempo_marker(painter, geometry, note, is_selected)
            else:
                chart_models.assert_never(note)

    def _selection_pen(self, is_selected: bool) -> QPen:
        if is_selected:
            return QPen(COLOR_SELECTION, 2.5)
        return QPen(Qt.PenStyle.NoPen)

    def _paint_tap(self, painter: QPainter, geometry: ChartGeometry, note: chart_models.TapNote, is_selected: bool) -> None:
        center = self.chart_to_widget(*geometry.point_center(note.beat, note.lane))
        radius = float(self._style.note_size_pixels) * 0.5
        color = COLOR_SKILL if note.skill else COLOR_FLICK if note.flick else COLOR_TAP

        painter.save()
        painter.setPen(self._selection_pen(is_selected))
        painter.setBrush(QBrush(color))
        if note.flick:
            painter.drawPolygon(
                QPolygonF(
                    [
                        QPointF(center.x(), center.y() - radius * 1.2),
                        QPointF(center.x() + radius, center.y() + radius * 0.6),
                        QPointF(center.x() - radius, center.y() + radius * 0.6),
                    ]
                )
            )
        else:
            painter.drawEllipse(center, radius, radius * 0.6)
        painter.restore()

    def _paint_directional(
        self,
        painter: QPainter,
        geometry: ChartGeometry,
        note: chart_models.DirectionalNote,
        is_selected: bool,
    ) -> None:
        center = self.chart_to_widget(*geometry.point_center(note.beat, note.lane))
        half_height = float(self._style.note_size_pixels) * 0.3
        reach = float(geometry.lane_width) * 0.5 * float(note.length)
        direction = -1.0 if note.side == chart_models.Side.LEFT else 1.0
        tip_x = center.x() + direction * reach

        painter.save()
        painter.setPen(self._selection_pen(is_selected))
        painter.setBrush(QBrush(COLOR_SKILL if note.skill else COLOR_DIRECTIONAL))
        painter.drawPolygon(
            QPolygonF(
                [
                    QPointF(center.x() - direction * 8.0, center.y() - half_height),
                    QPointF(tip_x, center.y()),
                    QPointF(center.x() - direction * 8.0, center.y() + half_height),
                ]
            )
        )
        painter.restore()

    def _paint_slide(self, painter: QPainter, geometry: ChartGeometry, note: chart_models.SlideNote, is_selected: bool) -> None:
        points: List[QPointF] = [
            self.chart_to_widget(*geometry.point_center(point.beat, point.lane)) for point in note.connections
        ]
        color = COLOR_LONG if note.kind == chart_models.SlideKind.LONG else COLOR_SLIDE
        radius = float(self._style.note_size_pixels) * 0.4

        painter.save()
        body_color = QColor(color)
        body_color.setAlpha(120)
        painter.setPen(QPen(body_color, radius))
        for first, second in zip(points, points[1:]):
            painter.drawLine(first, second)

        painter.setPen(self._selection_pen(is_selected))
        for connection_index, (point, center) in enumerate(zip(note.connections, points)):
            if point.hidden:
                continue
            role = note.connection_role(connection_index)
            point_color = COLOR_SKILL if point.skill else COLOR_FLICK if point.flick else color
            painter.setBrush(QBrush(point_color))
            size = radius if role != chart_models.ConnectionRole.PATHWAY else radius * 0.6
            painter.drawEllipse(center, size, size * 0.6)
        painter.restore()

    def _paint_tempo_marker(
        self,
        painter: QPainter,
        geometry: ChartGeometry,
        note: chart_models.TempoMarker,
        is_selected: bool,
    ) -> None:
        x, y = geometry.tempo_center(note.beat)
        anchor = self.chart_to_widget(x, y)
        painter.save()
        painter.setPen(QPen(COLOR_SELECTION if is_selected else COLOR_TEMPO))
        painter.setFont(QFont("Arial", 9, weight=QFont.Weight.Bold))
        painter.drawText(
            QRectF(0.0, anchor.y() - 16.0, float(self._style.gutter_pixels) - 4.0, 14.0),
            int(Qt.AlignmentFlag.AlignRight),
            f"{note.bpm:g}",
        )
        painter.restore()

    def _paint_pending_slide_point(self, painter: QPainter, geometry: ChartGeometry) -> None:
        pending = self._session.pending_slide_point
        if pending is None:
            return
        center = self.chart_to_widget(*geometry.point_center(pending.precise_beat, pending.lane))
        radius = float(self._style.note_size_pixels) * 0.5
        painter.save()
        painter.setPen(QPen(COLOR_PENDING, 2.0, Qt.PenStyle.DashLine))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawEllipse(center, radius, radius)
        painter.restore()

    def _paint_rubber_band(self, painter: QPainter) -> None:
        rect = self._session.rubber_band
        if rect is None:
            return
        x0, y0, x1, y1 = rect
        corner_a = self.chart_to_widget(x0, y0)
        corner_b = self.chart_to_widget(x1, y1)
        painter.save()
        painter.setPen(QPen(COLOR_SELECTION, 1.0, Qt.PenStyle.DashLine))
        fill = QColor(COLOR_SELECTION)
        fill.setAlpha(30)
        painter.setBrush(QBrush(fill))
        painter.drawRect(QRectF(corner_a, corner_b).normalized())
        painter.restore()
