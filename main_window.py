# -*- coding: utf-8 -*-
########################
# main_window.py
########################
# Purpose:
# - Primary Qt window and UI host for the chart editor.
# - Owns its menus, tool bar, status bar and the chart code dialog.
# - Hosts a single central ChartCanvasWidget.
#
# Design notes:
# - MainWindow stays thin. Every editing decision is delegated to EditorSession.
# - Keyboard shortcuts come only from InputRouter. Menu actions carry no QAction shortcuts
#   so a key is never handled twice.
# - Chart code errors are shown to the user and never close the dialog.
#
########################
# Interfaces:
# Public classes:
# - class ChartCodeDialog(PyQt6.QtWidgets.QDialog)
#   - set_errors(errors: list[str]) -> None
# - class MainWindow(PyQt6.QtWidgets.QMainWindow)
#   - canvas() -> ChartCanvasWidget
#   - open_chart(path: Path) -> bool
#   - save_chart(path: Path) -> bool
#   - on_tool_requested(tool_name: str) -> None
#   - on_command_requested(command: str) -> None
#   - on_snap_division_requested(division: int) -> None
#   - Menu actions:
#     - on_action_open(), on_action_save(), on_action_save_as(), on_action_chart_code(), on_action_exit()
#
# Inputs:
# - QKeyEvent (routed through InputRouter), menu actions and tool bar actions.
#
# Outputs:
# - Commands to EditorSession, chart files on disk, status bar text.
#
########################
# Unit Tests:
# - Keep as manual UI smoke:
#   - python main_window.py
# - Prefer EditorSession tests for most behaviors, since MainWindow should stay thin.
########################

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

from PyQt6.QtCore import QEvent, Qt
from PyQt6.QtGui import QAction, QActionGroup, QKeyEvent
from PyQt6.QtWidgets import (
    QApplication,
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QDoubleSpinBox,
    QFileDialog,
    QLabel,
    QListWidget,
    QMainWindow,
    QMessageBox,
    QPlainTextEdit,
    QToolBar,
    QVBoxLayout,
    QWidget,
)

import chart_code
import input_router
import paths
from chart_canvas import ChartCanvasWidget
from chart_models import Tool
from config import ALLOWED_SNAP_DIVISIONS
from editor_session import EditorSession

logger = logging.getLogger(__name__)

CHART_FILE_FILTER = "Chart code (*.json);;All files (*)"

TOOL_LABELS = {
    Tool.SELECT: "Select",
    Tool.TAP: "Tap",
    Tool.FLICK: "Flick",
    Tool.SKILL: "Skill",
    Tool.DIRECTIONAL_LEFT: "Dir Left",
    Tool.DIRECTIONAL_RIGHT: "Dir Right",
    Tool.SLIDE: "Slide",
    Tool.LONG: "Long",
    Tool.TEMPO: "Tempo",
}


class ChartCodeDialog(QDialog):
    def __init__(self, session: EditorSession, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._session = session
        self.setWindowTitle("Chart code")
        self.resize(640, 720)

        self._editor = QPlainTextEdit(self)
        self._editor.setPlainText(session.chart_code_text())

        self._error_label = QLabel("", self)
        self._error_list = QListWidget(self)
        self._error_list.setMaximumHeight(140)
        self._error_list.hide()

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Apply | QDialogButtonBox.StandardButton.Close,
            parent=self,
        )
        buttons.button(QDialogButtonBox.StandardButton.Apply).clicked.connect(self._on_apply)
        buttons.rejected.connect(self.reject)

        layout = QVBoxLayout(self)
        layout.addWidget(self._editor)
        layout.addWidget(self._error_label)
        layout.addWidget(self._error_list)
        layout.addWidget(buttons)

    def set_errors(self, errors: List[str]) -> None:
        self._error_list.clear()
        if not errors:
            self._error_label.setText("")
            self._error_list.hide()
            return
        self._error_label.setText(f"{len(errors)} error(s). The chart was not changed.")
        self._error_list.addItems([str(error) for error in errors])
        self._error_list.show()

    def _on_apply(self) -> None:
        result = self._session.apply_chart_code(self._editor.toPlainText())
        self.set_errors(result.errors)
        if result.ok:
            self.accept()


class MainWindow(QMainWindow):
    def __init__(self, session: EditorSession, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._session = session
        self._chart_path: Optional[Path] = None

        self._canvas = ChartCanvasWidget(session, parent=self)
        self.setCentralWidget(self._canvas)

        self._router = input_router.InputRouter(self)
        self._router.toolRequested.connect(self.on_tool_requested)
        self._router.commandRequested.connect(self.on_command_requested)

        self._canvas.statusChanged.connect(self._show_status)
        self._canvas.notesChanged.connect(self._update_title)

        self._tool_actions: Dict[Tool, QAction] = {}
        self._build_menus()
        self._build_tool_bar()

        self.on_tool_requested(session.tool.value)
        self._update_title()

    # -----------------
    # Public API
    # -----------------

    def canvas(self) -> ChartCanvasWidget:
        return self._canvas

    def open_chart(self, path: Path) -> bool:
        chart_path = Path(path)
        try:
            notes = chart_code.read_chart_file(chart_path, max_lane=self._session.max_lane)
        except chart_code.ChartCodeValidationError as exception:
            self._show_errors(f"Cannot open {chart_path.name}", exception.errors)
            return False
        except chart_code.ChartCodeParseError as exception:
            self._show_errors(f"Cannot open {chart_path.name}", [str(exception)])
            return False

        self._session.load_notes(notes)
        self._chart_path = chart_path
        self._canvas.refresh(f"Opened {chart_path.name}")
        self._update_title()
        return True

    def save_chart(self, path: Path) -> bool:
        chart_path = Path(path)
        try:
            chart_code.write_chart_file(chart_path, self._session.store.notes())
        except OSError as exception:
            self._show_errors(f"Cannot save {chart_path.name}", [str(exception)])
            return False

        self._chart_path = chart_path
        self._canvas.refresh(f"Saved {chart_path.name}")
        self._update_title()
        return True

    def on_tool_requested(self, tool_name: str) -> None:
        tool = Tool(tool_name)
        self._session.set_tool(tool)
        action = self._tool_actions.get(tool)
        if action is not None and not action.isChecked():
            action.setChecked(True)
        self._canvas.refresh()

    def on_snap_division_requested(self, division: int) -> None:
        self._session.set_snap_division(division)
        self._canvas.refresh(f"Snap 1/{division}")

    def on_command_requested(self, command: str) -> None:
        handlers: Dict[str, Callable[[], str]] = {
            input_router.COMMAND_UNDO: self._undo,
            input_router.COMMAND_REDO: self._redo,
            input_router.COMMAND_COPY: self._copy,
            input_router.COMMAND_CUT: self._cut,
            input_router.COMMAND_PASTE: self._paste,
            input_router.COMMAND_DELETE: self._delete,
            input_router.COMMAND_MIRROR: self._mirror,
            input_router.COMMAND_SELECT_ALL: self._select_all,
        }
        handler = handlers.get(command)
        if handler is None:
            logger.warning("Unknown editor command: %s", command)
            return
        message = handler()
        self._canvas.refresh(message)
        self._update_title()

    # -----------------
    # Menu actions
    # -----------------

    def on_action_open(self) -> None:
        start_dir = self._chart_path.parent if self._chart_path is not None else paths.charts_dir()
        path_text, _selected_filter = QFileDialog.getOpenFileName(self, "Open chart", str(start_dir), CHART_FILE_FILTER)
        if path_text:
            self.open_chart(Path(path_text))

    def on_action_save(self) -> None:
        if self._chart_path is None:
            self.on_action_save_as()
            return
        self.save_chart(self._chart_path)

    def on_action_save_as(self) -> None:
        start_path = self._chart_path if self._chart_path is not None else paths.charts_dir() / "chart.json"
        path_text, _selected_filter = QFileDialog.getSaveFileName(self, "Save chart", str(start_path), CHART_FILE_FILTER)
        if path_text:
            self.save_chart(Path(path_text))

    def on_action_chart_code(self) -> None:
        dialog = ChartCodeDialog(self._session, self)
        if dialog.exec() == QDialog.DialogCode.Accepted:
            self._canvas.refresh("Applied chart code")
            self._update_title()

    def on_action_exit(self) -> None:
        self.close()

    # -----------------
    # Commands
    # -----------------

    def _undo(self) -> str:
        self._session.undo()
        return "Undo"

    def _redo(self) -> str:
        self._session.redo()
        return "Redo"

    def _copy(self) -> str:
        return f"Copied {self._session.copy()} note(s)"

    def _cut(self) -> str:
        return f"Cut {self._session.cut()} note(s)"

    def _paste(self) -> str:
        status = self._canvas.hovered_status()
        if not status.in_range:
            return "Move the pointer over the chart to paste"
        assert status.beat is not None and status.lane is not None
        if self._session.paste(status.beat, status.lane):
            return "Pasted"
        return "Nothing to paste"

    def _delete(self) -> str:
        count = len(self._session.selection)
        self._session.delete_selected()
        return f"Deleted {count} note(s)"

    def _mirror(self) -> str:
        self._session.mirror_selected()
        return f"Mirrored {len(self._session.selection)} note(s)"

    def _select_all(self) -> str:
        self._session.select_all()
        return f"Selected {len(self._session.selection)} note(s)"

    # -----------------
    # Internal wiring
    # -----------------

    def _build_menus(self) -> None:
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&File")
        self._add_action(file_menu, "&Open...", self.on_action_open)
        self._add_action(file_menu, "&Save", self.on_action_save)
        self._add_action(file_menu, "Save &As...", self.on_action_save_as)
        file_menu.addSeparator()
        self._add_action(file_menu, "E&xit", self.on_action_exit)

        edit_menu = menu_bar.addMenu("&Edit")
        for label, command in (
            ("Undo\tCtrl+Z", input_router.COMMAND_UNDO),
            ("Redo\tCtrl+Y", input_router.COMMAND_REDO),
            ("Cut\tCtrl+X", input_router.COMMAND_CUT),
            ("Copy\tCtrl+C", input_router.COMMAND_COPY),
            ("Paste\tCtrl+V", input_router.COMMAND_PASTE),
            ("Delete\tDel", input_router.COMMAND_DELETE),
            ("Mirror\tM", input_router.COMMAND_MIRROR),
            ("Select All\tCtrl+A", input_router.COMMAND_SELECT_ALL),
        ):
            self._add_action(edit_menu, label, lambda checked=False, name=command: self.on_command_requested(name))
        edit_menu.addSeparator()
        self._add_action(edit_menu, "Chart &Code...", self.on_action_chart_code)

    def _add_action(self, menu, label: str, handler: Callable[..., None]) -> QAction:
        action = QAction(label, self)
        action.triggered.connect(handler)
        menu.addAction(action)
        return action

    def _build_tool_bar(self) -> None:
        tool_bar = QToolBar("Tools", self)
        tool_bar.setMovable(False)
        self.addToolBar(tool_bar)

        group = QActionGroup(self)
        group.setExclusive(True)
        for tool, label in TOOL_LABELS.items():
            action = QAction(label, self)
            action.setCheckable(True)
            action.triggered.connect(lambda checked=False, name=tool.value: self.on_tool_requested(name))
            group.addAction(action)
            tool_bar.addAction(action)
            self._tool_actions[tool] = action

        tool_bar.addSeparator()
        tool_bar.addWidget(QLabel(" bpm ", self))
        bpm_spin_box = QDoubleSpinBox(self)
        bpm_spin_box.setRange(1.0, 999.0)
        bpm_spin_box.setDecimals(2)
        bpm_spin_box.setValue(self._session.tempo_bpm)
        bpm_spin_box.valueChanged.connect(self._session.set_tempo_bpm)
        tool_bar.addWidget(bpm_spin_box)

        tool_bar.addSeparator()
        tool_bar.addWidget(QLabel(" snap ", self))
        division_combo = QComboBox(self)
        for division in ALLOWED_SNAP_DIVISIONS:
            division_combo.addItem(f"1/{division}", division)
        division_combo.setCurrentIndex(max(0, division_combo.findData(self._session.snap_division)))
        division_combo.currentIndexChanged.connect(
            lambda index: self.on_snap_division_requested(int(division_combo.itemData(index)))
        )
        tool_bar.addWidget(division_combo)

    def _show_status(self, text: str) -> None:
        self.statusBar().showMessage(str(text or "").strip())

    def _show_errors(self, title: str, errors: List[str]) -> None:
        logger.info("%s: %d error(s)", title, len(errors))
        shown = "\n".join(errors[:20])
        if len(errors) > 20:
            shown += f"\n... and {len(errors) - 20} more"
        QMessageBox.warning(self, title, shown)

    def _update_title(self) -> None:
        name = self._chart_path.name if self._chart_path is not None else "untitled"
        self.setWindowTitle(f"Chartwright - {name} ({len(self._session.store)} notes)")

    def keyPressEvent(self, event: Optional[QKeyEvent]) -> None:  # noqa: N802
        if event is None:
            return
        if self._router.handle_key_press(event):
            event.accept()
            return
        super().keyPressEvent(event)

    def keyReleaseEvent(self, event: Optional[QKeyEvent]) -> None:  # noqa: N802
        if event is None:
            return
        self._router.handle_key_release(event)
        super().keyReleaseEvent(event)

    def changeEvent(self, event: Optional[QEvent]) -> None:  # noqa: N802
        if event is not None and event.type() == QEvent.Type.ActivationChange and not self.isActiveWindow():
            self._router.clear_pressed_keys()
        super().changeEvent(event)


def main() -> int:
    application_arguments = sys.argv if sys.argv and sys.argv[0] else ["chartwright"]
    application = QApplication(application_arguments)

    window = MainWindow(EditorSession())
    window.resize(1024, 900)
    window.show()

    return application.exec()


if __name__ == "__main__":
    raise SystemExit(main())
