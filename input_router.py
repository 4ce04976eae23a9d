# -*- coding: utf-8 -*-
########################
# input_router.py
########################
# Purpose:
# - Single keyboard listener for editor shortcuts.
# - Translates QKeyEvent into tool requests and command requests and emits Qt signals.
#
# Design notes:
# - This must be the only shortcut source. No duplicate key mapping elsewhere.
# - Debounce rules:
#   - Ignore auto repeat.
#   - Track pressed keys to avoid duplicate presses.
# - Number keys pick tools. Ctrl combinations, Delete and M trigger editing commands.
#
########################
# Interfaces:
# Public constants:
# - COMMAND_UNDO, COMMAND_REDO, COMMAND_COPY, COMMAND_CUT, COMMAND_PASTE,
#   COMMAND_DELETE, COMMAND_MIRROR, COMMAND_SELECT_ALL
#
# Public classes:
# - class InputRouter(PyQt6.QtCore.QObject)
#   - Signals:
#     - toolRequested(str)
#     - commandRequested(str)
#   - Methods:
#     - handle_key_press(event: QKeyEvent) -> bool
#     - handle_key_release(event: QKeyEvent) -> bool
#     - route_key(key_code: int, modifiers: Qt.KeyboardModifier) -> Optional[tuple[str, str]]
#     - clear_pressed_keys() -> None
#
# Inputs:
# - Raw QKeyEvent from the main window.
#
# Outputs:
# - Tool names (chart_models.Tool values) and command names consumed by main_window.
#
########################

from __future__ import annotations

from typing import Dict, Optional, Set, Tuple

from PyQt6.QtCore import QObject, Qt, pyqtSignal
from PyQt6.QtGui import QKeyEvent

from chart_models import Tool

COMMAND_UNDO = "undo"
COMMAND_REDO = "redo"
COMMAND_COPY = "copy"
COMMAND_CUT = "cut"
COMMAND_PASTE = "paste"
COMMAND_DELETE = "delete"
COMMAND_MIRROR = "mirror"
COMMAND_SELECT_ALL = "select_all"


def _build_default_key_to_tool_map() -> Dict[int, str]:
    """
    Default tool mapping.

      1 = select, 2 = tap, 3 = flick, 4 = skill, 5 = directional left,
      6 = directional right, 7 = slide, 8 = long, 9 = tempo
    """
    key_to_tool: Dict[int, str] = {}

    def bind(key_constant: int, tool: Tool) -> None:
        key_to_tool[int(key_constant)] = tool.value

    bind(Qt.Key.Key_1, Tool.SELECT)
    bind(Qt.Key.Key_2, Tool.TAP)
    bind(Qt.Key.Key_3, Tool.FLICK)
    bind(Qt.Key.Key_4, Tool.SKILL)
    bind(Qt.Key.Key_5, Tool.DIRECTIONAL_LEFT)
    bind(Qt.Key.Key_6, Tool.DIRECTIONAL_RIGHT)
    bind(Qt.Key.Key_7, Tool.SLIDE)
    bind(Qt.Key.Key_8, Tool.LONG)
    bind(Qt.Key.Key_9, Tool.TEMPO)

    return key_to_tool


def _build_default_ctrl_command_map() -> Dict[int, str]:
    return {
        int(Qt.Key.Key_Z): COMMAND_UNDO,
        int(Qt.Key.Key_Y): COMMAND_REDO,
        int(Qt.Key.Key_C): COMMAND_COPY,
        int(Qt.Key.Key_X): COMMAND_CUT,
        int(Qt.Key.Key_V): COMMAND_PASTE,
        int(Qt.Key.Key_A): COMMAND_SELECT_ALL,
    }


def _build_default_plain_command_map() -> Dict[int, str]:
    return {
        int(Qt.Key.Key_Delete): COMMAND_DELETE,
        int(Qt.Key.Key_Backspace): COMMAND_DELETE,
        int(Qt.Key.Key_M): COMMAND_MIRROR,
    }


class InputRouter(QObject):
    """
    Central keyboard router for the editor.

    This object never edits the chart. Its only job is to:
      - map keys to tool names and command names
      - emit toolRequested or commandRequested for each valid press
    """

    toolRequested = pyqtSignal(str)
    commandRequested = pyqtSignal(str)

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)

        self._key_to_tool = _build_default_key_to_tool_map()
        self._ctrl_commands = _build_default_ctrl_command_map()
        self._plain_commands = _build_default_plain_command_map()

        self._pressed_keys: Set[int] = set()

    # ------------------------------------------------------------------
    # Public API used by main_window
    # ------------------------------------------------------------------

    def route_key(self, key_code: int, modifiers: Qt.KeyboardModifier) -> Optional[Tuple[str, str]]:
        """Return ("tool", name) or ("command", name) for a key, or None when unbound."""
        key_code = int(key_code)
        if modifiers & Qt.KeyboardModifier.ControlModifier:
            command = self._ctrl_commands.get(key_code)
            return ("command", command) if command is not None else None

        tool = self._key_to_tool.get(key_code)
        if tool is not None:
            return ("tool", tool)
        command = self._plain_commands.get(key_code)
        if command is not None:
            return ("command", command)
        return None

    def handle_key_press(self, event: QKeyEvent) -> bool:
        """
        Handle a Qt key press.

        Returns True if this router consumed the event, False otherwise.
        """
        key_code = int(event.key())
        route = self.route_key(key_code, event.modifiers())

        # Holding a key must not spam undo or paste.
        if event.isAutoRepeat() or key_code in self._pressed_keys:
            return route is not None

        self._pressed_keys.add(key_code)
        if route is None:
            return False

        kind, name = route
        if kind == "tool":
            self.toolRequested.emit(name)
        else:
            self.commandRequested.emit(name)
        return True

    def handle_key_release(self, event: QKeyEvent) -> bool:
        key_code = int(event.key())
        if event.isAutoRepeat():
            return False
        self._pressed_keys.discard(key_code)
        return False

    def clear_pressed_keys(self) -> None:
        """Called on focus loss so a key released elsewhere does not stay pressed."""
        self._pressed_keys.clear()


def _run_unit_tests() -> None:
    router = InputRouter()
    no_modifier = Qt.KeyboardModifier.NoModifier
    ctrl = Qt.KeyboardModifier.ControlModifier

    assert router.route_key(int(Qt.Key.Key_2), no_modifier) == ("tool", "tap")
    assert router.route_key(int(Qt.Key.Key_9), no_modifier) == ("tool", "tempo")
    assert router.route_key(int(Qt.Key.Key_Z), ctrl) == ("command", COMMAND_UNDO)
    assert router.route_key(int(Qt.Key.Key_M), no_modifier) == ("command", COMMAND_MIRROR)
    assert router.route_key(int(Qt.Key.Key_Z), no_modifier) is None


if __name__ == "__main__":
    _run_unit_tests()
    print("input_router.py: ok")
