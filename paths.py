# -*- coding: utf-8 -*-
########################
# paths.py
########################
# Purpose:
# - Central filesystem path helpers for the editor.
# - Defines where chart files are opened/saved by default and where log files go.
#
# Design notes:
# - Keep path derivation consistent across modules.
# - No Qt usage. Return pathlib.Path only.
# - Nothing here creates directories except log_dir(), which the logging setup needs to exist.
#
########################
# Interfaces:
# Public functions:
# - app_root_dir() -> pathlib.Path
# - charts_dir() -> pathlib.Path
# - log_dir() -> pathlib.Path
#
# Outputs:
# - Paths used by chartwright.py (logging) and main_window.py (file dialogs).
#
########################

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from platformdirs import user_log_dir


def _entrypoint_file_path() -> Optional[Path]:
    """Best-effort resolution of the launched Python entrypoint file."""
    main_module = sys.modules.get("__main__")
    main_file = getattr(main_module, "__file__", None)
    if main_file:
        return Path(str(main_file)).resolve()

    argv0 = str(sys.argv[0] or "").strip()
    if argv0 and argv0 not in {"-c", "-m"}:
        try:
            return Path(argv0).resolve()
        except OSError:
            return None

    return None


def app_root_dir() -> Path:
    """Return the directory containing the launched .py file, or the working directory."""
    entrypoint_path = _entrypoint_file_path()
    if entrypoint_path is not None:
        return entrypoint_path.parent

    return Path.cwd().resolve()


def charts_dir() -> Path:
    """Return the default chart folder for file dialogs (not created automatically)."""
    return app_root_dir() / "Charts"


def log_dir() -> Path:
    directory = Path(user_log_dir("Chartwright", appauthor=False))
    directory.mkdir(parents=True, exist_ok=True)
    return directory
