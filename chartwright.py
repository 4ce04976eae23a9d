"""
chartwright.py

Real entrypoint that launches the chart editor. Also supports a headless chart check.

Integration
- Configures logging (console plus a rotating file under paths.log_dir())
- Loads config
- Creates QApplication, EditorSession and MainWindow
- Optionally opens a chart file given on the command line

Headless check
- `chartwright --check PATH` parses and validates a chart code file without Qt and prints a JSON report.
  Exit code 0 when the chart is valid, 2 otherwise.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

import chart_code
import paths
from config import AppConfig, get_config, load_config

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _init_logging(*, verbose: bool) -> None:
    if logging.getLogger().handlers:
        return

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        encoding="utf-8",
    )
    try:
        log_path = paths.log_dir() / "chartwright.log"
        file_handler = RotatingFileHandler(log_path, maxBytes=2 * 1024 * 1024, backupCount=3, encoding="utf-8")
    except OSError as exception:
        logger.warning("File logging disabled: %s", exception)
        return
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.getLogger().addHandler(file_handler)


def check_chart_file(path: Path, *, max_lane: int) -> Dict[str, Any]:
    """Validate a chart code file and describe the outcome as a JSON-ready dict."""
    errors: List[str] = []
    note_count = 0
    try:
        notes = chart_code.read_chart_file(path, max_lane=max_lane)
        note_count = len(notes)
    except chart_code.ChartCodeValidationError as exception:
        errors = list(exception.errors)
    except chart_code.ChartCodeParseError as exception:
        errors = [str(exception)]

    return {
        "ok": not errors,
        "path": str(path),
        "notes": note_count,
        "errors": errors,
    }


def _run_gui(app_config: AppConfig, chart_path: Optional[Path]) -> int:
    from PyQt6.QtWidgets import QApplication

    from editor_session import EditorSession
    from main_window import MainWindow

    qt_application = QApplication(sys.argv)

    session = EditorSession(app_config)
    main_window = MainWindow(session)
    main_window.resize(1024, 900)
    main_window.show()

    if chart_path is not None:
        main_window.open_chart(chart_path)

    return int(qt_application.exec())


def main(argv: Optional[List[str]] = None) -> int:
    argument_parser = argparse.ArgumentParser(description="Chartwright chart editor")
    argument_parser.add_argument("--chart", type=Path, help="Chart code file to open on startup.")
    argument_parser.add_argument("--config", type=Path, help="Config file to use instead of the default search.")
    argument_parser.add_argument("--check", type=Path, metavar="PATH", help="Validate a chart file and exit.")
    argument_parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level.")
    parsed_args = argument_parser.parse_args(argv)

    if parsed_args.config is not None:
        app_config, config_path = load_config(parsed_args.config)
    else:
        app_config, config_path = get_config()

    if parsed_args.check is not None:
        report = check_chart_file(parsed_args.check, max_lane=app_config.layout.max_lane)
        print(json.dumps(report, ensure_ascii=False, indent=2))
        return 0 if report["ok"] else 2

    _init_logging(verbose=bool(parsed_args.verbose))
    logger.info("Chartwright starting (config: %s)", config_path if config_path is not None else "defaults")

    return _run_gui(app_config, parsed_args.chart)


if __name__ == "__main__":
    raise SystemExit(main())
