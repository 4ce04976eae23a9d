# -*- coding: utf-8 -*-
########################
# history.py
########################
# Purpose:
# - Linear undo/redo history of committed NoteStore snapshots.
#
# Design notes:
# - No Qt usage.
# - commit() truncates everything past the cursor, appends and advances.
# - undo()/redo() clamp at either end and return the store at the cursor.
# - Snapshots are immutable NoteStore values, so entries never alias mutable state.
# - limit > 0 drops the oldest snapshots once the history grows past the limit.
#
########################
# Interfaces:
# Public classes:
# - class HistoryManager
#   - __init__(initial_store: NoteStore, *, limit: int = 0)
#   - current() -> NoteStore
#   - commit(store: NoteStore) -> NoteStore
#   - undo() -> NoteStore
#   - redo() -> NoteStore
#   - can_undo() -> bool
#   - can_redo() -> bool
#   - reset(store: NoteStore) -> None
#
########################

from __future__ import annotations

from typing import List

from note_store import NoteStore


class HistoryManager:
    def __init__(self, initial_store: NoteStore, *, limit: int = 0) -> None:
        self._limit = max(0, int(limit))
        self._history: List[NoteStore] = [initial_store]
        self._cursor = 0

    def current(self) -> NoteStore:
        return self._history[self._cursor]

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return len(self._history)

    def commit(self, store: NoteStore) -> NoteStore:
        del self._history[self._cursor + 1:]
        self._history.append(store)
        if self._limit and len(self._history) > self._limit:
            del self._history[: len(self._history) - self._limit]
        self._cursor = len(self._history) - 1
        return store

    def undo(self) -> NoteStore:
        if self._cursor > 0:
            self._cursor -= 1
        return self.current()

    def redo(self) -> NoteStore:
        if self._cursor < len(self._history) - 1:
            self._cursor += 1
        return self.current()

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._history) - 1

    def reset(self, store: NoteStore) -> None:
        self._history = [store]
        self._cursor = 0


def _run_unit_tests() -> None:
    import chart_models

    stores = [NoteStore([chart_models.TapNote(beat=float(index), lane=0)]) for index in range(3)]
    history = HistoryManager(NoteStore())
    for store in stores:
        history.commit(store)

    history.undo()
    history.undo()
    assert history.redo() == stores[1]

    history.commit(NoteStore())
    assert not history.can_redo()


if __name__ == "__main__":
    _run_unit_tests()
    print("history.py: ok")
