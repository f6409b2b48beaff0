from __future__ import annotations

from studiokit.domain.entities.edit_state import DEFAULT_STATE, EditState


class ParameterStore:
    """Linear undo/redo history of `EditState` snapshots.

    Index 0 always holds the default state. Committing after an undo drops the
    redo branch, so the history is a straight line from index 0 to the newest
    commit. The cursor never leaves `[0, len - 1]`.
    """

    def __init__(self, initial: EditState = DEFAULT_STATE) -> None:
        self._initial = initial
        self._history: list[EditState] = [initial]
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._history)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def history(self) -> tuple[EditState, ...]:
        return tuple(self._history)

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._history) - 1

    def current(self) -> EditState:
        return self._history[self._cursor]

    def commit(self, state: EditState) -> EditState:
        del self._history[self._cursor + 1 :]
        self._history.append(state)
        self._cursor = len(self._history) - 1
        return state

    def undo(self) -> EditState:
        if self.can_undo:
            self._cursor -= 1
        return self.current()

    def redo(self) -> EditState:
        if self.can_redo:
            self._cursor += 1
        return self.current()

    def reset(self) -> None:
        self._history = [self._initial]
        self._cursor = 0
