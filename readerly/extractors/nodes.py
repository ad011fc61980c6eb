"""Per-attempt node arena.

Scores and other per-node facts live in tables addressed by a stable
integer index instead of on the bs4 objects themselves.  The arena keeps a
strong reference to every registered node, so the ``id()`` lookup cannot be
reused by another object while the arena is alive.
"""

from __future__ import annotations

from bs4 import Tag


class NodeTable:
    """Index-keyed side tables for one extraction attempt."""

    def __init__(self) -> None:
        self._nodes: list[Tag] = []
        self._index: dict[int, int] = {}
        self._scores: list[float] = []
        self._initialized: list[bool] = []
        self._data_tables: dict[int, bool] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    def index(self, node: Tag) -> int:
        """Return the index of *node*, registering it on first sight."""
        key = id(node)
        idx = self._index.get(key)
        if idx is None:
            idx = len(self._nodes)
            self._index[key] = idx
            self._nodes.append(node)
            self._scores.append(0.0)
            self._initialized.append(False)
        return idx

    def node(self, idx: int) -> Tag:
        return self._nodes[idx]

    # -- content scores ----------------------------------------------------

    def is_initialized(self, node: Tag) -> bool:
        idx = self._index.get(id(node))
        return idx is not None and self._initialized[idx]

    def initialize(self, node: Tag, base_score: float) -> None:
        idx = self.index(node)
        self._initialized[idx] = True
        self._scores[idx] = base_score

    def score(self, node: Tag) -> float:
        idx = self._index.get(id(node))
        return self._scores[idx] if idx is not None else 0.0

    def set_score(self, node: Tag, value: float) -> None:
        self._scores[self.index(node)] = value

    def add_score(self, node: Tag, delta: float) -> None:
        self._scores[self.index(node)] += delta

    # -- data tables -------------------------------------------------------

    def mark_data_table(self, node: Tag, is_data: bool) -> None:
        self._data_tables[self.index(node)] = is_data

    def is_data_table(self, node: Tag) -> bool:
        idx = self._index.get(id(node))
        return idx is not None and self._data_tables.get(idx, False)
