"""Fixed-size transposition table keyed by canonical position.

The slot index is the low bits of ``canonical(board)``. When the table is
smaller than the canonical key space two positions can land on the same slot;
with ``verify_keys`` each entry keeps its full canonical key and a mismatch
counts as a miss. Without it the slot is trusted blindly, which can make the
search pick a suboptimal (though always legal) move.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .board import Board
from .symmetry import canonical

# Bound flags
EXACT, LOWER, UPPER = 0, 1, 2


@dataclass(frozen=True)
class TTEntry:
    key: int
    score: int
    flag: int


class TranspositionTable:
    def __init__(self, bits: int = 19, verify_keys: bool = True):
        if bits < 1:
            raise ValueError(f"Table needs at least one index bit, got {bits}")
        self.size = 1 << bits
        self.verify_keys = verify_keys
        self._mask = self.size - 1
        self._computed = np.zeros(self.size, dtype=np.bool_)
        self._keys = np.zeros(self.size, dtype=np.int32)
        self._scores = np.zeros(self.size, dtype=np.int16)
        self._flags = np.zeros(self.size, dtype=np.int8)
        self.hits = 0
        self.misses = 0
        self.collisions = 0

    def reset(self) -> None:
        """Logically empty the table; storage is kept."""
        self._computed.fill(False)
        self.hits = self.misses = self.collisions = 0

    def index(self, board: Board) -> int:
        return canonical(board) & self._mask

    def probe(self, board: Board) -> Optional[TTEntry]:
        key = canonical(board)
        i = key & self._mask
        if not self._computed[i]:
            self.misses += 1
            return None
        stored_key = int(self._keys[i])
        if stored_key != key:
            self.collisions += 1
            if self.verify_keys:
                self.misses += 1
                return None
        self.hits += 1
        return TTEntry(key=stored_key, score=int(self._scores[i]), flag=int(self._flags[i]))

    def store(self, board: Board, score: int, flag: int = EXACT) -> None:
        key = canonical(board)
        i = key & self._mask
        self._keys[i] = key
        self._scores[i] = score
        self._flags[i] = flag
        self._computed[i] = True

    def __len__(self) -> int:
        return int(np.count_nonzero(self._computed))

    def stats(self) -> dict:
        return {
            "size": self.size,
            "filled": len(self),
            "hits": self.hits,
            "misses": self.misses,
            "collisions": self.collisions,
        }
