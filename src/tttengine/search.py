"""Negamax search with alpha-beta pruning and a transposition table.

Scores are from the side-to-move perspective. A win found ``k`` plies below the
reporting call is worth ``WIN - k`` and a loss ``LOSS + k``, so the search
prefers the fastest win and the slowest loss.

Cached win and loss scores are stored relative to the node that produced them
and rebased on probe, so an entry found at one depth is valid at any other.
Draws and window bounds short of a win or loss are stored unchanged. Every entry
carries a bound flag computed from the call's ``(alpha, beta)`` window; a
score cut off by the window is never replayed as exact.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass
from typing import Optional

from .board import (
    FULL9,
    Board,
    apply_move,
    bits_o,
    bits_occ,
    bits_x,
    mover_bits,
    opponent_bits,
)
from .cache import EXACT, LOWER, UPPER, TranspositionTable
from .config import EngineConfig
from .rules import WIN, is_terminal, is_win, lose_in, win_in
from .tactics import find_immediate

# Center, corners, edges
MOVE_ORDER = (4, 0, 2, 6, 8, 1, 3, 5, 7)

INF = 1_000

# Anything at least this far from zero is a win or loss; smaller values are draws or window bounds
MATE_BOUND = WIN - 9


def _to_cache(score: int, ply: int) -> int:
    if score >= MATE_BOUND:
        return score + ply
    if score <= -MATE_BOUND:
        return score - ply
    return score


def _from_cache(score: int, ply: int) -> int:
    if score >= MATE_BOUND:
        return score - ply
    if score <= -MATE_BOUND:
        return score + ply
    return score


@dataclass
class SearchStats:
    nodes: int = 0
    cache_hits: int = 0
    shortcuts: int = 0
    cutoffs: int = 0


class Engine:
    """A search session owning its transposition table.

    Call ``reset()`` before each independent game. Public entry points hold the
    engine lock for their whole duration, so a cache probe and the store that
    follows it are never interleaved with another thread's search.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config if config is not None else EngineConfig.from_env()
        self.cache = TranspositionTable(self.config.cache_bits, self.config.verify_keys)
        self.stats = SearchStats()
        self._lock = threading.RLock()

    # ---- public API ----

    def reset(self) -> None:
        with self._lock:
            self.cache.reset()
            self.stats = SearchStats()

    def best_move(self, board: Board) -> Optional[int]:
        with self._lock:
            return self._best_move(board)

    def evaluate(self, board: Board) -> int:
        """Exact score of ``board`` for the side to move."""
        with self._lock:
            return self._search(board, -INF, INF, 0)

    def report(self) -> dict:
        with self._lock:
            out = asdict(self.stats)
            out.update({f"cache_{k}": v for k, v in self.cache.stats().items()})
            return out

    def search(self, board: Board, alpha: int, beta: int, ply: int) -> int:
        """Fail-hard score of ``board`` clamped to ``[alpha, beta]``, ``ply`` plies below the root."""
        with self._lock:
            return self._search(board, alpha, beta, ply)

    # ---- core search ----

    def _best_move(self, board: Board) -> Optional[int]:
        occ = bits_occ(board)
        if occ == FULL9 or is_win(bits_x(board)) or is_win(bits_o(board)):
            return None

        me = mover_bits(board)
        forced = find_immediate(me, opponent_bits(board))
        if forced is not None:
            self.stats.shortcuts += 1
            logging.debug("best_move: tactical shortcut -> %d", forced)
            return forced

        best, best_sq = -INF, None
        for sq in MOVE_ORDER:
            if occ & (1 << sq):
                continue
            if is_win(me | (1 << sq)):
                score = win_in(0)
            else:
                score = -self._search(apply_move(board, sq), -INF, INF, 1)
            if score > best:
                best, best_sq = score, sq
        logging.debug("best_move: square=%s score=%s nodes=%d", best_sq, best, self.stats.nodes)
        return best_sq

    def _search(self, board: Board, alpha: int, beta: int, ply: int) -> int:
        self.stats.nodes += 1
        alpha_orig = alpha

        entry = self.cache.probe(board)
        if entry is not None:
            score = _from_cache(entry.score, ply)
            if (
                entry.flag == EXACT
                or (entry.flag == LOWER and score >= beta)
                or (entry.flag == UPPER and score <= alpha)
            ):
                self.stats.cache_hits += 1
                return score

        terminal, score = is_terminal(board)
        if terminal:
            if score < 0:
                score = lose_in(ply)
            return self._store(board, score, ply, EXACT)

        me = mover_bits(board)
        forced = find_immediate(me, opponent_bits(board))
        if forced is not None:
            self.stats.shortcuts += 1
            if is_win(me | (1 << forced)):
                return self._store(board, win_in(ply), ply, EXACT)
            score = -self._search(apply_move(board, forced), -beta, -alpha, ply + 1)
            return self._store(board, score, ply, self._flag(score, alpha_orig, beta))

        occ = bits_occ(board)
        for sq in MOVE_ORDER:
            if occ & (1 << sq):
                continue
            if is_win(me | (1 << sq)):
                score = win_in(ply)
                if score > alpha:
                    return self._store(board, score, ply, EXACT)
                return self._store(board, alpha, ply, UPPER)
            score = -self._search(apply_move(board, sq), -beta, -alpha, ply + 1)
            if score > alpha:
                alpha = score
                if alpha >= beta:
                    self.stats.cutoffs += 1
                    return self._store(board, alpha, ply, LOWER)
        return self._store(board, alpha, ply, self._flag(alpha, alpha_orig, beta))

    # ---- helpers ----

    @staticmethod
    def _flag(score: int, alpha: int, beta: int) -> int:
        if score <= alpha:
            return UPPER
        if score >= beta:
            return LOWER
        return EXACT

    def _store(self, board: Board, score: int, ply: int, flag: int) -> int:
        self.cache.store(board, _to_cache(score, ply), flag)
        return score
