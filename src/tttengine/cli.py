from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from .board import (
    FULL9,
    Board,
    O,
    X,
    apply_move,
    bits_occ,
    from_moves,
    initial,
    is_legal,
    mover_bits,
    opponent_bits,
    parse_board,
    side_to_move,
)
from .datasets import ExportArgs, run_export
from .notation import ParseError, format_square, parse_move, read_move
from .render import render_board, token
from .rules import DRAW, is_terminal
from .search import Engine
from .tactics import blocking_squares, find_immediate, fork_squares, winning_squares
from .tracking import maybe_mlflow_run

NO_AI = None


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ttt", description="Tic-tac-toe engine CLI")
    sub = p.add_subparsers(dest="cmd")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    p.add_argument("--version", action="store_true", help="Print version and exit")

    p_play = sub.add_parser("play", help="Play an interactive game")
    p_play.add_argument(
        "--ai",
        type=_ai_side,
        default=NO_AI,
        metavar="X|O|none",
        help="Side played by the engine (default: none, human vs human)",
    )

    p_best = sub.add_parser("best", help="Best move for the side to move")
    src = p_best.add_mutually_exclusive_group(required=True)
    src.add_argument("--board", help="Board string, e.g., 100020000 (0=empty,1=X,2=O)")
    src.add_argument("--moves", help='Comma-separated moves from the start, e.g. "a1,b2,0"')

    p_tac = sub.add_parser("tactics", help="List immediate wins, blocks and forks for side-to-move")
    p_tac.add_argument("--board", required=True, help="Board string, e.g., 100020000")

    sub.add_parser("selftest", help="Run the engine self-test")

    p_export = sub.add_parser(
        "export",
        help="Export solved positions (CSV by default; parquet requires pandas+pyarrow)",
    )
    p_export.add_argument(
        "--out", type=Path, default=Path("data_raw"), help="Output directory (default: data_raw)"
    )
    p_export.add_argument(
        "--canonical-only", action="store_true", help="Only export canonical positions"
    )
    p_export.add_argument(
        "--format",
        choices=["csv", "parquet", "both"],
        default="csv",
        help="Export format: csv (default), parquet, both",
    )
    p_export.add_argument(
        "--tracking",
        choices=["none", "mlflow"],
        default="none",
        help="Experiment tracking backend",
    )
    p_export.add_argument(
        "--log-dir",
        type=Path,
        default=Path("runs"),
        help="Directory for tracking logs/artifacts (for mlflow local backend)",
    )
    return p


def _ai_side(value: str) -> Optional[int]:
    v = value.strip().lower()
    if v == "x":
        return X
    if v in ("o", "0"):
        return O
    if v == "none":
        return NO_AI
    raise argparse.ArgumentTypeError(f"expected X, O or none, got {value!r}")


def _moves_to_board(text: str) -> Board:
    squares: List[int] = []
    for tok in text.split(','):
        if not tok.strip():
            continue
        sq = parse_move(tok)
        if isinstance(sq, ParseError):
            raise ValueError(f"Bad move {tok.strip()!r}: {sq.name.lower().replace('_', ' ')}")
        squares.append(sq)
    board = initial()
    for sq in squares:
        if is_terminal(board)[0]:
            raise ValueError(f"Move {format_square(sq)} played after the game ended")
        board = apply_move(board, sq)
    return board


def _human_move(board: Board, stdin: TextIO, out: TextIO) -> Optional[int]:
    while True:
        print(f"\nPlayer {token(side_to_move(board))}, your move (0-8 or a1..c3): ", end="", file=out)
        out.flush()
        move = read_move(stdin)
        if move is ParseError.EOF:
            return None
        if move is ParseError.INVALID_FORMAT:
            print("Invalid format. Enter 0-8 or a1-c3.", file=sys.stderr)
            continue
        if move is ParseError.OUT_OF_RANGE:
            print("Move out of range. Enter 0-8 or a1-c3.", file=sys.stderr)
            continue
        if not is_legal(board, move):
            print("Illegal move (square occupied or invalid).", file=sys.stderr)
            continue
        return move


def run_game(ai_side: Optional[int], engine: Engine, stdin: TextIO = sys.stdin, out: TextIO = sys.stdout) -> int:
    engine.reset()
    board = initial()
    print("Welcome to Tic-Tac-Toe!\n", file=out)
    while True:
        print(render_board(board), file=out)
        terminal, score = is_terminal(board)
        if terminal:
            print("\n--- GAME OVER ---", file=out)
            if score == DRAW:
                print("It's a draw!", file=out)
            else:
                print(f"Player {token(side_to_move(board) ^ 1)} wins!", file=out)
            print("-----------------", file=out)
            return 0
        if ai_side is not None and side_to_move(board) == ai_side:
            print("\nAI is playing...", file=out)
            move = engine.best_move(board)
            print(f"AI played on square {move} ({format_square(move)})", file=out)
        else:
            move = _human_move(board, stdin, out)
            if move is None:
                print("\nExiting game.", file=out)
                return 0
        board = apply_move(board, move)


def selftest(engine: Engine) -> bool:
    engine.reset()
    b = initial()
    while not is_terminal(b)[0]:
        mv = engine.best_move(b)
        if mv is None:
            break
        b = apply_move(b, mv)
    terminal, score = is_terminal(b)
    if not terminal or score != DRAW:
        logging.error("Selftest: optimal self-play should draw, got terminal=%s score=%s", terminal, score)
        return False

    engine.reset()
    mv = engine.best_move(from_moves([0, 4, 1]))
    if mv != 2:
        logging.error("Selftest: expected best move 2, got %s", mv)
        return False
    logging.info("Selftest passed. %s", engine.report())
    return True


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if getattr(ns, "verbose", False) else logging.INFO,
                        format="[%(levelname)s] %(message)s")

    if getattr(ns, "version", False):
        try:
            from importlib.metadata import PackageNotFoundError, version as _ver

            print(_ver("ttt-engine"))
        except PackageNotFoundError:
            print("unknown")
        return 0

    try:
        engine = Engine()
    except ValueError as e:
        logging.error("Invalid engine configuration: %s", e)
        return 2

    if ns.cmd == "play":
        return run_game(ns.ai, engine)

    if ns.cmd == "best":
        try:
            board = parse_board(ns.board) if ns.board is not None else _moves_to_board(ns.moves)
        except ValueError as e:
            logging.error("%s", e)
            return 2
        engine.reset()
        mv = engine.best_move(board)
        terminal, score = is_terminal(board)
        if not terminal:
            score = engine.evaluate(board)
        logging.info(
            "to_move=%s best=%s square=%s score=%s",
            token(side_to_move(board)),
            mv,
            format_square(mv) if mv is not None else "-",
            score,
        )
        return 0

    if ns.cmd == "tactics":
        try:
            board = parse_board(ns.board)
        except ValueError as e:
            logging.error("%s", e)
            return 2
        empty = ~bits_occ(board) & FULL9
        logging.info(
            "to_move=%s wins=%s blocks=%s forks=%s shortcut=%s",
            token(side_to_move(board)),
            winning_squares(mover_bits(board), empty),
            blocking_squares(board),
            fork_squares(board),
            find_immediate(mover_bits(board), opponent_bits(board)),
        )
        return 0

    if ns.cmd == "selftest":
        return 0 if selftest(engine) else 1

    if ns.cmd == "export":
        with maybe_mlflow_run(ns.tracking == "mlflow", run_name="positions_export", log_dir=ns.log_dir):
            try:
                out = run_export(
                    ExportArgs(
                        out=ns.out,
                        canonical_only=ns.canonical_only,
                        format=ns.format,
                        cli_argv=list(argv) if argv is not None else None,
                    ),
                    engine=engine,
                )
            except RuntimeError as e:
                logging.error("%s", e)
                return 2
        logging.info("Exported positions to: %s", out)
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
