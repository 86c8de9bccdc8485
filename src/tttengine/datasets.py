"""
Solved-position export.

Enumerates every position reachable from the empty board, solves each one with
a single engine session, and writes a table plus a manifest for reproducibility.
"""
from __future__ import annotations

import csv
import hashlib
import importlib.util
import json
import logging
import sys
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .board import Board, apply_move, empty_squares, initial, serialize_board, side_to_move
from .rules import is_terminal, winner
from .search import Engine
from .symmetry import canonical, canonical_with_op, orbit_size
from .tracking import log_artifact, log_metrics, log_params

DATASET_VERSION = "1.0.0"
FORMATS = {"csv", "parquet", "both"}


@dataclass
class ExportArgs:
    out: Path
    canonical_only: bool = False
    format: str = "csv"  # one of: "csv", "parquet", "both"
    cli_argv: Optional[List[str]] = None


def reachable_positions() -> List[Board]:
    """Breadth-first enumeration from the initial position, stopping at terminals."""
    start = initial()
    seen = {start}
    order = [start]
    q = deque([start])
    while q:
        b = q.popleft()
        if is_terminal(b)[0]:
            continue
        for sq in empty_squares(b):
            child = apply_move(b, sq)
            if child not in seen:
                seen.add(child)
                order.append(child)
                q.append(child)
    return order


def solve_position(engine: Engine, board: Board) -> Dict[str, Any]:
    terminal, term_score = is_terminal(board)
    canon, op = canonical_with_op(board)
    w = winner(board)
    return {
        "board_state": serialize_board(board),
        "packed": board,
        "canonical": canon,
        "canonical_op": op,
        "orbit_size": orbit_size(board),
        "side_to_move": "XO"[side_to_move(board)],
        "terminal": terminal,
        "winner": "XO"[w] if w is not None else "",
        "score": term_score if terminal else engine.evaluate(board),
        "best_move": engine.best_move(board) if not terminal else None,
    }


def _schema_hash(rows: List[Dict[str, Any]]) -> str:
    keys = sorted({k for r in rows for k in r.keys()})
    return hashlib.sha256("\n".join(keys).encode("utf-8")).hexdigest()


def _sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open('rb') as f:
        for chunk in iter(lambda: f.read(8192), b''):
            h.update(chunk)
    return h.hexdigest()


def _write_csv(path: Path, rows: List[Dict[str, Any]]) -> None:
    fieldnames = sorted({k for r in rows for k in r.keys()})
    with path.open('w', newline='') as f:
        w = csv.DictWriter(f, fieldnames=fieldnames)
        w.writeheader()
        for r in rows:
            w.writerow(r)


def _write_parquet(path: Path, rows: List[Dict[str, Any]]) -> None:
    import pandas as pd  # type: ignore

    pd.DataFrame(rows).to_parquet(path)


def run_export(args: ExportArgs, engine: Optional[Engine] = None) -> Path:
    fmt = (args.format or "csv").lower()
    if fmt not in FORMATS:
        raise ValueError(f"Unknown export format: {args.format}")
    have_parquet = (
        importlib.util.find_spec('pandas') is not None
        and importlib.util.find_spec('pyarrow') is not None
    )
    msg = "Parquet dependencies not available (install pandas and pyarrow: pip install .[parquet])."
    if fmt == "parquet" and not have_parquet:
        # fail before writing anything
        raise RuntimeError(msg)

    args.out.mkdir(parents=True, exist_ok=True)
    engine = engine if engine is not None else Engine()
    engine.reset()

    logging.info("Enumerating reachable positions…")
    positions = reachable_positions()
    logging.info("Found %d reachable positions", len(positions))

    rows: List[Dict[str, Any]] = []
    term_counts = {"x": 0, "o": 0, "draw": 0}
    for b in positions:
        if args.canonical_only and canonical(b) != b:
            continue
        row = solve_position(engine, b)
        if row["terminal"]:
            key = row["winner"].lower() or "draw"
            term_counts[key] += 1
        rows.append(row)
    rows.sort(key=lambda r: (r["board_state"], r["side_to_move"]))
    logging.info("Solved %d positions (%d search nodes)", len(rows), engine.stats.nodes)

    positions_csv = args.out / "ttt_positions.csv"
    positions_parquet = args.out / "ttt_positions.parquet"
    wrote_csv = wrote_parquet = False
    if fmt in {"csv", "both"}:
        _write_csv(positions_csv, rows)
        wrote_csv = True
        logging.info("Wrote CSV: %s (%d rows)", positions_csv, len(rows))
    if fmt in {"parquet", "both"}:
        if have_parquet:
            _write_parquet(positions_parquet, rows)
            wrote_parquet = True
            logging.info("Wrote Parquet: %s", positions_parquet)
        else:
            logging.warning("%s Proceeding with CSV only; manifest records parquet_written=false.", msg)

    files = {
        "positions_csv": positions_csv if wrote_csv else None,
        "positions_parquet": positions_parquet if wrote_parquet else None,
    }
    packages: Dict[str, str] = {}
    for pkg in ("numpy", "pandas", "pyarrow"):
        if importlib.util.find_spec(pkg) is not None:
            packages[pkg] = getattr(__import__(pkg), "__version__", "?")

    manifest = {
        "dataset_version": DATASET_VERSION,
        "created_at": datetime.now(timezone.utc).isoformat(),
        "args": {"canonical_only": args.canonical_only, "format": fmt},
        "cli_argv": args.cli_argv,
        "python": {"python_version": sys.version.split(" ")[0], "packages": packages},
        "row_counts": {"positions": len(rows)},
        "terminal_split": term_counts,
        "schema_hash": _schema_hash(rows) if rows else None,
        "files": {k: str(p) if p is not None else None for k, p in files.items()},
        "checksums": {k: _sha256_file(p) for k, p in files.items() if p is not None},
        "parquet_written": wrote_parquet,
        "engine": engine.report(),
    }
    manifest_path = args.out / "manifest.json"
    manifest_path.write_text(json.dumps(manifest, indent=2))
    logging.info("Wrote manifest.json")

    log_params({"canonical_only": args.canonical_only, "format": fmt, "rows": len(rows)})
    log_metrics({k: float(v) for k, v in engine.report().items()})
    log_artifact(manifest_path)
    for p in files.values():
        if p is not None:
            log_artifact(p)
    return args.out
