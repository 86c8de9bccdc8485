import importlib
import json
from pathlib import Path

import pytest

from tttengine.config import EngineConfig
from tttengine.datasets import ExportArgs, reachable_positions, run_export
from tttengine.rules import is_terminal, winner
from tttengine.search import Engine
from tttengine.symmetry import canonical


def test_reachable_counts_snapshot():
    positions = reachable_positions()
    assert len(positions) == 5478
    assert len({canonical(b) for b in positions}) == 765
    terminal = [b for b in positions if is_terminal(b)[0]]
    split = {"x": 0, "o": 0, "draw": 0}
    for b in terminal:
        w = winner(b)
        split["draw" if w is None else "xo"[w]] += 1
    assert split == {"x": 626, "o": 316, "draw": 16}


def test_export_canonical_positions(tmp_path: Path):
    out = tmp_path / "exp"
    res = run_export(ExportArgs(out=out, canonical_only=True), engine=Engine(EngineConfig()))
    csv_path = res / "ttt_positions.csv"
    assert csv_path.exists()
    lines = csv_path.read_text().splitlines()
    assert len(lines) == 765 + 1
    manifest = json.loads((res / "manifest.json").read_text())
    assert manifest["dataset_version"]
    assert manifest["row_counts"]["positions"] == 765
    assert manifest["terminal_split"] == {"x": 91, "o": 44, "draw": 3}
    assert manifest["parquet_written"] is False
    assert set(manifest["checksums"]) == {"positions_csv"}
    assert manifest["engine"]["nodes"] > 0


def test_export_is_reproducible(tmp_path: Path):
    a = run_export(ExportArgs(out=tmp_path / "a", canonical_only=True), engine=Engine(EngineConfig()))
    b = run_export(ExportArgs(out=tmp_path / "b", canonical_only=True), engine=Engine(EngineConfig()))
    assert (a / "ttt_positions.csv").read_bytes() == (b / "ttt_positions.csv").read_bytes()
    ma = json.loads((a / "manifest.json").read_text())
    mb = json.loads((b / "manifest.json").read_text())
    assert ma["schema_hash"] == mb["schema_hash"]
    assert ma["checksums"] == mb["checksums"]


def test_empty_board_row(tmp_path: Path):
    res = run_export(ExportArgs(out=tmp_path / "exp", canonical_only=True), engine=Engine(EngineConfig()))
    header, first = (res / "ttt_positions.csv").read_text().splitlines()[:2]
    row = dict(zip(header.split(","), first.split(",")))
    assert row["board_state"] == "000000000"
    assert row["score"] == "0"
    assert row["best_move"] == "4"
    assert row["orbit_size"] == "1"


def _hide_parquet_deps(monkeypatch: pytest.MonkeyPatch) -> None:
    real_find_spec = importlib.util.find_spec

    def fake_find_spec(name: str, package=None):  # type: ignore[override]
        if name in {"pandas", "pyarrow"}:
            return None
        return real_find_spec(name, package)

    monkeypatch.setattr(importlib.util, "find_spec", fake_find_spec)


def test_format_both_graceful_without_parquet_deps(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _hide_parquet_deps(monkeypatch)
    res = run_export(ExportArgs(out=tmp_path / "both", canonical_only=True, format="both"))
    assert (res / "ttt_positions.csv").exists()
    assert not (res / "ttt_positions.parquet").exists()
    assert json.loads((res / "manifest.json").read_text())["parquet_written"] is False


def test_format_parquet_strict_without_deps(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _hide_parquet_deps(monkeypatch)
    out = tmp_path / "pq"
    with pytest.raises(RuntimeError):
        run_export(ExportArgs(out=out, canonical_only=True, format="parquet"))
    assert not out.exists()


def test_unknown_format_rejected(tmp_path: Path):
    with pytest.raises(ValueError):
        run_export(ExportArgs(out=tmp_path / "x", format="xlsx"))


def test_parquet_export_when_available(tmp_path: Path):
    pd = pytest.importorskip("pandas")
    pytest.importorskip("pyarrow")
    res = run_export(ExportArgs(out=tmp_path / "pq", canonical_only=True, format="parquet"))
    df = pd.read_parquet(res / "ttt_positions.parquet")
    assert len(df) == 765
