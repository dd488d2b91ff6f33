from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from treestream.cli import app
from treestream.fixtures import load_stream


def _write_stream(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "patches.jsonl"
    path.write_text(text, encoding="utf-8")
    return path


def test_replay_prints_final_tree_and_stats(tmp_path: Path) -> None:
    patch_file = _write_stream(tmp_path, load_stream("table"))

    runner = CliRunner()
    result = runner.invoke(app, ["replay", str(patch_file), "--chunk-size", "5"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["tree"]["root"] == "root-table-card"
    assert payload["stats"]["total"] == 2
    assert payload["stats"]["missing_child_refs"] == []
    assert payload["parse_error"] is None


def test_replay_lazy_mode_still_applies_unterminated_last_line(tmp_path: Path) -> None:
    patch_file = _write_stream(tmp_path, '{"op":"set","path":"/root","value":"tail"}')

    runner = CliRunner()
    result = runner.invoke(app, ["replay", str(patch_file), "--lazy", "-n", "3"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["tree"]["root"] == "tail"


def test_replay_reads_config_file(tmp_path: Path) -> None:
    config_path = tmp_path / "treestream.yaml"
    config_path.write_text("stream:\n  comment_prefixes: ['#']\n", encoding="utf-8")
    patch_file = _write_stream(
        tmp_path,
        '# {"op":"set","path":"/root","value":"hidden"}\n{"op":"set","path":"/root","value":"shown"}\n',
    )

    runner = CliRunner()
    result = runner.invoke(app, ["replay", str(patch_file), "--config", str(config_path), "--no-tree"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert "tree" not in payload
    assert payload["counts"] == {"applied": 1, "unparsed": 1}


def test_replay_exits_non_zero_when_a_patch_failed(tmp_path: Path) -> None:
    patch_file = _write_stream(
        tmp_path,
        '{"op":"add","path":"/elements/x","value":null}\n{"op":"set","path":"/elements/x/props","value":{}}\n',
    )

    runner = CliRunner()
    result = runner.invoke(app, ["replay", str(patch_file)])

    assert result.exit_code == 2


def test_replay_rejects_missing_file(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["replay", str(tmp_path / "absent.jsonl")])

    assert result.exit_code != 0


def test_demo_replays_bundled_stream() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["demo", "dashboard", "--chunk-size", "9"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["stats"]["total"] == 12
    assert payload["stats"]["orphan_count"] == 0


def test_demo_rejects_unknown_stream() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["demo", "nope"])

    assert result.exit_code != 0


def test_stats_reports_dangling_children(tmp_path: Path) -> None:
    tree_file = tmp_path / "tree.json"
    tree_file.write_text(
        json.dumps({"root": "r", "elements": {"r": {"type": "Stack", "children": ["gone"]}}}),
        encoding="utf-8",
    )

    runner = CliRunner()
    result = runner.invoke(app, ["stats", str(tree_file)])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["missing_child_refs"] == [{"parent": "r", "child": "gone"}]
    assert payload["reachable"] == 1


def test_stats_rejects_invalid_tree(tmp_path: Path) -> None:
    tree_file = tmp_path / "tree.json"
    tree_file.write_text(json.dumps({"elements": {}}), encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(app, ["stats", str(tree_file)])

    assert result.exit_code == 1
