import pytest

from src.taste_engine.main import run


def test_cli_rate_and_context(tmp_path, capsys):
    data_dir = str(tmp_path / "data")
    assert run(["--data-dir", data_dir, "rate", "neon cyberpunk city", "5"]) == 0
    assert run(["--data-dir", data_dir, "rate", "neon cyberpunk city", "5"]) == 0

    capsys.readouterr()
    assert run(["--data-dir", data_dir, "context"]) == 0
    out = capsys.readouterr().out
    assert "STRONGLY INCORPORATE" in out
    assert "neon" in out


def test_cli_presets_and_import_failure(tmp_path, capsys):
    data_dir = str(tmp_path / "data")
    assert run(["--data-dir", data_dir, "presets"]) == 0
    assert "Chrome Rain" in capsys.readouterr().out

    bad = tmp_path / "bad.json"
    bad.write_text('{"format_version": "0.1", "name": "x", "dimensions": []}', encoding="utf-8")
    assert run(["--data-dir", data_dir, "import", str(bad)]) == 1


def test_cli_add_node_and_lineage(tmp_path, capsys):
    data_dir = str(tmp_path / "data")
    assert run(["--data-dir", data_dir, "add-node", "a cat"]) == 0
    root_id = capsys.readouterr().out.strip()
    assert run(["--data-dir", data_dir, "add-node", "a cat, volumetric light",
                "--parent", root_id, "--mode", "enhance"]) == 0
    child_id = capsys.readouterr().out.strip()

    assert run(["--data-dir", data_dir, "lineage", child_id]) == 0
    out = capsys.readouterr().out
    assert "- [manual] a cat" in out
    assert "  - [enhance] a cat, volumetric light" in out

    assert run(["--data-dir", data_dir, "lineage", root_id, "--tree"]) == 0
    out = capsys.readouterr().out
    assert f"- {root_id} [manual] a cat" in out
    assert f"  - {child_id} [enhance] a cat, volumetric light" in out


@pytest.mark.parametrize("content", [None, "{not json", "[1, 2"])
def test_cli_import_unreadable_file(tmp_path, capsys, content):
    data_dir = str(tmp_path / "data")
    path = tmp_path / "pack.json"
    if content is not None:
        path.write_text(content, encoding="utf-8")

    assert run(["--data-dir", data_dir, "import", str(path)]) == 1
    assert "Could not read taste pack" in capsys.readouterr().out


def test_cli_stats_and_suggest(tmp_path, capsys):
    data_dir = str(tmp_path / "data")
    run(["--data-dir", data_dir, "like", "neon city"])
    run(["--data-dir", data_dir, "--platform", "suno", "like", "jazz"])
    capsys.readouterr()

    assert run(["--data-dir", data_dir, "stats"]) == 0
    out = capsys.readouterr().out
    assert "Top keywords: city, jazz, neon" in out
    assert "[x] First Taste (1/1)" in out
    assert "[ ] Developing Palette (2/10)" in out

    assert run(["--data-dir", data_dir, "suggest"]) == 0
    out = capsys.readouterr().out
    assert "+ neon (color, 3)" in out
    assert "jazz" not in out
