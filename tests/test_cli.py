"""Tests for the command-line entry point."""

import json

import pytest

import main


@pytest.fixture(autouse=True)
def _in_tmp(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


def test_no_arguments_prints_usage(capsys):
    assert main.main(["main.py"]) == 2
    assert "python main.py list" in capsys.readouterr().err


def test_unknown_command(capsys):
    assert main.main(["main.py", "frobnicate"]) == 2


def test_list_fresh_store(capsys):
    assert main.main(["main.py", "list"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("* default  Default")


def test_create_then_list(capsys):
    assert main.main(["main.py", "create", "Coastal Pavilion", "seaside retreat"]) == 0
    project_id = capsys.readouterr().out.strip()
    assert project_id.startswith("proj-")

    main.main(["main.py", "list"])
    out = capsys.readouterr().out
    assert f"* {project_id}  Coastal Pavilion  [seaside retreat]" in out


def test_export_import(tmp_path, capsys):
    main.main(["main.py", "create", "Pavilion", "lake"])
    project_id = capsys.readouterr().out.strip()

    path = tmp_path / "pavilion.json"
    assert main.main(["main.py", "export", project_id, str(path)]) == 0
    assert json.loads(path.read_text(encoding="utf-8"))["state"]["researchTheme"] == "lake"

    assert main.main(["main.py", "import", str(path)]) == 0
    imported_id = capsys.readouterr().out.strip()
    assert imported_id not in ("", project_id)


def test_export_unknown_project(tmp_path, capsys):
    assert main.main(["main.py", "export", "ghost", str(tmp_path / "x.json")]) == 1
    assert "Unknown project" in capsys.readouterr().err


def test_import_bad_file(tmp_path, capsys):
    path = tmp_path / "bad.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    assert main.main(["main.py", "import", str(path)]) == 1
    assert "Import failed" in capsys.readouterr().err


def test_import_missing_file(tmp_path, capsys):
    assert main.main(["main.py", "import", str(tmp_path / "missing.json")]) == 1


def test_process_log(tmp_path, capsys):
    path = tmp_path / "log.json"
    assert main.main(["main.py", "log", str(path)]) == 0
    assert "0 research / 0 generate job(s)" in capsys.readouterr().out
    assert json.loads(path.read_text(encoding="utf-8"))["projectId"] == "default"
