import json
from pathlib import Path

from typer.testing import CliRunner

from setupkit.cli import EXIT_INVALID_INPUT, EXIT_NOT_FOUND, EXIT_OK, app
from setupkit.snapshot import init_project

runner = CliRunner()


def _parse_json_output(output: str) -> dict:
    lines = [line for line in output.splitlines() if line.strip()]
    last = lines[-1]
    return json.loads(last[last.index("{"):])


def _env(tmp_path: Path) -> dict:
    config = tmp_path / "config.yml"
    if not config.exists():
        config.write_text(f"snapshots_path: {tmp_path / 'snapshots'}\n", encoding="utf-8")
    return {"SETUPKIT_CONFIG": str(config)}


def _template(tmp_path: Path) -> Path:
    source = tmp_path / "template"
    init_project(source, "demo")
    (source / "setupkit.yml").write_text(
        "project:\n  name: demo\nvariables:\n  - name: var0\n  - name: var1\n    default: value1\n",
        encoding="utf-8",
    )
    (source / "README.md").write_text("{{var0}}/{{var1}}\n", encoding="utf-8")
    return source


def test_snapshot_show_empty_registry(tmp_path: Path):
    result = runner.invoke(app, ["snapshot", "show", "--format", "json"], env=_env(tmp_path))

    assert result.exit_code == EXIT_OK
    payload = _parse_json_output(result.stdout)
    assert payload["ok"] is True
    assert payload["command"] == "snapshot show"
    assert payload["data"]["snapshots"] == []


def test_create_then_show_lists_snapshot(tmp_path: Path):
    env = _env(tmp_path)
    source = _template(tmp_path)

    created = runner.invoke(app, ["snapshot", "create", str(source), "--format", "json"], env=env)
    assert created.exit_code == EXIT_OK
    assert _parse_json_output(created.stdout)["data"]["id"] == "demo"

    tagged = runner.invoke(app, ["snapshot", "create", str(source), "--name", "alpha", "--format", "json"], env=env)
    assert tagged.exit_code == EXIT_OK

    shown = runner.invoke(app, ["snapshot", "show", "--format", "json"], env=env)
    assert _parse_json_output(shown.stdout)["data"]["snapshots"] == ["alpha", "demo"]


def test_create_without_init_is_invalid_input(tmp_path: Path):
    source = tmp_path / "bare"
    source.mkdir()

    result = runner.invoke(app, ["snapshot", "create", str(source), "--format", "json"], env=_env(tmp_path))

    assert result.exit_code == EXIT_INVALID_INPUT
    payload = _parse_json_output(result.stdout)
    assert payload["ok"] is False
    assert payload["error"]["code"] == "missing_initialization"
    assert not (tmp_path / "snapshots").exists()


def test_clone_prompts_and_substitutes(tmp_path: Path):
    env = _env(tmp_path)
    runner.invoke(app, ["snapshot", "create", str(_template(tmp_path))], env=env)
    destination = tmp_path / "clone"

    result = runner.invoke(
        app,
        ["snapshot", "clone", "demo", "--destination", str(destination)],
        input="value0\n\n",
        env=env,
    )

    assert result.exit_code == EXIT_OK
    assert "Enter value for var0: " in result.stdout
    assert "Enter value for var1 [default: value1]: " in result.stdout
    assert (destination / "README.md").read_text(encoding="utf-8") == "value0/value1\n"


def test_clone_unknown_snapshot_is_not_found(tmp_path: Path):
    result = runner.invoke(app, ["snapshot", "clone", "missing", "--format", "json"], env=_env(tmp_path))

    assert result.exit_code == EXIT_NOT_FOUND
    payload = _parse_json_output(result.stdout)
    assert payload["error"]["code"] == "snapshot_not_found"
    assert payload["exit_code"] == EXIT_NOT_FOUND


def test_init_writes_files_with_prompted_name(tmp_path: Path):
    target = tmp_path / "project"

    result = runner.invoke(app, ["init", "--dir", str(target)], input="prompted\n", env=_env(tmp_path))

    assert result.exit_code == EXIT_OK
    assert (target / ".setupkitignore").exists()
    assert "prompted" in (target / "setupkit.yml").read_text(encoding="utf-8")

    again = runner.invoke(app, ["init", "--dir", str(target), "--name", "x", "--format", "json"], env=_env(tmp_path))
    assert again.exit_code == EXIT_INVALID_INPUT
    assert _parse_json_output(again.stdout)["error"]["code"] == "project_exists"


def test_config_show_reports_settings(tmp_path: Path):
    result = runner.invoke(app, ["config", "show", "--format", "json"], env=_env(tmp_path))

    assert result.exit_code == EXIT_OK
    data = _parse_json_output(result.stdout)["data"]
    assert data["snapshots_path"] == str(tmp_path / "snapshots")
    assert data["config_file_path"] == str(tmp_path / "config.yml")
    assert data["debug_mode"] == "error"


def test_missing_config_file_is_bootstrapped(tmp_path: Path):
    config = tmp_path / "nested" / "config.yml"

    result = runner.invoke(app, ["--config", str(config), "version", "--format", "json"])

    assert result.exit_code == EXIT_OK
    assert config.exists()
