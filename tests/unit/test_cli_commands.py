import json
import textwrap
from pathlib import Path

from click.testing import CliRunner

from greybox.cli import cli
from greybox.utils.config import get_settings


def write_multi_doc_yaml(tmp_path: Path) -> Path:
    y = textwrap.dedent(
        """
        suite: Login
        tests:
          - title: logs in
            steps:
              - action: tap
                locator: "#login"
        ---
        suite: Settings
        tests:
          - title: toggles dark mode
            steps:
              - platform: android
                steps:
                  - action: tap
                    locator: {text: Dark}
        """
    )
    p = tmp_path / "demo.yaml"
    p.write_text(y, encoding="utf-8")
    return p


def test_cli_resolve_string_and_structured():
    runner = CliRunner()
    result = runner.invoke(cli, ["resolve", "#user", "--mode", "text"])
    assert result.exit_code == 0
    assert "by.id('user')" in result.output

    result = runner.invoke(cli, ["resolve", "{android: SAVE, ios: Save}", "--platform", "android", "--mode", "text"])
    assert result.exit_code == 0
    assert "by.text('SAVE')" in result.output


def test_cli_resolve_with_context_as_json():
    runner = CliRunner()
    result = runner.invoke(cli, ["resolve", "Row 1", "--mode", "text", "--context", "~list", "--json"])
    assert result.exit_code == 0
    assert json.loads(result.output) == {
        "strategy": "label",
        "value": "list",
        "descendant": {"strategy": "text", "value": "Row 1"},
    }


def test_cli_resolve_pass_through():
    runner = CliRunner()
    result = runner.invoke(cli, ["resolve", "{predicate: custom}"])
    assert result.exit_code == 0
    assert "pass-through" in result.output


def test_cli_validate_with_dir(tmp_path: Path):
    write_multi_doc_yaml(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli, ["validate", "--dir", str(tmp_path), "--no-recursive"])
    assert result.exit_code == 0
    assert result.output.count("OK  ") == 2


def test_cli_validate_reports_errors(tmp_path: Path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("suite: X\ntests: []\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, ["validate", str(bad)])
    assert result.exit_code == 1
    assert "ERR" in result.output


def test_cli_run_with_patched_backend(tmp_path: Path, monkeypatch, android_backend):
    wf = write_multi_doc_yaml(tmp_path)
    fake = android_backend
    seen = {}

    def fake_load_backend(path, options=None):
        seen["path"] = path
        seen["configuration"] = options.configuration
        return fake

    monkeypatch.setattr("greybox.core.engine.load_backend", fake_load_backend)
    out = tmp_path / "summary.json"

    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["run", str(wf), "--backend", "fakebackend:create", "--configuration", "android.emu", "--json-out", str(out)],
    )
    assert result.exit_code == 0, result.output
    assert "Done. OK=2  FAIL=0" in result.output
    assert seen == {"path": "fakebackend:create", "configuration": "android.emu"}
    summary = json.loads(out.read_text(encoding="utf-8"))
    assert [r["suite"] for r in summary["results"]] == ["Login", "Settings"]
    assert ("tap", fake.by.text("Dark")) in fake.calls


def test_cli_run_without_backend_fails(tmp_path: Path, monkeypatch):
    wf = write_multi_doc_yaml(tmp_path)
    monkeypatch.delenv("GREYBOX_BACKEND", raising=False)
    runner = CliRunner()
    result = runner.invoke(cli, ["run", str(wf), "--configuration", "ios.sim.debug"])
    assert result.exit_code == 1
    assert "BackendNotConfigured" in result.output


def test_cli_config_prints_settings():
    runner = CliRunner()
    result = runner.invoke(cli, ["config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert "BACKEND" in data and "LOG_LEVEL" in data


def test_cli_validate_falls_back_to_settings_dir(tmp_path: Path, monkeypatch):
    write_multi_doc_yaml(tmp_path)
    monkeypatch.setenv("GREYBOX_SCENARIOS_DIR", str(tmp_path))
    get_settings.cache_clear()
    try:
        result = CliRunner().invoke(cli, ["validate"])
    finally:
        get_settings.cache_clear()
    assert result.exit_code == 0, result.output
    assert result.output.count("OK  ") == 2


def test_cli_validate_without_input_or_settings_dir(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("GREYBOX_SCENARIOS_DIR", str(tmp_path / "missing"))
    get_settings.cache_clear()
    try:
        result = CliRunner().invoke(cli, ["validate"])
    finally:
        get_settings.cache_clear()
    assert result.exit_code == 2
    assert "Provide file(s) or --dir" in result.output
