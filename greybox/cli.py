from __future__ import annotations

"""Command-line interface
------------------------
Inspect effective config, resolve locators offline, and validate or run
scenario files. Thin wrapper around the resolver, loader and engine.
"""

import json
import sys
from pathlib import Path
from typing import Any, List, Optional

import click
import yaml

from greybox.core.backend import Platform
from greybox.core.scenario import find_scenario_files, load_scenarios_file
from greybox.selectors.locator import LocatorMode, Resolver
from greybox.selectors.spec import SelectorSpec, SpecSelectors
from greybox.utils.config import get_settings
from greybox.utils.logger import set_log_level


# -------- helpers --------


def _echo_json(obj: Any) -> None:
    click.echo(json.dumps(obj, indent=2, ensure_ascii=False, default=str))


def _parse_locator(raw: Optional[str]) -> Any:
    """'{...}' is read as a structured locator (YAML flow or JSON); anything else is a string."""
    if raw is None:
        return None
    if raw.lstrip().startswith("{"):
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise click.BadParameter(f"cannot parse structured locator: {e}") from e
        if not isinstance(data, dict):
            raise click.BadParameter("structured locator must be a mapping")
        return data
    return raw


def _collect(targets: List[str], scenarios_dir: Optional[str], recursive: bool) -> List[Path]:
    paths: List[Path] = []
    if targets:
        for p in (Path(t).resolve() for t in targets):
            if p.is_dir():
                paths.extend(find_scenario_files(p, recursive=True))
            else:
                paths.append(p)
    elif scenarios_dir:
        paths.extend(find_scenario_files(Path(scenarios_dir), recursive=recursive))
    elif get_settings().SCENARIOS_DIR.is_dir():
        # nothing named: fall back to the configured scenarios directory
        paths.extend(find_scenario_files(get_settings().SCENARIOS_DIR, recursive=recursive))
    return paths


# -------- CLI root --------


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override GREYBOX_LOG_LEVEL",
)
@click.version_option(package_name="greybox-helper")
def cli(log_level: Optional[str]):
    _ = get_settings()
    if log_level:
        set_log_level(log_level.upper())


# -------- commands --------


@cli.command("config")
def cmd_config():
    """Print effective settings (after .env & env vars)."""
    s = get_settings()
    _echo_json({k: (v.value if hasattr(v, "value") else v) for k, v in s.model_dump().items()})


@cli.command("resolve")
@click.argument("locator")
@click.option("--platform", type=click.Choice([p.value for p in Platform]), default=Platform.IOS.value, show_default=True)
@click.option("--mode", type=click.Choice([m.value for m in LocatorMode]), default=LocatorMode.type.value, show_default=True)
@click.option("--context", "context", type=str, default=None, help="Context locator to scope within")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the selector as JSON")
def cmd_resolve(locator: str, platform: str, mode: str, context: Optional[str], as_json: bool):
    """
    Show which selector a locator resolves to.

    Examples:
      greybox resolve '#login'
      greybox resolve '{android: SAVE, ios: Save}' --platform android --mode text
    """
    resolver = Resolver(SpecSelectors(), lambda: Platform(platform))
    selector = resolver.resolve_within(_parse_locator(locator), _parse_locator(context), mode)
    if isinstance(selector, SelectorSpec):
        if as_json:
            _echo_json(selector.to_dict())
        else:
            click.echo(selector.describe())
        return
    # no usable key: the value is handed to the backend unchanged
    click.echo("pass-through (no locator key matched):")
    _echo_json(selector)


@cli.command("validate")
@click.argument("targets", nargs=-1, required=False)
@click.option("--dir", "scenarios_dir", type=click.Path(file_okay=False, dir_okay=True, exists=True), help="Validate all scenarios under this directory (default: GREYBOX_SCENARIOS_DIR)")
@click.option("--recursive/--no-recursive", default=True, show_default=True)
def cmd_validate(targets: List[str], scenarios_dir: Optional[str], recursive: bool):
    """Validate scenario files (supports multi-doc YAML)."""
    paths = _collect(list(targets), scenarios_dir, recursive)
    if not paths:
        click.echo("Provide file(s) or --dir to validate (no GREYBOX_SCENARIOS_DIR found).")
        sys.exit(2)

    ok = True
    for fp in paths:
        try:
            for sc in load_scenarios_file(fp):
                click.echo(f"OK  {fp}  ->  [{sc.suite}] {len(sc.tests)} test(s), {sc.step_count()} step(s)")
        except Exception as e:
            ok = False
            click.echo(f"ERR {fp}  ->  {e}")

    sys.exit(0 if ok else 1)


@cli.command("run")
@click.argument("targets", nargs=-1, required=False)
@click.option("--dir", "scenarios_dir", type=click.Path(file_okay=False, dir_okay=True, exists=True), help="Run all scenarios under this directory (default: GREYBOX_SCENARIOS_DIR)")
@click.option("--recursive/--no-recursive", default=True, show_default=True)
@click.option("--backend", "backend_path", type=str, default=None, help="Backend factory 'module:callable' (overrides GREYBOX_BACKEND)")
@click.option("--configuration", type=str, default=None, help="Backend configuration profile (overrides GREYBOX_CONFIGURATION)")
@click.option("--json-out", type=click.Path(dir_okay=False), default=None, help="Write a JSON summary to this file")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Also write a JSON run log here")
def cmd_run(
    targets: List[str],
    scenarios_dir: Optional[str],
    recursive: bool,
    backend_path: Optional[str],
    configuration: Optional[str],
    json_out: Optional[str],
    log_file: Optional[str],
):
    """
    Run scenario files against a backend.

    Examples:
      greybox run scenarios/login.yaml --backend mybackend:create --configuration ios.sim.debug
      greybox run --dir scenarios
    """
    from greybox.core.engine import run_scenarios  # local import keeps `resolve`/`validate` light

    settings = get_settings()
    if backend_path:
        settings = settings.model_copy(update={"BACKEND": backend_path})
    config = {"configuration": configuration} if configuration else None

    paths = _collect(list(targets), scenarios_dir, recursive)
    if not paths:
        click.echo("Nothing to run. Provide file(s) or --dir (no GREYBOX_SCENARIOS_DIR found).")
        sys.exit(2)

    click.echo(f"Running {len(paths)} scenario file(s)...")
    results: List[dict] = []
    for fp in paths:
        try:
            suites = run_scenarios(fp, config=config, settings=settings, run_log=Path(log_file) if log_file else None)
        except Exception as e:
            suites = [{"ok": False, "suite": str(fp), "tests": [], "error": str(e), "error_type": type(e).__name__}]
        for res in suites:
            res["file"] = str(fp)
            results.append(res)

    for res in results:
        if res.get("ok"):
            click.echo(f"OK  {res['file']} [{res['suite']}] {len(res['tests'])} test(s)")
            continue
        if res.get("error"):
            click.echo(f"ERR {res['file']} [{res['suite']}] -> {res.get('error_type', 'Error')}: {res['error']}")
        for t in res["tests"]:
            if t["status"] != "passed":
                click.echo(f"  FAIL {t['title']} -> {t.get('error_type', 'Error')}: {t.get('error', '')}")

    ok_count = sum(1 for r in results if r.get("ok"))
    fail_count = len(results) - ok_count
    click.echo(f"Done. OK={ok_count}  FAIL={fail_count}")

    if json_out:
        outp = Path(json_out).resolve()
        outp.parent.mkdir(parents=True, exist_ok=True)
        outp.write_text(json.dumps({"results": results}, indent=2), encoding="utf-8")
        click.echo(f"Wrote summary: {outp}")

    sys.exit(0 if fail_count == 0 else 1)


def main() -> None:
    cli(prog_name="greybox")


if __name__ == "__main__":
    main()
