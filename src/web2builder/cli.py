from __future__ import annotations

import json
import logging
from pathlib import Path

import typer

from web2builder.api.server import serve_api
from web2builder.config import NavigationConfig, RunConfig, ScoringConfig
from web2builder.env import env_flag, env_float, env_int, env_str, load_env_chain
from web2builder.errors import CaptureError, NavigationError
from web2builder.pipeline.clone import run_clone
from web2builder.report.builder import build_clone_response, write_template
from web2builder.utils import slugify_url, unique_path

app = typer.Typer(
    add_completion=False,
    help="web2builder: clone a live page into a page-builder template.",
    pretty_exceptions_show_locals=False,
)


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _navigation_config(timeout_ms: int | None) -> NavigationConfig:
    nav = NavigationConfig()
    if timeout_ms is None or timeout_ms <= 0:
        return nav
    return NavigationConfig(
        strict_idle_timeout_ms=timeout_ms,
        lenient_idle_timeout_ms=min(nav.lenient_idle_timeout_ms, timeout_ms),
        lenient_idle_settle_ms=nav.lenient_idle_settle_ms,
        dom_ready_timeout_ms=min(nav.dom_ready_timeout_ms, timeout_ms),
        dom_ready_settle_ms=nav.dom_ready_settle_ms,
    )


def build_run_config(
    *,
    url: str = "",
    skip_verification: bool = False,
    threshold: float | None = None,
    timeout_ms: int | None = None,
    headful: bool = False,
    visual_proxy: bool = True,
    log_level: str | None = None,
) -> RunConfig:
    """Options win over WEB2BUILDER_* variables, which win over defaults."""
    scoring = ScoringConfig(
        threshold=threshold if threshold is not None else env_float("THRESHOLD", 0.45),
        visual_proxy=visual_proxy and env_flag("VISUAL_PROXY", True),
    )
    resolved_timeout = timeout_ms if timeout_ms is not None else env_int("TIMEOUT_MS", 0)
    return RunConfig(
        url=url,
        skip_verification=skip_verification,
        headful=headful,
        user_agent=env_str("USER_AGENT", RunConfig().user_agent),
        navigation=_navigation_config(resolved_timeout),
        scoring=scoring,
        fetch_stylesheets=env_flag("FETCH_STYLESHEETS", True),
        include_screenshots=env_flag("INCLUDE_SCREENSHOTS", False),
        log_level=log_level or env_str("LOG_LEVEL", "info"),
        output_root=Path(env_str("OUTPUT_DIR", "output")),
    )


@app.command()
def clone(
    url: str = typer.Argument(..., help="Source page URL"),
    skip_verification: bool = typer.Option(
        False, "--skip-verification", help="Skip the fidelity check and always return the template"
    ),
    output: Path = typer.Option(None, "--output", "-o", help="Template file path"),
    threshold: float = typer.Option(None, "--threshold", help="Fidelity pass threshold (0..1)"),
    timeout_ms: int = typer.Option(None, "--timeout-ms", help="Navigation timeout in milliseconds"),
    headful: bool = typer.Option(False, "--headful", help="Run Playwright in visible mode"),
    no_visual_proxy: bool = typer.Option(
        False, "--no-visual-proxy", help="Leave the screenshot-size proxy out of the score"
    ),
    log_level: str = typer.Option(None, "--log-level"),
) -> None:
    load_env_chain(_repo_root())
    cfg = build_run_config(
        url=url,
        skip_verification=skip_verification,
        threshold=threshold,
        timeout_ms=timeout_ms,
        headful=headful,
        visual_proxy=not no_visual_proxy,
        log_level=log_level,
    )
    _configure_logging(cfg.log_level)

    def on_progress(phase: str, percent: int) -> None:
        typer.echo(f"[{percent:3d}%] {phase}")

    typer.echo("web2builder: capturing page...")
    try:
        result = run_clone(url, config=cfg, skip_verification=skip_verification, progress=on_progress)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="URL") from exc
    except NavigationError as exc:
        typer.echo(f"Navigation failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    except CaptureError as exc:
        typer.echo(f"Capture failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    response = build_clone_response(result)
    if not result.success:
        typer.echo(f"Clone refused: {result.reason}", err=True)
        if result.skip_verification_available:
            typer.echo("Retry with --skip-verification to force the clone.", err=True)
        typer.echo(json.dumps(response.get("verification"), ensure_ascii=False, indent=2))
        raise typer.Exit(code=3)

    document = result.document or {}
    if output is None:
        cfg.output_root.mkdir(parents=True, exist_ok=True)
        output = unique_path(cfg.output_root, slugify_url(url), ".json")
    write_template(document, output)
    metadata = response["metadata"]
    typer.echo(
        f"Sections: {metadata['sectionsCount']}  Columns: {metadata['columnsCount']}  "
        f"Widgets: {metadata['widgetsCount']}"
    )
    if result.report is not None:
        typer.echo(
            f"Fidelity: {result.report.fidelity_score:.2f} "
            f"({'passed' if result.report.passed else 'below threshold'})"
        )
    else:
        typer.echo("Fidelity: skipped")
    typer.echo(f"Template: {output}")


@app.command()
def serve(
    host: str = typer.Option(None, "--host"),
    port: int = typer.Option(None, "--port"),
    log_level: str = typer.Option(None, "--log-level"),
) -> None:
    load_env_chain(_repo_root())
    cfg = build_run_config(log_level=log_level)
    _configure_logging(cfg.log_level)
    resolved_host = host or env_str("HOST", "127.0.0.1")
    resolved_port = port if port is not None else env_int("PORT", 5000)
    typer.echo(f"web2builder API at http://{resolved_host}:{resolved_port}/api/health")
    typer.echo("Press Ctrl+C to stop server.")
    serve_api(config=cfg, host=resolved_host, port=resolved_port)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
