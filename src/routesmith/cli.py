from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from routesmith.config import get_settings
from routesmith.domain.errors import ModelLoadError, SynthesisError
from routesmith.logging_setup import configure_logging
from routesmith.model.loader import load_service
from routesmith.orchestrator.pipeline import SynthesisResult, run_generate, run_synthesis
from routesmith.routes.grouping import route_table_payload


app = typer.Typer(no_args_is_help=True, add_completion=False)

routes_app = typer.Typer(no_args_is_help=True)
app.add_typer(routes_app, name="routes")

console = Console()
err_console = Console(stderr=True)

_POLICIES = ("error", "last_wins")


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(None, help="DEBUG|INFO|WARNING|ERROR"),
) -> None:
    level = (log_level or get_settings().log_level).upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise typer.BadParameter(f"Unknown log level: {log_level}")
    configure_logging(level)


def _model_path(model: str) -> Path:
    model_path = Path(model).expanduser().resolve()
    if not model_path.exists():
        raise typer.BadParameter(f"Model file does not exist: {model_path}")
    if not model_path.is_file():
        raise typer.BadParameter(f"Model path is not a file: {model_path}")
    return model_path


def _policy(collision_policy: Optional[str]) -> str:
    policy = (collision_policy or get_settings().collision_policy).lower().strip()
    if policy not in _POLICIES:
        raise typer.BadParameter("collision policy must be one of: error, last_wins")
    return policy


def _fail(exc: Exception) -> typer.Exit:
    err_console.print(f"[bold red]error[/bold red]: {escape(str(exc))}", highlight=False)
    return typer.Exit(code=1)


def _synthesize(model: str, service: Optional[str], collision_policy: Optional[str]) -> SynthesisResult:
    model_path = _model_path(model)
    policy = _policy(collision_policy)
    try:
        svc = load_service(model_path, service_id=service)
        return run_synthesis(svc, collision_policy=policy)
    except (ModelLoadError, SynthesisError) as exc:
        raise _fail(exc) from exc


@app.command()
def generate(
    model: str = typer.Argument(..., help="Service model (.json/.yaml/.yml, native or Smithy AST)"),
    out: Optional[str] = typer.Option(None, help="Output directory (default: settings.output_dir)"),
    service: Optional[str] = typer.Option(None, help="Service shape id when the model has several"),
    collision_policy: Optional[str] = typer.Option(None, help="error|last_wins"),
    dry_run: bool = typer.Option(False, help="Synthesize only, write nothing"),
) -> None:
    model_path = _model_path(model)
    policy = _policy(collision_policy)
    out_dir = Path(out or get_settings().output_dir).expanduser()

    try:
        result = run_generate(
            model_path,
            out_dir,
            service_id=service,
            collision_policy=policy,
            dry_run=dry_run,
        )
    except (ModelLoadError, SynthesisError) as exc:
        raise _fail(exc) from exc

    synthesis = result.synthesis
    console.print(f"[bold green]routesmith[/bold green] generate: {synthesis.service_name}")
    console.print(f"Routes: [bold]{len(synthesis.references)}[/bold]")
    for group in synthesis.grouped.values():
        console.print(f"  {group.type_prefix:<20} {len(group.references)} operations")
    console.print(f"Artifacts: {len(synthesis.artifacts)}")
    if result.dry_run:
        console.print("Dry run: nothing written.")
    else:
        console.print(f"[bold green]Wrote[/bold green] {len(result.written)} files to: {result.out_dir}")


@routes_app.command("list")
def routes_list(
    model: str = typer.Argument(..., help="Service model file"),
    service: Optional[str] = typer.Option(None, help="Service shape id when the model has several"),
    collision_policy: Optional[str] = typer.Option(None, help="error|last_wins"),
) -> None:
    result = _synthesize(model, service, collision_policy)

    console.print(f"[bold]Service:[/bold] {result.service_name}")
    console.print(f"[bold]Routes:[/bold] {len(result.references)}")

    table = Table(show_header=True, header_style="bold")
    table.add_column("RESOURCE", no_wrap=True)
    table.add_column("OPERATION", no_wrap=True)
    table.add_column("METHOD", no_wrap=True)
    table.add_column("PATH")
    table.add_column("FUNCTION ID", no_wrap=True)
    table.add_column("HANDLER")

    for group in result.grouped.values():
        for ref in group.references:
            table.add_row(
                group.key,
                ref.operation_name,
                ref.method,
                ref.uri,
                ref.function_id,
                ref.handler_locator,
            )

    console.print(table)


@routes_app.command("export")
def routes_export(
    model: str = typer.Argument(..., help="Service model file"),
    service: Optional[str] = typer.Option(None, help="Service shape id when the model has several"),
    collision_policy: Optional[str] = typer.Option(None, help="error|last_wins"),
    out: Optional[str] = typer.Option(None, help="Output path (default: print to stdout)"),
) -> None:
    result = _synthesize(model, service, collision_policy)
    payload = {
        "service": result.service_name,
        "routes": route_table_payload(result.grouped),
    }
    text = json.dumps(payload, indent=2)

    if out:
        out_path = Path(out).expanduser()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text + "\n", encoding="utf-8")
        console.print(f"[bold green]Wrote[/bold green] route table to: {out_path}")
    else:
        typer.echo(text)


@app.command()
def artifacts(
    model: str = typer.Argument(..., help="Service model file"),
    service: Optional[str] = typer.Option(None, help="Service shape id when the model has several"),
    collision_policy: Optional[str] = typer.Option(None, help="error|last_wins"),
) -> None:
    result = _synthesize(model, service, collision_policy)

    table = Table(show_header=True, header_style="bold")
    table.add_column("KIND", no_wrap=True)
    table.add_column("NAME", no_wrap=True)
    table.add_column("FILE")
    for rec in result.artifacts:
        table.add_row(rec.kind, rec.name, rec.rel_path)

    console.print(f"[bold]Artifacts:[/bold] {len(result.artifacts)}")
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
