"""Command-line interface for log-trace.

Commands:
    log-trace demo       Run a nested, traced call chain and print its lines.
    log-trace settings   Show the effective tracer settings.
"""

import typer
from rich.console import Console
from rich.table import Table

from log_trace.config import get_settings
from log_trace.telemetry import configure_logging
from log_trace.trace import TraceTemplate, build_log_trace

app = typer.Typer(help="Call-depth-aware execution tracer")
console = Console()


class DemoFailure(Exception):
    """Raised by the innermost demo call when --fail is given."""


def _run_chain(template: TraceTemplate, depth: int, fail: bool) -> str:
    """Call `depth` nested traced layers; the innermost one may raise."""

    def layer(level: int) -> str:
        if level == depth:
            if fail:
                raise DemoFailure(f"layer {level} failed")
            return f"layer {level}"
        return template.execute(f"Layer{level + 1}.call()", lambda: layer(level + 1))

    return template.execute("Layer0.call()", lambda: layer(0))


@app.command(name="demo")
def demo_command(
    depth: int = typer.Option(2, "--depth", min=0, max=20, help="Nested calls below the root"),
    fail: bool = typer.Option(False, "--fail", help="Raise from the innermost call"),
) -> None:
    """Trace a chain of nested calls.

    Examples:
        log-trace demo
        log-trace demo --depth 4 --fail
    """
    settings = get_settings()
    configure_logging(
        log_level=settings.log_level, log_format=settings.log_format, log_dir=settings.log_dir
    )
    template = TraceTemplate(build_log_trace(settings))

    try:
        result = _run_chain(template, depth, fail)
    except DemoFailure as e:
        console.print(f"[bold red]Failed:[/bold red] {e}")
        raise typer.Exit(code=1) from None

    console.print(f"[bold green]Result:[/bold green] {result}")


@app.command(name="settings")
def settings_command() -> None:
    """Show the effective tracer settings."""
    settings = get_settings()

    table = Table(title="log-trace settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for name, value in settings.model_dump().items():
        table.add_row(name, str(getattr(value, "value", value)))

    console.print(table)


if __name__ == "__main__":
    app()
