"""stepgraph CLI - describe ETL step containers from the command line."""

import os
from typing import Optional

import typer
from rich.console import Console

from stepgraph.cli.display import (
    display_cli_error,
    display_engine_error,
    display_execution_flow,
    display_execution_tree,
    display_json_output,
    display_rules,
    display_summary,
    display_variables,
)
from stepgraph.cli.errors import ConfigurationError, StepGraphCLIError
from stepgraph.cli.loader import load_container
from stepgraph.config import OUTPUT_FORMATS, StepGraphConfig, load_config
from stepgraph.core import Mode, flatten_expression, parse_steps, summarize_flow
from stepgraph.errors import StepGraphError
from stepgraph.logging import configure_logging, get_logger

logger = get_logger(__name__)
console = Console()

app = typer.Typer(
    name="stepgraph",
    help="stepgraph CLI - Explain ETL process definitions",
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        from stepgraph import __version__

        console.print(f"stepgraph CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose output"
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to a stepgraph.yml file"
    ),
) -> None:
    """stepgraph CLI - Explain ETL process definitions.

    Turns a decoded step container into an execution tree, a flat execution
    flow, a variable registry and a one-line process summary.

    Examples:
        stepgraph describe process.json --mode business
        stepgraph variables process.json
        stepgraph rules "IIF(a > 1, 'High', 'Low')"
    """
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        display_cli_error(ConfigurationError(str(e), config_path))
        raise typer.Exit(1)

    configure_logging(verbose=verbose or config.verbose)
    ctx.obj = config


def _config(ctx: typer.Context) -> StepGraphConfig:
    return ctx.obj if isinstance(ctx.obj, StepGraphConfig) else StepGraphConfig()


def _build_model(ctx: typer.Context, input_path: str, mode: Optional[str]):
    """Load the input file and build its model, exiting 1 on any failure."""
    try:
        resolved_mode = Mode.parse(mode) if mode else _config(ctx).mode
        container = load_container(input_path)
        model = parse_steps(container, resolved_mode)
    except StepGraphCLIError as e:
        display_cli_error(e)
        raise typer.Exit(1)
    except StepGraphError as e:
        display_engine_error(e, f"processing {os.path.basename(input_path)}")
        logger.debug(f"Failed to build model for {input_path}: {e}")
        raise typer.Exit(1)

    return model, resolved_mode


@app.command()
def describe(
    ctx: typer.Context,
    input_path: str = typer.Argument(..., help="Decoded step container (.json/.yml)"),
    mode: Optional[str] = typer.Option(
        None, "--mode", "-m", help="Description mode: business or technical"
    ),
    output_format: Optional[str] = typer.Option(
        None, "--format", "-f", help="Output format: tree, flow or json"
    ),
    details: bool = typer.Option(
        False, "--details", "-d", help="List step details in the tree view"
    ),
) -> None:
    """Describe every step of a process.

    Args:
        input_path: Path to the decoded step container
        mode: Description mode (defaults to the configured mode)
        output_format: Output format (defaults to the configured format)
        details: Show step details in the tree view
    """
    fmt = (output_format or _config(ctx).output_format).lower()
    if fmt not in OUTPUT_FORMATS:
        display_cli_error(
            StepGraphCLIError(
                f"Unknown output format: {fmt}",
                [f"Use one of: {', '.join(OUTPUT_FORMATS)}"],
            )
        )
        raise typer.Exit(1)

    model, resolved_mode = _build_model(ctx, input_path, mode)

    if fmt == "json":
        display_json_output(model.to_dict())
    elif fmt == "flow":
        display_execution_flow(model)
    else:
        display_execution_tree(
            model,
            f"{os.path.basename(input_path)} ({resolved_mode.value})",
            show_details=details,
        )
    logger.debug(f"Described {len(model.execution_flow)} steps from {input_path}")


@app.command()
def variables(
    ctx: typer.Context,
    input_path: str = typer.Argument(..., help="Decoded step container (.json/.yml)"),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List the variables a process declares and where each one is used."""
    model, _ = _build_model(ctx, input_path, None)
    if as_json:
        display_json_output([entry.to_dict() for entry in model.variables])
    else:
        display_variables(model.variables)


@app.command()
def rules(
    expression: str = typer.Argument(..., help="IIF or CASE expression"),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Flatten a nested IIF or CASE conditional into rules."""
    flattened = flatten_expression(expression)
    if as_json:
        display_json_output(
            [rule.to_dict() for rule in flattened] if flattened is not None else None
        )
    else:
        display_rules(expression, flattened)


@app.command()
def summary(
    ctx: typer.Context,
    input_path: str = typer.Argument(..., help="Decoded step container (.json/.yml)"),
    mode: Optional[str] = typer.Option(
        None, "--mode", "-m", help="Description mode: business or technical"
    ),
) -> None:
    """Summarize what a process does in one sentence."""
    model, _ = _build_model(ctx, input_path, mode)
    display_summary(summarize_flow(model.execution_flow), len(model.execution_flow))


if __name__ == "__main__":
    app()
