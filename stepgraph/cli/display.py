"""Rich display functions for the stepgraph CLI."""

import json
from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from stepgraph.cli.errors import StepGraphCLIError
from stepgraph.core.expressions import Rule
from stepgraph.core.nodes import ExecutionModel, ExecutionNode
from stepgraph.core.registry import VariableEntry
from stepgraph.errors import StepGraphError

console = Console()


def _node_label(node: ExecutionNode) -> str:
    label = f"[cyan]{escape(node.name)}[/cyan] [dim]({escape(node.phase)})[/dim]"
    if node.flow_label:
        label += f" - {escape(node.flow_label)}"
    if not node.is_active:
        label = f"[strike]{label}[/strike]"
    return label


def _add_branch(parent: Tree, node: ExecutionNode, show_details: bool) -> None:
    branch = parent.add(_node_label(node))
    if show_details:
        for detail in node.details:
            branch.add(f"[dim]{escape(detail)}[/dim]")
    for child in node.children:
        _add_branch(branch, child, show_details)


def display_execution_tree(
    model: ExecutionModel, title: str, show_details: bool = False
) -> None:
    """Display the execution tree.

    Args:
        model: Model built by the engine
        title: Root label, usually the input file name
        show_details: Whether to list each step's details under it
    """
    if not model.execution_tree:
        console.print("📋 [yellow]No steps found[/yellow]")
        return

    tree = Tree(f"📋 [bold blue]{escape(title)}[/bold blue]")
    for node in model.execution_tree:
        _add_branch(tree, node, show_details)
    console.print(tree)


def display_execution_flow(model: ExecutionModel) -> None:
    """Display the depth-first execution flow as a table."""
    table = Table(show_header=True, header_style="bold blue")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Step", style="cyan")
    table.add_column("Type", style="white")
    table.add_column("Context", style="white")
    table.add_column("Output", style="green")

    for position, node in enumerate(model.execution_flow, 1):
        indent = "  " * node.depth
        output = f"{node.output.kind}: {node.output.name}" if node.output else ""
        table.add_row(
            str(position),
            escape(f"{indent}{node.name}"),
            escape(node.phase),
            escape(node.context),
            escape(output),
        )
    console.print(table)


def display_variables(variables: List[VariableEntry]) -> None:
    """Display the variable registry with usages."""
    if not variables:
        console.print("📋 [yellow]No variables found[/yellow]")
        return

    console.print(f"🔧 [bold blue]Variables ({len(variables)})[/bold blue]")
    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Name", style="cyan")
    table.add_column("Kind", style="white")
    table.add_column("Value", style="white")
    table.add_column("Declared By", style="dim")
    table.add_column("Used In", style="white")

    for entry in variables:
        table.add_row(
            escape(entry.name),
            entry.kind,
            escape(entry.value),
            escape(entry.declared_by),
            escape(", ".join(entry.used_in)) or "-",
        )
    console.print(table)


def display_rules(expression: str, rules: Optional[List[Rule]]) -> None:
    """Display flattened rules, or a notice when the expression has none."""
    if not rules:
        console.print("💡 [yellow]Not an IIF or CASE conditional[/yellow]")
        console.print(f"🔍 [dim]{escape(expression)}[/dim]")
        return

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Outcome", style="green")
    table.add_column("When", style="white")
    for rule in rules:
        table.add_row(escape(rule.outcome), escape(rule.condition))
    console.print(table)


def display_summary(summary: str, step_count: int) -> None:
    display_info_panel("Process Summary", f"{summary}\n\nSteps: {step_count}", "green")


def display_json_output(data: Any) -> None:
    """Write JSON to stdout without Rich markup processing.

    Args:
        data: Data to display as JSON
    """
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def display_info_panel(title: str, content: str, style: str = "blue") -> None:
    """Display an information panel.

    Args:
        title: Panel title
        content: Panel content
        style: Rich style for the panel border
    """
    panel = Panel(escape(content), title=title, border_style=style)
    console.print(panel)


def display_cli_error(error: StepGraphCLIError) -> None:
    """Display a CLI error with its suggestions."""
    console.print(f"❌ [bold red]{escape(error.message)}[/bold red]")
    if error.suggestions:
        console.print("\n💡 [yellow]Suggestions:[/yellow]")
        for suggestion in error.suggestions:
            console.print(f"  • {escape(suggestion)}")


def display_engine_error(error: StepGraphError, context: str = "") -> None:
    """Display an engine error with context.

    Args:
        error: Error raised by the engine
        context: Optional context about where the error occurred
    """
    context_text = f" during {context}" if context else ""
    console.print(f"❌ [bold red]Error{context_text}[/bold red]")
    console.print(f"🔍 [dim]{escape(str(error))}[/dim]")
