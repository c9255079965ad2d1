"""deadloop CLI - find functions that are only referenced by each other."""
import json
from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from deadloop.analyzer.detector import LANGUAGE_FAMILIES, DeadFunctionDetector
from deadloop.analyzer.graph_builder import build_graph, to_node_link
from deadloop.analyzer.parser import LanguageParser
from deadloop.analyzer.reference_tracker import ReferenceTracker
from deadloop.config import __version__, get_config
from deadloop.utils.logger import configure_logging, create_console, sanitize_for_terminal

app = typer.Typer(
    name="deadloop",
    help="Find JavaScript/TypeScript functions that are only referenced by each other",
    add_completion=False
)
console = create_console()


def _setup():
    """Load configuration and install the rich log handler."""
    try:
        config = get_config()
    except ValueError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)
    configure_logging(config.log_level)
    return config


def _languages(language: str):
    language = language.lower()
    if language == 'all':
        return LANGUAGE_FAMILIES
    if language in LANGUAGE_FAMILIES:
        return (language,)
    console.print(f"[bold red]Error:[/bold red] Unknown language: {escape(language)} (use javascript, typescript or all)")
    raise typer.Exit(1)


@app.command()
def audit(
    project_path: str = typer.Argument(".", help="File or project root to analyze"),
    language: str = typer.Option("all", "--language", "-l", help="Language to analyze (javascript, typescript, all)"),
    as_json: bool = typer.Option(False, "--json", help="Print findings as JSON"),
    strict: bool = typer.Option(False, "--strict", help="Exit with code 1 when unused functions are found"),
):
    """Scan a file or project and list probably unused functions."""
    config = _setup()
    families = _languages(language)

    project_path = Path(project_path).resolve()
    if not project_path.exists():
        console.print(f"[bold red]Error:[/bold red] Path does not exist: {escape(str(project_path))}")
        raise typer.Exit(1)

    detector = DeadFunctionDetector(
        exhausted_is_unused=config.exhausted_is_unused,
        excluded_dirs=config.extra_excluded_dirs,
    )
    reports = detector.analyze_project(project_path, families)
    if not reports:
        console.print(f"[bold red]Error:[/bold red] No supported source files found in {escape(str(project_path))}")
        raise typer.Exit(1)

    findings = [finding for report in reports for finding in report.findings]

    if as_json:
        typer.echo(json.dumps({
            'files': len(reports),
            'functions': sum(report.functions for report in reports),
            'findings': [finding.to_dict() for finding in findings],
        }, indent=2))
    else:
        _print_findings(findings, project_path)
        console.print("\n[bold yellow]Summary:[/bold yellow]")
        console.print(f"  Files analyzed: {len(reports)}")
        console.print(f"  Functions: {sum(report.functions for report in reports)}")
        console.print(f"  Probably unused: {len(findings)}")

    if strict and findings:
        raise typer.Exit(1)


def _print_findings(findings, project_path: Path):
    if not findings:
        console.print("[bold green]No unused functions found![/bold green]")
        return

    table = Table(title="Probably Unused Functions")
    table.add_column("Symbol", style="cyan")
    table.add_column("File", style="magenta", no_wrap=False)
    table.add_column("Line", style="green")
    table.add_column("Cluster", style="yellow")

    base = project_path if project_path.is_dir() else project_path.parent
    for finding in findings:
        try:
            display_path = Path(finding.file_path).relative_to(base)
        except ValueError:
            display_path = Path(finding.file_path).name
        cluster = sanitize_for_terminal(" ↔ ".join(finding.cluster)) if len(finding.cluster) > 1 else ""
        table.add_row(finding.name, str(display_path), str(finding.line), cluster)

    console.print(table)


@app.command()
def graph(
    file_path: str = typer.Argument(..., help="JavaScript or TypeScript file"),
    output: str = typer.Option(None, "--output", "-o", help="Write JSON to this path instead of stdout"),
):
    """Export the function reference graph of one file as node-link JSON."""
    _setup()

    path = Path(file_path)
    if not path.is_file():
        console.print(f"[bold red]Error:[/bold red] File does not exist: {escape(str(path))}")
        raise typer.Exit(1)

    parser = LanguageParser.from_file_extension(path)
    if parser is None:
        console.print(f"[bold red]Error:[/bold red] Unsupported file type: {escape(path.suffix or path.name)}")
        raise typer.Exit(1)

    tree = parser.parse_file(path)
    if tree is None:
        console.print(f"[bold red]Error:[/bold red] Could not read {escape(str(path))}")
        raise typer.Exit(1)

    data = json.dumps(to_node_link(build_graph(ReferenceTracker(tree, str(path)))), indent=2)
    if output:
        Path(output).write_text(data + "\n", encoding="utf-8")
        console.print(f"[bold green]Graph written to[/bold green] {escape(output)}")
    else:
        typer.echo(data)


@app.command()
def version():
    """Print the deadloop version."""
    typer.echo(f"deadloop {__version__}")


if __name__ == "__main__":
    app()
