"""CLI for looking up clinical symptoms by free text or classification code."""

import sys
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).parent))  # makes bare imports work

import typer

from knowledge_base import KB_PATH_ENV_VAR, KnowledgeBase, default_knowledge_base
from search_engine import SymptomSearchEngine

app = typer.Typer(
    help="Search clinical symptoms by free text or classification code.",
    no_args_is_help=True,
)


def _build_engine(kb_path: Path | None) -> SymptomSearchEngine:
    typer.echo("Loading knowledge base…", err=True)
    kb = KnowledgeBase(kb_path) if kb_path else default_knowledge_base()
    return SymptomSearchEngine(kb)


def _engine(ctx: typer.Context) -> SymptomSearchEngine:
    return _build_engine(ctx.obj)


def _echo_lines(lines: list[str], empty_message: str) -> None:
    for line in lines:
        typer.echo(line)
    if not lines:
        typer.echo(empty_message, err=True)


@app.callback()
def main(
    ctx: typer.Context,
    kb: Optional[Path] = typer.Option(
        None,
        "--kb",
        envvar=KB_PATH_ENV_VAR,
        help="JSON knowledge base file (defaults to the bundled table)",
    ),
) -> None:
    ctx.obj = kb


@app.command()
def search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Symptom, phrase or code to look up"),
    max_results: int = typer.Option(
        10, "--max-results", "-n", help="Number of results to return"
    ),
    details: bool = typer.Option(
        False, "--details", "-d", help="Show description, codes, conditions and tools"
    ),
) -> None:
    results = _engine(ctx).rank(query, max_results=max_results)
    for r in results:
        typer.echo(
            f"\n[{r.rank}] {r.symptom}  urgency={r.urgency.label} score={r.score}"
        )
        if details:
            e = r.entry
            typer.echo(f"    {e.description}")
            typer.echo(f"    Codes: {', '.join(e.codes) or '-'}")
            typer.echo(f"    Conditions: {', '.join(e.associated_conditions) or '-'}")
            typer.echo(f"    Tools: {', '.join(e.associated_tools) or '-'}")

    if not results:
        typer.echo("No results found.", err=True)


@app.command()
def code(
    ctx: typer.Context,
    value: str = typer.Argument(..., help="Classification code, e.g. R06.02"),
) -> None:
    entries = _engine(ctx).search_by_code(value)
    _echo_lines(
        [f"{e.symptom}  urgency={e.urgency.label}" for e in entries],
        "No results found.",
    )


@app.command()
def conditions(ctx: typer.Context, query: str = typer.Argument(...)) -> None:
    _echo_lines(_engine(ctx).conditions_for_symptom(query), "No conditions found.")


@app.command()
def tools(ctx: typer.Context, query: str = typer.Argument(...)) -> None:
    _echo_lines(_engine(ctx).tools_for_symptom(query), "No tools found.")


@app.command()
def red_flags(ctx: typer.Context, query: str = typer.Argument(...)) -> None:
    _echo_lines(_engine(ctx).red_flags_for(query), "No red flags found.")


@app.command()
def differentials(ctx: typer.Context, query: str = typer.Argument(...)) -> None:
    _echo_lines(_engine(ctx).differentials_for(query), "No differentials found.")


@app.command()
def snapshot(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Parquet file to write"),
) -> None:
    """Write the loaded knowledge base to a Parquet snapshot."""
    engine = _engine(ctx)
    KnowledgeBase.from_entries(engine.entries).save(path)
    typer.echo(f"Wrote {len(engine.entries)} entries to {path}")


if __name__ == "__main__":
    app()
