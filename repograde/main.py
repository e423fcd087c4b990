import argparse
import asyncio
import sys
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from repograde.config import Settings, load_settings, configure_logging
from repograde.errors import RepograderError
from repograde.models.evaluation import EvaluationResult
from repograde.pipeline import EvaluationPipeline

console = Console()

def render_result(result: EvaluationResult, repo_url: str):
    """
    Pretty-prints an evaluation: headline score, sub-scores, then the two lists.
    """
    color = "green" if result.score >= 75 else "yellow" if result.score >= 50 else "red"
    console.print(Panel(
        f"[bold {color}]{result.score}/100[/bold {color}]  [magenta]{result.context.value}[/magenta]\n\n{result.summary}",
        title=repo_url
    ))

    table = Table(title="Breakdown")
    table.add_column("Category")
    table.add_column("Score", justify="right")
    for category, value in result.breakdown.model_dump().items():
        table.add_row(category.replace("_", " ").title(), str(value))
    console.print(table)

    if result.production_gaps:
        console.print("[bold red]Production Gaps[/bold red]")
        for gap in result.production_gaps:
            console.print(f"  - {gap}")
    if result.suggestions:
        console.print("[bold cyan]Suggestions[/bold cyan]")
        for i, suggestion in enumerate(result.suggestions, 1):
            console.print(f"  {i}. {suggestion}")

def run_evaluate(args, settings: Settings) -> int:
    if args.model:
        settings = settings.model_copy(update={"model_names": tuple(args.model)})

    pipeline = EvaluationPipeline.from_settings(settings, token=args.token)
    try:
        with console.status(f"Evaluating {args.repo_url}..."):
            result = asyncio.run(pipeline.run(args.repo_url))
    except RepograderError as e:
        console.print(f"[red]Evaluation Failed: {e.message}[/red]")
        if e.details:
            console.print(f"[dim]{e.details}[/dim]")
        return 1

    if args.json:
        console.print_json(result.model_dump_json())
    else:
        render_result(result, args.repo_url)
    return 0

def run_serve(args, settings: Settings) -> int:
    import uvicorn
    from repograde.server import create_app

    host = args.host or settings.host
    port = args.port or settings.port
    console.print(f"[bold blue]repograde[/bold blue] - serving on [cyan]{host}:{port}[/cyan]")
    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)
    return 0

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="repograde: LLM-backed GitHub repository reviewer")
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Run the HTTP API (POST /evaluate)")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST or 0.0.0.0)")
    serve.add_argument("--port", type=int, default=None, help="Listen port (default: PORT or 3001)")

    evaluate = subparsers.add_parser("evaluate", help="Evaluate a single repository")
    evaluate.add_argument("repo_url", help="GitHub repository URL, e.g. https://github.com/owner/repo")
    evaluate.add_argument("--token", help="GitHub Personal Access Token (optional, overrides env)", default=None)
    evaluate.add_argument("--model", action="append", default=None,
                          help="Gemini model to try; repeat to set the fallback order")
    evaluate.add_argument("--json", action="store_true", help="Print the raw JSON result")
    return parser

def main(argv=None):
    argv = list(sys.argv[1:] if argv is None else argv)
    # `repograde <url>` is shorthand for `repograde evaluate <url>`
    if argv and argv[0] not in ("serve", "evaluate", "-h", "--help"):
        argv.insert(0, "evaluate")

    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(2)

    settings = load_settings()
    configure_logging(settings.log_level)

    if args.command == "serve":
        sys.exit(run_serve(args, settings))
    sys.exit(run_evaluate(args, settings))

if __name__ == "__main__":
    main()
