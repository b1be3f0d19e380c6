"""
Command-line interface for AI Content Writer.

Provides commands for scoring and optimizing content, matching products
to a shopper query and merging brand profiles.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .brand import merge_brand_profiles
from .config import WriterConfig
from .llm_client import create_llm_client
from .optimizer import ContentOptimizer
from .product_loader import ProductLoadError, load_products
from .product_matcher import ProductMatcher
from .seo_scorer import SeoScorer

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=verbose)],
        force=True,
    )


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return path.read_text(encoding="latin-1")


def _read_json(path: Path) -> dict:
    try:
        data = json.loads(_read_text(path))
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {path}:[/red] {e}")
        sys.exit(1)
    if not isinstance(data, dict):
        console.print(f"[red]Error:[/red] {path} must contain a JSON object")
        sys.exit(1)
    return data


@click.group()
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output.",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """
    AI Content Writer - SEO scoring, optimization and product search.

    Examples:

        ai-content-writer score post.html --keyword "running shoes"

        ai-content-writer optimize post.html --keyword "running shoes" -o optimized.html

        ai-content-writer match "red shoes" --products catalog.csv
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _configure_logging(verbose)


@main.command()
@click.argument("content_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--keyword", "-k", type=str, required=True, help="Focus keyword.")
@click.option("--site-url", type=str, default=None, help="Site origin used to recognise internal links.")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the breakdown as JSON.")
def score(content_file: Path, keyword: str, site_url: Optional[str], as_json: bool) -> None:
    """Score a content file against the SEO checklist (0-10)."""
    content = _read_text(content_file)
    scorer = SeoScorer(site_url=site_url)
    breakdown = scorer.evaluate(content, keyword)

    if as_json:
        click.echo(json.dumps(breakdown.to_dict(), indent=2))
        return

    table = Table(title=f"SEO Checklist for '{keyword}'", show_header=True)
    table.add_column("Criterion", style="cyan")
    table.add_column("Passed", style="green")

    for name, passed in breakdown.criteria().items():
        table.add_row(name.replace("_", " ").capitalize(), "Yes" if passed else "[red]No[/red]")

    console.print(table)
    console.print(f"\n[bold]Score:[/bold] {breakdown.score}/10")
    console.print(f"[dim]Words: {breakdown.word_count}, keyword density: {breakdown.keyword_density:.2f}%[/dim]")

    recommendations = scorer.recommendations(content, keyword)
    if recommendations:
        console.print("\n[bold]Recommendations[/bold]")
        for item in recommendations:
            console.print(f"  - {item}")


@main.command()
@click.argument("content_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--keyword", "-k", type=str, required=True, help="Focus keyword.")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the optimized content here instead of printing it.",
)
@click.option(
    "--brand-profile",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Brand profile JSON file whose guidelines go into the prompt.",
)
@click.option("--site-url", type=str, default=None, help="Site origin used to recognise internal links.")
@click.option(
    "--api-key",
    type=str,
    envvar="ANTHROPIC_API_KEY",
    help="Anthropic API key. Can also be set via ANTHROPIC_API_KEY env var.",
)
@click.pass_context
def optimize(
    ctx: click.Context,
    content_file: Path,
    keyword: str,
    output: Optional[Path],
    brand_profile: Optional[Path],
    site_url: Optional[str],
    api_key: Optional[str],
) -> None:
    """Rewrite a content file through the completion backend when it scores below 8."""
    console.print(Panel.fit(
        "[bold blue]AI Content Writer[/bold blue]\n"
        "Optimizing content for the focus keyword",
        border_style="blue",
    ))

    content = _read_text(content_file)
    profile = _read_json(brand_profile) if brand_profile else {}
    config = WriterConfig(api_key=api_key, site_url=site_url)
    optimizer = ContentOptimizer(create_llm_client(config), config=config)

    with console.status("[bold green]Optimizing content..."):
        result = optimizer.optimize(content, keyword, brand_profile=profile)

    if not result.success:
        console.print(f"[red]Optimization failed:[/red] {result.message}")
        sys.exit(1)

    previous = result.get("previous_score")
    if previous is None:
        console.print(f"[green]{result.message}[/green] (score {result.get('score')}/10)")
    else:
        console.print(f"[green]{result.message}[/green] (score {previous} -> {result.get('score')}/10)")
        for item in result.get("improvements", []):
            console.print(f"  - {item}")

    if output:
        output.write_text(result.get("content", ""), encoding="utf-8")
        console.print(f"\n[bold green]Success![/bold green] Output saved to: {output}")
    elif ctx.obj.get("verbose") or previous is not None:
        console.print()
        click.echo(result.get("content", ""))


@main.command()
@click.argument("query", type=str)
@click.option(
    "--products",
    "-p",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Product file (CSV or Excel).",
)
@click.option("--limit", "-n", type=int, default=5, help="Maximum products to return (default: 5).")
@click.option("--no-ai", is_flag=True, default=False, help="Use keyword ranking only.")
@click.option(
    "--api-key",
    type=str,
    envvar="ANTHROPIC_API_KEY",
    help="Anthropic API key. Can also be set via ANTHROPIC_API_KEY env var.",
)
def match(query: str, products: Path, limit: int, no_ai: bool, api_key: Optional[str]) -> None:
    """Find the products that best match a shopper query."""
    try:
        with console.status("[bold green]Loading products..."):
            catalog = load_products(products)
    except ProductLoadError as e:
        console.print(f"[red]Product loading error:[/red] {e}")
        sys.exit(1)

    config = WriterConfig(api_key=api_key)
    backend = None if no_ai or not config.has_api_key else create_llm_client(config)
    matcher = ProductMatcher(backend, config)

    with console.status("[bold green]Ranking products..."):
        ranked, source = matcher.rank(query, catalog, limit)

    if not ranked:
        console.print(f"No matching products found for '{query}'")
        return

    table = Table(title=f"Products matching '{query}' ({source})", show_header=True)
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Price")
    table.add_column("In Stock")

    for product in ranked:
        price = "" if product.price is None else f"{product.price:.2f}"
        table.add_row(str(product.id), product.name, price, "Yes" if product.in_stock else "No")

    console.print(table)


@main.command("merge-profiles")
@click.argument("existing", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("incoming", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the merged profile here instead of printing it.",
)
def merge_profiles(existing: Path, incoming: Path, output: Optional[Path]) -> None:
    """Union two brand profile JSON files."""
    merged = merge_brand_profiles(_read_json(existing), _read_json(incoming))
    text = json.dumps(merged, indent=2, ensure_ascii=False)

    if output:
        output.write_text(text + "\n", encoding="utf-8")
        console.print(f"[bold green]Success![/bold green] Merged profile saved to: {output}")
    else:
        click.echo(text)


def run_cli() -> None:
    """Entry point for the CLI."""
    main()


if __name__ == "__main__":
    run_cli()
