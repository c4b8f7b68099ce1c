"""CLI entry point for the signal scoring core."""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click
import numpy as np
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape
from rich import box

from signalcore.config import get_settings
from signalcore.rules.engine import StrategyRuleEngine, StrategyEvaluation
from signalcore.rules.strategy import (
    RULE_FIELDS,
    Decision,
    EngineWeights,
    StrategyDefinition,
    default_strategy,
)
from signalcore.analysis.insight import (
    InsightScorer,
    MarketMood,
    SentimentReading,
)
from signalcore.data.news_feed import NewsItem, rank_news_feed, score_feed, summarize_news

# Setup logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Rich console
console = Console()


def get_decision_color(decision: Decision) -> str:
    """Get color for decision."""
    colors = {
        Decision.ENTER: "bold green",
        Decision.EXIT: "bold red",
        Decision.HOLD: "yellow",
    }
    return colors.get(decision, "white")


def get_mood_color(mood: MarketMood) -> str:
    """Get color for market mood."""
    if mood == MarketMood.BULLISH:
        return "green"
    elif mood == MarketMood.BEARISH:
        return "red"
    else:
        return "yellow"


def get_level_color(level) -> str:
    """Get color for a Low/Medium/High rating, where High is the alarming end."""
    return {"High": "red", "Medium": "yellow", "Low": "green"}.get(level.value, "white")


def load_json(path: str) -> Any:
    """Load a JSON document, exiting with a message on failure."""
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Could not read {escape(path)}: {escape(str(e))}[/red]")
        sys.exit(1)


def print_evaluation(symbol: str, evaluation: StrategyEvaluation, final_score: Optional[float]):
    """Render the per-rule breakdown of one evaluation."""
    table = Table(title=f"Rule Evaluation - {symbol}", box=box.ROUNDED)
    table.add_column("Set", style="cyan")
    table.add_column("Rule")
    table.add_column("Observed", justify="right")
    table.add_column("Result", justify="center")

    for kind, results in (("Entry", evaluation.entry_results), ("Exit", evaluation.exit_results)):
        for result in results:
            observed = "missing" if result.observed is None else f"{result.observed:.3f}"
            outcome = "[green]✓[/green]" if result.passed else "[red]✗[/red]"
            table.add_row(kind, escape(result.rule.describe()), observed, outcome)

    console.print(table)

    color = get_decision_color(evaluation.decision)
    score_text = "n/a" if final_score is None else f"{final_score:+.3f}"
    console.print(
        f"Final score: {score_text} | "
        f"Decision: [{color}]{evaluation.decision.value}[/{color}]"
    )
    console.print()


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
def cli(debug: bool):
    """Signal & insight scoring core.

    Evaluates user-authored trading strategies against multi-factor
    score snapshots and derives indicators from news sentiment.
    """
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)


@cli.command()
def fields():
    """List the score fields a rule can reference."""
    table = Table(title="Rule Fields", box=box.ROUNDED)
    table.add_column("Field", style="cyan")
    table.add_column("Label")
    table.add_column("Description", style="dim")

    for rule_field in RULE_FIELDS:
        table.add_row(rule_field.path, rule_field.label, rule_field.description)

    console.print(table)


@cli.command()
@click.option('--sentiment', type=float, default=None, help='Sentiment engine weight')
@click.option('--trend', type=float, default=None, help='Trend engine weight')
@click.option('--fundamental', type=float, default=None, help='Fundamental engine weight')
@click.option('--event-risk', type=float, default=None, help='Event risk engine weight')
@click.option('--liquidity', type=float, default=None, help='Liquidity engine weight')
def weights(
    sentiment: Optional[float],
    trend: Optional[float],
    fundamental: Optional[float],
    event_risk: Optional[float],
    liquidity: Optional[float],
):
    """Check that a set of engine weights sums to 1.0.

    Unspecified engines use the configured defaults.

    Example: signalcore weights --sentiment 0.4 --liquidity 0.05
    """
    settings = get_settings()
    values = settings.default_weights()
    overrides = {
        'sentiment': sentiment,
        'trend': trend,
        'fundamental': fundamental,
        'event_risk': event_risk,
        'liquidity': liquidity,
    }
    values.update({k: v for k, v in overrides.items() if v is not None})

    engine = StrategyRuleEngine(settings)
    check = engine.validate_weights(EngineWeights.from_dict(values))

    table = Table(title="Engine Weights", box=box.ROUNDED)
    table.add_column("Engine", style="cyan")
    table.add_column("Weight", justify="right")
    for name, value in values.items():
        table.add_row(name, f"{value * 100:.0f}%")
    console.print(table)

    if check.valid:
        console.print(f"[green]Total weight {check.total:.2f} - valid[/green]")
    else:
        console.print(f"[red]Total weight {check.total:.2f} - weights must sum to 1.0[/red]")
        sys.exit(1)


@cli.command()
@click.argument('strategy_file', type=click.Path(exists=True, dir_okay=False))
@click.argument('context_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--multi', is_flag=True, help='CONTEXT_FILE maps symbols to score contexts')
@click.option('--json', 'as_json', is_flag=True, help='Print machine-readable output')
def decide(strategy_file: str, context_file: str, multi: bool, as_json: bool):
    """Evaluate a strategy against score contexts.

    Example: signalcore decide strategy.json scores.json --multi
    """
    try:
        definition = StrategyDefinition.from_dict(load_json(strategy_file))
    except ValueError as e:
        console.print(f"[red]Invalid strategy: {escape(str(e))}[/red]")
        sys.exit(1)

    raw_contexts = load_json(context_file)
    if not isinstance(raw_contexts, dict):
        console.print("[red]Score context must be a JSON object[/red]")
        sys.exit(1)
    contexts = raw_contexts if multi else {"asset": raw_contexts}

    engine = StrategyRuleEngine()
    validation = engine.validate(definition)
    signals = engine.generate_signals(definition, contexts)

    if as_json:
        click.echo(json.dumps({
            'valid': validation.valid,
            'errors': validation.errors,
            'signals': [s.to_dict() for s in signals],
        }, indent=2))
        return

    if not validation.valid:
        console.print(Panel(
            "\n".join(f"• {error}" for error in validation.errors),
            title="Strategy Warnings",
            border_style="yellow",
        ))

    for signal in signals:
        print_evaluation(signal.symbol, signal.evaluation, signal.final_score)


@cli.command()
def template():
    """Print the default strategy as JSON."""
    click.echo(json.dumps(default_strategy().to_dict(), indent=2))


@cli.command()
@click.option('--score', required=True, type=float, help='Sentiment score (-1 to 1)')
@click.option('--confidence', required=True, type=float, help='Model confidence (0 to 1)')
@click.option('--label', default='neutral',
              type=click.Choice(['positive', 'negative', 'neutral']),
              help='Sentiment label')
@click.option('--symbol', default='BTC', help='Asset symbol for the narrative')
@click.option('--seed', type=int, default=None, help='Seed for the sparkline')
@click.option('--json', 'as_json', is_flag=True, help='Print machine-readable output')
def insight(score: float, confidence: float, label: str, symbol: str, seed: Optional[int], as_json: bool):
    """Derive mood, impact, risk and trend from a sentiment reading.

    Example: signalcore insight --score 0.8 --confidence 0.9 --label positive --symbol ETH
    """
    reading = SentimentReading(score=score, confidence=confidence, label=label)
    rng = np.random.default_rng(seed) if seed is not None else None
    result = InsightScorer(rng=rng).derive(reading, symbol.upper())

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    mood_color = get_mood_color(result.market_mood)
    console.print(Panel(
        f"[bold]Sentiment:[/bold] {reading.label.title()} {reading.format_score()} "
        f"({reading.confidence_percent}%)\n"
        f"[bold]Market Mood:[/bold] [{mood_color}]{result.market_mood.value}[/{mood_color}]\n"
        f"[bold]Impact:[/bold] {result.impact_score}/100 "
        f"([{get_level_color(result.impact_level)}]{result.impact_level.value}[/])\n"
        f"[bold]Risk:[/bold] [{get_level_color(result.risk_rating)}]{result.risk_rating.value}[/]\n"
        f"[bold]Trend:[/bold] {result.trend_direction.value}\n"
        f"\n{result.narrative}",
        title=f"AI Insight - {symbol.upper()}",
        border_style=mood_color,
    ))


@cli.command()
@click.argument('feed_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--top', default=10, help='Number of items to show')
def news(feed_file: str, top: int):
    """Rank a news feed by impact and summarize its mood.

    Example: signalcore news feed.json --top 5
    """
    raw_items = load_json(feed_file)
    if not isinstance(raw_items, list):
        console.print("[red]News feed must be a JSON list[/red]")
        sys.exit(1)

    try:
        items = [NewsItem.from_dict(raw) for raw in raw_items]
    except (ValueError, TypeError) as e:
        console.print(f"[red]Invalid news item: {escape(str(e))}[/red]")
        sys.exit(1)

    ranked = rank_news_feed(score_feed(items))
    summary = summarize_news(ranked)

    table = Table(title=f"Top {min(top, len(ranked))} of {summary.total} News Items", box=box.ROUNDED)
    table.add_column("#", style="dim", width=3)
    table.add_column("Symbol", style="cyan")
    table.add_column("Headline", max_width=50)
    table.add_column("Mood", justify="center")
    table.add_column("Impact", justify="right")
    table.add_column("Risk", justify="center")

    for i, scored in enumerate(ranked[:top], 1):
        mood = scored.insight.market_mood
        table.add_row(
            str(i),
            scored.item.symbol,
            escape(scored.item.headline),
            f"[{get_mood_color(mood)}]{mood.value}[/]",
            f"{scored.insight.impact_score} ({scored.insight.impact_level.value})",
            scored.insight.risk_rating.value,
        )

    console.print(table)
    console.print(summary.summary)


@cli.command()
def config():
    """Show current configuration."""
    settings = get_settings()
    weight_lines = "\n".join(
        f"  {name.replace('_', ' ').title()}: {value * 100:.0f}%"
        for name, value in settings.default_weights().items()
    )

    console.print(Panel(
        f"[bold]Log Level:[/bold] {settings.log_level}\n"
        f"\n[bold]Default Engine Weights:[/bold]\n"
        f"{weight_lines}\n"
        f"  Tolerance: ±{settings.weight_tolerance}\n"
        f"\n[bold]Default Rules:[/bold]\n"
        f"  Entry: final_score > {settings.default_entry_threshold}\n"
        f"  Exit: final_score < {settings.default_exit_threshold}\n"
        f"\n[bold]Insights:[/bold]\n"
        f"  Sparkline: {settings.sparkline_length} points, "
        f"base {settings.sparkline_base:g}, noise ±{settings.sparkline_noise:g}",
        title="Configuration",
        border_style="blue",
    ))


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
