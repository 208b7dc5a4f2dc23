"""
Command-line interface for sensor-alerts.

Runs change-feed batches outside Lambda (replaying captured DynamoDB
Streams events against real tables) and evaluates thresholds by hand.

Usage:
    sensor-alerts run-batch event.json   # Process a captured stream event
    sensor-alerts evaluate 31.2 --max 30 --hysteresis 0.5
"""

import asyncio
import json
import os
import sys

import click

from src.observability.logging import setup_logging
from src.observability.metrics import get_metrics


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """Sensor Alerts - threshold alarms for sensor change feeds."""
    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"

    setup_logging()


@main.command("run-batch")
@click.argument("event_file", type=click.File("r"))
@click.option("--metrics-port", default=None, type=int, help="Expose metrics while running")
def run_batch(event_file, metrics_port: int | None) -> None:
    """Process a DynamoDB Streams event captured as JSON."""
    from src.alerts.clients import get_clients
    from src.alerts.handler import build_handler

    try:
        event = json.load(event_file)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="EVENT_FILE")

    records = event.get("Records", []) if isinstance(event, dict) else event
    if not isinstance(records, list):
        raise click.BadParameter("expected a list of records", param_hint="EVENT_FILE")

    if metrics_port:
        get_metrics().start_server(port=metrics_port)

    handler = build_handler(get_clients())
    result = asyncio.run(handler.process_batch(records))

    click.echo("\nBatch Results:")
    click.echo(f"  processed: {result.processed}")
    click.echo(f"  failed: {result.failed}")

    if result.failed:
        click.echo(click.style("Some records failed!", fg="red"))
        sys.exit(1)
    click.echo(click.style("All records processed", fg="green"))


@main.command()
@click.argument("value", type=float)
@click.option("--min", "min_", type=float, default=None, help="Lower bound")
@click.option("--max", "max_", type=float, default=None, help="Upper bound")
@click.option("--hysteresis", type=float, default=0.0, help="Dead-band for leaving an alarm")
@click.option(
    "--previous",
    type=click.Choice(["ok", "low", "high"]),
    default=None,
    help="Previously persisted level",
)
def evaluate(
    value: float,
    min_: float | None,
    max_: float | None,
    hysteresis: float,
    previous: str | None,
) -> None:
    """Show the alarm level a reading would produce."""
    from src.alerts.evaluator import classify
    from src.alerts.evaluator import evaluate as evaluate_level
    from src.alerts.schemas import ThresholdConfig

    try:
        threshold = ThresholdConfig(min=min_, max=max_, hysteresis=hysteresis)
    except ValueError as e:
        raise click.BadParameter(str(e))

    if not threshold.has_bounds:
        raise click.UsageError("At least one of --min/--max is required")

    click.echo(f"raw: {classify(value, threshold)}")
    click.echo(f"state: {evaluate_level(value, threshold, previous)}")


if __name__ == "__main__":
    main()
