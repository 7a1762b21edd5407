"""CLI for building wearable feature vectors."""

import asyncio
import dataclasses
import json
import logging
from pathlib import Path

import click

logger = logging.getLogger(__name__)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
def main(verbose: bool) -> None:
    """wearfeat: anchored feature vectors from wearable data."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _reject_constant(name: str) -> None:
    raise ValueError(f"{name} is not allowed")


def _load_config(clusters: str | None):
    from wearfeat.config import FeatureConfig, load_location_clusters
    from wearfeat.errors import ConfigError

    config = FeatureConfig.from_env()
    if clusters:
        try:
            config = dataclasses.replace(config, location_clusters=load_location_clusters(clusters))
        except ConfigError as exc:
            raise click.ClickException(str(exc)) from exc
    return config


@main.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", default=None, help="Write the feature record JSON to this file.")
@click.option("--clusters", "-c", default=None, type=click.Path(exists=True, dir_okay=False),
              help="JSON file with location clusters (overrides LOCATION_CLUSTERS).")
@click.option("--weather/--no-weather", default=True, help="Fetch weather and AQI for lat/lon.")
@click.option("--notes", is_flag=True, help="Include anchor, timezone and diagnostic notes.")
@click.option("--indent", default=2, help="JSON indentation.")
def build(
    input_file: str,
    output: str | None,
    clusters: str | None,
    weather: bool,
    notes: bool,
    indent: int,
) -> None:
    """Build the feature record for a raw-input JSON document."""
    from wearfeat.errors import InvalidAnchorError
    from wearfeat.features.pipeline import RawInputs, build_all_features, build_all_features_async

    config = _load_config(clusters)

    try:
        payload = json.loads(Path(input_file).read_text(), parse_constant=_reject_constant)
    except ValueError as exc:
        raise click.ClickException(f"{input_file} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise click.ClickException(f"{input_file} must contain a JSON object")

    try:
        raw = RawInputs.from_dict(payload)
    except KeyError:
        raise click.ClickException(f"{input_file} has no 'anchor'") from None

    try:
        if weather:
            record = asyncio.run(build_all_features_async(raw, config))
        else:
            record = build_all_features(raw, config)
    except InvalidAnchorError as exc:
        raise click.ClickException(str(exc)) from exc

    for note in record.notes:
        logger.info("note: %s", note)

    text = record.to_json(indent=indent, include_notes=notes)
    if output:
        Path(output).write_text(text + "\n")
        click.echo(f"Wrote {len(record.features)} features to {output}")
    else:
        click.echo(text)


@main.command("weather")
@click.argument("lat", type=float)
@click.argument("lon", type=float)
def weather_cmd(lat: float, lon: float) -> None:
    """Show current weather features for a point.

    Use ``--`` before negative coordinates: ``wearfeat weather -- 47.6 -122.3``.
    """
    from wearfeat.weather import OpenMeteoClient, fetch_weather_and_aqi

    with OpenMeteoClient(_load_config(None)) as client:
        features = asyncio.run(fetch_weather_and_aqi(lat, lon, client))
    if not features:
        click.echo("Weather lookup failed.")
        return
    click.echo(json.dumps(features, indent=2))
