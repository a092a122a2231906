#!/usr/bin/env python3
"""
Fetch GBIF bear occurrences (crowdsourced observations) and write:
 - data/gbif/bear_observations.csv
 - data/gbif/bear_observations.geojson

Uses the GBIF Occurrence Search API with paging. Each page request is
retried with increasing backoff; if a page still fails the script exits
with status 1, since the map has no data without these files.

Configure via config.json ("gbif"), environment variables or flags:
  GBIF_BBOX="minLon,minLat,maxLon,maxLat"  (optional)
  GBIF_LIMIT=300                          (page size, GBIF max is 300)
  GBIF_MAX=20000                          (records per species)

Author: Matthew Picone
Date: 2026-01-14
"""

import argparse
import asyncio
import csv
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

import aiohttp
from dotenv import load_dotenv

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from logic.config import apply_gbif_env_overrides, get_data_dir, load_config  # noqa: E402
from logic.observations import CSV_HEADERS, Observation  # noqa: E402

logger = logging.getLogger("fetch_gbif_bears")

GBIF_SEARCH_URL = "https://api.gbif.org/v1/occurrence/search"
REQUEST_TIMEOUT_SECONDS = 60

CSV_NAME = "bear_observations.csv"
GEOJSON_NAME = "bear_observations.geojson"

# A practical starter set of bears
SPECIES = [
    {"label": "American black bear", "scientificName": "Ursus americanus"},
    {"label": "Brown bear", "scientificName": "Ursus arctos"},
    {"label": "Polar bear", "scientificName": "Ursus maritimus"},
]


class GbifFetchError(Exception):
    """A GBIF request failed after all retries."""


def bbox_to_wkt(bbox: Optional[str]) -> Optional[str]:
    """Convert "minLon,minLat,maxLon,maxLat" to a WKT polygon.

    Returns:
        WKT polygon string, or None if the box is missing or malformed.
    """
    if not bbox:
        return None
    try:
        min_lon, min_lat, max_lon, max_lat = (float(v) for v in bbox.split(","))
    except ValueError:
        logger.warning("Ignoring malformed bbox %r", bbox)
        return None
    return (
        f"POLYGON(({min_lon} {min_lat},{max_lon} {min_lat},{max_lon} {max_lat},"
        f"{min_lon} {max_lat},{min_lon} {min_lat}))"
    )


def build_params(scientific_name: str, offset: int, settings: Dict[str, Any]) -> Dict[str, str]:
    """Query parameters for one page of occurrences."""
    params = {
        "scientificName": scientific_name,
        "limit": str(settings["limit"]),
        "offset": str(offset),
        "hasCoordinate": "true",
        "hasGeospatialIssue": "false",
        "basisOfRecord": "HUMAN_OBSERVATION",
    }
    if settings.get("country"):
        params["country"] = settings["country"]
    geometry = bbox_to_wkt(settings.get("bbox"))
    if geometry:
        params["geometry"] = geometry
    return params


def is_transient(status: int) -> bool:
    return status == 429 or status >= 500


async def fetch_page(
    session: aiohttp.ClientSession,
    params: Dict[str, str],
    retries: int = 3,
    backoff: float = 1.0,
) -> Dict[str, Any]:
    """Fetch one page, retrying transient failures.

    The wait doubles after each failed attempt (backoff, 2 * backoff, ...).

    Raises:
        GbifFetchError: On a non-transient error or after the last retry.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            async with session.get(GBIF_SEARCH_URL, params=params) as resp:
                if resp.status == 200:
                    return await resp.json()
                text = await resp.text()
                message = f"GBIF request failed {resp.status}: {text[:300]}"
                if not is_transient(resp.status):
                    raise GbifFetchError(message)
                error: Exception = GbifFetchError(message)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            error = e

        if attempt > retries:
            raise GbifFetchError(f"Giving up after {attempt} attempts: {error}") from error

        delay = backoff * (2 ** (attempt - 1))
        logger.warning("GBIF request failed (%s), retrying in %.1fs", error, delay)
        await asyncio.sleep(delay)


async def fetch_species(
    session: aiohttp.ClientSession, scientific_name: str, settings: Dict[str, Any]
) -> List[Dict[str, Any]]:
    """Page through all occurrences of one species, up to settings["max"]."""
    limit = settings["limit"]
    maximum = settings["max"]
    offset = 0
    records: List[Dict[str, Any]] = []

    while len(records) < maximum:
        page = await fetch_page(
            session,
            build_params(scientific_name, offset, settings),
            retries=settings["retries"],
            backoff=settings["backoff_seconds"],
        )
        results = page.get("results") or []
        records.extend(results)

        if len(results) < limit or page.get("endOfRecords"):
            break
        offset += limit

    return records[:maximum]


def dedupe_records(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Drop repeated records by gbifID (or key). Records with no id are kept."""
    seen = set()
    unique = []
    for record in records:
        record_id = record.get("gbifID", record.get("key"))
        if record_id is not None:
            if record_id in seen:
                continue
            seen.add(record_id)
        unique.append(record)
    return unique


def write_csv(path: str, records: List[Dict[str, Any]]):
    """Write the raw records as CSV with the GBIF column names."""
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_HEADERS, extrasaction="ignore")
        writer.writeheader()
        for record in records:
            writer.writerow({h: "" if record.get(h) is None else record[h] for h in CSV_HEADERS})


def write_geojson(path: str, records: List[Dict[str, Any]]) -> int:
    """Write the records with coordinates as a point feature collection.

    Returns:
        Number of features written.
    """
    features = []
    for record in records:
        observation = Observation.from_gbif_record(record)
        if observation is not None:
            features.append(observation.to_feature())

    collection = {
        "type": "FeatureCollection",
        "name": "gbif_bear_observations",
        "features": features,
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(collection, f)
    return len(features)


async def run(settings: Dict[str, Any], out_dir: str) -> Dict[str, int]:
    """Fetch every species and write both output files.

    Returns:
        Counts of CSV rows and GeoJSON points written.
    """
    os.makedirs(out_dir, exist_ok=True)
    logger.info(
        "GBIF fetch starting: limit=%s max=%s country=%s bbox=%s",
        settings["limit"], settings["max"], settings.get("country"), settings.get("bbox") or "none",
    )

    rows: List[Dict[str, Any]] = []
    timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_SECONDS)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        for species in SPECIES:
            logger.info("Fetching %s (%s)", species["scientificName"], species["label"])
            records = await fetch_species(session, species["scientificName"], settings)
            logger.info("  got %d", len(records))
            rows.extend(records)

    rows = dedupe_records(rows)

    csv_path = os.path.join(out_dir, CSV_NAME)
    geojson_path = os.path.join(out_dir, GEOJSON_NAME)
    write_csv(csv_path, rows)
    points = write_geojson(geojson_path, rows)

    logger.info("Wrote %s (%d rows)", csv_path, len(rows))
    logger.info("Wrote %s (%d points)", geojson_path, points)
    logger.info("Cite GBIF when publishing results built on this data.")
    return {"rows": len(rows), "points": points}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch GBIF bear sightings for the map")
    parser.add_argument("--out-dir", default=None, help="Output directory (default: <data>/gbif)")
    parser.add_argument("--limit", type=int, default=None, help="Records per page")
    parser.add_argument("--max", type=int, default=None, help="Maximum records per species")
    parser.add_argument("--bbox", default=None, help="minLon,minLat,maxLon,maxLat")
    parser.add_argument("--country", default=None, help="ISO country code filter")
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Dict[str, Any]:
    """Merge config.json, environment and command line settings."""
    settings = apply_gbif_env_overrides(dict(load_config()["gbif"]))
    for key in ("limit", "max", "bbox", "country"):
        value = getattr(args, key)
        if value is not None:
            settings[key] = value
    return settings


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    args = parse_args(argv)
    settings = load_settings(args)
    out_dir = args.out_dir or os.path.join(get_data_dir(), "gbif")

    try:
        asyncio.run(run(settings, out_dir))
    except GbifFetchError as e:
        logger.error("GBIF fetch failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
