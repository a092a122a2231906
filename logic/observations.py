"""
Observation records and popup content.

This module holds the read-only observation record loaded from the GBIF
export, its GeoJSON and CSV representations, and the text shown in the
detail popup when a single sighting is clicked.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2026-01-06
"""

import html
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

UNKNOWN_LABEL = "Bear sighting"
UNKNOWN_DATE = "Unknown date"
UNKNOWN_PLACE = "Unknown location"

# CSV column order, using the GBIF field names
CSV_HEADERS = [
    "gbifID",
    "scientificName",
    "species",
    "vernacularName",
    "decimalLatitude",
    "decimalLongitude",
    "eventDate",
    "year",
    "month",
    "day",
    "basisOfRecord",
    "country",
    "stateProvince",
    "county",
    "locality",
    "datasetKey",
    "publisher",
    "recordedBy",
    "license",
]

# Observation attribute -> GBIF field name
GBIF_FIELDS = {
    "id": "gbifID",
    "scientific_name": "scientificName",
    "species": "species",
    "common_name": "vernacularName",
    "event_date": "eventDate",
    "year": "year",
    "month": "month",
    "day": "day",
    "basis_of_record": "basisOfRecord",
    "country": "country",
    "state_province": "stateProvince",
    "county": "county",
    "locality": "locality",
    "dataset_key": "datasetKey",
    "publisher": "publisher",
    "recorded_by": "recordedBy",
    "license": "license",
}


@dataclass(frozen=True)
class Observation:
    """A single bear sighting.

    Attributes:
        id: GBIF record identifier.
        longitude: Decimal longitude.
        latitude: Decimal latitude.
        species: Accepted species name.
        common_name: Vernacular name.
        scientific_name: Scientific name as recorded.
        event_date: Full event date, ISO formatted.
        year: Event year when the full date is missing.
    """

    id: Optional[str]
    longitude: float
    latitude: float
    species: Optional[str] = None
    common_name: Optional[str] = None
    scientific_name: Optional[str] = None
    event_date: Optional[str] = None
    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None
    county: Optional[str] = None
    state_province: Optional[str] = None
    country: Optional[str] = None
    locality: Optional[str] = None
    basis_of_record: Optional[str] = None
    dataset_key: Optional[str] = None
    publisher: Optional[str] = None
    recorded_by: Optional[str] = None
    license: Optional[str] = None

    @classmethod
    def from_gbif_record(cls, record: Dict[str, Any]) -> Optional["Observation"]:
        """Build an observation from a GBIF occurrence search result.

        Args:
            record: Raw occurrence dictionary.

        Returns:
            Observation, or None when the record has no numeric coordinates.
        """
        lon = record.get("decimalLongitude")
        lat = record.get("decimalLatitude")
        if not _is_number(lon) or not _is_number(lat):
            return None

        values = {attr: _clean(record.get(key)) for attr, key in GBIF_FIELDS.items()}
        record_id = record.get("gbifID", record.get("key"))
        values["id"] = None if record_id is None else str(record_id)
        return cls(longitude=float(lon), latitude=float(lat), **values)

    @classmethod
    def from_feature(cls, feature: Dict[str, Any]) -> Optional["Observation"]:
        """Build an observation from a GeoJSON point feature."""
        geometry = feature.get("geometry") or {}
        coords = geometry.get("coordinates") or []
        if geometry.get("type") != "Point" or len(coords) < 2:
            return None
        record = dict(feature.get("properties") or {})
        record["decimalLongitude"] = coords[0]
        record["decimalLatitude"] = coords[1]
        return cls.from_gbif_record(record)

    def properties(self) -> Dict[str, Any]:
        """GBIF-named attribute dictionary."""
        return {key: getattr(self, attr) for attr, key in GBIF_FIELDS.items()}

    def to_feature(self) -> Dict[str, Any]:
        """Convert to a GeoJSON point feature."""
        return {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [self.longitude, self.latitude]},
            "properties": self.properties(),
        }

    def to_csv_row(self) -> Dict[str, Any]:
        """Convert to a CSV row keyed by CSV_HEADERS."""
        row = self.properties()
        row["decimalLatitude"] = self.latitude
        row["decimalLongitude"] = self.longitude
        return {key: "" if row.get(key) is None else row[key] for key in CSV_HEADERS}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _clean(value: Any) -> Any:
    """Strip text values; blank text becomes None."""
    if isinstance(value, str):
        return value.strip() or None
    return value


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def display_label(props: Dict[str, Any]) -> str:
    """Popup title: common name, then species, then scientific name."""
    for key in ("vernacularName", "commonName", "species", "scientificName"):
        text = _text(props.get(key))
        if text:
            return text
    return UNKNOWN_LABEL


def display_date(props: Dict[str, Any]) -> str:
    """Popup date: full event date, then bare year."""
    event_date = _text(props.get("eventDate"))
    if event_date:
        # GBIF timestamps look like 2021-06-14T10:00:00
        return event_date.split("T", 1)[0]
    year = _text(props.get("year"))
    if year:
        return year
    return UNKNOWN_DATE


def display_place(props: Dict[str, Any]) -> str:
    """Popup place: non-empty locality fields joined with commas."""
    parts = [
        _text(props.get(key))
        for key in ("county", "stateProvince", "country")
    ]
    parts = [p for p in parts if p]
    if not parts:
        return UNKNOWN_PLACE
    return ", ".join(parts)


def render_popup_html(props: Optional[Dict[str, Any]]) -> str:
    """Render the detail popup for a single sighting.

    Every interpolated value is escaped, the attributes come from
    crowdsourced records.

    Args:
        props: Feature properties of the clicked point.

    Returns:
        HTML fragment.
    """
    props = props or {}
    label = html.escape(display_label(props))
    date = html.escape(display_date(props))
    place = html.escape(display_place(props))
    return (
        '<div class="bear-popup">'
        f"<strong>{label}</strong>"
        f'<div class="bear-popup-date">{date}</div>'
        f'<div class="bear-popup-place">{place}</div>'
        "</div>"
    )


def bounds_of(features: Iterable[Dict[str, Any]]) -> Optional[List[List[float]]]:
    """Bounding box of a collection of point features.

    Args:
        features: GeoJSON point features.

    Returns:
        [[min_lon, min_lat], [max_lon, max_lat]], or None if no points.
    """
    lons: List[float] = []
    lats: List[float] = []
    for feature in features:
        coords = (feature.get("geometry") or {}).get("coordinates") or []
        if len(coords) < 2 or not _is_number(coords[0]) or not _is_number(coords[1]):
            continue
        lons.append(float(coords[0]))
        lats.append(float(coords[1]))

    if not lons:
        return None
    return [[min(lons), min(lats)], [max(lons), max(lats)]]
