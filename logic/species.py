"""
Species color classification.

Maps the free-text species attributes of an observation to one of four
display colors. The rules are an ordered table evaluated top to bottom,
first match wins, and the same table is rendered as a MapLibre paint
expression so the map colors served observations exactly as the server
classifies them.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2026-01-06
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

BLACK_BEAR_COLOR = "#60a5fa"
BROWN_BEAR_COLOR = "#f59e0b"
POLAR_BEAR_COLOR = "#e5e7eb"
FALLBACK_COLOR = "#a3a3a3"
CLUSTER_COLOR = "#22c55e"

# Property names checked in order for the candidate text
CANDIDATE_FIELDS = ("species", "scientificName", "vernacularName", "commonName")

# (exact scientific names, lower-case common name fragments, color, legend label)
SPECIES_RULES: List[Tuple[Tuple[str, ...], Tuple[str, ...], str, str]] = [
    (
        ("Ursus americanus",),
        ("american black bear", "black bear"),
        BLACK_BEAR_COLOR,
        "Black bear sightings",
    ),
    (
        ("Ursus arctos", "Ursus arctos horribilis", "Ursus arctos middendorffi"),
        ("brown bear", "grizzly", "kodiak"),
        BROWN_BEAR_COLOR,
        "Brown/Grizzly sightings",
    ),
    (
        ("Ursus maritimus",),
        ("polar bear",),
        POLAR_BEAR_COLOR,
        "Polar bear sightings",
    ),
]


def _matches(exact: Tuple[str, ...], fragments: Tuple[str, ...]) -> Callable[[str], bool]:
    def predicate(text: str) -> bool:
        if text in exact:
            return True
        lowered = text.lower()
        return any(fragment in lowered for fragment in fragments)

    return predicate


COLOR_RULES: List[Tuple[Callable[[str], bool], str]] = [
    (_matches(exact, fragments), color) for exact, fragments, color, _ in SPECIES_RULES
]


def species_candidate(properties: Optional[Dict[str, Any]]) -> str:
    """Pick the text used for classification.

    Args:
        properties: Feature properties of an observation.

    Returns:
        First non-empty species, scientific name or common name, or "".
    """
    if not properties:
        return ""
    for field in CANDIDATE_FIELDS:
        value = properties.get(field)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return ""


def classify_species_color(text: Optional[str]) -> str:
    """Classify a species text into a display color.

    Args:
        text: Species, scientific or common name.

    Returns:
        Hex color string.
    """
    text = (text or "").strip()
    if not text:
        return FALLBACK_COLOR
    for predicate, color in COLOR_RULES:
        if predicate(text):
            return color
    return FALLBACK_COLOR


def species_color_for(properties: Optional[Dict[str, Any]]) -> str:
    """Get the display color for an observation's properties."""
    return classify_species_color(species_candidate(properties))


def species_color_expression() -> List[Any]:
    """Render the rule table as a MapLibre ``case`` expression.

    Returns:
        Paint expression evaluating to a hex color per feature.
    """
    # First field whose value is not an empty string. MapLibre has no trim,
    # observations are stripped when they are built.
    candidate: List[Any] = ["case"]
    for field in CANDIDATE_FIELDS:
        value = ["to-string", ["coalesce", ["get", field], ""]]
        candidate.extend([["!=", value, ""], value])
    candidate.append("")
    lowered = ["downcase", candidate]

    expression: List[Any] = ["case"]
    for exact, fragments, color, _ in SPECIES_RULES:
        tests: List[Any] = [["in", candidate, ["literal", list(exact)]]]
        tests.extend(["in", fragment, lowered] for fragment in fragments)
        expression.append(["any", *tests])
        expression.append(color)
    expression.append(FALLBACK_COLOR)
    return expression


def legend_entries() -> List[Dict[str, str]]:
    """Ordered legend rows for the map page."""
    entries = [{"color": CLUSTER_COLOR, "label": "Bear hotspots (clusters)"}]
    for _, _, color, label in SPECIES_RULES:
        entries.append({"color": color, "label": label})
    return entries
