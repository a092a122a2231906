"""
Tests for species color classification.

Run with: python -m pytest tests/test_species.py
"""

import pytest

from logic.observations import Observation
from logic.species import (
    BLACK_BEAR_COLOR,
    BROWN_BEAR_COLOR,
    CLUSTER_COLOR,
    FALLBACK_COLOR,
    POLAR_BEAR_COLOR,
    classify_species_color,
    legend_entries,
    species_candidate,
    species_color_expression,
    species_color_for,
)


@pytest.mark.parametrize(
    "text",
    ["Ursus americanus", "black bear", "Black Bear", "AMERICAN BLACK BEAR"],
)
def test_black_bear_names(text):
    assert classify_species_color(text) == BLACK_BEAR_COLOR


@pytest.mark.parametrize(
    "text",
    ["Ursus arctos", "grizzly", "Grizzly Bear", "Brown bear", "Ursus arctos horribilis"],
)
def test_brown_bear_names(text):
    assert classify_species_color(text) == BROWN_BEAR_COLOR


@pytest.mark.parametrize("text", ["Ursus maritimus", "polar bear", "Polar Bear"])
def test_polar_bear_names(text):
    assert classify_species_color(text) == POLAR_BEAR_COLOR


@pytest.mark.parametrize("text", ["", "   ", None, "Ailuropoda melanoleuca", "sun bear"])
def test_unmatched_falls_back(text):
    assert classify_species_color(text) == FALLBACK_COLOR


def test_scientific_names_are_exact():
    """Scientific names match exactly, not by substring or case."""
    assert classify_species_color("ursus americanus") == FALLBACK_COLOR
    assert classify_species_color("Ursus maritimus x") == FALLBACK_COLOR


def test_first_matching_rule_wins():
    assert classify_species_color("grizzly or polar bear hybrid") == BROWN_BEAR_COLOR
    assert classify_species_color("black bear chasing a grizzly") == BLACK_BEAR_COLOR


def test_candidate_prefers_species_then_scientific_then_common():
    assert species_candidate({"species": "Ursus arctos", "vernacularName": "Polar bear"}) == "Ursus arctos"
    assert species_candidate({"species": "  ", "scientificName": "Ursus maritimus"}) == "Ursus maritimus"
    assert species_candidate({"vernacularName": "black bear"}) == "black bear"
    assert species_candidate({}) == ""
    assert species_candidate(None) == ""


def test_species_color_for_properties():
    assert species_color_for({"species": None, "vernacularName": "Grizzly"}) == BROWN_BEAR_COLOR
    assert species_color_for({}) == FALLBACK_COLOR


def test_expression_keeps_rule_order():
    expression = species_color_expression()
    assert expression[0] == "case"
    assert expression[2:-1:2] == [BLACK_BEAR_COLOR, BROWN_BEAR_COLOR, POLAR_BEAR_COLOR]
    assert expression[-1] == FALLBACK_COLOR


def test_legend_starts_with_clusters():
    entries = legend_entries()
    assert entries[0]["color"] == CLUSTER_COLOR
    assert [e["color"] for e in entries[1:]] == [BLACK_BEAR_COLOR, BROWN_BEAR_COLOR, POLAR_BEAR_COLOR]


def evaluate(expression, properties):
    """Evaluate the subset of MapLibre expressions the color expression uses."""
    if not isinstance(expression, list):
        return expression
    op, *args = expression
    if op == "get":
        return properties.get(args[0])
    if op == "literal":
        return args[0]
    if op == "coalesce":
        for arg in args:
            value = evaluate(arg, properties)
            if value is not None:
                return value
        return None
    if op == "to-string":
        value = evaluate(args[0], properties)
        return "" if value is None else str(value)
    if op == "downcase":
        return evaluate(args[0], properties).lower()
    if op == "!=":
        return evaluate(args[0], properties) != evaluate(args[1], properties)
    if op == "in":
        return evaluate(args[0], properties) in evaluate(args[1], properties)
    if op == "any":
        return any(evaluate(arg, properties) for arg in args)
    if op == "case":
        for condition, result in zip(args[:-1:2], args[1::2]):
            if evaluate(condition, properties):
                return evaluate(result, properties)
        return evaluate(args[-1], properties)
    raise ValueError(f"Unsupported operator {op}")


@pytest.mark.parametrize(
    "properties",
    [
        {"species": "Ursus americanus"},
        {"vernacularName": "BLACK BEAR"},
        {"species": "Ursus arctos"},
        {"vernacularName": "Grizzly"},
        {"scientificName": "Ursus maritimus"},
        {"vernacularName": "polar bear"},
        {"vernacularName": "grizzly or polar bear"},
        {"vernacularName": "Sun bear"},
        {},
        {"species": "", "scientificName": "Ursus arctos"},
        {"species": None, "scientificName": "", "vernacularName": "Polar Bear"},
        {"species": "", "scientificName": "", "vernacularName": ""},
        {"commonName": "Kodiak bear"},
    ],
)
def test_expression_matches_classifier(properties):
    assert evaluate(species_color_expression(), properties) == species_color_for(properties)


@pytest.mark.parametrize(
    "record, color",
    [
        ({"species": "Ursus americanus ", "scientificName": "  "}, BLACK_BEAR_COLOR),
        ({"species": "   ", "scientificName": " Ursus maritimus"}, POLAR_BEAR_COLOR),
        ({"species": "\tUrsus arctos\n"}, BROWN_BEAR_COLOR),
    ],
)
def test_expression_matches_classifier_on_stored_observations(record, color):
    record = dict(record, decimalLongitude=-120.0, decimalLatitude=48.0)
    properties = Observation.from_gbif_record(record).properties()

    assert species_color_for(properties) == color
    assert evaluate(species_color_expression(), properties) == color
