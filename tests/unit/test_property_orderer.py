"""Unit tests for property ordering."""

import pytest

from grid_tree_codec.analyzers.structure_analyzer import StructureAnalyzer
from grid_tree_codec.layout.property_orderer import PropertyOrderer


@pytest.fixture
def orderer():
    return PropertyOrderer()


@pytest.fixture
def properties():
    tree = [
        {"note": "x", "customer_id": 1, "total": 5},
        {"customer_id": 2, "total": 7},
        {"customer_id": 3, "total": 1, "discount": 0.1},
    ]
    return StructureAnalyzer().analyze(tree).properties


def test_occurrence_order_follows_first_appearance(orderer, properties):
    assert orderer.occurrence_order(properties) == ["note", "customer_id", "total", "discount"]


def test_frequency_order_puts_common_fields_first(orderer, properties):
    assert orderer.determine_property_order(properties) == [
        "customer_id",
        "total",
        "note",
        "discount",
    ]


def test_element_order_prefers_identifiers_among_required(orderer):
    tree = [{"total": 1, "orderId": 2, "extra": 3}, {"total": 2, "orderId": 3}]
    properties = StructureAnalyzer().analyze(tree).properties
    assert orderer.order_properties_for_array_element(properties) == ["orderId", "total", "extra"]


def test_co_occurring_fields_are_kept_together(orderer):
    samples = [
        {"a": 1, "x": 1, "y": 1},
        {"a": 2, "b": 2},
        {"a": 3, "x": 3, "y": 3},
    ]
    groups = orderer.find_co_occurrence_groups(["a", "b", "x", "y"], samples)
    assert groups == [["x", "y"]]
    assert orderer.optimize_for_horizontal_layout(["a", "x", "b", "y"], samples) == ["a", "x", "y", "b"]
