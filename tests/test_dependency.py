"""Tests for table dependency ordering."""

import pytest

from seedplan import CircularDependencyError, OrderingError, Schema
from seedplan.dependency import DependencyGraph


def test_topological_sort():
    """Test dependencies come before dependents."""
    graph = DependencyGraph()
    graph.add_dependency("workspace", "users")
    graph.add_dependency("channel", "workspace")
    graph.add_table("tag")

    assert graph.topological_sort() == ["users", "tag", "workspace", "channel"]


def test_ties_keep_insertion_order():
    """Test independent tables keep the order they were added in."""
    graph = DependencyGraph()
    for table in ["c", "a", "b"]:
        graph.add_table(table)

    assert graph.topological_sort() == ["c", "a", "b"]


def test_self_dependency_ignored():
    """Test self-references never block ordering."""
    graph = DependencyGraph()
    graph.add_dependency("category", "category")

    assert graph.topological_sort() == ["category"]
    assert graph.get_dependencies("category") == []


def test_cycle():
    """Test cycles raise an ordering error naming the tables."""
    graph = DependencyGraph()
    graph.add_dependency("a", "b")
    graph.add_dependency("b", "a")
    graph.add_dependency("c", "users")

    with pytest.raises(CircularDependencyError) as exc_info:
        graph.topological_sort()

    assert isinstance(exc_info.value, OrderingError)
    assert exc_info.value.tables == {"a", "b"}


def test_from_schema(schema: Schema):
    """Test the schema graph orders every table after its parents."""
    order = DependencyGraph.from_schema(schema).topological_sort()

    for table in schema:
        for rel in table.parents:
            assert order.index(rel.target) < order.index(table.name)
