"""Tests for module dependency checks."""

import pytest

from crm.services.module_graph import (
    DependenciesRequired,
    ModuleGraph,
    RequiredByActiveModules,
    UnknownModule,
    feature_level,
)

DEPS = {
    "crm": [],
    "appointment": ["crm"],
    "sales": ["crm", "appointment"],
    "reports": ["sales"],
}


def test_blocked_and_locked_flags():
    graph = ModuleGraph(DEPS, {"crm"})

    assert graph.is_blocked("sales") is True
    assert graph.missing_dependencies("sales") == ["appointment"]
    assert graph.is_blocked("appointment") is False
    assert graph.cant_unassign("crm") is False  # nothing assigned depends on it yet

    graph.assigned.add("appointment")
    assert graph.cant_unassign("crm") is True
    assert graph.active_dependents("crm") == ["appointment"]


def test_requiring_modules_lists_all_dependents():
    graph = ModuleGraph(DEPS)
    assert graph.requiring_modules("crm") == ["appointment", "sales"]
    assert graph.requiring_modules("reports") == []


def test_activation_with_missing_dependencies_is_refused():
    graph = ModuleGraph(DEPS, {"crm"})

    with pytest.raises(DependenciesRequired) as exc_info:
        graph.toggle("reports")
    assert exc_info.value.missing == ["appointment", "sales"]
    assert graph.assigned == {"crm"}


def test_activation_can_pull_in_dependencies():
    graph = ModuleGraph(DEPS)

    outcome = graph.toggle("reports", activate_dependencies=True)

    assert outcome.assigned is True
    assert outcome.activated == ["crm", "appointment", "sales", "reports"]
    assert graph.assigned == {"crm", "appointment", "sales", "reports"}


def test_deactivation_refused_while_required():
    graph = ModuleGraph(DEPS, {"crm", "appointment"})

    with pytest.raises(RequiredByActiveModules) as exc_info:
        graph.toggle("crm")
    assert exc_info.value.dependents == ["appointment"]

    outcome = graph.toggle("appointment")
    assert outcome.assigned is False
    assert outcome.deactivated == ["appointment"]
    assert graph.toggle("crm").assigned is False


def test_cycles_terminate():
    graph = ModuleGraph({"a": ["b"], "b": ["a"]})
    assert graph.transitive_missing("a") == ["b"]


def test_unknown_module():
    with pytest.raises(UnknownModule):
        ModuleGraph(DEPS).toggle("billing")


def test_validate_reports_unsatisfied_assignments():
    assert ModuleGraph(DEPS, {"crm", "appointment"}).validate() == {}
    assert ModuleGraph(DEPS, {"sales"}).validate() == {"sales": ["crm", "appointment"]}


@pytest.mark.parametrize(
    "metadata, level",
    [
        (None, "basic"),
        ({}, "basic"),
        ({"importance": "high"}, "premium"),
        ({"complexity": "high", "importance": "low"}, "premium"),
        ({"complexity": "medium"}, "advanced"),
        ({"importance": "low"}, "basic"),
    ],
)
def test_feature_level(metadata, level):
    assert feature_level(metadata) == level
