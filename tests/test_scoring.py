"""Tests for bpmn_insight.analysis.scoring: complexity, risk and roles."""

from __future__ import annotations

import pytest

from bpmn_insight.analysis.extractor import extract_elements
from bpmn_insight.analysis.models import Element, ExtractedElements
from bpmn_insight.analysis.scoring import (
    analyze_roles,
    calculate_complexity,
    complexity_score,
    risk_level,
)


@pytest.mark.parametrize("score, expected", [
    (0.0, "Low"),
    (3.9, "Low"),
    (4.0, "Medium"),
    (6.9, "Medium"),
    (7.0, "High"),
    (10.0, "High"),
])
def test_risk_level_buckets(score: float, expected: str) -> None:
    assert risk_level(score) == expected


def test_empty_diagram_scores_zero() -> None:
    assert complexity_score() == 0.0


def test_score_is_capped_at_ten() -> None:
    assert complexity_score(tasks=100, gateways=50) == 10.0


@pytest.mark.parametrize("kind", ["tasks", "gateways", "events", "lanes", "pools", "flows"])
def test_score_is_monotone_in_every_count(kind: str) -> None:
    base = dict(tasks=3, gateways=1, events=2, lanes=1, pools=1, flows=6)
    bigger = dict(base, **{kind: base[kind] + 4})
    assert complexity_score(**bigger) > complexity_score(**base)


def test_gateways_weigh_more_than_tasks() -> None:
    assert complexity_score(gateways=2) > complexity_score(tasks=2)


def test_calculate_complexity(approval_bpmn: str) -> None:
    result = calculate_complexity(extract_elements(approval_bpmn))
    # 2 tasks + 2*1 gateway + 0.5*2 events + 0.25*4 flows = 6 -> 3.0
    assert result.score == 3.0
    assert result.risk == "Low"
    assert result.gateway_complexity == 1
    assert result.to_dict()["taskDistribution"] == {"userTasks": 2, "serviceTasks": 0}


def test_roles_without_lanes(approval_bpmn: str) -> None:
    roles = analyze_roles(extract_elements(approval_bpmn))
    assert roles.total_roles == 0
    assert roles.tasks_per_role == 0
    assert roles.role_balance == "Needs Review"


def test_roles_from_lanes_then_pools(onboarding_bpmn: str) -> None:
    roles = analyze_roles(extract_elements(onboarding_bpmn))
    assert [r["name"] for r in roles.roles] == ["Manager", "Employee", "HR Department"]
    assert roles.role_balance == "Balanced"
    assert roles.to_dict()["totalRoles"] == 3


def test_roles_deduplicated_case_insensitively() -> None:
    elements = ExtractedElements(
        lanes=[Element("L1", "Finance", "lane"), Element("L2", "finance ", "lane")],
        pools=[Element("P1", "FINANCE", "pool")],
    )
    assert analyze_roles(elements).total_roles == 1


def test_many_roles_need_review() -> None:
    elements = ExtractedElements(
        lanes=[Element(f"L{i}", f"Role {i}", "lane") for i in range(6)],
    )
    assert analyze_roles(elements).role_balance == "Needs Review"


def test_tasks_per_role_rounds_half_up() -> None:
    elements = ExtractedElements(
        user_tasks=[Element(f"T{i}", f"Task {i}", "userTask") for i in range(5)],
        lanes=[Element("L1", "Clerk", "lane"), Element("L2", "Manager", "lane")],
    )
    assert analyze_roles(elements).tasks_per_role == 3
