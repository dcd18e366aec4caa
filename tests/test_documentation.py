"""Tests for bpmn_insight.analysis.documentation: stakeholder views and findings."""

from __future__ import annotations

import random

from bpmn_insight.analysis.extractor import extract_elements
from bpmn_insight.analysis.insights import generate_fallback_insights
from bpmn_insight.analysis.models import Element, ExtractedElements
from bpmn_insight.analysis.scoring import analyze_roles, calculate_complexity
from bpmn_insight.analysis.documentation import (
    generate_findings,
    generate_stakeholder_documentation,
)


def _analyze(elements: ExtractedElements):
    complexity = calculate_complexity(elements)
    roles = analyze_roles(elements)
    insights = generate_fallback_insights(elements, complexity, roles, random.Random(7))
    return elements, complexity, roles, insights


def _rule_ids(findings) -> list[str]:
    return [f.rule_id for f in findings]


def test_findings_for_approval_process(approval_bpmn: str) -> None:
    findings = generate_findings(*_analyze(extract_elements(approval_bpmn)))
    rules = _rule_ids(findings)

    no_roles = [f for f in findings if f.rule_id == "no_roles"]
    assert len(no_roles) == 1
    assert no_roles[0].severity == "Error"
    assert no_roles[0].message == "No roles or lanes defined"

    manual = [f for f in findings if f.rule_id == "manual_task_review"]
    assert [f.element_id for f in manual] == ["Task_Review", "Task_Approve"]

    assert "gateway_without_name" in rules
    assert "manual_heavy" in rules
    assert "missing_start_event" not in rules
    assert "complexity_high" not in rules
    assert rules[-1] == "editing_suggestions"


def test_findings_for_lane_process(onboarding_bpmn: str) -> None:
    rules = _rule_ids(generate_findings(*_analyze(extract_elements(onboarding_bpmn))))
    assert "no_roles" not in rules
    assert "role_balance" not in rules
    assert "gateway_without_name" not in rules
    assert rules.count("manual_task_review") == 1


def test_high_complexity_and_missing_boundaries() -> None:
    elements = ExtractedElements(
        service_tasks=[Element(f"S{i}", f"Call {i}", "serviceTask") for i in range(6)],
        exclusive_gateways=[Element(f"G{i}", f"Decide {i}", "exclusiveGateway") for i in range(3)],
        lanes=[Element(f"L{i}", f"Role {i}", "lane") for i in range(7)],
    )
    findings = generate_findings(*_analyze(elements))
    by_rule = {f.rule_id: f for f in findings}

    assert by_rule["complexity_high"].severity == "Warning"
    assert by_rule["role_balance"].severity == "Warning"
    assert by_rule["missing_start_event"].severity == "Warning"
    assert by_rule["missing_end_event"].severity == "Warning"
    assert "manual_heavy" not in by_rule


def test_finding_serialization(approval_bpmn: str) -> None:
    finding = generate_findings(*_analyze(extract_elements(approval_bpmn)))[0]
    assert set(finding.to_dict()) == {
        "id", "ruleId", "ruleName", "severity", "message",
        "elementId", "elementName", "description",
    }


def test_stakeholder_documentation(onboarding_bpmn: str) -> None:
    docs = generate_stakeholder_documentation(*_analyze(extract_elements(onboarding_bpmn)))

    assert set(docs) == {"business", "technical", "changeManagement", "endUser"}
    assert docs["business"]["keyMetrics"]["automationLevel"] == "1/2"
    assert docs["business"]["keyMetrics"]["roleDistribution"] == "Balanced"
    assert docs["technical"]["integrationPoints"] == 1
    assert docs["technical"]["integrations"][0]["id"] == "Task_Notify"
    assert docs["changeManagement"]["trainingNeeds"] == [
        "Manager role training required",
        "Employee role training required",
        "HR Department role training required",
    ]
    assert docs["endUser"]["tasks"] == ["Submit documents"]


def test_timeline_follows_risk(approval_bpmn: str) -> None:
    docs = generate_stakeholder_documentation(*_analyze(extract_elements(approval_bpmn)))
    assert docs["changeManagement"]["timeline"].startswith("1-2 weeks")
