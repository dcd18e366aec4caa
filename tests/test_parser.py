"""Tests for bpmn_insight.analysis.parser: free-text reply parsing and suggestion repair."""

from __future__ import annotations

import random

from bpmn_insight.analysis.extractor import extract_elements
from bpmn_insight.analysis.models import SUGGESTION_TYPES, EditingSuggestion, ExtractedElements
from bpmn_insight.analysis.parser import (
    DEFAULT_RISKS,
    normalize_suggestions,
    parse_ai_response,
    synthesize_suggestions,
)

REPLY = """Key Insights:
1. Insight: the process has two manual approvals
2. Finding: approval waits dominate cycle time
Recommendations:
- We recommend automating the review
- Improve handover between tasks
Risks:
- Risk of delays at approval

EDITING SUGGESTIONS:
TYPE: add-task
ELEMENT_ID: Task_Review
DESCRIPTION: Add completeness check
IMPLEMENTATION: Insert a check after the review

TYPE: change-gateway
ELEMENT_ID: Ghost_Gateway
DESCRIPTION: Parallelize approvals
IMPLEMENTATION: Convert to parallel gateway

TYPE: rename-everything
ELEMENT_ID: Task_Review
DESCRIPTION: Not a supported edit
"""


def _ids_valid(suggestions: list[EditingSuggestion], elements: ExtractedElements) -> bool:
    return all(s.element_id is None or s.element_id in elements.known_ids for s in suggestions)


def test_sections_are_routed_by_keyword(approval_bpmn: str) -> None:
    bundle = parse_ai_response(REPLY, extract_elements(approval_bpmn), random.Random(3))
    assert bundle.insights == [
        "Insight: the process has two manual approvals",
        "Finding: approval waits dominate cycle time",
    ]
    assert bundle.recommendations == [
        "We recommend automating the review",
        "Improve handover between tasks",
    ]
    assert bundle.risks == ["Risk of delays at approval"]
    assert bundle.source == "ai-text"
    assert 7 <= bundle.implementation_readiness <= 10


def test_suggestion_records_are_parsed_and_repaired(approval_bpmn: str) -> None:
    elements = extract_elements(approval_bpmn)
    suggestions = parse_ai_response(REPLY, elements, random.Random(3)).editing_suggestions

    assert [s.id for s in suggestions] == [f"suggestion_{i}" for i in range(1, 6)]
    first, second = suggestions[0], suggestions[1]
    assert (first.type, first.element_id) == ("add-task", "Task_Review")
    assert first.description == "Add completeness check"
    assert first.details == {"implementation": "Insert a check after the review"}
    # unknown id is nulled rather than kept dangling
    assert (second.type, second.element_id) == ("change-gateway", None)
    assert all(s.type in SUGGESTION_TYPES for s in suggestions)
    assert _ids_valid(suggestions, elements)


def test_null_element_id_literal(approval_bpmn: str) -> None:
    text = "EDITING SUGGESTIONS:\nTYPE: add-role\nELEMENT_ID: null\nDESCRIPTION: Add approver\n"
    suggestions = parse_ai_response(text, extract_elements(approval_bpmn)).editing_suggestions
    assert (suggestions[0].type, suggestions[0].element_id) == ("add-role", None)


def test_unstructured_reply_falls_back(approval_bpmn: str) -> None:
    text = (
        "The workflow is mostly manual.\n"
        "You should consider an automated check.\n"
        "Nothing else to add."
    )
    bundle = parse_ai_response(text, extract_elements(approval_bpmn))
    assert bundle.insights == ["The workflow is mostly manual."]
    assert bundle.recommendations == ["You should consider an automated check."]
    assert bundle.risks == DEFAULT_RISKS
    assert len(bundle.editing_suggestions) == 5


def test_empty_reply_still_yields_five_suggestions(approval_bpmn: str) -> None:
    elements = extract_elements(approval_bpmn)
    bundle = parse_ai_response("", elements)
    assert len(bundle.editing_suggestions) == 5
    assert _ids_valid(bundle.editing_suggestions, elements)


def test_synthesized_suggestions_anchor_on_elements(onboarding_bpmn: str) -> None:
    elements = extract_elements(onboarding_bpmn)
    suggestions = synthesize_suggestions(elements)
    assert [s.type for s in suggestions] == [
        "add-task", "add-gateway", "optimize-flow", "add-role", "change-gateway",
    ]
    assert suggestions[0].element_id == "Task_Submit"
    assert suggestions[3].element_id == "Lane_Manager"
    assert suggestions[4].element_id == "Gateway_Split"
    assert _ids_valid(suggestions, elements)


def test_synthesized_suggestions_without_elements() -> None:
    suggestions = synthesize_suggestions(ExtractedElements())
    assert len(suggestions) == 5
    assert all(s.element_id is None for s in suggestions)


def test_normalize_caps_at_five(approval_bpmn: str) -> None:
    elements = extract_elements(approval_bpmn)
    many = [
        EditingSuggestion(id=f"x{i}", type="optimize-flow", element_id="Task_Review", description="")
        for i in range(8)
    ]
    result = normalize_suggestions(many, elements)
    assert len(result) == 5
    assert result[-1].id == "suggestion_5"
