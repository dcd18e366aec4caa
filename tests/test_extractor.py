"""Tests for bpmn_insight.analysis.extractor: element extraction from BPMN XML."""

from __future__ import annotations

from bpmn_insight.analysis.extractor import extract_elements

BPMN_NS = "http://www.omg.org/spec/BPMN/20100524/MODEL"


def test_user_tasks_in_document_order(approval_bpmn: str) -> None:
    elements = extract_elements(approval_bpmn)
    assert [t.id for t in elements.user_tasks] == ["Task_Review", "Task_Approve"]
    assert [t.name for t in elements.user_tasks] == ["Review request", "Approve request"]
    assert all(t.type == "userTask" for t in elements.user_tasks)


def test_counts(approval_bpmn: str) -> None:
    counts = extract_elements(approval_bpmn).counts()
    assert counts == {
        "userTasks": 2,
        "serviceTasks": 0,
        "gateways": 1,
        "events": 2,
        "sequenceFlows": 4,
        "lanes": 0,
        "pools": 0,
    }


def test_missing_name_defaults_to_id(approval_bpmn: str) -> None:
    gateway = extract_elements(approval_bpmn).exclusive_gateways[0]
    assert gateway.id == "Gateway_1"
    assert gateway.name == "Gateway_1"


def test_lanes_pools_and_prefix_variants(onboarding_bpmn: str) -> None:
    elements = extract_elements(onboarding_bpmn)
    assert [lane.name for lane in elements.lanes] == ["Manager", "Employee"]
    assert [(p.id, p.type) for p in elements.pools] == [("Pool_HR", "pool")]
    assert [t.id for t in elements.service_tasks] == ["Task_Notify"]
    assert [g.id for g in elements.parallel_gateways] == ["Gateway_Split"]


def test_default_namespace() -> None:
    xml = (
        f'<definitions xmlns="{BPMN_NS}"><process id="P">'
        '<userTask id="A" name="First"/><userTask id="B"/>'
        '</process></definitions>'
    )
    elements = extract_elements(xml)
    assert [(t.id, t.name) for t in elements.user_tasks] == [("A", "First"), ("B", "B")]


def test_elements_without_id_are_skipped() -> None:
    xml = (
        f'<bpmn:definitions xmlns:bpmn="{BPMN_NS}"><bpmn:process id="P">'
        '<bpmn:userTask name="Anonymous"/><bpmn:userTask id="Kept" name="Kept"/>'
        '</bpmn:process></bpmn:definitions>'
    )
    assert [t.id for t in extract_elements(xml).user_tasks] == ["Kept"]


def test_unparseable_text_yields_empty_result() -> None:
    elements = extract_elements("not xml at all <")
    assert sum(elements.counts().values()) == 0
    assert elements.all_ids == []


def test_leading_whitespace_before_declaration(approval_bpmn: str) -> None:
    elements = extract_elements("\n  " + approval_bpmn)
    assert [t.id for t in elements.user_tasks] == ["Task_Review", "Task_Approve"]
    assert elements.counts()["sequenceFlows"] == 4


def test_unescaped_ampersand_only_affects_its_own_tag() -> None:
    xml = (
        f'<bpmn:definitions xmlns:bpmn="{BPMN_NS}"><bpmn:process id="P">'
        '<bpmn:userTask id="T1" name="Collect documents"/>'
        '<bpmn:userTask id="T2" name="Hire & onboard"/>'
        '<bpmn:userTask id="T3" name="Sign &amp; return"/>'
        '<bpmn:startEvent id="S1"/>'
        '</bpmn:process></bpmn:definitions>'
    )
    elements = extract_elements(xml)
    assert [(t.id, t.name) for t in elements.user_tasks] == [
        ("T1", "Collect documents"),
        ("T2", "Hire & onboard"),
        ("T3", "Sign & return"),
    ]
    assert [e.id for e in elements.start_events] == ["S1"]


def test_undeclared_prefix_is_scanned() -> None:
    xml = (
        '<bpmn:definitions><bpmn:process id="P">'
        '<bpmn:userTask id="A" name="First"></bpmn:userTask>'
        "<bpmn:userTask id='B'/>"
        '<bpmn:laneSet id="LS"><bpmn:lane id="L1" name="Clerk"/></bpmn:laneSet>'
        '</bpmn:process></bpmn:definitions>'
    )
    elements = extract_elements(xml)
    assert [(t.id, t.name) for t in elements.user_tasks] == [("A", "First"), ("B", "B")]
    assert [(lane.id, lane.name) for lane in elements.lanes] == [("L1", "Clerk")]


def test_truncated_document_keeps_complete_tags() -> None:
    elements = extract_elements("<bpmn:definitions><bpmn:userTask id='x'>")
    assert [t.id for t in elements.user_tasks] == ["x"]


def test_empty_input() -> None:
    assert sum(extract_elements("").counts().values()) == 0
    assert sum(extract_elements("   ").counts().values()) == 0


def test_extraction_is_idempotent(approval_bpmn: str) -> None:
    assert extract_elements(approval_bpmn) == extract_elements(approval_bpmn)


def test_all_ids_and_known_ids(onboarding_bpmn: str) -> None:
    elements = extract_elements(onboarding_bpmn)
    assert elements.all_ids == ["Task_Submit", "Task_Notify", "Gateway_Split", "Start_1", "End_1"]
    assert {"Lane_Manager", "Lane_Employee", "Pool_HR"} <= elements.known_ids
    assert "Flow_A" not in elements.known_ids
