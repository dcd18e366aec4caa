"""Shared fixtures for BPMN insight tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from bpmn_insight.config import (
    AppConfig,
    BizagiConfig,
    LLMConfig,
    ServerConfig,
    SupabaseConfig,
)
from bpmn_insight.llm_client import ChatCompletion

BPMN_NS = "http://www.omg.org/spec/BPMN/20100524/MODEL"

# Two user tasks, one unnamed exclusive gateway, no lanes or pools.
APPROVAL_BPMN = f"""<?xml version="1.0" encoding="UTF-8"?>
<bpmn:definitions xmlns:bpmn="{BPMN_NS}" id="Definitions_1">
  <bpmn:process id="Process_1" isExecutable="true">
    <bpmn:startEvent id="StartEvent_1" name="Request received"/>
    <bpmn:userTask id="Task_Review" name="Review request"/>
    <bpmn:exclusiveGateway id="Gateway_1"/>
    <bpmn:userTask id="Task_Approve" name="Approve request"/>
    <bpmn:endEvent id="EndEvent_1" name="Done"/>
    <bpmn:sequenceFlow id="Flow_1" sourceRef="StartEvent_1" targetRef="Task_Review"/>
    <bpmn:sequenceFlow id="Flow_2" sourceRef="Task_Review" targetRef="Gateway_1"/>
    <bpmn:sequenceFlow id="Flow_3" sourceRef="Gateway_1" targetRef="Task_Approve"/>
    <bpmn:sequenceFlow id="Flow_4" sourceRef="Task_Approve" targetRef="EndEvent_1"/>
  </bpmn:process>
</bpmn:definitions>
"""

# Two lanes inside one pool, mixed task kinds, named parallel gateway.
ONBOARDING_BPMN = f"""<?xml version="1.0" encoding="UTF-8"?>
<bpmn2:definitions xmlns:bpmn2="{BPMN_NS}" id="Definitions_2">
  <bpmn2:collaboration id="Collaboration_1">
    <bpmn2:participant id="Pool_HR" name="HR Department" processRef="Process_2"/>
  </bpmn2:collaboration>
  <bpmn2:process id="Process_2">
    <bpmn2:laneSet id="LaneSet_1">
      <bpmn2:lane id="Lane_Manager" name="Manager"/>
      <bpmn2:lane id="Lane_Employee" name="Employee"/>
    </bpmn2:laneSet>
    <bpmn2:startEvent id="Start_1"/>
    <bpmn2:userTask id="Task_Submit" name="Submit documents"/>
    <bpmn2:serviceTask id="Task_Notify" name="Notify payroll"/>
    <bpmn2:parallelGateway id="Gateway_Split" name="Split work"/>
    <bpmn2:endEvent id="End_1"/>
    <bpmn2:sequenceFlow id="Flow_A" sourceRef="Start_1" targetRef="Task_Submit"/>
  </bpmn2:process>
</bpmn2:definitions>
"""


@pytest.fixture
def approval_bpmn() -> str:
    return APPROVAL_BPMN


@pytest.fixture
def onboarding_bpmn() -> str:
    return ONBOARDING_BPMN


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        server=ServerConfig(host="127.0.0.1", port=9080, cors_origin="*"),
        supabase=SupabaseConfig(
            url="https://project.supabase.co",
            service_role_key="service-role-key",
        ),
        llm=LLMConfig(
            api_key="sk-test",
            base_url="https://llm.example.com/v1",
            model="gpt-4o-mini",
        ),
        bizagi=BizagiConfig(
            server_url="https://bizagi.example.com",
            api_key="bz-key",
            project_id="proj-1",
        ),
    )


@pytest.fixture
def mock_store() -> MagicMock:
    store = MagicMock()
    store.files_bucket = "bpmn-files"
    store.knowledge_bucket = "ai-knowledge-base"
    store.select = AsyncMock(return_value=[])
    store.select_one = AsyncMock(return_value=None)
    store.count = AsyncMock(return_value=0)
    store.insert = AsyncMock(return_value={})
    store.update = AsyncMock(return_value=[])
    store.delete = AsyncMock()
    store.download = AsyncMock(return_value="")
    store.upload = AsyncMock(side_effect=lambda bucket, path, *a, **kw: path)
    store.get_user = AsyncMock(return_value={"id": "user-1", "email": "analyst@example.com"})
    return store


@pytest.fixture
def mock_llm() -> MagicMock:
    llm = MagicMock()
    llm.enabled = True
    llm.model = "gpt-4o-mini"
    llm.structured_output = True
    llm.estimate_cost = MagicMock(return_value=0.0002)
    llm.chat = AsyncMock(return_value=ChatCompletion(
        content="",
        model="gpt-4o-mini",
        usage={"prompt_tokens": 120, "completion_tokens": 80, "total_tokens": 200},
    ))
    return llm


@pytest.fixture
def mock_bizagi() -> MagicMock:
    bizagi = MagicMock()
    bizagi.configured = True
    bizagi.deploy_process = AsyncMock(return_value={
        "deploymentId": "dep-1", "processId": "proc-1", "status": "deployed",
    })
    bizagi.get_process_status = AsyncMock(return_value={
        "processId": "proc-1", "status": "running", "instanceCount": 3,
        "lastActivity": None, "metrics": {},
    })
    bizagi.list_deployments = AsyncMock(return_value=[])
    return bizagi
