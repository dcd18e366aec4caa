"""Single-pass analysis: extract → score → insights → documentation/findings."""

from __future__ import annotations

import logging
import random
from typing import Any

from ..llm_client import LLMClient
from .documentation import generate_findings, generate_stakeholder_documentation
from .extractor import extract_elements
from .insights import request_insights
from .scoring import analyze_roles, calculate_complexity

logger = logging.getLogger(__name__)


async def analyze_bpmn(
    bpmn_xml: str,
    file_id: str,
    file_path: str,
    llm: LLMClient | None = None,
    rng: random.Random | None = None,
) -> dict[str, Any]:
    """Run the full analysis for one BPMN document.

    Stateless: every record is built from scratch for this call. Model
    failures degrade to fallback insights instead of raising.
    """
    elements = extract_elements(bpmn_xml)
    complexity = calculate_complexity(elements)
    roles = analyze_roles(elements)
    insights = await request_insights(elements, complexity, roles, llm=llm, rng=rng)
    documentation = generate_stakeholder_documentation(elements, complexity, roles, insights)
    findings = generate_findings(elements, complexity, roles, insights)

    logger.info(
        'Analysis of %s: score=%.1f risk=%s findings=%d suggestions=%d (%s)',
        file_id, complexity.score, complexity.risk, len(findings),
        len(insights.editing_suggestions), insights.source,
    )

    return {
        'fileInfo': {'fileId': file_id, 'filePath': file_path},
        'summary': {
            'userTasks': len(elements.user_tasks),
            'serviceTasks': len(elements.service_tasks),
            'gateways': len(elements.gateways),
            'events': len(elements.events),
            'lanes': len(elements.lanes),
            'pools': len(elements.pools),
            'sequenceFlows': len(elements.sequence_flows),
            'integrations': len(elements.service_tasks),
            'complexityScore': complexity.score,
            'riskLevel': complexity.risk,
            'tasksFound': [e.to_dict() for e in elements.tasks],
        },
        'roles': roles.to_dict(),
        'processIntelligence': insights.to_dict(),
        'findings': [f.to_dict() for f in findings],
        'stakeholderDocumentation': documentation,
        'usage': dict(insights.usage),
    }


def fallback_result(file_id: str = 'unknown', file_path: str = 'unknown') -> dict[str, Any]:
    """Degraded body attached to analysis failure responses."""
    return {
        'fileInfo': {'fileId': file_id, 'filePath': file_path},
        'summary': {
            'userTasks': 0,
            'serviceTasks': 0,
            'gateways': 0,
            'events': 0,
            'integrations': 0,
            'complexityScore': 0,
            'riskLevel': 'Unknown',
        },
        'roles': {'totalRoles': 0, 'roles': [], 'tasksPerRole': 0, 'roleBalance': 'Needs Review'},
        'processIntelligence': {
            'insights': ['Analysis temporarily unavailable'],
            'recommendations': ['Manual review recommended'],
            'implementationReadiness': 5,
            'risks': ['Unable to assess risks'],
            'editingSuggestions': [],
            'source': 'fallback',
        },
        'findings': [],
        'stakeholderDocumentation': {},
    }
