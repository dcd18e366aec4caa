"""Audience-specific documentation views and rule-tagged findings."""

from __future__ import annotations

from typing import Any

from .models import (
    ComplexityResult,
    ExtractedElements,
    Finding,
    InsightBundle,
    RoleDistribution,
)
from .scoring import MAX_BALANCED_ROLES


def generate_stakeholder_documentation(
    elements: ExtractedElements,
    complexity: ComplexityResult,
    roles: RoleDistribution,
    insights: InsightBundle,
) -> dict[str, Any]:
    user_tasks = len(elements.user_tasks)
    service_tasks = len(elements.service_tasks)
    return {
        'business': {
            'summary': (
                f'Business process with {user_tasks} manual tasks '
                f'and {complexity.score}/10 complexity'
            ),
            'keyMetrics': {
                'processEfficiency': f'{round(10 - complexity.score, 1)}/10',
                'automationLevel': f'{service_tasks}/{user_tasks + service_tasks}',
                'roleDistribution': roles.role_balance,
            },
            'implementationReadiness': insights.implementation_readiness,
        },
        'technical': {
            'architecture': (
                f'BPMN 2.0 process with {len(elements.all_ids)} flow elements '
                f'and {len(elements.sequence_flows)} sequence flows'
            ),
            'integrationPoints': service_tasks,
            'integrations': [e.to_dict() for e in elements.service_tasks],
            'complexityAnalysis': complexity.to_dict(),
        },
        'changeManagement': {
            'impactAssessment': list(insights.risks),
            'trainingNeeds': [f"{role['name']} role training required" for role in roles.roles],
            'timeline': _timeline(complexity.risk),
        },
        'endUser': {
            'overview': (
                f'This process has {user_tasks} steps that need a person to act'
                + (f' across {roles.total_roles} roles.' if roles.total_roles else '.')
            ),
            'tasks': [t.name for t in elements.user_tasks],
            'roles': [role['name'] for role in roles.roles],
        },
    }


def _timeline(risk: str) -> str:
    return {
        'Low': '1-2 weeks implementation based on complexity',
        'Medium': '2-4 weeks implementation based on complexity',
        'High': '4-8 weeks implementation based on complexity',
    }.get(risk, '2-4 weeks implementation based on complexity')


def generate_findings(
    elements: ExtractedElements,
    complexity: ComplexityResult,
    roles: RoleDistribution,
    insights: InsightBundle,
) -> list[Finding]:
    findings: list[Finding] = []

    if complexity.risk == 'High':
        findings.append(Finding(
            id='complexity_high',
            rule_id='complexity_high',
            rule_name='Process Complexity',
            severity='Warning',
            message='High process complexity detected',
            description='Consider breaking down into smaller sub-processes',
            element_id='process',
            element_name='Process',
        ))

    if roles.total_roles == 0:
        findings.append(Finding(
            id='no_roles',
            rule_id='no_roles',
            rule_name='Role Definition',
            severity='Error',
            message='No roles or lanes defined',
            description='Add swimlanes to clearly define responsibilities',
            element_id='process',
            element_name='Process',
        ))
    elif roles.total_roles > MAX_BALANCED_ROLES:
        findings.append(Finding(
            id='role_balance',
            rule_id='role_balance',
            rule_name='Role Distribution',
            severity='Warning',
            message=f'{roles.total_roles} roles defined',
            description='Many handovers between roles; consider consolidating lanes',
            element_id='process',
            element_name='Process',
        ))

    if not elements.start_events:
        findings.append(Finding(
            id='missing_start_event',
            rule_id='missing_start_event',
            rule_name='Process Boundaries',
            severity='Warning',
            message='No start event defined',
            description='Add a start event so the process trigger is explicit',
            element_id='process',
            element_name='Process',
        ))
    if not elements.end_events:
        findings.append(Finding(
            id='missing_end_event',
            rule_id='missing_end_event',
            rule_name='Process Boundaries',
            severity='Warning',
            message='No end event defined',
            description='Add an end event so process completion is explicit',
            element_id='process',
            element_name='Process',
        ))

    if len(elements.user_tasks) > len(elements.service_tasks) * 2:
        findings.append(Finding(
            id='manual_heavy',
            rule_id='manual_heavy',
            rule_name='Automation Opportunity',
            severity='Info',
            message='Process is heavily manual',
            description='Consider automating repetitive tasks',
            element_id='process',
            element_name='Process',
        ))

    for task in elements.user_tasks:
        findings.append(Finding(
            id=f'manual_task_review_{task.id}',
            rule_id='manual_task_review',
            rule_name='Manual Task Review',
            severity='Info',
            message=f'"{task.name}" is performed manually',
            description='Check whether this step can be automated or self-service',
            element_id=task.id,
            element_name=task.name,
        ))

    for gateway in elements.gateways:
        if gateway.name == gateway.id:
            findings.append(Finding(
                id=f'gateway_without_name_{gateway.id}',
                rule_id='gateway_without_name',
                rule_name='Gateway Labeling',
                severity='Info',
                message='Gateway has no decision label',
                description='Name gateways after the question they decide',
                element_id=gateway.id,
                element_name=gateway.name,
            ))

    if insights.editing_suggestions:
        findings.append(Finding(
            id='editing_suggestions',
            rule_id='editing_suggestions',
            rule_name='AI Editing Suggestions',
            severity='Info',
            message=f'{len(insights.editing_suggestions)} editing suggestions available',
            description='Review the suggested diagram edits under process intelligence',
        ))

    return findings
