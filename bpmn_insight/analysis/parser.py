"""Parse free-text model replies into insights and editing suggestions.

The reply carries no grammar guarantee, so everything here degrades:
unrecognised lines are ignored, unknown suggestion types are dropped and
missing suggestions are synthesised from the extracted diagram.
"""

from __future__ import annotations

import logging
import random
import re

from .models import SUGGESTION_TYPES, EditingSuggestion, ExtractedElements, InsightBundle

logger = logging.getLogger(__name__)

SUGGESTION_COUNT = 5
MAX_INSIGHTS = 5
MAX_RECOMMENDATIONS = 5
MAX_RISKS = 3
DEFAULT_RISKS = ['Standard implementation risks apply']

LIST_ITEM_RE = re.compile(r'^(?:\d+[.)]|[-•*])\s*')

FIELD_PREFIXES = ('TYPE:', 'ELEMENT_ID:', 'DESCRIPTION:', 'IMPLEMENTATION:')


def synthesize_suggestions(elements: ExtractedElements) -> list[EditingSuggestion]:
    """Build five suggestions anchored on the first task, gateway and lane.

    Every non-null element id refers to an extracted element.
    """
    first_user = elements.user_tasks[0] if elements.user_tasks else None
    primary_task = first_user or (elements.service_tasks[0] if elements.service_tasks else None)
    gateways = elements.exclusive_gateways + elements.parallel_gateways
    primary_gateway = gateways[0] if gateways else None
    primary_lane = elements.lanes[0] if elements.lanes else None
    all_ids = elements.all_ids
    target = primary_task.id if primary_task else (all_ids[0] if all_ids else None)

    suggestions: list[EditingSuggestion] = []

    if primary_task:
        suggestions.append(EditingSuggestion(
            id='suggestion_1',
            type='add-task',
            element_id=primary_task.id,
            description=f'Add validation task after {primary_task.name}',
            details={
                'implementation': 'Insert quality validation step in the workflow',
                'name': 'Quality Validation',
                'position': 'after',
            },
        ))
    else:
        suggestions.append(EditingSuggestion(
            id='suggestion_1',
            type='add-task',
            element_id=None,
            description='Add initial data validation task',
            details={
                'implementation': 'Add a task to validate inputs at process start',
                'name': 'Input Validation',
            },
        ))

    suggestions.append(EditingSuggestion(
        id='suggestion_2',
        type='add-gateway',
        element_id=target,
        description='Add decision gateway for conditional routing',
        details={
            'implementation': 'Insert decision point for process branching',
            'gatewayType': 'exclusive',
            'name': 'Approval Decision',
        },
    ))

    suggestions.append(EditingSuggestion(
        id='suggestion_3',
        type='optimize-flow',
        element_id=target,
        description='Streamline process flow connections',
        details={
            'implementation': 'Optimize sequence flows for better efficiency',
            'optimization': 'reduce_steps',
        },
    ))

    if primary_lane:
        suggestions.append(EditingSuggestion(
            id='suggestion_4',
            type='add-role',
            element_id=primary_lane.id,
            description=f'Add reviewer role to support {primary_lane.name}',
            details={
                'implementation': 'Add complementary role for quality assurance',
                'roleName': 'Quality Reviewer',
            },
        ))
    else:
        suggestions.append(EditingSuggestion(
            id='suggestion_4',
            type='add-role',
            element_id=None,
            description='Add approver role for process oversight',
            details={
                'implementation': 'Create dedicated lane for approval workflow',
                'roleName': 'Process Approver',
            },
        ))

    if primary_gateway:
        suggestions.append(EditingSuggestion(
            id='suggestion_5',
            type='change-gateway',
            element_id=primary_gateway.id,
            description=f'Optimize {primary_gateway.name} for parallel processing',
            details={
                'implementation': 'Convert to parallel gateway for concurrent execution',
                'gatewayType': 'bpmn:ParallelGateway',
            },
        ))
    else:
        suggestions.append(EditingSuggestion(
            id='suggestion_5',
            type='add-gateway',
            element_id=target,
            description='Add parallel gateway for concurrent processing',
            details={
                'implementation': 'Enable multiple process paths to execute simultaneously',
                'gatewayType': 'parallel',
                'name': 'Parallel Split',
            },
        ))

    return suggestions


def normalize_suggestions(
    suggestions: list[EditingSuggestion],
    elements: ExtractedElements,
) -> list[EditingSuggestion]:
    """Drop unknown types, null dangling ids, top up to five and renumber."""
    known_ids = elements.known_ids
    kept: list[EditingSuggestion] = []
    for suggestion in suggestions:
        if suggestion.type not in SUGGESTION_TYPES:
            logger.debug('Dropping suggestion with unknown type %r', suggestion.type)
            continue
        if suggestion.element_id is not None and suggestion.element_id not in known_ids:
            suggestion.element_id = None
        kept.append(suggestion)

    if len(kept) < SUGGESTION_COUNT:
        logger.info(
            'Only %d usable suggestions in model reply, topping up with synthesized ones',
            len(kept),
        )
        kept.extend(synthesize_suggestions(elements)[len(kept):])

    kept = kept[:SUGGESTION_COUNT]
    for index, suggestion in enumerate(kept, 1):
        suggestion.id = f'suggestion_{index}'
    return kept


def _strip_list_marker(line: str) -> str:
    return LIST_ITEM_RE.sub('', line).strip()


def parse_ai_response(
    text: str,
    elements: ExtractedElements,
    rng: random.Random | None = None,
) -> InsightBundle:
    """Recover insights and TYPE/ELEMENT_ID/DESCRIPTION/IMPLEMENTATION records."""
    rng = rng or random.Random()
    lines = [line.strip() for line in (text or '').splitlines() if line.strip()]

    insights: list[str] = []
    recommendations: list[str] = []
    risks: list[str] = []
    suggestions: list[EditingSuggestion] = []
    current: EditingSuggestion | None = None
    in_suggestions = False

    for line in lines:
        lower = line.lower()

        if not line.startswith(FIELD_PREFIXES) and (
            'editing suggestion' in lower or 'actionable' in lower
        ):
            in_suggestions = True
            continue

        if in_suggestions:
            if line.startswith('TYPE:'):
                if current is not None:
                    suggestions.append(current)
                current = EditingSuggestion(
                    id=f'suggestion_{len(suggestions) + 1}',
                    type=line[len('TYPE:'):].strip().lower(),
                    element_id=None,
                    description='',
                )
                continue
            if current is not None:
                if line.startswith('ELEMENT_ID:'):
                    value = line[len('ELEMENT_ID:'):].strip()
                    current.element_id = None if value.lower() in ('', 'null', 'none') else value
                    continue
                if line.startswith('DESCRIPTION:'):
                    current.description = line[len('DESCRIPTION:'):].strip()
                    continue
                if line.startswith('IMPLEMENTATION:'):
                    current.details = {'implementation': line[len('IMPLEMENTATION:'):].strip()}
                    continue

        if LIST_ITEM_RE.match(line):
            item = _strip_list_marker(line)
            if 'insight' in lower or 'finding' in lower:
                insights.append(item)
            elif 'recommend' in lower or 'improve' in lower:
                recommendations.append(item)
            elif 'risk' in lower or 'concern' in lower:
                risks.append(item)

    if current is not None:
        suggestions.append(current)

    if not insights:
        insights = [
            line for line in lines
            if any(word in line.lower() for word in ('process', 'workflow', 'efficiency'))
            and not line.startswith(FIELD_PREFIXES)
        ][:3]
    if not recommendations:
        recommendations = [
            line for line in lines
            if any(word in line.lower() for word in ('should', 'consider', 'optimize'))
            and not line.startswith(FIELD_PREFIXES)
        ][:3]

    return InsightBundle(
        insights=insights[:MAX_INSIGHTS],
        recommendations=recommendations[:MAX_RECOMMENDATIONS],
        risks=risks[:MAX_RISKS] if risks else list(DEFAULT_RISKS),
        implementation_readiness=rng.randint(7, 10),
        editing_suggestions=normalize_suggestions(suggestions, elements),
        source='ai-text',
    )
