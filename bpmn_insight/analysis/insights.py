"""Model-backed process insights with a local heuristic fallback.

Job: one chat-completion call per analysis. The structured (JSON schema)
reply is the primary path; free text goes through the line parser; any
model failure or a missing key falls back to count-based heuristics.
"""

from __future__ import annotations

import logging
import random

from pydantic import BaseModel, Field, ValidationError

from ..llm_client import LLMClient, LLMError
from .models import (
    ComplexityResult,
    EditingSuggestion,
    ExtractedElements,
    InsightBundle,
    RoleDistribution,
)
from .parser import (
    DEFAULT_RISKS,
    MAX_INSIGHTS,
    MAX_RECOMMENDATIONS,
    MAX_RISKS,
    normalize_suggestions,
    parse_ai_response,
    synthesize_suggestions,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    'You are a BPMN expert. Provide structured analysis with actionable '
    'editing suggestions using real element IDs from the process.'
)


class SuggestionReply(BaseModel):
    type: str
    element_id: str | None = Field(default=None, alias='elementId')
    description: str = ''
    implementation: str = ''


class InsightReply(BaseModel):
    insights: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)
    implementation_readiness: int = Field(alias='implementationReadiness', ge=1, le=10)
    editing_suggestions: list[SuggestionReply] = Field(
        default_factory=list, alias='editingSuggestions',
    )


_STRING_LIST = {'type': 'array', 'items': {'type': 'string'}}

RESPONSE_FORMAT = {
    'type': 'json_schema',
    'json_schema': {
        'name': 'bpmn_insights',
        'strict': True,
        'schema': {
            'type': 'object',
            'additionalProperties': False,
            'required': [
                'insights', 'recommendations', 'risks',
                'implementationReadiness', 'editingSuggestions',
            ],
            'properties': {
                'insights': _STRING_LIST,
                'recommendations': _STRING_LIST,
                'risks': _STRING_LIST,
                'implementationReadiness': {'type': 'integer'},
                'editingSuggestions': {
                    'type': 'array',
                    'items': {
                        'type': 'object',
                        'additionalProperties': False,
                        'required': ['type', 'elementId', 'description', 'implementation'],
                        'properties': {
                            'type': {
                                'type': 'string',
                                'enum': [
                                    'add-task', 'add-gateway', 'optimize-flow',
                                    'add-role', 'change-gateway',
                                ],
                            },
                            'elementId': {'type': ['string', 'null']},
                            'description': {'type': 'string'},
                            'implementation': {'type': 'string'},
                        },
                    },
                },
            },
        },
    },
}


def build_prompt(
    elements: ExtractedElements,
    complexity: ComplexityResult,
    roles: RoleDistribution,
) -> str:
    """Deterministic analysis prompt for the given diagram."""
    ids = elements.all_ids
    first_id = ids[0] if ids else 'null'
    second_id = ids[1] if len(ids) > 1 else 'null'
    lane_id = elements.lanes[0].id if elements.lanes else 'null'
    gateway_id = elements.exclusive_gateways[0].id if elements.exclusive_gateways else 'null'
    task_names = ', '.join(t.name for t in elements.user_tasks)

    return f"""Analyze this BPMN process and provide insights in the exact format specified:

BPMN Elements:
- User Tasks: {len(elements.user_tasks)} ({task_names})
- Service Tasks: {len(elements.service_tasks)}
- Gateways: {len(elements.gateways)}
- Events: {len(elements.events)}
- Complexity Score: {complexity.score}/10 ({complexity.risk} risk)
- Roles/Lanes: {roles.total_roles}

Element IDs Available: {', '.join(ids)}

Provide EXACTLY 5 editing suggestions in this format:

EDITING SUGGESTIONS:
TYPE: add-task
ELEMENT_ID: {first_id}
DESCRIPTION: Add quality check task
IMPLEMENTATION: Insert a quality validation task after data processing

TYPE: add-gateway
ELEMENT_ID: {second_id}
DESCRIPTION: Add decision gateway for routing
IMPLEMENTATION: Add exclusive gateway for conditional processing

TYPE: optimize-flow
ELEMENT_ID: {first_id}
DESCRIPTION: Streamline sequence flows
IMPLEMENTATION: Optimize path connections between tasks

TYPE: add-role
ELEMENT_ID: {lane_id}
DESCRIPTION: Add supervisor role
IMPLEMENTATION: Create supervisor lane for oversight

TYPE: change-gateway
ELEMENT_ID: {gateway_id}
DESCRIPTION: Convert to parallel gateway
IMPLEMENTATION: Change to parallel for concurrent processing

Use only the element IDs listed above, or null.
Also provide insights, recommendations, risks and an implementation readiness score from 1 to 10."""


def generate_fallback_insights(
    elements: ExtractedElements,
    complexity: ComplexityResult,
    roles: RoleDistribution,
    rng: random.Random | None = None,
) -> InsightBundle:
    """Count-based insights used when no model reply is available."""
    rng = rng or random.Random()
    return InsightBundle(
        insights=[
            f'Process contains {len(elements.user_tasks)} user tasks requiring manual intervention',
            f'{complexity.score}/10 complexity score indicates '
            f'{complexity.risk.lower()} optimization potential',
            f'{roles.total_roles} roles identified with {roles.role_balance.lower()} distribution',
        ],
        recommendations=[
            'Consider adding validation steps for data quality',
            'Implement parallel processing where possible',
            'Add decision gateways for conditional logic',
        ],
        risks=[
            'Manual process steps may cause delays',
            'Limited role separation may impact compliance',
        ],
        implementation_readiness=rng.randint(7, 10),
        editing_suggestions=synthesize_suggestions(elements),
        source='fallback',
    )


def _from_structured(reply: InsightReply, elements: ExtractedElements) -> InsightBundle:
    suggestions = [
        EditingSuggestion(
            id=f'suggestion_{index}',
            type=item.type.strip().lower(),
            element_id=item.element_id or None,
            description=item.description,
            details={'implementation': item.implementation} if item.implementation else {},
        )
        for index, item in enumerate(reply.editing_suggestions, 1)
    ]
    return InsightBundle(
        insights=reply.insights[:MAX_INSIGHTS],
        recommendations=reply.recommendations[:MAX_RECOMMENDATIONS],
        risks=reply.risks[:MAX_RISKS] or list(DEFAULT_RISKS),
        implementation_readiness=reply.implementation_readiness,
        editing_suggestions=normalize_suggestions(suggestions, elements),
        source='ai-structured',
    )


async def request_insights(
    elements: ExtractedElements,
    complexity: ComplexityResult,
    roles: RoleDistribution,
    llm: LLMClient | None = None,
    rng: random.Random | None = None,
) -> InsightBundle:
    """Ask the model for insights; never raises for model failures."""
    rng = rng or random.Random()

    if llm is None or not llm.enabled:
        logger.warning('Model API key not configured, using fallback insights')
        return generate_fallback_insights(elements, complexity, roles, rng)

    messages = [
        {'role': 'system', 'content': SYSTEM_PROMPT},
        {'role': 'user', 'content': build_prompt(elements, complexity, roles)},
    ]
    structured = llm.structured_output

    try:
        completion = await llm.chat(
            messages,
            response_format=RESPONSE_FORMAT if structured else None,
        )
    except LLMError as exc:
        logger.error('AI analysis error, using fallback insights: %s', exc)
        return generate_fallback_insights(elements, complexity, roles, rng)

    bundle: InsightBundle | None = None
    if structured:
        try:
            reply = InsightReply.model_validate_json(completion.content)
            bundle = _from_structured(reply, elements)
        except ValidationError as exc:
            logger.warning(
                'Structured model reply failed validation (%d errors), parsing as text',
                exc.error_count(),
            )

    if bundle is None:
        bundle = parse_ai_response(completion.content, elements, rng)

    bundle.usage = dict(completion.usage)
    logger.info(
        'Insights from %s: %d suggestions',
        bundle.source, len(bundle.editing_suggestions),
    )
    return bundle
