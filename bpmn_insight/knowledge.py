"""Knowledge-base pattern extraction from consultation conversations."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

# Allowed by the process_knowledge_base.knowledge_type check constraint.
KNOWLEDGE_TYPES = ('pattern', 'optimization', 'best_practice', 'risk_assessment')

SNIPPET_LENGTH = 200
MIN_CHAT_CONFIDENCE = 0.7

EXTRACTION_SYSTEM_PROMPT = (
    'You are an expert knowledge extraction system specializing in HRIS processes. '
    'Extract actionable insights and patterns from conversations that can be reused '
    'to help future consultations.'
)

EXTRACTION_PROMPT = """Analyze this HRIS process consultation conversation and extract valuable knowledge for future use. Focus on:

1. **Process Optimization Patterns**: Specific optimization strategies that worked well
2. **Risk Assessment Insights**: Compliance risks, operational risks, and mitigation strategies
3. **Best Practice Recommendations**: Industry-standard approaches that were recommended
4. **Implementation Lessons**: Practical insights about change management and implementation

Return a JSON object with this structure:
{{
  "patterns": [
    {{
      "type": "optimization|risk_assessment|best_practice|implementation",
      "title": "Brief descriptive title",
      "description": "Detailed description of the pattern/insight",
      "context": "When this applies (process type, scenario, etc.)",
      "confidence": 0.0-1.0,
      "applicability": "specific|general|HRIS_specific"
    }}
  ],
  "summary": "Brief summary of key insights from this conversation"
}}

CONVERSATION:
{conversation}"""

CHAT_SYSTEM_PROMPT = """You are an expert HRIS (Human Resources Information System) process analyst and consultant. You specialize in:

1. **HRIS Process Optimization**: Employee lifecycle, payroll, benefits, performance management, compliance
2. **BPMN Analysis**: Understanding process flows, identifying bottlenecks, optimization opportunities
3. **SAP Standards**: Knowledge of SAP HR best practices and standard workflows
4. **Change Management**: Implementation strategies, training requirements, stakeholder communication
5. **Compliance**: GDPR, labor laws, audit requirements, data security

Your role is to provide intelligent, actionable insights about HRIS processes based on BPMN analysis. Always consider:
- Business impact and ROI
- Technical implementation requirements
- User experience and adoption
- Risk assessment and compliance
- Process efficiency and automation opportunities

Provide specific, practical recommendations with clear next steps."""


def build_chat_system_prompt(file_name: str = '', knowledge: list[dict] | None = None) -> str:
    prompt = CHAT_SYSTEM_PROMPT
    if file_name:
        prompt += (
            '\n\nCurrent BPMN Context:\n'
            f'- File: {file_name}\n'
            '- This is an HRIS (Human Resources Information System) process analysis\n'
            '- Focus on HR best practices, compliance, and process optimization\n'
            '- Consider aspects like employee onboarding, performance management, '
            'payroll, benefits, etc.'
        )
    if knowledge:
        prompt += '\n\nRelevant Knowledge Base Insights:\n' + '\n'.join(
            f"- {row.get('knowledge_type', '')}: {json.dumps(row.get('extracted_insights'))}"
            for row in knowledge
        )
    return prompt


def estimate_tokens(text: str) -> int:
    """Rough token estimate: four characters per token."""
    return -(-len(text) // 4)


def keyword_patterns(message: str, context: Any = None) -> list[dict]:
    """Cheap keyword-triggered patterns harvested from one assistant reply."""
    snippet = message[:SNIPPET_LENGTH]
    patterns: list[dict] = []

    if 'optimization' in message or 'improve' in message:
        patterns.append({
            'knowledge_type': 'optimization',
            'extracted_insights': {
                'suggestion': snippet,
                'context': context,
                'patterns_identified': ['process_optimization'],
            },
            'confidence_score': 0.8,
        })

    if 'risk' in message or 'compliance' in message:
        patterns.append({
            'knowledge_type': 'risk_assessment',
            'extracted_insights': {
                'risk_factors': snippet,
                'mitigation_suggestions': 'See full conversation',
                'context': context,
            },
            'confidence_score': 0.75,
        })

    if 'best practice' in message or 'recommend' in message:
        patterns.append({
            'knowledge_type': 'best_practice',
            'extracted_insights': {
                'practice_description': snippet,
                'applicability': 'BPMN_specific' if context else 'general',
                'context': context,
            },
            'confidence_score': 0.85,
        })

    return patterns


def clamp_confidence(value: Any, default: float = 0.5) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        confidence = default
    return min(max(confidence, 0.0), 1.0)


def knowledge_type(raw: Any) -> str:
    """Map a model-provided type onto the stored vocabulary."""
    value = str(raw or '').strip().lower()
    return value if value in KNOWLEDGE_TYPES else 'pattern'


def parse_extraction(content: str) -> dict:
    """Decode the model's JSON reply, or wrap the raw text as one pattern."""
    text = (content or '').strip()
    if text.startswith('```'):
        text = text.strip('`')
        text = text.removeprefix('json').strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error('Failed to parse extracted knowledge: %s', exc)
        data = None

    if not isinstance(data, dict) or not isinstance(data.get('patterns'), list):
        return {
            'patterns': [{
                'type': 'best_practice',
                'title': 'General HRIS Consultation',
                'description': (content or '')[:500],
                'context': 'General HRIS process consultation',
                'confidence': 0.5,
                'applicability': 'general',
            }],
            'summary': 'Knowledge extracted from HRIS consultation',
        }

    data.setdefault('summary', '')
    data['patterns'] = [p for p in data['patterns'] if isinstance(p, dict)]
    return data
