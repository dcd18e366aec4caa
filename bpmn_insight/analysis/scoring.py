"""Complexity score, risk bucketing and role distribution."""

from __future__ import annotations

import math

from .models import ComplexityResult, ExtractedElements, RoleDistribution

TASK_WEIGHT = 1.0
GATEWAY_WEIGHT = 2.0
EVENT_WEIGHT = 0.5
LANE_WEIGHT = 0.5
POOL_WEIGHT = 0.5
FLOW_WEIGHT = 0.25

MAX_SCORE = 10.0
LOW_CUTOFF = 4.0
HIGH_CUTOFF = 7.0

MAX_BALANCED_ROLES = 5


def risk_level(score: float) -> str:
    """Bucket a score: below 4 is Low, 7 and above is High."""
    if score >= HIGH_CUTOFF:
        return 'High'
    if score >= LOW_CUTOFF:
        return 'Medium'
    return 'Low'


def complexity_score(
    tasks: int = 0,
    gateways: int = 0,
    events: int = 0,
    lanes: int = 0,
    pools: int = 0,
    flows: int = 0,
) -> float:
    weighted = (
        tasks * TASK_WEIGHT
        + gateways * GATEWAY_WEIGHT
        + events * EVENT_WEIGHT
        + lanes * LANE_WEIGHT
        + pools * POOL_WEIGHT
        + flows * FLOW_WEIGHT
    )
    return round(min(weighted / 2, MAX_SCORE), 1)


def calculate_complexity(elements: ExtractedElements) -> ComplexityResult:
    score = complexity_score(
        tasks=len(elements.tasks),
        gateways=len(elements.gateways),
        events=len(elements.events),
        lanes=len(elements.lanes),
        pools=len(elements.pools),
        flows=len(elements.sequence_flows),
    )
    total = sum(elements.counts().values())
    return ComplexityResult(
        score=score,
        risk=risk_level(score),
        total_elements=total,
        gateway_complexity=len(elements.exclusive_gateways) + len(elements.parallel_gateways),
        user_tasks=len(elements.user_tasks),
        service_tasks=len(elements.service_tasks),
    )


def analyze_roles(elements: ExtractedElements) -> RoleDistribution:
    """Roles are lane then pool names, deduplicated in first-seen order."""
    roles: list[dict[str, str]] = []
    seen: set[str] = set()
    for element in elements.lanes + elements.pools:
        key = element.name.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        roles.append({'id': element.id, 'name': element.name})

    total = len(roles)
    return RoleDistribution(
        roles=roles,
        tasks_per_role=math.floor(len(elements.user_tasks) / total + 0.5) if total else 0,
        role_balance='Balanced' if 0 < total <= MAX_BALANCED_ROLES else 'Needs Review',
    )
