"""Transient records produced by the analysis pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

SUGGESTION_TYPES = (
    'add-task',
    'add-gateway',
    'optimize-flow',
    'add-role',
    'change-gateway',
)

SEVERITIES = ('Info', 'Warning', 'Error')


@dataclass(frozen=True)
class Element:
    """One extracted BPMN element."""

    id: str
    name: str
    type: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class ExtractedElements:
    """Per-kind element lists, each in document order."""

    user_tasks: list[Element] = field(default_factory=list)
    service_tasks: list[Element] = field(default_factory=list)
    exclusive_gateways: list[Element] = field(default_factory=list)
    parallel_gateways: list[Element] = field(default_factory=list)
    inclusive_gateways: list[Element] = field(default_factory=list)
    start_events: list[Element] = field(default_factory=list)
    end_events: list[Element] = field(default_factory=list)
    sequence_flows: list[Element] = field(default_factory=list)
    lanes: list[Element] = field(default_factory=list)
    pools: list[Element] = field(default_factory=list)

    @property
    def tasks(self) -> list[Element]:
        return self.user_tasks + self.service_tasks

    @property
    def gateways(self) -> list[Element]:
        return self.exclusive_gateways + self.parallel_gateways + self.inclusive_gateways

    @property
    def events(self) -> list[Element]:
        return self.start_events + self.end_events

    @property
    def all_ids(self) -> list[str]:
        """Ids usable as suggestion targets: tasks, gateways, events."""
        return [e.id for e in self.tasks + self.gateways + self.events if e.id.strip()]

    @property
    def known_ids(self) -> set[str]:
        """Every extracted id, including lanes and pools."""
        everything = self.tasks + self.gateways + self.events + self.lanes + self.pools
        return {e.id for e in everything}

    def counts(self) -> dict[str, int]:
        return {
            'userTasks': len(self.user_tasks),
            'serviceTasks': len(self.service_tasks),
            'gateways': len(self.gateways),
            'events': len(self.events),
            'sequenceFlows': len(self.sequence_flows),
            'lanes': len(self.lanes),
            'pools': len(self.pools),
        }


@dataclass(frozen=True)
class ComplexityResult:
    score: float
    risk: str
    total_elements: int = 0
    gateway_complexity: int = 0
    user_tasks: int = 0
    service_tasks: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            'score': self.score,
            'risk': self.risk,
            'totalElements': self.total_elements,
            'gatewayComplexity': self.gateway_complexity,
            'taskDistribution': {
                'userTasks': self.user_tasks,
                'serviceTasks': self.service_tasks,
            },
        }


@dataclass
class RoleDistribution:
    roles: list[dict[str, str]] = field(default_factory=list)
    tasks_per_role: int = 0
    role_balance: str = 'Needs Review'

    @property
    def total_roles(self) -> int:
        return len(self.roles)

    def to_dict(self) -> dict[str, Any]:
        return {
            'totalRoles': self.total_roles,
            'roles': list(self.roles),
            'tasksPerRole': self.tasks_per_role,
            'roleBalance': self.role_balance,
        }


@dataclass
class EditingSuggestion:
    """Machine-generated recommendation to modify one diagram element."""

    id: str
    type: str
    element_id: str | None
    description: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'type': self.type,
            'elementId': self.element_id,
            'description': self.description,
            'details': dict(self.details),
        }


@dataclass
class InsightBundle:
    insights: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    risks: list[str] = field(default_factory=list)
    implementation_readiness: int = 7
    editing_suggestions: list[EditingSuggestion] = field(default_factory=list)
    source: str = 'fallback'
    usage: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            'insights': list(self.insights),
            'recommendations': list(self.recommendations),
            'implementationReadiness': self.implementation_readiness,
            'risks': list(self.risks),
            'editingSuggestions': [s.to_dict() for s in self.editing_suggestions],
            'source': self.source,
        }


@dataclass
class Finding:
    id: str
    rule_id: str
    rule_name: str
    severity: str
    message: str
    description: str
    element_id: str | None = None
    element_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'ruleId': self.rule_id,
            'ruleName': self.rule_name,
            'severity': self.severity,
            'message': self.message,
            'elementId': self.element_id,
            'elementName': self.element_name,
            'description': self.description,
        }
