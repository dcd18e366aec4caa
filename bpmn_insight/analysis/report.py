"""Markdown rendering of an analysis result."""

from __future__ import annotations

from typing import Any

MAX_REPORT_FINDINGS = 80

_SEVERITY_ICON = {'Error': '!!!', 'Warning': '!', 'Info': '-'}


def _cell(value: Any) -> str:
    return str(value if value is not None else '').replace('|', '\\|').replace('\n', ' ')


def render_markdown_report(result: dict[str, Any], file_name: str = '') -> str:
    summary = result.get('summary', {})
    intelligence = result.get('processIntelligence', {})
    findings = result.get('findings', [])
    roles = result.get('roles', {})

    title = file_name or result.get('fileInfo', {}).get('filePath', '')
    lines = [
        f'## BPMN Analysis Report{f": {title}" if title else ""}',
        '',
        f"**Complexity:** {summary.get('complexityScore', 0)}/10 ({summary.get('riskLevel', 'Unknown')})",
        f"**User tasks:** {summary.get('userTasks', 0)}",
        f"**Service tasks:** {summary.get('serviceTasks', 0)}",
        f"**Gateways:** {summary.get('gateways', 0)}",
        f"**Events:** {summary.get('events', 0)}",
        f"**Roles:** {roles.get('totalRoles', 0)} ({roles.get('roleBalance', '')})",
        f"**Implementation readiness:** {intelligence.get('implementationReadiness', '')}/10",
        '',
    ]

    for heading, key in (
        ('Insights', 'insights'),
        ('Recommendations', 'recommendations'),
        ('Risks', 'risks'),
    ):
        items = intelligence.get(key) or []
        if not items:
            continue
        lines.append(f'### {heading}')
        lines.extend(f'- {item}' for item in items)
        lines.append('')

    suggestions = intelligence.get('editingSuggestions') or []
    if suggestions:
        lines.append('### Editing Suggestions')
        for index, suggestion in enumerate(suggestions, 1):
            target = suggestion.get('elementId') or 'process'
            lines.append(
                f"{index}. `{suggestion.get('type', '')}` on `{target}`: "
                f"{suggestion.get('description', '')}"
            )
        lines.append('')

    lines.append(f'### Findings ({len(findings)})')
    if findings:
        lines.append('| # | Severity | Rule | Message | Element |')
        lines.append('|---|---|---|---|---|')
        for index, finding in enumerate(findings[:MAX_REPORT_FINDINGS], 1):
            severity = finding.get('severity', 'Info')
            lines.append(
                f"| {index} | {_SEVERITY_ICON.get(severity, '-')} {severity} "
                f"| {_cell(finding.get('ruleName'))} | {_cell(finding.get('message'))} "
                f"| {_cell(finding.get('elementName') or finding.get('elementId'))} |"
            )
        if len(findings) > MAX_REPORT_FINDINGS:
            lines.append(f'| ... | ... | +{len(findings) - MAX_REPORT_FINDINGS} more | ... | ... |')

    return '\n'.join(lines)
