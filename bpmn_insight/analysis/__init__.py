"""BPMN analysis pipeline."""

from __future__ import annotations

from .extractor import extract_elements
from .pipeline import analyze_bpmn, fallback_result
from .report import render_markdown_report

__all__ = [
    'analyze_bpmn',
    'extract_elements',
    'fallback_result',
    'render_markdown_report',
]
