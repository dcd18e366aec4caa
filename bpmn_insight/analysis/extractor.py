"""Extract BPMN 2.0 elements (tasks, gateways, events, lanes, pools) from XML."""

from __future__ import annotations

import logging
import re
from xml.etree.ElementTree import ParseError
from xml.sax.saxutils import unescape

import defusedxml.ElementTree as ET  # noqa: N817
from defusedxml import DefusedXmlException

from .models import Element, ExtractedElements

logger = logging.getLogger(__name__)

# local tag name → (ExtractedElements attribute, element type)
ELEMENT_KINDS = {
    'userTask': ('user_tasks', 'userTask'),
    'serviceTask': ('service_tasks', 'serviceTask'),
    'exclusiveGateway': ('exclusive_gateways', 'exclusiveGateway'),
    'parallelGateway': ('parallel_gateways', 'parallelGateway'),
    'inclusiveGateway': ('inclusive_gateways', 'inclusiveGateway'),
    'startEvent': ('start_events', 'startEvent'),
    'endEvent': ('end_events', 'endEvent'),
    'sequenceFlow': ('sequence_flows', 'sequenceFlow'),
    'lane': ('lanes', 'lane'),
    'participant': ('pools', 'pool'),
}

# Opening tag of a known kind, any (or no) prefix
_TAG_RE = re.compile(
    r'<(?:[\w.-]+:)?(' + '|'.join(ELEMENT_KINDS) + r')(?=[\s/>])([^>]*)>'
)
_ENTITIES = {'&quot;': '"', '&apos;': "'"}


def _local_name(tag: object) -> str:
    if not isinstance(tag, str):
        return ''
    return tag.rsplit('}', 1)[-1]


def _attribute(attrs: str, name: str) -> str:
    match = re.search(r'(?<![\w:.-])' + name + r'\s*=\s*(?:"([^"]*)"|\'([^\']*)\')', attrs)
    if not match:
        return ''
    value = match.group(1) if match.group(1) is not None else match.group(2)
    return unescape(value, _ENTITIES)


def _add(result: ExtractedElements, local: str, elem_id: str, name: str) -> None:
    elem_id = elem_id.strip()
    if not elem_id:
        return
    attr, element_type = ELEMENT_KINDS[local]
    name = name.strip() or elem_id
    getattr(result, attr).append(Element(id=elem_id, name=name, type=element_type))


def _scan_tags(bpmn_xml: str, result: ExtractedElements) -> None:
    """Tag-by-tag scan for documents the XML parser rejects.

    Each opening tag is read on its own, so one broken tag (an unescaped
    `&`, an undeclared prefix) only loses that tag.
    """
    for match in _TAG_RE.finditer(bpmn_xml):
        local, attrs = match.group(1), match.group(2)
        _add(result, local, _attribute(attrs, 'id'), _attribute(attrs, 'name'))


def extract_elements(bpmn_xml: str) -> ExtractedElements:
    """Parse BPMN XML into per-kind element lists.

    Namespace-agnostic: `<bpmn:userTask>`, `<bpmn2:userTask>` and a
    default-namespace `<userTask>` are all recognised. Tags without an
    `id` are skipped and a missing `name` falls back to the id. XML the
    parser rejects is scanned tag by tag instead of raising.
    """
    result = ExtractedElements()
    if not bpmn_xml or not bpmn_xml.strip():
        return result

    try:
        root = ET.fromstring(bpmn_xml.lstrip())
    except (ParseError, DefusedXmlException) as exc:
        logger.warning('BPMN XML could not be parsed, scanning tags instead: %s', exc)
        _scan_tags(bpmn_xml, result)
        logger.debug('Extracted elements: %s', result.counts())
        return result

    for node in root.iter():
        local = _local_name(node.tag)
        if local in ELEMENT_KINDS:
            _add(result, local, node.get('id') or '', node.get('name') or '')

    logger.debug('Extracted elements: %s', result.counts())
    return result
