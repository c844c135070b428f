"""
Bundle parser: raw sections -> ParsedBundle.

Only structural work happens here. Compliance checking and auto-fixing are
run by CompliancePipeline (see parse_ai_response in blockforge.pipeline).
"""

import json
import logging
from typing import Any, Dict

from blockforge.errors import MetadataParseError, SectionNotFoundError
from blockforge.models import BUNDLE_FIELDS, ParsedBundle
from blockforge.sections import DEFAULT_REGISTRY, SectionRegistry, split_sections

logger = logging.getLogger(__name__)


def parse_metadata(text: str, section: str = "BLOCK_JSON") -> Any:
    """
    Parse the block.json section.

    Raises:
        MetadataParseError: If the text is not valid JSON
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise MetadataParseError(e, section=section) from e


def extract_sections(raw_text: str, registry: SectionRegistry = DEFAULT_REGISTRY) -> Dict[str, str]:
    """
    Extract every registered section, checking required ones are present.

    Returns:
        Dict of section name -> body for the registered kinds found

    Raises:
        SectionNotFoundError: For the first required section (registry order) that is missing
    """
    found = split_sections(raw_text.strip())
    sections = {}
    for kind in registry:
        if kind.name in found:
            sections[kind.name] = found[kind.name]
        elif kind.required:
            raise SectionNotFoundError(kind.name)
        else:
            logger.debug("Optional section %s not present", kind.name)
    return sections


def build_bundle(sections: Dict[str, str], registry: SectionRegistry = DEFAULT_REGISTRY) -> ParsedBundle:
    """
    Assemble extracted sections into a ParsedBundle.

    The metadata section is parsed as JSON; kinds whose attribute is not a
    bundle field are kept in extra_sections.
    """
    values: Dict[str, Any] = {}
    extra: Dict[str, str] = {}

    for kind in registry:
        if kind.name not in sections:
            continue
        body = sections[kind.name]
        if kind.attribute == "metadata":
            values["metadata"] = parse_metadata(body, section=kind.name)
        elif kind.attribute in BUNDLE_FIELDS:
            values[kind.attribute] = body
        else:
            extra[kind.attribute] = body

    missing = [name for name in BUNDLE_FIELDS if name not in values]
    if missing:
        raise ValueError(f"Registry does not provide bundle fields: {', '.join(missing)}")

    return ParsedBundle(extra_sections=extra, **values)


def parse_bundle_text(raw_text: str, registry: SectionRegistry = DEFAULT_REGISTRY) -> ParsedBundle:
    """Extract and parse a raw response without compliance post-processing."""
    return build_bundle(extract_sections(raw_text, registry), registry)
