"""
blockforge - Compliance pipeline for AI-generated WordPress block bundles.

Usage:
    from blockforge import CompliancePipeline, load_settings

    pipeline = CompliancePipeline(load_settings())
    result = pipeline.run(model_response)

    for warning in result.warnings:
        print(f"  - {warning}")
    files = result.bundle.to_files()
"""

from blockforge.errors import (
    BlockForgeError,
    ComplianceError,
    ConfigurationError,
    ErrorType,
    MetadataParseError,
    SectionNotFoundError,
)
from blockforge.models import (
    ComplianceReport,
    ParsedBundle,
    PipelineResult,
    PipelineState,
)
from blockforge.sections import (
    DEFAULT_REGISTRY,
    SectionKind,
    SectionName,
    SectionRegistry,
    compose_bundle_text,
    extract_section,
    split_sections,
)
from blockforge.settings import ConventionSettings, PipelineSettings, load_settings
from blockforge.parser import parse_bundle_text
from blockforge.validator import ComplianceValidator
from blockforge.fixer import ComplianceFixer
from blockforge.pipeline import CompliancePipeline, parse_ai_response
from blockforge.block_files import load_bundle, write_bundle
from blockforge.ssot_audit import AuditResult, SSOTAuditor
from blockforge.template import TemplateValidation, validate_template

__all__ = [
    "BlockForgeError",
    "ComplianceError",
    "ConfigurationError",
    "ErrorType",
    "MetadataParseError",
    "SectionNotFoundError",
    "ComplianceReport",
    "ParsedBundle",
    "PipelineResult",
    "PipelineState",
    "DEFAULT_REGISTRY",
    "SectionKind",
    "SectionName",
    "SectionRegistry",
    "compose_bundle_text",
    "extract_section",
    "split_sections",
    "ConventionSettings",
    "PipelineSettings",
    "load_settings",
    "parse_bundle_text",
    "ComplianceValidator",
    "ComplianceFixer",
    "CompliancePipeline",
    "parse_ai_response",
    "load_bundle",
    "write_bundle",
    "AuditResult",
    "SSOTAuditor",
    "TemplateValidation",
    "validate_template",
]
