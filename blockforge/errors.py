"""
Error types for the block compliance pipeline.

Provides:
- Error classification (structural, compliance, configuration)
- Structured error messages with troubleshooting guidance
- The concrete exceptions raised by extraction, parsing and strict mode

Usage:
    from blockforge.errors import BlockForgeError, SectionNotFoundError

    try:
        bundle = parse_ai_response(raw_text)
    except BlockForgeError as e:
        print(e.format())
"""
from typing import Dict, Any, Optional, List
from dataclasses import dataclass
from enum import Enum


class ErrorType(Enum):
    """Classification of pipeline errors."""
    STRUCTURAL = "structural"         # Missing section, unparseable metadata - fatal
    COMPLIANCE = "compliance"         # Convention violations (strict mode only)
    CONFIGURATION = "configuration"   # Settings file missing or invalid
    UNKNOWN = "unknown"


@dataclass
class ErrorGuidance:
    """Structured error guidance."""
    error_type: ErrorType
    what_happened: str
    troubleshooting: List[str]
    recovery: str
    can_retry: bool = False


class TroubleshootingGuide:
    """Provides troubleshooting guidance based on error type."""

    GUIDES = {
        ErrorType.STRUCTURAL: {
            "what_happened": "The model response could not be split into a complete block bundle.",
            "troubleshooting": [
                "Check that every section starts with a '---' line followed by its name",
                "Required sections: BLOCK_JSON, CONFIG_PHP, REGISTERING_PHP, "
                "PHP_RENDER_CALLBACK, EDITOR_JS, CENTRALIZED_JS, CENTRALIZED_CSS",
                "Check that the BLOCK_JSON section is valid JSON (no comments, no trailing commas)",
            ],
            "recovery": "Regenerate the block; a missing file cannot be synthesized",
            "can_retry": True,
        },
        ErrorType.COMPLIANCE: {
            "what_happened": "The bundle still violates block conventions after auto-fixing.",
            "troubleshooting": [
                "Review the violation list below",
                "Run without --strict to accept the bundle with warnings",
            ],
            "recovery": "Fix the listed files by hand or regenerate the block",
            "can_retry": True,
        },
        ErrorType.CONFIGURATION: {
            "what_happened": "Configuration is missing or invalid.",
            "troubleshooting": [
                "Verify the settings file path passed with --config exists",
                "Check the file is a YAML mapping",
                "Compare field names with ConventionSettings / PipelineSettings",
            ],
            "recovery": "Fix configuration, then retry",
            "can_retry": False,
        },
        ErrorType.UNKNOWN: {
            "what_happened": "An unexpected error occurred.",
            "troubleshooting": [
                "Review the full error message for details",
                "Re-run with --verbose for debug logging",
            ],
            "recovery": "Investigate error, then retry",
            "can_retry": False,
        },
    }

    @classmethod
    def get_guidance(cls, error_type: ErrorType) -> ErrorGuidance:
        """
        Get troubleshooting guidance for an error type.

        Args:
            error_type: The classified error type

        Returns:
            ErrorGuidance with troubleshooting steps
        """
        guide = cls.GUIDES.get(error_type, cls.GUIDES[ErrorType.UNKNOWN])

        return ErrorGuidance(
            error_type=error_type,
            what_happened=guide["what_happened"],
            troubleshooting=guide["troubleshooting"],
            recovery=guide["recovery"],
            can_retry=guide["can_retry"],
        )


def format_error_with_guidance(
    error: Exception,
    error_type: ErrorType = ErrorType.UNKNOWN,
    context: Optional[Dict[str, Any]] = None
) -> str:
    """
    Format an error with troubleshooting guidance.

    Args:
        error: The exception that occurred
        error_type: Classification used to pick the guidance
        context: Optional context dict with additional info

    Returns:
        Formatted error message with guidance
    """
    guidance = TroubleshootingGuide.get_guidance(error_type)
    context = context or {}

    lines = [
        f"{'=' * 70}",
        "WHAT HAPPENED:",
        f"{'=' * 70}",
        "",
        guidance.what_happened,
        "",
        f"Error: {str(error)}",
    ]

    for key, value in context.items():
        if isinstance(value, (list, tuple)):
            continue
        lines.append(f"{key}: {value}")

    lines.extend([
        "",
        f"{'=' * 70}",
        "TROUBLESHOOTING:",
        f"{'=' * 70}",
        "",
    ])

    for i, step in enumerate(guidance.troubleshooting, 1):
        lines.append(f"{i}. {step}")

    lines.extend([
        "",
        f"{'=' * 70}",
        "RECOVERY:",
        f"{'=' * 70}",
        "",
        guidance.recovery,
    ])

    return "\n".join(lines)


class BlockForgeError(Exception):
    """
    Base pipeline exception with classification and guidance.

    Usage:
        raise BlockForgeError(
            message="Bundle rejected",
            error_type=ErrorType.COMPLIANCE,
            context={"block": "cm/demo"}
        )
    """

    def __init__(
        self,
        message: str,
        error_type: ErrorType = ErrorType.UNKNOWN,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.error_type = error_type
        self.context = context or {}
        self.original_error = original_error

    def get_guidance(self) -> ErrorGuidance:
        """Get troubleshooting guidance for this error."""
        return TroubleshootingGuide.get_guidance(self.error_type)

    def format(self) -> str:
        """Format this error with full guidance."""
        return format_error_with_guidance(self, self.error_type, self.context)


class SectionNotFoundError(BlockForgeError):
    """A required section marker is absent from the model response."""

    def __init__(self, section: str):
        super().__init__(
            f"{section} not found",
            error_type=ErrorType.STRUCTURAL,
            context={"section": section},
        )
        self.section = section


class MetadataParseError(BlockForgeError):
    """The BLOCK_JSON section is not valid JSON."""

    def __init__(self, original_error: Exception, section: str = "BLOCK_JSON"):
        super().__init__(
            f"Failed to parse {section}: {original_error}",
            error_type=ErrorType.STRUCTURAL,
            context={"section": section},
            original_error=original_error,
        )
        self.section = section


class ComplianceError(BlockForgeError):
    """Raised in strict mode when violations survive auto-fixing."""

    def __init__(self, violations: List[str], bundle: Any = None):
        summary = "; ".join(violations)
        super().__init__(
            f"{len(violations)} compliance violation(s) after auto-fix: {summary}",
            error_type=ErrorType.COMPLIANCE,
            context={"violations": list(violations)},
        )
        self.violations = list(violations)
        self.bundle = bundle


class ConfigurationError(BlockForgeError):
    """Settings could not be loaded or validated."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(
            message,
            error_type=ErrorType.CONFIGURATION,
            original_error=original_error,
        )
