"""
SSOT (Single Source of Truth) audit for block files.

Advisory audit over a filename -> content mapping, independent of the
compliance pipeline. Looks for configuration drift: defaults declared
outside config.php, hard-coded fallbacks in scripts, literal asset handles
and stylesheets full of hard-coded values.

Design Pattern:
- Each check appends to violations (must fix) or warnings (should review)
- Checks never raise; unreadable input becomes a warning
"""

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping

logger = logging.getLogger(__name__)

SSOT_CONFIG_METHODS = [
    "get_defaults",
    "get_asset_handles",
    "get_file_paths",
    "sanitize_attributes",
    "get_javascript_constants",
]

HARDCODED_JS_PATTERNS = [
    re.compile(r"""\|\|\s*['"][^'"]+['"]"""),                  # || 'hardcoded value'
    re.compile(r"""\?\s*['"][^'"]+['"]"""),                    # ? 'hardcoded value'
    re.compile(r"""message:\s*['"][^'"]+['"](?!\s*,\s*)"""),   # message: 'hardcoded'
    re.compile(r"""default:\s*['"][^'"]+['"](?!\s*,\s*)"""),   # default: 'hardcoded'
]

HARDCODED_HANDLE_PATTERN = re.compile(
    r"""wp_(?:enqueue|register)_(?:script|style)\s*\(\s*['"][^'"]+['"]"""
)

HARDCODED_CSS_VALUE_PATTERN = re.compile(
    r":\s*(?:#[0-9a-fA-F]{3,6}|[\d.]+(?:px|em|rem|%)|[a-zA-Z]+)(?:\s*!important)?\s*;"
)

# Structural CSS values tolerated before suggesting custom properties
MAX_HARDCODED_CSS_VALUES = 10


@dataclass
class AuditResult:
    """
    Outcome of an SSOT audit.

    Attributes:
        violations: Issues that break SSOT
        warnings: Issues worth reviewing
    """
    violations: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.violations

    def to_report(self) -> Dict[str, Any]:
        """Detailed report dict (timestamped)."""
        return {
            "timestamp": datetime.now().isoformat(),
            "summary": {
                "violations": len(self.violations),
                "warnings": len(self.warnings),
                "status": "PASSED" if self.valid else "FAILED",
            },
            "details": {
                "violations": list(self.violations),
                "warnings": list(self.warnings),
            },
        }


class SSOTAuditor:
    """
    Audits block files for SSOT drift.

    Example:
        result = SSOTAuditor().audit(bundle.to_files())
        if not result.valid:
            for v in result.violations:
                print(f"  - {v}")
    """

    def __init__(self, example_attribute: str = "isExample"):
        self.example_attribute = example_attribute

    def audit(self, files: Mapping[str, str]) -> AuditResult:
        logger.info("Running SSOT compliance audit...")
        result = AuditResult()

        self.check_block_json_defaults(files, result)
        self.check_javascript_hardcoded_values(files, result)
        self.check_config_centralization(files, result)
        self.check_asset_handles(files, result)
        self.check_css_custom_properties(files, result)

        if result.valid:
            logger.info("SSOT audit passed - no violations found")
        else:
            for violation in result.violations:
                logger.warning("SSOT violation: %s", violation)
        for warning in result.warnings:
            logger.warning("SSOT warning: %s", warning)

        return result

    def check_block_json_defaults(self, files: Mapping[str, str], result: AuditResult) -> None:
        """Attribute defaults belong in config.php get_defaults(), not block.json."""
        content = files.get("block.json")
        if content is None:
            return

        try:
            block_json = json.loads(content)
        except json.JSONDecodeError as e:
            result.warnings.append(f"Could not parse block.json for SSOT validation: {e}")
            return

        attributes = block_json.get("attributes") if isinstance(block_json, dict) else None
        if not isinstance(attributes, dict):
            return

        for name, config in attributes.items():
            # The preview flag's default is part of the block.json contract
            if name == self.example_attribute:
                continue
            if isinstance(config, dict) and "default" in config:
                result.violations.append(
                    f'block.json contains default value for "{name}". '
                    f"All defaults must be in config.php get_defaults() method only."
                )

    def check_javascript_hardcoded_values(self, files: Mapping[str, str], result: AuditResult) -> None:
        for filename in ("editor.js", "centralized.js"):
            content = files.get(filename)
            if content is None:
                continue

            for pattern in HARDCODED_JS_PATTERNS:
                for match in pattern.findall(content):
                    if "CONFIG" not in match:
                        result.violations.append(
                            f'{filename} contains hardcoded value: "{match.strip()}". '
                            f"Use CONFIG.defaults instead."
                        )

            if "CONFIG" in content and "CONFIG.defaults" not in content:
                result.warnings.append(
                    f"{filename} references CONFIG but may not be using CONFIG.defaults properly"
                )

    def check_config_centralization(self, files: Mapping[str, str], result: AuditResult) -> None:
        content = files.get("config.php")
        if content is None:
            result.violations.append("config.php file is missing - required for SSOT compliance")
            return

        for method in SSOT_CONFIG_METHODS:
            if f"function {method}" not in content:
                result.violations.append(f"config.php missing required SSOT method: {method}()")

    def check_asset_handles(self, files: Mapping[str, str], result: AuditResult) -> None:
        """Asset handles must come from get_asset_handles(), not string literals."""
        content = files.get("registering.php")
        if content is None:
            return

        for match in HARDCODED_HANDLE_PATTERN.findall(content):
            if "$asset_handles" not in match and "$handles" not in match:
                result.violations.append(
                    f"registering.php contains hardcoded asset handle: {match.strip()}. "
                    f"Use get_asset_handles() from config.php instead."
                )

    def check_css_custom_properties(self, files: Mapping[str, str], result: AuditResult) -> None:
        content = files.get("centralized.css")
        if content is None:
            return

        matches = HARDCODED_CSS_VALUE_PATTERN.findall(content)
        if len(matches) > MAX_HARDCODED_CSS_VALUES:
            result.warnings.append(
                "centralized.css contains many hardcoded values. "
                "Consider using CSS custom properties for dynamic values."
            )
