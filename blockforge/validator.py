"""
Compliance validation for generated block bundles.

Every check is a pure predicate over the bundle that returns violation
messages; checks never raise and never mutate the bundle. Checks run in a
fixed order so the violation list is reproducible:

1. block.json conventions (namespace, title, category, keywords,
   isExample attribute, centralized asset references)
2. config.php configuration class and required methods
3. registering.php config include, PHP -> JS sync, cache-busting
4. editor.js IIFE wrapper and client-global config
5. centralized.js has no block registration and reads client-global config
6. render.php config include and Config class usage
7. centralized.css class prefix
"""

import logging
import re
from typing import Any, Callable, List, Optional, Tuple

from jsonschema import Draft7Validator

from blockforge.models import ComplianceReport, ParsedBundle
from blockforge.settings import ConventionSettings

logger = logging.getLogger(__name__)

Check = Callable[[ParsedBundle], List[str]]

_IIFE_RE = re.compile(r"^\(\s*function\s*\(")


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def has_config_include(source: Any, conventions: ConventionSettings) -> bool:
    """True if source contains require_once __DIR__ . '/config.php' (either quote style)."""
    pattern = (
        r"require_once\s+__DIR__\s*\.\s*(['\"])/"
        + re.escape(conventions.config_filename)
        + r"\1"
    )
    return re.search(pattern, _text(source)) is not None


def _required_property(name: str, schema: dict) -> dict:
    return {
        "type": "object",
        "required": [name],
        "properties": {name: schema},
    }


class ComplianceValidator:
    """
    Runs the ordered battery of convention checks over a bundle.

    Example:
        validator = ComplianceValidator()
        violations = validator.validate(bundle)
        if violations:
            for v in violations:
                print(f"  - {v}")
    """

    def __init__(self, conventions: Optional[ConventionSettings] = None):
        self.conventions = conventions or ConventionSettings()
        self._metadata_rules = self._build_metadata_rules()
        self._extra_checks: List[Check] = []

    def _build_metadata_rules(self) -> List[Tuple[str, Draft7Validator]]:
        c = self.conventions
        rules = [
            (
                f'Block name must use {c.namespace_prefix} namespace (e.g., "{c.namespace_prefix}my-block")',
                _required_property("name", {"type": "string", "pattern": "^" + re.escape(c.namespace_prefix)}),
            ),
            (
                f'Block title must start with "{c.title_prefix}" prefix',
                _required_property("title", {"type": "string", "pattern": "^" + re.escape(c.title_prefix)}),
            ),
            (
                f'Block category must be "{c.category}"',
                _required_property("category", {"const": c.category}),
            ),
            (
                f'Block keywords must include "{c.sentinel_keyword}"',
                _required_property("keywords", {"type": "array", "contains": {"const": c.sentinel_keyword}}),
            ),
            (
                f"Block must include {c.example_attribute} attribute for preview support",
                _required_property("attributes", {"type": "object", "required": [c.example_attribute]}),
            ),
            (
                "Block must reference centralized CSS in editorStyle",
                _required_property("editorStyle", {
                    "type": "array",
                    "contains": {"type": "string", "pattern": re.escape(c.centralized_css_marker)},
                }),
            ),
            (
                "Block must reference centralized JS in viewScript",
                _required_property("viewScript", {
                    "type": "array",
                    "contains": {"type": "string", "pattern": re.escape(c.centralized_js_marker)},
                }),
            ),
        ]
        return [(message, Draft7Validator(schema)) for message, schema in rules]

    def register_check(self, check: Check) -> None:
        """Add a check that runs after the built-in ones."""
        self._extra_checks.append(check)

    @property
    def checks(self) -> List[Check]:
        return [
            self.check_metadata,
            self.check_config_class,
            self.check_registration,
            self.check_editor_script,
            self.check_universal_script,
            self.check_render,
            self.check_style,
        ] + list(self._extra_checks)

    def validate(self, bundle: ParsedBundle) -> List[str]:
        """
        Evaluate every check without short-circuiting.

        Args:
            bundle: Bundle to check (not modified)

        Returns:
            Violation messages in check order (empty if compliant)
        """
        violations: List[str] = []
        for check in self.checks:
            violations.extend(check(bundle))
        return violations

    def report(self, bundle: ParsedBundle, label: str) -> ComplianceReport:
        """Validate and log the outcome as a compliance report."""
        report = ComplianceReport(label=label, violations=self.validate(bundle))
        if report.passed:
            logger.info(report.as_text())
        else:
            logger.warning(report.as_text())
        return report

    # block.json

    def check_metadata(self, bundle: ParsedBundle) -> List[str]:
        return [
            message
            for message, schema in self._metadata_rules
            if not schema.is_valid(bundle.metadata)
        ]

    # config.php

    def check_config_class(self, bundle: ParsedBundle) -> List[str]:
        c = self.conventions
        source = _text(bundle.config_source)
        violations = []

        slug = c.block_slug(bundle.block_name)
        if slug:
            class_name = c.config_class_name(slug)
            if not re.search(r"\bclass\s+" + re.escape(class_name) + r"\b", source):
                violations.append(f"config.php must implement {class_name} class")
        elif f"class {c.config_class_prefix}" not in source or c.config_class_suffix not in source:
            violations.append(
                f"config.php must implement {c.config_class_prefix}[Block_Name]{c.config_class_suffix} class"
            )

        for method in c.required_config_methods:
            if f"function {method}" not in source:
                violations.append(f"config.php missing required method: {method}()")

        return violations

    # registering.php

    def check_registration(self, bundle: ParsedBundle) -> List[str]:
        source = _text(bundle.registration_source)
        violations = []

        if not has_config_include(source, self.conventions):
            violations.append(f"registering.php must include {self.conventions.config_filename}")
        if "wp_localize_script" not in source:
            violations.append("registering.php must use wp_localize_script for config sharing")
        if "filemtime(" not in source:
            violations.append("registering.php must use filemtime() for cache-busting")

        return violations

    # editor.js

    def check_editor_script(self, bundle: ParsedBundle) -> List[str]:
        c = self.conventions
        source = _text(bundle.editor_script_source)
        violations = []

        if not _IIFE_RE.match(source.lstrip()):
            violations.append("editor.js must be wrapped in IIFE")
        if c.client_global not in source and c.editor_config_assignment not in source:
            violations.append(f"editor.js must import configuration from {c.client_global}[BlockName]Config")

        return violations

    # centralized.js

    def check_universal_script(self, bundle: ParsedBundle) -> List[str]:
        c = self.conventions
        source = _text(bundle.universal_script_source)
        violations = []

        if "registerBlockType" in source:
            violations.append("centralized.js must NOT contain registerBlockType (should be in editor.js only)")
        if c.client_global not in source:
            violations.append(f"centralized.js must import configuration from {c.client_global}[BlockName]Config")

        return violations

    # render.php

    def check_render(self, bundle: ParsedBundle) -> List[str]:
        c = self.conventions
        source = _text(bundle.render_source)
        violations = []

        if not has_config_include(source, c):
            violations.append(f"render.php must include {c.config_filename}")
        if f"{c.config_class_suffix}::" not in source:
            violations.append("render.php must use Config class methods")

        return violations

    # centralized.css

    def check_style(self, bundle: ParsedBundle) -> List[str]:
        prefix = self.conventions.css_class_prefix
        if prefix in _text(bundle.style_source):
            return []
        return [f"centralized.css must use {prefix} class prefixes"]
