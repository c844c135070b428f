"""
Data models for the block compliance pipeline.
"""

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from enum import Enum


BUNDLE_FIELDS = (
    "metadata",
    "config_source",
    "registration_source",
    "render_source",
    "editor_script_source",
    "universal_script_source",
    "style_source",
)


class PipelineState(Enum):
    """States visited by the compliance pipeline, in order."""
    EXTRACTED = "extracted"
    PARSED = "parsed"
    VALIDATED = "validated"
    FIXED = "fixed"
    REVALIDATED = "revalidated"
    DONE = "done"


@dataclass
class ParsedBundle:
    """
    Structured representation of one generated block.

    Attributes:
        metadata: Parsed block.json document
        config_source: config.php (centralized configuration class)
        registration_source: registering.php (asset registration, PHP -> JS sync)
        render_source: render.php (server render callback)
        editor_script_source: editor.js (block editor interface)
        universal_script_source: centralized.js (front-end and editor script)
        style_source: centralized.css (stylesheet)
        extra_sections: Sections of additionally registered kinds, by name
    """
    metadata: Any
    config_source: str
    registration_source: str
    render_source: str
    editor_script_source: str
    universal_script_source: str
    style_source: str
    extra_sections: Dict[str, str] = field(default_factory=dict)

    @property
    def block_name(self) -> str:
        """Namespaced identifier from block.json, or '' if absent."""
        if isinstance(self.metadata, dict):
            name = self.metadata.get("name")
            if isinstance(name, str):
                return name
        return ""

    @property
    def output_dir_name(self) -> str:
        """Directory name for the written bundle ('cm/demo' -> 'cm-demo')."""
        return self.block_name.replace("/", "-", 1)

    def copy(self) -> "ParsedBundle":
        """Deep copy, so fixes never touch the caller's bundle."""
        return copy.deepcopy(self)

    def to_files(self, filenames: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """
        Serialize the bundle, one field to one file.

        Args:
            filenames: Attribute -> filename mapping (defaults to the section registry)

        Returns:
            Dict mapping filename to file content, block.json as indented JSON
        """
        if filenames is None:
            from blockforge.sections import DEFAULT_REGISTRY
            filenames = DEFAULT_REGISTRY.filenames()

        files = {}
        for attribute, filename in filenames.items():
            if attribute == "metadata":
                files[filename] = json.dumps(self.metadata, indent=2)
            elif attribute in BUNDLE_FIELDS:
                files[filename] = getattr(self, attribute)
            elif attribute in self.extra_sections:
                files[filename] = self.extra_sections[attribute]
        return files


@dataclass
class ComplianceReport:
    """
    Outcome of one validation pass.

    Attributes:
        label: Which pass produced it (e.g. "before auto-fix")
        violations: Violation messages in check order
    """
    label: str
    violations: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.violations

    def as_text(self) -> str:
        """Plain-text report for the log stream."""
        if self.passed:
            return f"SSOT compliance ({self.label}): all validations passed"
        lines = [f"SSOT compliance ({self.label}): {len(self.violations)} issue(s) found"]
        for violation in self.violations:
            lines.append(f"  - {violation}")
        return "\n".join(lines)


@dataclass
class PipelineResult:
    """
    Final result of a pipeline run.

    Attributes:
        bundle: The fixed bundle handed to the file writer
        initial_report: Validation before auto-fix
        final_report: Validation after auto-fix
        applied_fixes: Names of fix steps that changed the bundle
        states: Pipeline states visited, in order
    """
    bundle: ParsedBundle
    initial_report: ComplianceReport
    final_report: ComplianceReport
    applied_fixes: List[str] = field(default_factory=list)
    states: List[PipelineState] = field(default_factory=list)

    @property
    def warnings(self) -> List[str]:
        """Violations that survived auto-fixing."""
        return list(self.final_report.violations)

    @property
    def compliant(self) -> bool:
        return self.final_report.passed
