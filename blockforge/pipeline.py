"""
Compliance Pipeline - raw model response to validated block bundle.

Runs a fixed sequence with no branching on validation outcome:
1. Extract sections from the delimited response
2. Parse them into a ParsedBundle
3. Validate (warn only)
4. Auto-fix
5. Re-validate (warn only, or raise in strict mode)
"""

import logging
from typing import Callable, List, Optional

from blockforge.errors import ComplianceError
from blockforge.fixer import ComplianceFixer
from blockforge.models import ComplianceReport, ParsedBundle, PipelineResult, PipelineState
from blockforge.parser import build_bundle, extract_sections
from blockforge.sections import DEFAULT_REGISTRY, SectionRegistry
from blockforge.settings import PipelineSettings
from blockforge.validator import ComplianceValidator

logger = logging.getLogger(__name__)


class CompliancePipeline:
    """
    Orchestrates extraction, parsing, validation and auto-fixing.

    Example:
        pipeline = CompliancePipeline(load_settings("blockforge.yaml"))
        result = pipeline.run(response_text)

        if result.warnings:
            print(f"Bundle written with {len(result.warnings)} warning(s)")
        files = result.bundle.to_files()
    """

    def __init__(
        self,
        settings: Optional[PipelineSettings] = None,
        registry: SectionRegistry = DEFAULT_REGISTRY,
        validator: Optional[ComplianceValidator] = None,
        fixer: Optional[ComplianceFixer] = None,
        on_state: Optional[Callable[[PipelineState], None]] = None,
        on_report: Optional[Callable[[ComplianceReport], None]] = None
    ):
        """
        Initialize the pipeline.

        Args:
            settings: Pipeline settings (defaults: CM conventions, warn-only)
            registry: Section kinds to extract
            validator: Validator to use (default: built from settings.conventions)
            fixer: Fixer to use (default: built from settings.conventions)
            on_state: Callback on every state transition
            on_report: Callback with each validation report
        """
        self.settings = settings or PipelineSettings()
        self.registry = registry
        self.validator = validator or ComplianceValidator(self.settings.conventions)
        self.fixer = fixer or ComplianceFixer(self.settings.conventions)

        self._on_state = on_state
        self._on_report = on_report

    def _enter(self, states: List[PipelineState], state: PipelineState) -> None:
        states.append(state)
        logger.debug("Pipeline state: %s", state.value)
        if self._on_state:
            self._on_state(state)

    def _validate(self, bundle: ParsedBundle, label: str) -> ComplianceReport:
        report = self.validator.report(bundle, label)
        if self._on_report:
            self._on_report(report)
        return report

    def run(self, raw_text: str) -> PipelineResult:
        """
        Execute the pipeline on one model response.

        Args:
            raw_text: Delimited response containing every required section

        Returns:
            PipelineResult with the fixed bundle and both reports

        Raises:
            SectionNotFoundError: A required section is missing
            MetadataParseError: BLOCK_JSON is not valid JSON
            ComplianceError: Strict mode only, violations survive auto-fix
        """
        states: List[PipelineState] = []

        sections = extract_sections(raw_text, self.registry)
        self._enter(states, PipelineState.EXTRACTED)

        bundle = build_bundle(sections, self.registry)
        self._enter(states, PipelineState.PARSED)

        initial_report = self._validate(bundle, "before auto-fix")
        self._enter(states, PipelineState.VALIDATED)

        logger.info("Auto-fixing SSOT compliance issues...")
        fixed, applied = self.fixer.apply(bundle)
        self._enter(states, PipelineState.FIXED)

        logger.info("Applied auto-fixes, re-validating...")
        final_report = self._validate(fixed, "after auto-fix")
        self._enter(states, PipelineState.REVALIDATED)

        if self.settings.strict and not final_report.passed:
            raise ComplianceError(final_report.violations, bundle=fixed)

        self._enter(states, PipelineState.DONE)

        return PipelineResult(
            bundle=fixed,
            initial_report=initial_report,
            final_report=final_report,
            applied_fixes=applied,
            states=states
        )


def parse_ai_response(raw_text: str, settings: Optional[PipelineSettings] = None) -> ParsedBundle:
    """Run the full pipeline and return only the final bundle."""
    return CompliancePipeline(settings).run(raw_text).bundle
