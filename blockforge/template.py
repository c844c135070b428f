"""
Template integrity validation.

Checks that a reference block directory (e.g. cm-hello-world) is complete
and SSOT compliant before it is used as the foundation for new blocks.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from blockforge.block_files import read_block_files
from blockforge.ssot_audit import AuditResult, SSOTAuditor

logger = logging.getLogger(__name__)

REQUIRED_TEMPLATE_FILES = [
    "config.php",
    "block.json",
    "editor.js",
    "centralized.js",
    "render.php",
    "registering.php",
]


@dataclass
class TemplateValidation:
    """
    Result of validating a template directory.

    Attributes:
        template_path: Directory that was checked
        valid: Whether the template can be used
        files: Block files found
        audit: SSOT audit result (None if the audit did not run)
        error: Reason the template was rejected
    """
    template_path: Path
    valid: bool
    files: List[str] = field(default_factory=list)
    audit: Optional[AuditResult] = None
    error: str = ""

    def to_report(self) -> Dict[str, Any]:
        report = {
            "timestamp": datetime.now().isoformat(),
            "templatePath": str(self.template_path),
            "status": "VALID" if self.valid else "INVALID",
            "valid": self.valid,
            "files": list(self.files),
        }
        if self.error:
            report["error"] = self.error
        if self.audit is not None:
            report["ssotValidation"] = self.audit.to_report()
        return report


def check_required_files(files: Dict[str, str]) -> List[str]:
    """Return required template files missing from the mapping."""
    return [name for name in REQUIRED_TEMPLATE_FILES if name not in files]


def validate_template(
    template_path: Union[str, Path],
    auditor: Optional[SSOTAuditor] = None
) -> TemplateValidation:
    """
    Validate template integrity and SSOT compliance.

    Never raises; problems are reported in the returned TemplateValidation.

    Args:
        template_path: Template block directory
        auditor: SSOT auditor (default instance if omitted)

    Returns:
        TemplateValidation describing the outcome
    """
    template_path = Path(template_path)
    logger.info("Validating template integrity: %s", template_path)

    if not template_path.is_dir():
        error = f"Template directory not found: {template_path}"
        logger.error("Template validation failed: %s", error)
        return TemplateValidation(template_path=template_path, valid=False, error=error)

    files = read_block_files(template_path)

    missing = check_required_files(files)
    if missing:
        error = f"Template missing required files: {', '.join(missing)}"
        logger.error("Template validation failed: %s", error)
        return TemplateValidation(
            template_path=template_path, valid=False, files=list(files), error=error
        )

    audit = (auditor or SSOTAuditor()).audit(files)
    if not audit.valid:
        error = f"Template violates SSOT principles: {'; '.join(audit.violations)}"
        logger.error("Template validation failed: %s", error)
        return TemplateValidation(
            template_path=template_path, valid=False, files=list(files), audit=audit, error=error
        )

    logger.info("Template validation passed - %s is SSOT compliant", template_path.name)
    return TemplateValidation(template_path=template_path, valid=True, files=list(files), audit=audit)
