"""
Settings for the block compliance pipeline.

Pydantic models with strict validation. All models are immutable
(frozen=True); every naming convention the validator and fixer rely on is a
field of ConventionSettings so it is declared exactly once.
"""

import re
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from blockforge.errors import ConfigurationError


DEFAULT_REQUIRED_CONFIG_METHODS = [
    "get_defaults",
    "get_asset_handles",
    "get_file_paths",
    "sanitize_attributes",
    "get_enhanced_wrapper_classes",
    "build_global_css_properties",
    "get_javascript_constants",
    "get_css_selectors",
]


def _capitalized_segments(slug: str) -> List[str]:
    return [s[:1].upper() + s[1:] for s in re.split(r"[^A-Za-z0-9]+", slug) if s]


class ConventionSettings(BaseModel):
    """
    Naming conventions a generated block must follow.

    Defaults describe the CM block framework.
    """
    model_config = ConfigDict(frozen=True, strict=True)

    namespace_prefix: str = Field("cm/", description="Prefix of block.json 'name'")
    title_prefix: str = Field("CM ", description="Prefix of block.json 'title'")
    category: str = Field("cm-blocks", description="Required block.json 'category'")
    sentinel_keyword: str = Field("cm", description="Keyword that must lead block.json 'keywords'")
    example_attribute: str = Field("isExample", description="Boolean attribute enabling previews")
    centralized_css_marker: str = Field("centralized-css", description="Marker in editorStyle handles")
    centralized_js_marker: str = Field("centralized-js", description="Marker in viewScript handles")
    config_class_prefix: str = Field("CM_", description="Prefix of the PHP configuration class")
    config_class_suffix: str = Field("_Config", description="Suffix of the PHP configuration class")
    required_config_methods: List[str] = Field(
        default_factory=lambda: list(DEFAULT_REQUIRED_CONFIG_METHODS),
        description="Methods config.php must define"
    )
    config_filename: str = Field("config.php", description="Configuration include target")
    client_global: str = Field("window.cm", description="Client-side configuration global prefix")
    editor_config_assignment: str = Field("CONFIG =", description="Accepted editor.js config binding")
    css_class_prefix: str = Field(".cm-", description="Required stylesheet class prefix")
    php_namespace_root: str = Field("CompuMatter\\Blocks\\", description="Render namespace root")
    legacy_blocks_dir: str = Field("/blocks/cm-", description="Legacy directory fragment in registering.php")
    canonical_blocks_dir: str = Field("/cm-blocks/cm-", description="Canonical directory fragment")
    legacy_asset_paths: Dict[str, List[str]] = Field(
        default_factory=lambda: {
            "editorScript": ["file:./index.js", "file:./editor.js"],
            "editorStyle": ["file:./index.css", "file:./centralized.css"],
        },
        description="block.json field -> [legacy value, canonical value]"
    )
    editor_style_extra: str = Field("file:./editor-styles.css", description="Second editorStyle entry")
    view_script_dependency: str = Field("jquery", description="First viewScript entry")

    @field_validator("namespace_prefix")
    @classmethod
    def validate_namespace_prefix(cls, v: str) -> str:
        """Namespace must be non-empty and slash-terminated."""
        if not v or not v.strip():
            raise ValueError("namespace_prefix cannot be empty")
        if not v.endswith("/"):
            raise ValueError("namespace_prefix must end with '/'")
        return v

    @field_validator("css_class_prefix")
    @classmethod
    def validate_css_class_prefix(cls, v: str) -> str:
        """Class prefix must be a class selector."""
        if not v.startswith("."):
            raise ValueError("css_class_prefix must start with '.'")
        return v

    @field_validator("legacy_asset_paths")
    @classmethod
    def validate_legacy_asset_paths(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        """Each entry is a [legacy, canonical] pair."""
        for key, pair in v.items():
            if len(pair) != 2:
                raise ValueError(f"legacy_asset_paths[{key}] must be [legacy, canonical]")
        return v

    @property
    def css_block_prefix(self) -> str:
        """Handle/class prefix without the leading dot (e.g. 'cm-')."""
        return self.css_class_prefix[1:]

    @property
    def config_include_statement(self) -> str:
        return f"require_once __DIR__ . '/{self.config_filename}';"

    def block_slug(self, identifier: object) -> str:
        """Strip the namespace prefix from a block identifier ('cm/demo' -> 'demo')."""
        if not isinstance(identifier, str):
            return ""
        if identifier.startswith(self.namespace_prefix):
            return identifier[len(self.namespace_prefix):]
        return identifier

    def config_class_name(self, slug: str) -> str:
        """Configuration class for a slug ('hello-world' -> 'CM_Hello_World_Config')."""
        body = "_".join(_capitalized_segments(slug))
        return f"{self.config_class_prefix}{body}{self.config_class_suffix}"

    def php_namespace(self, slug: str) -> str:
        """Render namespace for a slug ('hello-world' -> 'CompuMatter\\Blocks\\HelloWorld')."""
        return self.php_namespace_root + "".join(_capitalized_segments(slug))


class PipelineSettings(BaseModel):
    """
    Pipeline behaviour.

    Warn-only by default: compliance violations never stop a bundle unless
    strict is enabled.
    """
    model_config = ConfigDict(frozen=True)

    strict: bool = Field(False, description="Raise ComplianceError when violations survive auto-fix")
    conventions: ConventionSettings = Field(default_factory=ConventionSettings)


def load_settings(path: Optional[Union[str, Path]] = None, strict: Optional[bool] = None) -> PipelineSettings:
    """
    Load pipeline settings from a YAML file.

    Args:
        path: YAML settings file; None uses built-in defaults
        strict: Overrides the file's 'strict' value when given

    Returns:
        Validated PipelineSettings

    Raises:
        ConfigurationError: If the file is missing, not a mapping or invalid
    """
    data = {}

    if path is not None:
        settings_path = Path(path)
        if not settings_path.exists():
            raise ConfigurationError(f"Settings file not found: {settings_path}")
        try:
            loaded = yaml.safe_load(settings_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {settings_path}: {e}", original_error=e) from e
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Settings file must contain a mapping: {settings_path}")
        data = loaded

    if strict is not None:
        data = {**data, "strict": strict}

    try:
        return PipelineSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}", original_error=e) from e
