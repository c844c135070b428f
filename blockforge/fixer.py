"""
Deterministic auto-fixes for common convention violations.

Fix steps run in a fixed order; later steps use the block slug derived from
block.json 'name' up front. Every step is idempotent and a no-op when its
precondition already holds or the input is not in the expected shape. No
step raises.
"""

import logging
import re
from typing import Callable, List, Optional, Tuple

from blockforge.models import ParsedBundle
from blockforge.settings import ConventionSettings
from blockforge.validator import has_config_include

logger = logging.getLogger(__name__)

FixStep = Callable[[ParsedBundle, str], bool]

_PHP_STRING = r"""(?:'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")"""
_BLOCK_NAME_RE = re.compile(r"""(['"])BLOCK_NAME\1\s*=>\s*""" + _PHP_STRING)
_REGISTER_BLOCK_TYPE_RE = re.compile(r"""register_block_type\(\s*""" + _PHP_STRING)
_NAMESPACE_DECL_RE = re.compile(r"^\s*namespace\s+[A-Za-z_\\][\w\\]*\s*;", re.MULTILINE)
_FIRST_DOC_COMMENT_RE = re.compile(r"(<\?php[\s\S]*?)(\s*/\*\*)")
_WRAPPER_CLASSES_RE = re.compile(r"esc_attr\(\s*\$wrapper_classes\s*\)")


def php_single_quoted(value: str) -> str:
    """Quote a value as a PHP single-quoted string literal."""
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


class ComplianceFixer:
    """
    Applies the ordered auto-fix steps to a copy of a bundle.

    Example:
        fixer = ComplianceFixer()
        fixed, applied = fixer.apply(bundle)
        print(f"Applied: {', '.join(applied)}")
    """

    def __init__(self, conventions: Optional[ConventionSettings] = None):
        self.conventions = conventions or ConventionSettings()

    @property
    def steps(self) -> List[Tuple[str, FixStep]]:
        return [
            ("keywords", self.fix_keywords),
            ("legacy_asset_paths", self.fix_legacy_asset_paths),
            ("example_attribute", self.fix_example_attribute),
            ("asset_references", self.fix_asset_references),
            ("block_name_constant", self.fix_block_name_constant),
            ("registration", self.fix_registration),
            ("render_config_include", self.fix_render_config_include),
            ("style_prefix", self.fix_style_prefix),
            ("render_namespace", self.fix_render_namespace),
            ("wrapper_classes_join", self.fix_wrapper_classes_join),
        ]

    def derive_block_slug(self, bundle: ParsedBundle) -> str:
        """'cm/hello-jay' -> 'hello-jay'; '' when block.json has no name."""
        return self.conventions.block_slug(bundle.block_name)

    def apply(self, bundle: ParsedBundle) -> Tuple[ParsedBundle, List[str]]:
        """
        Run every fix step on a copy of the bundle.

        Args:
            bundle: Bundle to fix (not modified)

        Returns:
            Tuple of (fixed bundle, names of steps that changed something)
        """
        fixed = bundle.copy()
        slug = self.derive_block_slug(fixed)
        applied = []

        for name, step in self.steps:
            if step(fixed, slug):
                applied.append(name)
                logger.info("Fixed: %s", name.replace("_", " "))

        logger.info("Auto-fix complete (%d step(s) applied)", len(applied))
        return fixed, applied

    def fix(self, bundle: ParsedBundle) -> ParsedBundle:
        return self.apply(bundle)[0]

    # block.json

    def fix_keywords(self, bundle: ParsedBundle, slug: str) -> bool:
        """Sentinel keyword first, other keywords kept in order, duplicates of it dropped."""
        metadata = bundle.metadata
        if not isinstance(metadata, dict):
            return False

        sentinel = self.conventions.sentinel_keyword
        keywords = metadata.get("keywords")
        if keywords is None:
            updated = [sentinel]
        elif isinstance(keywords, list):
            updated = [sentinel] + [k for k in keywords if k != sentinel]
        else:
            return False

        if updated == keywords:
            return False
        metadata["keywords"] = updated
        return True

    def fix_legacy_asset_paths(self, bundle: ParsedBundle, slug: str) -> bool:
        metadata = bundle.metadata
        if not isinstance(metadata, dict):
            return False

        changed = False
        for key, (legacy, canonical) in self.conventions.legacy_asset_paths.items():
            if metadata.get(key) == legacy:
                metadata[key] = canonical
                changed = True
        return changed

    def fix_example_attribute(self, bundle: ParsedBundle, slug: str) -> bool:
        metadata = bundle.metadata
        if not isinstance(metadata, dict):
            return False

        changed = False
        if metadata.get("attributes") is None:
            metadata["attributes"] = {}
            changed = True

        attributes = metadata["attributes"]
        if not isinstance(attributes, dict):
            return changed

        name = self.conventions.example_attribute
        if name not in attributes:
            attributes[name] = {"type": "boolean", "default": False}
            changed = True
        return changed

    def fix_asset_references(self, bundle: ParsedBundle, slug: str) -> bool:
        """Replace scalar asset fields with the canonical handle lists."""
        metadata = bundle.metadata
        if not isinstance(metadata, dict) or not slug:
            return False

        c = self.conventions
        css_handle = f"{c.css_block_prefix}{slug}-{c.centralized_css_marker}"
        js_handle = f"{c.css_block_prefix}{slug}-{c.centralized_js_marker}"
        canonical = {
            "editorStyle": [css_handle, c.editor_style_extra],
            "viewScript": [c.view_script_dependency, js_handle],
            "viewStyle": [css_handle],
        }

        changed = False
        for key, handles in canonical.items():
            value = metadata.get(key)
            if value and not isinstance(value, list):
                metadata[key] = list(handles)
                changed = True
        return changed

    # config.php / registering.php

    def fix_block_name_constant(self, bundle: ParsedBundle, slug: str) -> bool:
        identifier = bundle.block_name
        if not identifier or not isinstance(bundle.config_source, str):
            return False

        replacement = "'BLOCK_NAME' => " + php_single_quoted(identifier)
        updated = _BLOCK_NAME_RE.sub(lambda m: replacement, bundle.config_source)
        if updated == bundle.config_source:
            return False
        bundle.config_source = updated
        return True

    def fix_registration(self, bundle: ParsedBundle, slug: str) -> bool:
        """Registration call uses the block identifier; paths use the canonical directory."""
        source = bundle.registration_source
        if not isinstance(source, str):
            return False

        c = self.conventions
        updated = source
        identifier = bundle.block_name
        if identifier:
            call = "register_block_type(" + php_single_quoted(identifier)
            updated = _REGISTER_BLOCK_TYPE_RE.sub(lambda m: call, updated)
        updated = updated.replace(c.legacy_blocks_dir, c.canonical_blocks_dir)

        if updated == source:
            return False
        bundle.registration_source = updated
        return True

    # render.php

    def fix_render_config_include(self, bundle: ParsedBundle, slug: str) -> bool:
        """Insert the config include right after the opening <?php line."""
        source = bundle.render_source
        if not isinstance(source, str) or has_config_include(source, self.conventions):
            return False

        lines = source.split("\n")
        for index, line in enumerate(lines):
            if "<?php" in line:
                lines.insert(index + 1, self.conventions.config_include_statement)
                bundle.render_source = "\n".join(lines)
                return True
        return False

    def fix_render_namespace(self, bundle: ParsedBundle, slug: str) -> bool:
        """Declare the block namespace before the first doc comment."""
        source = bundle.render_source
        if not isinstance(source, str) or not slug or _NAMESPACE_DECL_RE.search(source):
            return False

        declaration = f"\n\nnamespace {self.conventions.php_namespace(slug)};\n"
        updated = _FIRST_DOC_COMMENT_RE.sub(
            lambda m: m.group(1) + declaration + m.group(2), source, count=1
        )
        if updated == source:
            return False
        bundle.render_source = updated
        return True

    def fix_wrapper_classes_join(self, bundle: ParsedBundle, slug: str) -> bool:
        """esc_attr( $wrapper_classes ) -> esc_attr( implode( ' ', $wrapper_classes ) )."""
        source = bundle.render_source
        if not isinstance(source, str) or "implode" in source:
            return False

        updated = _WRAPPER_CLASSES_RE.sub(
            lambda m: "esc_attr( implode( ' ', $wrapper_classes ) )", source
        )
        if updated == source:
            return False
        bundle.render_source = updated
        return True

    # centralized.css

    def fix_style_prefix(self, bundle: ParsedBundle, slug: str) -> bool:
        source = bundle.style_source
        prefix = self.conventions.css_class_prefix
        if not isinstance(source, str) or not slug or prefix in source:
            return False

        bundle.style_source = f"{prefix}{slug} {{\n  /* Block styles */\n}}\n\n" + source
        return True
