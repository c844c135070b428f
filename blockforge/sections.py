"""
Section extraction for delimited model responses.

A response holds one section per output file:

    ---
    BLOCK_JSON
    { ... }
    ---
    CONFIG_PHP
    <?php ...
    ---

Markers are matched line by line: a sentinel is a line made of '---', the
section name is the first non-blank line after it (or trailing text on the
sentinel line itself). Sections may come in any order; the first occurrence
of a duplicated name wins.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Union

from blockforge.errors import SectionNotFoundError

logger = logging.getLogger(__name__)


class SectionName(str, Enum):
    """Sections every block bundle carries."""
    BLOCK_JSON = "BLOCK_JSON"
    CONFIG_PHP = "CONFIG_PHP"
    REGISTERING_PHP = "REGISTERING_PHP"
    PHP_RENDER_CALLBACK = "PHP_RENDER_CALLBACK"
    EDITOR_JS = "EDITOR_JS"
    CENTRALIZED_JS = "CENTRALIZED_JS"
    CENTRALIZED_CSS = "CENTRALIZED_CSS"


@dataclass(frozen=True)
class SectionKind:
    """
    One kind of section and where it ends up.

    Attributes:
        name: Marker name in the response (e.g. "CONFIG_PHP")
        attribute: ParsedBundle field (or extra_sections key) holding it
        filename: Output filename
        required: Whether a missing marker is fatal
    """
    name: str
    attribute: str
    filename: str
    required: bool = True


class SectionRegistry:
    """
    Ordered collection of section kinds.

    Build a new registry from the default one to add kinds:

        registry = SectionRegistry(DEFAULT_REGISTRY)
        registry.register(SectionKind("EDITOR_CSS", "EDITOR_CSS", "editor-styles.css", required=False))
    """

    def __init__(self, kinds: Iterable[SectionKind] = ()):
        self._kinds: List[SectionKind] = []
        for kind in kinds:
            self.register(kind)

    def register(self, kind: SectionKind) -> None:
        if self.get(kind.name) is not None:
            raise ValueError(f"Section kind already registered: {kind.name}")
        self._kinds.append(kind)

    def get(self, name: str) -> Optional[SectionKind]:
        for kind in self._kinds:
            if kind.name == name:
                return kind
        return None

    def names(self) -> List[str]:
        return [kind.name for kind in self._kinds]

    def filenames(self) -> Dict[str, str]:
        """Attribute -> filename mapping, in registry order."""
        return {kind.attribute: kind.filename for kind in self._kinds}

    def __iter__(self) -> Iterator[SectionKind]:
        return iter(list(self._kinds))

    def __len__(self) -> int:
        return len(self._kinds)


DEFAULT_REGISTRY = SectionRegistry([
    SectionKind(SectionName.BLOCK_JSON.value, "metadata", "block.json"),
    SectionKind(SectionName.CONFIG_PHP.value, "config_source", "config.php"),
    SectionKind(SectionName.REGISTERING_PHP.value, "registration_source", "registering.php"),
    SectionKind(SectionName.PHP_RENDER_CALLBACK.value, "render_source", "render.php"),
    SectionKind(SectionName.EDITOR_JS.value, "editor_script_source", "editor.js"),
    SectionKind(SectionName.CENTRALIZED_JS.value, "universal_script_source", "centralized.js"),
    SectionKind(SectionName.CENTRALIZED_CSS.value, "style_source", "centralized.css"),
])


_SENTINEL_RE = re.compile(r"^\s*---\s*(?P<name>\S.*?)?\s*$")
_SECTION_NAME_RE = re.compile(r"^[A-Z][A-Z0-9_]*$")
_FENCE_OPEN_RE = re.compile(r"^```[A-Za-z0-9_+-]*[ \t]*(?:\n|$)")
_FENCE_CLOSE_RE = re.compile(r"\n?```\s*$")


def _section_name(name: Union[str, SectionName]) -> str:
    return name.value if isinstance(name, SectionName) else name


def strip_code_fences(content: str) -> str:
    """Remove a markdown code fence wrapping the whole section body."""
    text = content.strip()
    if not text.startswith("```"):
        return text
    text = _FENCE_OPEN_RE.sub("", text, count=1)
    text = _FENCE_CLOSE_RE.sub("", text, count=1)
    return text.strip()


def _store(sections: Dict[str, str], name: Optional[str], lines: List[str]) -> None:
    if name is None or name in sections:
        return
    sections[name] = strip_code_fences("\n".join(lines))


def split_sections(raw_text: str) -> Dict[str, str]:
    """
    Split a delimited response into sections.

    Args:
        raw_text: Full model response

    Returns:
        Dict of section name -> trimmed body, in order of first appearance
    """
    sections: Dict[str, str] = {}
    current: Optional[str] = None
    lines: List[str] = []
    awaiting_name = False

    for line in raw_text.splitlines():
        match = _SENTINEL_RE.match(line)
        inline_name = match.group("name") if match else None
        if match and (inline_name is None or _SECTION_NAME_RE.match(inline_name)):
            _store(sections, current, lines)
            current, lines = inline_name, []
            awaiting_name = inline_name is None
            continue

        if awaiting_name:
            stripped = line.strip()
            if not stripped:
                continue
            awaiting_name = False
            if _SECTION_NAME_RE.match(stripped):
                current = stripped
            # A sentinel followed by unnamed text opens nothing.
            continue

        if current is not None:
            lines.append(line)

    _store(sections, current, lines)
    return sections


def extract_section(raw_text: str, name: Union[str, SectionName]) -> str:
    """
    Return the body of one named section.

    Args:
        raw_text: Full model response
        name: Section marker name

    Returns:
        Text between the name marker and the next sentinel, trimmed

    Raises:
        SectionNotFoundError: If the marker is absent
    """
    section = _section_name(name)
    sections = split_sections(raw_text)
    if section not in sections:
        raise SectionNotFoundError(section)
    return sections[section]


def compose_bundle_text(
    sections: Mapping[str, str],
    registry: SectionRegistry = DEFAULT_REGISTRY
) -> str:
    """
    Build a delimited response from separately generated sections.

    Sections are emitted in registry order; absent ones are skipped with a
    warning so the parser reports them.
    """
    parts = []
    for kind in registry:
        content = sections.get(kind.name)
        if not content:
            logger.warning("Missing section: %s", kind.name)
            continue
        parts.append(f"---\n{kind.name}\n{strip_code_fences(content)}\n")
    parts.append("---\n")
    return "".join(parts)
