"""
Block file utilities.
Reads block directories into bundles and writes bundles back out.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Union

from blockforge.errors import MetadataParseError
from blockforge.models import BUNDLE_FIELDS, ParsedBundle
from blockforge.sections import DEFAULT_REGISTRY, SectionRegistry

logger = logging.getLogger(__name__)


def decode_text(file_content: bytes) -> str:
    """Decode file bytes as UTF-8, falling back to latin-1."""
    try:
        return file_content.decode('utf-8')
    except UnicodeDecodeError:
        return file_content.decode('latin-1')


def read_block_files(
    directory: Union[str, Path],
    registry: SectionRegistry = DEFAULT_REGISTRY
) -> Dict[str, str]:
    """
    Read the registered block files present in a directory.

    Args:
        directory: Block directory
        registry: Section kinds whose filenames are read

    Returns:
        Dict mapping filename to content, for files that exist
    """
    directory = Path(directory)
    files = {}
    for kind in registry:
        path = directory / kind.filename
        if path.is_file():
            files[kind.filename] = decode_text(path.read_bytes())
    return files


def load_bundle(
    directory: Union[str, Path],
    registry: SectionRegistry = DEFAULT_REGISTRY
) -> ParsedBundle:
    """
    Load an existing block directory as a ParsedBundle.

    Raises:
        FileNotFoundError: If a required file is missing
        MetadataParseError: If block.json is not valid JSON
    """
    directory = Path(directory)
    files = read_block_files(directory, registry)

    values = {}
    extra = {}
    for kind in registry:
        if kind.filename not in files:
            if kind.required:
                raise FileNotFoundError(f"Block file not found: {directory / kind.filename}")
            continue
        content = files[kind.filename]
        if kind.attribute == "metadata":
            try:
                values["metadata"] = json.loads(content)
            except json.JSONDecodeError as e:
                raise MetadataParseError(e, section=kind.filename) from e
        elif kind.attribute in BUNDLE_FIELDS:
            values[kind.attribute] = content
        else:
            extra[kind.attribute] = content

    return ParsedBundle(extra_sections=extra, **values)


def write_bundle(
    bundle: ParsedBundle,
    directory: Union[str, Path],
    registry: SectionRegistry = DEFAULT_REGISTRY
) -> Path:
    """
    Write a bundle into directory/<output_dir_name>/, one file per section.

    Returns:
        Path of the block directory written

    Raises:
        ValueError: If the block name is missing or resolves outside directory
    """
    if not bundle.block_name:
        raise ValueError("Cannot write a bundle without a block name")

    root = Path(directory).resolve()
    output_dir = Path(directory) / bundle.output_dir_name
    if root not in output_dir.resolve().parents:
        raise ValueError(f"Block name {bundle.block_name!r} resolves outside {directory}")

    output_dir.mkdir(parents=True, exist_ok=True)

    for filename, content in bundle.to_files(registry.filenames()).items():
        (output_dir / filename).write_text(content, encoding="utf-8")

    logger.info("Wrote %s to %s", bundle.block_name, output_dir)
    return output_dir
