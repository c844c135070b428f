import pytest

from blockforge.errors import ErrorType, MetadataParseError, SectionNotFoundError
from blockforge.models import ParsedBundle
from blockforge.parser import build_bundle, extract_sections, parse_bundle_text, parse_metadata
from blockforge.sections import DEFAULT_REGISTRY, SectionKind, SectionRegistry
from tests.block_samples import (
    BLOCK_JSON,
    CENTRALIZED_CSS,
    COMPLIANT_SECTIONS,
    CONFIG_PHP,
    EDITOR_JS,
    make_response,
)


def test_parse_bundle_maps_sections_to_fields(compliant_bundle):
    assert isinstance(compliant_bundle, ParsedBundle)
    assert compliant_bundle.metadata["name"] == "cm/demo"
    assert compliant_bundle.config_source == CONFIG_PHP
    assert compliant_bundle.editor_script_source == EDITOR_JS
    assert compliant_bundle.style_source == CENTRALIZED_CSS
    assert compliant_bundle.extra_sections == {}
    assert compliant_bundle.block_name == "cm/demo"
    assert compliant_bundle.output_dir_name == "cm-demo"


def test_section_order_does_not_matter():
    shuffled = make_response(COMPLIANT_SECTIONS, order=list(reversed(list(COMPLIANT_SECTIONS))))
    assert parse_bundle_text(shuffled) == parse_bundle_text(make_response(COMPLIANT_SECTIONS))


def test_text_around_the_bundle_is_ignored():
    raw = "Here is your block:\n\n" + make_response(COMPLIANT_SECTIONS) + "\nLet me know if you need changes."
    assert parse_bundle_text(raw).block_name == "cm/demo"


@pytest.mark.parametrize("missing", ["PHP_RENDER_CALLBACK", "CENTRALIZED_CSS", "BLOCK_JSON"])
def test_missing_required_section_is_fatal(missing):
    sections = {name: body for name, body in COMPLIANT_SECTIONS.items() if name != missing}
    with pytest.raises(SectionNotFoundError) as ex:
        parse_bundle_text(make_response(sections))
    assert ex.value.section == missing
    assert ex.value.error_type == ErrorType.STRUCTURAL


def test_first_missing_section_in_registry_order_is_reported():
    sections = {name: body for name, body in COMPLIANT_SECTIONS.items()
                if name not in ("CONFIG_PHP", "CENTRALIZED_JS")}
    with pytest.raises(SectionNotFoundError) as ex:
        parse_bundle_text(make_response(sections))
    assert ex.value.section == "CONFIG_PHP"


def test_invalid_metadata_is_fatal():
    sections = dict(COMPLIANT_SECTIONS, BLOCK_JSON='{"name": "cm/demo",}')
    with pytest.raises(MetadataParseError) as ex:
        parse_bundle_text(make_response(sections))
    assert str(ex.value).startswith("Failed to parse BLOCK_JSON:")
    assert ex.value.original_error is not None


def test_parse_metadata_accepts_non_object_json():
    assert parse_metadata("[1, 2]") == [1, 2]


def test_fenced_metadata_is_parsed():
    sections = dict(COMPLIANT_SECTIONS, BLOCK_JSON=f"```json\n{BLOCK_JSON}\n```")
    assert parse_bundle_text(make_response(sections)).metadata["title"] == "CM Demo"


def test_optional_section_kinds_go_to_extra_sections():
    registry = SectionRegistry(DEFAULT_REGISTRY)
    registry.register(SectionKind("EDITOR_CSS", "editor_css", "editor-styles.css", required=False))

    without = extract_sections(make_response(COMPLIANT_SECTIONS), registry)
    assert "EDITOR_CSS" not in without

    sections = dict(COMPLIANT_SECTIONS, EDITOR_CSS=".cm-demo-editor {}")
    bundle = parse_bundle_text(make_response(sections), registry)
    assert bundle.extra_sections == {"editor_css": ".cm-demo-editor {}"}
    assert bundle.to_files(registry.filenames())["editor-styles.css"] == ".cm-demo-editor {}"


def test_registry_without_bundle_fields_is_rejected():
    registry = SectionRegistry([SectionKind("BLOCK_JSON", "metadata", "block.json")])
    with pytest.raises(ValueError):
        build_bundle({"BLOCK_JSON": "{}"}, registry)
