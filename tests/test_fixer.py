from dataclasses import replace

import pytest

from blockforge.fixer import ComplianceFixer
from blockforge.models import ParsedBundle
from blockforge.validator import ComplianceValidator


@pytest.fixture
def fixer():
    return ComplianceFixer()


def bundle_with(compliant_bundle, **changes):
    return replace(compliant_bundle.copy(), **changes)


def test_keywords_and_example_attribute_are_added(fixer, compliant_bundle):
    metadata = {
        "name": "cm/demo",
        "title": "Demo",
        "category": "cm-blocks",
        "keywords": ["demo"],
        "attributes": {},
        "editorStyle": ["x"],
        "viewScript": ["y"],
    }
    fixed = fixer.fix(bundle_with(compliant_bundle, metadata=metadata))
    assert fixed.metadata["keywords"] == ["cm", "demo"]
    assert fixed.metadata["attributes"] == {"isExample": {"type": "boolean", "default": False}}
    assert fixed.metadata["editorStyle"] == ["x"]
    assert fixed.metadata["viewScript"] == ["y"]


@pytest.mark.parametrize("keywords, expected", [
    (None, ["cm"]),
    ([], ["cm"]),
    (["demo", "cm", "cm"], ["cm", "demo"]),
    (["cm", "demo"], ["cm", "demo"]),
])
def test_keyword_normalization(fixer, compliant_bundle, keywords, expected):
    metadata = dict(compliant_bundle.metadata)
    if keywords is None:
        del metadata["keywords"]
    else:
        metadata["keywords"] = keywords
    fixed = fixer.fix(bundle_with(compliant_bundle, metadata=metadata))
    assert fixed.metadata["keywords"] == expected


def test_block_name_constant_matches_identifier(fixer, compliant_bundle):
    source = compliant_bundle.config_source.replace("'BLOCK_NAME' => 'cm/demo'", "'BLOCK_NAME' => 'cm-blocks/demo'")
    fixed = fixer.fix(bundle_with(compliant_bundle, config_source=source))
    assert "'BLOCK_NAME' => 'cm/demo'" in fixed.config_source
    assert "cm-blocks/demo" not in fixed.config_source


def test_block_name_constant_accepts_double_quotes(fixer, compliant_bundle):
    source = '<?php\n$config = array( "BLOCK_NAME" => "demo" );'
    fixed = fixer.fix(bundle_with(compliant_bundle, config_source=source))
    assert fixed.config_source == "<?php\n$config = array( 'BLOCK_NAME' => 'cm/demo' );"


def test_render_include_follows_opening_tag(fixer, compliant_bundle):
    fixed = fixer.fix(bundle_with(compliant_bundle, render_source="<?php\n/** doc */"))
    lines = fixed.render_source.split("\n")
    assert lines[0] == "<?php"
    assert lines[1] == "require_once __DIR__ . '/config.php';"


def test_render_namespace_goes_before_first_doc_comment(fixer, compliant_bundle):
    fixed = fixer.fix(bundle_with(compliant_bundle, render_source="<?php\n/** doc */"))
    assert fixed.render_source == (
        "<?php\n"
        "require_once __DIR__ . '/config.php';\n"
        "\n"
        "namespace CompuMatter\\Blocks\\Demo;\n"
        "\n"
        "/** doc */"
    )


def test_render_namespace_capitalizes_each_slug_segment(fixer, broken_bundle):
    fixed = fixer.fix(broken_bundle)
    assert "namespace CompuMatter\\Blocks\\HelloWorld;" in fixed.render_source


def test_existing_namespace_is_kept(fixer, compliant_bundle):
    source = "<?php\nnamespace Acme\\Render;\nrequire_once __DIR__ . '/config.php';\n/** doc */"
    fixed = fixer.fix(bundle_with(compliant_bundle, render_source=source))
    assert fixed.render_source == source


def test_style_prefix_rule_is_prepended(fixer, compliant_bundle):
    fixed = fixer.fix(bundle_with(compliant_bundle, style_source=".demo { color: red; }"))
    assert fixed.style_source == ".cm-demo {\n  /* Block styles */\n}\n\n.demo { color: red; }"


def test_wrapper_classes_are_joined(fixer, broken_bundle):
    fixed = fixer.fix(broken_bundle)
    assert "esc_attr( implode( ' ', $wrapper_classes ) )" in fixed.render_source
    assert "esc_attr( $wrapper_classes )" not in fixed.render_source


def test_scalar_asset_references_become_canonical_lists(fixer, broken_bundle):
    metadata = fixer.fix(broken_bundle).metadata
    assert metadata["editorStyle"] == ["cm-hello-world-centralized-css", "file:./editor-styles.css"]
    assert metadata["viewScript"] == ["jquery", "cm-hello-world-centralized-js"]
    assert metadata["viewStyle"] == ["cm-hello-world-centralized-css"]
    assert metadata["editorScript"] == "file:./editor.js"


def test_registration_uses_identifier_and_canonical_directory(fixer, broken_bundle):
    source = fixer.fix(broken_bundle).registration_source
    assert "register_block_type('cm/hello-world', array(" in source
    assert "'/cm-blocks/cm-hello-world/'" in source
    assert "cm-blocks/hello-world'" not in source


def test_registration_from_directory_is_untouched(fixer, compliant_bundle):
    fixed = fixer.fix(compliant_bundle)
    assert "register_block_type( __DIR__ );" in fixed.registration_source


def test_every_step_applies_to_broken_bundle(fixer, broken_bundle):
    _, applied = fixer.apply(broken_bundle)
    assert applied == [name for name, _ in fixer.steps]


def test_apply_does_not_modify_input(fixer, broken_bundle):
    before = broken_bundle.copy()
    fixer.apply(broken_bundle)
    assert broken_bundle == before


def test_compliant_bundle_is_a_fixed_point(fixer, compliant_bundle):
    fixed, applied = fixer.apply(compliant_bundle)
    assert applied == []
    assert fixed == compliant_bundle


def test_fixing_is_idempotent(fixer, broken_bundle):
    once = fixer.fix(broken_bundle)
    twice, applied = fixer.apply(once)
    assert applied == []
    assert twice == once


def test_fix_resolves_fixable_violations(fixer, broken_bundle):
    validator = ComplianceValidator()
    before = validator.validate(broken_bundle)
    after = validator.validate(fixer.fix(broken_bundle))
    assert "render.php must include config.php" in before
    assert "render.php must include config.php" not in after
    assert "centralized.css must use .cm- class prefixes" not in after
    assert "Block must include isExample attribute for preview support" not in after
    assert set(after) < set(before)


def test_slug_dependent_steps_skip_nameless_bundles(fixer, compliant_bundle):
    metadata = dict(compliant_bundle.metadata, viewScript="file:./view.js")
    del metadata["name"]
    fixed, applied = fixer.apply(bundle_with(
        compliant_bundle,
        metadata=metadata,
        style_source=".demo {}",
        render_source="<?php\n/** doc */",
    ))
    assert fixed.metadata["viewScript"] == "file:./view.js"
    assert fixed.style_source == ".demo {}"
    assert "namespace" not in fixed.render_source
    assert applied == ["render_config_include"]


@pytest.mark.parametrize("metadata", [
    None,
    "not json object",
    ["cm/demo"],
    {"name": 5, "keywords": "cm", "attributes": ["isExample"], "editorStyle": 7},
])
def test_malformed_bundles_never_raise(fixer, metadata):
    bundle = ParsedBundle(
        metadata=metadata,
        config_source=None,
        registration_source=None,
        render_source=None,
        editor_script_source=None,
        universal_script_source=None,
        style_source=None,
    )
    fixed, applied = fixer.apply(bundle)
    assert applied == []
    assert fixed == bundle


def test_derive_block_slug(fixer, compliant_bundle, broken_bundle):
    assert fixer.derive_block_slug(compliant_bundle) == "demo"
    assert fixer.derive_block_slug(broken_bundle) == "hello-world"
    assert fixer.derive_block_slug(bundle_with(compliant_bundle, metadata={})) == ""


@pytest.mark.parametrize("name", ["cm/it's", 'cm/say-"hi"', "cm/back\\slash"])
def test_fixing_is_idempotent_for_names_with_quotes(fixer, broken_bundle, name):
    broken_bundle.metadata["name"] = name
    once = fixer.fix(broken_bundle)
    twice, applied = fixer.apply(once)
    assert applied == []
    assert twice == once


def test_block_name_is_escaped_in_php_literals(fixer, compliant_bundle):
    bundle = bundle_with(
        compliant_bundle,
        registration_source="<?php\nregister_block_type( 'cm/demo' );",
    )
    bundle.metadata["name"] = "cm/it's"
    fixed = fixer.fix(bundle)
    assert "'BLOCK_NAME' => 'cm/it\\'s'" in fixed.config_source
    assert fixed.registration_source == "<?php\nregister_block_type('cm/it\\'s' );"


def test_escaped_literals_are_replaced_whole(fixer, compliant_bundle):
    source = "<?php\n$config = array( 'BLOCK_NAME' => 'cm/it\\'s old' );"
    fixed = fixer.fix(bundle_with(compliant_bundle, config_source=source))
    assert fixed.config_source == "<?php\n$config = array( 'BLOCK_NAME' => 'cm/demo' );"
