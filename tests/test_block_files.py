import json

import pytest

from blockforge.block_files import decode_text, load_bundle, read_block_files, write_bundle
from blockforge.errors import MetadataParseError
from blockforge.sections import DEFAULT_REGISTRY, SectionKind, SectionRegistry
from blockforge.template import REQUIRED_TEMPLATE_FILES, validate_template


def test_to_files_uses_canonical_filenames(compliant_bundle):
    files = compliant_bundle.to_files()
    assert list(files) == [
        "block.json",
        "config.php",
        "registering.php",
        "render.php",
        "editor.js",
        "centralized.js",
        "centralized.css",
    ]
    assert json.loads(files["block.json"]) == compliant_bundle.metadata
    assert files["render.php"] == compliant_bundle.render_source


def test_write_bundle_creates_block_directory(tmp_path, compliant_bundle):
    output_dir = write_bundle(compliant_bundle, tmp_path / "out")
    assert output_dir == tmp_path / "out" / "cm-demo"
    assert sorted(p.name for p in output_dir.iterdir()) == sorted(compliant_bundle.to_files())
    assert (output_dir / "config.php").read_text(encoding="utf-8") == compliant_bundle.config_source


def test_write_bundle_requires_block_name(tmp_path, compliant_bundle):
    compliant_bundle.metadata.pop("name")
    with pytest.raises(ValueError):
        write_bundle(compliant_bundle, tmp_path)


def test_written_bundle_loads_back(tmp_path, compliant_bundle):
    output_dir = write_bundle(compliant_bundle, tmp_path)
    assert load_bundle(output_dir) == compliant_bundle


def test_load_bundle_reports_missing_file(tmp_path, compliant_bundle):
    output_dir = write_bundle(compliant_bundle, tmp_path)
    (output_dir / "editor.js").unlink()
    with pytest.raises(FileNotFoundError):
        load_bundle(output_dir)


def test_load_bundle_reports_bad_metadata(tmp_path, compliant_bundle):
    output_dir = write_bundle(compliant_bundle, tmp_path)
    (output_dir / "block.json").write_text("{,}", encoding="utf-8")
    with pytest.raises(MetadataParseError) as ex:
        load_bundle(output_dir)
    assert ex.value.section == "block.json"


def test_optional_files_round_trip(tmp_path, compliant_bundle):
    registry = SectionRegistry(DEFAULT_REGISTRY)
    registry.register(SectionKind("EDITOR_CSS", "editor_css", "editor-styles.css", required=False))
    compliant_bundle.extra_sections["editor_css"] = ".cm-demo-editor {}"

    output_dir = write_bundle(compliant_bundle, tmp_path, registry)
    assert (output_dir / "editor-styles.css").read_text(encoding="utf-8") == ".cm-demo-editor {}"
    assert load_bundle(output_dir, registry).extra_sections == {"editor_css": ".cm-demo-editor {}"}

    (output_dir / "editor-styles.css").unlink()
    assert load_bundle(output_dir, registry).extra_sections == {}


def test_read_block_files_skips_absent_files(tmp_path):
    (tmp_path / "config.php").write_text("<?php", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
    assert read_block_files(tmp_path) == {"config.php": "<?php"}


def test_decode_text_falls_back_to_latin1():
    assert decode_text("café".encode("utf-8")) == "café"
    assert decode_text(b"caf\xe9") == "café"


def test_valid_template(tmp_path, compliant_bundle):
    template_dir = write_bundle(compliant_bundle, tmp_path)
    validation = validate_template(template_dir)
    assert validation.valid
    assert validation.error == ""
    assert set(REQUIRED_TEMPLATE_FILES) <= set(validation.files)
    report = validation.to_report()
    assert report["status"] == "VALID"
    assert report["ssotValidation"]["summary"]["status"] == "PASSED"


def test_template_directory_not_found(tmp_path):
    validation = validate_template(tmp_path / "cm-hello-world")
    assert not validation.valid
    assert validation.error == f"Template directory not found: {tmp_path / 'cm-hello-world'}"
    assert "ssotValidation" not in validation.to_report()


def test_template_missing_files(tmp_path, compliant_bundle):
    template_dir = write_bundle(compliant_bundle, tmp_path)
    (template_dir / "render.php").unlink()
    (template_dir / "editor.js").unlink()
    validation = validate_template(template_dir)
    assert not validation.valid
    assert validation.error == "Template missing required files: editor.js, render.php"


def test_template_without_stylesheet_is_still_valid(tmp_path, compliant_bundle):
    template_dir = write_bundle(compliant_bundle, tmp_path)
    (template_dir / "centralized.css").unlink()
    assert validate_template(template_dir).valid


def test_template_with_ssot_violations(tmp_path, compliant_bundle):
    compliant_bundle.metadata["attributes"]["message"]["default"] = "Hello"
    template_dir = write_bundle(compliant_bundle, tmp_path)
    validation = validate_template(template_dir)
    assert not validation.valid
    assert validation.error.startswith("Template violates SSOT principles: ")
    assert '"message"' in validation.error
    assert validation.to_report()["ssotValidation"]["summary"]["status"] == "FAILED"


@pytest.mark.parametrize("name", ["cm/x/../../../escaped", "..", "."])
def test_write_bundle_stays_inside_directory(tmp_path, compliant_bundle, name):
    compliant_bundle.metadata["name"] = name
    with pytest.raises(ValueError):
        write_bundle(compliant_bundle, tmp_path / "out")
    assert not (tmp_path / "escaped").exists()
