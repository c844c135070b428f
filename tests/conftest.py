import pytest

from blockforge.parser import parse_bundle_text
from tests.block_samples import BROKEN_SECTIONS, COMPLIANT_SECTIONS, make_response


@pytest.fixture
def compliant_sections():
    return dict(COMPLIANT_SECTIONS)


@pytest.fixture
def compliant_response():
    return make_response(COMPLIANT_SECTIONS)


@pytest.fixture
def compliant_bundle(compliant_response):
    return parse_bundle_text(compliant_response)


@pytest.fixture
def broken_response():
    return make_response(BROKEN_SECTIONS)


@pytest.fixture
def broken_bundle(broken_response):
    return parse_bundle_text(broken_response)
