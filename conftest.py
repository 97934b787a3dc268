import pytest

LIVE_FLAG = "--run-integration"


def pytest_addoption(parser):
    parser.addoption(
        LIVE_FLAG,
        action="store_true",
        default=False,
        help="Also run integration tests that fetch live pages from lawphil.net.",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: hits lawphil.net or another live service")


def pytest_collection_modifyitems(config, items):
    if config.getoption(LIVE_FLAG):
        return

    skip_live = pytest.mark.skip(reason=f"live integration test (pass {LIVE_FLAG})")
    for item in items:
        if item.get_closest_marker("integration"):
            item.add_marker(skip_live)
