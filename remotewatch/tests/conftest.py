"""Module that adds flags to pytest to enable certain extra tests."""

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--ssh", action="store_true", default=False, help="Run tests against localhost"
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "ssh: mark test as requiring ssh localhost")


def pytest_collection_modifyitems(config, items):
    if not config.getoption("--ssh"):
        skip_ssh = pytest.mark.skip(reason="only runs with --ssh option")

        for item in items:
            if "ssh" in item.keywords:
                item.add_marker(skip_ssh)
