"""Root conftest -- provides the ``--run-live`` flag for tests that call real APIs."""

from __future__ import annotations

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Include tests marked @pytest.mark.live (they need real API keys).",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="calls a real API -- pass --run-live to include")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)
