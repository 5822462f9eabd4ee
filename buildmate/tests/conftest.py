"""Pytest configuration for the buildmate test suite."""

import shutil

import pytest
from _pytest.config import Config
from _pytest.config.argparsing import Parser
from _pytest.nodes import Item


def pytest_addoption(parser: Parser) -> None:
    parser.addoption(
        "--runslow",
        action="store_true",
        default=False,
        help="run slow tests that drive a real cargo toolchain",
    )


def pytest_configure(config: Config) -> None:
    config.addinivalue_line("markers", "slow: mark test as slow to run")
    config.addinivalue_line(
        "markers", "serial: mark test to run serially (timing sensitive)"
    )
    config.addinivalue_line("markers", "cargo: test needs cargo on PATH")


def pytest_collection_modifyitems(config: Config, items: list[Item]) -> None:
    """Skip slow tests unless --runslow is given, and cargo tests without cargo."""
    run_slow = config.getoption("--runslow")
    have_cargo = shutil.which("cargo") is not None

    skip_slow = pytest.mark.skip(reason="need --runslow option to run")
    skip_cargo = pytest.mark.skip(reason="cargo not found on PATH")
    for item in items:
        if "slow" in item.keywords and not run_slow:
            item.add_marker(skip_slow)
        if "cargo" in item.keywords and not have_cargo:
            item.add_marker(skip_cargo)
