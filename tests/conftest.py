"""Shared test fixtures for forge_cli.

Provides the product-service spec in raw, extracted, and compiled form,
a quiet output manager, configuration isolation, and a CLI runner. These
fixtures are discovered by pytest and available to every test module.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from forge_cli.models import CommandNode, SpecDocument
from forge_cli.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When pytest or CliRunner swap those streams, the cached
    references go stale; resetting forces a fresh manager on next use.
    The ``forge_cli`` logger is restored for the same reason.
    """
    yield
    reset_output()
    logger = logging.getLogger("forge_cli")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ---------------------------------------------------------------------------
# Spec fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def product_raw() -> dict[str, Any]:
    """Raw product-service spec dict."""
    with open(FIXTURES_DIR / "product_service.json") as f:
        return json.load(f)


@pytest.fixture
def product_spec(product_raw: dict[str, Any]) -> SpecDocument:
    """Extracted product-service spec."""
    from forge_cli.parser import extract_spec

    return extract_spec(product_raw)


@pytest.fixture
def product_root(product_spec: SpecDocument) -> CommandNode:
    """Compiled grammar for the product-service spec."""
    from forge_cli.grammar import compile_grammar

    return compile_grammar(product_spec)


@pytest.fixture
def make_raw_spec():
    """Factory building a minimal OpenAPI 3.0 document around a ``paths`` dict."""

    def _make(paths: dict[str, Any], **extra: Any) -> dict[str, Any]:
        raw: dict[str, Any] = {
            "openapi": "3.0.3",
            "info": {"title": "Test API", "version": "1.0.0"},
            "paths": paths,
        }
        raw.update(extra)
        return raw

    return _make


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a plain, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def plain_output() -> OutputManager:
    """Install a plain, colourless OutputManager that still prints info."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_DATA_HOME into tmp_path, clears every environment variable
    the CLI reads, and changes the working directory to tmp_path.
    """
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["FORGE_API_URL", "API_URL", "FORGE_API_SPEC", "FORGE_API_TIMEOUT"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
