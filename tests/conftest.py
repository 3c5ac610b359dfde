"""Pytest configuration and shared fixtures."""

import threading
from pathlib import Path
from unittest.mock import Mock

import pytest

from apex_coverage.models.config import CoverageConfig
from apex_coverage.models.generation import GenerationFailure, GenerationSuccess


APEX_CLASS_BODY = """public with sharing class {name} {{
    public static Integer add(Integer a, Integer b) {{
        return a + b;
    }}
}}
"""

META_XML_BODY = """<?xml version="1.0" encoding="UTF-8"?>
<ApexClass xmlns="http://soap.sforce.com/2006/04/metadata">
    <apiVersion>59.0</apiVersion>
    <status>Active</status>
</ApexClass>
"""


# ============================================================================
# Helper Functions
# ============================================================================


def write_files(root: Path, files: dict[str, str]) -> Path:
    """Create files under root from a {relative path: content} mapping."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


def apex_class(name: str) -> str:
    return APEX_CLASS_BODY.format(name=name)


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def coverage_config() -> CoverageConfig:
    """Create a test coverage configuration."""
    return CoverageConfig(
        source_root="force-app/main/default/classes",
        coverage_threshold=75,
        generation_timeout_seconds=5,
        max_parallel_generations=2,
        report_formats=["markdown", "json"],
    )


@pytest.fixture
def temp_config_file(coverage_config: CoverageConfig, tmp_path: Path) -> Path:
    """Create a temporary config file."""
    config_file = tmp_path / "apex-coverage.json"
    coverage_config.save(config_file)
    return config_file


# ============================================================================
# Source Tree Fixtures
# ============================================================================


@pytest.fixture
def classes_dir(tmp_path: Path) -> Path:
    """An Apex classes directory with two untested classes (scenario A)."""
    root = tmp_path / "classes"
    root.mkdir()
    write_files(root, {
        "AccountManager.cls": apex_class("AccountManager"),
        "AccountManager.cls-meta.xml": META_XML_BODY,
        "ContactService.cls": apex_class("ContactService"),
        "ContactService.cls-meta.xml": META_XML_BODY,
    })
    return root


@pytest.fixture
def temp_report_dir(tmp_path: Path) -> Path:
    """Create a temporary report directory."""
    report_dir = tmp_path / "reports"
    report_dir.mkdir()
    return report_dir


# ============================================================================
# Generation Fixtures
# ============================================================================


class FakeWriter:
    """Stand-in generation collaborator keyed by class name."""

    def __init__(self, outcomes=None):
        self.outcomes = outcomes or {}
        self.calls = []
        self._lock = threading.Lock()

    def generate(self, unit, source, timeout=None):
        with self._lock:
            self.calls.append(unit.name)
        outcome = self.outcomes.get(unit.name)
        if outcome is None:
            return GenerationSuccess(text=f"@isTest\nprivate class {unit.name}Test {{}}")
        if isinstance(outcome, Exception):
            raise outcome
        if callable(outcome):
            return outcome(unit, source, timeout)
        return outcome


@pytest.fixture
def fake_writer() -> FakeWriter:
    return FakeWriter()


@pytest.fixture
def failing_writer() -> FakeWriter:
    return FakeWriter(outcomes={
        "AccountManager": GenerationFailure(reason="AI request failed: overloaded"),
    })


# ============================================================================
# Mock Fixtures
# ============================================================================


def make_response(text: str, stop_reason: str = "end_turn") -> Mock:
    mock_content = Mock()
    mock_content.text = text
    mock_response = Mock()
    mock_response.content = [mock_content]
    mock_response.stop_reason = stop_reason
    return mock_response


@pytest.fixture
def mock_anthropic_client() -> Mock:
    """Create a mock Anthropic client."""
    mock_client = Mock()
    mock_client.messages.create.return_value = make_response(
        "@isTest\nprivate class AccountManagerTest {}"
    )
    return mock_client
