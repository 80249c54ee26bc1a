"""Pytest configuration and fixtures."""

import os

import pytest

from survey_brain.core.config import get_settings
from survey_brain.core.section_schema import default_section_schema


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["OPENAI_API_KEY"] = "test-openai-key"
    os.environ["ANTHROPIC_API_KEY"] = "test-anthropic-key"
    os.environ["SURVEY_BRAIN_ENV"] = "test"
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def section_schema():
    """The built-in 14-section schema."""
    return default_section_schema()
