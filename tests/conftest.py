"""
Pytest configuration and shared fixtures for the test suite.
"""

import pytest
from unittest.mock import AsyncMock, Mock

from src.healer.core.models import HealConfiguration, Step, TestCase


LOGIN_FEATURE = """Feature: Authentication

  Scenario: Login flow
    Given I am on the login page
    When I fill field for "Username" with value "bob"
    When I click "Submit"
    Then I see "Welcome"

  Scenario: Logout flow
    Given I am logged in
    When I click "Submit"
    Then I see "Bye"
"""


@pytest.fixture
def heal_config():
    """Create a test heal configuration."""
    return HealConfiguration(
        enabled=True,
        heal_limit=2,
        html_chunk_size=1000,
        rewrite_scenarios=True,
        backup_scenarios=True,
        backup_retention_days=7,
    )


@pytest.fixture
def login_test():
    """A running scenario with tags in its title."""
    return TestCase(title="Login flow @smoke", file="features/login.feature")


@pytest.fixture
def click_step():
    return Step(name="click", args=("Submit",))


@pytest.fixture
def features_dir(tmp_path):
    """Create a temporary features directory with one feature file."""
    directory = tmp_path / "features"
    directory.mkdir()
    (directory / "login.feature").write_text(LOGIN_FEATURE, encoding="utf-8")
    return directory


@pytest.fixture
def backup_dir(tmp_path):
    return tmp_path / "backups"


@pytest.fixture
def mock_helper():
    """Automation helper double returning a small page."""
    helper = Mock()
    helper.grab_html_from = AsyncMock(return_value="<body><button id='submit-button'>Sign in</button></body>")
    helper.perform = AsyncMock(return_value=None)
    return helper


@pytest.fixture
def mock_completion_client():
    """Completion client double that is enabled and returns no candidates."""
    client = Mock()
    client.is_enabled = True
    client.set_html_context = Mock()
    client.heal_failed_step = AsyncMock(return_value=[])
    return client


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Set up logging for tests."""
    import logging
    logging.basicConfig(
        level=logging.DEBUG,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
