"""Tests for the heal plugin factory."""

import pytest
from unittest.mock import Mock, patch

from src.healer.core.config_loader import ConfigurationError
from src.healer.core.models import HealConfiguration
from src.healer.plugin import create_heal_plugin
from src.healer.services.healing_orchestrator import HealingOrchestrator


@pytest.fixture
def plugin_settings(tmp_path):
    """Process settings pointing at a temporary workspace."""
    settings = Mock(
        MODEL_PROVIDER="online",
        model_name="gemini/gemini-2.5-flash",
        GEMINI_API_KEY=None,
        AI_DEBUG_MODE=False,
        LOG_LEVEL="INFO",
        LOG_DIR=str(tmp_path / "logs"),
        features_dir=tmp_path / "projects" / "demo1" / "features",
    )
    with patch("src.healer.plugin.settings", settings):
        yield settings


class TestCreateHealPlugin:
    """Test wiring of the orchestrator."""

    def test_builds_orchestrator(self, plugin_settings):
        helpers = {"WebDriver": Mock()}

        orchestrator = create_heal_plugin(helpers=helpers, config=HealConfiguration(heal_limit=3), llm=Mock())

        assert isinstance(orchestrator, HealingOrchestrator)
        assert orchestrator.config.heal_limit == 3
        assert orchestrator.helpers == helpers
        assert orchestrator.completion_client.is_enabled
        assert orchestrator.rewriter.features_dir == plugin_settings.features_dir
        assert orchestrator.debug_mode is False

    def test_chunk_size_passed_to_client(self, plugin_settings):
        orchestrator = create_heal_plugin(config=HealConfiguration(html_chunk_size=2000))

        assert orchestrator.completion_client.chunk_size == 2000
        assert orchestrator.completion_client.model_name == "gemini/gemini-2.5-flash"

    def test_client_disabled_without_key(self, plugin_settings):
        orchestrator = create_heal_plugin(config=HealConfiguration())

        assert not orchestrator.completion_client.is_enabled

    def test_disabled_returns_none(self, plugin_settings):
        assert create_heal_plugin(config=HealConfiguration(enabled=False)) is None

    def test_rewrite_disabled(self, plugin_settings):
        orchestrator = create_heal_plugin(config=HealConfiguration(rewrite_scenarios=False))

        assert orchestrator.rewriter is None

    def test_backup_setting_passed_to_rewriter(self, plugin_settings):
        orchestrator = create_heal_plugin(config=HealConfiguration(backup_scenarios=False))

        assert orchestrator.rewriter.create_backup is False

    def test_debug_mode(self, plugin_settings):
        plugin_settings.AI_DEBUG_MODE = True

        assert create_heal_plugin(config=HealConfiguration()).debug_mode is True
        assert create_heal_plugin(config=HealConfiguration(), debug_mode=False).debug_mode is False

    def test_loads_yaml_config(self, plugin_settings, tmp_path):
        config_path = tmp_path / "heal.yaml"
        config_path.write_text("self_healing:\n  heal_limit: 4\n", encoding="utf-8")

        with patch("src.healer.core.config_loader.settings",
                   Mock(HEAL_CONFIG_PATH=str(config_path), AI_HEALING=True)):
            orchestrator = create_heal_plugin()

        assert orchestrator.config.heal_limit == 4

    def test_invalid_config_raises(self, plugin_settings, tmp_path):
        config_path = tmp_path / "heal.yaml"
        config_path.write_text("self_healing:\n  heal_limit: 0\n", encoding="utf-8")

        with patch("src.healer.core.config_loader.settings",
                   Mock(HEAL_CONFIG_PATH=str(config_path), AI_HEALING=True)):
            with pytest.raises(ConfigurationError):
                create_heal_plugin()

    def test_configure_logging(self, plugin_settings):
        with patch("src.healer.plugin.setup_healing_logging") as setup:
            create_heal_plugin(config=HealConfiguration(), configure_logging=True)

        setup.assert_called_once_with("INFO", plugin_settings.LOG_DIR)
