"""Entry point wiring the heal plugin together for a test runner."""

import logging
from typing import Any, Mapping, Optional

from .core.config import settings
from .core.config_loader import get_heal_config
from .core.logging_config import setup_healing_logging
from .core.models import HealConfiguration
from .services.completion_client import CompletionClient
from .services.heal_reporter import HealReporter
from .services.healing_orchestrator import HealingOrchestrator
from .services.scenario_rewriter import ScenarioRewriter


logger = logging.getLogger(__name__)


def create_heal_plugin(
    helpers: Optional[Mapping[str, Any]] = None,
    config: Optional[HealConfiguration] = None,
    debug_mode: Optional[bool] = None,
    llm=None,
    configure_logging: bool = False,
) -> Optional[HealingOrchestrator]:
    """
    Build a healing orchestrator from settings and the heal YAML config.

    Args:
        helpers: Registered automation helpers by name, e.g. {"Playwright": helper}
        config: Explicit configuration; loaded from HEAL_CONFIG_PATH when omitted
        debug_mode: Overrides AI_DEBUG_MODE when given
        llm: Pre-built model instance for the completion client
        configure_logging: Install the structured log handlers first

    Returns:
        The orchestrator to register as the runner's lifecycle listener,
        or None when healing is disabled

    Raises:
        ConfigurationError: If the configuration file is invalid
    """
    if configure_logging:
        setup_healing_logging(settings.LOG_LEVEL, settings.LOG_DIR)

    if config is None:
        config = get_heal_config()
    if not config.enabled:
        logger.info("Self-healing is disabled")
        return None

    completion_client = CompletionClient(
        model_provider=settings.MODEL_PROVIDER,
        model_name=settings.model_name,
        api_key=settings.GEMINI_API_KEY,
        chunk_size=config.html_chunk_size,
        llm=llm,
    )
    if not completion_client.is_enabled:
        logger.warning("No model credentials configured, failed steps will not be healed")

    rewriter = None
    if config.rewrite_scenarios:
        rewriter = ScenarioRewriter(
            features_dir=str(settings.features_dir),
            create_backup=config.backup_scenarios,
        )

    return HealingOrchestrator(
        config=config,
        completion_client=completion_client,
        helpers=helpers,
        debug_mode=settings.AI_DEBUG_MODE if debug_mode is None else debug_mode,
        rewriter=rewriter,
        reporter=HealReporter(),
    )
