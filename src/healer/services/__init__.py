"""Services that make up the step self-healing workflow."""

from .automation_helpers import (
    AutomationHelper, PlaywrightHelper, WebDriverHelper, SUPPORTED_HELPERS, select_html_helper
)
from .completion_client import CompletionClient
from .heal_reporter import HealReporter
from .healing_orchestrator import HealingOrchestrator
from .html_context import HtmlContext, split_by_chunks
from .scenario_rewriter import ScenarioRewriter, convert_to_bdd, scenario_name_from_title
from .snippet_interpreter import OPERATION_SIGNATURES, ParsedCall, SnippetInterpreter, SnippetRejected

__all__ = [
    "AutomationHelper",
    "PlaywrightHelper",
    "WebDriverHelper",
    "SUPPORTED_HELPERS",
    "select_html_helper",
    "CompletionClient",
    "HealReporter",
    "HealingOrchestrator",
    "HtmlContext",
    "split_by_chunks",
    "ScenarioRewriter",
    "convert_to_bdd",
    "scenario_name_from_title",
    "OPERATION_SIGNATURES",
    "ParsedCall",
    "SnippetInterpreter",
    "SnippetRejected",
]
