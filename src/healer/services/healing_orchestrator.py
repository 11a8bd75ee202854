"""
Healing Orchestrator Service for the step self-healing plugin.

Listens to the test lifecycle, decides whether a failed step may be healed,
captures the page, asks the completion client for replacements and replays
them until one works. At the end of the run it rewrites feature files and
prints the report.
"""

import time
import logging
from collections import Counter
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple

from ..core.events import TestLifecycleListener
from ..core.logging_config import get_healing_logger, muted_output
from ..core.models import (
    FailedStep, HealConfiguration, HealResult, HealSuggestion, RewriteResult,
    RunSummary, Step, TestCase, TestRun, UnhealedReason
)
from .automation_helpers import select_html_helper
from .completion_client import CompletionClient
from .heal_reporter import HealReporter
from .scenario_rewriter import ScenarioRewriter
from .snippet_interpreter import SnippetInterpreter


logger = logging.getLogger("healing.orchestrator")


class HealingOrchestrator(TestLifecycleListener):
    """Coordinates healing of failed steps for one test run."""

    MAX_COMPLETION_ATTEMPTS = 3
    RECOVERY_SCOPE = "heal"

    def __init__(
        self,
        config: HealConfiguration,
        completion_client: CompletionClient,
        helpers: Optional[Mapping[str, Any]] = None,
        debug_mode: bool = False,
        interpreter: Optional[SnippetInterpreter] = None,
        rewriter: Optional[ScenarioRewriter] = None,
        reporter: Optional[HealReporter] = None,
    ):
        """Initialize the healing orchestrator.

        Args:
            config: Heal plugin configuration
            completion_client: Client asked for replacement snippets
            helpers: Registered automation helpers by name, e.g. {"WebDriver": helper}
            debug_mode: Suppress healing while the runner is in interactive debug mode
            interpreter: Runs candidate snippets against the helper
            rewriter: Patches feature files at the end of the run; None disables rewriting
            reporter: Prints the limit warning and the end-of-run report
        """
        self.config = config
        self.completion_client = completion_client
        self.helpers = dict(helpers or {})
        self.debug_mode = debug_mode
        self.interpreter = interpreter or SnippetInterpreter()
        self.rewriter = rewriter
        self.reporter = reporter or HealReporter()

        self.run = TestRun()
        self._suggestions: List[HealSuggestion] = []
        self.statistics: Counter = Counter()
        self.unhealed_reasons: Counter = Counter()

        logger.info(f"Healing orchestrator initialized (limit {config.heal_limit} step(s) per test)")

    @property
    def suggestions(self) -> Tuple[HealSuggestion, ...]:
        return tuple(self._suggestions)

    @property
    def healed_steps(self) -> int:
        return self.run.healed_steps

    def on_test_start(self, test: TestCase) -> None:
        self.run.start_test(test)

    def on_step_start(self, step: Step) -> None:
        self.run.current_step = step
        if self.run.current_test is not None:
            self.run.current_test.steps.append(step)

    async def run_step(self, step: Step, action: Callable[[], Awaitable[Any]]) -> Optional[Any]:
        """Run one step; on failure try to heal it, otherwise re-raise the original error."""
        self.on_step_start(step)
        try:
            return await action()
        except Exception as e:
            result = await self.on_step_failure(step, e)
            result.raise_for_outcome()
            return None

    async def on_step_failure(self, step: Optional[Step], error: BaseException) -> HealResult:
        """Try to heal a failed step.

        Returns:
            HealResult; unhealed results carry the original error unchanged
        """
        self.statistics["failures_seen"] += 1

        if self.debug_mode:
            return self._unhealed(error, UnhealedReason.DEBUG_MODE)
        if not self.completion_client.is_enabled:
            return self._unhealed(error, UnhealedReason.CLIENT_DISABLED)

        step = step or self.run.current_step
        if step is None:
            return self._unhealed(error, UnhealedReason.NO_CURRENT_STEP)
        if not self.config.is_healable(step.name):
            return self._unhealed(error, UnhealedReason.STEP_NOT_HEALABLE)
        if self.run.healed_steps >= self.config.heal_limit:
            self.reporter.print_limit_warning(self.config.heal_limit)
            return self._unhealed(error, UnhealedReason.HEAL_LIMIT_REACHED)

        async with self._recovery_scope(self.RECOVERY_SCOPE):
            return await self._heal(FailedStep(step=step, error=error))

    async def _heal(self, failed: FailedStep) -> HealResult:
        test = self.run.current_test or TestCase(title="")
        healing_logger = get_healing_logger("orchestrator", test_case=test.title or None)

        helper = select_html_helper(self.helpers)
        if helper is None:
            return self._unhealed(failed.error, UnhealedReason.NO_HTML_HELPER)

        self.statistics["heal_attempts"] += 1
        start_time = time.time()
        healing_logger.log_operation_start("step_healing", step=failed.code, error=failed.error_message)

        try:
            with muted_output():
                html = await helper.grab_html_from("body")
        except Exception as e:
            logger.debug(f"Could not capture page HTML: {e}")
            html = ""
        if not html:
            return self._unhealed(failed.error, UnhealedReason.EMPTY_HTML)

        self.completion_client.set_html_context(html)

        snippets: List[str] = []
        attempt = 0
        while not snippets and attempt < self.MAX_COMPLETION_ATTEMPTS:
            attempt += 1
            healing_logger.log_progress("step_healing", f"Requesting candidates (attempt {attempt})")
            snippets = await self.completion_client.heal_failed_step(failed.step, failed.error, test)
            self.statistics["model_requests"] += 1

        if not snippets:
            healing_logger.log_operation_failure(
                "step_healing", time.time() - start_time, "model returned no candidates",
                error_code=UnhealedReason.NO_CANDIDATES.value)
            return self._unhealed(failed.error, UnhealedReason.NO_CANDIDATES)

        healing_logger.log_progress("step_healing", f"Received {len(snippets)} candidate(s)")
        for snippet in snippets:
            self.statistics["candidates_tried"] += 1
            try:
                await self.interpreter.execute(snippet, helper)
            except Exception as e:
                logger.debug(f"Candidate {snippet} failed: {e}")
                continue

            suggestion = HealSuggestion(test=test, step=failed.step, snippet=snippet)
            self._suggestions.append(suggestion)
            self.run.healed_steps += 1
            self.statistics["heals"] += 1
            healing_logger.log_operation_success(
                "step_healing", time.time() - start_time, step=failed.code, snippet=snippet)
            return HealResult.from_suggestion(failed.error, suggestion)

        healing_logger.log_operation_failure(
            "step_healing", time.time() - start_time, f"no candidate could replace {failed.code}",
            error_code=UnhealedReason.ALL_CANDIDATES_FAILED.value)
        return self._unhealed(failed.error, UnhealedReason.ALL_CANDIDATES_FAILED)

    @asynccontextmanager
    async def _recovery_scope(self, name: str):
        previous = self.run.recovery_scope
        self.run.recovery_scope = name
        try:
            yield
        finally:
            self.run.recovery_scope = previous

    def _unhealed(self, error: BaseException, reason: UnhealedReason) -> HealResult:
        self.unhealed_reasons[reason] += 1
        logger.debug(f"Step left unhealed: {reason.value}")
        return HealResult.unhealed(error, reason)

    def on_run_complete(self) -> RunSummary:
        """Rewrite feature files for every healed step and print the report.

        Rewrite errors propagate to the caller.
        """
        summary = RunSummary(suggestions=list(self._suggestions))
        if not self._suggestions:
            return summary

        if self.config.rewrite_scenarios and self.rewriter is not None:
            rewrites: List[RewriteResult] = []
            for suggestion in self._suggestions:
                rewrites.extend(self.rewriter.apply_suggestion(suggestion))
            summary.rewrites = rewrites
            if self.config.backup_scenarios:
                self.rewriter.cleanup_old_backups(self.config.backup_retention_days)

        self.reporter.print_report(summary.suggestions, summary.rewrites)
        logger.info(f"{summary.healed_count} step(s) healed, {len(summary.rewrites)} feature file rewrite(s)")
        return summary

    def get_healing_statistics(self) -> Dict[str, Any]:
        """Get counters for this run."""
        return {
            "failures_seen": self.statistics["failures_seen"],
            "heal_attempts": self.statistics["heal_attempts"],
            "heals": self.statistics["heals"],
            "model_requests": self.statistics["model_requests"],
            "candidates_tried": self.statistics["candidates_tried"],
            "unhealed": {reason.value: count for reason, count in self.unhealed_reasons.items()},
            "suggestions": [s.to_dict() for s in self._suggestions],
        }
