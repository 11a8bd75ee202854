"""Test lifecycle listener interface consumed from the test runner."""

from abc import ABC, abstractmethod
from typing import Optional

from .models import HealResult, RunSummary, Step, TestCase


class TestLifecycleListener(ABC):
    """Observer notified by the runner as tests and steps execute.

    The runner calls ``on_step_failure`` when a step raises and must honour
    the returned result: a healed result means the step counts as passed,
    otherwise ``result.raise_for_outcome()`` surfaces the original error.
    """
    __test__ = False

    @abstractmethod
    def on_test_start(self, test: TestCase) -> None:
        ...

    @abstractmethod
    def on_step_start(self, step: Step) -> None:
        ...

    @abstractmethod
    async def on_step_failure(self, step: Optional[Step], error: BaseException) -> HealResult:
        ...

    @abstractmethod
    def on_run_complete(self) -> RunSummary:
        ...
