"""Data models for the step self-healing plugin."""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from enum import Enum


DEFAULT_HEAL_STEPS: Tuple[str, ...] = (
    "click",
    "fillField",
    "appendField",
    "selectOption",
    "attachFile",
    "checkOption",
    "uncheckOption",
    "doubleClick",
)


class HealOutcome(Enum):
    """Outcome of a failure handed to the orchestrator."""
    HEALED = "healed"
    UNHEALED = "unhealed"


class UnhealedReason(Enum):
    """Why a failed step was left for the runner to report."""
    DEBUG_MODE = "debug_mode"
    CLIENT_DISABLED = "client_disabled"
    NO_CURRENT_STEP = "no_current_step"
    STEP_NOT_HEALABLE = "step_not_healable"
    HEAL_LIMIT_REACHED = "heal_limit_reached"
    NO_HTML_HELPER = "no_html_helper"
    EMPTY_HTML = "empty_html"
    NO_CANDIDATES = "no_candidates"
    ALL_CANDIDATES_FAILED = "all_candidates_failed"


@dataclass(frozen=True)
class Step:
    """A single automation call performed by a test."""
    name: str
    args: Tuple[Any, ...] = ()
    actor: str = "TM"

    def to_code(self) -> str:
        """Render the call as the runner prints it, e.g. TM.click("Submit")."""
        rendered = ", ".join(json.dumps(arg, default=str, ensure_ascii=False) for arg in self.args)
        return f"{self.actor}.{self.name}({rendered})"

    def __str__(self) -> str:
        return self.to_code()


@dataclass
class TestCase:
    """A running scenario as reported by the test runner."""
    __test__ = False  # keep pytest from collecting this class

    title: str
    file: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    steps: List[Step] = field(default_factory=list)

    @property
    def scenario_name(self) -> str:
        """Scenario title without the trailing tag suffix."""
        return self.title.split(" @", 1)[0]


@dataclass(frozen=True)
class FailedStep:
    """The failing call together with the error it raised."""
    step: Step
    error: BaseException

    @property
    def code(self) -> str:
        return self.step.to_code()

    @property
    def error_message(self) -> str:
        return str(self.error)


@dataclass(frozen=True)
class HealSuggestion:
    """A replacement snippet that made a failed step pass."""
    test: TestCase
    step: Step
    snippet: str
    healed_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "test": self.test.title,
            "step": self.step.to_code(),
            "snippet": self.snippet,
            "healed_at": self.healed_at.isoformat(),
        }


@dataclass
class HealResult:
    """Result of handing a step failure to the orchestrator.

    An unhealed result still carries the original error so the runner can
    report the failure exactly as if the plugin was not installed.
    """
    outcome: HealOutcome
    error: BaseException
    reason: Optional[UnhealedReason] = None
    suggestion: Optional[HealSuggestion] = None

    @property
    def healed(self) -> bool:
        return self.outcome == HealOutcome.HEALED

    @classmethod
    def unhealed(cls, error: BaseException, reason: UnhealedReason) -> "HealResult":
        return cls(outcome=HealOutcome.UNHEALED, error=error, reason=reason)

    @classmethod
    def from_suggestion(cls, error: BaseException, suggestion: HealSuggestion) -> "HealResult":
        return cls(outcome=HealOutcome.HEALED, error=error, suggestion=suggestion)

    def raise_for_outcome(self) -> None:
        """Re-raise the original error unless the step was healed."""
        if not self.healed:
            raise self.error


@dataclass
class TestRun:
    """Mutable tracking state for the test currently executing."""
    __test__ = False

    current_test: Optional[TestCase] = None
    current_step: Optional[Step] = None
    healed_steps: int = 0
    recovery_scope: Optional[str] = None

    def start_test(self, test: TestCase) -> None:
        self.current_test = test
        self.current_step = None
        self.healed_steps = 0


@dataclass
class RewriteResult:
    """Result of patching one feature file."""
    file_path: str
    success: bool = True
    replaced_lines: List[Tuple[int, str, str]] = field(default_factory=list)
    backup_path: Optional[str] = None
    error_message: Optional[str] = None


@dataclass
class RunSummary:
    """What happened at the end of a run."""
    suggestions: List[HealSuggestion] = field(default_factory=list)
    rewrites: List[RewriteResult] = field(default_factory=list)

    @property
    def healed_count(self) -> int:
        return len(self.suggestions)


@dataclass(frozen=True)
class HealConfiguration:
    """Configuration settings for the self-healing plugin."""
    enabled: bool = True
    heal_limit: int = 10
    heal_steps: Tuple[str, ...] = DEFAULT_HEAL_STEPS

    # HTML context settings
    html_chunk_size: int = 50000  # characters

    # Scenario rewrite settings
    rewrite_scenarios: bool = True
    backup_scenarios: bool = True
    backup_retention_days: int = 7

    def is_healable(self, step_name: str) -> bool:
        return step_name in self.heal_steps

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "enabled": self.enabled,
            "heal_limit": self.heal_limit,
            "heal_steps": list(self.heal_steps),
            "html_chunk_size": self.html_chunk_size,
            "rewrite_scenarios": self.rewrite_scenarios,
            "backup_scenarios": self.backup_scenarios,
            "backup_retention_days": self.backup_retention_days,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HealConfiguration':
        """Create configuration from dictionary."""
        data = data.copy()
        if "heal_steps" in data:
            data["heal_steps"] = tuple(data["heal_steps"])
        return cls(**data)
