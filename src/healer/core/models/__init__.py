"""Core data models for the step self-healing plugin."""

from .healing_models import (
    DEFAULT_HEAL_STEPS,
    Step,
    TestCase,
    FailedStep,
    HealSuggestion,
    HealResult,
    HealOutcome,
    UnhealedReason,
    TestRun,
    RewriteResult,
    RunSummary,
    HealConfiguration
)

__all__ = [
    "DEFAULT_HEAL_STEPS",
    "Step",
    "TestCase",
    "FailedStep",
    "HealSuggestion",
    "HealResult",
    "HealOutcome",
    "UnhealedReason",
    "TestRun",
    "RewriteResult",
    "RunSummary",
    "HealConfiguration"
]
