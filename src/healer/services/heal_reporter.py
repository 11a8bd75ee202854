"""End-of-run console report for healed steps."""

import sys
from typing import Iterable, List, Optional, TextIO

from ..core.models import HealSuggestion, RewriteResult
from .scenario_rewriter import convert_to_bdd


class HealReporter:
    """Prints the self-healing summary and the heal limit warning."""

    BANNER = "==================="

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout

    def _print(self, text: str = "") -> None:
        self.stream.write(f"{text}\n")

    def print_limit_warning(self, limit: int) -> None:
        self._print(f"Can't heal more than {limit} step(s) in a test")
        self._print("Entire flow can be broken, please check it manually")
        self._print("or increase healing limit in heal plugin config")

    def print_report(self, suggestions: List[HealSuggestion],
                     rewrites: Iterable[RewriteResult] = ()) -> None:
        """Print the summary of healed steps; prints nothing when none were healed."""
        if not suggestions:
            return

        self._print()
        self._print(self.BANNER)
        self._print("Self-Healing Report:")
        self._print(f"{len(suggestions)} step(s) were healed by AI")
        self._print()
        self._print("Suggested changes:")
        self._print()

        for i, suggestion in enumerate(suggestions, 1):
            self._print(f"{i}. To fix {suggestion.test.title}")
            self._print("Replace the failed code with:")
            self._print(f"- {convert_to_bdd(suggestion.step.to_code())}")
            self._print(f"+ {convert_to_bdd(suggestion.snippet)}")
            self._print()

        patched = [r.file_path for r in rewrites if r.success]
        if patched:
            self._print("Updated feature files:")
            for file_path in dict.fromkeys(patched):
                self._print(f"  {file_path}")
            self._print()
