"""Scenario rewriter for carrying healed steps back into Gherkin feature files."""

import os
import re
import shutil
import tempfile
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..core.models import HealSuggestion, RewriteResult


logger = logging.getLogger("healing.rewriter")


# (pattern, template) pairs tried in order; the first match wins.
CONVERSION_RULES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"(?:TM|I)\.fillField\(([^)]+),([^)]+)\)"),
     'When I fill field for "{0}" with value "{1}"'),
    (re.compile(r"(?:TM|I)\.click\(([^)]+)\)"),
     'When I click "{0}"'),
]

_QUOTE_PAIRS = re.compile(r"\"'|'\"|\"\"")


def convert_to_bdd(code: str) -> str:
    """Translate a DSL call into the Gherkin step line that performs it.

    Examples:
        Input:  TM.fillField('#user', 'bob')
        Output: When I fill field for "#user" with value "bob"

    Calls no rule covers are returned unchanged.
    """
    for pattern, template in CONVERSION_RULES:
        match = pattern.search(code)
        if match:
            values = [group.strip() for group in match.groups()]
            return _QUOTE_PAIRS.sub('"', template.format(*values))
    return code


def scenario_name_from_title(title: str) -> str:
    """Scenario name as written in the feature file (tags stripped)."""
    return title.split(" @", 1)[0]


class ScenarioRewriter:
    """Service for patching healed steps into feature files, with backups."""

    def __init__(self, features_dir: str, backup_dir: Optional[str] = None, create_backup: bool = True):
        """Initialize the scenario rewriter.

        Args:
            features_dir: Directory holding the *.feature files
            backup_dir: Directory to store backup files. If None, uses temp directory.
            create_backup: Whether to back up a file before rewriting it
        """
        self.features_dir = Path(features_dir)
        self.backup_dir = Path(backup_dir) if backup_dir else Path(tempfile.gettempdir()) / "feature_backups"
        self.create_backup = create_backup

    def feature_files(self) -> List[Path]:
        """Feature files directly under the features directory, sorted.

        Raises:
            FileNotFoundError: If the features directory does not exist
        """
        if not self.features_dir.is_dir():
            raise FileNotFoundError(f"Features directory not found: {self.features_dir}")
        return sorted(self.features_dir.glob("*.feature"))

    def apply_suggestion(self, suggestion: HealSuggestion) -> List[RewriteResult]:
        """Rewrite the failed step of a suggestion into its healed form."""
        existing_line = convert_to_bdd(suggestion.step.to_code())
        new_line = convert_to_bdd(suggestion.snippet)
        scenario_name = scenario_name_from_title(suggestion.test.title)
        return self.rewrite_scenario(scenario_name, existing_line, new_line)

    def rewrite_scenario(self, scenario_name: str, existing_line: str, new_line: str) -> List[RewriteResult]:
        """Replace ``existing_line`` with ``new_line`` inside the named scenario.

        Every feature file is scanned. A ``Scenario:`` header ends the current
        target; a header whose title starts with ``scenario_name`` begins it.
        Inside the target, each line containing ``existing_line`` is replaced
        and keeps its indentation.

        Returns:
            One RewriteResult per file that changed
        """
        files = self.feature_files()
        if not scenario_name or not existing_line or not new_line or existing_line == new_line:
            logger.debug(f"Nothing to rewrite for scenario '{scenario_name}'")
            return []

        header = re.compile(r"Scenario:\s*" + re.escape(scenario_name))
        results = []
        for file_path in files:
            with open(file_path, "r", encoding="utf-8", newline="") as f:
                lines = f.read().split("\n")

            replaced = self._replace_in_scenario(lines, header, existing_line, new_line)
            if not replaced:
                continue

            result = RewriteResult(file_path=str(file_path), replaced_lines=replaced)
            if self.create_backup:
                result.backup_path = self.backup_feature_file(str(file_path))
            self._write_atomic(file_path, "\n".join(lines))
            for line_no, _, _ in replaced:
                logger.info(f"Rewrote {file_path.name}:{line_no}: '{existing_line}' -> '{new_line}'")
            results.append(result)

        if not results:
            logger.warning(f"Step '{existing_line}' not found in scenario '{scenario_name}'")
        return results

    @staticmethod
    def _replace_in_scenario(lines: List[str], header: re.Pattern, existing_line: str,
                             new_line: str) -> List[Tuple[int, str, str]]:
        replaced = []
        in_target = False
        for i, line in enumerate(lines):
            stripped = line.strip()
            if in_target and stripped.startswith("Scenario:"):
                in_target = False
            if header.match(stripped):
                in_target = True
            if in_target and existing_line in line:
                indent = line[:len(line) - len(line.lstrip())]
                ending = "\r" if line.endswith("\r") else ""
                lines[i] = f"{indent}{new_line}{ending}"
                replaced.append((i + 1, line.rstrip("\r"), lines[i].rstrip("\r")))
        return replaced

    @staticmethod
    def _write_atomic(file_path: Path, content: str) -> None:
        temp_file = f"{file_path}.tmp"
        try:
            with open(temp_file, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            shutil.move(temp_file, file_path)
        except Exception:
            # Clean up temp file on error
            if os.path.exists(temp_file):
                os.remove(temp_file)
            raise

    def backup_feature_file(self, file_path: str) -> str:
        """Create a timestamped backup of a feature file.

        Raises:
            FileNotFoundError: If the source file doesn't exist
        """
        source_path = Path(file_path)
        if not source_path.exists():
            raise FileNotFoundError(f"Feature file not found: {file_path}")

        self.backup_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        backup_path = self.backup_dir / f"{source_path.stem}_{timestamp}{source_path.suffix}"
        shutil.copy2(source_path, backup_path)
        logger.info(f"Created backup: {backup_path}")
        return str(backup_path)

    def restore_from_backup(self, file_path: str, backup_path: str) -> bool:
        """Restore a feature file from its backup.

        Returns:
            True if restoration was successful, False otherwise
        """
        if not Path(backup_path).exists():
            logger.error(f"Backup file not found: {backup_path}")
            return False
        try:
            shutil.copy2(backup_path, file_path)
        except OSError as e:
            logger.error(f"Failed to restore from backup: {e}")
            return False
        logger.info(f"Restored {file_path} from backup {backup_path}")
        return True

    def cleanup_old_backups(self, retention_days: int = 7) -> int:
        """Delete backup files older than ``retention_days``; returns how many."""
        if not self.backup_dir.exists():
            return 0

        deleted_count = 0
        cutoff_time = datetime.now().timestamp() - (retention_days * 24 * 3600)
        for backup_file in self.backup_dir.glob("*.feature"):
            if backup_file.stat().st_mtime < cutoff_time:
                backup_file.unlink()
                deleted_count += 1
                logger.info(f"Deleted old backup: {backup_file}")
        return deleted_count

    def get_backup_info(self, file_path: str) -> List[Dict[str, object]]:
        """List backups of a feature file, newest first."""
        backups = []
        if not self.backup_dir.exists():
            return backups

        file_stem = Path(file_path).stem
        for backup_file in self.backup_dir.glob(f"{file_stem}_*.feature"):
            stat = backup_file.stat()
            backups.append({
                "path": str(backup_file),
                "created": datetime.fromtimestamp(stat.st_mtime).isoformat(),
                "size": stat.st_size,
            })
        return sorted(backups, key=lambda x: x["path"], reverse=True)
