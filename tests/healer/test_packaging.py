"""Tests for the project packaging metadata."""

import re
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[2]


class TestPyproject:
    """Test the published project metadata."""

    def test_readme_is_project_readme(self):
        pyproject = (PROJECT_ROOT / "pyproject.toml").read_text(encoding="utf-8")

        match = re.search(r'^readme\s*=\s*"([^"]+)"', pyproject, re.MULTILINE)

        assert match is not None
        assert match.group(1) == "README.md"
        assert (PROJECT_ROOT / match.group(1)).is_file()
