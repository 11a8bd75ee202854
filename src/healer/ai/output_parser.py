"""
Snippet Parser - turns raw model output into candidate automation statements.

Models answer in prose mixed with fenced code blocks, sometimes several
statements per block, sometimes with ``await`` or trailing semicolons. The
parser keeps only lines that look like a single DSL call so every candidate
handed to the interpreter is one standalone statement.
"""

import re
import logging
from typing import List

logger = logging.getLogger("healing.completion")


class SnippetParser:
    """Extracts DSL call statements from language model responses."""

    # A language tag only counts when a newline follows it, so ```TM.click('a')``` still parses.
    CODE_BLOCK_PATTERN = re.compile(r"```(?:[\w+-]+[ \t]*\n|[ \t]*\n?)(.*?)```", re.DOTALL)

    # TM.click(...) / await I.fillField(...);
    CALL_LINE_PATTERN = re.compile(r"^(?:await\s+)?((?:TM|I)\.[A-Za-z_]\w*\s*\(.*\))\s*;?\s*$")

    COMMENT_PREFIXES = ("//", "#", "/*", "*")

    @staticmethod
    def extract_snippets(text: str) -> List[str]:
        """
        Extract candidate statements from a model response.

        Args:
            text: Raw model output

        Returns:
            Ordered, de-duplicated list of call statements

        Examples:
            Input:  "Try this:\\n```js\\nawait TM.click('#go');\\n```"
            Output: ["TM.click('#go')"]
        """
        if not isinstance(text, str) or not text.strip():
            return []

        blocks = SnippetParser.CODE_BLOCK_PATTERN.findall(text)
        if blocks:
            logger.debug(f"🧩 Found {len(blocks)} code block(s) in model output")
        else:
            logger.debug("No code blocks in model output, scanning raw lines")
            blocks = [text]

        snippets: List[str] = []
        for block in blocks:
            for statement in SnippetParser._statements_in_block(block):
                if statement not in snippets:
                    snippets.append(statement)

        return snippets

    @staticmethod
    def _statements_in_block(block: str) -> List[str]:
        statements = []
        for line in block.split("\n"):
            stripped = line.strip()
            if not stripped or stripped.startswith(SnippetParser.COMMENT_PREFIXES):
                continue
            match = SnippetParser.CALL_LINE_PATTERN.match(stripped)
            if match:
                statements.append(match.group(1).strip())
            else:
                logger.debug(f"Skipping non-call line: {stripped[:80]}")
        return statements
