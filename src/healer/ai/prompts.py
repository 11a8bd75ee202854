"""Prompt templates for healing a failed automation step."""

from typing import Dict, Iterable, List, Optional


SYSTEM_PROMPT = (
    "You are a senior test automation engineer. A step of a UI test failed because "
    "the page changed. You repair the step by proposing replacement automation "
    "statements that perform the same user action on the current page."
)


def build_heal_messages(
    failed_code: str,
    error_message: str,
    html_chunk: str,
    operations: Iterable[str],
    test_title: Optional[str] = None,
) -> List[Dict[str, str]]:
    """Build chat messages asking the model for replacement statements."""
    allowed = "\n".join(f"            - TM.{name}(...)" for name in operations)
    scenario = test_title or "N/A"

    user_prompt = f"""
            A test step failed and needs a replacement.

            Failure Context:
            - Scenario: {scenario}
            - Failed Step: {failed_code}
            - Error: {error_message}

            --- PAGE HTML ---

            Here is the HTML of the page where the failure happened:

            {html_chunk}

            --- INSTRUCTIONS ---

            Propose how to adjust the step `{failed_code}` so it performs the same action
            on this page. Use locators in order of preference:
            1. semantic locator by visible text
            2. CSS selector
            3. XPath

            Only these calls are allowed:
{allowed}

            --- OUTPUT FORMAT ---

            Return each alternative as a single statement in its own code block marked with ```.
            Use string literals for every argument. Do not explain the code.
            Example:
            ```js
            TM.click('#login-button')
            ```
            """

    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


def messages_to_text(messages: List[Dict[str, str]]) -> str:
    """Flatten chat messages for completion-style models."""
    return "\n\n".join(m["content"].strip() for m in messages)
