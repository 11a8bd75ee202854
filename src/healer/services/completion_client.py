"""
Completion Client for the step self-healing plugin.

Asks a language model for replacement statements for a failed step, given
the failure and the page HTML captured at failure time.
"""

import asyncio
import time
from typing import List, Optional

from ..ai.llm import get_llm
from ..ai.output_parser import SnippetParser
from ..ai.prompts import build_heal_messages, messages_to_text
from ..core.logging_config import get_healing_logger
from ..core.models import Step, TestCase
from .html_context import HtmlContext
from .snippet_interpreter import OPERATION_SIGNATURES


class CompletionClient:
    """Requests candidate replacement snippets from the configured model."""

    def __init__(
        self,
        model_provider: str = "online",
        model_name: str = "gemini/gemini-2.5-flash",
        api_key: Optional[str] = None,
        chunk_size: int = 50000,
        llm=None,
    ):
        """Initialize the completion client.

        Args:
            model_provider: LLM provider ("online" or "local")
            model_name: Name of the model to use
            api_key: API key for the online provider
            chunk_size: Character budget for the HTML sent with each request
            llm: Pre-built model instance; skips lazy creation when given
        """
        self.model_provider = model_provider
        self.model_name = model_name
        self.api_key = api_key
        self.chunk_size = chunk_size
        self._llm = llm
        self.html_context: Optional[HtmlContext] = None
        self.request_count = 0
        self.logger = get_healing_logger("completion")

    @property
    def is_enabled(self) -> bool:
        if self._llm is not None:
            return True
        if self.model_provider == "local":
            return True
        return bool(self.api_key)

    @property
    def llm(self):
        if self._llm is None:
            self._llm = get_llm(self.model_provider, self.model_name, self.api_key)
        return self._llm

    def set_html_context(self, html: str) -> None:
        """Store the page HTML used for the next requests."""
        self.html_context = HtmlContext(html, self.chunk_size)
        if self.html_context.is_chunked:
            self.logger.debug(
                f"Page HTML split into {len(self.html_context)} chunks, sending the first one")

    async def heal_failed_step(
        self,
        failed_step: Step,
        error: BaseException,
        current_test: Optional[TestCase] = None,
    ) -> List[str]:
        """Request replacement snippets for ``failed_step``.

        Sends one request per call. Never raises: request and parse failures
        are logged and produce an empty list.
        """
        html_chunk = self.html_context.first if self.html_context else ""
        messages = build_heal_messages(
            failed_code=failed_step.to_code(),
            error_message=str(error),
            html_chunk=html_chunk,
            operations=OPERATION_SIGNATURES.keys(),
            test_title=current_test.title if current_test else None,
        )

        start_time = time.time()
        self.request_count += 1
        self.logger.log_operation_start("completion_request", step=failed_step.to_code())
        try:
            response = await self._request(messages)
            snippets = SnippetParser.extract_snippets(response)
        except Exception as e:
            self.logger.log_operation_failure(
                "completion_request", time.time() - start_time, str(e),
                error_code=type(e).__name__)
            return []

        self.logger.log_operation_success(
            "completion_request", time.time() - start_time, candidates=len(snippets))
        return snippets

    async def _request(self, messages) -> str:
        llm = self.llm
        if hasattr(llm, "call"):
            # crewai LLM takes chat messages
            response = await asyncio.to_thread(llm.call, messages)
        else:
            response = await asyncio.to_thread(llm.invoke, messages_to_text(messages))
        if not isinstance(response, str):
            response = getattr(response, "content", None) or str(response)
        return response
