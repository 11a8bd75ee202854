"""Tests for the completion client."""

import pytest
from unittest.mock import Mock, patch

from src.healer.core.models import Step, TestCase
from src.healer.services.completion_client import CompletionClient


MODEL_RESPONSE = """Here are some alternatives:

```js
TM.click('#submit-button')
```

```js
TM.click({css: 'form button[type=submit]'})
```
"""


class ChatModel:
    """Stand-in for a chat model exposing ``call(messages)``."""

    def __init__(self, response=MODEL_RESPONSE, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def call(self, messages):
        self.calls.append(messages)
        if self.error:
            raise self.error
        return self.response


class CompletionModel:
    """Stand-in for a completion model exposing ``invoke(text)``."""

    def __init__(self, response=MODEL_RESPONSE):
        self.response = response
        self.prompts = []

    def invoke(self, text):
        self.prompts.append(text)
        return self.response


@pytest.fixture
def step():
    return Step(name="click", args=("Submit",))


@pytest.fixture
def running_test():
    return TestCase(title="Login flow @smoke")


class TestCompletionClientEnabled:
    """Test when the client is able to make requests."""

    def test_online_without_key_is_disabled(self):
        assert not CompletionClient("online", "gemini/gemini-2.5-flash").is_enabled

    def test_online_with_key_is_enabled(self):
        assert CompletionClient("online", "gemini/gemini-2.5-flash", api_key="secret").is_enabled

    def test_local_is_enabled(self):
        assert CompletionClient("local", "llama3").is_enabled

    def test_injected_model_is_enabled(self):
        assert CompletionClient("online", "x", llm=ChatModel()).is_enabled

    def test_model_created_lazily(self):
        sentinel = ChatModel()
        with patch("src.healer.services.completion_client.get_llm", return_value=sentinel) as get_llm:
            client = CompletionClient("online", "gemini/gemini-2.5-flash", api_key="secret")
            get_llm.assert_not_called()

            assert client.llm is sentinel
            assert client.llm is sentinel
            get_llm.assert_called_once_with("online", "gemini/gemini-2.5-flash", "secret")


class TestHealFailedStep:
    """Test candidate requests."""

    @pytest.mark.asyncio
    async def test_returns_parsed_snippets(self, step, running_test):
        model = ChatModel()
        client = CompletionClient(llm=model)
        client.set_html_context("<form><button type='submit'>Sign in</button></form>")

        snippets = await client.heal_failed_step(step, RuntimeError("Element not found"), running_test)

        assert snippets == ["TM.click('#submit-button')", "TM.click({css: 'form button[type=submit]'})"]
        assert len(model.calls) == 1
        user_prompt = model.calls[0][1]["content"]
        assert 'TM.click("Submit")' in user_prompt
        assert "Element not found" in user_prompt
        assert "Login flow @smoke" in user_prompt
        assert "<button type='submit'>Sign in</button>" in user_prompt

    @pytest.mark.asyncio
    async def test_only_first_chunk_is_sent(self, step, running_test):
        model = ChatModel()
        client = CompletionClient(llm=model, chunk_size=20)
        client.set_html_context("<p>first chunk</p><p>second chunk</p>")

        await client.heal_failed_step(step, RuntimeError("boom"), running_test)

        user_prompt = model.calls[0][1]["content"]
        assert "<p>first chunk</p>" in user_prompt
        assert "second chunk" not in user_prompt

    @pytest.mark.asyncio
    async def test_completion_style_model_gets_text(self, step, running_test):
        model = CompletionModel()
        client = CompletionClient("local", "llama3", llm=model)
        client.set_html_context("<p/>")

        snippets = await client.heal_failed_step(step, RuntimeError("boom"), running_test)

        assert len(snippets) == 2
        assert isinstance(model.prompts[0], str)
        assert 'TM.click("Submit")' in model.prompts[0]

    @pytest.mark.asyncio
    async def test_request_failure_returns_empty(self, step, running_test):
        client = CompletionClient(llm=ChatModel(error=ConnectionError("rate limited")))
        client.set_html_context("<p/>")

        assert await client.heal_failed_step(step, RuntimeError("boom"), running_test) == []

    @pytest.mark.asyncio
    async def test_response_without_calls_returns_empty(self, step, running_test):
        client = CompletionClient(llm=ChatModel(response="I cannot help with that."))
        client.set_html_context("<p/>")

        assert await client.heal_failed_step(step, RuntimeError("boom"), running_test) == []

    @pytest.mark.asyncio
    async def test_message_objects_are_unwrapped(self, step, running_test):
        response = Mock()
        response.content = "```js\nTM.click('#go')\n```"
        client = CompletionClient(llm=ChatModel(response=response))

        assert await client.heal_failed_step(step, RuntimeError("boom"), running_test) == ["TM.click('#go')"]

    @pytest.mark.asyncio
    async def test_request_count(self, step, running_test):
        client = CompletionClient(llm=ChatModel())

        await client.heal_failed_step(step, RuntimeError("boom"), running_test)
        await client.heal_failed_step(step, RuntimeError("boom"), None)

        assert client.request_count == 2
