"""Tests for omnivault.core.insights module."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from claude_agent_sdk.types import AssistantMessage, TextBlock

import omnivault.core.insights as insights
from omnivault.core.types import Habit, Task, VaultData


def _sdk_client(*messages, query_side_effect=None):
    """Claude SDK client stub yielding the given messages."""
    client = MagicMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    client.query = AsyncMock(side_effect=query_side_effect)

    async def receive():
        for message in messages:
            yield message

    client.receive_response = receive
    return client


@pytest.fixture
def patch_sdk(monkeypatch):
    """Install a stub client and return the options it was built with."""
    captured = {}

    def _patch(client):
        def _factory(**kwargs):
            captured.update(kwargs)
            return client

        monkeypatch.setattr(insights, "ClaudeSDKClient", _factory)
        return captured

    return _patch


class TestPromptHelpers:
    """Tests for prompt building."""

    def test_summarize_for_insight(self):
        data = VaultData(
            tasks=[
                Task(id="1", text="open", completed=False),
                Task(id="2", text="done", completed=True),
            ],
            habits=[Habit(id="3", name="Run", streak=4)],
        )

        pending, habits = insights.summarize_for_insight(data)

        assert pending == ["open"]
        assert habits == ["Run (4 day streak)"]

    def test_build_insight_prompt_lists_items(self):
        prompt = insights.build_insight_prompt(["a", "b"], ["Run (1 day streak)"])

        assert "[a, b]" in prompt
        assert "Run (1 day streak)" in prompt

    def test_build_insight_prompt_empty(self):
        prompt = insights.build_insight_prompt([], [])

        assert prompt.count("[None]") == 2


class TestClaudeInsightClient:
    """Tests for ClaudeInsightClient."""

    @pytest.mark.asyncio
    async def test_generate_insight_returns_text(self, patch_sdk):
        client = _sdk_client(
            AssistantMessage(content=[TextBlock(text="  Keep going.  ")], model="claude")
        )
        captured = patch_sdk(client)

        result = await insights.ClaudeInsightClient().generate_insight(["a"], [])

        assert result == "Keep going."
        assert captured["options"].max_turns == 1
        assert captured["options"].allowed_tools == []

    @pytest.mark.asyncio
    async def test_chat_uses_assistant_prompt_and_context(self, patch_sdk):
        client = _sdk_client(
            AssistantMessage(content=[TextBlock(text="Answer")], model="claude")
        )
        captured = patch_sdk(client)

        result = await insights.ClaudeInsightClient().chat("hi", "Pending tasks: 2")

        assert result == "Answer"
        assert captured["options"].system_prompt == insights.ASSISTANT_SYSTEM_PROMPT
        prompt = client.query.await_args.args[0]
        assert "Pending tasks: 2" in prompt
        assert "hi" in prompt

    @pytest.mark.asyncio
    async def test_error_returns_fallback(self, patch_sdk):
        patch_sdk(_sdk_client(query_side_effect=Exception("network down")))

        client = insights.ClaudeInsightClient()

        assert await client.generate_insight([], []) == insights.FALLBACK_INSIGHT
        assert await client.chat("hi") == insights.FALLBACK_CHAT
        assert await client.daily_quote() == insights.FALLBACK_QUOTE

    @pytest.mark.asyncio
    async def test_empty_response_returns_fallback(self, patch_sdk):
        patch_sdk(_sdk_client())

        assert await insights.ClaudeInsightClient().daily_quote() == insights.FALLBACK_QUOTE

    @pytest.mark.asyncio
    async def test_timeout_returns_fallback(self, patch_sdk):
        async def slow_query(prompt):
            await asyncio.sleep(5)

        patch_sdk(_sdk_client(query_side_effect=slow_query))

        result = await insights.ClaudeInsightClient(timeout=0.01).generate_insight([], [])

        assert result == insights.FALLBACK_INSIGHT


class TestDefaultInstance:
    """Tests for get_insight_client / set_insight_client."""

    def test_get_creates_singleton(self, monkeypatch):
        monkeypatch.setattr(insights, "_insight_client", None)

        first = insights.get_insight_client()

        assert first is insights.get_insight_client()

    def test_set_replaces_instance(self, monkeypatch):
        monkeypatch.setattr(insights, "_insight_client", None)
        replacement = insights.ClaudeInsightClient(model="custom")

        insights.set_insight_client(replacement)

        assert insights.get_insight_client() is replacement
