"""Generative-text collaborator: vault insights, assistant chat and daily quotes."""

import asyncio
import logging
from typing import Protocol

from claude_agent_sdk import ClaudeAgentOptions, ClaudeSDKClient
from claude_agent_sdk.types import AssistantMessage, ResultMessage, TextBlock

from omnivault.core.config import INSIGHT_MODEL, INSIGHT_TIMEOUT_SECONDS
from omnivault.core.types import VaultData

logger = logging.getLogger(__name__)

FALLBACK_INSIGHT = "The Vault stands ready. Core encryption active. Your directives await."
FALLBACK_CHAT = "Internal communication protocol failed. Retrying..."
FALLBACK_QUOTE = "Discipline equals freedom. - Jocko Willink"

ASSISTANT_SYSTEM_PROMPT = (
    "You are OmniAI, the intelligence core of the OmniVault. You provide secure, "
    "precise, and professional assistance."
)
QUOTE_PROMPT = (
    "Generate a short, powerful motivational quote themed around security, "
    "focus, or excellence. Format: Quote - Author"
)


class InsightProvider(Protocol):
    """Remote text generation. Implementations never raise on transport failure."""

    async def generate_insight(
        self, pending_tasks: list[str], habit_summaries: list[str]
    ) -> str:
        pass

    async def chat(self, query: str, context: str | None = None) -> str:
        pass

    async def daily_quote(self) -> str:
        pass


def summarize_for_insight(data: VaultData) -> tuple[list[str], list[str]]:
    """Extract pending task texts and habit summaries from vault data."""
    pending = [t.text for t in data.tasks if not t.completed]
    habits = [f"{h.name} ({h.streak} day streak)" for h in data.habits]
    return pending, habits


def build_insight_prompt(pending_tasks: list[str], habit_summaries: list[str]) -> str:
    """Build the briefing prompt for the dashboard insight card."""
    return (
        'Act as a high-level productivity intelligence officer for a secure "OmniVault" dashboard.\n'
        f"Current pending tasks: [{', '.join(pending_tasks) or 'None'}]\n"
        f"Active habits: [{', '.join(habit_summaries) or 'None'}]\n\n"
        "Provide a concise, motivating, and strategic 1-sentence insight or briefing "
        '(25 words max). Use a tone that is professional, slightly "high-tech", and supportive.'
    )


class ClaudeInsightClient:
    """Generates advisory text through the Claude Agent SDK."""

    def __init__(self, model: str | None = None, timeout: float | None = None):
        """
        Initialize the client.

        Args:
            model: Model override (defaults to OMNIVAULT_INSIGHT_MODEL)
            timeout: Seconds before a request falls back (defaults to config)
        """
        self.model = model or INSIGHT_MODEL
        self.timeout = INSIGHT_TIMEOUT_SECONDS if timeout is None else timeout

    def _build_options(self, system_prompt: str | None) -> ClaudeAgentOptions:
        return ClaudeAgentOptions(
            system_prompt=system_prompt,
            allowed_tools=[],
            max_turns=1,
            model=self.model,
        )

    async def _collect(self, prompt: str, system_prompt: str | None) -> str:
        result_text = ""
        async with ClaudeSDKClient(options=self._build_options(system_prompt)) as client:
            await client.query(prompt)
            async for message in client.receive_response():
                if isinstance(message, AssistantMessage):
                    for block in message.content:
                        if isinstance(block, TextBlock):
                            result_text += block.text
                elif isinstance(message, ResultMessage) and message.result:
                    result_text = message.result
        return result_text.strip()

    async def _ask(
        self, prompt: str, fallback: str, system_prompt: str | None = None
    ) -> str:
        try:
            text = await asyncio.wait_for(
                self._collect(prompt, system_prompt), timeout=self.timeout
            )
        except Exception as e:
            logger.debug(f"Generation failed, using fallback: {e}")
            return fallback
        return text or fallback

    async def generate_insight(
        self, pending_tasks: list[str], habit_summaries: list[str]
    ) -> str:
        return await self._ask(
            build_insight_prompt(pending_tasks, habit_summaries), FALLBACK_INSIGHT
        )

    async def chat(self, query: str, context: str | None = None) -> str:
        prompt = f"Context of user's vault: {context}\n\nUser Query: {query}"
        return await self._ask(prompt, FALLBACK_CHAT, ASSISTANT_SYSTEM_PROMPT)

    async def daily_quote(self) -> str:
        return await self._ask(QUOTE_PROMPT, FALLBACK_QUOTE)


# Default instance
_insight_client: ClaudeInsightClient | None = None


def get_insight_client() -> ClaudeInsightClient:
    """Get or create the default insight client instance."""
    global _insight_client
    if _insight_client is None:
        _insight_client = ClaudeInsightClient()
    return _insight_client


def set_insight_client(client: ClaudeInsightClient) -> None:
    """Set the default insight client instance (for testing)."""
    global _insight_client
    _insight_client = client
