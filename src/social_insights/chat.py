"""Question answering grounded on the active dataset."""

from __future__ import annotations

from typing import Dict, List

from .context import DEFAULT_CONTEXT_LIMIT, build_system_prompt, select_context
from .database import SocialInsightsDatabase
from .llm_client import LLMClient
from .logging_config import get_logger
from .session import DatasetSession

logger = get_logger("chat")

DEFAULT_HISTORY_WINDOW = 5


class ChatAssistant:
    """Builds grounded prompts, calls the model and records the transcript."""

    def __init__(
        self,
        client: LLMClient,
        db: SocialInsightsDatabase,
        session: DatasetSession,
        *,
        context_limit: int = DEFAULT_CONTEXT_LIMIT,
        history_window: int = DEFAULT_HISTORY_WINDOW,
    ) -> None:
        self.client = client
        self.db = db
        self.session = session
        self.context_limit = context_limit
        self.history_window = history_window

    def build_messages(self, question: str) -> List[Dict[str, str]]:
        """Assemble system prompt, recent transcript and the new question."""
        dataset = self.session.dataset
        records = select_context(dataset, self.session.focused, self.context_limit)
        system_prompt = build_system_prompt(len(dataset), records)

        history = self.db.get_history(limit=self.history_window)
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend(message.to_chat_message() for message in history)
        messages.append({"role": "user", "content": question})
        return messages

    def ask(self, question: str) -> str:
        question = self._validate(question)
        answer = self.client.complete(self.build_messages(question))
        self._record(question, answer)
        return answer

    async def ask_async(self, question: str) -> str:
        question = self._validate(question)
        answer = await self.client.complete_async(self.build_messages(question))
        self._record(question, answer)
        return answer

    @staticmethod
    def _validate(question: str) -> str:
        text = (question or "").strip()
        if not text:
            raise ValueError("message must not be empty")
        return text

    def _record(self, question: str, answer: str) -> None:
        self.db.append_message("user", question)
        self.db.append_message("assistant", answer)
        logger.info(f"Answered question ({len(answer)} chars)")
