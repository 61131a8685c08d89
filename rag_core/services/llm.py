"""
Generator client via OpenRouter (OpenAI-compatible API).
"""

from openai import OpenAI, OpenAIError

from rag_core.config.settings import settings
from rag_core.errors import GenerationError
from rag_core.logger import get_logger
from rag_core.rag.models import GenerationResult, TokenUsage
from rag_core.rag.prompts import (
    CHAT_SYSTEM_PROMPT,
    GROUNDED_PROMPT,
    HISTORY_SYSTEM_PROMPT,
    SYSTEM_PROMPT,
)

logger = get_logger(__name__)


class LLMClient:
    def __init__(self, client: OpenAI | None = None, model: str | None = None):
        self.client = client or OpenAI(
            base_url=settings.openrouter_base_url,
            api_key=settings.openrouter_api_key,
        )
        self.model = model or settings.llm_model

    def generate(
        self,
        question: str,
        context: str | None = None,
        history: list[dict] | None = None,
        system: str | None = None,
    ) -> GenerationResult:
        """
        Answer a question, grounded in context when one is given.

        Without context the question is sent as is. The last
        settings.history_turns turns of history go between the system
        prompt and the question.
        """
        prompt = (
            GROUNDED_PROMPT.format(context=context, question=question)
            if context
            else question
        )
        messages = self._build_messages(
            prompt, system or self._default_system(context, history), history
        )

        logger.info(
            "generation_request",
            model=self.model,
            with_context=bool(context),
            history_turns=len(messages) - 2,
        )
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=settings.llm_max_tokens,
                temperature=settings.llm_temperature,
            )
        except OpenAIError as e:
            logger.error("generation_failed", model=self.model, error=str(e))
            raise GenerationError(f"Generator request failed: {e}") from e

        usage = response.usage
        result = GenerationResult(
            answer=response.choices[0].message.content or "",
            usage=TokenUsage(
                input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            ),
        )
        logger.info(
            "generation_done",
            input_tokens=result.usage.input_tokens,
            output_tokens=result.usage.output_tokens,
        )
        return result

    def __call__(
        self,
        question: str,
        context: str | None = None,
        history: list[dict] | None = None,
    ) -> GenerationResult:
        return self.generate(question, context, history)

    @staticmethod
    def _default_system(context: str | None, history: list[dict] | None) -> str:
        if history:
            return CHAT_SYSTEM_PROMPT if context else HISTORY_SYSTEM_PROMPT
        return SYSTEM_PROMPT

    @staticmethod
    def _build_messages(
        prompt: str, system: str, history: list[dict] | None = None
    ) -> list[dict]:
        messages = [{"role": "system", "content": system}]
        for turn in (history or [])[-settings.history_turns :]:
            messages.append({"role": turn["role"], "content": turn["content"]})
        messages.append({"role": "user", "content": prompt})
        return messages
