"""LLM service for generating study material through an OpenAI-compatible API."""
import json
import re
import time
from typing import Any, Dict, List, Optional, Sequence

import httpx
from openai import AsyncOpenAI

from app.exceptions import LLMError, LLMResponseError
from app.models.document import ScoredChunk
from app.services.prompts import (
    ChatPrompt,
    ExplainConceptPrompt,
    FlashcardPrompt,
    QuizPrompt,
    SummaryPrompt,
)
from app.utils.logger import logger
from app.utils.metrics import LLM_LATENCY, LLM_REQUESTS

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

DIFFICULTIES = ("easy", "medium", "hard")


def parse_json_array(content: str) -> List[Dict[str, Any]]:
    """
    Parse a JSON array out of a model response.

    Markdown code fences and text around the outermost brackets are ignored.

    Raises:
        LLMResponseError: If no JSON array of objects can be parsed
    """
    text = _CODE_FENCE.sub("", (content or "").strip())
    start, end = text.find("["), text.rfind("]")
    if start == -1 or end <= start:
        raise LLMResponseError("LLM response did not contain a JSON array")

    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"LLM response was not valid JSON: {e.msg}")

    items = [item for item in data if isinstance(item, dict)]
    if not items:
        raise LLMResponseError("LLM response contained no usable items")
    return items


def _difficulty(value: Any) -> str:
    value = str(value or "").strip().lower()
    return value if value in DIFFICULTIES else "medium"


class LLMService:
    """Service for interacting with the LLM provider."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.deepseek.com",
        model: str = "deepseek-chat",
        temperature: float = 0.7,
        timeout: float = 60.0,
    ):
        """
        Initialize LLM service.

        Args:
            api_key: Provider API key
            base_url: Base URL of the OpenAI-compatible API
            model: Model name to use
            temperature: Sampling temperature for generation
            timeout: Request timeout in seconds
        """
        if not api_key:
            raise ValueError("LLM_API_KEY environment variable is required")

        self.model = model
        self.temperature = temperature

        # Direct connection, ignore proxy environment variables
        http_client = httpx.AsyncClient(timeout=timeout, trust_env=False)
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url.rstrip("/"),
            http_client=http_client,
        )

    async def complete(
        self,
        operation: str,
        system_message: str,
        prompt: str,
        max_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Run one chat completion.

        Args:
            operation: Name used for metrics and logs
            system_message: System prompt
            prompt: User prompt
            max_tokens: Optional completion token limit

        Returns:
            Dictionary with content, token_usage and response_time_ms

        Raises:
            LLMError: If the provider call fails
        """
        start_time = time.time()
        kwargs: Dict[str, Any] = {}
        if max_tokens:
            kwargs["max_tokens"] = max_tokens

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_message},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                **kwargs,
            )
        except Exception as e:
            LLM_REQUESTS.labels(operation=operation, outcome="error").inc()
            logger.error(f"Error calling LLM for {operation}: {str(e)}", exc_info=True)
            raise LLMError(f"Failed to generate {operation}: {str(e)}")

        elapsed = time.time() - start_time
        LLM_LATENCY.labels(operation=operation).observe(elapsed)
        LLM_REQUESTS.labels(operation=operation, outcome="success").inc()

        content = response.choices[0].message.content or ""
        token_usage = None
        if response.usage is not None:
            token_usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        logger.info(
            f"LLM {operation} response generated",
            extra={
                "token_usage": token_usage,
                "response_time_ms": elapsed * 1000,
                "answer_length": len(content),
            },
        )

        return {
            "content": content,
            "token_usage": token_usage,
            "response_time_ms": elapsed * 1000,
        }

    async def generate_flashcards(self, text: str, count: int = 10) -> List[Dict[str, str]]:
        """Generate question/answer flashcards from document text."""
        result = await self.complete(
            "flashcards", FlashcardPrompt.SYSTEM_MESSAGE, FlashcardPrompt.build(text, count)
        )
        cards = []
        for item in parse_json_array(result["content"]):
            question = str(item.get("question") or "").strip()
            answer = str(item.get("answer") or "").strip()
            if question and answer:
                cards.append(
                    {
                        "question": question,
                        "answer": answer,
                        "difficulty": _difficulty(item.get("difficulty")),
                    }
                )
        if not cards:
            raise LLMResponseError("LLM returned no valid flashcards")
        return cards[:count]

    async def generate_quiz(self, text: str, num_questions: int = 10) -> List[Dict[str, Any]]:
        """
        Generate multiple-choice questions from document text.

        Returns:
            Question dicts with question, options, correct_answer, explanation, difficulty
        """
        result = await self.complete(
            "quiz", QuizPrompt.SYSTEM_MESSAGE, QuizPrompt.build(text, num_questions)
        )
        questions = []
        for item in parse_json_array(result["content"]):
            question = str(item.get("question") or "").strip()
            options = item.get("options")
            if not question or not isinstance(options, list) or len(options) < 2:
                continue
            questions.append(
                {
                    "question": question,
                    "options": [str(option) for option in options],
                    "correct_answer": item.get("correct_answer"),
                    "explanation": str(item.get("explanation") or ""),
                    "difficulty": _difficulty(item.get("difficulty")),
                }
            )
        if not questions:
            raise LLMResponseError("LLM returned no valid quiz questions")
        return questions[:num_questions]

    async def generate_summary(self, text: str) -> str:
        result = await self.complete(
            "summary", SummaryPrompt.SYSTEM_MESSAGE, SummaryPrompt.build(text)
        )
        return result["content"].strip()

    async def chat_with_context(self, question: str, chunks: Sequence[ScoredChunk]) -> str:
        result = await self.complete(
            "chat", ChatPrompt.SYSTEM_MESSAGE, ChatPrompt.build(question, chunks)
        )
        return result["content"].strip()

    async def explain_concept(self, concept: str, chunks: Sequence[ScoredChunk]) -> str:
        result = await self.complete(
            "explain_concept",
            ExplainConceptPrompt.SYSTEM_MESSAGE,
            ExplainConceptPrompt.build(concept, chunks),
        )
        return result["content"].strip()

    async def close(self):
        """Close HTTP client."""
        await self.client.close()
