"""Ordered model fallback for answer generation.

Models are tried one at a time in priority order. A failing model is
recorded and the next one is tried immediately; there is no backoff and
no concurrent racing, so each request makes at most one call per model.
"""

import logging
from dataclasses import dataclass, field

from veritas.errors import ChainExhaustedError
from veritas.models import Completion, EnrichedChunk, ModelAttempt, ParsedResponse
from veritas.rag.interfaces import CompletionService
from veritas.rag.prompts import build_system_prompt, build_user_prompt
from veritas.rag.response_parser import parse_response

logger = logging.getLogger(__name__)


@dataclass
class GenerationOutcome:
    model_id: str
    completion: Completion
    parsed: ParsedResponse
    system_prompt: str
    user_prompt: str
    attempts: list[ModelAttempt] = field(default_factory=list)


class GenerationFallbackChain:
    def __init__(
        self,
        completion: CompletionService,
        models: tuple[str, ...],
        domain: str,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> None:
        self.completion = completion
        self.models = tuple(models)
        self.domain = domain
        self.temperature = temperature
        self.max_tokens = max_tokens

    def _attempt(
        self, model_id: str, system_prompt: str, user_prompt: str
    ) -> tuple[ModelAttempt, Completion | None]:
        try:
            completion = self.completion.complete(
                model_id,
                system_prompt,
                user_prompt,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except Exception as e:
            return ModelAttempt(model_id=model_id, outcome="failure", error=str(e)), None
        return ModelAttempt(model_id=model_id, outcome="success"), completion

    def run(self, question: str, chunks: list[EnrichedChunk]) -> GenerationOutcome:
        """Generate an answer with the first model that succeeds.

        Args:
            question: Trimmed user question.
            chunks: Prompt passages, in ``[Source N]`` order.

        Returns:
            GenerationOutcome for the successful model, with the attempt log.

        Raises:
            ChainExhaustedError: Every model failed; the message carries the
                last model's error.
        """
        system_prompt = build_system_prompt(question, chunks, self.domain)
        user_prompt = build_user_prompt(question)
        attempts: list[ModelAttempt] = []

        for model_id in self.models:
            logger.info(f"Attempting to generate response with {model_id}...")
            attempt, completion = self._attempt(model_id, system_prompt, user_prompt)
            attempts.append(attempt)

            if attempt.outcome == "failure":
                logger.warning(f"Failed to generate with {model_id}: {attempt.error}")
                continue

            logger.info(f"Successfully generated response with {model_id}")
            return GenerationOutcome(
                model_id=model_id,
                completion=completion,
                parsed=parse_response(completion.content),
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                attempts=attempts,
            )

        last_error = attempts[-1].error if attempts else "no models configured"
        logger.error(f"All {len(attempts)} models failed")
        raise ChainExhaustedError(attempts, last_error)
