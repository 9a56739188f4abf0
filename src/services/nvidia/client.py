import logging
import traceback
from typing import Any, AsyncIterator, Dict, Optional

from openai import APIConnectionError, APITimeoutError, AsyncOpenAI, OpenAIError

from src.exceptions import GenerationConnectionError, GenerationError, GenerationTimeoutError

logger = logging.getLogger(__name__)

BLOCKED_MESSAGE = "AI generation failed. The prompt may have been blocked."


class NvidiaClient:
    """Async client for the NVIDIA-hosted OpenAI-compatible API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://integrate.api.nvidia.com/v1",
        default_model: str = "meta/llama-3.3-70b-instruct",
        timeout: float = 300.0,
    ):
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)
        self.timeout = float(timeout)
        self.default_model = default_model

    async def health_check(self) -> Dict[str, Any]:
        """Check if NVIDIA LLM endpoint is reachable."""
        try:
            logger.info("Performing NVIDIA LLM health check...")
            models = await self.client.models.list()
            return {
                "status": "healthy",
                "message": "NVIDIA LLM endpoint reachable",
                "model_count": len(models.data),
            }
        except APITimeoutError as e:
            logger.error(f"[LLM ERROR] NVIDIA API timeout. Timeout: {self.timeout}s Details: {e}")
            raise GenerationTimeoutError(f"LLM service timeout: {e}") from e
        except APIConnectionError as e:
            logger.error(
                f"[LLM ERROR] Connection to NVIDIA API failed.\n"
                f"Base URL: {self.client.base_url}\n"
                f"Details: {e}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )
            raise GenerationConnectionError(f"Cannot connect to LLM service: {e}") from e
        except OpenAIError as e:
            raise GenerationError(f"Health check failed: {e}") from e

    async def generate_stream(
        self,
        prompt: str,
        model: Optional[str] = None,
        **kwargs,
    ) -> AsyncIterator[str]:
        """Stream the completion text fragment by fragment, in generation order."""
        model = model or self.default_model
        logger.info(f"Starting streaming generation: model={model}")

        try:
            stream = await self.client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                temperature=kwargs.get("temperature", 0.7),
                top_p=kwargs.get("top_p", 0.9),
                max_tokens=kwargs.get("max_tokens", 8192),
                stream=True,
            )
            async for chunk in stream:
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                if choice.delta is not None and choice.delta.content:
                    yield choice.delta.content
                if choice.finish_reason == "content_filter":
                    logger.error(f"Generation blocked by content filter: model={model}")
                    raise GenerationError(BLOCKED_MESSAGE)

        except GenerationError:
            raise
        except APITimeoutError as e:
            raise GenerationTimeoutError(f"LLM streaming timeout: {e}") from e
        except APIConnectionError as e:
            raise GenerationConnectionError(f"Cannot connect to LLM stream: {e}") from e
        except OpenAIError as e:
            raise GenerationError(f"Failed to generate flashcards: {e}") from e

    async def close(self) -> None:
        await self.client.close()
