import asyncio                       # Sleeping between attempts
import logging                       # For logging attempt failures
from typing import Any, Awaitable, Callable, Dict, Optional

import openai
from openai import AsyncOpenAI       # OpenAI-compatible async client (works against Groq)
from openai.types.chat import ChatCompletion

from config import LLMConfig
from exceptions import LLMAttemptError, LLMRateLimitError, LLMResponseError, LLMUnavailableError
from prompt_builder import SYSTEM_PROMPT
from retry_policy import Exhausted, RetryPolicy, RetryState
from utils import extract_json


# -----------------------------------
# Chat-completions client with retries
# -----------------------------------
class LLMClient:
    """
    Sends one analysis prompt to a chat-completions endpoint and returns the
    parsed JSON object. Holds no per-request state, so one instance can
    serve many companies concurrently.
    """

    def __init__(
        self,
        config: LLMConfig,
        client: Optional[AsyncOpenAI] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config
        # SDK retries are off; retry decisions belong to RetryPolicy
        self.client = client or AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=0,
        )
        self.sleep = sleep

    def policy(self, max_attempts: Optional[int] = None) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=max_attempts or self.config.max_attempts,
            rate_limit_delay=self.config.rate_limit_delay,
            backoff_seconds=self.config.backoff_seconds,
        )

    async def call(self, prompt: str, max_attempts: Optional[int] = None) -> Dict[str, Any]:
        """Return the model's JSON object, or raise LLMUnavailableError once attempts run out."""
        policy = self.policy(max_attempts)
        state = RetryState()

        while True:
            try:
                return await self._attempt(prompt)
            except LLMAttemptError as e:
                step, state = policy.next_step(state, e)
                if isinstance(step, Exhausted):
                    logging.error(f"[LLM] All {state.attempt} attempts failed: {e}")
                    raise LLMUnavailableError(step.last_error, state.attempt) from e

                if isinstance(e, LLMRateLimitError):
                    logging.warning(
                        f"[LLM] Rate limited. Waiting {step.delay:g}s before retry "
                        f"{state.attempt + 1}/{policy.max_attempts}"
                    )
                else:
                    logging.warning(f"[LLM] Attempt {state.attempt} failed ({e}), retrying in {step.delay:g}s")
                await self.sleep(step.delay)

    # One POST to the endpoint; every failure becomes an LLMAttemptError
    async def _attempt(self, prompt: str) -> Dict[str, Any]:
        try:
            response = await self.client.chat.completions.create(
                model=self.config.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
        except openai.RateLimitError as e:
            raise LLMRateLimitError() from e
        except openai.APIStatusError as e:
            raise LLMResponseError(f"LLM API error: {e.status_code}", status_code=e.status_code) from e
        except openai.APIConnectionError as e:
            raise LLMResponseError(f"LLM transport error: {e}") from e
        except openai.APIError as e:
            raise LLMResponseError(f"LLM API error: {e}") from e

        # Non-JSON 2xx bodies come back from the SDK as plain text
        if not isinstance(response, ChatCompletion):
            raise LLMResponseError("LLM response is not a chat completion")

        text = None
        if response.choices and response.choices[0].message is not None:
            text = response.choices[0].message.content
        if not text:
            raise LLMResponseError("Empty response from LLM")

        try:
            parsed = extract_json(text)
        except ValueError as e:
            raise LLMResponseError(f"Unparsable LLM response: {e}") from e

        logging.debug(f"[LLM] Received data keys: {sorted(parsed)}")
        return parsed


def build_llm_client(config: LLMConfig, **kwargs) -> Optional[LLMClient]:
    """Return a client, or None when no credential is configured (fallback mode)."""
    if not config.enabled:
        return None
    return LLMClient(config, **kwargs)
