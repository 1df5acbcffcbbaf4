"""Client for the OpenArena inference endpoint."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from partner_assistant.config import config
from partner_assistant.services.openarena_exceptions import (
    EmptyResponseError,
    InferenceTimeoutError,
    TransportError,
    UpstreamError,
)
from partner_assistant.services.result import Result

logger = logging.getLogger(__name__)

# Failures worth a second attempt with the same deadline. Timeouts are
# excluded: they belong to the escalator's extended-deadline retry.
TRANSIENT_ERRORS = (UpstreamError, EmptyResponseError, TransportError)


@dataclass(frozen=True)
class InferenceResult:
    """Successful answer from one remote call."""

    content: str
    tokens_used: int = 0
    model_used: str = ""
    inference_time: float = 0.0


def decode_answer(payload: Any, model: str) -> Result[str]:
    """
    Extract the answer text from an inference response envelope.

    The endpoint returns ``{"result": {"answer": {<model>: <text>, ...}}}``
    but the inner map is not guaranteed to be keyed by the requested
    model. Lookup order: the requested model's entry, then the first
    non-blank string value in the map. A bare string ``answer`` is also
    accepted. Anything else decodes to ``EmptyResponseError``.

    Args:
        payload: Parsed JSON body of a 2xx response
        model: Model name the request was issued for

    Returns:
        Result.ok(text) or Result.err(EmptyResponseError)
    """
    if not isinstance(payload, dict):
        return Result.err(EmptyResponseError("Response body is not a JSON object"))

    result_data = payload.get("result")
    if not isinstance(result_data, dict):
        return Result.err(EmptyResponseError("Response has no 'result' object"))

    answer = result_data.get("answer")
    if isinstance(answer, str):
        if answer.strip():
            return Result.ok(answer)
        return Result.err(EmptyResponseError("Answer text is blank"))

    if not isinstance(answer, dict):
        return Result.err(EmptyResponseError("Response has no 'answer' map"))

    preferred = answer.get(model)
    if isinstance(preferred, str) and preferred.strip():
        return Result.ok(preferred)

    for value in answer.values():
        if isinstance(value, str) and value.strip():
            return Result.ok(value)

    return Result.err(EmptyResponseError("Answer map contains no text"))


def extract_tokens(payload: Any) -> int:
    """Read ``tokens_used`` from a response body, defaulting to 0."""
    if isinstance(payload, dict):
        tokens = payload.get("tokens_used")
        if isinstance(tokens, (int, float)) and tokens >= 0:
            return int(tokens)
    return 0


class OpenArenaClient:
    """
    Thin async wrapper around a single POST to the inference endpoint.

    Each call enforces the caller's deadline, raises a distinct exception
    per failure kind, and is retried a small fixed number of times on
    transient failures.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        temperature: Optional[float] = None,
    ):
        model_config = config.get_model_config()
        retry_config = config.get_retry_config()

        self.base_url = base_url or config.settings.openarena_base_url
        self.model = model or model_config["name"]
        self.temperature = temperature if temperature is not None else model_config["temperature"]
        self.max_attempts = max_attempts if max_attempts is not None else retry_config["max_attempts"]
        self.retry_delay = retry_delay if retry_delay is not None else retry_config["delay"]
        self._http_client = http_client
        self._owns_http_client = http_client is None

    @property
    def http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient()
        return self._http_client

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None

    def build_payload(
        self,
        workflow_id: str,
        prompt: str,
        system_prompt: str,
        max_tokens: int,
    ) -> dict[str, Any]:
        """Build the JSON body expected by the inference endpoint."""
        return {
            "workflow_id": workflow_id,
            "query": prompt,
            "is_persistence_allowed": False,
            "modelparams": {
                self.model: {
                    "temperature": str(self.temperature),
                    "max_tokens": str(max_tokens),
                    "system_prompt": system_prompt,
                }
            },
        }

    async def invoke(
        self,
        workflow_id: str,
        prompt: str,
        system_prompt: str,
        api_token: str,
        timeout: float,
        max_tokens: Optional[int] = None,
    ) -> InferenceResult:
        """
        Run one inference with transient retries.

        Args:
            workflow_id: Remote workflow to run
            prompt: Full query text
            system_prompt: System prompt sent in the model params
            api_token: Bearer token of the calling user
            timeout: Deadline in seconds for each attempt
            max_tokens: Completion budget (defaults to the chat budget)

        Returns:
            InferenceResult with the decoded answer

        Raises:
            InferenceTimeoutError: The deadline elapsed (never retried here)
            UpstreamError: Non-2xx response after all attempts
            EmptyResponseError: No answer text after all attempts
            TransportError: Connection failure after all attempts
        """
        if max_tokens is None:
            max_tokens = config.get_model_config()["chat_max_tokens"]

        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            wait=wait_fixed(self.retry_delay),
            stop=stop_after_attempt(self.max_attempts),
            reraise=True,
        ):
            with attempt:
                attempt_number = attempt.retry_state.attempt_number
                if attempt_number > 1:
                    logger.info(
                        f"[OPENARENA RETRY] workflow={workflow_id}, "
                        f"attempt={attempt_number}/{self.max_attempts}"
                    )
                return await self._invoke_once(
                    workflow_id, prompt, system_prompt, api_token, timeout, max_tokens
                )

    async def _invoke_once(
        self,
        workflow_id: str,
        prompt: str,
        system_prompt: str,
        api_token: str,
        timeout: float,
        max_tokens: int,
    ) -> InferenceResult:
        """Issue a single POST bounded by ``timeout`` seconds."""
        payload = self.build_payload(workflow_id, prompt, system_prompt, max_tokens)
        headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }

        logger.info(
            f"[OPENARENA] Calling workflow={workflow_id}, prompt_length={len(prompt)}, "
            f"timeout={timeout:g}s"
        )
        start_time = time.monotonic()

        try:
            response = await asyncio.wait_for(
                self.http_client.post(self.base_url, json=payload, headers=headers, timeout=timeout),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning(f"[OPENARENA TIMEOUT] workflow={workflow_id} after {timeout:g}s")
            raise InferenceTimeoutError(timeout, workflow_id=workflow_id, original_error=e)
        except httpx.TransportError as e:
            logger.warning(f"[OPENARENA NETWORK ERROR] workflow={workflow_id} - {e}")
            raise TransportError(f"Network error: {e}", workflow_id=workflow_id, original_error=e)

        if not response.is_success:
            logger.error(f"[OPENARENA ERROR] workflow={workflow_id}, status={response.status_code}")
            raise UpstreamError(
                response.status_code,
                body=response.text,
                workflow_id=workflow_id,
                reason=response.reason_phrase,
            )

        try:
            body = response.json()
        except ValueError:
            raise EmptyResponseError("Response body is not valid JSON", workflow_id=workflow_id)

        decoded = decode_answer(body, self.model)
        if not decoded:
            error = decoded.error
            error.workflow_id = workflow_id
            logger.warning(f"[OPENARENA EMPTY] workflow={workflow_id} - {error.message}")
            raise error

        elapsed = time.monotonic() - start_time
        tokens = extract_tokens(body)
        logger.info(
            f"[OPENARENA SUCCESS] workflow={workflow_id}, tokens={tokens}, latency={elapsed:.2f}s"
        )
        return InferenceResult(
            content=decoded.value,
            tokens_used=tokens,
            model_used=self.model,
            inference_time=elapsed,
        )

    async def health_check(self, api_token: str, timeout: float = 10.0) -> bool:
        """Check that the endpoint is reachable and accepts the token."""
        root = self.base_url.split("/v1/")[0]
        try:
            response = await self.http_client.get(
                f"{root}/v2/workflow",
                params={"show_all": "true"},
                headers={"Authorization": f"Bearer {api_token}"},
                timeout=timeout,
            )
            return response.is_success
        except httpx.HTTPError as e:
            logger.error(f"[OPENARENA] Health check failed: {e}")
            return False


# Singleton instance
_openarena_client: Optional[OpenArenaClient] = None


def get_openarena_client() -> OpenArenaClient:
    """
    Get the process-wide inference client.

    Returns:
        OpenArenaClient instance sharing one HTTP connection pool
    """
    global _openarena_client
    if _openarena_client is None:
        _openarena_client = OpenArenaClient()
    return _openarena_client


async def close_openarena_client() -> None:
    """Release the shared HTTP connection pool."""
    global _openarena_client
    if _openarena_client is not None:
        await _openarena_client.aclose()
        _openarena_client = None
