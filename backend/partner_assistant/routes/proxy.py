"""Single-workflow chat proxy."""

import logging

from fastapi import APIRouter

from partner_assistant.config import config
from partner_assistant.models import ErrorResponse, ProxyRequest, ProxyResponse
from partner_assistant.routes.responses import error_response
from partner_assistant.services.agents.prompts import CHAT_SYSTEM_PROMPT, build_proxy_query
from partner_assistant.services.openarena_client import get_openarena_client
from partner_assistant.services.openarena_exceptions import (
    InferenceError,
    InferenceTimeoutError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


@router.post(
    "/proxy",
    response_model=ProxyResponse,
    responses={500: {"model": ErrorResponse}},
)
async def proxy(request: ProxyRequest):
    """
    Forward one chat question to the given workflow.

    A single attempt is made with the chat deadline; ``extendedTimeout``
    selects the escalated deadline. On timeout the body carries
    ``isTimeout: true`` so the browser can re-issue the request with the
    extended deadline.
    """
    chat_timeouts = config.get_timeout_config()["chat"]
    timeout = chat_timeouts["escalated"] if request.extended_timeout else chat_timeouts["first_attempt"]
    query = build_proxy_query(request.query, request.context)

    logger.info(
        f"[PROXY] workflow={request.workflow_id}, query_length={len(request.query)}, "
        f"extended_timeout={request.extended_timeout}"
    )

    client = get_openarena_client()
    try:
        result = await client.invoke(
            request.workflow_id,
            query,
            CHAT_SYSTEM_PROMPT,
            request.api_token,
            timeout,
        )
    except InferenceTimeoutError as e:
        logger.warning(f"[PROXY] Timed out after {e.timeout:g}s")
        return error_response(
            500,
            "Request timed out",
            message=(
                f"The AI service did not respond within {e.timeout:g} seconds. "
                "Please try again; the next attempt may use an extended timeout."
            ),
            is_timeout=True,
        )
    except UpstreamError as e:
        logger.error(f"[PROXY] Upstream error: {e}")
        return error_response(500, e.message, details=e.body or None)
    except InferenceError as e:
        logger.error(f"[PROXY] Inference failed: {e}")
        return error_response(500, "Internal server error", message=e.message)

    return ProxyResponse(
        content=result.content,
        tokens_used=result.tokens_used,
        model_used=result.model_used,
    )
