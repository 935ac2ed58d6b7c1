"""
OpenAI-compatible chat completion route backed by metaso search.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from metaso_api.models.request import ChatCompletionRequest
from metaso_api.services.completions import create_completion, create_completion_stream
from metaso_api.services.metaso import MetasoClient, get_metaso_client
from metaso_api.utils.auth import get_token_from_request, pick_token
from metaso_api.utils.exceptions import (
    UpstreamAuthFailure,
    UpstreamError,
    raise_bad_gateway,
    raise_bad_request,
    raise_unauthorized,
)

router = APIRouter()


@router.post("/chat/completions")
async def chat_completions(
    body: ChatCompletionRequest,
    request: Request,
    client: MetasoClient = Depends(get_metaso_client),
):
    """
    POST /v1/chat/completions

    Authorization: Bearer <uid>-<sid>[,<uid>-<sid>...] (one token is picked per request)

    With "stream": true, returns an SSE stream of chat.completion.chunk
    records ending with "data: [DONE]". Otherwise returns one chat.completion.
    """
    authorization = get_token_from_request(request)
    token = pick_token(authorization) if authorization else None
    if not token:
        raise_unauthorized("Missing metaso token")

    if not body.messages:
        raise_bad_request("messages must not be empty")
    messages = [m.model_dump(exclude_none=True) for m in body.messages]

    try:
        if body.stream:
            frames = await create_completion_stream(client, body.model, messages, token)
            return StreamingResponse(
                frames,
                media_type="text/event-stream",
                headers={
                    "Cache-Control": "no-cache",
                    "Connection": "keep-alive",
                    "X-Accel-Buffering": "no",  # Disable nginx buffering
                },
            )
        return await create_completion(client, body.model, messages, token)
    except UpstreamAuthFailure as e:
        raise_unauthorized(str(e))
    except UpstreamError as e:
        raise_bad_gateway(str(e))
