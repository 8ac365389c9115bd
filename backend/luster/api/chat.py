"""
API endpoint for the storefront chat assistant

Endpoints:
- POST /api/chat - Answer a customer message
- GET /api/chat/health - Configuration status
"""
import logging
from datetime import datetime, timezone
from typing import List, Literal

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from luster.core.config import settings
from luster.services.chatbot import get_chatbot_service

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class ChatMessage(BaseModel):
    """A single message in the conversation history"""
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=1000, description="Customer's question")
    history: List[ChatMessage] = Field(default=[], description="Conversation history")


class ChatResponse(BaseModel):
    success: bool
    response: str
    tools_used: List[str]
    model: str
    fallback: bool
    usage: dict
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.post("", response_model=ChatResponse)
def chat(request: ChatRequest):
    """
    Answer a question about pieces, materials, custom design or payments.

    Without an API key the reply is a fixed message pointing to the design
    team.
    """
    try:
        logger.info(f"Chat request received: {request.message[:50]}...")

        history = [{"role": msg.role, "content": msg.content} for msg in request.history]
        result = get_chatbot_service().reply(message=request.message, history=history)

        return ChatResponse(
            success=not result.fallback,
            response=result.response,
            tools_used=result.tools_used,
            model=result.model,
            fallback=result.fallback,
            usage={
                "input_tokens": result.input_tokens,
                "output_tokens": result.output_tokens,
                "total_tokens": result.input_tokens + result.output_tokens,
                "estimated_cost_usd": result.estimated_cost_usd,
                "context_messages": result.context_messages
            },
            timestamp=_now()
        )

    except Exception as e:
        logger.error(f"Chat error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error processing chat: {str(e)}"
        )


@router.get("/health")
async def chat_health():
    api_key_configured = bool(settings.ANTHROPIC_API_KEY)
    return {
        "status": "healthy" if api_key_configured else "not_configured",
        "api_key_configured": api_key_configured,
        "model": settings.CLAUDE_MODEL,
        "timestamp": _now()
    }
