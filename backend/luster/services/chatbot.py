"""
Customer chatbot backed by Claude

Features:
- Brand system prompt for Luster Legacy
- Storefront tools (catalog search, product details, materials)
- Tool use loop for multi-step answers
- Conversation history trimmed by message count and token budget
- Polite fallback when no API key is configured
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import anthropic

from luster.core.config import settings
from luster.domain.catalog import CONSULTATION_FEE_USD
from luster.services.chat_tools import TOOLS, execute_tool
from luster.services.contact import whatsapp_link

logger = logging.getLogger(__name__)

MAX_TOKENS = 1024

# Tool rounds before giving up on a final answer
MAX_TOOL_ROUNDS = 5

FALLBACK_MESSAGE = (
    "Thank you for reaching out to Luster Legacy! Our virtual assistant is not available right now. "
    "Please contact our design team on WhatsApp or through the contact form and we will be happy to help."
)


def estimate_tokens(text: str) -> int:
    """Rough token estimation: ~4 chars per token."""
    return len(text) // 4


def limit_history(
    history: List[Dict[str, str]],
    max_messages: Optional[int] = None,
    max_tokens: Optional[int] = None,
) -> tuple[List[Dict[str, str]], int]:
    """
    Limit conversation history to prevent context explosion.

    1. Keep at most max_messages recent messages
    2. Drop the oldest while the estimate exceeds max_tokens (keeping at least 2)

    Returns:
        Tuple of (limited_history, estimated_tokens)
    """
    if not history:
        return [], 0

    max_messages = max_messages or settings.MAX_HISTORY_MESSAGES
    max_tokens = max_tokens or settings.MAX_HISTORY_TOKENS

    limited = history[-max_messages:] if len(history) > max_messages else history.copy()
    total_tokens = sum(estimate_tokens(msg.get("content", "")) for msg in limited)

    while total_tokens > max_tokens and len(limited) > 2:
        removed = limited.pop(0)
        total_tokens -= estimate_tokens(removed.get("content", ""))

    if len(limited) < len(history):
        logger.info(f"History trimmed: {len(history)} -> {len(limited)} messages (~{total_tokens} tokens)")

    return limited, total_tokens


def get_system_prompt() -> str:
    return f"""You are the helpful assistant of Luster Legacy, a luxury custom jewelry brand based in Hyderabad, India that ships worldwide.

Our services:
1. Custom Design: bespoke pieces designed from the customer's ideas. Requires a ${CONSULTATION_FEE_USD} consultation fee, applied to the final purchase. Up to 4 design iterations.
2. Personalization: change metal, stones, size or engraving of a catalog piece. No fee.
3. Catalog purchase: pieces exactly as shown.

Payments: a 50% advance when the order is placed, the remaining 50% before shipping. Prices are shown in INR and USD.

Use the tools to look up products and materials instead of guessing. Be warm, professional and concise.
Never quote per-carat prices of stones and never invent information. If you are unsure, suggest contacting the design team on WhatsApp: {whatsapp_link()}
"""


@dataclass
class ChatResult:
    """Result of processing a chat message"""
    response: str
    tools_used: List[str]
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    estimated_cost_usd: float = 0.0
    context_messages: int = 0
    fallback: bool = False

    def __post_init__(self):
        # Claude Haiku pricing: $0.25/1M input, $1.25/1M output
        input_cost = (self.input_tokens / 1_000_000) * 0.25
        output_cost = (self.output_tokens / 1_000_000) * 1.25
        self.estimated_cost_usd = round(input_cost + output_cost, 6)


class ChatbotService:
    """
    Answers storefront questions using Claude and the storefront tools.

    Without ANTHROPIC_API_KEY every reply is the fallback message.
    """

    def __init__(self, client: Optional[anthropic.Anthropic] = None, model: Optional[str] = None):
        self.model = model or settings.CLAUDE_MODEL
        if client is not None:
            self.client = client
        elif settings.ANTHROPIC_API_KEY:
            self.client = anthropic.Anthropic(api_key=settings.ANTHROPIC_API_KEY)
        else:
            self.client = None
            logger.warning("ANTHROPIC_API_KEY not set, chatbot will answer with the fallback message")

    @property
    def configured(self) -> bool:
        return self.client is not None

    def _create(self, messages: list):
        return self.client.messages.create(
            model=self.model,
            max_tokens=MAX_TOKENS,
            system=get_system_prompt(),
            tools=TOOLS,
            messages=messages
        )

    def reply(self, message: str, history: Optional[List[Dict[str, str]]] = None) -> ChatResult:
        """
        Answer a customer message.

        Args:
            message: Customer message
            history: Previous turns as [{"role": "user"|"assistant", "content": "..."}]
        """
        if not self.configured:
            return ChatResult(response=FALLBACK_MESSAGE, tools_used=[], model=self.model, fallback=True)

        tools_used = []
        total_input_tokens = 0
        total_output_tokens = 0

        limited_history, history_tokens = limit_history(history or [])
        messages = [{"role": msg["role"], "content": msg["content"]} for msg in limited_history]
        messages.append({"role": "user", "content": message})

        logger.info(f"Chat: {len(messages)} messages, ~{history_tokens + estimate_tokens(message)} tokens")

        try:
            response = self._create(messages)
            total_input_tokens += response.usage.input_tokens
            total_output_tokens += response.usage.output_tokens

            rounds = 0
            while response.stop_reason == "tool_use" and rounds < MAX_TOOL_ROUNDS:
                rounds += 1
                tool_results = []
                for block in response.content:
                    if block.type != "tool_use":
                        continue
                    logger.info(f"Executing tool: {block.name} with input: {block.input}")
                    tools_used.append(block.name)
                    tool_results.append({
                        "type": "tool_result",
                        "tool_use_id": block.id,
                        "content": execute_tool(block.name, block.input)
                    })

                messages.append({"role": "assistant", "content": response.content})
                messages.append({"role": "user", "content": tool_results})

                response = self._create(messages)
                total_input_tokens += response.usage.input_tokens
                total_output_tokens += response.usage.output_tokens

        except anthropic.APIError as e:
            logger.error(f"Claude API error: {e}", exc_info=True)
            return ChatResult(
                response=(
                    "I'm sorry, I'm having trouble answering right now. "
                    f"Please try again in a moment or message us on WhatsApp: {whatsapp_link()}"
                ),
                tools_used=tools_used,
                model=self.model,
                input_tokens=total_input_tokens,
                output_tokens=total_output_tokens,
                fallback=True,
            )

        text_content = None
        for block in response.content:
            if getattr(block, "type", None) == "text":
                text_content = block.text
                break

        if not text_content:
            text_content = "I couldn't put together an answer. Could you rephrase your question?"

        logger.info(f"Chat completed. Tools used: {tools_used}, Tokens: {total_input_tokens}/{total_output_tokens}")

        return ChatResult(
            response=text_content,
            tools_used=tools_used,
            model=self.model,
            input_tokens=total_input_tokens,
            output_tokens=total_output_tokens,
            context_messages=len(messages)
        )


_service_instance: Optional[ChatbotService] = None


def get_chatbot_service() -> ChatbotService:
    global _service_instance
    if _service_instance is None:
        _service_instance = ChatbotService()
    return _service_instance
