"""
AI content generator for the admin back-office

Writes product copy (title, tagline, short and detailed description) from
the generator inputs, prices the piece with the pricing calculator, and
polishes customer testimonials into a brief quote plus a longer story.
"""
import asyncio
import json
import logging
import re
from typing import Dict, Optional

import anthropic

from luster.core.config import settings
from luster.domain.product import AIInputs, ProductUpdate
from luster.domain.testimonial import TestimonialDraft
from luster.repositories.product_repository import ProductRepository
from luster.services.errors import ContentGenerationError, NotFoundError
from luster.services.pricing import PricingService, get_pricing_service, price_request_from_inputs

logger = logging.getLogger(__name__)

MAX_TOKENS = 1500

CONTENT_FIELDS = ("title", "tagline", "short_description", "detailed_description")

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_BRIEF = re.compile(r"BRIEF:\s*(.*?)(?=\s*STORY:|$)", re.IGNORECASE | re.DOTALL)
_STORY = re.compile(r"STORY:\s*(.*)$", re.IGNORECASE | re.DOTALL)

PRODUCT_SYSTEM_PROMPT = (
    "You are the copywriter of Luster Legacy, a luxury jewelry brand. Write elegant, specific copy "
    "about craftsmanship, materials and design. Give every piece a distinctive, evocative title; "
    "avoid formulas like 'The [Metal] [Stone] [Product]'. Answer with JSON only."
)


def parse_json_content(text: str) -> Dict[str, str]:
    """
    Parse the model's JSON answer, tolerating a ```json fence.

    Raises:
        ContentGenerationError: not JSON, or a required field is missing
    """
    cleaned = _CODE_FENCE.sub("", text.strip()).strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ContentGenerationError(f"AI response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ContentGenerationError("AI response is not a JSON object")

    missing = [field for field in CONTENT_FIELDS if not data.get(field)]
    if missing:
        raise ContentGenerationError(f"AI response is missing fields: {', '.join(missing)}")

    return {field: str(data[field]).strip() for field in CONTENT_FIELDS}


def parse_testimonial(text: str) -> Dict[str, str]:
    """Split a 'BRIEF: ... STORY: ...' answer; without markers it is all brief"""
    text = text.strip()
    brief_match = _BRIEF.search(text)
    story_match = _STORY.search(text)
    return {
        "brief": brief_match.group(1).strip() if brief_match else text,
        "story": story_match.group(1).strip() if story_match else "",
    }


def build_product_prompt(inputs: AIInputs) -> str:
    gems = ", ".join(
        f"{gem.name} ({gem.carats} ct)" if gem.carats else gem.name
        for gem in inputs.primary_gems
    ) or "none"
    other = ""
    if inputs.other_stone_type:
        weight = f" ({inputs.other_stone_weight} ct)" if inputs.other_stone_weight else ""
        other = f"\n- Other stone: {inputs.other_stone_type}{weight}"
    notes = f"\n- Designer notes: {inputs.user_description}" if inputs.user_description else ""
    weight = f"{inputs.metal_weight} g" if inputs.metal_weight else "not specified"

    return f"""Write product content for this piece:
- Product type: {inputs.product_type}
- Metal: {inputs.metal_type}, weight {weight}
- Gems: {gems}{other}{notes}

Return a JSON object with exactly these string fields:
{{
  "title": "distinctive product title (max 70 chars)",
  "tagline": "compelling tagline (max 120 chars)",
  "short_description": "concise overview (max 200 chars)",
  "detailed_description": "rich description for the product page (max 800 chars)"
}}"""


def build_testimonial_prompt(draft: TestimonialDraft) -> str:
    context = []
    if draft.purchase_type:
        context.append(f"- Purchase type: {draft.purchase_type}")
    if draft.occasion:
        context.append(f"- Occasion: {draft.occasion}")
    if draft.location:
        context.append(f"- Location: {draft.location}")
    context_text = "\n".join(context) or "- (none)"

    return f"""Polish this customer testimonial for Luster Legacy. Keep the customer's own voice: conversational, no marketing buzzwords, and do not invent product details.

Customer: {draft.name}
Product: {draft.product_type}
Rating: {draft.rating}/5
Context:
{context_text}

Customer wrote:
"{draft.text}"

Answer exactly in this format:

BRIEF:
[2-3 sentence testimonial]

STORY:
[2-3 paragraph story, as if telling a friend]"""


class ContentGeneratorService:
    """
    Claude-backed copywriting for products and testimonials

    Raises ContentGenerationError(configured=False) when no API key is set.
    """

    def __init__(
        self,
        client: Optional[anthropic.Anthropic] = None,
        pricing: Optional[PricingService] = None,
        products: Optional[ProductRepository] = None,
        model: Optional[str] = None,
    ):
        self.model = model or settings.CLAUDE_MODEL
        if client is not None:
            self.client = client
        elif settings.ANTHROPIC_API_KEY:
            self.client = anthropic.Anthropic(api_key=settings.ANTHROPIC_API_KEY)
        else:
            self.client = None
        self.pricing = pricing or get_pricing_service()
        self.products = products or ProductRepository()

    def _complete(self, prompt: str, system: Optional[str] = None) -> str:
        if self.client is None:
            raise ContentGenerationError("AI content generation is not configured", configured=False)

        kwargs = {
            "model": self.model,
            "max_tokens": MAX_TOKENS,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system

        try:
            response = self.client.messages.create(**kwargs)
        except anthropic.APIError as e:
            logger.error(f"Claude API error: {e}", exc_info=True)
            raise ContentGenerationError(f"AI service error: {e}") from e

        text = "".join(block.text for block in response.content if getattr(block, "type", None) == "text")
        if not text.strip():
            raise ContentGenerationError("AI returned an empty response")
        return text

    async def generate_product_content(self, inputs: AIInputs) -> Dict:
        """
        Product copy plus calculated prices.

        Prices are only included when the inputs carry a metal weight.
        """
        # the anthropic client blocks, keep it off the event loop
        text = await asyncio.to_thread(self._complete, build_product_prompt(inputs), PRODUCT_SYSTEM_PROMPT)
        content = parse_json_content(text)

        result = dict(content)
        result["price_usd"] = None
        result["price_inr"] = None
        if inputs.metal_weight:
            quote = await self.pricing.calculate(price_request_from_inputs(inputs))
            result["price_usd"] = quote.usd.price
            result["price_inr"] = quote.inr.price

        logger.info(f"Generated content for {inputs.product_type}: {content['title']}")
        return result

    async def regenerate_for_product(self, product_id: int) -> Dict:
        """
        Regenerate copy from a product's stored inputs and save it.

        name <- title, description <- detailed description,
        details <- tagline + short description. base_price is updated when a
        price could be calculated.
        """
        product = self.products.find_by_id(product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        if product.ai_inputs is None:
            raise ContentGenerationError(f"Product {product_id} has no AI inputs to regenerate from")

        content = await self.generate_product_content(product.ai_inputs)

        values = {
            "name": content["title"],
            "description": content["detailed_description"],
            "details": f"{content['tagline']}\n\n{content['short_description']}",
        }
        if content["price_inr"]:
            values["base_price"] = content["price_inr"]

        updated = self.products.update(product_id, ProductUpdate(**values))
        return {"product": updated.to_dict() if updated else None, "content": content}

    def generate_testimonial(self, draft: TestimonialDraft) -> Dict[str, str]:
        """Brief testimonial and longer story from the customer's notes"""
        return parse_testimonial(self._complete(build_testimonial_prompt(draft)))


_content_service: Optional[ContentGeneratorService] = None


def get_content_generator_service() -> ContentGeneratorService:
    global _content_service
    if _content_service is None:
        _content_service = ContentGeneratorService()
    return _content_service
