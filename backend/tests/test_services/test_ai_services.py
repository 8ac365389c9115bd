"""
Unit tests for the chatbot, chat tools and AI content generator

The Anthropic client is a MagicMock returning SimpleNamespace responses.
"""
import asyncio
import json
import threading
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import anthropic
import httpx
import pytest

from luster.domain.product import AIInputs, Product
from luster.domain.testimonial import TestimonialDraft
from luster.services import chat_tools
from luster.services.chatbot import FALLBACK_MESSAGE, ChatbotService, limit_history
from luster.services.contact import whatsapp_link
from luster.services.content_generator import (
    ContentGeneratorService,
    parse_json_content,
    parse_testimonial,
)
from luster.services.errors import ContentGenerationError, NotFoundError


def _text_response(text, input_tokens=100, output_tokens=50):
    return SimpleNamespace(
        stop_reason="end_turn",
        content=[SimpleNamespace(type="text", text=text)],
        usage=SimpleNamespace(input_tokens=input_tokens, output_tokens=output_tokens),
    )


def _tool_response(name, tool_input):
    return SimpleNamespace(
        stop_reason="tool_use",
        content=[SimpleNamespace(type="tool_use", id="tool-1", name=name, input=tool_input)],
        usage=SimpleNamespace(input_tokens=80, output_tokens=20),
    )


def _api_error():
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    return anthropic.APIConnectionError(request=request)


PRODUCT_JSON = json.dumps({
    "title": "Monsoon Emerald Cascade",
    "tagline": "Rain-kissed green in 22K gold",
    "short_description": "A cascade of emeralds.",
    "detailed_description": "Hand-set emeralds falling like monsoon rain.",
})


class TestContactLink:

    def test_default_message(self):
        link = whatsapp_link()
        assert link.startswith("https://wa.me/919876543210?text=")
        assert "Hello%20Luster%20Legacy" in link

    def test_product_mention_is_encoded(self):
        link = whatsapp_link("Hi!", product_name="Ruby & Pearl Jhumkas")
        assert link.endswith("Hi%21%20I%27m%20interested%20in%3A%20Ruby%20%26%20Pearl%20Jhumkas")


class TestChatbot:

    def test_limit_history(self):
        history = [{"role": "user", "content": "x" * 400} for _ in range(15)]
        limited, tokens = limit_history(history, max_messages=10, max_tokens=500)

        # 100 tokens each: the 10 most recent, then trimmed to the budget
        assert len(limited) == 5
        assert tokens == 500
        assert limited[-1] is history[-1]

    def test_no_api_key_returns_fallback(self):
        service = ChatbotService()
        result = service.reply("Do you ship to the US?")

        assert not service.configured
        assert result.fallback
        assert result.response == FALLBACK_MESSAGE

    def test_plain_answer(self):
        client = MagicMock()
        client.messages.create.return_value = _text_response("We ship worldwide.")
        result = ChatbotService(client=client).reply("Do you ship to the US?", history=[
            {"role": "user", "content": "Hello"},
            {"role": "assistant", "content": "Hi! How can I help?"},
        ])

        assert result.response == "We ship worldwide."
        assert result.tools_used == []
        assert result.context_messages == 3
        assert not result.fallback
        assert client.messages.create.call_args.kwargs["tools"] == chat_tools.TOOLS

    def test_tool_use_loop(self):
        client = MagicMock()
        client.messages.create.side_effect = [
            _tool_response("list_materials", {"kind": "metal"}),
            _text_response("We work with 22K, 18K and 14K gold."),
        ]
        with patch("luster.services.chatbot.execute_tool", return_value='{"metals": []}') as mock_tool:
            result = ChatbotService(client=client).reply("Which metals do you use?")

        mock_tool.assert_called_once_with("list_materials", {"kind": "metal"})
        assert result.tools_used == ["list_materials"]
        assert result.input_tokens == 180
        assert result.output_tokens == 70

        second_call_messages = client.messages.create.call_args_list[1].kwargs["messages"]
        assert second_call_messages[-1]["content"][0]["type"] == "tool_result"
        assert second_call_messages[-1]["content"][0]["tool_use_id"] == "tool-1"

    def test_api_error_apologizes_with_contact_link(self):
        client = MagicMock()
        client.messages.create.side_effect = _api_error()
        result = ChatbotService(client=client).reply("Hello")

        assert result.fallback
        assert "https://wa.me/" in result.response


class TestChatTools:

    @patch("luster.services.chat_tools.get_exchange_rate_service")
    @patch("luster.services.chat_tools.ProductRepository")
    def test_search_products(self, mock_repo_cls, mock_rates, sample_product):
        mock_repo_cls.return_value.find_all.return_value = ([sample_product], 1)
        mock_rates.return_value.cached_rate.return_value = 80.0

        data = json.loads(chat_tools.search_products(query="emerald", limit=50))

        assert data["total_matches"] == 1
        assert data["products"][0]["price_usd"] == 1500
        mock_repo_cls.return_value.find_all.assert_called_once_with(category=None, search="emerald", limit=20)

    @patch("luster.services.chat_tools.ProductRepository")
    def test_product_not_found(self, mock_repo_cls):
        mock_repo_cls.return_value.find_by_id.return_value = None
        data = json.loads(chat_tools.get_product_details(99))
        assert "not found" in data["error"]

    @patch("luster.services.chat_tools.MaterialRepository")
    def test_list_materials_hides_prices(self, mock_repo_cls, natural_diamond):
        mock_repo_cls.return_value.find_all.return_value = [natural_diamond]
        data = json.loads(chat_tools.list_materials("stone"))

        assert data == {"stones": [{"name": "Natural Diamond", "description": None}]}

    def test_unknown_tool(self):
        assert "not found" in json.loads(chat_tools.execute_tool("delete_everything", {}))["error"]

    def test_bad_parameters(self):
        result = json.loads(chat_tools.execute_tool("get_product_details", {"sku": "X"}))
        assert "Invalid parameters" in result["error"]


class TestContentParsing:

    def test_parse_fenced_json(self):
        content = parse_json_content(f"```json\n{PRODUCT_JSON}\n```")
        assert content["title"] == "Monsoon Emerald Cascade"

    def test_invalid_json(self):
        with pytest.raises(ContentGenerationError):
            parse_json_content("Here is your copy: Monsoon Emerald Cascade")

    def test_missing_field(self):
        with pytest.raises(ContentGenerationError):
            parse_json_content(json.dumps({"title": "Only a title"}))

    def test_parse_testimonial(self):
        result = parse_testimonial("BRIEF: Loved it.\n\nSTORY: It all began in Hyderabad.\nThe end.")
        assert result == {"brief": "Loved it.", "story": "It all began in Hyderabad.\nThe end."}

    def test_parse_testimonial_without_markers(self):
        assert parse_testimonial("Just lovely.") == {"brief": "Just lovely.", "story": ""}


class TestContentGenerator:

    def _service(self, client, pricing=None, products=None):
        return ContentGeneratorService(client=client, pricing=pricing or MagicMock(), products=products or MagicMock())

    def test_not_configured(self):
        service = ContentGeneratorService(pricing=MagicMock(), products=MagicMock())
        with pytest.raises(ContentGenerationError) as exc_info:
            service.generate_testimonial(TestimonialDraft(name="Asha", product_type="Ring", text="Lovely"))
        assert exc_info.value.configured is False

    def test_product_content_with_prices(self):
        client = MagicMock()
        client.messages.create.return_value = _text_response(PRODUCT_JSON)
        pricing = MagicMock()

        async def calculate(request):
            return SimpleNamespace(usd=SimpleNamespace(price=1375), inr=SimpleNamespace(price=110000))
        pricing.calculate.side_effect = calculate

        inputs = AIInputs(metal_type="22K Gold", metal_weight=10,
                          primary_gems=[{"name": "Emerald", "carats": 2}])
        result = asyncio.run(self._service(client, pricing=pricing).generate_product_content(inputs))

        assert result["title"] == "Monsoon Emerald Cascade"
        assert result["price_usd"] == 1375
        assert result["price_inr"] == 110000
        prompt = client.messages.create.call_args.kwargs["messages"][0]["content"]
        assert "Emerald (2.0 ct)" in prompt

    def test_product_content_without_weight(self):
        client = MagicMock()
        client.messages.create.return_value = _text_response(PRODUCT_JSON)
        pricing = MagicMock()

        result = asyncio.run(self._service(client, pricing=pricing).generate_product_content(
            AIInputs(metal_type="18K Gold")
        ))

        assert result["price_usd"] is None
        pricing.calculate.assert_not_called()

    def test_claude_call_runs_off_the_event_loop(self):
        threads = []
        client = MagicMock()
        client.messages.create.side_effect = lambda **kwargs: threads.append(threading.get_ident()) or _text_response(PRODUCT_JSON)

        asyncio.run(self._service(client).generate_product_content(AIInputs(metal_type="18K Gold")))

        assert threads and threads[0] != threading.get_ident()

    def test_api_error(self):
        client = MagicMock()
        client.messages.create.side_effect = _api_error()
        with pytest.raises(ContentGenerationError) as exc_info:
            asyncio.run(self._service(client).generate_product_content(AIInputs(metal_type="18K Gold")))
        assert exc_info.value.configured is True

    def test_regenerate_saves_content(self):
        client = MagicMock()
        client.messages.create.return_value = _text_response(PRODUCT_JSON)
        product = Product(id=4, name="Old name", base_price=50000, ai_inputs={"metal_type": "18K Gold"})
        products = MagicMock()
        products.find_by_id.return_value = product
        products.update.return_value = product

        result = asyncio.run(self._service(client, products=products).regenerate_for_product(4))

        update = products.update.call_args.args[1]
        assert update.name == "Monsoon Emerald Cascade"
        assert update.description == "Hand-set emeralds falling like monsoon rain."
        assert update.details == "Rain-kissed green in 22K gold\n\nA cascade of emeralds."
        assert update.base_price is None
        assert result["content"]["title"] == "Monsoon Emerald Cascade"

    def test_regenerate_unknown_product(self):
        products = MagicMock()
        products.find_by_id.return_value = None
        with pytest.raises(NotFoundError):
            asyncio.run(self._service(MagicMock(), products=products).regenerate_for_product(4))

    def test_regenerate_without_inputs(self):
        products = MagicMock()
        products.find_by_id.return_value = Product(id=4, name="Ring", base_price=1000)
        with pytest.raises(ContentGenerationError):
            asyncio.run(self._service(MagicMock(), products=products).regenerate_for_product(4))

    def test_generate_testimonial(self):
        client = MagicMock()
        client.messages.create.return_value = _text_response("BRIEF: Stunning work.\nSTORY: We met the team in May.")
        draft = TestimonialDraft(name="Asha", product_type="Necklace", text="loved it", occasion="Wedding")

        result = self._service(client).generate_testimonial(draft)

        assert result == {"brief": "Stunning work.", "story": "We met the team in May."}
        prompt = client.messages.create.call_args.kwargs["messages"][0]["content"]
        assert "- Occasion: Wedding" in prompt
