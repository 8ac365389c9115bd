"""
Storefront tools for the customer chatbot

1. search_products - Catalog search by text/category
2. get_product_details - One product with price in INR and USD
3. list_materials - Active metal and stone options

Every tool returns a JSON string for the tool_result block. Per-carat
stone prices are never exposed.
"""
import json
from typing import Any, Dict, Optional

from luster.domain.pricing import round_half_up
from luster.repositories.material_repository import MaterialRepository
from luster.repositories.product_repository import ProductRepository
from luster.services.exchange_rate import get_exchange_rate_service


TOOLS = [
    {
        "name": "search_products",
        "description": "Search the Luster Legacy catalog by keywords and/or category. Use it when the customer asks what pieces are available.",
        "input_schema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Keywords to look for in product names and descriptions (e.g. 'emerald', 'polki necklace')"
                },
                "category": {
                    "type": "string",
                    "description": "Optional category: rings, necklaces, earrings, bracelets, pendants"
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of products (default: 5)"
                }
            },
            "required": []
        }
    },
    {
        "name": "get_product_details",
        "description": "Get the full details and current price of one product by its id.",
        "input_schema": {
            "type": "object",
            "properties": {
                "product_id": {
                    "type": "integer",
                    "description": "Product id returned by search_products"
                }
            },
            "required": ["product_id"]
        }
    },
    {
        "name": "list_materials",
        "description": "List the metals and stones customers can choose for custom and personalized pieces.",
        "input_schema": {
            "type": "object",
            "properties": {
                "kind": {
                    "type": "string",
                    "enum": ["metal", "stone", "all"],
                    "description": "Which materials to list (default: all)"
                }
            },
            "required": []
        }
    }
]


def _product_summary(product, rate: float) -> Dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "category": product.category,
        "price_inr": product.base_price,
        "price_usd": round_half_up(product.base_price / rate),
        "is_new": product.is_new,
        "is_bestseller": product.is_bestseller,
    }


def search_products(query: Optional[str] = None, category: Optional[str] = None, limit: int = 5) -> str:
    limit = max(1, min(int(limit or 5), 20))
    products, total = ProductRepository().find_all(category=category, search=query, limit=limit)
    rate = get_exchange_rate_service().cached_rate()

    return json.dumps({
        "total_matches": total,
        "products": [_product_summary(p, rate) for p in products],
    }, ensure_ascii=False)


def get_product_details(product_id: int) -> str:
    product = ProductRepository().find_by_id(int(product_id))
    if product is None:
        return json.dumps({"error": f"Product {product_id} not found"})

    rate = get_exchange_rate_service().cached_rate()
    data = _product_summary(product, rate)
    data.update({
        "description": product.description,
        "details": product.details,
        "dimensions": product.dimensions,
    })
    if product.ai_inputs:
        data["metal"] = product.ai_inputs.metal_type
        data["gems"] = [gem.name for gem in product.ai_inputs.primary_gems]

    return json.dumps(data, ensure_ascii=False)


def list_materials(kind: str = "all") -> str:
    result = {}
    if kind in ("metal", "all"):
        result["metals"] = [
            {"name": m.name, "description": m.description}
            for m in MaterialRepository("metal").find_all(active_only=True)
        ]
    if kind in ("stone", "all"):
        result["stones"] = [
            {"name": s.name, "description": s.description}
            for s in MaterialRepository("stone").find_all(active_only=True)
        ]
    if not result:
        return json.dumps({"error": f"Unknown kind '{kind}'. Use metal, stone or all"})
    return json.dumps(result, ensure_ascii=False)


TOOL_FUNCTIONS = {
    "search_products": search_products,
    "get_product_details": get_product_details,
    "list_materials": list_materials,
}


def execute_tool(tool_name: str, tool_input: Dict[str, Any]) -> str:
    """
    Execute a tool by name with given input parameters.

    Returns:
        JSON string result from the tool (errors are reported, not raised)
    """
    if tool_name not in TOOL_FUNCTIONS:
        return json.dumps({"error": f"Tool '{tool_name}' not found"})

    try:
        return TOOL_FUNCTIONS[tool_name](**tool_input)
    except TypeError as e:
        return json.dumps({"error": f"Invalid parameters for {tool_name}: {str(e)}"})
    except Exception as e:
        return json.dumps({"error": f"Error executing {tool_name}: {str(e)}"})
