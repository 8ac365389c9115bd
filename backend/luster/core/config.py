"""
Centralized application configuration
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings, loaded from the environment or .env"""

    # API Settings
    API_TITLE: str = "Luster Legacy API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Storefront and back-office API for Luster Legacy jewelry"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = ""

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:5173,https://lusterlegacy.com" or '["http://localhost:5173"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:5173,http://localhost:3000"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:5173"]

        # Try JSON parse first (for array format)
        import json
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        # Fall back to comma-separated string
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    # Auth
    AUTH_SECRET: str = ""
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Claude (chatbot + content generation)
    ANTHROPIC_API_KEY: str = ""
    CLAUDE_MODEL: str = "claude-haiku-4-5-20251001"
    MAX_HISTORY_MESSAGES: int = 10
    MAX_HISTORY_TOKENS: int = 6000

    # Market data
    GOLD_PRICE_API_URL: str = ""
    GOLD_PRICE_API_KEY: str = ""
    GOLD_PRICE_LOCATION: str = "Hyderabad, India"
    EXCHANGE_RATE_API_URL: str = "https://open.er-api.com/v6/latest/USD"
    PRICE_CACHE_TTL_SECONDS: int = 3600
    FALLBACK_GOLD_PRICE_INR: float = 7500
    FALLBACK_USD_INR_RATE: float = 83

    # PayPal
    PAYPAL_CLIENT_ID: str = ""
    PAYPAL_CLIENT_SECRET: str = ""
    PAYPAL_MODE: str = "sandbox"

    # Storefront URL (PayPal return/cancel pages)
    FRONTEND_URL: str = "http://localhost:5173"

    # Contact
    WHATSAPP_NUMBER: str = "919876543210"
    DEFAULT_PRODUCT_IMAGE: str = "/images/placeholder-jewelry.jpg"

    # Rate limits (requests per minute) for AI endpoints
    CHAT_RATE_LIMIT: int = 20
    CONTENT_RATE_LIMIT: int = 10

    @property
    def paypal_base_url(self) -> str:
        if self.PAYPAL_MODE == "live":
            return "https://api-m.paypal.com"
        return "https://api-m.sandbox.paypal.com"

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
