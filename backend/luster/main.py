"""
Luster Legacy - Backend API
Storefront and back-office for custom jewelry
"""
import logging
import time
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from luster.api import (  # noqa: E402
    auth,
    chat,
    content,
    custom_designs,
    materials,
    orders,
    payments,
    pricing,
    products,
    testimonials,
)
from luster.core.config import settings  # noqa: E402
from luster.core.database import get_db_connection_with_retry  # noqa: E402
from luster.core.rate_limit import RateLimitMiddleware  # noqa: E402
from luster.services.contact import whatsapp_link  # noqa: E402

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Only /api/chat and /api/content are limited
app.add_middleware(RateLimitMiddleware)

# Include API routers
app.include_router(pricing.router, prefix="/api", tags=["Pricing"])
app.include_router(products.router, prefix="/api/products", tags=["Products"])
app.include_router(materials.router, prefix="/api/materials", tags=["Materials"])
app.include_router(custom_designs.router, prefix="/api/custom-designs", tags=["Custom Designs"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(payments.router, prefix="/api/payments", tags=["Payments"])
app.include_router(testimonials.router, prefix="/api/testimonials", tags=["Testimonials"])
app.include_router(content.router, prefix="/api/content", tags=["AI Content"])
app.include_router(chat.router, prefix="/api/chat", tags=["Chat"])
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])


@app.get("/")
async def root():
    """API status"""
    return {
        "message": "Luster Legacy API",
        "status": "online",
        "version": settings.API_VERSION
    }


@app.get("/health")
async def health():
    """Health check endpoint for monitoring - tests database connectivity"""
    start_time = time.time()

    db_status = "unknown"
    db_latency_ms = None
    db_error = None

    try:
        conn = get_db_connection_with_retry(max_retries=1, retry_delay=0.5)
        cursor = conn.cursor()

        db_start = time.time()
        cursor.execute("SELECT 1")
        cursor.fetchone()
        db_latency_ms = round((time.time() - db_start) * 1000, 2)

        cursor.close()
        conn.close()
        db_status = "connected"
    except Exception as e:
        db_status = "disconnected"
        db_error = str(e)

    total_latency_ms = round((time.time() - start_time) * 1000, 2)

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "service": "luster-api",
        "version": settings.API_VERSION,
        "database": {
            "status": db_status,
            "latency_ms": db_latency_ms,
            "error": db_error
        },
        "total_latency_ms": total_latency_ms
    }


@app.get("/api/whatsapp-link")
async def get_whatsapp_link(
    message: str = Query(None, description="Prefilled message"),
    product: str = Query(None, description="Product the customer is asking about")
):
    """wa.me deep link for the chat-with-us buttons"""
    return {
        "status": "success",
        "data": {"url": whatsapp_link(message=message, product_name=product)}
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("luster.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.API_DEBUG)
