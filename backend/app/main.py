from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import (
    GZipMiddleware,
)
from sqlalchemy import text

from app.api.alerts_routes import router as alerts_router
from app.api.routes import router as products_router
from app.core.config import settings
from app.core.logger import configure_logging

configure_logging()

app = FastAPI(
    title="PriceTracker API",
    description="Cashify price tracking with price-drop and restock emails",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)


app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(products_router, prefix="/api/v1")
app.include_router(alerts_router, prefix="/api/v1")


@app.api_route("/health", methods=["GET", "HEAD"])
def health_check():
    try:
        from app.db.session import engine

        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))

        return {
            "status": "healthy",
            "service": "pricetracker-api",
            "database": "connected",
        }
    except Exception as e:
        return {
            "status": "degraded",
            "service": "pricetracker-api",
            "database": "disconnected",
            "error": str(e),
        }
