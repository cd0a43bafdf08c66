"""FastAPI application for the apartment ledger."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.errors import register_error_handlers
from src.api.expenses import router as expenses_router
from src.api.payments import router as payments_router

app = FastAPI(
    title="Apartment Ledger",
    description="Shared expense splitting and monthly balance sheets for apartments",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(expenses_router)
app.include_router(payments_router)


@app.get("/health")
def health_check() -> dict:
    """Health check endpoint for monitoring."""
    return {"status": "ok"}
