"""CORS for the WordFlow web client."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wordflow.config import Settings


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Allow the configured web front-end origins."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit"],
    )
