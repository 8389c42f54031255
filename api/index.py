"""
Serverless entrypoint: re-exports the FastAPI app built by `api.main`.
"""

from __future__ import annotations

from api.main import app

__all__ = ["app"]
