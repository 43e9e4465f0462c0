"""
asgi.py -- ASGI entry point for Chirpy.

This is the ONLY place that reads process configuration: get_settings()
loads the environment and .env once, and create_app() passes the resulting
Settings to every component it builds.

Run with:  uvicorn asgi:app --reload
"""

from api.main import create_app
from core.config import get_settings

app = create_app(get_settings())
