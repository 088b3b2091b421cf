"""
Web Module - FastAPI webhook server
===================================
"""

from .app import create_app, run_app, build_router

__all__ = [
    "create_app",
    "run_app",
    "build_router",
]
