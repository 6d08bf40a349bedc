"""Dependency injection for FastAPI endpoints"""

from datetime import datetime
from typing import Callable

from fastapi import Request

from pennypath_engine.config import Settings, settings


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_settings() -> Settings:
    """Provide engine settings instance"""
    return settings


def get_clock() -> Callable[[], datetime]:
    """Provide the clock read when a request carries no reference time"""
    return datetime.now
