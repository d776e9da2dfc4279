# app/api/dependencies/services.py
from fastapi import Request

from app.services.registry import ServiceRegistry


def get_services(request: Request) -> ServiceRegistry:
    """
    FastAPI dependency returning the registry built by the app factory.
    """
    return request.app.state.services
