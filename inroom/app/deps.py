"""Request-scoped accessors for application state."""

from fastapi import Request

from .services.orders import OrderService


def get_service(request: Request) -> OrderService:
    return request.app.state.service
