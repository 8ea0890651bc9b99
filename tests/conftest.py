import pytest

from routesmith.domain.models import HttpBinding, Operation, Resource, Service
from routesmith.naming.paths import parse_uri


def _op(name: str, method: str | None = None, uri: str | None = None) -> Operation:
    http = HttpBinding(method=method, segments=parse_uri(uri)) if method else None
    return Operation(name=name, http=http)


@pytest.fixture
def shop_service() -> Service:
    # Shop: Order/GetOrder bound to GET /orders/{orderId}, top-level Ping on GET /ping
    get_order = _op("GetOrder", "GET", "/orders/{orderId}")
    ping = _op("Ping", "GET", "/ping")
    return Service(
        name="Shop",
        resources=(Resource(name="Order", operations=(get_order,)),),
        operations=(ping,),
    )
