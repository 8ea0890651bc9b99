import json
from pathlib import Path

import pytest

from routesmith.domain.errors import InvalidModelError, RouteCollisionError
from routesmith.domain.models import HttpBinding, Operation, Resource, Service
from routesmith.model.loader import service_from_document
from routesmith.naming.paths import parse_uri
from routesmith.orchestrator.pipeline import run_generate, run_synthesis


def test_end_to_end_shop_route_table(shop_service):
    result = run_synthesis(shop_service)

    assert result.service_name == "Shop"
    assert list(result.grouped) == ["order", "api"]

    (get_order,) = result.grouped["order"].references
    assert get_order.path == "GET /orders/{orderId}"
    assert get_order.function_id == "get-order"
    assert get_order.operation_name == "getOrder"

    (ping,) = result.grouped["api"].references
    assert ping.path == "GET /ping"
    assert ping.function_id == "ping"
    assert ping.operation_name == "ping"

    assert result.claimed == {"GetOrder"}
    assert len([a for a in result.artifacts if a.kind == "handler_builder"]) == 2


def test_synthesis_aborts_on_collision():
    get = Operation(name="GetOrder", http=HttpBinding(method="GET", segments=parse_uri("/orders")))
    list_ = Operation(name="ListOrders", http=HttpBinding(method="GET", segments=parse_uri("/orders")))
    service = Service(name="Shop", resources=(Resource(name="Order", operations=(get, list_)),))

    with pytest.raises(RouteCollisionError):
        run_synthesis(service)

    result = run_synthesis(service, collision_policy="last_wins")
    assert [r.operation_name for r in result.references] == ["listOrders"]


def test_run_generate_writes_files(tmp_path: Path):
    model = tmp_path / "shop.json"
    model.write_text(
        json.dumps(
            {
                "service": {
                    "name": "Shop",
                    "operations": [{"name": "Ping", "http": {"method": "GET", "uri": "/ping"}}],
                    "resources": [
                        {
                            "name": "Order",
                            "operations": [
                                {"name": "GetOrder", "http": {"method": "GET", "uri": "/orders/{orderId}"}}
                            ],
                        }
                    ],
                }
            }
        ),
        encoding="utf-8",
    )
    out = tmp_path / "out"

    result = run_generate(model, out)

    assert not result.dry_run
    rel = {str(Path(p).relative_to(out)).replace("\\", "/") for p in result.written}
    assert {
        "__init__.py",
        "routes/__init__.py",
        "routes/shop_routes.py",
        "handlers/__init__.py",
        "handlers/base.py",
        "handlers/get_order_handler.py",
        "handlers/ping_handler.py",
        "controllers/__init__.py",
        "controllers/base.py",
        "controllers/get_order_controller.py",
        "controllers/ping_controller.py",
        "controllers/order_resource.py",
        "controllers/api_resource.py",
    } == rel


def test_run_generate_dry_run_writes_nothing(tmp_path: Path):
    model = tmp_path / "svc.json"
    model.write_text(json.dumps({"service": {"name": "Svc"}}), encoding="utf-8")
    out = tmp_path / "out"

    result = run_generate(model, out, dry_run=True)

    assert result.written == []
    assert not out.exists()


def _bound(name, method, uri):
    return Operation(name=name, http=HttpBinding(method=method, segments=parse_uri(uri)))


def test_same_named_operations_in_two_resources_collide():
    service = Service(
        name="Shop",
        resources=(
            Resource(name="Order", operations=(_bound("List", "GET", "/orders"),)),
            Resource(name="Item", operations=(_bound("List", "GET", "/items"),)),
        ),
    )
    with pytest.raises(RouteCollisionError) as exc:
        run_synthesis(service)
    assert exc.value.field == "function_id"
    assert exc.value.resource == "item"


def test_same_named_top_level_operations_collide():
    service = service_from_document(
        {
            "service": {
                "name": "Shop",
                "operations": [
                    {"name": "GetA", "http": {"method": "GET", "uri": "/a"}},
                    {"name": "GetA", "http": {"method": "POST", "uri": "/b"}},
                ],
            }
        }
    )
    with pytest.raises(RouteCollisionError) as exc:
        run_synthesis(service)
    assert exc.value.field == "function_id"


def test_service_name_with_a_space_is_rejected():
    service = Service(name="My Shop", operations=(_bound("Ping", "GET", "/ping"),))
    with pytest.raises(InvalidModelError):
        run_synthesis(service)


def test_run_generate_removes_stale_generated_files(tmp_path: Path):
    def model(operations):
        path = tmp_path / "shop.json"
        path.write_text(json.dumps({"service": {"name": "Shop", "operations": operations}}), encoding="utf-8")
        return path

    out = tmp_path / "out"
    ping = {"name": "Ping", "http": {"method": "GET", "uri": "/ping"}}
    health = {"name": "Health", "http": {"method": "GET", "uri": "/health"}}
    run_generate(model([ping, health]), out)
    (out / "notes.py").write_text("# hand written\n", encoding="utf-8")

    run_generate(model([ping]), out)

    assert (out / "handlers" / "ping_handler.py").exists()
    assert not (out / "handlers" / "health_handler.py").exists()
    assert not (out / "controllers" / "health_controller.py").exists()
    assert (out / "notes.py").read_text(encoding="utf-8") == "# hand written\n"
