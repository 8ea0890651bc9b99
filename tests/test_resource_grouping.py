import pytest

from routesmith.domain.errors import RouteCollisionError
from routesmith.routes.builder import build_route_table
from routesmith.routes.grouping import group_by_resource, route_table_payload
from routesmith.routes.resolver import OperationReference, ResourceKind


def _ref(resource, op, kind=ResourceKind.DECLARED, path=None):
    return OperationReference(
        path=path or f"GET /{resource}/{op}",
        handler_locator=f"{resource.lower()}/{op.lower()}",
        function_id=op,
        operation_name=op,
        parent_resource=resource,
        resource_kind=kind,
        operation_id=op,
    )


def test_grouping_preserves_discovery_order():
    refs = [_ref("b", "getB"), _ref("a", "getA"), _ref("b", "listB")]
    grouped = group_by_resource(refs)
    assert list(grouped) == ["b", "a"]
    assert [r.operation_name for r in grouped["b"].references] == ["getB", "listB"]


def test_grouping_is_case_insensitive_and_keeps_first_casing():
    refs = [_ref("Order", "getOrder"), _ref("ORDER", "listOrders")]
    grouped = group_by_resource(refs)
    assert list(grouped) == ["order"]
    group = grouped["order"]
    assert group.display_name == "Order"
    assert group.type_prefix == "Order"
    assert len(group.references) == 2


def test_declared_resource_named_api_clashes_with_synthetic_group():
    refs = [_ref("api", "getThing"), _ref("api", "ping", kind=ResourceKind.SYNTHETIC)]
    with pytest.raises(RouteCollisionError) as exc:
        group_by_resource(refs)
    assert exc.value.field == "parent_resource"


def test_api_group_is_last_and_only_present_when_needed(shop_service):
    grouped = group_by_resource(build_route_table(shop_service).references)
    assert list(grouped) == ["order", "api"]
    assert grouped["api"].kind is ResourceKind.SYNTHETIC
    assert [r.operation_name for r in grouped["api"].references] == ["ping"]


def test_empty_reference_list_groups_to_nothing():
    assert group_by_resource([]) == {}


def test_route_table_payload_matches_end_to_end_scenario(shop_service):
    grouped = group_by_resource(build_route_table(shop_service).references)
    payload = route_table_payload(grouped)
    assert payload == {
        "order": {
            "getOrder": {
                "path": "GET /orders/{orderId}",
                "handler_locator": "order/getorder",
                "function_id": "get-order",
                "operation_name": "getOrder",
            }
        },
        "api": {
            "ping": {
                "path": "GET /ping",
                "handler_locator": "api/ping",
                "function_id": "ping",
                "operation_name": "ping",
            }
        },
    }


def test_api_group_stays_last_after_a_replacement():
    refs = [
        _ref("api", "getOrder", kind=ResourceKind.SYNTHETIC),
        _ref("order", "listOrders"),
    ]
    assert list(group_by_resource(refs)) == ["order", "api"]
