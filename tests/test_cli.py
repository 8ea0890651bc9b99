import json
import textwrap
from pathlib import Path

from typer.testing import CliRunner

from routesmith.cli import app

runner = CliRunner()

# wide console so rich tables do not truncate cells
ENV = {"COLUMNS": "200"}


def write(p: Path, s: str) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(textwrap.dedent(s), encoding="utf-8")


def shop_model(tmp_path: Path) -> Path:
    model = tmp_path / "shop.yaml"
    write(
        model,
        """
        service:
          name: Shop
          operations:
            - name: Ping
              http: {method: GET, uri: /ping}
          resources:
            - name: Order
              operations:
                - name: GetOrder
                  http: {method: GET, uri: "/orders/{orderId}"}
        """,
    )
    return model


def test_routes_list_prints_table(tmp_path: Path):
    result = runner.invoke(app, ["routes", "list", str(shop_model(tmp_path))], env=ENV)
    assert result.exit_code == 0, result.output
    assert "getOrder" in result.output
    assert "/orders/{orderId}" in result.output
    assert "get-order" in result.output
    assert "api/ping" in result.output


def test_routes_export_json_to_stdout(tmp_path: Path):
    result = runner.invoke(app, ["routes", "export", str(shop_model(tmp_path))], env=ENV)
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["service"] == "Shop"
    assert payload["routes"]["api"]["ping"]["path"] == "GET /ping"


def test_generate_writes_package(tmp_path: Path):
    out = tmp_path / "gen"
    result = runner.invoke(app, ["generate", str(shop_model(tmp_path)), "--out", str(out)], env=ENV)
    assert result.exit_code == 0, result.output
    assert (out / "routes" / "shop_routes.py").exists()
    assert (out / "controllers" / "order_resource.py").exists()


def test_artifacts_lists_records(tmp_path: Path):
    result = runner.invoke(app, ["artifacts", str(shop_model(tmp_path))], env=ENV)
    assert result.exit_code == 0, result.output
    assert "getOrderHandlerBuilder" in result.output
    assert "OrderController" in result.output


def test_missing_model_is_a_bad_parameter(tmp_path: Path):
    result = runner.invoke(app, ["routes", "list", str(tmp_path / "nope.yaml")], env=ENV)
    assert result.exit_code != 0


def test_collision_exits_with_error(tmp_path: Path):
    model = tmp_path / "dup.yaml"
    write(
        model,
        """
        service:
          name: Dup
          operations:
            - name: GetA
              http: {method: GET, uri: /same}
            - name: GetB
              http: {method: GET, uri: /same}
        """,
    )
    result = runner.invoke(app, ["generate", str(model), "--dry-run"], env=ENV)
    assert result.exit_code == 1

    result = runner.invoke(
        app, ["generate", str(model), "--dry-run", "--collision-policy", "last_wins"], env=ENV
    )
    assert result.exit_code == 0, result.output
    assert "Dry run" in result.output
