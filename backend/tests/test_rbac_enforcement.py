import asyncio

import pytest
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.testclient import TestClient

from trossapp.auth.helpers import require_minimum_role, require_permission
from trossapp.auth.rbac_contract import CrudOperation
from trossapp.dependencies import get_current_role, get_engine
from trossapp.errors import PermissionError


def make_request(path: str = "/work_orders", method: str = "GET") -> Request:
    return Request(
        {
            "type": "http",
            "method": method,
            "path": path,
            "headers": [],
        }
    )


def test_require_permission_allows_manager_delete(service) -> None:
    checker = require_permission("work_orders", CrudOperation.DELETE)
    asyncio.run(checker(request=make_request(method="DELETE"), role="manager", service=service))


def test_require_permission_denies_and_logs(service, caplog: pytest.LogCaptureFixture) -> None:
    checker = require_permission("work_orders", "delete")
    with caplog.at_level("WARNING"):
        with pytest.raises(HTTPException) as exc:
            asyncio.run(
                checker(request=make_request("/work_orders/7", "DELETE"), role="dispatcher", service=service)
            )
    assert exc.value.status_code == 403
    assert PermissionError.message in exc.value.detail
    assert "work_orders.delete" in exc.value.detail
    messages = [record.getMessage() for record in caplog.records]
    assert any("work_orders.delete" in m for m in messages)
    assert any("/work_orders/7" in m for m in messages)
    assert any("DELETE" in m for m in messages)
    assert any("role=dispatcher" in m for m in messages)


def test_require_permission_denies_missing_role(service) -> None:
    checker = require_permission("users", "read")
    with pytest.raises(HTTPException) as exc:
        asyncio.run(checker(request=make_request("/users"), role=None, service=service))
    assert exc.value.status_code == 403


def test_require_minimum_role(service) -> None:
    checker = require_minimum_role("dispatcher")
    asyncio.run(checker(request=make_request(), role="Manager", service=service))
    with pytest.raises(HTTPException) as exc:
        asyncio.run(checker(request=make_request(), role="technician", service=service))
    assert exc.value.status_code == 403


def test_get_current_role_reads_request_state() -> None:
    request = make_request()
    assert get_current_role(request) is None
    request.state.role = "technician"
    assert get_current_role(request) == "technician"
    request.state.role = 5
    assert get_current_role(request) is None


@pytest.fixture
def client(engine) -> TestClient:
    app = FastAPI()

    @app.middleware("http")
    async def assign_role(request: Request, call_next):
        role = request.headers.get("x-test-role")
        if role is not None:
            request.state.role = role
        return await call_next(request)

    @app.delete("/work_orders/{work_order_id}", dependencies=[Depends(require_permission("work_orders", "delete"))])
    async def delete_work_order(work_order_id: int) -> dict:
        return {"deleted": work_order_id}

    @app.get("/roles", dependencies=[Depends(require_minimum_role("manager"))])
    async def list_roles() -> list[str]:
        return ["admin"]

    app.dependency_overrides[get_engine] = lambda: engine
    return TestClient(app)


@pytest.mark.parametrize(
    "role, status_code",
    [("manager", 200), ("ADMIN", 200), ("dispatcher", 403), ("client", 403), ("superadmin", 403)],
)
def test_route_enforces_permission_matrix(client, role, status_code) -> None:
    response = client.delete("/work_orders/3", headers={"x-test-role": role})
    assert response.status_code == status_code


def test_route_without_role_is_forbidden(client) -> None:
    assert client.delete("/work_orders/3").status_code == 403


def test_route_enforces_minimum_role(client) -> None:
    assert client.get("/roles", headers={"x-test-role": "manager"}).status_code == 200
    assert client.get("/roles", headers={"x-test-role": "technician"}).status_code == 403
