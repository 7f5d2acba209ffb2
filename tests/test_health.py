import httpx
import pytest
from postgrest.exceptions import APIError

from routes.health import ComponentHealth, check_database, check_rate_limit_storage, overall_status


class BrokenQuery:
    def __init__(self, error):
        self.error = error

    def select(self, *args, **kwargs):
        return self

    def limit(self, size):
        return self

    def execute(self):
        raise self.error


class BrokenSupabase:
    def __init__(self, error):
        self.error = error

    def table(self, name):
        return BrokenQuery(self.error)


@pytest.mark.asyncio
async def test_check_database_healthy(db):
    result = await check_database(db)
    assert result.status == "healthy"
    assert result.latency_ms is not None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        APIError({"message": "relation does not exist", "code": "42P01"}),
        httpx.ConnectError("connection refused"),
    ],
)
async def test_check_database_unhealthy(error):
    result = await check_database(BrokenSupabase(error))
    assert result.status == "unhealthy"
    assert result.detail


def test_health_endpoint(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["components"]["database"]["status"] == "healthy"
    assert body["environment"] == "test"


def test_health_reports_unavailable_database(client):
    from core.supabase_client import get_supabase
    from main import app

    app.dependency_overrides[get_supabase] = lambda: BrokenSupabase(httpx.ConnectError("down"))
    assert client.get("/health").status_code == 503
    assert client.get("/health/ready").status_code == 503
    assert client.get("/health/live").status_code == 200


@pytest.mark.asyncio
async def test_in_memory_rate_limit_storage_needs_no_probe():
    result = await check_rate_limit_storage("memory://")
    assert result.status == "healthy"


@pytest.mark.asyncio
async def test_unreachable_redis_is_unhealthy():
    result = await check_rate_limit_storage("redis://127.0.0.1:1/0")
    assert result.status == "unhealthy"


def test_overall_status_takes_the_worst_component():
    healthy = ComponentHealth(status="healthy")
    slow = ComponentHealth(status="degraded")
    down = ComponentHealth(status="unhealthy")
    assert overall_status({"a": healthy}) == "healthy"
    assert overall_status({"a": healthy, "b": slow}) == "degraded"
    assert overall_status({"a": slow, "b": down}) == "unhealthy"
