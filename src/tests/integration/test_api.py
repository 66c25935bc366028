"""Integration tests for the API endpoints."""

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient


@pytest.fixture
async def client(app):
    """Async client with the app lifespan running."""
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac


class TestAdmissionFlow:
    """End-to-end admission scenarios over HTTP."""

    @pytest.mark.asyncio
    async def test_auth_policy_lifecycle(self, client, clock):
        """Five logins admitted, the sixth throttled, then the window reopens."""
        payload = {"identity": "1.2.3.4", "policy": "auth"}

        remaining = []
        for _ in range(5):
            response = await client.post("/evaluate", json=payload)
            assert response.status_code == 200
            remaining.append(int(response.headers["x-ratelimit-remaining"]))
        assert remaining == [4, 3, 2, 1, 0]

        response = await client.post("/evaluate", json=payload)
        assert response.status_code == 429
        assert response.json()["retryAfter"] == 60

        clock.advance(61_000)
        response = await client.post("/evaluate", json=payload)
        assert response.status_code == 200
        assert response.json()["remaining"] == 4

    @pytest.mark.asyncio
    async def test_concurrent_agency_requests(self, client):
        """Ten simultaneous B2B calls are all admitted with no lost updates."""
        payload = {"identity": "agency-42", "policy": "b2b"}

        responses = await asyncio.gather(
            *(client.post("/evaluate", json=payload) for _ in range(10))
        )

        assert all(r.status_code == 200 for r in responses)
        assert sorted(r.json()["remaining"] for r in responses) == list(range(190, 200))

    @pytest.mark.asyncio
    async def test_policies_do_not_share_counters(self, client):
        for _ in range(6):
            await client.post("/evaluate", json={"identity": "1.2.3.4", "policy": "auth"})

        response = await client.post("/evaluate", json={"identity": "1.2.3.4", "policy": "booking"})

        assert response.status_code == 200
        assert response.json()["remaining"] == 9

    @pytest.mark.asyncio
    async def test_invalid_request(self, client):
        response = await client.post("/evaluate", json={"identity": "1.2.3.4", "policy": ""})

        assert response.status_code == 422


class TestMetricsEndpoint:
    """Tests for metrics endpoint."""

    @pytest.mark.asyncio
    async def test_metrics_record_decisions(self, client):
        await client.post("/evaluate", json={"identity": "x", "policy": "tracking"})

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert 'turnstile_admissions_total{policy="tracking",result="admitted"}' in response.text
