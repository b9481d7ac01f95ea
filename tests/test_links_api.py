"""HTTP behaviour of the link routes."""

import asyncio

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_create_link_generates_code(client: AsyncClient) -> None:
    response = await client.post("/api/links", json={"long_url": "https://www.python.org"})
    assert response.status_code == 201
    data = response.json()
    assert data["destination"] == "https://www.python.org"
    assert len(data["code"]) == 8
    assert data["click_count"] == 0
    assert data["last_clicked"] is None
    assert data["short_link"].endswith(f"/{data['code']}")


@pytest.mark.asyncio
async def test_create_link_with_custom_code(client: AsyncClient) -> None:
    response = await client.post(
        "/api/links", json={"long_url": "https://example.com/sale", "custom_code": "promo24"}
    )
    assert response.status_code == 201
    assert response.json()["code"] == "promo24"


@pytest.mark.asyncio
async def test_create_link_trims_input(client: AsyncClient) -> None:
    response = await client.post(
        "/api/links", json={"long_url": "  https://example.com/x  ", "custom_code": " trim001 "}
    )
    assert response.status_code == 201
    data = response.json()
    assert data["code"] == "trim001"
    assert data["destination"] == "https://example.com/x"


@pytest.mark.asyncio
async def test_blank_custom_code_means_generated(client: AsyncClient) -> None:
    response = await client.post("/api/links", json={"long_url": "https://example.com", "custom_code": "   "})
    assert response.status_code == 201
    assert len(response.json()["code"]) == 8


@pytest.mark.asyncio
async def test_duplicate_custom_code_conflicts(client: AsyncClient) -> None:
    await client.post("/api/links", json={"long_url": "https://example.com/a", "custom_code": "taken01"})
    response = await client.post("/api/links", json={"long_url": "https://example.com/b", "custom_code": "taken01"})
    assert response.status_code == 409


@pytest.mark.asyncio
@pytest.mark.parametrize("custom_code", ["bad!!", "abc", "toolong99", "has-dash", "spa ce1"])
async def test_invalid_custom_code_rejected(client: AsyncClient, custom_code: str) -> None:
    response = await client.post("/api/links", json={"long_url": "https://example.com", "custom_code": custom_code})
    assert response.status_code == 422

    listing = await client.get("/api/links")
    assert listing.json() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("custom_code", ["healthz", "metrics"])
async def test_custom_code_shadowing_a_route_rejected(client: AsyncClient, custom_code: str) -> None:
    response = await client.post("/api/links", json={"long_url": "https://example.com", "custom_code": custom_code})
    assert response.status_code == 422

    listing = await client.get("/api/links")
    assert listing.json() == []

    health = await client.get("/healthz")
    assert health.status_code == 200
    assert "ok" in health.json()


@pytest.mark.asyncio
@pytest.mark.parametrize("long_url", ["", "not-a-url", "ftp://example.com/file", "javascript:alert(1)"])
async def test_invalid_destination_rejected(client: AsyncClient, long_url: str) -> None:
    response = await client.post("/api/links", json={"long_url": long_url})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_redirect_counts_clicks(client: AsyncClient) -> None:
    await client.post("/api/links", json={"long_url": "https://example.com/sale", "custom_code": "promo24"})

    for _ in range(3):
        response = await client.get("/promo24", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "https://example.com/sale"

    stats = await client.get("/api/links/promo24")
    assert stats.status_code == 200
    assert stats.json()["click_count"] == 3
    assert stats.json()["last_clicked"] is not None


@pytest.mark.asyncio
async def test_concurrent_redirects_count_exactly(client: AsyncClient) -> None:
    await client.post("/api/links", json={"long_url": "https://example.com/hot", "custom_code": "hotlink"})

    responses = await asyncio.gather(*(client.get("/hotlink", follow_redirects=False) for _ in range(20)))

    assert all(response.status_code == 302 for response in responses)
    stats = await client.get("/api/links/hotlink")
    assert stats.json()["click_count"] == 20


@pytest.mark.asyncio
async def test_redirect_unknown_code(client: AsyncClient) -> None:
    response = await client.get("/nothere", follow_redirects=False)
    assert response.status_code == 404
    assert response.text == "Short link not found."


@pytest.mark.asyncio
async def test_redirect_malformed_code(client: AsyncClient) -> None:
    response = await client.get("/bad!!", follow_redirects=False)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_stats_unknown_code(client: AsyncClient) -> None:
    response = await client.get("/api/links/nothere")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_and_search(client: AsyncClient) -> None:
    await client.post("/api/links", json={"long_url": "https://example.com/one", "custom_code": "xABCx01"})
    await client.post("/api/links", json={"long_url": "https://example.com/abc", "custom_code": "plain02"})
    await client.post("/api/links", json={"long_url": "https://example.com/none", "custom_code": "other03"})

    everything = await client.get("/api/links")
    assert [link["code"] for link in everything.json()] == ["other03", "plain02", "xABCx01"]

    filtered = await client.get("/api/links", params={"q": "  AbC "})
    assert [link["code"] for link in filtered.json()] == ["plain02", "xABCx01"]


@pytest.mark.asyncio
async def test_delete_link(client: AsyncClient) -> None:
    await client.post("/api/links", json={"long_url": "https://example.com/gone", "custom_code": "gone001"})

    response = await client.delete("/api/links/gone001")
    assert response.status_code == 204

    assert (await client.get("/api/links/gone001")).status_code == 404
    assert (await client.get("/gone001", follow_redirects=False)).status_code == 404
    assert (await client.delete("/api/links/gone001")).status_code == 404

    again = await client.post("/api/links", json={"long_url": "https://example.com/new", "custom_code": "gone001"})
    assert again.status_code == 201
    assert again.json()["click_count"] == 0


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    response = await client.get("/healthz")
    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["database"] == "healthy"
    assert data["uptime"] >= 0
