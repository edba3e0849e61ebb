"""Link creation endpoint behavior tests."""

import asyncio
import re

import pytest
from httpx import AsyncClient

CODE_RE = re.compile(r"^[A-Za-z0-9]{6}$")


@pytest.mark.asyncio
async def test_create_generates_code(client: AsyncClient) -> None:
    response = await client.post("/api/links", json={"target": "https://example.com"})
    assert response.status_code == 201
    data = response.json()
    assert CODE_RE.match(data["code"])
    assert data["target"] == "https://example.com"
    assert data["clicks"] == 0
    assert data["lastClicked"] is None
    assert data["createdAt"]
    assert data["updatedAt"]
    assert data["shortUrl"].endswith(f"/{data['code']}")


@pytest.mark.asyncio
async def test_create_with_custom_code(client: AsyncClient) -> None:
    response = await client.post("/api/links", json={"target": "https://www.github.com", "code": "GitHub01"})
    assert response.status_code == 201
    assert response.json()["code"] == "GitHub01"

    stats = await client.get("/api/links/GitHub01")
    assert stats.status_code == 200
    assert stats.json()["target"] == "https://www.github.com"


@pytest.mark.asyncio
async def test_create_duplicate_custom_code(client: AsyncClient) -> None:
    await client.post("/api/links", json={"target": "https://www.github.com", "code": "taken1"})
    response = await client.post("/api/links", json={"target": "https://www.example.com", "code": "taken1"})
    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "CodeConflict"


@pytest.mark.asyncio
async def test_create_duplicate_custom_code_concurrently(client: AsyncClient) -> None:
    responses = await asyncio.gather(
        client.post("/api/links", json={"target": "https://one.example.com", "code": "race01"}),
        client.post("/api/links", json={"target": "https://two.example.com", "code": "race01"}),
    )
    assert sorted(r.status_code for r in responses) == [201, 409]

    listing = await client.get("/api/links")
    assert [link["code"] for link in listing.json()] == ["race01"]


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["abc", "abcde", "abcdefghi", "my-code!", "with sp"])
async def test_create_rejects_bad_code_format(client: AsyncClient, code: str) -> None:
    response = await client.post("/api/links", json={"target": "https://www.github.com", "code": code})
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "InvalidCodeFormat"


@pytest.mark.asyncio
@pytest.mark.parametrize("target", ["not-a-url", "", "example.com", "javascript:alert(1)"])
async def test_create_rejects_bad_target(client: AsyncClient, target: str) -> None:
    response = await client.post("/api/links", json={"target": target})
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "InvalidTarget"


@pytest.mark.asyncio
async def test_create_requires_target(client: AsyncClient) -> None:
    response = await client.post("/api/links", json={"code": "nothing1"})
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "InvalidTarget"


@pytest.mark.asyncio
@pytest.mark.parametrize("target", [123, True, ["https://example.com"], {"url": "https://example.com"}])
async def test_create_rejects_non_string_target(client: AsyncClient, target) -> None:
    response = await client.post("/api/links", json={"target": target})
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "InvalidTarget"


@pytest.mark.asyncio
@pytest.mark.parametrize("code", [12345678, 1.5, ["abcdef"], True])
async def test_create_rejects_non_string_code(client: AsyncClient, code) -> None:
    response = await client.post("/api/links", json={"target": "https://example.com", "code": code})
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "InvalidCodeFormat"

    listing = await client.get("/api/links")
    assert listing.json() == []


@pytest.mark.asyncio
async def test_create_rejects_reserved_code(client: AsyncClient) -> None:
    response = await client.post("/api/links", json={"target": "https://example.com", "code": "healthz"})
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_rejected_create_persists_nothing(client: AsyncClient) -> None:
    await client.post("/api/links", json={"target": "not-a-url", "code": "nothing1"})
    await client.post("/api/links", json={"target": "https://example.com", "code": "no"})

    listing = await client.get("/api/links")
    assert listing.json() == []


@pytest.mark.asyncio
async def test_create_multiple_links_unique_codes(client: AsyncClient) -> None:
    targets = [
        "https://www.google.com",
        "https://www.github.com",
        "https://www.python.org",
    ]
    codes = set()
    for target in targets:
        response = await client.post("/api/links", json={"target": target})
        assert response.status_code == 201
        codes.add(response.json()["code"])
    assert len(codes) == 3
