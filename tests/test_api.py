"""
FastAPI surface tests.
"""

import jwt
import pytest
from fastapi.testclient import TestClient

from members_api import main

from tests.conftest import make_image_bytes


SIGNING_KEY = "members-api-test-signing-secret-0001"


def bearer(groups, sub="u1"):
    token = jwt.encode({"sub": sub, "cognito:groups": groups}, SIGNING_KEY, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(monkeypatch, router, storage_service, vector_service):
    monkeypatch.setattr(main, "get_router", lambda: router)
    monkeypatch.setattr(main, "get_storage_service", lambda: storage_service)
    monkeypatch.setattr(main, "get_vector_service", lambda: vector_service)
    with TestClient(main.app) as test_client:
        yield test_client


class TestClaims:
    def test_reads_bearer_claims_without_verification(self):
        claims = main.claims_from_authorization(bearer(["Deity"])["Authorization"])
        assert claims["cognito:groups"] == ["Deity"]

    @pytest.mark.parametrize("header", [None, "", "Basic abc", "Bearer not-a-jwt"])
    def test_unusable_headers(self, header):
        assert main.claims_from_authorization(header) is None


class TestRoutes:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["environment"] == {"storage": "s3", "vectors": "local"}
        assert body["services"] == {"vectors": "ok", "vector_count": 0}

    def test_health_degraded_when_index_unreachable(self, client, vector_service, monkeypatch):
        async def unreachable():
            raise ConnectionError("index offline")

        monkeypatch.setattr(vector_service, "get_stats", unreachable)

        body = client.get("/health").json()

        assert body["status"] == "degraded"
        assert body["services"]["vectors"] == "error: index offline"

    def test_create_and_fetch(self, client):
        created = client.post("/members/member", json={"name": "Aldric", "level": 5}, headers=bearer(["Administrator"]))
        assert created.status_code == 201
        assert created.headers["access-control-allow-origin"] == "*"

        fetched = client.get(f"/members/member/{created.json()['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["level"] == 5

    def test_player_forbidden(self, client):
        response = client.put("/members/member/123", json={"name": "X"}, headers=bearer(["Player"]))
        assert response.status_code == 403

    def test_characters_from_token_subject(self, client):
        client.post("/members/member", json={"name": "Mine", "owner": "u1"}, headers=bearer(["Administrator"]))

        response = client.get("/members/characters", headers=bearer([], sub="u1"))

        assert response.status_code == 200
        assert [m["name"] for m in response.json()] == ["Mine"]

    def test_multipart_upload(self, client, fake_s3):
        response = client.post(
            "/members/member",
            data={"data": '{"name": "Aldric"}'},
            files={"image": ("portrait.jpg", make_image_bytes(400, 400), "image/jpeg")},
            headers=bearer(["Administrator"]),
        )

        assert response.status_code == 201
        assert response.json()["image"] in fake_s3.objects

    def test_unsupported_method(self, client):
        assert client.patch("/members").status_code == 405
