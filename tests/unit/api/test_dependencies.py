"""Unit tests for the DtoFromRequest dependency."""

from typing import Annotated, Any

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from src.api.dependencies import DtoFromRequest
from src.api.middleware.error_handler import register_exception_handlers
from src.dto import Dto, DtoFactory

VALID_INPUT = {
    "title": "Hello",
    "slug": "hello",
    "body": "A body that is long enough",
}


@pytest.fixture
def client(factory: DtoFactory) -> TestClient:
    """Provide a client for a small app using the dependency."""
    app = FastAPI()
    register_exception_handlers(app)

    @app.post("/posts")
    async def create_post(
        dto: Annotated[Dto, Depends(DtoFromRequest("CreatePost", factory=factory))],
    ) -> dict[str, Any]:
        return {"values": dto.to_dict()}

    @app.post("/posts/title")
    async def retitle(
        dto: Annotated[
            Dto,
            Depends(
                DtoFromRequest(
                    "CreatePost", fields=["title"], validate=False, factory=factory
                )
            ),
        ],
    ) -> dict[str, Any]:
        return {"values": dto.values, "errors": dto.errors}

    @app.get("/posts/search")
    async def search(
        dto: Annotated[
            Dto, Depends(DtoFromRequest("CreatePost", validate=False, factory=factory))
        ],
    ) -> dict[str, Any]:
        return {"values": dto.values}

    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.unit
class TestDtoFromRequest:
    """Tests for request decoding and population."""

    def test_json_body(self, client: TestClient) -> None:
        """JSON objects populate the DTO; defaults appear after validation."""
        response = client.post("/posts", json={**VALID_INPUT, "is_admin": True})

        assert response.status_code == 200
        assert response.json()["values"] == {**VALID_INPUT, "status": "draft"}

    def test_form_body(self, client: TestClient) -> None:
        """Urlencoded forms populate the DTO with coercion."""
        response = client.post(
            "/posts", data={**VALID_INPUT, "featured": "on", "view_count": "3"}
        )

        assert response.status_code == 200
        values = response.json()["values"]
        assert values["featured"] is True
        assert values["view_count"] == 3

    def test_invalid_input_is_422(self, client: TestClient) -> None:
        """Validation failures carry per-field messages."""
        response = client.post("/posts", data={"title": "Hello", "slug": "Bad Slug"})

        assert response.status_code == 422
        body = response.json()
        assert body["details"]["validation_errors"] == {
            "slug": ["must match the pattern ^[a-z0-9-]+$"],
            "body": ["is required"],
        }

    def test_field_allowlist_without_validation(self, client: TestClient) -> None:
        """Only allowlisted fields are copied when validation is deferred."""
        response = client.post("/posts/title", json=VALID_INPUT)

        assert response.status_code == 200
        assert response.json() == {"values": {"title": "Hello"}, "errors": []}

    def test_query_string_without_body(self, client: TestClient) -> None:
        """Requests without a body read the query string."""
        response = client.get("/posts/search", params={"title": "Hello", "x": "1"})

        assert response.status_code == 200
        assert response.json() == {"values": {"title": "Hello"}}

    @pytest.mark.parametrize(
        ("content", "message"),
        [
            (b"{not json", "Malformed JSON body"),
            (b"[1, 2]", "JSON body must be an object"),
        ],
    )
    def test_bad_json_is_422(
        self, client: TestClient, content: bytes, message: str
    ) -> None:
        """Bodies that are not JSON objects are rejected."""
        response = client.post(
            "/posts", content=content, headers={"content-type": "application/json"}
        )

        assert response.status_code == 422
        assert response.json()["message"] == message

    def test_empty_json_body_is_empty_input(self, client: TestClient) -> None:
        """An empty JSON body behaves like an empty object."""
        response = client.post(
            "/posts", content=b"", headers={"content-type": "application/json"}
        )

        assert response.status_code == 422
        assert list(response.json()["details"]["validation_errors"]) == [
            "title",
            "slug",
            "body",
        ]
