"""
Tests for API response utilities
"""
import pytest
from quart import Quart
from utils.api_responses import (
    success_response,
    error_response,
    unauthorized_response,
    search_response,
)
from services.post_search_service import PostSearchResult, SearchOutcome


@pytest.fixture
def app():
    """Create a minimal Quart app for testing."""
    app = Quart(__name__)
    return app


@pytest.mark.asyncio
async def test_success_response_with_data_and_message(app):
    async with app.app_context():
        response = success_response({"count": 10}, "Operation completed")
        data = await response.get_json()

        assert data == {"success": True, "message": "Operation completed", "count": 10}


@pytest.mark.asyncio
async def test_error_response_with_data(app):
    async with app.app_context():
        response, status_code = error_response("Invalid input", 422, {"field": "tags"})
        data = await response.get_json()

        assert status_code == 422
        assert data == {"success": False, "error": "Invalid input", "field": "tags"}


@pytest.mark.asyncio
async def test_unauthorized_response_default(app):
    async with app.app_context():
        response, status_code = unauthorized_response()
        data = await response.get_json()

        assert data["error"] == "Unauthorized"
        assert status_code == 401


@pytest.mark.asyncio
async def test_search_response_success(app):
    async with app.app_context():
        response = search_response(PostSearchResult(total_count=0, outcome=SearchOutcome.EMPTY_QUERY))
        data = await response.get_json()

        assert data["success"] is True
        assert data["outcome"] == "empty_query"
        assert data["posts"] == []


@pytest.mark.asyncio
async def test_search_response_error_keeps_body(app):
    async with app.app_context():
        result = PostSearchResult(error="Failed to search posts", outcome=SearchOutcome.FAILED)
        response, status_code = search_response(result, 500)
        data = await response.get_json()

        assert status_code == 500
        assert data["success"] is False
        assert data["error"] == "Failed to search posts"
        assert data["totalCount"] == 0
