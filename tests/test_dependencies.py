"""
Tests for the dependencies module.
"""

from unittest.mock import MagicMock

import pytest

from review_api.dependencies import get_store
from review_api.store import StoreError


class TestGetStore:
    """Tests for get_store function."""

    def test_get_store_success(self) -> None:
        """Test getting the store client from app state."""
        mock_request = MagicMock()
        mock_store = MagicMock()
        mock_request.app.state.store = mock_store

        assert get_store(mock_request) is mock_store

    def test_get_store_not_initialized(self) -> None:
        """Test that a missing client raises StoreError."""
        mock_request = MagicMock()
        mock_request.app.state.store = None

        with pytest.raises(StoreError, match="not initialized"):
            get_store(mock_request)

    def test_get_store_missing_attribute(self) -> None:
        """Test that an absent attribute is treated as not initialized."""
        mock_request = MagicMock()
        del mock_request.app.state.store

        with pytest.raises(StoreError):
            get_store(mock_request)

    def test_uninitialized_store_renders_uniform_error(self) -> None:
        """Test that the app turns the dependency failure into 500 {"error": ...}."""
        from fastapi.testclient import TestClient

        from review_api.app import create_app
        from review_api.config import ApiSettings

        app = create_app(ApiSettings(SUPABASE_URL="http://store.test", SUPABASE_ANON_KEY="k"))
        # No lifespan: app.state.store is never set
        client = TestClient(app)

        response = client.get("/api/videos")

        assert response.status_code == 500
        assert response.json() == {"error": "Store client not initialized"}
