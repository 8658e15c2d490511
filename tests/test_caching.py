"""Tests for Redis caching implementation."""

from unittest.mock import MagicMock

import pytest
from httpx import AsyncClient

from clinic_scheduler.core.redis_client import CacheManager, get_cache_manager
from clinic_scheduler.main import app
from clinic_scheduler.services.directory_service import DirectoryService


def test_cache_manager_get_json():
    """Test CacheManager get_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    # Test cache miss
    mock_redis.get.return_value = None
    result = cache_manager.get_json("test_key")
    assert result is None
    mock_redis.get.assert_called_once_with("test_key")

    # Test cache hit
    mock_redis.reset_mock()
    mock_redis.get.return_value = '{"first_name": "Gregory", "experience": 20}'
    result = cache_manager.get_json("test_key")
    assert result == {"first_name": "Gregory", "experience": 20}
    mock_redis.get.assert_called_once_with("test_key")


def test_cache_manager_set_json():
    """Test CacheManager set_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    test_data = {"first_name": "Gregory", "experience": 20}

    # Test without TTL
    result = cache_manager.set_json("test_key", test_data)
    assert result is True
    mock_redis.set.assert_called_once()

    # Test with TTL
    mock_redis.reset_mock()
    result = cache_manager.set_json("test_key", test_data, ttl=300)
    assert result is True
    mock_redis.setex.assert_called_once()


def test_cache_manager_delete():
    """Test CacheManager delete method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    result = cache_manager.delete("test_key")
    assert result is True
    mock_redis.delete.assert_called_once_with("test_key")


def test_cache_manager_fails_soft():
    """A Redis outage reads as a miss and never raises."""
    mock_redis = MagicMock()
    mock_redis.get.side_effect = ConnectionError("redis down")
    mock_redis.setex.side_effect = ConnectionError("redis down")
    mock_redis.delete.side_effect = ConnectionError("redis down")
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.get_json("test_key") is None
    assert cache_manager.set_json("test_key", {"a": 1}, ttl=60) is False
    assert cache_manager.delete("test_key") is False


def test_cache_manager_disabled(monkeypatch):
    from clinic_scheduler.core import redis_client

    monkeypatch.setattr(redis_client.settings, "cache_enabled", False)
    assert get_cache_manager() is None


@pytest.mark.asyncio
async def test_doctor_summary_cached(db_session, test_doctor):
    """Test the doctor summary is served from cache on the second lookup."""
    store: dict[str, str] = {}
    mock_redis = MagicMock()
    mock_redis.get.side_effect = store.get
    mock_redis.setex.side_effect = lambda key, ttl, value: store.__setitem__(key, value)

    directory = DirectoryService(cache_manager=CacheManager(redis_client=mock_redis))
    cache_key = f"doctor:summary:{test_doctor['id']}"

    first = await directory.get_doctor(db_session, test_doctor["id"])
    assert first is not None
    mock_redis.setex.assert_called_once()
    assert mock_redis.setex.call_args.args[:2] == (cache_key, DirectoryService.DOCTOR_CACHE_TTL)

    second = await directory.get_doctor(db_session, test_doctor["id"])
    assert second == first
    assert mock_redis.setex.call_count == 1
    assert "password_hash" not in store[cache_key]


@pytest.mark.asyncio
async def test_unknown_doctor_not_cached(db_session):
    from uuid import uuid4

    mock_redis = MagicMock()
    mock_redis.get.return_value = None
    directory = DirectoryService(cache_manager=CacheManager(redis_client=mock_redis))

    assert await directory.get_doctor(db_session, uuid4()) is None
    mock_redis.setex.assert_not_called()


@pytest.mark.asyncio
async def test_booking_never_caches_slot_state(
    client: AsyncClient,
    patient_headers: dict,
    booking_payload: dict,
):
    """Only directory entries go to Redis; appointments always hit the database."""
    mock_redis = MagicMock()
    mock_redis.get.return_value = None
    app.dependency_overrides[get_cache_manager] = lambda: CacheManager(redis_client=mock_redis)

    response = await client.post(
        "/api/v1/appointments/book",
        json=booking_payload,
        headers=patient_headers,
    )
    assert response.status_code == 201

    written_keys = [call.args[0] for call in mock_redis.setex.call_args_list]
    assert written_keys == [f"doctor:summary:{booking_payload['doctor_id']}"]
