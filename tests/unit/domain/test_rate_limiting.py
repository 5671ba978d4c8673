"""
Unit tests for the rate limiting domain: value objects, entity and manager.
"""

import time
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from secureshare.domain.errors import RateLimitExceededError
from secureshare.domain.rate_limiting import (
    ClientIP,
    RateLimit,
    RateLimitEntity,
    RateLimitManager,
)
from secureshare.infrastructure.memory_rate_limit_repository import InMemoryRateLimitRepository

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)
TEST_IP = "192.168.1.100"
WHITELISTED_IP = "10.0.0.1"


class TestClientIP:
    @pytest.mark.parametrize("address", ["192.168.1.1", "::1", "2001:db8::1"])
    def test_valid_addresses(self, address):
        assert ClientIP(address).address == address

    @pytest.mark.parametrize("address", ["", "not-an-ip", "999.1.1.1"])
    def test_invalid_addresses(self, address):
        with pytest.raises(ValueError):
            ClientIP(address)

    def test_ipv4_mapped_address_is_normalized(self):
        assert ClientIP("::ffff:192.168.1.100") == ClientIP(TEST_IP)

    def test_whitelist_by_address(self):
        assert ClientIP(WHITELISTED_IP).is_whitelisted([WHITELISTED_IP])
        assert not ClientIP(TEST_IP).is_whitelisted([WHITELISTED_IP])

    def test_whitelist_by_network(self):
        whitelist = ["10.0.0.0/8", "not-a-network"]

        assert ClientIP("10.20.30.40").is_whitelisted(whitelist)
        assert not ClientIP(TEST_IP).is_whitelisted(whitelist)
        assert not ClientIP("::1").is_whitelisted(whitelist)

    def test_counter_key_hides_address(self):
        key = ClientIP(TEST_IP).counter_key("upload")

        assert key.startswith("upload:")
        assert TEST_IP not in key
        assert key != ClientIP(TEST_IP).counter_key("download")


class TestRateLimit:
    @pytest.mark.parametrize("scope,limit,window", [
        ("upload", 0, 60),
        ("upload", 10, 0),
        ("", 10, 60),
    ])
    def test_rejects_invalid_values(self, scope, limit, window):
        with pytest.raises(ValueError):
            RateLimit(scope=scope, limit=limit, window_seconds=window)

    def test_window_end(self):
        rate_limit = RateLimit(scope="upload", limit=10, window_seconds=900)

        assert rate_limit.window == timedelta(minutes=15)
        assert rate_limit.window_end(NOW) == NOW + timedelta(minutes=15)


class TestRateLimitEntity:
    def make_entity(self, count, limit=10):
        return RateLimitEntity(
            client_ip=ClientIP(TEST_IP),
            scope="upload",
            count=count,
            limit=limit,
            reset_at=NOW,
        )

    def test_request_reaching_limit_is_allowed(self):
        assert not self.make_entity(10).is_exceeded()
        assert self.make_entity(11).is_exceeded()

    def test_remaining_never_negative(self):
        assert self.make_entity(3).remaining() == 7
        assert self.make_entity(15).remaining() == 0

    def test_seconds_until_reset_rounds_up(self):
        entity = self.make_entity(1)

        assert entity.seconds_until_reset(NOW - timedelta(seconds=9.2)) == 10
        assert entity.seconds_until_reset(NOW + timedelta(seconds=5)) == 0

    def test_headers(self):
        assert self.make_entity(4).to_headers() == {
            "X-RateLimit-Limit": "10",
            "X-RateLimit-Remaining": "6",
            "X-RateLimit-Reset": str(int(NOW.timestamp())),
        }


class TestRateLimitManager:
    @pytest.fixture
    def rate_limit(self):
        return RateLimit(scope="upload", limit=3, window_seconds=900)

    @pytest.fixture
    def manager(self):
        return RateLimitManager(InMemoryRateLimitRepository())

    def test_allows_up_to_limit_then_rejects(self, manager, rate_limit):
        ip = ClientIP(TEST_IP)

        for expected in range(1, 4):
            assert manager.check_limit(ip, rate_limit, []).count == expected

        with pytest.raises(RateLimitExceededError) as exc_info:
            manager.check_limit(ip, rate_limit, [], message="Too many uploads, please try again later")

        error = exc_info.value
        assert error.message == "Too many uploads, please try again later"
        assert error.scope == "upload"
        assert error.limit == 3
        assert 899 <= error.retry_after <= 900

    def test_retry_after_counts_down_to_window_end(self, rate_limit):
        repository = Mock()
        repository.hit.return_value = RateLimitEntity(
            client_ip=ClientIP(TEST_IP),
            scope="upload",
            count=4,
            limit=3,
            reset_at=NOW + timedelta(seconds=900),
        )
        manager = RateLimitManager(repository, clock=lambda: NOW + timedelta(seconds=300))

        with pytest.raises(RateLimitExceededError) as exc_info:
            manager.check_limit(ClientIP(TEST_IP), rate_limit, [])

        assert exc_info.value.reset_at == NOW + timedelta(seconds=900)
        assert exc_info.value.retry_after == 600

    @pytest.mark.slow
    def test_window_resets(self, manager):
        rate_limit = RateLimit(scope="upload", limit=3, window_seconds=1)
        ip = ClientIP(TEST_IP)
        for _ in range(3):
            manager.check_limit(ip, rate_limit, [])

        time.sleep(1.1)

        assert manager.check_limit(ip, rate_limit, []).count == 1

    def test_clients_are_counted_separately(self, manager, rate_limit):
        for _ in range(3):
            manager.check_limit(ClientIP(TEST_IP), rate_limit, [])

        assert manager.check_limit(ClientIP("192.168.1.101"), rate_limit, []).count == 1

    def test_whitelisted_ip_is_not_counted(self, rate_limit):
        repository = Mock()
        manager = RateLimitManager(repository, clock=lambda: NOW)

        for _ in range(10):
            entity = manager.check_limit(ClientIP(WHITELISTED_IP), rate_limit, [WHITELISTED_IP])

        assert entity.count == 0
        assert entity.reset_at == NOW + timedelta(seconds=900)
        repository.hit.assert_not_called()

    def test_usage_does_not_count(self, manager, rate_limit):
        ip = ClientIP(TEST_IP)
        manager.check_limit(ip, rate_limit, [])

        assert manager.usage(ip, rate_limit).count == 1
        assert manager.usage(ip, rate_limit).count == 1
