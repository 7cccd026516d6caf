from datetime import datetime, timedelta, timezone

import pytest

from sharelinks.repositories import LockRepository

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture()
def locks(session_factory):
    return LockRepository(session_factory)


class TestLockRepository:
    async def test_acquire_free_lock(self, locks) -> None:
        assert await locks.acquire("link-sync", "holder-a", 60, now=NOW) is True

    async def test_held_lock_rejects_second_holder(self, locks) -> None:
        assert await locks.acquire("link-sync", "holder-a", 60, now=NOW)
        later = NOW + timedelta(seconds=30)
        assert await locks.acquire("link-sync", "holder-b", 60, now=later) is False

    async def test_release_frees_lock(self, locks) -> None:
        await locks.acquire("link-sync", "holder-a", 60, now=NOW)
        assert await locks.release("link-sync", "holder-a") is True
        assert await locks.acquire("link-sync", "holder-b", 60, now=NOW)

    async def test_release_by_non_holder_is_ignored(self, locks) -> None:
        await locks.acquire("link-sync", "holder-a", 60, now=NOW)
        assert await locks.release("link-sync", "holder-b") is False
        assert await locks.acquire("link-sync", "holder-b", 60, now=NOW) is False

    async def test_expired_lease_can_be_taken_over(self, locks) -> None:
        await locks.acquire("link-sync", "holder-a", 60, now=NOW)
        expired = NOW + timedelta(seconds=60)
        assert await locks.acquire("link-sync", "holder-b", 60, now=expired) is True
        # the previous holder no longer owns it
        assert await locks.release("link-sync", "holder-a") is False

    async def test_locks_are_independent_by_name(self, locks) -> None:
        assert await locks.acquire("link-sync", "holder-a", 60, now=NOW)
        assert await locks.acquire("other-job", "holder-b", 60, now=NOW)
