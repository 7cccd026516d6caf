from datetime import datetime, timedelta, timezone

import pytest

from sharelinks.errors import PolicyViolation
from sharelinks.models.links import VisibilityClass
from sharelinks.models.policy import Policy
from sharelinks.services.policy import evaluate_expiration, max_duration_days

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _policy(internal=90, external=30, allow_public=True) -> Policy:
    return Policy(
        name="default",
        max_duration_internal=internal,
        max_duration_external=external,
        allow_public_sharing=allow_public,
    )


class TestEvaluateExpiration:
    def test_defaults_to_max_window(self) -> None:
        result = evaluate_expiration(VisibilityClass.public, None, _policy(), NOW)
        assert result == datetime(2024, 1, 31, tzinfo=timezone.utc)

    def test_restricted_uses_internal_window(self) -> None:
        result = evaluate_expiration(VisibilityClass.restricted, None, _policy(), NOW)
        assert result == NOW + timedelta(days=90)

    def test_request_within_window_is_kept(self) -> None:
        requested = datetime(2024, 1, 15, 12, 30, tzinfo=timezone.utc)
        result = evaluate_expiration(VisibilityClass.public, requested, _policy(), NOW)
        assert result == requested

    def test_request_at_exact_max_is_allowed(self) -> None:
        requested = NOW + timedelta(days=30)
        result = evaluate_expiration(VisibilityClass.public, requested, _policy(), NOW)
        assert result == requested

    def test_request_beyond_window_rejected(self) -> None:
        with pytest.raises(PolicyViolation) as exc:
            evaluate_expiration(
                VisibilityClass.public,
                datetime(2024, 3, 1, tzinfo=timezone.utc),
                _policy(),
                NOW,
            )
        assert exc.value.message == "exceeds allowed limit"
        assert exc.value.details["max_allowed"] == "2024-01-31T00:00:00+00:00"

    def test_public_disabled_rejected(self) -> None:
        policy = _policy(allow_public=False)
        with pytest.raises(PolicyViolation) as exc:
            evaluate_expiration(VisibilityClass.public, None, policy, NOW)
        assert exc.value.message == "public sharing disabled"

    def test_public_disabled_does_not_affect_restricted(self) -> None:
        policy = _policy(allow_public=False)
        result = evaluate_expiration(VisibilityClass.restricted, None, policy, NOW)
        assert result == NOW + timedelta(days=90)

    def test_naive_request_treated_as_utc(self) -> None:
        result = evaluate_expiration(
            VisibilityClass.public, datetime(2024, 1, 10), _policy(), NOW
        )
        assert result == datetime(2024, 1, 10, tzinfo=timezone.utc)

    def test_never_exceeds_max(self) -> None:
        policy = _policy(internal=7, external=3)
        for visibility in VisibilityClass:
            max_date = NOW + timedelta(days=max_duration_days(visibility, policy))
            for offset in (-5, 0, 1, 3, 7, 10, 400):
                requested = NOW + timedelta(days=offset)
                try:
                    result = evaluate_expiration(visibility, requested, policy, NOW)
                except PolicyViolation:
                    assert requested > max_date
                else:
                    assert result <= max_date


class TestPolicyService:
    async def test_init_seeds_defaults(self, services) -> None:
        policy = await services.policies.current()
        assert policy.max_duration_internal == 90
        assert policy.max_duration_external == 30
        assert policy.allow_public_sharing is True

    async def test_init_is_idempotent(self, services) -> None:
        first = await services.policies.init()
        second = await services.policies.init()
        assert first.id == second.id

    async def test_update_merges_fields(self, services) -> None:
        updated = await services.policies.update({"max_duration_external": 14})
        assert updated.max_duration_external == 14
        assert updated.max_duration_internal == 90
        current = await services.policies.current()
        assert current.max_duration_external == 14

    async def test_update_rejects_negative(self, services) -> None:
        with pytest.raises(PolicyViolation):
            await services.policies.update({"max_duration_internal": -1})
