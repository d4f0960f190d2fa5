"""Tests for policy configuration."""

from datetime import timedelta

from detached.uow import Policy, ReplaceMode


def test_defaults():
    policy = Policy()

    assert policy.explicit_identity is False
    assert policy.replace_mode == ReplaceMode.CHANGED_FIELDS
    assert policy.timeout is None
    assert policy.timeout_seconds is None


def test_with_methods_return_new_policy():
    base = Policy()

    configured = (
        base.with_explicit_identity()
        .with_replace_mode(ReplaceMode.FULL_ROW)
        .with_timeout(seconds=5)
    )

    assert base == Policy()
    assert configured.explicit_identity is True
    assert configured.replace_mode == ReplaceMode.FULL_ROW
    assert configured.timeout_seconds == 5.0


def test_each_method_keeps_other_settings():
    policy = Policy().with_timeout(seconds=2).with_replace_mode(ReplaceMode.FULL_ROW)

    assert policy.with_explicit_identity().timeout == timedelta(seconds=2)
    assert policy.with_explicit_identity().replace_mode == ReplaceMode.FULL_ROW
    assert policy.with_explicit_identity(False).explicit_identity is False


def test_timeout_from_delta():
    policy = Policy().with_timeout(delta=timedelta(milliseconds=250))

    assert policy.timeout_seconds == 0.25


def test_non_positive_timeout_means_unbounded():
    assert Policy().with_timeout(seconds=0).timeout is None
    assert Policy().with_timeout(delta=timedelta(seconds=-1)).timeout is None
    assert Policy().with_timeout(seconds=3).with_timeout().timeout is None
