from __future__ import annotations

import random

import pytest

from reverso_proxy.backoff import BackoffPolicy


def test_delay_stays_within_exponential_bounds():
    policy = BackoffPolicy(base_delay=0.3, jitter_ceiling=0.5, uniform=random.Random(7).uniform)

    for attempt in range(6):
        floor = 0.3 * 2**attempt
        for _ in range(50):
            delay = policy.delay(attempt)
            assert floor <= delay <= floor + 0.5


def test_delay_uses_injected_jitter():
    policy = BackoffPolicy(base_delay=0.3, jitter_ceiling=0.5, uniform=lambda low, high: high)

    assert policy.delay(0) == pytest.approx(0.8)
    assert policy.delay(2) == pytest.approx(1.7)


def test_delay_is_positive_without_jitter():
    policy = BackoffPolicy(base_delay=0.1, jitter_ceiling=0.0)

    assert policy.delay(0) == pytest.approx(0.1)
    assert policy.delay(3) == pytest.approx(0.8)


@pytest.mark.parametrize("base, jitter", [(0.0, 0.5), (-1.0, 0.5), (0.3, -0.1)])
def test_rejects_non_positive_configuration(base: float, jitter: float):
    with pytest.raises(ValueError):
        BackoffPolicy(base_delay=base, jitter_ceiling=jitter)


def test_rejects_negative_attempt():
    with pytest.raises(ValueError):
        BackoffPolicy().delay(-1)
