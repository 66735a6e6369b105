import pytest

from cakedefense.health import DEFAULT_MAX_HEALTH, Health


def test_default_pool_is_full_at_ten():
    h = Health()
    assert h.max_health == 10
    assert h.health == h.max_health


def test_custom_pool_starts_full():
    h = Health(1000)
    assert h.health == 1000
    assert h.max_health == 1000


def test_reduce_subtracts_amount():
    h = Health(1000)
    h.reduce(300)
    assert h.health == 1000 - 300
    assert h.max_health == 1000


def test_reduce_can_go_negative_and_deplete():
    h = Health(100)
    assert not h.depleted
    h.reduce(250)
    assert h.health < 0
    assert h.depleted


def test_exact_zero_is_depleted():
    h = Health(50)
    h.reduce(50)
    assert h.depleted


def test_increment_adds_one_without_cap():
    h = Health(DEFAULT_MAX_HEALTH)
    h.increment()
    assert h.health == DEFAULT_MAX_HEALTH + 1


def test_increment_after_damage():
    h = Health(20)
    h.reduce(5)
    h.increment()
    assert h.health == 20 - 5 + 1


@pytest.mark.parametrize("value", [15, 2000, 0.5])
def test_set_max_refills(value):
    h = Health(1000)
    h.reduce(999)
    h.set_max(value)
    assert h.max_health == value
    assert h.health == value