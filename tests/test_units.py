import math

import pytest

from cakedefense.units import (
    Booster,
    Bullet,
    Cannon,
    Fence,
    FenceOrientation,
    Townhall,
    Troop,
    Worker,
    troop_sprite,
)


@pytest.mark.parametrize(
    "level, expected",
    [
        (1, ("level1fly.png", 40)),
        (2, ("level2ant.png", 40)),
        (3, ("level3grass.png", 40)),
        (4, ("level4roach.png", 30)),
        (5, ("level5rat.png", 30)),
        (9, ("level5rat.png", 30)),
    ],
)
def test_troop_sprite(level, expected):
    assert troop_sprite(level) == expected


def test_cannon_starts_at_base_power():
    cannon = Cannon()
    assert cannon.power == 100
    assert cannon.current_power == 100


def test_cannon_power_up():
    cannon = Cannon()
    cannon.power_up()
    assert cannon.power == pytest.approx(110)
    assert cannon.current_power == pytest.approx(111)


def test_power_up_keeps_growing():
    cannon = Cannon()
    cannon.power_up()
    first = cannon.power
    cannon.power_up()
    assert cannon.power > first


def test_booster_boost_and_revert():
    cannon = Cannon()
    booster = Booster()
    booster.boost(cannon)
    assert cannon.current_power == pytest.approx(150)
    assert booster.visible is False
    assert booster.active is True
    booster.revert(cannon)
    assert cannon.current_power == cannon.power
    assert booster.active is False


def test_booster_duration():
    assert Booster().duration_ms == 30000


def test_bullet_starts_at_origin():
    bullet = Bullet(300, 400, 20, 30)
    assert (bullet.x, bullet.y) == (20, 30)


def test_bullet_step_moves_by_speed_towards_target():
    bullet = Bullet(300, 400, 20, 30)
    before = math.dist((bullet.x, bullet.y), (300, 400))
    x, y = bullet.step()
    assert math.hypot(x - 20, y - 30) == pytest.approx(bullet.speed)
    assert math.dist((x, y), (300, 400)) == pytest.approx(before - bullet.speed)


def test_bullet_without_direction_stays_put():
    bullet = Bullet(5, 5, 5, 5)
    assert bullet.step() == (5, 5)


def test_bullet_out_of_bounds():
    bullet = Bullet(-100, 0, 5, 0)
    assert bullet.out_of_bounds(500, 500) is False
    bullet.step()
    assert bullet.out_of_bounds(500, 500) is True


def test_fence_defaults():
    fence = Fence("vertical")
    assert fence.orientation is FenceOrientation.VERTICAL
    assert fence.health.max_health == 1000
    assert fence.needs_repair is False


def test_fence_bad_orientation():
    with pytest.raises(ValueError):
        Fence("diagonal")


def test_fence_upgrade_refills():
    fence = Fence()
    fence.health.reduce(300)
    fence.upgrade(2000)
    assert fence.health.max_health == 2000
    assert fence.health.health == 2000


def test_townhall_health():
    townhall = Townhall(grid_position=(3, 4))
    assert townhall.health.health == 1000
    assert townhall.grid_position == (3, 4)


def test_troop_attributes():
    troop = Troop(300, 100, 1)
    assert troop.health.health == 300
    assert troop.power == 100
    assert troop.image == "level1fly.png"


def test_troop_knock_back_moves_away():
    troop = Troop(300, 100, 1, x=100, y=100)
    troop.knock_back(105, 100)
    assert troop.x < 100
    assert 100 - troop.x == 105 - 100
    assert troop.y == 100


def test_troop_knock_back_from_own_position():
    troop = Troop(300, 100, 1, x=40, y=60)
    troop.knock_back(40, 60)
    assert (troop.x, troop.y) == (40, 60)


def test_troop_dance():
    troop = Troop(300, 100, 2, x=0, y=100)
    troop.dance_step()
    assert troop.y == 100
    troop.dance()
    assert troop.y == 100 - 15
    troop.dance_step()
    assert troop.y == 100


def test_worker_done_when_fence_full():
    worker = Worker(Fence(x=200, y=200))
    assert worker.step() is False


def test_worker_done_when_fence_destroyed():
    fence = Fence(x=200, y=200)
    fence.health.reduce(10)
    fence.destroyed = True
    assert Worker(fence).step() is False


def test_worker_walks_towards_fence():
    fence = Fence(x=500, y=0)
    fence.health.reduce(10)
    worker = Worker(fence, x=0, y=0)
    before = math.dist((worker.x, worker.y), (fence.x, fence.y))
    assert worker.step() is True
    after = math.dist((worker.x, worker.y), (fence.x, fence.y))
    assert after == pytest.approx(before - worker.speed)
    assert fence.health.health == fence.health.max_health - 10


def test_worker_repairs_on_contact():
    fence = Fence(FenceOrientation.HORIZONTAL, x=100, y=100)
    fence.health.reduce(10)
    damaged = fence.health.health
    worker = Worker(fence, x=110, y=100)
    assert worker.step() is True
    assert fence.health.health == damaged + 1


def test_fix_fence_pushes_vertical_side():
    fence = Fence(FenceOrientation.VERTICAL, x=100, y=100)
    fence.health.reduce(5)
    worker = Worker(fence, x=120, y=100)
    worker.fix_fence()
    assert worker.x == 120 + 20
    assert worker.y == 100


def test_fix_fence_pushes_horizontal_side():
    fence = Fence(FenceOrientation.HORIZONTAL, x=100, y=100)
    worker = Worker(fence, x=100, y=90)
    worker.fix_fence()
    assert worker.y == 90 - 20
    assert fence.health.health == fence.health.max_health


def test_worker_dance():
    worker = Worker(Fence(), x=0, y=50)
    worker.dance()
    assert worker.y == 50 - 15
    worker.dance_step()
    assert worker.y == 50