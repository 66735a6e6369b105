"""Things on the battlefield: cannon, bullets, boosters, fences, town hall, troops and workers."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from cakedefense.health import Health

TILE_SIZE = 50

CANNON_BASE_POWER = 100.0
POWER_UP_RATE = 0.1
BOOST_RATE = 0.5
BOOST_DURATION_MS = 30000

BULLET_SPEED = 10.0
BULLET_SIZE = 30
BULLET_INTERVAL_MS = 30

FENCE_HEALTH = 1000.0
TOWNHALL_HEALTH = 1000.0

DANCE_HEIGHT = 15
DANCE_INTERVAL_MS = 300

WORKER_SIZE = 30
WORKER_SPEED = 10.0
WORKER_PUSH = 20
WORKER_INTERVAL_MS = 250

_TROOP_SPRITES = {
    1: ("level1fly.png", 40),
    2: ("level2ant.png", 40),
    3: ("level3grass.png", 40),
    4: ("level4roach.png", 30),
}
_LAST_TROOP_SPRITE = ("level5rat.png", 30)


def troop_sprite(level: int) -> tuple[str, int]:
    """Image name and edge size of the troop drawn on ``level``; level 5 and above share one."""
    return _TROOP_SPRITES.get(level, _LAST_TROOP_SPRITE)


def _unit_vector(dx: float, dy: float) -> tuple[float, float]:
    length = math.hypot(dx, dy)
    if length == 0:
        return 0.0, 0.0
    return dx / length, dy / length


def _overlaps(ax: float, ay: float, asize: float, bx: float, by: float, bsize: float) -> bool:
    return ax < bx + bsize and bx < ax + asize and ay < by + bsize and by < ay + asize


class _Dancing(Protocol):
    y: float
    dancing: bool


def _start_dance(unit: _Dancing) -> None:
    unit.dancing = True
    unit.y -= DANCE_HEIGHT


def _dance_step(unit: _Dancing) -> None:
    if unit.dancing:
        unit.y += DANCE_HEIGHT


class FenceOrientation(str, Enum):
    """Which way a fence segment runs; decides the side units are pushed to."""

    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


@dataclass
class Cannon:
    """The player's shooter; ``current_power`` is the damage each bullet deals."""

    x: float = 0.0
    y: float = 0.0
    power: float = CANNON_BASE_POWER
    current_power: float = CANNON_BASE_POWER
    image: str = "human.png"

    def power_up(self) -> None:
        """Raise the base power by 10%, and the current power by 10% of the new base."""
        self.power += self.power * POWER_UP_RATE
        self.current_power += self.power * POWER_UP_RATE


@dataclass
class Booster:
    """A pickup that raises cannon power for a limited time once shot."""

    x: float = 0.0
    y: float = 0.0
    visible: bool = True
    active: bool = False
    duration_ms: int = BOOST_DURATION_MS
    image: str = "booster.png"
    size: int = 30

    def boost(self, cannon: Cannon) -> None:
        """Add half the cannon's base power to its current power and hide the pickup."""
        cannon.current_power += cannon.power * BOOST_RATE
        self.visible = False
        self.active = True

    def revert(self, cannon: Cannon) -> None:
        """End the boost, putting the cannon back to its base power."""
        cannon.current_power = cannon.power
        self.active = False


@dataclass
class Bullet:
    """A projectile flying from the cannon towards the point that was clicked."""

    target_x: float
    target_y: float
    origin_x: float
    origin_y: float
    speed: float = BULLET_SPEED
    size: int = BULLET_SIZE
    image: str = "slipper.png"
    x: float = field(init=False)
    y: float = field(init=False)

    def __post_init__(self) -> None:
        self.x = self.origin_x
        self.y = self.origin_y

    @property
    def direction(self) -> tuple[float, float]:
        """Unit vector of travel; zero when the target is the origin itself."""
        return _unit_vector(self.target_x - self.origin_x, self.target_y - self.origin_y)

    def step(self) -> tuple[float, float]:
        """Move one tick along the firing line and return the new position."""
        ux, uy = self.direction
        self.x += ux * self.speed
        self.y += uy * self.speed
        return self.x, self.y

    def out_of_bounds(self, width: float, height: float) -> bool:
        """True once the bullet has left a field of the given size."""
        return self.y < 0 or self.y > height or self.x < 0 or self.x > width

    def hits(self, x: float, y: float, size: float) -> bool:
        """True if the bullet overlaps a square item at ``(x, y)`` with edge ``size``."""
        return _overlaps(self.x, self.y, self.size, x, y, size)


@dataclass
class Fence:
    """A wall segment that troops must break through and workers repair."""

    orientation: FenceOrientation = FenceOrientation.HORIZONTAL
    x: float = 0.0
    y: float = 0.0
    health: Health = field(default_factory=lambda: Health(FENCE_HEALTH))
    under_repair: bool = False
    destroyed: bool = False
    marked_for_removal: bool = False
    image: str = "Wall.png"
    size: int = TILE_SIZE

    def __post_init__(self) -> None:
        self.orientation = FenceOrientation(self.orientation)

    @property
    def needs_repair(self) -> bool:
        """True while the fence stands below its maximum health."""
        return not self.destroyed and self.health.health < self.health.max_health

    def upgrade(self, health: float) -> None:
        """Set a new maximum health and restore the fence to it."""
        self.health.set_max(health)


@dataclass
class Townhall:
    """The cake the player defends; the game is lost when its health runs out."""

    x: float = 0.0
    y: float = 0.0
    grid_position: tuple[int, int] = (0, 0)
    health: Health = field(default_factory=lambda: Health(TOWNHALL_HEALTH))
    image: str = "cake1.png"
    size: int = TILE_SIZE


@dataclass
class Troop:
    """An enemy walking a path towards the town hall."""

    max_health: float
    power: float
    level: int
    x: float = 0.0
    y: float = 0.0
    speed: float = 1.0
    grid_position: tuple[int, int] = (0, 0)
    path: list[tuple[int, int]] = field(default_factory=list)
    dancing: bool = False
    health: Health = field(init=False)
    image: str = field(init=False)
    size: int = field(init=False)

    def __post_init__(self) -> None:
        self.health = Health(self.max_health)
        self.image, self.size = troop_sprite(self.level)

    def knock_back(self, x: float, y: float) -> None:
        """Push the troop away from ``(x, y)`` by its offset from that point."""
        dx = x - self.x
        dy = y - self.y
        self.x -= dx
        self.y -= dy

    def dance(self) -> None:
        """Start dancing: jump up and keep bobbing on each dance step."""
        _start_dance(self)

    def dance_step(self) -> None:
        """Drop back down by one hop while dancing."""
        _dance_step(self)


@dataclass
class Worker:
    """A citizen who walks to a damaged fence and repairs it one point at a time."""

    fence: Fence
    x: float = 0.0
    y: float = 0.0
    speed: float = WORKER_SPEED
    size: int = WORKER_SIZE
    dancing: bool = False
    image: str = "citizenworker.png"

    def dance(self) -> None:
        """Start dancing: jump up and keep bobbing on each dance step."""
        _start_dance(self)

    def dance_step(self) -> None:
        """Drop back down by one hop while dancing."""
        _dance_step(self)

    def touches_fence(self) -> bool:
        """True while the worker overlaps its fence."""
        return _overlaps(self.x, self.y, self.size, self.fence.x, self.fence.y, self.fence.size)

    def step(self) -> bool:
        """Walk one tick towards the fence and repair it on contact.

        Returns False once the fence is gone or fully repaired, meaning the
        worker has nothing left to do.
        """
        fence = self.fence
        if fence.destroyed or fence.health.health >= fence.health.max_health:
            return False
        ux, uy = _unit_vector(fence.x - self.x, fence.y - self.y)
        self.x += ux * self.speed
        self.y += uy * self.speed
        if self.touches_fence():
            self.fix_fence()
        return True

    def fix_fence(self) -> None:
        """Step back from the fence and restore one point of its health."""
        fence = self.fence
        if fence.orientation is FenceOrientation.VERTICAL:
            self.x += WORKER_PUSH if self.x > fence.x else -WORKER_PUSH
        else:
            self.y += WORKER_PUSH if self.y > fence.y else -WORKER_PUSH
        if fence.health.health < fence.health.max_health:
            fence.health.increment()