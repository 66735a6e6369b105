"""The battle itself: troops marching on the cake, bullets, boosters and repairs."""

from __future__ import annotations

import math
import random
from collections import deque
from collections.abc import Callable, Sequence
from enum import Enum, IntEnum
from functools import partial

from cakedefense.units import (
    BULLET_INTERVAL_MS,
    CANNON_BASE_POWER,
    TILE_SIZE,
    TOWNHALL_HEALTH,
    WORKER_INTERVAL_MS,
    Booster,
    Bullet,
    Cannon,
    Fence,
    FenceOrientation,
    Townhall,
    Troop,
    Worker,
)
from cakedefense.wallet import Wallet

Cell = tuple[int, int]

CLOCK_INTERVAL_MS = 1000
BOOSTER_INTERVAL_MS = 30000
WIN_SECOND = 10
WIN_REWARD = 100
KILLS_PER_POWER_UP = 20
MAX_WORKERS = 5
TOWNHALL_PUSH = 60
FENCE_PUSH = 30
TROOP_HEALTH_PER_LEVEL = 300
TROOP_POWER_PER_LEVEL = 100

_SPAWN_INTERVALS = {1: 4000, 2: 3000, 3: 2000, 4: 1000, 5: 500}
_TROOP_STEP_INTERVALS = {1: 30, 2: 25, 3: 20, 4: 15, 5: 10}

# Up, down, right, left, then the diagonals; the order decides ties.
_NEIGHBOURS = ((1, 0), (-1, 0), (0, 1), (0, -1), (-1, 1), (1, 1), (-1, -1), (1, -1))

_TIMER_ORDER = ("clock", "spawn", "troops", "boosters", "bullets", "workers")


class Tile(IntEnum):
    """Codes used in level layouts."""

    EMPTY = 0
    GROUND = 1
    TOWNHALL = 2
    CANNON = 3
    FENCE = 4


class Outcome(Enum):
    """State of a level."""

    RUNNING = "running"
    WON = "won"
    LOST = "lost"


class Event(Enum):
    """Things that happened during play, for sounds and displays to react to."""

    BULLET = "bullet"
    ENEMY_HIT = "enemy_hit"
    BOOSTER = "booster"
    WIN = "win"
    LOSE = "lose"
    MONEY = "money"


def spawn_interval(level: int) -> int:
    """Milliseconds between troop spawns on ``level``."""
    try:
        return _SPAWN_INTERVALS[level]
    except KeyError:
        raise ValueError(f"no spawn rate for level {level}") from None


def troop_step_interval(level: int) -> int:
    """Milliseconds between troop movement steps on ``level``."""
    try:
        return _TROOP_STEP_INTERVALS[level]
    except KeyError:
        raise ValueError(f"no troop speed for level {level}") from None


def _check_grid(grid: Sequence[Sequence[int]]) -> tuple[int, int]:
    if not grid or not grid[0]:
        raise ValueError("empty layout")
    width = len(grid[0])
    if any(len(row) != width for row in grid):
        raise ValueError("layout rows differ in length")
    if any(cell < 0 for row in grid for cell in row):
        raise ValueError("layout holds negative tile codes")
    return len(grid), width


def find_shortest_path(grid: Sequence[Sequence[int]], start: Cell, goal: Cell) -> list[Cell]:
    """Cells a troop walks through from ``start`` to ``goal``.

    Entering a cell costs its tile code, so troops prefer open ground over
    fences. The start cell is left out and the goal is listed twice at the end.
    """
    rows, cols = _check_grid(grid)
    for row, col in (start, goal):
        if not (0 <= row < rows and 0 <= col < cols):
            raise ValueError(f"cell {(row, col)} is outside the layout")

    dist = [[math.inf] * cols for _ in range(rows)]
    origin: dict[Cell, Cell] = {}
    queue: deque[Cell] = deque([start])
    dist[start[0]][start[1]] = 0

    while queue:
        current = queue.popleft()
        if current == goal:
            break
        i, j = current
        for di, dj in _NEIGHBOURS:
            ai, aj = i + di, j + dj
            if 0 <= ai < rows and 0 <= aj < cols:
                candidate = dist[i][j] + grid[ai][aj]
                if dist[ai][aj] > candidate:
                    dist[ai][aj] = candidate
                    origin[(ai, aj)] = current
                    queue.append((ai, aj))

    path: list[Cell] = []
    current = goal
    while current != start:
        path.append(current)
        current = origin[current]
    path.reverse()
    path.append(goal)
    return path


def _unit(dx: float, dy: float) -> tuple[float, float]:
    length = math.hypot(dx, dy)
    if length == 0:
        return 0.0, 0.0
    return dx / length, dy / length


def _touching(a, b) -> bool:
    return a.x < b.x + b.size and b.x < a.x + a.size and a.y < b.y + b.size and b.y < a.y + a.size


class World:
    """One level in play: the layout's buildings plus everything that moves."""

    def __init__(
        self,
        grid: Sequence[Sequence[int]],
        level: int = 1,
        wallet: Wallet | None = None,
        townhall_health: float = TOWNHALL_HEALTH,
        rng: random.Random | None = None,
        cannon_power: float = CANNON_BASE_POWER,
        cannon_image: str | None = None,
        fence_image: str | None = None,
    ) -> None:
        self.rows, self.cols = _check_grid(grid)
        self.grid = [list(row) for row in grid]
        self.level = level
        self._intervals = {
            "clock": CLOCK_INTERVAL_MS,
            "spawn": spawn_interval(level),
            "troops": troop_step_interval(level),
            "boosters": BOOSTER_INTERVAL_MS,
            "bullets": BULLET_INTERVAL_MS,
            "workers": WORKER_INTERVAL_MS,
        }
        self.wallet = wallet if wallet is not None else Wallet()
        self.rng = rng if rng is not None else random.Random()

        self.cannon: Cannon | None = None
        self.townhall: Townhall | None = None
        self.fences: dict[Cell, Fence] = {}
        self.troops: list[Troop] = []
        self.bullets: list[Bullet] = []
        self.boosters: list[Booster] = []
        self.workers: list[Worker] = []
        self.events: list[Event] = []

        self.elapsed = 0
        self.kill_count = 0
        self.worker_count = 0
        self.townhall_destroyed = False
        self.outcome = Outcome.RUNNING
        self.paused = False
        self.time_ms = 0

        self._build(cannon_image, fence_image)
        if self.townhall is None:
            raise ValueError("layout has no town hall")
        if self.cannon is None:
            raise ValueError("layout has no cannon")
        self.townhall.health.set_max(townhall_health)
        self.cannon.power = cannon_power
        self.cannon.current_power = cannon_power

        self._actions: dict[str, Callable[[], object]] = {
            "clock": self.tick_second,
            "spawn": self.spawn_troop,
            "troops": self.move_troops,
            "boosters": self.spawn_booster,
            "bullets": self._step_bullets,
            "workers": self._step_workers,
        }
        self._due = {name: self._intervals[name] for name in _TIMER_ORDER if name != "troops"}
        self._boost_expiries: list[tuple[int, Booster]] = []

    @property
    def width(self) -> int:
        """Width of the field in pixels."""
        return self.cols * TILE_SIZE

    @property
    def height(self) -> int:
        """Height of the field in pixels."""
        return self.rows * TILE_SIZE

    @property
    def clock(self) -> str:
        """Elapsed play time as ``m:ss``."""
        minutes, seconds = divmod(self.elapsed, 60)
        return f"{minutes}:{seconds:02d}"

    def _fence_orientation(self, i: int, j: int) -> FenceOrientation:
        above = i > 0 and self.grid[i - 1][j] == Tile.FENCE
        below = i + 1 < self.rows and self.grid[i + 1][j] == Tile.FENCE
        return FenceOrientation.VERTICAL if above or below else FenceOrientation.HORIZONTAL

    def _build(self, cannon_image: str | None, fence_image: str | None) -> None:
        for i, row in enumerate(self.grid):
            for j, cell in enumerate(row):
                x, y = j * TILE_SIZE, i * TILE_SIZE
                if cell == Tile.TOWNHALL:
                    self.townhall = Townhall(x=x, y=y, grid_position=(i, j))
                elif cell == Tile.CANNON:
                    self.cannon = Cannon(x=x, y=y)
                    if cannon_image:
                        self.cannon.image = cannon_image
                elif cell == Tile.FENCE:
                    fence = Fence(self._fence_orientation(i, j), x=x, y=y)
                    if fence_image:
                        fence.image = fence_image
                    self.fences[(i, j)] = fence

    def _passable_grid(self) -> list[list[int]]:
        return [
            [
                Tile.EMPTY if cell == Tile.FENCE and (i, j) not in self.fences else cell
                for j, cell in enumerate(row)
            ]
            for i, row in enumerate(self.grid)
        ]

    def spawn_troop(self) -> Troop:
        """Place a new troop on a random empty tile, routed to the town hall."""
        candidates = [
            (i, j)
            for i in range(self.rows - 1)
            for j in range(self.cols - 1)
            if self.grid[i][j] == Tile.EMPTY
        ]
        if not candidates:
            raise ValueError("no free tile to spawn a troop on")
        row, col = self.rng.choice(candidates)
        troop = Troop(
            self.level * TROOP_HEALTH_PER_LEVEL,
            self.level * TROOP_POWER_PER_LEVEL,
            self.level,
            x=col * TILE_SIZE,
            y=row * TILE_SIZE,
            grid_position=(row, col),
        )
        troop.path = find_shortest_path(
            self._passable_grid(), (row, col), self.townhall.grid_position
        )
        self.troops.append(troop)
        self._due["troops"] = self.time_ms + self._intervals["troops"]
        return troop

    def move_troops(self) -> None:
        """Step every troop one pixel along its path and resolve what it runs into."""
        doomed: set[int] = set()
        for troop in list(self.troops):
            if troop.path:
                row, col = troop.path[0]
                tx, ty = col * TILE_SIZE, row * TILE_SIZE
                ux, uy = _unit(tx - troop.x, ty - troop.y)
                troop.x += ux
                troop.y += uy
                if math.hypot(tx - troop.x, ty - troop.y) < 1:
                    troop.path.pop(0)
            self._check_collisions(troop, doomed)
        self._remove(doomed)

    def _check_collisions(self, troop: Troop, doomed: set[int]) -> None:
        colliding: list[object] = [b for b in self.bullets if _touching(troop, b)]
        if not self.townhall_destroyed and _touching(troop, self.townhall):
            colliding.append(self.townhall)
        colliding.extend(w for w in self.workers if _touching(troop, w))
        colliding.extend(
            f for f in self.fences.values() if not f.destroyed and _touching(troop, f)
        )
        for item in colliding:
            if isinstance(item, Bullet):
                self._hit_by_bullet(troop, item, doomed)
            elif isinstance(item, Townhall):
                self._hit_townhall(troop, item)
            elif isinstance(item, Worker):
                doomed.add(id(item))
                self.worker_count -= 1
            elif isinstance(item, Fence):
                self._hit_fence(troop, item, doomed)

    def _hit_by_bullet(self, troop: Troop, bullet: Bullet, doomed: set[int]) -> None:
        self.events.append(Event.ENEMY_HIT)
        troop.health.reduce(self.cannon.current_power)
        troop.knock_back(bullet.x, bullet.y)
        if troop.health.depleted:
            doomed.update((id(bullet), id(troop)))
            self.kill_count += 1
            if self.kill_count == KILLS_PER_POWER_UP:
                self.cannon.power_up()
                self.kill_count = 0

    def _hit_townhall(self, troop: Troop, townhall: Townhall) -> None:
        dx = troop.x - townhall.x
        dy = troop.y - townhall.y
        if abs(dx) > abs(dy):
            troop.x = townhall.x - TOWNHALL_PUSH if dx < 0 else townhall.x + TOWNHALL_PUSH
            troop.y = townhall.y
        else:
            troop.x = townhall.x
            troop.y = townhall.y - TOWNHALL_PUSH if dy < 0 else townhall.y + TOWNHALL_PUSH
        townhall.health.reduce(troop.power)
        if townhall.health.depleted:
            self.townhall_destroyed = True

    def _hit_fence(self, troop: Troop, fence: Fence, doomed: set[int]) -> None:
        if fence.orientation is FenceOrientation.VERTICAL:
            troop.x += FENCE_PUSH if troop.x > fence.x else -FENCE_PUSH
        else:
            troop.y += FENCE_PUSH if troop.y > fence.y else -FENCE_PUSH
        fence.marked_for_removal = True
        fence.health.reduce(troop.power)
        if fence.health.depleted:
            doomed.add(id(fence))
            fence.destroyed = True
            self.worker_count -= 1
        elif self.worker_count < MAX_WORKERS and not fence.under_repair:
            self.workers.append(Worker(fence, x=self.townhall.x, y=self.townhall.y))
            self.worker_count += 1
            fence.under_repair = True

    def _remove(self, doomed: set[int]) -> None:
        if not doomed:
            return
        self.troops = [t for t in self.troops if id(t) not in doomed]
        self.bullets = [b for b in self.bullets if id(b) not in doomed]
        self.workers = [w for w in self.workers if id(w) not in doomed]
        self.fences = {pos: f for pos, f in self.fences.items() if id(f) not in doomed}

    def tick_second(self) -> Outcome:
        """Advance the game clock by a second and decide whether the level is over."""
        if self.outcome is not Outcome.RUNNING:
            return self.outcome
        self.elapsed += 1
        if self.elapsed % 60 == WIN_SECOND:
            self.outcome = Outcome.WON
            self.events.append(Event.WIN)
            for worker in self.workers:
                worker.dance()
            self.wallet.increase(WIN_REWARD)
            self.events.append(Event.MONEY)
        elif self.townhall_destroyed:
            self.outcome = Outcome.LOST
            self.events.append(Event.LOSE)
            for troop in self.troops:
                troop.dance()
        return self.outcome

    def fire(self, x: float, y: float) -> Bullet:
        """Shoot a bullet from the cannon towards ``(x, y)``."""
        self.events.append(Event.BULLET)
        bullet = Bullet(x, y, self.cannon.x, self.cannon.y)
        self.bullets.append(bullet)
        return bullet

    def spawn_booster(self) -> Booster | None:
        """On a coin toss, drop a power booster on a random open tile."""
        if self.rng.randrange(0, 2) == 0:
            return None
        candidates = [
            (i, j)
            for i in range(self.rows - 1)
            for j in range(self.cols - 1)
            if self.grid[i][j] in (Tile.EMPTY, Tile.GROUND)
        ]
        if not candidates:
            raise ValueError("no free tile to place a booster on")
        row, col = self.rng.choice(candidates)
        # The row picks the horizontal position and the column the vertical one.
        booster = Booster(x=row * TILE_SIZE, y=col * TILE_SIZE)
        self.boosters.append(booster)
        return booster

    def _step_bullets(self) -> None:
        remaining = []
        for bullet in self.bullets:
            bullet.step()
            for booster in self.boosters:
                if booster.visible and bullet.hits(booster.x, booster.y, booster.size):
                    self.events.append(Event.BOOSTER)
                    booster.boost(self.cannon)
                    self._boost_expiries.append((self.time_ms + booster.duration_ms, booster))
            if not bullet.out_of_bounds(self.width, self.height):
                remaining.append(bullet)
        self.bullets = remaining

    def _step_workers(self) -> None:
        busy = []
        for worker in self.workers:
            if worker.step():
                busy.append(worker)
        self.workers = busy

    def _expire_boost(self, entry: tuple[int, Booster]) -> None:
        self._boost_expiries = [e for e in self._boost_expiries if e is not entry]
        booster = entry[1]
        booster.revert(self.cannon)
        self.boosters = [b for b in self.boosters if b is not booster]

    def _fire_timer(self, name: str) -> None:
        self._due[name] = self.time_ms + self._intervals[name]
        self._actions[name]()

    def _next_due(self, end: int) -> tuple[int, Callable[[], None]] | None:
        candidates: list[tuple[int, int, Callable[[], None]]] = []
        for entry in self._boost_expiries:
            if entry[0] <= end:
                candidates.append((entry[0], -1, partial(self._expire_boost, entry)))
        if self.outcome is Outcome.RUNNING and not self.paused:
            for order, name in enumerate(_TIMER_ORDER):
                when = self._due.get(name)
                if when is not None and when <= end:
                    candidates.append((when, order, partial(self._fire_timer, name)))
        if not candidates:
            return None
        when, _, action = min(candidates, key=lambda c: (c[0], c[1]))
        return when, action

    def advance(self, ms: int) -> Outcome:
        """Run every game timer that falls due within the next ``ms`` milliseconds.

        While paused or once the level is over only running boosts wear off.
        """
        if ms < 0:
            raise ValueError("time cannot run backwards")
        end = self.time_ms + ms
        while (due := self._next_due(end)) is not None:
            self.time_ms, action = due
            action()
        self.time_ms = end
        return self.outcome