"""Hit points for anything in the game that can be damaged or repaired."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_MAX_HEALTH = 10.0


@dataclass
class Health:
    """Current and maximum hit points; a new pool starts full."""

    max_health: float = DEFAULT_MAX_HEALTH
    health: float = field(init=False)

    def __post_init__(self) -> None:
        self.health = self.max_health

    @property
    def depleted(self) -> bool:
        """True once the pool has dropped to zero or below."""
        return self.health <= 0

    def reduce(self, amount: float) -> None:
        """Take ``amount`` hit points away; health may go below zero."""
        self.health -= amount

    def increment(self) -> None:
        """Restore a single hit point."""
        self.health += 1

    def set_max(self, value: float) -> None:
        """Set a new maximum and refill the pool to it."""
        self.max_health = value
        self.health = value