"""The player's money."""

from __future__ import annotations

from dataclasses import dataclass

STARTING_BALANCE = 200


@dataclass
class Wallet:
    """Money held by the player; the balance is not kept from going negative."""

    balance: int = STARTING_BALANCE

    def increase(self, value: int) -> None:
        """Add ``value`` to the balance."""
        self.balance += value

    def decrease(self, value: int) -> None:
        """Take ``value`` from the balance."""
        self.balance -= value