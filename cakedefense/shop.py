"""The upgrade shop: town hall, fence and cannon upgrades bought with money."""

from __future__ import annotations

from dataclasses import dataclass

from cakedefense.wallet import Wallet


class InsufficientFunds(Exception):
    """The player cannot afford the chosen upgrade."""

    def __init__(self, kind: str, balance: int, required: int) -> None:
        super().__init__("You do not have enough money for this upgrade.")
        self.kind = kind
        self.balance = balance
        self.required = required


@dataclass(frozen=True)
class Upgrade:
    """One upgrade on offer and what it changes once bought."""

    kind: str
    cost: int
    required: int
    health: int
    image: str
    image_size: int
    description: str


_OFFERS = (
    Upgrade(
        kind="Townhall",
        cost=50,
        required=50,
        health=2000,
        image="cake2.png",
        image_size=50,
        description=(
            "Townhall upgrade cost: 50\n"
            "Upgrades: Townhall health increases double its value \n"
            "Would you like to upgrade?"
        ),
    ),
    Upgrade(
        kind="Fence",
        cost=50,
        required=50,
        health=2000,
        image="Wall3.png",
        image_size=50,
        description=(
            "Fence upgrade cost: 50\n"
            "Upgrades: Fence health increases double its value \n"
            "Would you like to upgrade?"
        ),
    ),
    # The cannon upgrade is offered whenever the balance is not negative.
    Upgrade(
        kind="Cannon",
        cost=50,
        required=0,
        health=0,
        image="woman2.png",
        image_size=80,
        description=(
            "Cannon upgrade cost: 50\n"
            "Upgrades: The power will increase\n"
            "Would you like to upgrade?"
        ),
    ),
)


class Shop:
    """Sells upgrades, paying for them from a wallet."""

    def __init__(self, wallet: Wallet) -> None:
        self.wallet = wallet
        self._offers = {offer.kind: offer for offer in _OFFERS}

    def offers(self) -> list[Upgrade]:
        """All upgrades, in the order they are shown."""
        return list(self._offers.values())

    def buy(self, kind: str) -> Upgrade:
        """Pay for the upgrade named ``kind`` and return it."""
        try:
            offer = self._offers[kind]
        except KeyError:
            raise ValueError(f"unknown upgrade: {kind!r}") from None
        if self.wallet.balance < offer.required:
            raise InsufficientFunds(kind, self.wallet.balance, offer.required)
        self.wallet.decrease(offer.cost)
        return offer