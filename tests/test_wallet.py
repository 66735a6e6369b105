from cakedefense.wallet import STARTING_BALANCE, Wallet


def test_default_balance_is_two_hundred():
    assert Wallet().balance == 200
    assert STARTING_BALANCE == 200


def test_increase_then_decrease_round_trip():
    w = Wallet()
    start = w.balance
    w.increase(75)
    assert w.balance == start + 75
    w.decrease(75)
    assert w.balance == start


def test_decrease_may_go_negative():
    w = Wallet(10)
    w.decrease(50)
    assert w.balance < 0


def test_balance_can_be_assigned():
    w = Wallet()
    w.balance = 300
    w.increase(100)
    assert w.balance == 300 + 100


def test_wallets_are_independent():
    a = Wallet()
    b = Wallet()
    a.increase(1)
    assert b.balance == STARTING_BALANCE
    assert a.balance == STARTING_BALANCE + 1