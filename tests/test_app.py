import random

import pytest

from cakedefense.app import GameApp, Screen, Sounds, main
from cakedefense.engine import Event, Outcome
from cakedefense.levels import LevelFileError
from cakedefense.shop import InsufficientFunds

GRID = "0,0,0,0,0\n0,4,4,4,0\n0,4,2,4,0\n0,4,4,4,3\n0,0,0,0,0\n"
LEVEL_FILES = ("File.txt", "File2.txt", "File3.txt", "File4.txt", "File5.txt")


class _Played(Exception):
    """Raised by the probing backend to report what the package asked it to play."""


def _probe(path, volume):
    raise _Played(path.name, volume)


@pytest.fixture
def assets(tmp_path):
    levels = tmp_path / "Text files"
    levels.mkdir()
    for name in LEVEL_FILES:
        (levels / name).write_text(GRID, encoding="utf-8")
    return tmp_path


@pytest.fixture
def played():
    return []


@pytest.fixture
def sounds(assets, played):
    return Sounds(assets / "Sound files", backend=lambda path, volume: played.append((path.name, volume)))


@pytest.fixture
def probed(assets):
    return Sounds(assets / "Sound files", backend=_probe)


@pytest.fixture
def app(assets, sounds):
    return GameApp(assets, sounds=sounds, rng=random.Random(0))


def test_sound_plays_its_file_with_clamped_volume(probed):
    with pytest.raises(_Played) as info:
        probed.play("button")
    assert info.value.args == ("buttonclick.wav", 1.0)


def test_sound_for_event(probed):
    with pytest.raises(_Played) as hit:
        probed.play_event(Event.ENEMY_HIT)
    with pytest.raises(_Played) as shot:
        probed.play_event(Event.BULLET)
    assert [hit.value.args[0], shot.value.args[0]] == ["enemyHit.wav", "bullet.wav"]


def test_set_volumes_leaves_booster_alone(probed):
    probed.set_volumes(0.25)
    with pytest.raises(_Played) as win:
        probed.play("win")
    with pytest.raises(_Played) as booster:
        probed.play("booster")
    assert win.value.args == ("win.wav", 0.25)
    assert booster.value.args == ("booster.wav", 1.0)


def test_unknown_sound_raises(sounds):
    with pytest.raises(ValueError):
        sounds.play("explosion")


def test_new_app_waits_in_menu(app):
    assert app.screen is Screen.MENU
    assert app.world is None
    assert app.start_button_text == "Start Level 1"


def test_start_builds_world_and_clicks(app, played):
    world = app.start()
    assert app.screen is Screen.PLAYING
    assert world.level == 1
    assert ("buttonclick.wav", 1.0) in played
    assert app.layout_size == (world.width, world.height)


def test_start_twice_is_refused(app):
    app.start()
    with pytest.raises(RuntimeError):
        app.start()


def test_start_without_layout_file(tmp_path, sounds):
    app = GameApp(tmp_path, sounds=sounds)
    with pytest.raises(LevelFileError):
        app.start()
    assert app.screen is Screen.MENU


def test_townhall_upgrade_carries_into_level(app, played):
    before = app.wallet.balance
    upgrade = app.buy("Townhall")
    assert app.wallet.balance == before - upgrade.cost
    assert ("Voicy_Coins-collect-Clash-of-Clans.wav", 1.0) in played
    world = app.start()
    assert world.townhall.health.max_health == 2000


def test_cannon_and_fence_upgrades_change_images(app):
    cannon = app.buy("Cannon")
    fence = app.buy("Fence")
    world = app.start()
    assert world.cannon.image == cannon.image
    assert all(f.image == fence.image for f in world.fences.values())


def test_buy_without_money(app):
    app.wallet.balance = 10
    with pytest.raises(InsufficientFunds):
        app.buy("Fence")
    assert app.wallet.balance == 10
    assert app.fence_image is None


def test_pause_and_resume(app):
    app.start()
    assert app.toggle_pause() is Screen.PAUSED
    assert app.world.paused
    assert app.update(5000) is None
    assert app.world.elapsed == 0
    assert app.toggle_pause() is Screen.PLAYING
    assert not app.world.paused


def test_pause_needs_a_level(app):
    with pytest.raises(RuntimeError):
        app.toggle_pause()


def test_click_fires_from_cannon(app, played):
    world = app.start()
    bullet = app.click(120, 30)
    assert bullet in world.bullets
    assert (bullet.x, bullet.y) == (world.cannon.x, world.cannon.y)
    assert ("bullet.wav", 1.0) in played
    assert world.events == []


def test_click_in_menu_does_nothing(app):
    assert app.click(10, 10) is None


def test_winning_a_level(app, played):
    before = app.wallet.balance
    app.start()
    outcome = app.update(10_000)
    assert outcome is Outcome.WON
    assert app.screen is Screen.MENU
    assert app.world is None
    assert app.levels.current == 2
    assert app.wallet.balance == before + 100
    assert "Level 1" in app.message
    assert ("win.wav", 1.0) in played
    assert app.start_button_text == "Start Level 2"


def test_winning_last_level_finishes(app):
    app.levels.current = 5
    app.start()
    assert app.update(10_000) is Outcome.WON
    assert app.screen is Screen.FINISHED
    assert app.levels.current == 5


def test_losing_a_level(app, played):
    app.start()
    app.world.townhall_destroyed = True
    assert app.update(1000) is Outcome.LOST
    assert app.screen is Screen.MENU
    assert app.message == "Game Over"
    assert app.levels.current == 1
    assert ("lose.wav", 1.0) in played


def test_cannon_power_kept_between_levels(app):
    world = app.start()
    world.cannon.power_up()
    raised = world.cannon.power
    app.leave_level()
    assert app.screen is Screen.MENU
    assert app.world is None
    assert app.start().cannon.power == raised


def test_set_volume(app):
    app.set_volume(50)
    assert app.music_volume == pytest.approx(0.5)
    with pytest.raises(ValueError):
        app.set_volume(150)


def test_main_help_exits_cleanly():
    with pytest.raises(SystemExit) as info:
        main(["--help"])
    assert info.value.code == 0