"""The playable game: start screen, menus, shop, level flow, sound and the window."""

from __future__ import annotations

import argparse
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from cakedefense.engine import Event, Outcome, World
from cakedefense.levels import MAX_LEVEL, LevelFileError, Levels
from cakedefense.shop import InsufficientFunds, Shop, Upgrade
from cakedefense.units import CANNON_BASE_POWER, TILE_SIZE, TOWNHALL_HEALTH
from cakedefense.wallet import Wallet

IMAGE_DIR = "images"
SOUND_DIR = "Sound files"
LEVEL_DIR = "Text files"
MUSIC_FILE = "background music.mp3"

MIN_WINDOW = (400, 400)
FRAME_RATE = 60
SPLASH_STEP_MS = 180
SPLASH_STEP = 10
VOLUME_STEP = 10

PANEL = (42, 44, 62)
WHITE = (255, 255, 255)
ORANGE = (255, 165, 0)

HELP_TEXT = (
    "Your base is under attack!\n\n"
    "Game Objective: Protect your town hall from enemy troops.\n\n"
    "-Shoot and kill enemy troops by left-clicking.\n\n"
    "-You have five citizen workers defending your base by repairing fences.\n\n"
    "-The game is over when enemy troops destroy your town hall and you lose,\n\n"
    "-Or when the time is up with your town hall still standing and you win.\n\n"
    "-Power boosters spawn randomly, try to catch them to boost your cannon power for 30 seconds!\n\n"
    "-Once you have enough money, head on over to the shop for some upgrades\n\n"
    "-Good luck!"
)
END_TEXT = (
    "Congratulations!\nYou have completed all five levels\n"
    "and successfully protected your cake from the pests!"
)
LEAVE_TEXT = (
    "Are you sure you would like to return to main menu?\n"
    "Your progress in this level will not be saved"
)

# Sound name -> (file, volume as configured); playback clamps volume to [0, 1].
_SOUND_FILES = {
    "button": ("buttonclick.wav", 20),
    "win": ("win.wav", 20),
    "lose": ("lose.wav", 20),
    "bullet": ("bullet.wav", 10),
    "enemy_hit": ("enemyHit.wav", 10),
    "booster": ("booster.wav", 5),
    "money": ("Voicy_Coins-collect-Clash-of-Clans.wav", 5),
}
_ADJUSTABLE_SOUNDS = ("button", "win", "lose", "bullet", "enemy_hit")
_EVENT_SOUNDS = {
    Event.BULLET: "bullet",
    Event.ENEMY_HIT: "enemy_hit",
    Event.BOOSTER: "booster",
    Event.WIN: "win",
    Event.LOSE: "lose",
    Event.MONEY: "money",
}

SoundBackend = Callable[[Path, float], None]


class _MixerBackend:
    """Plays sound files through the pygame mixer, silently skipping missing ones."""

    def __init__(self) -> None:
        self._cache: dict[Path, object] = {}

    def __call__(self, path: Path, volume: float) -> None:
        import pygame

        if not pygame.mixer.get_init():
            return
        if path not in self._cache:
            try:
                self._cache[path] = pygame.mixer.Sound(str(path))
            except (pygame.error, OSError):
                self._cache[path] = None
        sound = self._cache[path]
        if sound is not None:
            sound.set_volume(volume)
            sound.play()


class Sounds:
    """The game's sound effects, each with its own volume."""

    def __init__(self, directory: str | Path, backend: SoundBackend | None = None) -> None:
        self.directory = Path(directory)
        self.backend = backend if backend is not None else _MixerBackend()
        self.volumes = {name: float(volume) for name, (_, volume) in _SOUND_FILES.items()}

    def play(self, name: str) -> None:
        """Play the effect called ``name``."""
        try:
            file_name, _ = _SOUND_FILES[name]
        except KeyError:
            raise ValueError(f"unknown sound: {name!r}") from None
        volume = min(1.0, max(0.0, self.volumes[name]))
        self.backend(self.directory / file_name, volume)

    def play_event(self, event: Event) -> None:
        """Play the effect that goes with a game event."""
        self.play(_EVENT_SOUNDS[event])

    def set_volumes(self, volume: float) -> None:
        """Set the volume of the button, win, lose, bullet and hit effects."""
        for name in _ADJUSTABLE_SOUNDS:
            self.volumes[name] = float(volume)


class Screen(Enum):
    """What the player is looking at."""

    MENU = "menu"
    PLAYING = "playing"
    PAUSED = "paused"
    FINISHED = "finished"


@dataclass
class _Dialog:
    text: str
    buttons: list[tuple[str, Callable[[], None] | None]] = field(default_factory=list)


class GameApp:
    """Runs the levels one after another, with the shop and menus in between."""

    def __init__(
        self,
        assets: str | Path,
        sounds: Sounds | None = None,
        rng: random.Random | None = None,
        wallet: Wallet | None = None,
    ) -> None:
        self.assets = Path(assets)
        self.levels = Levels(self.assets / LEVEL_DIR)
        self.wallet = wallet if wallet is not None else Wallet()
        self.shop = Shop(self.wallet)
        self.sounds = sounds if sounds is not None else Sounds(self.assets / SOUND_DIR)
        self.rng = rng if rng is not None else random.Random()
        self.screen = Screen.MENU
        self.world: World | None = None
        self.townhall_health: float = TOWNHALL_HEALTH
        self.townhall_image: str | None = None
        self.cannon_image: str | None = None
        self.fence_image: str | None = None
        self.cannon_power: float = CANNON_BASE_POWER
        self.music_volume = 1.0
        self.message: str | None = None
        self._running = False
        self._dialog: _Dialog | None = None
        self._targets: list = []
        self._menu_size: tuple[int, tuple[int, int]] | None = None

    @property
    def start_button_text(self) -> str:
        """Label of the menu's start button."""
        return f"Start Level {self.levels.current}"

    @property
    def layout_size(self) -> tuple[int, int]:
        """Pixel size of the field for the level in play or about to be played."""
        if self.world is not None:
            return self.world.width, self.world.height
        level = self.levels.current
        if self._menu_size is None or self._menu_size[0] != level:
            try:
                grid = self.levels.design()
                size = (len(grid[0]) * TILE_SIZE, len(grid) * TILE_SIZE)
            except (LevelFileError, IndexError):
                size = MIN_WINDOW
            self._menu_size = (level, size)
        return self._menu_size[1]

    def start(self) -> World:
        """Start the current level from the menu."""
        if self.screen is not Screen.MENU:
            raise RuntimeError("a level can only be started from the menu")
        self.world = World(
            self.levels.design(),
            level=self.levels.current,
            wallet=self.wallet,
            townhall_health=self.townhall_health,
            rng=self.rng,
            cannon_power=self.cannon_power,
            cannon_image=self.cannon_image,
            fence_image=self.fence_image,
        )
        self.screen = Screen.PLAYING
        self.sounds.play("button")
        return self.world

    def buy(self, kind: str) -> Upgrade:
        """Buy an upgrade from the shop and keep its effect for the coming levels."""
        upgrade = self.shop.buy(kind)
        if upgrade.kind == "Townhall":
            self.townhall_image = upgrade.image
            self.townhall_health = upgrade.health
        elif upgrade.kind == "Cannon":
            self.cannon_image = upgrade.image
        elif upgrade.kind == "Fence":
            self.fence_image = upgrade.image
        self.sounds.play("money")
        return upgrade

    def toggle_pause(self) -> Screen:
        """Pause a running level, or resume a paused one."""
        if self.world is None or self.screen not in (Screen.PLAYING, Screen.PAUSED):
            raise RuntimeError("no level in play")
        if self.screen is Screen.PLAYING:
            self.sounds.play("button")
            self.screen = Screen.PAUSED
            self.world.paused = True
        else:
            self.screen = Screen.PLAYING
            self.world.paused = False
        return self.screen

    def click(self, x: float, y: float):
        """Fire at ``(x, y)`` while a level runs; returns the bullet, or None."""
        if self.screen is not Screen.PLAYING or self.world is None:
            return None
        bullet = self.world.fire(x, y)
        self._flush_events()
        return bullet

    def update(self, ms: int) -> Outcome | None:
        """Let ``ms`` milliseconds of play pass and handle the end of the level."""
        if self.screen is not Screen.PLAYING or self.world is None:
            return None
        outcome = self.world.advance(ms)
        self._flush_events()
        if outcome is Outcome.WON:
            self._level_won()
        elif outcome is Outcome.LOST:
            self._end_level()
            self.message = "Game Over"
        return outcome

    def leave_level(self) -> None:
        """Abandon the level in play and go back to the menu."""
        self._end_level()

    def set_volume(self, value: int) -> None:
        """Set the music volume from a slider value between 0 and 100."""
        if not 0 <= value <= 100:
            raise ValueError("volume must be between 0 and 100")
        self.music_volume = value / 100.0

    def _flush_events(self) -> None:
        if self.world is None:
            return
        for event in self.world.events:
            self.sounds.play_event(event)
        self.world.events.clear()

    def _end_level(self) -> None:
        if self.world is not None:
            self.cannon_power = self.world.cannon.power
        self.world = None
        self.screen = Screen.MENU

    def _level_won(self) -> None:
        level = self.levels.current
        self._end_level()
        self.message = f"Level {level} completed succesfully!"
        if level >= MAX_LEVEL:
            self.screen = Screen.FINISHED
        else:
            self.levels.next_level()

    # Window and dialogs.

    def _show(self, text: str, buttons=None) -> None:
        self._dialog = _Dialog(text, list(buttons) if buttons else [("OK", None)])

    def _quit(self) -> None:
        self._running = False

    def _clicked(self, then: Callable[[], None] | None = None) -> Callable[[], None]:
        def action() -> None:
            self.sounds.play("button")
            if then is not None:
                then()

        return action

    def _open_pending_dialog(self) -> None:
        if self.message is None:
            return
        text, self.message = self.message, None
        if self.screen is Screen.FINISHED:
            self._show(text, [("OK", lambda: self._show(END_TEXT, [("Exit Game", self._quit)]))])
        else:
            self._show(text)

    def _start_pressed(self) -> None:
        try:
            self.start()
        except LevelFileError as exc:
            self._show(f"Error\n{exc}")

    def _pause_pressed(self) -> None:
        self.toggle_pause()
        if self.screen is Screen.PAUSED:
            self._open_pause_menu()

    def _back_to_pause(self) -> None:
        if self.screen is Screen.PAUSED:
            self._open_pause_menu()

    def _open_pause_menu(self) -> None:
        self._show(
            "Game Options",
            [
                ("Resume", self._clicked(self.toggle_pause)),
                ("Sound Settings", self._clicked(self._open_sound_settings)),
                ("Help", self._clicked(self._open_help)),
                ("Back to Main Menu", self._clicked(self._confirm_leave)),
            ],
        )

    def _confirm_leave(self) -> None:
        self._show(
            LEAVE_TEXT,
            [
                ("Cancel", self._clicked(self._open_pause_menu)),
                ("Leave", self._clicked(self.leave_level)),
            ],
        )

    def _open_help(self) -> None:
        self._show(HELP_TEXT, [("OK", self._back_to_pause)])

    def _open_sound_settings(self) -> None:
        value = round(self.music_volume * 100)

        def change(step: int) -> Callable[[], None]:
            def action() -> None:
                self.set_volume(min(100, max(0, value + step)))
                self._open_sound_settings()

            return action

        def apply() -> None:
            self._show(
                f"Volume changed to {round(self.music_volume * 100)}",
                [("OK", self._back_to_pause)],
            )

        self._show(
            f"Sound Settings\nVolume: {value}",
            [("-", change(-VOLUME_STEP)), ("+", change(VOLUME_STEP)), ("Apply", apply)],
        )

    def _open_quit(self) -> None:
        self.sounds.play("button")
        self._show(
            "Are you sure you would like to quit?",
            [("Cancel", self._clicked()), ("Quit", self._quit)],
        )

    def _open_shop(self) -> None:
        self.sounds.play("button")
        buttons = [(offer.kind, self._shop_choice(offer)) for offer in self.shop.offers()]
        buttons.append(("Close", None))
        self._show(f"Shop\nMoney: {self.wallet.balance}", buttons)

    def _shop_choice(self, offer: Upgrade) -> Callable[[], None]:
        def buy() -> None:
            try:
                self.buy(offer.kind)
            except InsufficientFunds as exc:
                self._show(f"Insufficient Funds\n{exc}")

        def choose() -> None:
            if self.wallet.balance < offer.required:
                self._show("Insufficient Funds\nYou do not have enough money for this upgrade.")
                return
            self._show(offer.description, [("Yes", buy), ("No", None)])

        return choose

    def _menu_buttons(self) -> list[tuple[str, Callable[[], None]]]:
        return [
            (self.start_button_text, self._start_pressed),
            ("Shop", self._open_shop),
            ("Sound Settings", self._open_sound_settings),
            ("How To Play?", lambda: (self.sounds.play("button"), self._show(HELP_TEXT))),
            ("Quit", self._open_quit),
        ]

    def _handle(self, pygame, event) -> None:
        if event.type == pygame.QUIT:
            self._running = False
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            for rect, action in self._targets:
                if rect.collidepoint(event.pos):
                    self._dialog = None
                    if action is not None:
                        action()
                    return
            if self._dialog is None and self.screen is Screen.PLAYING:
                self.click(*event.pos)
        elif (
            event.type == pygame.KEYDOWN
            and event.key in (pygame.K_ESCAPE, pygame.K_p)
            and self._dialog is None
            and self.screen is Screen.PLAYING
        ):
            self._pause_pressed()

    def _splash(self, pygame, view: "_View") -> bool:
        view.resize(MIN_WINDOW)
        clock = pygame.time.Clock()
        progress, waited = 0, 0
        while progress < 100:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    return False
            waited += clock.tick(FRAME_RATE)
            if waited >= SPLASH_STEP_MS:
                waited -= SPLASH_STEP_MS
                progress += SPLASH_STEP
            view.draw_splash(progress)
            pygame.display.flip()
        return True

    def run(self) -> None:
        """Open the window and play until the player quits."""
        import pygame

        pygame.init()
        try:
            pygame.mixer.init()
        except pygame.error:
            pass
        pygame.display.set_caption("Save The Cake!")
        try:
            view = _View(pygame, self.assets / IMAGE_DIR)
            if not self._splash(pygame, view):
                return
            music = self.assets / SOUND_DIR / MUSIC_FILE
            if pygame.mixer.get_init() and music.exists():
                pygame.mixer.music.load(str(music))
                pygame.mixer.music.play(-1)
            self._running = True
            clock = pygame.time.Clock()
            while self._running:
                elapsed = clock.tick(FRAME_RATE)
                for event in pygame.event.get():
                    self._handle(pygame, event)
                if self._dialog is None:
                    self.update(elapsed)
                    self._open_pending_dialog()
                if pygame.mixer.get_init():
                    pygame.mixer.music.set_volume(self.music_volume)
                self._targets = view.draw(self)
                pygame.display.flip()
        finally:
            pygame.quit()


_FALLBACK_COLOURS = {
    "bg.jpg": (96, 160, 80),
    "pause.png": PANEL,
}
_CANNON_SIZES = {"human.png": (40, 70)}
_UPGRADED_CANNON_SIZE = (80, 80)


class _View:
    """Draws the game with pygame; images that cannot be loaded become plain boxes."""

    def __init__(self, pygame, image_dir: Path) -> None:
        self.pg = pygame
        self.image_dir = image_dir
        self.font = pygame.font.SysFont("arial", 16)
        self.large = pygame.font.SysFont("arial", 20)
        self.title = pygame.font.SysFont("arial", 32)
        self.surface = None
        self._images: dict = {}

    def resize(self, size: tuple[int, int]) -> None:
        size = (max(size[0], MIN_WINDOW[0]), max(size[1], MIN_WINDOW[1]))
        if self.surface is None or self.surface.get_size() != size:
            self.surface = self.pg.display.set_mode(size)

    def image(self, name: str, size: tuple[int, int], colour=(200, 60, 60)):
        key = (name, size)
        if key not in self._images:
            try:
                picture = self.pg.image.load(str(self.image_dir / name)).convert_alpha()
                picture = self.pg.transform.smoothscale(picture, size)
            except (self.pg.error, OSError):
                picture = self.pg.Surface(size)
                picture.fill(_FALLBACK_COLOURS.get(name, colour))
            self._images[key] = picture
        return self._images[key]

    def text(self, text: str, pos, font=None, colour=WHITE, centre=False) -> None:
        rendered = (font or self.font).render(text, True, colour)
        rect = rendered.get_rect()
        if centre:
            rect.center = pos
        else:
            rect.topleft = pos
        self.surface.blit(rendered, rect)

    def button(self, rect, label: str) -> None:
        self.pg.draw.rect(self.surface, PANEL, rect, border_radius=4)
        self.text(label, rect.center, self.large, centre=True)

    def bar(self, rect, value: float, maximum: float) -> None:
        self.pg.draw.rect(self.surface, (255, 192, 203), rect, border_radius=5)
        filled = rect.copy()
        filled.width = int(rect.width * max(0.0, min(1.0, value / maximum)))
        self.pg.draw.rect(self.surface, (0, 128, 0), filled, border_radius=5)
        self.pg.draw.rect(self.surface, (128, 128, 128), rect, width=2, border_radius=5)

    def draw_splash(self, progress: int) -> None:
        rect = self.pg.Rect
        self.surface.blit(self.image("startbg.jpg", self.surface.get_size(), (0, 0, 0)), (0, 0))
        self.text("Save The Cake!", rect(60, 90, 300, 70).center, self.title, ORANGE, True)
        self.text("LOADING...", rect(98, 215, 200, 25).center, self.large, ORANGE, True)
        frame = rect(98, 250, 200, 25)
        self.pg.draw.rect(self.surface, (0, 0, 0), frame)
        filled = frame.copy()
        filled.width = frame.width * min(progress, 100) // 100
        self.pg.draw.rect(self.surface, ORANGE, filled)
        self.pg.draw.rect(self.surface, ORANGE, frame, width=2)

    def draw(self, app: GameApp) -> list:
        self.resize(app.layout_size)
        width, height = self.surface.get_size()
        self.surface.blit(self.image("bg.jpg", (width, height)), (0, 0))
        targets: list = []
        if app.world is not None:
            self._draw_world(app.world)
            pause = self.pg.Rect(app.world.width - 80, 0, 80, 80)
            self.surface.blit(self.image("pause.png", (80, 80)), pause)
            if app.screen is Screen.PLAYING:
                targets.append((pause, app._pause_pressed))
            self._draw_hud(app, height)
        elif app.screen is Screen.MENU:
            top = height // 2
            for label, action in app._menu_buttons():
                rect = self.pg.Rect(width // 2 - 100, top, 200, 40)
                self.button(rect, label)
                targets.append((rect, action))
                top += 50
        if app._dialog is not None:
            return self._draw_dialog(app._dialog, width, height)
        return targets

    def _draw_world(self, world: World) -> None:
        blit = self.surface.blit
        for fence in world.fences.values():
            blit(self.image(fence.image, (fence.size, fence.size), (150, 110, 60)), (fence.x, fence.y))
        townhall = world.townhall
        if not world.townhall_destroyed:
            blit(self.image(townhall.image, (townhall.size, townhall.size), (240, 200, 220)), (townhall.x, townhall.y))
        cannon = world.cannon
        size = _CANNON_SIZES.get(cannon.image, _UPGRADED_CANNON_SIZE)
        blit(self.image(cannon.image, size, (60, 60, 200)), (cannon.x, cannon.y))
        for booster in world.boosters:
            if booster.visible:
                blit(self.image(booster.image, (booster.size, booster.size), (250, 220, 0)), (booster.x, booster.y))
        for worker in world.workers:
            blit(self.image(worker.image, (worker.size, worker.size), (60, 160, 220)), (worker.x, worker.y))
        for troop in world.troops:
            blit(self.image(troop.image, (troop.size, troop.size), (40, 40, 40)), (troop.x, troop.y))
        for bullet in world.bullets:
            blit(self.image(bullet.image, (bullet.size, bullet.size), (200, 60, 60)), (bullet.x, bullet.y))

    def _draw_hud(self, app: GameApp, height: int) -> None:
        world = app.world
        rect = self.pg.Rect
        black = (0, 0, 0)
        self.text("Money", (13, 7), colour=black)
        self.bar(rect(12, 27, 60, 20), app.wallet.balance, 1000)
        self.text(str(app.wallet.balance), (80, 27), colour=black)
        health = max(0, int(world.townhall.health.health))
        self.text("Health", (13, 47), colour=black)
        self.bar(rect(13, 65, 60, 20), health, 1000)
        self.text(str(health), (80, 65), colour=black)
        self.text(world.clock, (0, min(440, height - 30)), self.large, black)

    def _draw_dialog(self, dialog: _Dialog, width: int, height: int) -> list:
        lines = dialog.text.split("\n")
        box_width = min(width - 20, 560)
        box_height = 20 + len(lines) * 18 + len(dialog.buttons) * 44 + 10
        box = self.pg.Rect((width - box_width) // 2, max(0, (height - box_height) // 2), box_width, box_height)
        self.pg.draw.rect(self.surface, PANEL, box)
        self.pg.draw.rect(self.surface, WHITE, box, width=1)
        top = box.y + 10
        for line in lines:
            self.text(line, (box.x + 10, top))
            top += 18
        top += 10
        targets = []
        for label, action in dialog.buttons:
            rect = self.pg.Rect(box.centerx - 100, top, 200, 36)
            self.pg.draw.rect(self.surface, (70, 72, 96), rect, border_radius=4)
            self.text(label, rect.center, self.large, centre=True)
            targets.append((rect, action))
            top += 44
        return targets


def main(argv=None) -> int:
    """Start the game."""
    parser = argparse.ArgumentParser(
        prog="cakedefense", description="Protect the cake from waves of pests."
    )
    parser.add_argument(
        "--assets",
        type=Path,
        default=Path("assets"),
        help="directory holding the images, sound files and level layouts",
    )
    args = parser.parse_args(argv)
    GameApp(args.assets).run()
    return 0