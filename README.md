# cakedefense

A small real-time defence game. Pests appear on a tile map and walk the
cheapest path to your cake (the town hall). Click to fire at them and let
your workers patch up the fences. Keep the cake standing until the clock
reaches 0:10 to finish the level.

## Installing

```
pip install .
```

## Playing

```
cakedefense --assets path/to/assets
```

`--assets` defaults to `assets` in the current directory. It is expected to
hold:

- `Text files/` with the level maps `File.txt`, `File2.txt`, `File3.txt`,
  `File4.txt` and `File5.txt`;
- `images/` with the pictures (`bg.jpg`, `cake1.png`, `Wall.png`,
  `human.png`, `slipper.png`, `booster.png`, `citizenworker.png`,
  the troop pictures and so on);
- `Sound files/` with the sound effects and `background music.mp3`.

In play:

- Left-click to fire from the cannon towards the cursor.
- Press Esc or P, or click the pause button in the top-right corner, to
  pause and open the game options (resume, sound settings, help, back to
  the main menu).
- Each level spawns pests more often and moves them faster; there are five
  levels.
- Every 20 kills raises the cannon's power by 10%.
- Shooting a power booster adds 50% of the cannon's base power for 30
  seconds.
- When a fence is hit, a worker walks out from the town hall to repair it,
  one point at a time; at most five workers are out at once.
- Winning a level pays 100 coins. The shop sells three upgrades, 50 coins
  each: the town hall (health raised to 2000 and a new picture), the fence
  (a new picture) and the cannon (a new picture; offered whenever your
  balance is not negative). The player starts with 200 coins.

## Level maps

A map is a comma-separated grid of integers, one row per line; anything
that is not an integer counts as `0`:

- `0` open ground, where pests spawn;
- `1` ground where boosters may also land;
- `2` the town hall;
- `3` the cannon;
- `4` a fence.

Entering a tile costs its code when pests look for a path, so they prefer
open ground to fences. Destroyed fences count as open ground.

## Using it as a library

The game rules run without a display:

- `cakedefense.levels`: `parse_design`, `load_design`, `level_file_name`,
  `Levels` and `LevelFileError`.
- `cakedefense.engine`: `World` (with `spawn_troop`, `move_troops`,
  `tick_second`, `fire`, `spawn_booster` and `advance(ms)`, which runs every
  game timer due in that span), `Outcome`, `find_shortest_path`,
  `spawn_interval` and `troop_step_interval`.
- `cakedefense.shop`: `Shop`, `Upgrade` and `InsufficientFunds`.
- `cakedefense.wallet`: `Wallet`.
- `cakedefense.health`: `Health`.
- `cakedefense.units`: `Cannon`, `Bullet`, `Booster`, `Fence`, `Townhall`,
  `Troop`, `Worker` and `troop_sprite`.
- `cakedefense.app`: `GameApp`, `Sounds` and `main`.

## What it does not do

No images, sounds or level maps ship with the package; supply them through
`--assets`. Pictures that cannot be loaded are drawn as plain coloured
boxes and sounds that cannot be loaded stay silent, but a level cannot be
started without its map file. Progress is not saved between runs.

## Running the tests

```
pip install .[test]
pytest
```