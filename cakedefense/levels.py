"""Level layouts: comma separated grids of tile codes, one file per level."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

MAX_LEVEL = 5

_LEVEL_FILES = {
    1: "File.txt",
    2: "File2.txt",
    3: "File3.txt",
    4: "File4.txt",
    5: "File5.txt",
}

_INTEGER = re.compile(r"[+-]?\d+")

Grid = list[list[int]]


class LevelFileError(Exception):
    """A level layout file could not be opened."""


def _cell(value: str) -> int:
    value = value.strip()
    return int(value) if _INTEGER.fullmatch(value) else 0


def parse_design(text: str) -> Grid:
    """Turn layout text into rows of integers; anything not a number becomes 0."""
    return [[_cell(value) for value in line.split(",")] for line in text.splitlines()]


def load_design(path: str | Path) -> Grid:
    """Read and parse a layout file, raising LevelFileError if it cannot be read."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise LevelFileError(f"Failed to open file: {path}") from exc
    return parse_design(text)


def level_file_name(level: int) -> str:
    """Name of the layout file for a level from 1 to MAX_LEVEL."""
    try:
        return _LEVEL_FILES[level]
    except KeyError:
        raise ValueError(f"no layout for level {level}") from None


@dataclass
class Levels:
    """Tracks the current level and loads its layout from ``directory``."""

    directory: Path
    current: int = 1

    def __post_init__(self) -> None:
        self.directory = Path(self.directory)

    def design(self) -> Grid:
        """The layout grid of the current level."""
        return load_design(self.directory / level_file_name(self.current))

    def next_level(self) -> None:
        """Advance to the following level."""
        self.current += 1