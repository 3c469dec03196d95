"""Axial hex geometry and the seeded map generator.

The generator is treated as an opaque collaborator by the rules engine: it
only has to return the initial `Tile` list.
"""

from __future__ import annotations

import random
from collections.abc import Iterable

from gaia_engine.core.catalog import PLANET_WHEEL, Planet
from gaia_engine.core.models import Tile


def hex_distance(a: Tile, b: Tile) -> int:
    return axial_distance(a.q, a.r, b.q, b.r)


def axial_distance(q1: int, r1: int, q2: int, r2: int) -> int:
    dq = q1 - q2
    dr = r1 - r2
    return (abs(dq) + abs(dr) + abs(dq + dr)) // 2


def neighbours(tile: Tile, tiles: Iterable[Tile]) -> list[Tile]:
    return [t for t in tiles if hex_distance(tile, t) == 1]


def tiles_within(tile: Tile, tiles: Iterable[Tile], radius: int) -> list[Tile]:
    return [t for t in tiles if t.id != tile.id and hex_distance(tile, t) <= radius]


# Ten base sectors, row-major over the radius-2 hex (r = -2..2). One letter per hex:
# . space, t terra, i ice, T titanium, s swamp, d desert, v volcanic, o oxide, g gaia, x transdim
_SECTOR_ROWS: tuple[str, ...] = (
    "... ..tx .s... d..v ..o",
    ".o. x.s. ..... di.v ..T",
    ".T. ..i. x...d .g.t ...",
    "... ..vi ts... ..o. ..T",
    "i.x ...o .g... .... .vd",
    "... .s.x ...t. .g.. .xd",
    "... s.g. .o..T ..g. x..",
    "t.x .i.. ...T. .v.. .x.",
    "s.. .T.v ..... .g.x ..i",
    "x.. x.g. ..... .d.o ..t",
)

_LETTERS: dict[str, Planet] = {
    ".": Planet.space,
    "t": Planet.terra,
    "i": Planet.ice,
    "T": Planet.titanium,
    "s": Planet.swamp,
    "d": Planet.desert,
    "v": Planet.volcanic,
    "o": Planet.oxide,
    "g": Planet.gaia,
    "x": Planet.transdim,
}

# Sector centres in a 3-4-3 cluster; neighbouring sectors share a two-hex border.
SECTOR_CENTRES: tuple[tuple[int, int], ...] = (
    (2, 4), (7, 3), (12, 2),
    (-2, 9), (3, 8), (8, 7), (13, 6),
    (-1, 13), (4, 12), (9, 11),
)


def sector_layout(index: int) -> list[tuple[int, int, Planet]]:
    """Relative (q, r, planet) hexes of a base sector."""

    rows = _SECTOR_ROWS[index].split(" ")
    out: list[tuple[int, int, Planet]] = []
    for row_idx, row in enumerate(rows):
        r = row_idx - 2
        q_start = max(-2, -2 - r)
        for offset, ch in enumerate(row):
            out.append((q_start + offset, r, _LETTERS[ch]))
    return out


def _rotate(q: int, r: int, rotations: int) -> tuple[int, int]:
    for _ in range(rotations):
        q, r = -r, q + r
    return q, r


def generate_map(*, seed: int) -> list[Tile]:
    """Place the ten base sectors with a seeded shuffle and rotation.

    Each sector is rotated so that equal home planets never touch across a
    sector border (tries all six rotations, keeps the first clean one).
    """

    rng = random.Random(seed)
    order = list(range(len(_SECTOR_ROWS)))
    rng.shuffle(order)

    home_types = set(PLANET_WHEEL)
    tiles: list[Tile] = []
    occupied: set[tuple[int, int]] = set()
    next_id = 1

    for sector_no, (layout_idx, (cq, cr)) in enumerate(zip(order, SECTOR_CENTRES, strict=True), start=1):
        layout = sector_layout(layout_idx)
        first = rng.randrange(6)
        chosen = first
        for attempt in range(6):
            rotation = (first + attempt) % 6
            clash = False
            for q, r, planet in layout:
                if planet not in home_types:
                    continue
                rq, rr = _rotate(q, r, rotation)
                pq, pr = cq + rq, cr + rr
                if any(t.planet == planet and axial_distance(t.q, t.r, pq, pr) == 1 for t in tiles):
                    clash = True
                    break
            if not clash:
                chosen = rotation
                break

        for q, r, planet in layout:
            rq, rr = _rotate(q, r, chosen)
            pos = (cq + rq, cr + rr)
            if pos in occupied:
                continue
            occupied.add(pos)
            tiles.append(Tile(id=f"tile-{next_id}", q=pos[0], r=pos[1], sector=sector_no, planet=planet))
            next_id += 1

    return tiles
