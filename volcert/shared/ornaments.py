"""Point lists for the small ornamental glyphs drawn on certificates.

All coordinates are millimetres with the origin at the top-left of the page,
so a positive y offset moves down.
"""

from __future__ import annotations

import math

Point = tuple[float, float]

# 5x5 stand-in for a QR code; "#" cells are filled.
QR_PLACEHOLDER = (
    "##.##",
    "#.#.#",
    ".#.#.",
    "#.#.#",
    "##.##",
)


def star(cx: float, cy: float, radius: float, points: int = 5) -> list[Point]:
    inner = radius * 0.45
    coords: list[Point] = []
    for i in range(points * 2):
        r = radius if i % 2 == 0 else inner
        angle = -math.pi / 2 + i * math.pi / points
        coords.append((cx + r * math.cos(angle), cy + r * math.sin(angle)))
    return coords


def diamond(cx: float, cy: float, radius: float) -> list[Point]:
    return [(cx, cy - radius), (cx + radius, cy), (cx, cy + radius), (cx - radius, cy)]


def leaf(cx: float, cy: float, length: float, angle_deg: float = 0.0) -> list[Point]:
    half = length / 2.0
    width = length * 0.22
    theta = math.radians(angle_deg)
    cos_t, sin_t = math.cos(theta), math.sin(theta)
    coords: list[Point] = []
    steps = 12
    for i in range(steps + 1):
        t = -half + length * i / steps
        coords.append((t, -width * math.cos(math.pi * t / length)))
    for i in range(steps, -1, -1):
        t = -half + length * i / steps
        coords.append((t, width * math.cos(math.pi * t / length)))
    return [(cx + x * cos_t - y * sin_t, cy + x * sin_t + y * cos_t) for x, y in coords]


def heart(cx: float, cy: float, size: float) -> list[Point]:
    scale = size / 32.0
    coords: list[Point] = []
    steps = 24
    for i in range(steps):
        t = 2 * math.pi * i / steps
        x = 16 * math.sin(t) ** 3
        y = (
            13 * math.cos(t)
            - 5 * math.cos(2 * t)
            - 2 * math.cos(3 * t)
            - math.cos(4 * t)
        )
        coords.append((cx + x * scale, cy - y * scale))
    return coords


def flower_petals(cx: float, cy: float, size: float, petals: int = 5) -> list[Point]:
    """Centres of the petal circles around ``(cx, cy)``."""
    offset = size * 0.5
    return [
        (
            cx + offset * math.cos(-math.pi / 2 + 2 * math.pi * i / petals),
            cy + offset * math.sin(-math.pi / 2 + 2 * math.pi * i / petals),
        )
        for i in range(petals)
    ]


def qr_cells(
    x: float, y: float, cell: float
) -> list[tuple[float, float, float, float]]:
    cells: list[tuple[float, float, float, float]] = []
    for row, line in enumerate(QR_PLACEHOLDER):
        for col, mark in enumerate(line):
            if mark == "#":
                cells.append((x + col * cell, y + row * cell, cell, cell))
    return cells
