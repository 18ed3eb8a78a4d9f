"""Flood-fill reveal propagation."""
from collections import deque
from typing import Iterator, List, Sequence


def neighbors(index: int, rows: int, columns: int) -> Iterator[int]:
    """Yield the linear indices of the in-bounds Moore neighbors of ``index``."""
    y, x = divmod(index, columns)
    for dy in [-1, 0, 1]:
        for dx in [-1, 0, 1]:
            if dx == 0 and dy == 0:
                continue
            nx = x + dx
            ny = y + dy
            if 0 <= nx < columns and 0 <= ny < rows:
                yield ny * columns + nx


def compute_reveal_mask(rows: int, columns: int, is_mine: Sequence[bool],
                        neighbor_counts: Sequence[int], start_x: int, start_y: int) -> List[bool]:
    """Compute which cells a single safe reveal at ``(start_x, start_y)`` uncovers.

    Zero-count cells spread to their neighbors; numbered cells are revealed
    but stop the spread. Mines are never marked. Starting out of bounds or
    on a mine yields an all-false mask.
    """
    total = rows * columns
    revealed = [False] * total

    if not (0 <= start_x < columns and 0 <= start_y < rows):
        return revealed
    start = start_y * columns + start_x
    if is_mine[start]:
        return revealed

    queue = deque([start])
    revealed[start] = True
    while queue:
        index = queue.popleft()
        if neighbor_counts[index] != 0:
            continue
        for neighbor in neighbors(index, rows, columns):
            if revealed[neighbor] or is_mine[neighbor]:
                continue
            revealed[neighbor] = True
            queue.append(neighbor)

    return revealed
