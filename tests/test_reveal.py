"""
Unit tests for flood-fill reveal propagation.
"""
import random

import pytest

from minesweeper.grid import compute_neighbor_counts, generate
from minesweeper.reveal import compute_reveal_mask, neighbors


def _mask_from(rows, columns, mines, x, y):
    is_mine = [i in mines for i in range(rows * columns)]
    counts = compute_neighbor_counts(rows, columns, set(mines))
    return compute_reveal_mask(rows, columns, is_mine, counts, x, y)


class TestNeighbors:
    """Test neighbor enumeration."""

    def test_corner_has_three_neighbors(self) -> None:
        """A corner cell has three in-bounds neighbors."""
        assert sorted(neighbors(0, 3, 3)) == [1, 3, 4]

    def test_center_has_eight_neighbors(self) -> None:
        """An interior cell has all eight neighbors."""
        assert sorted(neighbors(4, 3, 3)) == [0, 1, 2, 3, 5, 6, 7, 8]

    def test_edges_do_not_wrap(self) -> None:
        """The last cell of a row is not adjacent to the next row's first cell."""
        assert sorted(neighbors(2, 2, 3)) == [1, 4, 5]


class TestRevealMask:
    """Test reveal propagation."""

    def test_numbered_cell_reveals_only_itself(self) -> None:
        """A non-zero start stops immediately."""
        mask = compute_reveal_mask(1, 2, [False, False], [1, 0], 0, 0)
        assert mask == [True, False]

    def test_zero_region_and_border_are_revealed(self) -> None:
        """A zero start spreads to bordering numbered cells."""
        mask = compute_reveal_mask(2, 2, [False] * 4, [0, 1, 0, 1], 0, 0)
        assert mask == [True, True, True, True]

    @pytest.mark.parametrize("x,y", [(0, 0), (1, 0), (0, 1), (1, 1)])
    def test_empty_2x2_reveals_everything_from_any_cell(self, x: int, y: int) -> None:
        """With no mines every start uncovers the full board."""
        assert compute_reveal_mask(2, 2, [False] * 4, [0] * 4, x, y) == [True] * 4

    def test_never_reveals_a_mine(self) -> None:
        """Mines next to the spread stay hidden."""
        mask = compute_reveal_mask(1, 2, [False, True], [1, 0], 0, 0)
        assert mask[1] is False

    def test_starting_on_a_mine_reveals_nothing(self) -> None:
        """The propagator only handles safe reveals."""
        assert compute_reveal_mask(2, 2, [True, False, False, False], [0, 1, 1, 1], 0, 0) == [False] * 4

    @pytest.mark.parametrize("x,y", [(-1, 0), (0, -1), (2, 0), (0, 2)])
    def test_out_of_bounds_start_reveals_nothing(self, x: int, y: int) -> None:
        """Starting outside the board yields an empty mask."""
        assert compute_reveal_mask(2, 2, [False] * 4, [0] * 4, x, y) == [False] * 4

    def test_wall_of_mines_stops_the_spread(self) -> None:
        """A full column of mines splits the board."""
        # 3 rows x 5 columns, mines down the middle column.
        mask = _mask_from(3, 5, {2, 7, 12}, 0, 0)
        revealed = {i for i, bit in enumerate(mask) if bit}
        assert revealed == {0, 1, 5, 6, 10, 11}

    def test_mask_is_the_connected_zero_region_plus_border(self) -> None:
        """The mask matches an independent depth-first computation."""
        rows, columns = 12, 9
        layout = generate(rows, columns, 14, rng=random.Random(5))
        is_mine = [i in layout.mines for i in range(rows * columns)]
        counts = layout.neighbor_counts

        for start in range(rows * columns):
            if is_mine[start]:
                continue
            expected = set()
            stack = [start]
            while stack:
                index = stack.pop()
                if index in expected or is_mine[index]:
                    continue
                expected.add(index)
                if counts[index] == 0:
                    stack.extend(neighbors(index, rows, columns))
            y, x = divmod(start, columns)
            mask = compute_reveal_mask(rows, columns, is_mine, counts, x, y)
            assert {i for i, bit in enumerate(mask) if bit} == expected
            assert not any(mask[i] for i in layout.mines)

    def test_large_board_does_not_recurse(self) -> None:
        """An empty 100x100 board is filled without hitting recursion limits."""
        total = 100 * 100
        mask = compute_reveal_mask(100, 100, [False] * total, [0] * total, 50, 50)
        assert all(mask)
