"""Server-side Minesweeper engine."""
