"""
Tests for environment-driven settings.
"""
import pytest

from minesweeper.config import DEFAULT_TASK_QUEUE, Settings


class TestSettings:
    """Test settings loading and validation."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """An empty environment yields the in-memory backend."""
        for name in ("PORT", "MINESWEEPER_BACKEND", "MINESWEEPER_TASK_QUEUE", "MINESWEEPER_MAX_DIMENSION",
                     "MINESWEEPER_MINE_RATIO", "MINESWEEPER_LOCK_TIMEOUT", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings.from_env()
        assert settings.port == 3000
        assert settings.backend == "memory"
        assert settings.task_queue == DEFAULT_TASK_QUEUE
        assert settings.max_dimension == 100
        assert settings.mine_ratio == 0.15

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Values come from environment variables."""
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("MINESWEEPER_BACKEND", "Temporal")
        monkeypatch.setenv("MINESWEEPER_MAX_DIMENSION", "30")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        settings = Settings.from_env()
        assert settings.port == 8080
        assert settings.backend == "temporal"
        assert settings.max_dimension == 30
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("name,value", [
        ("PORT", "abc"),
        ("MINESWEEPER_BACKEND", "postgres"),
        ("MINESWEEPER_MAX_DIMENSION", "1"),
        ("MINESWEEPER_MINE_RATIO", "1.5"),
        ("MINESWEEPER_LOCK_TIMEOUT", "0"),
    ])
    def test_invalid_values_fail_fast(self, monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
        """Bad configuration stops the process at startup."""
        monkeypatch.setenv(name, value)
        with pytest.raises(RuntimeError, match="Invalid configuration"):
            Settings.from_env()
