"""Tests for application configuration."""

import pytest
from pydantic import ValidationError

from reelclub.config import Settings
from reelclub.models.season import DEFAULT_CATEGORIES, ScopeConfig


class TestDefaults:
    def test_default_scope_config(self) -> None:
        """The global scope falls back to the default categories and 14 weeks."""
        settings = Settings(database_url="sqlite+aiosqlite:///:memory:")
        config = settings.default_scope_config()
        assert config.categories == list(DEFAULT_CATEGORIES)
        assert config.season_length_weeks == 14

    def test_overrides(self) -> None:
        settings = Settings(
            reelclub_season_weeks=8,
            reelclub_default_categories=["horror", "comedy"],
        )
        config = settings.default_scope_config()
        assert config.categories == ["horror", "comedy"]
        assert config.season_length_weeks == 8

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REELCLUB_SEASON_WEEKS", "6")
        monkeypatch.setenv("REELCLUB_AUTO_PICK", "true")
        settings = Settings()
        assert settings.reelclub_season_weeks == 6
        assert settings.reelclub_auto_pick is True

    def test_auto_pick_off_by_default(self) -> None:
        assert Settings().reelclub_auto_pick is False


class TestValidation:
    @pytest.mark.parametrize("weeks", [0, 3, 53])
    def test_season_length_out_of_range(self, weeks: int) -> None:
        with pytest.raises(ValidationError):
            Settings(reelclub_season_weeks=weeks)

    def test_duplicate_default_categories_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(reelclub_default_categories=["a", "a"])

    def test_blank_category_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ScopeConfig(categories=["top-pick", "  "])

    def test_empty_category_list_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ScopeConfig(categories=[])

    def test_categories_are_stripped(self) -> None:
        assert ScopeConfig(categories=[" top-pick "]).categories == ["top-pick"]
