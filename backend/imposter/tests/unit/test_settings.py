import pytest
from pydantic import ValidationError

from imposter.logic.enums import Difficulty
from imposter.server.settings import ImposterServerSettings


class TestImposterServerSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("IMPOSTER_CORS_ORIGINS", raising=False)
        monkeypatch.delenv("IMPOSTER_WORD_DIR", raising=False)
        settings = ImposterServerSettings()

        assert settings.max_sessions == 200
        assert settings.cors_origins == ["http://localhost:8080"]
        assert settings.word_dir == "backend/data/words"
        assert settings.default_difficulty == Difficulty.EASY
        assert (settings.clue_seconds, settings.voting_seconds) == (60, 60)
        assert settings.disconnect_grace_seconds == 5.0
        assert settings.min_players == 2

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("IMPOSTER_CLUE_SECONDS", "30")
        monkeypatch.setenv("IMPOSTER_DEFAULT_DIFFICULTY", "hard")
        monkeypatch.setenv("IMPOSTER_MIN_PLAYERS", "3")
        settings = ImposterServerSettings()

        assert settings.clue_seconds == 30
        assert settings.default_difficulty == Difficulty.HARD
        assert settings.min_players == 3

    def test_cors_origins_csv(self, monkeypatch):
        monkeypatch.setenv("IMPOSTER_CORS_ORIGINS", "http://a.example, http://b.example")
        assert ImposterServerSettings().cors_origins == ["http://a.example", "http://b.example"]

    def test_cors_origins_json(self, monkeypatch):
        monkeypatch.setenv("IMPOSTER_CORS_ORIGINS", '["http://a.example"]')
        assert ImposterServerSettings().cors_origins == ["http://a.example"]

    def test_empty_cors_origins_rejected(self, monkeypatch):
        monkeypatch.setenv("IMPOSTER_CORS_ORIGINS", "  ")
        with pytest.raises(ValidationError):
            ImposterServerSettings()

    def test_invalid_durations_rejected(self):
        with pytest.raises(ValidationError):
            ImposterServerSettings(voting_seconds=0)
