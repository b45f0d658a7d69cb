import importlib
from importlib.metadata import PackageNotFoundError
from unittest.mock import patch

import shared.build_info as build_info


class TestBuildInfo:
    def _reload(self):
        return importlib.reload(build_info)

    def test_environment_values_win(self, monkeypatch):
        monkeypatch.setenv("APP_VERSION", "1.2.3")
        monkeypatch.setenv("GIT_COMMIT", "abc1234")
        module = self._reload()
        assert module.APP_VERSION == "1.2.3"
        assert module.GIT_COMMIT == "abc1234"

    def test_commit_defaults_to_dev(self, monkeypatch):
        monkeypatch.delenv("GIT_COMMIT", raising=False)
        assert self._reload().GIT_COMMIT == "dev"

    def test_version_from_installed_distribution(self, monkeypatch):
        monkeypatch.delenv("APP_VERSION", raising=False)
        with patch("importlib.metadata.version", return_value="0.9.0"):
            assert self._reload().APP_VERSION == "0.9.0"

    def test_version_without_distribution(self, monkeypatch):
        monkeypatch.delenv("APP_VERSION", raising=False)
        with patch("importlib.metadata.version", side_effect=PackageNotFoundError):
            assert self._reload().APP_VERSION == "dev"

    def teardown_method(self):
        importlib.reload(build_info)
