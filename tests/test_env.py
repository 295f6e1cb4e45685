"""Tests for .env loading."""

import os

from fleetcleanup.env import load_env


class TestLoadEnv:

    def test_missing_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert load_env() is False

    def test_loads_variables(self, tmp_path, monkeypatch):
        # Recorded as unset so teardown removes what .env loads
        monkeypatch.setenv("FLEET_CLEANUP_TEST_VAR", "unset")
        monkeypatch.delenv("FLEET_CLEANUP_TEST_VAR")
        env_file = tmp_path / ".env"
        env_file.write_text("# comment\nFLEET_CLEANUP_TEST_VAR=from-file\n")

        assert load_env(env_file) is True
        assert os.environ["FLEET_CLEANUP_TEST_VAR"] == "from-file"

    def test_existing_variables_win(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FLEET_CLEANUP_TEST_VAR", "from-env")
        env_file = tmp_path / ".env"
        env_file.write_text("FLEET_CLEANUP_TEST_VAR=from-file\n")

        load_env(env_file)

        assert os.environ["FLEET_CLEANUP_TEST_VAR"] == "from-env"
