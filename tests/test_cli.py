# tests/test_cli.py
import json
import logging

import pytest
import requests
from click.testing import CliRunner

from spotauth import config
from spotauth.auth import SpotipyBackend
from spotauth.cli import cli

REDIRECT = "https://app.example/cb"
ENV = {"SPOTIFY_ID": "cid", "SPOTIFY_SECRET": "sec"}


class FakeSpotify:
    def current_user(self):
        return {"id": "u1", "display_name": "Test User"}


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "DATA_DIR", tmp_path)
    monkeypatch.setattr(config, "TOKEN_CACHE_PATH", tmp_path / ".spotify_cache")
    return tmp_path


@pytest.fixture
def no_network(monkeypatch):
    def boom(*args, **kwargs):
        raise AssertionError("unexpected network call")

    monkeypatch.setattr(requests.Session, "post", boom)


def test_scopes_lists_every_scope():
    result = CliRunner().invoke(cli, ["scopes"])
    assert result.exit_code == 0
    assert "playlist-read-private" in result.output
    assert "user-library-modify" in result.output


def test_url_prints_authorization_url():
    result = CliRunner().invoke(
        cli,
        ["url", "--redirect-uri", REDIRECT, "-s", "user-library-read", "--state", "xyz123"],
        env=ENV,
    )
    assert result.exit_code == 0, result.output
    out = result.output.strip()
    assert out.startswith(config.AUTH_URL)
    assert "client_id=cid" in out
    assert "state=xyz123" in out
    assert "scope=user-library-read" in out


def test_login_rejects_state_mismatch(data_dir, no_network):
    result = CliRunner().invoke(
        cli,
        ["login", "--redirect-uri", REDIRECT, "--state", "xyz123", "--no-browser"],
        input=f"{REDIRECT}?code=ABC&state=evil\n",
        env=ENV,
    )
    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "state" in result.output
    assert not (data_dir / ".spotify_cache").exists()


def test_login_reports_denied_authorization(data_dir, no_network):
    result = CliRunner().invoke(
        cli,
        ["login", "--redirect-uri", REDIRECT, "--state", "xyz123", "--no-browser"],
        input=f"{REDIRECT}?error=access_denied&state=xyz123\n",
        env=ENV,
    )
    assert result.exit_code == 1
    assert "access_denied" in result.output


def test_login_caches_token(data_dir, monkeypatch):
    token = {"access_token": "T1", "refresh_token": "R1", "expires_at": 4102444800}
    monkeypatch.setattr(SpotipyBackend, "exchange", lambda self, cfg, code: token)
    monkeypatch.setattr(SpotipyBackend, "client", lambda self, cfg, tok: FakeSpotify())

    result = CliRunner().invoke(
        cli,
        ["login", "--redirect-uri", REDIRECT, "--state", "xyz123", "--no-browser"],
        input=f"{REDIRECT}?code=ABC&state=xyz123\n",
        env=ENV,
    )
    assert result.exit_code == 0, result.output
    assert "Test User" in result.output
    assert json.loads((data_dir / ".spotify_cache").read_text()) == token


def test_whoami_without_cached_token(data_dir):
    result = CliRunner().invoke(cli, ["whoami"], env=ENV)
    assert result.exit_code == 1
    assert "No cached token" in result.output


def test_whoami_uses_cached_token(data_dir, monkeypatch):
    token = {"access_token": "T1", "refresh_token": "R1", "expires_at": 4102444800}
    (data_dir / ".spotify_cache").write_text(json.dumps(token))
    seen = []

    def fake_client(self, cfg, tok):
        seen.append(tok)
        return FakeSpotify()

    monkeypatch.setattr(SpotipyBackend, "client", fake_client)

    result = CliRunner().invoke(cli, ["whoami", "--redirect-uri", REDIRECT], env=ENV)
    assert result.exit_code == 0, result.output
    assert "Test User" in result.output
    assert seen == [token]


@pytest.mark.parametrize("args, level", [([], logging.INFO), (["-v"], logging.DEBUG)])
def test_logging_level_follows_verbose_flag(monkeypatch, args, level):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

    result = CliRunner().invoke(cli, [*args, "scopes"])

    assert result.exit_code == 0, result.output
    assert len(calls) == 1
    assert calls[0]["level"] == level
