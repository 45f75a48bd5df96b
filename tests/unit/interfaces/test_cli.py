"""Tests for the command-line entrypoint."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from visionlink.domain.entities.metadata import MediaItem
from visionlink.domain.exceptions import ChainExhausted
from visionlink.infrastructure.config import AppConfig
from visionlink.infrastructure.config.load import load_config as real_load_config
from visionlink.interfaces.cli import cli

_MOD = "visionlink.interfaces.cli.cli"


@pytest.fixture(autouse=True)
def _quiet_setup() -> Any:
    """Skip real config loading side effects and logging reconfiguration."""
    with (
        patch(f"{_MOD}.load_config", return_value=AppConfig()) as load,
        patch(f"{_MOD}.configure_logging", return_value={}),
    ):
        yield load


def _pool_mock() -> MagicMock:
    pool = MagicMock()
    pool.cleanup = AsyncMock()
    return pool


class TestParseArgs:
    def test_resolve_defaults(self) -> None:
        args = cli._parse_args(["resolve", "Frieren"])
        assert args.command == "resolve"
        assert args.title == "Frieren"
        assert (args.season, args.episode) == (1, 1)
        assert args.force_search is False
        assert args.play is False

    def test_resolve_options(self) -> None:
        args = cli._parse_args(
            ["--source1", "https://m.test", "resolve", "X", "-s", "2", "-e", "5",
             "--force-search", "--play"]
        )
        assert args.source1_url == "https://m.test"
        assert (args.season, args.episode) == (2, 5)
        assert args.force_search and args.play

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            cli._parse_args([])

    def test_cli_overrides_only_include_given_flags(self) -> None:
        args = cli._parse_args(["--log-level", "DEBUG", "--source3", "https://s3.test",
                                "search", "x"])
        assert cli._cli_overrides(args) == {
            "log_level": "DEBUG",
            "source3_url": "https://s3.test",
        }


class TestResolveCommand:
    def test_prints_url_and_exits_zero(self, capsys: pytest.CaptureFixture[str]) -> None:
        uc = MagicMock()
        uc.resolve_url = AsyncMock(return_value="https://cdn.test/a.m3u8")
        pool = _pool_mock()
        with (
            patch(f"{_MOD}.build_browser_pool", return_value=pool),
            patch(f"{_MOD}.build_resolve_use_case", return_value=uc),
        ):
            code = cli.start(["resolve", "Frieren", "-s", "1", "-e", "4"])

        assert code == cli.EXIT_OK
        assert capsys.readouterr().out.strip() == "https://cdn.test/a.m3u8"
        assert uc.resolve_url.await_args.args == ("Frieren", 1, 4)
        assert uc.resolve_url.await_args.kwargs["force_final"] is False
        pool.cleanup.assert_awaited_once()

    def test_chain_exhausted_exits_one(self) -> None:
        uc = MagicMock()
        uc.resolve_url = AsyncMock(side_effect=ChainExhausted("chain_exhausted"))
        pool = _pool_mock()
        with (
            patch(f"{_MOD}.build_browser_pool", return_value=pool),
            patch(f"{_MOD}.build_resolve_use_case", return_value=uc),
        ):
            code = cli.start(["resolve", "Nothing"])

        assert code == cli.EXIT_NOT_FOUND
        pool.cleanup.assert_awaited_once()

    def test_invalid_request_exits_two(self) -> None:
        pool = _pool_mock()
        with patch(f"{_MOD}.build_browser_pool", return_value=pool):
            code = cli.start(["resolve", "Frieren", "--episode", "0"])
        assert code == cli.EXIT_USAGE

    def test_play_hands_url_to_player(self) -> None:
        uc = MagicMock()
        uc.resolve_url = AsyncMock(return_value="https://cdn.test/a.m3u8")
        with (
            patch(f"{_MOD}.build_browser_pool", return_value=_pool_mock()),
            patch(f"{_MOD}.build_resolve_use_case", return_value=uc),
            patch(f"{_MOD}.SubprocessPlayer") as player_cls,
        ):
            code = cli.start(["resolve", "Frieren", "--play"])

        assert code == cli.EXIT_OK
        player_cls.return_value.play.assert_called_once_with(
            "https://cdn.test/a.m3u8", title="Frieren S1E1"
        )


class TestMetadataCommands:
    def test_search_without_key_exits_two(self) -> None:
        assert cli.start(["search", "titan"]) == cli.EXIT_USAGE

    def test_search_prints_hits(
        self, _quiet_setup: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        _quiet_setup.return_value = AppConfig(tmdb_api_key="k")
        tmdb = MagicMock()
        tmdb.search = AsyncMock(
            return_value=[
                MediaItem(id=1429, media_type="tv", title="Attack on Titan",
                          release_date="2013-04-07")
            ]
        )
        with patch(f"{_MOD}.build_metadata_client", return_value=tmdb):
            code = cli.start(["search", "titan"])

        assert code == cli.EXIT_OK
        assert capsys.readouterr().out.strip() == "1429\ttv\tAttack on Titan (2013)"


class TestConfigErrors:
    """Bad configuration is a usage error, reported on one stderr line."""

    @pytest.fixture(autouse=True)
    def _real_loader(self, _quiet_setup: Any, monkeypatch: pytest.MonkeyPatch) -> None:
        for key in ("VISIONLINK_SOURCE1_URL", "VISIONLINK_SOURCE2_URL",
                    "VISIONLINK_SOURCE3_URL"):
            monkeypatch.delenv(key, raising=False)
        _quiet_setup.side_effect = real_load_config

    def test_invalid_source_flag_exits_two(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with patch(f"{_MOD}.build_browser_pool") as pool:
            code = cli.start(["--source1", "ftp://bad", "resolve", "X"])

        assert code == cli.EXIT_USAGE
        pool.assert_not_called()
        err = capsys.readouterr().err.strip()
        assert err.startswith("invalid configuration: sources.source1_url")
        assert "\n" not in err

    def test_invalid_source_env_exits_two(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("VISIONLINK_SOURCE2_URL", "vostfree.tv")
        assert cli.start(["search", "titan"]) == cli.EXIT_USAGE

    def test_missing_config_file_exits_two(
        self, tmp_path: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        missing = tmp_path / "nope.yaml"
        code = cli.start(["--config", str(missing), "resolve", "X"])

        assert code == cli.EXIT_USAGE
        assert capsys.readouterr().err.startswith("config file not found:")

    def test_non_mapping_yaml_exits_two(
        self, tmp_path: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n", encoding="utf-8")
        code = cli.start(["--config", str(path), "search", "x"])

        assert code == cli.EXIT_USAGE
        assert "must be a mapping" in capsys.readouterr().err
