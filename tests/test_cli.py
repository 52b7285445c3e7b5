"""Tests for argument parsing and startup error handling."""

from pathlib import Path

import pytest

from retcon.cli import build_arg_parser, main


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch):
    monkeypatch.setattr("retcon.config.CONFIG_PATH", tmp_path / "cfg" / "config.json")
    monkeypatch.setattr("retcon.cli.LOG_PATH", tmp_path / "cfg" / "retcon.log")


class TestArgParser:
    def test_defaults(self):
        """
        Given no arguments
        When parsed
        Then the path is the current directory and no limit override is set
        """
        args = build_arg_parser().parse_args([])
        assert args.path == "."
        assert args.limit is None
        assert args.separate_author_committer is False
        assert args.verbose == 0

    def test_short_flags(self):
        """
        Given every short flag
        When parsed
        Then each lands on its option
        """
        args = build_arg_parser().parse_args(["-p", "/tmp/x", "-n", "5", "-s", "-vv"])
        assert args.path == "/tmp/x"
        assert args.limit == 5
        assert args.separate_author_committer is True
        assert args.verbose == 2


class TestMain:
    def test_not_a_repository_exits_1(self, tmp_path, capsys):
        """
        Given a directory that is not a repository
        When main runs
        Then it prints the error and returns 1
        """
        plain = tmp_path / "plain"
        plain.mkdir()
        assert main(["-p", str(plain)]) == 1
        assert capsys.readouterr().err.startswith("Error: Not a git repository")

    def test_broken_config_exits_1(self, tmp_path, capsys):
        """
        Given a malformed settings file
        When main runs
        Then it reports the config error and returns 1
        """
        cfg = tmp_path / "cfg" / "config.json"
        cfg.parent.mkdir(parents=True)
        cfg.write_text("{")
        assert main([]) == 1
        assert "not valid JSON" in capsys.readouterr().err

    def test_zero_limit_is_a_usage_error(self):
        """
        Given --limit 0
        When main runs
        Then argparse exits with a usage error
        """
        with pytest.raises(SystemExit) as exc_info:
            main(["-n", "0"])
        assert exc_info.value.code == 2
