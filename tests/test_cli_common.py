"""Tests for CLI common utilities."""

import argparse

import pytest

from stz.cli.common import (
    add_verbosity_args,
    create_global_parser,
    create_options_parser,
    get_log_level,
    prepare_config,
)
from stz.config import ConfigError


class TestCreateGlobalParser:
    """Tests for create_global_parser function."""

    def test_returns_parser(self):
        """Test that it returns an ArgumentParser."""
        parser = create_global_parser()
        assert isinstance(parser, argparse.ArgumentParser)

    def test_parser_has_no_help(self):
        """Test that parser has add_help=False."""
        parser = create_global_parser()
        args = parser.parse_args([])
        assert args is not None

    def test_has_verbosity_args(self):
        """Test that parser has verbosity arguments."""
        parser = create_global_parser()
        args = parser.parse_args(["--verbose"])
        assert args.verbose is True

    def test_has_config_args(self):
        parser = create_global_parser()
        args = parser.parse_args(["-c", "stz.toml", "--log-file", "run.log"])
        assert args.config == "stz.toml"
        assert args.log_file == "run.log"


class TestAddVerbosityArgs:
    """Tests for add_verbosity_args function."""

    def test_adds_verbose(self):
        """Test that --verbose is added."""
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        args = parser.parse_args(["--verbose"])
        assert args.verbose is True

    def test_adds_quiet(self):
        """Test that --quiet is added."""
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        args = parser.parse_args(["--quiet"])
        assert args.quiet is True

    def test_short_verbose(self):
        """Test that -v works for verbose."""
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        args = parser.parse_args(["-v"])
        assert args.verbose is True

    def test_defaults_are_false(self):
        """Test that defaults are False."""
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        args = parser.parse_args([])
        assert args.verbose is False
        assert args.quiet is False
        assert args.debug is False


class TestCreateOptionsParser:
    """Tests for the archive command options."""

    def test_unset_options_are_none(self):
        """Flags not given stay None so file defaults can apply."""
        args = create_options_parser().parse_args([])
        assert args.host is None
        assert args.zstd_level is None
        assert args.progress is None
        assert args.keep_acls is None
        assert args.keep_xattrs is None
        assert args.excludes is None
        assert args.dry_run is False

    def test_negative_toggles(self):
        args = create_options_parser().parse_args(
            ["--no-pv", "--no-acls", "--no-xattrs"]
        )
        assert args.progress is False
        assert args.keep_acls is False
        assert args.keep_xattrs is False

    def test_no_progress_alias(self):
        args = create_options_parser().parse_args(["--no-progress"])
        assert args.progress is False

    def test_repeatable_exclude(self):
        args = create_options_parser().parse_args(
            ["--exclude", "*.log", "--exclude", "cache/*"]
        )
        assert args.excludes == ["*.log", "cache/*"]

    def test_short_options(self):
        args = create_options_parser().parse_args(
            ["-H", "root@db", "-p", "2222", "-i", "key", "-f", "a.tzst", "-o", "out"]
        )
        assert args.host == "root@db"
        assert args.port == "2222"
        assert args.identity == "key"
        assert args.archive == "a.tzst"
        assert args.out_dir == "out"

    def test_prefix_and_sudo(self):
        args = create_options_parser().parse_args(
            ["--prefix", "/tmp/r", "--sudo-remote", "", "--sudo-local", "doas"]
        )
        assert args.restore_prefix == "/tmp/r"
        assert args.sudo_remote == ""
        assert args.sudo_local == "doas"


class TestGetLogLevel:
    """Tests for get_log_level function."""

    def test_debug_flag(self):
        """Test that debug flag returns DEBUG."""
        args = argparse.Namespace(debug=True, quiet=False, verbose=False)
        assert get_log_level(args) == "DEBUG"

    def test_quiet_flag(self):
        """Test that quiet flag returns WARNING."""
        args = argparse.Namespace(debug=False, quiet=True, verbose=False)
        assert get_log_level(args) == "WARNING"

    def test_verbose_flag(self):
        """Test that verbose flag returns DEBUG."""
        args = argparse.Namespace(debug=False, quiet=False, verbose=True)
        assert get_log_level(args) == "DEBUG"

    def test_no_flags(self):
        """Test that no flags returns INFO."""
        args = argparse.Namespace(debug=False, quiet=False, verbose=False)
        assert get_log_level(args) == "INFO"

    def test_missing_attributes(self):
        """Test handling of missing attributes."""
        args = argparse.Namespace()
        assert get_log_level(args) == "INFO"


class TestPrepareConfig:
    """Tests for prepare_config function."""

    def test_uses_config_file_defaults(self, config_file):
        args = create_options_parser().parse_args(["-c", str(config_file)])
        args.paths = ["etc/nginx"]
        config = prepare_config(args, "backup")
        assert config.ssh.host == "backup@server"
        assert config.zstd_level == 12
        assert config.paths == ("etc/nginx",)

    def test_flags_override_file(self, config_file):
        args = create_options_parser().parse_args(
            ["-c", str(config_file), "-H", "other@host", "--zstd-level", "3"]
        )
        args.paths = ["srv"]
        config = prepare_config(args, "backup")
        assert config.ssh.host == "other@host"
        assert config.zstd_level == 3

    def test_validation_error(self):
        args = create_options_parser().parse_args(["--zstd-level", "0", "-H", "h"])
        args.paths = ["etc"]
        with pytest.raises(ConfigError, match="zstd-level"):
            prepare_config(args, "backup")

    def test_missing_explicit_config_file(self, tmp_path):
        args = create_options_parser().parse_args(["-c", str(tmp_path / "nope.toml")])
        with pytest.raises(ConfigError, match="not found"):
            prepare_config(args, "backup")
