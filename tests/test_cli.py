"""
Tests for the command-line entry point.
"""

import subprocess
from unittest.mock import patch

import pytest

from dictr import __version__
from dictr.__main__ import build_parser, main


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self):
        """Test unset flags are None so they never override the config."""
        args = build_parser().parse_args([])

        assert args.backend is None
        assert args.hotkey is None
        assert args.min_duration is None
        assert args.paste is False
        assert args.verbose is False

    def test_min_duration_is_integer(self):
        """Test --min-duration is parsed as milliseconds."""
        assert build_parser().parse_args(["--min-duration", "250"]).min_duration == 250

    def test_version(self, capsys):
        """Test --version prints the package version."""
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--version"])

        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestListDevices:
    """Tests for --list-devices."""

    def test_sounddevice_listing(self, fake_sd, capsys):
        """Test devices are printed with the default marker."""
        assert main(["--list-devices"]) == 0

        assert capsys.readouterr().out == "0: USB Mic (default)\n"

    def test_pactl_listing_shows_names(self, no_pactl, capsys):
        """Test pactl names are printed under differing descriptions."""
        def run(*args):
            if args == ("get-default-source",):
                return subprocess.CompletedProcess(args, 0, stdout="alsa_input.usb\n", stderr="")
            return subprocess.CompletedProcess(
                args, 0, stdout="Name: alsa_input.usb\nDescription: USB Audio\n", stderr=""
            )

        no_pactl.side_effect = run

        assert main(["--list-devices"]) == 0

        assert capsys.readouterr().out == "0: USB Audio (default)\n   alsa_input.usb\n"


class TestSetupFailures:
    """Tests for fatal setup errors."""

    def test_unknown_backend(self, tmp_path):
        """Test an unknown backend exits with status 1."""
        assert main(["--config", str(tmp_path / "none.json"), "--backend", "bogus"]) == 1

    def test_missing_model(self, tmp_path):
        """Test a missing local model exits with status 1."""
        argv = ["--config", str(tmp_path / "none.json"), "--model", str(tmp_path / "missing")]
        assert main(argv) == 1

    def test_missing_api_key(self, tmp_path, monkeypatch):
        """Test the api backend without a key exits with status 1."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        assert main(["--config", str(tmp_path / "none.json"), "--backend", "api"]) == 1

    def test_invalid_config_file(self, tmp_path):
        """Test a broken config file exits with status 1."""
        path = tmp_path / "config.json"
        path.write_text("{broken", encoding="utf-8")

        assert main(["--config", str(path)]) == 1

    def test_unknown_device(self, tmp_path, fake_sd, monkeypatch):
        """Test an unknown input device exits with status 1."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("XDG_SESSION_TYPE", "x11")
        argv = [
            "--config", str(tmp_path / "none.json"),
            "--backend", "api",
            "--device", "nonexistent",
        ]

        with patch("dictr.hotkey.manager.HotkeyListener.start") as start:
            assert main(argv) == 1
        start.assert_not_called()
