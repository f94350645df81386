"""
Unit tests for the command-line interface.
"""

from pathlib import Path

import pytest

from fileserver import __main__ as cli


class FakeServer:
    """Stands in for FileServer so no socket is opened."""

    instances = []
    bind_error = None

    def __init__(self, config):
        self.config = config
        self.ran = False
        FakeServer.instances.append(self)

    def bind(self):
        if FakeServer.bind_error:
            raise FakeServer.bind_error
        return ("::", self.config.port)

    def run(self):
        self.ran = True


@pytest.fixture
def fake_server(monkeypatch, base_dir: Path):
    """Run the CLI from `base_dir` with a fake server and a clean environment."""
    FakeServer.instances = []
    FakeServer.bind_error = None
    monkeypatch.setattr(cli, "FileServer", FakeServer)
    monkeypatch.chdir(base_dir)
    monkeypatch.delenv("FILESERVER_PORT", raising=False)
    monkeypatch.delenv("FILESERVER_LOG_LEVEL", raising=False)
    return FakeServer


SAFE_ENV = {"HOME": "/nonexistent-home-for-tests"}


class TestArguments:
    """Tests for argument parsing."""

    def test_defaults(self, fake_server, base_dir: Path):
        """Test that no arguments serve cwd on 8000."""
        assert cli.main([], SAFE_ENV) == 0

        server = fake_server.instances[0]
        assert server.ran
        assert server.config.port == 8000
        assert server.config.base_dir == str(base_dir)

    def test_port(self, fake_server):
        """Test the positional port."""
        assert cli.main(["9000"], SAFE_ENV) == 0
        assert fake_server.instances[0].config.port == 9000

    @pytest.mark.parametrize("port", ["1", "65535"])
    def test_port_range_edges(self, fake_server, port: str):
        """Test the ends of the valid range."""
        assert cli.main([port], SAFE_ENV) == 0
        assert fake_server.instances[0].config.port == int(port)

    @pytest.mark.parametrize("argv", [
        ["0"],
        ["65536"],
        ["-5"],
        ["eighty"],
        ["80.5"],
        ["--bogus"],
        ["-x"],
        ["8000", "9000"],
        ["--f"],
        ["--forc"],
        ["--log", "DEBUG"],
    ])
    def test_usage_errors_exit_2(self, fake_server, capsys, argv):
        """Test that bad ports, unknown flags and extra positionals fail."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(argv, SAFE_ENV)

        assert exc_info.value.code == 2
        assert "usage:" in capsys.readouterr().err
        assert fake_server.instances == []

    def test_log_level(self, fake_server):
        """Test --log-level."""
        assert cli.main(["--log-level", "DEBUG"], SAFE_ENV) == 0
        assert fake_server.instances[0].config.log_level == "DEBUG"

    def test_environment_port(self, fake_server, monkeypatch):
        """Test FILESERVER_PORT when no port is given."""
        monkeypatch.setenv("FILESERVER_PORT", "9100")

        assert cli.main([], SAFE_ENV) == 0
        assert fake_server.instances[0].config.port == 9100

    def test_argument_beats_environment(self, fake_server, monkeypatch):
        """Test that the positional port wins over FILESERVER_PORT."""
        monkeypatch.setenv("FILESERVER_PORT", "9100")

        assert cli.main(["9200"], SAFE_ENV) == 0
        assert fake_server.instances[0].config.port == 9200

    def test_version(self, fake_server, capsys):
        """Test --version."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--version"], SAFE_ENV)

        assert exc_info.value.code == 0
        assert "fileserver" in capsys.readouterr().out


class TestDangerZone:
    """Tests for the startup guard."""

    def test_home_refused(self, fake_server, capsys, base_dir: Path):
        """Test that serving $HOME exits 1 with two stderr lines."""
        assert cli.main([], {"HOME": str(base_dir)}) == 1

        err = capsys.readouterr().err.splitlines()
        assert err[0] == f"Refusing to serve dangerous directory: {base_dir}"
        assert err[1] == "Pass --force to override, or pick a safer directory."
        assert fake_server.instances == []

    def test_userprofile_refused(self, fake_server, base_dir: Path):
        """Test that USERPROFILE is honoured when HOME is unset."""
        assert cli.main([], {"USERPROFILE": str(base_dir)}) == 1

    def test_force_overrides(self, fake_server, base_dir: Path):
        """Test that --force serves $HOME anyway."""
        assert cli.main(["--force"], {"HOME": str(base_dir)}) == 0
        assert fake_server.instances[0].ran

    @pytest.mark.parametrize("flag", ["--f", "--fo", "--for", "--forc"])
    def test_abbreviated_force_refused(self, fake_server, capsys, base_dir: Path, flag: str):
        """Test that a shortened --force is a usage error, not an override."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main([flag], {"HOME": str(base_dir)})

        assert exc_info.value.code == 2
        assert "usage:" in capsys.readouterr().err
        assert fake_server.instances == []

    def test_force_with_port(self, fake_server, base_dir: Path):
        """Test that flag and port can come in any order."""
        assert cli.main(["--force", "9000"], {"HOME": str(base_dir)}) == 0
        assert fake_server.instances[0].config.port == 9000


class TestStartupErrors:
    """Tests for errors after argument parsing."""

    def test_bind_failure(self, fake_server, capsys):
        """Test that a bind error exits 1 with a message."""
        fake_server.bind_error = OSError(98, "Address already in use")

        assert cli.main([], SAFE_ENV) == 1
        assert capsys.readouterr().err.startswith("Error: ")
        assert not fake_server.instances[0].ran

    def test_bad_environment(self, fake_server, monkeypatch, capsys):
        """Test that an unusable FILESERVER_PORT exits 1."""
        monkeypatch.setenv("FILESERVER_PORT", "eighty")

        assert cli.main([], SAFE_ENV) == 1
        assert "Error: " in capsys.readouterr().err


class TestPortNumber:
    """Tests for the port argument type."""

    def test_valid(self):
        assert cli.port_number("8080") == 8080

    @pytest.mark.parametrize("value", ["0", "65536", "abc", "", "0x50"])
    def test_invalid(self, value: str):
        import argparse

        with pytest.raises(argparse.ArgumentTypeError):
            cli.port_number(value)
