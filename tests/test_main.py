"""Tests for the command-line entry point."""

import json
import logging
import signal
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
import structlog

from romcatalog import __version__
from romcatalog.main import ApplicationContext, main, parse_arguments, run
from romcatalog.services.catalog import DuplicatePolicy
from romcatalog.services.errors import ConfigurationError


LISTING = """<?xml version="1.0"?>
<mame>
    <game name="pacman">
        <description>Pac-Man</description>
        <rom name="a.bin" size="4096"/>
    </game>
    <game name="puckman" cloneof="pacman">
        <driver status="preliminary"/>
    </game>
</mame>
"""


@pytest.fixture(autouse=True)
def restore_process_state() -> Iterator[None]:
    """Undo the logging and signal setup done by ``run``."""
    previous_handler = signal.getsignal(signal.SIGTERM)
    yield
    signal.signal(signal.SIGTERM, previous_handler)
    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers.clear()
    structlog.reset_defaults()


@pytest.fixture
def listing(tmp_path: Path) -> Path:
    path = tmp_path / "mame.xml"
    path.write_text(LISTING, encoding="utf-8")
    return path


def cli(tmp_path: Path, *arguments: str) -> list[str]:
    """Command line with an isolated configuration file and no console logging."""
    return ["--quiet", "--config", str(tmp_path / "config.json"), *arguments]


class TestParseArguments:
    def test_defaults(self) -> None:
        args = parse_arguments(["mame.xml"])

        assert args.listings == [Path("mame.xml")]
        assert args.namespace is None
        assert args.config is None
        assert args.log_level is None
        assert args.output is None
        assert not args.quiet

    def test_all_options(self) -> None:
        args = parse_arguments([
            "--namespace", "mess",
            "--config", "cfg.json",
            "--log-level", "DEBUG",
            "--log-dir", "logs",
            "--output", "out.json",
            "--quiet",
            "a.xml", "b.7z",
        ])

        assert args.listings == [Path("a.xml"), Path("b.7z")]
        assert args.namespace == "mess"
        assert args.config == Path("cfg.json")
        assert args.log_level == "DEBUG"
        assert args.log_dir == Path("logs")
        assert args.output == Path("out.json")
        assert args.quiet

    def test_listing_is_required(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            parse_arguments([])

        assert exc_info.value.code == 2

    def test_invalid_log_level(self) -> None:
        with pytest.raises(SystemExit):
            parse_arguments(["--log-level", "VERBOSE", "mame.xml"])

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            parse_arguments(["--version"])

        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestApplicationContext:
    def test_services_follow_configuration(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({
            "namespace": "mess",
            "chunk_size": 128,
            "max_depth": 6,
            "duplicate_policy": "replace",
        }))

        context = ApplicationContext(config_path=config_path)

        assert context.namespace == "mess"
        assert context.loader.chunk_size == 128
        assert context.loader.max_depth == 6
        assert context.catalog.duplicate_policy is DuplicatePolicy.REPLACE
        assert context.loader is context.loader

    def test_namespace_override(self, tmp_path: Path) -> None:
        context = ApplicationContext(config_path=tmp_path / "config.json", namespace="raine")

        assert context.namespace == "raine"

    @pytest.mark.parametrize("namespace", ["", "a/b"])
    def test_invalid_namespace_override(self, tmp_path: Path, namespace: str) -> None:
        context = ApplicationContext(config_path=tmp_path / "config.json", namespace=namespace)

        with pytest.raises(ConfigurationError):
            _ = context.namespace

    def test_shutdown_request(self, tmp_path: Path) -> None:
        context = ApplicationContext(config_path=tmp_path / "config.json")

        assert not context.shutdown_requested
        context.request_shutdown()
        assert context.shutdown_requested


class TestRun:
    def test_successful_load(self, tmp_path: Path, listing: Path, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code = run(parse_arguments(cli(tmp_path, str(listing))))

        out = capsys.readouterr().out
        assert exit_code == 0
        assert f"{listing}: 2 records [ok]" in out
        assert "Catalog: 2 records, 1 clones, 1 not playable, 0 duplicates" in out

    def test_export(self, tmp_path: Path, listing: Path) -> None:
        output = tmp_path / "out" / "catalog.json"

        exit_code = run(parse_arguments(cli(tmp_path, "--namespace", "arcade", "--output", str(output), str(listing))))

        data = json.loads(output.read_text(encoding="utf-8"))
        assert exit_code == 0
        assert [game["name"] for game in data["games"]] == ["arcade/pacman", "arcade/puckman"]
        assert data["games"][0]["size"] == 4096
        assert data["games"][1]["cloneof"] == "arcade/pacman"
        assert data["games"][1]["play"] == "not_playable"

    def test_same_listing_twice_counts_duplicates(
        self, tmp_path: Path, listing: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        exit_code = run(parse_arguments(cli(tmp_path, str(listing), str(listing))))

        out = capsys.readouterr().out
        assert exit_code == 0
        assert f"{listing}: 0 records [ok]" in out
        assert "Catalog: 2 records, 1 clones, 1 not playable, 2 duplicates" in out

    def test_malformed_listing(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = tmp_path / "broken.xml"
        path.write_text('<mame>\n<game name="a"></game>\n<game name="b">\n</mame>\n')

        exit_code = run(parse_arguments(cli(tmp_path, str(path))))

        captured = capsys.readouterr()
        assert exit_code == 1
        assert f"{path}: 1 records [FAILED]" in captured.out
        assert "Error reading at line" in captured.err

    def test_missing_listing_does_not_stop_the_others(
        self, tmp_path: Path, listing: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        missing = tmp_path / "missing.xml"

        exit_code = run(parse_arguments(cli(tmp_path, str(missing), str(listing))))

        captured = capsys.readouterr()
        assert exit_code == 1
        assert "The listing could not be opened." in captured.err
        assert f"{listing}: 2 records [ok]" in captured.out

    def test_invalid_namespace(self, tmp_path: Path, listing: Path, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code = run(parse_arguments(cli(tmp_path, "--namespace", "a/b", str(listing))))

        captured = capsys.readouterr()
        assert exit_code == 1
        assert "Invalid namespace." in captured.err
        assert captured.out == ""

    def test_shutdown_stops_before_next_listing(
        self, tmp_path: Path, listing: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with patch.object(ApplicationContext, "shutdown_requested", True):
            exit_code = run(parse_arguments(cli(tmp_path, str(listing))))

        assert exit_code == 1
        assert "records [" not in capsys.readouterr().out

    def test_log_files(self, tmp_path: Path, listing: Path) -> None:
        log_dir = tmp_path / "logs"

        run(parse_arguments(cli(tmp_path, "--log-dir", str(log_dir), str(listing))))

        assert "Listing loaded" in (log_dir / "app.log").read_text(encoding="utf-8")


class TestMain:
    def test_exit_code(self, tmp_path: Path, listing: Path) -> None:
        with patch("sys.argv", ["romcatalog", *cli(tmp_path, str(listing))]):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 0

    def test_keyboard_interrupt(self, tmp_path: Path, listing: Path) -> None:
        with patch("sys.argv", ["romcatalog", *cli(tmp_path, str(listing))]):
            with patch("romcatalog.main.run", side_effect=KeyboardInterrupt):
                with pytest.raises(SystemExit) as exc_info:
                    main()

        assert exc_info.value.code == 130
