"""Tests for the music2thumb command-line interface."""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from music2thumb import executor
from music2thumb.cli import build_parser, confirm, main


def fake_transcoder(cmd):
    Path(cmd[-1]).write_bytes(b"converted")
    return True


@pytest.fixture
def spec_file(tmp_path: Path) -> Path:
    path = tmp_path / "playlist.txt"
    path.write_text("Stones/Dirty\n\nBeatles\n", encoding="utf-8")
    return path


@pytest.fixture
def player(tmp_path: Path) -> Path:
    return tmp_path / "player"


def run_main(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


class TestParser:
    """Tests for the argument parser."""

    def test_defaults(self):
        args = build_parser().parse_args(["list.txt", "/media/player"])
        assert args.source == "."
        assert args.formats is None
        assert args.transcoder == "ffmpeg"
        assert args.jobs >= 1
        assert not (args.clean or args.force or args.yes or args.quiet)

    def test_missing_positionals(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2

    def test_jobs_must_be_positive(self, spec_file: Path, player: Path):
        assert run_main([str(spec_file), str(player), "-j", "0"]) == 2

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "music2thumb" in capsys.readouterr().out


class TestConfirm:
    """Tests for the yes/no prompt."""

    @pytest.mark.parametrize("answer,expected", [
        ("y", True),
        ("Y", True),
        (" y ", True),
        ("yes", False),
        ("n", False),
        ("", False),
    ])
    def test_answers(self, answer, expected):
        with patch("builtins.input", return_value=answer):
            assert confirm("Continue?") is expected

    def test_eof_means_no(self):
        with patch("builtins.input", side_effect=EOFError):
            assert confirm("Continue?") is False


class TestInputValidation:
    """Tests for rejected command lines."""

    def test_spec_missing(self, tmp_path: Path, player: Path, capsys):
        assert run_main([str(tmp_path / "nope.txt"), str(player)]) == 1
        assert "does not exist" in capsys.readouterr().err

    def test_spec_is_directory(self, tmp_path: Path, player: Path, capsys):
        assert run_main([str(tmp_path), str(player)]) == 1
        assert "is a directory" in capsys.readouterr().err

    def test_target_is_file(self, spec_file: Path, tmp_path: Path, capsys):
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        assert run_main([str(spec_file), str(blocker), "--formats", "mp3"]) == 1
        assert "is not a directory" in capsys.readouterr().err

    def test_no_supported_format(self, spec_file: Path, player: Path, capsys):
        assert run_main([str(spec_file), str(player), "--formats", "wav aac"]) == 1
        assert "No supported format" in capsys.readouterr().err
        assert not player.exists()


class TestRun:
    """End-to-end runs with a mocked transcoder."""

    def test_full_run(self, spec_file: Path, player: Path, music_library: Path, capsys):
        argv = [
            str(spec_file), str(player),
            "-s", str(music_library), "--formats", "mp3", "-y", "-j", "2",
        ]
        with patch("shutil.which", return_value="/usr/bin/ffmpeg"), \
                patch.object(executor, "run_command", side_effect=fake_transcoder):
            assert run_main(argv) == 0

        out = capsys.readouterr().out
        assert "Okay, we will use formats mp3." in out
        assert "We will transfer 4 files, 2 of which will be converted first." in out
        assert "Your music awaits you, have fun!" in out
        album = player / "Stones" / "Dirty Work"
        assert sorted(p.name for p in album.iterdir()) == ["01.mp3", "02.mp3", "03.mp3"]
        assert (player / "Beatles" / "Abbey Road" / "01.mp3").exists()
        assert not (player / "Beatles" / "Abbey Road" / "02.wav").exists()

    def test_interactive_run(self, spec_file: Path, player: Path, music_library: Path):
        argv = [str(spec_file), str(player), "-s", str(music_library), "-q"]
        with patch("builtins.input", side_effect=["ogg mp3", "y"]), \
                patch("shutil.which", return_value="/usr/bin/ffmpeg"), \
                patch.object(executor, "run_command", side_effect=fake_transcoder):
            assert run_main(argv) == 0

        album = player / "Stones" / "Dirty Work"
        assert sorted(p.name for p in album.iterdir()) == ["01.ogg", "02.mp3", "03.ogg"]

    def test_nothing_matched(self, tmp_path: Path, player: Path, music_library: Path, capsys):
        spec = tmp_path / "spec.txt"
        spec.write_text("Nobody\n")
        assert run_main([str(spec), str(player), "-s", str(music_library), "--formats", "mp3"]) == 0
        assert "did not find any files" in capsys.readouterr().out
        assert not player.exists()

    def test_declined(self, spec_file: Path, player: Path, music_library: Path):
        argv = [str(spec_file), str(player), "-s", str(music_library), "--formats", "mp3"]
        with patch("builtins.input", return_value="n"), \
                patch.object(executor, "run_command") as mock_run:
            assert run_main(argv) == 0
        mock_run.assert_not_called()
        assert list(player.iterdir()) == []

    def test_resume_skips_existing(self, spec_file: Path, player: Path, music_library: Path, capsys):
        argv = [
            str(spec_file), str(player),
            "-s", str(music_library), "--formats", "mp3", "-y", "-q",
        ]
        with patch("shutil.which", return_value="/usr/bin/ffmpeg"), \
                patch.object(executor, "run_command", side_effect=fake_transcoder):
            assert run_main(argv) == 0

        # neither clean nor overwrite
        with patch("builtins.input", side_effect=["n", "n"]), \
                patch.object(executor, "run_command") as mock_run:
            assert run_main(argv) == 0
        mock_run.assert_not_called()
        assert "nothing left to do" in capsys.readouterr().out

    def test_overwrite_with_force(self, spec_file: Path, player: Path, music_library: Path):
        existing = player / "Beatles" / "Abbey Road" / "01.mp3"
        existing.parent.mkdir(parents=True)
        existing.write_bytes(b"stale")
        argv = [
            str(spec_file), str(player),
            "-s", str(music_library), "--formats", "mp3", "-y", "-f", "-q",
        ]
        with patch("shutil.which", return_value="/usr/bin/ffmpeg"), \
                patch.object(executor, "run_command", side_effect=fake_transcoder):
            assert run_main(argv) == 0
        assert existing.read_bytes() == b"audio:Beatles/Abbey Road/01.mp3"

    def test_clean_removes_old_files(self, spec_file: Path, player: Path, music_library: Path, capsys):
        old = player / "Old" / "song.mp3"
        old.parent.mkdir(parents=True)
        old.write_bytes(b"old")
        argv = [
            str(spec_file), str(player),
            "-s", str(music_library), "--formats", "mp3", "-y",
        ]
        with patch("builtins.input", return_value="y"), \
                patch("shutil.which", return_value="/usr/bin/ffmpeg"), \
                patch.object(executor, "run_command", side_effect=fake_transcoder):
            assert run_main(argv) == 0

        assert not (player / "Old").exists()
        assert "is now empty" in capsys.readouterr().out

    def test_missing_transcoder(self, spec_file: Path, player: Path, music_library: Path, capsys):
        argv = [str(spec_file), str(player), "-s", str(music_library), "--formats", "mp3", "-y"]
        with patch("shutil.which", return_value=None):
            assert run_main(argv) == 1
        assert "ffmpeg not found" in capsys.readouterr().err

    def test_copy_only_needs_no_transcoder(self, tmp_path: Path, player: Path, music_library: Path):
        spec = tmp_path / "spec.txt"
        spec.write_text("Beatles\n")
        argv = [str(spec), str(player), "-s", str(music_library), "--formats", "mp3", "-y", "-q"]
        with patch("shutil.which", return_value=None):
            assert run_main(argv) == 0
        assert (player / "Beatles" / "Abbey Road" / "01.mp3").exists()

    def test_failed_conversion_exit_status(self, spec_file: Path, player: Path, music_library: Path, capsys):
        argv = [str(spec_file), str(player), "-s", str(music_library), "--formats", "mp3", "-y", "-q"]
        with patch("shutil.which", return_value="/usr/bin/ffmpeg"), \
                patch.object(executor, "run_command", return_value=False):
            assert run_main(argv) == 1
        err = capsys.readouterr().err
        assert "An error occurred converting" in err
        assert "2 of 4 files failed" in err

    def test_keyboard_interrupt(self, spec_file: Path, player: Path, music_library: Path, capsys):
        argv = [str(spec_file), str(player), "-s", str(music_library), "--formats", "mp3"]
        with patch("builtins.input", side_effect=KeyboardInterrupt):
            assert run_main(argv) == 130
        assert "continue where you stopped" in capsys.readouterr().err


class TestModuleEntry:
    """Tests for python -m music2thumb."""

    def test_main_module_imports(self):
        import music2thumb.__main__  # noqa: F401

        assert "music2thumb.__main__" in sys.modules
