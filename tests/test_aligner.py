import subprocess
from types import SimpleNamespace

import pytest

from syncscribe.aligner import SubtitleAligner
from syncscribe.exceptions import AlignmentError


@pytest.fixture
def files(tmp_path):
    subtitle = tmp_path / "movie.srt"
    subtitle.write_text("1\n00:00:01,000 --> 00:00:02,000\nHi\n\n", encoding="utf-8")
    media = tmp_path / "movie.mp4"
    media.write_bytes(b"video")
    return str(subtitle), str(media)


def fake_run(returncode=0, stderr=b""):
    calls = []

    def run(command, **kwargs):
        calls.append(command)
        return SimpleNamespace(returncode=returncode, stdout=b"", stderr=stderr)

    return run, calls


def test_default_output_path():
    assert SubtitleAligner.default_output_path("movie.es.srt") == "movie.es.synced.srt"


def test_sync_runs_ffsubsync(monkeypatch, files):
    subtitle, media = files
    run, calls = fake_run()
    monkeypatch.setattr(subprocess, "run", run)

    output = SubtitleAligner().sync(subtitle, media)

    assert output == subtitle.replace(".srt", ".synced.srt")
    assert calls == [["ffsubsync", media, "-i", subtitle, "-o", output]]


def test_sync_uses_custom_executable_and_output(monkeypatch, files, tmp_path):
    subtitle, media = files
    run, calls = fake_run()
    monkeypatch.setattr(subprocess, "run", run)

    output = SubtitleAligner("/opt/bin/ffsubsync").sync(subtitle, media, str(tmp_path / "out.srt"))

    assert output == str(tmp_path / "out.srt")
    assert calls[0][0] == "/opt/bin/ffsubsync"


def test_non_zero_exit_raises(monkeypatch, files):
    run, _ = fake_run(returncode=2, stderr=b"could not extract speech")
    monkeypatch.setattr(subprocess, "run", run)
    with pytest.raises(AlignmentError, match="could not extract speech"):
        SubtitleAligner().sync(*files)


def test_missing_executable_raises(monkeypatch, files):
    def run(command, **kwargs):
        raise FileNotFoundError(command[0])

    monkeypatch.setattr(subprocess, "run", run)
    with pytest.raises(AlignmentError):
        SubtitleAligner().sync(*files)
    assert SubtitleAligner().is_available() is False


def test_missing_input(files, tmp_path):
    subtitle, _ = files
    with pytest.raises(FileNotFoundError):
        SubtitleAligner().sync(subtitle, str(tmp_path / "missing.mp4"))


def test_is_available(monkeypatch):
    run, calls = fake_run(returncode=0)
    monkeypatch.setattr(subprocess, "run", run)
    assert SubtitleAligner().is_available() is True
    assert calls == [["ffsubsync", "--help"]]
