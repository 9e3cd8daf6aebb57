import os

import ffmpeg
import pytest

from syncscribe import audio_extractor
from syncscribe.audio_extractor import AudioExtractor
from syncscribe.exceptions import AudioExtractionError


class FakeOutput:
    def __init__(self, recorder, path, error=None):
        self.recorder = recorder
        self.path = path
        self.error = error

    def overwrite_output(self):
        return self

    def run(self, **kwargs):
        self.recorder['run'] = kwargs
        with open(self.path, "wb") as f:
            f.write(b"audio")
        if self.error:
            raise self.error


class FakeFFmpeg:
    Error = ffmpeg.Error

    def __init__(self, error=None):
        self.recorded = {}
        self.error = error

    def input(self, path):
        self.recorded['input'] = path
        return {'a:0': 'stream-0', 'a:1': 'stream-1'}

    def output(self, stream, path, **kwargs):
        self.recorded['stream'] = stream
        self.recorded['output_kwargs'] = kwargs
        return FakeOutput(self.recorded, path, self.error)


@pytest.fixture
def video(tmp_path):
    path = tmp_path / "movie.mkv"
    path.write_bytes(b"video")
    return str(path)


def test_output_path_uses_video_name(tmp_path):
    extractor = AudioExtractor(audio_format="wav")
    assert extractor.output_path_for("/videos/movie.mkv", str(tmp_path)) == str(tmp_path / "movie.wav")
    assert extractor.output_path_for("/videos/movie.mkv", str(tmp_path), "custom.mp3") == str(tmp_path / "custom.wav")


def test_unsupported_format():
    with pytest.raises(ValueError):
        AudioExtractor(audio_format="flac")


def test_missing_video(tmp_path):
    with pytest.raises(FileNotFoundError):
        AudioExtractor().extract_audio(str(tmp_path / "missing.mkv"), str(tmp_path))


def test_extracts_requested_track(monkeypatch, video, tmp_path):
    fake = FakeFFmpeg()
    monkeypatch.setattr(audio_extractor, "ffmpeg", fake)
    out_dir = tmp_path / "audio"

    path = AudioExtractor(ffmpeg_path="/usr/bin/ffmpeg").extract_audio(video, str(out_dir), track_index=1)

    assert path == str(out_dir / "movie.mp3")
    assert fake.recorded['stream'] == 'stream-1'
    assert fake.recorded['output_kwargs'] == {'ar': 16000, 'ac': 1, 'acodec': 'libmp3lame', 'audio_bitrate': '64k'}
    assert fake.recorded['run']['cmd'] == "/usr/bin/ffmpeg"


def test_ffmpeg_failure_removes_partial_file(monkeypatch, video, tmp_path):
    fake = FakeFFmpeg(error=ffmpeg.Error("ffmpeg", b"", b"Stream map 'a:3' matches no streams"))
    monkeypatch.setattr(audio_extractor, "ffmpeg", fake)

    with pytest.raises(AudioExtractionError, match="matches no streams"):
        AudioExtractor().extract_audio(video, str(tmp_path), "movie_track3", track_index=0)

    assert not os.path.exists(tmp_path / "movie_track3.mp3")


def test_last_ffmpeg_line():
    assert audio_extractor.last_ffmpeg_line("ffmpeg version 6\n  built with gcc\nmovie.mkv: Invalid data\n\n") == "movie.mkv: Invalid data"
    assert audio_extractor.last_ffmpeg_line("") == "no error output"
