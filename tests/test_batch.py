import os

import pytest

from syncscribe import batch
from syncscribe.batch import audio_path_for, find_videos
from syncscribe.exceptions import SyncScribeError
from syncscribe.models import AudioTrack


@pytest.fixture
def video_dir(tmp_path):
    (tmp_path / "big.mkv").write_bytes(b"x" * 300)
    (tmp_path / "small.MP4").write_bytes(b"x" * 10)
    (tmp_path / "notes.txt").write_bytes(b"x" * 5)
    nested = tmp_path / "season1"
    nested.mkdir()
    (nested / "episode.avi").write_bytes(b"x" * 100)
    return tmp_path


def test_videos_sorted_smallest_first(video_dir):
    videos = find_videos(str(video_dir))
    assert [os.path.basename(path) for path, _ in videos] == ["small.MP4", "episode.avi", "big.mkv"]
    assert [size for _, size in videos] == [10, 100, 300]


def test_non_recursive_scan(video_dir):
    videos = find_videos(str(video_dir), recursive=False)
    assert [os.path.basename(path) for path, _ in videos] == ["small.MP4", "big.mkv"]


def test_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        find_videos(str(tmp_path / "missing"))


def test_file_is_not_a_directory(video_dir):
    with pytest.raises(ValueError):
        find_videos(str(video_dir / "big.mkv"))


def test_audio_path_for_first_track():
    assert audio_path_for(os.path.join("videos", "movie.mkv")) == os.path.join("videos", "movie.mp3")


def test_audio_path_for_other_track():
    assert audio_path_for("movie.mkv", track_number=2, audio_format="wav") == "movie-track2.wav"


class FakeGenerator:
    def __init__(self, failing=()):
        self.failing = failing
        self.calls = []

    def generate(self, video_path, **kwargs):
        self.calls.append((video_path, kwargs))
        if os.path.basename(video_path) in self.failing:
            raise SyncScribeError("transcription failed")
        return []


class FakeAnalyzer:
    def __init__(self, track_counts=None):
        self.track_counts = track_counts or {}

    def analyze(self, video_path):
        count = self.track_counts.get(os.path.basename(video_path), 1)
        return [AudioTrack(index=i) for i in range(count)]


class FakeExtractor:
    audio_format = "mp3"

    def __init__(self):
        self.calls = []

    def extract_audio(self, video_path, output_dir, output_filename=None, track_index=0):
        self.calls.append((os.path.basename(video_path), output_filename, track_index))
        path = os.path.join(output_dir, output_filename)
        with open(path, "wb") as f:
            f.write(b"audio")
        return path


@pytest.fixture
def fake_generator(monkeypatch):
    def install(generator):
        monkeypatch.setattr(batch, "load_config_or_exit", lambda *args: {'target_languages': []})
        monkeypatch.setattr(batch, "create_generator", lambda config, translate=False: generator)
        return generator
    return install


def test_output_dir_mirrors_subfolders(tmp_path):
    input_dir = tmp_path / "shows"
    assert batch.output_dir_for(str(input_dir / "ep1.mkv"), str(input_dir), "subs") == "subs"
    assert batch.output_dir_for(str(input_dir / "season2" / "ep1.mkv"), str(input_dir), "subs") == os.path.join("subs", "season2")
    assert batch.output_dir_for(str(input_dir / "ep1.mkv"), str(input_dir), None) is None


def test_run_batch_gives_each_video_its_own_output_dir(tmp_path, fake_generator):
    shows = tmp_path / "shows"
    for season in ("season1", "season2"):
        (shows / season).mkdir(parents=True)
        (shows / season / "ep1.mkv").write_bytes(b"x")
    out_dir = tmp_path / "subs"
    generator = fake_generator(FakeGenerator())

    with pytest.raises(SystemExit) as excinfo:
        batch.run_batch(["-i", str(shows), "-o", str(out_dir)])

    assert excinfo.value.code == 0
    assert out_dir.is_dir()
    assert sorted(kwargs['output_dir'] for _, kwargs in generator.calls) == [
        str(out_dir / "season1"),
        str(out_dir / "season2"),
    ]
    assert all(kwargs['auto'] for _, kwargs in generator.calls)


def test_run_batch_without_output_dir_writes_next_to_videos(video_dir, fake_generator):
    generator = fake_generator(FakeGenerator())

    with pytest.raises(SystemExit) as excinfo:
        batch.run_batch(["-i", str(video_dir)])

    assert excinfo.value.code == 0
    assert [kwargs['output_dir'] for _, kwargs in generator.calls] == [None, None, None]


def test_run_batch_exits_1_when_any_video_fails(video_dir, fake_generator):
    generator = fake_generator(FakeGenerator(failing=("small.MP4",)))

    with pytest.raises(SystemExit) as excinfo:
        batch.run_batch(["-i", str(video_dir)])

    assert excinfo.value.code == 1
    assert len(generator.calls) == 3


def test_extract_all_counts_and_track_fallback(video_dir):
    videos = [path for path, _ in find_videos(str(video_dir))]
    (video_dir / "big.mp3").write_bytes(b"old")
    extractor = FakeExtractor()
    analyzer = FakeAnalyzer({"episode.avi": 0})

    stats = batch.extract_all(videos, analyzer, extractor)

    assert stats == {'extracted': 1, 'skipped': 1, 'failed': 1}
    assert extractor.calls == [("small.MP4", "small.mp3", 0)]
    assert (video_dir / "big.mp3").read_bytes() == b"old"


def test_extract_all_force_and_missing_track(video_dir):
    videos = [path for path, _ in find_videos(str(video_dir), recursive=False)]
    (video_dir / "big-track2.mp3").write_bytes(b"old")
    extractor = FakeExtractor()
    analyzer = FakeAnalyzer({"small.MP4": 3})

    stats = batch.extract_all(videos, analyzer, extractor, track_number=2, force=True)

    assert stats == {'extracted': 2, 'skipped': 0, 'failed': 0}
    assert extractor.calls == [("small.MP4", "small-track2.mp3", 2), ("big.mkv", "big-track2.mp3", 0)]
    assert (video_dir / "big-track2.mp3").read_bytes() == b"audio"


def test_extract_audio_batch_exit_code(video_dir, monkeypatch):
    extractor = FakeExtractor()
    monkeypatch.setattr(batch, "AudioAnalyzer", lambda: FakeAnalyzer({"episode.avi": 0}))
    monkeypatch.setattr(batch, "AudioExtractor", lambda audio_format: extractor)

    with pytest.raises(SystemExit) as excinfo:
        batch.extract_audio_batch(["-d", str(video_dir)])

    assert excinfo.value.code == 1
    assert len(extractor.calls) == 2


def test_extract_audio_batch_success_returns(video_dir, monkeypatch):
    monkeypatch.setattr(batch, "AudioAnalyzer", lambda: FakeAnalyzer())
    monkeypatch.setattr(batch, "AudioExtractor", lambda audio_format: FakeExtractor())

    assert batch.extract_audio_batch(["-d", str(video_dir), "--no-recursive"]) is None
