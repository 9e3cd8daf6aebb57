"""Tests for audio track discovery and selection."""

import pytest

from syncscribe.audio_analyzer import AudioAnalyzer, select_track
from syncscribe.exceptions import AudioExtractionError
from syncscribe.models import AudioTrack

PROBE_DATA = {
    "format": {"duration": "120.5"},
    "streams": [
        {"index": 0, "codec_type": "video", "codec_name": "h264"},
        {"index": 1, "codec_type": "audio", "codec_name": "aac", "channels": 2,
         "sample_rate": "48000", "tags": {"language": "en"}},
        {"index": 2, "codec_type": "audio", "codec_name": "ac3", "channels": 6,
         "duration": "119.0", "tags": {"title": "Japanese Dub"}},
        {"index": 3, "codec_type": "audio", "codec_name": "opus"},
    ],
}


def test_parse_streams_keeps_only_audio_in_order():
    tracks = AudioAnalyzer().parse_streams(PROBE_DATA)
    assert [t.index for t in tracks] == [0, 1, 2]
    assert [t.stream_index for t in tracks] == [1, 2, 3]
    assert [t.codec for t in tracks] == ["aac", "ac3", "opus"]


def test_language_comes_from_tags_then_title():
    tracks = AudioAnalyzer().parse_streams(PROBE_DATA)
    assert tracks[0].language == "eng"
    assert tracks[1].language == "jpn"
    assert tracks[2].language is None


def test_duration_falls_back_to_container():
    tracks = AudioAnalyzer().parse_streams(PROBE_DATA)
    assert tracks[0].duration == 120.5
    assert tracks[1].duration == 119.0


def test_analyze_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        AudioAnalyzer().analyze(str(tmp_path / "missing.mkv"))


def _tracks():
    return [AudioTrack(index=0, language="eng"), AudioTrack(index=1, language="jpn")]


def test_select_explicit_track():
    assert select_track(_tracks(), track_number=1).language == "jpn"


def test_select_missing_track_lists_available():
    with pytest.raises(AudioExtractionError, match="Available tracks: 0, 1"):
        select_track(_tracks(), track_number=5)


def test_select_without_tracks_fails():
    with pytest.raises(AudioExtractionError):
        select_track([])


def test_auto_uses_first_track():
    assert select_track(_tracks(), auto=True).index == 0


def test_chooser_decides_between_several_tracks():
    chosen = select_track(_tracks(), chooser=lambda tracks: tracks[-1])
    assert chosen.index == 1


def test_single_track_skips_chooser():
    def chooser(tracks):
        raise AssertionError("chooser should not be called")

    assert select_track(_tracks()[:1], chooser=chooser).index == 0
