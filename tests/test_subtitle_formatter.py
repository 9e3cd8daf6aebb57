"""Tests for building and writing SRT and WebVTT caption tracks."""

import pytest

from syncscribe.exceptions import ConfigurationError
from syncscribe.models import CaptionFormat, Segment
from syncscribe.subtitle_formatter import SRTFormatter, VTTFormatter, get_formatter


def test_single_segment_srt_matches_expected_text():
    rendered = SRTFormatter().render([Segment(1.0, 4.0, "Hello world")])
    assert rendered == "1\n00:00:01,000 --> 00:00:04,000\nHello world\n\n"


def test_single_segment_vtt_has_header_and_period_separator():
    rendered = VTTFormatter().render([Segment(1.0, 4.0, "Hello world")])
    assert rendered == "WEBVTT\n\n1\n00:00:01.000 --> 00:00:04.000\nHello world\n\n"


def test_one_block_per_segment_with_dense_indexes(segments):
    track = SRTFormatter().build_track(segments)
    assert track.format is CaptionFormat.SRT
    assert [block.index for block in track.blocks] == [1, 2, 3]


def test_long_text_is_wrapped_inside_block(segments):
    rendered = SRTFormatter().render(segments)
    assert (
        "2\n00:00:04,500 --> 00:00:07,250\n"
        "This sentence is long enough to need two\nlines of text\n\n"
    ) in rendered
    assert "3\n01:02:05,005 --> 01:02:07,000\nAn hour later\n\n" in rendered


def test_blocks_are_separated_by_exactly_one_blank_line(segments):
    rendered = SRTFormatter().render(segments)
    assert "\n\n\n" not in rendered
    assert rendered.endswith("An hour later\n\n")
    assert rendered.count("\n\n") == len(segments)


def test_empty_input_gives_empty_or_header_only_track():
    assert SRTFormatter().render([]) == ""
    assert VTTFormatter().render([]) == "WEBVTT\n\n"


def test_segments_are_not_reordered():
    out_of_order = [Segment(10.0, 12.0, "later"), Segment(2.0, 3.0, "earlier")]
    blocks = SRTFormatter().build_track(out_of_order).blocks
    assert [block.lines for block in blocks] == [["later"], ["earlier"]]
    assert blocks[0].start_timestamp == "00:00:10,000"


def test_write_creates_parent_directory(tmp_path, segments):
    output_path = tmp_path / "subs" / "movie.srt"
    SRTFormatter().write(segments, str(output_path))
    assert output_path.read_text(encoding="utf-8") == SRTFormatter().render(segments)


def test_get_formatter_by_name():
    assert isinstance(get_formatter("srt"), SRTFormatter)
    assert isinstance(get_formatter("VTT"), VTTFormatter)
    assert get_formatter(".vtt").extension == "vtt"
    with pytest.raises(ConfigurationError):
        get_formatter("ass")


def test_custom_line_width_is_applied():
    formatter = SRTFormatter(max_line_width=10)
    block = formatter.build_track([Segment(0.0, 1.0, "short words only here")]).blocks[0]
    assert len(block.lines) == 2
