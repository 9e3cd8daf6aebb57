"""Shared fixtures for the SyncScribe tests."""

import logging

import pytest

from syncscribe.models import Segment


@pytest.fixture
def segments():
    return [
        Segment(start_time=1.0, end_time=4.0, text="Hello world"),
        Segment(start_time=4.5, end_time=7.25, text="This sentence is long enough to need two lines of text"),
        Segment(start_time=3725.005, end_time=3727.0, text="An hour later"),
    ]


@pytest.fixture
def srt_track():
    return (
        "1\n"
        "00:00:01,000 --> 00:00:04,000\n"
        "Hello world\n"
        "\n"
        "2\n"
        "00:00:04,500 --> 00:00:07,250\n"
        "Second line\n"
        "continues here\n"
        "\n"
    )


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Entry points reconfigure the root logger; undo that after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
