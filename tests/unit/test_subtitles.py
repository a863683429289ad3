"""Tests for SRT caption helpers."""

import pytest

from shorts_factory.services.subtitles import parse_srt, srt_end_seconds, timestamp_to_seconds


def test_timestamp_to_seconds():
    assert timestamp_to_seconds("00:00:02,500") == pytest.approx(2.5)
    assert timestamp_to_seconds("01:02:03,004") == pytest.approx(3723.004)


def test_timestamp_rejects_garbage():
    with pytest.raises(ValueError):
        timestamp_to_seconds("2.5s")


def test_parse_srt(sample_srt):
    cues = parse_srt(sample_srt)

    assert [c.index for c in cues] == [1, 2]
    assert cues[0].start_seconds == 0
    assert cues[1].end_seconds == pytest.approx(5.75)
    assert cues[1].text == "Second line\nwraps here"


def test_parse_srt_handles_crlf_and_skips_bad_blocks():
    text = "1\r\n00:00:01,000 --> 00:00:02,000\r\nok\r\n\r\n2\r\nnot a timing line\r\nlost\r\n"

    cues = parse_srt(text)

    assert len(cues) == 1
    assert cues[0].text == "ok"


def test_parse_srt_without_cues():
    assert parse_srt("just some words") == []
    assert parse_srt("") == []


def test_srt_end_seconds(sample_srt):
    assert srt_end_seconds(sample_srt) == pytest.approx(5.75)
    assert srt_end_seconds("") is None
    assert srt_end_seconds(None) is None
    assert srt_end_seconds("no timestamps") is None
