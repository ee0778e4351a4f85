import os
import re

import numpy as np
import pytest

from Exp_Curves.curves.data import ChannelReport, ChannelSamples
from Exp_Curves.encoding import EncodingSession


def _channels():
    times = np.arange(40) / 30.0
    return [
        ChannelSamples("Hips/translation", "translation", times, np.sin(np.repeat(times, 3)), 3),
        ChannelSamples("Hips/rotation", "rotation", times, np.tile([0.0, 0.0, 0.0, 1.0], 40), 4),
    ]


def test_reports_and_totals(small_config):
    session = EncodingSession(config=small_config)
    reports = [session.encode_channel(channel) for channel in _channels()]

    assert [r.name for r in reports] == ["Hips/translation", "Hips/rotation"]
    assert reports[0].input_byte_count == 40 * 3 * 4
    assert reports[1].input_byte_count == 40 * 4 * 4
    assert session.total_input_byte_count == sum(r.input_byte_count for r in reports)
    assert session.total_output_byte_count == sum(r.output_byte_count for r in reports)
    assert session.ratio == pytest.approx(session.total_input_byte_count / session.total_output_byte_count)


def test_summary_format(small_config):
    session = EncodingSession(config=small_config)
    assert session.summary() == "0 -> 0 (-)"

    for channel in _channels():
        session.encode_channel(channel)
    assert re.fullmatch(r"\d+ -> \d+ \(\d+\.\d\dx\)", session.summary())


def test_channel_report_summary():
    report = ChannelReport("Arm", "scale", 10, 1, 40, 10)
    assert report.ratio == 4.0
    assert report.summary() == "Arm (40 -> 10 (4.00))"
    assert ChannelReport("Empty", "scale", 0, 0, 0, 0).ratio is None


def test_export_writes_both_streams(tmp_path, small_config):
    session = EncodingSession(config=small_config)
    for channel in _channels():
        session.encode_channel(channel)

    paths = session.export(str(tmp_path / "out"))

    assert os.path.basename(paths["metadata"]) == "metadata.bin"
    with open(paths["metadata"], "rb") as f:
        assert f.read() == session.metadata_stream.getvalue()
    with open(paths["coefficients"], "rb") as f:
        assert f.read() == session.coefficient_stream.getvalue()


def test_export_needs_memory_streams(tmp_path):
    with open(tmp_path / "meta.bin", "wb") as meta, open(tmp_path / "coef.bin", "wb") as coef:
        session = EncodingSession(meta, coef)
        with pytest.raises(TypeError):
            session.export(str(tmp_path / "out"))
