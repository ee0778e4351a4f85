# Exp_Curves/encoding/session.py
"""
EncodingSession - runs the encoder over every channel of an asset.

Owns one pair of segment streams shared by all channels, records a
ChannelReport per channel and keeps running totals. Channels are written to
the streams in the order they are encoded.
"""

import io
import os
from typing import BinaryIO, Dict, List, Optional

from ..curves.data import ChannelReport, ChannelSamples
from ..developer.dev_logger import increment_channel, log_event
from .channel_encoder import ChannelEncoder
from .config import EncoderConfig

METADATA_FILENAME = "metadata.bin"
COEFFICIENTS_FILENAME = "coefficients.bin"


class EncodingSession:
    """
    Multi-channel encoding run.

    Usage:
        session = EncodingSession()
        for channel in channels:
            report = session.encode_channel(channel)
        print(session.summary())          # "12288 -> 1530 (8.03x)"
        session.export("out/")
    """

    def __init__(self, metadata_stream: Optional[BinaryIO] = None,
                 coefficient_stream: Optional[BinaryIO] = None,
                 config: Optional[EncoderConfig] = None, engine=None):
        self.metadata_stream = metadata_stream if metadata_stream is not None else io.BytesIO()
        self.coefficient_stream = coefficient_stream if coefficient_stream is not None else io.BytesIO()
        self.config = config if config is not None else EncoderConfig()
        self.engine = engine
        self.reports: List[ChannelReport] = []

    @property
    def total_input_byte_count(self) -> int:
        return sum(report.input_byte_count for report in self.reports)

    @property
    def total_output_byte_count(self) -> int:
        return sum(report.output_byte_count for report in self.reports)

    @property
    def ratio(self) -> Optional[float]:
        output = self.total_output_byte_count
        if output == 0:
            return None
        return self.total_input_byte_count / output

    def encode_channel(self, channel: ChannelSamples) -> ChannelReport:
        """
        Encode one channel; channel.values is overwritten with the reconstruction.

        Returns:
            The channel's report (also appended to self.reports)
        """
        increment_channel()

        encoder = ChannelEncoder(self.metadata_stream, self.coefficient_stream,
                                 config=self.config, engine=self.engine)
        segments = encoder.process(channel.times, channel.values, channel.dimension, channel.kind)

        report = ChannelReport(
            name=channel.name,
            kind=channel.kind,
            sample_count=channel.sample_count,
            segment_count=len(segments),
            input_byte_count=encoder.input_byte_count,
            output_byte_count=encoder.output_byte_count,
        )
        self.reports.append(report)

        log_event("SESSION", f"CHANNEL {report.summary()}")
        return report

    def summary(self) -> str:
        """Totals as "<in> -> <out> (<ratio>x)"."""
        ratio = self.ratio
        ratio_str = f"{ratio:.2f}x" if ratio is not None else "-"
        return f"{self.total_input_byte_count} -> {self.total_output_byte_count} ({ratio_str})"

    def export(self, directory: str) -> Dict[str, str]:
        """
        Write both streams into `directory` (created if missing).

        Only in-memory streams can be exported; streams opened by the caller
        are already on disk.

        Returns:
            {"metadata": path, "coefficients": path}
        """
        for stream in (self.metadata_stream, self.coefficient_stream):
            if not hasattr(stream, "getvalue"):
                raise TypeError("export() needs in-memory streams (io.BytesIO)")

        os.makedirs(directory, exist_ok=True)
        paths = {
            "metadata": os.path.join(directory, METADATA_FILENAME),
            "coefficients": os.path.join(directory, COEFFICIENTS_FILENAME),
        }

        with open(paths["metadata"], "wb") as f:
            f.write(self.metadata_stream.getvalue())
        with open(paths["coefficients"], "wb") as f:
            f.write(self.coefficient_stream.getvalue())

        log_event("SESSION", f"EXPORT {directory} channels={len(self.reports)} {self.summary()}")
        return paths
