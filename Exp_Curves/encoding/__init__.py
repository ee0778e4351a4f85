# Exp_Curves/encoding/__init__.py
"""
Encoding Module - channels in, segment streams out.

Structure:
    encoding/
    ├── config.py            # Error bounds, degree candidates, EncoderConfig
    ├── streams.py           # Binary metadata / coefficient streams
    ├── channel_encoder.py   # ChannelEncoder (search + emission)
    ├── decoder.py           # ChannelDecoder (streams -> values)
    └── session.py           # EncodingSession (many channels, totals, export)
"""

from .config import (
    ERROR_BOUNDS,
    DEGREE_CANDIDATES,
    BUCKET_LENGTH,
    BYTES_PER_COEFFICIENT,
    SPAN_META_MODE,
    EncoderConfig,
)
from .streams import SegmentRecord, SegmentStreamWriter, read_segment_records
from .channel_encoder import ChannelEncoder
from .decoder import ChannelDecoder
from .session import EncodingSession

__all__ = [
    'ERROR_BOUNDS',
    'DEGREE_CANDIDATES',
    'BUCKET_LENGTH',
    'BYTES_PER_COEFFICIENT',
    'SPAN_META_MODE',
    'EncoderConfig',
    'SegmentRecord',
    'SegmentStreamWriter',
    'read_segment_records',
    'ChannelEncoder',
    'ChannelDecoder',
    'EncodingSession',
]
