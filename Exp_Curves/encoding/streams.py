# Exp_Curves/encoding/streams.py
"""
Binary segment streams.

Two parallel append-only streams per encoding session:

  metadata stream:     {degree: uint8, span_meta: uint8} per segment
  coefficient stream:  degree x int16 little-endian per segment, same order

Streams are any binary file-like objects (open files, io.BytesIO).
"""

from typing import BinaryIO, Iterator, NamedTuple

import numpy as np

_INT16_LE = np.dtype('<i2')


class SegmentRecord(NamedTuple):
    degree: int
    span_meta: int
    fixed_points: np.ndarray


class SegmentStreamWriter:
    """
    Appends segment records to the metadata / coefficient streams.

    Writes are sequential; the encoder only calls this after a window's
    search has finished.
    """

    __slots__ = ('_metadata', '_coefficients', 'segments_written', 'bytes_written')

    def __init__(self, metadata_stream: BinaryIO, coefficient_stream: BinaryIO):
        self._metadata = metadata_stream
        self._coefficients = coefficient_stream
        self.segments_written = 0
        self.bytes_written = 0

    def write_segment(self, degree: int, span_meta: int, fixed_points: np.ndarray) -> int:
        """
        Write one segment record.

        Returns:
            Bytes written across both streams
        """
        fixed_points = np.asarray(fixed_points)
        if len(fixed_points) != degree:
            raise ValueError(f"Segment degree {degree} but {len(fixed_points)} coefficients")
        if not 1 <= degree <= 255:
            raise ValueError(f"Segment degree {degree} does not fit in one byte")

        header = bytes((degree, span_meta & 0xFF))
        payload = fixed_points.astype(_INT16_LE).tobytes()

        self._metadata.write(header)
        self._coefficients.write(payload)

        written = len(header) + len(payload)
        self.segments_written += 1
        self.bytes_written += written
        return written

    def flush(self) -> None:
        for stream in (self._metadata, self._coefficients):
            flush = getattr(stream, "flush", None)
            if flush is not None:
                flush()


def read_segment_records(metadata_stream: BinaryIO, coefficient_stream: BinaryIO) -> Iterator[SegmentRecord]:
    """
    Iterate segment records until the metadata stream ends.

    Raises:
        ValueError: a truncated metadata record or too few coefficients
    """
    while True:
        header = metadata_stream.read(2)
        if not header:
            return
        if len(header) != 2:
            raise ValueError("Truncated metadata record")

        degree, span_meta = header[0], header[1]
        payload = coefficient_stream.read(degree * _INT16_LE.itemsize)
        if len(payload) != degree * _INT16_LE.itemsize:
            raise ValueError(f"Coefficient stream ended inside a degree-{degree} segment")

        fixed_points = np.frombuffer(payload, dtype=_INT16_LE).astype(np.int16)
        yield SegmentRecord(degree, span_meta, fixed_points)
