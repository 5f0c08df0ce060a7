"""Tests for the WAV container codec."""

import io
import struct

import numpy as np
import pytest
from scipy.io import wavfile

from licktab.core import PcmBuffer, MalformedContainerError
from licktab.output import WavCodec


def chunk(chunk_id: bytes, body: bytes, declared_size=None) -> bytes:
    size = len(body) if declared_size is None else declared_size
    pad = b"\x00" if len(body) % 2 else b""
    return struct.pack("<4sI", chunk_id, size) + body + pad


def riff(*chunks: bytes) -> bytes:
    body = b"WAVE" + b"".join(chunks)
    return b"RIFF" + struct.pack("<I", len(body)) + body


def fmt_chunk(tag=1, channels=1, rate=8000, bits=16) -> bytes:
    block = channels * bits // 8
    return chunk(b"fmt ", struct.pack("<HHIIHH", tag, channels, rate, rate * block, block, bits))


class TestWavSerialize:
    """16-bit PCM output."""

    def test_round_trip_exact_on_int16_grid(self):
        ints = np.array([-32768, -12345, -1, 0, 1, 42, 12345, 32767], dtype=np.float64)
        pcm = PcmBuffer(ints / 32768, 22050, channels=2)

        parsed = WavCodec.parse(WavCodec.serialize(pcm))

        assert parsed.sample_rate == 22050
        assert parsed.channels == 2
        assert np.array_equal(parsed.samples, pcm.samples)

    def test_canonical_header(self):
        pcm = PcmBuffer(np.zeros(100), 44100)
        data = WavCodec.serialize(pcm)

        assert len(data) == 44 + 200
        assert data[:4] == b"RIFF"
        assert data[8:16] == b"WAVEfmt "
        assert struct.unpack_from("<I", data, 4)[0] == len(data) - 8
        assert struct.unpack_from("<I", data, 40)[0] == 200

    def test_clipping(self):
        pcm = PcmBuffer(np.array([2.0, -2.0]), 8000)
        parsed = WavCodec.parse(WavCodec.serialize(pcm))
        assert parsed.samples[0] == pytest.approx(32767 / 32768)
        assert parsed.samples[1] == -1.0

    def test_scipy_reads_output(self):
        pcm = PcmBuffer(np.array([0.0, 0.5, -0.5, 0.25]), 16000, channels=2)
        rate, data = wavfile.read(io.BytesIO(WavCodec.serialize(pcm)))
        assert rate == 16000
        assert data.shape == (2, 2)
        assert data[0, 1] == 16384


class TestWavParse:
    """Parsing of real-world container variations."""

    def test_scipy_int16_file(self):
        frames = np.array([[1000, -1000], [2000, -2000], [0, 32767]], dtype=np.int16)
        buffer = io.BytesIO()
        wavfile.write(buffer, 22050, frames)

        pcm = WavCodec.parse(buffer.getvalue())

        assert pcm.sample_rate == 22050
        assert pcm.channels == 2
        assert pcm.frames == 3
        assert pcm.as_frames()[1, 1] == pytest.approx(-2000 / 32768)

    def test_skips_odd_sized_chunk(self):
        samples = struct.pack("<3h", 0, 16384, -16384)
        data = riff(chunk(b"LIST", b"abc"), fmt_chunk(), chunk(b"data", samples))

        pcm = WavCodec.parse(data)
        assert list(pcm.samples) == [0.0, 0.5, -0.5]

    def test_truncated_data_reads_what_is_present(self):
        samples = struct.pack("<5h", 1, 2, 3, 4, 5)
        data = riff(fmt_chunk(), chunk(b"data", samples, declared_size=1000))
        assert WavCodec.parse(data).frames == 5

    def test_partial_frame_dropped(self):
        samples = struct.pack("<3h", 1, 2, 3)
        data = riff(fmt_chunk(channels=2), chunk(b"data", samples))
        assert WavCodec.parse(data).frames == 1

    def test_24_bit(self):
        raw = bytes([0xFF, 0xFF, 0x7F, 0x00, 0x00, 0x80, 0x01, 0x00, 0x00])
        data = riff(fmt_chunk(bits=24), chunk(b"data", raw))

        samples = WavCodec.parse(data).samples
        assert samples[0] == pytest.approx(8388607 / 8388608)
        assert samples[1] == -1.0
        assert samples[2] == pytest.approx(1 / 8388608)

    def test_8_bit_is_unsigned(self):
        data = riff(fmt_chunk(bits=8), chunk(b"data", bytes([0, 128, 192, 0])))
        assert list(WavCodec.parse(data).samples) == [-1.0, 0.0, 0.5, -1.0]

    def test_float32(self):
        values = np.array([0.25, -0.75], dtype="<f4")
        data = riff(fmt_chunk(tag=3, bits=32), chunk(b"data", values.tobytes()))
        assert np.array_equal(WavCodec.parse(data).samples, values)

    def test_extensible_float(self):
        base = struct.pack("<HHIIHH", 0xFFFE, 1, 8000, 32000, 4, 32)
        extension = struct.pack("<HHI", 22, 32, 0) + struct.pack("<H", 3) + b"\x00" * 14
        values = np.array([0.5, -0.5], dtype="<f4")
        data = riff(chunk(b"fmt ", base + extension), chunk(b"data", values.tobytes()))

        assert np.array_equal(WavCodec.parse(data).samples, values)

    def test_bad_magic(self):
        with pytest.raises(MalformedContainerError):
            WavCodec.parse(b"RIFX" + b"\x00" * 40)

    def test_too_short(self):
        with pytest.raises(MalformedContainerError):
            WavCodec.parse(b"RIFF")

    def test_missing_data_chunk(self):
        with pytest.raises(MalformedContainerError, match="No data chunk"):
            WavCodec.parse(riff(fmt_chunk()))

    def test_missing_fmt_chunk(self):
        with pytest.raises(MalformedContainerError, match="No fmt chunk"):
            WavCodec.parse(riff(chunk(b"data", b"\x00\x00")))

    def test_unsupported_encoding(self):
        data = riff(fmt_chunk(tag=2, bits=4 * 8), chunk(b"data", b"\x00" * 8))
        with pytest.raises(MalformedContainerError, match="Unsupported"):
            WavCodec.parse(data)

    def test_zero_channels_rejected(self):
        data = riff(fmt_chunk(channels=0), chunk(b"data", b"\x00\x00"))
        with pytest.raises(MalformedContainerError):
            WavCodec.parse(data)
