"""WAV container codec."""

import struct

import numpy as np

from ..core import PcmBuffer, MalformedContainerError

WAVE_FORMAT_PCM = 0x0001
WAVE_FORMAT_IEEE_FLOAT = 0x0003
WAVE_FORMAT_EXTENSIBLE = 0xFFFE

_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")
_CHUNK = struct.Struct("<4sI")
_FMT = struct.Struct("<HHIIHH")


class WavCodec:
    """Parse RIFF/WAVE bytes into PcmBuffer and serialize 16-bit PCM."""

    @staticmethod
    def parse(data: bytes) -> PcmBuffer:
        """
        Parse a WAV container.

        Args:
            data: Complete file contents

        Returns:
            PcmBuffer with interleaved float samples

        Raises:
            MalformedContainerError: Bad magic, missing fmt/data chunk or
                unsupported sample encoding
        """
        if len(data) < 12 or data[0:4] != b"RIFF" or data[8:12] != b"WAVE":
            raise MalformedContainerError("Not a RIFF/WAVE file")

        fmt = None
        payload = None
        offset = 12
        while offset + _CHUNK.size <= len(data):
            chunk_id, size = _CHUNK.unpack_from(data, offset)
            body = offset + _CHUNK.size

            if chunk_id == b"fmt ":
                fmt = _parse_fmt(data, body, size)
            elif chunk_id == b"data":
                # Truncated files: read what is there
                payload = data[body:body + size]

            if fmt is not None and payload is not None:
                break
            # Chunks are word aligned
            offset = body + size + (size & 1)

        if payload is None:
            raise MalformedContainerError("No data chunk found")
        if fmt is None:
            raise MalformedContainerError("No fmt chunk found")

        tag, channels, sample_rate, bits = fmt
        if channels < 1 or sample_rate < 1:
            raise MalformedContainerError(
                f"Invalid fmt chunk: {channels} channels at {sample_rate} Hz"
            )

        samples = _decode_samples(payload, tag, bits, channels)
        return PcmBuffer(samples, sample_rate, channels)

    @staticmethod
    def serialize(pcm: PcmBuffer) -> bytes:
        """
        Serialize as canonical 44-byte-header 16-bit PCM.

        Samples are scaled by 32768 and clipped to the int16 range.
        """
        ints = np.clip(np.round(pcm.samples.astype(np.float64) * 32768), -32768, 32767)
        payload = ints.astype("<i2").tobytes()
        block_align = pcm.channels * 2
        header = _HEADER.pack(
            b"RIFF",
            36 + len(payload),
            b"WAVE",
            b"fmt ",
            16,
            WAVE_FORMAT_PCM,
            pcm.channels,
            pcm.sample_rate,
            pcm.sample_rate * block_align,
            block_align,
            16,
            b"data",
            len(payload),
        )
        return header + payload


def _parse_fmt(data: bytes, body: int, size: int):
    if size < _FMT.size or body + _FMT.size > len(data):
        raise MalformedContainerError("fmt chunk is too short")
    tag, channels, sample_rate, _, _, bits = _FMT.unpack_from(data, body)
    if tag == WAVE_FORMAT_EXTENSIBLE:
        if size < 40 or body + 26 > len(data):
            raise MalformedContainerError("Extensible fmt chunk is too short")
        # First two bytes of the subformat GUID hold the real format tag
        (tag,) = struct.unpack_from("<H", data, body + 24)
    return tag, channels, sample_rate, bits


def _decode_samples(payload: bytes, tag: int, bits: int, channels: int) -> np.ndarray:
    width = bits // 8
    if bits % 8 or width == 0:
        raise MalformedContainerError(f"Unsupported bit depth: {bits}")

    usable = len(payload) - len(payload) % (width * channels)
    payload = payload[:usable]

    if tag == WAVE_FORMAT_PCM:
        if bits == 8:
            return (np.frombuffer(payload, dtype=np.uint8).astype(np.float32) - 128) / 128
        if bits == 16:
            return np.frombuffer(payload, dtype="<i2").astype(np.float32) / 32768
        if bits == 24:
            raw = np.frombuffer(payload, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
            ints = raw[:, 0] | (raw[:, 1] << 8) | (raw[:, 2] << 16)
            ints = np.where(ints & 0x800000, ints - 0x1000000, ints)
            return ints.astype(np.float32) / 8388608
        if bits == 32:
            return (np.frombuffer(payload, dtype="<i4").astype(np.float64) / 2147483648).astype(np.float32)
    elif tag == WAVE_FORMAT_IEEE_FLOAT:
        if bits == 32:
            return np.frombuffer(payload, dtype="<f4").astype(np.float32)
        if bits == 64:
            return np.frombuffer(payload, dtype="<f8").astype(np.float32)

    raise MalformedContainerError(f"Unsupported WAV encoding: format {tag:#06x}, {bits}-bit")
