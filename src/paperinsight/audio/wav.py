"""
PCM to WAV container encoding.

The speech endpoint returns headerless signed 16-bit little-endian mono PCM.
Players need a RIFF/WAVE header in front of it.
"""

import base64
import binascii
import io
import struct

from paperinsight.core.exceptions import DecodingError
from paperinsight.core.schemas import AudioBlob

HEADER_SIZE = 44
CHANNELS = 1
BITS_PER_SAMPLE = 16
BLOCK_ALIGN = CHANNELS * BITS_PER_SAMPLE // 8
PCM_FORMAT = 1


def decode_pcm(pcm_base64: str) -> bytes:
    """Strict base64 decode; anything outside the alphabet is rejected."""
    try:
        return base64.b64decode(pcm_base64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodingError(f"Audio payload is not valid base64: {e}") from e


def build_header(data_size: int, sample_rate: int) -> bytes:
    """44-byte canonical WAV header for mono 16-bit PCM."""
    buf = io.BytesIO()
    buf.write(b"RIFF")
    buf.write(struct.pack("<I", 36 + data_size))
    buf.write(b"WAVE")
    buf.write(b"fmt ")
    buf.write(
        struct.pack(
            "<IHHIIHH",
            16,
            PCM_FORMAT,
            CHANNELS,
            sample_rate,
            sample_rate * BLOCK_ALIGN,
            BLOCK_ALIGN,
            BITS_PER_SAMPLE,
        )
    )
    buf.write(b"data")
    buf.write(struct.pack("<I", data_size))
    return buf.getvalue()


def encode(pcm_base64: str, sample_rate: int) -> AudioBlob:
    """
    Wrap base64 PCM in a WAV container.

    Args:
        pcm_base64: Base64 of signed 16-bit mono PCM samples.
        sample_rate: Samples per second (24000 for the Gemini TTS models).

    Returns:
        AudioBlob whose data is header + PCM, 44 + len(pcm) bytes.

    Raises:
        DecodingError: pcm_base64 is not valid base64.
        ValueError: sample_rate is not positive.
    """
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")
    pcm = decode_pcm(pcm_base64)
    return AudioBlob(data=build_header(len(pcm), sample_rate) + pcm, sample_rate=sample_rate)
