"""Wraps raw PCM speech output into a playable WAV container."""

import base64
import binascii
import logging
import re
import struct

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_RATE = 24000
CHANNELS = 1
BITS_PER_SAMPLE = 16
HEADER_SIZE = 44

_WHITESPACE = re.compile(r"\s")


def wav_header(data_length: int, sample_rate: int = DEFAULT_SAMPLE_RATE) -> bytes:
    """Build the 44-byte RIFF/WAVE header for mono 16-bit PCM."""
    block_align = CHANNELS * BITS_PER_SAMPLE // 8
    return struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + data_length,
        b"WAVE",
        b"fmt ",
        16,
        1,  # PCM
        CHANNELS,
        sample_rate,
        sample_rate * block_align,
        block_align,
        BITS_PER_SAMPLE,
        b"data",
        data_length,
    )


def pcm_to_wav(base64_pcm: str, sample_rate: int = DEFAULT_SAMPLE_RATE) -> bytes:
    """Convert base64 raw PCM (16-bit, mono, little-endian) into WAV bytes.

    Returns ``b""`` when the input is empty or cannot be decoded.
    """
    if not base64_pcm:
        return b""
    try:
        pcm = base64.b64decode(_WHITESPACE.sub("", base64_pcm), validate=True)
    except (binascii.Error, ValueError) as e:
        logger.error("WAV conversion error: %s", e)
        return b""
    return wav_header(len(pcm), sample_rate) + pcm

