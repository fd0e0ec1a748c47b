"""
Synthetic media containers.

These builders emit byte buffers that carry the right magic numbers and box
layout for MP4, JPEG and WAV files. Only the WAV output is playable; MP4 and
JPEG bodies are patterned filler, not encoded media.
"""

import math
import random
import struct
import time
from typing import Optional

FTYP_BOX = bytes(
    [
        0x00, 0x00, 0x00, 0x20, 0x66, 0x74, 0x79, 0x70,  # size 32, "ftyp"
        0x69, 0x73, 0x6F, 0x6D, 0x00, 0x00, 0x02, 0x00,  # "isom", minor 0x200
        0x69, 0x73, 0x6F, 0x6D, 0x69, 0x73, 0x6F, 0x32,  # "isom" "iso2"
        0x61, 0x76, 0x63, 0x31, 0x6D, 0x70, 0x34, 0x31,  # "avc1" "mp41"
    ]
)

MVHD_SIZE = 108
TKHD_SIZE = 92
BOX_HEADER_SIZE = 8
UNITY = 0x00010000

NAL_START = b"\x00\x00\x01"
NAL_SPS = 0x67
NAL_SLICE = 0x41


def _box_header(size: int, tag: bytes) -> bytes:
    return struct.pack(">I4s", size, tag)


def _write_matrix(buffer: bytearray, offset: int) -> None:
    # first eight words of the identity matrix, row major
    for index, value in enumerate((UNITY, 0, 0, 0, UNITY, 0, 0, 0)):
        struct.pack_into(">I", buffer, offset + index * 4, value)


def build_mvhd(duration: int, timescale: int = 1000, timestamp: Optional[int] = None) -> bytes:
    now = int(time.time()) if timestamp is None else timestamp
    box = bytearray(MVHD_SIZE)
    box[0:8] = _box_header(MVHD_SIZE, b"mvhd")
    struct.pack_into(">IIIIIIH", box, 8, 0, now, now, timescale, duration, UNITY, 0x0100)
    # 34..75 reserved, left zero
    _write_matrix(box, 76)
    return bytes(box)


def build_tkhd(
    duration: int,
    width: int,
    height: int,
    track_id: int = 1,
    timestamp: Optional[int] = None,
) -> bytes:
    now = int(time.time()) if timestamp is None else timestamp
    box = bytearray(TKHD_SIZE)
    box[0:8] = _box_header(TKHD_SIZE, b"tkhd")
    struct.pack_into(">IIIIII", box, 8, 0x07, now, now, track_id, 0, duration)
    struct.pack_into(">HHH", box, 44, 1, 0, 0)  # layer, alternate group, volume
    _write_matrix(box, 52)
    struct.pack_into(">II", box, 84, width, height)
    return bytes(box)


def build_mdat_payload(size: int, rng: Optional[random.Random] = None) -> bytes:
    """Fill an mdat body with start-code markers, noise and a sine ramp."""
    rng = rng or random.Random()
    payload = bytearray(size)
    i = 0
    while i < size:
        if i % 100 == 0:
            marker = NAL_START + bytes([NAL_SPS if i % 3 == 0 else NAL_SLICE])
            chunk = marker[: size - i]
            payload[i : i + len(chunk)] = chunk
            i += 4
            continue
        if i % 50 == 0:
            payload[i] = rng.randrange(256)
        else:
            payload[i] = max(0, min(255, round(128 + 127 * math.sin(0.01 * i))))
        i += 1
    return bytes(payload)


def build_mp4(
    duration: int,
    width: int,
    height: int,
    payload_size: int,
    timescale: int = 1000,
    timestamp: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> bytes:
    """Concatenate ftyp, mvhd, tkhd and mdat boxes into one MP4-like buffer."""
    mdat = _box_header(payload_size + BOX_HEADER_SIZE, b"mdat") + build_mdat_payload(payload_size, rng)
    return b"".join(
        (
            FTYP_BOX,
            build_mvhd(duration, timescale, timestamp),
            build_tkhd(duration, width, height, timestamp=timestamp),
            mdat,
        )
    )


JPEG_HEADER = bytes(
    [
        0xFF, 0xD8,  # SOI
        0xFF, 0xE0, 0x00, 0x10,  # APP0, length 16
        0x4A, 0x46, 0x49, 0x46, 0x00,  # "JFIF\0"
        0x01, 0x01, 0x01,  # version 1.1, density in dpi
        0x00, 0x48, 0x00, 0x48,  # 72 x 72
        0x00, 0x00,  # no thumbnail
    ]
)

JPEG_HUFFMAN_STUB = bytes(
    [
        0xFF, 0xC4, 0x00, 0x1F, 0x00,
        0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07, 0x08,
        0x09, 0x0A, 0x0B, 0x0C, 0x0D, 0x0E, 0x0F, 0x10,
        0xFF, 0xC4, 0x00, 0x0B, 0x10,
        0x01, 0x02, 0x03, 0x04, 0x05, 0x06,
    ]
)

JPEG_SOS = bytes(
    [
        0xFF, 0xDA, 0x00, 0x0C,
        0x03,
        0x01, 0x00, 0x02, 0x11, 0x03, 0x11,
        0x00, 0x3F, 0x00,
    ]
)

JPEG_EOI = b"\xff\xd9"


def build_dqt(rng: Optional[random.Random] = None) -> bytes:
    rng = rng or random.Random()
    coefficients = bytes(16 + rng.randrange(16) for _ in range(64))
    # length counts itself plus the precision/id byte
    return b"\xff\xdb" + struct.pack(">H", 2 + 1 + 64) + b"\x00" + coefficients


def build_sof0(width: int, height: int) -> bytes:
    return b"\xff\xc0" + struct.pack(
        ">HBHHB9B",
        0x11,
        8,
        height & 0xFFFF,
        width & 0xFFFF,
        3,
        0x01, 0x22, 0x00,  # Y
        0x02, 0x11, 0x01,  # Cb
        0x03, 0x11, 0x01,  # Cr
    )


def build_rgb_gradient(width: int, height: int) -> bytes:
    pixels = bytearray(width * height * 3)
    diagonal = width + height
    offset = 0
    for y in range(height):
        green = int(y / height * 255)
        for x in range(width):
            pixels[offset] = int(x / width * 255)
            pixels[offset + 1] = green
            pixels[offset + 2] = int((x + y) / diagonal * 255)
            offset += 3
    return bytes(pixels)


def build_jpeg(width: int, height: int, rng: Optional[random.Random] = None) -> bytes:
    """JPEG marker skeleton around a raw RGB gradient."""
    return b"".join(
        (
            JPEG_HEADER,
            build_dqt(rng),
            build_sof0(width, height),
            JPEG_HUFFMAN_STUB,
            JPEG_SOS,
            build_rgb_gradient(width, height),
            JPEG_EOI,
        )
    )


WAV_HEADER_SIZE = 44


def build_wav(duration_seconds: float, frequency_hz: float, sample_rate: int = 44100) -> bytes:
    """Mono 16-bit PCM sine tone at half amplitude."""
    num_samples = int(sample_rate * duration_seconds)
    data_size = num_samples * 2
    header = struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        16,
        1,  # PCM
        1,  # mono
        sample_rate,
        sample_rate * 2,
        2,
        16,
        b"data",
        data_size,
    )
    step = 2 * math.pi * frequency_hz / sample_rate
    samples = [math.floor(math.sin(step * i) * 0.5 * 32767) for i in range(num_samples)]
    return header + struct.pack(f"<{num_samples}h", *samples)
