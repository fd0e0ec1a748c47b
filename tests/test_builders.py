"""
Unit tests for synthetic container builders.
"""

import math
import random
import struct

from builders import (
    FTYP_BOX,
    MVHD_SIZE,
    TKHD_SIZE,
    WAV_HEADER_SIZE,
    build_jpeg,
    build_mdat_payload,
    build_mp4,
    build_wav,
)


class TestWav:
    """WAV output is a real PCM file."""

    def test_three_second_tone_sizes(self):
        data = build_wav(3, 440, 44100)
        num_samples = 44100 * 3
        assert len(data) == 44 + num_samples * 2
        assert data[0:4] == b"RIFF"
        assert data[8:16] == b"WAVEfmt "
        assert data[36:40] == b"data"
        assert struct.unpack_from("<I", data, 4)[0] == 36 + num_samples * 2
        assert struct.unpack_from("<I", data, 40)[0] == num_samples * 2

    def test_format_chunk(self):
        data = build_wav(1, 440, 8000)
        audio_format, channels, rate, byte_rate, align, bits = struct.unpack_from("<HHIIHH", data, 20)
        assert (audio_format, channels, rate, byte_rate, align, bits) == (1, 1, 8000, 16000, 2, 16)

    def test_samples_stay_at_half_amplitude(self):
        data = build_wav(1, 440, 8000)
        samples = struct.unpack_from("<8000h", data, WAV_HEADER_SIZE)
        assert samples[0] == 0
        assert max(samples) <= 16383
        assert min(samples) >= -16384


class TestMp4:
    """MP4 output only mimics the box layout."""

    def test_box_layout(self):
        data = build_mp4(3000, 640, 360, 1000, timestamp=1_700_000_000, rng=random.Random(1))
        assert data[:32] == FTYP_BOX
        assert data[36:40] == b"mvhd"
        assert struct.unpack_from(">I", data, 32)[0] == MVHD_SIZE

        tkhd = 32 + MVHD_SIZE
        assert data[tkhd + 4 : tkhd + 8] == b"tkhd"
        assert struct.unpack_from(">I", data, tkhd)[0] == TKHD_SIZE
        assert struct.unpack_from(">II", data, tkhd + 84) == (640, 360)

        mdat = tkhd + TKHD_SIZE
        assert data[mdat + 4 : mdat + 8] == b"mdat"
        assert struct.unpack_from(">I", data, mdat)[0] == 1008
        assert len(data) == mdat + 1008

    def test_mvhd_fields(self):
        data = build_mp4(9000, 1280, 720, 100, timescale=1000, timestamp=1_700_000_000)
        created, modified, timescale, duration, rate = struct.unpack_from(">IIIII", data, 32 + 12)
        assert (created, modified) == (1_700_000_000, 1_700_000_000)
        assert (timescale, duration, rate) == (1000, 9000, 0x00010000)
        assert struct.unpack_from(">I", data, 32 + 76)[0] == 0x00010000

    def test_payload_markers_every_hundred_bytes(self):
        payload = build_mdat_payload(1000, random.Random(3))
        for offset in range(0, 1000, 100):
            assert payload[offset : offset + 3] == b"\x00\x00\x01"
            assert payload[offset + 3] == (0x67 if offset % 3 == 0 else 0x41)

    def test_payload_sine_fill(self):
        payload = build_mdat_payload(200, random.Random(3))
        assert payload[4] == round(128 + 127 * math.sin(0.04))
        assert payload[1:4] == b"\x00\x01\x67"

    def test_truncated_marker_at_payload_end(self):
        assert build_mdat_payload(2, random.Random(0)) == b"\x00\x00"


class TestJpeg:
    """JPEG output has a valid marker skeleton around raw pixels."""

    def test_markers_and_length(self):
        data = build_jpeg(4, 2, rng=random.Random(5))
        assert data[:2] == b"\xff\xd8"
        assert data[6:11] == b"JFIF\x00"
        assert data[-2:] == b"\xff\xd9"
        assert len(data) == 20 + 69 + 19 + 32 + 14 + 4 * 2 * 3 + 2

    def test_quantization_table(self):
        data = build_jpeg(4, 2, rng=random.Random(5))
        assert data[20:22] == b"\xff\xdb"
        assert struct.unpack_from(">H", data, 22)[0] == 67
        coefficients = data[25:89]
        assert len(coefficients) == 64
        assert all(16 <= value < 32 for value in coefficients)

    def test_frame_dimensions(self):
        data = build_jpeg(800, 600, rng=random.Random(5))
        sof = data.index(b"\xff\xc0")
        precision, height, width, components = struct.unpack_from(">BHHB", data, sof + 4)
        assert (precision, height, width, components) == (8, 600, 800, 3)

    def test_gradient_pixels(self):
        data = build_jpeg(4, 2, rng=random.Random(5))
        pixels = data[-2 - 24 : -2]
        assert pixels[0:3] == bytes([0, 0, 0])
        # x=3, y=1
        assert pixels[-3:] == bytes([int(3 / 4 * 255), int(1 / 2 * 255), int(4 / 6 * 255)])
