"""Shared fixtures for the giftovideo test-suite.

GIF payloads are synthesized with Pillow on the fly so the tests need no
binary fixtures, and HTTP traffic goes through ``httpx.MockTransport``.
"""

import io
import struct
from collections.abc import Callable, Iterable, Sequence

import httpx
import pytest
from PIL import Image

from giftovideo.fetch import RemoteAssetFetcher
from giftovideo.meta import DecodedFrame

RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)

GIF_URL = "https://cdn.example.test/animated.gif"


# ---------------------------------------------------------------------------
# GIF builders
# ---------------------------------------------------------------------------


def make_gif(
    colors: Sequence[tuple[int, int, int]],
    size: tuple[int, int] = (64, 64),
    durations: int | Sequence[int] = 100,
    loop: int | None = 0,
    **save_kwargs,
) -> bytes:
    """Encode one solid-color frame per entry of *colors* as an animated GIF.

    Consecutive colors must differ, otherwise Pillow merges the frames.
    """
    frames = [Image.new("RGB", size, color) for color in colors]
    buffer = io.BytesIO()
    kwargs = dict(save_kwargs)
    if loop is not None:
        kwargs["loop"] = loop
    frames[0].save(
        buffer,
        format="GIF",
        save_all=True,
        append_images=frames[1:],
        duration=durations,
        **kwargs,
    )
    return buffer.getvalue()


def make_frame(
    index: int,
    color: tuple[int, int, int, int] = (255, 0, 0, 255),
    size: tuple[int, int] = (8, 8),
    delay_centiseconds: int = 10,
) -> DecodedFrame:
    """Build a solid-color DecodedFrame without going through a GIF."""
    width, height = size
    return DecodedFrame(
        index=index,
        bitmap=bytes(color) * (width * height),
        delay_centiseconds=delay_centiseconds,
        disposal_type=0,
        width=width,
        height=height,
    )


# Global palette of the hand-assembled GIFs; index 0 doubles as background
PATCH_PALETTE = [(255, 255, 255), RED, GREEN, BLUE]


def _lzw_pixels(indices: Sequence[int]) -> bytes:
    """LZW-encode palette indices with a 2-bit minimum code size.

    A clear code precedes every pixel, so no table entry is ever added and
    every code stays 3 bits wide.
    """
    clear, end = 4, 5
    codes: list[int] = []
    for index in indices:
        codes += [clear, index]
    codes.append(end)

    packed = bytearray()
    bits = nbits = 0
    for code in codes:
        bits |= code << nbits
        nbits += 3
        while nbits >= 8:
            packed.append(bits & 0xFF)
            bits >>= 8
            nbits -= 8
    if nbits:
        packed.append(bits & 0xFF)
    return bytes(packed)


def make_patched_gif(
    size: tuple[int, int],
    patches: Sequence[tuple[int, tuple[int, int, int, int], int]],
    delay_centiseconds: int = 10,
) -> bytes:
    """Assemble a GIF89a whose frames are solid sub-images of the canvas.

    Each patch is ``(palette_index, (left, top, width, height), disposal)``.
    Pillow's writer re-crops frames on its own, so the bytes are written by
    hand to keep each sub-image and disposal method exactly as given.
    """
    width, height = size
    out = bytearray(b"GIF89a")
    # global color table of 4 entries, background index 0
    out += struct.pack("<HHBBB", width, height, 0x81, 0, 0)
    for color in PATCH_PALETTE:
        out += bytes(color)

    for palette_index, (left, top, patch_w, patch_h), disposal in patches:
        out += b"\x21\xf9\x04" + bytes([disposal << 2])
        out += struct.pack("<H", delay_centiseconds) + b"\x00\x00"
        out += b"\x2c" + struct.pack("<HHHHB", left, top, patch_w, patch_h, 0)

        data = _lzw_pixels([palette_index] * (patch_w * patch_h))
        out.append(2)
        for offset in range(0, len(data), 255):
            block = data[offset:offset + 255]
            out.append(len(block))
            out += block
        out.append(0)

    out.append(0x3B)
    return bytes(out)


# ---------------------------------------------------------------------------
# HTTP helpers
# ---------------------------------------------------------------------------


class CountingStream(httpx.SyncByteStream):
    """Response body that records how many chunks were pulled from it."""

    def __init__(self, chunks: Iterable[bytes]):
        self._chunks = list(chunks)
        self.served = 0

    def __iter__(self):
        for chunk in self._chunks:
            self.served += 1
            yield chunk


def mock_fetcher(
    handler: Callable[[httpx.Request], httpx.Response],
    config=None,
    sleep: Callable[[float], None] | None = None,
) -> RemoteAssetFetcher:
    """RemoteAssetFetcher whose client is wired to *handler*."""
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return RemoteAssetFetcher(config=config, client=client, sleep=sleep or (lambda _: None))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def three_frame_gif() -> bytes:
    """64x64 GIF with red, green and blue frames of 100 ms each, looping forever."""
    return make_gif([RED, GREEN, BLUE])


@pytest.fixture
def tiny_gif() -> bytes:
    """Single-frame 2x2 GIF whose every pixel is palette entry 0 (pure red)."""
    image = Image.new("P", (2, 2), 0)
    image.putpalette([255, 0, 0, 0, 0, 0])
    buffer = io.BytesIO()
    image.save(buffer, format="GIF")
    return buffer.getvalue()

