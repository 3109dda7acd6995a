"""Tests for giftovideo.decode module."""

import inspect
import io

import pytest
from conftest import BLUE, GREEN, RED, make_gif, make_patched_gif
from PIL import Image

from giftovideo.decode import GifFrameDecoder
from giftovideo.error_handling import DecodeError


def _pixel(frame, x, y):
    offset = (y * frame.width + x) * 4
    return tuple(frame.bitmap[offset:offset + 4])


@pytest.mark.fast
class TestDecodeMetadata:
    """Header parsing and metadata."""

    def test_single_frame_round_trip(self, tiny_gif):
        """Test that a 2x2 single-color GIF decodes to the expected RGBA bytes."""
        metadata, frames = GifFrameDecoder().decode(tiny_gif)
        frames = list(frames)

        assert (metadata.width, metadata.height) == (2, 2)
        assert metadata.frame_count == 1
        assert len(frames) == 1
        assert frames[0].index == 0
        assert frames[0].bitmap == bytes([255, 0, 0, 255]) * 4
        assert len(frames[0].bitmap) == metadata.bitmap_size

    def test_animated_metadata(self, three_frame_gif):
        """Test canvas, frame count and loop count of an animated GIF."""
        metadata, _ = GifFrameDecoder().decode(three_frame_gif)

        assert metadata.width == 64
        assert metadata.height == 64
        assert metadata.frame_count == 3
        assert metadata.loop_count == 0

    def test_loop_count_absent(self):
        """Test that a GIF without a loop extension reports loop_count None."""
        metadata, _ = GifFrameDecoder().decode(make_gif([RED, GREEN], loop=None))

        assert metadata.loop_count is None


@pytest.mark.fast
class TestDecodeFrames:
    """Frame iteration, timing and compositing."""

    def test_frames_are_lazy(self, three_frame_gif):
        """Test that frames are produced by a generator in index order."""
        _, frames = GifFrameDecoder().decode(three_frame_gif)

        assert inspect.isgenerator(frames)
        first = next(frames)
        assert first.index == 0
        assert [frame.index for frame in frames] == [1, 2]

    def test_frame_colors_and_size(self, three_frame_gif):
        """Test that every frame covers the full canvas with its color."""
        _, frames = GifFrameDecoder().decode(three_frame_gif)

        for frame, color in zip(frames, [RED, GREEN, BLUE]):
            assert (frame.width, frame.height) == (64, 64)
            assert len(frame.bitmap) == 64 * 64 * 4
            assert _pixel(frame, 0, 0) == (*color, 255)
            assert _pixel(frame, 63, 63) == (*color, 255)

    def test_delays_in_centiseconds(self):
        """Test that per-frame delays are reported in centiseconds."""
        gif = make_gif([RED, GREEN, BLUE, RED], size=(4, 4), durations=[30, 70, 100, 50])
        _, frames = GifFrameDecoder().decode(gif)
        frames = list(frames)

        assert [f.delay_centiseconds for f in frames] == [3, 7, 10, 5]
        assert [f.duration_ms for f in frames] == [30, 70, 100, 50]

    def test_missing_delay_is_normalized(self, tiny_gif):
        """Test that a frame without a delay plays for one centisecond."""
        _, frames = GifFrameDecoder().decode(tiny_gif)

        assert next(frames).delay_centiseconds == 1

    def test_partial_frames_are_composited_onto_canvas(self):
        """Test that a delta frame is returned as a full-canvas picture."""
        base = Image.new("RGB", (8, 8), RED)
        patched = base.copy()
        patched.paste(GREEN, (0, 0, 2, 2))
        buffer = io.BytesIO()
        base.save(buffer, format="GIF", save_all=True, append_images=[patched], duration=100)

        _, frames = GifFrameDecoder().decode(buffer.getvalue())
        frames = list(frames)

        assert _pixel(frames[1], 0, 0) == (*GREEN, 255)
        assert _pixel(frames[1], 1, 1) == (*GREEN, 255)
        assert _pixel(frames[1], 7, 7) == (*RED, 255)
        assert _pixel(frames[1], 2, 2) == (*RED, 255)

    def test_disposal_method_is_reported(self):
        """Test that the GIF89a disposal method is exposed per frame."""
        gif = make_gif([RED, GREEN, BLUE], size=(4, 4), disposal=2)
        _, frames = GifFrameDecoder().decode(gif)

        assert next(frames).disposal_type == 2


@pytest.mark.fast
class TestDisposalCompositing:
    """Sub-images are composited according to the previous frame's disposal."""

    WHITE = (255, 255, 255)

    def _frames(self, disposal):
        """Red 4x4 base, a 2x2 green patch with *disposal*, then a 1x1 blue patch."""
        gif = make_patched_gif(
            (4, 4),
            [
                (1, (0, 0, 4, 4), 1),
                (2, (0, 0, 2, 2), disposal),
                (3, (3, 3, 1, 1), 0),
            ],
        )
        metadata, frames = GifFrameDecoder().decode(gif)
        assert metadata.frame_count == 3
        return list(frames)

    @pytest.mark.parametrize(
        "disposal, expected",
        [(1, GREEN), (2, WHITE), (3, RED)],
        ids=["leave-in-place", "restore-background", "restore-previous"],
    )
    def test_patch_after_disposal(self, disposal, expected):
        """Test what frame 1's patch area shows once frame 2 is drawn."""
        frames = self._frames(disposal)

        assert _pixel(frames[1], 0, 0) == (*GREEN, 255)
        assert _pixel(frames[1], 3, 3) == (*RED, 255)
        assert frames[1].disposal_type == disposal

        third = frames[2]
        assert _pixel(third, 0, 0) == (*expected, 255)
        assert _pixel(third, 1, 1) == (*expected, 255)
        assert _pixel(third, 3, 3) == (*BLUE, 255)
        assert _pixel(third, 2, 2) == (*RED, 255)
        assert len(third.bitmap) == 4 * 4 * 4

    def test_restore_background_only_clears_patch_area(self):
        third = self._frames(2)[2]

        assert _pixel(third, 2, 0) == (*RED, 255)
        assert _pixel(third, 0, 2) == (*RED, 255)


@pytest.mark.fast
class TestDecodeErrors:
    """Malformed payloads raise DecodeError."""

    def test_empty_buffer(self):
        with pytest.raises(DecodeError, match="empty"):
            GifFrameDecoder().decode(b"")

    def test_garbage_bytes(self):
        with pytest.raises(DecodeError, match="Unparseable GIF header"):
            GifFrameDecoder().decode(b"this is not an image at all")

    def test_other_image_format(self):
        """Test that a valid PNG is rejected as not being a GIF."""
        buffer = io.BytesIO()
        Image.new("RGB", (4, 4), RED).save(buffer, format="PNG")

        with pytest.raises(DecodeError, match="not a GIF"):
            GifFrameDecoder().decode(buffer.getvalue())

    def test_truncated_gif(self, three_frame_gif):
        """Test that a payload cut off inside its header is rejected."""
        truncated = three_frame_gif[:20]

        with pytest.raises(DecodeError):
            _, frames = GifFrameDecoder().decode(truncated)
            list(frames)
