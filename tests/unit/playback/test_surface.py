"""Unit tests for the frame-cache video surface."""

import numpy as np

from camera_preview.playback import FrameCacheSurface


class TestFrameCacheSurface:
    def test_latest_frame_wins(self):
        surface = FrameCacheSurface()
        first = np.zeros((2, 2, 3), dtype=np.uint8)
        second = np.ones((2, 2, 3), dtype=np.uint8)

        surface.draw_frame(first, 0, True)
        surface.draw_frame(second, 40, False)

        assert surface.get_display_frame() is second
        assert surface.latest_pts == 40
        assert surface.frames_drawn == 2
        assert surface.drawing

    def test_stop_drawing_hides_frame(self):
        surface = FrameCacheSurface()
        surface.draw_frame(np.zeros((2, 2, 3), dtype=np.uint8), 0, True)

        surface.stop_drawing()

        assert surface.get_display_frame() is None
        assert surface.latest_pts == 0

    def test_stop_clears_frame(self):
        surface = FrameCacheSurface()
        surface.draw_frame(np.zeros((2, 2, 3), dtype=np.uint8), 0, True)

        surface.stop()

        assert surface.get_display_frame() is None
        assert surface.latest_pts is None
        assert not surface.drawing

    def test_nothing_drawn(self):
        assert FrameCacheSurface().get_display_frame() is None
