import threading
from typing import Optional

import numpy as np


class FrameCacheSurface:
    """Keeps the most recent frame for a display loop to pick up."""

    def __init__(self, name: str = "preview"):
        self.name = name
        self._lock = threading.Lock()
        self._latest_frame: Optional[np.ndarray] = None
        self._latest_pts: Optional[int] = None
        self._drawing = False
        self._frames_drawn = 0

    def draw_frame(self, data: np.ndarray, pts_ms: int, is_first_frame: bool) -> None:
        with self._lock:
            self._latest_frame = data
            self._latest_pts = pts_ms
            self._drawing = True
            self._frames_drawn += 1

    def stop_drawing(self) -> None:
        with self._lock:
            self._drawing = False

    def stop(self) -> None:
        with self._lock:
            self._drawing = False
            self._latest_frame = None
            self._latest_pts = None

    def get_display_frame(self) -> Optional[np.ndarray]:
        with self._lock:
            return self._latest_frame if self._drawing else None

    @property
    def latest_pts(self) -> Optional[int]:
        return self._latest_pts

    @property
    def drawing(self) -> bool:
        return self._drawing

    @property
    def frames_drawn(self) -> int:
        return self._frames_drawn
