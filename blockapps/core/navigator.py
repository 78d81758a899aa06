from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from blockapps.core.interstitial import InterstitialCoordinator
from blockapps.core.overlay import OverlayController
from blockapps.core.progress import LevelProgress
from blockapps.core.urls import Location

logger = logging.getLogger(__name__)


@dataclass
class RunControls:
    """Which of the run/reset buttons is offered."""

    run_visible: bool = True
    reset_visible: bool = False

    def running(self) -> None:
        self.run_visible = False
        self.reset_visible = True

    def idle(self) -> None:
        self.run_visible = True
        self.reset_visible = False


def next_level_url(progress: LevelProgress, location: Location) -> str:
    """Address of the level after ``progress.level``.

    A redirect supplied by the server replaces the computed address.
    """
    if progress.next_level_url:
        return progress.next_level_url
    url = f"{location.origin}{location.path}?lang={progress.lang}"
    if progress.page:
        url += f"&page={progress.page}"
    url += f"&level={progress.level + 1}"
    # Levels without a skin keep the reinforcement marker.
    url += f"&skin={progress.skin_id}" if progress.skin_id else "&reinf=1"
    if progress.mode:
        url += f"&mode={int(progress.mode)}"
    return url


class LevelNavigator:
    def __init__(
        self,
        progress: LevelProgress,
        overlay: OverlayController,
        interstitial: InterstitialCoordinator,
        location: Location,
        navigate: Callable[[str], None],
        controls: Optional[RunControls] = None,
        on_reset: Optional[Callable[[], None]] = None,
    ) -> None:
        self._progress = progress
        self._overlay = overlay
        self._interstitial = interstitial
        self._location = location
        self._navigate = navigate
        self.controls = controls or RunControls()
        self._on_reset = on_reset

    def advance_or_reset(self, advance: bool) -> bool:
        """Go to the next level, or close feedback so the level can be retried.

        Returns True if navigation happened.
        """
        if not advance:
            self._overlay.hide(True)
            self.reset()
            return False
        if not self._interstitial.request_advance():
            return False
        self._overlay.hide(False)
        url = next_level_url(self._progress, self._location)
        logger.info("Opening next level: %s", url)
        self._navigate(url)
        return True

    def reset(self) -> None:
        """Put the level back to its starting position, keeping the program."""
        self.controls.idle()
        if self._on_reset is not None:
            self._on_reset()
