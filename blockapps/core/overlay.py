"""Modal overlay lifecycle: open, morph animation, close, key dismissal.

Only one overlay session is live at a time. The controller owns the
overlay's visible state; a view listens for changes and renders them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

from blockapps.core.interstitial import InterstitialCoordinator
from blockapps.core.timing import TRANSITION_MS, Scheduler, TransitionHandle

logger = logging.getLogger(__name__)

KEY_ENTER = 13
KEY_ESCAPE = 27
KEY_SPACE = 32
DISMISS_KEYS = frozenset({KEY_ENTER, KEY_ESCAPE, KEY_SPACE})

# Stand-in for the overlay container when asking for bounds.
DIALOG = "dialog"

SCRIM_OPACITY = 0.3
ORIGIN_BORDER_OPACITY = 0.2
DIALOG_BORDER_OPACITY = 0.8


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float


class BoundsProvider(Protocol):
    def bounds(self, node: Any) -> Optional[Rect]:
        """Absolute screen bounds of ``node``, or None if it cannot be found."""
        ...


@dataclass
class GhostBorder:
    """Outline that morphs between the origin and the overlay."""

    rect: Optional[Rect] = None
    opacity: float = 0.0
    visible: bool = False
    animated: bool = False


@dataclass
class OverlaySession:
    content: Any
    origin: Any = None
    on_dispose: Optional[Callable[[], None]] = None


@dataclass
class OverlayState:
    dialog_visible: bool = False
    z_index: int = -1
    scrim_visible: bool = False
    scrim_opacity: float = 0.0
    style: Dict[str, str] = field(default_factory=dict)
    border: GhostBorder = field(default_factory=GhostBorder)


class OverlayController:
    def __init__(
        self,
        scheduler: Scheduler,
        bounds: BoundsProvider,
        interstitial: Optional[InterstitialCoordinator] = None,
    ) -> None:
        self._scheduler = scheduler
        self._bounds = bounds
        self._interstitial = interstitial
        self._session: Optional[OverlaySession] = None
        self._pending: Optional[TransitionHandle] = None
        self._attached: List[Any] = []
        self._holding: List[Any] = []
        self._key_listening = False
        self._on_advance: Optional[Callable[[], None]] = None
        self._listeners: List[Callable[[], None]] = []
        self.state = OverlayState()

    @property
    def is_visible(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> Optional[OverlaySession]:
        return self._session

    @property
    def attached(self) -> List[Any]:
        return list(self._attached)

    @property
    def holding_area(self) -> List[Any]:
        return list(self._holding)

    @property
    def in_transition(self) -> bool:
        return self._pending is not None and self._pending.pending

    @property
    def key_listening(self) -> bool:
        return self._key_listening

    def add_listener(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def park(self, content: Any) -> None:
        """Put ``content`` in the hidden holding area until it is shown."""
        if content not in self._holding and content not in self._attached:
            self._holding.append(content)

    def show(
        self,
        content: Any,
        origin: Any = None,
        animate: bool = True,
        modal: bool = True,
        style: Optional[Dict[str, str]] = None,
        on_dispose: Optional[Callable[[], None]] = None,
    ) -> None:
        """Open ``content`` in the overlay, closing any open session first.

        With ``animate`` and an ``origin`` the ghost border morphs from the
        origin to the overlay and the overlay appears after the transition.
        """
        interrupted = self.in_transition
        if self.is_visible:
            self.hide(False)
        self._cancel_pending()
        if interrupted:
            animate = False

        self._session = OverlaySession(content=content, origin=origin, on_dispose=on_dispose)
        self.state.style = dict(style or {})
        if content in self._holding:
            self._holding.remove(content)
        self._attached.append(content)
        self.state.scrim_visible = modal
        self.state.scrim_opacity = SCRIM_OPACITY if modal else 0.0

        def _reveal() -> None:
            self.state.dialog_visible = True
            self.state.z_index = 1
            self.state.border.visible = False
            self._notify()

        if animate and origin is not None:
            self._match_border(origin, False, ORIGIN_BORDER_OPACITY)
            self._match_border(DIALOG, True, DIALOG_BORDER_OPACITY)
            self._pending = self._scheduler.call_later(TRANSITION_MS, _reveal)
            self._notify()
        else:
            _reveal()

    def hide(self, animate: bool = True) -> None:
        """Close the open session; does nothing if none is open."""
        session = self._session
        if session is None:
            return
        if self._cancel_pending():
            animate = False

        dispose, session.on_dispose = session.on_dispose, None
        if dispose is not None:
            dispose()
        self._session = None
        self.stop_key_dismissal()

        origin = session.origin if animate else None
        self.state.scrim_opacity = 0.0

        def _settle() -> None:
            self.state.scrim_visible = False
            self.state.border.visible = False
            self._notify()

        if origin is not None:
            self._match_border(DIALOG, False, DIALOG_BORDER_OPACITY)
            self._match_border(origin, True, ORIGIN_BORDER_OPACITY)
            self._pending = self._scheduler.call_later(TRANSITION_MS, _settle)
        else:
            self.state.scrim_visible = False
            self.state.border.visible = False

        self.state.dialog_visible = False
        self.state.z_index = -1
        while self._attached:
            self._holding.append(self._attached.pop(0))
        if self._interstitial is not None:
            self._interstitial.cancel()
        self._notify()

    def start_key_dismissal(self, on_advance: Optional[Callable[[], None]] = None) -> None:
        """Let Enter, Escape and Space close the overlay.

        With ``on_advance``, Enter and Space also call it after closing.
        """
        self._key_listening = True
        self._on_advance = on_advance

    def stop_key_dismissal(self) -> None:
        self._key_listening = False
        self._on_advance = None

    def handle_key(self, key_code: int) -> bool:
        """Return True if the key was consumed."""
        if not (self._key_listening and self.is_visible):
            return False
        if key_code not in DISMISS_KEYS:
            return False
        on_advance = self._on_advance
        self.hide(True)
        if on_advance is not None and key_code != KEY_ESCAPE:
            on_advance()
        return True

    def _cancel_pending(self) -> bool:
        pending = self._pending
        self._pending = None
        if pending is not None and pending.pending:
            pending.cancel()
            return True
        return False

    def _match_border(self, node: Any, animate: bool, opacity: float) -> None:
        rect = self._bounds.bounds(node)
        if rect is None:
            logger.warning("No bounds for %r; skipping border step", node)
            return
        self.state.border = GhostBorder(rect=rect, opacity=opacity, visible=True, animated=animate)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
