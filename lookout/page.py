"""Host page state consumed by the agent.

The agent never inspects the host directly. A platform adapter implements
:class:`PageEnvironment` (or updates a :class:`PageState`) and calls the
agent's ``notify_*`` entry points when the page changes.

Usage
-----
>>> page = PageState(url="https://shop.example/cart?step=2", title="Cart")
>>> page.pathname
'/cart'
>>> page.navigate("https://shop.example/checkout", title="Checkout")
>>> page.pathname
'/checkout'

"""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

import httpx

# Raw Do-Not-Track values that mean "enabled".
_DNT_ENABLED_VALUES = frozenset({"1", "yes"})

DEFAULT_ENTRY_TYPES = frozenset(
    {
        "event",
        "largest-contentful-paint",
        "layout-shift",
        "navigation",
        "paint",
    }
)


class VisibilityState(enum.StrEnum):
    """Visibility of the host page."""

    VISIBLE = "visible"
    HIDDEN = "hidden"


@typ.runtime_checkable
class PageEnvironment(typ.Protocol):
    """Read-only view of the host page at the moment a record is built."""

    @property
    def url(self) -> str:
        """Return origin, path and query of the current location (no hash)."""
        ...

    @property
    def pathname(self) -> str:
        """Return the path of the current location."""
        ...

    @property
    def title(self) -> str:
        """Return the current document title."""
        ...

    @property
    def referrer(self) -> str:
        """Return the referrer, or an empty string."""
        ...

    @property
    def screen_width(self) -> int:
        """Return the screen width in CSS pixels."""
        ...

    @property
    def timezone(self) -> str:
        """Return the IANA timezone name reported by the host."""
        ...

    @property
    def language(self) -> str:
        """Return the preferred language tag."""
        ...

    @property
    def connection_type(self) -> str | None:
        """Return the effective connection type if the host exposes one."""
        ...

    @property
    def visibility_state(self) -> VisibilityState:
        """Return whether the page is currently visible."""
        ...

    @property
    def do_not_track(self) -> bool:
        """Return whether the user asked not to be tracked."""
        ...

    @property
    def supported_entry_types(self) -> frozenset[str]:
        """Return the performance entry types the host can deliver."""
        ...


def _strip_fragment(url: str) -> str:
    return url.split("#", 1)[0]


@dc.dataclass(slots=True)
class PageState:
    """Mutable :class:`PageEnvironment` implementation for adapters and tests.

    Adapters keep one instance in sync with the real host and hand it to the
    agent. ``dnt_header`` holds the raw Do-Not-Track value (``"1"``,
    ``"yes"``, ``"0"`` or ``None``).
    """

    url: str = "http://localhost/"
    title: str = ""
    referrer: str = ""
    screen_width: int = 0
    timezone: str = "Unknown"
    language: str = "en"
    connection_type: str | None = None
    visibility_state: VisibilityState = VisibilityState.VISIBLE
    dnt_header: str | None = None
    supported_entry_types: frozenset[str] = DEFAULT_ENTRY_TYPES

    def __post_init__(self) -> None:
        """Drop any fragment from the initial location."""
        self.url = _strip_fragment(self.url)

    @property
    def pathname(self) -> str:
        """Return the path component of :attr:`url`."""
        return httpx.URL(self.url).path or "/"

    @property
    def do_not_track(self) -> bool:
        """Return ``True`` when :attr:`dnt_header` signals opt-out."""
        return (self.dnt_header or "").strip().lower() in _DNT_ENABLED_VALUES

    def navigate(self, url: str, *, title: str | None = None) -> None:
        """Move to a new location, resolved against the current one.

        The referrer is left alone, as it is for history-driven navigation.
        Callers still have to notify the agent.
        """
        target = httpx.URL(self.url).join(url)
        self.url = _strip_fragment(str(target))
        if title is not None:
            self.title = title

    def hide(self) -> None:
        """Mark the page hidden."""
        self.visibility_state = VisibilityState.HIDDEN

    def show(self) -> None:
        """Mark the page visible."""
        self.visibility_state = VisibilityState.VISIBLE
