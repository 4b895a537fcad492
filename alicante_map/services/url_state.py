"""Keep the school and house filters in sync with the page URL.

The filters live in the ``schoolFilter`` and ``houseFilter`` query
parameters.  The default value ``all`` is never written: it is represented
by the parameter being absent, so an unfiltered map has a bare URL.

Writing the filters replaces the current history entry instead of pushing a
new one.  Back/forward navigation changes the URL behind our back, so
:class:`UrlFilters` subscribes to the port and re-parses the URL whenever it
is notified.

The browser's location/history is abstracted as a :class:`UrlStatePort`;
:class:`InMemoryUrlState` is a fake with a history stack.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Protocol
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from alicante_map.services.filters import HouseFilter, SchoolFilter

logger = logging.getLogger(__name__)

SCHOOL_FILTER_PARAM = "schoolFilter"
HOUSE_FILTER_PARAM = "houseFilter"

Listener = Callable[[str], None]


@dataclass(frozen=True)
class FilterState:
    """The two independent map filters."""

    school: SchoolFilter = SchoolFilter.ALL
    house: HouseFilter = HouseFilter.ALL


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_school_filter(value: str | None) -> SchoolFilter:
    """Return the school filter for a raw query value; anything invalid is ``all``."""
    try:
        return SchoolFilter(value or SchoolFilter.ALL.value)
    except ValueError:
        return SchoolFilter.ALL


def parse_house_filter(value: str | None) -> HouseFilter:
    """Return the house filter for a raw query value; anything invalid is ``all``."""
    try:
        return HouseFilter(value or HouseFilter.ALL.value)
    except ValueError:
        return HouseFilter.ALL


def _first_values(query: str) -> dict[str, str]:
    values: dict[str, str] = {}
    for key, value in parse_qsl(query, keep_blank_values=True):
        values.setdefault(key, value)
    return values


def parse_filters(url: str) -> FilterState:
    """Read the filter state from *url*.

    *url* may be absolute (``https://host/path?x=1``), a path with a query
    string or just ``?x=1``.  When a parameter is repeated the first value
    wins.  Unknown values fall back to ``all`` and are never an error.
    """
    params = _first_values(urlsplit(url).query)
    return FilterState(
        school=parse_school_filter(params.get(SCHOOL_FILTER_PARAM)),
        house=parse_house_filter(params.get(HOUSE_FILTER_PARAM)),
    )


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


def _set_param(pairs: list[tuple[str, str]], key: str, value: str | None) -> list[tuple[str, str]]:
    """Set, replace or delete *key* in an ordered list of query pairs.

    Setting replaces the first occurrence in place and drops any others; a
    missing key is appended.  ``None`` deletes every occurrence.
    """
    result: list[tuple[str, str]] = []
    placed = False
    for k, v in pairs:
        if k != key:
            result.append((k, v))
        elif value is not None and not placed:
            result.append((k, value))
            placed = True
    if value is not None and not placed:
        result.append((key, value))
    return result


def build_query(url: str, state: FilterState) -> str:
    """Return the query string (without ``?``) of *url* rewritten for *state*."""
    pairs = parse_qsl(urlsplit(url).query, keep_blank_values=True)
    school = None if state.school is SchoolFilter.ALL else state.school.value
    house = None if state.house is HouseFilter.ALL else state.house.value
    pairs = _set_param(pairs, SCHOOL_FILTER_PARAM, school)
    pairs = _set_param(pairs, HOUSE_FILTER_PARAM, house)
    return urlencode(pairs)


def build_url(url: str, state: FilterState) -> str:
    """Return *url* with its filter parameters rewritten for *state*.

    Unrelated query parameters, the path and the fragment are kept.  Filters
    equal to ``all`` are removed; if nothing is left the ``?`` goes too.
    """
    parts = urlsplit(url)
    return urlunsplit(parts._replace(query=build_query(url, state)))


def write_filters(
    port: UrlStatePort,
    school: SchoolFilter | str,
    house: HouseFilter | str,
) -> str:
    """Write both filters to the URL held by *port* (history replace) and return it."""
    state = FilterState(school=SchoolFilter(school), house=HouseFilter(house))
    new_url = build_url(port.read(), state)
    port.write(new_url)
    return new_url


# ---------------------------------------------------------------------------
# URL state port
# ---------------------------------------------------------------------------


class UrlStatePort(Protocol):
    """Access to the current URL and its history entry."""

    def read(self) -> str:
        """Return the current URL."""
        ...

    def write(self, url: str) -> None:
        """Replace the current history entry with *url* without navigating."""
        ...

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with the new URL on navigation; return an unsubscribe callable."""
        ...


class InMemoryUrlState:
    """A :class:`UrlStatePort` backed by an in-memory history stack.

    ``push``, ``back`` and ``forward`` model navigation and notify
    listeners.  ``write`` models ``history.replaceState`` and does not.
    """

    def __init__(self, url: str = "/") -> None:
        self._entries: list[str] = [url]
        self._index = 0
        self._listeners: list[Listener] = []

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    def read(self) -> str:
        return self._entries[self._index]

    def write(self, url: str) -> None:
        self._entries[self._index] = url

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def push(self, url: str) -> None:
        """Navigate to *url*, discarding any forward entries."""
        del self._entries[self._index + 1 :]
        self._entries.append(url)
        self._index += 1
        self._notify()

    def back(self) -> None:
        if self._index > 0:
            self._index -= 1
            self._notify()

    def forward(self) -> None:
        if self._index < len(self._entries) - 1:
            self._index += 1
            self._notify()

    def _notify(self) -> None:
        url = self.read()
        for listener in list(self._listeners):
            listener(url)


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------


class UrlFilters:
    """In-memory filter state mirrored to and from a :class:`UrlStatePort`."""

    def __init__(self, port: UrlStatePort) -> None:
        self._port = port
        self._state = parse_filters(port.read())
        self._unsubscribe = port.subscribe(self._on_navigate)

    @property
    def state(self) -> FilterState:
        return self._state

    @property
    def school_filter(self) -> SchoolFilter:
        return self._state.school

    @property
    def house_filter(self) -> HouseFilter:
        return self._state.house

    def set_school_filter(self, value: SchoolFilter | str) -> None:
        """Change the school filter, leaving the house filter untouched.

        Raises ``ValueError`` for a value that is not a school filter.
        """
        self._apply(replace(self._state, school=SchoolFilter(value)))

    def set_house_filter(self, value: HouseFilter | str) -> None:
        """Change the house filter, leaving the school filter untouched.

        Raises ``ValueError`` for a value that is not a house filter.
        """
        self._apply(replace(self._state, house=HouseFilter(value)))

    def sync(self) -> FilterState:
        """Re-read the filters from the current URL."""
        self._state = parse_filters(self._port.read())
        return self._state

    def close(self) -> None:
        self._unsubscribe()

    def _apply(self, state: FilterState) -> None:
        write_filters(self._port, state.school, state.house)
        self._state = state

    def _on_navigate(self, url: str) -> None:
        self._state = parse_filters(url)
        logger.debug("Filters re-read after navigation to %s: %s", url, self._state)
