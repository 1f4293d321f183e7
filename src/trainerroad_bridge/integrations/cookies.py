"""
Cookie jar primitives for TrainerRoad web sessions.

TrainerRoad has no public API, so a connected account is represented by the
cookies its web login hands out. This module keeps those cookies as an
ordered, immutable list of ``(name, value)`` pairs and converts between the
forms they take on the wire (``Set-Cookie`` headers), in storage
(``name=value; name=value``) and in outgoing requests (``Cookie`` header).

All functions are pure: no network or storage access happens here.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple


CookiePair = Tuple[str, str]

DEFAULT_MARKER_COOKIE = "SharedTrainerRoadAuth"


def _split_pair(fragment: str) -> Optional[CookiePair]:
    name, sep, value = fragment.partition("=")
    name = name.strip()
    value = value.strip()
    if not sep or not name or not value:
        return None
    return name, value


def parse(set_cookie_headers: Iterable[str]) -> List[CookiePair]:
    """
    Parse raw ``Set-Cookie`` header values into ``(name, value)`` pairs.

    Only the ``name=value`` part before the first ``;`` is kept, so
    attributes like ``Path``, ``HttpOnly`` or ``Max-Age`` are dropped.
    Values may themselves contain ``=``. Entries with an empty name or an
    empty value (upstream deletion cookies) are skipped.
    """
    pairs: List[CookiePair] = []
    for header in set_cookie_headers:
        if not header:
            continue
        pair = _split_pair(header.split(";", 1)[0])
        if pair is not None:
            pairs.append(pair)
    return pairs


def merge(existing: Iterable[CookiePair], incoming: Iterable[CookiePair]) -> List[CookiePair]:
    """
    Merge ``incoming`` cookies onto ``existing``.

    A cookie already present keeps its position and takes the incoming
    value; new names are appended in the order they arrive.
    """
    merged: List[CookiePair] = list(existing)
    positions = {name: index for index, (name, _) in enumerate(merged)}
    for name, value in incoming:
        if name in positions:
            merged[positions[name]] = (name, value)
        else:
            positions[name] = len(merged)
            merged.append((name, value))
    return merged


def serialize(pairs: Iterable[CookiePair]) -> str:
    """Join pairs into the ``name=value; name=value`` header/storage form."""
    return "; ".join(f"{name}={value}" for name, value in pairs)


def deserialize(raw: Optional[str]) -> List[CookiePair]:
    """Read the stored ``name=value; name=value`` form back into pairs."""
    if not raw:
        return []
    pairs: List[CookiePair] = []
    for fragment in raw.split(";"):
        pair = _split_pair(fragment)
        if pair is not None:
            pairs.append(pair)
    return pairs


def is_authenticated(pairs: Iterable[CookiePair], marker: str = DEFAULT_MARKER_COOKIE) -> bool:
    """True iff the marker cookie name is present, whatever its value."""
    return any(name == marker for name, _ in pairs)


@dataclass(frozen=True)
class SessionBundle:
    """Immutable set of TrainerRoad cookies for one login session."""

    cookies: Tuple[CookiePair, ...] = ()

    @classmethod
    def from_set_cookie(cls, headers: Iterable[str]) -> "SessionBundle":
        return cls(tuple(merge([], parse(headers))))

    @classmethod
    def from_string(cls, raw: Optional[str]) -> "SessionBundle":
        return cls(tuple(merge([], deserialize(raw))))

    def merged_with(self, incoming: Iterable[CookiePair]) -> "SessionBundle":
        """Return a new bundle with ``incoming`` merged on top."""
        return SessionBundle(tuple(merge(self.cookies, incoming)))

    def serialize(self) -> str:
        return serialize(self.cookies)

    def is_authenticated(self, marker: str = DEFAULT_MARKER_COOKIE) -> bool:
        return is_authenticated(self.cookies, marker)

    def get(self, name: str) -> Optional[str]:
        for cookie_name, value in self.cookies:
            if cookie_name == name:
                return value
        return None

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.cookies]

    def __len__(self) -> int:
        return len(self.cookies)

    def __str__(self) -> str:
        return f"SessionBundle({len(self.cookies)} cookies)"

    __repr__ = __str__
