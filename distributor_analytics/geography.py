"""Best-effort state and metro classification from customer names.

Account names in the order history usually carry their location, e.g.
``"Smoke Shop - AL"`` or ``"Cigar Lounge Hoover"``. These helpers turn such
names into grouping keys. The matching is heuristic: names that do not match
simply fall outside every state or metro bucket.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Callable, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from .settings import DEFAULT_TRACKED_STATES

Classifier = Callable[[str], Optional[str]]


METRO_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "Birmingham": ("280", "Trussville", "Patton Creek", "Mountain Brook", "Tuscaloosa", "Hoover"),
    "Huntsville": ("Huntsville", "Madison"),
    "Atlanta": ("Gwinnett", "Buford", "Conyers", "Covington", "Lawrenceville"),
    "Nashville": ("Nashville", "Brentwood", "Franklin"),
    "Memphis": ("Memphis", "Germantown", "Collierville"),
    "Chattanooga": ("Chattanooga", "Chatanooga"),
}


@dataclass(frozen=True)
class KeywordClassifier:
    """Map a name to the first label whose keywords appear in it.

    Labels are checked in insertion order; matching is a case-sensitive
    substring test.
    """

    keywords: Mapping[str, Sequence[str]] = field(default_factory=dict)

    def classify(self, name: str) -> Optional[str]:
        if not name:
            return None
        for label, candidates in self.keywords.items():
            if any(candidate in name for candidate in candidates):
                return label
        return None

    __call__ = classify


@lru_cache(maxsize=None)
def _state_patterns(states: Tuple[str, ...]) -> Tuple["re.Pattern[str]", "re.Pattern[str]"]:
    codes = "|".join(re.escape(state) for state in states)
    return (
        re.compile(rf" - ({codes})\b"),
        re.compile(rf"(?<![A-Za-z0-9])({codes})(?![A-Za-z0-9])"),
    )


@dataclass(frozen=True)
class StateSuffixClassifier:
    """Extract a state code from a customer name.

    A ``" - XX"`` suffix wins over a bare ``XX`` token anywhere in the name.
    Only ``states`` are recognised.
    """

    states: Tuple[str, ...] = DEFAULT_TRACKED_STATES

    def classify(self, name: str) -> Optional[str]:
        if not name or not self.states:
            return None
        for pattern in _state_patterns(tuple(self.states)):
            match = pattern.search(name)
            if match:
                return match.group(1)
        return None

    __call__ = classify


DEFAULT_STATE_CLASSIFIER = StateSuffixClassifier()
DEFAULT_METRO_CLASSIFIER = KeywordClassifier(METRO_KEYWORDS)


def state_from_name(name: str) -> Optional[str]:
    return DEFAULT_STATE_CLASSIFIER.classify(name)


def metro_from_name(name: str) -> Optional[str]:
    return DEFAULT_METRO_CLASSIFIER.classify(name)


def state_classifier(states: Iterable[str]) -> StateSuffixClassifier:
    """Return a state classifier limited to ``states``."""
    return StateSuffixClassifier(tuple(state.upper() for state in states))


__all__ = [
    "Classifier",
    "DEFAULT_METRO_CLASSIFIER",
    "DEFAULT_STATE_CLASSIFIER",
    "KeywordClassifier",
    "METRO_KEYWORDS",
    "StateSuffixClassifier",
    "metro_from_name",
    "state_classifier",
    "state_from_name",
]
