"""Identify which upstream system sent a webhook.

Providers are recognized from request headers by an ordered list of rules.
The order is a priority list: a crafted request can satisfy several rules,
and the first one listed wins. When nothing matches, the raw
``User-Agent`` is returned so unknown senders still show up distinctly.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Callable

from fourkeys.shared.headers import HeaderMap as Headers
from fourkeys.shared.headers import first as _get

MOCK_HEADER = "Mock"


def has_header(name: str) -> Callable[[Headers], bool]:
    return lambda headers: _get(headers, name) is not None


def header_contains(name: str, needle: str) -> Callable[[Headers], bool]:
    def predicate(headers: Headers) -> bool:
        value = _get(headers, name)
        return value is not None and needle in value

    return predicate


@dataclass(frozen=True)
class SourceRule:
    tag: str
    matches: Callable[[Headers], bool]


SOURCE_RULES: tuple[SourceRule, ...] = (
    SourceRule("gitlab", has_header("X-Gitlab-Event")),
    SourceRule("tekton", header_contains("Ce-Type", "tekton")),
    SourceRule("github", header_contains("User-Agent", "GitHub-Hookshot")),
    SourceRule("circleci", has_header("Circleci-Event-Type")),
    SourceRule("pagerduty", has_header("X-Pagerduty-Signature")),
)


def classify(headers: Headers, rules: Sequence[SourceRule] = SOURCE_RULES) -> str:
    for rule in rules:
        if rule.matches(headers):
            return rule.tag
    return _get(headers, "User-Agent") or ""


def is_mock(headers: Headers) -> bool:
    """Synthetic traffic is flagged by the presence of a ``Mock`` header."""
    return _get(headers, MOCK_HEADER) is not None
