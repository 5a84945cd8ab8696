"""Guessing a title for a recipe we did not write.

The webhook answers in whatever shape the model felt like that day, so the
title is found by trying a handful of patterns in order and taking the first
one that gives something presentable. When nothing does, the prompt is used.
"""

import re


MIN_TITLE = 5
MAX_TITLE = 80
MAX_PROMPT_IN_TITLE = 50

MARKUP = re.compile(r"[#*_`]")
TRAILING_PUNCTUATION = re.compile(r"[.,!?;:]\Z")
WHITESPACE = re.compile(r"\s+")
DIGITS = re.compile(r"[0-9]+")


class TitleMatcher:
    """One way of finding a title in recipe text."""

    def __init__(self, name: str, pattern: re.Pattern[str]) -> None:
        self.name = name
        self.pattern = pattern

    def __repr__(self) -> str:
        return f"<TitleMatcher(name={self.name})>"

    def candidate(self, text: str) -> str | None:
        match = self.pattern.search(text)
        if match is None or not match.group(1):
            return None
        return tidy(match.group(1))


MATCHERS = (
    TitleMatcher(
        "label",
        re.compile(r"(?:Recipe(?:\s+for)?:?\s*)([^\n\r]+)", re.IGNORECASE),
    ),
    TitleMatcher(
        "first-line",
        re.compile(r"\A([^\n\r]{10,80})(?:\n|\r|\Z)"),
    ),
    TitleMatcher(
        "called",
        re.compile(
            r"(?:dish|meal|recipe)\s+(?:is|called|named)\s+([^\n\r.,]{5,50})",
            re.IGNORECASE,
        ),
    ),
    TitleMatcher(
        "imperative",
        re.compile(
            r"(?:make|prepare|cook)\s+(?:a|an|some)?\s*([^\n\r.,]{5,50})",
            re.IGNORECASE,
        ),
    ),
)


def strip_markup(content: str) -> str:
    return MARKUP.sub("", content).strip()


def tidy(candidate: str) -> str:
    candidate = TRAILING_PUNCTUATION.sub("", candidate.strip())
    return WHITESPACE.sub(" ", candidate).strip()


def is_acceptable(candidate: str) -> bool:
    return (
        MIN_TITLE <= len(candidate) <= MAX_TITLE
        and DIGITS.fullmatch(candidate) is None
    )


def prompt_title(prompt: str) -> str:
    """`Recipe for <prompt>`, shortening long prompts."""
    if len(prompt) > MAX_PROMPT_IN_TITLE:
        prompt = prompt[:47] + "..."
    return f"Recipe for {prompt}"


def derive_title(
    content: str,
    fallback_prompt: str,
    *,
    matchers: tuple[TitleMatcher, ...] = MATCHERS,
) -> str:
    """Title for `content`, or one made from `fallback_prompt`. Never raises."""
    text = strip_markup(content)
    for matcher in matchers:
        candidate = matcher.candidate(text)
        if candidate is not None and is_acceptable(candidate):
            return candidate
    return prompt_title(fallback_prompt)
