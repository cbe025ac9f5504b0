"""Moderation for comments attached to discoveries."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import List, Optional


LEET_TABLE = str.maketrans({
    "@": "a",
    "4": "a",
    "3": "e",
    "1": "i",
    "!": "i",
    "0": "o",
    "$": "s",
    "5": "s",
    "7": "t",
})


@dataclass
class FilterDecision:
    """Represents a blocked match detected by the filter."""

    category: str
    severity: str
    label: str
    match: str
    rule_id: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class FilterRule:
    id: str
    label: str
    category: str
    severity: str
    patterns: List[str]
    normalized: bool = True

    def __post_init__(self) -> None:
        self.compiled = [re.compile(pattern, re.IGNORECASE) for pattern in self.patterns]


DEFAULT_RULES: List[FilterRule] = [
    FilterRule(
        id="threats",
        label="Threats against other players",
        category="violence",
        severity="critical",
        patterns=[
            r"\b(?:kill|hurt|stab|shoot|beat)\s+(?:you|him|her|them)\b",
            r"\bi(?:'|’)?m\s+going\s+to\s+(?:find|hurt|kill)\s+you\b",
        ],
    ),
    FilterRule(
        id="hate",
        label="Hate speech",
        category="hate_speech",
        severity="critical",
        patterns=[
            r"\b(?:i|we)\s+hate\s+(?:jews?|muslims?|christians?|asians?|blacks?|gays?|trans|immigrants?)\b",
            r"\bnigg(?:a|er)s?\b",
            r"\bfag+(?:ot)?s?\b",
            r"\bretard(?:ed|s)?\b",
        ],
    ),
    FilterRule(
        id="profanity",
        label="Profanity",
        category="profanity",
        severity="high",
        patterns=[
            r"\bf+u+c+k+(?:ing|er|ed)?\b",
            r"\bshit+(?:ty)?\b",
            r"\bbitch(?:es)?\b",
            r"\bcunt\b",
            r"\basshole\b",
        ],
    ),
    FilterRule(
        id="spoiler-coordinates",
        label="Comments may not reveal spot coordinates",
        category="spoiler",
        severity="medium",
        patterns=[r"-?\d{1,2}\.\d{3,}\s*[,;/ ]\s*-?\d{1,3}\.\d{3,}"],
        normalized=False,
    ),
    FilterRule(
        id="contact-email",
        label="Email addresses are not allowed here.",
        category="contact_sharing",
        severity="high",
        patterns=[r"[\w.+-]+@[\w-]+\.[\w.-]+"],
        normalized=False,
    ),
]


class ContentFilter:
    """Regex rules run over a leet-normalized copy of the text, plus phone number detection."""

    def __init__(self, rules: Optional[List[FilterRule]] = None) -> None:
        self._rules = list(DEFAULT_RULES if rules is None else rules)
        self._phone_pattern = re.compile(r"(?:\+?\d[\s().-]*){7,}\d")

    @staticmethod
    def _normalize(value: str) -> str:
        lowered = value.lower().translate(LEET_TABLE)
        return re.sub(r"\s+", " ", lowered)

    def _detect_phone_number(self, value: str) -> Optional[str]:
        match = self._phone_pattern.search(value)
        if not match:
            return None
        candidate = match.group(0)
        if "." in candidate and re.search(r"\d\.\d{3,}", candidate):
            # decimal coordinates are handled by the spoiler rule
            return None
        return candidate.strip()

    def scan(self, value: str) -> Optional[FilterDecision]:
        """Return a FilterDecision if the text violates policy."""
        if not value:
            return None

        normalized = self._normalize(value)
        for rule in self._rules:
            text = normalized if rule.normalized else value
            for pattern in rule.compiled:
                found = pattern.search(text)
                if found:
                    return FilterDecision(
                        category=rule.category,
                        severity=rule.severity,
                        label=rule.label,
                        match=found.group(0).strip(),
                        rule_id=rule.id,
                    )

        phone_match = self._detect_phone_number(value)
        if phone_match:
            return FilterDecision(
                category="contact_sharing",
                severity="critical",
                label="Phone numbers are not allowed here.",
                match=phone_match,
                rule_id="phone-number",
            )

        return None
