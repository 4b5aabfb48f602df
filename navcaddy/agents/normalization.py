"""
Input Normalizer.

Rewrites golf slang, abbreviations and spoken numbers into the
canonical forms the intent classifier expects, and masks profanity.
Pure and stateless: the same input always yields the same output.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)


class ModificationType(Enum):
    PROFANITY = "profanity"
    SLANG = "slang"
    NUMBER = "number"


@dataclass(frozen=True)
class Modification:
    kind: ModificationType
    original: str
    replacement: str


@dataclass(frozen=True)
class NormalizationResult:
    normalized_input: str
    original_input: str
    was_modified: bool
    modifications: Tuple[Modification, ...] = ()
    is_english: bool = True


PROFANITY_WORDS = (
    "fuck", "shit", "damn", "hell", "ass", "bitch", "crap",
    "piss", "bastard", "cock", "dick",
)

UNITS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9,
}

TEENS = {
    "ten": 10, "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14,
    "fifteen": 15, "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19,
}

TENS = {
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
}

# Abbreviations and nicknames, longest first when applied
GOLF_SLANG = {
    "pw": "pitching wedge",
    "gw": "gap wedge",
    "aw": "gap wedge",
    "sw": "sand wedge",
    "lw": "lob wedge",
    "d": "driver",
    "big dog": "driver",
    "big stick": "driver",
    "flat stick": "putter",
    "flatstick": "putter",
    "dance floor": "green",
    "short grass": "fairway",
    "cabbage": "rough",
    "beach": "bunker",
    "drink": "water",
    "stick": "club",
    "yds": "yards",
    "yd": "yards",
    "ob": "out of bounds",
}

COMMON_ENGLISH_WORDS = frozenset({
    "the", "a", "an", "i", "my", "me", "is", "it", "to", "of", "and", "in",
    "on", "for", "with", "what", "how", "should", "do", "am", "are", "this",
    "that", "can", "you", "your", "hit", "club", "shot", "yards", "hole",
    "round", "score", "iron", "driver", "wedge", "putter", "green", "wind",
    "play", "show", "help", "feel", "feels", "today", "where", "miss",
})

_UNIT_WORDS = "|".join(UNITS)
_TEN_WORDS = "|".join(TENS)
_TEEN_WORDS = "|".join(TEENS)
_HUNDREDS = "one|two|three"


def _boundary(pattern: str) -> str:
    """Whole-word match that also refuses to split contractions like "I'd"."""
    return rf"(?<![\w']){pattern}(?![\w'])"


def _compose_number(hundreds: str, rest: str) -> str:
    total = UNITS[hundreds] * 100
    for word in rest.split():
        total += TENS.get(word, 0) + TEENS.get(word, 0) + UNITS.get(word, 0)
    return str(total)


class InputNormalizer:
    """
    Normalizes raw user text before classification.

    Order matters: compound numbers ("one fifty", "seven iron") are
    collapsed before single-word slang and number words so that
    "seven iron" becomes "7-iron" instead of "7 iron".
    """

    def __init__(self, mask_profanity: bool = True):
        self.mask_profanity = mask_profanity

        self._profanity = re.compile(
            _boundary(rf"({'|'.join(PROFANITY_WORDS)})"), re.IGNORECASE
        )
        self._compound_numbers: List[Tuple[re.Pattern, Callable[[re.Match], str]]] = [
            (
                re.compile(_boundary(
                    rf"({_HUNDREDS}) hundred(?: and)? ((?:{_TEN_WORDS})(?: (?:{_UNIT_WORDS}))?|{_TEEN_WORDS}|{_UNIT_WORDS})"
                ), re.IGNORECASE),
                lambda m: _compose_number(m.group(1).lower(), m.group(2).lower()),
            ),
            (
                re.compile(_boundary(rf"({_HUNDREDS}) hundred"), re.IGNORECASE),
                lambda m: str(UNITS[m.group(1).lower()] * 100),
            ),
            (
                re.compile(_boundary(
                    rf"({_HUNDREDS}) ((?:{_TEN_WORDS})(?: (?:{_UNIT_WORDS}))?|{_TEEN_WORDS})"
                ), re.IGNORECASE),
                lambda m: _compose_number(m.group(1).lower(), m.group(2).lower()),
            ),
            (
                re.compile(_boundary(rf"({_HUNDREDS}) (?:oh|o) ({_UNIT_WORDS})"), re.IGNORECASE),
                lambda m: _compose_number(m.group(1).lower(), m.group(2).lower()),
            ),
            (
                re.compile(_boundary(rf"({_UNIT_WORDS}|\d)[ -]?(iron|wood|hybrid)s?"), re.IGNORECASE),
                lambda m: f"{UNITS.get(m.group(1).lower(), m.group(1))}-{m.group(2).lower()}",
            ),
        ]
        self._club_codes: List[Tuple[re.Pattern, Callable[[re.Match], str]]] = [
            (re.compile(_boundary(r"([2-9])i"), re.IGNORECASE), lambda m: f"{m.group(1)}-iron"),
            (re.compile(_boundary(r"([2-9])w"), re.IGNORECASE), lambda m: f"{m.group(1)}-wood"),
            (re.compile(_boundary(r"([2-5])h"), re.IGNORECASE), lambda m: f"{m.group(1)}-hybrid"),
        ]
        self._slang = [
            (re.compile(_boundary(re.escape(term)), re.IGNORECASE), replacement)
            for term, replacement in sorted(GOLF_SLANG.items(), key=lambda kv: -len(kv[0]))
        ]
        number_words = dict(UNITS)
        number_words.update(TEENS)
        number_words.update(TENS)
        self._number_words = re.compile(
            _boundary(rf"({'|'.join(sorted(number_words, key=len, reverse=True))})"),
            re.IGNORECASE
        )
        self._number_values = number_words

        logger.debug(f"Initialized InputNormalizer with {len(self._slang)} slang terms")

    def normalize(self, text: str) -> NormalizationResult:
        """
        Normalize raw input.

        Args:
            text: Raw user utterance

        Returns:
            NormalizationResult with the rewritten text and a log of changes
        """
        modifications: List[Modification] = []
        result = text

        if self.mask_profanity:
            result = self._apply(
                self._profanity, result, lambda m: "*" * len(m.group(0)),
                ModificationType.PROFANITY, modifications
            )

        for pattern, replace in self._compound_numbers:
            result = self._apply(pattern, result, replace, ModificationType.NUMBER, modifications)

        for pattern, replace in self._club_codes:
            result = self._apply(pattern, result, replace, ModificationType.SLANG, modifications)

        for pattern, replacement in self._slang:
            result = self._apply(
                pattern, result, lambda m, r=replacement: r,
                ModificationType.SLANG, modifications
            )

        result = self._apply(
            self._number_words, result,
            lambda m: str(self._number_values[m.group(1).lower()]),
            ModificationType.NUMBER, modifications
        )

        result = re.sub(r"\s+", " ", result).strip()

        if modifications:
            logger.debug(f"Normalized input with {len(modifications)} modifications")

        return NormalizationResult(
            normalized_input=result,
            original_input=text,
            was_modified=result != text,
            modifications=tuple(modifications),
            is_english=self.is_english(result)
        )

    @staticmethod
    def _apply(
        pattern: re.Pattern,
        text: str,
        replace: Callable[[re.Match], str],
        kind: ModificationType,
        modifications: List[Modification]
    ) -> str:
        def substitute(match: re.Match) -> str:
            replacement = replace(match)
            if replacement != match.group(0):
                modifications.append(Modification(kind, match.group(0), replacement))
            return replacement

        return pattern.sub(substitute, text)

    @staticmethod
    def is_english(text: str) -> bool:
        """Rough check: at least 10% of the words are common English words."""
        words = re.findall(r"[a-z']+", text.lower())
        if not words:
            return True
        common = sum(1 for word in words if word in COMMON_ENGLISH_WORDS)
        return common / len(words) >= 0.1


# Design Rationale and Trade-offs:
#
# 1. Why normalize before calling Gemini?
#    - "seven iron", "7i" and "7 iron" reach the model as one form
#    - Deterministic rewriting is cheaper than prompt instructions
#    - Trade-off: Slang tables need manual upkeep
#
# 2. Why record every modification?
#    - The log explains a misclassification when debugging
#    - Trade-off: Slightly more work per utterance, negligible
#
# 3. Why a word-list heuristic for is_english?
#    - No language-detection dependency for one boolean hint
#    - Trade-off: Short or slang-heavy English can be flagged as non-English
