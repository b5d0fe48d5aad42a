"""
Set name normalisation and set/group matching.

Scraped set hints, Scryfall set names and TCGplayer group names rarely agree
exactly ("Commander: Outlaws of Thunder Junction" vs "Outlaws of Thunder
Junction Commander", "Secret Lair Drop Series" vs "Secret Lair Drop"). The
helpers here reduce names to comparable forms; SetMatcher maps a set name to
TCGCSV group ids.

Matching tiers (SetMatcher):
1. Alias table of known cross-provider naming differences
2. Exact normalised match
3. Bidirectional keyword overlap, plus a bonus for substring containment
"""

import re
from collections.abc import Iterable

from pricecheck.models.price_group import Group

# Minimum keyword score for a group to count as a match
MIN_GROUP_SCORE = 0.5
SUBSTRING_BONUS = 0.2
ALIAS_SCORE = 3.0
EXACT_SCORE = 2.0

STOPWORDS = frozenset({"the", "of", "and", "a", "an", "in", "on", "for", "to", "from", "with", "vs"})

# Marketing words shops add around the real set name
NOISE_WORDS = ("magic the gathering", "magic", "mtg", "tcg", "singles", "cards", "english")

QUALIFIER_WORDS = ("extras", "special", "tokens", "promos")

# Words that mark "<X>" in "Commander <X>" as a sub-product rather than a set
_SUB_PRODUCT = re.compile(r"\b(commander|decks?|precons?|extras|promos|tokens|special)\b")

_PUNCTUATION = re.compile(r"[:\-–—'’‘\",.!?()]")
_SEPARATORS = re.compile(r"[&/+]")
_QUALIFIERS = re.compile(r"\b(" + "|".join(QUALIFIER_WORDS) + r")\b")
_NOISE = re.compile(r"\b(" + "|".join(NOISE_WORDS) + r")\b")
_YEAR = re.compile(r"\b(19|20)\d{2}\b")

# Normalised Scryfall set name -> normalised TCGplayer group names
SET_ALIASES: dict[str, tuple[str, ...]] = {
    "limited edition alpha": ("alpha edition",),
    "limited edition beta": ("beta edition",),
    "time spiral timeshifted": ("timeshifted",),
    "secret lair drop": ("secret lair drop series",),
    "mystery booster": ("mystery booster cards",),
    "the list": ("the list reprints",),
    "magic 2014": ("magic 2014 m14",),
    "magic 2015": ("magic 2015 m15",),
    "core set 2019": ("core set 2019 m19",),
    "core set 2020": ("core set 2020 m20",),
    "core set 2021": ("core set 2021 m21",),
}


def normalize_set_name(name: str) -> str:
    """Strip punctuation, lowercase, collapse whitespace."""
    name = _SEPARATORS.sub(" ", name)
    name = _PUNCTUATION.sub("", name)
    return re.sub(r"\s+", " ", name).lower().strip()


def strip_qualifiers(normalized: str) -> str:
    """Remove extras/special/tokens/promos qualifiers from a normalised name."""
    return re.sub(r"\s+", " ", _QUALIFIERS.sub("", normalized)).strip()


def deep_normalize(name: str) -> str:
    """
    Normalise and also drop noise words, years, qualifiers and a "catalog" prefix.

    Example:
        "Catalog Magic: The Gathering - Modern Horizons 3 (2024)" -> "modern horizons 3"
    """
    normalized = normalize_set_name(name)
    normalized = re.sub(r"^catalog\s+", "", normalized)
    normalized = _NOISE.sub("", normalized)
    normalized = _YEAR.sub("", normalized)
    normalized = _QUALIFIERS.sub("", normalized)
    return re.sub(r"\s+", " ", normalized).strip()


def keywords(name: str) -> set[str]:
    """Significant words of a set name (deep normalised, stopwords removed)."""
    return {word for word in deep_normalize(name).split() if len(word) > 2 and word not in STOPWORDS}


def reorder_commander_hint(hint: str) -> str | None:
    """
    Turn "Commander <X>" into "<X> Commander".

    Returns None when the hint does not start with "Commander", or when <X>
    already looks like a sub-product or a year ("Commander 2021",
    "Commander Legends" are real set names and are scored as given too).
    """
    normalized = normalize_set_name(hint)
    match = re.match(r"^commander\s+(.+)$", normalized)
    if not match:
        return None
    rest = match.group(1)
    if _SUB_PRODUCT.search(rest) or _YEAR.match(rest):
        return None
    return f"{rest} commander"


def _alias_targets(normalized: str) -> set[str]:
    targets = set(SET_ALIASES.get(normalized, ()))
    # Scryfall "<X> Commander" is TCGplayer "Commander: <X>"
    if normalized.endswith(" commander"):
        targets.add("commander " + normalized[: -len(" commander")])
    reordered = reorder_commander_hint(normalized)
    if reordered:
        targets.add(reordered)
    return targets


def group_score(hint: str, group_name: str) -> float:
    """
    Bidirectional keyword score between a set name and a group name.

    Mean of the fraction of hint keywords found in the group and the
    fraction of group keywords found in the hint, plus a flat bonus when
    one normalised name contains the other.
    """
    hint_words = keywords(hint)
    group_words = keywords(group_name)
    if not hint_words or not group_words:
        return 0.0

    overlap = len(hint_words & group_words)
    score = (overlap / len(hint_words) + overlap / len(group_words)) / 2

    hint_norm = normalize_set_name(hint)
    group_norm = normalize_set_name(group_name)
    if hint_norm and group_norm and (hint_norm in group_norm or group_norm in hint_norm):
        score += SUBSTRING_BONUS
    return score


class SetMatcher:
    """Maps set names to TCGCSV group ids."""

    def __init__(self, groups: Iterable[Group]) -> None:
        self._groups = [(group, normalize_set_name(group.name)) for group in groups]

    def __len__(self) -> int:
        return len(self._groups)

    def match_all(self, set_name: str) -> list[int]:
        """
        Every group scoring at or above the threshold, best first.

        Ties keep the provider's group order.
        """
        if not set_name:
            return []

        hint_norm = normalize_set_name(set_name)
        aliases = _alias_targets(hint_norm)
        scored: list[tuple[float, int]] = []

        for group, group_norm in self._groups:
            if group_norm in aliases:
                score = ALIAS_SCORE
            elif group_norm == hint_norm:
                score = EXACT_SCORE
            else:
                score = group_score(set_name, group.name)
            if score >= MIN_GROUP_SCORE:
                scored.append((score, group.group_id))

        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [group_id for _, group_id in scored]

    def match(self, set_name: str) -> int | None:
        """Best matching group id, or None."""
        matches = self.match_all(set_name)
        return matches[0] if matches else None
