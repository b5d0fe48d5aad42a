"""
Printing Resolver.

Given a canonical card name and a free-text set hint (usually scraped from a
marketplace page), pick the printing the hint most likely refers to.

ALGORITHM:
1. Fetch every paper printing of the card (bounded pagination)
2. Score each printing's set name against the hint; keep the best score
3. Break ties between sets using the hint words missing from the set name,
   looked up in each printing's purchase links
4. Split the tied printings into base / extras / promos and select one
   using the hint's bucket qualifier and the variant index
5. Nothing scored: try the hint as a raw set code

The resolver never raises for lookup problems; it returns None and the
caller keeps the fuzzy-matched card.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, unquote

from pricecheck.services.request_queue import RequestQueue
from pricecheck.services.set_matcher import (
    deep_normalize,
    keywords,
    normalize_set_name,
    reorder_commander_hint,
    strip_qualifiers,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 5

SCORE_EXACT = 1000
SCORE_QUALIFIER_STRIPPED = 900
SCORE_DEEP = 850
SCORE_SUBSTRING = 500
SCORE_KEYWORD_BASE = 100
SCORE_KEYWORD_RANGE = 300
SCORE_SMALL_SET_FLOOR = 200

MIN_SUBSTRING_LENGTH = 4
MIN_KEYWORD_RATIO = 0.5
MIN_KEYWORD_OVERLAP = 2
SMALL_SET_WORDS = 3
MAX_SET_CODE_LENGTH = 6

# Exact tag matches only; "showcase" must not match "showcaseframe" etc.
SPECIAL_FRAME_EFFECTS = frozenset(
    {"extendedart", "showcase", "borderless", "inverted", "etched", "textured"}
)

_EXTRAS_HINT = re.compile(r"\b(extras|special|tokens|promos)\b", re.IGNORECASE)
_PROMOS_HINT = re.compile(r"\bpromos\b", re.IGNORECASE)
_PROMO_NUMBER = re.compile(r"[a-z]$", re.IGNORECASE)
_LEADING_DIGITS = re.compile(r"^\d+")


@dataclass(slots=True)
class MatchCandidate:
    """A printing scored against the set hint."""

    printing: dict[str, Any]
    score: float
    match_type: str


@dataclass(slots=True)
class _Entry:
    """A tied printing annotated for variant selection."""

    printing: dict[str, Any]
    number: str
    is_promo: bool
    is_special: bool
    sort_key: tuple[int, str] = field(init=False)

    def __post_init__(self) -> None:
        self.sort_key = collector_sort_key(self.number)


def collector_sort_key(number: str) -> tuple[int, str]:
    """Sort collector numbers by their leading integer ("12a" sorts as 12)."""
    match = _LEADING_DIGITS.match(number)
    return (int(match.group()) if match else 10**9, number)


def score_set_name(hint: str, set_name: str) -> MatchCandidate | None:
    """
    Score how well a printing's set name matches the hint.

    Returns:
        A candidate with its score and match type, or None for no match.
        The printing field is left empty for the caller to fill.
    """
    hint_norm = normalize_set_name(hint)
    set_norm = normalize_set_name(set_name)

    if hint_norm and hint_norm == set_norm:
        return MatchCandidate({}, SCORE_EXACT, "exact")
    if strip_qualifiers(hint_norm) and strip_qualifiers(hint_norm) == strip_qualifiers(set_norm):
        return MatchCandidate({}, SCORE_QUALIFIER_STRIPPED, "core")

    hint_deep = deep_normalize(hint)
    set_deep = deep_normalize(set_name)
    if hint_deep and hint_deep == set_deep:
        return MatchCandidate({}, SCORE_DEEP, "deep")
    if (
        len(hint_deep) >= MIN_SUBSTRING_LENGTH
        and len(set_deep) >= MIN_SUBSTRING_LENGTH
        and (hint_deep in set_deep or set_deep in hint_deep)
    ):
        return MatchCandidate({}, SCORE_SUBSTRING, "substring")

    hint_words = keywords(hint)
    set_words = keywords(set_name)
    score = 0.0
    match_type = ""

    overlap = len(hint_words & set_words)
    if hint_words and overlap >= MIN_KEYWORD_OVERLAP:
        ratio = overlap / len(hint_words)
        if ratio >= MIN_KEYWORD_RATIO:
            score = SCORE_KEYWORD_BASE + SCORE_KEYWORD_RANGE * ratio
            match_type = "keyword"

    if set_words and len(set_words) <= SMALL_SET_WORDS and set_words <= hint_words:
        if score < SCORE_SMALL_SET_FLOOR:
            score = SCORE_SMALL_SET_FLOOR
            match_type = "contained"

    if score <= 0:
        return None
    return MatchCandidate({}, score, match_type)


def _best_score(hints: list[str], set_name: str) -> MatchCandidate | None:
    best: MatchCandidate | None = None
    for hint in hints:
        candidate = score_set_name(hint, set_name)
        if candidate and (best is None or candidate.score > best.score):
            best = candidate
    return best


def _purchase_words(printing: dict[str, Any]) -> set[str]:
    """Lowercase words of the URL-decoded purchase links."""
    links = printing.get("purchase_uris") or {}
    text = " ".join(unquote(str(url)) for url in links.values())
    return set(re.split(r"[^a-z0-9]+", text.lower())) - {""}


def break_tie(hint: str, tied: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Narrow tied printings using hint words their set name does not explain.

    Each printing keeps its place if its purchase links contain every hint
    keyword missing from its own set name. The narrowed list is used only
    when it is non-empty and smaller than the input.
    """
    hint_words = keywords(hint)
    narrowed = []
    for printing in tied:
        missing = hint_words - keywords(str(printing.get("set_name", "")))
        if missing <= _purchase_words(printing):
            narrowed.append(printing)

    if narrowed and len(narrowed) < len(tied):
        logger.debug("Tie-break kept %d of %d printings", len(narrowed), len(tied))
        return narrowed
    return tied


def _expand_finishes(printing: dict[str, Any]) -> list[dict[str, Any]]:
    """Split a printing with etched plus other finishes into two entries."""
    finishes = list(printing.get("finishes") or [])
    others = [finish for finish in finishes if finish != "etched"]
    if "etched" in finishes and others:
        return [{**printing, "finishes": others}, {**printing, "finishes": ["etched"]}]
    return [printing]


def _annotate(printing: dict[str, Any]) -> _Entry:
    number = str(printing.get("collector_number", ""))
    frame_effects = printing.get("frame_effects") or []
    finishes = printing.get("finishes") or []
    return _Entry(
        printing=printing,
        number=number,
        is_promo=printing.get("promo") is True or bool(_PROMO_NUMBER.search(number)),
        is_special=(
            any(effect in SPECIAL_FRAME_EFFECTS for effect in frame_effects)
            or printing.get("border_color") == "borderless"
            or finishes == ["etched"]
        ),
    )


def _pick(entries: list[_Entry], variant: int | None) -> _Entry:
    index = min(variant - 1, len(entries) - 1) if variant is not None and variant >= 1 else 0
    return entries[index]


def select_variant(
    tied: list[dict[str, Any]],
    set_hint: str,
    variant: int | None,
) -> dict[str, Any]:
    """
    Choose one printing among printings tied on set name.

    Buckets:
        base   - lowest collector number that is neither promo nor special
        extras - every non-promo entry other than base
        promos - promo entries
    """
    entries = [_annotate(expanded) for printing in tied for expanded in _expand_finishes(printing)]
    if len(entries) == 1:
        return entries[0].printing

    by_number = sorted(entries, key=lambda entry: entry.sort_key)
    base = next((e for e in by_number if not e.is_promo and not e.is_special), None)
    extras = [e for e in by_number if e is not base and not e.is_promo]
    promos = [e for e in by_number if e.is_promo]

    logger.debug(
        "Base: %s | Extras: %s | Promos: %s",
        base.number if base else "none",
        ", ".join(e.number for e in extras),
        ", ".join(e.number for e in promos),
    )

    wants_promos = bool(_PROMOS_HINT.search(set_hint))
    wants_extras = bool(_EXTRAS_HINT.search(set_hint))
    has_variant = variant is not None and variant >= 1

    if wants_promos:
        if promos:
            return _pick(promos, variant).printing
    elif wants_extras:
        if extras:
            return _pick(extras, variant if has_variant else None).printing
    elif has_variant:
        return _pick(by_number, variant).printing
    elif base is not None:
        return base.printing

    return entries[0].printing


class PrintingResolver:
    """Selects the printing of a card that a set hint refers to."""

    def __init__(
        self,
        queue: RequestQueue,
        base_url: str,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> None:
        self._queue = queue
        self._base_url = base_url.rstrip("/")
        self.max_pages = max_pages

    async def fetch_printings(
        self, card_name: str, order: str = "set"
    ) -> list[dict[str, Any]] | None:
        """
        Fetch every printing of an exact card name, following pagination.

        Returns:
            Raw Scryfall card objects, or None when any page could not be
            fetched (a partial list is never returned)
        """
        query = quote(f'!"{card_name}"', safe="")
        url: str | None = f"{self._base_url}/cards/search?q={query}&unique=prints&order={order}"
        printings: list[dict[str, Any]] = []

        for _ in range(self.max_pages):
            if not url:
                break
            page = await self._queue.enqueue(url)
            if not isinstance(page, dict):
                return None
            printings.extend(page.get("data") or [])
            url = page.get("next_page") if page.get("has_more") else None

        return printings

    async def resolve_printing(
        self,
        card_name: str,
        set_hint: str,
        variant: int | None = None,
    ) -> dict[str, Any] | None:
        """
        Find the printing of card_name that set_hint refers to.

        Args:
            card_name: Exact card name (from a prior fuzzy lookup)
            set_hint: Free-text set/product name
            variant: 1-based variant index within the hinted set

        Returns:
            Raw Scryfall card object, or None when nothing can be selected
        """
        fetched = await self.fetch_printings(card_name)
        printings = [p for p in fetched or [] if not p.get("digital")]
        if not printings:
            return None

        logger.debug("Scoring %d printings of %s against %r", len(printings), card_name, set_hint)
        return self.choose(printings, set_hint, variant)

    def choose(
        self,
        printings: list[dict[str, Any]],
        set_hint: str,
        variant: int | None = None,
    ) -> dict[str, Any] | None:
        """Pure selection step over already fetched printings."""
        hints = [set_hint]
        reordered = reorder_commander_hint(set_hint)
        if reordered:
            hints.append(reordered)

        candidates: list[MatchCandidate] = []
        for printing in printings:
            scored = _best_score(hints, str(printing.get("set_name", "")))
            if scored is not None:
                scored.printing = printing
                candidates.append(scored)

        if candidates:
            best = max(candidates, key=lambda candidate: candidate.score)
            top = best.score
            tied = [c.printing for c in candidates if c.score == top]
            logger.debug(
                "Best score %s (%s): %s",
                top,
                best.match_type,
                ", ".join(f"{p.get('set_name')} #{p.get('collector_number')}" for p in tied),
            )
            if len(tied) > 1:
                tied = break_tie(set_hint, tied)
            return select_variant(tied, set_hint, variant)

        # Last resort: the hint may be a set code ("mh2")
        short = re.sub(r"[^a-zA-Z0-9]", "", set_hint).lower()
        if short and len(short) <= MAX_SET_CODE_LENGTH:
            for printing in printings:
                if str(printing.get("set", "")).lower() == short:
                    return printing

        return None


__all__ = [
    "MatchCandidate",
    "PrintingResolver",
    "SPECIAL_FRAME_EFFECTS",
    "break_tie",
    "collector_sort_key",
    "score_set_name",
    "select_variant",
]
