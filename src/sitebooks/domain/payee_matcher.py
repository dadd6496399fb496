"""Fuzzy matching of QuickBooks names against known payees.

Confidence is a percentage combining Jaro-Winkler similarity of the
normalized names, Levenshtein similarity and token overlap. Names at or above
the auto-match threshold are associated automatically; names between the
suggestion floor and the threshold are only suggested. Nothing below the
floor is surfaced, and no payee is ever created without a human decision.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from rapidfuzz.distance import JaroWinkler, Levenshtein

from sitebooks.config import ImportSettings
from sitebooks.domain.entities import Payee, PayeeType

AUTO_MATCH_THRESHOLD = 75.0
SUGGESTION_FLOOR = 40.0

_SUFFIXES = re.compile(r"\b(inc|llc|corp|company|co|construction|const|ltd|limited)\b")


@dataclass(frozen=True)
class PayeeMatch:
    """A candidate payee with its confidence."""

    payee: Payee
    confidence: float
    match_type: str  # "exact" or "fuzzy"


@dataclass(frozen=True)
class PayeeMatchResult:
    """All candidates for one QuickBooks name, best first."""

    qb_name: str
    matches: list[PayeeMatch] = field(default_factory=list)
    best_match: Optional[PayeeMatch] = None


def normalize_business_name(value: str) -> str:
    """Lowercase, drop punctuation and common business suffixes."""
    value = re.sub(r"[^\w\s]", "", (value or "").lower())
    value = _SUFFIXES.sub("", value)
    return " ".join(value.split())


def _tokenize(value: str) -> set[str]:
    return {token for token in normalize_business_name(value).split() if len(token) > 1}


def jaro_winkler_similarity(a: str, b: str) -> float:
    """Jaro-Winkler similarity in [0, 1]."""
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return JaroWinkler.similarity(a, b, prefix_weight=0.1)


def levenshtein_similarity(a: str, b: str) -> float:
    """1 - edit distance / longest length, in [0, 1]."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - Levenshtein.distance(a, b)) / longest


def token_similarity(a: str, b: str) -> float:
    """Jaccard overlap of the name tokens, in [0, 1]."""
    tokens_a = _tokenize(a)
    tokens_b = _tokenize(b)
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


def name_confidence(qb_name: str, candidate: str) -> float:
    """Confidence percentage that two names refer to the same business."""
    left = normalize_business_name(qb_name)
    right = normalize_business_name(candidate)
    if left == right:
        return 100.0

    jaro_winkler = jaro_winkler_similarity(left, right) * 100
    levenshtein = levenshtein_similarity(left, right) * 100
    tokens = token_similarity(qb_name, candidate) * 100

    # Token-heavy weighting rescues names that only differ by store numbers etc.
    confidence = max(
        jaro_winkler * 0.4 + levenshtein * 0.3 + tokens * 0.3,
        tokens * 0.6 + jaro_winkler * 0.4,
    )
    return round(confidence, 2)


def payee_confidence(qb_name: str, payee: Payee) -> float:
    """Best confidence against the payee name and its full name."""
    names = [payee.payee_name]
    if payee.full_name:
        names.append(payee.full_name)
    return max(name_confidence(qb_name, name) for name in names)


def _is_exact(qb_name: str, payee: Payee) -> bool:
    wanted = qb_name.strip().lower()
    if payee.payee_name.strip().lower() == wanted:
        return True
    return bool(payee.full_name) and payee.full_name.strip().lower() == wanted


def fuzzy_match_payee(
    qb_name: str,
    payees: Iterable[Payee],
    settings: Optional[ImportSettings] = None,
) -> PayeeMatchResult:
    """Score every payee against a QuickBooks name.

    Args:
        qb_name: Name as it appears in the CSV
        payees: Known payees
        settings: Thresholds; module defaults when omitted

    Returns:
        PayeeMatchResult with candidates at or above the suggestion floor,
        sorted by confidence (then payee name), and best_match set when the
        top candidate reaches the auto-match threshold.
    """
    floor = settings.suggestion_floor if settings else SUGGESTION_FLOOR
    threshold = settings.auto_match_threshold if settings else AUTO_MATCH_THRESHOLD

    if not qb_name or not qb_name.strip():
        return PayeeMatchResult(qb_name=qb_name or "")

    matches = []
    for payee in payees:
        if _is_exact(qb_name, payee):
            matches.append(PayeeMatch(payee=payee, confidence=100.0, match_type="exact"))
            continue
        confidence = payee_confidence(qb_name, payee)
        if confidence >= floor:
            matches.append(PayeeMatch(payee=payee, confidence=confidence, match_type="fuzzy"))

    matches.sort(key=lambda m: (-m.confidence, m.match_type != "exact", m.payee.payee_name.lower(), m.payee.id))

    best = matches[0] if matches and matches[0].confidence >= threshold else None
    return PayeeMatchResult(qb_name=qb_name, matches=matches, best_match=best)


def batch_fuzzy_match_payees(
    qb_names: Iterable[str], payees: list[Payee], settings: Optional[ImportSettings] = None
) -> list[PayeeMatchResult]:
    """Match several names against the same payee list."""
    return [fuzzy_match_payee(name, payees, settings) for name in qb_names]


def detect_payee_type_from_account(account_path: Optional[str]) -> PayeeType:
    """Guess the payee type from a QuickBooks account path."""
    if not account_path:
        return PayeeType.OTHER

    lower = account_path.lower()
    if "contract labor" in lower or "subcontractor" in lower:
        return PayeeType.SUBCONTRACTOR
    if "materials" in lower or "supplies" in lower:
        return PayeeType.MATERIAL_SUPPLIER
    if "equipment" in lower or "rental" in lower:
        return PayeeType.EQUIPMENT_RENTAL
    if "permit" in lower or "license" in lower:
        return PayeeType.PERMIT_AUTHORITY
    return PayeeType.OTHER
