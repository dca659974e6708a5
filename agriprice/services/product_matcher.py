"""Fuzzy matching of source product names to canonical products.

Three strategies are scored for every candidate and the best score wins:

1. Dictionary: a static table of canonical local (Azerbaijani) terms and
   their English synonyms.
2. Direct similarity: normalized Levenshtein similarity with the
   candidate's English name.
3. Token overlap: share of tokens that match exactly or nearly.

A result below ``MIN_MATCH_SCORE`` is reported as unmatched.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional

from agriprice.schemas.matching import CandidateProduct, MatchCandidate, MatchType

MIN_MATCH_SCORE = 50
DICTIONARY_SCORE = 100
REVERSE_DICTIONARY_SCORE = 95
ENGLISH_NAME_DICTIONARY_THRESHOLD = 70
TOKEN_SIMILARITY_THRESHOLD = 80

PRODUCT_DICTIONARY: Dict[str, List[str]] = {
    # Fruits
    "alma": ["apple", "apples", "dessert apple", "dessert apples"],
    "armud": ["pear", "pears", "dessert pear", "dessert pears"],
    "şaftalı": ["peach", "peaches"],
    "nektarin": ["nectarine", "nectarines"],
    "ərik": ["apricot", "apricots"],
    "gilas": ["cherry", "cherries", "sweet cherry", "sweet cherries"],
    "albalı": ["sour cherry", "sour cherries"],
    "gavalı": ["plum", "plums"],
    "üzüm": ["grape", "grapes", "table grape", "table grapes", "dessert grape"],
    "çiyələk": ["strawberry", "strawberries"],
    "moruq": ["raspberry", "raspberries"],
    "portağal": ["orange", "oranges"],
    "mandarin": ["mandarin", "mandarins", "clementine", "clementines"],
    "limon": ["lemon", "lemons"],
    "banan": ["banana", "bananas"],
    "qarpız": ["watermelon", "water melon", "water melons"],
    "yemiş": ["melon", "melons"],
    "kivi": ["kiwi", "kiwis", "kiwifruit"],
    "avokado": ["avocado", "avocados"],
    "əncir": ["fig", "figs", "fresh fig", "fresh figs"],
    "qoz": ["walnut", "walnuts"],
    "fındıq": ["hazelnut", "hazelnuts"],
    "badam": ["almond", "almonds"],
    # Vegetables
    "pomidor": ["tomato", "tomatoes"],
    "xiyar": ["cucumber", "cucumbers"],
    "bibər": ["pepper", "peppers", "capsicum"],
    "badımcan": ["eggplant", "egg plant", "aubergine"],
    "kabak": ["courgette", "courgettes", "zucchini"],
    "kələm": ["cabbage", "white cabbage", "red cabbage"],
    "gül kələm": ["cauliflower", "cauliflowers"],
    "brokoli": ["broccoli"],
    "ispanaq": ["spinach"],
    "kəvər": ["lettuce", "lettuces", "salad"],
    "yerkökü": ["carrot", "carrots"],
    "soğan": ["onion", "onions"],
    "sarımsaq": ["garlic"],
    "kartof": ["potato", "potatoes", "ware potato"],
    "lobya": ["bean", "beans", "green bean", "green beans"],
    "noxud": ["pea", "peas", "green pea", "green peas"],
    "pıras": ["leek", "leeks"],
    "göbələk": ["mushroom", "mushrooms", "cultivated mushroom"],
    "turp": ["radish"],
    "çuğundur": ["beetroot", "beet"],
    # Cereals
    "buğda": ["wheat", "soft wheat", "durum wheat"],
    "arpa": ["barley"],
    "yulaf": ["oat", "oats"],
    "qarğıdalı": ["maize", "corn"],
    "düyü": ["rice"],
    "çovdar": ["rye"],
}

# English synonym -> canonical local term
REVERSE_DICTIONARY: Dict[str, str] = {
    synonym.lower(): local for local, synonyms in PRODUCT_DICTIONARY.items() for synonym in synonyms
}

_TOKEN_SPLIT = re.compile(r"[\s\-_,]+")


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def levenshtein(a: str, b: str) -> int:
    """Edit distance (insert, delete, substitute all cost 1)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
        previous = current
    return previous[-1]


def similarity_score(a: str, b: str) -> int:
    """Case-insensitive similarity in 0..100."""
    a, b = a.lower(), b.lower()
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 100
    return _round_half_up((1 - levenshtein(a, b) / max_len) * 100)


def _tokens(value: str) -> List[str]:
    return [t for t in _TOKEN_SPLIT.split(value.lower()) if len(t) > 2]


def token_match_score(a: str, b: str) -> int:
    tokens_a = _tokens(a)
    tokens_b = _tokens(b)
    if not tokens_a or not tokens_b:
        return 0

    matched = 0
    for token_a in tokens_a:
        if any(token_a == token_b or similarity_score(token_a, token_b) > TOKEN_SIMILARITY_THRESHOLD for token_b in tokens_b):
            matched += 1

    return _round_half_up(matched / max(len(tokens_a), len(tokens_b)) * 100)


def dictionary_score(source_name: str, local_name: str, local_name_en: Optional[str]) -> int:
    source_lower = source_name.lower()
    local_lower = local_name.lower()

    for synonym in PRODUCT_DICTIONARY.get(local_lower, ()):
        if synonym in source_lower or source_lower in synonym:
            return DICTIONARY_SCORE

    for synonym, local_term in REVERSE_DICTIONARY.items():
        if synonym in source_lower and local_term in local_lower:
            return REVERSE_DICTIONARY_SCORE

    if local_name_en:
        score = similarity_score(source_name, local_name_en)
        if score > ENGLISH_NAME_DICTIONARY_THRESHOLD:
            return score

    return 0


def accept(best: MatchCandidate) -> MatchCandidate:
    """Apply the acceptance threshold to the best-scoring candidate."""
    if best.candidate_product_id is None or best.score < MIN_MATCH_SCORE:
        return MatchCandidate(source_name=best.source_name)
    return best


def resolve(source_name: str, candidates: Iterable[CandidateProduct]) -> MatchCandidate:
    """Pick the canonical product that best matches ``source_name``.

    Candidates are visited in ascending id order and a later candidate only
    wins with a strictly higher score, so ties go to the lowest id.
    """
    name = (source_name or "").strip()
    best = MatchCandidate(source_name=source_name)
    if not name:
        return best

    for candidate in sorted(candidates, key=lambda c: c.id):
        scores = [
            (dictionary_score(name, candidate.local_name, candidate.local_name_en), MatchType.DICTIONARY),
        ]
        if candidate.local_name_en:
            scores.append((similarity_score(name, candidate.local_name_en), MatchType.FUZZY))
        scores.append((token_match_score(name, candidate.local_name), MatchType.TOKEN))
        if candidate.local_name_en:
            scores.append((token_match_score(name, candidate.local_name_en), MatchType.TOKEN))

        for score, match_type in scores:
            if score > best.score:
                best = MatchCandidate(
                    source_name=source_name,
                    candidate_product_id=candidate.id,
                    score=score,
                    match_type=match_type,
                )

    return accept(best)
