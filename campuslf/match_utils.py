import re
from dataclasses import asdict, dataclass, is_dataclass
from datetime import date, datetime
from typing import Optional


STOPWORDS = {
    "the", "a", "an", "and", "or", "of", "for", "to", "with", "on", "in",
    "at", "is", "it", "this", "that",
}

CATEGORY_WEIGHT = 0.3
KEYWORD_WEIGHT = 0.4
LOCATION_WEIGHT = 0.2
DATE_WEIGHT = 0.1
MATCH_THRESHOLD = 0.45
DATE_WINDOW_DAYS = 7

KINDS = ("lost", "found")
DATE_FIELDS = {"lost": "date_lost", "found": "date_found"}

_NON_WORD_RE = re.compile(r"[^a-z0-9\s]")
_SPACE_RE = re.compile(r"\s+")
_ISO_DATE_RE = re.compile(r"(\d{4}-\d{2}-\d{2})(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:\d{2})?)?")


def other_kind(kind: str) -> str:
    return "found" if kind == "lost" else "lost"


def _blank_to_none(value):
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


@dataclass(frozen=True)
class MatchItem:
    """Fields of a lost or found report that take part in scoring."""

    name: str = ""
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    date: Optional[object] = None
    id: Optional[int] = None
    status: Optional[str] = None

    @classmethod
    def from_row(cls, row, kind: str):
        d = dict(row)
        raw_date = d.get(DATE_FIELDS.get(kind, "date"))
        if raw_date is None:
            raw_date = d.get("date")
        return cls(
            name=(d.get("item_name") or d.get("name") or ""),
            description=_blank_to_none(d.get("description")),
            category=_blank_to_none(d.get("category")),
            location=_blank_to_none(d.get("location")),
            date=_blank_to_none(raw_date),
            id=d.get("id"),
            status=d.get("status"),
        )

    def text(self) -> str:
        return f"{self.name or ''} {self.description or ''}"


@dataclass(frozen=True)
class MatchResult:
    item: object
    score: float

    def as_dict(self):
        item = self.item
        if is_dataclass(item):
            item = asdict(item)
        elif not isinstance(item, dict):
            item = dict(item)
        return {"item": item, "score": self.score}


def normalize_text(text) -> str:
    if text is None:
        return ""
    txt = str(text).lower()
    txt = _NON_WORD_RE.sub(" ", txt)
    return _SPACE_RE.sub(" ", txt).strip()


def tokenize_text(text):
    return [t for t in normalize_text(text).split(" ") if t and t not in STOPWORDS]


def keyword_score(a, b) -> float:
    sa = set(tokenize_text(a))
    sb = set(tokenize_text(b))
    return len(sa & sb) / max(1, len(sa), len(sb))


def location_score(loc_a, loc_b) -> float:
    if not loc_a or not loc_b:
        return 0.0
    if normalize_text(loc_a) == normalize_text(loc_b):
        return 1.0
    return keyword_score(loc_a, loc_b)


def parse_iso_date(value):
    """Return a ``date`` for ISO-8601 input, or None.

    Accepts ``date``/``datetime`` objects, zero-padded ``YYYY-MM-DD`` and
    ISO datetime strings such as ``2024-03-01T10:15:00Z`` (only the date part
    is kept). Everything else is rejected.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    m = _ISO_DATE_RE.fullmatch(value.strip())
    if not m:
        return None
    try:
        return date.fromisoformat(m.group(1))
    except ValueError:
        return None


def date_proximity_score(date_a, date_b) -> float:
    da = parse_iso_date(date_a)
    db = parse_iso_date(date_b)
    if da is None or db is None:
        return 0.0
    diff_days = abs((db - da).days)
    if diff_days > DATE_WINDOW_DAYS:
        return 0.0
    return 1 - (diff_days / DATE_WINDOW_DAYS)


def category_matches(cat_a, cat_b) -> bool:
    if not cat_a or not cat_b:
        return False
    return normalize_text(cat_a) == normalize_text(cat_b)


def match_score(lost: MatchItem, found: MatchItem) -> float:
    score = 0.0
    if category_matches(lost.category, found.category):
        score += CATEGORY_WEIGHT
    score += KEYWORD_WEIGHT * keyword_score(lost.text(), found.text())
    score += LOCATION_WEIGHT * location_score(lost.location, found.location)
    score += DATE_WEIGHT * date_proximity_score(lost.date, found.date)
    return min(1.0, max(0.0, score))


def rank_matches(new_item: MatchItem, new_kind: str, candidates, candidate_records=None):
    """Score ``candidates`` against ``new_item`` and keep those above threshold.

    ``candidates`` are MatchItem records of the opposite kind. When
    ``candidate_records`` is given (it must have the same length), each result carries the
    matching record instead of the MatchItem, so callers get their rows back
    unmodified. Results are sorted by score, highest first.
    """
    if candidate_records is None:
        candidate_records = candidates

    results = []
    for cand, record in zip(candidates, candidate_records, strict=True):
        if new_kind == "lost":
            score = match_score(new_item, cand)
        else:
            score = match_score(cand, new_item)
        if score < MATCH_THRESHOLD:
            continue
        results.append(MatchResult(item=record, score=score))

    results.sort(key=lambda r: r.score, reverse=True)
    return results


def find_matches(new_item: MatchItem, new_kind: str, rows):
    """Rank store rows of the opposite kind against a new report."""
    rows = list(rows or [])
    candidates = [MatchItem.from_row(r, other_kind(new_kind)) for r in rows]
    return rank_matches(new_item, new_kind, candidates, [dict(r) for r in rows])
