"""
Procedure Catalog for the Panchakarma Workload Allocator.

Static lookup from the free-text names used on the ward (abbreviations,
misspellings, synonyms) to a canonical procedure with its grade and points.

Grade 1 = High intensity (3 points)
Grade 2 = Medium intensity (2 points)
Grade 3 = Low intensity (1 point)
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Tuple

from .patient import Procedure

GRADE_POINTS: Dict[int, int] = {1: 3, 2: 2, 3: 1}


@dataclass(frozen=True)
class CatalogEntry:
    """A canonical procedure."""
    code: str
    name: str
    grade: int

    @property
    def points(self) -> int:
        return GRADE_POINTS[self.grade]


_ENTRIES: List[CatalogEntry] = [
    # --- Grade 1 ---
    CatalogEntry("shastik-shali-pinda-swedana", "Shastik Shali Pinda Swedana", 1),
    CatalogEntry("basti-karma", "Basti Karma (Karma Kal)", 1),
    CatalogEntry("sarvanga-abhyanga-potali-swedana", "Sarvanga Abhyanga + Potali Swedana", 1),
    CatalogEntry("shiro-basti", "Shiro Basti", 1),
    CatalogEntry("sarvanga-parisheka", "Sarvanga Parisheka", 1),
    CatalogEntry("pizhichil", "Pizhichil", 1),
    CatalogEntry("sarvanga-dhara", "Sarvanga Dhara", 1),
    CatalogEntry("sarvanga-udwartana", "Sarvanga Udwartana", 1),

    # --- Grade 2 ---
    CatalogEntry("janu-basti", "Janu Basti", 2),
    CatalogEntry("manya-basti", "Manya Basti", 2),
    CatalogEntry("kati-basti", "Kati Basti", 2),
    CatalogEntry("prishta-basti", "Prishta Basti", 2),
    CatalogEntry("sthanika-abhyanga-potali-swedana", "Sthanika Abhyanga + Potali Swedana", 2),
    CatalogEntry("sarvanga-abhyanga-swedana", "Sarvanga Abhyanga & Swedana", 2),
    CatalogEntry("sthanika-ruksha-swedana", "Sthanika Ruksha Swedana", 2),
    CatalogEntry("ruksha-swedana", "Ruksha Swedana", 2),
    CatalogEntry("upanaha", "Upanaha", 2),
    CatalogEntry("sthanika-dhara-parisheka", "Sthanika Dhara / Parisheka", 2),
    CatalogEntry("parisheka", "Parisheka", 2),
    CatalogEntry("janu-parisheka", "Janu Parisheka", 2),
    CatalogEntry("shirodhara", "Shirodhara", 2),
    CatalogEntry("takradhara", "Takradhara", 2),
    CatalogEntry("nasya", "Nasya", 2),

    # --- Grade 3 ---
    CatalogEntry("sthanika-abhyanga-swedana", "Sthanika Abhyanga & Swedana", 3),
    CatalogEntry("abhyanga-swedana", "Abhyanga & Swedana", 3),
    CatalogEntry("abhyanga", "Abhyanga", 3),
    CatalogEntry("pichu", "Pichu", 3),
    CatalogEntry("shiroabhyanga", "Shiroabhyanga", 3),
    CatalogEntry("sarvanga-swedana", "Sarvanga Swedana", 3),
    CatalogEntry("matra-basti", "Matra Basti", 3),
    CatalogEntry("lepa", "Lepa", 3),
    CatalogEntry("udar-lepa", "Udar Lepa", 3),
    CatalogEntry("karnapurana", "Karnapurana", 3),
    CatalogEntry("tarpana", "Tarpana", 3),
    CatalogEntry("vesthana", "Vesthana", 3),
    CatalogEntry("avagaha-swedana", "Avagaha Swedana", 3),
]

CATALOG: Dict[str, CatalogEntry] = {e.code: e for e in _ENTRIES}

# Ward spellings -> canonical code. Canonical names are added below.
PROCEDURE_ALIASES: Dict[str, str] = {
    "ssps": "shastik-shali-pinda-swedana",
    "shashik-shali pinda swedana": "shastik-shali-pinda-swedana",
    "nirhua basti": "basti-karma",
    "nb": "basti-karma",
    "anuvasan basti": "basti-karma",
    "ab": "basti-karma",
    "saravang abhyang + potali": "sarvanga-abhyanga-potali-swedana",
    "shiro-basti": "shiro-basti",
    "sarvang parikshek": "sarvanga-parisheka",
    "pizhichil": "pizhichil",
    "sarvanag dhara": "sarvanga-dhara",
    "sarvang udwartana": "sarvanga-udwartana",

    "janu-basti": "janu-basti",
    "manya-basti": "manya-basti",
    "kati basti": "kati-basti",
    "prishta basti": "prishta-basti",
    "sthanik potali + abhyang": "sthanika-abhyanga-potali-swedana",
    "sarvang abhyanga swedan": "sarvanga-abhyanga-swedana",
    "sarvanga abhyanga swedana": "sarvanga-abhyanga-swedana",
    "pps": "sthanika-abhyanga-potali-swedana",
    "jps": "sthanika-abhyanga-potali-swedana",
    "sthanik ruksha swedana": "sthanika-ruksha-swedana",
    "ruksha sweda": "ruksha-swedana",
    "upanhana": "upanaha",
    "sthanik dhara/parishek": "sthanika-dhara-parisheka",
    "parisheka": "parisheka",
    "janu parisheka": "janu-parisheka",
    "shirodhara": "shirodhara",
    "takradhara": "takradhara",
    "nasya": "nasya",

    "sthanika abhyanga swedana": "sthanika-abhyanga-swedana",
    "abhyanga swedan": "abhyanga-swedana",
    "abhyanga": "abhyanga",
    "pichu": "pichu",
    "shiroabhyanga": "shiroabhyanga",
    "sarvang swedan": "sarvanga-swedana",
    "sarvanga swedana": "sarvanga-swedana",
    "matra basti": "matra-basti",
    "lepa": "lepa",
    "udar lepa": "udar-lepa",
    "karnapurana": "karnapurana",
    "tarpana": "tarpana",
    "vesthana": "vesthana",
    "avgah sweda": "avagaha-swedana",
}
for _entry in _ENTRIES:
    PROCEDURE_ALIASES.setdefault(_entry.name.lower(), _entry.code)

# Longest keys first so 'udar lepa' wins over 'lepa' and 'abhyanga swedan' over 'abhyanga'
SORTED_PROCEDURE_KEYS: List[str] = sorted(PROCEDURE_ALIASES, key=len, reverse=True)

# Short abbreviations (nb, ab, pps) must stand alone; longer phrases may carry
# a suffix ('swedan' matches 'swedana').
_ABBREVIATION_MAX_LEN = 4


def _compile(key: str) -> Pattern:
    tail = r"(?![a-z])" if len(key) <= _ABBREVIATION_MAX_LEN else ""
    return re.compile(r"(?<![a-z])" + re.escape(key) + tail)


_KEY_PATTERNS: List[Tuple[str, Pattern]] = [(k, _compile(k)) for k in SORTED_PROCEDURE_KEYS]


def lookup_procedure(key: str) -> Optional[CatalogEntry]:
    """Exact, case-insensitive lookup of a single ward spelling or canonical code."""
    normalized = key.strip().lower()
    if normalized in CATALOG:
        return CATALOG[normalized]
    code = PROCEDURE_ALIASES.get(normalized)
    return CATALOG[code] if code else None


def find_procedures(text: str) -> List[CatalogEntry]:
    """
    Scan free text for every catalog procedure it mentions.

    Longest-match-first: once a span of text is claimed by a long key it cannot
    be claimed again by a shorter key contained in it. Results are returned in
    the order they appear in the text; repeated mentions of the same procedure
    are reported once. Unknown fragments are ignored.
    """
    lowered = text.lower()
    claimed = [False] * len(lowered)
    hits: List[Tuple[int, CatalogEntry]] = []

    for key, pattern in _KEY_PATTERNS:
        for match in pattern.finditer(lowered):
            start, end = match.span()
            if any(claimed[start:end]):
                continue
            for i in range(start, end):
                claimed[i] = True
            hits.append((start, CATALOG[PROCEDURE_ALIASES[key]]))

    hits.sort(key=lambda h: h[0])
    found: List[CatalogEntry] = []
    for _, entry in hits:
        if entry not in found:
            found.append(entry)
    return found


def make_procedure(entry: CatalogEntry, procedure_id: str) -> Procedure:
    """Instantiate an immutable Procedure from a catalog entry."""
    return Procedure(
        id=procedure_id,
        name=entry.name,
        code=entry.code,
        grade=entry.grade,
        points=entry.points,
    )


def grade_table() -> Dict[int, List[CatalogEntry]]:
    """Canonical procedures grouped by grade (for the rules / reference screen)."""
    table: Dict[int, List[CatalogEntry]] = {1: [], 2: [], 3: []}
    for entry in _ENTRIES:
        table[entry.grade].append(entry)
    return table
