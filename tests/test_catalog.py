"""
Tests for the procedure catalog and the daily notes parser
"""

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from generators.notes_parser import parse_daily_notes
from models import (
    CATALOG,
    GRADE_POINTS,
    Gender,
    SORTED_PROCEDURE_KEYS,
    find_procedures,
    grade_table,
    lookup_procedure,
    make_procedure,
)


def codes(text):
    return [e.code for e in find_procedures(text)]


class TestLookup:

    def test_abbreviation(self):
        entry = lookup_procedure("NB")
        assert entry.code == "basti-karma"
        assert entry.grade == 1
        assert entry.points == 3

    def test_case_and_whitespace_insensitive(self):
        assert lookup_procedure("  Shirodhara ").code == "shirodhara"

    def test_canonical_code(self):
        assert lookup_procedure("udar-lepa").name == "Udar Lepa"

    def test_unknown(self):
        assert lookup_procedure("snehapan") is None

    def test_points_follow_grade(self):
        for entry in CATALOG.values():
            assert entry.points == GRADE_POINTS[entry.grade]

    def test_keys_sorted_longest_first(self):
        lengths = [len(k) for k in SORTED_PROCEDURE_KEYS]
        assert lengths == sorted(lengths, reverse=True)

    def test_grade_table(self):
        table = grade_table()
        assert set(table) == {1, 2, 3}
        assert sum(len(v) for v in table.values()) == len(CATALOG)

    def test_make_procedure_is_frozen(self):
        proc = make_procedure(lookup_procedure("pichu"), "x-p0")
        assert (proc.id, proc.grade, proc.points) == ("x-p0", 3, 1)
        with pytest.raises(Exception):
            proc.points = 5


class TestFindProcedures:
    """Longest-match-first scan over free text"""

    def test_longest_key_wins(self):
        assert codes("2nd Udar lepa") == ["udar-lepa"]

    def test_phrase_beats_contained_word(self):
        assert codes("abhyanga swedan on kati") == ["abhyanga-swedana"]

    def test_abbreviation_not_matched_inside_word(self):
        assert codes("4th abhyanga over abdomen") == ["abhyanga"]

    def test_text_order(self):
        assert codes("9th pps + 5th AB + 6th kati basti + 6th pichu") == [
            "sthanika-abhyanga-potali-swedana",
            "basti-karma",
            "kati-basti",
            "pichu",
        ]

    def test_repeated_mention_reported_once(self):
        assert codes("7th sarvang swedan (do bp before sarvang swedan)") == ["sarvanga-swedana"]

    def test_ssps_not_split_into_pps(self):
        assert codes("6th SSPS") == ["shastik-shali-pinda-swedana"]

    def test_unknown_text_ignored(self):
        assert codes("pachan with chitrakadi vati") == []


class TestNotesParser:

    NOTES = """Procedures for 31/08/25

♀Females (3)

1) Babita-  7th abhyanga over lower back f/b pps  + 5th AB (sahacharadi taila) Dr Kamini
2) fiza - attendant
3) Nishu - pachan with chitrakadi vati

♂Male (2)

1)Jagprasad- 4th day snehapan with varunadi ghrita  + 6th SSPS Dr Akash
2) Ashish - Sthanika Abhyanga Swedana+ Attendant Dr Satrughna

OPD BASIS
1) Walkin - nasya
"""

    @pytest.fixture
    def patients(self):
        return parse_daily_notes(self.NOTES)

    def test_patient_count_and_order(self, patients):
        assert [p.name for p in patients] == ["Babita", "fiza", "Nishu", "Jagprasad", "Ashish"]
        assert [p.id for p in patients] == ["pt_001", "pt_002", "pt_003", "pt_004", "pt_005"]

    def test_sections_set_gender(self, patients):
        assert [p.gender for p in patients] == [Gender.FEMALE] * 3 + [Gender.MALE] * 2

    def test_procedures(self, patients):
        babita = patients[0]
        assert [p.code for p in babita.procedures] == [
            "abhyanga", "sthanika-abhyanga-potali-swedana", "basti-karma"
        ]
        assert babita.total_points == 6
        assert [p.id for p in babita.procedures] == ["pt_001-p0", "pt_001-p1", "pt_001-p2"]

    def test_attendant(self, patients):
        assert patients[1].is_attendant
        assert not patients[1].is_allocatable

    def test_attendant_word_with_procedures_is_patient(self, patients):
        ashish = patients[4]
        assert not ashish.is_attendant
        assert [p.code for p in ashish.procedures] == ["sthanika-abhyanga-swedana"]

    def test_no_known_procedure(self, patients):
        nishu = patients[2]
        assert nishu.procedures == []
        assert not nishu.is_attendant
        assert not nishu.is_allocatable

    def test_opd_section_skipped(self, patients):
        assert "Walkin" not in [p.name for p in patients]

    def test_empty_text(self):
        assert parse_daily_notes("") == []
