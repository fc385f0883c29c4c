"""
Daily notes parser.

Reads the semi-structured notes the ward writes every morning and turns them
into Patient objects the allocator can consume:

    ♀Females (2)
    1) Babita - 7th abhyanga over lower back f/b pps + 5th AB Dr Kamini
    2) fiza - attendant

    ♂Male (1)
    1) Sandeep - 13th Manya basti + 7th AB Dr Satrughna

Procedures are recognised with the catalog's longest-match-first scan.
Text that matches no procedure is ignored.
"""

import logging
import re
from typing import List, Optional

from models import Gender, Patient, find_procedures, make_procedure

logger = logging.getLogger(__name__)

_PATIENT_LINE = re.compile(r"^\s*\d+\)\s*(?P<name>[^-]+?)\s*-\s*(?P<rest>.*)$")


def _section_gender(line: str) -> Optional[Gender]:
    lowered = line.strip().lower()
    if "♀" in line or lowered.startswith("female"):
        return Gender.FEMALE
    if "♂" in line or lowered.startswith("male"):
        return Gender.MALE
    return None


def parse_daily_notes(text: str) -> List[Patient]:
    """
    Parse a day's notes into patients, in the order they appear.
    Numbered lines outside a Female/Male section (e.g. under 'OPD BASIS') are skipped.
    """
    patients: List[Patient] = []
    current_gender: Optional[Gender] = None

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue

        gender = _section_gender(line)
        if gender is not None:
            current_gender = gender
            continue

        match = _PATIENT_LINE.match(line)
        if not match:
            if line.lower().startswith("opd"):
                current_gender = None
            continue

        if current_gender is None:
            logger.debug(f"Skipping line outside a ward section: {line}")
            continue

        patient_id = f"pt_{len(patients) + 1:03d}"
        rest = match.group("rest")
        entries = find_procedures(rest)
        procedures = [make_procedure(e, f"{patient_id}-p{i}") for i, e in enumerate(entries)]
        is_attendant = not procedures and "attendant" in rest.lower()

        patients.append(Patient(
            id=patient_id,
            name=match.group("name").strip(),
            gender=current_gender,
            procedures=procedures,
            is_attendant=is_attendant,
        ))

    logger.info(
        f"Parsed {len(patients)} patients "
        f"({sum(1 for p in patients if p.is_attendant)} attendants)"
    )
    return patients
