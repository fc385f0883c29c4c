"""
Continuity of care.

A returning patient keeps the scholar who treated them on the most recent
prior day with recorded data. This module builds that patient -> scholar map
from past records and resolves it against today's patients.
"""

import logging
from datetime import date as date_type
from typing import Dict, Iterable, List, Optional

from models import Assignment, DayRecord, Patient

logger = logging.getLogger(__name__)

ContinuityMap = Dict[str, str]  # patient name -> scholar name


def resolve_continuity(continuity_map: ContinuityMap, patients: Iterable[Patient]) -> Dict[str, Optional[str]]:
    """
    Map every patient id to yesterday's scholar name, or None when the
    patient has no continuity preference.
    """
    return {p.id: continuity_map.get(p.name) for p in patients}


def extract_continuity(assignments: Iterable[Assignment]) -> ContinuityMap:
    """
    Build patient name -> scholar name from one day's assignments.
    If a patient was split across scholars, the first assignment scanned wins.
    """
    mapping: ContinuityMap = {}
    for assignment in assignments:
        for item in assignment.procedures:
            mapping.setdefault(item.patient_name, assignment.scholar.name)
    return mapping


def latest_continuity(records: Iterable[DayRecord], before: date_type) -> ContinuityMap:
    """
    Continuity map from the most recent record strictly before `before`
    that actually holds assigned procedures. Empty if there is none.
    """
    candidates: List[DayRecord] = [r for r in records if r.date < before and r.has_assignments]
    if not candidates:
        logger.info(f"No prior day with assignments before {before}; continuity disabled")
        return {}
    latest = max(candidates, key=lambda r: r.date)
    mapping = extract_continuity(latest.assignments)
    logger.debug(f"Continuity from {latest.date}: {len(mapping)} patients")
    return mapping
