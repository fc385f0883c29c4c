"""
Export formatting.

Turns the scholar-centric allocation into the patient-centric message the
ward circulates every morning, and reads such a message back into a
continuity map for the next day.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List

from models import Assignment, Gender, Procedure, Scholar
from .continuity import ContinuityMap


@dataclass
class ScholarGroup:
    scholar: Scholar
    procedures: List[Procedure] = field(default_factory=list)


@dataclass
class PatientExport:
    name: str
    gender: Gender
    # Keyed by scholar id; insertion order is the order scholars were scanned
    groups: Dict[str, ScholarGroup] = field(default_factory=dict)


def build_patient_map(assignments: List[Assignment]) -> Dict[str, PatientExport]:
    """
    Regroup assignments by patient. Order-preserving, no allocation logic.
    """
    patients: Dict[str, PatientExport] = {}
    for assignment in assignments:
        scholar = assignment.scholar
        for item in assignment.procedures:
            entry = patients.setdefault(
                item.patient_name,
                PatientExport(name=item.patient_name, gender=item.patient_gender)
            )
            group = entry.groups.setdefault(scholar.id, ScholarGroup(scholar=scholar))
            group.procedures.append(item.procedure)
    return patients


def _format_group(patients: List[PatientExport]) -> str:
    lines = []
    for index, patient in enumerate(patients, start=1):
        parts = [
            f"{' + '.join(p.name for p in group.procedures)} **{group.scholar.name}**"
            for group in patient.groups.values()
        ]
        lines.append(f"{index}) {patient.name} - {' + '.join(parts)}")
    return "\n".join(lines)


def generate_export_text(assignments: List[Assignment]) -> str:
    """
    The daily message: females block, then males block.
    Scholar names are wrapped in ** for bold in chat apps.
    """
    patients = list(build_patient_map(assignments).values())
    females = [p for p in patients if p.gender == Gender.FEMALE]
    males = [p for p in patients if p.gender == Gender.MALE]

    output = f"♀Females ({len(females)})\n\n"
    output += _format_group(females)
    output += f"\n\n♂Male ({len(males)})\n\n"
    output += _format_group(males)
    return output.strip()


_ASSIGNMENT_LINE = re.compile(r"^\d+\)\s*([^-]+?)\s*-.*?\*\*(.*?)\*\*")


def parse_previous_assignments(text: str) -> ContinuityMap:
    """
    Rebuild patient name -> scholar name from a previous day's export text.
    Lines that do not look like an assignment are ignored.
    """
    mapping: ContinuityMap = {}
    if not text:
        return mapping

    for line in text.split("\n"):
        match = _ASSIGNMENT_LINE.match(line.strip())
        if not match:
            continue
        patient_name = match.group(1).strip()
        scholar_name = match.group(2).strip()
        if patient_name and scholar_name:
            mapping[patient_name] = scholar_name
    return mapping
