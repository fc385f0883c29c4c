"""
Data models package for the Panchakarma Workload Allocator.

This package exports the three core pillars of the data architecture:
1. Demand (Patient, Procedure, Gender)
2. Supply (Scholar, SeniorityTier)
3. Output (Assignment, AssignedProcedure, DayRecord)
plus the static Procedure Catalog.
"""

from .patient import (
    Gender,
    Patient,
    Procedure
)

from .scholar import (
    Scholar,
    SeniorityTier
)

from .assignment import (
    AssignedProcedure,
    Assignment,
    DayRecord
)

from .catalog import (
    CATALOG,
    CatalogEntry,
    GRADE_POINTS,
    PROCEDURE_ALIASES,
    SORTED_PROCEDURE_KEYS,
    find_procedures,
    grade_table,
    lookup_procedure,
    make_procedure
)

__all__ = [
    # --- Demand Models ---
    "Gender",
    "Patient",
    "Procedure",

    # --- Supply Models ---
    "Scholar",
    "SeniorityTier",

    # --- Output Models ---
    "AssignedProcedure",
    "Assignment",
    "DayRecord",

    # --- Procedure Catalog ---
    "CATALOG",
    "CatalogEntry",
    "GRADE_POINTS",
    "PROCEDURE_ALIASES",
    "SORTED_PROCEDURE_KEYS",
    "find_procedures",
    "grade_table",
    "lookup_procedure",
    "make_procedure",
]
