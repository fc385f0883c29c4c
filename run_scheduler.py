"""
Main Execution Script for the Panchakarma Workload Allocator.
Loads (or generates) one day of patients and scholars, derives continuity from
the previous recorded day, allocates, reports, and exports.
"""

import os
import sys
import logging
from datetime import date
import json
from typing import List, Optional, Tuple

from pydantic import ValidationError

# Add current directory to path so imports work
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from generators.notes_parser import parse_daily_notes
from models import DayRecord, Gender, Patient, Scholar
from scheduler.config import AllocationConfig
from scheduler.continuity import latest_continuity
from scheduler.engine import WorkloadAllocator
from scheduler.export import generate_export_text
from scheduler.scoring import analyze_distribution, suggest_improvements

# Configure logging
logging.basicConfig(
    level=os.environ.get("ALLOCATOR_LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger("Main")

# --- CONFIGURATION ---
CACHE_FILENAME = "day_data.json"
HISTORY_FILENAME = "assignment_history.json"
EXPORT_FILENAME = "daily_assignments.txt"
CONFIG_FILENAME = os.environ.get("ALLOCATOR_CONFIG")
USE_CACHE = True  # Set to False to force new AI generation
USE_GENAI = bool(os.environ.get("GOOGLE_API_KEY"))
HISTORY_DAYS = 7
# ---------------------

DEFAULT_SCHOLARS: List[Scholar] = [
    # 1st Year
    Scholar(id="s1", name="Dr. Akash", year=1, gender=Gender.MALE, is_posted=True),
    Scholar(id="s2", name="Dr. Pratibha", year=1, gender=Gender.FEMALE, is_posted=True),
    Scholar(id="s3", name="Dr. Kamini", year=1, gender=Gender.FEMALE, is_posted=True),
    # 2nd Year
    Scholar(id="s4", name="Dr. Ritu", year=2, gender=Gender.FEMALE, is_posted=True),
    Scholar(id="s5", name="Dr. Anjali", year=2, gender=Gender.FEMALE, is_posted=True),
    Scholar(id="s6", name="Dr. Ayushi", year=2, gender=Gender.FEMALE, is_posted=False),
    Scholar(id="s7", name="Dr. Jolly", year=2, gender=Gender.FEMALE, is_posted=False),
    # 3rd Year
    Scholar(id="s8", name="Dr. Deepak", year=3, gender=Gender.MALE, is_posted=False),
    Scholar(id="s9", name="Dr. Aniket", year=3, gender=Gender.MALE, is_posted=False),
    Scholar(id="s10", name="Dr. Satrughna", year=3, gender=Gender.MALE, is_posted=True),
    Scholar(id="s11", name="Dr. Ritika", year=3, gender=Gender.FEMALE, is_posted=False),
]

DEFAULT_NOTES = """Procedures for today

♀Females (6)

1) Babita-  7th abhyanga over lower back f/b pps  + 5th AB (sahacharadi taila)
2) nazreen- 10th parisheka with dashamula kwath + 5th NB with Dashmula Panchtikta
3) fiza - attendant
4) Champa - 9th  pps + 5th AB + 6th  kati basti + 6th pichu over rt toe
5) Rajkumari - 4th NB (yashtyadi) + abhyanga swedan on kati and udar Pradesh
6) Chandrawati - 7th sarvang swedan + 3rd NB

♂Male (4)

1)Jagprasad- 4th day snehapan with varunadi ghrita  + 6th SSPS
2) Sandeep  - 13th Manya basti ( Murchitta tila taila) + 7th AB balaguduchyadi taila
3) Moolchand -  10th  kati basti + 9th PPS + 4th abhyanga + 1st Ruksha sweda over abdomen
4) Narendra -2nd Udar lepa, 1st avgah sweda

OPD BASIS
Not Any
"""


def save_day_record(record: DayRecord, filename: str):
    """Helper to save today's inputs so a rerun does not regenerate them."""
    with open(filename, 'w', encoding='utf-8') as f:
        json.dump(record.model_dump(mode='json'), f, indent=2, ensure_ascii=False)
    logger.info(f"Saved day data to {filename}")


def load_cached_day(filename: str) -> Tuple[Optional[List[Patient]], Optional[List[Scholar]]]:
    """
    Helper to load JSON data and reconstruct pydantic objects.
    """
    try:
        with open(filename, 'r', encoding='utf-8') as f:
            record = DayRecord(**json.load(f))
        logger.info(f"Cache Loaded: {len(record.patients or [])} patients, {len(record.scholars or [])} scholars.")
        return record.patients, record.scholars
    except (FileNotFoundError, json.JSONDecodeError, ValidationError):
        logger.warning(f"Cache file {filename} not found or invalid. Falling back to defaults.")
        return None, None


def load_history(filename: str) -> List[DayRecord]:
    try:
        with open(filename, 'r', encoding='utf-8') as f:
            return [DayRecord(**item) for item in json.load(f)]
    except (FileNotFoundError, json.JSONDecodeError, ValidationError):
        return []


def save_history(history: List[DayRecord], today: DayRecord, filename: str):
    """Replace today's record if present and keep the most recent HISTORY_DAYS days."""
    kept = [r for r in history if r.date != today.date] + [today]
    kept.sort(key=lambda r: r.date, reverse=True)
    with open(filename, 'w', encoding='utf-8') as f:
        json.dump([r.model_dump(mode='json') for r in kept[:HISTORY_DAYS]], f, indent=2, ensure_ascii=False)


def export_dashboard_data(state, metrics, filename="dashboard_data.json"):
    """
    Serializes the allocation and its metrics for the frontend.
    """
    data = {
        "assignments": [a.model_dump(mode='json') for a in state.get_assignments()],
        "statistics": state.get_statistics(),
        "failures": state.get_failure_report(),
        "metrics": metrics.model_dump(mode='json'),
    }
    with open(filename, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    logger.info(f"Dashboard data exported to {filename}")


def acquire_day(
    cache_filename: str = CACHE_FILENAME,
    use_cache: bool = USE_CACHE,
    use_genai: bool = USE_GENAI
) -> Tuple[List[Patient], List[Scholar]]:
    """
    Cache first, then GenAI, then the built-in defaults.
    A cached day with no patients is kept as is.
    """
    patients, scholars = (None, None)
    if use_cache:
        patients, scholars = load_cached_day(cache_filename)

    if patients is None and use_genai:
        from generators.data_factory import DayGenerator
        generator = DayGenerator()
        generated_patients, generated_scholars, cost = generator.generate_day()
        logger.info(f"Total Estimated LLM Cost: ${cost:.4f}")
        # Generation failures come back empty
        patients = generated_patients or None
        scholars = generated_scholars or scholars

    if patients is None:
        patients = parse_daily_notes(DEFAULT_NOTES)
    if scholars is None:
        scholars = DEFAULT_SCHOLARS
    return patients, scholars


def main():
    logger.info("Starting Panchakarma Workload Allocator...")
    today = date.today()

    config = AllocationConfig.from_file(CONFIG_FILENAME) if CONFIG_FILENAME else AllocationConfig()
    config = AllocationConfig.from_env(config)

    # --- PHASE 1: DATA ACQUISITION (Cache vs. GenAI vs. Defaults) ---
    patients, scholars = acquire_day()

    save_day_record(DayRecord(date=today, patients=patients, scholars=scholars), CACHE_FILENAME)

    # --- PHASE 2: ALLOCATION ---
    history = load_history(HISTORY_FILENAME)
    continuity_map = latest_continuity(history, before=today)

    state = WorkloadAllocator(patients, scholars, continuity_map, config).run()
    assignments = state.get_assignments()

    # --- PHASE 3: REPORTING ---
    metrics = analyze_distribution(assignments, continuity_map)
    stats = state.get_statistics()

    print("\n" + "=" * 50)
    print("DAILY ALLOCATION REPORT")
    print("=" * 50)
    for a in assignments:
        print(f"{a.scholar.name:<16} Y{int(a.scholar.year)} {a.scholar.gender.value} "
              f"{a.total_points:>3} pts (target {a.target_points:.1f}) {a.patient_names}")
    print(f"\nBalance {metrics.balance_score:.1f} | Specialization {metrics.specialization_score:.1f} "
          f"| Overall {metrics.overall_score:.1f}")
    for line in suggest_improvements(metrics):
        print(f" - {line}")

    if stats["skipped_patients"]:
        print("\nUNASSIGNED PATIENTS")
        for fail in state.get_failure_report():
            if fail["terminal"]:
                print(f" x {fail['patient_name']}: {fail['reason']}")

    # --- PHASE 4: EXPORT ---
    text = generate_export_text(assignments)
    with open(EXPORT_FILENAME, 'w', encoding='utf-8') as f:
        f.write(text)
    export_dashboard_data(state, metrics)
    save_history(history, DayRecord(date=today, assignments=assignments), HISTORY_FILENAME)

    print("\n" + text)


if __name__ == "__main__":
    main()
