#!/usr/bin/env python3
"""
Demo scenario for the Scorebook platform.

Runs against the on-device backend and then the SQLite document store, so it
needs no network access.
"""

import asyncio
import os
import shutil
import sys
import tempfile

# Add the project root to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from scorebook.config import configure_logging, load_config
from scorebook.core.entities import MasterRosterEntry
from scorebook.core.grading import summarize_student
from scorebook.core.roster import MasterRoster
from scorebook.main import ScorebookPlatform


SAMPLE_ROSTER = [
    MasterRosterEntry("M001", "Anan Srisuk", "3/1"),
    MasterRosterEntry("M002", "Benja Kaewta", "3/1"),
    MasterRosterEntry("M003", "Chalida Wong", "3/1"),
    MasterRosterEntry("M004", "Dao Rattana", "3/2"),
    MasterRosterEntry("M005", "Ekachai Boon", "3/2"),
]


def build_config(workdir, backend_type):
    config = load_config(environ={})
    config.update({
        'backend_type': backend_type,
        'local_storage_path': os.path.join(workdir, 'local.json'),
        'database_config': {'database_path': os.path.join(workdir, 'documents.db')},
        'saving_indicator_hold': 0,
        'seed_subject': {'name': 'Science', 'code': 'SC301', 'class_labels': ['3/2']},
    })
    return config


def create_platform(workdir, backend_type):
    platform = ScorebookPlatform(build_config(workdir, backend_type))
    # The demo roster is in memory rather than in a file.
    platform._roster = MasterRoster(SAMPLE_ROSTER)
    return platform


async def demonstrate_gradebook(platform):
    """Create, import, score and report on one class."""
    service = platform.login("2468")

    print("  Loading durable record...")
    result = await service.store.load()
    print(f"    {result.status.value}: {result.message}")
    print(f"    Subjects visible: {[s.name for s in service.subjects]}")

    print("  Creating subject and class...")
    subject = await service.create_subject("Mathematics", "MA101")
    section = await service.create_class(subject.id, "3/1")

    print("  Importing from the master roster...")
    candidates = service.candidates(subject.id, section.id, platform.roster, "3/1")
    students = await service.import_students(subject.id, section.id, candidates)
    for student in students:
        print(f"    #{student.no} {student.student_id} {student.name}")

    print("  Recording scores...")
    for index, student in enumerate(students):
        for term in ("midterm", "final"):
            await service.update_score(subject.id, section.id, student.id, term, "c1", 10)
            await service.update_score(subject.id, section.id, student.id, term, "exam", str(20 + index * 5))

    print("  Class report:")
    for student, summary in service.class_report(subject.id, section.id):
        print(f"    {student.name:15} total {summary.total:5} GP {summary.grade_point} ({summary.tier.value})")

    stats = service.statistics()
    print(f"  Dashboard: {stats.count} students, average GP {stats.average_grade_point:.2f}, "
          f"highest total {stats.highest_total}")
    print(f"  Sync state: {service.store.describe()}")

    await platform.logout()


async def demonstrate_reload(workdir, backend_type):
    """A fresh session over the same storage sees the saved tree."""
    platform = create_platform(workdir, backend_type)
    service = platform.login("2468")
    await service.store.load()
    print(f"  Reloaded subjects: {[s.name for s in service.subjects]}")
    await platform.logout()


def run_demo():
    """Run the Scorebook demo on both offline backends."""
    print("=" * 60)
    print("SCOREBOOK GRADEBOOK PLATFORM - DEMO")
    print("=" * 60)

    configure_logging('WARNING')
    workdir = tempfile.mkdtemp(prefix="scorebook_demo_")

    try:
        for step, backend_type in enumerate(("local", "document"), start=1):
            print(f"\n{step}. Gradebook on the {backend_type} backend...")
            platform = create_platform(workdir, backend_type)
            asyncio.run(demonstrate_gradebook(platform))
            asyncio.run(demonstrate_reload(workdir, backend_type))

        print("\n" + "=" * 60)
        print("DEMO COMPLETED SUCCESSFULLY!")
        print("=" * 60)

    finally:
        shutil.rmtree(workdir, ignore_errors=True)


if __name__ == "__main__":
    run_demo()
