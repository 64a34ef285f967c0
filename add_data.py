"""
Script to add sample data to a running Scorebook REST API.
Start the server first with ``scorebook --serve api --password <pin>``.

Usage:
    python add_data.py
"""

import os
import sys

import requests


def _console_supports_utf8() -> bool:
    enc = getattr(sys.stdout, "encoding", None)
    return enc is not None and "utf" in enc.lower()


_OK_CHAR = "✓" if _console_supports_utf8() else "[OK]"
_FAIL_CHAR = "✗" if _console_supports_utf8() else "[FAIL]"
_INFO_CHAR = "ℹ" if _console_supports_utf8() else "[INFO]"


def _detect_base_url() -> str:
    """Determine a reachable BASE_URL.

    Priority: environment variable `SCOREBOOK_BASE_URL`, then common local ports.
    If nothing responds, fall back to http://127.0.0.1:8000.
    """
    env = os.environ.get("SCOREBOOK_BASE_URL")
    if env:
        return env

    candidates = [
        "http://127.0.0.1:8000",
        "http://127.0.0.1:8888",
        "http://localhost:8000",
    ]

    for c in candidates:
        try:
            resp = requests.get(f"{c}/health", timeout=0.5)
            if resp.status_code == 200:
                return c
        except requests.exceptions.RequestException:
            continue

    return candidates[0]


BASE_URL = _detect_base_url()


def check_server():
    """Check if the server is running."""
    try:
        response = requests.get(f"{BASE_URL}/health", timeout=2)
        if response.status_code == 200:
            print(f"{_OK_CHAR} Server is running")
            return True
    except requests.exceptions.RequestException:
        pass
    print(f"{_FAIL_CHAR} Server is not running!")
    print("\nPlease start the server first:")
    print("  scorebook --serve api --password 1234")
    return False


def create_subject(name, code):
    """Create a new subject."""
    try:
        response = requests.post(f"{BASE_URL}/subjects", json={"name": name, "code": code})
        if response.status_code == 201:
            print(f"{_OK_CHAR} Created subject: {code} - {name}")
            return response.json()
        print(f"{_FAIL_CHAR} Failed to create subject: {response.text}")
    except requests.exceptions.RequestException as e:
        print(f"{_FAIL_CHAR} Error creating subject: {e}")
    return None


def create_class(subject_id, name):
    """Create a class inside a subject."""
    try:
        response = requests.post(f"{BASE_URL}/subjects/{subject_id}/classes", json={"name": name})
        if response.status_code == 201:
            print(f"{_OK_CHAR} Created class: {name}")
            return response.json()
        print(f"{_FAIL_CHAR} Failed to create class: {response.text}")
    except requests.exceptions.RequestException as e:
        print(f"{_FAIL_CHAR} Error creating class: {e}")
    return None


def import_candidates(subject_id, class_id, search="", limit=5):
    """Import up to ``limit`` master roster entries into a class."""
    base = f"{BASE_URL}/subjects/{subject_id}/classes/{class_id}"
    try:
        response = requests.get(f"{base}/candidates", params={"search": search})
        candidates = response.json() if response.status_code == 200 else []
        if not candidates:
            print(f"{_INFO_CHAR} No roster entries to import")
            return []
        entry_ids = [c["id"] for c in candidates[:limit]]
        response = requests.post(f"{base}/import", json={"entry_ids": entry_ids})
        if response.status_code == 201:
            students = response.json()
            print(f"{_OK_CHAR} Imported {len(students)} students")
            return students
        print(f"{_FAIL_CHAR} Failed to import students: {response.text}")
    except requests.exceptions.RequestException as e:
        print(f"{_FAIL_CHAR} Error importing students: {e}")
    return []


def set_score(subject_id, class_id, student_id, term, field, value):
    """Record one score for a student."""
    url = f"{BASE_URL}/subjects/{subject_id}/classes/{class_id}/students/{student_id}/score"
    try:
        response = requests.put(url, json={"term": term, "field": field, "value": value})
        if response.status_code == 200:
            return response.json()
        print(f"{_FAIL_CHAR} Failed to set score: {response.text}")
    except requests.exceptions.RequestException as e:
        print(f"{_FAIL_CHAR} Error setting score: {e}")
    return None


def list_students(subject_id, class_id):
    """List the students of a class with their grades."""
    url = f"{BASE_URL}/subjects/{subject_id}/classes/{class_id}/students"
    try:
        response = requests.get(url)
        if response.status_code == 200:
            students = response.json()
            print(f"\n{'='*60}")
            print(f"Students ({len(students)})")
            print(f"{'='*60}")
            for student in students:
                print(f"  {student['no']:>3} | {student['student_id']:8} | {student['name']:20} | "
                      f"{student['total']:6} | GP {student['grade_point']}")
            return students
        print(f"{_FAIL_CHAR} Failed to list students: {response.text}")
    except requests.exceptions.RequestException as e:
        print(f"{_FAIL_CHAR} Error listing students: {e}")
    return []


def get_statistics():
    """Get dashboard statistics."""
    try:
        response = requests.get(f"{BASE_URL}/statistics")
        if response.status_code == 200:
            stats = response.json()
            print(f"\n{'='*60}")
            print("Dashboard Statistics")
            print(f"{'='*60}")
            print(f"  Students:            {stats['count']}")
            print(f"  Average grade point: {stats['average_grade_point']:.2f}")
            print(f"  Highest total:       {stats['highest_total']}")
            return stats
        print(f"{_FAIL_CHAR} Failed to get statistics: {response.text}")
    except requests.exceptions.RequestException as e:
        print(f"{_FAIL_CHAR} Error getting statistics: {e}")
    return None


SAMPLE_SCORES = [
    {"c1": 8, "c2": 9, "c3": 7, "exam": 20},
    {"c1": 6, "c2": 5, "c3": 8, "exam": 15},
    {"c1": 10, "c2": 10, "c3": 9, "exam": 22},
]


def main():
    """Main execution."""
    print("="*60)
    print("Scorebook - Data Addition Script")
    print("="*60)
    print()

    if not check_server():
        sys.exit(1)

    print("\nCreating subjects and classes...")
    subject = create_subject("Mathematics", "MA101")
    if not subject:
        sys.exit(1)
    section = create_class(subject["id"], "3/1")
    if not section:
        sys.exit(1)

    print("\nImporting students from the master roster...")
    students = import_candidates(subject["id"], section["id"])

    print("\nRecording scores...")
    for index, student in enumerate(students):
        scores = SAMPLE_SCORES[index % len(SAMPLE_SCORES)]
        for term in ("midterm", "final"):
            for field, value in scores.items():
                set_score(subject["id"], section["id"], student["id"], term, field, value)
    print(f"{_OK_CHAR} Scores recorded")

    list_students(subject["id"], section["id"])
    get_statistics()

    print("\n" + "="*60)
    print(f"{_OK_CHAR} Sample data added successfully!")
    print("="*60)
    print("\nYou can now:")
    print(f"  - View API docs: {BASE_URL}/docs")
    print(f"  - List subjects: curl {BASE_URL}/subjects")
    print(f"  - Get statistics: curl {BASE_URL}/statistics")
    print(f"  - Check sync state: curl {BASE_URL}/sync")
    print()


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print(f"\n\n{_FAIL_CHAR} Interrupted by user")
        sys.exit(1)
