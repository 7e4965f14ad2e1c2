"""
Data Fidelity Test Suite for Student Level Analysis Dashboard

This test suite validates that:
1. Every count on the dashboard matches the uploaded sheet exactly
2. All students are accounted for
3. Grade/subject combinations are complete, with no invented counts
4. Percentages and subject totals are recomputable from the raw counts

The source sheet is re-parsed here with the csv module, independently of
load_data, so both paths have to agree.

Run with: pytest test_data_fidelity.py
"""

import csv
import io
from typing import Dict, Tuple

import pytest

from analysis import analyze_workbook

SOURCE_CSV = """Grade,Subject,On Level,Below Level
3,Math,18,7
3,Reading,20,5
3,Science,11,14
4,Math,15,12
4,Reading,,9
4,Science,22,3
5,Math,9,16
5,Reading,17,8
3,Math,1,1
5,Art,4,
"""


class TestDataFidelity:
    """Checks the dashboard output against the raw uploaded sheet."""

    def parse_csv_counts(self, text: str) -> Dict[Tuple[str, str], Dict[str, int]]:
        """
        Parse the source sheet directly.

        Returns:
            Dict mapping (grade, subject) -> {on_level, below_level}, first row wins
        """
        counts = {}
        for row in csv.DictReader(io.StringIO(text)):
            key = (row['Grade'].strip(), row['Subject'].strip())
            if key in counts:
                continue

            def to_int(raw):
                try:
                    return int(raw)
                except (ValueError, TypeError):
                    return 0

            counts[key] = {
                'on_level': to_int(row['On Level']),
                'below_level': to_int(row['Below Level'])
            }
        return counts

    @pytest.fixture
    def source(self):
        return self.parse_csv_counts(SOURCE_CSV)

    @pytest.fixture
    def analysis(self):
        return analyze_workbook(SOURCE_CSV.encode('utf-8'), 'levels.csv')

    def test_count_fidelity(self, source, analysis):
        """Every source combination shows up with exactly its first-row counts."""
        rows = {(r.grade, r.subject): r for r in analysis.chart_rows}

        mismatches = []
        for key, counts in source.items():
            if key not in rows:
                mismatches.append(f"MISSING: {key} not found in dashboard")
                continue
            row = rows[key]
            if (row.on_level, row.below_level) != (counts['on_level'], counts['below_level']):
                mismatches.append(
                    f"COUNT MISMATCH: {key} CSV: {counts}, "
                    f"Dashboard: {row.on_level}/{row.below_level}"
                )

        assert not mismatches, "\n".join(mismatches)

    def test_student_count(self, source, analysis):
        csv_students = sum(c['on_level'] + c['below_level'] for c in source.values())
        dashboard_students = sum(s.total for s in analysis.subject_totals)

        assert dashboard_students == csv_students

    def test_grade_subject_coverage(self, source, analysis):
        grades = {g for g, _ in source}
        subjects = {s for _, s in source}
        dashboard_pairs = {(r.grade, r.subject) for r in analysis.chart_rows}

        assert len(analysis.chart_rows) == len(grades) * len(subjects)
        assert dashboard_pairs == {(g, s) for g in grades for s in subjects}

        for row in analysis.chart_rows:
            if (row.grade, row.subject) not in source:
                assert row.on_level == row.below_level == 0

    def test_percentage_calculations(self, analysis):
        errors = []
        for row in analysis.chart_rows:
            total = row.on_level + row.below_level
            expected = round(row.on_level / total * 100, 1) if total else 0
            if abs(expected - row.on_level_percentage) > 0.1:
                errors.append(f"{row.label}: Expected {expected}%, got {row.on_level_percentage}%")

        assert not errors, "\n".join(errors)

    def test_subject_totals(self, source, analysis):
        for total in analysis.subject_totals:
            on_level = sum(c['on_level'] for (_, s), c in source.items() if s == total.subject)
            below_level = sum(c['below_level'] for (_, s), c in source.items() if s == total.subject)

            assert (total.on_level, total.below_level) == (on_level, below_level)
            assert total.on_level_percentage == round(on_level / (on_level + below_level) * 100, 1)

    def test_specific_rows(self, analysis):
        """Spot checks from reading the sheet by hand."""
        rows = {r.label: r for r in analysis.chart_rows}

        test_cases = [
            # (label, on_level, below_level, on_level_percentage)
            ("Math 3", 18, 7, 72.0),
            ("Reading 4", 0, 9, 0.0),
            ("Art 5", 4, 0, 100.0),
            ("Art 3", 0, 0, 0.0),
        ]

        for label, on_level, below_level, pct in test_cases:
            row = rows[label]
            assert (row.on_level, row.below_level, row.on_level_percentage) == (on_level, below_level, pct)
