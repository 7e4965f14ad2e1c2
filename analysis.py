"""
Grade x Subject Level Analysis

Builds the dense grade/subject grid from uploaded records, rolls it up
into per-subject and per-grade percentages, and ranks the results into
the insights shown on the dashboard.

Percentages everywhere follow one rule: count / total * 100 rounded to
one decimal, or 0 when the total is 0.
"""

import logging
from dataclasses import asdict, dataclass, field, replace
from typing import List, Optional, Sequence

import pandas as pd

from config import (
    GRADE_STANDING_LABELS,
    PRIORITY_CLASS_COUNT,
    PRIORITY_THRESHOLD,
    STRONGEST_SUBJECT_COUNT,
    WEAKEST_SUBJECT_COUNT,
)
from load_data import DashboardError, IngestionError, Record, load_records

logger = logging.getLogger(__name__)


class ComputationError(DashboardError):
    """An aggregate came out inconsistent with its counts."""


@dataclass(frozen=True)
class GridCell:
    """One grade-subject combination of the dense grid."""
    grade: str
    subject: str
    on_level: int
    below_level: int


@dataclass(frozen=True)
class ChartRow:
    """Grid cell with its on/below level percentages."""
    grade: str
    subject: str
    on_level: int
    below_level: int
    on_level_percentage: float
    below_level_percentage: float

    @property
    def label(self) -> str:
        return f"{self.subject} {self.grade}"


@dataclass(frozen=True)
class SubjectTotal:
    """Subject performance summed over all grades."""
    subject: str
    on_level: int
    below_level: int
    total: int
    on_level_percentage: float
    below_level_percentage: float


@dataclass(frozen=True)
class GradeTotal:
    """Grade performance summed over all subjects."""
    grade: str
    on_level: int
    total: int
    on_level_percentage: float
    standing: Optional[str] = None


@dataclass(frozen=True)
class Aggregates:
    chart_rows: List[ChartRow] = field(default_factory=list)
    subject_totals: List[SubjectTotal] = field(default_factory=list)
    grade_totals: List[GradeTotal] = field(default_factory=list)


@dataclass(frozen=True)
class Insights:
    """Ranked summaries for the Analytic Insights section."""
    strongest_subjects: List[SubjectTotal] = field(default_factory=list)
    weakest_subjects: List[SubjectTotal] = field(default_factory=list)
    grade_performance: List[GradeTotal] = field(default_factory=list)
    priority_classes: List[ChartRow] = field(default_factory=list)


@dataclass(frozen=True)
class Analysis:
    """Everything the dashboard renders for one upload."""
    chart_rows: List[ChartRow] = field(default_factory=list)
    subject_totals: List[SubjectTotal] = field(default_factory=list)
    insights: Insights = field(default_factory=Insights)


# ==================== HELPERS ====================

def label_sort_key(label: str) -> str:
    """
    Ordering for grade and subject labels.

    Plain code-point comparison: case-sensitive, and numeric-looking grades
    compare as text, so "10" sorts before "3".
    """
    return str(label)


def percentage(part: int, total: int) -> float:
    """Share of total as a percentage rounded to one decimal (0 for an empty total)."""
    if total <= 0:
        return 0.0
    if part < 0 or part > total:
        raise ComputationError(f"Count {part} is outside a total of {total}")
    return round((part / total) * 100, 1)


def grade_standing(index: int, count: int) -> str:
    """Label for the grade ranked at ``index`` out of ``count`` grades."""
    if index == 0:
        return GRADE_STANDING_LABELS["top"]
    if index == count - 1:
        return GRADE_STANDING_LABELS["bottom"]
    return GRADE_STANDING_LABELS["middle"]


# ==================== MATRIX BUILDER ====================

def build_matrix(records: Sequence[Record]) -> List[GridCell]:
    """
    Build the dense grade x subject grid.

    Every combination of the distinct grades and subjects gets exactly one
    cell. The first record for a combination supplies its counts; later
    duplicates are ignored. Combinations with no record are 0/0.
    """
    if not records:
        return []

    first = records[0]
    if not first.grade or not first.subject:
        raise IngestionError("Missing required columns: Subject or Grade")

    df = pd.DataFrame([asdict(r) for r in records])

    grades = sorted(df['grade'].unique().tolist(), key=label_sort_key)
    subjects = sorted(df['subject'].unique().tolist(), key=label_sort_key)

    first_match = df.drop_duplicates(subset=['grade', 'subject'], keep='first')
    duplicates = len(df) - len(first_match)
    if duplicates:
        logger.debug("Ignored %d duplicate grade-subject records (first match wins)", duplicates)

    full_index = pd.MultiIndex.from_product([grades, subjects], names=['grade', 'subject'])
    dense = (first_match.set_index(['grade', 'subject'])
             .reindex(full_index, fill_value=0)
             .reset_index())

    return [
        GridCell(
            grade=row.grade,
            subject=row.subject,
            on_level=int(row.on_level),
            below_level=int(row.below_level)
        )
        for row in dense.itertuples(index=False)
    ]


# ==================== AGGREGATOR ====================

def aggregate(cells: Sequence[GridCell]) -> Aggregates:
    """
    Compute per-row percentages and subject/grade roll-ups.

    Roll-up percentages come from the summed counts, not from averaging
    the per-row percentages.
    """
    if not cells:
        return Aggregates()

    df = pd.DataFrame([asdict(c) for c in cells])
    df['total'] = df['on_level'] + df['below_level']

    chart_rows = [
        ChartRow(
            grade=row.grade,
            subject=row.subject,
            on_level=int(row.on_level),
            below_level=int(row.below_level),
            on_level_percentage=percentage(int(row.on_level), int(row.total)),
            below_level_percentage=percentage(int(row.below_level), int(row.total))
        )
        for row in df.itertuples(index=False)
    ]
    chart_rows.sort(key=lambda r: (label_sort_key(r.subject), label_sort_key(r.grade)))

    by_subject = df.groupby('subject', sort=False)[['on_level', 'below_level', 'total']].sum()
    subject_totals = [
        SubjectTotal(
            subject=subject,
            on_level=int(sums['on_level']),
            below_level=int(sums['below_level']),
            total=int(sums['total']),
            on_level_percentage=percentage(int(sums['on_level']), int(sums['total'])),
            below_level_percentage=percentage(int(sums['below_level']), int(sums['total']))
        )
        for subject, sums in by_subject.iterrows()
    ]

    by_grade = df.groupby('grade', sort=False)[['on_level', 'total']].sum()
    grade_totals = [
        GradeTotal(
            grade=grade,
            on_level=int(sums['on_level']),
            total=int(sums['total']),
            on_level_percentage=percentage(int(sums['on_level']), int(sums['total']))
        )
        for grade, sums in by_grade.iterrows()
    ]

    return Aggregates(
        chart_rows=chart_rows,
        subject_totals=subject_totals,
        grade_totals=grade_totals
    )


# ==================== INSIGHT GENERATOR ====================

def generate_insights(chart_rows: Sequence[ChartRow],
                      subject_totals: Sequence[SubjectTotal],
                      grade_totals: Sequence[GradeTotal]) -> Insights:
    """
    Rank subjects, grades and classes for the insights section.

    - Strongest: top subjects by on-level %
    - Weakest: the last entries of that same descending ranking
    - Grade performance: every grade, best first, with its standing
    - Priority classes: lowest rows under the priority threshold

    All sorts are stable, so ties keep their incoming order.
    """
    ranked_subjects = sorted(subject_totals, key=lambda s: s.on_level_percentage, reverse=True)
    strongest = ranked_subjects[:STRONGEST_SUBJECT_COUNT]
    weakest = ranked_subjects[-WEAKEST_SUBJECT_COUNT:]

    ranked_grades = sorted(grade_totals, key=lambda g: g.on_level_percentage, reverse=True)
    grade_performance = [
        replace(grade, standing=grade_standing(i, len(ranked_grades)))
        for i, grade in enumerate(ranked_grades)
    ]

    below_threshold = [r for r in chart_rows if r.on_level_percentage < PRIORITY_THRESHOLD]
    priority_classes = sorted(below_threshold, key=lambda r: r.on_level_percentage)[:PRIORITY_CLASS_COUNT]

    return Insights(
        strongest_subjects=list(strongest),
        weakest_subjects=list(weakest),
        grade_performance=grade_performance,
        priority_classes=priority_classes
    )


# ==================== PIPELINE ====================

def analyze_records(records: Sequence[Record]) -> Analysis:
    """Run matrix -> aggregate -> insights over already-loaded records."""
    cells = build_matrix(records)
    aggregates = aggregate(cells)
    insights = generate_insights(
        aggregates.chart_rows, aggregates.subject_totals, aggregates.grade_totals
    )

    logger.info("Analyzed %d records into %d cells, %d subjects, %d grades",
                len(records), len(cells), len(aggregates.subject_totals),
                len(aggregates.grade_totals))

    return Analysis(
        chart_rows=aggregates.chart_rows,
        subject_totals=aggregates.subject_totals,
        insights=insights
    )


def analyze_workbook(data: bytes, filename: str) -> Analysis:
    """
    Full pipeline for one upload.

    Either returns a complete Analysis or raises a DashboardError; there
    are no partial results.
    """
    return analyze_records(load_records(data, filename))
