"""
Inspection metrics.

coverage    = evaluated items / total items
compliance  = Cumple / (Cumple + No Cumple)
area score  = mean calif_valor of the area's Cumple items (0 when none)
average     = mean of area scores over every area, 2 decimals
Percentages are rounded half up to whole numbers.
"""

import math
from dataclasses import dataclass, asdict
from typing import Iterable, List, Sequence

from helpdesk.data.inspections.inspection import InspectionItem

CRITICAL_THRESHOLD = 8


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def percentage(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return int(round_half_up(part * 100 / whole))


@dataclass
class InspectionMetrics:
    total_areas: int = 0
    total_items: int = 0
    items_cumple: int = 0
    items_no_cumple: int = 0
    items_na: int = 0
    items_pending: int = 0
    coverage_percentage: int = 0
    compliance_percentage: int = 0
    average_score: float = 0.0

    def as_dict(self):
        return asdict(self)


def area_score(items: Iterable) -> float:
    scores = [item.calif_valor or 0 for item in items if item.cumplimiento_valor == InspectionItem.CUMPLE]
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def compute_metrics(areas: Sequence) -> InspectionMetrics:
    """`areas` are objects with an `items` sequence (InspectionArea rows or equivalents)."""
    metrics = InspectionMetrics(total_areas=len(areas))

    for area in areas:
        for item in area.items:
            metrics.total_items += 1
            value = item.cumplimiento_valor or InspectionItem.PENDING
            if value == InspectionItem.CUMPLE:
                metrics.items_cumple += 1
            elif value == InspectionItem.NO_CUMPLE:
                metrics.items_no_cumple += 1
            elif value == InspectionItem.NA:
                metrics.items_na += 1
            else:
                metrics.items_pending += 1

    evaluated = metrics.items_cumple + metrics.items_no_cumple + metrics.items_na
    applicable = metrics.items_cumple + metrics.items_no_cumple
    metrics.coverage_percentage = percentage(evaluated, metrics.total_items)
    metrics.compliance_percentage = percentage(metrics.items_cumple, applicable)

    if areas:
        scores = [area_score(area.items) for area in areas]
        metrics.average_score = round_half_up(sum(scores) / len(areas), 2)

    return metrics


def find_critical_items(areas: Sequence, threshold: int = CRITICAL_THRESHOLD) -> List[dict]:
    """Items scored above 0 but below the threshold, in checklist order."""
    critical = []
    for area in areas:
        for item in area.items:
            score = item.calif_valor or 0
            if 0 < score < threshold:
                critical.append({
                    'area': area.area_name,
                    'descripcion': item.descripcion,
                    'calif_valor': score,
                    'cumplimiento_valor': item.cumplimiento_valor,
                    'comentarios_valor': item.comentarios_valor or '',
                })
    return critical
