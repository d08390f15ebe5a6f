"""
Minimum weekly-hour targets per pathway, grade and category.

The table is an immutable value: load it once (from the packaged JSON or a
fixture) and pass it to whatever needs it.
"""

from __future__ import annotations

import copy
import json
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import numpy as np

from .schema import CATEGORIES, CategoryTarget

BASE_WEEKLY_HOURS = 40.0
TOTAL_TOLERANCE = 1e-4

TargetMatrix = Mapping[str, Mapping[str, Mapping[str, Mapping[str, float]]]]


class MinimumTargetTable:
    """
    Lookup over a pathway -> grade -> category -> {percent, minHours} matrix.

    Unknown pathways or grades are not errors: they yield no grades and
    all-zero targets, which callers treat as "no requirement".
    """

    def __init__(
        self,
        targets: TargetMatrix,
        categories: Optional[List[str]] = None,
        *,
        version: Optional[str] = None,
    ) -> None:
        self._targets = copy.deepcopy(dict(targets))
        self._categories = list(categories) if categories else list(CATEGORIES)
        self.version = version

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MinimumTargetTable":
        return cls(
            data.get("targets") or {},
            data.get("categories"),
            version=data.get("version"),
        )

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "MinimumTargetTable":
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.from_dict(data)

    @classmethod
    def load_default(cls) -> "MinimumTargetTable":
        """Load the table shipped with the package."""
        text = (
            resources.files("bta_workload")
            .joinpath("data", "minimum_targets.json")
            .read_text(encoding="utf-8")
        )
        return cls.from_dict(json.loads(text))

    @property
    def categories(self) -> List[str]:
        return list(self._categories)

    def pathways(self) -> List[str]:
        return list(self._targets.keys())

    def grades(self, pathway: str) -> List[str]:
        """Grades of a pathway in source order; empty for unknown pathways."""
        return list((self._targets.get(pathway) or {}).keys())

    def targets_for(self, pathway: str, grade: str) -> Optional[Mapping[str, Mapping[str, float]]]:
        return (self._targets.get(pathway) or {}).get(grade)

    def targets_by_category(self, pathway: str, grade: str) -> List[CategoryTarget]:
        """One CategoryTarget per known category, in canonical order."""
        targets = self.targets_for(pathway, grade) or {}
        out: List[CategoryTarget] = []
        for category in self._categories:
            cell = targets.get(category) or {}
            out.append(
                CategoryTarget(
                    category=category,
                    percent=float(cell.get("percent", 0.0)),
                    min_hours=float(cell.get("minHours", 0.0)),
                )
            )
        return out

    def total_target_hours(self, pathway: str, grade: str) -> float:
        return sum(t.min_hours for t in self.targets_by_category(pathway, grade))

    def min_hours_by_category(self, pathway: str, grade: str) -> Dict[str, float]:
        return {t.category: t.min_hours for t in self.targets_by_category(pathway, grade)}

    def inconsistent_rows(
        self,
        base_hours: float = BASE_WEEKLY_HOURS,
        tol: float = TOTAL_TOLERANCE,
    ) -> List[Tuple[str, str, float, float]]:
        """
        Return (pathway, grade, total_hours, total_percent) for every row
        whose minHours do not sum to base_hours or whose percents do not sum
        to 1.0 within tol. Not enforced at load time.
        """
        bad: List[Tuple[str, str, float, float]] = []
        for pathway in self.pathways():
            for grade in self.grades(pathway):
                rows = self.targets_by_category(pathway, grade)
                hours = np.array([t.min_hours for t in rows], dtype=float)
                percents = np.array([t.percent for t in rows], dtype=float)
                total_hours = float(hours.sum())
                total_percent = float(percents.sum())
                if not (
                    np.isclose(total_hours, base_hours, rtol=0.0, atol=tol)
                    and np.isclose(total_percent, 1.0, rtol=0.0, atol=tol)
                ):
                    bad.append((pathway, grade, total_hours, total_percent))
        return bad
