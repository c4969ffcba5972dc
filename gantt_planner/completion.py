"""Bottom-up completion rollup."""
from __future__ import annotations

import math
from typing import Iterable

from .models import Project, TaskNode


def round_half_up(value: float) -> int:
    """Round .5 away from zero for the non-negative values used here."""
    return int(math.floor(value + 0.5))


def mean_completion(values: Iterable[int]) -> int:
    items = list(values)
    if not items:
        return 0
    return round_half_up(sum(items) / len(items))


def recompute(project: Project) -> int:
    """Roll completion up through the tree and return the project's value.

    Nodes with children are overwritten with the rounded mean of their
    children's rolled-up values; leaves keep what the user entered.
    """
    project.completion = mean_completion(_rollup(node) for node in project.children)
    return project.completion


def _rollup(node: TaskNode) -> int:
    if node.children:
        node.completion = mean_completion(_rollup(child) for child in node.children)
    return node.completion
