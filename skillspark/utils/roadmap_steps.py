"""
Roadmap document helpers.
Provides functions to address the points of a roadmap document
without the store ever validating or rewriting the document itself.

Two document shapes are understood:

* level map:   {"roadmap": {"beginner": [...] | {"step_1": {...}}, ...}}
* flat points: {"points": [{"id": ..., "level": ..., "order": ...}, ...]}
"""

import copy
import re
from typing import Any, Dict, List


def _point_title(point: Any) -> Any:
    if isinstance(point, dict):
        return point.get("pointTitle") or point.get("title")
    return point


_STEP_KEY = re.compile(r"^step_(\d+)$")


def _highest_step_number(levels: Dict[str, Any]) -> int:
    numbers = [
        int(match.group(1))
        for points in levels.values()
        if isinstance(points, dict)
        for match in map(_STEP_KEY.match, points)
        if match
    ]
    return max(numbers, default=0)


def assign_step_ids(document: Dict[str, Any]) -> Dict[str, Any]:
    """
    Give every point of a level-map document a sequential step id.

    A level stored as a list is converted to an object keyed ``step_<n>``.
    Numbering runs across levels in document order (beginner step_1..step_3,
    intermediate step_4.. and so on) so a step id names exactly one point of
    the roadmap. Levels that are already objects are left alone, and new ids
    continue after the highest step number they use.

    Args:
        document: Roadmap document as produced by the generator

    Returns:
        A new document; the input is not modified
    """
    processed = copy.deepcopy(document)
    levels = processed.get("roadmap") if isinstance(processed, dict) else None
    if not isinstance(levels, dict):
        return processed

    counter = _highest_step_number(levels)
    for level, points in levels.items():
        if not isinstance(points, list):
            continue
        steps = {}
        for point in points:
            counter += 1
            step_id = f"step_{counter}"
            title = _point_title(point)
            step = dict(point) if isinstance(point, dict) else {}
            step.update({"pointId": step_id, "pointTitle": title, "title": title})
            steps[step_id] = step
        levels[level] = steps

    return processed


def level_steps(document: Dict[str, Any], level: str) -> List[Dict[str, Any]]:
    """Ordered steps of one level, each with pointId / title / level / description."""
    steps: List[Dict[str, Any]] = []
    if not isinstance(document, dict):
        return steps

    levels = document.get("roadmap")
    if isinstance(levels, dict) and isinstance(levels.get(level), list):
        # not converted yet; number it the same way assign_step_ids would
        levels = assign_step_ids(document)["roadmap"]

    level_data = levels.get(level) if isinstance(levels, dict) else None
    if isinstance(level_data, dict):
        for step_id, step in level_data.items():
            step = step if isinstance(step, dict) else {"title": step}
            title = _point_title(step)
            steps.append({
                "pointId": step.get("pointId", step_id),
                "title": title,
                "level": level,
                "description": step.get("description") or f"Learn about {title}",
            })

    # Fallback: flat points list
    if not steps and isinstance(document.get("points"), list):
        level_points = [p for p in document["points"] if isinstance(p, dict) and p.get("level") == level]
        level_points.sort(key=lambda p: p.get("order", 0))
        for point in level_points:
            steps.append({
                "pointId": point.get("id"),
                "title": point.get("title"),
                "level": level,
                "description": point.get("description"),
            })

    return steps


def point_ids(document: Dict[str, Any]) -> List[str]:
    """Every addressable point id in the document, in document order."""
    ids: List[str] = []
    if not isinstance(document, dict):
        return ids

    candidates = []
    levels = document.get("roadmap")
    if isinstance(levels, dict):
        for level in levels:
            candidates.extend(step["pointId"] for step in level_steps(document, level))
    for point in document.get("points") or []:
        if isinstance(point, dict):
            candidates.append(point.get("id"))

    for candidate in candidates:
        if candidate and candidate not in ids:
            ids.append(candidate)
    return ids
