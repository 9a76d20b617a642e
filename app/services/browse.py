"""Grade-board browsing: search and filter a fetched collection, then lay it
out as one column per grade.

These work on already-serialized resources (plain dicts) so the board can be
built from whatever page of results the caller holds.
"""

from typing import Iterable, Optional

GRADE_COLORS = [
    "#3B82F6",  # blue
    "#10B981",  # green
    "#8B5CF6",  # purple
    "#F59E0B",  # amber
    "#EF4444",  # red
    "#06B6D4",  # cyan
    "#EC4899",  # pink
    "#84CC16",  # lime
]


def _matches(resource: dict, term: str) -> bool:
    haystacks = [
        resource.get("title"),
        resource.get("description"),
        resource.get("subject_name"),
        resource.get("grade_level"),
    ]
    haystacks.extend(t.get("tag_name") for t in resource.get("tags") or [])
    return any(term in h.lower() for h in haystacks if h)


def filter_resources(
    resources: Iterable[dict],
    search: Optional[str] = None,
    subject_ids: Optional[Iterable[str]] = None,
    type_ids: Optional[Iterable[str]] = None,
) -> list[dict]:
    """Keep resources matching the search term and any selected subjects/types.

    An empty selection means "no filter" for that category.
    """
    term = (search or "").strip().lower()
    subjects = set(subject_ids or [])
    types = set(type_ids or [])

    result = []
    for resource in resources:
        if term and not _matches(resource, term):
            continue
        if subjects and resource.get("subject_id") not in subjects:
            continue
        if types and resource.get("type_id") not in types:
            continue
        result.append(resource)
    return result


def grade_color(position: int) -> str:
    return GRADE_COLORS[position % len(GRADE_COLORS)]


def group_by_grade(resources: Iterable[dict], grades: Iterable[dict]) -> list[dict]:
    """One column per grade, in the order given, empty columns included.

    Resources whose grade is not in ``grades`` are left out.
    """
    columns = []
    index = {}
    for position, grade in enumerate(grades):
        column = {
            "grade_id": grade["id"],
            "grade_level": grade["grade_level"],
            "color": grade_color(position),
            "count": 0,
            "resources": [],
        }
        index[grade["id"]] = column
        columns.append(column)

    for resource in resources:
        column = index.get(resource.get("grade_id"))
        if column is not None:
            column["resources"].append(resource)
            column["count"] += 1
    return columns
