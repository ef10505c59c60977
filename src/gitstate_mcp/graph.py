"""Lane layout for commit history graphs."""

from __future__ import annotations

from collections.abc import Sequence

from .constants import LANE_COLORS
from .models import Commit, GraphLine, GraphRow


def _resolve_lane(lanes: list[str | None], commit_hash: str) -> int:
    """Return the lane expecting `commit_hash`, claiming a free or new one if needed."""
    if commit_hash in lanes:
        return lanes.index(commit_hash)
    if None in lanes:
        lane = lanes.index(None)
        lanes[lane] = commit_hash
        return lane
    lanes.append(commit_hash)
    return len(lanes) - 1


def _line(from_lane: int, row: int, to_lane: int, color_lane: int) -> GraphLine:
    color_index = color_lane % len(LANE_COLORS)
    return GraphLine(
        from_lane=from_lane,
        from_row=row,
        to_lane=to_lane,
        to_row=row + 1,
        color_index=color_index,
        color=LANE_COLORS[color_index],
    )


def build_graph(commits: Sequence[Commit]) -> list[GraphRow]:
    """Assign each commit a lane and the connectors leaving its row.

    Greedy single pass over `commits` in the given order. Each lane slot
    holds the hash expected to appear next in that column, or None when
    free. Only parent references drive the layout; timestamps are ignored.

    Parents that never show up later in `commits` (for example because the
    log was truncated) keep their lane reserved to the end of the graph.
    """
    lanes: list[str | None] = []
    rows: list[GraphRow] = []

    for row, commit in enumerate(commits):
        lane = _resolve_lane(lanes, commit.hash)
        color_index = lane % len(LANE_COLORS)
        lines: list[GraphLine] = []

        for other_lane, expected in enumerate(lanes):
            if expected is not None and expected != commit.hash:
                lines.append(_line(other_lane, row, other_lane, other_lane))

        if commit.parents:
            lanes[lane] = commit.parents[0]
            lines.append(_line(lane, row, lane, lane))
        else:
            lanes[lane] = None

        for parent in commit.parents[1:]:
            parent_lane = _resolve_lane(lanes, parent)
            lines.append(_line(lane, row, parent_lane, parent_lane))

        while lanes and lanes[-1] is None:
            lanes.pop()

        rows.append(
            GraphRow(
                commit=commit,
                lane=lane,
                color_index=color_index,
                color=LANE_COLORS[color_index],
                lines=lines,
            )
        )

    return rows


def graph_width(rows: Sequence[GraphRow]) -> int:
    """Number of lane columns needed to draw `rows`, never less than one."""
    width = 1
    for row in rows:
        width = max(width, row.lane + 1)
        for line in row.lines:
            width = max(width, line.from_lane + 1, line.to_lane + 1)
    return width
