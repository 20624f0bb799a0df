"""Group-resolved coverage of graph items, stored in a compressed row layout."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from itertools import accumulate
from typing import Optional, Sequence

from panacus.abacus_total import ItemTable
from panacus.graph import CountType, GraphStorage
from panacus.mask import GraphMask
from panacus.threshold import Threshold

log = logging.getLogger(__name__)


@dataclass
class AbacusByGroup:
    """Per-item coverage by group.

    Row ``i`` (item id ``i``) spans ``c[r[i]:r[i + 1]]``: the increasing indices of
    the groups that cover the item; ``v`` holds the matching visit counts when
    values are reported.
    """

    count: CountType
    r: list
    v: Optional[list]
    c: list
    uncovered_bps: dict
    groups: list

    @classmethod
    def from_item_table(
        cls,
        graph_mask: GraphMask,
        graph_storage: GraphStorage,
        count: CountType,
        item_table: ItemTable,
        exclude_table: Optional[Sequence[bool]] = None,
        uncovered_bps: Optional[dict] = None,
        report_values: bool = False,
    ) -> "AbacusByGroup":
        """Build the group-resolved coverage table from the paths in ``item_table``."""
        n_items = graph_storage.number_of_items(count)

        path_order = []
        groups: list = []
        for path_id, group in graph_mask.get_path_order(graph_storage.path_segments):
            log.debug(
                "processing path %s (group %s)", graph_storage.path_segments[path_id], group
            )
            if not groups or groups[-1] != group:
                groups.append(group)
            path_order.append((path_id, len(groups) - 1))

        rows = cls._group_visits(item_table, exclude_table, path_order, n_items)
        r = list(accumulate((len(row) for row in rows), initial=0))
        c = [group_id for row in rows for group_id, _ in row]
        v = [visits for row in rows for _, visits in row] if report_values else None
        log.info("group-aware table has %d non-zero elements", r[-1])
        log.info("abacus has %d path groups and %d countables", len(groups), len(r))

        return cls(
            count=count,
            r=r,
            v=v,
            c=c,
            uncovered_bps=dict(uncovered_bps) if uncovered_bps is not None else {},
            groups=groups,
        )

    @staticmethod
    def _group_visits(
        item_table: ItemTable,
        exclude_table: Optional[Sequence[bool]],
        path_order: list,
        n_items: int,
    ) -> list:
        """Per item, the list of [group index, visits] in increasing group order."""
        rows: list = [[] for _ in range(n_items + 1)]
        for path_id, group_id in path_order:
            for sid in item_table.path_items(path_id):
                if exclude_table is not None and exclude_table[sid]:
                    continue
                row = rows[sid]
                if row and row[-1][0] == group_id:
                    row[-1][1] += 1
                else:
                    row.append([group_id, 1])
        return rows

    def calc_growth(
        self, t_coverage: Threshold, t_quorum: Threshold, node_lens: Sequence[int]
    ) -> list:
        """Growth over the ordered groups under the coverage and quorum thresholds."""
        n_groups = len(self.groups)
        res = [0.0] * n_groups

        min_cov = max(1, t_coverage.to_absolute(n_groups))
        quorum = max(0.0, t_quorum.to_relative(n_groups))

        for i in range(1, len(self.r) - 1):
            start, end = self.r[i], self.r[i + 1]
            if end - start < min_cov:
                continue
            k = start
            for j in range(self.c[start], n_groups):
                if k < end - 1 and self.c[k + 1] <= j:
                    k += 1
                if k - start + 1 < math.ceil((self.c[k] + 1) * quorum):
                    continue
                if self.count in (CountType.NODE, CountType.EDGE):
                    res[j] += 1.0
                elif self.count is CountType.BP:
                    uncovered = self.uncovered_bps.get(i, 0)
                    covered = node_lens[i]
                    if uncovered > covered:
                        log.error(
                            "oops, #uncovered bps (%d) is larger than #covered bps (%d) "
                            "for node with sid %d",
                            uncovered,
                            covered,
                            i,
                        )
                    else:
                        res[j] += float(covered - uncovered)
                else:
                    raise ValueError(f"inadmissible count type {self.count}")
        return res