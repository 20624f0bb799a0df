"""Total coverage counts of graph items over ordered path groups."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import accumulate, chain
from typing import Iterable, Optional, Sequence

from panacus.graph import CountType, GraphStorage
from panacus.mask import GraphMask

log = logging.getLogger(__name__)

# Coverage stored for the placeholder item 0; it never fits into a histogram.
COUNTABLE_SENTINEL = (1 << 32) - 1
# Marker for "not yet seen in any group".
_NO_GROUP = -1


@dataclass
class ItemTable:
    """Concatenated item ids of all paths with prefix sums marking path boundaries."""

    items: list = field(default_factory=list)
    id_prefsum: list = field(default_factory=lambda: [0])

    @classmethod
    def from_paths(cls, paths: Iterable[Sequence[int]]) -> "ItemTable":
        """Build a table from one sequence of item ids per path, in path order."""
        path_lists = [list(p) for p in paths]
        return cls(
            items=list(chain.from_iterable(path_lists)),
            id_prefsum=list(accumulate((len(p) for p in path_lists), initial=0)),
        )

    def path_items(self, path_id: int) -> list:
        """Return the item ids visited by path ``path_id``."""
        if not 0 <= path_id < len(self.id_prefsum) - 1:
            raise IndexError(f"path id {path_id} out of range")
        return self.items[self.id_prefsum[path_id] : self.id_prefsum[path_id + 1]]


@dataclass
class AbacusByTotal:
    """Number of distinct groups covering each countable item."""

    count: CountType
    countable: list
    uncovered_bps: Optional[dict]
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
    ) -> "AbacusByTotal":
        """Count, for every item, the groups whose paths visit it."""
        log.info("counting abacus entries..")
        n_items = graph_storage.number_of_items(count) + 1
        countable = [0] * n_items
        countable[0] = COUNTABLE_SENTINEL
        last = [_NO_GROUP] * n_items

        groups: list = []
        for path_id, group in graph_mask.get_path_order(graph_storage.path_segments):
            if not groups or groups[-1] != group:
                groups.append(group)
            cls.coverage(
                countable, last, item_table, exclude_table, path_id, len(groups) - 1
            )

        log.info(
            "abacus has %d path groups and %d countables", len(groups), len(countable) - 1
        )
        return cls(
            count=count,
            countable=countable,
            uncovered_bps=dict(uncovered_bps) if uncovered_bps is not None else {},
            groups=groups,
        )

    @staticmethod
    def coverage(
        countable: list,
        last: list,
        item_table: ItemTable,
        exclude_table: Optional[Sequence[bool]],
        path_id: int,
        group_id: int,
    ) -> None:
        """Add the items of one path to ``countable``, once per group."""
        for sid in item_table.path_items(path_id):
            if last[sid] != group_id and (exclude_table is None or not exclude_table[sid]):
                countable[sid] += 1
                last[sid] = group_id

    def construct_hist(self) -> list:
        """Return the number of items per coverage 0..len(groups)."""
        log.info("constructing histogram..")
        hist = [0] * (len(self.groups) + 1)
        for i, cov in enumerate(self.countable):
            if cov >= len(hist):
                if i != 0:
                    log.warning(
                        "coverage %d of item %d exceeds the number of groups %d, "
                        "it'll be ignored in the count",
                        cov,
                        i,
                        len(self.groups),
                    )
            else:
                hist[cov] += 1
        return hist

    def construct_hist_bps(self, graph_storage: GraphStorage) -> list:
        """Return the number of base pairs per coverage 0..len(groups)."""
        log.info("constructing bp histogram..")
        hist = [0] * (len(self.groups) + 1)
        for i, cov in enumerate(self.countable):
            if cov >= len(hist):
                if i != 0:
                    log.info(
                        "coverage %d of item %d exceeds the number of groups %d, "
                        "it'll be ignored in the count",
                        cov,
                        i,
                        len(self.groups),
                    )
            else:
                hist[cov] += graph_storage.node_lens[i]

        for sid, uncovered in (self.uncovered_bps or {}).items():
            hist[self.countable[sid]] -= uncovered
            hist[0] += uncovered
        return hist