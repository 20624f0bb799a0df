"""Text renderings of a group-resolved coverage table."""

from __future__ import annotations

import logging
from typing import TextIO

from panacus.abacus_group import AbacusByGroup
from panacus.graph import CountType, GraphStorage

log = logging.getLogger(__name__)


def _tab_line(values) -> str:
    return "\t".join(str(x) for x in values) + "\n"


def write_rcv(abacus: AbacusByGroup, out: TextIO) -> None:
    """Write the row offsets, the column (group) indices and, if present, the values."""
    out.write(_tab_line(abacus.r))
    out.write(_tab_line(abacus.c))
    if abacus.v is not None:
        out.write(_tab_line(abacus.v))


def _header(kind: str, abacus: AbacusByGroup, total: bool) -> str:
    columns = ["total"] if total else abacus.groups
    return "\t".join([kind, *columns]) + "\n"


def _row_cells(abacus: AbacusByGroup, start: int, end: int, value_of) -> list:
    """Cells for one item: one per group, zero where the group does not cover it."""
    cells = []
    k = start
    for j in range(len(abacus.groups)):
        if k == end or j < abacus.c[k]:
            cells.append("0")
        elif j == abacus.c[k]:
            cells.append(str(value_of(k)))
            k += 1
    return cells


def _rows(abacus: AbacusByGroup):
    """Yield (item id, start, end) for every item except the placeholder 0."""
    for i in range(1, len(abacus.r) - 1):
        yield i, abacus.r[i], abacus.r[i + 1]


def write_coverage_tsv(
    abacus: AbacusByGroup, total: bool, out: TextIO, graph_storage: GraphStorage
) -> None:
    """Write the coverage table, one line per node or edge.

    With ``total`` each line holds the number of covering groups; otherwise it holds
    one column per group.
    """
    log.info("reporting coverage table")
    id2node = {node_id: name for name, node_id in graph_storage.get_node_tuples()}

    def node_name(node_id: int) -> str:
        return id2node.get(node_id, b"").decode()

    if abacus.count in (CountType.NODE, CountType.BP):
        out.write(_header("node", abacus, total))
        for i, start, end in _rows(abacus):
            if abacus.count is CountType.BP:
                bp = graph_storage.node_lens[i] - abacus.uncovered_bps.get(i, 0)
            else:
                bp = 1
            if total:
                out.write(f"{node_name(i)}\t{end - start}\n")
                continue
            if abacus.v is None:
                cells = _row_cells(abacus, start, end, lambda k: bp)
            else:
                values = abacus.v
                cells = _row_cells(abacus, start, end, lambda k: values[k] * bp)
            out.write("\t".join([node_name(i), *cells]) + "\n")
    elif abacus.count is CountType.EDGE:
        if graph_storage.edge2id is None:
            return
        id2edge = {edge_id: edge for edge, edge_id in graph_storage.edge2id.items()}
        out.write(_header("edge", abacus, total))
        for i, start, end in _rows(abacus):
            edge = id2edge[i]
            label = f"{edge.o1}{node_name(edge.u)}{edge.o2}{node_name(edge.v)}"
            if total:
                out.write(f"{label}\t{end - start}\n")
                continue
            if abacus.v is None:
                cells = _row_cells(abacus, start, end, lambda k: 1)
            else:
                values = abacus.v
                cells = _row_cells(abacus, start, end, lambda k: values[k])
            out.write("\t".join([label, *cells]) + "\n")
    else:
        raise ValueError(f"inadmissible count type {abacus.count}")