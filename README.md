# panacus

Coverage histograms and pangenome growth curves for pangenome graphs in GFA
format.

The library indexes the segments (`S`), links (`L`), paths (`P`) and walks
(`W`) of a GFA file (plain or gzip-compressed), groups the paths, counts how
many path groups cover each node, edge or base pair, and turns those counts
into a coverage histogram and growth curves under coverage and quorum
thresholds.

## Installation

```
pip install .
```

Tests need the `test` extra:

```
pip install ".[test]"
pytest
```

## Modules

- `panacus.graph`
  - `CountType` (`NODE`, `BP`, `EDGE`, `ALL`) and `Orientation` (`FORWARD`,
    `BACKWARD`, with `from_pm`, `from_lg`, `to_lg`, `flip`).
  - `Edge`: a link between two oriented nodes; `from_link` parses an `L`
    line, `canonical`/`normalize` pick one representative of an edge and its
    reverse, `flip` reverses it.
  - `PathSegment`: a path name in PanSN notation
    (`sample#haplotype#seqid[:start-end]`), with `from_str`,
    `from_str_start_end`, `id`, `clear_coords` and `coords`.
  - `GraphStorage`: `from_gfa(gfa_file, is_nice, count_type)` indexes node
    names, node lengths and path/walk names, and the distinct canonical links
    with node degrees when `count_type` is `EDGE` or `ALL`. Node ids start at
    1. `from_path_segments` builds a storage that only knows path names.
- `panacus.threshold`: `Threshold` (absolute via `Threshold.absolute(n)`,
  relative via `Threshold.of_fraction(x)`, with `to_absolute` and
  `to_relative`), `RequireThreshold`, `parse_threshold_cli` and
  `ThresholdContainer.parse_params(quorum, coverage)` for comma-separated
  lists such as `"0,0.5,1"`. Quorum values must lie in [0, 1], coverage
  values must be integers; a single value is repeated to match the other
  list. Invalid input raises `ValueError`.
- `panacus.coords`: `parse_bed` (BED records, including block columns, or
  bare path names), `load_coord_list_file`, `load_coord_list` (a file name,
  or else a regular expression matched against path names) and
  `build_subpath_map`, which maps path ids to sorted, merged, 0-based
  half-open intervals.
- `panacus.mask`: `GraphMaskParameters` and `GraphMask`.
  `GraphMask.from_graph(params, graph_storage)` groups paths by haplotype,
  by sample, from a tab-separated group file, or by full path name; resolves
  include/exclude lists (group names expand to their paths); and checks an
  optional order file, rejecting orders in which a group is split.
  `get_path_order` yields `(path index, group)` pairs in processing order,
  `count_groups` counts distinct groups, `subpath_maps` returns the include
  and exclude interval maps.
- `panacus.abacus_total`: `ItemTable` (item ids of all paths, built with
  `ItemTable.from_paths`) and `AbacusByTotal.from_item_table`, the number of
  distinct groups covering each item, with `construct_hist` and
  `construct_hist_bps`.
- `panacus.abacus_group`: `AbacusByGroup.from_item_table`, a sparse
  item-by-group coverage table (`r`, `c` and optionally `v` with visit
  counts), and its `calc_growth`.
- `panacus.hist`: `choose` (log2 of a binomial coefficient) and `Hist`, with
  `from_abacus`, `calc_growth`, `calc_all_growths`, `calc_growth_union`,
  `calc_growth_core`, `calc_growth_quorum` and `to_tsv`.
- `panacus.table`: `write_rcv` and `write_coverage_tsv` write an
  `AbacusByGroup` as tab-separated text to a text stream.

## Example

```python
from panacus.abacus_total import AbacusByTotal, ItemTable
from panacus.graph import CountType, GraphStorage, PathSegment
from panacus.hist import Hist
from panacus.mask import GraphMask, GraphMaskParameters
from panacus.threshold import ThresholdContainer

storage = GraphStorage(
    node2id={b"1": 1, b"2": 2, b"3": 3},
    node_lens=[0, 4, 2, 6],
    path_segments=[PathSegment.from_str("a#1#chr1"), PathSegment.from_str("b#1#chr1")],
)
mask = GraphMask.from_graph(GraphMaskParameters(groupby_sample=True), storage)
items = ItemTable.from_paths([[1, 2, 3], [1, 3]])

abacus = AbacusByTotal.from_item_table(mask, storage, CountType.NODE, items)
hist = Hist.from_abacus(abacus)
print(hist.coverage)  # [0, 1, 2]

thresholds = ThresholdContainer.parse_params("0,1", "1")
for growth in hist.calc_all_growths(thresholds):
    print(growth)
```

Each growth list starts with `nan` for the zero element, followed by the
expected number of items seen after adding 1, 2, ... groups.

## What the package does not do

- There is no command-line program; everything is used as a library.
- It does not read the node sequences of `P` and `W` lines into an
  `ItemTable`. The caller builds the table with `ItemTable.from_paths`, one
  list of item ids per entry of `GraphStorage.path_segments`.
- It does not derive exclude tables or uncovered base pairs from coordinate
  intervals; `from_item_table` takes them as optional arguments
  (`exclude_table`, `uncovered_bps`).
- It writes tab-separated text only; there are no HTML reports or charts.