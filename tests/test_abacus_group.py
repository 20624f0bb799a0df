import pytest

from panacus.abacus_group import AbacusByGroup
from panacus.abacus_total import AbacusByTotal, ItemTable
from panacus.graph import CountType, GraphStorage, PathSegment
from panacus.mask import GraphMask
from panacus.threshold import Threshold

PATHS = [[1, 2], [2, 3, 3], [2]]


def _storage():
    return GraphStorage(
        node2id={b"n1": 1, b"n2": 2, b"n3": 3},
        node_lens=[0, 3, 4, 5],
        path_segments=[
            PathSegment.from_str("a#1#x"),
            PathSegment.from_str("b#1#x"),
            PathSegment.from_str("c#1#x"),
        ],
    )


def _build(count=CountType.NODE, exclude_table=None, uncovered_bps=None, report_values=True):
    storage = _storage()
    mask = GraphMask(groups=GraphMask.load_groups("", False, False, storage))
    table = ItemTable.from_paths(PATHS)
    abacus = AbacusByGroup.from_item_table(
        mask, storage, count, table, exclude_table, uncovered_bps, report_values
    )
    total = AbacusByTotal.from_item_table(mask, storage, count, table, exclude_table)
    return storage, abacus, total


def test_groups_follow_path_order():
    _, abacus, _ = _build()
    assert abacus.groups == ["a#1#x", "b#1#x", "c#1#x"]


def test_row_layout_is_consistent():
    storage, abacus, _ = _build()
    assert len(abacus.r) == storage.node_count + 2
    assert all(a <= b for a, b in zip(abacus.r, abacus.r[1:]))
    assert abacus.r[-1] == len(abacus.c) == len(abacus.v)
    for i in range(len(abacus.r) - 1):
        row = abacus.c[abacus.r[i] : abacus.r[i + 1]]
        assert row == sorted(set(row))
        assert all(0 <= g < len(abacus.groups) for g in row)


def test_row_sizes_match_total_coverage():
    _, abacus, total = _build()
    for i in range(1, len(abacus.r) - 1):
        assert abacus.r[i + 1] - abacus.r[i] == total.countable[i]


def test_values_count_all_visits():
    _, abacus, _ = _build()
    assert sum(abacus.v) == sum(len(p) for p in PATHS)
    start, end = abacus.r[3], abacus.r[4]
    assert abacus.v[start:end] == [2]


def test_values_omitted_when_not_reported():
    _, abacus, _ = _build(report_values=False)
    assert abacus.v is None


def test_union_growth_counts_items_seen_so_far():
    _, abacus, _ = _build()
    growth = abacus.calc_growth(Threshold.absolute(1), Threshold.of_fraction(0.0), [0, 3, 4, 5])
    seen = set()
    expected = []
    for path in PATHS:
        seen |= set(path)
        expected.append(float(len(seen)))
    assert growth == expected


def test_coverage_threshold_keeps_shared_items_only():
    _, abacus, total = _build()
    growth = abacus.calc_growth(Threshold.absolute(2), Threshold.of_fraction(0.0), [0, 3, 4, 5])
    shared = sum(1 for cov in total.countable[1:] if cov >= 2)
    assert growth[-1] == float(shared)
    assert all(g <= shared for g in growth)


def test_bp_growth_subtracts_uncovered():
    node_lens = [0, 3, 4, 5]
    _, abacus, _ = _build(count=CountType.BP, uncovered_bps={2: 1})
    growth = abacus.calc_growth(Threshold.absolute(1), Threshold.of_fraction(0.0), node_lens)
    assert growth[-1] == float(sum(node_lens) - 1)


def test_excluded_items_have_empty_rows():
    exclude = [False, False, True, False]
    _, abacus, _ = _build(exclude_table=exclude)
    assert abacus.r[3] - abacus.r[2] == 0
    growth = abacus.calc_growth(Threshold.absolute(1), Threshold.of_fraction(0.0), [0, 3, 4, 5])
    assert growth[-1] == 2.0


def test_inadmissible_count_type_raises():
    with pytest.raises(ValueError):
        _build(count=CountType.ALL)