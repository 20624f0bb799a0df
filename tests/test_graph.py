import gzip

import pytest

from panacus.graph import (
    CountType,
    Edge,
    GraphStorage,
    Orientation,
    PathSegment,
)

GFA = (
    b"H\tVN:Z:1.0\n"
    b"S\t1\tACGT\n"
    b"S\t2\tGG\n"
    b"S\t3\tTTTAA\n"
    b"L\t1\t+\t2\t-\t0M\n"
    b"L\t2\t+\t1\t-\t0M\n"
    b"L\t2\t-\t3\t+\t0M\n"
    b"P\ts1#1#chr1\t1+,2-\t*\n"
    b"W\ts2\t1\tchr1\t0\t10\t>1<2>3\n"
)


@pytest.fixture
def gfa_file(tmp_path):
    path = tmp_path / "graph.gfa"
    path.write_bytes(GFA)
    return str(path)


def test_orientation_parsing_and_flip():
    assert Orientation.from_pm("+") is Orientation.FORWARD
    assert Orientation.from_pm(b"-") is Orientation.BACKWARD
    assert Orientation.from_lg(ord(">")) is Orientation.FORWARD
    assert Orientation.from_lg("<") is Orientation.BACKWARD
    for o in Orientation:
        assert o.flip().flip() is o
        assert o.flip() is not o
        assert Orientation.from_lg(o.to_lg()) is o
        assert str(o) == o.to_lg()


def test_orientation_invalid():
    with pytest.raises(ValueError):
        Orientation.from_pm("x")
    with pytest.raises(ValueError):
        Orientation.from_lg("+")


def test_edge_canonical_invariants():
    edges = [
        Edge(3, Orientation.FORWARD, 1, Orientation.BACKWARD),
        Edge(1, Orientation.BACKWARD, 1, Orientation.FORWARD),
        Edge(2, Orientation.FORWARD, 5, Orientation.FORWARD),
    ]
    for e in edges:
        assert e.flip().flip() == e
        assert e.normalize() == e.flip().normalize()
        n = e.normalize()
        assert n.u <= n.v
        assert n.normalize() == n


def test_edge_display():
    e = Edge(1, Orientation.FORWARD, 2, Orientation.BACKWARD)
    assert str(e) == ">1<2"


def test_edge_from_link():
    node2id = {b"a": 1, b"b": 2}
    raw = Edge.from_link(b"L\tb\t+\ta\t-\t0M\n", node2id, False)
    assert raw == Edge(2, Orientation.FORWARD, 1, Orientation.BACKWARD)
    canon = Edge.from_link(b"L\tb\t+\ta\t-\t0M\n", node2id, True)
    assert canon == raw.normalize()
    assert Edge.from_link(b"b\t+\ta\t-\t0M", node2id, False) == raw


def test_edge_from_link_unknown_node():
    with pytest.raises(ValueError):
        Edge.from_link(b"L\tx\t+\ta\t-\t0M\n", {b"a": 1}, True)


def test_path_segment_from_str_full():
    p = PathSegment.from_str("s1#1#2")
    assert (p.sample, p.haplotype, p.seqid) == ("s1", "1", "2")
    assert p.coords() is None
    assert p.id() == "s1#1#2"


def test_path_segment_from_str_coords():
    p = PathSegment.from_str("s1#1#1:0-99")
    assert p.seqid == "1"
    assert p.coords() == (0, 99)
    assert str(p) == "s1#1#1:0-99"
    assert p.clear_coords() == PathSegment.from_str("s1#1#1")


def test_path_segment_sample_only_coords():
    p = PathSegment.from_str("g1:1-5")
    assert p.sample == "g1"
    assert p.haplotype is None
    assert p.coords() == (1, 5)
    assert p.id() == "g1"


def test_path_segment_two_parts():
    p = PathSegment.from_str("a#0")
    assert (p.sample, p.haplotype, p.seqid) == ("a", "0", None)
    assert str(p) == "a#0"


def test_path_segment_roundtrip():
    for s in ["s1#2#2", "s2#1#2:10-20", "x", "a#b", "a#b:3-4", "a#b#c#d"]:
        assert str(PathSegment.from_str(s)) == s


def test_path_segment_seqid_without_haplotype():
    p = PathSegment("1", None, "3")
    assert p.id() == "1#*#3"


def test_from_str_start_end():
    p = PathSegment.from_str_start_end("s1#1#2", 8, 6)
    assert p.coords() == (8, 6)
    assert p.clear_coords() == PathSegment.from_str("s1#1#2")


def test_path_segment_ordering_and_hash():
    a = PathSegment.from_str("s1#1#1")
    b = PathSegment.from_str("s1#1#1:0-5")
    c = PathSegment.from_str("s1#1#2")
    assert sorted([c, b, a]) == [a, b, c]
    assert len({a, b.clear_coords(), c}) == 2


def test_parse_walk_segment():
    p = GraphStorage.parse_walk_segment(b"W\ts2\t1\tchr1\t*\t10\t>1<2\n")
    assert p == PathSegment("s2", "1", "chr1", None, 10)


def test_parse_path_segment():
    p = GraphStorage.parse_path_segment(b"P\ts1#1#chr1\t1+,2-\t*\n")
    assert p == PathSegment.from_str("s1#1#chr1")
    with pytest.raises(ValueError):
        GraphStorage.parse_path_segment(b"P\tonly\n")


def test_from_gfa_nodes(gfa_file):
    g = GraphStorage.from_gfa(gfa_file, False, CountType.NODE)
    assert g.node_count == 3
    assert g.node_lens == [0, len(b"ACGT"), len(b"GG"), len(b"TTTAA")]
    assert g.edge2id is None
    assert g.degree is None
    assert g.number_of_items(CountType.NODE) == 3
    assert g.number_of_items(CountType.BP) == 3
    assert g.path_segments == [
        PathSegment.from_str("s1#1#chr1"),
        PathSegment("s2", "1", "chr1", 0, 10),
    ]
    assert sorted(g.get_nodes()) == [1, 2, 3]
    assert dict(g.get_node_tuples()) == {b"1": 1, b"2": 2, b"3": 3}
    assert g.node_len(3) == 5


def test_from_gfa_edges(gfa_file):
    g = GraphStorage.from_gfa(gfa_file, False, CountType.EDGE)
    assert g.edge_count == 2
    assert g.number_of_items(CountType.EDGE) == 2
    assert sorted(g.edge2id.values()) == [1, 2]
    assert sum(g.degree) == 2 * g.edge_count
    first = Edge(1, Orientation.FORWARD, 2, Orientation.BACKWARD)
    assert g.edge2id[first] == 1


def test_number_of_items_all_rejected(gfa_file):
    g = GraphStorage.from_gfa(gfa_file, False, CountType.NODE)
    with pytest.raises(ValueError):
        g.number_of_items(CountType.ALL)


def test_gzip_matches_plain(gfa_file, tmp_path):
    gz = tmp_path / "graph.gfa.gz"
    gz.write_bytes(gzip.compress(GFA))
    plain = GraphStorage.from_gfa(gfa_file, False, CountType.ALL)
    packed = GraphStorage.from_gfa(str(gz), False, CountType.ALL)
    assert packed.node_lens == plain.node_lens
    assert packed.edge2id == plain.edge2id
    assert packed.path_segments == plain.path_segments


def test_duplicate_segment_raises(tmp_path):
    path = tmp_path / "dup.gfa"
    path.write_bytes(b"S\t1\tA\nS\t1\tC\n")
    with pytest.raises(ValueError):
        GraphStorage.parse_nodes_gfa(str(path))


def test_get_node_id(gfa_file):
    g = GraphStorage.from_gfa(gfa_file, False, CountType.NODE)
    assert g.get_node_id(b"2") == 2
    assert g.get_node_id("missing") is None
    nice = GraphStorage.from_gfa(gfa_file, True, CountType.NODE)
    assert nice.get_node_id(b"42") == 42


def test_from_path_segments():
    segs = [PathSegment.from_str("s1#2#2"), PathSegment.from_str("s2#1#2")]
    g = GraphStorage.from_path_segments(segs)
    assert g.path_segments == segs
    assert g.node_count == 0
    assert g.number_of_items(CountType.EDGE) == 0


def test_count_type_str():
    assert str(CountType.BP) == "bp"
    assert CountType("node") is CountType.NODE