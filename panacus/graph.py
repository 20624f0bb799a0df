"""Graph primitives: orientations, edges, path segments and GFA indexing."""

from __future__ import annotations

import enum
import functools
import gzip
import logging
import re
from dataclasses import dataclass, replace
from typing import IO, Iterator, NamedTuple, Optional, Union

log = logging.getLogger(__name__)

_PATHID_PANSN = re.compile(r"([^#]+)(#[^#]+)?(#[^#].*)?")
_PATHID_COORDS = re.compile(r"(.+):([0-9]+)-([0-9]+)")
_GZIP_MAGIC = b"\x1f\x8b"


class CountType(enum.Enum):
    """The kind of countable item an analysis is based on."""

    NODE = "node"
    BP = "bp"
    EDGE = "edge"
    ALL = "all"

    def __str__(self) -> str:
        return self.value


class Orientation(enum.IntEnum):
    """Orientation of a node traversal."""

    FORWARD = 0
    BACKWARD = 1

    def __str__(self) -> str:
        return self.to_lg()

    @staticmethod
    def _as_char(c: Union[str, bytes, int]) -> str:
        if isinstance(c, int):
            return chr(c)
        if isinstance(c, (bytes, bytearray)):
            return c.decode("ascii", errors="replace")
        return c

    @classmethod
    def from_pm(cls, c: Union[str, bytes, int]) -> "Orientation":
        """Parse '+' or '-'."""
        ch = cls._as_char(c)
        if ch == "+":
            return cls.FORWARD
        if ch == "-":
            return cls.BACKWARD
        raise ValueError(f"expected '+' or '-', but got {ch!r}")

    @classmethod
    def from_lg(cls, c: Union[str, bytes, int]) -> "Orientation":
        """Parse '>' or '<'."""
        ch = cls._as_char(c)
        if ch == ">":
            return cls.FORWARD
        if ch == "<":
            return cls.BACKWARD
        raise ValueError(f"expected '>' or '<', but got {ch!r}")

    def to_lg(self) -> str:
        return ">" if self is Orientation.FORWARD else "<"

    def flip(self) -> "Orientation":
        return Orientation.BACKWARD if self is Orientation.FORWARD else Orientation.FORWARD


class Edge(NamedTuple):
    """A link between two oriented nodes, identified by numeric node ids."""

    u: int
    o1: Orientation
    v: int
    o2: Orientation

    def __str__(self) -> str:
        return f"{self.o1}{self.u}{self.o2}{self.v}"

    @classmethod
    def from_link(cls, data: bytes, node2id: dict, canonical: bool) -> "Edge":
        """Build an edge from a GFA L line (with or without the leading 'L\\t')."""
        body = data[2:] if data[:1] == b"L" else data
        fields = body.rstrip(b"\r\n").split(b"\t")
        if len(fields) < 4 or not fields[1] or not fields[3]:
            raise ValueError(f"malformed link line: {data!r}")

        def lookup(name: bytes) -> int:
            try:
                return node2id[name]
            except KeyError:
                raise ValueError(
                    f"unknown node {name.decode(errors='replace')}"
                ) from None

        u = lookup(fields[0])
        o1 = Orientation.from_pm(fields[1][:1])
        v = lookup(fields[2])
        o2 = Orientation.from_pm(fields[3][:1])
        if canonical:
            return cls.canonical(u, o1, v, o2)
        return cls(u, o1, v, o2)

    def normalize(self) -> "Edge":
        return Edge.canonical(self.u, self.o1, self.v, self.o2)

    @staticmethod
    def canonical(u: int, o1: Orientation, v: int, o2: Orientation) -> "Edge":
        """Return the canonical representative of an edge and its reverse."""
        if u > v or (u == v and o1 == Orientation.BACKWARD):
            return Edge(v, o2.flip(), u, o1.flip())
        return Edge(u, o1, v, o2)

    def flip(self) -> "Edge":
        return Edge(self.v, self.o2.flip(), self.u, self.o1.flip())


def _opt_key(value):
    return (0,) if value is None else (1, value)


@functools.total_ordering
@dataclass(frozen=True)
class PathSegment:
    """A path name in PanSN notation, optionally restricted to coordinates."""

    sample: str
    haplotype: Optional[str] = None
    seqid: Optional[str] = None
    start: Optional[int] = None
    end: Optional[int] = None

    def _sort_key(self):
        return (
            self.sample,
            _opt_key(self.haplotype),
            _opt_key(self.seqid),
            _opt_key(self.start),
            _opt_key(self.end),
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, PathSegment):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    @classmethod
    def from_str(cls, s: str) -> "PathSegment":
        """Parse 'sample[#haplotype[#seqid]][:start-end]'."""
        sample, haplotype, seqid, start, end = s, None, None, None, None

        m = _PATHID_PANSN.fullmatch(s)
        if m is not None:
            segments = [m.group(0)] + [g for g in m.groups() if g is not None]
            if len(segments) == 4:
                sample = segments[1]
                haplotype = segments[2][1:]
                cc = _PATHID_COORDS.fullmatch(segments[3][1:])
                if cc is None:
                    seqid = segments[3][1:]
                else:
                    seqid = cc.group(1)
                    start, end = int(cc.group(2)), int(cc.group(3))
            elif len(segments) == 3:
                sample = segments[1]
                cc = _PATHID_COORDS.fullmatch(segments[2][1:])
                if cc is None:
                    haplotype = segments[2][1:]
                else:
                    haplotype = cc.group(1)
                    start, end = int(cc.group(2)), int(cc.group(3))
            elif len(segments) == 2:
                cc = _PATHID_COORDS.fullmatch(segments[1])
                if cc is not None:
                    sample = cc.group(1)
                    start, end = int(cc.group(2)), int(cc.group(3))

        res = cls(sample, haplotype, seqid, start, end)
        if res.coords() is not None:
            log.debug("path has coordinates %s", res)
        return res

    @classmethod
    def from_str_start_end(cls, s: str, start: int, end: int) -> "PathSegment":
        return replace(cls.from_str(s), start=start, end=end)

    def id(self) -> str:
        if self.haplotype is not None:
            suffix = f"#{self.seqid}" if self.seqid is not None else ""
            return f"{self.sample}#{self.haplotype}{suffix}"
        if self.seqid is not None:
            return f"{self.sample}#*#{self.seqid}"
        return self.sample

    def clear_coords(self) -> "PathSegment":
        return replace(self, start=None, end=None)

    def coords(self) -> Optional[tuple]:
        if self.start is not None and self.end is not None:
            return (self.start, self.end)
        return None

    def __str__(self) -> str:
        coords = self.coords()
        if coords is None:
            return self.id()
        return f"{self.id()}:{coords[0]}-{coords[1]}"


def _iter_gfa_lines(gfa_file: str) -> Iterator[bytes]:
    """Yield raw lines of a plain or gzip-compressed GFA file."""
    with open(gfa_file, "rb") as probe:
        compressed = probe.read(2) == _GZIP_MAGIC
    stream: IO[bytes]
    stream = gzip.open(gfa_file, "rb") if compressed else open(gfa_file, "rb")
    with stream:
        yield from stream


class GraphStorage:
    """Index of node and edge identifiers, node lengths and path names."""

    def __init__(
        self,
        node2id: Optional[dict] = None,
        is_nice: bool = False,
        node_lens: Optional[list] = None,
        edge2id: Optional[dict] = None,
        path_segments: Optional[list] = None,
        edge_count: int = 0,
        degree: Optional[list] = None,
    ):
        self.node2id: dict = node2id if node2id is not None else {}
        self.is_nice = is_nice
        self.node_lens: list = node_lens if node_lens is not None else []
        self.edge2id = edge2id
        self.path_segments: list = path_segments if path_segments is not None else []
        self.node_count = len(self.node2id)
        self.edge_count = edge_count
        self.degree = degree

    @classmethod
    def from_path_segments(cls, path_segments: list) -> "GraphStorage":
        return cls(path_segments=list(path_segments))

    @classmethod
    def from_gfa(cls, gfa_file: str, is_nice: bool, count_type: CountType) -> "GraphStorage":
        node2id, path_segments, node_lens = cls.parse_nodes_gfa(gfa_file)
        if count_type in (CountType.EDGE, CountType.ALL):
            edge2id, edge_count, degree = cls.parse_edge_gfa(gfa_file, node2id)
        else:
            edge2id, edge_count, degree = None, 0, None
        log.debug("done creating graph storage")
        return cls(
            node2id=node2id,
            is_nice=is_nice,
            node_lens=node_lens,
            edge2id=edge2id,
            path_segments=path_segments,
            edge_count=edge_count,
            degree=degree,
        )

    def get_node_id(self, node_name: Union[bytes, str]) -> Optional[int]:
        if isinstance(node_name, str):
            node_name = node_name.encode()
        if self.is_nice:
            return int(node_name)
        return self.node2id.get(node_name)

    def get_nodes(self) -> list:
        return list(self.node2id.values())

    def get_node_tuples(self) -> list:
        return list(self.node2id.items())

    def node_len(self, v: int) -> int:
        return self.node_lens[v]

    def number_of_items(self, c: CountType) -> int:
        if c in (CountType.NODE, CountType.BP):
            return self.node_count
        if c is CountType.EDGE:
            return self.edge_count
        raise ValueError(f"inadmissible count type {c}")

    @staticmethod
    def parse_edge_gfa(gfa_file: str, node2id: dict) -> tuple:
        """Index the distinct canonical edges of L lines; return (edge2id, count, degree)."""
        edge2id: dict = {}
        degree = [0] * (len(node2id) + 1)
        for line in _iter_gfa_lines(gfa_file):
            if line[:1] != b"L":
                continue
            edge = Edge.from_link(line, node2id, True)
            if edge in edge2id:
                log.warning("edge %s is duplicated in GFA", edge)
                continue
            degree[edge.u] += 1
            degree[edge.v] += 1
            edge2id[edge] = len(edge2id) + 1
        log.info("found: %d edges", len(edge2id))
        return edge2id, len(edge2id), degree

    @classmethod
    def parse_nodes_gfa(cls, gfa_file: str) -> tuple:
        """Index S, P and W lines; return (node2id, path_segments, node_lens)."""
        node2id: dict = {}
        path_segments: list = []
        # index 0 is a placeholder so that node ids start at 1
        node_lens = [0]

        log.info("constructing indexes for node/edge IDs, node lengths, and P/W lines..")
        for line in _iter_gfa_lines(gfa_file):
            kind = line[:1]
            if kind == b"S":
                fields = line.rstrip(b"\r\n").split(b"\t")
                if len(fields) < 3:
                    raise ValueError(f"malformed segment line: {line!r}")
                name = fields[1]
                if name in node2id:
                    raise ValueError(
                        f"Segment with ID {name.decode(errors='replace')} "
                        "occurs multiple times in GFA"
                    )
                node2id[name] = len(node2id) + 1
                node_lens.append(len(fields[2]))
            elif kind == b"P":
                path_segments.append(cls.parse_path_segment(line))
            elif kind == b"W":
                path_segments.append(cls.parse_walk_segment(line))

        log.info("found: %d paths/walks, %d nodes", len(path_segments), len(node2id))
        if not path_segments:
            log.warning("graph does not contain any annotated paths (P/W lines)")
        return node2id, path_segments, node_lens

    @staticmethod
    def parse_path_segment(data: bytes) -> PathSegment:
        fields = data.split(b"\t")
        if len(fields) < 3:
            raise ValueError(f"malformed path line: {data!r}")
        return PathSegment.from_str(fields[1].decode())

    @staticmethod
    def parse_walk_segment(data: bytes) -> PathSegment:
        fields = data.split(b"\t")
        if len(fields) < 7:
            raise ValueError(f"malformed walk line: {data!r}")
        sample, haplotype, seqid, start, end = (f.decode() for f in fields[1:6])
        return PathSegment(
            sample,
            haplotype,
            seqid,
            None if start == "*" else int(start),
            None if end == "*" else int(end),
        )