"""Path grouping, subsetting and ordering of the paths of a graph."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from panacus.coords import build_subpath_map, load_coord_list, load_coord_list_file
from panacus.graph import GraphStorage, PathSegment

log = logging.getLogger(__name__)


@dataclass
class GraphMaskParameters:
    """User settings that select, group and order paths."""

    positive_list: str = ""
    negative_list: str = ""
    groupby: str = ""
    groupby_sample: bool = False
    groupby_haplotype: bool = False
    order: Optional[str] = None


def _parse_groups(lines: Iterable[str]) -> Iterator[tuple]:
    """Yield (path segment, group) pairs from tab separated lines."""
    for line_no, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        if not line.strip():
            continue
        fields = line.split("\t")
        if len(fields) < 2 or not fields[1].strip():
            raise ValueError(
                f"error in line {line_no}: expected a path name and a group identifier "
                "separated by a tab"
            )
        yield PathSegment.from_str(fields[0].strip()), fields[1].strip()


@dataclass
class GraphMask:
    """Group assignment of paths plus optional include, exclude and order lists."""

    groups: dict
    include_coords: Optional[list] = None
    exclude_coords: Optional[list] = None
    order: Optional[list] = None

    @classmethod
    def from_graph(
        cls, params: GraphMaskParameters, graph_storage: GraphStorage
    ) -> "GraphMask":
        """Build the mask for the paths of ``graph_storage`` from ``params``."""
        groups = cls.load_groups(
            params.groupby,
            params.groupby_haplotype,
            params.groupby_sample,
            graph_storage,
        )
        paths = graph_storage.path_segments
        include_coords = cls.complement_with_group_assignments(
            load_coord_list(params.positive_list, paths), groups
        )
        exclude_coords = cls.complement_with_group_assignments(
            load_coord_list(params.negative_list, paths), groups
        )

        order = None
        if params.order is not None:
            order = cls.complement_with_group_assignments(
                load_coord_list_file(params.order), groups
            )
            if order:
                cls._check_order(order, groups, paths, include_coords, exclude_coords)

        return cls(
            groups=groups,
            include_coords=include_coords,
            exclude_coords=exclude_coords,
            order=order,
        )

    @staticmethod
    def _group_of(groups: dict, path: PathSegment) -> str:
        try:
            return groups[path.clear_coords()]
        except KeyError:
            raise ValueError(f"path {path} is not assigned to any group") from None

    @classmethod
    def _check_order(
        cls,
        order: list,
        groups: dict,
        paths: list,
        include_coords: Optional[list],
        exclude_coords: Optional[list],
    ) -> None:
        if include_coords is None:
            excluded = set(exclude_coords or ())
            included = [p.clear_coords() for p in paths if p not in excluded]
        else:
            included = [p.clear_coords() for p in include_coords]
        in_order = set(order)
        for path in included:
            if path not in in_order:
                log.error("order list does not contain information about path %s", path)

        # groups must appear as contiguous blocks in the order list
        visited: set = set()
        current = cls._group_of(groups, order[0])
        for path in order:
            group = cls._group_of(groups, path)
            if current != group:
                if group in visited:
                    msg = (
                        f"order of paths contains fragmented groups: path {path} belongs "
                        "to group that is interspersed by one or more other groups"
                    )
                    log.error("%s", msg)
                    raise ValueError(msg)
                visited.add(group)
            current = group

    @staticmethod
    def complement_with_group_assignments(
        coords: Optional[list], groups: dict
    ) -> Optional[list]:
        """Expand group identifiers in ``coords`` into the paths of that group."""
        if coords is None:
            return None

        group2paths: dict = {}
        for path, group in groups.items():
            group2paths.setdefault(group, []).append(path)
        known_paths = {path.clear_coords() for path in groups}

        result = []
        for segment in coords:
            if segment.clear_coords() in known_paths:
                result.append(segment)
            elif segment.id() in group2paths:
                if segment.coords() is not None:
                    msg = (
                        f'invalid coordinate "{segment}": group identifiers are not '
                        "allowed to have start/stop information!"
                    )
                    log.error("%s", msg)
                    raise ValueError(msg)
                members = group2paths[segment.id()]
                log.debug(
                    "complementing coordinate list with %d paths associated with group %s",
                    len(members),
                    segment.id(),
                )
                result.extend(members)
            else:
                log.error("unknown path/group %s", segment)
        return result

    @staticmethod
    def load_groups(
        file_name: str,
        groupby_haplotype: bool,
        groupby_sample: bool,
        graph_storage: GraphStorage,
    ) -> dict:
        """Assign every path of the graph (without coordinates) to a group."""
        paths = graph_storage.path_segments
        if groupby_haplotype:
            return {
                p.clear_coords(): f"{p.sample}#{p.haplotype or ''}" for p in paths
            }
        if groupby_sample:
            return {p.clear_coords(): p.sample for p in paths}
        if file_name:
            log.info("loading groups from %s", file_name)
            path_to_group: dict = {}
            with open(file_name, encoding="utf-8") as handle:
                for i, (path, group) in enumerate(_parse_groups(handle)):
                    key = path.clear_coords()
                    known = path_to_group.get(key)
                    if known is None:
                        path_to_group[key] = group
                    elif known != group:
                        msg = (
                            f"error in line {i}: path {key} cannot be assigned to more "
                            "than one group, but is assigned to at least two groups: "
                            f"{known}, {group}"
                        )
                        log.error("%s", msg)
                        raise ValueError(msg)
            log.debug("loaded %d group assignments", len(path_to_group))
            for p in paths:
                path_to_group.setdefault(p.clear_coords(), p.id())
            return path_to_group
        log.info(
            "no explicit grouping instruction given, group paths by their IDs "
            "(sample ID+haplotype ID+seq ID)"
        )
        return {p.clear_coords(): p.id() for p in paths}

    def get_path_order(self, path_segments: list) -> list:
        """Return (index into ``path_segments``, group) pairs in processing order."""
        group_to_paths: dict = {}
        for i, path in enumerate(path_segments):
            group = self.groups[path.clear_coords()]
            group_to_paths.setdefault(group, []).append((i, group))

        if self.order is not None:
            order = self.order
        elif self.include_coords is not None:
            order = self.include_coords
        else:
            excluded = set(self.exclude_coords or ())
            order = [p for p in path_segments if p not in excluded]

        result = []
        for path in order:
            result.extend(group_to_paths.pop(self.groups[path.clear_coords()], []))
        return result

    def count_groups(self) -> int:
        return len(set(self.groups.values()))

    def subpath_maps(self) -> tuple:
        """Return the (include, exclude) interval maps keyed by path id."""
        include_map = (
            build_subpath_map(self.include_coords) if self.include_coords is not None else {}
        )
        exclude_map = (
            build_subpath_map(self.exclude_coords) if self.exclude_coords is not None else {}
        )
        return include_map, exclude_map