"""Loading of path coordinate lists and their interval maps."""

from __future__ import annotations

import logging
import os
import re
from typing import Iterable, Optional

from panacus.graph import PathSegment

log = logging.getLogger(__name__)

# end of an interval that spans a whole path
UNBOUNDED_END = (1 << 64) - 1


def _parse_int(text: str, line_no: int, what: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        raise ValueError(
            f"error in line {line_no}: {what} {text!r} is not an integer"
        ) from None


def _int_list(text: str, line_no: int, what: str) -> list:
    return [_parse_int(x, line_no, what) for x in text.split(",") if x.strip()]


def parse_bed(lines: Iterable[str], use_block_info: bool) -> list:
    """Parse BED records (or bare path names) into path segments."""
    segments = []
    for line_no, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        if not line.strip() or line.startswith(("#", "browser ", "track ")):
            continue
        fields = line.split("\t")
        path_name = fields[0]
        if len(fields) == 1:
            segments.append(PathSegment.from_str(path_name))
            continue
        if len(fields) < 3:
            raise ValueError(
                f"error in line {line_no}: expected a path name or at least 3 columns"
            )
        start = _parse_int(fields[1], line_no, "start")
        end = _parse_int(fields[2], line_no, "end")
        if use_block_info and len(fields) >= 12:
            block_count = _parse_int(fields[9], line_no, "block count")
            sizes = _int_list(fields[10], line_no, "block size")
            starts = _int_list(fields[11], line_no, "block start")
            if not block_count == len(sizes) == len(starts):
                raise ValueError(
                    f"error in line {line_no}: block count, sizes and starts are inconsistent"
                )
            segments.extend(
                PathSegment.from_str_start_end(path_name, start + offset, start + offset + size)
                for size, offset in zip(sizes, starts)
            )
        else:
            segments.append(PathSegment.from_str_start_end(path_name, start, end))
    return segments


def load_coord_list_file(file_name: str) -> list:
    """Read path segments from a BED-like file."""
    log.info("loading coordinates from %s", file_name)
    with open(file_name, encoding="utf-8") as handle:
        coords = parse_bed(handle, True)
    log.debug("loaded %d coordinates", len(coords))
    return coords


def load_coord_list(coord_text: str, paths: list) -> Optional[list]:
    """Interpret ``coord_text`` as a file of coordinates or a regex over ``paths``."""
    if not coord_text:
        return None
    if os.path.isfile(coord_text):
        return load_coord_list_file(coord_text)
    try:
        pattern = re.compile(coord_text)
    except re.error:
        log.error(
            "string %s is not valid! Neither as a file name nor as a regex", coord_text
        )
        raise ValueError(f"invalid file name or regex: {coord_text}") from None
    log.info("filtering paths based on regex %s", coord_text)
    coords = [p for p in paths if pattern.search(str(p))]
    if not coords:
        log.warning("filtering with regex did not find any paths!")
    return coords


def build_subpath_map(path_segments: Iterable[PathSegment]) -> dict:
    """Map path ids to sorted, merged, 0-based half-open intervals."""
    intervals: dict = {}
    for segment in path_segments:
        coords = segment.coords()
        intervals.setdefault(segment.id(), set()).add(
            coords if coords is not None else (0, UNBOUNDED_END)
        )

    result = {}
    for path_id, spans in intervals.items():
        merged: list = []
        for start, end in sorted(spans):
            if merged and merged[-1][1] >= start:
                merged[-1] = (merged[-1][0], max(merged[-1][1], end))
            else:
                merged.append((start, end))
        result[path_id] = merged
    return result