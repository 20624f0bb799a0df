"""Coverage and quorum thresholds, given as absolute counts or relative fractions."""

from __future__ import annotations

import enum
import logging
import math
import re
from dataclasses import dataclass

log = logging.getLogger(__name__)

_UNSIGNED_INT = re.compile(r"\+?[0-9]+")


@dataclass(frozen=True)
class Threshold:
    """A threshold that is either an absolute count or a fraction in [0, 1]."""

    value: float
    relative: bool = False

    @classmethod
    def absolute(cls, value: int) -> "Threshold":
        return cls(int(value), False)

    @classmethod
    def of_fraction(cls, value: float) -> "Threshold":
        return cls(float(value), True)

    def to_absolute(self, n: int) -> int:
        """Return the threshold as a count out of ``n``."""
        if not self.relative:
            return int(self.value)
        # round half away from zero; values are never negative
        return int(math.floor(n * self.value + 0.5))

    def to_relative(self, n: int) -> float:
        """Return the threshold as a fraction of ``n``."""
        if self.relative:
            return float(self.value)
        return int(self.value) / n if n else math.inf

    def __str__(self) -> str:
        return str(self.value)


class RequireThreshold(enum.Enum):
    """Which kind of threshold a command line value must be."""

    ABSOLUTE = "absolute"
    RELATIVE = "relative"
    EITHER = "either"


def _parse_unsigned(text: str):
    if _UNSIGNED_INT.fullmatch(text):
        return int(text)
    return None


def _parse_relative(text: str, threshold_str: str, position: int) -> float:
    try:
        value = float(text)
    except ValueError:
        raise ValueError(
            f'threshold "{threshold_str}" ({position}. element in list) '
            "is required to be float, but isn't."
        ) from None
    if not 0.0 <= value <= 1.0:
        raise ValueError(
            f'relative threshold "{threshold_str}" ({position}. element in list) '
            "must be within [0,1]."
        )
    return value


def parse_threshold_cli(threshold_str: str, require: RequireThreshold) -> list:
    """Parse a comma separated list of thresholds."""
    thresholds = []
    for position, element in enumerate(threshold_str.split(","), start=1):
        text = element.strip()
        if require is RequireThreshold.ABSOLUTE:
            count = _parse_unsigned(text)
            if count is None:
                raise ValueError(
                    f'threshold "{threshold_str}" ({position}. element in list) '
                    "is required to be integer, but isn't."
                )
            thresholds.append(Threshold.absolute(count))
        elif require is RequireThreshold.RELATIVE:
            thresholds.append(
                Threshold.of_fraction(_parse_relative(text, threshold_str, position))
            )
        else:
            count = _parse_unsigned(text)
            if count is not None:
                thresholds.append(Threshold.absolute(count))
            else:
                thresholds.append(
                    Threshold.of_fraction(_parse_relative(text, threshold_str, position))
                )
    return thresholds


@dataclass
class ThresholdContainer:
    """Paired lists of quorum and coverage thresholds of equal length."""

    quorum: list
    coverage: list

    @classmethod
    def parse_params(cls, quorum: str, coverage: str) -> "ThresholdContainer":
        quorum_thresholds = []
        if quorum:
            quorum_thresholds = parse_threshold_cli(quorum, RequireThreshold.RELATIVE)
            log.debug(
                "loaded %d quorum thresholds: %s",
                len(quorum_thresholds),
                ", ".join(str(t) for t in quorum_thresholds),
            )
        if not quorum_thresholds:
            raise ValueError(
                "quorum threshold setting requires at least one element, but none is given"
            )

        coverage_thresholds = []
        if coverage:
            coverage_thresholds = parse_threshold_cli(coverage, RequireThreshold.ABSOLUTE)
            log.debug(
                "loaded %d coverage thresholds: %s",
                len(coverage_thresholds),
                ", ".join(str(t) for t in coverage_thresholds),
            )
        if not coverage_thresholds:
            raise ValueError(
                "coverage threshold setting requires at least one element, but none is given"
            )

        if len(quorum_thresholds) != len(coverage_thresholds):
            if len(quorum_thresholds) == 1:
                quorum_thresholds = quorum_thresholds * len(coverage_thresholds)
            elif len(coverage_thresholds) == 1:
                coverage_thresholds = coverage_thresholds * len(quorum_thresholds)
            else:
                raise ValueError(
                    "number of coverage and quorum threshold must match, "
                    "or either one must have a single value"
                )

        return cls(quorum=quorum_thresholds, coverage=coverage_thresholds)