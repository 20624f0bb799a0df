"""Coverage histograms and the pangenome growth curves derived from them."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, TextIO

from panacus.abacus_total import AbacusByTotal
from panacus.graph import CountType, GraphStorage
from panacus.threshold import Threshold, ThresholdContainer

log = logging.getLogger(__name__)


def _log2(x: float) -> float:
    """Base-2 logarithm that maps 0 to -inf instead of raising."""
    if x == 0:
        return -math.inf
    return math.log2(x)


def _exp2(x: float) -> float:
    return 2.0 ** x


def choose(n: int, k: int) -> float:
    """Return log2 of the binomial coefficient n over k (0.0 if k > n)."""
    if k > n:
        return 0.0
    k = min(k, n - k)
    res = 0.0
    for i in range(k):
        res += math.log2(n - i)
        res -= math.log2(i + 1)
    return res


@dataclass
class Hist:
    """Number of items (or base pairs) per coverage value 0..number of groups."""

    count: CountType
    coverage: list

    @classmethod
    def from_abacus(
        cls, abacus: AbacusByTotal, graph_storage: Optional[GraphStorage] = None
    ) -> "Hist":
        """Build the histogram of a total-coverage abacus."""
        if abacus.count in (CountType.NODE, CountType.EDGE):
            coverage = abacus.construct_hist()
        elif abacus.count is CountType.BP:
            if graph_storage is None:
                raise ValueError("graph storage is needed for a bp histogram")
            coverage = abacus.construct_hist_bps(graph_storage)
        else:
            raise ValueError(f"inadmissible count type {abacus.count}")
        return cls(count=abacus.count, coverage=coverage)

    def calc_growth(self, t_coverage: Threshold, t_quorum: Threshold) -> list:
        """Growth curve for the given coverage and quorum thresholds."""
        n = len(self.coverage) - 1
        if n <= 0:
            return []
        quorum = max(1, t_quorum.to_absolute(n))
        if quorum == 1:
            return self.calc_growth_union(t_coverage)
        if quorum >= n:
            return self.calc_growth_core(t_coverage)
        return self.calc_growth_quorum(t_coverage, t_quorum)

    def calc_all_growths(self, thresholds: ThresholdContainer) -> list:
        """One growth curve per threshold pair, each led by a NaN for position 0."""
        growths = []
        for c, q in zip(thresholds.coverage, thresholds.quorum):
            log.info("calculating growth for coverage >= %s and quorum >= %s", c, q)
            growths.append([math.nan, *self.calc_growth(c, q)])
        return growths

    def calc_growth_union(self, t_coverage: Threshold) -> list:
        """Expected number of items covered by at least one of m groups."""
        n = len(self.coverage) - 1
        c = max(1, t_coverage.to_absolute(n))

        pangrowth = [0.0] * n
        n_fall_m = 0.0
        tot = float(sum(self.coverage[c:]))
        # perc_mult[i]: share of combinations that hold an item of multiplicity i
        perc_mult = [0.0] * (n + 1)

        for m in range(1, n + 1):
            y = 0.0
            n_fall_m += math.log2(n - m + 1)
            for i in range(c, n - m + 1):
                perc_mult[i] += _log2(n - m - i + 1)
                y += _exp2(_log2(self.coverage[i]) + perc_mult[i] - n_fall_m)
            pangrowth[m - 1] = tot - y
        return pangrowth

    def calc_growth_core(self, t_coverage: Threshold) -> list:
        """Expected number of items covered by all of m groups."""
        n = len(self.coverage) - 1
        c = max(1, t_coverage.to_absolute(n + 1))
        n_fall_m = 0.0
        pangrowth = [0.0] * n
        perc_mult = [0.0] * (n + 1)

        for m in range(1, n + 1):
            y = 0.0
            n_fall_m += math.log2(n - m + 1)
            for i in range(max(m, c), n + 1):
                perc_mult[i] += math.log2(i - m + 1)
                y += _exp2(_log2(self.coverage[i]) + perc_mult[i] - n_fall_m)
            pangrowth[m - 1] = y
        return pangrowth

    def calc_growth_quorum(self, t_coverage: Threshold, t_quorum: Threshold) -> list:
        """Expected number of items covered by a quorum of m groups."""
        n = len(self.coverage) - 1
        c = max(1, t_coverage.to_absolute(n))
        quorum = t_quorum.to_relative(n)
        pangrowth = [0.0] * n

        n_fall_m = 0.0
        m_fact = 0.0
        perc_mult = [0.0] * (n + 1)
        q = [[0.0] * (n + 1) for _ in range(n + 1)]

        for m in range(1, n + 1):
            m_fact += math.log2(m)
            m_quorum = math.ceil(m * quorum)

            # full quorum
            yl = 0.0
            n_fall_m += math.log2(n - m + 1)
            for i in range(max(m, c), n + 1):
                perc_mult[i] += math.log2(i - m + 1)
                yl += _exp2(_log2(self.coverage[i]) + perc_mult[i] - n_fall_m)

            # quorum in [m_quorum, 100)
            yr = 0.0
            for i in range(m_quorum, n):
                sum_q = 0.0
                add = False
                for j in range(max(m_quorum, c), m):
                    if n + j + 1 > i + m and j <= i:
                        if q[i][j] == 0.0:
                            q[i][j] = choose(i, j)
                        q[i][j] += math.log2(n - i - m + 1 + j)
                        q[i][j] -= math.log2(m - j)
                        sum_q += _exp2(q[i][j] + m_fact - n_fall_m)
                        add = True
                if add:
                    yr += _exp2(_log2(self.coverage[i]) + _log2(sum_q))
            pangrowth[m - 1] = yl + yr
        return pangrowth

    def to_tsv(self, out: TextIO) -> None:
        """Write the histogram as tab separated lines."""
        out.write(f"hist\t{self.count}\n")
        for i, c in enumerate(self.coverage):
            out.write(f"{i}\t{c}\n")