"""Benchmark metrics scraped from load generators.

Consumes the stdout captured by the orchestration layer: a Prometheus text
exposition with the following families:
- benchmark_duration: counter, seconds since the benchmark started
- latency_s: histogram of request latencies (buckets, _sum, _count)
- latency_squared_s: counter, sum of squared latencies
"""

import logging
import math
import re
from collections.abc import Hashable
from dataclasses import dataclass, field

from prometheus_client.parser import text_string_to_metric_families

logger = logging.getLogger(__name__)

DURATION_METRIC = "benchmark_duration"
LATENCY_METRIC = "latency_s"
LATENCY_SQUARED_METRIC = "latency_squared_s"

_LABEL_BLOCK = re.compile(r"\{([^}]*)\}")
_LABEL_PAIR = re.compile(r'(\w+)=("(?:[^"\\]|\\.)*"|[^,}]*)')


def _quote_bare_labels(text: str) -> str:
    """Quote label values that load generators emit without quotes.

    Turns `{le=0.5}` into `{le="0.5"}` and leaves quoted values untouched.
    """

    def quote_pair(match: re.Match[str]) -> str:
        name, value = match.groups()
        if value.startswith('"'):
            return match.group(0)
        return f'{name}="{value.strip()}"'

    def quote_block(match: re.Match[str]) -> str:
        return "{" + _LABEL_PAIR.sub(quote_pair, match.group(1)) + "}"

    lines = []
    for line in text.splitlines():
        if not line.lstrip().startswith("#"):
            line = _LABEL_BLOCK.sub(quote_block, line)
        lines.append(line)
    return "\n".join(lines) + "\n"


@dataclass
class DataPoint:
    """One scrape of a load generator.

    Durations are whole seconds, latencies are reported in milliseconds.
    """

    duration_s: int = 0
    buckets: dict[str, int] = field(default_factory=dict)
    sum_s: int = 0
    count: int = 0
    squared_sum_s: int = 0

    def tps(self) -> int:
        """Transactions per second since the start of the benchmark."""
        if self.duration_s == 0:
            return 0
        return self.count // self.duration_s

    def average_latency_ms(self) -> int:
        if self.count == 0:
            return 0
        return self.sum_s * 1000 // self.count

    def stdev_latency_ms(self) -> int:
        """Standard deviation: sqrt(squared_sum / count - avg^2)."""
        if self.count == 0:
            return 0
        first_term = self.squared_sum_s * 1000 // self.count
        variance = first_term - self.average_latency_ms() ** 2
        return math.isqrt(variance) if variance > 0 else 0

    @classmethod
    def from_scrape(cls, text: str) -> "DataPoint":
        """Parse a Prometheus text exposition.

        Label values may be quoted or bare. Missing metrics default to zero.

        Raises:
            ValueError: If the text is not a valid exposition
        """
        point = cls()
        for family in text_string_to_metric_families(_quote_bare_labels(text)):
            if family.name == DURATION_METRIC and family.samples:
                point.duration_s = int(family.samples[0].value)
            elif family.name == LATENCY_SQUARED_METRIC and family.samples:
                point.squared_sum_s = int(family.samples[0].value)
            elif family.name == LATENCY_METRIC:
                for sample in family.samples:
                    if sample.name == f"{LATENCY_METRIC}_bucket":
                        bucket = sample.labels["le"]
                        bucket = "inf" if bucket == "+Inf" else bucket
                        point.buckets[bucket] = int(sample.value)
                    elif sample.name == f"{LATENCY_METRIC}_sum":
                        point.sum_s = int(sample.value)
                    elif sample.name == f"{LATENCY_METRIC}_count":
                        point.count = int(sample.value)
        return point


@dataclass
class BenchmarkSummary:
    """Figures aggregated over the latest scrape of every load generator."""

    duration_s: int
    tps: int
    average_latency_ms: int
    stdev_latency_ms: int


def aggregate(data_points: list[DataPoint]) -> BenchmarkSummary:
    """Aggregate data points from several scrapers.

    Takes the max duration, the sum of tps, the mean of the average
    latencies and the max of the standard deviations.
    """
    if not data_points:
        return BenchmarkSummary(0, 0, 0, 0)
    return BenchmarkSummary(
        duration_s=max(x.duration_s for x in data_points),
        tps=sum(x.tps() for x in data_points),
        average_latency_ms=sum(x.average_latency_ms() for x in data_points)
        // len(data_points),
        stdev_latency_ms=max(x.stdev_latency_ms() for x in data_points),
    )


class MetricsCollector:
    """Accumulates scrapes per load generator."""

    def __init__(self) -> None:
        self.scrapers: dict[Hashable, list[DataPoint]] = {}

    def collect(self, scraper_id: Hashable, text: str) -> DataPoint:
        """Parse a scrape report and record it for scraper_id."""
        point = DataPoint.from_scrape(text)
        self.scrapers.setdefault(scraper_id, []).append(point)
        logger.debug(
            "Collected scrape from %s (count=%d, duration=%ds)",
            scraper_id,
            point.count,
            point.duration_s,
        )
        return point

    def summary(self) -> BenchmarkSummary:
        """Aggregate the latest data point of every scraper."""
        return aggregate([points[-1] for points in self.scrapers.values() if points])

    def format_summary(self) -> str:
        """Render the summary as a text table."""
        summary = self.summary()
        rows = [
            ("Duration:", f"{summary.duration_s} s"),
            ("TPS:", f"{summary.tps} tx/s"),
            ("Latency (avg):", f"{summary.average_latency_ms} ms"),
            ("Latency (stdev):", f"{summary.stdev_latency_ms} ms"),
        ]
        width = max(len(label) for label, _ in rows)
        rule = "-" * (width + 16)
        lines = [rule, " Benchmark Summary", rule]
        lines.extend(f" {label:<{width}} {value}" for label, value in rows)
        lines.append(rule)
        return "\n".join(lines)
