"""Outlier detection over per-period ticket counts.

Four complementary rules, each returning the offending values and their
indices:

- z-score (population stddev)
- IQR with index-based quartiles
- modified z-score using the median absolute deviation
- Tukey's fences with interpolated quartiles
"""

from __future__ import annotations

from dataclasses import dataclass

from repair_analytics.analytics.aggregator import PeriodMetric
from repair_analytics.analytics.stat_primitives import mean, population_stddev


@dataclass
class ZScoreOutliers:
    outliers: list[float]
    indices: list[int]
    z_scores: list[float]


@dataclass
class IQROutliers:
    outliers: list[float]
    indices: list[int]
    q1: float
    q3: float
    iqr: float


@dataclass
class ModifiedZScoreOutliers:
    outliers: list[float]
    indices: list[int]
    modified_z_scores: list[float]


@dataclass
class TukeyOutliers:
    outliers: list[float]
    indices: list[int]
    lower_fence: float
    upper_fence: float


@dataclass
class PeriodOutlierFlags:
    """One period annotated with every rule's verdict."""
    period: str
    count: int
    is_zscore_outlier: bool
    is_iqr_outlier: bool
    is_modified_zscore_outlier: bool
    is_tukey_outlier: bool
    z_score: float
    modified_z_score: float


@dataclass
class OutlierReport:
    periods: list[PeriodOutlierFlags]
    zscore: ZScoreOutliers
    iqr: IQROutliers
    modified_zscore: ModifiedZScoreOutliers
    tukey: TukeyOutliers


def quantile(sorted_data: list[float], q: float) -> float:
    """Linearly interpolated quantile of already-sorted data."""
    if not sorted_data:
        return 0.0
    index = q * (len(sorted_data) - 1)
    lower = int(index)
    upper = min(lower + 1, len(sorted_data) - 1)
    weight = index - lower
    if weight == 0:
        return sorted_data[lower]
    return sorted_data[lower] * (1 - weight) + sorted_data[upper] * weight


def _select(data: list[float], flags: list[bool]) -> tuple[list[float], list[int]]:
    values = [v for v, f in zip(data, flags) if f]
    indices = [i for i, f in enumerate(flags) if f]
    return values, indices


def detect_outliers_zscore(data: list[float], threshold: float = 3.0) -> ZScoreOutliers:
    if not data:
        return ZScoreOutliers(outliers=[], indices=[], z_scores=[])
    m = mean(data)
    std = population_stddev(data)
    z_scores = [abs((v - m) / std) if std != 0 else 0.0 for v in data]
    outliers, indices = _select(data, [z > threshold for z in z_scores])
    return ZScoreOutliers(outliers=outliers, indices=indices, z_scores=z_scores)


def detect_outliers_iqr(data: list[float]) -> IQROutliers:
    if not data:
        return IQROutliers(outliers=[], indices=[], q1=0.0, q3=0.0, iqr=0.0)
    sorted_data = sorted(data)
    q1 = sorted_data[int(len(sorted_data) * 0.25)]
    q3 = sorted_data[int(len(sorted_data) * 0.75)]
    iqr = q3 - q1
    lower, upper = q1 - 1.5 * iqr, q3 + 1.5 * iqr
    outliers, indices = _select(data, [v < lower or v > upper for v in data])
    return IQROutliers(outliers=outliers, indices=indices, q1=q1, q3=q3, iqr=iqr)


def detect_outliers_modified_zscore(
    data: list[float],
    threshold: float = 3.5,
) -> ModifiedZScoreOutliers:
    if not data:
        return ModifiedZScoreOutliers(outliers=[], indices=[], modified_z_scores=[])
    sorted_data = sorted(data)
    median = sorted_data[len(sorted_data) // 2]
    deviations = sorted(abs(v - median) for v in data)
    mad = deviations[len(deviations) // 2]
    scores = [0.6745 * (v - median) / mad if mad != 0 else 0.0 for v in data]
    outliers, indices = _select(data, [abs(s) > threshold for s in scores])
    return ModifiedZScoreOutliers(outliers=outliers, indices=indices, modified_z_scores=scores)


def detect_outliers_tukey(data: list[float], k: float = 1.5) -> TukeyOutliers:
    if not data:
        return TukeyOutliers(outliers=[], indices=[], lower_fence=0.0, upper_fence=0.0)
    sorted_data = sorted(data)
    q1 = quantile(sorted_data, 0.25)
    q3 = quantile(sorted_data, 0.75)
    iqr = q3 - q1
    lower, upper = q1 - k * iqr, q3 + k * iqr
    outliers, indices = _select(data, [v < lower or v > upper for v in data])
    return TukeyOutliers(outliers=outliers, indices=indices, lower_fence=lower, upper_fence=upper)


def flag_outliers(metrics: list[PeriodMetric]) -> OutlierReport:
    """Run every rule over ticket counts and annotate each period."""
    counts = [float(m.count) for m in metrics]
    zscore = detect_outliers_zscore(counts)
    iqr = detect_outliers_iqr(counts)
    modified = detect_outliers_modified_zscore(counts)
    tukey = detect_outliers_tukey(counts)

    z_idx, iqr_idx = set(zscore.indices), set(iqr.indices)
    mod_idx, tukey_idx = set(modified.indices), set(tukey.indices)

    periods = [
        PeriodOutlierFlags(
            period=m.period,
            count=m.count,
            is_zscore_outlier=i in z_idx,
            is_iqr_outlier=i in iqr_idx,
            is_modified_zscore_outlier=i in mod_idx,
            is_tukey_outlier=i in tukey_idx,
            z_score=zscore.z_scores[i],
            modified_z_score=modified.modified_z_scores[i],
        )
        for i, m in enumerate(metrics)
    ]
    return OutlierReport(
        periods=periods,
        zscore=zscore,
        iqr=iqr,
        modified_zscore=modified,
        tukey=tukey,
    )
