"""Signal-quality aggregation: sentinel-aware mean rescaled to 0-100%."""
import logging
from typing import Dict, Iterable, List, Optional, Sequence

from celltelemetry import config
from celltelemetry.parsers.tokens import round_half_up
from celltelemetry.schemas import (
    AggregateSignalQuality,
    AntennaReading,
    CarrierGroup,
    LteCell,
    NrCell,
    RatType,
)

logger = logging.getLogger(__name__)


def mean(readings: Iterable[Optional[float]]) -> Optional[float]:
    vals = [v for v in readings if v is not None]
    if not vals:
        return None
    return sum(vals) / len(vals)


def aggregate(readings: Iterable[Optional[float]], floor_db: float, ceiling_db: float) -> Optional[int]:
    """
    Mean of the valid readings mapped linearly so floor_db -> 0 and
    ceiling_db -> 100, clamped and rounded half-up.

    None entries are unavailable measurements and are skipped; if nothing
    valid is left the result is None (unknown), never 0. The same mapping
    covers RSRP-style values (floor -140, ceiling -75) and SINR-style
    values (floor 0, ceiling 40).
    """
    if ceiling_db == floor_db:
        raise ValueError("ceiling_db must differ from floor_db")
    avg = mean(readings)
    if avg is None:
        return None
    pct = (avg - floor_db) / (ceiling_db - floor_db) * 100
    return round_half_up(max(0.0, min(100.0, pct)))


def rsrp_percent(readings: Iterable[Optional[float]]) -> Optional[int]:
    return aggregate(readings, config.RSRP_FLOOR_DB, config.RSRP_CEILING_DB)


def rsrq_percent(readings: Iterable[Optional[float]]) -> Optional[int]:
    return aggregate(readings, config.RSRQ_FLOOR_DB, config.RSRQ_CEILING_DB)


def sinr_percent(readings: Iterable[Optional[float]]) -> Optional[int]:
    return aggregate(readings, config.SINR_FLOOR_DB, config.SINR_CEILING_DB)


def rate_quality(rsrp: Optional[float], sinr: Optional[float], rat: RatType = "LTE") -> Optional[str]:
    # RSRP：>=-80 优 / >=-90 良 / >=-100 中 / 其他差；再按 SINR 轻微修正
    if rsrp is None and sinr is None:
        return None
    if rsrp is not None:
        if rsrp >= -80: q = "excellent"
        elif rsrp >= -90: q = "good"
        elif rsrp >= -100: q = "fair"
        else: q = "poor"
    else:
        q = "fair"
    boost = 15 if rat == "NR5G" else 20
    if sinr is not None:
        if sinr >= boost and q in ("good", "fair"): q = "excellent"
        elif sinr < 0 and q in ("good", "excellent"): q = "fair"
    return q


def summarize_readings(
    rsrp: Sequence[Optional[float]],
    rsrq: Sequence[Optional[float]],
    sinr: Sequence[Optional[float]],
    rat: RatType = "LTE",
) -> AggregateSignalQuality:
    return AggregateSignalQuality(
        rsrp_percent=rsrp_percent(rsrp),
        rsrq_percent=rsrq_percent(rsrq),
        sinr_percent=sinr_percent(sinr),
        quality=rate_quality(mean(rsrp), mean(sinr), rat),
    )


def summarize_group(group: CarrierGroup) -> AggregateSignalQuality:
    """
    One figure per carrier-aggregation group. LTE and NR readings of an
    NR5G-NSA group are pooled into a single mean, not averaged per RAT.
    """
    rsrp: List[Optional[int]] = []
    rsrq: List[Optional[int]] = []
    sinr: List[Optional[int]] = []
    for cell in group.cells:
        if isinstance(cell, (LteCell, NrCell)):
            rsrp.append(cell.rsrp)
            rsrq.append(cell.rsrq)
            sinr.append(cell.sinr)
        else:
            raise TypeError(f"not a cell record: {type(cell).__name__}")
    rat: RatType = "LTE" if group.network_mode == "LTE" else "NR5G"
    result = summarize_readings(rsrp, rsrq, sinr, rat)
    if result.rsrp_percent is None:
        logger.debug("no valid RSRP in %s group (PCC %s)", group.network_mode, group.primary.channel_number)
    return result


def summarize_antenna(readings: Sequence[AntennaReading]) -> AggregateSignalQuality:
    """Same figures from +QRSRP / +QRSRQ / +QSINR per-antenna lines, all RATs pooled."""
    pools: Dict[str, List[int]] = {"rsrp": [], "rsrq": [], "sinr": []}
    has_nr = False
    for r in readings:
        pools[r.metric].extend(r.valid_values)
        has_nr = has_nr or r.rat == "NR5G"
    return summarize_readings(pools["rsrp"], pools["rsrq"], pools["sinr"], "NR5G" if has_nr else "LTE")


def mimo_layers(readings: Sequence[AntennaReading]) -> Dict[str, int]:
    """Receive paths with a valid RSRP, per RAT (e.g. {"LTE": 4, "NR5G": 2})."""
    out: Dict[str, int] = {}
    for r in readings:
        if r.metric != "rsrp":
            continue
        n = len(r.valid_values)
        if n:
            out[r.rat] = out.get(r.rat, 0) + n
    return out
