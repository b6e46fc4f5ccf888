"""EARFCN / NR-ARFCN -> frequency and candidate bands.

LTE downlink/uplink come from the matched band's offset and 100 kHz
spacing (TS 36.101 5.7.3). NR downlink comes from the global frequency
raster (TS 38.104 5.4.2.1) independent of band; band matching is a
separate range lookup. Every matching band is returned in catalog order
and the first one is the caller's primary guess.
"""
import logging
from typing import List, Optional, Sequence, Union

from celltelemetry.core.bands import band_by_number, bands_containing
from celltelemetry.schemas import (
    BandDefinition,
    FrequencyResult,
    LteCell,
    LteFrequencyInfo,
    NrCell,
    NrFrequencyInfo,
    RatType,
)

logger = logging.getLogger(__name__)

# LTE FDD 上行 EARFCN 固定比下行大 18000
LTE_UPLINK_CHANNEL_OFFSET = 18000

# 自动识别：0..68935 按 EARFCN，>=123400 按 NR-ARFCN，中间空档不识别
LTE_AUTO_MAX_CHANNEL = 68935
NR_AUTO_MIN_CHANNEL = 123400

# (N_low, N_high, F_REF-Offs MHz, N_REF-Offs, ΔF_Global MHz)
_NR_RASTER = (
    (0,       599999,  0.0,      0,       0.005),
    (600000,  2016666, 3000.0,   600000,  0.015),
    (2016667, 3279165, 24250.08, 2016667, 0.06),
)


def _check_channel(channel: int) -> None:
    if isinstance(channel, bool) or not isinstance(channel, int):
        raise TypeError(f"channel number must be an int, got {type(channel).__name__}")


def nr_raster_frequency(channel: int) -> Optional[float]:
    """F_REF = F_REF-Offs + ΔF_Global * (N_REF - N_REF-Offs); None outside the raster."""
    _check_channel(channel)
    for lo, hi, f_offs, n_offs, step in _NR_RASTER:
        if lo <= channel <= hi:
            return f_offs + (channel - n_offs) * step
    return None


# ---------- LTE ----------

def _lte_info(band: BandDefinition, channel: int, approximate: bool = False) -> LteFrequencyInfo:
    offset = channel - band.channel_offset
    if approximate:
        # 信道不在该频段表内：取模回落到频段内，仅作参考
        offset = offset % 1000
    dl = band.downlink_range_mhz[0] + offset * band.channel_spacing_mhz

    if band.duplex_mode == "FDD":
        ul_channel = channel + LTE_UPLINK_CHANNEL_OFFSET
        if approximate:
            ul = band.uplink_midpoint_mhz
        else:
            ul = band.uplink_range_mhz[0] + offset * band.channel_spacing_mhz
    else:
        # TDD 上下行同频，无独立上行信道号
        ul_channel = None
        ul = dl

    return LteFrequencyInfo(
        band_number=band.band_number,
        band_name=band.name,
        channel_number=channel,
        downlink_frequency_mhz=dl,
        uplink_frequency_mhz=ul,
        uplink_channel_number=ul_channel,
        duplex_mode=band.duplex_mode,
        approximate=approximate,
    )


def resolve_lte(channel: int, band_hint: Optional[int] = None) -> List[LteFrequencyInfo]:
    """
    EARFCN -> one LteFrequencyInfo per band whose range contains it.

    With band_hint only that band is considered; if its range does not
    contain the channel the band is still reported, flagged approximate.
    An empty list means no band matched.
    """
    _check_channel(channel)
    if channel < 0:
        return []
    if band_hint is None:
        infos = [_lte_info(b, channel) for b in bands_containing("LTE", channel)]
        if not infos:
            logger.debug("EARFCN %d matches no LTE band", channel)
        return infos

    band = band_by_number("LTE", band_hint)
    if band is None:
        logger.debug("LTE band %s not in catalog (EARFCN %d)", band_hint, channel)
        return []
    return [_lte_info(band, channel, approximate=not band.contains(channel))]


# ---------- NR ----------

def _nr_info(band: BandDefinition, channel: int, freq: float, approximate: bool = False) -> NrFrequencyInfo:
    if band.duplex_mode == "FDD":
        if approximate:
            ul = band.uplink_midpoint_mhz
        else:
            # NR 没有 LTE 那样固定的上行信道偏移：按频段上下行中点的双工间隔平移，属估算
            ul = freq + (band.uplink_midpoint_mhz - band.downlink_midpoint_mhz)
        estimated = True
    else:
        ul = freq
        estimated = False

    return NrFrequencyInfo(
        band_number=band.band_number,
        band_name=band.name,
        channel_number=channel,
        downlink_frequency_mhz=freq,
        uplink_frequency_mhz=ul,
        duplex_mode=band.duplex_mode,
        approximate=approximate,
        uplink_estimated=estimated,
    )


def resolve_nr(channel: int, band_hint: Optional[int] = None) -> List[NrFrequencyInfo]:
    """
    NR-ARFCN -> one NrFrequencyInfo per band whose range contains it.

    The downlink frequency is the same for every candidate (global raster).
    Channels outside the raster, or inside it but in no band, give [].
    """
    freq = nr_raster_frequency(channel)
    if freq is None:
        logger.debug("NR-ARFCN %d outside the global raster", channel)
        return []
    if band_hint is None:
        infos = [_nr_info(b, channel, freq) for b in bands_containing("NR5G", channel)]
        if not infos:
            logger.debug("NR-ARFCN %d (%.2f MHz) matches no NR band", channel, freq)
        return infos

    band = band_by_number("NR5G", band_hint)
    if band is None:
        logger.debug("NR band n%s not in catalog (NR-ARFCN %d)", band_hint, channel)
        return []
    return [_nr_info(band, channel, freq, approximate=not band.contains(channel))]


# ---------- Dispatch ----------

def detect_network_type(channel: int) -> Optional[RatType]:
    _check_channel(channel)
    if 0 <= channel <= LTE_AUTO_MAX_CHANNEL:
        return "LTE"
    if channel >= NR_AUTO_MIN_CHANNEL:
        return "NR5G"
    return None


def calculate_frequency(channel: int, network_type: Optional[RatType] = None) -> Optional[FrequencyResult]:
    """
    Resolve a bare channel number, guessing LTE vs NR from its range when
    network_type is not given. None when nothing resolves.
    """
    rat = network_type or detect_network_type(channel)
    if rat is None:
        return None
    if rat == "LTE":
        infos = resolve_lte(channel)
    elif rat == "NR5G":
        infos = resolve_nr(channel)
    else:
        raise ValueError(f"unknown network type: {network_type!r}")
    if not infos:
        return None
    return FrequencyResult(
        network_type=rat,
        channel_number=channel,
        frequency_mhz=infos[0].downlink_frequency_mhz,
        possible_bands=tuple(infos),
    )


def resolve_cell(cell: Union[LteCell, NrCell]) -> List[Union[LteFrequencyInfo, NrFrequencyInfo]]:
    """Frequencies for a decoded record, using its reported band as the hint."""
    if isinstance(cell, LteCell):
        return resolve_lte(cell.channel_number, cell.band_number)
    if isinstance(cell, NrCell):
        return resolve_nr(cell.channel_number, cell.band_number)
    raise TypeError(f"not a cell record: {type(cell).__name__}")


def resolve_cells(cells: Sequence[Union[LteCell, NrCell]]) -> List[List[Union[LteFrequencyInfo, NrFrequencyInfo]]]:
    return [resolve_cell(c) for c in cells]
