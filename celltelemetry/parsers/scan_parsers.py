# coding: utf-8
"""+QSCAN: one neighbour/scan result per line, LTE or NR5G."""
from typing import Dict, List, Union

from celltelemetry.errors import MalformedLineError
from celltelemetry.parsers.tokens import (
    LineLayout,
    scan_scs_khz,
    split_csv_tokens,
    to_hex_str,
    to_int,
    to_plmn_part,
)
from celltelemetry.schemas import LteCell, NrCell

QSCAN_LTE = LineLayout("QSCAN LTE", (
    "rat", "mcc", "mnc", "freq", "pci", "rsrp", "rsrq", "srxlev",
    "squal", "cellid", "tac", "bandwidth", "band",
))

QSCAN_NR = LineLayout("QSCAN NR5G", (
    "rat", "mcc", "mnc", "freq", "pci", "rsrp", "rsrq", "srxlev",
    "scs", "cellid", "tac", "carrier_bandwidth", "band",
    "offset_to_point_a", "ssb_subcarrier_offset", "ssb_scs",
))


def _bind(layout: LineLayout, toks: List[str]) -> Dict[str, str]:
    f = layout.bind(toks)
    if f is None:
        raise MalformedLineError(
            f"{layout.name}: expected {len(layout.fields)} fields, got {len(toks)}"
        )
    return f


def _channel(f: Dict[str, str], layout: LineLayout) -> int:
    ch = to_int(f["freq"])
    if ch is None or ch < 0:
        raise MalformedLineError(f"{layout.name}: no channel number ({f['freq']!r})")
    return ch


def _parse_lte(toks: List[str]) -> LteCell:
    f = _bind(QSCAN_LTE, toks)
    return LteCell(
        source="scan",
        mcc=to_plmn_part(f["mcc"], (3,)),
        mnc=to_plmn_part(f["mnc"], (2, 3)),
        channel_number=_channel(f, QSCAN_LTE),
        physical_cell_id=to_int(f["pci"]),
        rsrp=to_int(f["rsrp"]),
        rsrq=to_int(f["rsrq"]),
        srx_level=to_int(f["srxlev"]),
        signal_quality=to_int(f["squal"]),
        cell_id_hex=to_hex_str(f["cellid"]),
        tracking_area_code_hex=to_hex_str(f["tac"]),
        bandwidth_code=to_int(f["bandwidth"]),
        band_number=to_int(f["band"]),
    )


def _parse_nr(toks: List[str]) -> NrCell:
    f = _bind(QSCAN_NR, toks)
    return NrCell(
        source="scan",
        mcc=to_plmn_part(f["mcc"], (3,)),
        mnc=to_plmn_part(f["mnc"], (2, 3)),
        channel_number=_channel(f, QSCAN_NR),
        physical_cell_id=to_int(f["pci"]),
        rsrp=to_int(f["rsrp"]),
        rsrq=to_int(f["rsrq"]),
        srx_level=to_int(f["srxlev"]),
        subcarrier_spacing_khz=scan_scs_khz(to_int(f["scs"])),
        cell_id_hex=to_hex_str(f["cellid"]),
        tracking_area_code_hex=to_hex_str(f["tac"]),
        carrier_bandwidth_rb=to_int(f["carrier_bandwidth"]),
        band_number=to_int(f["band"]),
        offset_to_point_a=to_int(f["offset_to_point_a"]),
        ssb_subcarrier_offset=to_int(f["ssb_subcarrier_offset"]),
        ssb_subcarrier_spacing_khz=scan_scs_khz(to_int(f["ssb_scs"])),
    )


def parse_qscan_line(payload: str) -> Union[LteCell, NrCell]:
    """
    payload 是 '+QSCAN:' 之后的部分。第一个字段决定制式：
    "LTE" 13 个字段，"NR5G" 16 个字段；其余制式抛 MalformedLineError。
    """
    toks = split_csv_tokens(payload)
    rat = toks[0].upper()
    if rat == "LTE":
        return _parse_lte(toks)
    if rat in ("NR5G", "NR"):
        return _parse_nr(toks)
    raise MalformedLineError(f"QSCAN: unknown radio type {toks[0]!r}")
