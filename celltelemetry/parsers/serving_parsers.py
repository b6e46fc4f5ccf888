# coding: utf-8
"""
+QENG: "servingcell" 和 +QCAINFO 两类服务小区行。

固件输出的几种 servingcell 形态：
  LTE     "servingcell",<state>,"LTE",<is_tdd>,<MCC>,<MNC>,<cellID>,<PCID>,<earfcn>,<band>,
          <UL_bw>,<DL_bw>,<TAC>,<RSRP>,<RSRQ>,<RSSI>,<SINR>,<CQI>,<tx_power>,<srxlev>
  NR SA   "servingcell",<state>,"NR5G-SA",<duplex>,<MCC>,<MNC>,<cellID>,<PCID>,<TAC>,<ARFCN>,
          <band>,<NR_DL_bw>,<RSRP>,<RSRQ>,<SINR>,<scs>,<srxlev>
  EN-DC   "servingcell",<state>            （表头行，只有状态）
          "LTE",<is_tdd>,<MCC>,...         （锚点，同 LTE 去掉前两个字段）
          "NR5G-NSA",<MCC>,<MNC>,<PCID>,<RSRP>,<SINR>,<RSRQ>,<ARFCN>,<band>,<NR_DL_bw>,<scs>

+QCAINFO 每行一个分量载波，"PCC"/"SCC" 决定角色，第四个字段 "LTE BAND 3" /
"NR5G BAND 78" 决定制式，字段数决定布局。
"""
from typing import Dict, List, Optional, Tuple, Union

from celltelemetry.errors import MalformedLineError
from celltelemetry.parsers.tokens import (
    LTE_BANDWIDTH_CODE_TO_RB,
    LineLayout,
    centi_db,
    nr_bandwidth_mhz,
    parse_band_label,
    scs_khz,
    split_csv_tokens,
    to_hex_str,
    to_int,
    to_plmn_part,
    to_str,
)
from celltelemetry.schemas import LteCell, NrCell

Cell = Union[LteCell, NrCell]

# ---------- +QENG ----------

_LTE_BODY = (
    "is_tdd", "mcc", "mnc", "cellid", "pcid", "earfcn", "band", "ul_bw", "dl_bw",
    "tac", "rsrp", "rsrq", "rssi", "sinr", "cqi", "tx_power", "srxlev",
)

QENG_LTE = LineLayout("QENG servingcell LTE", ("tag", "state", "rat") + _LTE_BODY)
QENG_NSA_LTE = LineLayout("QENG NSA LTE", ("rat",) + _LTE_BODY)
QENG_SA = LineLayout("QENG servingcell NR5G-SA", (
    "tag", "state", "rat", "duplex", "mcc", "mnc", "cellid", "pcid", "tac",
    "arfcn", "band", "dl_bw", "rsrp", "rsrq", "sinr", "scs", "srxlev",
))
QENG_NSA_NR = LineLayout("QENG NSA NR5G", (
    "rat", "mcc", "mnc", "pcid", "rsrp", "sinr", "rsrq", "arfcn", "band", "dl_bw", "scs",
))


def _bind(layout: LineLayout, toks: List[str]) -> Dict[str, str]:
    f = layout.bind(toks)
    if f is None:
        raise MalformedLineError(
            f"{layout.name}: expected {len(layout.fields)} fields, got {len(toks)}"
        )
    return f


def _channel(tok: str, layout: LineLayout) -> int:
    ch = to_int(tok)
    if ch is None or ch < 0:
        raise MalformedLineError(f"{layout.name}: no channel number ({tok!r})")
    return ch


def _duplex(tok: Optional[str]) -> Optional[str]:
    s = (to_str(tok) or "").upper()
    return s if s in ("FDD", "TDD") else None


def _lte_serving(f: Dict[str, str], layout: LineLayout) -> LteCell:
    dl_code = to_int(f["dl_bw"])
    return LteCell(
        source="serving",
        mcc=to_plmn_part(f["mcc"], (3,)),
        mnc=to_plmn_part(f["mnc"], (2, 3)),
        channel_number=_channel(f["earfcn"], layout),
        physical_cell_id=to_int(f["pcid"]),
        rsrp=to_int(f["rsrp"]),
        rsrq=to_int(f["rsrq"]),
        rssi=to_int(f["rssi"]),
        sinr=to_int(f["sinr"]),
        srx_level=to_int(f["srxlev"]),
        cell_id_hex=to_hex_str(f["cellid"]),
        tracking_area_code_hex=to_hex_str(f["tac"]),
        band_number=to_int(f["band"]),
        duplex_mode=_duplex(f["is_tdd"]),
        bandwidth_code=LTE_BANDWIDTH_CODE_TO_RB.get(dl_code) if dl_code is not None else None,
    )


def _sa_serving(f: Dict[str, str]) -> NrCell:
    return NrCell(
        source="serving",
        mcc=to_plmn_part(f["mcc"], (3,)),
        mnc=to_plmn_part(f["mnc"], (2, 3)),
        channel_number=_channel(f["arfcn"], QENG_SA),
        physical_cell_id=to_int(f["pcid"]),
        rsrp=to_int(f["rsrp"]),
        rsrq=to_int(f["rsrq"]),
        sinr=to_int(f["sinr"]),
        srx_level=to_int(f["srxlev"]),
        cell_id_hex=to_hex_str(f["cellid"]),
        tracking_area_code_hex=to_hex_str(f["tac"]),
        band_number=to_int(f["band"]),
        duplex_mode=_duplex(f["duplex"]),
        subcarrier_spacing_khz=scs_khz(to_int(f["scs"])),
        bandwidth_mhz=nr_bandwidth_mhz(to_int(f["dl_bw"])),
    )


def _nsa_nr_serving(f: Dict[str, str]) -> NrCell:
    return NrCell(
        source="serving",
        mcc=to_plmn_part(f["mcc"], (3,)),
        mnc=to_plmn_part(f["mnc"], (2, 3)),
        channel_number=_channel(f["arfcn"], QENG_NSA_NR),
        physical_cell_id=to_int(f["pcid"]),
        rsrp=to_int(f["rsrp"]),
        rsrq=to_int(f["rsrq"]),
        sinr=to_int(f["sinr"]),
        band_number=to_int(f["band"]),
        subcarrier_spacing_khz=scs_khz(to_int(f["scs"])),
        bandwidth_mhz=nr_bandwidth_mhz(to_int(f["dl_bw"])),
    )


def parse_qeng_line(payload: str) -> Tuple[Optional[str], Optional[Cell]]:
    """
    '+QENG:' 之后的部分 -> (state, cell)。
    EN-DC 表头行只有 state；neighbourcell 行两者都是 None。
    """
    toks = split_csv_tokens(payload)
    head = toks[0].lower()

    if head == "servingcell":
        state = to_str(toks[1]) if len(toks) > 1 else None
        if len(toks) <= 2:
            return state, None
        rat = toks[2].upper()
        if rat == "LTE":
            return state, _lte_serving(_bind(QENG_LTE, toks), QENG_LTE)
        if rat == "NR5G-SA":
            return state, _sa_serving(_bind(QENG_SA, toks))
        raise MalformedLineError(f"QENG servingcell: unknown radio type {toks[2]!r}")

    if head.startswith("neighbourcell"):
        return None, None

    rat = toks[0].upper()
    if rat == "LTE":
        return None, _lte_serving(_bind(QENG_NSA_LTE, toks), QENG_NSA_LTE)
    if rat == "NR5G-NSA":
        return None, _nsa_nr_serving(_bind(QENG_NSA_NR, toks))
    raise MalformedLineError(f"QENG: unknown radio type {toks[0]!r}")


# ---------- +QCAINFO ----------

QCAINFO_LTE = LineLayout("QCAINFO LTE", (
    "role", "freq", "bandwidth", "band", "cell_state", "pci", "rsrp", "rsrq", "rssi", "sinr",
))
QCAINFO_NR_PCC = LineLayout("QCAINFO NR5G PCC", ("role", "freq", "bandwidth", "band", "pci"))
QCAINFO_NR_SHORT = LineLayout("QCAINFO NR5G", (
    "role", "freq", "bandwidth", "band", "pci", "rsrp", "rsrq", "sinr",
))
QCAINFO_NR_LONG = LineLayout("QCAINFO NR5G", (
    "role", "freq", "bandwidth", "band", "cell_state", "pci",
    "ul_configured", "ul_bandwidth", "ul_freq", "rsrp", "rsrq", "sinr",
))


def _qcainfo_lte(toks: List[str], role: str, band: int) -> LteCell:
    f = _bind(QCAINFO_LTE, toks)
    return LteCell(
        source="carrier",
        role=role,
        channel_number=_channel(f["freq"], QCAINFO_LTE),
        physical_cell_id=to_int(f["pci"]),
        rsrp=to_int(f["rsrp"]),
        rsrq=to_int(f["rsrq"]),
        rssi=to_int(f["rssi"]),
        sinr=to_int(f["sinr"]),
        band_number=band,
        bandwidth_code=to_int(f["bandwidth"]),
    )


def _qcainfo_nr(toks: List[str], role: str, band: int) -> NrCell:
    # 字段数区分布局：>=12 长格式（带上行配置），正好 8 短格式，SA 的 PCC 正好 5 个；
    # 其他字段数无法确定各字段位置，按坏行处理
    n = len(toks)
    if n >= len(QCAINFO_NR_LONG.fields):
        layout = QCAINFO_NR_LONG
    elif n == len(QCAINFO_NR_SHORT.fields):
        layout = QCAINFO_NR_SHORT
    elif n == len(QCAINFO_NR_PCC.fields) and role == "primary":
        layout = QCAINFO_NR_PCC
    else:
        raise MalformedLineError(f"QCAINFO NR5G: unsupported field count {n}")
    f = _bind(layout, toks)
    return NrCell(
        source="carrier",
        role=role,
        channel_number=_channel(f["freq"], layout),
        physical_cell_id=to_int(f["pci"]),
        rsrp=to_int(f.get("rsrp")),
        rsrq=to_int(f.get("rsrq")),
        sinr=centi_db(f.get("sinr")),
        band_number=band,
        bandwidth_mhz=nr_bandwidth_mhz(to_int(f["bandwidth"])),
    )


def parse_qcainfo_line(payload: str) -> Cell:
    """'+QCAINFO:' 之后的部分 -> 一个 carrier 记录（role 由 PCC/SCC 决定）。"""
    toks = split_csv_tokens(payload)
    tag = toks[0].upper()
    if tag.startswith("PCC"):
        role = "primary"
    elif tag.startswith("SCC"):
        role = "secondary"
    else:
        raise MalformedLineError(f"QCAINFO: unknown carrier tag {toks[0]!r}")
    if len(toks) < 4:
        raise MalformedLineError(f"QCAINFO: expected at least 4 fields, got {len(toks)}")

    label = parse_band_label(toks[3])
    if label is None:
        raise MalformedLineError(f"QCAINFO: unknown band label {toks[3]!r}")
    rat, band = label
    if rat == "LTE":
        return _qcainfo_lte(toks, role, band)
    return _qcainfo_nr(toks, role, band)
