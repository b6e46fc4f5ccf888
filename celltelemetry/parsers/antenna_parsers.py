# coding: utf-8
"""+QRSRP / +QRSRQ / +QSINR: 每根天线一个读数，最后一个字段是制式。"""
from typing import Optional

from celltelemetry.errors import MalformedLineError
from celltelemetry.parsers.tokens import ANTENNA_FILLERS, split_csv_tokens, to_int
from celltelemetry.schemas import AntennaReading

ANTENNA_PREFIXES = {"+QRSRP": "rsrp", "+QRSRQ": "rsrq", "+QSINR": "sinr"}

_SYSMODES = {"LTE": "LTE", "NR5G": "NR5G", "NR": "NR5G"}


def _antenna_value(tok: str) -> Optional[int]:
    v = to_int(tok)
    # 未接入的天线口填 -140 / -37625
    if v is None or v in ANTENNA_FILLERS:
        return None
    return v


def parse_antenna_line(prefix: str, payload: str) -> AntennaReading:
    """例：'+QRSRP: -90,-92,-32768,-140,LTE' -> rsrp/LTE (-90, -92, None, None)。"""
    metric = ANTENNA_PREFIXES.get(prefix)
    if metric is None:
        raise MalformedLineError(f"not an antenna line: {prefix}")
    toks = split_csv_tokens(payload)
    if len(toks) < 2:
        raise MalformedLineError(f"{prefix}: expected values and a sysmode, got {len(toks)} fields")
    rat = _SYSMODES.get(toks[-1].upper())
    if rat is None:
        raise MalformedLineError(f"{prefix}: unknown radio type {toks[-1]!r}")
    return AntennaReading(
        metric=metric,
        rat=rat,
        values=tuple(_antenna_value(t) for t in toks[:-1]),
    )
