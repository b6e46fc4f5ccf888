# coding: utf-8
"""Line cleanup, quote-aware CSV splitting and sentinel handling shared by every parser."""
import math
import re
from typing import Dict, List, NamedTuple, Optional, Tuple

# "-" / "-32768" / 空串 都表示「无读数」，统一成 None
SENTINEL_TOKENS = ("", "-", "-32768")
SENTINEL_INT = -32768

# +QRSRP/+QSINR 的天线位在未接入时会填 -140 / -37625
ANTENNA_FILLERS = (-140, -37625)

# LTE 资源块数 -> MHz（+QSCAN / +QCAINFO 的 bandwidth 字段）
LTE_RB_BANDWIDTH_MHZ: Dict[int, float] = {6: 1.4, 15: 3, 25: 5, 50: 10, 75: 15, 100: 20}

# +QENG servingcell 的 LTE UL/DL bandwidth 是 0..5 档位代码，换算成资源块数
LTE_BANDWIDTH_CODE_TO_RB: Dict[int, int] = {0: 6, 1: 15, 2: 25, 3: 50, 4: 75, 5: 100}

# NR 带宽代码（+QENG NR_DL_bandwidth / +QCAINFO NR bandwidth）-> MHz
NR_BANDWIDTH_CODE_MHZ: Dict[int, int] = {
    0: 5, 1: 10, 2: 15, 3: 20, 4: 25, 5: 30, 6: 40, 7: 50, 8: 60,
    9: 70, 10: 80, 11: 90, 12: 100, 13: 200, 14: 400, 15: 35, 16: 45,
}

_SCS_CODE_TO_KHZ = {0: 15, 1: 30, 2: 60, 3: 120, 4: 240}

_PREFIX_RE = re.compile(r"^\s*(\+[A-Z0-9]+):\s*(.*)$")
_BAND_LABEL_RE = re.compile(r"^\s*(LTE|NR5G)\s+BAND\s+(\d+)\s*$", re.I)


def clean_line(line: str) -> str:
    """去掉协议转义：\\" -> "，以及行内残留的 \\r。"""
    s = line.replace('\\"', '"').replace("\r", "")
    return s.strip()


def split_prefix(line: str) -> Optional[Tuple[str, str]]:
    """'+QSCAN: "LTE",...' -> ('+QSCAN', '"LTE",...')；非 +XXX: 行返回 None。"""
    m = _PREFIX_RE.match(line)
    if not m:
        return None
    return m.group(1), m.group(2)


def split_csv_tokens(payload: str) -> List[str]:
    s = payload.strip()
    tokens: List[str] = []
    buf: List[str] = []
    in_quote = False
    i = 0
    n = len(s)
    while i < n:
        ch = s[i]
        if ch == '"':
            # 引号内的 "" 才是转义的双引号；引号外的 "" 是空字段，照常开关引号
            if in_quote and i + 1 < n and s[i + 1] == '"':
                buf.append('"')
                i += 2
                continue
            in_quote = not in_quote
            i += 1
            continue
        if ch == ',' and not in_quote:
            tokens.append(''.join(buf).strip())
            buf.clear()
            i += 1
            continue
        buf.append(ch)
        i += 1
    # 收尾
    tokens.append(''.join(buf).strip())
    return tokens


def is_sentinel(tok: Optional[str]) -> bool:
    return tok is None or tok.strip() in SENTINEL_TOKENS


def to_int(tok: Optional[str]) -> Optional[int]:
    """Decimal field -> int; sentinels and garbage -> None."""
    if is_sentinel(tok):
        return None
    try:
        v = int(tok.strip(), 10)
    except ValueError:
        return None
    return None if v == SENTINEL_INT else v


def to_hex_str(tok: Optional[str]) -> Optional[str]:
    """Cell ID / TAC 保持十六进制字符串原样（统一大写，去掉 0x）。"""
    if is_sentinel(tok):
        return None
    s = tok.strip()
    if s[:2] in ("0x", "0X"):
        s = s[2:]
    return s.upper() if re.fullmatch(r"[0-9A-Fa-f]+", s) else None


def to_str(tok: Optional[str]) -> Optional[str]:
    if is_sentinel(tok):
        return None
    return tok.strip()


def scs_khz(code: Optional[int]) -> Optional[int]:
    """+QENG 的 SCS 是 0..4 档位代码。"""
    if code is None:
        return None
    return _SCS_CODE_TO_KHZ.get(code)


def scan_scs_khz(value: Optional[int]) -> Optional[int]:
    """+QSCAN 可能直接给 kHz（15/30/...），也可能给档位代码。"""
    if value is None:
        return None
    if value in _SCS_CODE_TO_KHZ.values():
        return value
    return _SCS_CODE_TO_KHZ.get(value)


def lte_bandwidth_mhz(rb: Optional[int]) -> Optional[float]:
    if rb is None:
        return None
    return LTE_RB_BANDWIDTH_MHZ.get(rb)


def nr_bandwidth_mhz(code: Optional[int]) -> Optional[int]:
    if code is None:
        return None
    return NR_BANDWIDTH_CODE_MHZ.get(code)


def parse_band_label(label: Optional[str]) -> Optional[Tuple[str, int]]:
    """'LTE BAND 3' -> ('LTE', 3)；'NR5G BAND 78' -> ('NR5G', 78)。"""
    if not label:
        return None
    m = _BAND_LABEL_RE.match(label)
    if not m:
        return None
    return m.group(1).upper(), int(m.group(2))


def pretty_band(rat: Optional[str], band: Optional[int]) -> Optional[str]:
    if band is None:
        return None
    if rat and "NR" in rat.upper():
        return f"n{band}"
    return f"B{band}"


class LineLayout(NamedTuple):
    """字段名列表即布局；字段数不够就不是这一种行。多出来的尾部字段忽略。"""
    name: str
    fields: Tuple[str, ...]

    def bind(self, toks: List[str]) -> Optional[Dict[str, str]]:
        if len(toks) < len(self.fields):
            return None
        return dict(zip(self.fields, toks))


def to_plmn_part(tok: Optional[str], digits: Tuple[int, ...]) -> Optional[str]:
    """MCC(3 位) / MNC(2~3 位) 保持字符串，保留前导 0；位数不对视为缺失。"""
    s = to_str(tok)
    if s is None or not s.isdigit() or len(s) not in digits:
        return None
    return s


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def centi_db(tok: Optional[str]) -> Optional[int]:
    """+QCAINFO 的 NR SNR 以 0.01 dB 为单位。"""
    v = to_int(tok)
    return None if v is None else round_half_up(v / 100)
