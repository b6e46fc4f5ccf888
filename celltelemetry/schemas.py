from __future__ import annotations

import logging
from typing import Annotated, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict

from celltelemetry.parsers.tokens import lte_bandwidth_mhz, pretty_band

logger = logging.getLogger(__name__)

RatType = Literal["LTE", "NR5G"]
DuplexMode = Literal["FDD", "TDD"]
CarrierRole = Literal["primary", "secondary"]
RecordSource = Literal["scan", "serving", "carrier"]
NetworkMode = Literal["LTE", "NR5G-SA", "NR5G-NSA"]
WarningKind = Literal["malformed_line", "undecodable_bytes"]


def format_mhz(value: Optional[float]) -> Optional[str]:
    """The only place a frequency is rounded: two decimals for display."""
    return None if value is None else f"{value:.2f}"


# ---------- Band catalog ----------

class BandDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    rat: RatType
    band_number: int
    name: str = Field(..., description="常用名，例如 'AWS-3'")
    downlink_range_mhz: Tuple[float, float]
    uplink_range_mhz: Tuple[float, float]
    channel_range: Tuple[int, int] = Field(..., description="EARFCN / NR-ARFCN 闭区间")
    channel_offset: int
    channel_spacing_mhz: Optional[float] = Field(
        None, description="仅 LTE；NR 走全局栅格公式"
    )
    duplex_mode: DuplexMode

    def contains(self, channel: int) -> bool:
        lo, hi = self.channel_range
        return lo <= channel <= hi

    @property
    def label(self) -> str:
        return pretty_band(self.rat, self.band_number)

    @property
    def frequency_range(self) -> Optional[str]:
        if self.rat != "NR5G":
            return None
        return "FR2" if self.band_number >= 257 else "FR1"

    @property
    def downlink_midpoint_mhz(self) -> float:
        return (self.downlink_range_mhz[0] + self.downlink_range_mhz[1]) / 2

    @property
    def uplink_midpoint_mhz(self) -> float:
        return (self.uplink_range_mhz[0] + self.uplink_range_mhz[1]) / 2


# ---------- Cell records (tagged union on rat) ----------

class _CellBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    source: RecordSource
    role: CarrierRole = "primary"
    mcc: Optional[str] = None
    mnc: Optional[str] = None
    channel_number: int = Field(..., description="EARFCN (LTE) / NR-ARFCN (NR)")
    physical_cell_id: Optional[int] = None
    rsrp: Optional[int] = None
    rsrq: Optional[int] = None
    sinr: Optional[int] = None
    rssi: Optional[int] = None
    srx_level: Optional[int] = None
    cell_id_hex: Optional[str] = None
    tracking_area_code_hex: Optional[str] = None
    band_number: Optional[int] = None
    duplex_mode: Optional[DuplexMode] = None

    @property
    def operator(self) -> Optional[str]:
        if self.mcc is None or self.mnc is None:
            return None
        return f"{self.mcc}{self.mnc}"

    @property
    def band_label(self) -> Optional[str]:
        return pretty_band(getattr(self, "rat", None), self.band_number)


class LteCell(_CellBase):
    rat: Literal["LTE"] = "LTE"
    signal_quality: Optional[int] = Field(None, description="squal，仅 +QSCAN 提供")
    bandwidth_code: Optional[int] = Field(None, description="资源块数 6/15/25/50/75/100")

    @property
    def bandwidth_mhz(self) -> Optional[float]:
        return lte_bandwidth_mhz(self.bandwidth_code)


class NrCell(_CellBase):
    rat: Literal["NR5G"] = "NR5G"
    subcarrier_spacing_khz: Optional[int] = None
    carrier_bandwidth_rb: Optional[int] = None
    offset_to_point_a: Optional[int] = None
    ssb_subcarrier_offset: Optional[int] = None
    ssb_subcarrier_spacing_khz: Optional[int] = None
    bandwidth_mhz: Optional[int] = Field(None, description="来自 NR 带宽代码")


CellRecord = Annotated[Union[LteCell, NrCell], Field(discriminator="rat")]


# ---------- Frequency resolution ----------

class _FrequencyInfoBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    band_number: int
    band_name: str
    channel_number: int
    downlink_frequency_mhz: float
    uplink_frequency_mhz: float
    uplink_channel_number: Optional[int] = None
    duplex_mode: DuplexMode
    approximate: bool = Field(
        False, description="信道不在该频段表内，仅按频段号匹配"
    )

    @property
    def downlink_display(self) -> str:
        return format_mhz(self.downlink_frequency_mhz)

    @property
    def uplink_display(self) -> str:
        return format_mhz(self.uplink_frequency_mhz)


class LteFrequencyInfo(_FrequencyInfoBase):
    rat: Literal["LTE"] = "LTE"


class NrFrequencyInfo(_FrequencyInfoBase):
    rat: Literal["NR5G"] = "NR5G"
    uplink_estimated: bool = Field(
        False, description="FDD 上行按中点双工间隔估算，非 3GPP 公式"
    )


FrequencyInfo = Annotated[Union[LteFrequencyInfo, NrFrequencyInfo], Field(discriminator="rat")]


class FrequencyResult(BaseModel):
    """All candidate bands for one channel; the first one is the primary guess."""
    model_config = ConfigDict(frozen=True)

    network_type: RatType
    channel_number: int
    frequency_mhz: float
    possible_bands: Tuple[FrequencyInfo, ...]

    @property
    def primary(self) -> FrequencyInfo:
        return self.possible_bands[0]

    @property
    def is_ambiguous(self) -> bool:
        return len(self.possible_bands) > 1

    @property
    def frequency_display(self) -> str:
        return format_mhz(self.frequency_mhz)


# ---------- Signal aggregation ----------

class AggregateSignalQuality(BaseModel):
    model_config = ConfigDict(frozen=True)

    rsrp_percent: Optional[int] = None
    rsrq_percent: Optional[int] = None
    sinr_percent: Optional[int] = None
    quality: Optional[str] = Field(None, description="excellent/good/fair/poor")


class AntennaReading(BaseModel):
    """One +QRSRP / +QRSRQ / +QSINR line: per-antenna values, None where unavailable."""
    model_config = ConfigDict(frozen=True)

    metric: Literal["rsrp", "rsrq", "sinr"]
    rat: RatType
    values: Tuple[Optional[int], ...]

    @property
    def valid_values(self) -> List[int]:
        return [v for v in self.values if v is not None]


# ---------- Carrier aggregation groups ----------

class CarrierGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    primary: CellRecord
    secondaries: Tuple[CellRecord, ...] = ()

    @property
    def cells(self) -> List[Union[LteCell, NrCell]]:
        return [self.primary, *self.secondaries]

    @property
    def network_mode(self) -> NetworkMode:
        if isinstance(self.primary, NrCell):
            return "NR5G-SA"
        if any(isinstance(c, NrCell) for c in self.secondaries):
            return "NR5G-NSA"
        return "LTE"

    @model_validator(mode="after")
    def _primary_role(self) -> "CarrierGroup":
        if self.primary.role != "primary":
            raise ValueError("group primary must have role 'primary'")
        return self

    @classmethod
    def split(cls, cells) -> List["CarrierGroup"]:
        """
        每个 primary 开一组，后续 secondary 归入当前组。
        第一个 primary 之前的 secondary 先挂起，并入下一个 primary 的组；
        始终等不到 primary 的 secondary 不成组（仍留在 DecodeResult.cells 里）。
        """
        groups: List[CarrierGroup] = []
        current = None
        tail: List = []
        for cell in cells:
            if cell.role == "primary":
                if current is not None:
                    groups.append(cls(primary=current, secondaries=tuple(tail)))
                    tail = []
                current = cell
            else:
                tail.append(cell)
        if current is not None:
            groups.append(cls(primary=current, secondaries=tuple(tail)))
        elif tail:
            logger.warning("%d secondary carrier(s) without a primary left ungrouped", len(tail))
        return groups

    def summary(self) -> str:
        """
        生成可读汇总：
        例：NR5G-NSA PCC B3@1300 (BW 20MHz), SCC×2: B7@3100, n78@636768
        """
        def _one(c) -> str:
            band = c.band_label
            return f"{band}@{c.channel_number}" if band else str(c.channel_number)

        pcc_txt = f"{self.network_mode} PCC {_one(self.primary)}"
        bw = self.primary.bandwidth_mhz
        if bw:
            pcc_txt += f" (BW {bw:g}MHz)"
        if not self.secondaries:
            return f"{pcc_txt}, SCC×0"
        parts = [_one(s) for s in self.secondaries]
        return f"{pcc_txt}, SCC×{len(parts)}: " + ", ".join(parts)


# ---------- Decoder output ----------

class DecodeWarning(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: WarningKind
    line_number: int = Field(..., description="1-based；整体问题为 0")
    line: str = ""
    reason: str


class DecodeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    cells: Tuple[CellRecord, ...] = ()
    warnings: Tuple[DecodeWarning, ...] = ()
    antenna: Tuple[AntennaReading, ...] = ()
    state: Optional[str] = Field(None, description='servingcell 状态，如 "NOCONN"')

    @property
    def lte_cells(self) -> List[LteCell]:
        return [c for c in self.cells if isinstance(c, LteCell)]

    @property
    def nr_cells(self) -> List[NrCell]:
        return [c for c in self.cells if isinstance(c, NrCell)]

    def groups(self) -> List[CarrierGroup]:
        return CarrierGroup.split(self.cells)
