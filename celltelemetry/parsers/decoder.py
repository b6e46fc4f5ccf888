# coding: utf-8
"""
Raw AT response text -> DecodeResult.

Lines are classified by their +XXX: prefix. Unrelated lines (echo, OK,
other commands) are skipped silently; a recognised line that cannot be
decoded becomes a DecodeWarning and decoding continues. When +QCAINFO
carrier lines are present they are the authoritative cell list and the
+QENG servingcell lines only donate context (operator, cell ID, TAC,
duplex, missing measurements) to the matching carrier.
"""
import logging
from typing import Dict, List, Optional, Sequence, Tuple, Union

from celltelemetry import config
from celltelemetry.errors import InvalidInputError, MalformedLineError, UndecodableInputError
from celltelemetry.parsers.antenna_parsers import ANTENNA_PREFIXES, parse_antenna_line
from celltelemetry.parsers.scan_parsers import parse_qscan_line
from celltelemetry.parsers.serving_parsers import parse_qcainfo_line, parse_qeng_line
from celltelemetry.parsers.tokens import clean_line, split_prefix
from celltelemetry.schemas import (
    AntennaReading,
    CarrierGroup,
    DecodeResult,
    DecodeWarning,
    LteCell,
    NrCell,
)

logger = logging.getLogger(__name__)

Cell = Union[LteCell, NrCell]

_CONTEXT_FIELDS = ("cell_id_hex", "tracking_area_code_hex", "duplex_mode", "srx_level")
_MEASUREMENT_FIELDS = ("rsrp", "rsrq", "sinr", "rssi")


def _as_text(raw, strict: bool) -> Tuple[str, List[DecodeWarning]]:
    if isinstance(raw, str):
        return raw, []
    if isinstance(raw, (bytes, bytearray)):
        data = bytes(raw)
        try:
            return data.decode("utf-8"), []
        except UnicodeDecodeError as e:
            if strict:
                raise UndecodableInputError(f"input is not valid UTF-8: {e}") from e
            logger.warning("input is not valid UTF-8 (%s), undecodable bytes replaced", e.reason)
            w = DecodeWarning(
                kind="undecodable_bytes",
                line_number=0,
                reason=f"invalid UTF-8 at byte {e.start}: {e.reason}",
            )
            return data.decode("utf-8", errors="replace"), [w]
    raise InvalidInputError(f"expected str or bytes, got {type(raw).__name__}")


def _merge_context(cell: Cell, ctx: Cell, fill_identity: bool) -> Cell:
    upd: Dict[str, object] = {}
    if cell.mcc is None and ctx.mcc is not None:
        upd["mcc"], upd["mnc"] = ctx.mcc, ctx.mnc
    if fill_identity:
        for name in _CONTEXT_FIELDS + _MEASUREMENT_FIELDS:
            if getattr(cell, name) is None and getattr(ctx, name) is not None:
                upd[name] = getattr(ctx, name)
    return cell.model_copy(update=upd) if upd else cell


def _apply_serving_context(carriers: List[Cell], serving: List[Cell]) -> List[Cell]:
    plmn = next((s for s in serving if s.mcc is not None), None)
    out: List[Cell] = []
    for cell in carriers:
        # 同制式同信道号的 servingcell 记录就是这个载波；PCC 退而取同制式第一条
        match = next(
            (s for s in serving if s.rat == cell.rat and s.channel_number == cell.channel_number),
            None,
        )
        if match is None and cell.role == "primary":
            match = next((s for s in serving if s.rat == cell.rat), None)
        if match is not None:
            cell = _merge_context(cell, match, fill_identity=True)
        if plmn is not None:
            cell = _merge_context(cell, plmn, fill_identity=False)
        out.append(cell)
    return out


def decode(raw, strict: Optional[bool] = None) -> DecodeResult:
    """
    Decode one AT response dump (str, or bytes expected to be UTF-8).

    strict=None follows config.STRICT_UTF8. Only non-text input
    (InvalidInputError) and invalid UTF-8 under strict mode
    (UndecodableInputError) raise; everything else ends up in
    DecodeResult.warnings.
    """
    text, warnings = _as_text(raw, config.STRICT_UTF8 if strict is None else strict)

    # (line_number, kind, cell)，最后按行号输出
    entries: List[Tuple[int, str, Cell]] = []
    antenna: List[AntennaReading] = []
    state: Optional[str] = None
    snapshot_has_serving = False

    for no, ln in enumerate(text.splitlines(), start=1):
        s = clean_line(ln)
        head = split_prefix(s)
        if head is None:
            continue
        prefix, payload = head
        try:
            if prefix == "+QSCAN":
                entries.append((no, "scan", parse_qscan_line(payload)))
            elif prefix == "+QENG":
                st, cell = parse_qeng_line(payload)
                if st is not None:
                    # 新的 servingcell 快照
                    state = st
                    snapshot_has_serving = False
                if cell is not None:
                    role = "secondary" if snapshot_has_serving else "primary"
                    snapshot_has_serving = True
                    entries.append((no, "serving", cell.model_copy(update={"role": role})))
            elif prefix == "+QCAINFO":
                entries.append((no, "carrier", parse_qcainfo_line(payload)))
            elif prefix in ANTENNA_PREFIXES:
                antenna.append(parse_antenna_line(prefix, payload))
        except MalformedLineError as e:
            logger.warning("line %d dropped: %s", no, e)
            warnings.append(DecodeWarning(kind="malformed_line", line_number=no, line=s, reason=str(e)))

    serving = [c for _, kind, c in entries if kind == "serving"]
    carriers = [c for _, kind, c in entries if kind == "carrier"]
    if carriers:
        merged = iter(_apply_serving_context(carriers, serving))
        cells = [next(merged) if kind == "carrier" else c for _, kind, c in entries if kind != "serving"]
    else:
        cells = [c for _, _, c in entries]

    logger.debug(
        "decoded %d cells (%d serving, %d carrier), %d antenna lines, %d warnings",
        len(cells), len(serving), len(carriers), len(antenna), len(warnings),
    )
    return DecodeResult(
        cells=tuple(cells),
        warnings=tuple(warnings),
        antenna=tuple(antenna),
        state=state,
    )


def group_carriers(cells: Sequence[Cell]) -> List[CarrierGroup]:
    """Records in decode order -> one group per primary carrier."""
    return CarrierGroup.split(cells)
