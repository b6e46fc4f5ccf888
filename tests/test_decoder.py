import logging

import pytest

from celltelemetry import config
from celltelemetry.errors import InvalidInputError, UndecodableInputError
from celltelemetry.parsers.decoder import decode, group_carriers
from celltelemetry.schemas import CarrierGroup, LteCell, NrCell

QSCAN_LTE = '+QSCAN: "LTE",460,01,1300,123,-95,-10,30,20,5F1EA15,2E1F,100,3'
QSCAN_NR = '+QSCAN: "NR5G",460,01,627264,500,-90,-11,25,30,ABCDEF,2E1F,273,78,0,6,30'

QENG_LTE = '+QENG: "servingcell","NOCONN","LTE","FDD",460,01,5F1EA15,123,1300,3,5,5,2E1F,-95,-10,-65,12,15,-,40'
QENG_SA = '+QENG: "servingcell","NOCONN","NR5G-SA","TDD",460,01,1A2B3C4D5,500,2E1F,627264,78,12,-90,-11,15,1,40'
QENG_NSA = (
    '+QENG: "servingcell","NOCONN"\r\n'
    '+QENG: "LTE","FDD",460,01,5F1EA15,123,1300,3,5,5,2E1F,-95,-10,-65,12,15,-,40\r\n'
    '+QENG: "NR5G-NSA",460,01,500,-90,15,-11,627264,78,12,1\r\n'
)

QCAINFO_PCC_B3 = '+QCAINFO: "PCC",1300,100,"LTE BAND 3",1,123,-95,-10,-65,12'
QCAINFO_SCC_B7 = '+QCAINFO: "SCC",3100,100,"LTE BAND 7",1,456,-100,-12,-70,8'


def test_scan_lines():
    res = decode(f"AT+QSCAN=3,1\r\n{QSCAN_LTE}\r\n{QSCAN_NR}\r\nOK\r\n")
    assert res.warnings == ()
    lte, nr = res.cells
    assert isinstance(lte, LteCell) and isinstance(nr, NrCell)
    assert (lte.source, lte.role) == ("scan", "primary")
    assert lte.mcc == "460" and lte.mnc == "01"
    assert lte.operator == "46001"
    assert lte.channel_number == 1300
    assert lte.physical_cell_id == 123
    assert (lte.rsrp, lte.rsrq, lte.srx_level, lte.signal_quality) == (-95, -10, 30, 20)
    assert lte.cell_id_hex == "5F1EA15"
    assert lte.tracking_area_code_hex == "2E1F"
    assert lte.bandwidth_mhz == 20
    assert lte.band_number == 3
    assert nr.channel_number == 627264
    assert nr.subcarrier_spacing_khz == 30
    assert nr.carrier_bandwidth_rb == 273
    assert nr.band_label == "n78"
    assert (nr.offset_to_point_a, nr.ssb_subcarrier_offset, nr.ssb_subcarrier_spacing_khz) == (0, 6, 30)
    assert len(res.groups()) == 2


def test_unknown_radio_type_dropped(caplog):
    text = "\n".join([QSCAN_LTE, '+QSCAN: "WCDMA",460,01,10700,100,-80', QSCAN_NR])
    with caplog.at_level(logging.WARNING, logger="celltelemetry"):
        res = decode(text)
    assert len(res.cells) == 2
    [w] = res.warnings
    assert w.kind == "malformed_line"
    assert w.line_number == 2
    assert "WCDMA" in w.reason
    assert w.line.startswith("+QSCAN")
    assert "line 2 dropped" in caplog.text


def test_short_line_dropped():
    res = decode('+QSCAN: "LTE",460,01,1300\n' + QSCAN_LTE)
    assert len(res.cells) == 1
    assert "expected 13 fields" in res.warnings[0].reason


def test_sentinels_become_none():
    line = '+QSCAN: "LTE",460,01,1300,123,-32768,-,30,,5F1EA15,2E1F,100,3'
    [cell] = decode(line).cells
    assert cell.rsrp is None
    assert cell.rsrq is None
    assert cell.signal_quality is None


def test_missing_channel_is_malformed():
    res = decode('+QSCAN: "LTE",460,01,-,123,-95,-10,30,20,5F1EA15,2E1F,100,3')
    assert res.cells == ()
    assert "channel" in res.warnings[0].reason


def test_escaped_quotes():
    [cell] = decode(QSCAN_LTE.replace('"', '\\"')).cells
    assert cell.channel_number == 1300


def test_carrier_pair_shares_operator():
    res = decode(f"{QCAINFO_PCC_B3}\n{QCAINFO_SCC_B7}")
    pcc, scc = res.cells
    assert pcc.role == "primary" and scc.role == "secondary"
    assert pcc.mcc == scc.mcc and pcc.mnc == scc.mnc
    assert (pcc.band_number, scc.band_number) == (3, 7)
    assert pcc.source == "carrier"
    assert (pcc.rsrp, pcc.rsrq, pcc.rssi, pcc.sinr) == (-95, -10, -65, 12)
    [group] = res.groups()
    assert group.network_mode == "LTE"
    assert group.summary() == "LTE PCC B3@1300 (BW 20MHz), SCC×1: B7@3100"


def test_serving_context_merged_into_carriers():
    res = decode("\n".join([QENG_LTE, QCAINFO_PCC_B3, QCAINFO_SCC_B7]))
    assert res.state == "NOCONN"
    pcc, scc = res.cells
    assert all(c.source == "carrier" for c in res.cells)
    assert (pcc.mcc, pcc.mnc) == ("460", "01")
    assert (scc.mcc, scc.mnc) == ("460", "01")
    assert pcc.cell_id_hex == "5F1EA15"
    assert pcc.tracking_area_code_hex == "2E1F"
    assert pcc.duplex_mode == "FDD"
    assert pcc.srx_level == 40
    assert scc.cell_id_hex is None


def test_lte_serving_only():
    res = decode(QENG_LTE)
    [cell] = res.cells
    assert (cell.source, cell.role) == ("serving", "primary")
    assert cell.duplex_mode == "FDD"
    # DL 带宽代码 5 -> 100 RB -> 20 MHz
    assert cell.bandwidth_code == 100
    assert cell.bandwidth_mhz == 20
    assert (cell.rsrp, cell.rsrq, cell.rssi, cell.sinr) == (-95, -10, -65, 12)


def test_nsa_serving_snapshot():
    res = decode(QENG_NSA)
    assert res.state == "NOCONN"
    assert res.warnings == ()
    lte, nr = res.cells
    assert lte.role == "primary" and nr.role == "secondary"
    assert nr.channel_number == 627264
    assert (nr.rsrp, nr.sinr, nr.rsrq) == (-90, 15, -11)
    assert nr.bandwidth_mhz == 100
    assert nr.subcarrier_spacing_khz == 30
    [group] = res.groups()
    assert group.network_mode == "NR5G-NSA"


def test_nsa_carriers():
    nr_scc = '+QCAINFO: "SCC",627264,12,"NR5G BAND 78",500,-90,-11,1500'
    res = decode(QENG_NSA + "\n".join([QCAINFO_PCC_B3, nr_scc]))
    pcc, scc = res.cells
    assert isinstance(scc, NrCell)
    assert scc.sinr == 15
    assert scc.mcc == "460"
    [group] = group_carriers(res.cells)
    assert group.summary() == "NR5G-NSA PCC B3@1300 (BW 20MHz), SCC×1: n78@627264"


def test_sa_serving_and_carriers():
    pcc = '+QCAINFO: "PCC",627264,12,"NR5G BAND 78",500'
    scc = '+QCAINFO: "SCC",504990,10,"NR5G BAND 41",1,300,0,-,-,-95,-12,1200'
    res = decode("\n".join([QENG_SA, pcc, scc]))
    p, s = res.cells
    # SA 的 PCC 行没有测量值，从 servingcell 补
    assert (p.rsrp, p.rsrq, p.sinr) == (-90, -11, 15)
    assert p.duplex_mode == "TDD"
    assert p.cell_id_hex == "1A2B3C4D5"
    assert p.bandwidth_mhz == 100
    assert (s.physical_cell_id, s.rsrp, s.rsrq, s.sinr) == (300, -95, -12, 12)
    assert s.bandwidth_mhz == 80
    [group] = res.groups()
    assert group.network_mode == "NR5G-SA"
    assert group.summary() == "NR5G-SA PCC n78@627264 (BW 100MHz), SCC×1: n41@504990"


def test_sa_serving_only():
    [cell] = decode(QENG_SA).cells
    assert isinstance(cell, NrCell)
    assert cell.subcarrier_spacing_khz == 30
    assert cell.srx_level == 40


def test_neighbourcell_ignored():
    res = decode(QENG_LTE + '\n+QENG: "neighbourcell intra","LTE",1300,124,-100,-12,-70,10,30,-,-,-,-')
    assert len(res.cells) == 1
    assert res.warnings == ()


def test_bad_band_label():
    res = decode('+QCAINFO: "SCC",10700,100,"WCDMA BAND 1",1,456,-100,-12,-70,8')
    assert res.cells == ()
    assert res.warnings[0].kind == "malformed_line"


def test_antenna_lines():
    res = decode("+QRSRP: -90,-92,-32768,-140,LTE\n+QSINR: 20,-37625,18,-140,NR5G\nOK")
    rsrp, sinr = res.antenna
    assert rsrp.metric == "rsrp" and rsrp.rat == "LTE"
    assert rsrp.values == (-90, -92, None, None)
    assert sinr.values == (20, None, 18, None)
    assert res.cells == ()


def test_antenna_unknown_sysmode():
    res = decode("+QRSRQ: -10,-11,-12,-13,WCDMA")
    assert res.antenna == ()
    assert len(res.warnings) == 1


def test_multiple_snapshots_each_start_a_group():
    res = decode("\n".join([QENG_LTE, QENG_SA]))
    assert [c.role for c in res.cells] == ["primary", "primary"]
    assert len(res.groups()) == 2


def test_bytes_input():
    res = decode(QSCAN_LTE.encode("utf-8"))
    assert len(res.cells) == 1


def test_invalid_utf8_replaced(caplog):
    raw = b"\xff\xfe\n" + QSCAN_LTE.encode("utf-8")
    with caplog.at_level(logging.WARNING, logger="celltelemetry"):
        res = decode(raw, strict=False)
    assert len(res.cells) == 1
    [w] = res.warnings
    assert w.kind == "undecodable_bytes"
    assert w.line_number == 0
    assert "UTF-8" in caplog.text


def test_invalid_utf8_strict():
    with pytest.raises(UndecodableInputError):
        decode(b"\xff" + QSCAN_LTE.encode("utf-8"), strict=True)


def test_strict_follows_config(monkeypatch):
    monkeypatch.setattr(config, "STRICT_UTF8", True)
    with pytest.raises(ValueError):
        decode(b"\xff")


def test_arbitrary_bytes_never_raise():
    res = decode(bytes(range(256)) * 4, strict=False)
    assert res.cells == ()


@pytest.mark.parametrize("raw", [None, 123, ["+QSCAN: ..."]])
def test_non_text_rejected(raw):
    with pytest.raises(InvalidInputError):
        decode(raw)
    with pytest.raises(TypeError):
        decode(raw)


def test_empty_input():
    res = decode("")
    assert res.cells == () and res.warnings == () and res.state is None
    assert res.groups() == []


def test_group_carriers_leading_secondary_joins_next_primary():
    cells = [
        LteCell(source="carrier", role="secondary", channel_number=3100, band_number=7),
        LteCell(source="carrier", role="primary", channel_number=1300),
    ]
    [group] = group_carriers(cells)
    assert group.primary.channel_number == 1300
    assert group.primary.role == "primary"
    assert [c.channel_number for c in group.secondaries] == [3100]
    assert group.summary() == "LTE PCC 1300, SCC×1: B7@3100"


def test_lone_secondary_is_not_grouped(caplog):
    with caplog.at_level(logging.WARNING, logger="celltelemetry"):
        res = decode(QCAINFO_SCC_B7)
        groups = res.groups()
    [cell] = res.cells
    assert cell.role == "secondary"
    assert groups == []
    assert "without a primary" in caplog.text


def test_group_rejects_secondary_as_primary():
    with pytest.raises(ValueError):
        CarrierGroup(primary=LteCell(source="carrier", role="secondary", channel_number=3100))


def test_truncated_nr_carrier_line_dropped():
    res = decode('+QCAINFO: "SCC",504990,10,"NR5G BAND 41",1,300,0,-,-,-95,-12')
    assert res.cells == ()
    [w] = res.warnings
    assert w.kind == "malformed_line"
    assert "field count 11" in w.reason


@pytest.mark.parametrize("fields", [
    '"SCC",627264,12,"NR5G BAND 78",500',
    '"PCC",627264,12,"NR5G BAND 78",500,-90',
    '"SCC",627264,12,"NR5G BAND 78",500,-90,-11,1500,0',
])
def test_nr_carrier_field_counts_outside_layouts(fields):
    res = decode("+QCAINFO: " + fields)
    assert res.cells == ()
    assert len(res.warnings) == 1
