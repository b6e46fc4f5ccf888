import pytest

from celltelemetry.core.signal import (
    aggregate,
    mean,
    mimo_layers,
    rate_quality,
    rsrp_percent,
    sinr_percent,
    summarize_antenna,
    summarize_group,
)
from celltelemetry.schemas import AntennaReading, CarrierGroup, LteCell, NrCell


def test_empty_group_is_unknown():
    assert aggregate([], -140, -75) is None
    assert aggregate([None, None], -140, -75) is None


def test_invalid_readings_do_not_move_the_mean():
    assert aggregate([-90], -140, -75) == aggregate([-90, None], -140, -75) == 77


def test_rsrp_group_with_gap():
    assert aggregate([-90, None, -100], -140, -75) == 69


@pytest.mark.parametrize("readings, pct", [
    ([-30], 100),
    ([-200], 0),
    ([-140], 0),
    ([-75], 100),
])
def test_clamped(readings, pct):
    assert aggregate(readings, -140, -75) == pct


def test_rounds_half_up():
    # 15 / 40 * 100 = 37.5
    assert aggregate([15], 0, 40) == 38
    assert sinr_percent([20]) == 50


def test_floor_equals_ceiling():
    with pytest.raises(ValueError):
        aggregate([-90], -90, -90)


def test_config_defaults(monkeypatch):
    from celltelemetry import config
    assert rsrp_percent([-90, None, -100]) == 69
    monkeypatch.setattr(config, "RSRP_FLOOR_DB", -120.0)
    monkeypatch.setattr(config, "RSRP_CEILING_DB", -80.0)
    assert rsrp_percent([-100]) == 50


def test_mean():
    assert mean([None]) is None
    assert mean([-90, None, -100]) == -95


@pytest.mark.parametrize("rsrp, sinr, rat, q", [
    (-75, None, "LTE", "excellent"),
    (-85, None, "LTE", "good"),
    (-85, 25, "LTE", "excellent"),
    (-85, 16, "LTE", "good"),
    (-85, 16, "NR5G", "excellent"),
    (-78, -3, "LTE", "fair"),
    (-105, -3, "LTE", "poor"),
    (None, 10, "LTE", "fair"),
    (None, None, "LTE", None),
])
def test_rate_quality(rsrp, sinr, rat, q):
    assert rate_quality(rsrp, sinr, rat) == q


def test_nsa_group_pools_both_rats():
    group = CarrierGroup(
        primary=LteCell(source="carrier", channel_number=1300, rsrp=-90, rsrq=-10, sinr=20),
        secondaries=(
            NrCell(source="carrier", role="secondary", channel_number=627264, rsrp=-100, rsrq=-12, sinr=10),
        ),
    )
    assert group.network_mode == "NR5G-NSA"
    agg = summarize_group(group)
    assert agg.rsrp_percent == 69
    assert agg.rsrq_percent == 90
    assert agg.sinr_percent == 38
    assert agg.quality == "excellent"


def test_group_without_readings():
    group = CarrierGroup(primary=LteCell(source="scan", channel_number=1300))
    agg = summarize_group(group)
    assert agg.rsrp_percent is None
    assert agg.rsrq_percent is None
    assert agg.sinr_percent is None
    assert agg.quality is None


def _antenna():
    return [
        AntennaReading(metric="rsrp", rat="LTE", values=(-90, -92, None, None)),
        AntennaReading(metric="rsrp", rat="NR5G", values=(-95, None, None, None)),
        AntennaReading(metric="sinr", rat="LTE", values=(20, 20, None, None)),
    ]


def test_summarize_antenna():
    agg = summarize_antenna(_antenna())
    # mean(-90, -92, -95) = -92.33
    assert agg.rsrp_percent == 73
    assert agg.rsrq_percent is None
    assert agg.sinr_percent == 50


def test_mimo_layers():
    assert mimo_layers(_antenna()) == {"LTE": 2, "NR5G": 1}
    assert mimo_layers([]) == {}
