"""LTE (TS 36.101) and NR (TS 38.104) operating band tables.

The tables are immutable tuples of frozen BandDefinition models, ordered
FDD first, then TDD (then FR2 for NR). Several NR ranges genuinely overlap
(n41/n90, n48/n77/n78, n1/n66, n2/n25, n14/n28); lookups report every
match in table order rather than picking one.
"""
import csv
import io
import logging
from typing import Dict, List, Optional, Tuple

from celltelemetry.schemas import BandDefinition, RatType

logger = logging.getLogger(__name__)


def _lte(band, name, dl, ul, offset, rng, duplex, spacing=0.1) -> BandDefinition:
    return BandDefinition(
        rat="LTE", band_number=band, name=name,
        downlink_range_mhz=dl, uplink_range_mhz=ul,
        channel_range=rng, channel_offset=offset,
        channel_spacing_mhz=spacing, duplex_mode=duplex,
    )


def _nr(band, name, dl, ul, rng, duplex) -> BandDefinition:
    return BandDefinition(
        rat="NR5G", band_number=band, name=name,
        downlink_range_mhz=dl, uplink_range_mhz=ul,
        channel_range=rng, channel_offset=rng[0],
        channel_spacing_mhz=None, duplex_mode=duplex,
    )


LTE_BANDS: Tuple[BandDefinition, ...] = (
    # FDD
    _lte(1,  "2100",        (2110, 2170),     (1920, 1980),     0,     (0, 599),       "FDD"),
    _lte(2,  "1900 PCS",    (1930, 1990),     (1850, 1910),     600,   (600, 1199),    "FDD"),
    _lte(3,  "1800",        (1805, 1880),     (1710, 1785),     1200,  (1200, 1949),   "FDD"),
    _lte(4,  "AWS-1",       (2110, 2155),     (1710, 1755),     1950,  (1950, 2399),   "FDD"),
    _lte(5,  "850",         (869, 894),       (824, 849),       2400,  (2400, 2649),   "FDD"),
    _lte(7,  "2600",        (2620, 2690),     (2500, 2570),     2750,  (2750, 3449),   "FDD"),
    _lte(8,  "900",         (925, 960),       (880, 915),       3450,  (3450, 3799),   "FDD"),
    _lte(11, "1500 Lower",  (1475.9, 1495.9), (1427.9, 1447.9), 4750,  (4750, 4949),   "FDD"),
    _lte(12, "700 a",       (729, 746),       (699, 716),       5010,  (5010, 5179),   "FDD"),
    _lte(13, "700 c",       (746, 756),       (777, 787),       5180,  (5180, 5279),   "FDD"),
    _lte(14, "700 PS",      (758, 768),       (788, 798),       5280,  (5280, 5379),   "FDD"),
    _lte(17, "700 b",       (734, 746),       (704, 716),       5730,  (5730, 5849),   "FDD"),
    _lte(18, "800 Lower",   (860, 875),       (815, 830),       5850,  (5850, 5999),   "FDD"),
    _lte(19, "800 Upper",   (875, 890),       (830, 845),       6000,  (6000, 6149),   "FDD"),
    _lte(20, "800 DD",      (791, 821),       (832, 862),       6150,  (6150, 6449),   "FDD"),
    _lte(21, "1500 Upper",  (1495.9, 1510.9), (1447.9, 1462.9), 6450,  (6450, 6599),   "FDD"),
    _lte(25, "1900+",       (1930, 1995),     (1850, 1915),     8040,  (8040, 8689),   "FDD"),
    _lte(26, "850+",        (859, 894),       (814, 849),       8690,  (8690, 9039),   "FDD"),
    _lte(28, "700 APT",     (758, 803),       (703, 748),       9210,  (9210, 9659),   "FDD"),
    _lte(30, "2300 WCS",    (2350, 2360),     (2305, 2315),     9770,  (9770, 9869),   "FDD"),
    _lte(66, "AWS-3",       (2110, 2200),     (1710, 1780),     66436, (66436, 67335), "FDD"),
    _lte(71, "600",         (617, 652),       (663, 698),       68586, (68586, 68935), "FDD"),
    # TDD
    _lte(34, "TD 2000",     (2010, 2025),     (2010, 2025),     36200, (36200, 36349), "TDD"),
    _lte(38, "TD 2600",     (2570, 2620),     (2570, 2620),     37750, (37750, 38249), "TDD"),
    _lte(39, "TD 1900",     (1880, 1920),     (1880, 1920),     38250, (38250, 38649), "TDD"),
    _lte(40, "TD 2300",     (2300, 2400),     (2300, 2400),     38650, (38650, 39649), "TDD"),
    _lte(41, "TD 2500",     (2496, 2690),     (2496, 2690),     39650, (39650, 41589), "TDD"),
    _lte(42, "TD 3500",     (3400, 3600),     (3400, 3600),     41590, (41590, 43589), "TDD"),
    _lte(43, "TD 3700",     (3600, 3800),     (3600, 3800),     43590, (43590, 45589), "TDD"),
    _lte(46, "LAA 5 GHz",   (5150, 5925),     (5150, 5925),     46790, (46790, 54539), "TDD"),
    _lte(48, "CBRS",        (3550, 3700),     (3550, 3700),     55240, (55240, 56739), "TDD"),
)

NR_BANDS: Tuple[BandDefinition, ...] = (
    # FR1 FDD
    _nr(1,   "2100",            (2110, 2170),   (1920, 1980),   (422000, 434000),   "FDD"),
    _nr(2,   "1900 PCS",        (1930, 1990),   (1850, 1910),   (386000, 398000),   "FDD"),
    _nr(3,   "1800",            (1805, 1880),   (1710, 1785),   (361000, 376000),   "FDD"),
    _nr(5,   "850",             (869, 894),     (824, 849),     (173800, 178800),   "FDD"),
    _nr(7,   "2600",            (2620, 2690),   (2500, 2570),   (524000, 538000),   "FDD"),
    _nr(8,   "900",             (925, 960),     (880, 915),     (185000, 192000),   "FDD"),
    _nr(12,  "700 a",           (729, 746),     (699, 716),     (145800, 149200),   "FDD"),
    _nr(14,  "700 PS",          (758, 768),     (788, 798),     (151600, 153600),   "FDD"),
    _nr(20,  "800 DD",          (791, 821),     (832, 862),     (158200, 164200),   "FDD"),
    _nr(25,  "1900+",           (1930, 1995),   (1850, 1915),   (386000, 399000),   "FDD"),
    _nr(28,  "700 APT",         (758, 803),     (703, 748),     (151600, 160600),   "FDD"),
    _nr(30,  "2300 WCS",        (2350, 2360),   (2305, 2315),   (470000, 472000),   "FDD"),
    _nr(66,  "AWS-3",           (2110, 2200),   (1710, 1780),   (422000, 440000),   "FDD"),
    _nr(70,  "AWS-4",           (1995, 2020),   (1695, 1710),   (399000, 404000),   "FDD"),
    _nr(71,  "600",             (617, 652),     (663, 698),     (123400, 130400),   "FDD"),
    # FR1 TDD
    _nr(34,  "2000 TDD",        (2010, 2025),   (2010, 2025),   (402000, 405000),   "TDD"),
    _nr(38,  "TD 2600",         (2570, 2620),   (2570, 2620),   (514000, 524000),   "TDD"),
    _nr(39,  "IMT 1900 TDD",    (1880, 1920),   (1880, 1920),   (376000, 384000),   "TDD"),
    _nr(40,  "TD 2300",         (2300, 2400),   (2300, 2400),   (460000, 480000),   "TDD"),
    _nr(41,  "TD 2500",         (2496, 2690),   (2496, 2690),   (499200, 537999),   "TDD"),
    _nr(48,  "CBRS",            (3550, 3700),   (3550, 3700),   (636667, 646666),   "TDD"),
    _nr(77,  "C-Band",          (3300, 4200),   (3300, 4200),   (620000, 680000),   "TDD"),
    _nr(78,  "C-Band (3.5GHz)", (3300, 3800),   (3300, 3800),   (620000, 653333),   "TDD"),
    _nr(79,  "4.5GHz",          (4400, 5000),   (4400, 5000),   (693334, 733333),   "TDD"),
    _nr(90,  "TD 2600",         (2496, 2690),   (2496, 2690),   (499200, 538000),   "TDD"),
    # FR2 (mmWave)
    _nr(257, "28 GHz",          (26500, 29500), (26500, 29500), (2054166, 2104165), "TDD"),
    _nr(258, "26 GHz",          (24250, 27500), (24250, 27500), (2016667, 2070832), "TDD"),
    _nr(259, "41 GHz",          (39500, 43500), (39500, 43500), (2270833, 2337499), "TDD"),
    _nr(260, "39 GHz",          (37000, 40000), (37000, 40000), (2229166, 2279165), "TDD"),
    _nr(261, "28 GHz",          (27500, 28350), (27500, 28350), (2070833, 2084999), "TDD"),
)

_TABLES: Dict[str, Tuple[BandDefinition, ...]] = {"LTE": LTE_BANDS, "NR5G": NR_BANDS}


def _normalize_rat(rat: str) -> str:
    up = str(rat).strip().upper()
    if up in ("NR", "NR5G", "NR5G-SA", "NR5G-NSA", "5G"):
        return "NR5G"
    if up in ("LTE", "4G", "E-UTRA"):
        return "LTE"
    raise ValueError(f"unknown radio type: {rat!r}")


def bands_for_channel_type(rat: RatType) -> Tuple[BandDefinition, ...]:
    """Read-only enumeration of one radio type's table, in declaration order."""
    return _TABLES[_normalize_rat(rat)]


def band_by_number(rat: RatType, number: int) -> Optional[BandDefinition]:
    for band in bands_for_channel_type(rat):
        if band.band_number == number:
            return band
    return None


def bands_containing(rat: RatType, channel: int) -> List[BandDefinition]:
    return [b for b in bands_for_channel_type(rat) if b.contains(channel)]


_CSV_COLUMNS = (
    "rat", "band", "name", "duplex", "dl_low_mhz", "dl_high_mhz",
    "ul_low_mhz", "ul_high_mhz", "channel_low", "channel_high",
    "channel_offset", "channel_spacing_mhz",
)


def export_bands_csv(rat: RatType) -> str:
    """Band metadata as CSV text (header row first) for export/display."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(_CSV_COLUMNS)
    for b in bands_for_channel_type(rat):
        writer.writerow((
            b.rat, b.band_number, b.name, b.duplex_mode,
            f"{b.downlink_range_mhz[0]:g}", f"{b.downlink_range_mhz[1]:g}",
            f"{b.uplink_range_mhz[0]:g}", f"{b.uplink_range_mhz[1]:g}",
            b.channel_range[0], b.channel_range[1], b.channel_offset,
            "" if b.channel_spacing_mhz is None else f"{b.channel_spacing_mhz:g}",
        ))
    logger.debug("exported %d %s bands", len(bands_for_channel_type(rat)), rat)
    return buf.getvalue()
