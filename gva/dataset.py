from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

Number = Union[int, float]

REVISED_MARKER = " R"
PRELIMINARY_MARKER = " P"


class DatasetError(ValueError):
    """Raised when the static source table cannot be normalized."""


@dataclass(frozen=True)
class YearValue:
    nepali_year: str
    gregorian_year: str
    value: Optional[Number]
    is_revised: bool = False
    is_preliminary: bool = False


@dataclass(frozen=True)
class CategoryRecord:
    code: str
    name: str
    data: Tuple[YearValue, ...]

    def value_for(self, year: str) -> Optional[Number]:
        for yv in self.data:
            if yv.gregorian_year == year:
                return yv.value
        return None


@dataclass(frozen=True)
class DatasetSnapshot:
    years: Tuple[str, ...]
    categories: Tuple[str, ...]
    records: Tuple[CategoryRecord, ...]

    def record(self, name: str) -> Optional[CategoryRecord]:
        for rec in self.records:
            if rec.name == name:
                return rec
        return None

    def year_flags(self, year: str) -> Tuple[bool, bool]:
        """(is_revised, is_preliminary) for a year, read from the first category carrying it."""
        for rec in self.records:
            for yv in rec.data:
                if yv.gregorian_year == year:
                    return yv.is_revised, yv.is_preliminary
        return False, False

    def year_label(self, year: str, *, with_status: bool = True) -> str:
        label = year.replace("/", "-")
        if not with_status:
            return label
        revised, preliminary = self.year_flags(year)
        if revised:
            label += " (R)"
        if preliminary:
            label += " (P)"
        return label


def parse_value(raw: object) -> Optional[Number]:
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise DatasetError(f"Unexpected boolean value: {raw!r}")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if not math.isfinite(raw):
            raise DatasetError(f"Non-finite numeric value: {raw!r}")
        return raw
    if isinstance(raw, str):
        s = raw.strip().replace(",", "")
        if "_" in s:
            raise DatasetError(f"Unparsable numeric value: {raw!r}")
        try:
            return int(s)
        except ValueError:
            pass
        try:
            value = float(s)
        except ValueError:
            raise DatasetError(f"Unparsable numeric value: {raw!r}") from None
        if not math.isfinite(value):
            raise DatasetError(f"Non-finite numeric value: {raw!r}")
        return value
    raise DatasetError(f"Unsupported value type {type(raw).__name__}: {raw!r}")


def split_year_label(label: str) -> Tuple[str, bool, bool]:
    """Strip a trailing revised/preliminary marker, e.g. '2080/81 R' -> ('2080/81', True, False)."""
    canonical = label.strip()
    revised = preliminary = False
    if canonical.endswith(REVISED_MARKER):
        canonical = canonical[: -len(REVISED_MARKER)].rstrip()
        revised = True
    elif canonical.endswith(PRELIMINARY_MARKER):
        canonical = canonical[: -len(PRELIMINARY_MARKER)].rstrip()
        preliminary = True
    return canonical, revised, preliminary


def numeric_year(gregorian_year: str) -> int:
    """Leading numeric component of a fiscal year label: '2022/23' -> 2022."""
    match = re.match(r"\s*(\d+)", str(gregorian_year))
    if not match:
        raise DatasetError(f"Year label has no numeric component: {gregorian_year!r}")
    return int(match.group(1))


def build_snapshot(
    year_headers: Sequence[Tuple[str, str]],
    rows: Iterable[Mapping[str, object]],
) -> DatasetSnapshot:
    headers = [(split_year_label(nep), str(greg).strip()) for nep, greg in year_headers]
    gregorian = [greg for _, greg in headers]
    if len(set(gregorian)) != len(gregorian):
        raise DatasetError(f"Duplicate gregorian year labels: {gregorian}")
    # Chronological order is the order of the leading year component.
    order = sorted(range(len(headers)), key=lambda i: numeric_year(gregorian[i]))

    records: List[CategoryRecord] = []
    seen_names: Dict[str, int] = {}
    for row in rows:
        code = str(row.get("code", "")).strip()
        name = str(row.get("name", "")).strip()
        values = list(row.get("values") or [])
        if len(values) != len(headers):
            raise DatasetError(
                f"Category {name!r} has {len(values)} values for {len(headers)} years"
            )
        if name in seen_names:
            logger.warning("Duplicate category name %r ignored", name)
            continue
        seen_names[name] = len(records)

        data = []
        for idx in order:
            (nep, revised, preliminary), greg = headers[idx]
            try:
                value = parse_value(values[idx])
            except DatasetError as exc:
                raise DatasetError(f"Category {name!r}, year {greg}: {exc}") from exc
            data.append(YearValue(nep, greg, value, revised, preliminary))
        records.append(CategoryRecord(code=code, name=name, data=tuple(data)))

    snapshot = DatasetSnapshot(
        years=tuple(gregorian[i] for i in order),
        categories=tuple(rec.name for rec in records),
        records=tuple(records),
    )
    logger.info("Built dataset snapshot: %d categories x %d years", len(snapshot.categories), len(snapshot.years))
    return snapshot


# ---------------- Embedded source table ----------------
# Nepal GVA by industrial division (NSIC), Rs. million at constant prices.
YEARS_NEPALI = [
    "2067/68", "2068/69", "2069/70", "2070/71", "2071/72", "2072/73", "2073/74", "2074/75",
    "2075/76", "2076/77", "2077/78", "2078/79", "2079/80", "2080/81 R", "2081/82 P",
]
YEARS_GREGORIAN = [
    "2010/11", "2011/12", "2012/13", "2013/14", "2014/15", "2015/16", "2016/17", "2017/18",
    "2018/19", "2019/20", "2020/21", "2021/22", "2022/23", "2023/24", "2024/25",
]

RAW_ROWS: List[Dict[str, object]] = [
    {"code": "A", "name": "Agriculture, forestry and fishing", "values": [480326, 505735, 512342, 535329, 541758, 541301, 569312, 584167, 614292, 629229, 647154, 662372, 682403, 705275, 728442]},
    {"code": "B", "name": "Mining and quarrying", "values": [8525, 8966, 9169, 10224, 10546, 10263, 11761, 12867, 15134, 14797, 15485, 16854, 17007, 17557, 17907]},
    {"code": "C", "name": "Manufacturing", "values": [84150, 92647, 95325, 101091, 101155, 91537, 106940, 116785, 124403, 113171, 122968, 131209, 128979, 126374, 131148]},
    {"code": "D", "name": "Electricity and gas", "values": [14348, 16505, 16647, 17276, 17387, 15891, 19520, 21546, 23617, 28224, 29403, 44891, 53763, 59655, 67901]},
    {"code": "E", "name": "Water supply; sewerage and waste management", "values": [9145, 10031, 11021, 12035, 13250, 14222, 14653, 15322, 15510, 15843, 16056, 16550, 17083, 17300, 17663]},
    {"code": "F", "name": "Construction", "values": [92666, 92907, 95039, 103557, 106733, 106864, 126822, 142165, 152801, 146095, 156315, 167144, 164673, 161048, 164610]},
    {"code": "G", "name": "Wholesale and retail trade; repair of motor vehicles and motorcycles", "values": [220804, 226875, 233081, 247240, 257602, 251008, 277884, 325767, 352194, 312080, 332798, 357483, 342814, 341567, 352823]},
    {"code": "H", "name": "Transportation and storage", "values": [77194, 82508, 89324, 95033, 100638, 100812, 105258, 117552, 127863, 112783, 117785, 123207, 124988, 141770, 155169]},
    {"code": "I", "name": "Accommodation and food service activities", "values": [24510, 26049, 27851, 28269, 29799, 27420, 31092, 34887, 38348, 24245, 26847, 30220, 35668, 43168, 45328]},
    {"code": "J", "name": "Information and communication", "values": [31436, 40082, 44364, 55876, 61795, 62840, 71416, 72942, 78084, 79662, 82589, 86046, 89620, 94018, 98535]},
    {"code": "K", "name": "Financial and insurance activities", "values": [68527, 69773, 71119, 75739, 80961, 88170, 96810, 105941, 112667, 112274, 117504, 125629, 135580, 146345, 155545]},
    {"code": "L", "name": "Real estate activities", "values": [143470, 145494, 148226, 150618, 152882, 153478, 159689, 162181, 168269, 171766, 176516, 179546, 184764, 189261, 194416]},
    {"code": "M", "name": "Professional, scientific and technical activities", "values": [12363, 13005, 13628, 14543, 15620, 15922, 17309, 18165, 19184, 19476, 19769, 20461, 21264, 22147, 23029]},
    {"code": "N", "name": "Administrative and support service activities", "values": [5697, 6170, 7045, 8158, 9108, 10198, 11859, 14067, 14972, 15300, 15651, 15898, 16698, 17372, 18062]},
    {"code": "O", "name": "Public administration and defence; compulsory social security", "values": [64040, 66247, 69630, 73046, 79002, 80625, 87095, 91200, 95865, 101769, 105212, 109508, 115485, 120414, 123109]},
    {"code": "P", "name": "Education", "values": [75323, 79550, 84177, 88345, 93186, 99852, 107048, 113288, 120060, 123904, 128760, 134760, 140055, 143067, 145903]},
    {"code": "Q", "name": "Human health and social work activities", "values": [16885, 17666, 18297, 18853, 20854, 21550, 23144, 24503, 26143, 27502, 29316, 31366, 33427, 35203, 36883]},
    {"code": "R-T", "name": "Other Services", "values": [6664, 6964, 7216, 7477, 8129, 8496, 8894, 9306, 9857, 10031, 10370, 10835, 11446, 11935, 12403]},
    {"code": "SUM_AGRI", "name": "Total Agriculture, Forestry and Fishing", "values": [480326, 505735, 512342, 535329, 541758, 541301, 569312, 584167, 614292, 629229, 647154, 662372, 682403, 705275, 728442]},
    {"code": "SUM_NON_AGRI", "name": "Total Non-Agriculture", "values": [955746, 1001437, 1041160, 1107381, 1158647, 1159147, 1277194, 1398486, 1494971, 1428920, 1503344, 1601607, 1633315, 1688202, 1760433]},
    {"code": "GDP_BASIC", "name": "Gross Domestic Product (GDP) at basic prices", "values": [1436072, 1507172, 1553502, 1642711, 1700405, 1700448, 1846506, 1982653, 2109263, 2058149, 2150497, 2263979, 2315718, 2393477, 2488876]},
    {"code": "TAXES_SUBSIDIES", "name": "Taxes less subsidies on products", "values": [123150, 124869, 136070, 148430, 161952, 169975, 191831, 211053, 230480, 226150, 244320, 265698, 264111, 280913, 308695]},
    {"code": "GDP_TOTAL", "name": "Gross Domestic Product (GDP)", "values": [1559222, 1632040, 1689572, 1791141, 1862357, 1870424, 2038337, 2193706, 2339743, 2284300, 2394818, 2529677, 2579829, 2674390, 2797571]},
]


@lru_cache(maxsize=1)
def load_snapshot() -> DatasetSnapshot:
    """Embedded snapshot, built once per process."""
    return build_snapshot(list(zip(YEARS_NEPALI, YEARS_GREGORIAN)), RAW_ROWS)
