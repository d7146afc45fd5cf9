from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass, field
from typing import Any

from ..models.config_models import EngineConfig
from ..models.errors import FailureKind, IngestFailure
from ..models.outcome import ParseOutcome
from ..query.operations import SortDirection, parse_distance, sort_records

"""Vehicle listing projection (fixed domain schema).

Maps generic records of an auction listing export onto ``Vehicle`` values.
Source columns are the Korean headers of the export; attribute names are
English. Records lacking a lot number or a vehicle name are dropped.
"""

__all__ = [
    "SOURCE_COLUMNS",
    "Vehicle",
    "VehicleStats",
    "VehicleListing",
    "to_vehicle",
    "project_vehicles",
    "calculate_stats",
    "filter_vehicles",
    "sort_vehicles",
]

logger = logging.getLogger(__name__)

# 属性名 -> 元の列名
SOURCE_COLUMNS: dict[str, str] = {
    "lot_number": "출품번호",
    "name": "차량명",
    "price": "출품가",
    "year": "연식",
    "mileage": "주행거리",
    "color": "색상",
    "fuel": "연료",
    "transmission": "변속기",
    "grade": "평가점",
}

DEFAULT_MILEAGE = "0 Km"
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class Vehicle:
    lot_number: str  # 출품번호
    name: str  # 차량명
    price: int  # 출품가 (만원)
    year: int  # 연식, 0 when unknown
    mileage: str  # 주행거리 as listed, e.g. "43,437 Km"
    color: str = ""
    fuel: str = ""
    transmission: str = ""
    grade: str = ""

    @property
    def mileage_km(self) -> int:
        return int(parse_distance(self.mileage))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class VehicleStats:
    total_vehicles: int = 0
    average_price: int = 0
    average_mileage: int = 0
    year_range: tuple[int, int] = (0, 0)  # (min, max), (0, 0) when no year is known
    fuel_types: dict[str, int] = field(default_factory=dict)
    transmission_types: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class VehicleListing:
    vehicles: list[Vehicle]
    stats: VehicleStats
    failure: IngestFailure | None = None


def _parse_int(text: str) -> int:
    """Leading integer of ``text`` after removing thousands separators; 0 on failure."""
    match = _LEADING_INT_RE.match(text.replace(",", ""))
    return int(match.group(1)) if match else 0


def _text(record: Mapping[str, Any], attribute: str) -> str:
    value = record.get(SOURCE_COLUMNS[attribute])
    return "" if value is None else str(value).strip()


def to_vehicle(record: Mapping[str, Any]) -> Vehicle | None:
    lot_number = _text(record, "lot_number")
    name = _text(record, "name")
    if not lot_number or not name:
        return None
    return Vehicle(
        lot_number=lot_number,
        name=name,
        price=_parse_int(_text(record, "price")),
        year=_parse_int(_text(record, "year")),
        mileage=_text(record, "mileage") or DEFAULT_MILEAGE,
        color=_text(record, "color"),
        fuel=_text(record, "fuel"),
        transmission=_text(record, "transmission"),
        grade=_text(record, "grade"),
    )


def calculate_stats(vehicles: Sequence[Vehicle]) -> VehicleStats:
    if not vehicles:
        return VehicleStats()
    total_price = 0
    total_mileage = 0
    years: list[int] = []
    fuel_types: dict[str, int] = {}
    transmission_types: dict[str, int] = {}
    for v in vehicles:
        total_price += v.price
        total_mileage += v.mileage_km
        if v.year > 0:
            years.append(v.year)
        if v.fuel:
            fuel_types[v.fuel] = fuel_types.get(v.fuel, 0) + 1
        if v.transmission:
            transmission_types[v.transmission] = transmission_types.get(v.transmission, 0) + 1
    count = len(vehicles)
    return VehicleStats(
        total_vehicles=count,
        average_price=round(total_price / count),
        average_mileage=round(total_mileage / count),
        year_range=(min(years), max(years)) if years else (0, 0),
        fuel_types=fuel_types,
        transmission_types=transmission_types,
    )


def project_vehicles(outcome: ParseOutcome) -> VehicleListing:
    """Project a generic outcome onto the vehicle schema."""
    if outcome.failure is not None:
        return VehicleListing(vehicles=[], stats=VehicleStats(), failure=outcome.failure)
    missing = [c for c in (SOURCE_COLUMNS["lot_number"], SOURCE_COLUMNS["name"]) if c not in outcome.column_names]
    if missing:
        failure = IngestFailure(kind=FailureKind.PARSE_ERROR, message=f"required vehicle columns missing: {missing}")
        return VehicleListing(vehicles=[], stats=VehicleStats(), failure=failure)
    vehicles = [v for v in (to_vehicle(r) for r in outcome.records) if v is not None]
    dropped = len(outcome.records) - len(vehicles)
    if dropped:
        logger.debug(f"{dropped} records without lot number or name dropped")
    return VehicleListing(vehicles=vehicles, stats=calculate_stats(vehicles))


def filter_vehicles(
    vehicles: Sequence[Vehicle],
    *,
    search_term: str | None = None,
    min_price: int | None = None,
    max_price: int | None = None,
    min_year: int | None = None,
    max_year: int | None = None,
    fuel_type: str | None = None,
    transmission: str | None = None,
) -> list[Vehicle]:
    """Vehicles matching every given criterion (search covers name and lot number)."""
    term = search_term.casefold() if search_term else None
    result: list[Vehicle] = []
    for v in vehicles:
        if term and term not in v.name.casefold() and term not in v.lot_number.casefold():
            continue
        if min_price is not None and v.price < min_price:
            continue
        if max_price is not None and v.price > max_price:
            continue
        if min_year is not None and v.year < min_year:
            continue
        if max_year is not None and v.year > max_year:
            continue
        if fuel_type and v.fuel != fuel_type:
            continue
        if transmission and v.transmission != transmission:
            continue
        result.append(v)
    return result


def sort_vehicles(
    vehicles: Sequence[Vehicle],
    sort_by: str,
    direction: str | SortDirection = SortDirection.ASC,
    config: EngineConfig | None = None,
) -> list[Vehicle]:
    """Sort by a ``Vehicle`` attribute; ``mileage`` compares kilometres."""
    if sort_by not in SOURCE_COLUMNS:
        logger.warning(f"unknown vehicle sort field {sort_by!r} -> input order")
        return list(vehicles)
    return sort_records(vehicles, sort_by, direction, config, getter=lambda v, f: getattr(v, f))
