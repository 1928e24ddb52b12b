"""
Earned Value Management calculator.

Pure function of a project's financial snapshot:

    PV  planned value        EV  earned value
    AC  actual cost          BAC budget at completion (project total budget)

Derived metrics:

    CPI = EV / AC      (1 when AC = 0)
    SPI = EV / PV      (1 when PV = 0)
    EAC = BAC / CPI    (BAC when CPI = 0)
    ETC = EAC − AC     VAC = BAC − EAC
    SV  = EV − PV      CV  = EV − AC

Zero-guards are resolved here, never raised: a new project with no cost
booked yet is a valid state. Inputs that are not finite non-negative numbers
are rejected with InvalidNumericInputError before any division happens.
"""

import math
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal

from ppm.core.exceptions import InvalidNumericInputError

_CENT = Decimal("0.01")

SLIGHT_VARIANCE_FLOOR = 0.9


@dataclass(frozen=True)
class EVMMetrics:
    planned_value: float
    earned_value: float
    actual_cost: float
    bac: float
    cpi: float
    spi: float
    eac: float
    etc: float
    vac: float
    sv: float
    cv: float
    schedule_performance: str
    cost_performance: str

    def to_dict(self) -> dict:
        return asdict(self)


def round2(value: float) -> float:
    """Round half-up to 2 decimals."""
    return float(Decimal(repr(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def coerce_amount(field: str, value) -> float:
    """Validate a monetary input. None means "not recorded yet" and counts as 0."""
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidNumericInputError(field, value)
    number = float(value)
    if not math.isfinite(number) or number < 0:
        raise InvalidNumericInputError(field, value)
    return number


def schedule_performance(spi: float) -> str:
    if spi >= 1.0:
        return "ON_TRACK"
    if spi >= SLIGHT_VARIANCE_FLOOR:
        return "SLIGHTLY_BEHIND"
    return "BEHIND"


def cost_performance(cpi: float) -> str:
    if cpi >= 1.0:
        return "UNDER_BUDGET"
    if cpi >= SLIGHT_VARIANCE_FLOOR:
        return "SLIGHTLY_OVER"
    return "OVER_BUDGET"


def compute_evm(pv, ev, ac, bac) -> EVMMetrics:
    """Compute EVM metrics for one project snapshot.

    Raises:
        InvalidNumericInputError: an input is non-numeric, non-finite or negative.
    """
    pv = coerce_amount("planned_value", pv)
    ev = coerce_amount("earned_value", ev)
    ac = coerce_amount("actual_cost", ac)
    bac = coerce_amount("bac", bac)

    cpi = ev / ac if ac > 0 else 1.0
    spi = ev / pv if pv > 0 else 1.0
    eac = bac / cpi if cpi > 0 else bac
    etc = eac - ac
    vac = bac - eac
    sv = ev - pv
    cv = ev - ac

    return EVMMetrics(
        planned_value=pv,
        earned_value=ev,
        actual_cost=ac,
        bac=bac,
        cpi=round2(cpi),
        spi=round2(spi),
        eac=round2(eac),
        etc=round2(etc),
        vac=round2(vac),
        sv=round2(sv),
        cv=round2(cv),
        schedule_performance=schedule_performance(spi),
        cost_performance=cost_performance(cpi),
    )


def validate_amounts(patch: dict, fields) -> dict:
    """Reject negative / non-numeric monetary input before it is stored."""
    for field in fields:
        if patch.get(field) is not None:
            coerce_amount(field, patch[field])
    return patch
