"""
Unit and cost normalizer.

Turns the unit cost of a purchase lot into a cost per sale unit of its
variant. Pure functions over plain values; nothing here touches the
database.

Conversion factor meaning by unit pair:

    sale WEIGHT  <- BOX/BAG/BALE/BUNCH   kg per container
    sale BUNCH   <- BALE                 bunches per bale
    sale PIECE   <- BOX/BAG              pieces per container
    sale BAG     <- BOX                  bags per box
    sale TRAY    <- BOX                  trays per box
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING
from typing import Optional

from apps.catalog.models import DISCRETE_CONTAINER_UNITS, PurchaseUnit, SaleUnit


@dataclass(frozen=True)
class UnitConfig:
    sale_unit: str
    purchase_unit: str = ''
    conversion_factor: Optional[Decimal] = None

    @classmethod
    def from_variant(cls, variant) -> 'UnitConfig':
        return cls(
            sale_unit=variant.sale_unit or SaleUnit.WEIGHT,
            purchase_unit=variant.purchase_unit or '',
            conversion_factor=variant.conversion_factor,
        )


@dataclass(frozen=True)
class LotCost:
    unit_cost: Decimal
    purchase_unit: str = ''
    measured_weight: Optional[Decimal] = None

    @classmethod
    def from_lot(cls, lot) -> 'LotCost':
        return cls(
            unit_cost=lot.unit_cost,
            purchase_unit=lot.purchase_unit,
            measured_weight=lot.measured_weight,
        )


def _positive(value: Optional[Decimal]) -> Optional[Decimal]:
    if value is None or value <= 0:
        return None
    return Decimal(value)


def _per_factor(unit_cost: Decimal, factor: Optional[Decimal]) -> Optional[Decimal]:
    factor = _positive(factor)
    if factor is None:
        return None
    return unit_cost / factor


def normalize_cost(lot: LotCost, unit_config: UnitConfig) -> Optional[Decimal]:
    """
    Cost of one sale unit, or None when the lot cannot be expressed in it.

    A lot without its own purchase unit is read in the variant's purchase
    unit.
    """
    unit_cost = Decimal(lot.unit_cost)
    sale_unit = unit_config.sale_unit
    purchase_unit = lot.purchase_unit or unit_config.purchase_unit
    factor = unit_config.conversion_factor

    if not purchase_unit:
        return None

    if purchase_unit == sale_unit:
        return unit_cost

    if sale_unit == SaleUnit.WEIGHT:
        if purchase_unit not in DISCRETE_CONTAINER_UNITS:
            return None
        weight = _positive(lot.measured_weight)
        if weight is not None:
            return unit_cost / weight
        return _per_factor(unit_cost, factor)

    if sale_unit == SaleUnit.BUNCH:
        if purchase_unit == PurchaseUnit.BALE:
            return _per_factor(unit_cost, factor)
        return None

    if sale_unit == SaleUnit.PIECE:
        if purchase_unit in (PurchaseUnit.BOX, PurchaseUnit.BAG):
            return _per_factor(unit_cost, factor)
        return None

    if sale_unit in (SaleUnit.BAG, SaleUnit.TRAY):
        if purchase_unit == PurchaseUnit.BOX:
            return _per_factor(unit_cost, factor)
        return None

    return None


def round_up(value: Decimal, step: Decimal) -> Decimal:
    """Smallest multiple of ``step`` that is >= ``value``."""
    value = Decimal(value)
    step = Decimal(step)
    return (value / step).to_integral_value(rounding=ROUND_CEILING) * step
