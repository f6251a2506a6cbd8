"""
Tile pricing engine.

Pure math, no I/O. Material items carry their own material / style / size /
finish snapshots, so no catalog is needed at calculation time.

Calculation flow:
    material cost -> + markup (tiles only) = tile total
    tile total + custom items + custom services = subtotal
    subtotal - discount (percentage only) = after discount
    GST per bucket on the PRE-discount bucket values, summed
    final total = after discount + total GST

GST is not apportioned across the discount. The curtains engine orders
these steps differently.
"""

import logging
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, model_validator

from .numeric import percentage_of, positive_or_zero, sum_by, with_percentage

logger = logging.getLogger(__name__)

SizeKind = Literal["linear_meter", "height_width", "custom"]
SizePriceType = Literal["multiplier", "fixed_price"]

Unit = Literal["square foot", "square meter", "linear meter", "linear feet", "each"]


# --- Catalog entities (embedded in each material item) ---

class TileMaterial(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: Optional[int] = None
    name: str = ""
    base_price: float = 0.0
    style_ids: List[int] = []
    size_ids: List[int] = []
    finish_ids: List[int] = []


class TileStyle(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: Optional[int] = None
    name: str = ""
    multiplier: float = 1.0


class TileSize(BaseModel):
    """
    One of three size variants, each priced either as a multiplier on the
    material price or as a fixed per-unit amount added to it.

    Every variant exposes the same two numbers to the engine:
      multiplier: pricing for multiplier sizes, 1 for fixed-price sizes
      premium:    pricing for fixed-price sizes, 0 for multiplier sizes
    """
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: Optional[int] = None
    name: str = ""
    kind: SizeKind = "custom"
    price_type: SizePriceType = "multiplier"
    pricing: float = 1.0
    height: Optional[float] = None
    width: Optional[float] = None

    @model_validator(mode="before")
    @classmethod
    def _normalise(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        # Shorthand: {"multiplier": 1.15} is a multiplier size
        if "multiplier" in data and "pricing" not in data:
            data["pricing"] = data.pop("multiplier")
            data.setdefault("price_type", "multiplier")
        # Linear-meter sizes are priced per meter on top of the material
        if data.get("kind") == "linear_meter" and data.get("price_type") is None:
            data["price_type"] = "fixed_price"
        if data.get("price_type") is None:
            data.pop("price_type", None)
        return data

    @property
    def multiplier(self) -> float:
        if self.price_type == "multiplier":
            return float(self.pricing)
        return 1.0

    @property
    def premium(self) -> float:
        if self.price_type == "fixed_price":
            return float(self.pricing)
        return 0.0


class TileFinish(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: Optional[int] = None
    name: str = ""
    premium: float = 0.0


# --- Quote state ---

class MaterialItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""
    label: str = ""
    material: Optional[TileMaterial] = None
    style: Optional[TileStyle] = None
    size: Optional[TileSize] = None
    finish: Optional[TileFinish] = None
    unit_value: float = 0.0  # area (or length for linear-meter sizes)


class Selections(BaseModel):
    model_config = ConfigDict(frozen=True)

    material_items: List[MaterialItem] = []


class CustomItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str = ""
    price: float = 0.0
    unit: Unit = "each"
    quantity: float = 1.0
    measurement: Optional[float] = None


class TileCustomService(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str = ""
    price: float = 0.0


class TileAddOns(BaseModel):
    model_config = ConfigDict(frozen=True)

    markup: Optional[float] = None  # percent, tiles only
    custom_items: List[CustomItem] = []
    custom_services: List[TileCustomService] = []


class DiscountOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    value: float = 0.0  # percent


class GstOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    percentage: float = 0.0


class PricingOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    discount: DiscountOption = DiscountOption()
    gst: GstOption = GstOption()


class TileCustomerInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    email: str = ""
    phone: str = ""
    customer_address: str = ""
    project_address: Optional[str] = None


class TileQuote(BaseModel):
    """Everything the user has entered in the tile wizard."""
    model_config = ConfigDict(frozen=True)

    customer_info: TileCustomerInfo = TileCustomerInfo()
    selections: Selections = Selections()
    add_ons: TileAddOns = TileAddOns()
    pricing_options: PricingOptions = PricingOptions()


# --- Results ---

class GSTBreakdown(BaseModel):
    tile_gst: float = 0.0
    custom_items_gst: float = 0.0
    custom_services_gst: float = 0.0
    total_gst: float = 0.0


class TileBreakdown(BaseModel):
    tile_total: float
    tile_gst: float
    custom_items_gst: float
    custom_services_gst: float


class CalculationResult(BaseModel):
    material_cost: float
    markup_amount: float
    custom_items_cost: float
    custom_services_cost: float
    subtotal: float
    discount_amount: float
    after_discount: float
    gst_amount: float
    final_total: float
    breakdown: TileBreakdown


# --- Per-item cost ---

def is_item_complete(item: MaterialItem) -> bool:
    return bool(
        item.material and item.style and item.size and item.finish and item.unit_value
    )


def single_material_cost(item: MaterialItem) -> float:
    """
    Cost of one material item.

    base   = unit_value x style.multiplier x (material.base_price x size.multiplier + size.premium)
    finish = finish.premium x unit_value

    For multiplier sizes (premium 0) base reduces to
    unit_value x base_price x style.multiplier x size.multiplier.
    Incomplete items cost 0; that is a normal mid-entry state, not an error.
    """
    if not is_item_complete(item):
        return 0.0

    unit_value = float(item.unit_value)
    base_cost = unit_value * item.style.multiplier * (
        item.material.base_price * item.size.multiplier + item.size.premium
    )
    finish_cost = item.finish.premium * unit_value
    return base_cost + finish_cost


def single_material_price(item: MaterialItem, markup: Optional[float] = None,
                          gst: Optional[float] = None) -> float:
    """One item's cost with markup and GST applied, for per-line display."""
    cost = single_material_cost(item)
    if markup and markup > 0:
        cost = with_percentage(cost, markup)
    if gst and gst > 0:
        cost = with_percentage(cost, gst)
    return cost


# --- Aggregate steps ---

def base_tile_cost(selections: Selections) -> float:
    return sum_by(selections.material_items, single_material_cost)


def markup_amount(material_cost: float, markup: Optional[float]) -> float:
    """Markup applies to tile material cost only."""
    markup = positive_or_zero(markup)
    if markup == 0:
        return 0.0
    return percentage_of(material_cost, markup)


def custom_items_total(custom_items: List[CustomItem]) -> float:
    return sum_by(custom_items, lambda item: item.price * item.quantity)


def custom_services_total(custom_services: List[TileCustomService]) -> float:
    return sum_by(custom_services, lambda service: service.price)


def discount_amount(subtotal: float, discount: DiscountOption) -> float:
    """Percentage of the full subtotal. There is no fixed-amount discount for tile."""
    if not discount.enabled or discount.value <= 0:
        return 0.0
    return percentage_of(subtotal, discount.value)


def gst_breakdown(tile_total: float, custom_items_cost: float,
                  custom_services_cost: float, gst: GstOption) -> GSTBreakdown:
    """GST for each bucket independently, on pre-discount values."""
    if not gst.enabled or gst.percentage <= 0:
        return GSTBreakdown()

    tile_gst = percentage_of(tile_total, gst.percentage)
    items_gst = percentage_of(custom_items_cost, gst.percentage)
    services_gst = percentage_of(custom_services_cost, gst.percentage)
    return GSTBreakdown(
        tile_gst=tile_gst,
        custom_items_gst=items_gst,
        custom_services_gst=services_gst,
        total_gst=tile_gst + items_gst + services_gst,
    )


def calculate_quotation_pricing(selections: Selections, add_ons: TileAddOns,
                                pricing_options: PricingOptions) -> CalculationResult:
    material_cost = base_tile_cost(selections)
    markup = markup_amount(material_cost, add_ons.markup)
    tile_total = material_cost + markup

    items_cost = custom_items_total(add_ons.custom_items)
    services_cost = custom_services_total(add_ons.custom_services)

    subtotal = tile_total + items_cost + services_cost
    discount = discount_amount(subtotal, pricing_options.discount)
    after_discount = subtotal - discount

    gst = gst_breakdown(tile_total, items_cost, services_cost, pricing_options.gst)
    final_total = after_discount + gst.total_gst

    logger.debug(
        "Tile pricing: material=%s markup=%s subtotal=%s discount=%s gst=%s total=%s",
        material_cost, markup, subtotal, discount, gst.total_gst, final_total,
    )

    return CalculationResult(
        material_cost=material_cost,
        markup_amount=markup,
        custom_items_cost=items_cost,
        custom_services_cost=services_cost,
        subtotal=subtotal,
        discount_amount=discount,
        after_discount=after_discount,
        gst_amount=gst.total_gst,
        final_total=final_total,
        breakdown=TileBreakdown(
            tile_total=tile_total,
            tile_gst=gst.tile_gst,
            custom_items_gst=gst.custom_items_gst,
            custom_services_gst=gst.custom_services_gst,
        ),
    )


class TilePricingEngine:
    """Prices a tile quote. Holds no state; kept as a class to mirror the curtains engine."""

    def calculate(self, quote: TileQuote) -> CalculationResult:
        return calculate_quotation_pricing(quote.selections, quote.add_ons, quote.pricing_options)

    def item_prices(self, quote: TileQuote) -> List[float]:
        """Per-item price with markup and GST, in item order."""
        gst = quote.pricing_options.gst
        gst_pct = gst.percentage if gst.enabled else None
        return [
            single_material_price(item, quote.add_ons.markup, gst_pct)
            for item in quote.selections.material_items
        ]

    def build_quotation(self, quote: TileQuote) -> dict:
        """
        Finalized quotation data for storage, PDF and email.

        Raises QuoteValidationError if the complete form does not validate.
        """
        from .errors import QuoteValidationError
        from .validation import validate_complete_form

        result = validate_complete_form(quote)
        if not result.is_valid:
            raise QuoteValidationError(result.errors)

        data = quote.model_dump()
        data["pricing"] = self.calculate(quote).model_dump()
        data["item_costs"] = [single_material_cost(item) for item in quote.selections.material_items]
        data["quote_number"] = None  # Set when the record is stored
        data["saved_at"] = datetime.utcnow().isoformat()
        return data
