"""
Curtains & blinds pricing engine.

Pure math, no I/O. Input: a CurtainsQuote snapshot + a ProductCatalog snapshot.
Output: a CurtainsPricing breakdown with every intermediate the UI, the PDF
and the persisted quotation need.

Pipeline (each step depends on the previous one):
1. subtotal_before_markup_and_discount: valid products + add-ons + services
2. total_markup: products only
3. subtotal_after_markup
4. total_gst: computed on post-markup bases
5. discount_amount: on (subtotal_after_markup + total_gst), fixed is capped
6. grand_total = subtotal_after_markup + total_gst - discount_amount

Lines that fail the pricing-validity gate contribute nothing to any step and
are reported separately (see get_invalid_products).
"""

import enum
import logging
import uuid
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import InvalidPricingError
from .numeric import clamp, percentage_of, positive_or_zero, sum_by, with_percentage
from .price_table import MatrixEntry, RectangularPriceTable

logger = logging.getLogger(__name__)

PriceType = Literal["sqm", "each", "matrix"]
AddOnUnit = Literal["each", "sqm", "linear"]
AdjustmentType = Literal["percentage", "fixed"]

UNASSIGNED_ROOM = "General"


# --- Catalog snapshot ---

class Category(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    name: str
    description: str = ""


class CatalogProduct(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    category_id: Optional[int] = None
    name: str = ""
    price_type: PriceType = "sqm"
    base_price: float = 0.0
    minimum_qty: float = 0.0
    price_matrix: List[MatrixEntry] = []
    lead_time: str = ""
    special_conditions: Optional[str] = None

    def price_table(self) -> RectangularPriceTable:
        return RectangularPriceTable(self.price_matrix or [])


class ProductCatalog(BaseModel):
    model_config = ConfigDict(frozen=True)

    categories: List[Category] = []
    products: List[CatalogProduct] = []

    def find_product(self, product_id) -> Optional[CatalogProduct]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def category_name(self, category_id) -> str:
        for category in self.categories:
            if category.id == category_id:
                return category.name
        return ""


# --- Quote state snapshot ---

class Customer(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    project_address: str = ""


class QuoteProduct(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""
    product_id: int
    label: str = ""
    room: Optional[str] = None
    width: float = 0.0     # meters
    height: float = 0.0    # meters
    quantity: int = 1
    custom_price: Optional[float] = None
    color: str = "White"
    control_type: str = "Cord"
    installation: bool = False
    special_features: str = ""


class AddOn(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str = ""
    description: str = ""
    unit_type: AddOnUnit = "each"
    unit_price: float = 0.0
    quantity: float = 1.0
    width: Optional[float] = None
    height: Optional[float] = None
    length: Optional[float] = None


class CustomService(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str = ""
    description: str = ""
    price: float = 0.0


class CurtainsQuote(BaseModel):
    """Everything the user has entered in the curtains wizard."""
    model_config = ConfigDict(frozen=True)

    customer: Customer = Customer()
    products: List[QuoteProduct] = []
    add_ons: List[AddOn] = []
    custom_services: List[CustomService] = []
    # Markup applies to products only
    markup_enabled: bool = False
    markup_type: AdjustmentType = "percentage"
    markup_value: float = 0.0
    # Discount applies to (subtotal after markup + GST)
    discount_type: AdjustmentType = "percentage"
    discount_value: float = 0.0
    discount_reason: str = ""
    gst_enabled: bool = False
    gst_rate: float = 10.0
    payment_terms: str = "Net 30 days"
    quote_date: str = ""


# --- Validity gate ---

class PricingIssue(str, enum.Enum):
    PRODUCT_NOT_FOUND = "product_not_found"
    MATRIX_EMPTY = "matrix_empty"
    MATRIX_SIZE_UNAVAILABLE = "matrix_size_unavailable"
    NO_BASE_PRICE = "no_base_price"


class InvalidProduct(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    line_id: str = ""
    product_id: int
    product_name: str = ""
    width: float = 0.0
    height: float = 0.0
    reason: PricingIssue
    message: str


def _dim(value: float) -> str:
    """1.0 -> '1', 1.25 -> '1.25'"""
    return f"{value:g}"


def find_catalog_product(line: QuoteProduct, catalog: ProductCatalog) -> Optional[CatalogProduct]:
    return catalog.find_product(line.product_id)


def resolve_matrix_price(line: QuoteProduct, catalog_product: CatalogProduct) -> float:
    """Exact (width, height) match in the product's price matrix, else 0."""
    return catalog_product.price_table().price_for(line.width, line.height)


def pricing_issue(line: QuoteProduct, catalog: ProductCatalog) -> Optional[PricingIssue]:
    """Why a line has no usable price, or None when it prices fine."""
    catalog_product = find_catalog_product(line, catalog)
    if catalog_product is None:
        return PricingIssue.PRODUCT_NOT_FOUND

    if catalog_product.price_type == "matrix":
        table = catalog_product.price_table()
        if table.is_empty():
            return PricingIssue.MATRIX_EMPTY
        if not table.has_size(line.width, line.height):
            return PricingIssue.MATRIX_SIZE_UNAVAILABLE
        return None

    # Catalog price, not the custom override
    if catalog_product.base_price <= 0:
        return PricingIssue.NO_BASE_PRICE
    return None


def is_pricing_valid(line: QuoteProduct, catalog: ProductCatalog) -> bool:
    return pricing_issue(line, catalog) is None


def _issue_message(issue: PricingIssue, line: QuoteProduct, catalog_product: Optional[CatalogProduct]) -> str:
    name = catalog_product.name if catalog_product else f"Product #{line.product_id}"
    if issue == PricingIssue.PRODUCT_NOT_FOUND:
        return f"Product #{line.product_id} is no longer in the catalog"
    if issue == PricingIssue.MATRIX_EMPTY:
        return f"{name} uses matrix pricing but has no price matrix configured"
    if issue == PricingIssue.MATRIX_SIZE_UNAVAILABLE:
        return (
            f"{name} has no matrix price for {_dim(line.width)}m x {_dim(line.height)}m "
            f"(width x height)"
        )
    return f"{name} has no base price configured"


def get_invalid_products(quote: CurtainsQuote, catalog: ProductCatalog) -> List[InvalidProduct]:
    """Every product line that fails the validity gate, with the reason."""
    invalid = []
    for index, line in enumerate(quote.products):
        issue = pricing_issue(line, catalog)
        if issue is None:
            continue
        catalog_product = find_catalog_product(line, catalog)
        invalid.append(InvalidProduct(
            index=index,
            line_id=line.id,
            product_id=line.product_id,
            product_name=catalog_product.name if catalog_product else "",
            width=line.width,
            height=line.height,
            reason=issue,
            message=_issue_message(issue, line, catalog_product),
        ))
    return invalid


# --- Product line functions ---

def original_base_price(line: QuoteProduct, catalog_product: Optional[CatalogProduct]) -> float:
    """
    Unit price before markup.

    A positive custom price is used verbatim. Otherwise matrix products use
    the exact-size matrix price and everything else the catalog base price.
    """
    if line.custom_price and line.custom_price > 0:
        return float(line.custom_price)
    if catalog_product is None:
        return 0.0
    if catalog_product.price_type == "matrix":
        return resolve_matrix_price(line, catalog_product)
    return float(catalog_product.base_price)


def effective_base_price(line: QuoteProduct, catalog_product: Optional[CatalogProduct],
                         quote: CurtainsQuote) -> float:
    """Unit price after markup."""
    original = original_base_price(line, catalog_product)
    markup_value = positive_or_zero(quote.markup_value)
    if not quote.markup_enabled or original <= 0 or markup_value == 0:
        return original
    if quote.markup_type == "percentage":
        return with_percentage(original, markup_value)
    return original + markup_value


def billable_units(line: QuoteProduct, catalog_product: Optional[CatalogProduct]) -> float:
    """
    What the unit price is multiplied by for this line.

    sqm:    max(width x height, minimum_qty) x quantity
    matrix: quantity (the matrix price already covers that exact size)
    each:   max(quantity, minimum_qty)
    """
    if catalog_product is None:
        return 0.0
    minimum = catalog_product.minimum_qty or 0.0
    if catalog_product.price_type == "sqm":
        billable_area = max(line.width * line.height, minimum)
        return billable_area * line.quantity
    if catalog_product.price_type == "matrix":
        return float(line.quantity)
    return float(max(line.quantity, minimum))


def _gst_rate(quote: CurtainsQuote) -> float:
    return positive_or_zero(quote.gst_rate) if quote.gst_enabled else 0.0


def product_base_total(line: QuoteProduct, catalog_product: Optional[CatalogProduct]) -> float:
    return original_base_price(line, catalog_product) * billable_units(line, catalog_product)


def product_total_after_markup(line: QuoteProduct, catalog_product: Optional[CatalogProduct],
                               quote: CurtainsQuote) -> float:
    return effective_base_price(line, catalog_product, quote) * billable_units(line, catalog_product)


def product_markup(line: QuoteProduct, catalog_product: Optional[CatalogProduct],
                   quote: CurtainsQuote) -> float:
    """(effective - original) x billable units; 0 when markup is off."""
    if not quote.markup_enabled:
        return 0.0
    delta = effective_base_price(line, catalog_product, quote) - original_base_price(line, catalog_product)
    return delta * billable_units(line, catalog_product)


def product_gst(line: QuoteProduct, catalog_product: Optional[CatalogProduct],
                quote: CurtainsQuote) -> float:
    """GST is always on the post-markup total."""
    return percentage_of(product_total_after_markup(line, catalog_product, quote), _gst_rate(quote))


def product_total_with_gst(line: QuoteProduct, catalog_product: Optional[CatalogProduct],
                           quote: CurtainsQuote) -> float:
    return with_percentage(product_total_after_markup(line, catalog_product, quote), _gst_rate(quote))


# --- Add-ons and custom services (never marked up) ---

def add_on_base_total(add_on: AddOn) -> float:
    base = add_on.unit_price * add_on.quantity
    if add_on.unit_type == "sqm":
        return base * (add_on.width or 0.0) * (add_on.height or 0.0)
    if add_on.unit_type == "linear":
        return base * (add_on.length or 0.0)
    return base


def add_on_gst(add_on: AddOn, quote: CurtainsQuote) -> float:
    return percentage_of(add_on_base_total(add_on), _gst_rate(quote))


def add_on_total_with_gst(add_on: AddOn, quote: CurtainsQuote) -> float:
    return with_percentage(add_on_base_total(add_on), _gst_rate(quote))


def service_base_total(service: CustomService) -> float:
    return float(service.price)


def service_gst(service: CustomService, quote: CurtainsQuote) -> float:
    return percentage_of(service_base_total(service), _gst_rate(quote))


def service_total_with_gst(service: CustomService, quote: CurtainsQuote) -> float:
    return with_percentage(service_base_total(service), _gst_rate(quote))


# --- Result types ---

class ProductLine(BaseModel):
    line_id: str
    product_id: int
    name: str
    label: str
    category_name: str
    room: Optional[str]
    price_type: PriceType
    original_price: float
    effective_price: float
    width: float
    height: float
    quantity: int
    billable_units: float
    base_total: float
    markup_amount: float
    total_after_markup: float
    gst_amount: float
    total: float
    color: str
    control_type: str
    installation: bool
    special_features: str


class AddOnLine(BaseModel):
    line_id: str
    name: str
    description: str
    unit_type: AddOnUnit
    unit_price: float
    quantity: float
    width: Optional[float]
    height: Optional[float]
    length: Optional[float]
    base_total: float
    gst_amount: float
    total: float


class ServiceLine(BaseModel):
    line_id: str
    name: str
    description: str
    price: float
    gst_amount: float
    total: float


class CurtainsPricing(BaseModel):
    subtotal_before_markup_and_discount: float
    total_markup: float
    subtotal_after_markup: float
    total_gst: float
    discount_type: AdjustmentType
    discount_value: float
    discount_reason: str
    discount_amount: float
    gst_enabled: bool
    gst_rate: float
    grand_total: float
    products: List[ProductLine] = []
    add_ons: List[AddOnLine] = []
    custom_services: List[ServiceLine] = []
    room_totals: Dict[str, float] = {}
    invalid_products: List[InvalidProduct] = []

    @property
    def is_finalizable(self) -> bool:
        return not self.invalid_products


# --- Aggregate engine ---

class CurtainsPricingEngine:
    """
    Prices a curtains quote against one catalog snapshot.

    Stateless apart from the (immutable) catalog: calculate() can be called
    on every keystroke and always returns the same result for the same quote.
    """

    def __init__(self, catalog: ProductCatalog):
        self.catalog = catalog

    def calculate(self, quote: CurtainsQuote) -> CurtainsPricing:
        valid_lines = self._valid_lines(quote)
        invalid = get_invalid_products(quote, self.catalog)
        if invalid:
            logger.warning(
                "Excluding %d product line(s) with invalid pricing: %s",
                len(invalid), [p.reason.value for p in invalid],
            )

        subtotal_before = self._subtotal_before_markup(quote, valid_lines)
        total_markup = self._total_markup(quote, valid_lines)
        subtotal_after = self._subtotal_after_markup(quote, valid_lines)
        total_gst = self._total_gst(quote, valid_lines)
        discount_amount = self._discount_amount(quote, subtotal_after + total_gst)
        grand_total = subtotal_after + total_gst - discount_amount

        product_lines = [self._product_line(quote, line, cp) for line, cp in valid_lines]
        pricing = CurtainsPricing(
            subtotal_before_markup_and_discount=subtotal_before,
            total_markup=total_markup,
            subtotal_after_markup=subtotal_after,
            total_gst=total_gst,
            discount_type=quote.discount_type,
            discount_value=quote.discount_value,
            discount_reason=quote.discount_reason,
            discount_amount=discount_amount,
            gst_enabled=quote.gst_enabled,
            gst_rate=quote.gst_rate,
            grand_total=grand_total,
            products=product_lines,
            add_ons=[self._add_on_line(quote, a) for a in quote.add_ons],
            custom_services=[self._service_line(quote, s) for s in quote.custom_services],
            room_totals=self._room_totals(product_lines),
            invalid_products=invalid,
        )
        logger.debug(
            "Curtains pricing: subtotal=%s markup=%s gst=%s discount=%s total=%s",
            subtotal_before, total_markup, total_gst, discount_amount, grand_total,
        )
        return pricing

    def invalid_products(self, quote: CurtainsQuote) -> List[InvalidProduct]:
        return get_invalid_products(quote, self.catalog)

    def build_quotation(self, quote: CurtainsQuote, quote_id: Optional[str] = None) -> dict:
        """
        Self-contained quotation for storage, PDF and email.

        Raises InvalidPricingError when any product line has no usable price.
        """
        pricing = self.calculate(quote)
        if not pricing.is_finalizable:
            raise InvalidPricingError(pricing.invalid_products)

        return {
            "id": quote_id or uuid.uuid4().hex[:12],
            "quote_number": None,  # Set when the record is stored
            "saved_at": datetime.utcnow().isoformat(),
            "customer": quote.customer.model_dump(),
            "quote_date": quote.quote_date or datetime.utcnow().date().isoformat(),
            "payment_terms": quote.payment_terms,
            "products": [
                {
                    "id": p.line_id,
                    "product_id": p.product_id,
                    "name": p.name,
                    "label": p.label or p.name,
                    "category_name": p.category_name,
                    "room": p.room,
                    "price_type": p.price_type,
                    "base_price": p.original_price,
                    "effective_price": p.effective_price,
                    "width": p.width,
                    "height": p.height,
                    "quantity": p.quantity,
                    "color": p.color,
                    "control_type": p.control_type,
                    "installation": p.installation,
                    "special_features": p.special_features,
                    "total": p.total,
                    "gst_amount": p.gst_amount,
                }
                for p in pricing.products
            ],
            "add_ons": [
                {
                    "id": a.line_id,
                    "name": a.name,
                    "description": a.description,
                    "unit_type": a.unit_type,
                    "unit_price": a.unit_price,
                    "quantity": a.quantity,
                    "width": a.width,
                    "height": a.height,
                    "length": a.length,
                    "total": a.total,
                    "gst_amount": a.gst_amount,
                }
                for a in pricing.add_ons
            ],
            "custom_services": [
                {
                    "id": s.line_id,
                    "name": s.name,
                    "description": s.description,
                    "price": s.price,
                    "total": s.total,
                    "gst_amount": s.gst_amount,
                }
                for s in pricing.custom_services
            ],
            "pricing": {
                "subtotal_before_markup_and_discount": pricing.subtotal_before_markup_and_discount,
                "total_markup": pricing.total_markup,
                "discount_type": pricing.discount_type,
                "discount_value": pricing.discount_value,
                "discount_reason": pricing.discount_reason,
                "discount_amount": pricing.discount_amount,
                "gst_enabled": pricing.gst_enabled,
                "gst_rate": pricing.gst_rate,
                "total_gst": pricing.total_gst,
                "grand_total": pricing.grand_total,
            },
            "room_totals": pricing.room_totals,
            "metadata": {
                "generated_at": datetime.utcnow().isoformat(),
                "item_count": len(pricing.products) + len(pricing.add_ons) + len(pricing.custom_services),
                "room_count": len(pricing.room_totals),
            },
        }

    # --- Steps ---

    def _valid_lines(self, quote: CurtainsQuote) -> list:
        """(line, catalog_product) pairs that pass the validity gate."""
        return [
            (line, find_catalog_product(line, self.catalog))
            for line in quote.products
            if is_pricing_valid(line, self.catalog)
        ]

    def _subtotal_before_markup(self, quote: CurtainsQuote, valid_lines: list) -> float:
        return (
            sum_by(valid_lines, lambda pair: product_base_total(*pair))
            + sum_by(quote.add_ons, add_on_base_total)
            + sum_by(quote.custom_services, service_base_total)
        )

    def _total_markup(self, quote: CurtainsQuote, valid_lines: list) -> float:
        if not quote.markup_enabled:
            return 0.0
        return sum_by(valid_lines, lambda pair: product_markup(pair[0], pair[1], quote))

    def _subtotal_after_markup(self, quote: CurtainsQuote, valid_lines: list) -> float:
        return (
            sum_by(valid_lines, lambda pair: product_total_after_markup(pair[0], pair[1], quote))
            + sum_by(quote.add_ons, add_on_base_total)
            + sum_by(quote.custom_services, service_base_total)
        )

    def _total_gst(self, quote: CurtainsQuote, valid_lines: list) -> float:
        if not quote.gst_enabled:
            return 0.0
        return (
            sum_by(valid_lines, lambda pair: product_gst(pair[0], pair[1], quote))
            + sum_by(quote.add_ons, lambda a: add_on_gst(a, quote))
            + sum_by(quote.custom_services, lambda s: service_gst(s, quote))
        )

    def _discount_amount(self, quote: CurtainsQuote, discount_base: float) -> float:
        """Discount on the post-GST sum. A fixed discount never exceeds that sum."""
        value = positive_or_zero(quote.discount_value)
        if value == 0:
            return 0.0
        if quote.discount_type == "percentage":
            return percentage_of(discount_base, value)
        return clamp(value, 0.0, discount_base)

    def _room_totals(self, product_lines: List[ProductLine]) -> Dict[str, float]:
        totals: Dict[str, float] = {}
        for line in product_lines:
            room = line.room or UNASSIGNED_ROOM
            totals[room] = totals.get(room, 0.0) + line.total
        return totals

    # --- Line breakdowns ---

    def _product_line(self, quote: CurtainsQuote, line: QuoteProduct,
                      catalog_product: CatalogProduct) -> ProductLine:
        return ProductLine(
            line_id=line.id,
            product_id=line.product_id,
            name=catalog_product.name,
            label=line.label,
            category_name=self.catalog.category_name(catalog_product.category_id),
            room=line.room,
            price_type=catalog_product.price_type,
            original_price=original_base_price(line, catalog_product),
            effective_price=effective_base_price(line, catalog_product, quote),
            width=line.width,
            height=line.height,
            quantity=line.quantity,
            billable_units=billable_units(line, catalog_product),
            base_total=product_base_total(line, catalog_product),
            markup_amount=product_markup(line, catalog_product, quote),
            total_after_markup=product_total_after_markup(line, catalog_product, quote),
            gst_amount=product_gst(line, catalog_product, quote),
            total=product_total_with_gst(line, catalog_product, quote),
            color=line.color,
            control_type=line.control_type,
            installation=line.installation,
            special_features=line.special_features,
        )

    def _add_on_line(self, quote: CurtainsQuote, add_on: AddOn) -> AddOnLine:
        return AddOnLine(
            line_id=add_on.id,
            name=add_on.name,
            description=add_on.description,
            unit_type=add_on.unit_type,
            unit_price=add_on.unit_price,
            quantity=add_on.quantity,
            width=add_on.width,
            height=add_on.height,
            length=add_on.length,
            base_total=add_on_base_total(add_on),
            gst_amount=add_on_gst(add_on, quote),
            total=add_on_total_with_gst(add_on, quote),
        )

    def _service_line(self, quote: CurtainsQuote, service: CustomService) -> ServiceLine:
        return ServiceLine(
            line_id=service.id,
            name=service.name,
            description=service.description,
            price=service.price,
            gst_amount=service_gst(service, quote),
            total=service_total_with_gst(service, quote),
        )
