"""
Wizard validation for both quote forms.

Validation never raises. Every validator returns a ValidationResult whose
errors dict maps a field key (e.g. "materialItem_0_style") to a message the
form can show next to that field.
"""

import re
from typing import Dict

from pydantic import BaseModel

from .curtains import CurtainsQuote, ProductCatalog
from .tile import PricingOptions, Selections, TileAddOns, TileCustomerInfo, TileQuote

MAX_UNIT_VALUE = 10000
MAX_GST_PERCENTAGE = 50

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ValidationResult(BaseModel):
    is_valid: bool
    errors: Dict[str, str] = {}


def _result(errors: Dict[str, str]) -> ValidationResult:
    return ValidationResult(is_valid=not errors, errors=errors)


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email.strip()))


# --- Tile ---

def validate_customer_info(customer_info: TileCustomerInfo) -> ValidationResult:
    errors = {}
    if not customer_info.name.strip():
        errors["name"] = "Customer name is required"
    if not customer_info.email.strip():
        errors["email"] = "Email is required"
    if not customer_info.phone.strip():
        errors["phone"] = "Phone number is required"
    if not customer_info.customer_address.strip():
        errors["customerAddress"] = "Customer address is required"
    return _result(errors)


def validate_material_selections(selections: Selections) -> ValidationResult:
    errors = {}
    if not selections.material_items:
        errors["materialItems"] = "Please add at least one material item"
        return _result(errors)

    for index, item in enumerate(selections.material_items):
        prefix = f"materialItem_{index}"
        if not item.material:
            errors[f"{prefix}_material"] = "Please select a material"
        if not item.style:
            errors[f"{prefix}_style"] = "Please select a style"
        if not item.size:
            errors[f"{prefix}_size"] = "Please select a size"
        if not item.finish:
            errors[f"{prefix}_finish"] = "Please select a finish"

        if not item.unit_value or item.unit_value <= 0:
            errors[f"{prefix}_unitValue"] = "Quantity must be greater than 0"
        elif item.unit_value > MAX_UNIT_VALUE:
            errors[f"{prefix}_unitValue"] = "Quantity seems unusually large. Please verify."
    return _result(errors)


def validate_add_ons(add_ons: TileAddOns) -> ValidationResult:
    errors = {}
    if add_ons.markup is not None and add_ons.markup < 0:
        errors["markup"] = "Markup cannot be negative"

    for index, item in enumerate(add_ons.custom_items):
        if not item.name.strip():
            errors[f"customItem_{index}_name"] = "Item name is required"
        if item.price <= 0:
            errors[f"customItem_{index}_price"] = "Item price must be greater than 0"
        if item.quantity <= 0:
            errors[f"customItem_{index}_quantity"] = "Item quantity must be greater than 0"

    for index, service in enumerate(add_ons.custom_services):
        if not service.name.strip():
            errors[f"customService_{index}_name"] = "Service name is required"
        if service.price <= 0:
            errors[f"customService_{index}_price"] = "Service price must be greater than 0"
    return _result(errors)


def validate_pricing_options(pricing_options: PricingOptions) -> ValidationResult:
    errors = {}
    discount = pricing_options.discount
    if discount.enabled:
        if discount.value < 0:
            errors["discount"] = "Discount cannot be negative"
        elif discount.value > 100:
            errors["discount"] = "Discount cannot exceed 100%"

    gst = pricing_options.gst
    if gst.enabled:
        if gst.percentage < 0:
            errors["gst"] = "GST percentage cannot be negative"
        elif gst.percentage > MAX_GST_PERCENTAGE:
            errors["gst"] = "GST percentage seems unusually high"
    return _result(errors)


def validate_complete_form(quote: TileQuote) -> ValidationResult:
    errors = {}
    for result in (
        validate_customer_info(quote.customer_info),
        validate_material_selections(quote.selections),
        validate_add_ons(quote.add_ons),
        validate_pricing_options(quote.pricing_options),
    ):
        errors.update(result.errors)
    return _result(errors)


def can_navigate_to_step(target_step: int, quote: TileQuote) -> bool:
    """A step is reachable only when every step before it validates."""
    if target_step <= 1:
        return True

    gates = [
        (2, lambda: validate_customer_info(quote.customer_info)),
        (3, lambda: validate_material_selections(quote.selections)),
        (4, lambda: validate_add_ons(quote.add_ons)),
        (5, lambda: validate_pricing_options(quote.pricing_options)),
    ]
    for step, check in gates:
        if target_step >= step and not check().is_valid:
            return False
    return True


# --- Curtains ---

def validate_curtains_quote(quote: CurtainsQuote, catalog: ProductCatalog) -> ValidationResult:
    """
    Form-level checks for the curtains wizard.

    Pricing validity (missing catalog entries, matrix sizes) is a separate
    query: see curtains.get_invalid_products.
    """
    errors = {}
    customer = quote.customer
    if not customer.name.strip():
        errors["customerName"] = "Customer name is required"
    if not customer.email.strip():
        errors["customerEmail"] = "Email is required"
    if not customer.phone.strip():
        errors["customerPhone"] = "Phone is required"

    if not quote.products:
        errors["products"] = "At least one product is required"

    for index, line in enumerate(quote.products):
        if line.quantity < 1:
            errors[f"product{index}Quantity"] = "Quantity must be at least 1"
        catalog_product = catalog.find_product(line.product_id)
        if catalog_product is None or catalog_product.price_type == "each":
            continue
        if not line.width or line.width <= 0:
            errors[f"product{index}Width"] = "Width must be greater than 0"
        if not line.height or line.height <= 0:
            errors[f"product{index}Height"] = "Height must be greater than 0"
    return _result(errors)
