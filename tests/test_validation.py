"""
Wizard validation tests.

Tests:
1.    Email format helper
2-7.  Tile steps (customer, materials, add-ons, pricing options, complete form)
8-9.  Step navigation gating
10-13. Curtains quote form
"""

from quotekit.pricing.curtains import CatalogProduct, CurtainsQuote, Customer, ProductCatalog, QuoteProduct
from quotekit.pricing.tile import (
    CustomItem,
    DiscountOption,
    GstOption,
    MaterialItem,
    PricingOptions,
    Selections,
    TileAddOns,
    TileCustomerInfo,
    TileCustomService,
    TileFinish,
    TileMaterial,
    TileQuote,
    TileSize,
    TileStyle,
)
from quotekit.pricing.validation import (
    can_navigate_to_step,
    is_valid_email,
    validate_add_ons,
    validate_complete_form,
    validate_curtains_quote,
    validate_customer_info,
    validate_material_selections,
    validate_pricing_options,
)


def _sample_customer():
    return TileCustomerInfo(name="Sam Lee", email="sam@example.com", phone="0412 345 678",
                            customer_address="1 Main St")


def _sample_item(**overrides):
    data = {
        "id": "m1",
        "material": TileMaterial(name="Porcelain", base_price=5),
        "style": TileStyle(name="Straight"),
        "size": TileSize(name="300 x 300"),
        "finish": TileFinish(name="Gloss"),
        "unit_value": 20,
    }
    data.update(overrides)
    return MaterialItem(**data)


def _sample_tile_quote(**overrides):
    data = {
        "customer_info": _sample_customer(),
        "selections": Selections(material_items=[_sample_item()]),
    }
    data.update(overrides)
    return TileQuote(**data)


# ============================================================
# Format helpers
# ============================================================

def test_email_format():
    assert is_valid_email("sam@example.com")
    assert not is_valid_email("sam@example")
    assert not is_valid_email("not an email")


# ============================================================
# Tile steps
# ============================================================

def test_customer_info_required_fields():
    result = validate_customer_info(TileCustomerInfo(name="  "))
    assert not result.is_valid
    assert set(result.errors) == {"name", "email", "phone", "customerAddress"}
    assert validate_customer_info(_sample_customer()).is_valid


def test_material_selections_need_an_item():
    result = validate_material_selections(Selections())
    assert result.errors == {"materialItems": "Please add at least one material item"}


def test_material_item_fields_are_keyed_by_index():
    selections = Selections(material_items=[
        _sample_item(),
        _sample_item(id="m2", style=None, unit_value=0),
        _sample_item(id="m3", unit_value=20000),
    ])
    errors = validate_material_selections(selections).errors
    assert set(errors) == {"materialItem_1_style", "materialItem_1_unitValue", "materialItem_2_unitValue"}
    assert "unusually large" in errors["materialItem_2_unitValue"]


def test_add_on_rules():
    add_ons = TileAddOns(
        markup=-1,
        custom_items=[CustomItem(name="", price=0, quantity=0)],
        custom_services=[TileCustomService(name="Install", price=0)],
    )
    errors = validate_add_ons(add_ons).errors
    assert set(errors) == {
        "markup",
        "customItem_0_name", "customItem_0_price", "customItem_0_quantity",
        "customService_0_price",
    }
    assert validate_add_ons(TileAddOns()).is_valid


def test_pricing_option_ranges():
    too_much = PricingOptions(discount=DiscountOption(enabled=True, value=120),
                              gst=GstOption(enabled=True, percentage=60))
    errors = validate_pricing_options(too_much).errors
    assert set(errors) == {"discount", "gst"}

    # Out-of-range values are ignored while the option is switched off
    disabled = PricingOptions(discount=DiscountOption(enabled=False, value=120))
    assert validate_pricing_options(disabled).is_valid


def test_complete_form_merges_every_step():
    quote = _sample_tile_quote(
        customer_info=TileCustomerInfo(),
        pricing_options=PricingOptions(gst=GstOption(enabled=True, percentage=-1)),
    )
    result = validate_complete_form(quote)
    assert not result.is_valid
    assert "name" in result.errors
    assert "gst" in result.errors
    assert validate_complete_form(_sample_tile_quote()).is_valid


# ============================================================
# Step navigation
# ============================================================

def test_first_step_always_reachable():
    assert can_navigate_to_step(1, TileQuote())


def test_navigation_requires_earlier_steps():
    no_customer = _sample_tile_quote(customer_info=TileCustomerInfo())
    assert not can_navigate_to_step(2, no_customer)

    no_items = _sample_tile_quote(selections=Selections())
    assert can_navigate_to_step(2, no_items)
    assert not can_navigate_to_step(3, no_items)
    assert can_navigate_to_step(6, _sample_tile_quote())


# ============================================================
# Curtains form
# ============================================================

def _curtains_catalog():
    return ProductCatalog(products=[
        CatalogProduct(id=1, name="Roller", price_type="sqm", base_price=80),
        CatalogProduct(id=2, name="Motor", price_type="each", base_price=250),
    ])


def test_curtains_customer_and_products_required():
    errors = validate_curtains_quote(CurtainsQuote(), _curtains_catalog()).errors
    assert set(errors) == {"customerName", "customerEmail", "customerPhone", "products"}


def test_curtains_dimensions_required_for_sqm_lines():
    quote = CurtainsQuote(
        customer=Customer(name="Jo", email="jo@example.com", phone="0400 000 000"),
        products=[
            QuoteProduct(product_id=1, width=0, height=1.2),
            QuoteProduct(product_id=2, quantity=0),
        ],
    )
    errors = validate_curtains_quote(quote, _curtains_catalog()).errors
    assert set(errors) == {"product0Width", "product1Quantity"}


def test_curtains_valid_quote():
    quote = CurtainsQuote(
        customer=Customer(name="Jo", email="jo@example.com", phone="0400 000 000"),
        products=[QuoteProduct(product_id=1, width=1.2, height=1.5)],
    )
    assert validate_curtains_quote(quote, _curtains_catalog()).is_valid


def test_curtains_unknown_product_skips_dimension_check():
    quote = CurtainsQuote(
        customer=Customer(name="Jo", email="jo@example.com", phone="0400 000 000"),
        products=[QuoteProduct(product_id=99)],
    )
    assert validate_curtains_quote(quote, _curtains_catalog()).is_valid
