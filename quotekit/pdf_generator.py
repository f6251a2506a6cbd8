"""
PDF quotation generator.

Renders finalized quotations (the dicts built by the pricing engines and
stored verbatim) into client-facing PDF documents.
Uses fpdf2 (pure Python, no system dependencies).

Curtains sections:
1. Header + customer block
2. Products (with "Original -> Marked up" and "Base + GST" detail rows)
3. Add-ons
4. Custom services
5. Pricing summary
6. Terms

Tile sections:
1. Header + customer block
2. Materials
3. Custom items / custom services
4. Pricing summary

Nothing here does pricing math beyond display subtraction: every total comes
from the stored quotation.
"""

import math
from datetime import datetime

from fpdf import FPDF

from .config import settings


def format_currency(amount) -> str:
    """Format a number as $X,XXX.XX. Missing or non-finite amounts render as $0.00."""
    try:
        value = float(amount)
    except (ValueError, TypeError):
        return "$0.00"
    if not math.isfinite(value):
        return "$0.00"
    if value < 0:
        return f"-${abs(value):,.2f}"
    return f"${value:,.2f}"


def format_percentage(value) -> str:
    """15 -> '15.0%'"""
    try:
        return f"{float(value):.1f}%"
    except (ValueError, TypeError):
        return "0.0%"


def _dim(value) -> str:
    try:
        return f"{float(value):.2f}"
    except (ValueError, TypeError):
        return "-"


def _safe(text) -> str:
    """Replace Unicode chars that can't be rendered by built-in PDF fonts (latin-1)."""
    if not text:
        return ""
    return (
        str(text)
        .replace("\u2022", "-")    # bullet
        .replace("\u2014", " - ")  # em dash
        .replace("\u2013", "-")    # en dash
        .replace("\u2192", "->")   # right arrow
        .replace("\u00d7", "x")    # multiplication sign
        .replace("\u201c", '"')    # left double quote
        .replace("\u201d", '"')    # right double quote
        .replace("\u2018", "'")    # left single quote
        .replace("\u2019", "'")    # right single quote
        .encode("latin-1", errors="replace")
        .decode("latin-1")
    )


def _date_display(value) -> str:
    try:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        return dt.strftime("%B %d, %Y")
    except (ValueError, TypeError):
        return datetime.utcnow().strftime("%B %d, %Y")


class QuotePDF(FPDF):
    """Shared page furniture and table helpers for both quotation types."""

    def __init__(self, company_name="", company_info=""):
        super().__init__()
        self.company_name = company_name
        self.company_info = company_info
        self.set_auto_page_break(auto=True, margin=20)

    def header(self):
        pass  # Drawn once on the first page by letterhead()

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(150, 150, 150)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="C")

    def letterhead(self, title, quote_number, quote_date):
        self.set_font("Helvetica", "B", 20)
        self.cell(0, 10, _safe(self.company_name), new_x="LMARGIN", new_y="NEXT")
        if self.company_info:
            self.set_font("Helvetica", "", 9)
            self.set_text_color(100, 100, 100)
            self.cell(0, 5, _safe(self.company_info), new_x="LMARGIN", new_y="NEXT")
            self.set_text_color(0, 0, 0)
        self.ln(4)

        self.set_font("Helvetica", "B", 14)
        self.cell(0, 8, f"{title} #{_safe(quote_number or 'DRAFT')}", new_x="LMARGIN", new_y="NEXT")
        self.set_font("Helvetica", "", 10)
        self.cell(0, 5, f"Date: {_date_display(quote_date)}", new_x="LMARGIN", new_y="NEXT")
        self.cell(0, 5, f"Valid for: {settings.QUOTE_VALID_DAYS} days", new_x="LMARGIN", new_y="NEXT")
        self.ln(4)

    def customer_block(self, name, email, phone, address, project_address=None):
        self.section_header("CUSTOMER")
        self.set_font("Helvetica", "", 9)
        rows = [
            ("Name", name),
            ("Email", email),
            ("Phone", phone),
            ("Address", address),
            ("Project address", project_address),
        ]
        for label, value in rows:
            if not value:
                continue
            self.cell(35, 5, label)
            self.cell(0, 5, _safe(value), new_x="LMARGIN", new_y="NEXT")
        self.ln(4)

    def section_header(self, title):
        """Render a section header bar."""
        self.set_font("Helvetica", "B", 11)
        self.set_fill_color(45, 55, 72)
        self.set_text_color(255, 255, 255)
        self.cell(0, 8, f"  {title}", fill=True, new_x="LMARGIN", new_y="NEXT")
        self.set_text_color(0, 0, 0)
        self.ln(2)

    def table_header(self, cols):
        """Render a table header row. cols: [(label, width), ...]"""
        self.set_font("Helvetica", "B", 8)
        self.set_fill_color(240, 240, 240)
        for label, width in cols:
            align = "R" if label in ("Qty", "Unit Price", "Total", "Area") else "L"
            self.cell(width, 6, label, border="B", fill=True, align=align)
        self.ln()

    def table_row(self, values, widths):
        """Render a table data row. The last two columns are right-aligned."""
        self.set_font("Helvetica", "", 8)
        for i, (val, width) in enumerate(zip(values, widths)):
            align = "R" if i >= len(widths) - 2 else "L"
            self.cell(width, 5.5, _safe(val), align=align)
        self.ln()

    def detail_row(self, text):
        """Indented grey line under a table row."""
        self.set_font("Helvetica", "I", 7)
        self.set_text_color(120, 120, 120)
        self.cell(0, 4, _safe(f"    -> {text}"), new_x="LMARGIN", new_y="NEXT")
        self.set_text_color(0, 0, 0)

    def subtotal_row(self, label, amount):
        """Render a subtotal row spanning the full width."""
        self.set_font("Helvetica", "B", 9)
        self.cell(140, 6, _safe(label), align="R", border="T")
        self.cell(50, 6, format_currency(amount), align="R", border="T")
        self.ln(8)

    def summary_row(self, label, amount_text, bold=False):
        self.set_font("Helvetica", "B" if bold else "", 10)
        self.cell(130, 6, _safe(label))
        self.cell(60, 6, amount_text, align="R")
        self.ln()

    def total_bar(self, label, amount):
        self.ln(1)
        self.set_fill_color(45, 55, 72)
        self.set_text_color(255, 255, 255)
        self.set_font("Helvetica", "B", 13)
        self.cell(130, 10, f"  {label}", fill=True)
        self.cell(60, 10, f"{format_currency(amount)}  ", fill=True, align="R")
        self.set_text_color(0, 0, 0)
        self.ln(14)


def _new_pdf() -> QuotePDF:
    info_parts = [p for p in [settings.COMPANY_PHONE, settings.COMPANY_EMAIL] if p]
    pdf = QuotePDF(company_name=settings.COMPANY_NAME, company_info=" | ".join(info_parts))
    pdf.alias_nb_pages()
    pdf.add_page()
    return pdf


def generate_curtains_pdf(quotation: dict) -> bytes:
    """
    Render a finalized curtains quotation.

    Args:
        quotation: dict from CurtainsPricingEngine.build_quotation(), with
                   quote_number filled in once stored

    Returns:
        PDF bytes
    """
    pdf = _new_pdf()
    pw = pdf.w - pdf.l_margin - pdf.r_margin

    pdf.letterhead("QUOTATION", quotation.get("quote_number"), quotation.get("quote_date"))
    customer = quotation.get("customer", {})
    pdf.customer_block(
        customer.get("name"), customer.get("email"), customer.get("phone"),
        customer.get("address"), customer.get("project_address"),
    )

    pricing = quotation.get("pricing", {})
    gst_enabled = pricing.get("gst_enabled", False)
    has_markup = pricing.get("total_markup", 0) > 0

    # Products
    products = quotation.get("products", [])
    if products:
        pdf.section_header("PRODUCTS")
        cols = [("Product", 60), ("Room", 30), ("Size", 35), ("Qty", 15), ("Unit Price", 25), ("Total", 25)]
        widths = [c[1] for c in cols]
        pdf.table_header(cols)
        for product in products:
            if product.get("price_type") == "each":
                size = "-"
            else:
                size = f"{_dim(product.get('width'))}m x {_dim(product.get('height'))}m"
            unit_suffix = "/sqm" if product.get("price_type") == "sqm" else "/each"
            pdf.table_row(
                [
                    (product.get("label") or product.get("name", ""))[:32],
                    (product.get("room") or "")[:16],
                    size,
                    str(product.get("quantity", 1)),
                    format_currency(product.get("effective_price")) + unit_suffix,
                    format_currency(product.get("total")),
                ],
                widths,
            )
            if has_markup and product.get("effective_price") != product.get("base_price"):
                pdf.detail_row(
                    f"Original: {format_currency(product.get('base_price'))} "
                    f"-> Marked up: {format_currency(product.get('effective_price'))}"
                )
            if gst_enabled:
                gst_amount = product.get("gst_amount", 0)
                pdf.detail_row(
                    f"Base: {format_currency(product.get('total', 0) - gst_amount)} "
                    f"+ GST: {format_currency(gst_amount)}"
                )
        pdf.ln(2)

    # Add-ons
    add_ons = quotation.get("add_ons", [])
    if add_ons:
        pdf.section_header("ADD-ONS")
        cols = [("Item", 95), ("Qty", 20), ("Unit Price", 35), ("Total", 40)]
        widths = [c[1] for c in cols]
        pdf.table_header(cols)
        for add_on in add_ons:
            description = add_on.get("name", "")
            if add_on.get("unit_type") == "sqm" and add_on.get("width") and add_on.get("height"):
                description += f" ({_dim(add_on['width'])}m x {_dim(add_on['height'])}m)"
            elif add_on.get("unit_type") == "linear" and add_on.get("length"):
                description += f" ({_dim(add_on['length'])}m)"
            pdf.table_row(
                [
                    description[:50],
                    str(add_on.get("quantity", 1)),
                    format_currency(add_on.get("unit_price")),
                    format_currency(add_on.get("total")),
                ],
                widths,
            )
            if gst_enabled:
                gst_amount = add_on.get("gst_amount", 0)
                pdf.detail_row(
                    f"Base: {format_currency(add_on.get('total', 0) - gst_amount)} "
                    f"+ GST: {format_currency(gst_amount)}"
                )
        pdf.ln(2)

    # Custom services
    services = quotation.get("custom_services", [])
    if services:
        pdf.section_header("SERVICES")
        cols = [("Service", 70), ("Description", 80), ("Total", 40)]
        widths = [c[1] for c in cols]
        pdf.table_header(cols)
        for service in services:
            pdf.table_row(
                [
                    service.get("name", "")[:36],
                    (service.get("description") or "Custom service")[:42],
                    format_currency(service.get("total")),
                ],
                widths,
            )
            if gst_enabled:
                gst_amount = service.get("gst_amount", 0)
                pdf.detail_row(
                    f"Base: {format_currency(service.get('total', 0) - gst_amount)} "
                    f"+ GST: {format_currency(gst_amount)}"
                )
        pdf.ln(2)

    # Pricing summary
    pdf.section_header("PRICING SUMMARY")
    subtotal = pricing.get("subtotal_before_markup_and_discount", 0) + pricing.get("total_markup", 0)
    pdf.summary_row("Subtotal", format_currency(subtotal))
    if gst_enabled:
        pdf.summary_row(
            f"Total GST ({format_percentage(pricing.get('gst_rate', 0))})",
            format_currency(pricing.get("total_gst")),
        )
    discount_amount = pricing.get("discount_amount", 0)
    if discount_amount > 0:
        if pricing.get("discount_type") == "percentage":
            label = f"Discount ({format_percentage(pricing.get('discount_value', 0))})"
        else:
            label = "Discount"
        if pricing.get("discount_reason"):
            label += f" - {pricing['discount_reason']}"
        pdf.summary_row(label, f"-{format_currency(discount_amount)}")
    pdf.total_bar("GRAND TOTAL", pricing.get("grand_total", 0))

    room_totals = quotation.get("room_totals") or {}
    if len(room_totals) > 1:
        pdf.section_header("BY ROOM")
        for room, total in room_totals.items():
            pdf.summary_row(room, format_currency(total))
        pdf.ln(4)

    # Terms
    pdf.set_font("Helvetica", "I", 8)
    pdf.set_text_color(100, 100, 100)
    pdf.set_x(pdf.l_margin)
    pdf.cell(pw, 4, f"This quote is valid for {settings.QUOTE_VALID_DAYS} days from the date above.",
             new_x="LMARGIN", new_y="NEXT")
    pdf.cell(pw, 4, _safe(f"Payment terms: {quotation.get('payment_terms') or settings.PAYMENT_TERMS_DEFAULT}"),
             new_x="LMARGIN", new_y="NEXT")
    pdf.set_text_color(0, 0, 0)

    return bytes(pdf.output())


def _size_display(size: dict) -> str:
    name = size.get("name", "")
    if size.get("kind") == "height_width" and size.get("height") and size.get("width"):
        return f"{name} ({size['width']:g} x {size['height']:g})"
    return name


def generate_tile_pdf(quotation: dict) -> bytes:
    """
    Render a finalized tile quotation.

    Args:
        quotation: dict from TilePricingEngine.build_quotation(), with
                   quote_number filled in once stored

    Returns:
        PDF bytes
    """
    pdf = _new_pdf()
    pw = pdf.w - pdf.l_margin - pdf.r_margin

    pdf.letterhead("TILE QUOTATION", quotation.get("quote_number"), quotation.get("saved_at"))
    customer = quotation.get("customer_info", {})
    pdf.customer_block(
        customer.get("name"), customer.get("email"), customer.get("phone"),
        customer.get("customer_address"), customer.get("project_address"),
    )

    pricing = quotation.get("pricing", {})
    breakdown = pricing.get("breakdown", {})
    add_ons = quotation.get("add_ons", {})
    options = quotation.get("pricing_options", {})

    # Materials
    items = quotation.get("selections", {}).get("material_items", [])
    item_costs = quotation.get("item_costs", [])
    pdf.section_header("MATERIALS")
    cols = [("Material", 45), ("Style", 30), ("Size", 40), ("Finish", 25), ("Area", 20), ("Total", 30)]
    widths = [c[1] for c in cols]
    pdf.table_header(cols)
    for index, item in enumerate(items):
        material = item.get("material") or {}
        style = item.get("style") or {}
        size = item.get("size") or {}
        finish = item.get("finish") or {}
        cost = item_costs[index] if index < len(item_costs) else 0
        pdf.table_row(
            [
                (item.get("label") or material.get("name", ""))[:24],
                style.get("name", "")[:16],
                _size_display(size)[:22],
                finish.get("name", "")[:14],
                f"{item.get('unit_value', 0):g}",
                format_currency(cost),
            ],
            widths,
        )
    pdf.subtotal_row("Material Cost", pricing.get("material_cost", 0))

    # Custom items and services
    custom_items = add_ons.get("custom_items", [])
    custom_services = add_ons.get("custom_services", [])
    if custom_items or custom_services:
        pdf.section_header("ADDITIONAL ITEMS & SERVICES")
        cols = [("Item", 100), ("Qty", 20), ("Unit Price", 35), ("Total", 35)]
        widths = [c[1] for c in cols]
        pdf.table_header(cols)
        for item in custom_items:
            unit = item.get("unit") or "each"
            pdf.table_row(
                [
                    f"{item.get('name', '')} ({unit})"[:52],
                    f"{item.get('quantity', 1):g}",
                    format_currency(item.get("price")),
                    format_currency(item.get("price", 0) * item.get("quantity", 1)),
                ],
                widths,
            )
        for service in custom_services:
            pdf.table_row(
                [service.get("name", "")[:52], "1", format_currency(service.get("price")),
                 format_currency(service.get("price"))],
                widths,
            )
        pdf.ln(2)

    # Pricing summary
    pdf.section_header("PRICING SUMMARY")
    pdf.summary_row("Material cost", format_currency(pricing.get("material_cost")))
    if pricing.get("markup_amount", 0) > 0:
        pdf.summary_row(
            f"Markup ({format_percentage(add_ons.get('markup') or 0)})",
            format_currency(pricing.get("markup_amount")),
        )
    if pricing.get("custom_items_cost", 0) > 0:
        pdf.summary_row("Custom items", format_currency(pricing.get("custom_items_cost")))
    if pricing.get("custom_services_cost", 0) > 0:
        pdf.summary_row("Custom services", format_currency(pricing.get("custom_services_cost")))
    pdf.summary_row("Subtotal", format_currency(pricing.get("subtotal")), bold=True)
    if pricing.get("discount_amount", 0) > 0:
        discount_pct = options.get("discount", {}).get("value", 0)
        pdf.summary_row(
            f"Discount ({format_percentage(discount_pct)})",
            f"-{format_currency(pricing.get('discount_amount'))}",
        )
    if pricing.get("gst_amount", 0) > 0:
        gst_pct = options.get("gst", {}).get("percentage", 0)
        pdf.summary_row(f"GST ({format_percentage(gst_pct)})", format_currency(pricing.get("gst_amount")))
        pdf.detail_row(
            f"Tiles: {format_currency(breakdown.get('tile_gst'))}, "
            f"items: {format_currency(breakdown.get('custom_items_gst'))}, "
            f"services: {format_currency(breakdown.get('custom_services_gst'))}"
        )
    pdf.total_bar("FINAL TOTAL", pricing.get("final_total", 0))

    pdf.set_font("Helvetica", "I", 8)
    pdf.set_text_color(100, 100, 100)
    pdf.set_x(pdf.l_margin)
    pdf.cell(pw, 4, f"This quote is valid for {settings.QUOTE_VALID_DAYS} days from the date above.",
             new_x="LMARGIN", new_y="NEXT")
    pdf.set_text_color(0, 0, 0)

    return bytes(pdf.output())
