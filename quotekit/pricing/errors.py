"""
Finalization errors.

The engines never raise for bad data. These are raised only when a caller
asks to *finalize* a quote (save / PDF / email) that is not finalizable.
"""


class QuotationError(Exception):
    """Base class for quotes that cannot be finalized."""


class InvalidPricingError(QuotationError):
    """A curtains quote still contains lines without a usable price."""

    def __init__(self, invalid_products: list):
        self.invalid_products = invalid_products
        names = ", ".join(p.product_name or str(p.product_id) for p in invalid_products)
        super().__init__(
            f"{len(invalid_products)} product line(s) have invalid pricing: {names}"
        )


class QuoteValidationError(QuotationError):
    """Form validation failed; errors maps field keys to messages."""

    def __init__(self, errors: dict):
        self.errors = errors
        super().__init__(f"Quote failed validation ({len(errors)} error(s))")
