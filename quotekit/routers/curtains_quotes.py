"""
Curtains & blinds quotations.

The wizard posts its whole state to /calculate on every change and gets the
live breakdown back. Saving finalizes the quote: it is rejected while any
product line has no usable price, otherwise the self-contained quotation is
stored and can be rendered to PDF or emailed later without the catalog.
"""

import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from .. import models, schemas
from ..config import settings
from ..database import get_db
from ..email_sender import EmailError, send_curtains_quote_email
from ..pdf_generator import generate_curtains_pdf
from ..pricing.curtains import CurtainsPricingEngine, CurtainsQuote
from ..pricing.errors import InvalidPricingError
from ..pricing.validation import is_valid_email, validate_curtains_quote
from .catalog import load_catalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/curtains/quotes", tags=["curtains-quotes"])


def generate_quote_number(db: Session) -> str:
    last = db.query(models.CurtainQuotation).order_by(models.CurtainQuotation.id.desc()).first()
    next_id = (last.id + 1) if last else 1
    year = datetime.utcnow().year
    return f"CQ-{year}-{str(next_id).zfill(4)}"


def _summary(row: models.CurtainQuotation) -> schemas.QuotationSummary:
    return schemas.QuotationSummary(
        id=row.id,
        quote_number=row.quote_number,
        customer_name=row.customer_name,
        customer_email=row.customer_email,
        total=row.grand_total,
        emailed_at=row.emailed_at,
        created_at=row.created_at,
    )


def _with_defaults(quote: CurtainsQuote) -> CurtainsQuote:
    """Fill GST rate and payment terms the wizard left unset from settings."""
    defaults = {}
    if "gst_rate" not in quote.model_fields_set:
        defaults["gst_rate"] = settings.GST_RATE_DEFAULT
    if "payment_terms" not in quote.model_fields_set:
        defaults["payment_terms"] = settings.PAYMENT_TERMS_DEFAULT
    return quote.model_copy(update=defaults) if defaults else quote


def _get_quotation(quote_id: int, db: Session) -> models.CurtainQuotation:
    row = db.query(models.CurtainQuotation).filter(models.CurtainQuotation.id == quote_id).first()
    if not row:
        raise HTTPException(status_code=404, detail="Quotation not found")
    return row


# --- Live pricing (never fails on data) ---

@router.post("/calculate")
def calculate_quote(quote: CurtainsQuote, db: Session = Depends(get_db)):
    quote = _with_defaults(quote)
    pricing = CurtainsPricingEngine(load_catalog(db)).calculate(quote)
    result = pricing.model_dump(mode="json")
    result["is_finalizable"] = pricing.is_finalizable
    return result


@router.post("/invalid-products")
def invalid_products(quote: CurtainsQuote, db: Session = Depends(get_db)):
    invalid = CurtainsPricingEngine(load_catalog(db)).invalid_products(quote)
    return [p.model_dump(mode="json") for p in invalid]


@router.post("/validate")
def validate_quote(quote: CurtainsQuote, db: Session = Depends(get_db)):
    return validate_curtains_quote(quote, load_catalog(db)).model_dump()


# --- Finalized quotations ---

@router.post("/", response_model=schemas.Quotation)
def create_quotation(quote: CurtainsQuote, db: Session = Depends(get_db)):
    quote = _with_defaults(quote)
    catalog = load_catalog(db)
    validation = validate_curtains_quote(quote, catalog)
    if not validation.is_valid:
        raise HTTPException(status_code=422, detail={"message": "Quote is incomplete", "errors": validation.errors})

    try:
        quotation = CurtainsPricingEngine(catalog).build_quotation(quote)
    except InvalidPricingError as e:
        raise HTTPException(
            status_code=422,
            detail={
                "message": str(e),
                "invalid_products": [p.model_dump(mode="json") for p in e.invalid_products],
            },
        )

    quotation["quote_number"] = generate_quote_number(db)
    row = models.CurtainQuotation(
        quote_number=quotation["quote_number"],
        customer_name=quote.customer.name,
        customer_email=quote.customer.email or None,
        grand_total=quotation["pricing"]["grand_total"],
        quote_json=quotation,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info(f"Saved curtains quotation {row.quote_number} ({row.grand_total:.2f})")
    return schemas.Quotation(**_summary(row).model_dump(), quotation=row.quote_json)


@router.get("/", response_model=List[schemas.QuotationSummary])
def list_quotations(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    rows = (
        db.query(models.CurtainQuotation)
        .order_by(models.CurtainQuotation.created_at.desc(), models.CurtainQuotation.id.desc())
        .offset(skip).limit(limit).all()
    )
    return [_summary(row) for row in rows]


@router.get("/{quote_id}", response_model=schemas.Quotation)
def get_quotation(quote_id: int, db: Session = Depends(get_db)):
    row = _get_quotation(quote_id, db)
    return schemas.Quotation(**_summary(row).model_dump(), quotation=row.quote_json)


@router.delete("/{quote_id}")
def delete_quotation(quote_id: int, db: Session = Depends(get_db)):
    row = _get_quotation(quote_id, db)
    db.delete(row)
    db.commit()
    logger.info(f"Deleted curtains quotation {row.quote_number}")
    return {"ok": True}


@router.get("/{quote_id}/pdf")
def download_pdf(quote_id: int, db: Session = Depends(get_db)):
    row = _get_quotation(quote_id, db)
    pdf_bytes = generate_curtains_pdf(row.quote_json)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{row.quote_number}.pdf"'},
    )


@router.post("/{quote_id}/email")
def email_quotation(quote_id: int, request: schemas.EmailRequest = None, db: Session = Depends(get_db)):
    row = _get_quotation(quote_id, db)
    request = request or schemas.EmailRequest()
    to_email = request.to or row.customer_email
    if not to_email:
        raise HTTPException(status_code=422, detail="No recipient email address")
    if not is_valid_email(to_email):
        raise HTTPException(status_code=422, detail=f"Invalid recipient email address: {to_email}")

    pdf_bytes = generate_curtains_pdf(row.quote_json)
    try:
        sent = send_curtains_quote_email(row.quote_json, pdf_bytes, to_email=to_email, message=request.message)
    except EmailError as e:
        raise HTTPException(status_code=502, detail=f"Email delivery failed: {e}")

    row.emailed_at = datetime.utcnow()
    db.commit()
    return {"ok": True, "sent": sent, "to": to_email}
