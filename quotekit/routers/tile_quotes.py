"""
Tile quotations.

Material items carry their own catalog snapshots, so pricing a tile quote
needs no database access. Saving requires the whole wizard to validate.
"""

import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..email_sender import EmailError, send_tile_quote_email
from ..pdf_generator import generate_tile_pdf
from ..pricing.errors import QuoteValidationError
from ..pricing.tile import TilePricingEngine, TileQuote
from ..pricing.validation import can_navigate_to_step, is_valid_email, validate_complete_form

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tile/quotes", tags=["tile-quotes"])

engine = TilePricingEngine()


class StepRequest(BaseModel):
    target_step: int
    quote: TileQuote


def generate_quote_number(db: Session) -> str:
    last = db.query(models.TileQuotation).order_by(models.TileQuotation.id.desc()).first()
    next_id = (last.id + 1) if last else 1
    year = datetime.utcnow().year
    return f"TQ-{year}-{str(next_id).zfill(4)}"


def _summary(row: models.TileQuotation) -> schemas.QuotationSummary:
    return schemas.QuotationSummary(
        id=row.id,
        quote_number=row.quote_number,
        customer_name=row.customer_name,
        customer_email=row.customer_email,
        total=row.final_total,
        emailed_at=row.emailed_at,
        created_at=row.created_at,
    )


def _get_quotation(quote_id: int, db: Session) -> models.TileQuotation:
    row = db.query(models.TileQuotation).filter(models.TileQuotation.id == quote_id).first()
    if not row:
        raise HTTPException(status_code=404, detail="Quotation not found")
    return row


@router.post("/calculate")
def calculate_quote(quote: TileQuote):
    result = engine.calculate(quote).model_dump()
    result["item_prices"] = engine.item_prices(quote)
    return result


@router.post("/validate")
def validate_quote(quote: TileQuote):
    return validate_complete_form(quote).model_dump()


@router.post("/can-navigate")
def can_navigate(request: StepRequest):
    return {"target_step": request.target_step, "allowed": can_navigate_to_step(request.target_step, request.quote)}


@router.post("/", response_model=schemas.Quotation)
def create_quotation(quote: TileQuote, db: Session = Depends(get_db)):
    try:
        quotation = engine.build_quotation(quote)
    except QuoteValidationError as e:
        raise HTTPException(status_code=422, detail={"message": str(e), "errors": e.errors})

    quotation["quote_number"] = generate_quote_number(db)
    row = models.TileQuotation(
        quote_number=quotation["quote_number"],
        customer_name=quote.customer_info.name,
        customer_email=quote.customer_info.email or None,
        final_total=quotation["pricing"]["final_total"],
        quote_json=quotation,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info(f"Saved tile quotation {row.quote_number} ({row.final_total:.2f})")
    return schemas.Quotation(**_summary(row).model_dump(), quotation=row.quote_json)


@router.get("/", response_model=List[schemas.QuotationSummary])
def list_quotations(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    rows = (
        db.query(models.TileQuotation)
        .order_by(models.TileQuotation.created_at.desc(), models.TileQuotation.id.desc())
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
    logger.info(f"Deleted tile quotation {row.quote_number}")
    return {"ok": True}


@router.get("/{quote_id}/pdf")
def download_pdf(quote_id: int, db: Session = Depends(get_db)):
    row = _get_quotation(quote_id, db)
    pdf_bytes = generate_tile_pdf(row.quote_json)
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

    pdf_bytes = generate_tile_pdf(row.quote_json)
    try:
        sent = send_tile_quote_email(row.quote_json, pdf_bytes, to_email=to_email, message=request.message)
    except EmailError as e:
        raise HTTPException(status_code=502, detail=f"Email delivery failed: {e}")

    row.emailed_at = datetime.utcnow()
    db.commit()
    return {"ok": True, "sent": sent, "to": to_email}
