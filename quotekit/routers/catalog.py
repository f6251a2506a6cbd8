import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from .. import models, schemas
from ..database import get_db
from ..pricing.curtains import CatalogProduct, Category, ProductCatalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["catalog"])

# Default curtains & blinds catalog. Prices of 0 are "contact supplier" lines:
# they stay unpriceable (and are reported as such) until a price is entered.
DEFAULT_CATEGORIES = [
    {"id": 1, "name": "LUXX SHADES & ALLUSION", "description": "LUXX SHADES are the new name for previously known CURVERS & UNISHADE"},
    {"id": 2, "name": "TEXSTYLE FABRICS", "description": "Fabric options for roller and vertical blinds"},
    {"id": 3, "name": "SHAW FABRICS", "description": "Fabric options for roller and vertical blinds"},
    {"id": 4, "name": "ALPHA FABRICS", "description": "Fabric options for roller and vertical blinds"},
    {"id": 5, "name": "LOUVOLITE FABRICS", "description": "Fabric options for roller and vertical blinds"},
    {"id": 6, "name": "VERTEX FABRICS", "description": "Fabric options for roller and vertical blinds - no guaranteed timeframes with vertical stock"},
    {"id": 7, "name": "ROLLER COMPONENTS & EXTRAS", "description": "Components and accessories for roller blinds"},
    {"id": 8, "name": "VERTICAL COMPONENTS & EXTRAS", "description": "Components and accessories for vertical blinds - all parts must be paid on pick up"},
    {"id": 9, "name": "MOTORS", "description": "Motorization options for blinds"},
    {"id": 10, "name": "PANEL BLINDS", "description": "Panel blind systems"},
    {"id": 11, "name": "CASSETTE BLINDS", "description": "Cassette style blind systems"},
    {"id": 12, "name": "LOCAL PLANTATION SHUTTERS", "description": "Locally manufactured plantation shutters"},
    {"id": 13, "name": "PLEATED FLY SCREENS", "description": "Pleated fly screen systems - 50% deposit required"},
    {"id": 14, "name": "CURTAINS", "description": "Various curtain options from multiple suppliers"},
    {"id": 15, "name": "COMBI & VENETIAN BLINDS", "description": "Combination and venetian blind systems"},
    {"id": 16, "name": "ROLLER SHUTTERS", "description": "Roller shutter systems - 50% deposit required"},
    {"id": 17, "name": "EZIP & OUTDOOR BLINDS", "description": "EZIP systems and other outdoor blind solutions - supply only, no installation"},
]

_VENETIAN_TERMS = (
    "Minimum 2 SQM per blind - open size. Single cord control. Service requests could result "
    "in new blind replacement at cost or $20 per blind to maintain."
)
_CONTACT = "Contact for pricing and specifications."

DEFAULT_PRODUCTS = [
    {"id": 101, "category_id": 15, "name": "Combi Blinds", "price_type": "sqm", "base_price": 70, "minimum_qty": 2,
     "lead_time": "2-3 weeks import required",
     "special_conditions": "Use LA MIEUX samples only. Minimum 2 SQM per blind - open size. White, black or grey headbox."},
    {"id": 102, "category_id": 15, "name": "Venetian Blinds - 25mm Aluminium", "price_type": "sqm", "base_price": 70,
     "minimum_qty": 2, "lead_time": "2-3 weeks import required", "special_conditions": _VENETIAN_TERMS},
    {"id": 103, "category_id": 15, "name": "Venetian Blinds - 50mm Aluminium", "price_type": "sqm", "base_price": 70,
     "minimum_qty": 2, "lead_time": "2-3 weeks import required", "special_conditions": _VENETIAN_TERMS},
    {"id": 104, "category_id": 15, "name": "Venetian Blinds - 50mm PVC", "price_type": "sqm", "base_price": 70,
     "minimum_qty": 2, "lead_time": "2-3 weeks import required", "special_conditions": _VENETIAN_TERMS},
    {"id": 105, "category_id": 15, "name": "Venetian Blinds - 50mm Basswood", "price_type": "sqm", "base_price": 70,
     "minimum_qty": 2, "lead_time": "2-3 weeks import required", "special_conditions": _VENETIAN_TERMS},
    {"id": 201, "category_id": 2, "name": "Texstyle Roller Fabric", "price_type": "sqm", "minimum_qty": 1, "lead_time": "Standard"},
    {"id": 202, "category_id": 2, "name": "Texstyle Vertical Fabric", "price_type": "sqm", "minimum_qty": 1, "lead_time": "Standard"},
    {"id": 301, "category_id": 3, "name": "Shaw Roller Fabric", "price_type": "sqm", "minimum_qty": 1, "lead_time": "Standard"},
    {"id": 401, "category_id": 4, "name": "Alpha Roller Fabric", "price_type": "sqm", "minimum_qty": 1, "lead_time": "Standard"},
    {"id": 501, "category_id": 5, "name": "Louvolite Roller Fabric", "price_type": "sqm", "minimum_qty": 1, "lead_time": "Standard"},
    {"id": 601, "category_id": 6, "name": "Vertex Roller Fabric", "price_type": "sqm", "minimum_qty": 1,
     "lead_time": "Variable - no guaranteed timeframes"},
    {"id": 701, "category_id": 7, "name": "Roller Components", "price_type": "each", "minimum_qty": 1, "lead_time": "Standard"},
    {"id": 801, "category_id": 8, "name": "Vertical Components", "price_type": "each", "minimum_qty": 1, "lead_time": "Standard"},
    {"id": 901, "category_id": 9, "name": "Motors", "price_type": "each", "minimum_qty": 1, "lead_time": "Standard"},
    {"id": 1001, "category_id": 10, "name": "Panel Blinds", "price_type": "sqm", "minimum_qty": 1, "lead_time": "Standard",
     "special_conditions": _CONTACT},
    {"id": 1101, "category_id": 11, "name": "Cassette Blinds", "price_type": "sqm", "minimum_qty": 1, "lead_time": "Standard",
     "special_conditions": _CONTACT},
    {"id": 1201, "category_id": 12, "name": "Local Plantation Shutters", "price_type": "sqm", "minimum_qty": 1, "lead_time": "Standard"},
    {"id": 1301, "category_id": 13, "name": "Pleated Fly Screens", "price_type": "sqm", "minimum_qty": 1, "lead_time": "Standard"},
    {"id": 1401, "category_id": 14, "name": "HOAD Curtains", "price_type": "sqm", "minimum_qty": 1, "lead_time": "Standard",
     "special_conditions": _CONTACT},
    {"id": 1402, "category_id": 14, "name": "NETTEX Curtains", "price_type": "sqm", "minimum_qty": 1, "lead_time": "Standard",
     "special_conditions": _CONTACT},
    {"id": 1403, "category_id": 14, "name": "Charles Parsons Curtains", "price_type": "sqm", "minimum_qty": 1, "lead_time": "Standard",
     "special_conditions": _CONTACT},
    {"id": 1601, "category_id": 16, "name": "Roller Shutters", "price_type": "sqm", "minimum_qty": 1, "lead_time": "Standard"},
    {"id": 1701, "category_id": 17, "name": "EZIP System", "price_type": "sqm", "minimum_qty": 1, "lead_time": "Standard"},
    {"id": 1702, "category_id": 17, "name": "Straight Drop Blinds", "price_type": "sqm", "minimum_qty": 1, "lead_time": "Standard"},
    {"id": 101001, "category_id": 1, "name": "LUXX Shades (formerly CURVERS)", "price_type": "sqm", "minimum_qty": 1,
     "lead_time": "Standard", "special_conditions": "Contact for pricing."},
    {"id": 101002, "category_id": 1, "name": "Allusion Blinds", "price_type": "sqm", "minimum_qty": 1, "lead_time": "Standard",
     "special_conditions": "Part of LUXX SHADES range. Contact for pricing."},
]


def seed_default_catalog(db: Session) -> int:
    """Insert the default catalog into an empty categories table. Returns rows added."""
    if db.query(models.Category).count() > 0:
        return 0
    for data in DEFAULT_CATEGORIES:
        db.add(models.Category(**data))
    db.flush()
    for data in DEFAULT_PRODUCTS:
        db.add(models.Product(**data))
    db.commit()
    logger.info(f"Seeded {len(DEFAULT_CATEGORIES)} categories and {len(DEFAULT_PRODUCTS)} products")
    return len(DEFAULT_CATEGORIES) + len(DEFAULT_PRODUCTS)


def load_catalog(db: Session) -> ProductCatalog:
    """Snapshot of the curtains catalog for the pricing engine."""
    return ProductCatalog(
        categories=[Category.model_validate(c) for c in db.query(models.Category).all()],
        products=[CatalogProduct.model_validate(p) for p in db.query(models.Product).all()],
    )


@router.get("/seed")
def seed_catalog(db: Session = Depends(get_db)):
    """Seed the default catalog (no-op when categories already exist)."""
    added = seed_default_catalog(db)
    return {"ok": True, "seeded": added}


@router.get("/")
def get_catalog(db: Session = Depends(get_db)):
    """Categories and products in one read, as the quote wizard loads them."""
    catalog = load_catalog(db)
    return catalog.model_dump()


# --- Categories ---

@router.get("/categories", response_model=List[schemas.Category])
def list_categories(db: Session = Depends(get_db)):
    return db.query(models.Category).order_by(models.Category.name).all()


@router.post("/categories", response_model=schemas.Category)
def create_category(category: schemas.CategoryCreate, db: Session = Depends(get_db)):
    db_category = models.Category(**category.model_dump())
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    return db_category


@router.patch("/categories/{category_id}", response_model=schemas.Category)
def update_category(category_id: int, update: schemas.CategoryUpdate, db: Session = Depends(get_db)):
    category = db.query(models.Category).filter(models.Category.id == category_id).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    # null leaves a field unchanged
    for field, value in update.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(category, field, value)
    db.commit()
    db.refresh(category)
    return category


@router.delete("/categories/{category_id}")
def delete_category(category_id: int, db: Session = Depends(get_db)):
    """Deletes the category and every product in it."""
    category = db.query(models.Category).filter(models.Category.id == category_id).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    removed_products = len(category.products)
    db.delete(category)
    db.commit()
    logger.info(f"Deleted category {category_id} and {removed_products} product(s)")
    return {"ok": True, "deleted_products": removed_products}


# --- Products ---

@router.get("/products", response_model=List[schemas.Product])
def list_products(category_id: int = None, db: Session = Depends(get_db)):
    query = db.query(models.Product)
    if category_id is not None:
        query = query.filter(models.Product.category_id == category_id)
    return query.order_by(models.Product.name).all()


@router.get("/products/{product_id}", response_model=schemas.Product)
def get_product(product_id: int, db: Session = Depends(get_db)):
    product = db.query(models.Product).filter(models.Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.post("/products", response_model=schemas.Product)
def create_product(product: schemas.ProductCreate, db: Session = Depends(get_db)):
    category = db.query(models.Category).filter(models.Category.id == product.category_id).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    db_product = models.Product(**product.model_dump())
    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    return db_product


@router.patch("/products/{product_id}", response_model=schemas.Product)
def update_product(product_id: int, update: schemas.ProductUpdate, db: Session = Depends(get_db)):
    product = db.query(models.Product).filter(models.Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    changes = update.model_dump(exclude_unset=True, exclude_none=True)
    if "category_id" in changes:
        category = db.query(models.Category).filter(models.Category.id == changes["category_id"]).first()
        if not category:
            raise HTTPException(status_code=404, detail="Category not found")
    for field, value in changes.items():
        setattr(product, field, value)
    db.commit()
    db.refresh(product)
    return product


@router.delete("/products/{product_id}")
def delete_product(product_id: int, db: Session = Depends(get_db)):
    product = db.query(models.Product).filter(models.Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    db.delete(product)
    db.commit()
    return {"ok": True}
