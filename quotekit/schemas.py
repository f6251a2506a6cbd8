from pydantic import BaseModel
from typing import Optional, List, Literal
from datetime import datetime
from .pricing.price_table import MatrixEntry


# --- Curtains catalog ---

class CategoryBase(BaseModel):
    name: str
    description: str = ""

class CategoryCreate(CategoryBase):
    pass

class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None

class Category(CategoryBase):
    id: int
    created_at: datetime
    class Config:
        from_attributes = True

class ProductBase(BaseModel):
    category_id: int
    name: str
    price_type: Literal["sqm", "each", "matrix"] = "sqm"
    base_price: float = 0.0
    minimum_qty: float = 0.0
    price_matrix: List[MatrixEntry] = []
    lead_time: str = ""
    special_conditions: Optional[str] = None

class ProductCreate(ProductBase):
    pass

class ProductUpdate(BaseModel):
    category_id: Optional[int] = None
    name: Optional[str] = None
    price_type: Optional[Literal["sqm", "each", "matrix"]] = None
    base_price: Optional[float] = None
    minimum_qty: Optional[float] = None
    price_matrix: Optional[List[MatrixEntry]] = None
    lead_time: Optional[str] = None
    special_conditions: Optional[str] = None

class Product(ProductBase):
    id: int
    created_at: datetime
    class Config:
        from_attributes = True


# --- Tile catalog ---

class TileMaterialBase(BaseModel):
    name: str
    base_price: float = 0.0
    style_ids: List[int] = []
    size_ids: List[int] = []
    finish_ids: List[int] = []

class TileMaterialCreate(TileMaterialBase):
    pass

class TileMaterial(TileMaterialBase):
    id: int
    class Config:
        from_attributes = True

class TileStyleBase(BaseModel):
    name: str
    multiplier: float = 1.0

class TileStyleCreate(TileStyleBase):
    pass

class TileStyle(TileStyleBase):
    id: int
    class Config:
        from_attributes = True

class TileSizeBase(BaseModel):
    name: str
    kind: Literal["linear_meter", "height_width", "custom"] = "custom"
    price_type: Optional[Literal["multiplier", "fixed_price"]] = None
    pricing: float = 1.0
    height: Optional[float] = None
    width: Optional[float] = None

class TileSizeCreate(TileSizeBase):
    pass

class TileSize(TileSizeBase):
    id: int
    class Config:
        from_attributes = True

class TileFinishBase(BaseModel):
    name: str
    premium: float = 0.0

class TileFinishCreate(TileFinishBase):
    pass

class TileFinish(TileFinishBase):
    id: int
    class Config:
        from_attributes = True

class TileCatalogExport(BaseModel):
    """The whole tile catalog as one JSON document (export and import)."""
    materials: List[TileMaterial] = []
    styles: List[TileStyle] = []
    sizes: List[TileSize] = []
    finishes: List[TileFinish] = []

    def dangling_references(self) -> List[str]:
        """Material links to styles, sizes or finishes missing from the document."""
        known = {
            "style_ids": {s.id for s in self.styles},
            "size_ids": {s.id for s in self.sizes},
            "finish_ids": {f.id for f in self.finishes},
        }
        problems = []
        for material in self.materials:
            for field, ids in known.items():
                for ref in getattr(material, field):
                    if ref not in ids:
                        problems.append(f"{material.name}: {field} {ref} does not exist")
        return problems


# --- Stored quotations ---

class QuotationSummary(BaseModel):
    id: int
    quote_number: str
    customer_name: str
    customer_email: Optional[str] = None
    total: float
    emailed_at: Optional[datetime] = None
    created_at: datetime

class Quotation(QuotationSummary):
    quotation: dict

class EmailRequest(BaseModel):
    to: Optional[str] = None  # Defaults to the customer's email
    message: Optional[str] = None
