from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base


# --- Curtains catalog ---

class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, default="")
    created_at = Column(DateTime, default=datetime.utcnow)

    products = relationship("Product", back_populates="category", cascade="all, delete-orphan")


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    name = Column(String, nullable=False)
    price_type = Column(String, default="sqm")  # 'sqm' | 'each' | 'matrix'
    base_price = Column(Float, default=0.0)
    minimum_qty = Column(Float, default=0.0)
    price_matrix = Column(JSON, default=list)  # [{width, height, price}], meters
    lead_time = Column(String, default="")
    special_conditions = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("Category", back_populates="products")


# --- Tile catalog ---

class TileMaterial(Base):
    __tablename__ = "tile_materials"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    base_price = Column(Float, default=0.0)
    style_ids = Column(JSON, default=list)
    size_ids = Column(JSON, default=list)
    finish_ids = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)


class TileStyle(Base):
    __tablename__ = "tile_styles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    multiplier = Column(Float, default=1.0)


class TileSize(Base):
    __tablename__ = "tile_sizes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    kind = Column(String, default="custom")  # 'linear_meter' | 'height_width' | 'custom'
    price_type = Column(String, default="multiplier")  # 'multiplier' | 'fixed_price'
    pricing = Column(Float, default=1.0)
    height = Column(Float, nullable=True)
    width = Column(Float, nullable=True)


class TileFinish(Base):
    __tablename__ = "tile_finishes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    premium = Column(Float, default=0.0)


# --- Finalized quotations ---
# quote_json holds the complete quotation as built by the pricing engine, so a
# stored quote renders the same PDF after the catalog changes.

class CurtainQuotation(Base):
    __tablename__ = "curtain_quotations"

    id = Column(Integer, primary_key=True, index=True)
    quote_number = Column(String, unique=True, nullable=False)
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=True)
    grand_total = Column(Float, default=0.0)
    quote_json = Column(JSON, nullable=False)
    emailed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class TileQuotation(Base):
    __tablename__ = "tile_quotations"

    id = Column(Integer, primary_key=True, index=True)
    quote_number = Column(String, unique=True, nullable=False)
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=True)
    final_total = Column(Float, default=0.0)
    quote_json = Column(JSON, nullable=False)
    emailed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
