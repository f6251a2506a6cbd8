import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from .. import models, schemas
from ..database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tile-catalog", tags=["tile-catalog"])


def _get_or_404(db: Session, model, row_id: int, label: str):
    row = db.query(model).filter(model.id == row_id).first()
    if not row:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return row


def _create(db: Session, model, data: dict):
    row = model(**data)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def _update(db: Session, row, data: dict):
    for field, value in data.items():
        setattr(row, field, value)
    db.commit()
    db.refresh(row)
    return row


def _export(db: Session) -> schemas.TileCatalogExport:
    return schemas.TileCatalogExport(
        materials=[schemas.TileMaterial.model_validate(m) for m in db.query(models.TileMaterial).order_by(models.TileMaterial.id)],
        styles=[schemas.TileStyle.model_validate(s) for s in db.query(models.TileStyle).order_by(models.TileStyle.id)],
        sizes=[schemas.TileSize.model_validate(s) for s in db.query(models.TileSize).order_by(models.TileSize.id)],
        finishes=[schemas.TileFinish.model_validate(f) for f in db.query(models.TileFinish).order_by(models.TileFinish.id)],
    )


def _check_links(db: Session, material: schemas.TileMaterialCreate):
    """422 when a material links to a style, size or finish that does not exist."""
    document = _export(db).model_copy(update={"materials": [schemas.TileMaterial(id=0, **material.model_dump())]})
    problems = document.dangling_references()
    if problems:
        raise HTTPException(status_code=422, detail={"message": "Unknown references", "errors": problems})


def _unlink(db: Session, field: str, row_id: int):
    """Drop a deleted style, size or finish from every material that offered it."""
    for material in db.query(models.TileMaterial).all():
        ids = getattr(material, field) or []
        if row_id in ids:
            # Reassign so the JSON column is flagged as changed
            setattr(material, field, [i for i in ids if i != row_id])


@router.get("/")
def get_tile_catalog(db: Session = Depends(get_db)):
    """Everything the tile wizard offers, in one read."""
    return _export(db).model_dump()


@router.get("/export", response_model=schemas.TileCatalogExport)
def export_tile_catalog(db: Session = Depends(get_db)):
    return _export(db)


@router.post("/import", response_model=schemas.TileCatalogExport)
def import_tile_catalog(document: schemas.TileCatalogExport, db: Session = Depends(get_db)):
    """
    Replace the tile catalog with an exported document.

    Rows keep their ids so material links survive the round trip. The
    document is rejected (and nothing changes) when a material links to a
    style, size or finish it does not contain.
    """
    problems = document.dangling_references()
    if problems:
        raise HTTPException(status_code=422, detail={"message": "Unknown references", "errors": problems})
    for size in document.sizes:
        _check_dimensions(size)

    for model in (models.TileMaterial, models.TileStyle, models.TileSize, models.TileFinish):
        db.query(model).delete()
    for style in document.styles:
        db.add(models.TileStyle(**style.model_dump()))
    for size in document.sizes:
        db.add(models.TileSize(**_size_columns(size)))
    for finish in document.finishes:
        db.add(models.TileFinish(**finish.model_dump()))
    for material in document.materials:
        db.add(models.TileMaterial(**material.model_dump()))
    db.commit()
    logger.info(
        f"Imported tile catalog: {len(document.materials)} materials, {len(document.styles)} styles, "
        f"{len(document.sizes)} sizes, {len(document.finishes)} finishes"
    )
    return _export(db)


# --- Materials ---

@router.get("/materials", response_model=List[schemas.TileMaterial])
def list_materials(db: Session = Depends(get_db)):
    return db.query(models.TileMaterial).order_by(models.TileMaterial.name).all()


@router.post("/materials", response_model=schemas.TileMaterial)
def create_material(material: schemas.TileMaterialCreate, db: Session = Depends(get_db)):
    _check_links(db, material)
    return _create(db, models.TileMaterial, material.model_dump())


@router.put("/materials/{material_id}", response_model=schemas.TileMaterial)
def update_material(material_id: int, update: schemas.TileMaterialCreate, db: Session = Depends(get_db)):
    material = _get_or_404(db, models.TileMaterial, material_id, "Material")
    _check_links(db, update)
    return _update(db, material, update.model_dump())


@router.delete("/materials/{material_id}")
def delete_material(material_id: int, db: Session = Depends(get_db)):
    db.delete(_get_or_404(db, models.TileMaterial, material_id, "Material"))
    db.commit()
    return {"ok": True}


# --- Styles ---

@router.get("/styles", response_model=List[schemas.TileStyle])
def list_styles(db: Session = Depends(get_db)):
    return db.query(models.TileStyle).order_by(models.TileStyle.name).all()


@router.post("/styles", response_model=schemas.TileStyle)
def create_style(style: schemas.TileStyleCreate, db: Session = Depends(get_db)):
    return _create(db, models.TileStyle, style.model_dump())


@router.put("/styles/{style_id}", response_model=schemas.TileStyle)
def update_style(style_id: int, update: schemas.TileStyleCreate, db: Session = Depends(get_db)):
    style = _get_or_404(db, models.TileStyle, style_id, "Style")
    return _update(db, style, update.model_dump())


@router.delete("/styles/{style_id}")
def delete_style(style_id: int, db: Session = Depends(get_db)):
    db.delete(_get_or_404(db, models.TileStyle, style_id, "Style"))
    _unlink(db, "style_ids", style_id)
    db.commit()
    return {"ok": True}


# --- Sizes ---

def _check_dimensions(size: schemas.TileSizeBase):
    if size.kind == "height_width" and (not size.height or not size.width):
        raise HTTPException(status_code=422, detail=f"height_width size {size.name!r} needs both height and width")


def _size_columns(size: schemas.TileSizeBase) -> dict:
    data = size.model_dump()
    if data["price_type"] is None:
        # Linear-meter sizes are a per-meter amount added to the material price
        data["price_type"] = "fixed_price" if data["kind"] == "linear_meter" else "multiplier"
    return data


@router.get("/sizes", response_model=List[schemas.TileSize])
def list_sizes(db: Session = Depends(get_db)):
    return db.query(models.TileSize).order_by(models.TileSize.name).all()


@router.post("/sizes", response_model=schemas.TileSize)
def create_size(size: schemas.TileSizeCreate, db: Session = Depends(get_db)):
    _check_dimensions(size)
    return _create(db, models.TileSize, _size_columns(size))


@router.put("/sizes/{size_id}", response_model=schemas.TileSize)
def update_size(size_id: int, update: schemas.TileSizeCreate, db: Session = Depends(get_db)):
    size = _get_or_404(db, models.TileSize, size_id, "Size")
    _check_dimensions(update)
    return _update(db, size, _size_columns(update))


@router.delete("/sizes/{size_id}")
def delete_size(size_id: int, db: Session = Depends(get_db)):
    db.delete(_get_or_404(db, models.TileSize, size_id, "Size"))
    _unlink(db, "size_ids", size_id)
    db.commit()
    return {"ok": True}


# --- Finishes ---

@router.get("/finishes", response_model=List[schemas.TileFinish])
def list_finishes(db: Session = Depends(get_db)):
    return db.query(models.TileFinish).order_by(models.TileFinish.name).all()


@router.post("/finishes", response_model=schemas.TileFinish)
def create_finish(finish: schemas.TileFinishCreate, db: Session = Depends(get_db)):
    return _create(db, models.TileFinish, finish.model_dump())


@router.put("/finishes/{finish_id}", response_model=schemas.TileFinish)
def update_finish(finish_id: int, update: schemas.TileFinishCreate, db: Session = Depends(get_db)):
    finish = _get_or_404(db, models.TileFinish, finish_id, "Finish")
    return _update(db, finish, update.model_dump())


@router.delete("/finishes/{finish_id}")
def delete_finish(finish_id: int, db: Session = Depends(get_db)):
    db.delete(_get_or_404(db, models.TileFinish, finish_id, "Finish"))
    _unlink(db, "finish_ids", finish_id)
    db.commit()
    return {"ok": True}
