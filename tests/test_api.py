"""
HTTP API tests.

Tests:
1.     Health check
2-8.   Curtains catalog (seed, combined read, CRUD, null patches, category cascade)
9-14.  Tile catalog (CRUD, link checks, export/import)
15-23. Curtains quotes (calculate, invalid report, finalize gate, save/list/get/pdf/email/delete, defaults)
24-28. Tile quotes (calculate, validate, navigation, finalize gate, save + pdf)
"""

import pytest

from quotekit import models
from quotekit.config import settings
from quotekit.routers.catalog import DEFAULT_CATEGORIES, DEFAULT_PRODUCTS


def _sample_curtains_payload(**overrides):
    payload = {
        "customer": {"name": "Jane Citizen", "email": "jane@example.com", "phone": "0400 000 000",
                     "address": "1 Main St", "project_address": "1 Main St"},
        "products": [{"id": "p1", "product_id": 101, "width": 1, "height": 1, "room": "Bedroom"}],
        "gst_enabled": True,
        "gst_rate": 10,
    }
    payload.update(overrides)
    return payload


def _sample_tile_payload(**overrides):
    payload = {
        "customer_info": {"name": "Sam Lee", "email": "sam@example.com", "phone": "0412 345 678",
                          "customer_address": "1 Main St"},
        "selections": {"material_items": [{
            "id": "m1",
            "label": "Bathroom floor",
            "material": {"name": "Porcelain", "base_price": 5},
            "style": {"name": "Herringbone", "multiplier": 1.15},
            "size": {"name": "600 x 600", "kind": "height_width", "height": 600, "width": 600,
                     "price_type": "multiplier", "pricing": 1},
            "finish": {"name": "Matt", "premium": 0.5},
            "unit_value": 100,
        }]},
        "add_ons": {"markup": 10},
        "pricing_options": {"discount": {"enabled": True, "value": 10},
                            "gst": {"enabled": True, "percentage": 13}},
    }
    payload.update(overrides)
    return payload


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


# ============================================================
# Curtains catalog
# ============================================================

def test_seed_catalog_once(client, db):
    first = client.get("/api/catalog/seed").json()
    assert first["seeded"] == len(DEFAULT_CATEGORIES) + len(DEFAULT_PRODUCTS)
    second = client.get("/api/catalog/seed").json()
    assert second["seeded"] == 0
    assert db.query(models.Product).count() == len(DEFAULT_PRODUCTS)


def test_combined_catalog_read(client, seeded_db):
    catalog = client.get("/api/catalog/").json()
    combi = next(p for p in catalog["products"] if p["id"] == 101)
    assert combi["name"] == "Combi Blinds"
    assert combi["base_price"] == 70
    assert combi["minimum_qty"] == 2


def test_product_crud_with_matrix(client):
    category = client.post("/api/catalog/categories", json={"name": "Shutters"}).json()
    created = client.post("/api/catalog/products", json={
        "category_id": category["id"],
        "name": "Aluminium Shutter",
        "price_type": "matrix",
        "price_matrix": [{"width": 1, "height": 2, "price": 100}],
    })
    assert created.status_code == 200
    product_id = created.json()["id"]

    updated = client.patch(f"/api/catalog/products/{product_id}", json={"lead_time": "3 weeks"})
    assert updated.json()["lead_time"] == "3 weeks"
    assert updated.json()["price_matrix"] == [{"width": 1.0, "height": 2.0, "price": 100.0}]

    assert client.delete(f"/api/catalog/products/{product_id}").status_code == 200
    assert client.get(f"/api/catalog/products/{product_id}").status_code == 404


def test_product_needs_existing_category(client):
    response = client.post("/api/catalog/products", json={"category_id": 999, "name": "Orphan"})
    assert response.status_code == 404


def test_null_patch_leaves_catalog_priceable(client, seeded_db):
    """Explicit nulls are ignored so the catalog keeps loading."""
    product = client.patch("/api/catalog/products/101", json={"base_price": None, "name": None})
    assert product.status_code == 200
    assert product.json()["base_price"] == 70
    category = client.patch("/api/catalog/categories/15", json={"description": None})
    assert category.status_code == 200
    assert category.json()["description"]

    result = client.post("/api/curtains/quotes/calculate", json=_sample_curtains_payload())
    assert result.status_code == 200
    assert result.json()["grand_total"] == pytest.approx(154)
    assert client.get("/api/catalog/").status_code == 200


def test_product_move_needs_existing_category(client, seeded_db):
    response = client.patch("/api/catalog/products/101", json={"category_id": 999})
    assert response.status_code == 404


def test_deleting_category_deletes_its_products(client, db):
    category = client.post("/api/catalog/categories", json={"name": "Curtains"}).json()
    for name in ("Sheer", "Blockout"):
        client.post("/api/catalog/products", json={"category_id": category["id"], "name": name, "base_price": 40})

    response = client.delete(f"/api/catalog/categories/{category['id']}")
    assert response.json() == {"ok": True, "deleted_products": 2}
    assert db.query(models.Product).count() == 0


# ============================================================
# Tile catalog
# ============================================================

def test_tile_catalog_crud(client):
    style = client.post("/api/tile-catalog/styles", json={"name": "Herringbone", "multiplier": 1.15}).json()
    size = client.post("/api/tile-catalog/sizes", json={"name": "Edge trim", "kind": "linear_meter", "pricing": 4}).json()
    assert size["price_type"] == "fixed_price"
    client.post("/api/tile-catalog/materials", json={
        "name": "Porcelain", "base_price": 5, "style_ids": [style["id"]], "size_ids": [size["id"]],
    })

    catalog = client.get("/api/tile-catalog/").json()
    assert [m["name"] for m in catalog["materials"]] == ["Porcelain"]
    assert catalog["materials"][0]["style_ids"] == [style["id"]]
    assert len(catalog["styles"]) == 1
    assert catalog["finishes"] == []


def test_height_width_size_needs_dimensions(client):
    response = client.post("/api/tile-catalog/sizes", json={"name": "Square", "kind": "height_width"})
    assert response.status_code == 422


def _sample_tile_catalog(client):
    style = client.post("/api/tile-catalog/styles", json={"name": "Herringbone", "multiplier": 1.15}).json()
    size = client.post("/api/tile-catalog/sizes", json={"name": "600 x 600", "kind": "height_width",
                                                        "height": 600, "width": 600}).json()
    finish = client.post("/api/tile-catalog/finishes", json={"name": "Matt", "premium": 0.5}).json()
    material = client.post("/api/tile-catalog/materials", json={
        "name": "Porcelain", "base_price": 5,
        "style_ids": [style["id"]], "size_ids": [size["id"]], "finish_ids": [finish["id"]],
    }).json()
    return style, size, finish, material


def test_material_links_must_exist(client):
    response = client.post("/api/tile-catalog/materials", json={"name": "Slate", "style_ids": [99]})
    assert response.status_code == 422
    assert client.get("/api/tile-catalog/materials").json() == []


def test_deleting_style_unlinks_it_from_materials(client):
    style, size, finish, material = _sample_tile_catalog(client)
    assert client.delete(f"/api/tile-catalog/styles/{style['id']}").status_code == 200

    materials = client.get("/api/tile-catalog/materials").json()
    assert materials[0]["style_ids"] == []
    assert materials[0]["size_ids"] == [size["id"]]
    assert materials[0]["finish_ids"] == [finish["id"]]


def test_tile_catalog_export_import_restores_links(client):
    style, size, finish, material = _sample_tile_catalog(client)
    exported = client.get("/api/tile-catalog/export").json()
    assert [m["name"] for m in exported["materials"]] == ["Porcelain"]

    client.delete(f"/api/tile-catalog/styles/{style['id']}")
    client.post("/api/tile-catalog/finishes", json={"name": "Gloss"})

    imported = client.post("/api/tile-catalog/import", json=exported)
    assert imported.status_code == 200
    catalog = client.get("/api/tile-catalog/").json()
    assert [s["id"] for s in catalog["styles"]] == [style["id"]]
    assert [f["name"] for f in catalog["finishes"]] == ["Matt"]
    assert catalog["materials"][0]["style_ids"] == [style["id"]]
    assert catalog["sizes"][0]["price_type"] == "multiplier"


def test_tile_catalog_import_rejects_dangling_ids(client):
    _sample_tile_catalog(client)
    document = {"materials": [{"id": 1, "name": "Slate", "style_ids": [1], "size_ids": [42]}],
                "styles": [{"id": 1, "name": "Straight"}]}
    response = client.post("/api/tile-catalog/import", json=document)
    assert response.status_code == 422
    assert "size_ids 42" in response.json()["detail"]["errors"][0]
    # Nothing replaced
    assert [m["name"] for m in client.get("/api/tile-catalog/materials").json()] == ["Porcelain"]


# ============================================================
# Curtains quotes
# ============================================================

def test_curtains_calculate(client, seeded_db):
    """Combi blind 1 x 1 is billed at the 2 sqm minimum: 140 + 14 GST."""
    result = client.post("/api/curtains/quotes/calculate", json=_sample_curtains_payload()).json()
    assert result["subtotal_before_markup_and_discount"] == pytest.approx(140)
    assert result["total_gst"] == pytest.approx(14)
    assert result["grand_total"] == pytest.approx(154)
    assert result["room_totals"] == {"Bedroom": pytest.approx(154)}
    assert result["is_finalizable"] is True


def test_curtains_calculate_reports_unpriced_lines(client, seeded_db):
    """Supplier fabrics have no base price yet: excluded, never an error."""
    payload = _sample_curtains_payload(products=[
        {"id": "p1", "product_id": 101, "width": 1, "height": 1},
        {"id": "p2", "product_id": 201, "width": 1, "height": 1},
    ])
    result = client.post("/api/curtains/quotes/calculate", json=payload)
    assert result.status_code == 200
    assert result.json()["is_finalizable"] is False
    assert [p["line_id"] for p in result.json()["invalid_products"]] == ["p2"]

    invalid = client.post("/api/curtains/quotes/invalid-products", json=payload).json()
    assert invalid[0]["reason"] == "no_base_price"


def test_curtains_save_rejects_invalid_pricing(client, seeded_db):
    payload = _sample_curtains_payload(products=[{"id": "p2", "product_id": 201, "width": 1, "height": 1}])
    response = client.post("/api/curtains/quotes/", json=payload)
    assert response.status_code == 422
    assert response.json()["detail"]["invalid_products"][0]["product_id"] == 201


def test_curtains_save_rejects_incomplete_form(client, seeded_db):
    payload = _sample_curtains_payload(customer={"name": "Jane"})
    response = client.post("/api/curtains/quotes/", json=payload)
    assert response.status_code == 422
    assert "customerEmail" in response.json()["detail"]["errors"]


def test_curtains_quote_lifecycle(client, seeded_db):
    created = client.post("/api/curtains/quotes/", json=_sample_curtains_payload())
    assert created.status_code == 200
    body = created.json()
    assert body["quote_number"].startswith("CQ-")
    assert body["total"] == pytest.approx(154)
    assert body["quotation"]["products"][0]["category_name"] == "COMBI & VENETIAN BLINDS"

    quote_id = body["id"]
    listed = client.get("/api/curtains/quotes/").json()
    assert [q["id"] for q in listed] == [quote_id]

    fetched = client.get(f"/api/curtains/quotes/{quote_id}").json()
    assert fetched["quotation"]["quote_number"] == body["quote_number"]

    pdf = client.get(f"/api/curtains/quotes/{quote_id}/pdf")
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    emailed = client.post(f"/api/curtains/quotes/{quote_id}/email", json={})
    assert emailed.json() == {"ok": True, "sent": False, "to": "jane@example.com"}

    assert client.delete(f"/api/curtains/quotes/{quote_id}").status_code == 200
    assert client.get(f"/api/curtains/quotes/{quote_id}").status_code == 404


def test_curtains_quote_numbers_increment(client, seeded_db):
    first = client.post("/api/curtains/quotes/", json=_sample_curtains_payload()).json()
    second = client.post("/api/curtains/quotes/", json=_sample_curtains_payload()).json()
    assert first["quote_number"].endswith("-0001")
    assert second["quote_number"].endswith("-0002")


def test_curtains_gst_rate_defaults_from_settings(client, seeded_db, monkeypatch):
    monkeypatch.setattr(settings, "GST_RATE_DEFAULT", 15.0)
    payload = _sample_curtains_payload()
    del payload["gst_rate"]
    result = client.post("/api/curtains/quotes/calculate", json=payload).json()
    assert result["gst_rate"] == 15.0
    assert result["total_gst"] == pytest.approx(21)

    explicit = client.post("/api/curtains/quotes/calculate", json=_sample_curtains_payload()).json()
    assert explicit["total_gst"] == pytest.approx(14)


def test_email_rejects_malformed_recipient(client, seeded_db):
    quote_id = client.post("/api/curtains/quotes/", json=_sample_curtains_payload()).json()["id"]
    response = client.post(f"/api/curtains/quotes/{quote_id}/email", json={"to": "not-an-address"})
    assert response.status_code == 422
    assert client.get("/api/curtains/quotes/").json()[0]["emailed_at"] is None


def test_missing_quotation_is_404(client):
    assert client.get("/api/curtains/quotes/42/pdf").status_code == 404
    assert client.post("/api/tile/quotes/42/email", json={}).status_code == 404


# ============================================================
# Tile quotes
# ============================================================

def test_tile_calculate(client):
    result = client.post("/api/tile/quotes/calculate", json=_sample_tile_payload()).json()
    assert result["final_total"] == pytest.approx(708.125)
    assert result["breakdown"]["tile_gst"] == pytest.approx(89.375)
    assert result["item_prices"] == [pytest.approx(625 * 1.1 * 1.13)]


def test_tile_validate(client):
    payload = _sample_tile_payload(selections={"material_items": []})
    result = client.post("/api/tile/quotes/validate", json=payload).json()
    assert result["is_valid"] is False
    assert "materialItems" in result["errors"]


def test_tile_step_navigation(client):
    payload = {"target_step": 3, "quote": _sample_tile_payload(selections={"material_items": []})}
    assert client.post("/api/tile/quotes/can-navigate", json=payload).json()["allowed"] is False


def test_tile_save_rejects_invalid_form(client):
    payload = _sample_tile_payload(customer_info={"name": "Sam"})
    response = client.post("/api/tile/quotes/", json=payload)
    assert response.status_code == 422
    assert "customerAddress" in response.json()["detail"]["errors"]


def test_tile_quote_lifecycle(client):
    created = client.post("/api/tile/quotes/", json=_sample_tile_payload())
    assert created.status_code == 200
    body = created.json()
    assert body["quote_number"].startswith("TQ-")
    assert body["total"] == pytest.approx(708.125)

    pdf = client.get(f"/api/tile/quotes/{body['id']}/pdf")
    assert pdf.content.startswith(b"%PDF")

    emailed = client.post(f"/api/tile/quotes/{body['id']}/email", json={"to": "office@example.com"})
    assert emailed.json()["to"] == "office@example.com"
    assert client.get("/api/tile/quotes/").json()[0]["emailed_at"] is not None
