"""
Example application: a products API backed by MongoDB.

Run with:
    MONGO_URL=mongodb://localhost:27017 MONGO_DB=shop uvicorn examples.products_app:app

Endpoints:
    /api/products          standard CRUD, newest first, ?name= search, ?category= filter
    /api/products-upload   same, POST/PATCH accept multipart with an "image" file (needs S3_* env)
    /api/custom-products   a hand-written route reusing a ControllerSet
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from pydantic import BaseModel, Field

from controller_sets import (
    ControllerSet,
    MongoModel,
    add_error_handling,
    add_mongo,
    create_router,
    create_router_s3_upload,
)
from controller_sets.app import setup_logging

setup_logging()


class Product(BaseModel):
    name: str
    price: Optional[float] = None
    category: Optional[str] = None
    image: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), alias="createdAt")

    model_config = {"populate_by_name": True}


products = MongoModel("products", Product)

app = FastAPI(title="Products")
add_mongo(app)
add_error_handling(app)

app.include_router(
    create_router(
        products,
        prefix="/api/products",
        order_by="-createdAt",
        search="name",
        query=["category"],
        tags=["products"],
    )
)

app.include_router(
    create_router_s3_upload(
        products,
        prefix="/api/products-upload",
        path="products/images/",
        fields=[{"name": "image", "maxCount": 1}],
        order_by="-createdAt",
        tags=["products-upload"],
    )
)

product_controller = ControllerSet(products)


@app.get("/api/custom-products")
async def custom_products(request: Request):
    return await product_controller.get_all(request.query_params)
