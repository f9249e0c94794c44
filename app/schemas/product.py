from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from app.schemas.base import BaseResponse


class ProductSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: float
    description: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    stock: int


class ProductResponse(BaseResponse):
    data: ProductSchema


class ProductListResponse(BaseResponse):
    data: List[ProductSchema]
