from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Numeric,
    CheckConstraint,
    Index,
)
from app.db.base import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    name = Column(
        String(255),
        nullable=False,
        comment="商品名称",
    )

    price = Column(
        Numeric(10, 2),
        nullable=False,
        comment="单价（两位小数）",
    )

    description = Column(
        Text,
        nullable=True,
        comment="商品描述",
    )

    category = Column(
        String(100),
        nullable=True,
        comment="商品分类",
    )

    image_url = Column(
        String(512),
        nullable=True,
        comment="图片地址",
    )

    stock = Column(
        Integer,
        nullable=False,
        server_default="0",
        comment="当前库存",
    )

    __table_args__ = (
        CheckConstraint(
            "price >= 0",
            name="ck_products_price_non_negative",
        ),
        CheckConstraint(
            "stock >= 0",
            name="ck_products_stock_non_negative",
        ),
    )


# -----------------------------
# 按分类浏览
# -----------------------------
Index(
    "idx_products_category",
    Product.category,
)
