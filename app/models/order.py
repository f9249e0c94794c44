import enum

from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    TIMESTAMP,
    ForeignKey,
    CheckConstraint,
    func,
)
from sqlalchemy.orm import relationship
from app.db.base import Base


# 订单状态（pending 之后的状态由履约系统维护）

class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Order(Base):
    __tablename__ = "orders"

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    order_number = Column(
        String(64),
        nullable=False,
        unique=True,
        comment="订单号 ORD-<毫秒时间戳>",
    )

    customer_email = Column(
        String(255),
        nullable=False,
        index=True,
        comment="下单邮箱",
    )

    total_amount = Column(
        Numeric(12, 2),
        nullable=False,
        comment="订单总额",
    )

    status = Column(
        String(32),
        nullable=False,
        server_default=OrderStatus.PENDING.value,
        comment="订单状态",
    )

    created_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    order_id = Column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="订单ID",
    )

    product_id = Column(
        Integer,
        ForeignKey("products.id"),
        nullable=False,
        index=True,
        comment="商品ID",
    )

    # 下单时的名称和价格快照，不随商品变更
    name = Column(
        String(255),
        nullable=False,
        comment="商品名称快照",
    )

    price = Column(
        Numeric(10, 2),
        nullable=False,
        comment="单价快照",
    )

    quantity = Column(
        Integer,
        nullable=False,
        comment="购买数量",
    )

    order = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint(
            "quantity > 0",
            name="ck_order_items_quantity_positive",
        ),
        CheckConstraint(
            "price >= 0",
            name="ck_order_items_price_non_negative",
        ),
    )
