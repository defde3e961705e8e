from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base import Base


class TrackedProduct(Base):
    __tablename__ = "tracked_products"
    __table_args__ = (
        UniqueConstraint("user_id", "url", name="uq_tracked_products_user_url"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)

    title: Mapped[str] = mapped_column(Text, nullable=False)
    mrp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sale_price: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    discount: Mapped[str] = mapped_column(String(8), nullable=False, default="0%")
    condition: Mapped[str] = mapped_column(String(16), nullable=False, default="Good")
    storage: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    ram: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    color: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_out_of_stock: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    # [{"price": int, "checked_at": iso8601}], oldest first
    price_history: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    last_checked: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    user = relationship("User", back_populates="products")
    alerts = relationship(
        "PriceAlert", back_populates="product", cascade="all, delete-orphan"
    )
