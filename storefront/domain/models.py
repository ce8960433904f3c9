from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy import (
    String, ForeignKey, Numeric, DateTime, Text, Boolean, Integer,
    CheckConstraint, UniqueConstraint, func,
)
from datetime import datetime
from typing import Optional

class Base(DeclarativeBase):
    pass

class Address(Base):
    __tablename__ = "addresses"
    __table_args__ = (
        # Identical addresses share one row; optional columns compare NULL as equal
        UniqueConstraint(
            "address_line1", "address_line2", "city", "county", "postcode",
            name="uq_addresses_fields",
            postgresql_nulls_not_distinct=True,
        ),
    )
    id: Mapped[int] = mapped_column(primary_key=True)
    address_line1: Mapped[str] = mapped_column(String(200))
    address_line2: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    city: Mapped[str] = mapped_column(String(100))
    county: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    postcode: Mapped[str] = mapped_column(String(20))

class Customer(Base):
    __tablename__ = "customers"
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    username: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    # NULL for accounts created through single sign-on
    password: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    join_date: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    avatar: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    billing_address_id: Mapped[Optional[int]] = mapped_column(ForeignKey("addresses.id"), nullable=True)
    shipping_address_id: Mapped[Optional[int]] = mapped_column(ForeignKey("addresses.id"), nullable=True)

    billing_address: Mapped[Optional[Address]] = relationship(foreign_keys=[billing_address_id])
    shipping_address: Mapped[Optional[Address]] = relationship(foreign_keys=[shipping_address_id])
    oauth: Mapped[Optional["OAuthProfile"]] = relationship(
        back_populates="customer", cascade="all, delete-orphan", uselist=False
    )
    orders: Mapped[list["Order"]] = relationship(
        back_populates="customer", cascade="all, delete-orphan", order_by="Order.id"
    )
    reviews: Mapped[list["Review"]] = relationship(back_populates="customer", cascade="all, delete-orphan")
    cart_items: Mapped[list["CartItem"]] = relationship(
        cascade="all, delete-orphan", order_by="CartItem.product_id"
    )
    wishlist_items: Mapped[list["WishlistItem"]] = relationship(
        cascade="all, delete-orphan", order_by="WishlistItem.product_id"
    )

class OAuthProfile(Base):
    __tablename__ = "oauth_profiles"
    __table_args__ = (UniqueConstraint("auth_id", "provider", name="uq_oauth_identity"),)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), primary_key=True)
    auth_id: Mapped[str] = mapped_column(String(200))
    provider: Mapped[str] = mapped_column(String(50))
    customer: Mapped[Customer] = relationship(back_populates="oauth")

class Product(Base):
    __tablename__ = "products"
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),)
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text)
    price: Mapped[float] = mapped_column(Numeric(10, 2))
    stock: Mapped[int] = mapped_column(Integer, default=0)
    category_name: Mapped[str] = mapped_column(String(100), index=True)
    supplier_name: Mapped[str] = mapped_column(String(100), index=True)
    thumbnail: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

class Order(Base):
    __tablename__ = "orders"
    id: Mapped[int] = mapped_column(primary_key=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), index=True)
    billing_address_id: Mapped[Optional[int]] = mapped_column(ForeignKey("addresses.id"), nullable=True)
    shipping_address_id: Mapped[Optional[int]] = mapped_column(ForeignKey("addresses.id"), nullable=True)
    status: Mapped[str] = mapped_column(String(30))
    payment_method: Mapped[str] = mapped_column(String(50))
    total: Mapped[float] = mapped_column(Numeric(10, 2))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    customer: Mapped[Customer] = relationship(back_populates="orders")
    billing_address: Mapped[Optional[Address]] = relationship(foreign_keys=[billing_address_id])
    shipping_address: Mapped[Optional[Address]] = relationship(foreign_keys=[shipping_address_id])
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.product_id"
    )

class OrderItem(Base):
    __tablename__ = "order_items"
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id", ondelete="RESTRICT"), primary_key=True)
    quantity: Mapped[int]
    order: Mapped[Order] = relationship(back_populates="items")
    product: Mapped[Product] = relationship()

class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),)
    id: Mapped[int] = mapped_column(primary_key=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id", ondelete="CASCADE"), index=True)
    order_id: Mapped[Optional[int]] = mapped_column(ForeignKey("orders.id", ondelete="SET NULL"), nullable=True)
    title: Mapped[str] = mapped_column(String(200))
    body: Mapped[str] = mapped_column(Text)
    rating: Mapped[int]
    recommend: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    customer: Mapped[Customer] = relationship(back_populates="reviews")
    product: Mapped[Product] = relationship()

class CartItem(Base):
    __tablename__ = "cart_items"
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    product: Mapped[Product] = relationship()

class WishlistItem(Base):
    __tablename__ = "wishlist_items"
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    product: Mapped[Product] = relationship()
