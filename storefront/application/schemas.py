from pydantic import BaseModel, Field, field_serializer
from pydantic.alias_generators import to_camel
from datetime import datetime
from decimal import Decimal
from typing import Optional

REDACTED_PASSWORD = "**********"

class ApiModel(BaseModel):
    class Config:
        from_attributes = True
        populate_by_name = True
        alias_generator = to_camel

class AddressRead(ApiModel):
    id: int
    address_line1: str
    address_line2: Optional[str] = None
    city: str
    county: Optional[str] = None
    postcode: str

class CustomerRead(ApiModel):
    id: int
    name: str
    username: str
    email: str
    join_date: Optional[datetime] = None
    phone: Optional[str] = None
    billing_address_id: Optional[int] = None
    shipping_address_id: Optional[int] = None
    avatar: Optional[str] = None
    password: Optional[str] = None

    @field_serializer("password")
    def redact_password(self, value: Optional[str]) -> Optional[str]:
        return REDACTED_PASSWORD if value else None

class OAuthRead(ApiModel):
    auth_id: str
    customer_id: int
    provider: str

class CustomerDetail(CustomerRead):
    oauth: Optional[OAuthRead] = Field(default=None, serialization_alias="oAuth")

class CustomerEnvelope(BaseModel):
    customer: CustomerRead

class CustomerDetailEnvelope(BaseModel):
    customer: CustomerDetail

class ProductRead(ApiModel):
    id: int
    name: str
    description: str
    price: Decimal
    stock: int
    category_name: str
    supplier_name: str
    thumbnail: Optional[str] = None

class ProductListItem(ProductRead):
    num_of_times_ordered: int = 0

class ProductPage(ApiModel):
    products: list[ProductListItem]
    page: int
    count: int
    total_results: int

class BestSeller(ProductRead):
    num_of_times_ordered: int
    total_units_ordered: int
    average_rating: Optional[str] = None

class BestSellerPage(ApiModel):
    best_sellers: list[BestSeller]
    page: int
    count: int
    total_results: int

class LineItem(ApiModel):
    quantity: int
    product: ProductRead

class OrderRead(ApiModel):
    id: int
    customer_id: int
    billing_address_id: Optional[int] = None
    shipping_address_id: Optional[int] = None
    status: str
    payment_method: str
    total: Decimal
    created_at: datetime
    order_items: list[LineItem] = Field(default_factory=list, validation_alias="items", serialization_alias="orderItems")

class OrderDetail(OrderRead):
    billing_address: Optional[AddressRead] = None
    shipping_address: Optional[AddressRead] = None

class OrderEnvelope(BaseModel):
    order: OrderDetail

class CustomerOrders(ApiModel):
    id: int
    name: str
    username: str
    orders: list[OrderRead]

class CartRead(ApiModel):
    id: int
    name: str
    username: str
    cart_items: list[LineItem]

class CartEnvelope(BaseModel):
    cart: CartRead

class WishlistEntry(ApiModel):
    product: ProductRead

class WishlistRead(ApiModel):
    id: int
    name: str
    username: str
    wishlist_items: list[WishlistEntry]

class WishlistEnvelope(BaseModel):
    wishlist: WishlistRead

class ReviewAuthor(ApiModel):
    username: str
    avatar: Optional[str] = None

class ReviewRead(ApiModel):
    id: int
    customer_id: int
    product_id: int
    order_id: Optional[int] = None
    title: str
    body: str
    rating: int
    recommend: bool
    created_at: datetime
    customer: Optional[ReviewAuthor] = None
    product: Optional[ProductRead] = None

class ReviewEnvelope(BaseModel):
    review: ReviewRead

class ReviewPage(ApiModel):
    reviews: list[ReviewRead]
    page: int
    count: int
    total_results: int

class Favorite(ApiModel):
    id: int
    added_at: datetime
    recommend: bool
    rating: int
    title: str
    product: ProductRead

class FavoritePage(ApiModel):
    favorites: list[Favorite]
    page: int
    count: int
    total_results: int

class AddressesRead(ApiModel):
    customer: CustomerRead
    billing_address: Optional[AddressRead] = None
    shipping_address: Optional[AddressRead] = None

class LastOrdered(ApiModel):
    order_id: int
    order_date: datetime

class OrderHistory(ApiModel):
    product_id: int
    last_ordered: Optional[LastOrdered] = None
    review: Optional[ReviewRead] = None

class MessageRead(BaseModel):
    msg: str
