# dataclass models and their document mapping (camelCase keys in storage)

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from marketplace.utils.pure import cart_totals, line_subtotal


def _enum(enum_cls, value, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


# ---------------------------
# Users
# ---------------------------


class UserRole(str, Enum):
    CUSTOMER = "CUSTOMER"
    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"


@dataclass(frozen=True)
class User:
    id: str
    email: str = ""
    name: str = ""
    phone: str = ""
    address: str = ""
    profile_image_url: str = ""
    role: UserRole = UserRole.CUSTOMER
    is_active: bool = True
    preferences: Dict[str, Any] = field(default_factory=dict)
    favorites: List[str] = field(default_factory=list)
    blocked_users: List[str] = field(default_factory=list)
    created_at: int = 0
    updated_at: int = 0

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "profileImageUrl": self.profile_image_url,
            "role": self.role.value,
            "isActive": self.is_active,
            "preferences": dict(self.preferences),
            "favorites": list(self.favorites),
            "blockedUsers": list(self.blocked_users),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, doc_id: str, data: Dict[str, Any]) -> "User":
        return cls(
            id=doc_id,
            email=data.get("email", ""),
            name=data.get("name", ""),
            phone=data.get("phone", ""),
            address=data.get("address", ""),
            profile_image_url=data.get("profileImageUrl", ""),
            role=_enum(UserRole, data.get("role"), UserRole.CUSTOMER),
            is_active=data.get("isActive", True),
            preferences=dict(data.get("preferences", {})),
            favorites=list(data.get("favorites", [])),
            blocked_users=list(data.get("blockedUsers", [])),
            created_at=data.get("createdAt", 0),
            updated_at=data.get("updatedAt", 0),
        )


# ---------------------------
# Catalog
# ---------------------------


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    description: str = ""
    price: float = 0.0
    discount_price: float = 0.0
    category: str = ""  # category id
    brand: str = ""  # brand id
    images: List[str] = field(default_factory=list)
    stock: int = 0
    rating: float = 0.0
    reviews: int = 0
    is_available: bool = True
    seller_id: str = ""
    created_at: int = 0

    @property
    def effective_price(self) -> float:
        """Discount price when it actually undercuts the list price."""
        if 0 < self.discount_price < self.price:
            return self.discount_price
        return self.price

    @property
    def image_url(self) -> str:
        return self.images[0] if self.images else ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "discountPrice": self.discount_price,
            "effectivePrice": self.effective_price,
            "category": self.category,
            "brand": self.brand,
            "images": list(self.images),
            "stock": self.stock,
            "rating": self.rating,
            "reviews": self.reviews,
            "isAvailable": self.is_available,
            "sellerId": self.seller_id,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, doc_id: str, data: Dict[str, Any]) -> "Product":
        return cls(
            id=doc_id,
            name=data.get("name", ""),
            description=data.get("description", ""),
            price=float(data.get("price", 0.0)),
            discount_price=float(data.get("discountPrice", 0.0)),
            category=data.get("category", ""),
            brand=data.get("brand", ""),
            images=list(data.get("images", [])),
            stock=int(data.get("stock", 0)),
            rating=float(data.get("rating", 0.0)),
            reviews=int(data.get("reviews", 0)),
            is_available=data.get("isAvailable", True),
            seller_id=data.get("sellerId", ""),
            created_at=data.get("createdAt", 0),
        )


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    image_url: str = ""
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "imageUrl": self.image_url,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, doc_id: str, data: Dict[str, Any]) -> "Category":
        return cls(
            id=doc_id,
            name=data.get("name", ""),
            image_url=data.get("imageUrl", ""),
            description=data.get("description", ""),
        )


@dataclass(frozen=True)
class Brand:
    id: str
    name: str
    logo_url: str = ""
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "logoUrl": self.logo_url,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, doc_id: str, data: Dict[str, Any]) -> "Brand":
        return cls(
            id=doc_id,
            name=data.get("name", ""),
            logo_url=data.get("logoUrl", ""),
            description=data.get("description", ""),
        )


# ---------------------------
# Cart
# ---------------------------


@dataclass(frozen=True)
class CartItem:
    id: str  # same as product_id: one line per product
    product_id: str
    name: str = ""
    price: float = 0.0  # unit price captured when the product was added
    quantity: int = 0
    image_url: str = ""
    subtotal: float = 0.0

    @classmethod
    def for_product(cls, product: Product, quantity: int) -> "CartItem":
        price = product.effective_price
        return cls(
            id=product.id,
            product_id=product.id,
            name=product.name,
            price=price,
            quantity=quantity,
            image_url=product.image_url,
            subtotal=line_subtotal(price, quantity),
        )

    def with_quantity(self, quantity: int) -> "CartItem":
        return dataclasses.replace(
            self, quantity=quantity, subtotal=line_subtotal(self.price, quantity)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "productId": self.product_id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "imageUrl": self.image_url,
            "subtotal": self.subtotal,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartItem":
        product_id = data.get("productId", "")
        return cls(
            id=data.get("id") or product_id,
            product_id=product_id,
            name=data.get("name", ""),
            price=float(data.get("price", 0.0)),
            quantity=int(data.get("quantity", 0)),
            image_url=data.get("imageUrl", ""),
            subtotal=float(data.get("subtotal", 0.0)),
        )


@dataclass(frozen=True)
class Cart:
    """
    Per-user cart; the document id is the user id.

    total_items, subtotal and total are derived from items and only ever
    changed together through with_items().
    """

    id: str
    user_id: str
    items: Tuple[CartItem, ...] = ()
    total_items: int = 0
    subtotal: float = 0.0
    shipping: float = 0.0
    tax: float = 0.0
    total: float = 0.0
    updated_at: int = 0

    @classmethod
    def empty(cls, user_id: str, shipping: float = 0.0, tax: float = 0.0) -> "Cart":
        return cls(id=user_id, user_id=user_id, shipping=shipping, tax=tax).with_items(())

    def with_items(self, items, updated_at: Optional[int] = None) -> "Cart":
        items = tuple(items)
        total_items, subtotal, total = cart_totals(items, self.shipping, self.tax)
        return dataclasses.replace(
            self,
            items=items,
            total_items=total_items,
            subtotal=subtotal,
            total=total,
            updated_at=self.updated_at if updated_at is None else updated_at,
        )

    def find(self, product_id: str) -> Optional[CartItem]:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    @property
    def is_empty(self) -> bool:
        return not self.items

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "items": [i.to_dict() for i in self.items],
            "totalItems": self.total_items,
            "subtotal": self.subtotal,
            "shipping": self.shipping,
            "tax": self.tax,
            "total": self.total,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, doc_id: str, data: Dict[str, Any]) -> "Cart":
        return cls(
            id=doc_id,
            user_id=data.get("userId", doc_id),
            items=tuple(CartItem.from_dict(i) for i in data.get("items", [])),
            total_items=int(data.get("totalItems", 0)),
            subtotal=float(data.get("subtotal", 0.0)),
            shipping=float(data.get("shipping", 0.0)),
            tax=float(data.get("tax", 0.0)),
            total=float(data.get("total", 0.0)),
            updated_at=data.get("updatedAt", 0),
        )


# ---------------------------
# Orders
# ---------------------------


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)

    def can_transition_to(self, new: "OrderStatus") -> bool:
        """Forward along the fulfilment chain, or cancel before delivery."""
        if new == self:
            return True
        if self.is_terminal:
            return False
        if new == OrderStatus.CANCELLED:
            return True
        return _FULFILMENT_CHAIN.index(new) > _FULFILMENT_CHAIN.index(self)


_FULFILMENT_CHAIN = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]


class PaymentType(str, Enum):
    CASH = "CASH"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    UPI = "UPI"
    WALLET = "WALLET"


@dataclass(frozen=True)
class OrderItem:
    id: str
    product_id: str
    name: str = ""
    price: float = 0.0
    quantity: int = 0
    image_url: str = ""
    subtotal: float = 0.0

    @classmethod
    def from_cart_item(cls, item: CartItem) -> "OrderItem":
        return cls(
            id=item.id,
            product_id=item.product_id,
            name=item.name,
            price=item.price,
            quantity=item.quantity,
            image_url=item.image_url,
            subtotal=item.subtotal,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "productId": self.product_id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "imageUrl": self.image_url,
            "subtotal": self.subtotal,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderItem":
        return cls(
            id=data.get("id", ""),
            product_id=data.get("productId", ""),
            name=data.get("name", ""),
            price=float(data.get("price", 0.0)),
            quantity=int(data.get("quantity", 0)),
            image_url=data.get("imageUrl", ""),
            subtotal=float(data.get("subtotal", 0.0)),
        )


@dataclass(frozen=True)
class Address:
    street: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    zip_code: str = ""

    def blank_fields(self) -> List[str]:
        return [f.name for f in dataclasses.fields(self) if not getattr(self, f.name).strip()]

    def one_line(self) -> str:
        return ", ".join(
            part for part in (self.street, self.city, self.state, self.zip_code, self.country) if part
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "zipCode": self.zip_code,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Address":
        return cls(
            street=data.get("street", ""),
            city=data.get("city", ""),
            state=data.get("state", ""),
            country=data.get("country", ""),
            zip_code=data.get("zipCode", ""),
        )


@dataclass(frozen=True)
class PaymentMethod:
    type: Optional[PaymentType] = PaymentType.CASH
    details: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value if self.type else None,
            "details": self.details,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaymentMethod":
        raw = data.get("type")
        return cls(
            type=_enum(PaymentType, raw, None) if raw else None,
            details=data.get("details", ""),
        )


@dataclass(frozen=True)
class Order:
    id: str
    user_id: str
    items: Tuple[OrderItem, ...] = ()
    status: OrderStatus = OrderStatus.PENDING
    shipping_address: Address = Address()
    payment_method: PaymentMethod = PaymentMethod()
    subtotal: float = 0.0
    shipping: float = 0.0
    tax: float = 0.0
    total: float = 0.0
    created_at: int = 0
    updated_at: int = 0

    @classmethod
    def from_cart(
        cls,
        cart: Cart,
        shipping_address: Address,
        payment_method: PaymentMethod,
    ) -> "Order":
        """Snapshot of the cart at checkout; id and timestamps are set on create."""
        return cls(
            id="",
            user_id=cart.user_id,
            items=tuple(OrderItem.from_cart_item(i) for i in cart.items),
            shipping_address=shipping_address,
            payment_method=payment_method,
            subtotal=cart.subtotal,
            shipping=cart.shipping,
            tax=cart.tax,
            total=cart.total,
        )

    @property
    def total_items(self) -> int:
        return sum(i.quantity for i in self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "items": [i.to_dict() for i in self.items],
            "status": self.status.value,
            "shippingAddress": self.shipping_address.to_dict(),
            "paymentMethod": self.payment_method.to_dict(),
            "subtotal": self.subtotal,
            "shipping": self.shipping,
            "tax": self.tax,
            "total": self.total,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, doc_id: str, data: Dict[str, Any]) -> "Order":
        return cls(
            id=doc_id,
            user_id=data.get("userId", ""),
            items=tuple(OrderItem.from_dict(i) for i in data.get("items", [])),
            status=_enum(OrderStatus, data.get("status"), OrderStatus.PENDING),
            shipping_address=Address.from_dict(data.get("shippingAddress", {})),
            payment_method=PaymentMethod.from_dict(data.get("paymentMethod", {})),
            subtotal=float(data.get("subtotal", 0.0)),
            shipping=float(data.get("shipping", 0.0)),
            tax=float(data.get("tax", 0.0)),
            total=float(data.get("total", 0.0)),
            created_at=data.get("createdAt", 0),
            updated_at=data.get("updatedAt", 0),
        )


# ---------------------------
# Notifications
# ---------------------------


class NotificationType(str, Enum):
    ORDER_STATUS = "ORDER_STATUS"
    PROMOTION = "PROMOTION"
    SYSTEM = "SYSTEM"
    GENERAL = "GENERAL"


@dataclass(frozen=True)
class NotificationPayload:
    title: str = ""
    body: str = ""
    image: str = ""


@dataclass(frozen=True)
class PushNotification:
    to: str
    notification: NotificationPayload = NotificationPayload()
    data: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def for_order_status(cls, order: Order, token: str) -> "PushNotification":
        status = order.status.value.replace("_", " ").title()
        return cls(
            to=token,
            notification=NotificationPayload(
                title=f"Order {status}",
                body=f"Your order #{order.id} is now {status.lower()}.",
                image=order.items[0].image_url if order.items else "",
            ),
            data={
                "type": NotificationType.ORDER_STATUS.value,
                "orderId": order.id,
                "status": order.status.value,
            },
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "to": self.to,
            "notification": dataclasses.asdict(self.notification),
            "data": {str(k): str(v) for k, v in self.data.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PushNotification":
        payload = data.get("notification", {})
        return cls(
            to=data.get("to", ""),
            notification=NotificationPayload(
                title=payload.get("title", ""),
                body=payload.get("body", ""),
                image=payload.get("image", ""),
            ),
            data={str(k): str(v) for k, v in data.get("data", {}).items()},
        )
