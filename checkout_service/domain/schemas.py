# checkout_service/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from checkout_service.domain.enums import CouponType, DiscountType, PaymentMethod
from checkout_service.utils.settings import CART_MAX_ITEM_QUANTITY


# cart


class ItemIn(BaseModel):
    """Adding a product to the cart."""

    product_id: int = Field(..., gt=0, description="Product id (> 0)")
    quantity: int = Field(1, ge=1, le=CART_MAX_ITEM_QUANTITY, description="Quantity, 1..100")


class UpdateItemIn(BaseModel):
    quantity: int = Field(..., ge=1, le=CART_MAX_ITEM_QUANTITY)


class CartItemOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    stock_quantity: int


class CartOut(BaseModel):
    id: int
    user_id: str | None = None
    session_id: str | None = None
    version: int
    items: List[CartItemOut]
    sub_total: Decimal
    item_count: int
    updated_at: datetime | None = None


class CartCountOut(BaseModel):
    count: int


# checkout


class CheckoutIn(BaseModel):
    """Customer details and payment choice sent with the checkout command."""

    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_email: str = Field(..., min_length=3, max_length=255)
    customer_phone: str = Field(..., min_length=1, max_length=50)
    shipping_address: str | None = None
    notes: str | None = None
    payment_method: PaymentMethod
    shipping_fee: Decimal = Field(Decimal("0"), ge=0)
    coupon_code: str | None = None
    bank_code: str | None = None


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    order_number: str
    user_id: str | None = None
    session_id: str | None = None
    customer_name: str
    customer_email: str
    customer_phone: str
    shipping_address: str | None = None
    notes: str | None = None
    status: str
    sub_total: Decimal
    discount_amount: Decimal
    shipping_fee: Decimal
    tax: Decimal
    total_amount: Decimal
    coupon_code: str | None = None
    payment_method: str
    payment_status: str
    created_at: datetime
    items: List[OrderItemOut]

    model_config = ConfigDict(from_attributes=True)


class PaymentOut(BaseModel):
    id: int
    order_id: int
    transaction_id: str
    amount: Decimal
    method: str
    status: str
    qr_data: str | None = None
    qr_image_url: str | None = None
    bank_code: str | None = None
    bank_account_number: str | None = None
    bank_account_name: str | None = None
    description: str | None = None
    expires_at: datetime | None = None
    paid_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CheckoutOut(BaseModel):
    order: OrderOut
    payment: PaymentOut


# coupons


class CouponCreateIn(BaseModel):
    """Admin input for a new coupon."""

    code: str = Field(..., min_length=1, max_length=64)
    name: str = Field("", max_length=200)
    coupon_type: CouponType = CouponType.ONE_TIME
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: Decimal = Field(..., gt=0)
    max_discount_amount: Decimal | None = Field(None, ge=0)
    min_order_amount: Decimal | None = Field(None, ge=0)
    initial_balance: Decimal | None = Field(None, gt=0, description="Required for Gradual coupons")
    is_system_coupon: bool = True
    user_id: str | None = None
    start_date: datetime
    end_date: datetime
    max_usage_count: int | None = Field(None, ge=1)


class CouponOut(BaseModel):
    id: int
    code: str
    name: str
    coupon_type: str
    discount_type: str
    discount_value: Decimal
    max_discount_amount: Decimal | None = None
    min_order_amount: Decimal | None = None
    remaining_balance: Decimal | None = None
    is_system_coupon: bool
    user_id: str | None = None
    is_active: bool
    start_date: datetime
    end_date: datetime
    max_usage_count: int | None = None
    usage_count: int

    model_config = ConfigDict(from_attributes=True)


class CouponPageOut(BaseModel):
    items: List[CouponOut]
    page: int
    page_size: int
    total: int


class CouponValidateIn(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)
    order_amount: Decimal = Field(..., ge=0)


class CouponValidateOut(BaseModel):
    code: str
    name: str
    coupon_type: str
    discount_type: str
    discount_value: Decimal
    estimated_discount: Decimal
    remaining_balance: Decimal | None = None


# payments


class BankConfigOut(BaseModel):
    id: int
    bank_code: str
    bank_name: str
    account_number: str
    account_name: str
    display_order: int

    model_config = ConfigDict(from_attributes=True)


class QrImageOut(BaseModel):
    payment_id: int
    image: str


class PaymentVerifyOut(BaseModel):
    payment_id: int
    status: str
    success: bool
    message: str
    paid_at: datetime | None = None
