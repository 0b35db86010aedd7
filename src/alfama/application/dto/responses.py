from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class OrderItemResponse(BaseModel):
    itemId: str
    name: str
    unitPriceText: str
    description: str
    imageRef: str | None = None
    category: str
    quantity: int
    confirmed: bool
    lineTotal: Decimal


class OrderResponse(BaseModel):
    orderId: str
    sequenceNumber: int
    customerName: str
    status: str
    items: list[OrderItemResponse] = Field(default_factory=list)
    itemCount: int
    total: Decimal
    formattedTotal: str
    paymentMethod: str | None = None
    notes: str | None = None
    openedAt: datetime
    closedAt: datetime | None = None
    paidAt: datetime | None = None
    current: bool = False


class OrderListResponse(BaseModel):
    orders: list[OrderResponse] = Field(default_factory=list)


class ReservationResponse(BaseModel):
    reservationId: str
    customerName: str
    email: str
    phone: str
    reservedDate: date
    reservedTime: str
    partySize: int
    tableType: str
    linkedOrderId: str
    status: str
    notes: str | None = None
    requestedProducts: list[str] = Field(default_factory=list)
    requestedServices: list[str] = Field(default_factory=list)
    createdAt: datetime


class ReservationListResponse(BaseModel):
    reservations: list[ReservationResponse] = Field(default_factory=list)


class BestSellerResponse(BaseModel):
    name: str
    quantity: int
    revenue: Decimal


class DailySalesResponse(BaseModel):
    revenue: Decimal
    formattedRevenue: str
    ordersCount: int
    itemsSold: int
    paidRatioPercent: Decimal
    revenueByPaymentMethod: dict[str, Decimal] = Field(default_factory=dict)
    bestSellers: list[BestSellerResponse] = Field(default_factory=list)
    orders: list[OrderResponse] = Field(default_factory=list)
