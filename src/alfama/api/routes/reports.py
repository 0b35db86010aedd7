from __future__ import annotations

from fastapi import APIRouter, Depends

from alfama.api.dependencies import get_order_store
from alfama.application.dto.responses import DailySalesResponse
from alfama.application.mappers.report_mapper import to_daily_sales_response
from alfama.application.stores.order_store import OrderStore
from alfama.application.views.sales_report import daily_sales

router = APIRouter()


@router.get("/v1/reports/daily", response_model=DailySalesResponse)
def daily_report(store: OrderStore = Depends(get_order_store)) -> DailySalesResponse:
    with store.lock:
        report = daily_sales(list(store.orders), now=store.now())
    return to_daily_sales_response(report)
