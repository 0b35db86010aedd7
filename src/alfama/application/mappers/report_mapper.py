from __future__ import annotations

from alfama.application.dto.responses import BestSellerResponse, DailySalesResponse
from alfama.application.mappers.order_mapper import to_order_response
from alfama.application.views.sales_report import DailySalesReport
from alfama.domain.common.money import format_price


def to_daily_sales_response(report: DailySalesReport) -> DailySalesResponse:
    return DailySalesResponse(
        revenue=report.revenue,
        formattedRevenue=format_price(report.revenue),
        ordersCount=len(report.orders),
        itemsSold=report.items_sold,
        paidRatioPercent=report.paid_ratio_percent,
        revenueByPaymentMethod=dict(report.revenue_by_payment_method),
        bestSellers=[
            BestSellerResponse(name=seller.name, quantity=seller.quantity, revenue=seller.revenue)
            for seller in report.best_sellers
        ],
        orders=[to_order_response(order) for order in report.orders],
    )
