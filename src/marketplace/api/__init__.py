from marketplace.api.routes import (
    order_router,
    payment_router,
    saga_router,
    sales_report_router,
    seller_order_router,
)

ROUTERS = [order_router, seller_order_router, payment_router, sales_report_router, saga_router]

__all__ = [
    "ROUTERS",
    "order_router",
    "payment_router",
    "saga_router",
    "sales_report_router",
    "seller_order_router",
]
