"""Template registry: maps template codes to template classes."""

from marketplace.notifications.outbox import TemplateCode
from marketplace.notifications.templates.item_finished import SellerFinishOrderTemplate
from marketplace.notifications.templates.item_shipped import UserProductShippedTemplate
from marketplace.notifications.templates.low_stock import SellerLessStockTemplate
from marketplace.notifications.templates.order_placed import (
    SellerOrderTemplate,
    UserOrderTemplate,
)
from marketplace.notifications.templates.payment_received import UserPaymentTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    TemplateCode.USER_ORDER.value: UserOrderTemplate,
    TemplateCode.SELLER_ORDER.value: SellerOrderTemplate,
    TemplateCode.USER_PAYMENT.value: UserPaymentTemplate,
    TemplateCode.USER_PRODUCT_SHIPPED.value: UserProductShippedTemplate,
    TemplateCode.SELLER_LESS_STOCK.value: SellerLessStockTemplate,
    TemplateCode.SELLER_FINISH_ORDER.value: SellerFinishOrderTemplate,
}


def get_template(template_code: str):
    """Look up a template class by template code string."""
    template_cls = TEMPLATE_REGISTRY.get(template_code)
    if template_cls is None:
        raise ValueError(f"No template registered for template code: {template_code}")
    return template_cls
