"""Low stock template: internal alert to the seller after shipping."""

from marketplace.notifications.outbox import TemplateCode


class SellerLessStockTemplate:
    template_code = TemplateCode.SELLER_LESS_STOCK.value

    @staticmethod
    def render(context: dict) -> dict:
        product_name = context.get("product_name", "A product")
        stock = context.get("stock", "few")
        return {
            "subject": f"Low Stock: {product_name}",
            "body": (
                f"Only {stock} unit(s) of {product_name} remain in stock.\n\n"
                "Restock soon to keep it available to buyers."
            ),
        }
