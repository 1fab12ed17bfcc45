"""Order placed templates: one for the buyer, one per seller involved."""

from marketplace.notifications.outbox import TemplateCode


class UserOrderTemplate:
    template_code = TemplateCode.USER_ORDER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        store_id = context.get("store_id", "the store")
        return {
            "subject": "Order Placed",
            "body": (
                f"Your order #{order_id} with store {store_id} has been placed.\n\n"
                "Complete the payment to have it processed."
            ),
        }


class SellerOrderTemplate:
    template_code = TemplateCode.SELLER_ORDER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        item_count = context.get("item_count", "some")
        total = context.get("total_price", "N/A")
        return {
            "subject": "New Order Received",
            "body": (
                f"You have a new order #{order_id} for {item_count} item(s), "
                f"totalling {total}.\n\n"
                "It will be ready to ship once the buyer has paid."
            ),
        }
