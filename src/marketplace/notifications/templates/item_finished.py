"""Item finished template: tells the seller the buyer confirmed receipt."""

from marketplace.notifications.outbox import TemplateCode


class SellerFinishOrderTemplate:
    template_code = TemplateCode.SELLER_FINISH_ORDER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        product_name = context.get("product_name", "An item")
        return {
            "subject": "Order Item Completed",
            "body": f"The buyer confirmed receipt of {product_name} from order #{order_id}.",
        }
