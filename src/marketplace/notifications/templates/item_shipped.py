"""Item shipped template: sent to the buyer when a seller ships an item."""

from marketplace.notifications.outbox import TemplateCode


class UserProductShippedTemplate:
    template_code = TemplateCode.USER_PRODUCT_SHIPPED.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        product_name = context.get("product_name", "An item")
        return {
            "subject": "Your Item Has Shipped!",
            "body": (
                f"{product_name} from order #{order_id} is on its way.\n\n"
                "Confirm receipt once it arrives to complete the order."
            ),
        }
