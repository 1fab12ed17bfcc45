"""Payment received template: sent to the buyer once payment is confirmed."""

from marketplace.notifications.outbox import TemplateCode


class UserPaymentTemplate:
    template_code = TemplateCode.USER_PAYMENT.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        method = context.get("payment_type") or "your chosen method"
        return {
            "subject": "Payment Received",
            "body": (
                f"We received your payment for order #{order_id} via {method}.\n\n"
                "The sellers have been asked to prepare your items."
            ),
        }
