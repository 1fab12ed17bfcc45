"""Marketplace domain: Order Fulfillment and Payment Reconciliation.

Turns a buyer's cart into one buyer-facing Order plus one Seller Order per
store touched by the checkout, reconciles asynchronous payment callbacks
against the gateway, tracks per-item status through shipment and completion,
and keeps the derived read models (seller orders, sales reports, cache)
consistent without multi-document transactions.

Uses CQRS-style aggregates persisted through Protean repositories. Every
multi-document operation is recorded in an ``OrderSaga`` log so partial
failures can be compensated or repaired.
"""

from protean.domain import Domain

marketplace = Domain(name="marketplace")
