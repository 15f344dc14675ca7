"""
Fraud Detection Usage Examples

This file demonstrates how an order pipeline uses the fraud engine at
checkout: scoring a new order against the customer's history, deciding on
manual review, storing the result on the order document, and retuning the
thresholds for the holiday season.
"""

from datetime import datetime, timedelta, timezone

from fraud_engine import FraudDetectionService, FraudFlag, RiskLevel
from fraud_engine.config import EngineSettings, configure


def build_customer_history(now):
    """Previous orders as they come out of the order store."""
    home = {'street': 'Rua das Flores', 'number': '10', 'zipCode': '01001-000', 'city': 'São Paulo'}

    return [
        {
            'id': f'order-{i:03d}',
            'userId': 'user-42',
            'createdAt': (now - timedelta(hours=hours_ago)).isoformat(),
            'items': [{'productId': 'bolo-01', 'unitPrice': 45.0, 'quantity': 2}],
            'paymentMethod': {'type': 'pix', 'id': 'pix'},
            'deliveryAddress': dict(home),
        }
        for i, hours_ago in enumerate((3, 9, 30, 70))
    ]


def requires_review(result):
    """Checkout policy: high risk, or medium risk paid with a new method."""
    if result.risk_level is RiskLevel.HIGH:
        return True
    return (
        result.risk_level is RiskLevel.MEDIUM
        and FraudFlag.UNUSUAL_PAYMENT in result.flags_raised
    )


def example_1_checkout_scoring(service, now):
    """Example 1: Scoring an order at checkout."""

    print("=== Example 1: Checkout Scoring ===")

    order = {
        'id': 'order-100',
        'userId': 'user-42',
        'createdAt': now.isoformat(),
        'items': [
            {'productId': 'torta-07', 'unitPrice': 180.0, 'quantity': 2,
             'options': [{'name': 'Embalagem presente', 'price': 15.0}]},
        ],
        'paymentMethod': {'type': 'credit_card', 'id': 'card_999'},
        'deliveryAddress': {'street': 'Avenida Paulista', 'number': '1000', 'zipCode': '01310-100'},
    }

    outcome = service.evaluate_with_diagnostics(order, build_customer_history(now))
    result = outcome.result

    if outcome.failed:
        print(f"⚠️  Scoring failed, order accepted as low risk: {outcome.error.message}")

    print(service.explain(result))
    print(f"🔎 Requires review: {requires_review(result)}")

    # Stored on the order document for auditing
    order['metadata'] = {'fraudAnalysis': {**result.to_dict(), 'requiresReview': requires_review(result)}}
    return order


def example_2_holiday_tuning(manager, service, now):
    """Example 2: Relaxing thresholds during the holiday season."""

    print("\n=== Example 2: Holiday Tuning ===")

    order = {
        'id': 'order-200',
        'createdAt': now.isoformat(),
        'items': [{'unitPrice': 90.0, 'quantity': 2}],
        'paymentMethod': {'type': 'pix', 'id': 'pix'},
        'deliveryAddress': {'number': '10', 'zipCode': '01001-000'},
    }
    history = build_customer_history(now) + [
        {'id': 'order-xmas', 'createdAt': (now - timedelta(hours=1)).isoformat(),
         'items': [{'unitPrice': 45.0}], 'paymentMethod': 'pix'},
    ]

    before = service.evaluate(order, history)
    manager.apply_preset("holiday")
    after = service.evaluate(order, history)
    manager.apply_preset("default")

    print(f"📊 Regular season: {before.risk_score:.0f} ({before.risk_level.value}) {[f.value for f in before.flags_raised]}")
    print(f"🎄 Holiday season: {after.risk_score:.0f} ({after.risk_level.value}) {[f.value for f in after.flags_raised]}")
    print(f"🔢 Config version: {manager.version}")


def main():
    manager = configure(EngineSettings(log_format="console"))
    service = FraudDetectionService(manager)
    now = datetime.now(timezone.utc)

    example_1_checkout_scoring(service, now)
    example_2_holiday_tuning(manager, service, now)


if __name__ == "__main__":
    main()
