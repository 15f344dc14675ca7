"""
Fraud Signal Detectors

Six independent, pure checks over a candidate order and the customer's
order history. Each returns a FlagDetail; a check that finds no evidence, or
cannot run because the data it needs is missing, returns a not-raised detail.

Detectors run in the order of DETECTORS, which fixes the order of
``flags_raised`` in the result.
"""

from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Callable, List, Optional, Sequence, Tuple

from .config import DetectionConfig
from .flags import FlagDetail, FraudFlag
from .models import Address, Order

DetectorFn = Callable[..., FlagDetail]

# Hour distance considered "close" on the 24-hour circle
HOUR_TOLERANCE = 2
MIN_HISTORY_FOR_TIME_PATTERN = 3


def is_same_address(first: Optional[Address], second: Optional[Address]) -> bool:
    """
    Two addresses match iff both zip codes are non-empty and equal and both
    numbers are non-empty and equal. Street, city and complement are ignored.
    """
    if first is None or second is None:
        return False

    same_zip = bool(first.zip_code) and bool(second.zip_code) and first.zip_code == second.zip_code
    same_number = bool(first.number) and bool(second.number) and first.number == second.number

    return same_zip and same_number


def hour_of_day(moment: datetime, config: DetectionConfig) -> int:
    """Hour (0-23) in the configured zone, or as recorded when no zone is set."""
    zone = config.zone
    if zone is not None:
        return moment.astimezone(zone).hour
    return moment.hour


def _format_half_up(value: Decimal, places: str) -> str:
    return str(value.quantize(Decimal(places), rounding=ROUND_HALF_UP))


def check_multiple_orders(
    order: Order,
    history: Sequence[Order],
    config: DetectionConfig,
    *,
    now: Optional[datetime] = None,
    **_: object,
) -> FlagDetail:
    """Velocity: too many prior orders inside the trailing window."""
    reference = now or order.created_at
    if reference is None:
        return FlagDetail.not_raised()

    window_start = reference - timedelta(hours=config.velocity_window_hours)
    recent = [
        o for o in history
        if o.created_at is not None and window_start < o.created_at <= reference
    ]

    if len(recent) < config.multiple_orders_threshold:
        return FlagDetail.not_raised()

    window = Decimal(str(config.velocity_window_hours)).normalize()
    return FlagDetail.raise_flag(
        config.multiple_orders_weight,
        f"{len(recent)} pedidos nas últimas {window:f} horas "
        f"(limite: {config.multiple_orders_threshold})",
    )


def check_unusual_address(
    order: Order,
    history: Sequence[Order],
    config: DetectionConfig,
    **_: object,
) -> FlagDetail:
    """Delivery address never used by this customer before."""
    if not history or order.delivery_address is None:
        return FlagDetail.not_raised()

    used_before = any(
        is_same_address(o.delivery_address, order.delivery_address)
        for o in history
        if o.delivery_address is not None
    )
    if used_before:
        return FlagDetail.not_raised()

    return FlagDetail.raise_flag(
        config.unusual_address_weight,
        "Endereço de entrega nunca usado anteriormente",
    )


def average_order_value(history: Sequence[Order]) -> Optional[Decimal]:
    """Mean value of history orders with known value, None when there are none."""
    priced = [o for o in history if o.value_known]
    if not priced:
        return None
    total = sum((o.value for o in priced), Decimal("0"))
    return total / len(priced)


def check_high_value(
    order: Order,
    history: Sequence[Order],
    config: DetectionConfig,
    *,
    baseline: Optional[Decimal] = None,
    **_: object,
) -> FlagDetail:
    """Order value far above the customer's baseline (given or historical mean)."""
    if not order.value_known:
        return FlagDetail.not_raised()

    if baseline is not None:
        try:
            reference = Decimal(str(baseline))
        except InvalidOperation:
            return FlagDetail.not_raised()
    else:
        reference = average_order_value(history)

    if reference is None or not reference.is_finite() or reference <= 0:
        return FlagDetail.not_raised()

    percentage_above = (order.value - reference) / reference * 100
    if percentage_above <= Decimal(str(config.high_value_percentage)):
        return FlagDetail.not_raised()

    return FlagDetail.raise_flag(
        config.high_value_weight,
        f"Valor {_format_half_up(percentage_above, '1')}% acima da média do usuário",
    )


def check_unusual_time(
    order: Order,
    history: Sequence[Order],
    config: DetectionConfig,
    **_: object,
) -> FlagDetail:
    """Order placed at an hour the customer has never ordered near."""
    if order.created_at is None:
        return FlagDetail.not_raised()

    previous_hours = [
        hour_of_day(o.created_at, config) for o in history if o.created_at is not None
    ]
    if len(previous_hours) < MIN_HISTORY_FOR_TIME_PATTERN:
        return FlagDetail.not_raised()

    order_hour = hour_of_day(order.created_at, config)

    # Distance >= 22 covers neighbours across midnight (23h vs 1h)
    within_pattern = any(
        abs(hour - order_hour) <= HOUR_TOLERANCE or abs(hour - order_hour) >= 24 - HOUR_TOLERANCE
        for hour in previous_hours
    )
    if within_pattern:
        return FlagDetail.not_raised()

    return FlagDetail.raise_flag(
        config.unusual_time_weight,
        f"Pedido realizado em horário atípico ({order_hour}h)",
    )


def check_unusual_payment(
    order: Order,
    history: Sequence[Order],
    config: DetectionConfig,
    **_: object,
) -> FlagDetail:
    """Payment method never used by this customer before."""
    if not history or order.payment_method is None:
        return FlagDetail.not_raised()

    previous_methods = {o.payment_method for o in history if o.payment_method is not None}
    if order.payment_method in previous_methods:
        return FlagDetail.not_raised()

    return FlagDetail.raise_flag(
        config.unusual_payment_weight,
        f"Método de pagamento '{order.payment_method}' nunca usado anteriormente",
    )


def check_rapid_address_change(
    order: Order,
    history: Sequence[Order],
    config: DetectionConfig,
    **_: object,
) -> FlagDetail:
    """Address differs from the last delivery, shortly after it was placed."""
    if not history or order.delivery_address is None or order.created_at is None:
        return FlagDetail.not_raised()

    with_address = [
        o for o in history
        if o.delivery_address is not None and o.created_at is not None
    ]
    if not with_address:
        return FlagDetail.not_raised()

    last_order = max(with_address, key=lambda o: o.created_at)

    if is_same_address(last_order.delivery_address, order.delivery_address):
        return FlagDetail.not_raised()

    gap_hours = Decimal(str((order.created_at - last_order.created_at).total_seconds())) / 3600
    if gap_hours >= Decimal(str(config.address_change_window_hours)):
        return FlagDetail.not_raised()

    return FlagDetail.raise_flag(
        config.address_change_weight,
        f"Mudança de endereço após {_format_half_up(gap_hours, '0.1')} horas do último pedido",
    )


DETECTORS: Tuple[Tuple[FraudFlag, DetectorFn], ...] = (
    (FraudFlag.MULTIPLE_ORDERS, check_multiple_orders),
    (FraudFlag.UNUSUAL_ADDRESS, check_unusual_address),
    (FraudFlag.HIGH_VALUE, check_high_value),
    (FraudFlag.UNUSUAL_TIME, check_unusual_time),
    (FraudFlag.UNUSUAL_PAYMENT, check_unusual_payment),
    (FraudFlag.RAPID_ADDRESS_CHANGE, check_rapid_address_change),
)


def run_detectors(
    order: Order,
    history: Sequence[Order],
    config: DetectionConfig,
    *,
    baseline: Optional[Decimal] = None,
    now: Optional[datetime] = None,
) -> List[Tuple[FraudFlag, FlagDetail]]:
    """Evaluate every detector in order."""
    return [
        (flag, detector(order, history, config, baseline=baseline, now=now))
        for flag, detector in DETECTORS
    ]
