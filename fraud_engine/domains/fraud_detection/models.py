"""
Order Data Model for Fraud Detection

Immutable order structures consumed by the signal detectors, plus the
conversion from raw document-store records (camelCase keys, string or
epoch-millisecond timestamps) into them.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping, Optional, Tuple

from ...utils.exceptions import OrderDataError


def _get(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key (camelCase first, then snake_case)."""
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return default


def _to_decimal(value: Any, field_name: str) -> Decimal:
    if isinstance(value, bool):
        raise OrderDataError(f"Invalid numeric value for {field_name}", field=field_name)
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise OrderDataError(
            f"Invalid numeric value for {field_name}: {value!r}", field=field_name
        )
    if not number.is_finite():
        raise OrderDataError(f"Non-finite value for {field_name}", field=field_name)
    return number


def _to_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Convert a stored timestamp into a timezone-aware datetime.

    Accepts datetime objects, ISO-8601 strings (trailing ``Z`` allowed) and
    epoch milliseconds. Naive values are taken as UTC.

    Raises:
        OrderDataError: If the value cannot be interpreted
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        # NaN, infinite and out-of-range epochs all fail here
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            raise OrderDataError(f"Invalid epoch timestamp: {value!r}", field="createdAt")
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise OrderDataError(f"Invalid timestamp: {value!r}", field="createdAt")
    else:
        raise OrderDataError(f"Unsupported timestamp type: {type(value).__name__}", field="createdAt")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Address:
    """Delivery address. Only zip code and number identify an address."""
    street: Optional[str] = None
    number: Optional[str] = None
    zip_code: Optional[str] = None
    complement: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "Address":
        if not isinstance(record, Mapping):
            raise OrderDataError("Delivery address must be a mapping", field="deliveryAddress")
        return cls(
            street=_to_optional_str(_get(record, "street")),
            number=_to_optional_str(_get(record, "number")),
            zip_code=_to_optional_str(_get(record, "zipCode", "zip_code", "zip")),
            complement=_to_optional_str(_get(record, "complement")),
            neighborhood=_to_optional_str(_get(record, "neighborhood")),
            city=_to_optional_str(_get(record, "city")),
            state=_to_optional_str(_get(record, "state")),
        )


@dataclass(frozen=True)
class PaymentMethod:
    """Payment method discriminator, e.g. ``pix`` or ``credit_card:card_123``."""
    type: str
    id: Optional[str] = None

    def __str__(self) -> str:
        if self.id:
            return f"{self.type}:{self.id}"
        return self.type

    @classmethod
    def parse(cls, value: Any) -> Optional["PaymentMethod"]:
        if value is None or value == "":
            return None
        if isinstance(value, PaymentMethod):
            return value
        if isinstance(value, str):
            return cls(type=value)
        if isinstance(value, Mapping):
            method_type = _get(value, "type")
            if not method_type:
                raise OrderDataError("Payment method without type", field="paymentMethod")
            return cls(type=str(method_type), id=_to_optional_str(_get(value, "id")))
        raise OrderDataError(
            f"Unsupported payment method: {value!r}", field="paymentMethod"
        )


@dataclass(frozen=True)
class OrderItem:
    """Single order line."""
    unit_price: Decimal
    quantity: int = 1
    option_charges: Tuple[Decimal, ...] = ()
    product_id: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        """Negative prices, quantities or charges mark a malformed line."""
        return (
            self.unit_price >= 0
            and self.quantity >= 0
            and all(charge >= 0 for charge in self.option_charges)
        )

    @property
    def total(self) -> Decimal:
        """unit_price * quantity plus option charges."""
        return self.unit_price * self.quantity + sum(self.option_charges, Decimal("0"))

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "OrderItem":
        if not isinstance(record, Mapping):
            raise OrderDataError("Order item must be a mapping", field="items")

        quantity_raw = _get(record, "quantity", default=1)
        try:
            quantity = int(quantity_raw)
        except (TypeError, ValueError, OverflowError):
            raise OrderDataError(f"Invalid quantity: {quantity_raw!r}", field="quantity")

        charges = []
        options = _get(record, "optionCharges", "option_charges", "options", default=())
        if not isinstance(options, (list, tuple)):
            raise OrderDataError("Item options must be a list", field="options")
        for option in options:
            if isinstance(option, Mapping):
                price = _get(option, "price", "additionalPrice", default=0)
            else:
                price = option
            charges.append(_to_decimal(price, "options"))

        return cls(
            unit_price=_to_decimal(_get(record, "unitPrice", "unit_price", default=0), "unitPrice"),
            quantity=quantity,
            option_charges=tuple(charges),
            product_id=_to_optional_str(_get(record, "productId", "product_id")),
            name=_to_optional_str(_get(record, "name")),
        )


@dataclass(frozen=True)
class Order:
    """
    Order as seen by the fraud detectors (candidate or history entry).

    ``malformed_fields`` names the record fields that could not be parsed and
    were dropped; detectors that need one of them skip their check.
    """
    id: str
    created_at: Optional[datetime]
    items: Tuple[OrderItem, ...] = ()
    delivery_address: Optional[Address] = None
    payment_method: Optional[PaymentMethod] = None
    user_id: Optional[str] = None
    malformed_fields: Tuple[str, ...] = ()

    def __post_init__(self):
        # Naive datetimes are UTC, as for parsed records
        if self.created_at is not None and self.created_at.tzinfo is None:
            object.__setattr__(self, "created_at", self.created_at.replace(tzinfo=timezone.utc))

    @property
    def value(self) -> Decimal:
        """Order value over well-formed lines only."""
        return sum((item.total for item in self.items if item.is_valid), Decimal("0"))

    @property
    def value_known(self) -> bool:
        """False when some item lines could not be parsed."""
        return "items" not in self.malformed_fields

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Tuple["Order", List[OrderDataError]]:
        """
        Build an Order from a raw document-store record, dropping bad fields.

        Each field that cannot be parsed is left empty and its error returned
        alongside the order. An unparseable item line is dropped and marks the
        order value as unknown.

        Raises:
            OrderDataError: If the record is not a mapping
        """
        if not isinstance(record, Mapping):
            raise OrderDataError(f"Order record must be a mapping, got {type(record).__name__}")

        order_id = _to_optional_str(_get(record, "id", "orderId", "order_id")) or ""
        errors: List[OrderDataError] = []

        def attempt(parse, *args):
            try:
                return parse(*args)
            except OrderDataError as e:
                e.order_id = order_id or None
                e.details.setdefault("order_id", order_id or None)
                errors.append(e)
                return None

        created_at = attempt(parse_timestamp, _get(record, "createdAt", "created_at"))

        items = []
        raw_items = _get(record, "items", default=())
        if isinstance(raw_items, (list, tuple)):
            for raw_item in raw_items:
                item = attempt(OrderItem.from_dict, raw_item)
                if item is not None:
                    items.append(item)
        else:
            errors.append(
                OrderDataError("Order items must be a list", order_id=order_id or None, field="items")
            )

        raw_address = _get(record, "deliveryAddress", "delivery_address")
        address = attempt(Address.from_dict, raw_address) if raw_address else None

        payment_method = attempt(PaymentMethod.parse, _get(record, "paymentMethod", "payment_method"))

        order = cls(
            id=order_id,
            created_at=created_at,
            items=tuple(items),
            delivery_address=address,
            payment_method=payment_method,
            user_id=_to_optional_str(_get(record, "userId", "user_id")),
            malformed_fields=tuple(dict.fromkeys(_field_group(e.field) for e in errors)),
        )
        return order, errors

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "Order":
        """
        Build an Order from a raw document-store record.

        Raises:
            OrderDataError: If any field has an unusable shape
        """
        order, errors = cls.from_record(record)
        if errors:
            raise errors[0]
        return order


# Item-level fields all invalidate the order value
_ITEM_FIELDS = {"items", "unitPrice", "quantity", "options"}


def _field_group(field_name: Optional[str]) -> str:
    if field_name in _ITEM_FIELDS:
        return "items"
    return field_name or "record"
