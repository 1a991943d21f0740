"""
POS Catalog — Parser
====================
Turns a raw delimited catalog blob into typed Product records.

Format:
    - UTF-8 text, first line = column headers, comma-delimited
    - one product per following line
    - cells are matched to headers by position
    - unescaped embedded commas are NOT supported; a quoted cell
      containing a comma shifts the remaining cells of that row

RULES:
- Pure: no I/O, no logging, no clock. Same bytes → same result.
- A bad row is reported as a RowError and skipped, never fatal.
- Fewer than two lines (no data rows) → empty result, not an error.
- Undecodable bytes are a load-level failure (CatalogDecodeError).
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import (
    Callable,
    Collection,
    Dict,
    List,
    NamedTuple,
    Optional,
    Tuple,
    Type,
    TypeVar,
    Union,
)

from poscore.catalog.errors import CatalogDecodeError
from poscore.catalog.models import (
    BaseUnit,
    Product,
    ProductBatch,
    RowError,
    StorageRequirement,
)

_E = TypeVar("_E", bound=Enum)
_R = TypeVar("_R")

_TRUE_VALUES = {"true", "1", "yes", "y"}
_FALSE_VALUES = {"false", "0", "no", "n"}

FieldMap = Dict[str, Optional[str]]


class ParseResult(NamedTuple):
    products: Tuple[Product, ...]
    errors: Tuple[RowError, ...]


class BatchParseResult(NamedTuple):
    batches: Tuple[ProductBatch, ...]
    errors: Tuple[RowError, ...]


# ══════════════════════════════════════════════════════════════
# ROW READER (collects every issue in a row)
# ══════════════════════════════════════════════════════════════

class _RowReader:
    """Reads typed values out of one field map, accumulating issues."""

    def __init__(self, fields: FieldMap) -> None:
        self._fields = fields
        self.issues: List[str] = []

    def _raw(self, key: str, required: bool) -> Optional[str]:
        value = self._fields.get(key)
        if value is None and required:
            self.issues.append(f"{key}: required")
        return value

    def text(
        self, key: str, required: bool = False, min_length: int = 0
    ) -> Optional[str]:
        value = self._raw(key, required)
        if value is not None and len(value) < min_length:
            self.issues.append(
                f"{key}: must be at least {min_length} characters"
            )
        return value

    def decimal(
        self,
        key: str,
        required: bool = False,
        positive: bool = False,
        default: Optional[Decimal] = None,
    ) -> Optional[Decimal]:
        value = self._raw(key, required)
        if value is None:
            return default
        try:
            number = Decimal(value)
        except InvalidOperation:
            self.issues.append(f"{key}: '{value}' is not a number")
            return default
        if not number.is_finite():
            self.issues.append(f"{key}: '{value}' is not a number")
            return default
        if positive and number <= 0:
            self.issues.append(f"{key}: must be a positive number")
        elif number < 0:
            self.issues.append(f"{key}: must be non-negative")
        return number

    def whole_number(self, key: str) -> Optional[int]:
        number = self.decimal(key)
        if number is None or number < 0:
            return None
        if number != number.to_integral_value():
            self.issues.append(f"{key}: must be a whole number")
            return None
        return int(number)

    def choice(self, key: str, enum_cls: Type[_E], default: _E) -> _E:
        value = self._raw(key, required=False)
        if value is None:
            return default
        for member in enum_cls:
            if member.value == value:
                return member
        allowed = ", ".join(m.value for m in enum_cls)
        self.issues.append(f"{key}: '{value}' is not one of {allowed}")
        return default

    def flag(self, key: str, default: bool = False) -> bool:
        value = self._raw(key, required=False)
        if value is None:
            return default
        lowered = value.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        self.issues.append(f"{key}: '{value}' is not a boolean")
        return default

    def day(self, key: str, required: bool = False) -> Optional[date]:
        value = self._raw(key, required)
        if value is None:
            return None
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        except ValueError:
            self.issues.append(f"{key}: '{value}' is not an ISO date")
            return None


# ══════════════════════════════════════════════════════════════
# TABLE SPLITTING
# ══════════════════════════════════════════════════════════════

def _decode(raw: Union[bytes, str]) -> str:
    if isinstance(raw, str):
        return raw
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise CatalogDecodeError(
            source="<bytes>", detail=f"not valid UTF-8 ({exc.reason})"
        ) from exc


def split_rows(raw: Union[bytes, str]) -> List[Tuple[int, FieldMap]]:
    """
    Split a delimited blob into (line_number, field_map) pairs.

    Empty cells and cells past the end of a short row are None.
    Blank lines are skipped.
    """
    lines = [line.rstrip("\r") for line in _decode(raw).strip().split("\n")]
    if len(lines) < 2:
        return []

    header = [name.strip() for name in lines[0].split(",")]
    rows: List[Tuple[int, FieldMap]] = []
    for offset, line in enumerate(lines[1:]):
        if not line.strip():
            continue
        values = line.split(",")
        fields: FieldMap = {}
        for index, key in enumerate(header):
            cell = values[index].strip() if index < len(values) else ""
            fields[key] = cell or None
        rows.append((offset + 2, fields))
    return rows


def _collect(
    rows: List[Tuple[int, FieldMap]],
    build: Callable[[_RowReader], Optional[_R]],
    identity: Callable[[_R], str],
) -> Tuple[Tuple[_R, ...], Tuple[RowError, ...]]:
    records: List[_R] = []
    errors: List[RowError] = []
    seen: Dict[str, int] = {}

    for row_number, fields in rows:
        reader = _RowReader(fields)
        record = None
        try:
            record = build(reader)
        except ValueError as exc:
            reader.issues.append(str(exc))

        if reader.issues or record is None:
            errors.append(RowError(row_number=row_number, issues=tuple(reader.issues)))
            continue

        key = identity(record)
        if key in seen:
            errors.append(RowError(
                row_number=row_number,
                issues=(f"id: duplicate of row {seen[key]}",),
            ))
            continue
        seen[key] = row_number
        records.append(record)

    return tuple(records), tuple(errors)


# ══════════════════════════════════════════════════════════════
# PRODUCTS
# ══════════════════════════════════════════════════════════════

def _build_product(reader: _RowReader) -> Optional[Product]:
    product_id = reader.text("id", required=True)
    name = reader.text("name", required=True, min_length=2)
    sku = reader.text("sku", required=True, min_length=3)
    category_id = reader.text("category_id", required=True, min_length=1)
    price = reader.decimal("price", required=True, positive=True)
    average_cost = reader.decimal("average_cost", default=Decimal("0"))
    reorder_point = reader.whole_number("reorder_point")
    base_unit = reader.choice("base_unit", BaseUnit, BaseUnit.PIECE)
    storage = reader.choice(
        "storage_requirement",
        StorageRequirement,
        StorageRequirement.ROOM_TEMPERATURE,
    )
    requires_batch_tracking = reader.flag("requires_batch_tracking")
    is_archived = reader.flag("is_archived")

    if reader.issues:
        return None

    return Product(
        product_id=product_id,
        sku=sku,
        name=name,
        price=price,
        category_id=category_id,
        average_cost=average_cost,
        reorder_point=reorder_point,
        description=reader.text("description"),
        supplier_id=reader.text("supplier_id"),
        base_unit=base_unit,
        storage_requirement=storage,
        requires_batch_tracking=requires_batch_tracking,
        is_archived=is_archived,
    )


def parse(raw: Union[bytes, str]) -> ParseResult:
    """
    Parse a product catalog.

    Returns (products, errors). For N data rows of which K are invalid,
    len(products) == N - K and len(errors) == K.
    """
    products, errors = _collect(
        split_rows(raw), _build_product, lambda p: p.product_id
    )
    return ParseResult(products=products, errors=errors)


# ══════════════════════════════════════════════════════════════
# BATCHES
# ══════════════════════════════════════════════════════════════

def parse_batches(
    raw: Union[bytes, str], product_ids: Collection[str]
) -> BatchParseResult:
    """
    Parse a batch file: id, product_id, batch_number, received_at,
    expiration_date, purchase_cost. Batches must reference a known product.
    """

    def build(reader: _RowReader) -> Optional[ProductBatch]:
        batch_id = reader.text("id", required=True)
        product_id = reader.text("product_id", required=True)
        batch_number = reader.text("batch_number", required=True)
        received_at = reader.day("received_at")
        expiration_date = reader.day("expiration_date")
        purchase_cost = reader.decimal("purchase_cost", default=Decimal("0"))
        if product_id is not None and product_id not in product_ids:
            reader.issues.append(f"product_id: unknown product '{product_id}'")
        if reader.issues:
            return None
        return ProductBatch(
            batch_id=batch_id,
            product_id=product_id,
            batch_number=batch_number,
            received_at=received_at,
            expiration_date=expiration_date,
            purchase_cost=purchase_cost,
        )

    batches, errors = _collect(split_rows(raw), build, lambda b: b.batch_id)
    return BatchParseResult(batches=batches, errors=errors)
