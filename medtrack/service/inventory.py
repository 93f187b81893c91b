# medtrack/service/inventory.py
import logging
import math
from datetime import datetime
from typing import Iterable, List

from ..models import Medication, MedicationStatus, StockOperation

logger = logging.getLogger(__name__)


def dose_quantity(medication: Medication) -> int:
    """Units of stock one dose consumes; a partial unit still uses up a whole one."""
    return int(math.ceil(medication.dose))


def _stamp(medication: Medication, stock: int, now: datetime) -> Medication:
    return medication.model_copy(
        update={"stock": max(0, int(stock)), "last_stock_update": now, "updated_at": now}
    )


def set_stock(medication: Medication, quantity: int, now: datetime) -> Medication:
    """Absolute set; negative input clamps to 0."""
    updated = _stamp(medication, quantity, now)
    logger.info("Stock of %s set to %s", medication.id, updated.stock)
    return updated


def adjust_stock(
    medication: Medication, delta: int, direction: StockOperation, now: datetime
) -> Medication:
    """
    Relative change. Subtracting more than is left clamps to 0 instead of
    failing, so stock never goes negative.
    """
    direction = StockOperation(direction)
    if direction == StockOperation.ADD:
        new_stock = medication.stock + delta
    elif direction == StockOperation.SUBTRACT:
        new_stock = medication.stock - delta
    else:
        raise ValueError(f"adjust_stock takes add or subtract, not {direction.value!r}")

    updated = _stamp(medication, new_stock, now)
    logger.info(
        "Stock of %s %s %s -> %s", medication.id, direction.value, delta, updated.stock
    )
    return updated


def update_stock(
    medication: Medication, quantity: int, operation: StockOperation, now: datetime
) -> Medication:
    operation = StockOperation(operation)
    if operation == StockOperation.SET:
        return set_stock(medication, quantity, now)
    return adjust_stock(medication, quantity, operation, now)


def low_stock_medications(medications: Iterable[Medication]) -> List[Medication]:
    """Active medications running low: 0 < stock <= threshold. Empty is reported separately."""
    return [
        m for m in medications
        if m.status == MedicationStatus.ACTIVE and 0 < m.stock <= m.low_stock_threshold
    ]


def empty_stock_medications(medications: Iterable[Medication]) -> List[Medication]:
    return [m for m in medications if m.status == MedicationStatus.ACTIVE and m.stock == 0]
