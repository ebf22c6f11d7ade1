"""Stock opname services: snapshot, count, commit and cancel a physical count."""

import logging

from common.choices import MovementDirection, OpnameStatus, ReasonCode
from common.exceptions import InvalidArgument, InvalidState, NotFound
from django.db import transaction
from django.utils import timezone
from inventory.models import Location, StockBalance
from inventory.services import create_movement

from .models import StockOpname, StockOpnameItem

logger = logging.getLogger("stockledger.opname")

OPNAME_REF_TABLE = "stock_opname"


def _get_locked(opname_id: int) -> StockOpname:
    try:
        return StockOpname.objects.select_for_update().get(id=opname_id)
    except StockOpname.DoesNotExist:
        raise NotFound(f"Opname {opname_id} not found")


@transaction.atomic
def start_opname(*, code: str, location_id: int | None = None, created_by: str = "", include_zero: bool = False):
    """Open an ACTIVE count session with a snapshot of current balances.

    Balances with a positive quantity are snapshotted (zero rows too when
    ``include_zero`` is set), optionally limited to one location.
    """

    code = (code or "").strip()
    if not code:
        raise InvalidArgument("Opname code is required")
    if StockOpname.objects.filter(code=code).exists():
        raise InvalidArgument(f"Opname code {code} already exists")
    if location_id and not Location.objects.filter(id=location_id).exists():
        raise NotFound(f"Location {location_id} not found")

    now = timezone.now()
    opname = StockOpname.objects.create(
        code=code,
        location_id=location_id or None,
        status=OpnameStatus.ACTIVE,
        snapshot_at=now,
        created_by=created_by or "",
    )

    balances = StockBalance.objects.all()
    balances = balances.filter(quantity_on_hand__gte=0) if include_zero else balances.filter(quantity_on_hand__gt=0)
    if location_id:
        balances = balances.filter(location_id=location_id)
    items = [
        StockOpnameItem(opname=opname, variant_id=variant, location_id=location, system_qty=qty)
        for variant, location, qty in balances.values_list("variant_id", "location_id", "quantity_on_hand")
    ]
    StockOpnameItem.objects.bulk_create(items)

    logger.info(
        "opname.started",
        extra={
            "event": "opname.started",
            "opname_id": opname.id,
            "code": code,
            "location_id": location_id,
            "items": len(items),
        },
    )
    return opname


@transaction.atomic
def update_count(
    *,
    opname_id: int,
    variant_id: int,
    location_id: int,
    counted_qty: int,
    counted_by: str = "",
    note: str | None = None,
) -> StockOpnameItem:
    if counted_qty is None or isinstance(counted_qty, bool):
        raise InvalidArgument("counted_qty is required")
    try:
        counted_qty = int(counted_qty)
    except (TypeError, ValueError):
        raise InvalidArgument("counted_qty must be an integer")
    if counted_qty < 0:
        raise InvalidArgument("counted_qty must be zero or positive")

    opname = _get_locked(opname_id)
    if opname.status != OpnameStatus.ACTIVE:
        raise InvalidState(f"Opname {opname.code} is {opname.status}, counts are only accepted while ACTIVE")

    try:
        item = StockOpnameItem.objects.select_for_update().get(
            opname_id=opname.id, variant_id=variant_id, location_id=location_id
        )
    except StockOpnameItem.DoesNotExist:
        raise NotFound("Opname item not found")

    item.counted_qty = counted_qty
    item.counted_by = counted_by or ""
    item.counted_at = timezone.now()
    if note is not None:
        item.note = note
    item.save(update_fields=["counted_qty", "counted_by", "counted_at", "note"])
    return item


@transaction.atomic
def commit_opname(*, opname_id: int, created_by: str = "") -> dict:
    """Book one adjustment per counted variance and complete the session.

    The session row stays locked for the whole commit, so a second commit
    waits and then sees COMPLETED. Any failing adjustment rolls everything
    back and leaves the session ACTIVE.
    """

    opname = _get_locked(opname_id)
    if opname.status != OpnameStatus.ACTIVE:
        raise InvalidState(f"Opname {opname.code} is {opname.status}, only ACTIVE sessions can be committed")

    items = list(
        StockOpnameItem.objects.with_variance()
        .filter(opname_id=opname.id, counted_qty__isnull=False)
        .exclude(variance=0)
        .order_by("-variance", "id")
    )

    adjustments = []
    for item in items:
        variance = item.variance
        movement = create_movement(
            variant_id=item.variant_id,
            location_id=item.location_id,
            direction=MovementDirection.IN if variance > 0 else MovementDirection.OUT,
            reason_code=ReasonCode.ADJUSTMENT_IN if variance > 0 else ReasonCode.ADJUSTMENT_OUT,
            quantity=abs(variance),
            ref_table=OPNAME_REF_TABLE,
            ref_id=opname.id,
            ref_code=opname.code,
            note=f"Stock opname adjustment: {item.note or 'Physical count variance'}",
            pic=item.counted_by,
            created_by=created_by,
        )
        adjustments.append(
            {
                "movement": movement,
                "variance_qty": variance,
                "system_qty": item.system_qty,
                "counted_qty": item.counted_qty,
            }
        )

    opname.status = OpnameStatus.COMPLETED
    opname.completed_at = timezone.now()
    opname.save(update_fields=["status", "completed_at", "updated_at"])

    summary = {
        "total_items": StockOpnameItem.objects.filter(opname_id=opname.id).count(),
        "counted_items": StockOpnameItem.objects.filter(opname_id=opname.id, counted_qty__isnull=False).count(),
        "positive_variances": sum(1 for i in items if i.variance > 0),
        "negative_variances": sum(1 for i in items if i.variance < 0),
        "total_adjustments": len(adjustments),
    }
    logger.info(
        "opname.committed",
        extra={"event": "opname.committed", "opname_id": opname.id, "code": opname.code, **summary},
    )
    return {"opname": opname, "adjustments": adjustments, "summary": summary}


@transaction.atomic
def cancel_opname(*, opname_id: int) -> StockOpname:
    opname = _get_locked(opname_id)
    if opname.status != OpnameStatus.ACTIVE:
        raise InvalidState(f"Opname {opname.code} is {opname.status}, only ACTIVE sessions can be cancelled")
    opname.status = OpnameStatus.CANCELLED
    opname.save(update_fields=["status", "updated_at"])
    logger.info("opname.cancelled", extra={"event": "opname.cancelled", "opname_id": opname.id, "code": opname.code})
    return opname
