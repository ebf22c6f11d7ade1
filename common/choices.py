"""Shared enumerations and choices used across apps."""

from django.db import models


class MovementDirection(models.TextChoices):
    IN = "IN", "Inbound"
    OUT = "OUT", "Outbound"


class ReasonCode(models.TextChoices):
    """Why a movement happened. Each code belongs to exactly one direction."""

    OVERPROD_IN = "OVERPROD_IN", "Overproduction in"
    RETURN_IN = "RETURN_IN", "Return in"
    ADJUSTMENT_IN = "ADJUSTMENT_IN", "Adjustment in"
    TRANSFER_IN = "TRANSFER_IN", "Transfer in"
    SALES_OUT = "SALES_OUT", "Sales out"
    GIFT_OUT = "GIFT_OUT", "Gift out"
    ADJUSTMENT_OUT = "ADJUSTMENT_OUT", "Adjustment out"
    TRANSFER_OUT = "TRANSFER_OUT", "Transfer out"


REASONS_BY_DIRECTION = {
    MovementDirection.IN: frozenset(
        {ReasonCode.OVERPROD_IN, ReasonCode.RETURN_IN, ReasonCode.ADJUSTMENT_IN, ReasonCode.TRANSFER_IN}
    ),
    MovementDirection.OUT: frozenset(
        {ReasonCode.SALES_OUT, ReasonCode.GIFT_OUT, ReasonCode.ADJUSTMENT_OUT, ReasonCode.TRANSFER_OUT}
    ),
}


class OpnameStatus(models.TextChoices):
    """Lifecycle statuses for physical count sessions."""

    DRAFT = "DRAFT", "Draft"
    ACTIVE = "ACTIVE", "Active"
    COMPLETED = "COMPLETED", "Completed"
    CANCELLED = "CANCELLED", "Cancelled"


class ImportMode(models.TextChoices):
    ADD = "add", "Add to stock"
    SET = "set", "Set stock level"
