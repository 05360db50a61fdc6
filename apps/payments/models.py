"""Payment models for Time2Park."""

from __future__ import annotations

from decimal import Decimal

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Payment(models.Model):
    """Payment attempt for a booking. One row per booking, reused on retry."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Awaiting payment")
        SUCCESS = "success", _("Paid")
        FAILED = "failed", _("Failed")

    class Provider(models.TextChoices):
        CASHFREE = "cashfree", _("Cashfree")
        SIMULATED = "simulated", _("Simulated")

    booking = models.OneToOneField(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="payment",
    )
    order_id = models.CharField(max_length=50, unique=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="INR")
    reference_id = models.CharField(max_length=100, blank=True)
    mode = models.CharField(max_length=50, blank=True, help_text=_("Payment method reported by the gateway"))
    provider = models.CharField(max_length=20, choices=Provider.choices, default=Provider.SIMULATED)
    payment_link = models.URLField(max_length=500, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Payment")
        verbose_name_plural = _("Payments")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Payment {self.order_id} ({self.status})"

    @property
    def is_settled(self) -> bool:
        return self.status != self.Status.PENDING

    def mark_success(self, reference_id: str = "", mode: str = "", *, late: bool = False) -> None:
        self.status = self.Status.SUCCESS
        self.reference_id = reference_id or self.reference_id
        self.mode = mode or self.mode
        self.paid_at = timezone.now()
        if late:
            # Paid after the hold was gone; needs a manual refund.
            self.metadata["late"] = True
            self.metadata["booking_status_at_payment"] = self.booking.status
        self.save(update_fields=["status", "reference_id", "mode", "paid_at", "metadata", "updated_at"])

    def mark_failed(self, reason: str = "", reference_id: str = "", mode: str = "") -> None:
        self.status = self.Status.FAILED
        self.reference_id = reference_id or self.reference_id
        self.mode = mode or self.mode
        if reason:
            self.metadata["failure_reason"] = reason
        self.save(update_fields=["status", "reference_id", "mode", "metadata", "updated_at"])


class PaymentWebhookEvent(models.Model):
    """Raw gateway callback, kept for audit."""

    order_id = models.CharField(max_length=50, blank=True, db_index=True)
    payload = models.JSONField(default=dict)
    status = models.CharField(max_length=50, blank=True)
    signature_valid = models.BooleanField(null=True)
    processed = models.BooleanField(default=False)
    result = models.CharField(max_length=50, blank=True)
    received_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-received_at"]

    def __str__(self) -> str:
        return f"Webhook {self.order_id or '?'} {self.status} ({self.result or 'unprocessed'})"
