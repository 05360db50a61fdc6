"""API tests for checkout, gateway callbacks and payment status."""

from __future__ import annotations

import json
from datetime import timedelta
from decimal import Decimal
from unittest import mock

import requests
from django.test import override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.application.command_handlers import CreateBookingCommand
from apps.bookings.models import Booking
from apps.parking.models import ParkingSlot
from apps.payments import gateway
from apps.payments.models import Payment, PaymentWebhookEvent
from apps.users.models import User
from apps.venues.models import Venue
from shared.application.message_bus import message_bus


class PaymentAPITestMixin:
    def setUp(self) -> None:
        self.customer = User.objects.create_user(
            email="customer@example.com",
            password="Pass12345",
            first_name="Asha",
            last_name="Rao",
        )
        self.other = User.objects.create_user(email="other@example.com", password="Pass12345")
        self.venue = Venue.objects.create(
            kind=Venue.Kind.EVENT,
            name="Coldplay Live",
            location="Mumbai",
            total_parking_slots=20,
            available_parking_slots=20,
            slot_price=Decimal("50.00"),
            starts_at=timezone.now() + timedelta(days=5),
        )
        self.booking = message_bus.handle_command(
            CreateBookingCommand(user_id=self.customer.id, venue_id=self.venue.id, slot_codes=["R1C2"])
        )
        self.client.force_authenticate(self.customer)

    def _start_checkout(self):
        return self.client.post(
            reverse("payment-process"), {"booking_id": str(self.booking.pk)}, format="json"
        )

    def _callback(self, payload: dict, **extra):
        return self.client.post(
            reverse("payment-webhook"), data=json.dumps(payload), content_type="application/json", **extra
        )


class ProcessPaymentTests(PaymentAPITestMixin, APITestCase):
    def test_simulated_checkout_without_credentials(self) -> None:
        response = self._start_checkout()

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["success"])
        self.assertTrue(response.data["simulated"])
        self.assertTrue(response.data["order_id"].startswith(f"ORD{str(self.booking.pk)[:8]}"))
        self.assertEqual(len(response.data["order_id"]), 17)
        self.assertIn("/payment-callback?bookingId=", response.data["payment_link"])
        self.assertIn("status=SUCCESS", response.data["payment_link"])
        self.assertIn("simulated=true", response.data["payment_link"])

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.PAYMENT_PENDING)
        self.assertEqual(Payment.objects.get(booking=self.booking).amount, Decimal("50.00"))

    def test_retry_reuses_payment_row(self) -> None:
        first = self._start_checkout()
        second = self._start_checkout()

        self.assertEqual(second.status_code, status.HTTP_200_OK, second.data)
        self.assertEqual(first.data["order_id"], second.data["order_id"])
        self.assertEqual(Payment.objects.filter(booking=self.booking).count(), 1)

    def test_only_owner_can_pay(self) -> None:
        self.client.force_authenticate(self.other)
        response = self._start_checkout()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_cannot_pay_cancelled_booking(self) -> None:
        self.client.post(reverse("booking-cancel", args=[self.booking.pk]), {}, format="json")
        response = self._start_checkout()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @override_settings(PAYMENT_GATEWAY_APP_ID="app-id", PAYMENT_GATEWAY_SECRET="secret")
    def test_gateway_order_created_when_configured(self) -> None:
        gateway_response = mock.Mock()
        gateway_response.raise_for_status.return_value = None
        gateway_response.json.return_value = {
            "order_id": "ignored",
            "payment_link": "https://payments.example.com/checkout/abc",
            "cf_order_id": 991,
        }

        with mock.patch("apps.payments.gateway.requests.post", return_value=gateway_response) as post:
            response = self._start_checkout()

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertFalse(response.data["simulated"])
        self.assertEqual(response.data["payment_link"], "https://payments.example.com/checkout/abc")

        args, kwargs = post.call_args
        self.assertTrue(args[0].endswith("/orders"))
        self.assertEqual(kwargs["headers"]["x-client-id"], "app-id")
        self.assertEqual(kwargs["headers"]["x-api-version"], "2022-09-01")
        body = kwargs["json"]
        self.assertEqual(body["order_currency"], "INR")
        self.assertEqual(body["order_amount"], 50.0)
        self.assertEqual(body["customer_details"]["customer_phone"], "9999999999")
        self.assertEqual(body["order_note"], "Payment for Coldplay Live")

        payment = Payment.objects.get(booking=self.booking)
        self.assertEqual(payment.provider, Payment.Provider.CASHFREE)
        self.assertEqual(payment.metadata["cf_order_id"], 991)

    @override_settings(PAYMENT_GATEWAY_APP_ID="app-id", PAYMENT_GATEWAY_SECRET="secret")
    def test_gateway_error_falls_back_to_simulated_link(self) -> None:
        with mock.patch(
            "apps.payments.gateway.requests.post",
            side_effect=requests.ConnectionError("down"),
        ):
            response = self._start_checkout()

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["simulated"])


class PaymentWebhookTests(PaymentAPITestMixin, APITestCase):
    def setUp(self) -> None:
        super().setUp()
        self.order_id = self._start_checkout().data["order_id"]

    def test_simulated_success_confirms_booking(self) -> None:
        response = self._callback({"orderId": self.order_id, "status": "SUCCESS"})

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data, {"success": True, "status": Payment.Status.SUCCESS})

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.CONFIRMED)
        payment = Payment.objects.get(order_id=self.order_id)
        self.assertEqual(payment.mode, "SIMULATED")
        self.assertTrue(payment.reference_id.startswith("REF_"))
        self.assertIsNotNone(payment.paid_at)

    def test_gateway_shape_failure_releases_slots(self) -> None:
        response = self._callback(
            {"order_id": self.order_id, "order_status": "FAILED", "cf_payment_id": "cf-1"}
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], Payment.Status.FAILED)
        self.booking.refresh_from_db()
        self.venue.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.PAYMENT_FAILED)
        self.assertEqual(self.venue.available_parking_slots, 20)
        self.assertFalse(ParkingSlot.objects.filter(venue=self.venue, is_reserved=True).exists())
        self.assertEqual(Payment.objects.get(order_id=self.order_id).mode, "CASHFREE")

    def test_replayed_callback_is_ignored(self) -> None:
        self._callback({"order_id": self.order_id, "txStatus": "PAID", "transaction_id": "tx-1"})
        replay = self._callback({"order_id": self.order_id, "txStatus": "FAILED"})

        self.assertEqual(replay.status_code, status.HTTP_200_OK)
        self.assertEqual(replay.data["status"], Payment.Status.SUCCESS)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.CONFIRMED)
        self.assertEqual(Payment.objects.get(order_id=self.order_id).reference_id, "tx-1")
        self.assertEqual(PaymentWebhookEvent.objects.filter(result="duplicate").count(), 1)

    def test_late_success_does_not_resurrect_expired_booking(self) -> None:
        Booking.objects.filter(pk=self.booking.pk).update(hold_expires_at=timezone.now() - timedelta(minutes=1))
        from apps.bookings.tasks import expire_pending_bookings

        self.assertEqual(expire_pending_bookings(), {"expired": 1})

        response = self._callback({"orderId": self.order_id, "status": "SUCCESS", "referenceId": "ref-9"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.EXPIRED)
        payment = Payment.objects.get(order_id=self.order_id)
        self.assertEqual(payment.status, Payment.Status.SUCCESS)
        self.assertTrue(payment.metadata["late"])
        self.assertEqual(payment.metadata["booking_status_at_payment"], Booking.Status.EXPIRED)

    def test_invalid_and_unknown_payloads(self) -> None:
        self.assertEqual(
            self._callback({"foo": "bar"}).status_code, status.HTTP_400_BAD_REQUEST
        )
        self.assertEqual(
            self._callback({"orderId": "", "status": "SUCCESS"}).status_code, status.HTTP_400_BAD_REQUEST
        )
        self.assertEqual(
            self._callback({"orderId": "ORDmissing", "status": "SUCCESS"}).status_code,
            status.HTTP_404_NOT_FOUND,
        )

    @override_settings(PAYMENT_WEBHOOK_SECRET="whsec")
    def test_signature_required_when_secret_set(self) -> None:
        payload = {"orderId": self.order_id, "status": "SUCCESS"}
        body = json.dumps(payload).encode()

        unsigned = self._callback(payload)
        self.assertEqual(unsigned.status_code, status.HTTP_401_UNAUTHORIZED)

        signed = self._callback(payload, HTTP_X_WEBHOOK_SIGNATURE=gateway.sign(body, "whsec"))
        self.assertEqual(signed.status_code, status.HTTP_200_OK, signed.data)
        self.assertTrue(PaymentWebhookEvent.objects.get(result=Payment.Status.SUCCESS).signature_valid)

    def test_status_endpoint(self) -> None:
        self._callback({"orderId": self.order_id, "status": "SUCCESS", "referenceId": "ref-1"})

        response = self.client.get(reverse("payment-status", args=[self.booking.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["booking_status"], Booking.Status.CONFIRMED)
        self.assertEqual(response.data["reference_id"], "ref-1")
        self.assertEqual(response.data["amount"], Decimal("50.00"))

        self.client.force_authenticate(self.other)
        response = self.client.get(reverse("payment-status", args=[self.booking.pk]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


def test_parse_callback_shapes() -> None:
    simulated = gateway.parse_callback({"orderId": "ORD1", "status": "confirmed"})
    assert simulated.is_success
    assert simulated.mode == "SIMULATED"

    hosted = gateway.parse_callback({"order_id": "ORD2", "txStatus": "PENDING", "transaction_id": "t"})
    assert not hosted.is_success
    assert hosted.reference_id == "t"
    assert hosted.mode == "CASHFREE"
