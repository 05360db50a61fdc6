from django.apps import AppConfig  # type: ignore


class BookingsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.bookings"
    label = "bookings"
    verbose_name = "Bookings"

    def ready(self) -> None:
        from shared.application.message_bus import message_bus

        from .application.command_handlers import register_handlers
        from .domain.events import BookingConfirmed
        from .tasks import queue_confirmation_email

        register_handlers(message_bus)
        message_bus.register_event_handler(BookingConfirmed, queue_confirmation_email)
