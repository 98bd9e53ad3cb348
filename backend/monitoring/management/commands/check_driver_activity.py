from django.core.management.base import BaseCommand, CommandError

from events.models import Event
from services.monitoring import (
    monitor_active_events,
    monitor_event_drivers,
    reset_expired_toggle_windows,
)


class Command(BaseCommand):
    help = "Close expired DD toggle windows and raise prolonged-inactivity alerts."

    def add_arguments(self, parser):
        parser.add_argument(
            "--event",
            type=int,
            default=None,
            help="Only check DDs of this event id (default: every active event).",
        )

    def handle(self, *args, **options):
        event_id = options["event"]
        if event_id is not None:
            if not Event.objects.filter(pk=event_id).exists():
                raise CommandError(f"Event {event_id} does not exist")
            windows_reset = reset_expired_toggle_windows()
            alerts = monitor_event_drivers(event_id)
        else:
            report = monitor_active_events()
            windows_reset, alerts = report.windows_reset, report.alerts

        for alert in alerts:
            self.stdout.write(f"[{alert.kind}] {alert.message}")

        self.stdout.write(
            self.style.SUCCESS(f"Reset {windows_reset} toggle window(s); raised {len(alerts)} alert(s).")
        )
