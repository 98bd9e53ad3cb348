from django.core.management.base import BaseCommand, CommandError

from events.models import Event
from services.matching import dispatch_event, dispatch_active_events


class Command(BaseCommand):
    help = "Run one dispatch cycle (refresh priorities, assign queued rides) for active events."

    def add_arguments(self, parser):
        parser.add_argument(
            "--event",
            type=int,
            default=None,
            help="Only dispatch this event id (default: every active event).",
        )

    def handle(self, *args, **options):
        event_id = options["event"]
        if event_id is not None:
            if not Event.objects.filter(pk=event_id).exists():
                raise CommandError(f"Event {event_id} does not exist")
            reports = [dispatch_event(event_id)]
        else:
            reports = dispatch_active_events()

        for report in reports:
            self.stdout.write(
                f"Event {report.event_id}: assigned {report.assigned_count} ride(s), "
                f"refreshed {report.priorities_refreshed} priorit(ies), stopped on {report.stop_reason}."
            )

        self.stdout.write(
            self.style.SUCCESS(
                f"Dispatched {len(reports)} event(s); assigned {sum(r.assigned_count for r in reports)} ride(s)."
            )
        )
