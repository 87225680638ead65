"""
reconcile_appointments.py
-------------------------
Django management command that marks expired bookings as Completed.

Usage:
    python manage.py reconcile_appointments --once
    python manage.py reconcile_appointments --interval 60

Behavior:
- --once: load every appointment, complete the ones whose time has passed, exit.
- otherwise: keep running the reconciler (sweep on start, a refresh shortly
  after, then every --interval seconds) until interrupted with Ctrl+C.
"""

import asyncio

from django.core.management.base import BaseCommand

from grooming.services.appointment_store import DjangoAppointmentStore
from grooming.services.reconciler import AppointmentReconciler


class Command(BaseCommand):
    help = "Persist Booked -> Completed for appointments whose time has passed."

    def add_arguments(self, parser):
        parser.add_argument(
            "--once",
            action="store_true",
            help="Run a single sweep and exit.",
        )
        parser.add_argument(
            "--interval",
            type=float,
            default=None,
            help="Seconds between sweeps (default: GROOMING_RECONCILER['INTERVAL_SECONDS']).",
        )
        parser.add_argument(
            "--initial-delay",
            type=float,
            default=None,
            help="Seconds before the follow-up refresh (default: GROOMING_RECONCILER['INITIAL_DELAY_SECONDS']).",
        )

    def handle(self, *args, **options):
        reconciler = AppointmentReconciler(
            DjangoAppointmentStore(),
            initial_delay=options["initial_delay"],
            interval=options["interval"],
        )

        if options["once"]:
            result = asyncio.run(reconciler.load())
            self.stdout.write(self.style.SUCCESS(
                f"Completed {len(result.updated)} appointment(s); {len(result.failed)} failed."
            ))
            return

        self.stdout.write(f"Reconciling every {reconciler.interval}s. Press Ctrl+C to stop.")
        try:
            asyncio.run(self._run_forever(reconciler))
        except KeyboardInterrupt:
            self.stdout.write("Stopped.")

    async def _run_forever(self, reconciler):
        async with reconciler:
            await reconciler.wait_stopped()
