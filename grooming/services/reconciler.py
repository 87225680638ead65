"""
reconciler.py
-------------
Keeps stored appointment status in step with the clock.

A "Booked" appointment whose scheduled time has passed is already *shown* as
Completed by the status resolver. The reconciler persists that transition so
that reports, history and other clients agree.

Sweeps happen:
1. on load (start),
2. once more after `initial_delay` seconds, re-fetching from the store first,
3. every `interval` seconds over the in-memory list.

Each expired appointment is written independently and concurrently. A failed
write is logged and left for the next sweep; a slot conflict (the appointment
was rescheduled meanwhile) makes the next sweep re-fetch before deciding.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime

from django.conf import settings

from .appointment_store import AppointmentConflict, AppointmentNotFound, SlotKey
from .clock import system_clock
from .price_calculator import normalize_day_care
from .status_resolver import COMPLETED, is_expired

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_DELAY_SECONDS = 2
DEFAULT_INTERVAL_SECONDS = 30
SHUTDOWN_TIMEOUT_SECONDS = 5


@dataclass(frozen=True)
class SweepPlan:
    to_update: tuple
    checked_at: datetime

    def __bool__(self):
        return bool(self.to_update)


@dataclass
class SweepResult:
    updated: list = field(default_factory=list)
    failed: list = field(default_factory=list)  # (appointment, exception)

    @property
    def conflicts(self):
        return [appt for appt, exc in self.failed if isinstance(exc, AppointmentConflict)]


def sweep_once(appointments, clock, tz=None):
    """Pick the appointments stored as Booked whose time has passed."""
    now = clock()
    return SweepPlan(
        to_update=tuple(appt for appt in appointments if is_expired(appt, now, tz)),
        checked_at=now,
    )


async def apply_sweep(plan, store):
    """
    Persist a sweep plan. Writes run concurrently; one failure never stops
    the others.
    """
    result = SweepResult()
    if not plan.to_update:
        return result

    outcomes = await asyncio.gather(
        *(
            store.update(appt.id, {"status": COMPLETED}, SlotKey.from_appointment(appt))
            for appt in plan.to_update
        ),
        return_exceptions=True,
    )

    for appt, outcome in zip(plan.to_update, outcomes):
        if isinstance(outcome, Exception):
            result.failed.append((appt, outcome))
            logger.warning(f"Could not complete appointment {appt.id}: {outcome}")
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            result.updated.append(outcome)
            logger.info(f"Appointment {appt.id} transitioned: Booked -> Completed")
    return result


class AppointmentReconciler:
    """
    Background process over an in-memory copy of all appointments.

    Usage:
        async with AppointmentReconciler(DjangoAppointmentStore()) as reconciler:
            ...

    or start()/stop() explicitly.
    """

    def __init__(self, store, clock=system_clock, initial_delay=None, interval=None, tz=None):
        config = getattr(settings, "GROOMING_RECONCILER", {})
        self.store = store
        self.clock = clock
        self.tz = tz
        self.initial_delay = (
            config.get("INITIAL_DELAY_SECONDS", DEFAULT_INITIAL_DELAY_SECONDS)
            if initial_delay is None else initial_delay
        )
        self.interval = (
            config.get("INTERVAL_SECONDS", DEFAULT_INTERVAL_SECONDS)
            if interval is None else interval
        )
        self._appointments = {}
        self._needs_refresh = False
        self._lock = asyncio.Lock()
        self._stop_event = None
        self._tasks = []

    # -------------------------
    # State
    # -------------------------
    @property
    def appointments(self):
        return list(self._appointments.values())

    @property
    def running(self):
        return self._stop_event is not None and not self._stop_event.is_set()

    @property
    def needs_refresh(self):
        return self._needs_refresh

    def _remember(self, record):
        record.day_care_options = normalize_day_care(record.day_care_options)
        self._appointments[record.id] = record

    async def _fetch(self):
        records = await self.store.list_all()
        self._appointments = {}
        for record in records:
            self._remember(record)
        self._needs_refresh = False
        logger.debug(f"Loaded {len(self._appointments)} appointment(s)")

    async def _sweep(self):
        if self._needs_refresh:
            await self._fetch()

        plan = sweep_once(self.appointments, self.clock, self.tz)
        result = await apply_sweep(plan, self.store)

        for record in result.updated:
            self._remember(record)
        for appt, exc in result.failed:
            if isinstance(exc, AppointmentConflict):
                self._needs_refresh = True
            elif isinstance(exc, AppointmentNotFound):
                self._appointments.pop(appt.id, None)

        if result.updated or result.failed:
            logger.info(
                f"Reconciliation sweep: {len(result.updated)} completed, {len(result.failed)} failed"
            )
        return result

    # -------------------------
    # Triggers
    # -------------------------
    async def load(self):
        """Fetch every appointment from the store and sweep."""
        async with self._lock:
            await self._fetch()
            return await self._sweep()

    async def refresh(self):
        """Re-fetch and sweep; same as load, used by the deferred trigger."""
        return await self.load()

    async def sweep(self):
        """Sweep the in-memory list (re-fetching first after a conflict)."""
        async with self._lock:
            return await self._sweep()

    async def _guarded(self, trigger, name):
        try:
            await trigger()
        except Exception:
            self._needs_refresh = True
            logger.exception(f"Reconciliation {name} failed; will retry")

    async def _stopped_within(self, timeout):
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    async def _deferred_refresh(self):
        if not await self._stopped_within(self.initial_delay):
            await self._guarded(self.refresh, "refresh")

    async def _periodic_sweep(self):
        while not await self._stopped_within(self.interval):
            await self._guarded(self.sweep, "sweep")

    # -------------------------
    # Lifecycle
    # -------------------------
    async def start(self):
        if self.running:
            return
        self._stop_event = asyncio.Event()
        await self._guarded(self.load, "load")
        self._tasks = [
            asyncio.create_task(self._deferred_refresh()),
            asyncio.create_task(self._periodic_sweep()),
        ]
        logger.info(
            f"Appointment reconciler started (refresh in {self.initial_delay}s, every {self.interval}s)"
        )

    async def stop(self):
        """Cancel the periodic timer and any pending deferred refresh."""
        if self._stop_event is None:
            return
        self._stop_event.set()
        tasks, self._tasks = self._tasks, []
        if tasks:
            _done, pending = await asyncio.wait(tasks, timeout=SHUTDOWN_TIMEOUT_SECONDS)
            for task in pending:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Appointment reconciler stopped")

    async def wait_stopped(self):
        if self._stop_event is not None:
            await self._stop_event.wait()

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()
