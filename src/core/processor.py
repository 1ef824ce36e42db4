"""Core dispatch loop.

This module is integration-agnostic. It only relies on ports for sessions,
the feed and notifications, enabling other frontends or adapters without
changes here.

One run enforces a strict order:
1) Load subscribers that have a saved search URL
2) Fetch the current listings for each subscriber
3) Admit each listing through the dedup gate (awaited, sequential)
4) Launch delivery for admitted listings without waiting for it
5) Apply delivery side effects (unsubscribe, log) on the loop's own path
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections import deque
from typing import Deque, Set, Tuple

from core.dedup import AdmitGate
from core.delivery import SideEffect, side_effect_for
from core.models import DeliveryOutcome, DeliveryStatus, Listing, Subscriber
from core.ports import ListingFetcherPort, NotifierPort, SessionStorePort

LOGGER = logging.getLogger(__name__)


class ListingDispatcher:
    """Orchestrates fetching, dedup, persistence, and notifications."""

    def __init__(
        self,
        sessions: SessionStorePort,
        fetcher: ListingFetcherPort,
        gate: AdmitGate,
        notifier: NotifierPort,
    ) -> None:
        self._sessions = sessions
        self._fetcher = fetcher
        self._gate = gate
        self._notifier = notifier
        self._pending: Set[asyncio.Task] = set()
        self._finished: Deque[Tuple[int, str, DeliveryOutcome]] = deque()

    async def run(self) -> None:
        """Process every active subscriber once."""

        subscribers = self._sessions.list_active_subscribers()
        LOGGER.info("Dispatch run started for %s subscribers", len(subscribers))

        for subscriber in subscribers:
            try:
                await self._process_subscriber(subscriber)
            except Exception:
                LOGGER.exception("Error while processing subscriber %s", subscriber.chat_id)
            self._apply_side_effects()

        await self._drain()
        LOGGER.info("Dispatch run finished")

    async def _process_subscriber(self, subscriber: Subscriber) -> None:
        if not subscriber.url:
            return

        listings = await self._fetcher.fetch(subscriber.url)
        if not listings:
            return

        sent = 0
        for listing in listings:
            try:
                decision = self._gate.admit(listing, subscriber.chat_id)
            except Exception:
                LOGGER.exception(
                    "Error while admitting listing %s for %s", listing.external_id, subscriber.chat_id
                )
                continue
            if decision.should_notify:
                self._launch_delivery(subscriber.chat_id, decision.listing)
                sent += 1
            # Give launched deliveries a chance to progress between listings.
            await asyncio.sleep(0)
            self._apply_side_effects()

        LOGGER.info(
            "Subscriber %s: %s listings fetched, %s new", subscriber.chat_id, len(listings), sent
        )

    def _launch_delivery(self, recipient_id: int, listing: Listing) -> None:
        task = asyncio.create_task(self._notifier.notify(recipient_id, listing))
        self._pending.add(task)
        task.add_done_callback(
            functools.partial(self._on_delivery_done, recipient_id, listing.external_id)
        )

    def _on_delivery_done(self, recipient_id: int, external_id: str, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            outcome = DeliveryOutcome(status=DeliveryStatus.TRANSIENT_FAILURE, reason="cancelled")
        elif task.exception() is not None:
            outcome = DeliveryOutcome(
                status=DeliveryStatus.TRANSIENT_FAILURE, reason=repr(task.exception())
            )
        else:
            outcome = task.result()
        # Effects are queued and applied by the loop, never from the callback.
        self._finished.append((recipient_id, external_id, outcome))

    def _apply_side_effects(self) -> None:
        while self._finished:
            recipient_id, external_id, outcome = self._finished.popleft()
            effect = side_effect_for(outcome)
            if effect is SideEffect.UNSUBSCRIBE:
                LOGGER.warning(
                    "Recipient %s is unreachable (%s); unsubscribing", recipient_id, outcome.reason
                )
                self._sessions.clear_url(recipient_id)
            elif effect is SideEffect.LOG:
                LOGGER.error(
                    "Can't send listing %s to %s: %s", external_id, recipient_id, outcome.reason
                )

    async def _drain(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        self._apply_side_effects()
