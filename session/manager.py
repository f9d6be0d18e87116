"""Session lifecycle manager

Owns the current credential, keeps it renewed ahead of expiry and reconciles
it against asynchronous signals from the native broker and deep links.
"""

import asyncio
import itertools
import logging
import threading
import time
import weakref
from collections import deque
from typing import TYPE_CHECKING, Callable, Deque, Dict, Optional, Tuple

from settings import REFRESH_MARGIN_SECONDS
from .errors import AuthError, NoRefreshToken
from .models import Credential, SessionState, UserInfo
from .scheduler import RefreshScheduler
from .store import CredentialStore

if TYPE_CHECKING:
    from broker.base import CredentialBroker

logger = logging.getLogger(__name__)

Subscriber = Callable[[SessionState], None]
Unsubscribe = Callable[[], None]

# Marker for "commit unconditionally"
_ANY = object()


class _Subscription:
    """A registered callback and the last commit it has already seen"""

    def __init__(self, callback: Subscriber, seen: int):
        self.callback = callback
        self.seen = seen
        self.active = True

    def deliver(self, sequence: int, state: SessionState) -> None:
        if not self.active or sequence <= self.seen:
            return
        self.seen = sequence
        try:
            self.callback(state)
        except Exception:
            logger.exception("Session subscriber raised; continuing with the others")


class SessionManager:
    """Single owner of the session state

    Every state change goes through ``_commit``: swap the store, re-arm or
    cancel the refresh, then notify subscribers. The first two steps happen
    under one lock; notification runs outside it from a FIFO queue, so
    subscribers may call back into the manager and still see every state
    exactly once, in commit order.
    """

    def __init__(
        self,
        broker: "CredentialBroker",
        store: Optional[CredentialStore] = None,
        scheduler: Optional[RefreshScheduler] = None,
        clock: Callable[[], float] = time.time,
        refresh_margin: float = REFRESH_MARGIN_SECONDS,
    ):
        """
        Args:
            broker: Native credential broker boundary
            store: Credential store (creates new if None)
            scheduler: Refresh scheduler (creates new if None)
            clock: Source of the current Unix time in seconds
            refresh_margin: Seconds before expiry at which to refresh
        """
        self.broker = broker
        self._store = store or CredentialStore()
        self._scheduler = scheduler or RefreshScheduler(clock=clock)
        self._refresh_margin = refresh_margin

        self._lock = threading.Lock()
        self._sequence = 0
        self._subscribers: Dict[int, _Subscription] = {}
        self._ids = itertools.count(1)
        self._deliveries: Deque[Tuple[int, SessionState, Optional[_Subscription]]] = deque()
        self._delivering = False
        self._closed = False

    @property
    def scheduler(self) -> RefreshScheduler:
        return self._scheduler

    async def start(self) -> SessionState:
        """Bind to the running loop and seed state from the broker

        Returns:
            The seeded state
        """
        self._scheduler.bind(asyncio.get_running_loop())
        current = self._store.get()
        try:
            credential = await self.broker.get_persisted_credential()
        except AuthError as e:
            logger.error(f"Failed to get persisted credential: {e}")
            return self.get_current()

        # A login that landed while seeding is newer than the persisted copy
        if credential is not None and self._commit(credential, expected=current):
            logger.info(f"Restored persisted session {credential!r}")
        return self.get_current()

    def close(self) -> None:
        """Cancel any pending refresh and drop all subscribers

        Later commits are ignored.
        """
        with self._lock:
            self._closed = True
            self._scheduler.cancel()
            for subscription in self._subscribers.values():
                subscription.active = False
            self._subscribers.clear()
            self._deliveries.clear()

    # Public operations

    async def login(self) -> None:
        """Start the broker's interactive login flow

        The resulting credential arrives later through
        ``on_native_auth_success`` or a deep-link callback.

        Raises:
            BrokerUnavailable: If the broker could not be invoked
        """
        try:
            await self.broker.initiate_login()
        except AuthError as e:
            logger.error(f"Login failed: {e}")
            raise

    async def logout(self) -> None:
        """Tear down the broker session and clear local state

        Local state becomes Absent even if the broker teardown fails; the
        teardown error is still raised.
        """
        try:
            await self.broker.initiate_logout()
        except AuthError as e:
            logger.error(f"Logout failed: {e}")
            raise
        finally:
            self._commit(None)

    async def refresh(self) -> Credential:
        """Exchange the current refresh token for a new credential

        Returns:
            The new credential

        Raises:
            NoRefreshToken: If there is no credential or no refresh token
            AuthError: If the exchange fails (state becomes Absent; so does
                any other broker error, which is re-raised unchanged)
        """
        current = self._store.get()
        if current is None or not current.refresh_token:
            raise NoRefreshToken("No refresh token available")

        logger.info("Refreshing session credential...")
        try:
            credential = await self.broker.exchange_refresh_token(current.refresh_token)
        except AuthError as e:
            logger.error(f"Token refresh failed: {e}")
            self._commit(None, expected=current)
            raise
        except Exception:
            logger.exception("Token refresh failed unexpectedly")
            self._commit(None, expected=current)
            raise

        if self._commit(credential, expected=current):
            logger.info("Successfully refreshed session credential")
        return credential

    def get_current(self) -> SessionState:
        return self._store.get()

    def is_authenticated(self) -> bool:
        return self._store.get() is not None

    def get_access_token(self) -> Optional[str]:
        current = self._store.get()
        return current.access_token if current else None

    def get_user_info(self) -> Optional[UserInfo]:
        current = self._store.get()
        return current.user_info if current else None

    def subscribe(self, callback: Subscriber) -> Unsubscribe:
        """Register ``callback`` for state changes

        The callback is invoked once with the current state straight away
        (from inside another notification: right after it), then with every
        later committed state.

        Returns:
            Function that removes the subscription; extra calls, or calls
            after the manager is gone, do nothing
        """
        with self._lock:
            key = next(self._ids)
            subscription = _Subscription(callback, seen=self._sequence - 1)
            self._subscribers[key] = subscription
            self._deliveries.append((self._sequence, self._store.get(), subscription))
        self._drain()

        manager_ref = weakref.ref(self)

        def unsubscribe() -> None:
            subscription.active = False
            manager = manager_ref()
            if manager is not None:
                with manager._lock:
                    manager._subscribers.pop(key, None)

        return unsubscribe

    # Asynchronous ingestion

    def on_native_auth_success(self, credential: Credential) -> None:
        """Handle an interactive login completed by the broker"""
        logger.info(f"Native login completed for {credential!r}")
        self._commit(credential)

    def on_native_auth_error(self, message: str) -> None:
        """Handle an interactive login failure reported by the broker"""
        logger.error(f"Authentication error: {message}")
        self._commit(None)

    async def on_deep_link(self, url: str) -> Optional[Credential]:
        """Exchange an OAuth callback URL for a credential

        Failures have no caller to report to: they are logged and the state
        becomes Absent.

        Returns:
            The new credential, or None if the exchange failed
        """
        logger.info("Processing OAuth callback")
        try:
            credential = await self.broker.exchange_callback_url(url)
        except AuthError as e:
            logger.error(f"Failed to process OAuth callback: {e}")
            self._commit(None)
            return None
        except Exception:
            logger.exception("Failed to process OAuth callback")
            self._commit(None)
            return None

        self._commit(credential)
        return credential

    # Commit path

    def _commit(self, state: SessionState, expected=_ANY) -> bool:
        """Swap in ``state``, re-arm the refresh and notify subscribers

        Args:
            state: New session state
            expected: If given, only commit while this credential is still
                current (guards exchanges that were in flight while the
                session changed)

        Returns:
            True if the state was committed
        """
        with self._lock:
            if self._closed:
                logger.debug("Session manager closed, ignoring state change")
                return False
            if expected is not _ANY and self._store.get() is not expected:
                logger.warning("Session changed during exchange, discarding result")
                return False
            self._reschedule(state)
            self._store.set(state)
            self._sequence += 1
            self._deliveries.append((self._sequence, state, None))
        self._drain()
        return True

    def _reschedule(self, state: SessionState) -> None:
        if state is not None and state.renewable:
            refresh_at = state.expires_at - self._refresh_margin
            self._scheduler.arm(state, refresh_at, self._scheduled_refresh)
        else:
            self._scheduler.cancel()

    async def _scheduled_refresh(self) -> None:
        try:
            await self.refresh()
        except Exception as e:
            # refresh() has already committed the outcome
            logger.debug(f"Scheduled refresh ended without a new credential: {e}")

    def _drain(self) -> None:
        """Deliver queued states until the queue is empty

        Only one caller drains at a time; others enqueue and return.
        """
        with self._lock:
            if self._delivering:
                return
            self._delivering = True

        try:
            while True:
                with self._lock:
                    if not self._deliveries:
                        self._delivering = False
                        return
                    sequence, state, target = self._deliveries.popleft()
                    recipients = [target] if target is not None else list(self._subscribers.values())
                for subscription in recipients:
                    subscription.deliver(sequence, state)
        except BaseException:
            with self._lock:
                self._delivering = False
            raise
