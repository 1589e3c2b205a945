"""Supabase Auth Adapter: supabase-py's auth client behind the AuthService protocol.

Invariants:
    - Events: INITIAL_SESSION (initialize), SIGNED_IN (sign-in, sign-up with a
      session), TOKEN_REFRESHED (expired session refreshed on demand), SIGNED_OUT
    - get_session() refreshes an expired access token before handing it out
    - A refresh token the server rejects ends the session locally (SIGNED_OUT)
    - sign_out() always ends signed out locally, even if the server call fails
    - Listener exceptions are logged and never reach the caller of an auth action
    - Auth failures raise AuthenticationError; storage failures are only logged

Design Decisions:
    - The library's callbacks are synchronous; events are queued and delivered
      to our async listeners before the triggering call returns
    - No background refresh timer: the token is checked on every get_session()
    - Sessions persist through KeyValueAuthStorage, namespaced per project
"""

import logging
from collections import deque

import httpx
from supabase_auth import AsyncGoTrueClient, AsyncSupportedStorage
from supabase_auth.constants import STORAGE_KEY
from supabase_auth.errors import AuthApiError, AuthError
from supabase_auth.types import Session

from boardsync.core.domain_types import AuthEvent, Identity, UserId
from boardsync.core.errors import AuthenticationError, BoardSyncError
from boardsync.core.repository_protocols import AuthListener, KeyValueStore

logger = logging.getLogger(__name__)

_FORWARDED_EVENTS = {
    AuthEvent.SIGNED_IN.value: AuthEvent.SIGNED_IN,
    AuthEvent.TOKEN_REFRESHED.value: AuthEvent.TOKEN_REFRESHED,
    AuthEvent.SIGNED_OUT.value: AuthEvent.SIGNED_OUT,
}


def to_identity(session: Session | None) -> Identity | None:
    if session is None:
        return None
    return Identity(
        user_id=UserId(session.user.id),
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        email=session.user.email,
        expires_at=session.expires_at,
    )


def _auth_error(e: Exception) -> AuthenticationError:
    if isinstance(e, AuthError):
        return AuthenticationError(
            e.message,
            status_code=getattr(e, "status", None),
            remote_code=e.code,
        )
    return AuthenticationError(f"Auth request failed: {str(e) or type(e).__name__}")


class KeyValueAuthStorage(AsyncSupportedStorage):
    """Session storage for the auth client on top of the local KeyValueStore."""

    def __init__(self, store: KeyValueStore, namespace: str):
        self._store = store
        self._namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def get_item(self, key: str) -> str | None:
        try:
            raw = await self._store.get(self._key(key))
        except BoardSyncError as e:
            logger.warning(f"Could not read persisted auth session: {e.message}")
            return None
        if isinstance(raw, dict) and isinstance(raw.get("value"), str):
            return raw["value"]
        return None

    async def set_item(self, key: str, value: str) -> None:
        try:
            await self._store.set(self._key(key), {"value": value})
        except BoardSyncError as e:
            logger.warning(f"Could not persist auth session: {e.message}")

    async def remove_item(self, key: str) -> None:
        try:
            await self._store.delete(self._key(key))
        except BoardSyncError as e:
            logger.warning(f"Could not remove persisted auth session: {e.message}")


class SupabaseAuth:
    """AuthService implementation over AsyncGoTrueClient."""

    def __init__(self, client: AsyncGoTrueClient, storage: AsyncSupportedStorage):
        self._client = client
        self._storage = storage
        self._listeners: list[AuthListener] = []
        self._pending: deque[tuple[AuthEvent, Identity | None]] = deque()
        self._delivering = False
        client.on_auth_state_change(self._enqueue)

    # ─── Subscription ────────────────────────────────────────────

    def on_auth_state_change(self, listener: AuthListener) -> None:
        self._listeners.append(listener)

    def _enqueue(self, event: str, session: Session | None) -> None:
        mapped = _FORWARDED_EVENTS.get(event)
        if mapped is not None:
            self._pending.append((mapped, to_identity(session)))

    async def _flush(self) -> None:
        # a listener that reads the session may queue further events
        if self._delivering:
            return
        self._delivering = True
        try:
            while self._pending:
                event, identity = self._pending.popleft()
                await self._emit(event, identity)
        finally:
            self._delivering = False

    async def _emit(self, event: AuthEvent, identity: Identity | None) -> None:
        for listener in list(self._listeners):
            try:
                await listener(event, identity)
            except Exception as e:
                logger.error(
                    f"Auth listener failed on {event.value}: {e}",
                    exc_info=True,
                    extra={"auth_event": event.value},
                )

    async def _drop_local_session(self) -> None:
        await self._storage.remove_item(STORAGE_KEY)

    # ─── AuthService ─────────────────────────────────────────────

    async def initialize(self) -> Identity | None:
        """Restore the persisted session (refreshing it if expired), then emit INITIAL_SESSION."""
        try:
            session = await self._client.get_session()
        except AuthApiError as e:
            logger.warning(f"Stored session could not be refreshed: {e.message}")
            await self._drop_local_session()
            session = None
        except (AuthError, httpx.HTTPError) as e:
            logger.warning(f"Stored session not restored: {e}")
            session = None
        self._pending.clear()
        identity = to_identity(session)
        await self._emit(AuthEvent.INITIAL_SESSION, identity)
        return identity

    async def get_session(self) -> Identity | None:
        try:
            session = await self._client.get_session()
        except AuthApiError as e:
            logger.warning(f"Session refresh rejected, signing out locally: {e.message}")
            await self._drop_local_session()
            self._pending.append((AuthEvent.SIGNED_OUT, None))
            session = None
        except (AuthError, httpx.HTTPError) as e:
            logger.warning(f"Session refresh failed: {e}")
            session = None
        await self._flush()
        return to_identity(session)

    async def sign_in_with_password(self, email: str, password: str) -> Identity:
        try:
            response = await self._client.sign_in_with_password(
                {"email": email, "password": password},
            )
        except (AuthError, httpx.HTTPError) as e:
            raise _auth_error(e)
        if response.session is None:
            raise AuthenticationError("Sign-in returned no session")
        await self._flush()
        return to_identity(response.session)

    async def sign_up(self, email: str, password: str) -> Identity | None:
        """Returns None when the project requires email confirmation first."""
        try:
            response = await self._client.sign_up({"email": email, "password": password})
        except (AuthError, httpx.HTTPError) as e:
            raise _auth_error(e)
        if response.session is None:
            logger.info("Sign-up accepted; awaiting email confirmation")
            return None
        await self._flush()
        return to_identity(response.session)

    async def sign_out(self) -> None:
        try:
            await self._client.sign_out()
        except (AuthError, httpx.HTTPError) as e:
            logger.warning(f"Remote sign-out failed, signing out locally: {e}")
            await self._drop_local_session()
            self._pending.append((AuthEvent.SIGNED_OUT, None))
        await self._flush()
