"""HTTP sink posting identifier lists with one cookie session per user."""

from __future__ import annotations

import typing as typ

import httpx
import msgspec

from ghfeed.logging import get_logger, log_warning

if typ.TYPE_CHECKING:
    from .config import IdentityConfig

logger = get_logger(__name__)

_HTTP_OK = 200


class SessionJars:
    """Cookie jars keyed by user login.

    Each jar is owned by exactly one key and is only touched from the event
    loop thread, so lookups and cookie updates need no locking.
    """

    def __init__(self) -> None:
        """Start with no sessions."""
        self._jars: dict[str, httpx.Cookies] = {}

    def __len__(self) -> int:
        """Return the number of users with a session."""
        return len(self._jars)

    def jar_for(self, user: str) -> httpx.Cookies:
        """Return the cookie jar for ``user``, creating it on first use."""
        jar = self._jars.get(user)
        if jar is None:
            jar = self._jars[user] = httpx.Cookies()
        return jar


class IdentitySink:
    """Post identifier lists to the configured endpoint."""

    def __init__(
        self,
        config: IdentityConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        sessions: SessionJars | None = None,
    ) -> None:
        """Initialise the sink with its endpoint configuration."""
        self._config = config
        self._sessions = sessions or SessionJars()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_s)

    @property
    def sessions(self) -> SessionJars:
        """Return the per-user session cache."""
        return self._sessions

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def send(self, user: str, ids: typ.Sequence[str]) -> bool:
        """Post ``ids`` within ``user``'s session; return whether it was accepted.

        Failures are logged and reported through the return value; they never
        interrupt the caller.
        """
        payload = msgspec.json.encode(list(ids))
        # Requests are built directly so that only this user's jar is applied.
        request = httpx.Request(
            "POST",
            self._config.endpoint,
            content=payload,
            headers={
                "User-Agent": self._config.user_agent,
                "Content-Type": "application/json",
            },
        )
        jar = self._sessions.jar_for(user)
        jar.set_cookie_header(request)
        try:
            response = await self._client.send(request)
        except httpx.HTTPError as exc:
            log_warning(logger, "Identity request failed for %s: %s", user, exc)
            return False
        jar.extract_cookies(response)
        # The client stores response cookies too; keep sessions in the jars only.
        self._client.cookies.clear()

        if response.status_code != _HTTP_OK:
            log_warning(
                logger,
                "Identity request rejected (HTTP %d): %s, %s",
                response.status_code,
                response.text,
                payload.decode("utf-8"),
            )
            return False
        return True
