"""Access to the Trakt credentials configured for the service."""

from __future__ import annotations

from ..config import Settings
from ..services.trakt import TraktAuth


class CredentialGate:
    """Reports whether Trakt credentials are usable and hands them out."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def has_valid_credentials(self) -> bool:
        return bool(self._settings.trakt_client_id and self._settings.trakt_access_token)

    def get_authenticated_handle(self) -> TraktAuth:
        """Return the handle used for authenticated Trakt calls.

        Raises ``LookupError`` when credentials are missing; callers are
        expected to check ``has_valid_credentials`` first.
        """

        if not self.has_valid_credentials():
            raise LookupError("Trakt credentials are not configured")
        return TraktAuth(
            client_id=self._settings.trakt_client_id or "",
            access_token=self._settings.trakt_access_token or "",
            username=self._settings.trakt_username or "me",
        )
