"""API key pool with circular rotation under quota exhaustion."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from rich.console import Console

from tunestream.models.credentials import CredentialStats, CredentialStatus


class NoCredentialsError(ValueError):
    """Raised when the pool is created without a single usable API key."""


def mask_credential(key: str) -> str:
    """Return a log-safe rendering of an API key."""

    if not key or len(key) <= 8:
        return "********"
    return f"{key[:4]}...{key[-4:]}"


class CredentialPool:
    """Ordered set of API keys with a pointer to the presumed-active key.

    Keys are loaded once and never added or removed. Rotation scans circularly from
    just after the current key; once every key has been exhausted the pool assumes the
    provider's quota window has rolled over and marks them all active again, so a
    caller always gets a key back.
    """

    def __init__(self, keys: Iterable[str], *, console: Optional[Console] = None) -> None:
        self._console = console or Console()
        self._keys: List[str] = []
        for key in keys:
            if key and key not in self._keys:
                self._keys.append(key)
        if not self._keys:
            raise NoCredentialsError("No YouTube API key configured; set YOUTUBE_API_KEY_1.")

        self._status: Dict[str, CredentialStatus] = {key: CredentialStatus.ACTIVE for key in self._keys}
        self._current_index = 0
        self._console.log(f"Credential pool initialised with {len(self._keys)} API key(s)")

    def __len__(self) -> int:
        return len(self._keys)

    @property
    def current_index(self) -> int:
        return self._current_index

    def current(self) -> str:
        """Return the presumed-active key."""

        return self._keys[self._current_index]

    def status(self, key: str) -> Optional[CredentialStatus]:
        """Return the status of ``key`` or ``None`` if it is not part of the pool."""

        return self._status.get(key)

    def rotate(self) -> str:
        """Advance to the next active key and return it."""

        previous_index = self._current_index
        for offset in range(1, len(self._keys) + 1):
            candidate = (previous_index + offset) % len(self._keys)
            if self._status[self._keys[candidate]] is CredentialStatus.ACTIVE:
                self._current_index = candidate
                self._console.log(f"Rotated API key {previous_index + 1} -> {candidate + 1}")
                return self.current()

        self._console.log("[yellow]All API keys exhausted; resetting key status.[/yellow]")
        for key in self._keys:
            self._status[key] = CredentialStatus.ACTIVE
        return self.current()

    def mark_exhausted(self, key: str) -> None:
        """Flag ``key`` as out of quota. Unknown keys are ignored."""

        if key not in self._status:
            return
        self._status[key] = CredentialStatus.EXHAUSTED
        position = self._keys.index(key) + 1
        self._console.log(f"[yellow]Quota exhausted for API key {position} ({mask_credential(key)})[/yellow]")

    def all_exhausted(self) -> bool:
        return all(status is CredentialStatus.EXHAUSTED for status in self._status.values())

    def stats(self) -> CredentialStats:
        """Return key counts by status."""

        active = sum(1 for status in self._status.values() if status is CredentialStatus.ACTIVE)
        return CredentialStats(total=len(self._keys), active=active, exhausted=len(self._keys) - active)

    def keys(self) -> List[str]:
        return list(self._keys)


__all__ = ["CredentialPool", "NoCredentialsError", "mask_credential"]
