"""Session Registry.

This module provides the write-once holder for the sessions a classifier
owns. Readiness is computed from it: the classifier is ready exactly when
every role has a session installed.

Features:
- Write-once slots: a role's session cannot be replaced once installed
- Completion gate: install() reports whether it filled the last slot,
  so exactly one caller observes readiness
- Thread-safe access: installation and readiness checks share one lock
- Explicit release: release_all() closes every session
"""

import logging
from threading import Lock
from typing import Iterable

from garment_classifier.config import MODEL_ROLES
from garment_classifier.model.session import ModelSession

logger = logging.getLogger(__name__)


class ModelRegistry:
    """Registry of provisioned sessions, keyed by model role.

    Example:
        >>> registry = ModelRegistry()
        >>> registry.install("color", color_session)
        False
        >>> registry.install("type", type_session)
        True
        >>> registry.is_complete()
        True

    Attributes:
        roles: Roles that must all be filled for the registry to be complete
    """

    def __init__(self, roles: Iterable[str] = MODEL_ROLES) -> None:
        self.roles: tuple[str, ...] = tuple(roles)

        self._sessions: dict[str, ModelSession] = {}
        self._lock = Lock()

    def install(self, role: str, session: ModelSession) -> bool:
        """Install the session for a role.

        Args:
            role: Model role ("color" or "type")
            session: Provisioned session

        Returns:
            True if this call completed the registry

        Raises:
            ValueError: If role is not one of the registry's roles
            RuntimeError: If the role already has a session
        """
        if role not in self.roles:
            raise ValueError(f"Unknown model role '{role}'. Expected one of {self.roles}")

        with self._lock:
            if role in self._sessions:
                raise RuntimeError(f"Session for role '{role}' is already installed")

            self._sessions[role] = session
            complete = len(self._sessions) == len(self.roles)

        logger.info(f"Installed {role} session: {session.name}", extra={"role": role})
        return complete

    def get(self, role: str) -> ModelSession | None:
        """Get the session for a role, or None if not provisioned yet."""
        with self._lock:
            return self._sessions.get(role)

    def missing(self) -> list[str]:
        """Roles that still have no session, in role order."""
        with self._lock:
            return [role for role in self.roles if role not in self._sessions]

    def is_complete(self) -> bool:
        """Check if every role has a session."""
        return not self.missing()

    def release_all(self) -> None:
        """Close and forget every installed session."""
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()

        for session in sessions:
            session.close()

        if sessions:
            logger.info(f"Released {len(sessions)} session(s)")
