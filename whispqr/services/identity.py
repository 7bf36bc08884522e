"""
Host identity resolution

Authentication itself belongs to the identity provider. This module only
turns a bearer token into the host id and display name the stores trust.
"""

from __future__ import annotations

import logging
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from firebase_admin import auth as firebase_auth

from whispqr.core.config import settings
from whispqr.services.errors import AuthorizationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HostIdentity:
    host_id: str
    display_name: Optional[str] = None


class IdentityGateway(ABC):
    @abstractmethod
    def resolve(self, token: str) -> HostIdentity:
        """Return the identity behind ``token`` or raise AuthorizationError."""


class FirebaseIdentityGateway(IdentityGateway):
    """Verifies Firebase Auth ID tokens issued to the mobile app."""

    def __init__(self, app=None):
        self.app = app

    def resolve(self, token: str) -> HostIdentity:
        try:
            claims = firebase_auth.verify_id_token(token, app=self.app)
        except (ValueError, firebase_auth.InvalidIdTokenError, firebase_auth.CertificateFetchError) as exc:
            logger.warning(f"Rejected host token: {exc}")
            raise AuthorizationError("Invalid or expired host token") from exc
        return HostIdentity(host_id=claims["uid"], display_name=claims.get("name"))


class StaticTokenIdentityGateway(IdentityGateway):
    """Single configured host token, for local development without Firebase."""

    def __init__(
        self,
        token: str = settings.DEV_HOST_TOKEN,
        host_id: str = settings.DEV_HOST_ID,
        display_name: str = settings.DEV_HOST_NAME,
    ):
        self.token = token
        self.identity = HostIdentity(host_id=host_id, display_name=display_name)

    def resolve(self, token: str) -> HostIdentity:
        if not token or not secrets.compare_digest(token.encode("utf-8"), self.token.encode("utf-8")):
            raise AuthorizationError("Invalid host token")
        return self.identity
