"""
Signed credentials for every call the harness makes.

Two signing domains are supported:

- ``SESSION`` -- one signer.  Produces a compact JWS that is sent as
  ``Authorization: Bearer <token>`` on behalf of a principal (distributor,
  administrator or trader).
- ``MANAGEMENT`` -- one or more named signers.  Produces a JWS in General
  JSON Serialization (one payload, one signature per signer, each tagged
  with the signer name as ``kid``).  The ledger's management API takes this
  document as the request body of privileged calls.

Tokens are minted per request and never cached, so a long run never trips
over an expired credential.

Claims:
    - principal claims (``email``, ``uid``, ``level``, ``state``), if any
    - caller-supplied extra claims (e.g. ``data`` for management calls)
    - ``iat`` / ``exp`` -- issued-at and expiry, ``exp`` five minutes out
    - ``jti`` -- random token id, unique per token
    - ``iss`` / ``aud`` / ``sub`` -- issuer, audience list, subject
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

import jwt
from jwt.algorithms import get_default_algorithms

from .config import DEFAULT_TOKEN_LIFETIME, Config, SignerConfig
from .errors import ConfigurationError, SigningError
from .keys import decode_private_key, ensure_loadable
from .principals import Principal

logger = logging.getLogger(__name__)


class SigningDomain(str, Enum):
    SESSION = "session"
    MANAGEMENT = "management"


class CredentialProvider:
    """
    Issues fresh signed tokens for principals in either signing domain.

    All key material is decoded and validated in the constructor; a missing
    key, an unparseable key or an unknown algorithm raises
    :class:`ConfigurationError` before any request is made.
    """

    def __init__(
        self,
        session_signer: SignerConfig,
        management_signers: Iterable[SignerConfig],
        *,
        lifetime: timedelta = timedelta(seconds=DEFAULT_TOKEN_LIFETIME),
        issuer: str = Config.TOKEN_ISSUER,
        audience: Iterable[str] = Config.TOKEN_AUDIENCE,
    ):
        self._session_signer = _prepare_signer(session_signer)
        self._management_signers = tuple(_prepare_signer(s) for s in management_signers)
        if not self._management_signers:
            raise ConfigurationError("At least one management signer is required")

        names = [signer.name for signer in self._management_signers]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Management signer names must be unique: {names}")

        self._lifetime = lifetime
        self._issuer = issuer
        self._audience = list(audience)

    @property
    def management_signer_names(self) -> tuple[str, ...]:
        return tuple(signer.name for signer in self._management_signers)

    def issue(
        self,
        principal: Principal | None,
        domain: SigningDomain = SigningDomain.SESSION,
        extra_claims: Mapping[str, Any] | None = None,
    ) -> str:
        """
        Mint a new token for *principal* in *domain*.

        Args:
            principal: The identity to embed.  Required for ``SESSION``;
                optional for ``MANAGEMENT`` where the signers themselves are
                the privileged identity.
            domain: Which key set signs the token.
            extra_claims: Additional claims merged over the principal's.

        Returns:
            A compact JWS for ``SESSION``, or the JSON text of a General
            JSON Serialization JWS for ``MANAGEMENT``.

        Raises:
            SigningError: If any configured signer fails to sign.
        """
        claims = self._claims(principal, domain, extra_claims)
        if domain is SigningDomain.SESSION:
            if principal is None:
                raise SigningError("Session tokens require a principal")
            return self._sign_compact(claims)
        return self._sign_multisig(claims)

    def _claims(
        self,
        principal: Principal | None,
        domain: SigningDomain,
        extra_claims: Mapping[str, Any] | None,
    ) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        claims: dict[str, Any] = {}
        if principal is not None:
            claims.update(principal.claims())
        if extra_claims:
            claims.update(extra_claims)
        claims.update(
            {
                "iat": int(now.timestamp()),
                "exp": int((now + self._lifetime).timestamp()),
                "jti": uuid.uuid4().hex,
                "iss": self._issuer,
                "aud": list(self._audience),
                "sub": domain.value,
            }
        )
        return claims

    def _sign_compact(self, claims: dict[str, Any]) -> str:
        signer = self._session_signer
        try:
            return jwt.encode(claims, signer.private_key, algorithm=signer.algorithm)
        except (jwt.PyJWTError, ValueError, TypeError, NotImplementedError) as exc:
            raise SigningError(f"Signer '{signer.name}' failed to sign: {exc}") from exc

    def _sign_multisig(self, claims: dict[str, Any]) -> str:
        # Every signer signs the same payload bytes; the compact pieces are
        # then regrouped into one JSON document.
        payload = json.dumps(claims, separators=(",", ":")).encode("utf-8")
        jws = jwt.PyJWS()
        encoded_payload = None
        signatures = []
        for signer in self._management_signers:
            try:
                compact = jws.encode(
                    payload,
                    signer.private_key,
                    algorithm=signer.algorithm,
                    headers={"kid": signer.name},
                )
            except (jwt.PyJWTError, ValueError, TypeError, NotImplementedError) as exc:
                raise SigningError(f"Signer '{signer.name}' failed to sign: {exc}") from exc

            protected, encoded_payload, signature = compact.split(".")
            signatures.append(
                {
                    "protected": protected,
                    "header": {"kid": signer.name},
                    "signature": signature,
                }
            )

        logger.debug("Signed management token with %d signature(s)", len(signatures))
        return json.dumps({"payload": encoded_payload, "signatures": signatures})


def _prepare_signer(signer: SignerConfig) -> SignerConfig:
    if not signer.name or not signer.name.strip():
        raise ConfigurationError("Signer name must be a non-empty string")
    if signer.algorithm not in get_default_algorithms():
        raise ConfigurationError(
            f"Unsupported algorithm '{signer.algorithm}' for signer '{signer.name}'"
        )

    pem = decode_private_key(signer.private_key)
    ensure_loadable(pem, signer.name)
    return SignerConfig(name=signer.name.strip(), private_key=pem, algorithm=signer.algorithm)


def split_general_jws(document: str | Mapping[str, Any]) -> list[tuple[str, str]]:
    """
    Turn a General JSON Serialization JWS into ``(kid, compact)`` pairs.

    Each compact token can be verified on its own with :func:`jwt.decode`.
    """
    data = json.loads(document) if isinstance(document, str) else document
    pairs = []
    for entry in data["signatures"]:
        compact = f"{entry['protected']}.{data['payload']}.{entry['signature']}"
        pairs.append((entry["header"]["kid"], compact))
    return pairs
