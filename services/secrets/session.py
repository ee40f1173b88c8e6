"""
Session builder that turns an effective configuration and a resolved authentication strategy into an authenticated Conjur client handle. The appliance URL, account and TLS trust material are validated first, the strategy is dispatched to the matching authenticator (login/API key, AWS IAM, or ambient token/login/netrc credentials), and a single eager authentication proves the session before it is handed out. Every failure is reported as an AuthError whose kind separates invalid configuration from rejected credentials and from an unreachable network, and no partially configured client is ever returned.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import netrc
import ssl
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Callable, Dict, Optional

import httpx
from cryptography import x509
from pydantic import SecretStr

from models.secrets.config import AmbientCredentials, EffectiveConfig
from models.secrets.strategies import Ambient, AuthStrategy, CloudIAM, StaticKey
from services.common.url_utils import normalize_appliance_url
from services.secrets.aws_iam import (
    DEFAULT_ROLE_SESSION_NAME,
    IAMFailure,
    IAMSigningError,
    signed_identity_headers,
)
from services.secrets.conjur_client import (
    ApiKeyAuthenticator,
    Authenticator,
    ConjurAPIError,
    ConjurClient,
    ConjurClientError,
    IAMAuthenticator,
    TokenAuthenticator,
    VerifyTypes,
)
from services.secrets.errors import AuthError, AuthErrorKind

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

IAMSigner = Callable[[CloudIAM], Dict[str, str]]


@dataclass(frozen=True)
class ClientHandle:
    config: EffectiveConfig
    strategy: AuthStrategy
    client: ConjurClient = field(repr=False, compare=False)

    @property
    def strategy_kind(self) -> str:
        return self.strategy.kind

    @property
    def account(self) -> str:
        return self.client.account

    def close(self) -> None:
        self.client.close()


def _appliance_url(config: EffectiveConfig) -> str:
    try:
        return normalize_appliance_url(config.appliance_url)
    except ValueError as exc:
        if not config.appliance_url:
            raise AuthError(AuthErrorKind.INVALID_CONFIG, "Conjur appliance URL is not configured") from exc
        raise AuthError(AuthErrorKind.INVALID_CONFIG, "Conjur appliance URL is malformed") from exc


def _tls_verify(config: EffectiveConfig) -> VerifyTypes:
    if config.ssl_cert:
        try:
            x509.load_pem_x509_certificate(config.ssl_cert.encode("utf-8"))
            return ssl.create_default_context(cadata=config.ssl_cert)
        except (ValueError, ssl.SSLError) as exc:
            raise AuthError(AuthErrorKind.INVALID_CONFIG, "Conjur SSL certificate is not a valid PEM certificate") from exc

    if config.ssl_cert_path:
        path = Path(config.ssl_cert_path).expanduser()
        if not path.is_file():
            raise AuthError(AuthErrorKind.INVALID_CONFIG, f"Conjur SSL certificate file {path} does not exist")
        try:
            return ssl.create_default_context(cafile=str(path))
        except (OSError, ssl.SSLError) as exc:
            raise AuthError(AuthErrorKind.INVALID_CONFIG, f"Conjur SSL certificate file {path} could not be loaded") from exc

    return True


def _netrc_authenticator(config: EffectiveConfig, appliance_url: str) -> Optional[ApiKeyAuthenticator]:
    if not config.netrc_path:
        return None
    path = Path(config.netrc_path).expanduser()
    if not path.is_file():
        return None
    try:
        entries = netrc.netrc(str(path))
    except (netrc.NetrcParseError, OSError) as exc:
        raise AuthError(AuthErrorKind.INVALID_CONFIG, f"netrc file {path} could not be parsed") from exc

    found = entries.authenticators(f"{appliance_url}/authn")
    if not found:
        return None
    login, _, api_key = found
    if not login or not api_key:
        return None
    return ApiKeyAuthenticator(login, SecretStr(api_key))


def _ambient_authenticator(
    config: EffectiveConfig,
    appliance_url: str,
    ambient: AmbientCredentials,
) -> Authenticator:
    if ambient.token_file:
        return TokenAuthenticator(token_file=ambient.token_file)
    if ambient.token.get_secret_value():
        return TokenAuthenticator(token=ambient.token)
    if ambient.login and ambient.api_key.get_secret_value():
        return ApiKeyAuthenticator(ambient.login, ambient.api_key)

    from_netrc = _netrc_authenticator(config, appliance_url)
    if from_netrc is not None:
        return from_netrc

    raise AuthError(
        AuthErrorKind.INVALID_CONFIG,
        "No Conjur credentials were supplied and none were found in the environment",
    )


def _default_iam_signer(strategy: CloudIAM, role_session_name: str) -> Dict[str, str]:
    return signed_identity_headers(
        strategy.iam_role,
        strategy.account,
        strategy.region,
        role_session_name=role_session_name,
    )


def _authenticator_for(
    strategy: AuthStrategy,
    config: EffectiveConfig,
    appliance_url: str,
    ambient: AmbientCredentials,
    iam_signer: Optional[IAMSigner],
    role_session_name: str,
) -> Authenticator:
    if isinstance(strategy, StaticKey):
        return ApiKeyAuthenticator(strategy.login, strategy.api_key)
    if isinstance(strategy, CloudIAM):
        if iam_signer is None:
            signer = partial(_default_iam_signer, strategy, role_session_name)
        else:
            signer = partial(iam_signer, strategy)
        return IAMAuthenticator(strategy.login, strategy.service_id, signer)
    if isinstance(strategy, Ambient):
        return _ambient_authenticator(config, appliance_url, ambient)
    raise AuthError(AuthErrorKind.INVALID_CONFIG, f"Unsupported authentication strategy {strategy!r}")


def _auth_error_for_status(status_code: int) -> AuthErrorKind:
    if status_code in (401, 403):
        return AuthErrorKind.REJECTED_CREDENTIALS
    if status_code >= 500:
        return AuthErrorKind.NETWORK_UNAVAILABLE
    return AuthErrorKind.INVALID_CONFIG


_IAM_FAILURE_KINDS = {
    IAMFailure.CREDENTIALS: AuthErrorKind.INVALID_CONFIG,
    IAMFailure.DENIED: AuthErrorKind.REJECTED_CREDENTIALS,
    IAMFailure.NETWORK: AuthErrorKind.NETWORK_UNAVAILABLE,
}


def _authenticate(client: ConjurClient) -> None:
    try:
        client.authenticate()
    except ConjurAPIError as exc:
        raise AuthError(
            _auth_error_for_status(exc.status_code),
            f"Conjur {client.authenticator_name} authentication failed with status {exc.status_code}",
        ) from exc
    except IAMSigningError as exc:
        raise AuthError(_IAM_FAILURE_KINDS[exc.reason], str(exc)) from exc
    except ConjurClientError as exc:
        raise AuthError(AuthErrorKind.INVALID_CONFIG, str(exc)) from exc
    except (httpx.UnsupportedProtocol, httpx.InvalidURL) as exc:
        raise AuthError(AuthErrorKind.INVALID_CONFIG, "Conjur appliance URL is not usable") from exc
    except httpx.TimeoutException as exc:
        raise AuthError(AuthErrorKind.NETWORK_UNAVAILABLE, "Timed out contacting Conjur") from exc
    except httpx.TransportError as exc:
        raise AuthError(AuthErrorKind.NETWORK_UNAVAILABLE, "Unable to reach Conjur") from exc
    except httpx.RequestError as exc:
        raise AuthError(AuthErrorKind.INVALID_CONFIG, "Conjur returned an unreadable authentication response") from exc


def build_session(
    config: EffectiveConfig,
    strategy: AuthStrategy,
    *,
    ambient: Optional[AmbientCredentials] = None,
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.BaseTransport] = None,
    iam_signer: Optional[IAMSigner] = None,
    role_session_name: str = DEFAULT_ROLE_SESSION_NAME,
) -> ClientHandle:
    appliance_url = _appliance_url(config)
    if not config.account:
        raise AuthError(AuthErrorKind.INVALID_CONFIG, "Conjur account is not configured")
    verify = _tls_verify(config)

    authenticator = _authenticator_for(
        strategy,
        config,
        appliance_url,
        ambient or AmbientCredentials(),
        iam_signer,
        role_session_name,
    )
    client = ConjurClient(
        appliance_url,
        config.account,
        authenticator,
        verify=verify,
        timeout=timeout,
        transport=transport,
    )

    try:
        _authenticate(client)
    except AuthError as exc:
        client.close()
        logger.warning(
            "Conjur session for account %s via %s failed: %s (%s)",
            config.account, strategy.kind, exc, exc.kind.value,
        )
        raise
    except BaseException:
        client.close()
        raise

    logger.info(
        "Conjur session established for account %s at %s via %s",
        config.account, appliance_url, authenticator.name,
    )
    return ClientHandle(config=config, strategy=strategy, client=client)
