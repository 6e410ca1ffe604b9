"""Per-integration credentials and sync defaults read from the environment."""

from __future__ import annotations

from dataclasses import dataclass

from .env import decode_base64_var, optional_env_var

DEFAULT_ACTOR_VAR = "INTEGRATION_DEFAULT_USER"


@dataclass(frozen=True, slots=True)
class BalenaApiToken:
    """Key material for the user-directory webhooks.

    ``public_key`` verifies the remote signature, ``private_key`` decrypts the
    envelope addressed to us. Both are PEM bytes.
    """

    api: str | None = None
    public_key: bytes | None = None
    private_key: bytes | None = None


@dataclass(frozen=True, slots=True)
class FlowdockToken:
    api: str | None = None
    signature: str | None = None


@dataclass(frozen=True, slots=True)
class OutreachToken:
    app_id: str | None = None
    app_secret: str | None = None
    signature: str | None = None

    @property
    def has_app_credentials(self) -> bool:
        return bool(self.app_id and self.app_secret)


@dataclass(frozen=True, slots=True)
class TypeformToken:
    api: str | None = None
    signature: str | None = None


type IntegrationToken = BalenaApiToken | FlowdockToken | OutreachToken | TypeformToken


@dataclass(frozen=True, slots=True)
class SyncConfig:
    default_actor: str | None = None


def _pem_var(name: str) -> bytes | None:
    value = optional_env_var(name)
    return decode_base64_var(name, value) if value is not None else None


def get_balena_api_token() -> BalenaApiToken | None:
    token = BalenaApiToken(
        api=optional_env_var("INTEGRATION_BALENA_API_TOKEN"),
        public_key=_pem_var("INTEGRATION_BALENA_API_PUBLIC_KEY"),
        private_key=_pem_var("INTEGRATION_BALENA_API_PRIVATE_KEY"),
    )
    return token if token != BalenaApiToken() else None


def get_flowdock_token() -> FlowdockToken | None:
    token = FlowdockToken(
        api=optional_env_var("INTEGRATION_FLOWDOCK_TOKEN"),
        signature=optional_env_var("INTEGRATION_FLOWDOCK_SIGNATURE_KEY"),
    )
    return token if token != FlowdockToken() else None


def get_outreach_token() -> OutreachToken | None:
    token = OutreachToken(
        app_id=optional_env_var("INTEGRATION_OUTREACH_APP_ID"),
        app_secret=optional_env_var("INTEGRATION_OUTREACH_APP_SECRET"),
        signature=optional_env_var("INTEGRATION_OUTREACH_SIGNATURE_KEY"),
    )
    return token if token != OutreachToken() else None


def get_typeform_token() -> TypeformToken | None:
    token = TypeformToken(
        api=optional_env_var("INTEGRATION_TYPEFORM_TOKEN"),
        signature=optional_env_var("INTEGRATION_TYPEFORM_SIGNATURE_KEY"),
    )
    return token if token != TypeformToken() else None


_TOKEN_LOADERS = {
    "balena-api": get_balena_api_token,
    "flowdock": get_flowdock_token,
    "outreach": get_outreach_token,
    "typeform": get_typeform_token,
}


def get_integration_token(source: str) -> IntegrationToken | None:
    """Return the credentials for ``source`` or ``None`` when it is unconfigured."""

    loader = _TOKEN_LOADERS.get(source)
    return loader() if loader is not None else None


def get_sync_config() -> SyncConfig:
    return SyncConfig(default_actor=optional_env_var(DEFAULT_ACTOR_VAR))
