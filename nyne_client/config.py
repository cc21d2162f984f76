import math
import os
import re
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from nyne_client.errors import MissingCredentialsError

DEFAULT_POLL_TIMEOUT_MS = 60_000

_PLACEHOLDER = re.compile(r"\$\{(\w+)\}")


class NyneConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_key: str = Field(repr=False)
    api_secret: str = Field(repr=False)
    debug: bool = False
    poll_timeout_ms: int = DEFAULT_POLL_TIMEOUT_MS


def resolve_env_vars(value: str, environ: Mapping[str, str]) -> str:
    """Substitute ${VAR} placeholders; unknown variables become empty"""
    return _PLACEHOLDER.sub(lambda match: environ.get(match.group(1), ""), value)


def _resolve_credential(
    raw: Mapping[str, Any], key: str, env_name: str, environ: Mapping[str, str]
) -> str:
    value = raw.get(key)
    if value is None:
        value = environ.get(env_name, "")
    return resolve_env_vars(str(value), environ)


def _poll_timeout_ms(value: Any) -> int:
    # Configured in seconds; bool is an int subclass but not a timeout
    if (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    ):
        return int(value * 1000)
    return DEFAULT_POLL_TIMEOUT_MS


def parse_config(
    raw: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> NyneConfig:
    """Build a validated config from the host's plugin config mapping.

    Keys: apiKey, apiSecret, debug, defaultPollTimeout (seconds, 10-300).
    Credentials fall back to NYNE_API_KEY / NYNE_API_SECRET.
    """
    raw = raw or {}
    environ = os.environ if environ is None else environ

    api_key = _resolve_credential(raw, "apiKey", "NYNE_API_KEY", environ)
    api_secret = _resolve_credential(raw, "apiSecret", "NYNE_API_SECRET", environ)
    if not api_key or not api_secret:
        raise MissingCredentialsError()

    return NyneConfig(
        api_key=api_key,
        api_secret=api_secret,
        debug=raw.get("debug") is True,
        poll_timeout_ms=_poll_timeout_ms(raw.get("defaultPollTimeout")),
    )


def is_configured(
    raw: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> bool:
    """True when any credential is present, resolved or not"""
    raw = raw or {}
    environ = os.environ if environ is None else environ
    return bool(
        raw.get("apiKey")
        or raw.get("apiSecret")
        or environ.get("NYNE_API_KEY")
        or environ.get("NYNE_API_SECRET")
    )
