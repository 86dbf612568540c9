"""Relay configuration loaded from environment variables."""

import os

from pydantic import BaseModel


class RelayConfig(BaseModel, frozen=True):
    """Process wide relay configuration.

    Built once at startup by :func:`load_config` and handed to the
    components that need it.
    """

    region: str = 'us-east-1'
    language_code: str = 'en-US'
    custom_vocabulary_name: str | None = None
    content_redaction_enabled: bool = True
    content_redaction_type: str | None = None
    pii_entity_types: str | None = None
    call_analytics_enabled: bool = True
    default_sample_rate: int = 8000
    default_channel_count: int = 2
    provider_url: str = 'ws://localhost:8765/stream'
    event_store_url: str | None = None
    relay_drain_timeout: float = 0.0
    log_level: str = 'INFO'

    @property
    def resolved_provider_url(self):
        """Provider URL with any ``{region}`` placeholder filled in."""
        return self.provider_url.format(region=self.region)


def _optional(environ, name):
    # Unset and empty variables both mean "not configured"
    return environ.get(name) or None


def _flag(environ, name, default):
    return environ.get(name, default).strip().lower() == 'true'


def load_config(environ=None):
    """Loads configuration from environment variables.

    :param environ: Mapping to read from, defaults to ``os.environ``.
    :rtype: RelayConfig
    """
    if environ is None:
        environ = os.environ
    return RelayConfig(
        region=environ.get('AWS_REGION') or 'us-east-1',
        language_code=environ.get('TRANSCRIBE_LANGUAGE_CODE') or 'en-US',
        custom_vocabulary_name=_optional(environ, 'CUSTOM_VOCABULARY_NAME'),
        content_redaction_enabled=_flag(
            environ, 'IS_CONTENT_REDACTION_ENABLED', 'true'),
        content_redaction_type=_optional(environ, 'CONTENT_REDACTION_TYPE'),
        pii_entity_types=_optional(environ, 'TRANSCRIBE_PII_ENTITY_TYPES'),
        call_analytics_enabled=_flag(environ, 'IS_TCA_ENABLED', 'true'),
        default_sample_rate=environ.get('DEFAULT_SAMPLE_RATE') or 8000,
        default_channel_count=environ.get('DEFAULT_CHANNEL_COUNT') or 2,
        provider_url=(environ.get('TRANSCRIBE_PROVIDER_URL')
                      or 'ws://localhost:8765/stream'),
        event_store_url=_optional(environ, 'EVENT_STORE_URL'),
        relay_drain_timeout=environ.get('RELAY_DRAIN_TIMEOUT') or 0.0,
        log_level=environ.get('LOG_LEVEL') or 'INFO',
    )
