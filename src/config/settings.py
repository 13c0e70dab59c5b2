"""
Runtime Configuration for the Polymarket trading tools

pydantic-settings based configuration. Every field can be overridden via an
environment variable of the same name (case-insensitive) or a local `.env`.

Usage:
    from config.settings import get_settings

    settings = get_settings()
    rpc = settings.polygon_rpc_url

    # Override via environment:
    # export GAS_PRICE_GWEI=150
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator

from config.constants import (
    API_TIMEOUT_SEC,
    APPROVAL_GAS_LIMIT,
    APPROVAL_GAS_PRICE_GWEI,
    CLOB_API_URL,
    LOG_LEVEL,
    POLYGON_CHAIN_ID,
    POLYGON_RPC_URL,
    POLYMARKET_DATA_API_URL,
    POLYMARKET_GAMMA_API_URL,
    STRUCTURED_LOGGING,
    TX_RECEIPT_TIMEOUT_SEC,
)


class TradingSettings(BaseSettings):
    """
    Trading session configuration

    Secrets (private key, cached CLOB credentials) are optional: without a
    private key the tools still serve read-only market data, and without a
    complete credential triple the credentials are derived at startup.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

    # ============================================================================
    # WALLET & CREDENTIALS
    # ============================================================================

    polymarket_private_key: Optional[str] = Field(
        default=None,
        description="Hex private key of the signing wallet (with or without 0x)",
        repr=False
    )

    clob_api_key: Optional[str] = Field(default=None, description="Cached CLOB API key")
    clob_secret: Optional[str] = Field(default=None, description="Cached CLOB API secret", repr=False)
    clob_pass_phrase: Optional[str] = Field(default=None, description="Cached CLOB API passphrase", repr=False)

    signature_type: int = Field(
        default=0,
        description="Order signature type: 0 = EOA, 1 = Poly proxy, 2 = Gnosis Safe",
        ge=0,
        le=2
    )

    funder_address: Optional[str] = Field(
        default=None,
        description="Address holding the funds; defaults to the signer address"
    )

    # ============================================================================
    # ENDPOINTS
    # ============================================================================

    clob_api_url: str = Field(default=CLOB_API_URL)
    gamma_api_url: str = Field(default=POLYMARKET_GAMMA_API_URL)
    data_api_url: str = Field(default=POLYMARKET_DATA_API_URL)
    polygon_rpc_url: str = Field(default=POLYGON_RPC_URL)
    chain_id: int = Field(default=POLYGON_CHAIN_ID)

    api_timeout_sec: int = Field(
        default=API_TIMEOUT_SEC,
        description="Total timeout for Gamma/Data/CLOB HTTP requests",
        ge=1,
        le=300
    )

    # ============================================================================
    # ON-CHAIN APPROVALS
    # ============================================================================

    gas_price_gwei: int = Field(
        default=APPROVAL_GAS_PRICE_GWEI,
        description="Fixed gas price for approval transactions",
        gt=0
    )

    gas_limit: int = Field(
        default=APPROVAL_GAS_LIMIT,
        description="Fixed gas limit for approval transactions",
        ge=21_000
    )

    tx_receipt_timeout_sec: int = Field(
        default=TX_RECEIPT_TIMEOUT_SEC,
        description="How long to wait for an approval receipt",
        ge=10
    )

    # ============================================================================
    # AWS SECRETS MANAGER (optional credential source)
    # ============================================================================

    aws_secret_id: Optional[str] = Field(
        default=None,
        description="Secrets Manager secret holding WALLET_PRIVATE_KEY / POLY_API_* keys"
    )
    aws_region: str = Field(default="eu-central-1")
    persist_derived_credentials: bool = Field(
        default=False,
        description="Write freshly derived CLOB credentials back to Secrets Manager"
    )

    # ============================================================================
    # LOGGING
    # ============================================================================

    log_level: str = Field(default=LOG_LEVEL)
    log_file: Optional[str] = Field(default=None, description="Rotating log file path")
    structured_logging: bool = Field(default=STRUCTURED_LOGGING)

    # ============================================================================
    # VALIDATORS
    # ============================================================================

    @field_validator('polymarket_private_key', 'clob_api_key', 'clob_secret', 'clob_pass_phrase', 'funder_address', 'aws_secret_id')
    @classmethod
    def blank_to_none(cls, v):
        """Treat empty env values as unset"""
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @property
    def cached_credentials(self) -> Optional[tuple]:
        """(key, secret, passphrase) when all three are set, else None"""
        if self.clob_api_key and self.clob_secret and self.clob_pass_phrase:
            return (self.clob_api_key, self.clob_secret, self.clob_pass_phrase)
        return None

    @property
    def has_partial_credentials(self) -> bool:
        supplied = [self.clob_api_key, self.clob_secret, self.clob_pass_phrase]
        return any(supplied) and not all(supplied)


# Singleton instance
_settings: Optional[TradingSettings] = None


def get_settings() -> TradingSettings:
    """
    Get singleton settings instance.

    Example:
        >>> settings = get_settings()
        >>> print(settings.gas_limit)
        200000
    """
    global _settings
    if _settings is None:
        _settings = TradingSettings()
    return _settings


def reload_settings() -> TradingSettings:
    """Force reload settings from environment."""
    global _settings
    _settings = TradingSettings()
    return _settings


__all__ = ['get_settings', 'reload_settings', 'TradingSettings']
