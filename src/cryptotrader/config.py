"""Configuration loader for cryptotrader"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional
from dotenv import load_dotenv

from cryptotrader.errors import ConfigurationError
from cryptotrader.exchanges.ccxt_adapter import DEFAULT_EXCHANGE, resolve_exchange_name
from cryptotrader.fiat import DEFAULT_FIAT_API_URL
from cryptotrader.rates.balances import DEFAULT_PIVOT, DEFAULT_USD_CURRENCY

DEFAULT_FIAT_CURRENCY = "CAD"
DEFAULT_FIAT_TIMEOUT_SEC = 10.0
DEFAULT_TICKER_MIN_INTERVAL_SEC = 1.0  # one ticker snapshot per second
DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_BASE = 0.5
DEFAULT_DIVERSIFY_N = 30
DEFAULT_LOG_LEVEL = "INFO"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Config:
    """Configuration manager for cryptotrader

    Loads configuration from:
    1. Command-line overrides
    2. Environment variables (.env file)
    3. JSON configuration file
    4. Default values
    """

    def __init__(self, config_file: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None):
        """Initialize configuration

        Args:
            config_file: Optional path to JSON config file
            overrides: Optional lowercase key -> value taking precedence over everything
        """
        self.overrides = {key: value for key, value in (overrides or {}).items() if value is not None}

        # Load environment variables
        load_dotenv()

        # Load JSON config if provided
        self.json_config = {}
        if config_file and Path(config_file).exists():
            with open(config_file, 'r') as f:
                self.json_config = json.load(f)

        # Build complete config
        self.config = self._build_config()

    def _build_config(self) -> Dict[str, Any]:
        """Build configuration from all sources

        Priority: overrides > ENV vars > JSON config > Defaults
        """
        exchange = str(self._get('EXCHANGE', DEFAULT_EXCHANGE)).lower()
        try:
            exchange = resolve_exchange_name(exchange)
        except ConfigurationError:
            pass  # reported by validate()

        config = {
            # Exchange settings
            'exchange': exchange,
            'exchange_config': self._get_exchange_config(exchange),
            'ticker_min_interval_sec': self._get_float(
                'TICKER_MIN_INTERVAL_SEC', DEFAULT_TICKER_MIN_INTERVAL_SEC
            ),
            'max_retries': self._get_int('MAX_RETRIES', DEFAULT_MAX_RETRIES),
            'backoff_base': self._get_float('BACKOFF_BASE', DEFAULT_BACKOFF_BASE),

            # Valuation settings
            'skip_unpriceable': self._get_bool('SKIP_UNPRICEABLE', True),
            'fiat_currency': str(self._get('FIAT_CURRENCY', DEFAULT_FIAT_CURRENCY)).upper(),
            'pivot_currency': str(self._get('PIVOT_CURRENCY', DEFAULT_PIVOT)).upper(),
            'usd_currency': str(self._get('USD_CURRENCY', DEFAULT_USD_CURRENCY)).upper(),
            'fiat_api_url': self._get('FIAT_API_URL', DEFAULT_FIAT_API_URL),
            'fiat_timeout_sec': self._get_float('FIAT_TIMEOUT_SEC', DEFAULT_FIAT_TIMEOUT_SEC),

            # Strategy settings
            'diversify_default_n': self._get_int('DIVERSIFY_DEFAULT_N', DEFAULT_DIVERSIFY_N),

            # Logging
            'log_level': str(self._get('LOG_LEVEL', DEFAULT_LOG_LEVEL)).upper(),
        }

        return config

    def _get_exchange_config(self, exchange: str) -> Dict[str, Any]:
        """Get exchange-specific configuration including API keys"""
        exchange_config = {
            'enableRateLimit': self._get_bool('ENABLE_RATE_LIMIT', True),
        }

        # Add API credentials if available
        prefix = exchange.upper()
        api_key = self._get(f'{prefix}_API_KEY')
        api_secret = self._get(f'{prefix}_API_SECRET')
        if api_key and api_secret:
            exchange_config['apiKey'] = api_key
            exchange_config['secret'] = api_secret

        # Merge with JSON config if present
        json_exchange_config = self.json_config.get('exchange_config', {})
        exchange_config.update(json_exchange_config)

        return exchange_config

    def _get(self, key: str, default: Any = None) -> Any:
        """Get configuration value

        Priority: override > ENV var > JSON config > default
        """
        if key.lower() in self.overrides:
            return self.overrides[key.lower()]

        # Check environment variable
        env_value = os.getenv(key)
        if env_value is not None:
            return env_value

        # Check JSON config (lowercase key)
        json_key = key.lower()
        if json_key in self.json_config:
            return self.json_config[json_key]

        return default

    def _get_int(self, key: str, default: int = 0) -> int:
        """Get integer configuration value"""
        value = self._get(key, default)
        try:
            return int(value)
        except (ValueError, TypeError):
            return default

    def _get_float(self, key: str, default: float = 0.0) -> float:
        """Get float configuration value"""
        value = self._get(key, default)
        try:
            return float(value)
        except (ValueError, TypeError):
            return default

    def _get_bool(self, key: str, default: bool = False) -> bool:
        """Get boolean configuration value"""
        value = self._get(key, default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ('true', '1', 'yes', 'on')
        return default

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key"""
        return self.config.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        """Get configuration as dictionary"""
        return self.config.copy()

    def has_credentials(self) -> bool:
        """Check if exchange API credentials are configured"""
        exchange_config = self.config.get('exchange_config', {})
        return bool(exchange_config.get('apiKey') and exchange_config.get('secret'))

    def validate(self) -> list:
        """Validate configuration and return list of issues

        Returns:
            List of validation error messages (empty if valid). Messages
            prefixed with ``WARNING`` do not prevent running.
        """
        issues = []

        try:
            resolve_exchange_name(self.config.get('exchange'))
        except ConfigurationError as exc:
            issues.append(str(exc))

        if not self.has_credentials():
            issues.append(
                "WARNING: exchange API credentials not configured; only public commands will work"
            )

        if self.config.get('pivot_currency') == self.config.get('usd_currency'):
            issues.append("pivot_currency and usd_currency must differ")

        # Validate numeric ranges
        if self.config.get('ticker_min_interval_sec', 0) < 0:
            issues.append("ticker_min_interval_sec must not be negative")

        if self.config.get('max_retries', 0) < 1:
            issues.append("max_retries must be at least 1")

        if self.config.get('backoff_base', 0) <= 0:
            issues.append("backoff_base must be positive")

        if self.config.get('fiat_timeout_sec', 0) <= 0:
            issues.append("fiat_timeout_sec must be positive")

        if self.config.get('diversify_default_n', 0) < 1:
            issues.append("diversify_default_n must be at least 1")

        if self.config.get('log_level') not in LOG_LEVELS:
            issues.append(f"log_level must be one of {', '.join(LOG_LEVELS)}")

        return issues


def create_default_config(output_path: str) -> Dict[str, Any]:
    """Write a default JSON configuration file and return its contents"""
    defaults = {
        'exchange': DEFAULT_EXCHANGE,
        'exchange_config': {'enableRateLimit': True},
        'fiat_currency': DEFAULT_FIAT_CURRENCY,
        'pivot_currency': DEFAULT_PIVOT,
        'usd_currency': DEFAULT_USD_CURRENCY,
        'skip_unpriceable': True,
        'fiat_api_url': DEFAULT_FIAT_API_URL,
        'fiat_timeout_sec': DEFAULT_FIAT_TIMEOUT_SEC,
        'ticker_min_interval_sec': DEFAULT_TICKER_MIN_INTERVAL_SEC,
        'max_retries': DEFAULT_MAX_RETRIES,
        'backoff_base': DEFAULT_BACKOFF_BASE,
        'diversify_default_n': DEFAULT_DIVERSIFY_N,
        'log_level': DEFAULT_LOG_LEVEL,
    }
    path = Path(output_path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(defaults, f, indent=2)
    return defaults
