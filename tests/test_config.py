"""
Tests for settings, AWS secrets and shared helpers
"""

import json
import logging
import pytest
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError
from pydantic import ValidationError as PydanticValidationError

from config.aws_config import AWSConfig
from config.settings import TradingSettings
from utils.exceptions import ConfigurationError, ValidationError
from utils.helpers import epoch_to_iso, format_units, normalize_private_key, validate_ethereum_address
from utils.logger import JSONFormatter


def make_settings(**values) -> TradingSettings:
    return TradingSettings(_env_file=None, **values)


class TestTradingSettings:
    def test_defaults(self):
        settings = make_settings()

        assert settings.chain_id == 137
        assert settings.gas_price_gwei == 100
        assert settings.gas_limit == 200_000
        assert settings.signature_type == 0
        assert settings.clob_api_url == 'https://clob.polymarket.com'

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv('GAS_PRICE_GWEI', '150')
        monkeypatch.setenv('LOG_LEVEL', 'debug')

        settings = make_settings()

        assert settings.gas_price_gwei == 150
        assert settings.log_level == 'DEBUG'

    def test_blank_values_are_unset(self):
        settings = make_settings(polymarket_private_key='  ', clob_api_key='')
        assert settings.polymarket_private_key is None
        assert settings.clob_api_key is None

    def test_cached_credentials_need_all_three(self):
        assert make_settings(clob_api_key='k', clob_secret='s', clob_pass_phrase='p').cached_credentials == ('k', 's', 'p')

        partial = make_settings(clob_api_key='k', clob_secret='s', clob_pass_phrase=None)
        assert partial.cached_credentials is None
        assert partial.has_partial_credentials is True

    def test_invalid_log_level(self):
        with pytest.raises(PydanticValidationError):
            make_settings(log_level='LOUD')

    def test_signature_type_range(self):
        with pytest.raises(PydanticValidationError):
            make_settings(signature_type=3)

    def test_private_key_not_in_repr(self):
        assert 'deadbeef' not in repr(make_settings(polymarket_private_key='deadbeef'))


class TestAWSConfig:
    def _config(self, secret: dict) -> AWSConfig:
        config = AWSConfig('polymarket/trading', 'eu-central-1')
        config._secrets_client = MagicMock()
        config._secrets_client.get_secret_value.return_value = {'SecretString': json.dumps(secret)}
        return config

    def test_api_credentials_triple(self):
        config = self._config({'WALLET_PRIVATE_KEY': 'pk', 'POLY_API_KEY': 'k', 'POLY_API_SECRET': 's', 'POLY_API_PASS': 'p'})

        assert config.get_wallet_private_key() == 'pk'
        assert config.get_api_credentials() == ('k', 's', 'p')
        config._secrets_client.get_secret_value.assert_called_once()

    def test_incomplete_triple(self):
        config = self._config({'WALLET_PRIVATE_KEY': 'pk', 'POLY_API_KEY': 'k'})
        assert config.get_api_credentials() is None

    def test_update_keeps_wallet_key(self):
        config = self._config({'WALLET_PRIVATE_KEY': 'pk'})

        config.update_api_credentials('k', 's', 'p')

        stored = json.loads(config._secrets_client.update_secret.call_args.kwargs['SecretString'])
        assert stored == {'WALLET_PRIVATE_KEY': 'pk', 'POLY_API_KEY': 'k', 'POLY_API_SECRET': 's', 'POLY_API_PASS': 'p'}

    def test_missing_secret(self):
        config = AWSConfig('missing', 'eu-central-1')
        config._secrets_client = MagicMock()
        config._secrets_client.get_secret_value.side_effect = ClientError(
            {'Error': {'Code': 'ResourceNotFoundException', 'Message': 'nope'}}, 'GetSecretValue'
        )

        with pytest.raises(ConfigurationError, match="not found"):
            config.get_secrets()


class TestHelpers:
    def test_normalize_private_key(self):
        assert normalize_private_key('AB' * 32) == '0x' + 'ab' * 32
        assert normalize_private_key(' 0x' + '1' * 64 + ' ') == '0x' + '1' * 64

    @pytest.mark.parametrize('key', ['0x1234', 'zz' * 32, ''])
    def test_bad_private_key(self, key):
        with pytest.raises(ConfigurationError):
            normalize_private_key(key)

    def test_validate_address(self):
        assert validate_ethereum_address('0x' + 'a' * 40) is True
        with pytest.raises(ValidationError):
            validate_ethereum_address('0x123')

    @pytest.mark.parametrize('raw, decimals, expected', [
        (12_500_000, 6, '12.5'),
        ('1000000', 6, '1'),
        (0, 6, '0'),
        (10_000_000, 6, '10'),
        (1, 6, '0.000001'),
    ])
    def test_format_units(self, raw, decimals, expected):
        assert format_units(raw, decimals) == expected

    def test_epoch_to_iso(self):
        assert epoch_to_iso(0) == '1970-01-01T00:00:00+00:00'


def test_json_formatter_drops_secret_extras():
    record = logging.LogRecord('test', logging.INFO, __file__, 1, 'hello', None, None)
    record.order_id = '0xabc'
    record.clob_secret = 'shh'

    data = json.loads(JSONFormatter().format(record))

    assert data['message'] == 'hello'
    assert data['order_id'] == '0xabc'
    assert 'clob_secret' not in data
