"""
Tests for the CLOB credential bootstrap
"""

import asyncio
import pytest
from unittest.mock import AsyncMock, Mock, patch

import aiohttp

from eth_account import Account
from eth_account.messages import encode_typed_data
from py_clob_client.signer import Signer
from py_clob_client.signing.eip712 import sign_clob_auth_message

from config.constants import CLOB_AUTH_MESSAGE, POLYGON_CHAIN_ID
from core.credentials import CredentialBootstrap, Credentials, build_clob_auth_message
from utils.exceptions import AuthenticationError

from conftest import TEST_PRIVATE_KEY


ISSUED = {'apiKey': 'derived-key', 'secret': 'derived-secret', 'passphrase': 'derived-pass'}


def make_bootstrap(now: float = 1_700_000_000.7) -> CredentialBootstrap:
    return CredentialBootstrap('https://clob.example/', chain_id=POLYGON_CHAIN_ID, clock=lambda: now)


class TestCredentials:
    def test_from_triple_requires_all_three(self):
        assert Credentials.from_triple(('k', 's', 'p')) == Credentials('k', 's', 'p')
        assert Credentials.from_triple(('k', None, 'p')) is None
        assert Credentials.from_triple(None) is None

    def test_from_response(self):
        creds = Credentials.from_response(ISSUED)
        assert creds.key == 'derived-key'
        assert creds.passphrase == 'derived-pass'

    def test_from_response_missing_field(self):
        with pytest.raises(AuthenticationError, match="unexpected payload"):
            Credentials.from_response({'apiKey': 'only-key'})

    def test_secret_not_in_repr(self):
        assert 'test-secret' not in repr(Credentials('k', 'test-secret', 'p'))

    def test_to_api_creds(self):
        api_creds = Credentials('k', 's', 'p').to_api_creds()
        assert api_creds.api_key == 'k'
        assert api_creds.api_secret == 's'
        assert api_creds.api_passphrase == 'p'


def test_clob_auth_message_shape():
    message = build_clob_auth_message('0xabc', '123', 0, 137)
    assert message['primaryType'] == 'ClobAuth'
    assert message['domain'] == {'name': 'ClobAuthDomain', 'version': '1', 'chainId': 137}
    assert message['message']['message'] == CLOB_AUTH_MESSAGE
    assert message['message']['nonce'] == 0


@pytest.mark.asyncio
class TestCredentialBootstrap:
    async def test_cached_credentials_skip_network(self, wallet, credentials):
        bootstrap = make_bootstrap()
        with patch.object(bootstrap, '_request_credentials', new=AsyncMock()) as request:
            result = await bootstrap.derive_or_reuse(wallet, credentials)

        assert result is credentials
        request.assert_not_called()

    async def test_derives_with_nonce_zero(self, wallet):
        bootstrap = make_bootstrap()
        with patch.object(bootstrap, '_request_credentials', new=AsyncMock(return_value=ISSUED)) as request:
            result = await bootstrap.derive_or_reuse(wallet)

        assert result == Credentials('derived-key', 'derived-secret', 'derived-pass')
        headers = request.call_args.args[0]
        assert headers['POLY_ADDRESS'] == wallet.address
        assert headers['POLY_NONCE'] == '0'
        assert headers['POLY_TIMESTAMP'] == '1700000000'

    async def test_signature_recovers_to_wallet(self, wallet):
        bootstrap = make_bootstrap()
        with patch.object(bootstrap, '_request_credentials', new=AsyncMock(return_value=ISSUED)) as request:
            await bootstrap.derive_or_reuse(wallet)

        headers = request.call_args.args[0]
        typed_data = build_clob_auth_message(wallet.address, headers['POLY_TIMESTAMP'], 0, POLYGON_CHAIN_ID)
        signer = Account.recover_message(
            encode_typed_data(full_message=typed_data),
            signature=headers['POLY_SIGNATURE']
        )
        assert signer == wallet.address

    async def test_same_inputs_same_signature(self, wallet):
        first, second = make_bootstrap(), make_bootstrap()
        with patch.object(first, '_request_credentials', new=AsyncMock(return_value=ISSUED)) as req1, \
                patch.object(second, '_request_credentials', new=AsyncMock(return_value=ISSUED)) as req2:
            await first.derive_or_reuse(wallet)
            await second.derive_or_reuse(wallet)

        assert req1.call_args.args[0] == req2.call_args.args[0]

    async def test_signing_failure(self):
        broken_wallet = Mock(address='0x' + 'a' * 40)
        broken_wallet.sign_typed_data.side_effect = ValueError("bad key")

        with pytest.raises(AuthenticationError) as exc_info:
            await make_bootstrap().derive_or_reuse(broken_wallet)

        assert exc_info.value.error_code == 'SIGNING_FAILED'

    async def test_issuance_failure_propagates(self, wallet):
        bootstrap = make_bootstrap()
        failure = AuthenticationError("Credential issuance failed: HTTP 401", status_code=401)
        with patch.object(bootstrap, '_request_credentials', new=AsyncMock(side_effect=failure)):
            with pytest.raises(AuthenticationError) as exc_info:
                await bootstrap.derive_or_reuse(wallet)

        assert exc_info.value.status_code == 401

    async def test_signature_matches_sdk_signer(self, wallet):
        bootstrap = make_bootstrap()
        with patch.object(bootstrap, '_request_credentials', new=AsyncMock(return_value=ISSUED)) as request:
            await bootstrap.derive_or_reuse(wallet)

        headers = request.call_args.args[0]
        expected = sign_clob_auth_message(Signer(TEST_PRIVATE_KEY, POLYGON_CHAIN_ID), 1700000000, 0)
        assert headers['POLY_SIGNATURE'].lower() == expected.lower()


class FakeResponse:
    def __init__(self, status, payload=None, text=''):
        self.status = status
        self._payload = payload
        self._text = text

    async def json(self):
        return self._payload

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeIssuer:
    """
    Stands in for aiohttp.ClientSession: records each request and answers
    derive and create from canned responses.
    """

    def __init__(self, derive=None, create=None, error=None):
        self.derive = derive
        self.create = create
        self.error = error
        self.calls = []
        self.session_kwargs = None

    def __call__(self, **kwargs):
        self.session_kwargs = kwargs
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def _respond(self, method, url, headers, response):
        self.calls.append((method, url))
        self.headers = headers
        if self.error is not None:
            raise self.error
        return response

    def get(self, url, headers=None):
        return self._respond('GET', url, headers, self.derive)

    def post(self, url, headers=None):
        return self._respond('POST', url, headers, self.create)


DERIVE_URL = 'https://clob.example/auth/derive-api-key'
CREATE_URL = 'https://clob.example/auth/api-key'


@pytest.mark.asyncio
class TestCredentialIssuance:
    async def test_derive_hit_is_used(self, wallet):
        issuer = FakeIssuer(derive=FakeResponse(200, ISSUED))

        with patch('core.credentials.aiohttp.ClientSession', new=issuer):
            result = await make_bootstrap().derive_or_reuse(wallet)

        assert result == Credentials('derived-key', 'derived-secret', 'derived-pass')
        assert issuer.calls == [('GET', DERIVE_URL)]
        assert issuer.headers['POLY_ADDRESS'] == wallet.address
        assert isinstance(issuer.session_kwargs['timeout'], aiohttp.ClientTimeout)

    async def test_derive_miss_creates(self, wallet):
        created = {'apiKey': 'new-key', 'secret': 'new-secret', 'passphrase': 'new-pass'}
        issuer = FakeIssuer(derive=FakeResponse(404, text='not found'), create=FakeResponse(200, created))

        with patch('core.credentials.aiohttp.ClientSession', new=issuer):
            result = await make_bootstrap().derive_or_reuse(wallet)

        assert result == Credentials('new-key', 'new-secret', 'new-pass')
        assert issuer.calls == [('GET', DERIVE_URL), ('POST', CREATE_URL)]

    async def test_create_failure_keeps_status(self, wallet):
        issuer = FakeIssuer(
            derive=FakeResponse(400, text='no key'),
            create=FakeResponse(401, text='Unauthorized/Invalid api key')
        )

        with patch('core.credentials.aiohttp.ClientSession', new=issuer):
            with pytest.raises(AuthenticationError) as exc_info:
                await make_bootstrap().derive_or_reuse(wallet)

        assert exc_info.value.status_code == 401
        assert 'HTTP 401' in exc_info.value.message
        assert issuer.calls == [('GET', DERIVE_URL), ('POST', CREATE_URL)]

    @pytest.mark.parametrize('error', [
        aiohttp.ClientConnectionError('connection refused'),
        asyncio.TimeoutError(),
    ])
    async def test_transport_failure_is_wrapped(self, wallet, error):
        issuer = FakeIssuer(error=error)

        with patch('core.credentials.aiohttp.ClientSession', new=issuer):
            with pytest.raises(AuthenticationError) as exc_info:
                await make_bootstrap().derive_or_reuse(wallet)

        assert exc_info.value.original_error is error
        assert 'request failed' in exc_info.value.message
        assert issuer.calls == [('GET', DERIVE_URL)]
