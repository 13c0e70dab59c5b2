"""
Tests for the tool response envelope
"""

import json

from tools.envelope import ToolResult


def test_success_carries_timestamp():
    result = ToolResult.success(orderId='0xabc')

    assert result.ok
    assert result.status == 'success'
    assert result.payload['orderId'] == '0xabc'
    assert 'timestamp' in result.payload


def test_error_shape():
    result = ToolResult.error("Market not found: x", "MARKET_NOT_FOUND")

    assert not result.ok
    assert result.to_dict() == {'status': 'error', 'message': 'Market not found: x', 'code': 'MARKET_NOT_FOUND'}


def test_error_code_may_be_null():
    assert ToolResult.error("boom").to_dict()['code'] is None


def test_status_cannot_be_overridden_by_payload():
    result = ToolResult.success(status='pending')
    assert result.to_dict()['status'] == 'success'


def test_json_starts_with_status():
    text = ToolResult.success(count=2).to_json()

    assert json.loads(text)['count'] == 2
    assert list(json.loads(text))[0] == 'status'
