from unittest.mock import MagicMock

import pytest

from rentshare.core.config import Config

ROUTES = {
    'base_url': 'https://app.test',
    'auth': '/auth',
    'messages': '/messages',
    'order_details': '/orders/{id}',
    'browse': '/browse',
    'services': '/services',
    'create_listing': '/create-listing',
    'create_service': '/create-service',
}


def item_row(order_id="o1", status="pending", counterparty="seller", **extra):
    row = {
        'id': order_id,
        'buyer_id': 'u1',
        'seller_id': 'u2',
        'status': status,
        'final_amount': 25.0,
        'quantity': 2,
        'notes': None,
        'created_at': '2026-10-01T12:00:00+00:00',
        'listing_id': 'l1',
        'listing': {'title': 'Cordless Drill', 'images': ['https://img.test/drill.jpg'], 'type': 'item'},
        counterparty: {'name': 'Sam', 'avatar_url': None},
    }
    row.update(extra)
    return row


def service_row(order_id="s1", status="pending", counterparty="provider", **extra):
    row = {
        'id': order_id,
        'buyer_id': 'u1',
        'provider_id': 'u3',
        'status': status,
        'final_amount': 80.0,
        'notes': 'Saturday morning please',
        'created_at': '2026-10-02T09:30:00+00:00',
        'listing_id': 'l2',
        'listing': {'title': 'Lawn Mowing', 'images': [], 'type': 'service'},
        counterparty: {'name': 'Alex', 'avatar_url': 'https://img.test/alex.png'},
    }
    row.update(extra)
    return row


class FakeBackend:
    """Stands in for BackendClient; rows keyed by (table, role_column)."""

    def __init__(self, rows=None):
        self.rows = rows or {}
        self.calls = []
        self.updates = []
        self.functions = []
        self.update_result = {'id': 'o1'}
        self.function_result = {'url': 'https://pay.test/checkout/1'}

    def select_orders(self, table, select, role_column, user_id):
        self.calls.append((table, role_column, user_id, select))
        result = self.rows.get((table, role_column), [])
        if isinstance(result, Exception):
            raise result
        return result

    def update_status(self, table, order_id, status):
        self.updates.append((table, order_id, status))
        return self.update_result

    def invoke_function(self, name, payload):
        self.functions.append((name, payload))
        return self.function_result


@pytest.fixture
def routes():
    return dict(ROUTES)


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def fresh_config(monkeypatch):
    monkeypatch.delenv('RENTSHARE_CONFIG', raising=False)
    monkeypatch.delenv('SUPABASE_ANON_KEY', raising=False)
    Config.reset()
    yield
    Config.reset()


def json_response(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.content = b'payload' if payload is not None else b''
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response
