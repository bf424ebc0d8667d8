import threading
from unittest.mock import MagicMock

import requests

from rentshare.orders.client import BackendClient
from conftest import json_response


def make_client(token_refresher=None):
    client = BackendClient("https://db.test/", "anon", access_token="user-token", timeout=5,
                           token_refresher=token_refresher)
    client.http = MagicMock()
    client._new_session = lambda: client.http
    return client


def sent_token(call):
    return call.kwargs['headers']['Authorization']


def test_headers_use_user_token():
    client = BackendClient("https://db.test", "anon", access_token="user-token")
    assert client.headers['apikey'] == "anon"
    assert client.access_token == "user-token"


def test_headers_fall_back_to_anon_key():
    client = BackendClient("https://db.test", "anon")
    assert client.access_token == "anon"


def test_select_orders_builds_filtered_query():
    client = make_client()
    client.http.request.return_value = json_response([{'id': 'o1'}])

    rows = client.select_orders('orders', '*, listing:listings(title)', 'buyer_id', 'u1')

    assert rows == [{'id': 'o1'}]
    method, url = client.http.request.call_args.args
    kwargs = client.http.request.call_args.kwargs
    assert method == 'GET'
    assert url == "https://db.test/rest/v1/orders"
    assert kwargs['params'] == {
        'select': '*, listing:listings(title)',
        'buyer_id': 'eq.u1',
        'order': 'created_at.desc',
    }
    assert kwargs['headers'] == {'Authorization': 'Bearer user-token'}
    assert kwargs['timeout'] == 5


def test_select_orders_returns_none_on_network_error():
    client = make_client()
    client.http.request.side_effect = requests.exceptions.ConnectionError("down")

    assert client.select_orders('orders', '*', 'buyer_id', 'u1') is None


def test_select_orders_returns_none_on_http_error():
    client = make_client()
    response = json_response({'message': 'permission denied'}, status_code=401)
    response.raise_for_status.side_effect = requests.exceptions.HTTPError("401")
    client.http.request.return_value = response

    assert client.select_orders('service_orders', '*', 'provider_id', 'u1') is None
    assert client.http.request.call_count == 1


def test_select_orders_returns_none_on_bad_json():
    client = make_client()
    response = json_response(None)
    response.content = b'<html>'
    response.json.side_effect = ValueError("not json")
    client.http.request.return_value = response

    assert client.select_orders('orders', '*', 'buyer_id', 'u1') is None


def test_select_orders_rejects_non_list_payload():
    client = make_client()
    client.http.request.return_value = json_response({'id': 'o1'})

    assert client.select_orders('orders', '*', 'buyer_id', 'u1') is None


def test_update_status_patches_one_row():
    client = make_client()
    client.http.request.return_value = json_response([{'id': 'o1', 'status': 'accepted'}])

    row = client.update_status('orders', 'o1', 'accepted')

    assert row == {'id': 'o1', 'status': 'accepted'}
    kwargs = client.http.request.call_args.kwargs
    assert client.http.request.call_args.args[0] == 'PATCH'
    assert kwargs['params'] == {'id': 'eq.o1'}
    assert kwargs['json'] == {'status': 'accepted'}
    assert kwargs['headers'] == {
        'Authorization': 'Bearer user-token',
        'Prefer': 'return=representation',
    }


def test_update_status_none_when_no_row_matched():
    client = make_client()
    client.http.request.return_value = json_response([])

    assert client.update_status('orders', 'missing', 'accepted') is None


def test_invoke_function_posts_payload():
    client = make_client()
    client.http.request.return_value = json_response({'url': 'https://pay.test'})

    result = client.invoke_function('create-payment', {'order_id': 'o1'})

    assert result == {'url': 'https://pay.test'}
    method, url = client.http.request.call_args.args
    assert method == 'POST'
    assert url == "https://db.test/functions/v1/create-payment"


def test_expired_token_is_refreshed_and_request_retried():
    refresher = MagicMock(return_value="fresh-token")
    client = make_client(token_refresher=refresher)
    client.http.request.side_effect = [
        json_response({'message': 'JWT expired'}, status_code=401),
        json_response([{'id': 'o1'}]),
    ]

    rows = client.select_orders('orders', '*', 'buyer_id', 'u1')

    assert rows == [{'id': 'o1'}]
    refresher.assert_called_once_with()
    first, retry = client.http.request.call_args_list
    assert sent_token(first) == "Bearer user-token"
    assert sent_token(retry) == "Bearer fresh-token"
    assert client.access_token == "fresh-token"


def test_failed_refresh_gives_up_after_one_attempt():
    refresher = MagicMock(return_value=None)
    client = make_client(token_refresher=refresher)
    response = json_response({'message': 'JWT expired'}, status_code=401)
    response.raise_for_status.side_effect = requests.exceptions.HTTPError("401")
    client.http.request.return_value = response

    assert client.select_orders('orders', '*', 'buyer_id', 'u1') is None
    refresher.assert_called_once_with()
    assert client.http.request.call_count == 1
    assert client.access_token == "user-token"


def test_token_already_renewed_by_another_thread_is_reused():
    refresher = MagicMock(return_value="never-used")
    client = make_client(token_refresher=refresher)
    client._access_token = "newer-token"

    assert client._renew_token("user-token") == "newer-token"
    refresher.assert_not_called()


def test_concurrent_401s_share_one_refresh():
    calls = []

    def refresher():
        calls.append(1)
        return "fresh-token"

    client = make_client(token_refresher=refresher)
    barrier = threading.Barrier(2)

    def request(method, url, **kwargs):
        if kwargs['headers']['Authorization'] == "Bearer user-token":
            barrier.wait(timeout=5)
            return json_response({'message': 'JWT expired'}, status_code=401)
        return json_response([{'id': url.rsplit('/', 1)[-1]}])

    client.http.request.side_effect = request
    results = {}

    def load(table):
        results[table] = client.select_orders(table, '*', 'buyer_id', 'u1')

    threads = [threading.Thread(target=load, args=(t,)) for t in ('orders', 'service_orders')]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    assert results == {'orders': [{'id': 'orders'}], 'service_orders': [{'id': 'service_orders'}]}
    assert len(calls) == 1


def test_each_thread_gets_its_own_session():
    client = BackendClient("https://db.test", "anon", access_token="user-token")
    sessions = {}

    def grab(name):
        sessions[name] = client._get_session()

    threads = [threading.Thread(target=grab, args=(n,)) for n in ('a', 'b')]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    assert sessions['a'] is not sessions['b']
    assert sessions['a'].headers['apikey'] == "anon"
    assert client._get_session() is client._get_session()
