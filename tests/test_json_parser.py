import pytest
import requests

from conftest import BASE_URL
from worklist.models import DataTable
from worklist.networking import HTTPConnection
from worklist.serialization import (
    PARSE_ERROR,
    SUCCESS,
    get_tag_recursive,
    options_response_to_table_schema,
    response_to_filtered_table,
    response_to_table,
    serialize_value,
)

PATIENTS_URL = BASE_URL + 'api/v1/patients/'


@pytest.fixture
def connection(session):
    connection = HTTPConnection(BASE_URL, session=session)
    yield connection
    connection.close()


def fetch(connection, url=PATIENTS_URL, method='GET'):
    return connection.send_blocking(requests.Request(method, url))


def test_paginated_envelope(adapter, connection):
    adapter.add('GET', PATIENTS_URL, json={
        'count': 2,
        'next': None,
        'results': [{'id': '1', 'name': 'A'}, {'id': '2', 'name': 'B'}],
    })
    table = DataTable()

    assert response_to_table(connection, fetch(connection), table) == SUCCESS
    assert table.get_column_names() == ['id', 'name']
    assert table.rows == [['1', 'A'], ['2', 'B']]


def test_pages_are_followed_in_order(adapter, connection):
    page_2 = PATIENTS_URL + '?page=2'
    adapter.add('GET', PATIENTS_URL, json={
        'count': 3,
        'next': page_2,
        'results': [{'id': '1', 'name': 'A'}, {'id': '2', 'name': 'B'}],
    })
    adapter.add('GET', page_2, json={
        'count': 3,
        'next': None,
        'results': [{'id': '3', 'name': 'C'}],
    })
    table = DataTable()

    assert response_to_table(connection, fetch(connection), table) == SUCCESS
    assert table.rows == [['1', 'A'], ['2', 'B'], ['3', 'C']]


def test_follow_next_disabled_reads_first_page_only(adapter, connection):
    adapter.add('GET', PATIENTS_URL, json={
        'count': 2,
        'next': PATIENTS_URL + '?page=2',
        'results': [{'id': '1', 'name': 'A'}],
    })
    table = DataTable()

    assert response_to_table(connection, fetch(connection), table, follow_next=False) == SUCCESS
    assert table.size() == 1
    assert adapter.requests_to('GET', PATIENTS_URL + '?page=2') == []


def test_failing_page_returns_its_status(adapter, connection):
    page_2 = PATIENTS_URL + '?page=2'
    adapter.add('GET', PATIENTS_URL, json={'count': 2, 'next': page_2, 'results': [{'id': '1'}]})
    adapter.add('GET', page_2, status=503, json={'detail': 'unavailable'})
    table = DataTable()

    assert response_to_table(connection, fetch(connection), table) == 503


def test_bare_array(adapter, connection):
    adapter.add('GET', PATIENTS_URL, json=[{'id': '1', 'name': 'A'}, {'id': '2', 'name': 'B'}])
    table = DataTable()

    assert response_to_table(connection, fetch(connection), table) == SUCCESS
    assert table.get_column_names() == ['id', 'name']
    assert table.size() == 2


def test_bare_object_inserts_one_row(adapter, connection):
    adapter.add('GET', PATIENTS_URL, json={'id': '1', 'name': 'A', 'sex': None})
    table = DataTable()

    assert response_to_table(connection, fetch(connection), table) == SUCCESS
    assert table.get_column_names() == ['id', 'name', 'sex']
    assert table.rows == [['1', 'A', '']]


def test_records_are_projected_on_existing_columns(adapter, connection):
    adapter.add('GET', PATIENTS_URL, json=[{'id': '1', 'name': 'A', 'extra': 'x'}, {'name': 'B'}])
    table = DataTable(['name', 'id'])

    assert response_to_table(connection, fetch(connection), table) == SUCCESS
    assert table.rows == [['A', '1'], ['B', '']]


def test_filtered_table_keeps_requested_fields_in_order(adapter, connection):
    adapter.add('GET', PATIENTS_URL, json=[{'pk': '7', 'name': 'x', 'extra': 'ignored'}])
    table = DataTable()

    assert response_to_filtered_table(connection, fetch(connection), table, ['pk', 'name']) == SUCCESS
    assert table.get_column_names() == ['pk', 'name']
    assert table.rows == [['7', 'x']]


def test_filtered_table_uses_given_schema(adapter, connection):
    adapter.add('GET', PATIENTS_URL, json={'count': 1, 'next': None, 'results': [{'name': 'x', 'pk': '7'}]})
    table = DataTable(['id', 'title'])

    assert response_to_filtered_table(connection, fetch(connection), table, ['pk', 'name']) == SUCCESS
    assert table.get_column_names() == ['id', 'title']
    assert table.rows == [['7', 'x']]


def test_filtered_table_missing_field_is_a_parse_error(adapter, connection):
    adapter.add('GET', PATIENTS_URL, json=[{'pk': '7'}])

    assert response_to_filtered_table(connection, fetch(connection), DataTable(), ['pk', 'name']) == PARSE_ERROR


def test_malformed_json_is_a_parse_error(adapter, connection):
    adapter.add('GET', PATIENTS_URL, body=b'<html>not json</html>')

    assert response_to_table(connection, fetch(connection), DataTable()) == PARSE_ERROR


def test_unexpected_payload_is_a_parse_error(adapter, connection):
    adapter.add('GET', PATIENTS_URL, json=42)

    assert response_to_table(connection, fetch(connection), DataTable()) == PARSE_ERROR


def test_http_error_status_is_passed_through(adapter, connection):
    adapter.add('GET', PATIENTS_URL, status=500, json={'detail': 'error'})
    table = DataTable()

    assert response_to_table(connection, fetch(connection), table) == 500
    assert table.get_column_count() == 0


def test_options_schema(adapter, connection):
    adapter.add('OPTIONS', PATIENTS_URL, json={'actions': {'POST': {'title': {}, 'images': {}}}})
    table = DataTable(['stale'])

    assert options_response_to_table_schema(fetch(connection, method='OPTIONS'), table) == SUCCESS
    assert table.get_column_names() == ['title', 'images']
    assert table.size() == 0


def test_options_schema_without_action_is_a_parse_error(adapter, connection):
    adapter.add('OPTIONS', PATIENTS_URL, json={'name': 'Worklist List', 'renders': ['application/json']})

    assert options_response_to_table_schema(fetch(connection, method='OPTIONS'), DataTable()) == PARSE_ERROR


def test_tag_search_first_match_wins():
    document = {
        'name': 'Worklist List',
        'actions': {'POST': {'title': {}, 'images': {}}},
        'other': {'nested': {'POST': {'ignored': {}}}},
    }

    assert list(get_tag_recursive('POST', document)) == ['title', 'images']


def test_tag_search_continues_past_unrelated_branches():
    document = {
        'description': {'text': {'lang': 'en'}},
        'actions': {'POST': {'title': {}}},
    }

    assert list(get_tag_recursive('POST', document)) == ['title']
    assert get_tag_recursive('PUT', document) is None


@pytest.mark.parametrize('value, expected', [
    (None, ''),
    ('plain', 'plain'),
    ('say "hi"', 'say hi'),
    (7, '7'),
    (1.5, '1.5'),
    (True, 'true'),
    (['a', 'b', None, 3], 'a,b,,3'),
    ({'a': 1}, '{a:1}'),
])
def test_serialize_value(value, expected):
    assert serialize_value(value) == expected
