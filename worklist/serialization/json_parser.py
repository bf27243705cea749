"""
JSON Parser.
Converts JSON responses of a REST API into DataTables. Understands the
Django REST Framework pagination envelope and OPTIONS metadata.

All public functions return an error code instead of raising:
    0                  success
    PARSE_ERROR (-1)   malformed JSON or unexpected structure
    > 0                HTTP status of a failed response
    other              transport failure (see transport_error_code)
"""
import logging
from typing import Any, Callable, List, Optional, Sequence

import orjson
import requests

from worklist.models import DataTable
from worklist.networking.http_connection import HTTPConnection, transport_error_code

logger = logging.getLogger('worklist.json')

SUCCESS = 0
PARSE_ERROR = -1

PAGINATION_KEYS = ('count', 'next', 'results')

RecordParser = Callable[[Any, DataTable], None]


def serialize_value(value: Any) -> str:
    """
    Convert a JSON value to a table cell.

    null becomes an empty string, arrays are joined with commas and every
    other value is rendered as JSON text without double quotes.
    """
    if value is None:
        return ''
    if isinstance(value, list):
        return ','.join(serialize_value(item) for item in value)
    if isinstance(value, str):
        text = value
    else:
        text = orjson.dumps(value).decode('utf-8')
    return text.replace('"', '')


def get_tag_recursive(tag: str, document: Any) -> Optional[dict]:
    """
    Find the first object stored under `tag`.

    Depth-first, visiting keys in declaration order: a key is checked before
    its value is descended into, and the first match wins.

    Args:
        tag: Key to look for
        document: Decoded JSON document

    Returns:
        dict or None if no object is keyed by `tag`
    """
    if not isinstance(document, dict):
        return None

    for key, value in document.items():
        if key == tag and isinstance(value, dict):
            return value
        if isinstance(value, dict):
            found = get_tag_recursive(tag, value)
            if found is not None:
                return found
    return None


def _record_to_row(record: dict, columns: Sequence[str]) -> List[str]:
    if not isinstance(record, dict):
        raise TypeError(f"Expected a JSON object, got {type(record).__name__}")
    return [serialize_value(record.get(column)) for column in columns]


def _parse_records(json_data: Any, table: DataTable) -> None:
    if isinstance(json_data, list):
        if not json_data:
            return
        if table.get_column_count() == 0:
            if not isinstance(json_data[0], dict):
                raise TypeError("Expected an array of JSON objects")
            table.set_columns(json_data[0].keys())
        columns = table.get_column_names()
        for record in json_data:
            table.insert(_record_to_row(record, columns))

    elif isinstance(json_data, dict):
        if table.get_column_count() == 0:
            table.set_columns(json_data.keys())
        table.insert(_record_to_row(json_data, table.get_column_names()))

    else:
        raise TypeError(f"Unexpected JSON payload: {type(json_data).__name__}")


def _filtered_parser(fields: Sequence[str]) -> RecordParser:
    def parse(json_data: Any, table: DataTable) -> None:
        records = json_data if isinstance(json_data, list) else [json_data]
        if table.get_column_count() == 0:
            table.set_columns(fields)
        for record in records:
            table.insert([serialize_value(record[field]) for field in fields])
    return parse


def _is_paginated(json_data: Any) -> bool:
    return isinstance(json_data, dict) and all(key in json_data for key in PAGINATION_KEYS)


def _decode(response: requests.Response) -> Any:
    return orjson.loads(response.content)


def _parse_json_response(
    connection: Optional[HTTPConnection],
    response: requests.Response,
    table: DataTable,
    parser: RecordParser,
    follow_next: bool = True
) -> int:
    try:
        if not response.ok:
            logger.warning(f"HTTP {response.status_code} for {response.url}")
            return response.status_code

        json_data = _decode(response)
        if not _is_paginated(json_data):
            parser(json_data, table)
            return SUCCESS

        parser(json_data['results'], table)
        pages = 1

        # Each page links to the next one; pages are fetched strictly in order.
        while follow_next and json_data['next'] is not None:
            if connection is None:
                raise ValueError("A connection is required to follow pagination links")

            page_response = connection.send_blocking(requests.Request('GET', json_data['next']))
            if not page_response.ok:
                logger.warning(f"HTTP {page_response.status_code} for page {pages + 1}")
                return page_response.status_code

            json_data = _decode(page_response)
            parser(json_data['results'], table)
            pages += 1

        logger.debug(f"Parsed {table.size()} rows from {pages} page(s)")
        return SUCCESS

    except requests.exceptions.RequestException as e:
        logger.error(f"Transport error while reading {response.url}: {e}")
        return transport_error_code(e)
    except (orjson.JSONDecodeError, KeyError, IndexError, TypeError, ValueError) as e:
        logger.error(f"Unable to parse response from {response.url}: {e}")
        return PARSE_ERROR


def response_to_table(
    connection: Optional[HTTPConnection],
    response: requests.Response,
    table: DataTable,
    follow_next: bool = True
) -> int:
    """
    Parse a response into a table.

    If the table has no columns, they are taken from the keys of the first
    record. Paginated responses are followed through their `next` links.

    Args:
        connection: Connection used to request further pages
        response: Response to parse
        table: Table receiving the rows
        follow_next: Whether to request the pages after the first one

    Returns:
        int: Error code
    """
    return _parse_json_response(connection, response, table, _parse_records, follow_next)


def response_to_filtered_table(
    connection: Optional[HTTPConnection],
    response: requests.Response,
    table: DataTable,
    fields: Sequence[str],
    follow_next: bool = True
) -> int:
    """
    Parse a response into a table, keeping only `fields` of every record.

    Cells are inserted in the order of `fields`. A table without columns
    receives `fields` as its columns.

    Returns:
        int: Error code
    """
    return _parse_json_response(connection, response, table, _filtered_parser(list(fields)), follow_next)


def options_response_to_table_schema(response: requests.Response, table: DataTable, action: str = 'POST') -> int:
    """
    Derive a table schema from an OPTIONS response.

    The fields accepted by `action` become the columns of `table`; the table
    is left without rows. Used where the API offers no schema endpoint.

    Returns:
        int: Error code
    """
    try:
        if not response.ok:
            logger.warning(f"HTTP {response.status_code} for OPTIONS {response.url}")
            return response.status_code

        fields = get_tag_recursive(action, _decode(response))
        if fields is None:
            logger.warning(f"No {action} action found in OPTIONS response from {response.url}")
            return PARSE_ERROR

        table.set_columns(fields.keys())
        return SUCCESS

    except requests.exceptions.RequestException as e:
        logger.error(f"Transport error while reading {response.url}: {e}")
        return transport_error_code(e)
    except (orjson.JSONDecodeError, TypeError, ValueError) as e:
        logger.error(f"Unable to parse OPTIONS response from {response.url}: {e}")
        return PARSE_ERROR
