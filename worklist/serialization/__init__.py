"""
Serialization Module

JSON to DataTable conversion.
"""
from .json_parser import (
    PARSE_ERROR,
    SUCCESS,
    get_tag_recursive,
    options_response_to_table_schema,
    response_to_filtered_table,
    response_to_table,
    serialize_value,
)

__all__ = [
    'PARSE_ERROR',
    'SUCCESS',
    'get_tag_recursive',
    'options_response_to_table_schema',
    'response_to_filtered_table',
    'response_to_table',
    'serialize_value',
]
