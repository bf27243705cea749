"""
Models Module

In-memory data structures shared by the networking and source layers.
"""
from .data_table import Column, DataTable, FieldSelection

__all__ = [
    'Column',
    'DataTable',
    'FieldSelection',
]
