"""
Networking Module

HTTP request queue, authenticated Django REST connection and file download.
"""
from .http_connection import (
    HTTPConnection,
    RequestTask,
    TaskCancelledError,
    TaskState,
    TRANSPORT_ERROR,
    transport_error_code,
)
from .django_connection import AuthenticationStatus, AuthenticationType, Credentials, DjangoConnection
from .file_download import http_file_download

__all__ = [
    'HTTPConnection',
    'RequestTask',
    'TaskCancelledError',
    'TaskState',
    'TRANSPORT_ERROR',
    'transport_error_code',
    'AuthenticationStatus',
    'AuthenticationType',
    'Credentials',
    'DjangoConnection',
    'http_file_download',
]
