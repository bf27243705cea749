"""
Worklist client.

Asynchronous access to hierarchical imaging worklists
(Worklist -> Patient -> Study -> Image) served by a REST API.
"""
from .models import DataTable, FieldSelection
from .networking import AuthenticationStatus, AuthenticationType, DjangoConnection, HTTPConnection
from .sources import GrandChallengeSource, GrandChallengeURLInfo, SourceType, WorklistSource

__version__ = '0.1.0'

__all__ = [
    'DataTable',
    'FieldSelection',
    'AuthenticationStatus',
    'AuthenticationType',
    'DjangoConnection',
    'HTTPConnection',
    'GrandChallengeSource',
    'GrandChallengeURLInfo',
    'SourceType',
    'WorklistSource',
]
