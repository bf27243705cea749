"""
Sources Module

Worklist backends. Each implements the WorklistSource interface.
"""
from .base import SourceType, WorklistSource
from .grand_challenge_source import GrandChallengeSource, GrandChallengeURLInfo, TableEntry

__all__ = [
    'SourceType',
    'WorklistSource',
    'GrandChallengeSource',
    'GrandChallengeURLInfo',
    'TableEntry',
]
