"""
Settings for the worklist client.
Every value can be overridden through a WORKLIST_* environment variable.
"""
import os
import tempfile
from pathlib import Path


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_float(name, default=None):
    value = os.environ.get(name)
    return float(value) if value else default


BASE_DIR = Path(os.environ.get('WORKLIST_HOME', Path.home() / '.worklist'))

DEBUG = _env_bool('WORKLIST_DEBUG', False)

# API
WORKLIST_SOURCE = os.environ.get('WORKLIST_SOURCE', 'grand_challenge')
WORKLIST_BASE_URL = os.environ.get('WORKLIST_BASE_URL', 'https://grand-challenge.org/')
WORKLIST_TOKEN = os.environ.get('WORKLIST_TOKEN', '')
WORKLIST_PROBE_PATH = os.environ.get('WORKLIST_PROBE_PATH', 'api/v1/')

WORKLIST_WORKLIST_PATH = os.environ.get('WORKLIST_WORKLIST_PATH', 'api/v1/worklists/')
WORKLIST_PATIENT_PATH = os.environ.get('WORKLIST_PATIENT_PATH', 'api/v1/patients/')
WORKLIST_STUDY_PATH = os.environ.get('WORKLIST_STUDY_PATH', 'api/v1/studies/')
WORKLIST_IMAGE_PATH = os.environ.get('WORKLIST_IMAGE_PATH', 'api/v1/cases/images/')

# Connection
WORKLIST_MAX_WORKERS = int(os.environ.get('WORKLIST_MAX_WORKERS', 4))
WORKLIST_REQUEST_TIMEOUT = _env_float('WORKLIST_REQUEST_TIMEOUT')

# Downloads
WORKLIST_TEMP_DIR = Path(os.environ.get('WORKLIST_TEMP_DIR', Path(tempfile.gettempdir()) / 'worklist'))

# Logging
WORKLIST_LOG_LEVEL = os.environ.get('WORKLIST_LOG_LEVEL', 'INFO')
WORKLIST_LOG_DIR = Path(os.environ.get('WORKLIST_LOG_DIR', BASE_DIR / 'logs'))
