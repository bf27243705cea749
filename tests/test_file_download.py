import pytest
import requests

from conftest import BASE_URL
from worklist.networking import HTTPConnection, http_file_download


@pytest.fixture
def connection(session):
    connection = HTTPConnection(BASE_URL, session=session)
    yield connection
    connection.close()


def test_download_writes_file_and_reports_progress(adapter, connection, tmp_path):
    adapter.add('GET', BASE_URL + 'media/a.bin', body=b'x' * 20000)
    response = connection.send_blocking(requests.Request('GET', 'media/a.bin'), stream=True)
    progress = []

    path = http_file_download(response, tmp_path / 'out', '../a.bin', progress.append)

    assert path == tmp_path / 'out' / 'a.bin'
    assert path.stat().st_size == 20000
    assert progress[-1] == 100


def test_unknown_length_reports_completion(adapter, connection, tmp_path):
    adapter.add('GET', BASE_URL + 'media/a.bin', body=b'abc', headers={'Content-Length': '0'})
    response = connection.send_blocking(requests.Request('GET', 'media/a.bin'), stream=True)
    progress = []

    http_file_download(response, tmp_path, 'a.bin', progress.append)

    assert progress == [100]


def test_error_status_raises(adapter, connection, tmp_path):
    adapter.add('GET', BASE_URL + 'media/a.bin', status=403, json={'detail': 'denied'})
    response = connection.send_blocking(requests.Request('GET', 'media/a.bin'), stream=True)

    with pytest.raises(requests.HTTPError):
        http_file_download(response, tmp_path, 'a.bin')
