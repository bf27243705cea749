"""
Shared fixtures: an in-process transport for requests sessions.
"""
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import orjson
import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

BASE_URL = 'https://api.test/'


@dataclass
class Route:
    status: int = 200
    json: Any = None
    body: Optional[bytes] = None
    headers: Optional[Dict[str, str]] = None
    error: Optional[Exception] = None
    gate: Optional[threading.Event] = None
    started: Optional[threading.Event] = None


class StubAdapter(BaseAdapter):
    """
    Serves canned responses keyed by (method, full URL).

    Several responses registered for the same key are served in order, the
    last one is repeated. Unknown URLs get a 404.
    """

    def __init__(self):
        super().__init__()
        self.routes: Dict[Tuple[str, str], List[Route]] = {}
        self.requests: List[requests.PreparedRequest] = []
        self._lock = threading.Lock()

    def add(self, method: str, url: str, **kwargs) -> Route:
        route = Route(**kwargs)
        with self._lock:
            self.routes.setdefault((method, url), []).append(route)
        return route

    def requests_to(self, method: str, url: str) -> List[requests.PreparedRequest]:
        with self._lock:
            return [r for r in self.requests if r.method == method and r.url == url]

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        with self._lock:
            self.requests.append(request)
            queue = self.routes.get((request.method, request.url))
            if queue:
                route = queue.pop(0) if len(queue) > 1 else queue[0]
            else:
                route = Route(status=404, json={'detail': 'Not found.'})

        if route.started is not None:
            route.started.set()
        if route.gate is not None:
            route.gate.wait(5)
        if route.error is not None:
            raise route.error

        return self._build_response(request, route)

    def close(self):
        pass

    @staticmethod
    def _build_response(request, route: Route) -> requests.Response:
        content = route.body if route.body is not None else orjson.dumps(route.json)

        response = requests.Response()
        response.status_code = route.status
        response._content = content
        response._content_consumed = True
        response.headers = CaseInsensitiveDict({
            'Content-Type': 'application/json',
            'Content-Length': str(len(content)),
            **(route.headers or {}),
        })
        response.encoding = 'utf-8'
        response.url = request.url
        response.request = request
        response.reason = 'OK' if route.status < 400 else 'Error'
        return response


@pytest.fixture
def adapter():
    return StubAdapter()


@pytest.fixture
def session(adapter):
    session = requests.Session()
    session.mount('https://', adapter)
    session.mount('http://', adapter)
    return session


def capture():
    """Future plus a callback resolving it with the callback arguments."""
    future = Future()

    def callback(*args):
        future.set_result(args)

    return future, callback
