# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

import threading

import pytest

from restwire import Callback, Header, Response, RestAdapter
from restwire.http.utils import SynchronousExecutor

API_URL = "http://example.com/"


class FakeClient:
    """Records requests and answers with a canned response or error."""

    def __init__(self):
        self.requests = []
        self.response = Response(200, "OK", [], b"{}")
        self.error = None
        self.lock = threading.Lock()

    def respond(self, status=200, body=b"{}", headers=(), reason="OK"):
        self.response = Response(status, reason, list(headers), body)
        return self

    def raise_error(self, error):
        self.error = error
        return self

    def execute(self, request):
        with self.lock:
            self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response

    @property
    def last_request(self):
        return self.requests[-1]


class RecordingCallback(Callback):
    def __init__(self):
        self.results = []
        self.errors = []
        self.threads = []
        self.done = threading.Event()

    def success(self, result, response):
        self.results.append((result, response))
        self.threads.append(threading.current_thread().name)
        self.done.set()

    def failure(self, error):
        self.errors.append(error)
        self.threads.append(threading.current_thread().name)
        self.done.set()


class RecordingExecutor:
    """Queues tasks until ``run_all`` is called."""

    def __init__(self):
        self.tasks = []

    def execute(self, fn):
        self.tasks.append(fn)

    def run_all(self):
        while self.tasks:
            self.tasks.pop(0)()


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def callback():
    return RecordingCallback()


@pytest.fixture
def adapter(client):
    executor = SynchronousExecutor()
    return (
        RestAdapter.Builder()
        .set_server(API_URL)
        .set_client(client)
        .set_executors(executor, executor)
        .set_headers([Header("X-Api-Key", "secret")])
        .build()
    )


@pytest.fixture
def json_headers():
    return [Header("Content-Type", "application/json; charset=UTF-8")]


@pytest.fixture
def recording_executor():
    return RecordingExecutor()


@pytest.fixture
def api_url():
    return API_URL
