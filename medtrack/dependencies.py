# medtrack/dependencies.py
from fastapi import Request

from .service.alerts import AlertDispatcher
from .service.session import AdherenceSession


def get_session(request: Request) -> AdherenceSession:
    return request.app.state.session


def get_dispatcher(request: Request) -> AlertDispatcher:
    return request.app.state.dispatcher
