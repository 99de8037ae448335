from fastapi import Request

from minirel.session import Session


def get_session(request: Request) -> Session:
    return request.app.state.session
