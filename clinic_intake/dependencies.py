"""
FastAPI dependencies for configuration, collaborators and request bodies.
"""
from typing import Any, Dict
import json

from fastapi import Request

from .collaborators import Collaborators
from .config import Settings
from .exceptions import MalformedRequestBody


def get_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_collaborators(request: Request) -> Collaborators:
    """Collaborators the application was created with."""
    return request.app.state.collaborators


async def read_json_object(request: Request) -> Dict[str, Any]:
    """
    Parse the request body as a JSON object.

    Args:
        request: Incoming request

    Returns:
        Dict: Parsed body

    Raises:
        MalformedRequestBody: If the body is empty, not JSON, or not an object
    """
    raw = await request.body()
    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        raise MalformedRequestBody()
    if not isinstance(data, dict):
        raise MalformedRequestBody()
    return data
