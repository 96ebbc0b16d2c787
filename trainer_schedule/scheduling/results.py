"""User-facing outcome of a screen action (what the app shows in its alert)."""

from typing import TypedDict


class ActionResult(TypedDict):
    """Result from load, save and booking actions."""

    success: bool
    message: str


def succeeded(message: str) -> ActionResult:
    return {"success": True, "message": message}


def failed(message: str) -> ActionResult:
    return {"success": False, "message": message}
