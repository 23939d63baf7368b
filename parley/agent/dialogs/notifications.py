"""Presentation of app notifications and app errors."""

from __future__ import annotations

from typing import Any

from loguru import logger

from parley.agent.dialogue import Dialogue


def format_error(error: Any) -> str:
    """Human readable message for an error value reported by an app."""
    if isinstance(error, str):
        return error
    if isinstance(error, SyntaxError):
        return f"Syntax error at {error.filename} line {error.lineno}: {error.msg}"
    message = str(error)
    return message or type(error).__name__


def _single_text(messages: str | list[Any]) -> str | None:
    if isinstance(messages, str):
        return messages or None
    if len(messages) == 1 and isinstance(messages[0], str):
        return messages[0] or None
    return None


def _show_message(dlg: Dialogue, message: Any, icon: str | None) -> None:
    if isinstance(message, str):
        message = {"type": "text", "text": message}
    if not isinstance(message, dict):
        logger.warning(f"Dropping unsupported notification message {message!r}")
        return

    kind = message.get("type")
    if kind == "text":
        dlg.reply(message.get("text", ""), icon)
    elif kind == "picture":
        if message.get("url") is None:
            dlg.reply("Sorry, I can't find the picture you want.", icon)
        else:
            dlg.reply_picture(message["url"], icon)
    elif kind == "rdl":
        dlg.reply_rdl(message, icon)
    elif kind == "button":
        dlg.reply_button(message.get("text", ""), message.get("json", ""))


def show_notification(
    dlg: Dialogue,
    app_id: str | None,
    icon: str | None,
    output_type: str | None,
    output_value: Any,
    channel: str | None,
    last_app: str | None,
) -> None:
    """Show app output, with a "Notification from" header unless ``app_id`` was shown last."""
    app = dlg.platform.apps.get_app(app_id) if app_id is not None else None
    messages = dlg.platform.formatter.format_for_type(output_type, output_value, channel)
    show_header = app is not None and app.is_running and app_id != last_app

    text = _single_text(messages)
    if show_header and text is not None:
        dlg.reply(f"Notification from {app.name}: {text}", icon)
        return

    if show_header:
        dlg.reply(f"Notification from {app.name}", icon)
    if isinstance(messages, list):
        for message in messages:
            _show_message(dlg, message, icon)
    else:
        _show_message(dlg, messages, icon)


def show_error(
    dlg: Dialogue,
    app_id: str | None,
    icon: str | None,
    error: Any,
    last_app: str | None,
) -> None:
    app = dlg.platform.apps.get_app(app_id) if app_id is not None else None
    message = format_error(error)
    logger.warning(f"Error from {app_id}: {message}")

    if app is not None and app.is_running:
        dlg.reply(f"{app.name} had an error: {message}.", icon)
    else:
        dlg.reply(f"Sorry, that did not work: {message}.", icon)
