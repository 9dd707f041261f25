import contextvars
from contextlib import contextmanager
import uuid

request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)
panel_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("panel_id", default=None)
character_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("character_id", default=None)


def new_request_id() -> str:
    return uuid.uuid4().hex


def get_request_id() -> str | None:
    """Retrieve the current request ID from the context."""
    return request_id_var.get()


def get_panel_id() -> str | None:
    return panel_id_var.get()


def get_character_id() -> str | None:
    return character_id_var.get()


@contextmanager
def log_context(
    request_id: str | None = None,
    panel_id: str | None = None,
    character_id: str | None = None,
):
    """Temporarily scope request/panel/character context for structured logs."""
    tokens: list[tuple[contextvars.ContextVar[str | None], contextvars.Token]] = []
    if request_id is not None:
        tokens.append((request_id_var, request_id_var.set(request_id)))
    if panel_id is not None:
        tokens.append((panel_id_var, panel_id_var.set(str(panel_id))))
    if character_id is not None:
        tokens.append((character_id_var, character_id_var.set(str(character_id))))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)
