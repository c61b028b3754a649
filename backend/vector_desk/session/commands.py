"""Application commands raised by menus and keyboard shortcuts.

Menus are just another caller: each view subscribes the same operations it
runs for pointer gestures.
"""

from __future__ import annotations

import inspect
from enum import Enum
from typing import Any, Awaitable, Callable, Union

from vector_desk.core.logging import get_logger

logger = get_logger(__name__)

CommandHandler = Callable[[], Union[Any, Awaitable[Any]]]


class AppCommand(str, Enum):
    NEW_COLLECTION = "new_collection"
    DUPLICATE_COLLECTION = "duplicate_collection"
    DELETE_COLLECTION = "delete_collection"
    COPY_COLLECTION = "copy_collection"
    PASTE_COLLECTION = "paste_collection"
    NEW_DOCUMENT = "new_document"
    EDIT_DOCUMENT = "edit_document"
    DELETE_SELECTED = "delete_selected"
    COPY_DOCUMENTS = "copy_documents"
    PASTE_DOCUMENTS = "paste_documents"
    SELECT_ALL_DOCUMENTS = "select_all_documents"
    CLEAR_FILTERS = "clear_filters"
    REFRESH = "refresh"


# Both paste commands share an accelerator; the handler whose clipboard
# kind does not match is a no-op.
SHORTCUTS: dict[str, tuple[AppCommand, ...]] = {
    "CmdOrCtrl+Shift+N": (AppCommand.NEW_COLLECTION,),
    "CmdOrCtrl+D": (AppCommand.DUPLICATE_COLLECTION,),
    "CmdOrCtrl+Shift+Backspace": (AppCommand.DELETE_COLLECTION,),
    "CmdOrCtrl+Shift+C": (AppCommand.COPY_COLLECTION,),
    "CmdOrCtrl+N": (AppCommand.NEW_DOCUMENT,),
    "Enter": (AppCommand.EDIT_DOCUMENT,),
    "Backspace": (AppCommand.DELETE_SELECTED,),
    "CmdOrCtrl+C": (AppCommand.COPY_DOCUMENTS,),
    "CmdOrCtrl+V": (AppCommand.PASTE_COLLECTION, AppCommand.PASTE_DOCUMENTS),
    "CmdOrCtrl+A": (AppCommand.SELECT_ALL_DOCUMENTS,),
    "CmdOrCtrl+Shift+K": (AppCommand.CLEAR_FILTERS,),
    "CmdOrCtrl+R": (AppCommand.REFRESH,),
}


class CommandDispatcher:
    def __init__(self) -> None:
        self._handlers: dict[AppCommand, list[CommandHandler]] = {}

    def subscribe(self, command: AppCommand, handler: CommandHandler) -> Callable[[], None]:
        handlers = self._handlers.setdefault(command, [])
        handlers.append(handler)

        def unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def handler_count(self, command: AppCommand) -> int:
        return len(self._handlers.get(command, ()))

    async def dispatch(self, command: AppCommand | str) -> bool:
        """Run every handler subscribed to ``command``; False when none is."""
        command = AppCommand(command)
        handlers = list(self._handlers.get(command, ()))
        if not handlers:
            logger.debug("No handler for %s", command.value)
            return False
        for handler in handlers:
            result = handler()
            if inspect.isawaitable(result):
                await result
        return True

    async def dispatch_shortcut(self, accelerator: str) -> bool:
        ran = False
        for command in SHORTCUTS.get(accelerator, ()):
            ran = await self.dispatch(command) or ran
        return ran


__all__ = ["AppCommand", "CommandDispatcher", "SHORTCUTS"]
