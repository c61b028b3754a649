from vector_desk.session.clipboard import Clipboard
from vector_desk.session.commands import AppCommand, CommandDispatcher
from vector_desk.session.selection import SelectionState, TableSelectionController
from vector_desk.session.workspace import Workspace

__all__ = [
    "AppCommand",
    "Clipboard",
    "CommandDispatcher",
    "SelectionState",
    "TableSelectionController",
    "Workspace",
]
