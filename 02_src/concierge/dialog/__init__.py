"""Dialog module."""

from .controller import DialogController, IDialogController
from .nlu import INluEngine, LlmNluEngine, NluResult
from .session import ChatSession, IChatSession

__all__ = [
    "DialogController",
    "IDialogController",
    "INluEngine",
    "LlmNluEngine",
    "NluResult",
    "ChatSession",
    "IChatSession",
]
