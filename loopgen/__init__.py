# loopgen/__init__.py (explicit)
"""loopgen: direct exports (eager imports)."""

from .app import LoopgenApp, SessionState, create_argument_parser, main
from .art import AlbumArtLoader
from .client import PredictionClient, PredictionFailed, PredictionTimeout
from .models import (
    PredictionHandle,
    PredictionInput,
    PredictionRequest,
    PredictionStatus,
)
from .player import AudioPlayer, LoopingBuffer
from .poller import PollState, StatusPoller
from .loopgenlog import LoopgenLogger

__all__ = [
    "LoopgenApp",
    "SessionState",
    "create_argument_parser",
    "main",
    "AlbumArtLoader",
    "PredictionClient",
    "PredictionFailed",
    "PredictionTimeout",
    "PredictionHandle",
    "PredictionInput",
    "PredictionRequest",
    "PredictionStatus",
    "AudioPlayer",
    "LoopingBuffer",
    "PollState",
    "StatusPoller",
    "LoopgenLogger",
]

__version__ = "0.1.0"
