from .card import CardContent, CardSource
from .session import (
    CardFailure,
    CardUpdate,
    GameAnswer,
    GameResult,
    LearningMode,
    MultiGameSession,
    SessionFinalizeRequest,
    SessionPlan,
    SessionStartRequest,
    SessionSummary,
    Tier,
    TierCounts,
)

__all__ = [
    'CardContent', 'CardSource', 'CardFailure', 'CardUpdate', 'GameAnswer', 'GameResult',
    'LearningMode', 'MultiGameSession', 'SessionFinalizeRequest', 'SessionPlan',
    'SessionStartRequest', 'SessionSummary', 'Tier', 'TierCounts',
]
