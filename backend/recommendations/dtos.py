"""
Data Transfer Objects (DTOs) passed between the recommendation components.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional
from uuid import UUID


@dataclass(frozen=True)
class CandidateMoment:
    """
    The slice of a moment the Candidate Scorer needs.
    Read once per refresh so scoring itself touches no database.
    """
    moment_id: UUID
    author_id: UUID
    composite_score: float
    created_at: datetime
    category: Optional[str] = None
    save_count: int = 0
    like_count: int = 0
    view_count: int = 0


@dataclass
class ScoredMoment:
    """
    A candidate with its total score and per-signal breakdown.
    Returned by ScoringService.generate_recommendations().
    """
    moment_id: UUID
    score: float
    
    # Breakdown of score components
    factors: Dict[str, float] = field(default_factory=dict)
