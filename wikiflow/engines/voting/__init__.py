"""
Voting Engine - vote aggregation, completion quorum and winner selection.
"""

from wikiflow.engines.voting.aggregator import (
    Candidate,
    CompletionDecision,
    CompletionPolicy,
    DocumentStats,
    VoteAggregator,
)

__all__ = [
    "Candidate",
    "CompletionDecision",
    "CompletionPolicy",
    "DocumentStats",
    "VoteAggregator",
]
