"""
Vote Aggregator - reduces reviewer votes into assessment statistics.

Everything here is pure: callers load votes, this module computes averages,
decides whether voting is finished, and picks the winning document.
"""

import uuid
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from pydantic import BaseModel, Field

from wikiflow.kernel.models.base import as_utc
from wikiflow.kernel.models.vote import MAX_SCORE, MIN_SCORE
from wikiflow.orchestration.errors import DuplicateVote, InvalidScore, SelfVote

_TWO_PLACES = Decimal("0.01")


class DocumentStats(BaseModel):
    """Aggregate of the votes on one document."""

    document_id: uuid.UUID
    avg_document_quality: float = 0.0
    avg_code_readability: float = 0.0
    total_votes: int = 0
    voter_ids: List[uuid.UUID] = Field(default_factory=list)


class Candidate(BaseModel):
    """A document competing for selection."""

    document_id: uuid.UUID
    author_id: uuid.UUID
    submitted_at: datetime
    stats: DocumentStats


class CompletionPolicy(BaseModel):
    """
    When voting on a task counts as finished.

    With min_votes_per_document unset, every eligible reviewer must vote on
    every document. With it set, a document is also settled once it has at
    least that many votes.
    """

    min_votes_per_document: Optional[int] = Field(default=None, ge=1)


class CompletionDecision(BaseModel):
    """Outcome of a completion check."""

    complete: bool
    eligible_reviewers: List[uuid.UUID]
    # document_id -> eligible reviewers who have not voted on it yet
    outstanding: Dict[uuid.UUID, List[uuid.UUID]] = Field(default_factory=dict)


def _mean(values: Sequence[int]) -> float:
    if not values:
        return 0.0
    mean = Decimal(sum(values)) / Decimal(len(values))
    return float(mean.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


class VoteAggregator:
    """
    Aggregates votes and applies the completion/tie-break rules.

    Tie-break order for the winner:
    1. Higher avg_document_quality
    2. Higher avg_code_readability
    3. Earlier submitted_at
    4. Lower document id (only reachable with identical timestamps)
    """

    MIN_SCORE = MIN_SCORE
    MAX_SCORE = MAX_SCORE

    @classmethod
    def validate_score(cls, name: str, value: Any) -> int:
        """Return value if it is an integer in [MIN_SCORE, MAX_SCORE]."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidScore(f"{name} must be an integer", field=name)
        if not cls.MIN_SCORE <= value <= cls.MAX_SCORE:
            raise InvalidScore(
                f"{name} must be between {cls.MIN_SCORE} and {cls.MAX_SCORE}",
                field=name,
            )
        return value

    @classmethod
    def validate_vote(
        cls,
        *,
        voter_id: uuid.UUID,
        author_id: uuid.UUID,
        document_quality_score: Any,
        code_readability_score: Any,
        existing_voter_ids: Iterable[uuid.UUID],
    ) -> None:
        """
        Check a new vote against the document's current vote set.

        Raises InvalidScore, SelfVote or DuplicateVote.
        """
        cls.validate_score("document_quality_score", document_quality_score)
        cls.validate_score("code_readability_score", code_readability_score)
        if voter_id == author_id:
            raise SelfVote("Authors cannot vote on their own document")
        if voter_id in set(existing_voter_ids):
            raise DuplicateVote("You have already voted on this document")

    @staticmethod
    def aggregate(document_id: uuid.UUID, votes: Iterable[Any]) -> DocumentStats:
        """
        Compute averages and count for a document.

        votes: objects exposing voter_id, document_quality_score and
        code_readability_score (ORM Vote rows in practice).
        """
        votes = list(votes)
        return DocumentStats(
            document_id=document_id,
            avg_document_quality=_mean([v.document_quality_score for v in votes]),
            avg_code_readability=_mean([v.code_readability_score for v in votes]),
            total_votes=len(votes),
            voter_ids=[v.voter_id for v in votes],
        )

    @staticmethod
    def eligible_reviewers(
        reviewer_pool: Iterable[uuid.UUID],
        author_ids: Iterable[uuid.UUID],
    ) -> List[uuid.UUID]:
        """Reviewer pool minus the authors of the task's documents."""
        authors: Set[uuid.UUID] = set(author_ids)
        seen: Set[uuid.UUID] = set()
        eligible = []
        for reviewer_id in reviewer_pool:
            if reviewer_id in authors or reviewer_id in seen:
                continue
            seen.add(reviewer_id)
            eligible.append(reviewer_id)
        return eligible

    @classmethod
    def evaluate_completion(
        cls,
        stats: Sequence[DocumentStats],
        eligible_reviewers: Sequence[uuid.UUID],
        policy: Optional[CompletionPolicy] = None,
    ) -> CompletionDecision:
        """
        Decide whether every active document has been voted on sufficiently.

        A task with no documents is never complete, and every document
        needs at least one vote.
        """
        policy = policy or CompletionPolicy()
        eligible = list(eligible_reviewers)
        outstanding: Dict[uuid.UUID, List[uuid.UUID]] = {}
        complete = bool(stats)

        for doc_stats in stats:
            voted = set(doc_stats.voter_ids)
            missing = [r for r in eligible if r not in voted]
            outstanding[doc_stats.document_id] = missing

            if doc_stats.total_votes == 0:
                complete = False
                continue
            threshold_met = (
                policy.min_votes_per_document is not None
                and doc_stats.total_votes >= policy.min_votes_per_document
            )
            if missing and not threshold_met:
                complete = False

        return CompletionDecision(
            complete=complete,
            eligible_reviewers=eligible,
            outstanding=outstanding,
        )

    @staticmethod
    def rank(candidates: Iterable[Candidate]) -> List[Candidate]:
        """Order candidates best first using the tie-break rules."""
        return sorted(
            candidates,
            key=lambda c: (
                -c.stats.avg_document_quality,
                -c.stats.avg_code_readability,
                as_utc(c.submitted_at),
                str(c.document_id),
            ),
        )

    @classmethod
    def select_winner(cls, candidates: Iterable[Candidate]) -> Candidate:
        ranked = cls.rank(candidates)
        if not ranked:
            raise ValueError("Cannot select a winner without candidates")
        return ranked[0]
