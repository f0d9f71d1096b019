"""Unit tests for the voting engine: VoteAggregator scoring, quorum and tie-break."""

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from wikiflow.engines.voting.aggregator import (
    Candidate,
    CompletionPolicy,
    DocumentStats,
    VoteAggregator,
)
from wikiflow.orchestration.errors import DuplicateVote, InvalidScore, SelfVote


def _vote(quality: int, readability: int, voter_id=None):
    return SimpleNamespace(
        voter_id=voter_id or uuid.uuid4(),
        document_quality_score=quality,
        code_readability_score=readability,
    )


def _stats(voter_ids, quality=8.0, readability=8.0) -> DocumentStats:
    return DocumentStats(
        document_id=uuid.uuid4(),
        avg_document_quality=quality,
        avg_code_readability=readability,
        total_votes=len(voter_ids),
        voter_ids=list(voter_ids),
    )


class TestAggregate:
    """Averages and counts."""

    def test_empty_vote_set_is_zero(self):
        stats = VoteAggregator.aggregate(uuid.uuid4(), [])
        assert stats.total_votes == 0
        assert stats.avg_document_quality == 0.0
        assert stats.avg_code_readability == 0.0

    def test_means_and_count(self):
        votes = [_vote(9, 8), _vote(9, 8), _vote(9, 8)]
        stats = VoteAggregator.aggregate(uuid.uuid4(), votes)
        assert stats.total_votes == 3
        assert stats.avg_document_quality == 9.0
        assert stats.avg_code_readability == 8.0

    def test_rounds_half_up_to_two_places(self):
        # 2/3 = 0.666..., 1 + 2/3 -> 1.67
        votes = [_vote(1, 1), _vote(2, 2), _vote(2, 1)]
        stats = VoteAggregator.aggregate(uuid.uuid4(), votes)
        assert stats.avg_document_quality == 1.67
        assert stats.avg_code_readability == 1.33

        # 0.125 rounds up, not to even
        votes = [_vote(1, 1)] * 7 + [_vote(2, 2)]
        assert VoteAggregator.aggregate(uuid.uuid4(), votes).avg_document_quality == 1.13

    def test_order_independent(self):
        votes = [_vote(3, 10), _vote(7, 4), _vote(10, 1), _vote(6, 6)]
        forward = VoteAggregator.aggregate(uuid.uuid4(), votes)
        backward = VoteAggregator.aggregate(forward.document_id, list(reversed(votes)))
        assert forward.avg_document_quality == backward.avg_document_quality
        assert forward.avg_code_readability == backward.avg_code_readability
        assert forward.total_votes == backward.total_votes

    def test_averages_stay_within_score_range(self):
        votes = [_vote(1, 10), _vote(10, 1), _vote(5, 5)]
        stats = VoteAggregator.aggregate(uuid.uuid4(), votes)
        assert 1 <= stats.avg_document_quality <= 10
        assert 1 <= stats.avg_code_readability <= 10


class TestValidateVote:
    """Score range, self vote and duplicate checks."""

    def _validate(self, quality=5, readability=5, voter=None, author=None, existing=()):
        VoteAggregator.validate_vote(
            voter_id=voter or uuid.uuid4(),
            author_id=author or uuid.uuid4(),
            document_quality_score=quality,
            code_readability_score=readability,
            existing_voter_ids=existing,
        )

    def test_bounds_are_inclusive(self):
        self._validate(quality=1, readability=10)
        self._validate(quality=10, readability=1)

    @pytest.mark.parametrize("score", [0, 11, -3])
    def test_out_of_range(self, score):
        with pytest.raises(InvalidScore) as exc:
            self._validate(quality=score)
        assert exc.value.details["field"] == "document_quality_score"

    @pytest.mark.parametrize("score", [7.5, "7", None, True])
    def test_non_integer_scores_rejected(self, score):
        with pytest.raises(InvalidScore):
            self._validate(readability=score)

    def test_author_cannot_vote_on_own_document(self):
        author = uuid.uuid4()
        with pytest.raises(SelfVote):
            self._validate(voter=author, author=author)

    def test_second_vote_by_same_voter(self):
        voter = uuid.uuid4()
        with pytest.raises(DuplicateVote):
            self._validate(voter=voter, existing=[uuid.uuid4(), voter])


class TestCompletion:
    """Quorum evaluation."""

    def test_eligible_reviewers_exclude_authors(self):
        a, b, r1, r2 = (uuid.uuid4() for _ in range(4))
        eligible = VoteAggregator.eligible_reviewers([r1, a, r2, b, r1], [a, b])
        assert eligible == [r1, r2]

    def test_no_documents_is_never_complete(self):
        decision = VoteAggregator.evaluate_completion([], [uuid.uuid4()])
        assert decision.complete is False

    def test_all_eligible_voted_on_all_documents(self):
        reviewers = [uuid.uuid4() for _ in range(3)]
        stats = [_stats(reviewers), _stats(reviewers)]
        decision = VoteAggregator.evaluate_completion(stats, reviewers)
        assert decision.complete is True
        assert all(not missing for missing in decision.outstanding.values())

    def test_one_missing_vote_keeps_voting_open(self):
        reviewers = [uuid.uuid4() for _ in range(3)]
        stats = [_stats(reviewers), _stats(reviewers[:2])]
        decision = VoteAggregator.evaluate_completion(stats, reviewers)
        assert decision.complete is False
        assert decision.outstanding[stats[1].document_id] == [reviewers[2]]

    def test_threshold_policy_settles_documents_early(self):
        reviewers = [uuid.uuid4() for _ in range(5)]
        policy = CompletionPolicy(min_votes_per_document=2)
        stats = [_stats(reviewers[:2]), _stats(reviewers[2:4])]
        assert VoteAggregator.evaluate_completion(stats, reviewers, policy).complete is True

        stats = [_stats(reviewers[:2]), _stats(reviewers[2:3])]
        assert VoteAggregator.evaluate_completion(stats, reviewers, policy).complete is False

    def test_empty_pool_still_needs_one_vote_per_document(self):
        voted = _stats([uuid.uuid4()])
        unvoted = _stats([])
        assert VoteAggregator.evaluate_completion([voted], []).complete is True
        assert VoteAggregator.evaluate_completion([voted, unvoted], []).complete is False

    def test_policy_rejects_zero_threshold(self):
        with pytest.raises(ValueError):
            CompletionPolicy(min_votes_per_document=0)


class TestWinnerSelection:
    """Tie-break rules."""

    def _candidate(self, quality, readability, submitted_at, document_id=None):
        document_id = document_id or uuid.uuid4()
        return Candidate(
            document_id=document_id,
            author_id=uuid.uuid4(),
            submitted_at=submitted_at,
            stats=DocumentStats(
                document_id=document_id,
                avg_document_quality=quality,
                avg_code_readability=readability,
                total_votes=3,
            ),
        )

    def test_higher_quality_wins(self):
        now = datetime.now(timezone.utc)
        better = self._candidate(9.0, 5.0, now + timedelta(hours=1))
        worse = self._candidate(8.5, 10.0, now)
        assert VoteAggregator.select_winner([worse, better]) == better

    def test_readability_breaks_quality_tie(self):
        now = datetime.now(timezone.utc)
        better = self._candidate(8.0, 7.0, now + timedelta(hours=1))
        worse = self._candidate(8.0, 6.67, now)
        assert VoteAggregator.select_winner([worse, better]) == better

    def test_earlier_submission_breaks_full_tie(self):
        now = datetime.now(timezone.utc)
        earlier = self._candidate(8.0, 8.0, now)
        later = self._candidate(8.0, 8.0, now + timedelta(minutes=5))
        assert VoteAggregator.select_winner([later, earlier]) == earlier

    def test_naive_and_aware_timestamps_compare(self):
        aware = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        naive_later = datetime(2026, 3, 1, 12, 30)
        earlier = self._candidate(8.0, 8.0, aware)
        later = self._candidate(8.0, 8.0, naive_later)
        assert VoteAggregator.select_winner([later, earlier]) == earlier

    def test_identical_timestamps_fall_back_to_document_id(self):
        now = datetime.now(timezone.utc)
        low = self._candidate(8.0, 8.0, now, uuid.UUID(int=1))
        high = self._candidate(8.0, 8.0, now, uuid.UUID(int=2))
        assert VoteAggregator.select_winner([high, low]) == low

    def test_no_candidates(self):
        with pytest.raises(ValueError):
            VoteAggregator.select_winner([])
