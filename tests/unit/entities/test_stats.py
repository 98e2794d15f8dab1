"""Unit tests for StatsSnapshot."""

from datetime import datetime, timedelta
from uuid import uuid4

from domain.entities.campaign import CampaignSummary
from domain.entities.invitation import Invitation, InvitationRole, InvitationStatus
from domain.entities.stats import StatsSnapshot
from tests.unit.conftest import NOW


def _invitations(event_id, statuses, invited_at=NOW):  # type: ignore[no-untyped-def]
    return [
        Invitation(
            event_id=event_id,
            email=f"person{i}@example.com",
            role=InvitationRole.SPEAKER,
            status=status,
            invited_at=invited_at,
        )
        for i, status in enumerate(statuses)
    ]


class TestStatsSnapshot:
    def test_four_accepted_three_declined_three_pending(self) -> None:
        statuses = (
            [InvitationStatus.ACCEPTED] * 4
            + [InvitationStatus.DECLINED] * 3
            + [InvitationStatus.PENDING] * 3
        )

        snapshot = StatsSnapshot.from_invitations(_invitations(uuid4(), statuses), NOW)

        assert snapshot.counts[InvitationStatus.ACCEPTED] == 4
        assert snapshot.counts[InvitationStatus.DECLINED] == 3
        assert snapshot.counts[InvitationStatus.PENDING] == 3
        assert snapshot.total == 10
        assert snapshot.response_rate == 0.7
        assert snapshot.response_rate_percent == 70

    def test_empty_scope(self) -> None:
        snapshot = StatsSnapshot.from_invitations([], NOW)

        assert snapshot.total == 0
        assert sum(snapshot.counts.values()) == 0
        assert snapshot.response_rate == 0.0
        assert all(pct == 0 for pct in snapshot.percentages.values())

    def test_counts_always_sum_to_total(self) -> None:
        statuses = list(InvitationStatus) * 3
        snapshot = StatsSnapshot.from_invitations(_invitations(uuid4(), statuses), NOW)

        assert sum(snapshot.counts.values()) == snapshot.total == 15

    def test_percentage_rounds_half_up(self) -> None:
        statuses = [InvitationStatus.ACCEPTED] + [InvitationStatus.PENDING] * 7
        snapshot = StatsSnapshot.from_invitations(_invitations(uuid4(), statuses), NOW)

        # 1/8 = 12.5%
        assert snapshot.percentage(InvitationStatus.ACCEPTED) == 13
        assert snapshot.percentage(InvitationStatus.PENDING) == 88

    def test_tentative_is_outstanding_but_not_responded(self) -> None:
        statuses = [InvitationStatus.TENTATIVE, InvitationStatus.ACCEPTED]
        snapshot = StatsSnapshot.from_invitations(_invitations(uuid4(), statuses), NOW)

        assert snapshot.responded == 1
        assert len(snapshot.outstanding) == 1
        assert snapshot.outstanding[0].status is InvitationStatus.TENTATIVE

    def test_combine_is_element_wise_sum(self) -> None:
        event_id = uuid4()
        first = StatsSnapshot.from_invitations(
            _invitations(event_id, [InvitationStatus.ACCEPTED, InvitationStatus.PENDING]),
            NOW,
        )
        second = StatsSnapshot.from_invitations(
            _invitations(
                event_id,
                [InvitationStatus.DECLINED, InvitationStatus.PENDING],
                invited_at=NOW - timedelta(days=5),
            ),
            NOW,
        )

        combined = StatsSnapshot.combine([first, second])

        for status in InvitationStatus:
            assert combined.counts[status] == first.counts[status] + second.counts[status]
        assert combined.total == 4
        assert [o.days_pending for o in combined.outstanding] == [5, 0]


class TestCampaignSummary:
    def test_success_rate_in_percent(self) -> None:
        summary = CampaignSummary(total=3, successful=2, failed=1)

        assert summary.as_dict() == {
            "total": 3,
            "successful": 2,
            "failed": 1,
            "success_rate": 66.7,
        }

    def test_empty_campaign(self) -> None:
        assert CampaignSummary(total=0, successful=0, failed=0).success_rate == 0.0


def test_days_pending_counts_whole_days() -> None:
    invitation = Invitation(
        event_id=uuid4(),
        email="a@example.com",
        role=InvitationRole.SPEAKER,
        invited_at=datetime(2025, 9, 28, 18, 0),
    )

    assert invitation.days_pending(NOW) == 2
