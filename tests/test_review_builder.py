"""Tests for building participant reviews."""

import pytest
from sqlmodel import Session

from icebreaker.core.errors import NotFoundError
from icebreaker.models import Event, GroupActivity, GroupEntry, ParticipantSummary, User, UserActivity
from icebreaker.review.builder import build_review
from icebreaker.review.grouping import run_grouping
from tests.conftest import add_activity, add_event, add_user


def answer(session: Session, user_id: str, activity_id: str, notes: str) -> UserActivity:
    ua = UserActivity(user_id=user_id, activity_id=activity_id, notes=notes)
    session.add(ua)
    session.commit()
    session.refresh(ua)
    return ua


def set_groups(session: Session, activity_id: str, *members: list[str]) -> GroupActivity:
    """Store a fixed grouping so partner resolution is deterministic."""
    entries = [
        GroupEntry(
            group_number=i + 1,
            group_color=["red", "blue", "green", "yellow"][i % 4],
            participants=[
                ParticipantSummary(
                    user_id=uid,
                    name=f"Name {uid}",
                    icon=f"icon-{uid}",
                    description=f"About {uid}",
                    email=f"{uid}@snapshot.example.com",
                )
                for uid in group
            ],
        )
        for i, group in enumerate(members)
    ]
    grouping = GroupActivity(activity_id=activity_id)
    grouping.set_groups(entries)
    session.add(grouping)
    session.commit()
    return grouping


@pytest.fixture(name="mixed_event")
def mixed_event_fixture(session: Session) -> Event:
    """Event with individual, partner and group activities and four users."""
    event = add_event(session, id="EM")
    add_activity(session, event, "ind", kind="individual")
    add_activity(session, event, "par", kind="partner")
    add_activity(session, event, "grp", kind="group")
    for uid in ("a", "b", "c", "d"):
        add_user(session, event, uid)
    return event


class TestBuildReview:
    """Tests for build_review."""

    def test_no_answers_gives_null_self_answers_in_event_order(self, session: Session):
        event = add_event(session, id="EO")
        add_activity(session, event, "z-last", kind="individual")
        add_activity(session, event, "a-first", kind="individual")
        add_activity(session, event, "m-mid", kind="partner")
        add_user(session, event, "U1")

        draft = build_review(session, "U1", "EO")

        assert [a.activity_id for a in draft.activities] == ["z-last", "a-first", "m-mid"]
        assert all(a.self_answer is None for a in draft.activities)
        assert all(a.partner_answer is None for a in draft.activities)

    def test_event_summary(self, session: Session):
        event = add_event(session, id="ES", name="Offsite", description="Day one", picture="pic.png")
        add_user(session, event, "U1")

        draft = build_review(session, "U1", "ES")

        assert draft.event.name == "Offsite"
        assert draft.event.description == "Day one"
        assert draft.event.picture == "pic.png"

    def test_empty_event_gives_empty_review(self, session: Session):
        event = add_event(session, id="EE")
        add_user(session, event, "U1")

        draft = build_review(session, "U1", "EE")

        assert draft.activities == []
        assert draft.user_id == "U1"
        assert draft.event_id == "EE"

    def test_self_answer(self, session: Session, partner_event: Event):
        answer(session, "U1", "A1", "my answer")

        draft = build_review(session, "U1", "E1")

        assert draft.activities[0].self_answer == "my answer"

    def test_partner_answer_and_email(self, session: Session, partner_event: Event):
        run_grouping(session, "E1", "A1")
        answer(session, "U1", "A1", "hi")

        draft = build_review(session, "U2", "E1")
        entry = draft.activities[0]

        assert entry.type == "partner"
        assert entry.self_answer is None
        assert entry.partner_answer is not None
        assert entry.partner_answer.notes == "hi"
        assert entry.partner_answer.email == "U1@example.com"
        assert entry.partner_answer.name == "Name U1"
        assert entry.partner_answer.icon == "icon-U1"
        assert entry.partner_answer.description == "About U1"
        assert entry.group_color == "red"
        assert entry.group_number == 1

    def test_partner_without_answer(self, session: Session, partner_event: Event):
        run_grouping(session, "E1", "A1")

        entry = build_review(session, "U2", "E1").activities[0]

        assert entry.partner_answer is not None
        assert entry.partner_answer.notes is None
        assert entry.partner_answer.name == "Name U1"

    def test_partner_email_comes_from_user_row(self, session: Session, mixed_event: Event):
        set_groups(session, "par", ["a", "b"], ["c", "d"])

        entry = next(a for a in build_review(session, "a", "EM").activities if a.activity_id == "par")

        assert entry.partner_answer.email == "b@example.com"

    def test_partner_profile_comes_from_user_row(self, session: Session, mixed_event: Event):
        set_groups(session, "par", ["a", "b"])
        partner = session.get(User, "b")
        partner.name = "Renamed b"
        partner.icon = "new-icon"
        partner.description = "New bio"
        session.add(partner)
        session.commit()

        entry = next(a for a in build_review(session, "a", "EM").activities if a.activity_id == "par")

        assert entry.partner_answer.name == "Renamed b"
        assert entry.partner_answer.icon == "new-icon"
        assert entry.partner_answer.description == "New bio"
        assert entry.partner_answer.email == "b@example.com"

    def test_partner_email_falls_back_to_snapshot(self, session: Session, mixed_event: Event):
        set_groups(session, "par", ["a", "ghost"])

        entry = next(a for a in build_review(session, "a", "EM").activities if a.activity_id == "par")

        assert entry.partner_answer.name == "Name ghost"
        assert entry.partner_answer.email == "ghost@snapshot.example.com"

    def test_individual_activity_has_no_group_fields(self, session: Session, mixed_event: Event):
        set_groups(session, "par", ["a", "b"], ["c", "d"])
        answer(session, "a", "ind", "solo")

        entry = build_review(session, "a", "EM").activities[0]

        assert entry.activity_id == "ind"
        assert entry.type == "individual"
        assert entry.self_answer == "solo"
        assert entry.partner_answer is None
        assert entry.group_color is None
        assert entry.group_number is None

    def test_group_larger_than_two_uses_first_other_member(self, session: Session, mixed_event: Event):
        set_groups(session, "grp", ["c", "a", "b"], ["d"])
        answer(session, "c", "grp", "from c")
        answer(session, "b", "grp", "from b")

        by_user = {
            uid: next(e for e in build_review(session, uid, "EM").activities if e.activity_id == "grp")
            for uid in ("a", "b", "c")
        }

        assert by_user["a"].partner_answer.notes == "from c"
        assert by_user["b"].partner_answer.notes == "from c"
        assert by_user["c"].partner_answer.name == "Name a"
        assert by_user["c"].partner_answer.notes is None
        assert by_user["a"].group_number == 1

    def test_singleton_group_has_color_but_no_partner(self, session: Session, mixed_event: Event):
        set_groups(session, "grp", ["a", "b"], ["d"])

        entry = next(e for e in build_review(session, "d", "EM").activities if e.activity_id == "grp")

        assert entry.group_number == 2
        assert entry.group_color == "blue"
        assert entry.partner_answer is None

    def test_user_not_in_grouping(self, session: Session, mixed_event: Event):
        set_groups(session, "par", ["a", "b"])

        entry = next(e for e in build_review(session, "c", "EM").activities if e.activity_id == "par")

        assert entry.group_number is None
        assert entry.partner_answer is None

    def test_partner_answers_are_per_activity(self, session: Session, mixed_event: Event):
        set_groups(session, "par", ["a", "b"])
        set_groups(session, "grp", ["a", "c"])
        answer(session, "b", "par", "b on par")
        answer(session, "b", "grp", "b on grp")
        answer(session, "c", "par", "c on par")
        answer(session, "c", "grp", "c on grp")

        entries = {e.activity_id: e for e in build_review(session, "a", "EM").activities}

        assert entries["par"].partner_answer.notes == "b on par"
        assert entries["grp"].partner_answer.notes == "c on grp"

    def test_legacy_self_kind_is_individual(self, session: Session):
        event = add_event(session, id="EL")
        add_activity(session, event, "old", kind="self")
        add_user(session, event, "U1")

        entry = build_review(session, "U1", "EL").activities[0]

        assert entry.type == "individual"
        assert entry.partner_answer is None

    def test_deleted_activity_is_skipped(self, session: Session, partner_event: Event):
        partner_event.add_activity("gone")
        session.add(partner_event)
        session.commit()

        draft = build_review(session, "U1", "E1")

        assert [a.activity_id for a in draft.activities] == ["A1"]

    def test_deleting_answer_clears_self_answer(self, session: Session, partner_event: Event):
        ua = answer(session, "U1", "A1", "temporary")
        assert build_review(session, "U1", "E1").activities[0].self_answer == "temporary"

        session.delete(ua)
        session.commit()

        assert build_review(session, "U1", "E1").activities[0].self_answer is None

    def test_missing_event(self, session: Session):
        with pytest.raises(NotFoundError):
            build_review(session, "U1", "missing")

    def test_user_not_registered_to_event(self, session: Session, partner_event: Event):
        other = add_event(session, id="E-other")
        add_user(session, other, "stranger")

        with pytest.raises(NotFoundError):
            build_review(session, "stranger", "E1")

    def test_document_uses_camel_case(self, session: Session, partner_event: Event):
        run_grouping(session, "E1", "A1")
        answer(session, "U1", "A1", "hi")

        entry = build_review(session, "U2", "E1").activities[0].model_dump(by_alias=True)

        assert set(entry) == {
            "activityId", "type", "title", "question", "selfAnswer",
            "partnerAnswer", "groupColor", "groupNumber",
        }
        assert set(entry["partnerAnswer"]) == {"notes", "name", "icon", "email", "description"}


def test_scenario_partner_sees_answer(session: Session):
    """E1 with partner activity A1, U1 answers, U2's review shows it."""
    event = add_event(session, id="E1")
    add_activity(session, event, "A1", kind="partner")
    add_user(session, event, "U1")
    add_user(session, event, "U2")

    result = run_grouping(session, "E1", "A1")
    groups = result.group_activity.group_entries()
    assert len(groups) == 1
    assert sorted(groups[0].member_ids()) == ["U1", "U2"]

    answer(session, "U1", "A1", "hi")

    entry = build_review(session, "U2", "E1").activities[0]
    assert entry.activity_id == "A1"
    assert entry.self_answer is None
    assert entry.partner_answer.notes == "hi"
