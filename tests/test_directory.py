from datetime import datetime, timedelta

import pandas as pd
import pytest

import directory
import ledger
from errors import DuplicateEmail, NotFound, ValidationError
from models import Account, Activity, Branch, Donation, Resource, User, UserRole


def _head_offices(db):
    db.expire_all()
    return db.query(Branch).filter(Branch.is_head_office == True).all()  # noqa: E712


def test_creating_head_office_clears_previous_one(db):
    first = directory.create_branch(db, "Central", "Kampala", is_head_office=True)
    second = directory.create_branch(db, "Eastern", "Jinja", is_head_office=True)

    flagged = _head_offices(db)
    assert [branch.id for branch in flagged] == [second.id]
    assert db.get(Branch, first.id).is_head_office is False


def test_updating_branch_to_head_office_keeps_exactly_one(db):
    branches = [
        directory.create_branch(db, region, region, is_head_office=(index == 0))
        for index, region in enumerate(["Central", "Eastern", "Western"])
    ]

    directory.update_branch(db, branches[2].id, "Western", "Mbarara", True)

    assert [branch.id for branch in _head_offices(db)] == [branches[2].id]


def test_clearing_head_office_flag(db):
    branch = directory.create_branch(db, "Central", "Kampala", is_head_office=True)

    directory.update_branch(db, branch.id, "Central", "Kampala", False)

    assert _head_offices(db) == []


def test_officer_creation_can_claim_head_office(db):
    directory.create_branch(db, "Central", "Kampala", is_head_office=True)

    officer = directory.create_officer(db, "Harriet", "harriet@asmin.org", "pass1", "Eastern", is_head_office=True)

    flagged = _head_offices(db)
    assert len(flagged) == 1
    assert flagged[0].region == "Eastern"
    assert officer.branch_id == flagged[0].id
    assert officer.role == UserRole.REGIONAL_OFFICER


def test_officer_joins_existing_branch_by_region(db, branch):
    officer = directory.create_officer(db, "Olive", "olive2@asmin.org", "pass1", branch.region)

    assert officer.branch_id == branch.id
    assert db.query(Branch).count() == 1


def test_duplicate_officer_email(db, branch, member):
    with pytest.raises(DuplicateEmail):
        directory.create_officer(db, "Ann Again", member.email, "pass1", branch.region)


def test_deleting_branch_cascades_content_and_detaches_users(db, branch, officer, member):
    directory.create_activity(db, branch.id, "Food drive", "Monthly food drive")
    directory.create_resource(db, branch.id, "Guide", "document", "Volunteer guide", None)
    other = directory.create_branch(db, "Western", "Mbarara")
    kept_activity = directory.create_activity(db, other.id, "Clinic day", None)
    ledger.deposit(db, member.id, 50)

    directory.delete_branch(db, branch.id)

    db.expire_all()
    assert db.get(Branch, branch.id) is None
    assert db.query(Activity).filter(Activity.branch_id == branch.id).count() == 0
    assert db.query(Resource).filter(Resource.branch_id == branch.id).count() == 0
    assert db.get(Activity, kept_activity.id) is not None

    detached = db.get(User, officer.id)
    assert detached is not None
    assert detached.branch_id is None
    assert db.get(Account, member.id).balance == 50


def test_delete_missing_branch(db):
    with pytest.raises(NotFound):
        directory.delete_branch(db, 12345)


def test_activity_pause_and_resume(db, branch):
    activity = directory.create_activity(db, branch.id, "Food drive", None)

    paused = directory.update_activity(db, activity.id, "Food drive", "On hold", "paused")
    assert paused.status.value == "paused"

    with pytest.raises(ValidationError):
        directory.update_activity(db, activity.id, "Food drive", None, "cancelled")


def test_unknown_resource_type(db, branch):
    with pytest.raises(ValidationError):
        directory.create_resource(db, branch.id, "Tractor", "vehicle", None, None)


def test_anonymous_donation_hides_name(db):
    donation = directory.create_donation(db, "Joseph", 500, "For the children", is_anonymous=True)

    assert donation.donor_name == "Anonymous"


@pytest.mark.parametrize("amount", [0, -10, float("inf"), float("nan")])
def test_donation_amount_must_be_positive_and_finite(db, branch, amount):
    with pytest.raises(ValidationError):
        directory.create_donation(db, "Joseph", amount, None)
    with pytest.raises(ValidationError):
        directory.create_regional_donation(db, branch.id, "Joseph", amount, None)

    assert db.query(Donation).count() == 0


def test_latest_donations_capped_at_ten(db):
    for amount in range(1, 13):
        directory.create_donation(db, f"Donor {amount}", amount, None)

    latest = directory.latest_donations(db)
    assert len(latest) == 10
    assert latest[0].amount == 12


def test_search_matches_branches_users_and_donations(db, branch, member):
    directory.create_donation(db, "Northern Friends", 100, None)
    directory.create_donation(db, "Someone", 50, "unrelated")

    results = directory.search(db, "north")

    assert [b.id for b in results["branches"]] == [branch.id]
    assert results["users"] == []
    assert [d.donor_name for d in results["donations"]] == ["Northern Friends"]

    assert [u.email for u in directory.search(db, "ANN")["users"]] == [member.email]


def test_search_requires_query(db):
    with pytest.raises(ValidationError):
        directory.search(db, "  ")


def test_monthly_totals_cover_last_six_months(db):
    now = datetime(2026, 10, 15, 12, 0, 0)
    db.add_all([
        Donation(donor_name="A", amount=100, created_at=datetime(2026, 10, 1)),
        Donation(donor_name="B", amount=50, created_at=datetime(2026, 10, 10)),
        Donation(donor_name="C", amount=70, created_at=datetime(2026, 6, 3)),
        Donation(donor_name="D", amount=999, created_at=datetime(2025, 12, 1)),
    ])
    db.commit()

    totals = directory.monthly_donation_totals(db, now=now)

    assert totals == [
        {"month": "2026-06", "total": 70.0},
        {"month": "2026-10", "total": 150.0},
    ]


def test_monthly_totals_empty(db):
    assert directory.monthly_donation_totals(db) == []


def test_analytics_counts(db, branch, officer, member, master_admin):
    ledger.deposit(db, member.id, 300)
    directory.create_donation(db, "Joseph", 200, None)
    directory.create_regional_donation(db, branch.id, "Mary", 80, None)

    stats = directory.analytics(db)

    assert stats["total_donations"] == 200
    assert stats["total_regional_donations"] == 80
    assert stats["total_users"] == 1
    assert stats["total_officers"] == 1
    assert stats["total_branches"] == 1
    assert stats["pending_applications"] == 0
    assert stats["total_savings"] == 300
    assert len(stats["monthly_donations"]) == 1


def test_export_donations_csv(db):
    directory.create_donation(db, "Joseph", 200, "Keep going")

    output, media_type, filename = directory.export_donations(db, "csv")

    assert media_type == "text/csv"
    assert filename.endswith(".csv")
    frame = pd.read_csv(output)
    assert list(frame["Donor Name"]) == ["Joseph"]
    assert list(frame["Amount"]) == [200]


def test_impact_story_approval(db, branch):
    story = directory.create_impact_story(db, branch.id, "New roof", "The roof was fixed", "Grace", None)
    assert story.is_approved is True

    directory.update_impact_story(db, story.id, "New roof", "The roof was fixed", "Grace", None, False)

    assert directory.list_impact_stories(db) == []
    assert len(directory.list_impact_stories(db, approved_only=False)) == 1


def test_seed_master_admin_is_idempotent(db):
    first = directory.seed_master_admin(db, "boss@asmin.org", "secret")
    second = directory.seed_master_admin(db, "boss@asmin.org", "secret")

    assert first.id == second.id
    assert first.role == UserRole.MASTER_ADMIN


def test_audit_log_includes_user_name(db, member):
    ledger.deposit(db, member.id, 10)
    ledger.withdraw(db, member.id, 4)

    logs = directory.recent_audit_logs(db)

    assert [log["action"] for log in logs] == ["withdrawal", "deposit"]
    assert all(log["user_name"] == "Ann" for log in logs)


def test_branch_detail_lists_newest_activity_first(db, branch):
    directory.create_activity(db, branch.id, "First", None)
    later = directory.create_activity(db, branch.id, "Second", None)
    db.query(Activity).filter(Activity.id == later.id).update(
        {Activity.created_at: datetime.utcnow() + timedelta(minutes=5)}
    )
    db.commit()

    db.expire_all()
    loaded = directory.get_branch(db, branch.id)
    assert [activity.title for activity in loaded.activities] == ["Second", "First"]


def test_resource_update(db, branch):
    resource = directory.create_resource(db, branch.id, "Guide", "document", None, None)

    updated = directory.update_resource(db, resource.id, "Seed fund", "fund", "Planting season", "https://asmin.org/fund")

    db.expire_all()
    stored = db.get(Resource, resource.id)
    assert updated.type.value == "fund"
    assert (stored.name, stored.description, stored.url) == ("Seed fund", "Planting season", "https://asmin.org/fund")

    with pytest.raises(ValidationError):
        directory.update_resource(db, resource.id, "Seed fund", "vehicle", None, None)
    with pytest.raises(NotFound):
        directory.update_resource(db, 9999, "Seed fund", "fund", None, None)


def test_officer_update_without_branch_keeps_branch(db, branch, officer):
    directory.update_officer(db, officer.id, "Olive O.", "olive@asmin.org")

    db.expire_all()
    stored = db.get(User, officer.id)
    assert stored.name == "Olive O."
    assert stored.branch_id == branch.id


def test_officer_update_moves_branch(db, branch, officer):
    other = directory.create_branch(db, "Western", "Mbarara")

    directory.update_officer(db, officer.id, "Olive", "olive@asmin.org", branch_id=other.id)

    db.expire_all()
    assert db.get(User, officer.id).branch_id == other.id
    with pytest.raises(NotFound):
        directory.update_officer(db, officer.id, "Olive", "olive@asmin.org", branch_id=9999)
