"""Storage behavior shared by the SQL and in-memory adapters."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from sacrewards.auth.local import EmailAlreadyRegisteredError, LocalAuthService
from sacrewards.referral.service import InvalidPayoutError, ReferralService
from sacrewards.storage.base import AdminStats, DuplicateRecordError, UserStats


def make_user(storage, n: int, **kwargs):
    return storage.create_user(
        name=kwargs.pop("name", f"User {n}"),
        email=kwargs.pop("email", f"user{n}@example.com"),
        password="hashed",
        referral_code=kwargs.pop("referral_code", f"US{n:06d}"),
        **kwargs,
    )


def complete(storage, referral_id: int):
    return storage.update_referral(
        referral_id, status="completed", completed_at=datetime(2024, 5, 1)
    )


# ==================== STATISTICS ====================


def test_user_stats_counts_and_earnings(storage):
    user = make_user(storage, 1)
    ids = [
        storage.create_referral(user.id, f"friend{i}@example.com", f"Friend {i}", Decimal("400.00")).id
        for i in range(3)
    ]
    complete(storage, ids[0])
    complete(storage, ids[1])

    stats = storage.get_user_stats(user.id)

    assert stats == UserStats(
        total_referrals=3,
        successful_referrals=2,
        pending_referrals=1,
        total_earnings=800,
    )
    assert isinstance(stats.total_earnings, float)
    assert isinstance(stats.total_referrals, int)


def test_cancelled_referrals_only_count_in_total(storage):
    user = make_user(storage, 1)
    referral = storage.create_referral(user.id, "a@example.com", "A", Decimal("400.00"))
    storage.update_referral(referral.id, status="cancelled")

    stats = storage.get_user_stats(user.id)

    assert stats.total_referrals == 1
    assert stats.successful_referrals == 0
    assert stats.pending_referrals == 0
    assert stats.total_earnings == 0


def test_user_stats_without_referrals(storage):
    user = make_user(storage, 1)

    assert storage.get_user_stats(user.id) == UserStats(0, 0, 0, 0.0)


def test_user_stats_only_cover_own_referrals(storage):
    alice = make_user(storage, 1)
    bob = make_user(storage, 2)
    complete(storage, storage.create_referral(bob.id, "x@example.com", "X", Decimal("400.00")).id)

    assert storage.get_user_stats(alice.id).total_referrals == 0
    assert storage.get_user_stats(bob.id).total_earnings == 400


def test_admin_stats(storage):
    users = [make_user(storage, n) for n in range(1, 6)]
    storage.create_referral(users[0].id, "a@example.com", "A", Decimal("400.00"))
    cancelled = storage.create_referral(users[1].id, "b@example.com", "B", Decimal("400.00"))
    storage.update_referral(cancelled.id, status="cancelled")

    storage.create_payout(users[0].id, Decimal("400.00"), [1], status="completed")
    storage.create_payout(users[0].id, Decimal("250.00"), [], status="pending")
    storage.create_payout(users[1].id, Decimal("100.00"), [], status="failed")

    stats = storage.get_admin_stats()

    assert stats == AdminStats(
        total_users=5,
        active_referrers=2,
        total_payouts=400,
        pending_reviews=1,
    )
    assert isinstance(stats.total_payouts, float)


def test_admin_stats_on_empty_store(storage):
    assert storage.get_admin_stats() == AdminStats(0, 0, 0.0, 0)


# ==================== USERS ====================


def test_duplicate_referral_code_is_rejected(storage):
    make_user(storage, 1, referral_code="RA123456")

    with pytest.raises(DuplicateRecordError) as exc_info:
        make_user(storage, 2, referral_code="RA123456")

    assert exc_info.value.field == "referral_code"
    assert storage.count_users() == 1
    assert storage.get_user_by_email("user1@example.com").referral_code == "RA123456"


def test_duplicate_email_is_rejected(storage):
    make_user(storage, 1, email="same@example.com")

    with pytest.raises(DuplicateRecordError) as exc_info:
        make_user(storage, 2, email="SAME@example.com")

    assert exc_info.value.field == "email"


def test_same_prefix_in_same_millisecond_fails_registration(storage, test_settings):
    auth = LocalAuthService(storage, test_settings)
    now = datetime(2024, 6, 15, 10, 30, tzinfo=timezone.utc)

    first = auth.register("Ravi", "ravi@example.com", "secret123", now=now)
    with pytest.raises(DuplicateRecordError):
        auth.register("Rakesh", "rakesh@example.com", "secret123", now=now)

    assert storage.count_users() == 1
    assert storage.get_user(first.id).email == "ravi@example.com"
    assert storage.get_user_by_email("rakesh@example.com") is None


def test_register_rejects_existing_email(storage, test_settings):
    auth = LocalAuthService(storage, test_settings)
    now = datetime(2024, 6, 15, 10, 30, tzinfo=timezone.utc)
    auth.register("Ravi", "ravi@example.com", "secret123", now=now)

    with pytest.raises(EmailAlreadyRegisteredError):
        auth.register("Other", "ravi@example.com", "secret123", now=now + timedelta(seconds=1))


def test_passwords_are_hashed(storage, test_settings):
    auth = LocalAuthService(storage, test_settings)
    user = auth.register("Ravi", "ravi@example.com", "secret123")

    assert user.password != "secret123"
    assert auth.authenticate("ravi@example.com", "secret123").id == user.id
    assert auth.authenticate("ravi@example.com", "wrong") is None


def test_update_unknown_user_returns_none(storage):
    assert storage.update_user(999, is_admin=True) is None


# ==================== BANK DETAILS ====================


def test_bank_details_upsert_keeps_one_record(storage):
    user = make_user(storage, 1)
    first = storage.create_bank_details(user.id, "Ravi Kumar", "SBI", "1111", "SBIN0000001")
    second = storage.create_bank_details(user.id, "Ravi Kumar", "HDFC", "2222", "HDFC0000002")

    assert second.id == first.id
    stored = storage.get_bank_details(user.id)
    assert stored.bank_name == "HDFC"
    assert stored.account_number == "2222"


def test_update_missing_bank_details_returns_none(storage):
    user = make_user(storage, 1)

    assert storage.update_bank_details(user.id, bank_name="SBI") is None


# ==================== REFERRALS ====================


def test_referrals_are_listed_newest_first(storage):
    user = make_user(storage, 1)
    other = make_user(storage, 2)
    first = storage.create_referral(user.id, "a@example.com", "A", Decimal("400.00"))
    second = storage.create_referral(user.id, "b@example.com", "B", Decimal("400.00"))
    third = storage.create_referral(other.id, "c@example.com", "C", Decimal("400.00"))

    assert [r.id for r in storage.get_referrals(user.id)] == [second.id, first.id]
    assert [r.id for r in storage.get_all_referrals()] == [third.id, second.id, first.id]


def test_completed_at_set_only_when_completed(storage):
    user = make_user(storage, 1)
    service = ReferralService(storage)
    completed = service.create_referral(user.id, "a@example.com", "A")
    cancelled = service.create_referral(user.id, "b@example.com", "B")
    pending = service.create_referral(user.id, "c@example.com", "C")

    service.update_status(completed.id, "completed")
    service.update_status(cancelled.id, "cancelled")

    for referral in storage.get_all_referrals():
        assert (referral.completed_at is not None) == (referral.status == "completed")
    assert storage.get_referral(pending.id).status == "pending"


def test_new_referral_is_pending_with_default_reward(storage):
    user = make_user(storage, 1)
    referral = ReferralService(storage).create_referral(user.id, "a@example.com", "A")

    stored = storage.get_referral(referral.id)
    assert stored.status == "pending"
    assert Decimal(stored.reward_amount) == Decimal("400.00")
    assert stored.completed_at is None


def test_referral_links_already_registered_user(storage):
    user = make_user(storage, 1)
    friend = make_user(storage, 2, email="friend@example.com")

    referral = ReferralService(storage).create_referral(user.id, "friend@example.com", "Friend")

    assert referral.referred_user_id == friend.id


def test_registration_links_earlier_referrals(storage, test_settings):
    referrer = make_user(storage, 1)
    other = make_user(storage, 2)
    first = storage.create_referral(referrer.id, "Friend@example.com", "Friend", Decimal("400.00"))
    second = storage.create_referral(other.id, "friend@example.com", "Friend", Decimal("400.00"))
    unrelated = storage.create_referral(referrer.id, "someone@example.com", "S", Decimal("400.00"))

    friend = LocalAuthService(storage, test_settings).register(
        "Friend", "friend@example.com", "secret123"
    )

    assert storage.get_referral(first.id).referred_user_id == friend.id
    assert storage.get_referral(second.id).referred_user_id == friend.id
    assert storage.get_referral(unrelated.id).referred_user_id is None


def test_linking_keeps_existing_links(storage):
    referrer = make_user(storage, 1)
    friend = make_user(storage, 2, email="friend@example.com")
    referral = storage.create_referral(
        referrer.id, "friend@example.com", "Friend", Decimal("400.00"), referred_user_id=friend.id
    )

    assert storage.link_referred_user("friend@example.com", 999) == 0
    assert storage.get_referral(referral.id).referred_user_id == friend.id


def test_status_change_does_not_alter_reward(storage):
    user = make_user(storage, 1)
    service = ReferralService(storage, reward_amount=Decimal("250.00"))
    referral = service.create_referral(user.id, "a@example.com", "A")

    updated = service.update_status(referral.id, "completed")

    assert Decimal(updated.reward_amount) == Decimal("250.00")


# ==================== PAYOUTS ====================


def test_payout_round_trip(storage):
    user = make_user(storage, 1)
    service = ReferralService(storage)
    ids = [service.create_referral(user.id, f"f{i}@example.com", f"F{i}").id for i in range(2)]
    for referral_id in ids:
        service.update_status(referral_id, "completed")

    payout = service.create_payout(user.id, Decimal("800.00"), ids)

    stored = storage.get_payout(payout.id)
    assert stored.referral_ids == ids
    assert stored.status == "pending"

    done = service.update_payout_status(payout.id, "completed")
    assert done.status == "completed"
    assert done.completed_at is not None
    assert storage.get_admin_stats().total_payouts == 800
    assert [p.id for p in storage.get_payouts(user.id)] == [payout.id]


def test_payout_rejects_uncovered_referrals(storage):
    user = make_user(storage, 1)
    other = make_user(storage, 2)
    service = ReferralService(storage)
    pending = service.create_referral(user.id, "a@example.com", "A")
    foreign = service.create_referral(other.id, "b@example.com", "B")
    service.update_status(foreign.id, "completed")

    for referral_ids in ([pending.id], [foreign.id], [999], []):
        with pytest.raises(InvalidPayoutError):
            service.create_payout(user.id, Decimal("400.00"), referral_ids)

    assert storage.get_all_payouts() == []


def test_failed_payout_releases_its_referrals(storage):
    user = make_user(storage, 1)
    service = ReferralService(storage)
    referral = service.create_referral(user.id, "a@example.com", "A")
    service.update_status(referral.id, "completed")
    first = service.create_payout(user.id, Decimal("400.00"), [referral.id])

    with pytest.raises(InvalidPayoutError):
        service.create_payout(user.id, Decimal("400.00"), [referral.id])

    service.update_payout_status(first.id, "failed")
    second = service.create_payout(user.id, Decimal("400.00"), [referral.id])

    assert second.referral_ids == [referral.id]
