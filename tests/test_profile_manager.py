import pytest

from core.exceptions import ProfileNotFoundError, ValidationError
from utils.profile_manager import ProfileManager
from utils.user_manager import UserAlreadyExistsError, UserManager


def test_register_creates_profile(db, make_user):
    user = make_user("alice", full_name="Alice Wanjiru")
    profile = ProfileManager(db).get_profile(user.user_id)
    assert profile.full_name == "Alice Wanjiru"
    assert profile.email == "alice@uni.example"
    assert profile.points == 0


def test_duplicate_username_or_email(db, make_user):
    make_user("alice")
    with pytest.raises(UserAlreadyExistsError):
        make_user("alice", email="other@uni.example")
    with pytest.raises(UserAlreadyExistsError):
        make_user("alice2", email="ALICE@uni.example")


def test_authenticate(db, make_user):
    make_user("alice", password="correct horse")
    manager = UserManager(db, bcrypt_rounds=4)
    assert manager.authenticate("alice", "correct horse").username == "alice"
    assert manager.authenticate("alice", "wrong") is None
    assert manager.authenticate("nobody", "correct horse") is None


def test_award_points_accumulates(db, make_user):
    user = make_user("alice")
    manager = ProfileManager(db)
    assert manager.award_points(user.user_id, 10) == 10
    assert manager.award_points(user.user_id, 5) == 15
    assert manager.get_profile(user.user_id).points == 15


def test_award_points_is_not_read_modify_write(db, session_factory, make_user):
    user = make_user("alice")
    # A second session holding a stale copy must not clobber the first award.
    other = session_factory()
    try:
        ProfileManager(other).get_profile(user.user_id)
        ProfileManager(db).award_points(user.user_id, 25)
        assert ProfileManager(other).award_points(user.user_id, 5) == 30
    finally:
        other.close()


def test_award_points_unknown_profile(db):
    with pytest.raises(ProfileNotFoundError):
        ProfileManager(db).award_points("missing", 1)


def test_award_activity_uses_points_table(db, make_user):
    user = make_user("alice")
    manager = ProfileManager(db)
    assert manager.award_activity(user.user_id, "academic", "assignment") == 25
    with pytest.raises(ValidationError):
        manager.award_activity(user.user_id, "academic", "napping")


def test_leaderboard_orders_by_points(db, make_user):
    manager = ProfileManager(db)
    for name, points in [("alice", 5), ("bob", 50), ("carol", 20)]:
        manager.award_points(make_user(name).user_id, points)

    board = manager.leaderboard(limit=2)
    assert [p.email for p in board] == ["bob@uni.example", "carol@uni.example"]
