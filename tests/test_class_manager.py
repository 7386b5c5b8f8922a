import pytest
from sqlalchemy import false

from core.exceptions import (
    ClassNotFoundError,
    ConflictError,
    InvalidClassCodeError,
    NotAMemberError,
    PermissionDeniedError,
    ValidationError,
)
from models.class_join_request import ClassJoinRequestModel
from models.class_membership import ClassMembershipModel
from models.class_unit import ClassUnitModel
from utils.class_manager import ClassManager
from utils.join_request_manager import JoinRequestManager


def test_create_class_writes_units_and_creator_membership(db, make_user):
    alice = make_user("alice")
    cls = ClassManager(db).create_class(
        name="  Algorithms ",
        creator_id=alice.user_id,
        description="Spring term",
        units=[{"name": "Sorting"}, {"name": "Graphs", "description": "BFS/DFS"}],
    )

    assert cls.name == "Algorithms"
    assert cls.creator_id == alice.user_id
    assert cls.is_active is True
    assert cls.code_expires is False and cls.code_expires_at is None
    assert [u.name for u in ClassManager(db).list_units(cls.class_id)] == ["Sorting", "Graphs"]
    assert ClassManager(db).get_role(cls.class_id, alice.user_id) == "creator"


@pytest.mark.parametrize(
    "name, units",
    [("", [{"name": "Week 1"}]), ("Algorithms", []), ("Algorithms", [{"name": " "}])],
)
def test_create_class_validation(db, make_user, name, units):
    alice = make_user("alice")
    with pytest.raises(ValidationError):
        ClassManager(db).create_class(name=name, creator_id=alice.user_id, units=units)


def test_create_class_with_expiring_code(db, make_user, make_class):
    cls = make_class(make_user("alice").user_id, code_expires=True, expiration_hours=24)
    assert cls.code_expires is True
    assert cls.code_expires_at > cls.code_created_at


def test_expiry_hours_are_bounded(db, make_user, make_class):
    with pytest.raises(ValidationError):
        make_class(make_user("alice").user_id, code_expires=True, expiration_hours=0)


def test_regenerate_code_replaces_old_code(db, make_user, make_class):
    alice = make_user("alice")
    cls = make_class(alice.user_id)
    old_code = cls.class_code
    manager = ClassManager(db)

    updated = manager.regenerate_code(cls.class_id, alice.user_id, expires=True, expires_in_hours=5)

    assert updated.class_code != old_code
    assert updated.code_expires is True
    assert not manager.codes.is_code_valid(old_code)
    assert manager.codes.is_code_valid(updated.class_code)


def test_only_creator_or_admin_regenerates(db, make_user, make_class):
    alice, bob = make_user("alice"), make_user("bob")
    cls = make_class(alice.user_id)
    manager = ClassManager(db)
    with pytest.raises(PermissionDeniedError):
        manager.regenerate_code(cls.class_id, bob.user_id)
    assert manager.regenerate_code(cls.class_id, bob.user_id, is_admin=True).class_code


def test_lookup_by_code(db, make_user, make_class):
    alice = make_user("alice", full_name="Alice Wanjiru")
    cls = make_class(alice.user_id, units=[{"name": "A"}, {"name": "B"}])

    info = ClassManager(db).lookup_by_code(cls.class_code)
    assert info["creator_name"] == "Alice Wanjiru"
    assert info["unit_count"] == 2
    assert info["member_count"] == 1

    with pytest.raises(InvalidClassCodeError):
        ClassManager(db).lookup_by_code("000000")


def test_unit_management(db, make_user, make_class):
    cls = make_class(make_user("alice").user_id)
    manager = ClassManager(db)

    added = manager.add_unit(cls.class_id, "Week 2", "Recursion")
    assert added.order_index == 1

    updated = manager.update_unit(cls.class_id, added.id, "Week 2b", None)
    assert updated.name == "Week 2b" and updated.description is None

    manager.delete_unit(cls.class_id, added.id)
    assert [u.name for u in manager.list_units(cls.class_id)] == ["Week 1"]

    with pytest.raises(ValidationError):
        manager.add_unit(cls.class_id, "")


def test_add_member_is_idempotent(db, make_user, make_class):
    alice, bob = make_user("alice"), make_user("bob")
    cls = make_class(alice.user_id)
    manager = ClassManager(db)

    assert manager.add_member(cls.class_id, bob.user_id) is True
    assert manager.add_member(cls.class_id, bob.user_id) is False
    assert len(manager.list_members(cls.class_id)) == 2


def test_ensure_membership_survives_unique_constraint_race(db, make_user, make_class, monkeypatch):
    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
    cls = make_class(alice.user_id)
    manager = ClassManager(db)
    assert manager.add_member(cls.class_id, bob.user_id) is True

    # Another writer got in first: the guard sees nothing, the insert collides.
    monkeypatch.setattr(manager, "_membership_exists", lambda class_id, user_id: false())
    assert manager.ensure_membership(cls.class_id, bob.user_id, "student") is False
    db.commit()

    rows = db.query(ClassMembershipModel).filter_by(class_id=cls.class_id, user_id=bob.user_id)
    assert rows.count() == 1
    assert manager.ensure_membership(cls.class_id, carol.user_id, "student") is True
    db.commit()
    assert len(manager.list_members(cls.class_id)) == 3


def test_remove_member_and_leave(db, make_user, make_class):
    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
    cls = make_class(alice.user_id)
    manager = ClassManager(db)
    manager.add_member(cls.class_id, bob.user_id)
    manager.add_member(cls.class_id, carol.user_id)

    with pytest.raises(PermissionDeniedError):
        manager.remove_member(cls.class_id, carol.user_id, bob.user_id)
    manager.remove_member(cls.class_id, carol.user_id, alice.user_id)
    with pytest.raises(ConflictError):
        manager.remove_member(cls.class_id, alice.user_id, alice.user_id)

    manager.leave_class(cls.class_id, bob.user_id)
    with pytest.raises(NotAMemberError):
        manager.leave_class(cls.class_id, bob.user_id)
    with pytest.raises(ConflictError):
        manager.leave_class(cls.class_id, alice.user_id)

    assert [m["user_id"] for m in manager.list_members(cls.class_id)] == [alice.user_id]


def test_delete_class_cascades(db, make_user, make_class):
    alice, bob = make_user("alice"), make_user("bob")
    cls = make_class(alice.user_id)
    JoinRequestManager(db).submit(cls.class_id, bob.user_id, "Bob", "bob@uni.example")
    manager = ClassManager(db)

    with pytest.raises(PermissionDeniedError):
        manager.delete_class(cls.class_id, bob.user_id)
    manager.delete_class(cls.class_id, alice.user_id)

    with pytest.raises(ClassNotFoundError):
        manager.get_class(cls.class_id)
    assert db.query(ClassUnitModel).count() == 0
    assert db.query(ClassMembershipModel).count() == 0
    assert db.query(ClassJoinRequestModel).count() == 0
