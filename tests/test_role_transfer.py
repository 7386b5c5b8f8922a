import pytest

from core.exceptions import (
    AlreadyCreatorError,
    NotAMemberError,
    NotCurrentCreatorError,
    TargetNotFoundError,
    ValidationError,
)
from models.class_membership import ClassMembershipModel
from models.class_model import ClassModel
from utils.class_manager import ClassManager
from utils.role_transfer import RoleTransferManager


@pytest.fixture
def setup(db, make_user, make_class):
    alice = make_user("alice")
    bob = make_user("bob")
    cls = make_class(alice.user_id)
    ClassManager(db).add_member(cls.class_id, bob.user_id)
    return RoleTransferManager(db), cls, alice, bob


def _roles(db, class_id):
    return {
        m.user_id: m.role
        for m in db.query(ClassMembershipModel).filter_by(class_id=class_id).all()
    }


def test_transfer_swaps_roles_and_creator_id(db, setup):
    manager, cls, alice, bob = setup

    updated = manager.transfer_creator_role(cls.class_id, alice.user_id, "bob@uni.example")

    assert updated.creator_id == bob.user_id
    roles = _roles(db, cls.class_id)
    assert roles == {alice.user_id: "student", bob.user_id: "creator"}
    assert list(roles.values()).count("creator") == 1


def test_target_email_is_case_insensitive(db, setup):
    manager, cls, alice, bob = setup
    manager.transfer_creator_role(cls.class_id, alice.user_id, "  BOB@uni.example ")
    assert db.get(ClassModel, cls.class_id).creator_id == bob.user_id


def test_unknown_target(setup):
    manager, cls, alice, _ = setup
    with pytest.raises(TargetNotFoundError):
        manager.transfer_creator_role(cls.class_id, alice.user_id, "ghost@uni.example")


@pytest.mark.parametrize("email", ["bob", "bob@uni..example", "bob@-uni.example"])
def test_malformed_email(setup, email):
    manager, cls, alice, _ = setup
    with pytest.raises(ValidationError):
        manager.transfer_creator_role(cls.class_id, alice.user_id, email)


def test_target_not_a_member(setup, make_user):
    manager, cls, alice, _ = setup
    make_user("carol")
    with pytest.raises(NotAMemberError):
        manager.transfer_creator_role(cls.class_id, alice.user_id, "carol@uni.example")


def test_target_already_creator(setup):
    manager, cls, alice, _ = setup
    with pytest.raises(AlreadyCreatorError):
        manager.transfer_creator_role(cls.class_id, alice.user_id, "alice@uni.example")


def test_caller_not_creator(db, setup, make_user):
    manager, cls, alice, bob = setup
    carol = make_user("carol")
    ClassManager(db).add_member(cls.class_id, carol.user_id)

    with pytest.raises(NotCurrentCreatorError):
        manager.transfer_creator_role(cls.class_id, bob.user_id, "carol@uni.example")
    assert _roles(db, cls.class_id)[alice.user_id] == "creator"


def test_failed_precondition_leaves_state_untouched(db, setup):
    manager, cls, alice, bob = setup
    with pytest.raises(NotCurrentCreatorError):
        manager.transfer_creator_role(cls.class_id, bob.user_id, "alice@uni.example")
    assert db.get(ClassModel, cls.class_id).creator_id == alice.user_id
    assert _roles(db, cls.class_id) == {alice.user_id: "creator", bob.user_id: "student"}


def test_stale_creator_loses_compare_and_swap(db, setup):
    manager, cls, alice, bob = setup
    # Another transfer already moved creator_id while alice's membership still says creator.
    db.query(ClassModel).filter_by(class_id=cls.class_id).update({"creator_id": bob.user_id})
    db.commit()

    with pytest.raises(NotCurrentCreatorError):
        manager.transfer_creator_role(cls.class_id, alice.user_id, "bob@uni.example")
    assert _roles(db, cls.class_id) == {alice.user_id: "creator", bob.user_id: "student"}


def test_second_transfer_by_former_creator_fails(db, setup):
    manager, cls, alice, bob = setup
    manager.transfer_creator_role(cls.class_id, alice.user_id, "bob@uni.example")

    with pytest.raises(NotCurrentCreatorError):
        manager.transfer_creator_role(cls.class_id, alice.user_id, "bob@uni.example")
