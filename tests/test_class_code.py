import re
from datetime import datetime, timedelta

import pytest
import pytz

from core.exceptions import CodeGenerationError
from utils import class_code
from utils.class_code import ClassCodeService, normalize_code

CODE_RE = re.compile(r"^[A-Z0-9]{6}$")


def test_generated_codes_are_six_uppercase_alphanumerics(db):
    service = ClassCodeService(db)
    for _ in range(50):
        assert CODE_RE.match(service.generate_code())


def test_generate_code_skips_codes_in_use(db, make_user, make_class, monkeypatch):
    creator = make_user("alice")
    existing = make_class(creator.user_id)
    candidates = iter(existing.class_code + "ZZZZZZ")
    monkeypatch.setattr(class_code.secrets, "choice", lambda alphabet: next(candidates))

    assert ClassCodeService(db).generate_code() == "ZZZZZZ"


def test_generate_code_gives_up_after_bounded_attempts(db, make_user, make_class, monkeypatch):
    creator = make_user("alice")
    monkeypatch.setattr(class_code.secrets, "choice", lambda alphabet: "A")
    make_class(creator.user_id)  # takes AAAAAA

    with pytest.raises(CodeGenerationError) as excinfo:
        ClassCodeService(db).generate_code()
    assert "try again" in str(excinfo.value)


def test_unknown_code_is_invalid(db):
    assert ClassCodeService(db).is_code_valid("NOPE00") is False


def test_non_expiring_code_is_valid(db, make_user, make_class):
    cls = make_class(make_user("alice").user_id)
    assert ClassCodeService(db).is_code_valid(cls.class_code) is True


def test_code_is_normalized_before_lookup(db, make_user, make_class):
    cls = make_class(make_user("alice").user_id)
    typed = f"  {cls.class_code.lower()} "
    assert normalize_code(typed) == cls.class_code
    assert ClassCodeService(db).is_code_valid(typed) is True


def test_expiry_boundary(db, make_user, make_class):
    cls = make_class(make_user("alice").user_id, code_expires=True, expiration_hours=2)
    expires_at = datetime.fromisoformat(cls.code_expires_at)
    service = ClassCodeService(db)

    assert service.is_code_valid(cls.class_code, now=expires_at - timedelta(seconds=1))
    assert not service.is_code_valid(cls.class_code, now=expires_at)
    assert not service.is_code_valid(cls.class_code, now=expires_at + timedelta(hours=1))


def test_inactive_class_code_is_invalid(db, make_user, make_class):
    cls = make_class(make_user("alice").user_id)
    cls.is_active = False
    db.commit()
    assert ClassCodeService(db).is_code_valid(cls.class_code) is False


def test_expiring_code_without_timestamp_fails_closed(db, make_user, make_class):
    cls = make_class(make_user("alice").user_id)
    cls.code_expires = True
    cls.code_expires_at = None
    db.commit()
    assert ClassCodeService(db).is_code_valid(cls.class_code, now=datetime.now(pytz.utc)) is False
