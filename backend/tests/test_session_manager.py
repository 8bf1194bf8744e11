from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from travellers.database import Base
from travellers.errors import SessionExpiredError, SessionNotFoundError
from travellers.models.session import UserSession
from travellers.models.user import User
from travellers.services.session_store import SessionStore, hash_token
from travellers.services.sessions import SessionManager

START = datetime(2026, 1, 1, 12, 0, 0)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def file_session_factory(tmp_path):
    # File-backed so that separate sessions use separate connections.
    engine = create_engine(
        f"sqlite:///{tmp_path / 'sessions.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(file_session_factory):
    session = file_session_factory()
    yield session
    session.close()


@pytest.fixture
def user_id(db):
    user = User(name="Tester", email="tester@example.com", password_hash="hashed")
    db.add(user)
    db.commit()
    return user.id


@pytest.fixture
def clock():
    return FakeClock(START)


@pytest.fixture
def manager(db, clock):
    return SessionManager(
        SessionStore(db),
        clock=clock,
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=30),
    )


def test_create_session_persists_only_token_digests(db, manager, user_id):
    issued = manager.create_session(user_id)

    assert issued.access_token != issued.refresh_token
    assert issued.access_token_valid_until == START + timedelta(minutes=15)
    assert issued.refresh_token_valid_until == START + timedelta(days=30)

    row = db.query(UserSession).filter(UserSession.id == issued.session_id).one()
    assert row.user_id == user_id
    assert row.access_token_hash == hash_token(issued.access_token)
    assert row.refresh_token_hash == hash_token(issued.refresh_token)
    assert issued.access_token not in (row.access_token_hash, row.refresh_token_hash)


def test_access_lifetime_must_be_shorter_than_refresh(db):
    with pytest.raises(ValueError):
        SessionManager(SessionStore(db), access_ttl=timedelta(days=1), refresh_ttl=timedelta(hours=1))


def test_resolve_session_requires_matching_id_and_token(manager, user_id):
    first = manager.create_session(user_id)
    second = manager.create_session(user_id)

    assert manager.resolve_session(first.session_id, first.access_token).id == first.session_id
    assert manager.resolve_session(first.session_id, second.access_token) is None
    assert manager.resolve_session(first.session_id, first.refresh_token) is None


def test_access_expiry_is_strict(manager, clock, user_id):
    issued = manager.create_session(user_id)
    session = manager.resolve_session(issued.session_id, issued.access_token)

    clock.now = issued.access_token_valid_until
    assert not manager.access_expired(session)

    clock.now = issued.access_token_valid_until + timedelta(milliseconds=1)
    assert manager.access_expired(session)


def test_refresh_valid_at_exact_expiry(manager, clock, user_id):
    issued = manager.create_session(user_id)

    clock.now = issued.refresh_token_valid_until
    rotated = manager.refresh_session(issued.session_id, issued.refresh_token)

    assert rotated.user_id == user_id
    assert rotated.session_id != issued.session_id


def test_refresh_expired_one_millisecond_after_expiry(manager, clock, user_id):
    issued = manager.create_session(user_id)

    clock.now = issued.refresh_token_valid_until + timedelta(milliseconds=1)
    with pytest.raises(SessionExpiredError):
        manager.refresh_session(issued.session_id, issued.refresh_token)


def test_expired_refresh_deletes_the_session(db, manager, clock, user_id):
    issued = manager.create_session(user_id)
    clock.now = issued.refresh_token_valid_until + timedelta(seconds=1)

    with pytest.raises(SessionExpiredError):
        manager.refresh_session(issued.session_id, issued.refresh_token)

    assert db.query(UserSession).filter(UserSession.id == issued.session_id).first() is None
    with pytest.raises(SessionNotFoundError):
        manager.refresh_session(issued.session_id, issued.refresh_token)


def test_refresh_is_destructive_and_single_use(db, manager, user_id):
    issued = manager.create_session(user_id)

    rotated = manager.refresh_session(issued.session_id, issued.refresh_token)

    assert db.query(UserSession).filter(UserSession.id == issued.session_id).first() is None
    assert manager.resolve_session(rotated.session_id, rotated.access_token) is not None
    with pytest.raises(SessionNotFoundError):
        manager.refresh_session(issued.session_id, issued.refresh_token)


def test_refresh_with_wrong_token_or_id_is_not_found(manager, user_id):
    issued = manager.create_session(user_id)

    with pytest.raises(SessionNotFoundError):
        manager.refresh_session(issued.session_id, issued.access_token)
    with pytest.raises(SessionNotFoundError):
        manager.refresh_session("missing-session", issued.refresh_token)


def test_concurrent_refresh_has_exactly_one_winner(file_session_factory, clock, user_id, monkeypatch):
    db_a = file_session_factory()
    db_b = file_session_factory()
    try:
        manager_a = SessionManager(SessionStore(db_a), clock=clock)
        store_b = SessionStore(db_b)
        manager_b = SessionManager(store_b, clock=clock)
        issued = manager_a.create_session(user_id)

        winners = []
        real_find = store_b.find_by_refresh_token

        def find_then_lose_race(session_id, refresh_token_hash):
            found = real_find(session_id, refresh_token_hash)
            # The other request rotates the session between our read and our delete.
            winners.append(manager_a.refresh_session(issued.session_id, issued.refresh_token))
            return found

        monkeypatch.setattr(store_b, "find_by_refresh_token", find_then_lose_race)

        with pytest.raises(SessionNotFoundError):
            manager_b.refresh_session(issued.session_id, issued.refresh_token)

        assert len(winners) == 1
        assert manager_a.resolve_session(winners[0].session_id, winners[0].access_token) is not None
    finally:
        db_a.close()
        db_b.close()


def test_terminate_session_is_a_noop_when_absent(manager, user_id):
    issued = manager.create_session(user_id)

    manager.terminate_session(issued.session_id)
    manager.terminate_session(issued.session_id)

    assert manager.resolve_session(issued.session_id, issued.access_token) is None


def test_terminate_all_sessions_for_user(db, manager, user_id):
    other = User(name="Other", email="other@example.com", password_hash="hashed")
    db.add(other)
    db.commit()

    mine = [manager.create_session(user_id) for _ in range(2)]
    theirs = manager.create_session(other.id)

    assert manager.terminate_all_sessions_for_user(user_id) == 2

    for issued in mine:
        assert manager.resolve_session(issued.session_id, issued.access_token) is None
    assert manager.resolve_session(theirs.session_id, theirs.access_token) is not None
