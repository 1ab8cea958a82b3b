from datetime import datetime, timedelta, timezone

import pytest
from psycopg2 import errors

from repositories.user_repo import UserRepository
from utils.errors import Conflict, InvalidInput, NotFound, Unauthorized

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def repo(settings, hasher):
    return UserRepository(settings, hasher=hasher)


@pytest.fixture
def alice_row(hasher):
    return ("alice", "Alice", "Smith", "alice@example.com", hasher.hash("password1"))


class TestAuthenticate:
    def test_valid_credentials(self, repo, fake_db, alice_row):
        fake_db.queue([alice_row])
        user = repo.authenticate("alice", "password1")
        assert user.username == "alice"
        assert user.to_profile() == {
            "username": "alice",
            "firstName": "Alice",
            "lastName": "Smith",
            "email": "alice@example.com",
        }
        assert fake_db.released == 1

    def test_wrong_password(self, repo, fake_db, alice_row):
        fake_db.queue([alice_row])
        with pytest.raises(Unauthorized):
            repo.authenticate("alice", "wrong")

    def test_unknown_user(self, repo, fake_db):
        fake_db.queue([])
        with pytest.raises(Unauthorized):
            repo.authenticate("nobody", "password1")


class TestRegister:
    def test_stores_hash_not_plaintext(self, repo, fake_db, hasher):
        fake_db.queue([("bob", "Bob", "Jones", "bob@example.com")])
        user = repo.register("bob", "password2", "Bob", "Jones", "bob@example.com")

        assert user.username == "bob"
        _, params = fake_db.executed[0]
        assert "password2" not in params
        assert hasher.verify("password2", params[1])
        assert fake_db.commits == 1

    def test_duplicate_username(self, repo, fake_db):
        fake_db.queue([])
        with pytest.raises(Conflict, match="Duplicate username"):
            repo.register("bob", "password2", "Bob", "Jones", "bob@example.com")

    def test_duplicate_email(self, repo, fake_db):
        fake_db.queue(errors.UniqueViolation("users_email_key"))
        with pytest.raises(Conflict, match="Duplicate email"):
            repo.register("bob", "password2", "Bob", "Jones", "bob@example.com")
        assert fake_db.rollbacks == 1
        assert fake_db.released == 1


class TestRead:
    def test_find_all(self, repo, fake_db):
        fake_db.queue([
            ("alice", "Alice", "Smith", "alice@example.com"),
            ("alina", "Alina", "Gray", "alina@example.com"),
        ])
        users = repo.find_all("ali")
        assert [u.username for u in users] == ["alice", "alina"]
        assert fake_db.executed[0][1] == ["%ali%"]

    def test_get_with_listings_and_bookings(self, repo, fake_db):
        fake_db.queue(
            [("alice", "Alice", "Smith", "alice@example.com")],
            [(1, "Loft", "Sunny", "Paris", 120)],
            [(3,), (7,)],
        )
        user = repo.get("alice")
        detail = user.to_detail()
        assert detail["listings"] == [
            {"id": 1, "title": "Loft", "description": "Sunny", "location": "Paris", "price": 120.0}
        ]
        assert detail["bookings"] == [3, 7]

    def test_get_missing(self, repo, fake_db):
        fake_db.queue([])
        with pytest.raises(NotFound):
            repo.get("nobody")
        assert fake_db.released == 1


class TestUpdate:
    def test_reauthenticates_then_updates(self, repo, fake_db, alice_row):
        fake_db.queue([alice_row], [("alice", "Ally", "Smith", "alice@example.com")])
        user = repo.update("alice", {"firstName": "Ally"}, "password1")

        assert user.first_name == "Ally"
        assert fake_db.executed[1][1] == ["Ally", "alice"]
        assert fake_db.commits == 1

    def test_wrong_password_writes_nothing(self, repo, fake_db, alice_row):
        fake_db.queue([alice_row])
        with pytest.raises(Unauthorized):
            repo.update("alice", {"firstName": "Ally"}, "wrong")
        assert len(fake_db.executed) == 1

    def test_password_is_not_updatable(self, repo, fake_db, alice_row):
        fake_db.queue([alice_row])
        with pytest.raises(InvalidInput):
            repo.update("alice", {"password": "new-password"}, "password1")

    def test_empty_update(self, repo, fake_db, alice_row):
        fake_db.queue([alice_row])
        with pytest.raises(InvalidInput):
            repo.update("alice", {}, "password1")

    def test_missing_user(self, repo, fake_db):
        fake_db.queue([])
        with pytest.raises(NotFound):
            repo.update("nobody", {"firstName": "X"}, "password1")

    def test_row_vanished_after_authentication(self, repo, fake_db, alice_row):
        fake_db.queue([alice_row], [])
        with pytest.raises(NotFound):
            repo.update("alice", {"firstName": "Ally"}, "password1")


class TestRemove:
    def test_remove(self, repo, fake_db, alice_row):
        fake_db.queue([alice_row], [("alice",)])
        assert repo.remove("alice", "password1") is None
        assert fake_db.commits == 1

    def test_missing_user(self, repo, fake_db):
        fake_db.queue([])
        with pytest.raises(NotFound):
            repo.remove("nobody", "password1")

    def test_wrong_password(self, repo, fake_db, alice_row):
        fake_db.queue([alice_row])
        with pytest.raises(Unauthorized):
            repo.remove("alice", "wrong")

    def test_still_referenced(self, repo, fake_db, alice_row):
        fake_db.queue([alice_row], errors.ForeignKeyViolation("listings_username_fkey"))
        with pytest.raises(InvalidInput):
            repo.remove("alice", "password1")
        assert fake_db.rollbacks == 1


class TestBookings:
    def test_book(self, repo, fake_db):
        fake_db.queue([("Loft", "alice", True, True)])
        assert repo.book_listing("bob", 1) == "Loft"
        assert fake_db.executed[0][1] == {"username": "bob", "listing_id": 1}

    def test_missing_listing(self, repo, fake_db):
        fake_db.queue([])
        with pytest.raises(NotFound, match="listing"):
            repo.book_listing("bob", 99)

    def test_missing_user(self, repo, fake_db):
        fake_db.queue([("Loft", "alice", False, False)])
        with pytest.raises(NotFound, match="username"):
            repo.book_listing("nobody", 1)

    def test_own_listing(self, repo, fake_db):
        fake_db.queue([("Loft", "alice", True, False)])
        with pytest.raises(InvalidInput, match="own listing"):
            repo.book_listing("alice", 1)

    def test_twice(self, repo, fake_db):
        fake_db.queue([("Loft", "alice", True, False)])
        with pytest.raises(InvalidInput, match="twice"):
            repo.book_listing("bob", 1)

    def test_listing_deleted_concurrently(self, repo, fake_db):
        fake_db.queue(errors.ForeignKeyViolation("bookings_listing_id_fkey"))
        with pytest.raises(NotFound, match="No listing: 1"):
            repo.book_listing("bob", 1)
        assert fake_db.rollbacks == 1

    def test_user_deleted_concurrently(self, repo, fake_db, fk_violation):
        fake_db.queue(fk_violation("bookings_username_fkey"))
        with pytest.raises(NotFound, match="No username: bob"):
            repo.book_listing("bob", 1)
        assert fake_db.rollbacks == 1

    def test_unbook(self, repo, fake_db):
        fake_db.queue([("Loft", True, True)])
        assert repo.unbook_listing("bob", 1) == "Loft"

    def test_unbook_not_booked(self, repo, fake_db):
        fake_db.queue([("Loft", True, False)])
        with pytest.raises(InvalidInput):
            repo.unbook_listing("bob", 1)

    def test_unbook_missing_listing(self, repo, fake_db):
        fake_db.queue([])
        with pytest.raises(NotFound):
            repo.unbook_listing("bob", 99)

    def test_unbook_missing_user(self, repo, fake_db):
        fake_db.queue([("Loft", False, False)])
        with pytest.raises(NotFound):
            repo.unbook_listing("nobody", 1)

    def test_get_bookings(self, repo, fake_db):
        fake_db.queue(
            [("bob",)],
            [(1, "Loft", "Sunny", "Paris", 120, "alice", "http://img/1")],
        )
        bookings = repo.get_bookings("bob")
        assert [b.title for b in bookings] == ["Loft"]
        assert bookings[0].price == 120.0

    def test_get_bookings_missing_user(self, repo, fake_db):
        fake_db.queue([])
        with pytest.raises(NotFound):
            repo.get_bookings("nobody")


class TestMessages:
    def test_send(self, repo, fake_db):
        fake_db.queue([("hi", T0)])
        message = repo.send_message("alice", "bob", "hi")
        assert message.to_dict() == {"text": "hi", "sentTime": T0.isoformat()}
        assert fake_db.commits == 1

    def test_send_to_self(self, repo, fake_db):
        with pytest.raises(InvalidInput):
            repo.send_message("bob", "bob", "hi")
        assert fake_db.executed == []

    def test_send_to_missing_user(self, repo, fake_db):
        fake_db.queue([], [("alice",)])
        with pytest.raises(NotFound, match="nobody"):
            repo.send_message("alice", "nobody", "hi")

    def test_send_from_missing_user(self, repo, fake_db):
        fake_db.queue([], [("bob",)])
        with pytest.raises(NotFound, match="ghost"):
            repo.send_message("ghost", "bob", "hi")

    def test_sender_deleted_concurrently(self, repo, fake_db, fk_violation):
        fake_db.queue(fk_violation("messages_from_user_fkey"))
        with pytest.raises(NotFound, match="No username: ghost"):
            repo.send_message("ghost", "bob", "hi")
        assert fake_db.rollbacks == 1

    def test_recipient_deleted_concurrently(self, repo, fake_db, fk_violation):
        fake_db.queue(fk_violation("messages_to_user_fkey"))
        with pytest.raises(NotFound, match="No username: bob"):
            repo.send_message("alice", "bob", "hi")

    def test_get_messages(self, repo, fake_db):
        fake_db.queue(
            [("a",), ("b",)],
            [("hi", T0, "a", "b"), ("yo", T0 + timedelta(seconds=1), "b", "a")],
        )
        messages = repo.get_messages("a", "b")
        assert [m.text for m in messages] == ["hi", "yo"]
        assert messages[1].from_user == "b"

    def test_get_messages_with_self(self, repo, fake_db):
        with pytest.raises(InvalidInput):
            repo.get_messages("a", "a")

    def test_get_messages_missing_user(self, repo, fake_db):
        fake_db.queue([("a",)])
        with pytest.raises(NotFound, match="b"):
            repo.get_messages("a", "b")

    def test_inbox(self, repo, fake_db):
        fake_db.queue(
            [("a",)],
            [("b", T0 + timedelta(minutes=5)), ("c", T0)],
        )
        assert repo.get_inbox_users("a") == ["b", "c"]

    def test_inbox_missing_user(self, repo, fake_db):
        fake_db.queue([])
        with pytest.raises(NotFound):
            repo.get_inbox_users("nobody")
