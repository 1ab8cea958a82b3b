import pytest
from psycopg2 import errors

from repositories.listing_repo import ListingRepository
from utils.errors import InvalidInput, NotFound

LOFT = (1, "Loft", "Sunny loft", "Paris", 120, "alice", "http://img/loft.jpg")
CABIN = (2, "Cabin", "Quiet cabin", "New York", 80, "bob", "http://img/cabin.jpg")


@pytest.fixture
def repo(settings):
    return ListingRepository(settings)


class TestCreate:
    def test_create(self, repo, fake_db):
        fake_db.queue([LOFT])
        listing = repo.create(
            owner="alice", title="Loft", location="Paris", price=120,
            description="Sunny loft", image="http://img/loft.jpg",
        )
        assert listing.id == 1
        assert listing.to_dict()["username"] == "alice"
        assert fake_db.commits == 1

    def test_default_image(self, repo, fake_db, settings):
        fake_db.queue([LOFT[:6] + (settings.default_listing_image,)])
        repo.create(owner="alice", title="Loft", location="Paris", price=120)
        _, params = fake_db.executed[0]
        assert params[-1] == settings.default_listing_image

    def test_negative_price(self, repo, fake_db):
        with pytest.raises(InvalidInput):
            repo.create(owner="alice", title="Loft", location="Paris", price=-1)
        assert fake_db.executed == []

    @pytest.mark.parametrize("price", [1e13, 10**10, float("inf"), float("nan")])
    def test_unstorable_price(self, repo, fake_db, price):
        with pytest.raises(InvalidInput):
            repo.create(owner="alice", title="Loft", location="Paris", price=price)
        assert fake_db.executed == []

    def test_largest_storable_price(self, repo, fake_db):
        fake_db.queue([LOFT[:4] + (9999999999.99,) + LOFT[5:]])
        listing = repo.create(owner="alice", title="Loft", location="Paris", price=9999999999.99)
        assert listing.price == 9999999999.99

    def test_numeric_overflow_is_invalid_input(self, repo, fake_db):
        fake_db.queue(errors.NumericValueOutOfRange("numeric field overflow"))
        with pytest.raises(InvalidInput, match="out of range"):
            repo.create(owner="alice", title="Loft", location="Paris", price=10)
        assert fake_db.rollbacks == 1
        assert fake_db.released == 1

    def test_unknown_owner(self, repo, fake_db):
        fake_db.queue(errors.ForeignKeyViolation("listings_username_fkey"))
        with pytest.raises(NotFound):
            repo.create(owner="nobody", title="Loft", location="Paris", price=10)
        assert fake_db.rollbacks == 1


class TestFindAll:
    def test_no_filters(self, repo, fake_db):
        fake_db.queue([CABIN, LOFT])
        listings = repo.find_all()
        assert [listing.title for listing in listings] == ["Cabin", "Loft"]
        assert fake_db.executed[0][1] == []

    def test_filters_bind_in_order(self, repo, fake_db):
        fake_db.queue([CABIN])
        repo.find_all(min_price=50, max_price=100, location="york")
        assert fake_db.executed[0][1] == [50, 100, "%york%"]

    def test_min_greater_than_max(self, repo, fake_db):
        with pytest.raises(InvalidInput):
            repo.find_all(min_price=100, max_price=50)
        assert fake_db.executed == []

    def test_equal_bounds_are_valid(self, repo, fake_db):
        fake_db.queue([])
        assert repo.find_all(min_price=80, max_price=80) == []


class TestGet:
    def test_get(self, repo, fake_db):
        fake_db.queue([LOFT])
        assert repo.get(1).title == "Loft"

    def test_missing(self, repo, fake_db):
        fake_db.queue([])
        with pytest.raises(NotFound):
            repo.get(99)


class TestUpdate:
    def test_update(self, repo, fake_db):
        fake_db.queue([LOFT[:4] + (150,) + LOFT[5:]])
        listing = repo.update(1, {"price": 150})
        assert listing.price == 150.0
        assert fake_db.executed[0][1] == [150, 1]

    def test_missing(self, repo, fake_db):
        fake_db.queue([])
        with pytest.raises(NotFound):
            repo.update(99, {"title": "New"})

    def test_empty(self, repo, fake_db):
        with pytest.raises(InvalidInput):
            repo.update(1, {})

    def test_owner_cannot_be_changed(self, repo, fake_db):
        with pytest.raises(InvalidInput):
            repo.update(1, {"username": "bob"})

    def test_negative_price(self, repo, fake_db):
        with pytest.raises(InvalidInput):
            repo.update(1, {"price": -5})

    @pytest.mark.parametrize("price", [1e13, float("inf"), float("nan")])
    def test_unstorable_price(self, repo, fake_db, price):
        with pytest.raises(InvalidInput):
            repo.update(1, {"price": price})
        assert fake_db.executed == []

    def test_numeric_overflow_is_invalid_input(self, repo, fake_db):
        fake_db.queue(errors.NumericValueOutOfRange("numeric field overflow"))
        with pytest.raises(InvalidInput, match="out of range"):
            repo.update(1, {"price": 10})
        assert fake_db.rollbacks == 1


class TestRemove:
    def test_remove(self, repo, fake_db):
        fake_db.queue([(1,)])
        assert repo.remove(1) is None
        assert fake_db.commits == 1

    def test_missing(self, repo, fake_db):
        fake_db.queue([])
        with pytest.raises(NotFound):
            repo.remove(99)

    def test_still_booked(self, repo, fake_db):
        fake_db.queue(errors.ForeignKeyViolation("bookings_listing_id_fkey"))
        with pytest.raises(InvalidInput):
            repo.remove(1)
