"""
repositories/user_repo.py
--------------------------
Data access layer for users and everything a user does:
authentication, bookings and direct messages.
"""

from typing import Any, Mapping, Optional

from psycopg2 import errors, sql

from config import Settings
from db.connection import get_connection, release_connection
from db.query_builder import sql_for_partial_update, user_filter_where
from models.listing import Listing, ListingSummary
from models.message import Message
from models.user import User
from repositories.listing_repo import row_to_listing
from security.passwords import PasswordHasher
from utils.errors import Conflict, InvalidInput, NotFound, Unauthorized
from utils.logger import get_logger

logger = get_logger(__name__)

_USER_FIELDS_TO_COLUMNS = {"firstName": "first_name", "lastName": "last_name"}
_UPDATABLE_COLUMNS = {"first_name", "last_name", "email"}
_BOOKING_USER_FKEY = "bookings_username_fkey"
_MESSAGE_SENDER_FKEY = "messages_from_user_fkey"


class UserRepository:
    """Repository for the users, bookings and messages tables."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        hasher: Optional[PasswordHasher] = None,
    ):
        settings = settings or Settings.from_env()
        self.hasher = hasher or PasswordHasher(settings.bcrypt_work_factor)

    # ── AUTH ──────────────────────────────────────────────

    def authenticate(self, username: str, password: str) -> User:
        """
        Check a username/password pair.

        Returns:
            The public profile of the user.

        Raises:
            Unauthorized: If the user is unknown or the password is wrong.
        """
        row = self._fetch_credentials(username)
        if row and self._password_matches(password, row[4]):
            return self._row_to_user(row)

        logger.warning(f"Failed login for {username}")
        raise Unauthorized("Invalid credentials")

    def _reauthenticate(self, username: str, password: str) -> None:
        """
        Re-verify the password of an existing user before a mutation.

        Unlike ``authenticate``, an unknown user is reported as NotFound so
        that updates and deletes of a missing user never look like a bad
        password.
        """
        row = self._fetch_credentials(username)
        if row is None:
            raise NotFound(f"No user: {username}")
        if not self._password_matches(password, row[4]):
            logger.warning(f"Re-authentication failed for {username}")
            raise Unauthorized("Invalid credentials")

    def _fetch_credentials(self, username: str) -> Optional[tuple]:
        query = """
            SELECT username, first_name, last_name, email, password
            FROM users
            WHERE username = %s;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(query, (username,))
                return cur.fetchone()
        finally:
            release_connection(conn)

    def _password_matches(self, password: Optional[str], hashed: str) -> bool:
        return password is not None and self.hasher.verify(password, hashed)

    def register(
        self,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        email: str,
    ) -> User:
        """
        Create a user, storing only a bcrypt hash of the password.

        Uses ON CONFLICT so two concurrent registrations cannot both succeed.

        Raises:
            Conflict: If the username or the email is already taken.
        """
        hashed = self.hasher.hash(password)
        query = """
            INSERT INTO users (username, password, first_name, last_name, email)
            VALUES (%s, %s, %s, %s, %s)
            ON CONFLICT (username) DO NOTHING
            RETURNING username, first_name, last_name, email;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(query, (username, hashed, first_name, last_name, email))
                row = cur.fetchone()
            conn.commit()
        except errors.UniqueViolation:
            conn.rollback()
            raise Conflict(f"Duplicate email: {email}")
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to register user {username}: {e}")
            raise
        finally:
            release_connection(conn)

        if row is None:
            raise Conflict(f"Duplicate username: {username}")
        logger.info(f"Registered user {username}")
        return self._row_to_user(row)

    # ── READ ──────────────────────────────────────────────

    def find_all(self, username: Optional[str] = None) -> list[User]:
        """
        List public profiles ordered by username.

        Args:
            username: Optional case-insensitive partial match.
        """
        clause = user_filter_where(username)
        query = sql.SQL(
            "SELECT username, first_name, last_name, email FROM users {} ORDER BY username;"
        ).format(clause.where)
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(query, clause.values)
                return [self._row_to_user(r) for r in cur.fetchall()]
        finally:
            release_connection(conn)

    def get(self, username: str) -> User:
        """
        Fetch a user with their owned listings and booked listing ids.

        Raises:
            NotFound: If there is no such user.
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT username, first_name, last_name, email FROM users WHERE username = %s;",
                    (username,),
                )
                row = cur.fetchone()
                if row is None:
                    raise NotFound(f"No user: {username}")
                user = self._row_to_user(row)

                cur.execute(
                    """
                    SELECT id, title, description, location, price
                    FROM listings
                    WHERE username = %s
                    ORDER BY id;
                    """,
                    (username,),
                )
                user.listings = [
                    ListingSummary(
                        id=r[0], title=r[1], description=r[2],
                        location=r[3], price=float(r[4]),
                    )
                    for r in cur.fetchall()
                ]

                cur.execute(
                    "SELECT listing_id FROM bookings WHERE username = %s ORDER BY listing_id;",
                    (username,),
                )
                user.bookings = [r[0] for r in cur.fetchall()]
                return user
        finally:
            release_connection(conn)

    # ── UPDATE ────────────────────────────────────────────

    def update(
        self, username: str, data: Mapping[str, Any], current_password: str
    ) -> User:
        """
        Partially update a user's profile.

        The current password is always re-verified before anything is
        written; it is a credential, not an updatable field.

        Args:
            username: User to update.
            data: Any of {firstName, lastName, email}.
            current_password: The user's current password.

        Raises:
            Unauthorized: If the password does not verify.
            InvalidInput: If ``data`` is empty or names another field.
            Conflict: If the new email belongs to someone else.
            NotFound: If the user does not exist, or vanished after re-authentication.
        """
        self._reauthenticate(username, current_password)

        update = sql_for_partial_update(data, _USER_FIELDS_TO_COLUMNS, _UPDATABLE_COLUMNS)
        query = sql.SQL(
            """
            UPDATE users
            SET {}
            WHERE username = %s
            RETURNING username, first_name, last_name, email;
            """
        ).format(update.set_clause)

        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(query, [*update.values, username])
                row = cur.fetchone()
            conn.commit()
        except errors.UniqueViolation:
            conn.rollback()
            raise Conflict(f"Duplicate email: {data.get('email')}")
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to update user {username}: {e}")
            raise
        finally:
            release_connection(conn)

        if row is None:
            raise NotFound(f"No user: {username}")
        logger.info(f"Updated user {username}: {', '.join(update.columns)}")
        return self._row_to_user(row)

    # ── DELETE ────────────────────────────────────────────

    def remove(self, username: str, current_password: str) -> None:
        """
        Delete a user after re-verifying their password.

        Deletes do not cascade: a user who still owns listings, bookings
        or messages cannot be removed.

        Raises:
            Unauthorized: If the password does not verify.
            InvalidInput: If other rows still reference the user.
            NotFound: If the user does not exist, or vanished after re-authentication.
        """
        self._reauthenticate(username, current_password)

        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(
                    "DELETE FROM users WHERE username = %s RETURNING username;",
                    (username,),
                )
                row = cur.fetchone()
            conn.commit()
        except errors.ForeignKeyViolation:
            conn.rollback()
            raise InvalidInput(
                f"User {username} still has listings, bookings or messages"
            )
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to delete user {username}: {e}")
            raise
        finally:
            release_connection(conn)

        if row is None:
            raise NotFound(f"No user: {username}")
        logger.info(f"Deleted user {username}")

    # ── BOOKINGS ──────────────────────────────────────────

    def book_listing(self, username: str, listing_id: int) -> str:
        """
        Book a listing for a user.

        A single statement resolves the listing and the user and inserts
        the booking only when the user is not the owner; the primary key
        on (username, listing_id) makes a concurrent double booking a no-op.

        Returns:
            The booked listing's title.

        Raises:
            NotFound: If the listing or the user does not exist.
            InvalidInput: If the user owns the listing or already booked it.
        """
        query = """
            WITH target AS (
                SELECT id, title, username FROM listings WHERE id = %(listing_id)s
            ), booker AS (
                SELECT username FROM users WHERE username = %(username)s
            ), inserted AS (
                INSERT INTO bookings (username, listing_id)
                SELECT b.username, t.id
                FROM target t CROSS JOIN booker b
                WHERE t.username <> b.username
                ON CONFLICT (username, listing_id) DO NOTHING
                RETURNING listing_id
            )
            SELECT t.title,
                   t.username,
                   EXISTS (SELECT 1 FROM booker),
                   EXISTS (SELECT 1 FROM inserted)
            FROM target t;
        """
        params = {"username": username, "listing_id": listing_id}
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(query, params)
                row = cur.fetchone()
            conn.commit()
        except errors.ForeignKeyViolation as e:
            # Listing or user deleted while the booking was being written.
            conn.rollback()
            if e.diag.constraint_name == _BOOKING_USER_FKEY:
                raise NotFound(f"No username: {username}")
            raise NotFound(f"No listing: {listing_id}")
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to book listing #{listing_id} for {username}: {e}")
            raise
        finally:
            release_connection(conn)

        if row is None:
            raise NotFound(f"No listing: {listing_id}")
        title, owner, user_exists, inserted = row
        if not user_exists:
            raise NotFound(f"No username: {username}")
        if owner == username:
            raise InvalidInput("Can't book own listing")
        if not inserted:
            raise InvalidInput("Can't book the same listing twice")

        logger.info(f"{username} booked listing #{listing_id}")
        return title

    def unbook_listing(self, username: str, listing_id: int) -> str:
        """
        Cancel a user's booking of a listing.

        Returns:
            The listing's title.

        Raises:
            NotFound: If the listing or the user does not exist.
            InvalidInput: If the user has not booked the listing.
        """
        query = """
            WITH target AS (
                SELECT id, title FROM listings WHERE id = %(listing_id)s
            ), booker AS (
                SELECT username FROM users WHERE username = %(username)s
            ), deleted AS (
                DELETE FROM bookings
                WHERE username = %(username)s AND listing_id = %(listing_id)s
                RETURNING listing_id
            )
            SELECT t.title,
                   EXISTS (SELECT 1 FROM booker),
                   EXISTS (SELECT 1 FROM deleted)
            FROM target t;
        """
        params = {"username": username, "listing_id": listing_id}
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(query, params)
                row = cur.fetchone()
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to unbook listing #{listing_id} for {username}: {e}")
            raise
        finally:
            release_connection(conn)

        if row is None:
            raise NotFound(f"No listing: {listing_id}")
        title, user_exists, deleted = row
        if not user_exists:
            raise NotFound(f"No username: {username}")
        if not deleted:
            raise InvalidInput("You have not booked this listing")

        logger.info(f"{username} canceled booking of listing #{listing_id}")
        return title

    def get_bookings(self, username: str) -> list[Listing]:
        """
        Listings the user has booked, ordered by listing id.

        Raises:
            NotFound: If there is no such user.
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                missing = self._missing_users(cur, username)
                if missing:
                    raise NotFound(f"No username: {missing[0]}")
                cur.execute(
                    """
                    SELECT l.id, l.title, l.description, l.location, l.price, l.username, l.image
                    FROM bookings AS b
                    JOIN listings AS l ON b.listing_id = l.id
                    WHERE b.username = %s
                    ORDER BY l.id;
                    """,
                    (username,),
                )
                return [row_to_listing(r) for r in cur.fetchall()]
        finally:
            release_connection(conn)

    # ── MESSAGES ──────────────────────────────────────────

    def send_message(self, from_user: str, to_user: str, text: str) -> Message:
        """
        Send a direct message. The timestamp is assigned by the database.

        Returns:
            The stored message (text and sent time).

        Raises:
            InvalidInput: If a user messages themselves.
            NotFound: If either user does not exist.
        """
        if from_user == to_user:
            raise InvalidInput("You cannot message yourself.")

        query = """
            INSERT INTO messages (from_user, to_user, text)
            SELECT f.username, t.username, %s
            FROM users AS f, users AS t
            WHERE f.username = %s AND t.username = %s
            RETURNING text, sent_time;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(query, (text, from_user, to_user))
                row = cur.fetchone()
                missing = [] if row else self._missing_users(cur, from_user, to_user)
            conn.commit()
        except errors.ForeignKeyViolation as e:
            conn.rollback()
            if e.diag.constraint_name == _MESSAGE_SENDER_FKEY:
                raise NotFound(f"No username: {from_user}")
            raise NotFound(f"No username: {to_user}")
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to send message from {from_user} to {to_user}: {e}")
            raise
        finally:
            release_connection(conn)

        if row is None:
            raise NotFound(f"No username: {missing[0] if missing else to_user}")
        logger.info(f"Message sent from {from_user} to {to_user}")
        return Message(text=row[0], sent_time=row[1])

    def get_messages(self, username: str, other_user: str) -> list[Message]:
        """
        The conversation between two users, oldest first, in both directions.

        Raises:
            InvalidInput: If both usernames are the same.
            NotFound: If either user does not exist.
        """
        if username == other_user:
            raise InvalidInput("You cannot message yourself.")

        query = """
            SELECT text, sent_time, from_user, to_user
            FROM messages
            WHERE (from_user = %(a)s AND to_user = %(b)s)
               OR (from_user = %(b)s AND to_user = %(a)s)
            ORDER BY sent_time, id;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                missing = self._missing_users(cur, username, other_user)
                if missing:
                    raise NotFound(f"No username: {missing[0]}")
                cur.execute(query, {"a": username, "b": other_user})
                return [
                    Message(text=r[0], sent_time=r[1], from_user=r[2], to_user=r[3])
                    for r in cur.fetchall()
                ]
        finally:
            release_connection(conn)

    def get_inbox_users(self, username: str) -> list[str]:
        """
        Everyone the user has exchanged messages with, most recent first.

        Raises:
            NotFound: If there is no such user.
        """
        query = """
            SELECT CASE WHEN from_user = %(me)s THEN to_user ELSE from_user END AS other,
                   MAX(sent_time) AS last_sent
            FROM messages
            WHERE from_user = %(me)s OR to_user = %(me)s
            GROUP BY other
            ORDER BY last_sent DESC, other;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                missing = self._missing_users(cur, username)
                if missing:
                    raise NotFound(f"No username: {missing[0]}")
                cur.execute(query, {"me": username})
                return [r[0] for r in cur.fetchall()]
        finally:
            release_connection(conn)

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _missing_users(cur, *usernames: str) -> list[str]:
        """Return the given usernames that have no row, in argument order."""
        cur.execute(
            "SELECT username FROM users WHERE username = ANY(%s);",
            (list(usernames),),
        )
        found = {r[0] for r in cur.fetchall()}
        return [u for u in usernames if u not in found]

    @staticmethod
    def _row_to_user(row: tuple) -> User:
        """Convert (username, first_name, last_name, email, ...) to a User."""
        return User(
            username=row[0],
            first_name=row[1],
            last_name=row[2],
            email=row[3],
        )

