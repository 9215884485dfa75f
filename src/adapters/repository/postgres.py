"""
PostgreSQL repository adapters - Implement the domain ports via psycopg3.

All SQL uses parameterized queries. Atomicity guarantees:

1. **Token issuance**: one INSERT ... ON CONFLICT (user_id, type) DO UPDATE.
   The tokens table keeps a single row per user and type, so replacing the
   previous code and inserting the new one is one statement with no window
   where two live tokens coexist.

2. **Consumption**: UPDATE ... WHERE consumed_at IS NULL is the
   compare-and-set. Under READ COMMITTED a concurrent second UPDATE blocks on
   the row lock, re-evaluates the predicate and matches zero rows.

3. **Consume + confirm**: a data-modifying CTE consumes the token and
   confirms its owner in a single statement.

4. **Social connect**: the account row is locked with SELECT FOR UPDATE,
   the user inserted and the account linked inside one transaction.
"""

import logging
from datetime import datetime, timedelta
from pathlib import Path

from psycopg.errors import UniqueViolation
from psycopg_pool import ConnectionPool

from src.domain.exceptions import AlreadyTaken
from src.domain.models import SocialNetworkAccount, Token, User
from src.domain.ports import Outcome, TokenType
from src.domain.security import generate_token_code
from src.domain.social import ACCOUNT_TAKEN, CODE_TAKEN

logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, username, email, password_hash, confirmed_at, blocked_at, created_at"
_TOKEN_COLUMNS = "user_id, code, type, created_at, expires_at, consumed_at"
_ACCOUNT_COLUMNS = "id, provider, client_id, code, user_id, username, email"

_INSERT_USER_SQL = """
    INSERT INTO users (username, email, password_hash, confirmed_at, created_at)
    VALUES (%s, %s, %s, %s, NOW())
    ON CONFLICT DO NOTHING
    RETURNING id, created_at
"""


def _user_from_row(row: tuple) -> User:
    return User(
        id=row[0],
        username=row[1],
        email=row[2],
        password_hash=row[3],
        confirmed_at=row[4],
        blocked_at=row[5],
        created_at=row[6],
    )


def _token_from_row(row: tuple) -> Token:
    return Token(
        user_id=row[0],
        code=row[1],
        type=TokenType(row[2]),
        created_at=row[3],
        expires_at=row[4],
        consumed_at=row[5],
    )


def _account_from_row(row: tuple) -> SocialNetworkAccount:
    return SocialNetworkAccount(
        id=row[0],
        provider=row[1],
        client_id=row[2],
        code=row[3],
        user_id=row[4],
        username=row[5],
        email=row[6],
    )


def _insert_user(cursor, user: User) -> User | None:
    cursor.execute(
        _INSERT_USER_SQL,
        (user.username, user.email, user.password_hash, user.confirmed_at),
    )
    row = cursor.fetchone()
    if row is None:
        return None
    return User(
        id=row[0],
        username=user.username,
        email=user.email,
        password_hash=user.password_hash,
        confirmed_at=user.confirmed_at,
        blocked_at=user.blocked_at,
        created_at=row[1],
    )


class PostgresUserRepository:
    """
    Implements UserRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def find_by_id(self, user_id: int) -> User | None:
        return self._find_one("id = %s", user_id)

    def find_by_email(self, email: str) -> User | None:
        return self._find_one("email = %s", email)

    def find_by_username(self, username: str) -> User | None:
        return self._find_one("username = %s", username)

    def create(self, user: User) -> User | None:
        """
        Insert a user, relying on the UNIQUE constraints on email and
        username to reject duplicates without raising.
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            stored = _insert_user(cursor, user)
            conn.commit()
            return stored

    def _find_one(self, predicate: str, value) -> User | None:
        sql = f"SELECT {_USER_COLUMNS} FROM users WHERE {predicate}"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (value,))
            row = cursor.fetchone()
        return _user_from_row(row) if row else None


class PostgresTokenStore:
    """Implements TokenStore protocol via psycopg3."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def issue(self, user_id: int, token_type: TokenType, ttl: timedelta) -> Token:
        """
        Upsert the (user, type) row with a fresh code, reset consumption and
        compute expiry with database time.
        """
        sql = """
            INSERT INTO tokens (user_id, code, type, created_at, expires_at, consumed_at)
            VALUES (%s, %s, %s, NOW(), NOW() + %s, NULL)
            ON CONFLICT (user_id, type) DO UPDATE
            SET code = EXCLUDED.code,
                created_at = EXCLUDED.created_at,
                expires_at = EXCLUDED.expires_at,
                consumed_at = NULL
            RETURNING created_at, expires_at
        """
        code = generate_token_code()
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (user_id, code, token_type.value, ttl))
            created_at, expires_at = cursor.fetchone()
            conn.commit()

        return Token(
            user_id=user_id,
            code=code,
            type=token_type,
            created_at=created_at,
            expires_at=expires_at,
        )

    def resolve(self, code: str) -> Token | None:
        sql = f"SELECT {_TOKEN_COLUMNS} FROM tokens WHERE code = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (code,))
            row = cursor.fetchone()
        return _token_from_row(row) if row else None

    def consume(self, token: Token) -> Outcome:
        sql = """
            UPDATE tokens
            SET consumed_at = NOW()
            WHERE code = %s AND consumed_at IS NULL
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (token.code,))
            conn.commit()
            consumed = cursor.rowcount == 1
        return Outcome.SUCCESS if consumed else Outcome.ALREADY_CONSUMED

    def consume_and_confirm(self, token: Token) -> Outcome:
        sql = """
            WITH consumed AS (
                UPDATE tokens
                SET consumed_at = NOW()
                WHERE code = %s AND consumed_at IS NULL
                RETURNING user_id
            )
            UPDATE users
            SET confirmed_at = COALESCE(users.confirmed_at, NOW())
            FROM consumed
            WHERE users.id = consumed.user_id
            RETURNING users.id
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (token.code,))
            row = cursor.fetchone()
            conn.commit()
        return Outcome.SUCCESS if row is not None else Outcome.ALREADY_CONSUMED

    def purge_expired(self, now: datetime) -> int:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("DELETE FROM tokens WHERE expires_at < %s", (now,))
            conn.commit()
            return cursor.rowcount


class PostgresSocialAccountRepository:
    """Implements SocialAccountRepository protocol via psycopg3."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def find_by_code(self, code: str) -> SocialNetworkAccount | None:
        sql = f"SELECT {_ACCOUNT_COLUMNS} FROM social_accounts WHERE code = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (code,))
            row = cursor.fetchone()
        return _account_from_row(row) if row else None

    def save(self, account: SocialNetworkAccount) -> SocialNetworkAccount:
        insert_sql = """
            INSERT INTO social_accounts (provider, client_id, code, user_id, username, email)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING id
        """
        update_sql = """
            UPDATE social_accounts
            SET code = %s, user_id = %s, username = %s, email = %s
            WHERE id = %s
        """
        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                if account.id is None:
                    cursor.execute(
                        insert_sql,
                        (
                            account.provider,
                            account.client_id,
                            account.code,
                            account.user_id,
                            account.username,
                            account.email,
                        ),
                    )
                    account.id = cursor.fetchone()[0]
                else:
                    cursor.execute(
                        update_sql,
                        (account.code, account.user_id, account.username, account.email, account.id),
                    )
                conn.commit()
        except UniqueViolation as exc:
            # The pool connection context rolled the statement back
            if (exc.diag.constraint_name or "").endswith("_code_key"):
                raise AlreadyTaken({"code": CODE_TAKEN}) from None
            raise AlreadyTaken({"client_id": ACCOUNT_TAKEN}) from None
        return account

    def connect_new_user(self, account: SocialNetworkAccount, user: User) -> User | None:
        """
        Insert the user and link the account in one transaction.

        Nothing is written when the account is already linked or the user
        conflicts with an existing one.
        """
        lock_sql = "SELECT user_id FROM social_accounts WHERE id = %s FOR UPDATE"
        link_sql = "UPDATE social_accounts SET user_id = %s WHERE id = %s AND user_id IS NULL"

        with self._pool.connection() as conn:
            with conn.transaction(), conn.cursor() as cursor:
                cursor.execute(lock_sql, (account.id,))
                row = cursor.fetchone()
                if row is None or row[0] is not None:
                    return None

                stored = _insert_user(cursor, user)
                if stored is None:
                    return None

                cursor.execute(link_sql, (stored.id, account.id))

        account.user_id = stored.id
        return stored


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
