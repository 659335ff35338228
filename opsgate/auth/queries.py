"""Account and credential database queries.

Using the AuthQueries class as a repository for the identity store
(``accounts``) and the credential store (``credentials``).
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import aiosqlite

from opsgate.common import Identity, Role

from .models import ACTIVE_STATUS, Credential
from .security_manager import (
    check_account_password,
    hash_account_password,
    hash_credential_password,
)

if TYPE_CHECKING:
    from aiosqlite import Connection

LOGGER = logging.getLogger(__name__)


def _to_db_time(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


class AuthQueries:
    """Repository for account and credential queries."""

    CREATE_ACCOUNTS_TABLE = """
        CREATE TABLE IF NOT EXISTS accounts (
            email TEXT PRIMARY KEY,
            hashed_password TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'user',
            display_name TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
        """

    CREATE_CREDENTIALS_TABLE = """
        CREATE TABLE IF NOT EXISTS credentials (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'user',
            user_email TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'Active',
            login_attempts INTEGER NOT NULL DEFAULT 0,
            last_login TEXT,
            locked_until TEXT
        );
        """

    COUNT_ACCOUNTS = """SELECT COUNT(*) FROM accounts;"""

    GET_ACCOUNT = """
        SELECT email, role, display_name FROM accounts WHERE email = ?;
        """

    GET_ACCOUNT_AUTH_INFO = """
        SELECT hashed_password FROM accounts WHERE email = ?;
        """

    ADD_ACCOUNT = """
        INSERT INTO accounts (email, hashed_password, role, display_name)
        VALUES (?, ?, ?, ?);
        """

    CREDENTIAL_COLUMNS = """
        id, username, password_hash, role, user_email, status,
        login_attempts, last_login, locked_until
        """

    FIND_ACTIVE_CREDENTIAL = f"""
        SELECT {CREDENTIAL_COLUMNS} FROM credentials
        WHERE username = ? AND password_hash = ? AND status = ?;
        """  # noqa: S608

    GET_CREDENTIAL = f"""
        SELECT {CREDENTIAL_COLUMNS} FROM credentials WHERE id = ?;
        """  # noqa: S608

    ADD_CREDENTIAL = """
        INSERT INTO credentials
            (username, password_hash, role, user_email, status,
             login_attempts, locked_until)
        VALUES (?, ?, ?, ?, ?, ?, ?);
        """

    RECORD_LOGIN = """
        UPDATE credentials
        SET last_login = ?, login_attempts = 0, locked_until = NULL
        WHERE id = ?;
        """

    def __init__(self, connection: Connection) -> None:
        """Create an AuthQueries instance.

        :param connection: Open aiosqlite connection
        """
        self.connection = connection

    @classmethod
    async def create(cls, db_path: str) -> AuthQueries:
        """Create an AuthQueries instance with its own aiosqlite connection.

        :param db_path: Path to the SQLite database file
        :return: Configured AuthQueries instance
        """
        connection = await aiosqlite.connect(db_path)
        return cls(connection)

    async def close(self) -> None:
        """Close the database connection."""
        await self.connection.close()

    async def initialize_tables(self) -> None:
        """Create the accounts and credentials tables if they do not exist.

        This method should be called during application startup.
        """
        try:
            await self.connection.execute(AuthQueries.CREATE_ACCOUNTS_TABLE)
            await self.connection.execute(AuthQueries.CREATE_CREDENTIALS_TABLE)
            await self.connection.commit()
        except aiosqlite.Error:
            await self.connection.rollback()
            LOGGER.exception("Error initializing tables")
            raise

    async def count_accounts(self) -> int:
        """Return the number of accounts."""
        async with self.connection.execute(AuthQueries.COUNT_ACCOUNTS) as cursor:
            row = await cursor.fetchone()
        return row[0] if row else 0

    async def get_account(self, email: str) -> Identity | None:
        """Load the account with the given email.

        :param email: The account email
        :return: The Identity if the account exists, None otherwise
        """
        async with self.connection.execute(
            AuthQueries.GET_ACCOUNT,
            (email,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None

        email, role, display_name = row
        return Identity(email=email, role=role, profile={"display_name": display_name})

    async def authenticate_account(self, email: str, password: str) -> Identity | None:
        """Check an account password.

        :param email: The account email
        :param password: The plaintext password to verify
        :return: The Identity if authentication is successful, None otherwise
        """
        async with self.connection.execute(
            AuthQueries.GET_ACCOUNT_AUTH_INFO,
            (email,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None or not check_account_password(password, row[0]):
            return None
        return await self.get_account(email)

    async def add_account(
        self,
        email: str,
        password: str,
        role: Role | str = Role.USER,
        display_name: str | None = None,
    ) -> Identity:
        """Insert an account. Used for seeding; accounts are managed elsewhere.

        :return: The new Identity
        :raises aiosqlite.Error: If the insert fails
        """
        hashed_password = hash_account_password(password).decode()
        try:
            await self.connection.execute(
                AuthQueries.ADD_ACCOUNT,
                (email, hashed_password, str(role), display_name),
            )
            await self.connection.commit()
        except aiosqlite.Error:
            await self.connection.rollback()
            LOGGER.exception("Error creating account %s", email)
            raise
        return Identity(email=email, role=str(role), profile={"display_name": display_name})

    async def add_credential(  # noqa: PLR0913
        self,
        username: str,
        password: str,
        role: Role | str,
        user_email: str,
        *,
        status: str = ACTIVE_STATUS,
        login_attempts: int = 0,
        locked_until: datetime | None = None,
    ) -> Credential:
        """Insert a credential. Used for seeding; credentials are managed elsewhere.

        :return: The stored Credential
        :raises aiosqlite.Error: If the insert fails
        """
        try:
            cursor = await self.connection.execute(
                AuthQueries.ADD_CREDENTIAL,
                (
                    username,
                    hash_credential_password(password),
                    str(role),
                    user_email,
                    status,
                    login_attempts,
                    _to_db_time(locked_until),
                ),
            )
            await self.connection.commit()
        except aiosqlite.Error:
            await self.connection.rollback()
            LOGGER.exception("Error creating credential %s", username)
            raise

        credential = await self.get_credential(cursor.lastrowid)
        if credential is None:
            msg = f"Credential {username} was not stored"
            raise RuntimeError(msg)
        return credential

    async def find_active_credential(
        self,
        username: str,
        password_hash: str,
    ) -> Credential | None:
        """Find the active credential matching a username and password hash.

        :param username: The credential username
        :param password_hash: Hex SHA-256 of the password
        :return: The matching Credential, or None
        """
        async with self.connection.execute(
            AuthQueries.FIND_ACTIVE_CREDENTIAL,
            (username, password_hash, ACTIVE_STATUS),
        ) as cursor:
            row = await cursor.fetchone()
        return self._credential_from_row(row)

    async def get_credential(self, credential_id: int | None) -> Credential | None:
        """Load a credential by id."""
        async with self.connection.execute(
            AuthQueries.GET_CREDENTIAL,
            (credential_id,),
        ) as cursor:
            row = await cursor.fetchone()
        return self._credential_from_row(row)

    async def record_login(self, credential_id: int, last_login: datetime) -> int:
        """Stamp a successful login and reset the lockout counters.

        :param credential_id: The credential id
        :param last_login: Time of the login
        :return: Number of rows updated
        :raises aiosqlite.Error: If the update fails
        """
        try:
            cursor = await self.connection.execute(
                AuthQueries.RECORD_LOGIN,
                (_to_db_time(last_login), credential_id),
            )
            await self.connection.commit()
        except aiosqlite.Error:
            await self.connection.rollback()
            LOGGER.exception("Error recording login for credential %s", credential_id)
            raise
        return cursor.rowcount

    @staticmethod
    def _credential_from_row(row: tuple | None) -> Credential | None:
        if row is None:
            return None
        keys = (
            "id",
            "username",
            "password_hash",
            "role",
            "user_email",
            "status",
            "login_attempts",
            "last_login",
            "locked_until",
        )
        return Credential.model_validate(dict(zip(keys, row, strict=True)))
