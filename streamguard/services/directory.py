"""Directory service for member accounts.

Each operation does one full document round trip: fetch, change the users
collection, save. There is no version check, so two registrations racing
against the same document can lose one of them.
"""

import logging
import uuid

from streamguard.core.exceptions import (
    DuplicateUsernameError,
    InvalidCredentialsError,
    UserNotFoundError,
)
from streamguard.core.models import AppDocument, ProfileUpdate, User, UserRegistration
from streamguard.services.document_store import DocumentStore

logger = logging.getLogger(__name__)


def _same_username(a: str, b: str) -> bool:
    return a.lower() == b.lower()


class DirectoryService:
    """Registration, login and profile updates."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def list_users(self) -> list[User]:
        """Get all registered users."""
        document = await self.store.fetch_document()
        return document.users

    async def get_user(self, user_id: str) -> User:
        """Get a user by id.

        Raises:
            UserNotFoundError: No user has this id.
        """
        document = await self.store.fetch_document()
        return self._find(document, user_id)

    async def register(self, registration: UserRegistration) -> User:
        """Create a new user.

        Raises:
            DuplicateUsernameError: The username is taken (case-insensitive).
        """
        document = await self.store.fetch_document()

        if any(_same_username(u.app_username, registration.app_username) for u in document.users):
            raise DuplicateUsernameError(registration.app_username)

        user = User(id=uuid.uuid4().hex, **registration.model_dump())
        document.users.append(user)
        await self.store.save_document(document)

        logger.info(f"Registered user {user.app_username} ({user.id})")
        return user

    async def login(self, username: str, password: str) -> User:
        """Check credentials.

        Passwords are compared as plain text.

        Raises:
            InvalidCredentialsError: No user matches.
        """
        document = await self.store.fetch_document()
        for user in document.users:
            if _same_username(user.app_username, username) and user.password == password:
                return user
        raise InvalidCredentialsError()

    async def update_check_in(self, user_id: str, date_string: str) -> User:
        """Record the date a user claimed their daily check-in.

        Raises:
            UserNotFoundError: No user has this id.
        """
        return await self._update(user_id, {"last_check_in_date": date_string})

    async def update_profile(self, user_id: str, update: ProfileUpdate) -> User:
        """Merge the provided profile fields into a user.

        Fields not set on `update` are left untouched.

        Raises:
            UserNotFoundError: No user has this id.
        """
        return await self._update(user_id, update.changes())

    async def _update(self, user_id: str, changes: dict) -> User:
        document = await self.store.fetch_document()
        current = self._find(document, user_id)

        updated = current.model_copy(update=changes)
        document.users = [updated if u.id == user_id else u for u in document.users]
        await self.store.save_document(document)
        return updated

    @staticmethod
    def _find(document: AppDocument, user_id: str) -> User:
        for user in document.users:
            if user.id == user_id:
                return user
        raise UserNotFoundError(user_id)
