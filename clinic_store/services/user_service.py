import logging
from typing import Optional

from clinic_store.exceptions import NotFoundError
from clinic_store.models import ROLE_LABELS, User, UserRole
from clinic_store.services.collection_codec import USERS, CollectionCodec

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"


class UserDirectory:
    """
    User records referenced by appointments and notifications.
    References are weak: nothing here cascades, and lookups of missing ids
    degrade to a placeholder instead of failing.
    """

    def __init__(self, codec: CollectionCodec):
        self.codec = codec

    async def list_all(self) -> list[User]:
        return await self.codec.load(USERS)

    async def list_except(self, user_id: str) -> list[User]:
        """Everyone but the signed-in user (user management screen)."""
        return [u for u in await self.list_all() if u.id != user_id]

    async def list_by_role(self, role: UserRole | str) -> list[User]:
        role = UserRole(role)
        return [u for u in await self.list_all() if u.role == role]

    async def find(self, user_id: str) -> Optional[User]:
        for u in await self.list_all():
            if u.id == user_id:
                return u
        return None

    async def get(self, user_id: str) -> User:
        user = await self.find(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def resolve_name(self, user_id: Optional[str], default: str = UNKNOWN) -> str:
        if not user_id:
            return default
        user = await self.find(user_id)
        return user.name if user and user.name else default

    async def save(self, user: User) -> User:
        """Insert, or replace the record with the same id."""
        async with self.codec.mutate(USERS) as users:
            for i, existing in enumerate(users):
                if existing.id == user.id:
                    users[i] = user
                    break
            else:
                users.append(user)
        logger.info(f"[save] 👤 Saved user {user.id} ({user.role.value})")
        return user

    async def delete(self, user_id: str) -> bool:
        async with self.codec.mutate(USERS) as users:
            before = len(users)
            users[:] = [u for u in users if u.id != user_id]
            removed = len(users) < before
        if removed:
            logger.info(f"[delete] Removed user {user_id}")
        return removed


def role_label(role: UserRole | str) -> str:
    try:
        return ROLE_LABELS[UserRole(role)]
    except ValueError:
        return str(role)
