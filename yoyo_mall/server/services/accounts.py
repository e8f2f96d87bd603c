"""
Account workflows: registration, sign-in, profile and address book.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from yoyo_mall.core.database.base import utc_now
from yoyo_mall.core.database.entities.users import Address, AuthProvider, LoginRecord, User, UserRole
from yoyo_mall.core.database.repositories.users import (
    AddressRepository,
    LoginRecordRepository,
    UserProfileRepository,
    UserRepository,
)
from yoyo_mall.core.exceptions import AuthenticationError, ConflictError, NotFoundError
from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.core.models.io.users import (
    AddressCreate,
    AddressUpdate,
    ProfileRead,
    ProfileUpdate,
    RegisterRequest,
    UserWithProfile,
)

from .security import GoogleIdentity, create_access_token, hash_password, verify_password

logger = get_logger(__name__)


def split_name(name: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """First word and the remainder of a display name."""
    parts = (name or "").split()
    if not parts:
        return None, None
    return parts[0], " ".join(parts[1:]) or None


class AccountService:
    """Account operations for one request."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.users = UserRepository(session)
        self.profiles = UserProfileRepository(session)
        self.addresses = AddressRepository(session)
        self.login_records = LoginRecordRepository(session)

    async def register(self, payload: RegisterRequest) -> User:
        """Create a credentials account with a profile.

        Raises:
            ConflictError: ``EMAIL_EXISTS``
        """
        email = payload.email.strip().lower()
        if await self.users.get_by_email(email) is not None:
            raise ConflictError("Email is already registered", code="EMAIL_EXISTS")

        user = await self.users.add(
            User(
                email=email,
                name=payload.name,
                password_hash=hash_password(payload.password),
                role=UserRole.CUSTOMER.value,
                provider=AuthProvider.CREDENTIALS.value,
            )
        )
        first_name, last_name = split_name(payload.name)
        await self.profiles.upsert(user.id, first_name=first_name, last_name=last_name)
        await self.session.commit()
        await self.session.refresh(user)
        logger.info(f"Registered user {user.id}")
        return user

    async def record_login(
        self, user: User, ip_address: Optional[str], user_agent: Optional[str], provider: Optional[str] = None
    ) -> LoginRecord:
        return await self.login_records.create(
            LoginRecord(
                user_id=user.id,
                ip_address=ip_address,
                user_agent=(user_agent or "")[:512] or None,
                provider=provider or user.provider,
            )
        )

    async def login(
        self, email: str, password: str, ip_address: Optional[str], user_agent: Optional[str]
    ) -> Tuple[str, User]:
        """Check credentials and issue a token.

        Every failure is reported as the same ``INVALID_CREDENTIALS`` error.
        """
        user = await self.users.get_by_email(email)
        if user is None or not user.is_active or not verify_password(password, user.password_hash):
            logger.info("Rejected credentials sign-in")
            raise AuthenticationError("Invalid email or password", code="INVALID_CREDENTIALS")
        await self.record_login(user, ip_address, user_agent, AuthProvider.CREDENTIALS.value)
        return create_access_token(user), user

    async def google_login(
        self, identity: GoogleIdentity, ip_address: Optional[str], user_agent: Optional[str]
    ) -> Tuple[str, User]:
        """Sign in with a verified Google identity, creating the account on first use."""
        email = identity.email.strip().lower()
        user = await self.users.get_by_email(email)
        if user is None:
            user = await self.users.add(
                User(
                    email=email,
                    name=identity.name or email.split("@")[0],
                    avatar=identity.picture,
                    role=UserRole.CUSTOMER.value,
                    provider=AuthProvider.GOOGLE.value,
                    email_verified=True,
                )
            )
            first_name, last_name = identity.given_name, identity.family_name
            if not first_name:
                first_name, last_name = split_name(identity.name)
            await self.profiles.upsert(user.id, first_name=first_name, last_name=last_name)
            await self.session.commit()
            await self.session.refresh(user)
            logger.info(f"Created user {user.id} from Google sign-in")
        else:
            if not user.is_active:
                raise AuthenticationError("Account is disabled", code="INVALID_CREDENTIALS")
            if not user.avatar and identity.picture:
                user.avatar = identity.picture
                user = await self.users.update(user)

        await self.record_login(user, ip_address, user_agent, AuthProvider.GOOGLE.value)
        return create_access_token(user), user

    async def profile(self, user: User) -> UserWithProfile:
        profile = await self.profiles.get_by_user(user.id)
        return UserWithProfile.model_validate(
            {
                **user.model_dump(),
                "profile": ProfileRead.model_validate(profile) if profile is not None else None,
            }
        )

    async def update_profile(self, user: User, payload: ProfileUpdate) -> UserWithProfile:
        changes = payload.model_dump(exclude_unset=True)
        name = changes.pop("name", None)
        if name is not None:
            user.name = name.strip()
            user.updated_at = utc_now()
            self.session.add(user)
        if changes:
            await self.profiles.upsert(user.id, **changes)
        await self.session.commit()
        await self.session.refresh(user)
        return await self.profile(user)

    async def list_addresses(self, user: User) -> List[Address]:
        return await self.addresses.list_for_user(user.id)

    async def _owned_address(self, user: User, address_id: str) -> Address:
        address = await self.addresses.get_for_user(address_id, user.id)
        if address is None:
            raise NotFoundError("Address not found", code="ADDRESS_NOT_FOUND")
        return address

    async def create_address(self, user: User, payload: AddressCreate) -> Address:
        address = await self.addresses.add(Address(user_id=user.id, **payload.model_dump()))
        if address.is_default:
            await self.addresses.clear_default(user.id, keep_id=address.id)
        await self.session.commit()
        await self.session.refresh(address)
        return address

    async def update_address(self, user: User, address_id: str, payload: AddressUpdate) -> Address:
        address = await self._owned_address(user, address_id)
        for key, value in payload.model_dump(exclude_unset=True).items():
            setattr(address, key, value)
        if address.is_default:
            await self.addresses.clear_default(user.id, keep_id=address.id)
        return await self.addresses.update(address)

    async def delete_address(self, user: User, address_id: str) -> None:
        address = await self._owned_address(user, address_id)
        await self.addresses.delete(address.id)
