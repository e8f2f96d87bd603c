"""
User Account Endpoints.

Profile, sign-in history and address book of the signed-in user.
"""

from fastapi import APIRouter, Request, status

from yoyo_mall.core.database.repositories.users import LoginRecordRepository
from yoyo_mall.core.models.io.common import DataResponse, MessageResponse
from yoyo_mall.core.models.io.users import (
    AddressCreate,
    AddressListResponse,
    AddressRead,
    AddressUpdate,
    LoginRecordListResponse,
    LoginRecordRead,
    ProfileUpdate,
    UserProfileResponse,
)
from yoyo_mall.server.services.accounts import AccountService
from yoyo_mall.server.services.deps import CurrentUser, SessionDep, client_ip

router = APIRouter()


@router.get(
    "/profile",
    response_model=UserProfileResponse,
    summary="Get Profile",
    description="Return the signed-in user with their profile details.",
)
async def get_profile(user: CurrentUser, session: SessionDep) -> UserProfileResponse:
    return UserProfileResponse(data=await AccountService(session).profile(user))


@router.put(
    "/profile",
    response_model=UserProfileResponse,
    summary="Update Profile",
    description="Update the display name and profile fields. Omitted fields are left unchanged.",
    responses={400: {"description": "Invalid input"}},
)
async def update_profile(payload: ProfileUpdate, user: CurrentUser, session: SessionDep) -> UserProfileResponse:
    data = await AccountService(session).update_profile(user, payload)
    return UserProfileResponse(data=data, message="Profile updated")


@router.get(
    "/login-records",
    response_model=LoginRecordListResponse,
    summary="Sign-in History",
    description="The 20 most recent sign-ins, newest first.",
)
async def list_login_records(user: CurrentUser, session: SessionDep) -> LoginRecordListResponse:
    records = await LoginRecordRepository(session).recent_for_user(user.id)
    return LoginRecordListResponse(data=[LoginRecordRead.model_validate(r) for r in records])


@router.post(
    "/login-records",
    response_model=DataResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record Sign-in",
    description="Store a sign-in record for the current request (used after client-side sign-in flows).",
)
async def create_login_record(request: Request, user: CurrentUser, session: SessionDep) -> DataResponse:
    record = await AccountService(session).record_login(user, client_ip(request), request.headers.get("user-agent"))
    return DataResponse(data=LoginRecordRead.model_validate(record).model_dump(by_alias=True, mode="json"))


@router.get(
    "/addresses",
    response_model=AddressListResponse,
    summary="List Addresses",
    description="Saved addresses, default first.",
)
async def list_addresses(user: CurrentUser, session: SessionDep) -> AddressListResponse:
    addresses = await AccountService(session).list_addresses(user)
    return AddressListResponse(data=[AddressRead.model_validate(a) for a in addresses])


@router.post(
    "/addresses",
    response_model=DataResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Address",
    description="Save an address. Marking it default clears the flag on the other addresses.",
)
async def create_address(payload: AddressCreate, user: CurrentUser, session: SessionDep) -> DataResponse:
    address = await AccountService(session).create_address(user, payload)
    return DataResponse(data=AddressRead.model_validate(address).model_dump(by_alias=True, mode="json"))


@router.put(
    "/addresses/{address_id}",
    response_model=DataResponse,
    summary="Update Address",
    responses={404: {"description": "Address not found"}},
)
async def update_address(
    address_id: str, payload: AddressUpdate, user: CurrentUser, session: SessionDep
) -> DataResponse:
    address = await AccountService(session).update_address(user, address_id, payload)
    return DataResponse(data=AddressRead.model_validate(address).model_dump(by_alias=True, mode="json"))


@router.delete(
    "/addresses/{address_id}",
    response_model=MessageResponse,
    summary="Delete Address",
    responses={404: {"description": "Address not found"}},
)
async def delete_address(address_id: str, user: CurrentUser, session: SessionDep) -> MessageResponse:
    await AccountService(session).delete_address(user, address_id)
    return MessageResponse(message="Address deleted")
