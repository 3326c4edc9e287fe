"""
Tests for applications and their status machine.

Validates:
- Apply, cancel and re-apply reuse the same application row
- Applying twice while active is a conflict
- Only 'applying' can be cancelled
- Only the posting owner can mark hired/rejected
- Hired and rejected are terminal
"""
import pytest
from httpx import AsyncClient

from jobboard.errors import (
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    NoResultsError,
    NotFoundError,
    ValidationError,
)
from jobboard.models import ApplicationStatus
from jobboard.services.applications import (
    apply,
    can_transition,
    cancel,
    list_applications,
    set_status,
)

from conftest import auth_headers


# =============================================================================
# Transition table
# =============================================================================

@pytest.mark.parametrize("from_status,to_status", [
    (ApplicationStatus.APPLYING, ApplicationStatus.CANCELLED),
    (ApplicationStatus.APPLYING, ApplicationStatus.HIRED),
    (ApplicationStatus.APPLYING, ApplicationStatus.REJECTED),
    (ApplicationStatus.CANCELLED, ApplicationStatus.APPLYING),
])
def test_allowed_transitions(from_status, to_status):
    assert can_transition(from_status, to_status)


@pytest.mark.parametrize("from_status,to_status", [
    (ApplicationStatus.HIRED, ApplicationStatus.APPLYING),
    (ApplicationStatus.REJECTED, ApplicationStatus.APPLYING),
    (ApplicationStatus.CANCELLED, ApplicationStatus.HIRED),
    (ApplicationStatus.HIRED, ApplicationStatus.REJECTED),
])
def test_blocked_transitions(from_status, to_status):
    assert not can_transition(from_status, to_status)


# =============================================================================
# Service
# =============================================================================

@pytest.mark.asyncio
async def test_apply_cancel_reapply_keeps_id(db, make_posting, other_user):
    posting = await make_posting()
    user_id, posting_id = other_user.id, posting.id

    application, reactivated = await apply(db, user_id, posting_id)
    assert reactivated is False
    assert application.status == "applying"
    application_id = application.id

    cancelled = await cancel(db, user_id, application_id)
    assert cancelled.status == "cancelled"

    again, reactivated = await apply(db, user_id, posting_id)
    assert reactivated is True
    assert again.id == application_id
    assert again.status == "applying"


@pytest.mark.asyncio
async def test_apply_twice_is_conflict(db, make_posting, other_user):
    posting = await make_posting()
    await apply(db, other_user.id, posting.id)

    with pytest.raises(ConflictError):
        await apply(db, other_user.id, posting.id)


@pytest.mark.asyncio
async def test_apply_missing_posting(db, other_user):
    with pytest.raises(NotFoundError):
        await apply(db, other_user.id, 9999)


@pytest.mark.asyncio
async def test_cancel_requires_applying(db, make_posting, other_user):
    posting = await make_posting()
    application, _ = await apply(db, other_user.id, posting.id)
    await cancel(db, other_user.id, application.id)

    with pytest.raises(ValidationError):
        await cancel(db, other_user.id, application.id)


@pytest.mark.asyncio
async def test_cancel_someone_elses_application(db, make_posting, other_user, test_user):
    posting = await make_posting()
    application, _ = await apply(db, other_user.id, posting.id)

    with pytest.raises(NotFoundError):
        await cancel(db, test_user.id, application.id)


@pytest.mark.asyncio
async def test_owner_marks_hired_then_terminal(db, make_posting, test_user, other_user):
    posting = await make_posting(owner=test_user)
    application, _ = await apply(db, other_user.id, posting.id)

    hired = await set_status(db, test_user.id, application.id, ApplicationStatus.HIRED)
    assert hired.status == "hired"

    with pytest.raises(InvalidTransitionError):
        await set_status(db, test_user.id, application.id, ApplicationStatus.REJECTED)

    with pytest.raises(ValidationError):
        await cancel(db, other_user.id, application.id)


@pytest.mark.asyncio
async def test_non_owner_cannot_decide(db, make_posting, test_user, other_user):
    posting = await make_posting(owner=test_user)
    application, _ = await apply(db, other_user.id, posting.id)

    with pytest.raises(ForbiddenError):
        await set_status(db, other_user.id, application.id, ApplicationStatus.REJECTED)


@pytest.mark.asyncio
async def test_owner_cannot_set_cancelled(db, make_posting, test_user, other_user):
    posting = await make_posting(owner=test_user)
    application, _ = await apply(db, other_user.id, posting.id)

    with pytest.raises(ValidationError):
        await set_status(db, test_user.id, application.id, ApplicationStatus.CANCELLED)


@pytest.mark.asyncio
async def test_list_applications_filters_and_sorts(db, make_posting, other_user):
    first = await make_posting()
    second = await make_posting()
    user_id = other_user.id
    a1, _ = await apply(db, user_id, first.id)
    a2, _ = await apply(db, user_id, second.id)
    await cancel(db, user_id, a1.id)

    newest_first = await list_applications(db, user_id)
    assert [a.id for a in newest_first] == [a2.id, a1.id]

    oldest_first = await list_applications(db, user_id, sort_by_date="asc")
    assert [a.id for a in oldest_first] == [a1.id, a2.id]

    cancelled = await list_applications(db, user_id, status="cancelled")
    assert [a.id for a in cancelled] == [a1.id]

    with pytest.raises(ValidationError):
        await list_applications(db, user_id, status="withdrawn")

    with pytest.raises(ValidationError):
        await list_applications(db, user_id, sort_by_date="sideways")


@pytest.mark.asyncio
async def test_list_applications_empty(db, other_user):
    with pytest.raises(NoResultsError):
        await list_applications(db, other_user.id)


# =============================================================================
# API
# =============================================================================

@pytest.mark.asyncio
async def test_api_apply_and_reactivate_status_codes(
    async_client: AsyncClient, make_posting, other_user, settings
):
    posting = await make_posting()
    headers = auth_headers(other_user, settings)

    created = await async_client.post(
        "/api/applications/", json={"jobPostingId": posting.id}, headers=headers
    )
    assert created.status_code == 201
    application_id = created.json()["data"]["application_id"]

    duplicate = await async_client.post(
        "/api/applications/", json={"jobPostingId": posting.id}, headers=headers
    )
    assert duplicate.status_code == 409

    cancelled = await async_client.delete(f"/api/applications/{application_id}", headers=headers)
    assert cancelled.status_code == 200
    assert cancelled.json()["data"]["status"] == "cancelled"

    reactivated = await async_client.post(
        "/api/applications/", json={"jobPostingId": posting.id}, headers=headers
    )
    assert reactivated.status_code == 200
    assert reactivated.json()["data"]["application_id"] == application_id
    assert reactivated.json()["data"]["status"] == "applying"


@pytest.mark.asyncio
async def test_api_list_applications(async_client: AsyncClient, make_posting, other_user, settings):
    posting = await make_posting(company_name="잡보드", sector_names=["백엔드"])
    headers = auth_headers(other_user, settings)
    await async_client.post("/api/applications/", json={"jobPostingId": posting.id}, headers=headers)

    response = await async_client.get(
        "/api/applications/", params={"status": "applying", "sortByDate": "desc"}, headers=headers
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data) == 1
    assert data[0]["company_name"] == "잡보드"
    assert data[0]["sectors"] == ["백엔드"]


@pytest.mark.asyncio
async def test_api_owner_decision(async_client: AsyncClient, make_posting, test_user, other_user, settings):
    posting = await make_posting(owner=test_user)
    applied = await async_client.post(
        "/api/applications/",
        json={"jobPostingId": posting.id},
        headers=auth_headers(other_user, settings),
    )
    application_id = applied.json()["data"]["application_id"]

    forbidden = await async_client.patch(
        f"/api/applications/{application_id}/status",
        json={"status": "hired"},
        headers=auth_headers(other_user, settings),
    )
    assert forbidden.status_code == 403

    decided = await async_client.patch(
        f"/api/applications/{application_id}/status",
        json={"status": "rejected"},
        headers=auth_headers(test_user, settings),
    )
    assert decided.status_code == 200
    assert decided.json()["data"]["status"] == "rejected"
