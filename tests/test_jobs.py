"""
Tests for Jobs API endpoints.
"""
from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.models import JobPosting
from jobboard.models.user import User
from jobboard.services.job_repository import load_posting
from jobboard.services.pagination import PAGE_SIZE

from conftest import auth_headers, job_data


# ============================================================
# AUTH
# ============================================================

@pytest.mark.asyncio
async def test_list_jobs_requires_token(async_client: AsyncClient):
    response = await async_client.get("/api/jobs/")

    assert response.status_code == 401
    body = response.json()
    assert body["status"] == "error"
    assert body["kind"] == "unauthenticated"
    assert body["code"] == 401


@pytest.mark.asyncio
async def test_list_jobs_rejects_garbage_token(async_client: AsyncClient):
    response = await async_client.get(
        "/api/jobs/", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert response.status_code == 401


# ============================================================
# CREATE JOB TESTS
# ============================================================

@pytest.mark.asyncio
async def test_create_job(client: AsyncClient, db: AsyncSession, test_user: User):
    """Camel-case body, as the web client sends it."""
    response = await client.post("/api/jobs/", json={
        "companyName": "잡보드",
        "title": "Python 백엔드 개발자",
        "link": "https://jobs.example.com/view/100",
        "educationLevel": "대졸",
        "deadline": "~ 12/31(화)",
        "locationNames": ["서울 강남구", "서울 서초구"],
        "sectorNames": ["백엔드"],
        "employmentType": "정규직",
        "salary": "5,000만원",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "success"
    posting_id = body["data"]["job_posting_id"]

    posting = await load_posting(db, posting_id)
    assert posting.user_id == test_user.id
    assert posting.company_name == "잡보드"
    assert posting.location_names == ["서울 강남구", "서울 서초구"]


@pytest.mark.asyncio
async def test_create_job_missing_field(client: AsyncClient):
    data = job_data()
    del data["sector_names"]

    response = await client.post("/api/jobs/", json=data)

    assert response.status_code == 400
    assert response.json()["kind"] == "validation"


@pytest.mark.asyncio
async def test_create_job_duplicate(client: AsyncClient):
    first = await client.post("/api/jobs/", json=job_data(1))
    assert first.status_code == 201

    response = await client.post("/api/jobs/", json=job_data(1))

    assert response.status_code == 409
    assert response.json()["kind"] == "conflict"


# ============================================================
# LIST / SEARCH TESTS
# ============================================================

@pytest.mark.asyncio
async def test_list_jobs_envelope_and_arrays(client: AsyncClient, make_posting):
    await make_posting(location_names=["서울 강남구", "경기 성남시"], sector_names=["백엔드"])

    response = await client.get("/api/jobs/")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["pagination"] == {
        "currentPage": 1,
        "totalPages": 1,
        "pageSize": PAGE_SIZE,
        "totalItems": 1,
    }
    job = body["data"][0]
    assert job["locations"] == ["서울 강남구", "경기 성남시"]
    assert job["sectors"] == ["백엔드"]
    assert job["employment_types"] == ["정규직"]


@pytest.mark.asyncio
async def test_pagination_boundaries(client: AsyncClient, make_posting):
    """21 postings: page 2 holds one, page 3 is out of range, page 0 is invalid."""
    for _ in range(PAGE_SIZE + 1):
        await make_posting()

    page1 = await client.get("/api/jobs/", params={"page": 1})
    assert page1.status_code == 200
    assert len(page1.json()["data"]) == PAGE_SIZE
    assert page1.json()["pagination"]["totalPages"] == 2

    page2 = await client.get("/api/jobs/", params={"page": 2})
    assert page2.status_code == 200
    assert len(page2.json()["data"]) == 1

    page3 = await client.get("/api/jobs/", params={"page": 3})
    assert page3.status_code == 400
    assert page3.json()["kind"] == "validation"

    page0 = await client.get("/api/jobs/", params={"page": 0})
    assert page0.status_code == 400
    assert page0.json()["kind"] == "validation"


@pytest.mark.asyncio
async def test_no_matches_is_no_results(client: AsyncClient, make_posting):
    await make_posting()

    response = await client.get("/api/jobs/", params={"keyword": "존재하지않는키워드"})

    assert response.status_code == 404
    assert response.json()["kind"] == "no_results"


@pytest.mark.asyncio
async def test_filters_are_and_combined(client: AsyncClient, make_posting):
    match = await make_posting(company_name="잡보드", location_names=["서울 강남구"], sector_names=["백엔드"])
    await make_posting(company_name="잡보드", location_names=["부산 해운대구"], sector_names=["백엔드"])
    await make_posting(company_name="다른회사", location_names=["서울 강남구"], sector_names=["백엔드"])

    location_id = match.locations[0].id
    sector_id = match.sectors[0].id

    response = await client.get("/api/jobs/", params={
        "company": "잡보드",
        "location": location_id,
        "sector": sector_id,
    })

    assert response.status_code == 200
    ids = [job["job_posting_id"] for job in response.json()["data"]]
    assert ids == [match.id]


@pytest.mark.asyncio
async def test_keyword_matches_title_or_company(client: AsyncClient, make_posting):
    by_title = await make_posting(title="Kotlin 서버 개발자", company_name="A사")
    by_company = await make_posting(title="프론트엔드", company_name="Kotlin Labs")
    await make_posting(title="디자이너", company_name="B사")

    response = await client.get("/api/jobs/", params={"keyword": "kotlin", "sort": "job_posting_id"})

    assert response.status_code == 200
    ids = [job["job_posting_id"] for job in response.json()["data"]]
    assert ids == [by_title.id, by_company.id]


@pytest.mark.asyncio
@pytest.mark.parametrize("keyword", ["%", "_", "개발_자"])
async def test_keyword_wildcards_match_literally(client: AsyncClient, make_posting, keyword):
    await make_posting(title="백엔드 개발자", company_name="잡보드")

    response = await client.get("/api/jobs/", params={"keyword": keyword})

    assert response.status_code == 404
    assert response.json()["kind"] == "no_results"


@pytest.mark.asyncio
async def test_keyword_with_percent_sign(client: AsyncClient, make_posting):
    match = await make_posting(title="성과급 100% 지급")
    await make_posting(title="성과급 1000 지급")

    response = await client.get("/api/jobs/", params={"keyword": "100%"})

    assert [job["job_posting_id"] for job in response.json()["data"]] == [match.id]


@pytest.mark.asyncio
async def test_sort_by_views_desc(client: AsyncClient, make_posting, db: AsyncSession):
    low = await make_posting()
    high = await make_posting()
    high.views = 10
    low.views = 1
    await db.commit()

    response = await client.get("/api/jobs/", params={"sort": "views DESC"})

    ids = [job["job_posting_id"] for job in response.json()["data"]]
    assert ids == [high.id, low.id]


@pytest.mark.asyncio
@pytest.mark.parametrize("sort", ["password DESC", "views SIDEWAYS", "views DESC extra"])
async def test_invalid_sort(client: AsyncClient, make_posting, sort):
    await make_posting()

    response = await client.get("/api/jobs/", params={"sort": sort})

    assert response.status_code == 400
    assert response.json()["kind"] == "validation"


@pytest.mark.asyncio
async def test_search_by_sector_name(client: AsyncClient, make_posting):
    match = await make_posting(sector_names=["데이터 엔지니어링"])
    await make_posting(sector_names=["디자인"])

    response = await client.get("/api/jobs/sectors", params={"keyword": "데이터"})

    assert response.status_code == 200
    assert [job["job_posting_id"] for job in response.json()["data"]] == [match.id]

    missing = await client.get("/api/jobs/sectors")
    assert missing.status_code == 400


# ============================================================
# DETAIL TESTS
# ============================================================

@pytest.mark.asyncio
async def test_get_job_detail_counts_views_and_lists_related(client: AsyncClient, make_posting):
    posting = await make_posting(company_name="잡보드", sector_names=["백엔드"])
    same_company = await make_posting(company_name="잡보드", sector_names=["디자인"])
    same_sector = await make_posting(company_name="다른회사", sector_names=["백엔드"])
    await make_posting(company_name="무관", sector_names=["영업"])

    first = await client.get(f"/api/jobs/{posting.id}")
    second = await client.get(f"/api/jobs/{posting.id}")

    assert first.status_code == 200
    assert first.json()["data"]["detail"]["views"] == 1
    assert second.json()["data"]["detail"]["views"] == 2

    related_ids = {job["job_posting_id"] for job in second.json()["data"]["related"]}
    assert related_ids == {same_company.id, same_sector.id}


@pytest.mark.asyncio
async def test_related_is_capped_at_five(client: AsyncClient, make_posting):
    posting = await make_posting(company_name="잡보드")
    for _ in range(7):
        await make_posting(company_name="잡보드")

    response = await client.get(f"/api/jobs/{posting.id}")

    related = response.json()["data"]["related"]
    assert len(related) == 5
    assert posting.id not in {job["job_posting_id"] for job in related}


@pytest.mark.asyncio
async def test_get_job_not_found(client: AsyncClient):
    response = await client.get("/api/jobs/9999")

    assert response.status_code == 404
    assert response.json()["kind"] == "not_found"


# ============================================================
# UPDATE / DELETE TESTS
# ============================================================

@pytest.mark.asyncio
async def test_update_job_by_owner(client: AsyncClient, make_posting):
    posting = await make_posting()

    response = await client.put(f"/api/jobs/{posting.id}", json={
        "title": "Staff Engineer",
        "sectorNames": ["플랫폼"],
    })

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == "Staff Engineer"
    assert data["sectors"] == ["플랫폼"]
    assert data["last_modified_date"] is not None


@pytest.mark.asyncio
async def test_update_job_empty_body(client: AsyncClient, make_posting):
    posting = await make_posting()

    response = await client.put(f"/api/jobs/{posting.id}", json={})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_job_not_owner(
    async_client: AsyncClient, make_posting, other_user: User, settings, db: AsyncSession
):
    posting = await make_posting()
    posting_id, original_title = posting.id, posting.title

    response = await async_client.put(
        f"/api/jobs/{posting_id}",
        json={"title": "Hijacked"},
        headers=auth_headers(other_user, settings),
    )

    assert response.status_code == 403
    assert response.json()["kind"] == "forbidden"

    db.expire_all()
    assert (await load_posting(db, posting_id)).title == original_title


@pytest.mark.asyncio
async def test_delete_job(client: AsyncClient, make_posting, db: AsyncSession):
    posting = await make_posting()
    posting_id = posting.id

    response = await client.delete(f"/api/jobs/{posting_id}")

    assert response.status_code == 200
    assert response.json()["status"] == "success"
    db.expire_all()
    assert await load_posting(db, posting_id) is None


@pytest.mark.asyncio
async def test_delete_job_not_owner(
    async_client: AsyncClient, make_posting, other_user: User, settings
):
    posting = await make_posting()

    response = await async_client.delete(
        f"/api/jobs/{posting.id}", headers=auth_headers(other_user, settings)
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_default_sort_newest_first_ties_by_id(client: AsyncClient, make_posting, db: AsyncSession):
    tied = [await make_posting() for _ in range(3)]
    newest = await make_posting()
    tied_ids, newest_id = [p.id for p in tied], newest.id

    stamp = datetime(2024, 3, 15, 9, 0, 0)
    await db.execute(
        update(JobPosting).where(JobPosting.id.in_(tied_ids)).values(created_at=stamp)
    )
    await db.execute(
        update(JobPosting).where(JobPosting.id == newest_id).values(created_at=stamp + timedelta(days=1))
    )
    await db.commit()

    response = await client.get("/api/jobs/")

    ids = [job["job_posting_id"] for job in response.json()["data"]]
    assert ids == [newest_id] + sorted(tied_ids)


# ============================================================
# ERROR ENVELOPE
# ============================================================

@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(async_client: AsyncClient):
    response = await async_client.get("/api/nope")

    assert response.status_code == 404
    body = response.json()
    assert body["status"] == "error"
    assert body["kind"] == "not_found"
    assert body["code"] == 404
    assert "detail" not in body


@pytest.mark.asyncio
async def test_wrong_method_uses_error_envelope(client: AsyncClient):
    response = await client.patch("/api/jobs/", json={})

    assert response.status_code == 405
    body = response.json()
    assert body["status"] == "error"
    assert body["kind"] == "validation"
    assert body["message"] == "Method Not Allowed"
