"""
Admin application pipeline: status changes, shortlisting, scoring phase and stats.

Run with: pytest tests/test_application_status.py -v
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy import select

from app.features.applications.models.application import (
    Application,
    ApplicationStatus,
    ApplicationStatusChange,
)
from app.features.auth.models.user import UserRole
from conftest import auth_headers

APPLICATIONS_URL = "/api/v1/admin/applications"


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user(email="admin@example.com", name="Ada Admin", role=UserRole.ADMIN)


@pytest_asyncio.fixture
async def applicant(make_user):
    return await make_user(email="applicant@example.com")


async def fetch_statuses(session_factory) -> dict[int, ApplicationStatus]:
    async with session_factory() as session:
        result = await session.execute(select(Application.id, Application.status))
        return {row.id: row.status for row in result}


async def fetch_changes(session_factory) -> list[ApplicationStatusChange]:
    async with session_factory() as session:
        result = await session.execute(select(ApplicationStatusChange).order_by(ApplicationStatusChange.id))
        return list(result.scalars().all())


def test_status_order():
    assert [s.value for s in ApplicationStatus] == [
        "draft",
        "submitted",
        "under_review",
        "shortlisted",
        "scoring_phase",
        "dragons_den",
        "finalist",
        "approved",
        "rejected",
    ]


class TestUpdateStatus:
    @pytest.mark.asyncio
    async def test_update_status_records_change(
        self, client: AsyncClient, admin, applicant, make_application, session_factory
    ):
        application = await make_application(applicant)

        response = await client.patch(
            f"{APPLICATIONS_URL}/{application.id}/status",
            headers=auth_headers(admin),
            json={"status": "dragons_den", "notes": "Strong pitch"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "dragons_den"

        changes = await fetch_changes(session_factory)
        assert len(changes) == 1
        assert changes[0].from_status == ApplicationStatus.SUBMITTED
        assert changes[0].to_status == ApplicationStatus.DRAGONS_DEN
        assert changes[0].notes == "Strong pitch"
        assert changes[0].changed_by == admin.id

    @pytest.mark.asyncio
    async def test_status_history(self, client: AsyncClient, admin, applicant, make_application):
        application = await make_application(applicant)
        for new_status in ("shortlisted", "finalist"):
            await client.patch(
                f"{APPLICATIONS_URL}/{application.id}/status",
                headers=auth_headers(admin),
                json={"status": new_status},
            )

        response = await client.get(
            f"{APPLICATIONS_URL}/{application.id}/status-history", headers=auth_headers(admin)
        )

        history = response.json()["data"]
        assert [(h["from_status"], h["to_status"]) for h in history] == [
            ("submitted", "shortlisted"),
            ("shortlisted", "finalist"),
        ]

    @pytest.mark.asyncio
    async def test_unknown_application(self, client: AsyncClient, admin):
        response = await client.patch(
            f"{APPLICATIONS_URL}/999/status", headers=auth_headers(admin), json={"status": "approved"}
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_status_rejected(self, client: AsyncClient, admin, applicant, make_application):
        application = await make_application(applicant)

        response = await client.patch(
            f"{APPLICATIONS_URL}/{application.id}/status",
            headers=auth_headers(admin),
            json={"status": "winner"},
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_requires_admin(self, client: AsyncClient, applicant, make_application):
        application = await make_application(applicant)

        response = await client.patch(
            f"{APPLICATIONS_URL}/{application.id}/status",
            headers=auth_headers(applicant),
            json={"status": "approved"},
        )

        assert response.status_code == 403


class TestBulkUpdate:
    @pytest.mark.asyncio
    async def test_bulk_update_applies_each_status(
        self, client: AsyncClient, admin, applicant, make_application, session_factory
    ):
        first = await make_application(applicant, business_name="First")
        second = await make_application(applicant, business_name="Second")

        response = await client.post(
            f"{APPLICATIONS_URL}/status/bulk",
            headers=auth_headers(admin),
            json={
                "updates": [
                    {"application_id": first.id, "status": "approved"},
                    {"application_id": second.id, "status": "rejected", "notes": "Outside region"},
                    {"application_id": 999, "status": "approved"},
                ]
            },
        )

        assert response.status_code == 200
        assert response.json()["data"] == {"count": 2}
        statuses = await fetch_statuses(session_factory)
        assert statuses == {first.id: ApplicationStatus.APPROVED, second.id: ApplicationStatus.REJECTED}


class TestShortlistAndScoringPhase:
    @pytest.mark.asyncio
    async def test_shortlist(self, client: AsyncClient, admin, applicant, make_application, session_factory):
        first = await make_application(applicant, business_name="First")
        second = await make_application(applicant, business_name="Second")

        response = await client.post(
            f"{APPLICATIONS_URL}/shortlist",
            headers=auth_headers(admin),
            json={"application_ids": [first.id, second.id]},
        )

        assert response.json()["data"] == {"count": 2}
        statuses = await fetch_statuses(session_factory)
        assert set(statuses.values()) == {ApplicationStatus.SHORTLISTED}
        changes = await fetch_changes(session_factory)
        assert {c.notes for c in changes} == {"Application shortlisted for further evaluation"}

    @pytest.mark.asyncio
    async def test_scoring_phase_moves_only_shortlisted(
        self, client: AsyncClient, admin, applicant, make_application, session_factory
    ):
        shortlisted = await make_application(applicant, status=ApplicationStatus.SHORTLISTED)
        submitted = await make_application(applicant, status=ApplicationStatus.SUBMITTED)
        rejected = await make_application(applicant, status=ApplicationStatus.REJECTED)

        response = await client.post(
            f"{APPLICATIONS_URL}/scoring-phase",
            headers=auth_headers(admin),
            json={"application_ids": [shortlisted.id, submitted.id, rejected.id], "notes": "Round one"},
        )

        assert response.status_code == 200
        assert response.json()["data"] == {"count": 1}
        statuses = await fetch_statuses(session_factory)
        assert statuses == {
            shortlisted.id: ApplicationStatus.SCORING_PHASE,
            submitted.id: ApplicationStatus.SUBMITTED,
            rejected.id: ApplicationStatus.REJECTED,
        }
        changes = await fetch_changes(session_factory)
        assert [(c.application_id, c.notes) for c in changes] == [(shortlisted.id, "Round one")]

    @pytest.mark.asyncio
    async def test_empty_selection_rejected(self, client: AsyncClient, admin):
        response = await client.post(
            f"{APPLICATIONS_URL}/shortlist", headers=auth_headers(admin), json={"application_ids": []}
        )
        assert response.status_code == 422


class TestListingAndStats:
    @pytest.mark.asyncio
    async def test_filter_by_one_or_more_statuses(self, client: AsyncClient, admin, applicant, make_application):
        await make_application(applicant, business_name="Draft", status=ApplicationStatus.DRAFT)
        await make_application(applicant, business_name="Short", status=ApplicationStatus.SHORTLISTED)
        await make_application(applicant, business_name="Final", status=ApplicationStatus.FINALIST)
        headers = auth_headers(admin)

        one = await client.get(APPLICATIONS_URL, headers=headers, params={"status": "draft"})
        several = await client.get(
            APPLICATIONS_URL, headers=headers, params=[("status", "shortlisted"), ("status", "finalist")]
        )
        everything = await client.get(APPLICATIONS_URL, headers=headers)

        assert [a["business_name"] for a in one.json()["data"]["applications"]] == ["Draft"]
        assert {a["business_name"] for a in several.json()["data"]["applications"]} == {"Short", "Final"}
        assert everything.json()["data"]["pagination"]["total"] == 3

    @pytest.mark.asyncio
    async def test_newest_first_with_pagination(self, client: AsyncClient, admin, applicant, make_application):
        for name in ("Oldest", "Middle", "Newest"):
            await make_application(applicant, business_name=name)

        response = await client.get(
            APPLICATIONS_URL, headers=auth_headers(admin), params={"page": 1, "limit": 2}
        )

        data = response.json()["data"]
        assert [a["business_name"] for a in data["applications"]] == ["Newest", "Middle"]
        assert data["pagination"] == {
            "page": 1,
            "limit": 2,
            "total": 3,
            "total_pages": 2,
            "has_next": True,
            "has_previous": False,
        }

    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient, admin, applicant, make_application):
        await make_application(applicant, status=ApplicationStatus.SUBMITTED)
        await make_application(applicant, status=ApplicationStatus.SUBMITTED)
        await make_application(applicant, status=ApplicationStatus.FINALIST)

        response = await client.get(f"{APPLICATIONS_URL}/stats", headers=auth_headers(admin))

        assert response.json()["data"] == {
            "total_applications": 3,
            "draft": 0,
            "submitted": 2,
            "under_review": 0,
            "shortlisted": 0,
            "scoring_phase": 0,
            "dragons_den": 0,
            "finalist": 1,
            "approved": 0,
            "rejected": 0,
        }
