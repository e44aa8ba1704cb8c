# tests/v1/test_membership_requests.py
"""Tests for membership request endpoints."""

from fastapi import status

from consejo.models import MembershipRequest, MembershipRequestState, MembershipState

BASE = "/api/v1/membership-requests"
REQUEST_TEXT = "I have volunteered at the community garden for years"


def test_submit_request(client, applicant, auth_headers) -> None:
    """Test an applicant filing a membership request."""
    response = client.post(
        f"{BASE}/",
        json={"text": REQUEST_TEXT, "photo_url": "https://example.org/photo.jpg"},
        headers=auth_headers(applicant),
    )
    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["kind"] == "real"
    assert body["state"] == "pending"
    assert body["applicant_user_id"] == applicant.id
    assert body["applicant_display_name"] == "Applicant"
    assert body["photo_url"] == "https://example.org/photo.jpg"


def test_submit_request_text_too_short(client, applicant, auth_headers) -> None:
    response = client.post(f"{BASE}/", json={"text": "hi"}, headers=auth_headers(applicant))
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_submit_request_twice(client, applicant, auth_headers) -> None:
    client.post(f"{BASE}/", json={"text": REQUEST_TEXT}, headers=auth_headers(applicant))
    response = client.post(f"{BASE}/", json={"text": REQUEST_TEXT}, headers=auth_headers(applicant))
    assert response.status_code == status.HTTP_409_CONFLICT


def test_member_cannot_submit_request(client, member, auth_headers) -> None:
    response = client.post(f"{BASE}/", json={"text": REQUEST_TEXT}, headers=auth_headers(member))
    assert response.status_code == status.HTTP_409_CONFLICT


def test_list_requires_authentication(client) -> None:
    response = client.get(f"{BASE}/")
    assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)


def test_list_requires_approved_member(client, applicant, auth_headers) -> None:
    response = client.get(f"{BASE}/", headers=auth_headers(applicant))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_list_merges_real_and_synthetic(client, member, membership_request, make_user, auth_headers) -> None:
    waiting = make_user(display_name="Waiting", membership_state=MembershipState.PENDING_APPROVAL)

    response = client.get(f"{BASE}/", headers=auth_headers(member))

    assert response.status_code == status.HTTP_200_OK
    entries = response.json()
    assert [entry["kind"] for entry in entries] == ["real", "synthetic"]
    assert entries[0]["id"] == membership_request.id
    assert entries[1]["applicant_user_id"] == waiting.id
    assert entries[1]["state"] == "pending"
    assert "id" not in entries[1]


def test_list_filters_by_state(client, member, membership_request, make_user, auth_headers) -> None:
    make_user(membership_state=MembershipState.PENDING_APPROVAL)

    response = client.get(f"{BASE}/", params={"state": "approved"}, headers=auth_headers(member))
    assert response.json() == []


def test_vote_approves_applicant(client, db_session, member, membership_request, applicant, auth_headers) -> None:
    """Test the end-to-end admission of an applicant by one approval."""
    response = client.post(
        f"{BASE}/{membership_request.id}/votes",
        json={"choice": "approve"},
        headers=auth_headers(member),
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["state"] == "approved"
    assert body["resolved"] is True
    assert body["approvals"] == 1
    assert body["previous_choice"] is None
    db_session.refresh(applicant)
    assert applicant.membership_state == MembershipState.APPROVED


def test_vote_reject_requires_comment(client, member, membership_request, auth_headers) -> None:
    response = client.post(
        f"{BASE}/{membership_request.id}/votes",
        json={"choice": "reject"},
        headers=auth_headers(member),
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_vote_discuss_not_allowed(client, member, membership_request, auth_headers) -> None:
    response = client.post(
        f"{BASE}/{membership_request.id}/votes",
        json={"choice": "discuss", "comment": "Could we meet first?"},
        headers=auth_headers(member),
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_vote_invalid_choice(client, member, membership_request, auth_headers) -> None:
    response = client.post(
        f"{BASE}/{membership_request.id}/votes",
        json={"choice": "maybe"},
        headers=auth_headers(member),
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_vote_with_empty_budget(client, db_session, make_user, membership_request, auth_headers) -> None:
    voter = make_user(vote_budget=0)

    response = client.post(
        f"{BASE}/{membership_request.id}/votes",
        json={"choice": "approve"},
        headers=auth_headers(voter),
    )

    assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert "No votes available" in response.json()["detail"]
    db_session.refresh(membership_request)
    assert membership_request.state == MembershipRequestState.PENDING


def test_vote_daily_cap(client, db_session, member, make_request, auth_headers) -> None:
    requests = [make_request() for _ in range(4)]
    for request in requests[:3]:
        ok = client.post(f"{BASE}/{request.id}/votes", json={"choice": "approve"}, headers=auth_headers(member))
        assert ok.status_code == status.HTTP_200_OK

    response = client.post(
        f"{BASE}/{requests[3].id}/votes",
        json={"choice": "approve"},
        headers=auth_headers(member),
    )

    assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert "Daily limit" in response.json()["detail"]
    db_session.refresh(member)
    assert member.vote_budget == 7


def test_vote_on_resolved_request(client, member, other_member, membership_request, auth_headers) -> None:
    client.post(f"{BASE}/{membership_request.id}/votes", json={"choice": "approve"}, headers=auth_headers(member))

    response = client.post(
        f"{BASE}/{membership_request.id}/votes",
        json={"choice": "approve"},
        headers=auth_headers(other_member),
    )
    assert response.status_code == status.HTTP_409_CONFLICT


def test_vote_on_missing_request(client, member, auth_headers) -> None:
    response = client.post(f"{BASE}/99999/votes", json={"choice": "approve"}, headers=auth_headers(member))
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_applicant_cannot_vote(client, applicant, membership_request, auth_headers) -> None:
    response = client.post(
        f"{BASE}/{membership_request.id}/votes",
        json={"choice": "approve"},
        headers=auth_headers(applicant),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_vote_on_synthetic_applicant(client, db_session, member, applicant, auth_headers) -> None:
    """Voting on an applicant without a request creates the request first."""
    response = client.post(
        f"{BASE}/applicants/{applicant.id}/votes",
        json={"choice": "approve"},
        headers=auth_headers(member),
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["state"] == "approved"
    request = db_session.query(MembershipRequest).filter_by(applicant_user_id=applicant.id).one()
    assert request.state == MembershipRequestState.APPROVED


def test_vote_on_synthetic_for_member_is_conflict(client, member, other_member, auth_headers) -> None:
    response = client.post(
        f"{BASE}/applicants/{other_member.id}/votes",
        json={"choice": "approve"},
        headers=auth_headers(member),
    )
    assert response.status_code == status.HTTP_409_CONFLICT


def test_my_vote(client, member, membership_request, auth_headers) -> None:
    url = f"{BASE}/{membership_request.id}/my-vote"
    assert client.get(url, headers=auth_headers(member)).json() == {"choice": None, "comment": None}

    client.post(
        f"{BASE}/{membership_request.id}/votes",
        json={"choice": "reject", "comment": "  Never met them  "},
        headers=auth_headers(member),
    )

    assert client.get(url, headers=auth_headers(member)).json() == {
        "choice": "reject",
        "comment": "Never met them",
    }


def test_my_vote_missing_request(client, member, auth_headers) -> None:
    response = client.get(f"{BASE}/99999/my-vote", headers=auth_headers(member))
    assert response.status_code == status.HTTP_404_NOT_FOUND
