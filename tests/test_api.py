"""End-to-end tests through the HTTP layer with dependency overrides."""

from datetime import date, timedelta

from dailyhire.models import BookingStatus


class TestErrorEnvelope:
    def test_signed_out(self, client) -> None:
        response = client.get("/bookings")
        assert response.status_code == 401
        assert response.json() == {
            "error": {"kind": "Unauthenticated", "message": "Please sign in to continue.", "redirect": "/auth"}
        }

    def test_request_validation(self, client, sign_in, hirer, worker) -> None:
        sign_in(hirer)
        response = client.post(
            "/bookings",
            json={"worker_id": worker.id, "booking_date": str(date.today()), "work_description": "short"},
        )
        assert response.status_code == 422
        error = response.json()["error"]
        assert error["kind"] == "ValidationFailed"
        assert error["fields"] == {"work_description": "Work description must be at least 10 characters"}

    def test_forbidden_is_generic(self, client, sign_in, hirer, category) -> None:
        sign_in(hirer)
        response = client.post(
            "/workers", json={"category_id": category.id, "hourly_rate": 300, "skills": "Tiling"}
        )
        assert response.status_code == 403
        assert response.json()["error"]["message"] == "You don't have permission to perform this action."

    def test_health(self, client) -> None:
        assert client.get("/health").json() == {"status": "healthy"}


class TestBookingFlow:
    def test_book_accept_complete_review(self, client, sign_in, hirer, worker) -> None:
        sign_in(hirer)
        created = client.post(
            "/bookings",
            json={
                "worker_id": worker.id,
                "booking_date": str(date.today() + timedelta(days=1)),
                "start_time": "10:00",
                "duration_hours": 3,
                "work_description": "Unblock the bathroom drain",
            },
        )
        assert created.status_code == 201
        booking = created.json()
        assert booking["status"] == "pending"
        assert booking["agreed_rate"] == 1500.0
        assert booking["allowed_transitions"] == ["cancelled"]

        # The hirer cannot accept their own request
        denied = client.patch(f"/bookings/{booking['id']}/status", json={"status": "confirmed"})
        assert denied.status_code == 409
        assert denied.json()["error"]["current_status"] == "pending"

        sign_in(worker.user)
        for status in ("confirmed", "completed"):
            moved = client.patch(f"/bookings/{booking['id']}/status", json={"status": status})
            assert moved.status_code == 200
            assert moved.json()["status"] == status

        sign_in(hirer)
        assert client.get(f"/bookings/{booking['id']}").json()["can_review"] is True
        review = client.post("/reviews", json={"booking_id": booking["id"], "rating": 4})
        assert review.status_code == 201
        assert client.post("/reviews", json={"booking_id": booking["id"], "rating": 5}).status_code == 409

        # Reviews are readable without signing in
        sign_in(None)
        rating = client.get(f"/workers/{worker.id}/rating").json()
        assert rating["rating_display"] == "4.0"
        assert rating["total_jobs"] == 1
        assert len(client.get(f"/workers/{worker.id}/reviews").json()) == 1

    def test_outsider_gets_not_found(self, client, sign_in, hirer, worker, make_booking, make_principal) -> None:
        booking = make_booking(hirer, worker)
        sign_in(make_principal())
        assert client.get(f"/bookings/{booking.id}").status_code == 404
        assert client.patch(f"/bookings/{booking.id}/status", json={"status": "cancelled"}).status_code == 404

    def test_blocked_day(self, client, sign_in, hirer, worker) -> None:
        day = date.today() + timedelta(days=4)
        sign_in(worker.user)
        assert client.put(f"/availability/{day}", json={"status": "holiday"}).status_code == 200

        sign_in(hirer)
        eligibility = client.get(f"/workers/{worker.id}/availability/{day}/eligibility").json()
        assert eligibility["bookable"] is False

        response = client.post(
            "/bookings",
            json={"worker_id": worker.id, "booking_date": str(day), "work_description": "Paint two bedrooms"},
        )
        assert response.status_code == 422
        assert "booking_date" in response.json()["error"]["fields"]


class TestMessagingApi:
    def test_booking_chat(self, client, sign_in, hirer, worker, make_booking, make_principal) -> None:
        booking = make_booking(hirer, worker, BookingStatus.CONFIRMED)
        sign_in(hirer)
        sent = client.post(f"/bookings/{booking.id}/messages", json={"content": "Bring a ladder"})
        assert sent.status_code == 201

        sign_in(worker.user)
        assert [m["content"] for m in client.get(f"/bookings/{booking.id}/messages").json()] == ["Bring a ladder"]

        sign_in(make_principal())
        assert client.get(f"/bookings/{booking.id}/messages").json() == []
        assert client.post(f"/bookings/{booking.id}/messages", json={"content": "hi"}).status_code == 403

    def test_direct_messages_and_unread(self, client, sign_in, hirer, worker) -> None:
        sign_in(hirer)
        sent = client.post(f"/messages/direct/{worker.user_id}", json={"content": "Are you free?"})
        assert sent.status_code == 201
        message_id = sent.json()["id"]

        sign_in(worker.user)
        assert client.get("/messages/direct/unread").json() == {"counts": {hirer.id: 1}, "total": 1}

        read = client.post(f"/messages/direct/message/{message_id}/read")
        assert read.status_code == 200
        assert read.json()["read_at"] is not None
        assert client.get("/messages/direct/unread").json()["total"] == 0

        index = client.get("/messages/direct").json()
        assert index[0]["peer_id"] == hirer.id
        assert index[0]["last_message"]["content"] == "Are you free?"

    def test_attachment_upload(self, client, sign_in, hirer, worker) -> None:
        sign_in(hirer)
        uploaded = client.post("/attachments", files={"file": ("plan.png", b"\x89PNG", "image/png")})
        assert uploaded.status_code == 201
        body = uploaded.json()
        assert body["size"] == 4

        sent = client.post(
            f"/messages/direct/{worker.user_id}",
            json={"file_url": body["file_url"], "file_type": body["file_type"]},
        )
        assert sent.status_code == 201
        assert sent.json()["content"] == "Sent a file"

    def test_live_updates_need_redis(self, client, sign_in, hirer) -> None:
        sign_in(hirer)
        response = client.get("/messages/direct/unread/stream")
        assert response.status_code == 503
        assert response.json()["error"]["retryable"] is True

    def test_stream_authorization_checked_first(self, client, sign_in, hirer, make_principal) -> None:
        sign_in(hirer)
        response = client.get(
            "/changes/stream",
            params={"table": "direct_messages", "column": "receiver_id", "value": make_principal().id},
        )
        assert response.status_code == 403


class TestProfilesApi:
    def test_role_change_rejected(self, client, sign_in, hirer) -> None:
        sign_in(hirer)
        response = client.patch("/profiles/me", json={"role": "worker", "full_name": "Hana K"})
        assert response.status_code == 422
        assert response.json()["error"]["fields"] == {"role": "Role cannot be changed"}
        assert client.get("/profiles/me").json()["full_name"] == "Hana Hirer"

    def test_public_profile(self, client, sign_in, hirer, worker) -> None:
        sign_in(hirer)
        body = client.get(f"/profiles/{worker.user_id}").json()
        assert body == {"id": worker.user_id, "full_name": "Walt Worker", "role": "worker", "avatar_url": None}
