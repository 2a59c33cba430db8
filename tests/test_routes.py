from helpers import CLOUDINARY_IMAGE, auth_headers, option, question, quiz_payload, token_from


def create(client, user, **extra):
    response = client.post("/admin/quiz", json=quiz_payload(**extra), headers=auth_headers(user))
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


# Auth
def test_auth_flow(client, outbox):
    response = client.post("/auth/register", json={
        "email": "maker@example.com", "password": "password123", "full_name": "Quiz Maker",
    })
    assert response.status_code == 201
    body = response.json()
    assert body["user"]["email"] == "maker@example.com"
    assert body["user"]["email_verified"] is False
    assert "password_hash" not in body["user"]

    assert client.post("/auth/register", json={
        "email": "maker@example.com", "password": "password123", "full_name": "Again",
    }).status_code == 409

    verify = client.post("/auth/verify-email", json={"token": token_from(outbox[0])})
    assert verify.status_code == 200

    login = client.post("/auth/login", json={"email": "maker@example.com", "password": "password123"})
    assert login.status_code == 200
    tokens = login.json()["tokens"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert me.json()["email_verified"] is True

    assert client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]}).status_code == 200
    assert client.post("/auth/logout", json={"refresh_token": tokens["refresh_token"]}).status_code == 200
    assert client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]}).status_code == 401


def test_login_failure_and_short_password(client, owner):
    assert client.post("/auth/login", json={"email": "owner@example.com", "password": "nope"}).status_code == 401
    assert client.post("/auth/register", json={
        "email": "short@example.com", "password": "short", "full_name": "Short",
    }).status_code == 422


def test_password_reset_over_http(client, owner, outbox):
    response = client.post("/auth/request-password-reset", json={"email": "owner@example.com"})
    assert response.status_code == 200

    token = token_from(outbox[-1])
    assert client.post("/auth/reset-password", json={"token": token, "new_password": "brand-new-pass"}).status_code == 200
    assert client.post("/auth/reset-password", json={"token": token, "new_password": "brand-new-pass"}).status_code == 400
    assert client.post("/auth/login", json={"email": "owner@example.com", "password": "brand-new-pass"}).status_code == 200


def test_password_reset_request_hides_unknown_email(client, owner, outbox):
    known = client.post("/auth/request-password-reset", json={"email": "owner@example.com"})
    unknown = client.post("/auth/request-password-reset", json={"email": "ghost@example.com"})
    assert unknown.status_code == 200
    assert unknown.json() == known.json()
    assert len(outbox) == 1


def test_login_attempts_are_rate_limited(client, owner):
    for _ in range(5):
        assert client.post("/auth/login", json={"email": "owner@example.com", "password": "nope"}).status_code == 401

    blocked = client.post("/auth/login", json={"email": "owner@example.com", "password": "password123"})
    assert blocked.status_code == 429
    assert "Too many authentication attempts" in blocked.json()["detail"]
    assert int(blocked.headers["Retry-After"]) > 0

    # register shares the login budget
    assert client.post("/auth/register", json={
        "email": "late@example.com", "password": "password123", "full_name": "Late",
    }).status_code == 429


def test_password_reset_is_rate_limited(client, owner, outbox):
    for _ in range(3):
        assert client.post("/auth/request-password-reset", json={"email": "owner@example.com"}).status_code == 200

    assert client.post("/auth/request-password-reset", json={"email": "owner@example.com"}).status_code == 429
    assert client.post("/auth/reset-password", json={
        "token": token_from(outbox[-1]), "new_password": "brand-new-pass",
    }).status_code == 429
    assert len(outbox) == 3
    # other auth routes keep their own budget
    assert client.post("/auth/login", json={"email": "owner@example.com", "password": "password123"}).status_code == 200


def test_resend_verification_by_email_is_rate_limited(client, owner, outbox):
    for _ in range(3):
        response = client.post("/auth/resend-verification-by-email", json={"email": "owner@example.com"})
        assert response.status_code == 200

    assert client.post("/auth/resend-verification-by-email", json={"email": "owner@example.com"}).status_code == 429
    assert client.post("/auth/resend-verification", headers=auth_headers(owner)).status_code == 429


def test_resend_verification_requires_login(client, owner, outbox):
    assert client.post("/auth/resend-verification").status_code == 401
    assert client.post("/auth/resend-verification", headers=auth_headers(owner)).status_code == 200
    assert outbox[-1]["to"] == "owner@example.com"


def test_invalid_bearer_token(client):
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


# Quiz authoring
def test_quiz_crud_over_http(client, owner):
    quiz = create(client, owner)
    assert [q["sequence_order"] for q in quiz["questions"]] == [1, 2, 3]

    fetched = client.get(f"/admin/quiz/{quiz['id']}", headers=auth_headers(owner))
    assert fetched.json()["quiz_name"] == "Skin care finder"

    payload = quiz_payload(quiz_name="Renamed", questions=[
        {
            "id": quiz["questions"][0]["id"],
            "sequence_order": 1,
            "question_text": "Still here?",
            "interaction_type": "single_choice",
            "options": [{"id": o["id"], "option_text": o["option_text"]} for o in quiz["questions"][0]["options"]],
        },
    ])
    updated = client.put(f"/admin/quiz/{quiz['id']}", json=payload, headers=auth_headers(owner))
    assert updated.status_code == 200
    assert updated.json()["quiz_name"] == "Renamed"
    assert [q["question_text"] for q in updated.json()["questions"]] == ["Still here?"]

    assert client.delete(f"/admin/quiz/{quiz['id']}", headers=auth_headers(owner)).status_code == 204
    assert client.get(f"/admin/quiz/{quiz['id']}", headers=auth_headers(owner)).status_code == 404


def test_quiz_routes_require_auth_and_ownership(client, owner, stranger):
    quiz = create(client, owner)

    assert client.post("/admin/quiz", json=quiz_payload()).status_code == 401
    assert client.get(f"/admin/quiz/{quiz['id']}", headers=auth_headers(stranger)).status_code == 403
    assert client.delete(f"/admin/quiz/{quiz['id']}", headers=auth_headers(stranger)).status_code == 403
    assert client.get("/admin/quiz/9999", headers=auth_headers(owner)).status_code == 404


def test_quiz_payload_validation(client, owner):
    headers = auth_headers(owner)
    invalid = [
        quiz_payload(brand_logo_url="https://images.example.com/logo.png"),
        quiz_payload(color_primary="red"),
        quiz_payload(questions=[]),
        quiz_payload(questions=[question(1), question(1)]),
        quiz_payload(questions=[question(1, options=[])]),
        quiz_payload(questions=[question(1, text="")]),
        quiz_payload(questions=[question(1, interaction_type="timeline_projection")]),
        quiz_payload(questions=[question(1, interaction_type="timeline_projection",
                                         timeline_projection_config={"direction": "sideways", "months_count": 6})]),
        quiz_payload(questions=[question(1, options=[option("A", option_image_url="https://x.example.com/a.png")])]),
        quiz_payload(questions=[question(1, interaction_type="spinner")]),
        quiz_payload(custom_domain="not a domain"),
    ]
    for payload in invalid:
        response = client.post("/admin/quiz", json=payload, headers=headers)
        assert response.status_code == 422, payload


def test_duplicate_custom_domain_is_conflict(client, owner, stranger):
    create(client, owner, custom_domain="quiz.brand.com")
    response = client.post("/admin/quiz", json=quiz_payload(custom_domain="QUIZ.brand.com"),
                           headers=auth_headers(stranger))
    assert response.status_code == 409


def test_quiz_summary(client, owner, stranger, admin):
    create(client, owner)
    create(client, owner)
    create(client, stranger)

    mine = client.get("/admin/quiz-summary?size=1", headers=auth_headers(owner)).json()
    assert (mine["total"], mine["has_next"], mine["has_prev"], len(mine["items"])) == (2, True, False, 1)

    everything = client.get("/admin/quiz-summary?view_mode=all", headers=auth_headers(admin)).json()
    assert everything["total"] == 3

    assert client.get("/admin/quiz-summary?view_mode=every", headers=auth_headers(owner)).status_code == 422


# Funnel
def test_respondent_journey(client, owner):
    quiz = create(client, owner, custom_domain="quiz.brand.com", questions=[
        question(1, options=[option("Dry"), option("Oily")]),
        question(2, interaction_type="result_page", text="Your routine", options=[]),
    ])
    first, result = quiz["questions"]

    content = client.get(f"/content/quiz/{quiz['id']}")
    assert content.status_code == 200
    assert [q["question_id"] for q in content.json()["questions"]] == [first["id"], result["id"]]
    assert client.get("/content/domain/quiz.brand.com").json() == {"quiz_id": quiz["id"]}
    assert client.get("/content/domain/nowhere.brand.com").status_code == 404

    start = client.post("/session/start", json={"quiz_id": quiz["id"], "utm_params": {"utm_source": "tiktok"}})
    assert start.status_code == 200
    session_id = start.json()["session_id"]

    assert client.post("/session/update", json={
        "session_id": session_id, "last_question_id": first["id"],
    }).status_code == 200
    answer = client.post("/session/answers", json={
        "session_id": session_id, "question_id": first["id"], "selected_option_id": first["options"][1]["id"],
    })
    assert answer.status_code == 201
    assert "answer_id" in answer.json()
    assert client.post("/session/complete", json={
        "session_id": session_id, "final_profile": "oily",
    }).status_code == 200

    assert client.get(f"/session/{session_id}/utms").json() == {
        "session_id": session_id, "utm_params": {"utm_source": "tiktok"},
    }


def test_session_errors_over_http(client, owner):
    quiz = create(client, owner)
    session_id = client.post("/session/start", json={"quiz_id": quiz["id"]}).json()["session_id"]

    assert client.post("/session/start", json={"quiz_id": 9999}).status_code == 404
    mismatched = client.post("/session/answers", json={
        "session_id": session_id,
        "question_id": quiz["questions"][0]["id"],
        "selected_option_id": quiz["questions"][1]["options"][0]["id"],
    })
    assert mismatched.status_code == 400
    assert client.post("/session/complete", json={"session_id": "not-a-uuid"}).status_code == 422


def test_inactive_quiz_content_is_forbidden(client, owner):
    quiz = create(client, owner, is_active=False)
    assert client.get(f"/content/quiz/{quiz['id']}").status_code == 403
    assert client.get("/content/quiz/9999").status_code == 404


# Analytics
def test_analytics_endpoints(client, owner, stranger):
    quiz = create(client, owner)
    first = quiz["questions"][0]
    for source in ("google", None):
        utms = {"utm_source": source} if source else None
        session_id = client.post("/session/start", json={"quiz_id": quiz["id"], "utm_params": utms}).json()["session_id"]
        client.post("/session/update", json={"session_id": session_id, "last_question_id": first["id"]})
        client.post("/session/answers", json={
            "session_id": session_id, "question_id": first["id"], "selected_option_id": first["options"][0]["id"],
        })
    client.post("/session/complete", json={"session_id": session_id})

    headers = auth_headers(owner)
    quiz_id = quiz["id"]

    drop = client.get(f"/analytics/drop-rate/{quiz_id}", headers=headers).json()
    assert drop[0]["reached_count"] == 2
    assert drop[0]["answered_count"] == 2

    details = client.get(f"/analytics/question-details/{quiz_id}", headers=headers).json()
    assert details[0]["answer_rate"] == 100.0

    distribution = client.get(f"/analytics/answer-distribution/{quiz_id}/{first['id']}", headers=headers).json()
    assert distribution[0]["selection_count"] == 2

    utm = client.get(f"/analytics/utm-performance/{quiz_id}", headers=headers).json()
    assert {row["utm_source"] for row in utm} == {"google", "Direct"}

    stats = client.get(f"/analytics/quiz-stats/{quiz_id}", headers=headers).json()
    assert stats["total_sessions"] == 2
    assert stats["completion_rate"] == 50.0

    daily = client.get(f"/analytics/daily-activity/{quiz_id}?days=7", headers=headers)
    assert daily.status_code == 200
    assert sum(row["sessions"] for row in daily.json()) == 2

    assert client.get(f"/analytics/quiz-stats/{quiz_id}", headers=auth_headers(stranger)).status_code == 403
    assert client.get(f"/analytics/quiz-stats/{quiz_id}").status_code == 401
    assert client.get(f"/analytics/quiz-stats/{quiz_id}?start_date=2026-03-02&end_date=2026-03-01",
                      headers=headers).status_code == 400


# Uploads
def test_upload_signature(client, owner):
    assert client.get("/upload/signature").status_code == 401

    response = client.get("/upload/signature?folder=brands", headers=auth_headers(owner))
    assert response.status_code == 200
    body = response.json()
    assert body["folder"] == "brands"
    assert body["cloud_name"] == "demo-cloud"
    assert len(body["signature"]) == 40


def test_logo_must_be_cloudinary(client, owner):
    payload = quiz_payload(brand_logo_url=CLOUDINARY_IMAGE.replace("res.cloudinary.com", "evil.example.com"))
    assert client.post("/admin/quiz", json=payload, headers=auth_headers(owner)).status_code == 422
