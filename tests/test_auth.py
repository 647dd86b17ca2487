import pytest

from publisher_service.auth import AuthContext, authorize_post_owner, context_from_payload, decode_token
from publisher_service.errors import ForbiddenError
from publisher_service.models import Post, Role, User


def register(client, email="pub@example.com", password="s3cret!", role="PUBLISHER", name="Pat"):
    return client.post("/register", json={"name": name, "email": email, "password": password, "role": role})


def test_register_login_and_me(client):
    resp = register(client)
    assert resp.status_code == 200
    user = resp.json()
    assert user["role"] == "PUBLISHER"
    assert "password" not in user and "password_hash" not in user

    token = client.post("/login", json={"email": "pub@example.com", "password": "s3cret!"}).json()["access_token"]
    me = client.get("/me", headers={"Authorization": f"Bearer {token}"})

    assert me.status_code == 200
    assert me.json() == {"user_id": user["id"], "name": "Pat", "role": "PUBLISHER"}


def test_registered_password_is_hashed(client, db):
    register(client)
    stored = db.query(User).filter(User.email == "pub@example.com").one()
    assert stored.password_hash != "s3cret!"


def test_role_defaults_to_user(client):
    resp = client.post("/register", json={"name": "Reader", "email": "r@example.com", "password": "hunter22"})
    assert resp.json()["role"] == "USER"


def test_duplicate_email_is_rejected(client):
    register(client)
    resp = register(client, name="Someone else")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Email already in use"


def test_register_validates_input(client):
    assert register(client, password="short").status_code == 422
    assert register(client, email="not-an-email").status_code == 422
    assert register(client, role="ADMIN").status_code == 422
    assert register(client, name="").status_code == 422


def test_login_with_wrong_password_fails(client):
    register(client)
    resp = client.post("/login", json={"email": "pub@example.com", "password": "wrong-password"})
    assert resp.status_code == 401


def test_login_with_unknown_email_fails(client):
    resp = client.post("/login", json={"email": "ghost@example.com", "password": "whatever"})
    assert resp.status_code == 401


def test_me_requires_valid_token(client):
    assert client.get("/me").status_code == 401
    assert client.get("/me", headers={"Authorization": "Bearer not.a.token"}).status_code == 401
    assert client.get("/me", headers={"Authorization": "Basic abc"}).status_code == 401


def test_token_claims_round_trip(publisher, auth_headers):
    token = auth_headers(publisher)["Authorization"].split(" ", 1)[1]
    ctx = context_from_payload(decode_token(token))
    assert ctx == AuthContext(user_id=publisher.id, role=Role.PUBLISHER, name="Alice Publisher")


def test_payload_with_unknown_role_is_rejected():
    assert context_from_payload({"sub": "1", "role": "ADMIN"}) is None
    assert context_from_payload({"sub": "1"}) is None
    assert context_from_payload(None) is None


def test_owner_guard():
    owner = AuthContext(user_id=1, role=Role.PUBLISHER)
    post = Post(id=10, title="t", content="c", publisher_id=1)

    assert authorize_post_owner(post, owner) is post
    with pytest.raises(ForbiddenError):
        authorize_post_owner(post, AuthContext(user_id=2, role=Role.PUBLISHER))
    with pytest.raises(ForbiddenError):
        authorize_post_owner(None, owner)
    with pytest.raises(ForbiddenError):
        authorize_post_owner(post, AuthContext(user_id=1, role=Role.USER))
