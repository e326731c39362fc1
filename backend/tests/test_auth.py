import jwt
import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from api import auth
from settings import settings

SECRET = "bookstore-test-signing-secret-0123456789"


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(settings, "JWT_SECRET", SECRET)
    app = FastAPI()

    @app.get("/whoami")
    async def whoami(user_id: str = Depends(auth.get_current_user_id)):
        return {"user_id": user_id}

    return TestClient(app)


def test_valid_token_resolves_subject(client):
    token = jwt.encode({"sub": "user-42"}, SECRET, algorithm="HS256")
    resp = client.get("/whoami", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json() == {"user_id": "user-42"}


def test_missing_token_is_401(client):
    resp = client.get("/whoami")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Authorization token is required"


def test_token_signed_with_other_secret_is_401(client):
    token = jwt.encode({"sub": "user-42"}, "another-signing-secret-entirely-9876543210", algorithm="HS256")
    resp = client.get("/whoami", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid access token"


def test_token_without_subject_is_rejected():
    token = jwt.encode({"name": "nobody"}, SECRET, algorithm="HS256")
    with pytest.raises(jwt.InvalidTokenError):
        auth.decode_user_id(token, SECRET)
