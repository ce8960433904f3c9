from storefront.core_settings import get_settings
from storefront.domain.models import Customer

COOKIE = get_settings().SESSION_COOKIE_NAME

SIGNUP = {
    "username": "dave",
    "password": "hunter22",
    "name": "Dave Brown",
    "email": "dave@example.com",
}

def error(status, info):
    return {"error": {"status": status, "info": info}}

class TestSignup:
    def test_signup_creates_customer_and_session(self, client):
        resp = client.post("/api/signup", json=SIGNUP)
        assert resp.status_code == 201
        customer = resp.json()["customer"]
        assert customer["username"] == "dave"
        assert customer["email"] == "dave@example.com"
        assert customer["password"] == "**********"
        assert "joinDate" in customer
        assert COOKIE in resp.cookies

        me = client.get(f"/api/customers/{customer['id']}")
        assert me.status_code == 200
        assert me.json()["customer"]["name"] == "Dave Brown"

    def test_password_is_hashed(self, client, db):
        client.post("/api/signup", json=SIGNUP)
        stored = db.query(Customer).filter(Customer.username == "dave").one()
        assert stored.password != SIGNUP["password"]
        assert stored.password.startswith("$2")

    def test_missing_field(self, client):
        resp = client.post("/api/signup", json={"username": "dave", "password": "pw"})
        assert resp.status_code == 400
        assert resp.json() == error(400, "Request body is missing required field(s).")

    def test_non_string_field(self, client):
        resp = client.post("/api/signup", json={**SIGNUP, "phone": 7700900123})
        assert resp.status_code == 400
        assert resp.json() == error(400, "Request body fields must all be in string format.")

    def test_duplicate_username(self, client):
        resp = client.post("/api/signup", json={**SIGNUP, "username": "alice"})
        assert resp.status_code == 400
        assert resp.json() == error(400, "That username is taken.")

    def test_duplicate_email(self, client):
        resp = client.post("/api/signup", json={**SIGNUP, "email": "bob@example.com"})
        assert resp.status_code == 400
        assert resp.json() == error(400, "Email already in use.")

    def test_username_checked_before_email(self, client):
        resp = client.post("/api/signup", json={**SIGNUP, "username": "alice", "email": "bob@example.com"})
        assert resp.json() == error(400, "That username is taken.")

class TestLogin:
    def test_login(self, client):
        resp = client.post("/api/login", json={"username": "alice", "password": "secret123"})
        assert resp.status_code == 200
        assert resp.json()["customer"]["id"] == 1
        assert COOKIE in resp.cookies

    def test_unknown_username(self, client):
        resp = client.post("/api/login", json={"username": "nobody", "password": "secret123"})
        assert resp.status_code == 401
        assert resp.json() == error(401, "Invalid username.")

    def test_wrong_password(self, client):
        resp = client.post("/api/login", json={"username": "alice", "password": "wrong"})
        assert resp.status_code == 401
        assert resp.json() == error(401, "Invalid password.")

    def test_logout(self, alice):
        resp = alice.post("/api/logout")
        assert resp.status_code == 200
        assert resp.json() == {"msg": "alice is now logged out."}
        assert alice.get("/api/customers/1").status_code == 401

    def test_logout_requires_session(self, client):
        resp = client.post("/api/logout")
        assert resp.status_code == 401
        assert resp.json() == error(401, "Unauthenticated.")

    def test_tampered_cookie_is_anonymous(self, client):
        client.cookies.set(COOKIE, "not-a-token")
        assert client.get("/api/customers/1").status_code == 401

class TestSingleSignOn:
    PROFILE = {"name": "Erin Gray", "email": "erin@example.com", "authId": "g-123", "provider": "google"}

    def test_first_sign_in_creates_account(self, client):
        resp = client.post("/api/sso", json=self.PROFILE)
        assert resp.status_code == 201
        customer = resp.json()["customer"]
        assert customer["username"] == "erin@example.com"
        assert customer["password"] is None

        detail = client.get(f"/api/customers/{customer['id']}").json()["customer"]
        assert detail["oAuth"] == {"authId": "g-123", "customerId": customer["id"], "provider": "google"}

    def test_second_sign_in_reuses_account(self, client):
        first = client.post("/api/sso", json=self.PROFILE).json()["customer"]
        resp = client.post("/api/sso", json=self.PROFILE)
        assert resp.status_code == 200
        assert resp.json()["customer"]["id"] == first["id"]

    def test_email_already_registered(self, client):
        resp = client.post("/api/sso", json={**self.PROFILE, "email": "alice@example.com"})
        assert resp.status_code == 400
        assert resp.json() == error(400, "Email already in use.")

    def test_missing_fields(self, client):
        resp = client.post("/api/sso", json={"name": "Erin"})
        assert resp.json() == error(400, "Request body is missing required field(s).")
