import os
import sys

# Must be set before agency_finance is imported
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ["SOCKETIO_ASYNC_MODE"] = "threading"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["USE_TASK_QUEUE"] = "0"

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from flask_jwt_extended import create_access_token, create_refresh_token

from agency_finance import create_app

USER_ID = "11111111-1111-1111-1111-111111111111"


@pytest.fixture(scope="session")
def app():
    app = create_app()
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    def make(role="admin", user_id=USER_ID, refresh=False):
        with app.app_context():
            claims = {"role": role} if role else {}
            if refresh:
                token = create_refresh_token(identity=user_id, additional_claims=claims)
            else:
                token = create_access_token(identity=user_id, additional_claims=claims)
        return {"Authorization": f"Bearer {token}"}

    return make


@pytest.fixture(autouse=True)
def no_side_channels(monkeypatch):
    """Keep Redis and Socket.IO out of unit tests."""
    from agency_finance.utils import cache

    monkeypatch.setattr(cache, "delete", lambda *keys: None)
    monkeypatch.setattr(cache, "get_json", lambda key: None)
    monkeypatch.setattr(cache, "set_json", lambda key, value, ttl: None)
    monkeypatch.setattr(
        "agency_finance.services.billing_service.broadcast_billing_updated",
        lambda year, month, payload: None,
    )
