import os
import time
import uuid
from copy import deepcopy
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import jwt
import pytest

TEST_JWT_SECRET = "test-jwt-secret-with-enough-length-for-hs256"

os.environ["SUPABASE_URL"] = "http://supabase.test"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "service-role-key"
os.environ["SUPABASE_JWT_SECRET"] = TEST_JWT_SECRET
os.environ["API_ENV"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SESSION_COOKIE_SECURE"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("SENTRY_DSN", None)

from fastapi.testclient import TestClient  # noqa: E402

from core.supabase_client import get_supabase, new_auth_client  # noqa: E402
from main import app  # noqa: E402

# Tables keyed by a composite of other columns rather than an ``id``.
_KEYLESS_TABLES = {"tournament_participants", "tournament_teams", "tournament_rankings"}


# ---------------------------------------------------------------------------
# In-memory stand-in for the PostgREST query builder
# ---------------------------------------------------------------------------

class FakeResponse:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.action = "select"
        self.payload = None
        self.on_conflict = None
        self.filters = []
        self.ordering = []
        self.row_limit = None
        self.want_count = False

    def select(self, *columns, count=None):
        self.action = "select"
        self.want_count = count is not None
        return self

    def insert(self, payload):
        self.action, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.action, self.payload = "update", payload
        return self

    def upsert(self, payload, on_conflict=None):
        self.action, self.payload, self.on_conflict = "upsert", payload, on_conflict
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.ordering.append((column, desc))
        return self

    def limit(self, size):
        self.row_limit = size
        return self

    def _matching(self):
        return [row for row in self.db.rows(self.table) if all(f(row) for f in self.filters)]

    def execute(self):
        self.db.queries.append((self.table, self.action))
        failure = self.db.failures.get((self.table, self.action))
        if failure is not None:
            raise failure
        handler = getattr(self, f"_execute_{self.action}")
        return handler()

    def _execute_select(self):
        rows = self._matching()
        for column, desc in reversed(self.ordering):
            rows.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        count = len(rows) if self.want_count else None
        if self.row_limit is not None:
            rows = rows[: self.row_limit]
        return FakeResponse(deepcopy(rows), count)

    def _execute_insert(self):
        payloads = self.payload if isinstance(self.payload, list) else [self.payload]
        return FakeResponse([deepcopy(self.db.add(self.table, p)) for p in payloads])

    def _execute_update(self):
        rows = self._matching()
        for row in rows:
            row.update(deepcopy(self.payload))
        return FakeResponse(deepcopy(rows))

    def _execute_upsert(self):
        keys = [k.strip() for k in (self.on_conflict or "id").split(",")]
        existing = [
            row for row in self.db.rows(self.table)
            if all(row.get(k) == self.payload.get(k) for k in keys)
        ]
        if existing:
            existing[0].update(deepcopy(self.payload))
            return FakeResponse([deepcopy(existing[0])])
        return FakeResponse([deepcopy(self.db.add(self.table, self.payload))])

    def _execute_delete(self):
        doomed = self._matching()
        self.db.tables[self.table] = [r for r in self.db.rows(self.table) if r not in doomed]
        return FakeResponse(deepcopy(doomed))


class FakeAdminAuth:
    def __init__(self):
        self.signed_out = []

    def sign_out(self, jwt_token, scope="global"):
        self.signed_out.append(jwt_token)


class FakeAuth:
    def __init__(self):
        self.admin = FakeAdminAuth()
        self.exchange_result = None
        self.exchange_error = None
        self.exchanges = []

    def exchange_code_for_session(self, params):
        self.exchanges.append(params)
        if self.exchange_error is not None:
            raise self.exchange_error
        return SimpleNamespace(session=self.exchange_result)


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.queries = []
        # (table, action) -> exception raised by execute()
        self.failures = {}
        self.auth = FakeAuth()

    def rows(self, table):
        return self.tables.setdefault(table, [])

    def table(self, name):
        return FakeQuery(self, name)

    def add(self, table, fields):
        row = deepcopy(fields)
        now = datetime.now(timezone.utc).isoformat()
        if table not in _KEYLESS_TABLES:
            row.setdefault("id", str(uuid.uuid4()))
        if table == "tournament_participants":
            row.setdefault("joined_at", now)
        row.setdefault("created_at", now)
        self.rows(table).append(row)
        return row


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

def iso_in(**delta) -> str:
    return (datetime.now(timezone.utc) + timedelta(**delta)).isoformat()


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def client(db):
    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[new_auth_client] = lambda: db
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_token():
    def _make(user_id, *, secret=TEST_JWT_SECRET, expires_in=3600, audience="authenticated"):
        now = int(time.time())
        claims = {
            "sub": user_id,
            "aud": audience,
            "iat": now,
            "exp": now + expires_in,
            "email": f"{user_id}@example.com",
            "role": "authenticated",
        }
        return jwt.encode(claims, secret, algorithm="HS256")

    return _make


@pytest.fixture
def auth_headers(make_token):
    def _headers(user_id):
        return {"Authorization": f"Bearer {make_token(user_id)}"}

    return _headers


@pytest.fixture
def world(db):
    """An admin, a participant and an outsider around one tournament with two fixtures."""
    admin = db.add("users", {"id": "admin-0001", "email": "boss@example.com",
                             "screen_name": "Boss", "is_admin": True, "status": "active"})
    player = db.add("users", {"id": "player-abcde", "email": "player@example.com",
                              "screen_name": None, "is_admin": False, "status": "active"})
    outsider = db.add("users", {"id": "outsider-0003", "email": "out@example.com",
                                "screen_name": "Out", "is_admin": False, "status": "active"})

    tournament = db.add("tournaments", {"name": "World Cup", "sport": "football",
                                         "start_date": "2026-06-01", "end_date": "2026-07-15",
                                         "status": "active"})
    home = db.add("teams", {"name": "Brazil", "short_name": "BRA", "country_code": "BR"})
    away = db.add("teams", {"name": "Argentina", "short_name": "ARG", "country_code": "AR"})
    for team in (home, away):
        db.add("tournament_teams", {"tournament_id": tournament["id"], "team_id": team["id"]})

    db.add("tournament_participants", {"tournament_id": tournament["id"], "user_id": player["id"]})
    db.add("tournament_participants", {"tournament_id": tournament["id"], "user_id": admin["id"]})

    upcoming = db.add("matches", {"tournament_id": tournament["id"], "home_team_id": home["id"],
                                  "away_team_id": away["id"], "match_date": iso_in(days=2),
                                  "status": "scheduled", "multiplier": 1,
                                  "home_score": None, "away_score": None})
    kicked_off = db.add("matches", {"tournament_id": tournament["id"], "home_team_id": away["id"],
                                    "away_team_id": home["id"], "match_date": iso_in(hours=-1),
                                    "status": "scheduled", "multiplier": 2,
                                    "home_score": None, "away_score": None})

    return SimpleNamespace(
        admin=admin,
        player=player,
        outsider=outsider,
        tournament=tournament,
        home=home,
        away=away,
        upcoming=upcoming,
        kicked_off=kicked_off,
    )
