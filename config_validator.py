import os

REQUIRED = [
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_JWT_SECRET",
]


def validate_env(required: list[str] | None = None):
    missing = [v for v in (required or REQUIRED) if not os.getenv(v)]
    if missing:
        raise RuntimeError(f"Missing environment variables: {missing}")
