import os

# In a real deployment, load these from the environment or a secrets store
SECRET_KEY: str = os.getenv("SECRET_KEY", "your-secret-key-for-jwt-!ChangeMe!")
ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite://./backoffice.sqlite3")

# Frontend origin allowed by CORS in addition to the local dev server
CLIENT_URL: str = os.getenv("CLIENT_URL", "")

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
# Comma separated logger namespaces, e.g. "backoffice.features.reports,backoffice.main"
LOG_NAMESPACES: list[str] = [
    ns.strip() for ns in os.getenv("LOG_NAMESPACES", "").split(",") if ns.strip()
]

MODEL_MODULES: list[str] = [
    "backoffice.features.auth.models",
    "backoffice.features.inventory.models",
    "backoffice.features.quotations.models",
    "backoffice.features.reservations.models",
]


def build_tortoise_config(db_url: str = DATABASE_URL) -> dict:
    return {
        "connections": {"default": db_url},
        "apps": {
            "models": {
                "models": MODEL_MODULES,
                "default_connection": "default",
            }
        },
        "use_tz": True,
        "timezone": "UTC",
    }


TORTOISE_ORM_CONFIG = build_tortoise_config()
