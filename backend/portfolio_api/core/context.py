"""
Explicitly constructed application context.

Holds every piece of process-wide state the route handlers need (database
session factory, password hasher, token service, image host) so that the
app can be built around test doubles instead of module-level globals.
"""

from dataclasses import dataclass
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from portfolio_api.core.config import Settings
from portfolio_api.core.database import build_engine, build_session_factory
from portfolio_api.core.security import PasswordHasher, TokenService
from portfolio_api.services.image_host import ImageHost


@dataclass
class AppContext:
    settings: Settings
    engine: Engine
    session_factory: sessionmaker
    password_hasher: PasswordHasher
    token_service: TokenService
    image_host: ImageHost


def build_context(settings: Settings, engine: Engine | None = None, image_host: ImageHost | None = None) -> AppContext:
    """Wire up the context from settings; engine and image host may be supplied"""
    engine = engine or build_engine(settings.DATABASE_URL)
    return AppContext(
        settings=settings,
        engine=engine,
        session_factory=build_session_factory(engine),
        password_hasher=PasswordHasher(rounds=settings.BCRYPT_ROUNDS),
        token_service=TokenService(
            secret_key=settings.SECRET_KEY,
            algorithm=settings.ALGORITHM,
            expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        ),
        image_host=image_host or ImageHost.from_settings(settings),
    )
