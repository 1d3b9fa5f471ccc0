from sqlalchemy import Column, Integer, String
from portfolio_api.core.database import Base
from portfolio_api.models.user import generate_id

DEFAULT_NAME = "Your Name"
DEFAULT_AGE = 18
DEFAULT_BIOGRAPHY = "This user hasn't added a bio yet."
DEFAULT_LINK = "This user hasn't added a Photo yet."


class Profile(Base):
    """
    Per-user presentation data.

    One profile per user is expected but not enforced: user_id carries no
    foreign key or unique constraint, so a missing profile surfaces as a
    404 and a duplicate is never rejected.
    """
    __tablename__ = "profiles"

    id = Column(String(24), primary_key=True, default=generate_id)
    user_id = Column(String(24), index=True, nullable=False)
    name = Column(String, default=DEFAULT_NAME, nullable=False)
    age = Column(Integer, default=DEFAULT_AGE, nullable=False)
    biography = Column(String, default=DEFAULT_BIOGRAPHY, nullable=False)
    # URL of the avatar on the image host, or the placeholder text
    link = Column(String, default=DEFAULT_LINK, nullable=False)
