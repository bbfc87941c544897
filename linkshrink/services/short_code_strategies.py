"""
Short code generation for the link shortener.
Uses Strategy Pattern so the service does not care how codes are produced.
"""

import logging
import secrets
import string
from abc import ABC, abstractmethod
from typing import Callable

from sqlalchemy.orm import Session
from linkshrink.exceptions import ShortCodeGenerationError
from linkshrink.models.url import ShortLink


logger = logging.getLogger(__name__)

ALPHABET = string.ascii_letters + string.digits  # 62 symbols


def generate_short_code(length: int = 6) -> str:
    """
    Draw `length` symbols uniformly from [A-Za-z0-9].
    
    Uses the `secrets` CSPRNG. Uniqueness is NOT guaranteed here;
    see RandomShortCodeStrategy for the collision-checked version.
    """
    if length <= 0:
        raise ValueError("Short code length must be positive")
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


class ShortCodeStrategy(ABC):
    """Abstract base class for short code generation strategies"""
    
    @abstractmethod
    def generate(self, db_session: Session) -> str:
        """
        Generate a short code that is free at the time of the call.
        
        Args:
            db_session: Database session used to check uniqueness
            
        Returns:
            A short code string
        """
        pass


class RandomShortCodeStrategy(ShortCodeStrategy):
    """
    Random generation with collision checking.
    
    A collision at 6 chars (62^6 ~ 5.7e10 codes) is rare, so a handful of
    retries is plenty. The unique index on urls.short_code still catches
    a concurrent insert that grabs the same code between check and commit.
    """
    
    def __init__(
        self,
        length: int = 6,
        max_retries: int = 5,
        generator: Callable[[int], str] = generate_short_code
    ):
        self.length = length
        self.max_retries = max_retries
        self.generator = generator
    
    def generate(self, db_session: Session) -> str:
        """Generate random short code with collision checking"""
        for attempt in range(self.max_retries):
            short_code = self.generator(self.length)
            
            # Any existing row counts, expired or not
            taken = db_session.query(ShortLink.id).filter(
                ShortLink.short_code == short_code
            ).first()
            if not taken:
                return short_code
            
            logger.warning(
                "Generated short code %s collided (attempt %d/%d)",
                short_code, attempt + 1, self.max_retries
            )
        
        raise ShortCodeGenerationError(
            f"Could not generate unique short code after {self.max_retries} attempts"
        )
