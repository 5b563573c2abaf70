"""
Moderation seam for uploaded images.

The verdict comes from an external moderator; ``IMAGE_MODERATOR`` names the
class to use (dotted path). Deployments plug in their provider by
subclassing ``BaseModerator``.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)


@dataclass
class ModerationDecision:
    approved: bool
    labels: list[str] = field(default_factory=list)
    max_confidence: float = 0.0
    reason: str = ""


class ModerationUnavailable(Exception):
    """The moderator could not produce a verdict."""


class BaseModerator(ABC):
    @abstractmethod
    def moderate(self, content: bytes, content_type: str) -> ModerationDecision:
        """Return a verdict or raise ModerationUnavailable."""


class ApproveAllModerator(BaseModerator):
    """Local development: every well-formed image is approved."""

    def moderate(self, content: bytes, content_type: str) -> ModerationDecision:
        return ModerationDecision(approved=True)


def get_moderator() -> BaseModerator:
    return import_string(settings.IMAGE_MODERATOR)()
