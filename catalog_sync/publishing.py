import logging

from .log import SUCCESS

logger = logging.getLogger(__name__)


class PublishGate:
    """Draft/live promotion for Publishable models."""

    def is_published(self, entity) -> bool:
        return entity.published_version > 0 and entity.published_version == entity.version

    def publish(self, entity) -> bool:
        """Make the current draft live. Returns False when it already was."""
        if self.is_published(entity):
            return False
        entity.published_version = entity.version
        entity.save(update_fields=['published_version'])
        return True

    def unpublish(self, entity) -> None:
        if entity.published_version:
            entity.published_version = 0
            entity.save(update_fields=['published_version'])

    def ensure_published(self, entity, label: str) -> None:
        """Check-then-act promotion with one log line either way."""
        name = getattr(entity, 'title', None) or entity.remote_id
        if self.publish(entity):
            logger.log(SUCCESS, "[%s] Published %s %s", entity.pk, label, name)
        else:
            logger.debug("[%s] %s %s is already published", entity.pk, label.capitalize(), name)
