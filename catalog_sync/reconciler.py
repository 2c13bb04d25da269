import logging
from dataclasses import dataclass, field
from typing import Callable, NamedTuple, Optional

from django.core.exceptions import ValidationError
from django.db import DataError, IntegrityError, models, transaction

from .exceptions import RecordValidationError
from .mapping import FieldMap, apply_map, mapped_fields
from .models import Collection, CollectionMembership, Image, Product, Variant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntityKind:
    """Lookup, construction and persistence for one model matched by remote_id."""

    label: str
    model: type[models.Model]

    def find(self, remote_id, relations: dict) -> Optional[models.Model]:
        return self.model.objects.filter(remote_id=str(remote_id)).first()

    def make(self) -> models.Model:
        return self.model()

    def save(self, entity) -> None:
        if hasattr(entity, 'version'):
            entity.version += 1
        with transaction.atomic():
            entity.save()


@dataclass(frozen=True)
class MembershipKind(EntityKind):
    """Memberships also match on their (collection, product) pair."""

    pair: tuple = field(default=('collection_id', 'product_id'))

    def find(self, remote_id, relations: dict) -> Optional[models.Model]:
        found = super().find(remote_id, relations)
        if found is None and all(relations.get(key) for key in self.pair):
            found = self.model.objects.filter(**{key: relations[key] for key in self.pair}).first()
        return found


PRODUCT = EntityKind('product', Product)
VARIANT = EntityKind('variant', Variant)
IMAGE = EntityKind('image', Image)
COLLECTION = EntityKind('collection', Collection)
MEMBERSHIP = MembershipKind('collect', CollectionMembership)


class Reconciled(NamedTuple):
    entity: models.Model
    created: bool
    changed_fields: list[str]

    @property
    def changed(self) -> bool:
        return self.created or bool(self.changed_fields)


def reconcile(
    kind: EntityKind,
    field_map: FieldMap,
    record: dict,
    relations: Optional[dict] = None,
    before_save: Optional[Callable] = None,
) -> Reconciled:
    """
    Find-or-create the local counterpart of ``record`` and save it only if it changed.

    ``relations`` are extra attribute values (usually foreign key ids) that
    take part in change detection like mapped fields. ``before_save`` is
    called with the entity and the changed field names right before a write;
    whatever it raises leaves the entity unsaved.

    Raises RecordValidationError when the record cannot be mapped or stored.
    """
    relations = relations or {}
    remote_id = record.get('id')
    if remote_id is None or remote_id == '':
        raise RecordValidationError(kind.label, '?', 'record has no id')

    entity = kind.find(remote_id, relations)
    created = entity is None
    if created:
        entity = kind.make()

    fields = mapped_fields(field_map) + list(relations)
    previous = {name: getattr(entity, name) for name in fields}

    apply_map(field_map, entity, record)
    for name, value in relations.items():
        setattr(entity, name, value)

    try:
        entity.full_clean()
    except ValidationError as exc:
        raise RecordValidationError(kind.label, remote_id, '; '.join(exc.messages)) from exc

    changed_fields = [name for name in fields if previous[name] != getattr(entity, name)]
    result = Reconciled(entity, created, changed_fields)
    if not result.changed:
        logger.debug("[%s] %s %s unchanged", entity.pk, kind.label, remote_id)
        return result

    if before_save is not None:
        before_save(entity, changed_fields)

    try:
        kind.save(entity)
    except (IntegrityError, DataError) as exc:
        raise RecordValidationError(kind.label, remote_id, str(exc)) from exc

    return result
