"""
Entity lookups.

Every lookup returns ``None`` for an unknown ID instead of raising, so callers
decide whether a miss is an error, a warning or irrelevant. An ID resolves
against the collection key first and then against the record's own ID field.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from chatflow.schemas.collections import EntityType, record_id


def resolve_key(
	collection: Mapping[str, Mapping[str, Any]],
	entity_type: EntityType,
	entity_id: str | None,
) -> str | None:
	"""
	Resolve an ID to the collection key holding that entity.

	Args:
		collection: Mapping of key -> record
		entity_type: Type stored in the collection
		entity_id: ID to resolve (may be empty)

	Returns:
		Collection key, or None when nothing matches
	"""
	if not entity_id:
		return None
	if entity_id in collection:
		return entity_id
	for key, record in collection.items():
		if record_id(entity_type, key, record) == entity_id:
			return key
	return None


def _find(
	collection: Mapping[str, Mapping[str, Any]],
	entity_type: EntityType,
	entity_id: str | None,
) -> Mapping[str, Any] | None:
	key = resolve_key(collection, entity_type, entity_id)
	return collection[key] if key is not None else None


def find_program(programs: Mapping[str, Mapping[str, Any]], program_id: str | None) -> Mapping[str, Any] | None:
	"""Find a program by key or ``program_id``."""
	return _find(programs, EntityType.PROGRAM, program_id)


def find_form(forms: Mapping[str, Mapping[str, Any]], form_id: str | None) -> Mapping[str, Any] | None:
	"""Find a form by key or ``form_id``."""
	return _find(forms, EntityType.FORM, form_id)


def find_cta(ctas: Mapping[str, Mapping[str, Any]], cta_id: str | None) -> Mapping[str, Any] | None:
	"""Find a CTA by key or ``cta_id``."""
	return _find(ctas, EntityType.CTA, cta_id)


def find_branch(branches: Mapping[str, Mapping[str, Any]], branch_id: str | None) -> Mapping[str, Any] | None:
	"""Find a branch by key or ``branch_id``."""
	return _find(branches, EntityType.BRANCH, branch_id)


def find_showcase_item(items: Iterable[Mapping[str, Any]], item_id: str | None) -> Mapping[str, Any] | None:
	"""Find a showcase item by its ``id``."""
	if not item_id:
		return None
	for item in items:
		if item.get('id') == item_id:
			return item
	return None
