"""
ID uniqueness checks.

IDs are unique within their own entity type only. When editing, an entity
keeping its original ID is not a duplicate of itself.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from chatflow.schemas.collections import ID_FIELDS, EntityType, coerce_entity_type, record_id
from chatflow.schemas.messages import duplicate_id_message
from chatflow.validation.issues import IssueCategory, Severity, ValidationResult

logger = logging.getLogger(__name__)


def check_unique_id(
	candidate_id: str,
	existing_ids: Iterable[str],
	is_edit_mode: bool = False,
	original_id: str | None = None,
	entity_type: 'EntityType | str' = EntityType.PROGRAM,
) -> str | None:
	"""
	Check a candidate ID against the IDs already in use.

	Args:
		candidate_id: ID being saved
		existing_ids: IDs already present in the same entity type
		is_edit_mode: True when an existing entity is being edited
		original_id: The entity's ID before the edit
		entity_type: Used to word the message

	Returns:
		Duplicate-ID message, or None when the ID is free
	"""
	if candidate_id not in set(existing_ids):
		return None
	if is_edit_mode and candidate_id == original_id:
		return None
	return duplicate_id_message(coerce_entity_type(entity_type).value)


def find_duplicate_ids(
	entity_type: 'EntityType | str',
	records: Iterable[tuple[str, Mapping[str, Any]]],
) -> ValidationResult:
	"""
	Flag every record whose ID was already used by an earlier record.

	Records are checked in order, in create mode, against the IDs seen so
	far, so the first occurrence is kept and each later one is reported.

	Args:
		entity_type: Type of the records
		records: ``(key, record)`` pairs

	Returns:
		ValidationResult with one uniqueness error per duplicate
	"""
	entity_type = coerce_entity_type(entity_type)
	result = ValidationResult()
	seen: list[str] = []
	for key, record in records:
		own_id = record_id(entity_type, key, record)
		message = check_unique_id(own_id, seen, entity_type=entity_type)
		if message:
			logger.debug(f"Duplicate {entity_type.value} ID {own_id!r} at key {key!r}")
			result.add_issue(
				entity_type,
				key,
				message,
				severity=Severity.ERROR,
				category=IssueCategory.UNIQUENESS,
				field=ID_FIELDS[entity_type],
			)
		seen.append(own_id)
	return result
