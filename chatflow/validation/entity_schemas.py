"""
Entity schema validation.

Validates a single entity's own fields against its pydantic model and maps
pydantic's errors to ``{field_path: message}`` with the dashboard's wording.
Cross-entity rules are left to the relationship validator.
"""

import logging
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import TypeAdapter, ValidationError

from chatflow.config.features import FeatureFlags, get_feature_flags
from chatflow.schemas.collections import (
	ID_FIELDS,
	EntityCollections,
	EntityType,
	coerce_entity_type,
	entity_key,
	normalize_record,
	record_id,
)
from chatflow.schemas.entities import (
	ActionChip,
	ConversationalForm,
	ConversationBranch,
	CTADefinition,
	Program,
	ShowcaseItem,
)
from chatflow.schemas.messages import (
	CTA_ACTION_FIELDS,
	humanize_field,
	id_format_message,
	irrelevant_field_message,
	required_message,
	too_long_message,
)
from chatflow.validation.uniqueness import check_unique_id, find_duplicate_ids

logger = logging.getLogger(__name__)

_ADAPTERS: dict[EntityType, TypeAdapter] = {
	EntityType.PROGRAM: TypeAdapter(Program),
	EntityType.FORM: TypeAdapter(ConversationalForm),
	EntityType.CTA: TypeAdapter(CTADefinition),
	EntityType.BRANCH: TypeAdapter(ConversationBranch),
	EntityType.ACTION_CHIP: TypeAdapter(ActionChip),
	EntityType.SHOWCASE: TypeAdapter(ShowcaseItem),
}

# Location prefix after which pydantic inserts the union tag
_UNION_PREFIXES: dict[EntityType, tuple[str, ...]] = {
	EntityType.CTA: (),
	EntityType.ACTION_CHIP: (),
	EntityType.SHOWCASE: ('action',),
}

_REQUIRED_ERROR_TYPES = frozenset({'missing', 'string_too_short', 'too_short', 'union_tag_not_found'})

FORM_FIELD_ID_MESSAGE = 'Field ID must start with a letter and contain only lowercase letters, numbers, and underscores'


@dataclass(frozen=True)
class ValidationContext:
	"""What the entity is checked against besides its own fields."""
	is_edit_mode: bool = False
	original_entity: Mapping[str, Any] | None = None
	existing_ids: Collection[str] = ()
	max_ctas_per_response: int | None = None
	available_cta_ids: Collection[str] | None = None


# =============================================================================
# Error Mapping
# =============================================================================

def _strip_union_tag(entity_type: EntityType, loc: tuple[Any, ...], error_type: str) -> tuple[Any, ...]:
	prefix = _UNION_PREFIXES.get(entity_type)
	if prefix is None or error_type.startswith('union_tag'):
		return loc
	if len(loc) > len(prefix) and tuple(loc[:len(prefix)]) == prefix:
		return loc[:len(prefix)] + loc[len(prefix) + 1:]
	return loc


def _field_path(loc: tuple[Any, ...]) -> str:
	"""Render a pydantic location as ``fields[0].id`` / ``available_ctas.primary``."""
	parts: list[str] = []
	for item in loc:
		if isinstance(item, int) and parts:
			parts[-1] = f"{parts[-1]}[{item}]"
		else:
			parts.append(str(item))
	return '.'.join(parts)


def _error_message(entity_type: EntityType, path: str, error: Mapping[str, Any]) -> str:
	error_type = error['type']
	ctx = error.get('ctx') or {}

	if error_type in _REQUIRED_ERROR_TYPES:
		return required_message(entity_type.value, path)
	if error_type.endswith('_type') and error.get('input') is None:
		return required_message(entity_type.value, path)
	if error_type == 'string_too_long':
		return too_long_message(path, ctx['max_length'])
	if error_type == 'too_long':
		return f"{humanize_field(path)} allows at most {ctx['max_length']} entries"
	if error_type == 'string_pattern_mismatch':
		if entity_type is EntityType.FORM and path.startswith('fields['):
			return FORM_FIELD_ID_MESSAGE
		return id_format_message(entity_type.value)
	if error_type == 'union_tag_invalid':
		return 'Invalid action type'
	if error_type in ('literal_error', 'enum'):
		return f"Invalid {humanize_field(path).lower()}"
	if error_type == 'string_type':
		return f"{humanize_field(path)} must be text"
	return error['msg']


def map_validation_errors(entity_type: 'EntityType | str', exc: ValidationError) -> dict[str, str]:
	"""
	Convert a pydantic ValidationError into ``{field_path: message}``.

	The first message reported for a field wins.
	"""
	entity_type = coerce_entity_type(entity_type)
	errors: dict[str, str] = {}
	for error in exc.errors():
		loc = _strip_union_tag(entity_type, tuple(error['loc']), error['type'])
		if error['type'].startswith('union_tag'):
			discriminator = str((error.get('ctx') or {}).get('discriminator', 'action')).strip("'")
			loc = loc + (discriminator,)
		path = _field_path(loc) or ID_FIELDS[entity_type]
		errors.setdefault(path, _error_message(entity_type, path, error))
	return errors


# =============================================================================
# Validation Functions
# =============================================================================

def _irrelevant_cta_fields(data: Mapping[str, Any]) -> dict[str, str]:
	"""Flag non-empty CTA fields that belong to a different action."""
	action = data.get('action')
	if action not in CTA_ACTION_FIELDS:
		return {}
	errors: dict[str, str] = {}
	for other_action, field_name in CTA_ACTION_FIELDS.items():
		if other_action == action:
			continue
		value = data.get(field_name)
		if isinstance(value, str) and value.strip():
			errors[field_name] = irrelevant_field_message(field_name, other_action)
	return errors


def validate_entity(
	entity_type: 'EntityType | str',
	data: Mapping[str, Any],
	context: ValidationContext | None = None,
	entity_id: str | None = None,
	flags: FeatureFlags | None = None,
) -> dict[str, str]:
	"""
	Validate one entity's own fields.

	Args:
		entity_type: Entity type (enum member or its string value)
		data: Raw entity record
		context: Edit mode, existing IDs and limits; defaults to create mode
		entity_id: Collection key, used when the record has no ID field
		flags: Feature flags; defaults to the global instance

	Returns:
		``{field_path: message}``; empty when the entity is valid

	Raises:
		ValueError: Unknown entity type
		TypeError: ``data`` is not a mapping
	"""
	entity_type = coerce_entity_type(entity_type)
	context = context or ValidationContext()
	flags = flags or get_feature_flags()

	normalized = normalize_record(entity_type, data, entity_id)
	pydantic_context = {
		'https_only_links': flags.https_only_links,
		'max_ctas_per_response': context.max_ctas_per_response or flags.max_ctas_per_response,
		'available_cta_ids': (
			set(context.available_cta_ids) if context.available_cta_ids is not None else None
		),
	}

	errors: dict[str, str] = {}
	try:
		_ADAPTERS[entity_type].validate_python(normalized, context=pydantic_context)
	except ValidationError as exc:
		errors = map_validation_errors(entity_type, exc)

	if entity_type is EntityType.CTA:
		for field_name, message in _irrelevant_cta_fields(normalized).items():
			errors.setdefault(field_name, message)

	id_field = ID_FIELDS[entity_type]
	candidate_id = normalized.get(id_field)
	if id_field not in errors and isinstance(candidate_id, str) and context.existing_ids:
		original_id = None
		if context.original_entity is not None:
			original_id = record_id(entity_type, '', context.original_entity) or None
		duplicate = check_unique_id(
			candidate_id.strip(),
			context.existing_ids,
			is_edit_mode=context.is_edit_mode,
			original_id=original_id,
			entity_type=entity_type,
		)
		if duplicate:
			errors[id_field] = duplicate

	return errors


def validate_entities(
	collections: EntityCollections,
	max_ctas_per_response: int | None = None,
	flags: FeatureFlags | None = None,
) -> dict[str, dict[str, str]]:
	"""
	Validate every entity in the collections, including ID uniqueness.

	Args:
		collections: Entity collections snapshot
		max_ctas_per_response: Override for the per-branch CTA limit
		flags: Feature flags; defaults to the global instance

	Returns:
		``{entity_key: {field_path: message}}`` for entities with errors
	"""
	available_cta_ids = frozenset(collections.ids(EntityType.CTA))
	results: dict[str, dict[str, str]] = {}

	for entity_type in EntityType:
		context = ValidationContext(
			max_ctas_per_response=max_ctas_per_response,
			available_cta_ids=available_cta_ids if entity_type is EntityType.SHOWCASE else None,
		)
		for key, record in collections.records(entity_type):
			errors = validate_entity(entity_type, record, context, entity_id=key, flags=flags)
			if errors:
				results[entity_key(entity_type, key)] = errors

		duplicates = find_duplicate_ids(entity_type, collections.records(entity_type))
		for issue in duplicates.errors:
			entity_errors = results.setdefault(issue.entity_key, {})
			entity_errors.setdefault(issue.field or ID_FIELDS[entity_type], issue.message)

	invalid = len(results)
	if invalid:
		logger.info(f"❌ Schema validation: {invalid} entit{'y' if invalid == 1 else 'ies'} with field errors")
	else:
		logger.debug("✅ Schema validation: all entities valid")
	return results
