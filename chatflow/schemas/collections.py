"""
Entity Collections.

Defines the entity type vocabulary, entity keys (``"{type}-{id}"``) and the
``EntityCollections`` snapshot that every validation stage and the graph
builder consume. Records are kept as the plain dicts received from the
config store; typed models are only built during schema validation.
"""

import logging
from collections.abc import Iterator, Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)


class EntityType(str, Enum):
	"""Configuration entity types, valued by their entity-key prefix."""
	PROGRAM = 'program'
	FORM = 'form'
	CTA = 'cta'
	BRANCH = 'branch'
	ACTION_CHIP = 'actionchip'
	SHOWCASE = 'showcase'


# Field inside a record that carries the entity's own ID
ID_FIELDS: dict[EntityType, str] = {
	EntityType.PROGRAM: 'program_id',
	EntityType.FORM: 'form_id',
	EntityType.CTA: 'cta_id',
	EntityType.BRANCH: 'branch_id',
	EntityType.ACTION_CHIP: 'chip_id',
	EntityType.SHOWCASE: 'id',
}

# Collection attribute on EntityCollections per entity type
COLLECTION_FIELDS: dict[EntityType, str] = {
	EntityType.PROGRAM: 'programs',
	EntityType.FORM: 'forms',
	EntityType.CTA: 'ctas',
	EntityType.BRANCH: 'branches',
	EntityType.ACTION_CHIP: 'action_chips',
	EntityType.SHOWCASE: 'showcase_items',
}


def coerce_entity_type(value: 'EntityType | str') -> EntityType:
	"""
	Resolve an entity type from its enum member or string value.

	Raises:
		ValueError: If the value names no known entity type
	"""
	if isinstance(value, EntityType):
		return value
	try:
		return EntityType(value)
	except ValueError:
		raise ValueError(f"Unknown entity type: {value!r}") from None


def entity_key(entity_type: 'EntityType | str', entity_id: str) -> str:
	"""Build the ``"{type}-{id}"`` key used to index findings and graph nodes."""
	return f"{coerce_entity_type(entity_type).value}-{entity_id}"


def parse_entity_key(key: str) -> tuple[EntityType, str]:
	"""
	Split an entity key into its type and ID.

	The type prefix never contains a hyphen, so the first hyphen separates
	the two parts even when the ID itself contains hyphens.

	Raises:
		ValueError: If the key has no type prefix or an unknown one
	"""
	prefix, sep, entity_id = key.partition('-')
	if not sep or not entity_id:
		raise ValueError(f"Malformed entity key: {key!r}")
	return coerce_entity_type(prefix), entity_id


def record_id(entity_type: EntityType, key: str, record: Mapping[str, Any]) -> str:
	"""Return the record's own ID field, falling back to its collection key."""
	value = record.get(ID_FIELDS[entity_type]) if isinstance(record, Mapping) else None
	if isinstance(value, str) and value.strip():
		return value.strip()
	return key


def _require_mapping(name: str, value: Any) -> None:
	if not isinstance(value, Mapping):
		raise TypeError(f"{name} must be a mapping of id -> record, got {type(value).__name__}")


# =============================================================================
# Collections Snapshot
# =============================================================================

class EntityCollections(BaseModel):
	"""
	Immutable set of the six entity collections.

	Five collections are mappings keyed by entity ID; showcase items are an
	ordered list whose entries carry their own ``id``.
	"""
	model_config = ConfigDict(frozen=True)

	programs: dict[str, dict[str, Any]] = Field(default_factory=dict, description="Programs by ID")
	forms: dict[str, dict[str, Any]] = Field(default_factory=dict, description="Conversational forms by ID")
	ctas: dict[str, dict[str, Any]] = Field(default_factory=dict, description="CTA definitions by ID")
	branches: dict[str, dict[str, Any]] = Field(default_factory=dict, description="Conversation branches by ID")
	action_chips: dict[str, dict[str, Any]] = Field(default_factory=dict, description="Action chips by ID")
	showcase_items: list[dict[str, Any]] = Field(default_factory=list, description="Showcase items in display order")

	@model_validator(mode='before')
	@classmethod
	def reject_missing_collections(cls, data: Any) -> Any:
		if not isinstance(data, Mapping):
			raise TypeError(f"EntityCollections expects a mapping, got {type(data).__name__}")
		for name in ('programs', 'forms', 'ctas', 'branches', 'action_chips'):
			if name in data:
				_require_mapping(name, data[name])
		if 'showcase_items' in data and not isinstance(data['showcase_items'], list):
			raise TypeError("showcase_items must be a list of records")
		return data

	def records(self, entity_type: 'EntityType | str') -> Iterator[tuple[str, dict[str, Any]]]:
		"""
		Iterate ``(entity_id, record)`` pairs for one entity type.

		Mapping collections yield their keys; showcase items yield their
		``id`` (or list position when it is missing).
		"""
		entity_type = coerce_entity_type(entity_type)
		if entity_type is EntityType.SHOWCASE:
			for index, item in enumerate(self.showcase_items):
				yield record_id(entity_type, str(index), item), item
			return
		yield from getattr(self, COLLECTION_FIELDS[entity_type]).items()

	def ids(self, entity_type: 'EntityType | str') -> set[str]:
		"""All IDs of one entity type, including records' own ID fields."""
		entity_type = coerce_entity_type(entity_type)
		result: set[str] = set()
		for key, record in self.records(entity_type):
			result.add(key)
			result.add(record_id(entity_type, key, record))
		return result

	def counts(self) -> dict[str, int]:
		"""Number of records per entity type."""
		return {
			entity_type.value: sum(1 for _ in self.records(entity_type))
			for entity_type in EntityType
		}


# =============================================================================
# Tenant Config Loader
# =============================================================================

def _chips_by_id(chips: Any) -> dict[str, dict[str, Any]]:
	"""Normalise ``action_chips.default_chips`` (mapping or list) to a mapping."""
	if chips is None:
		return {}
	if isinstance(chips, Mapping):
		return {str(key): dict(chip) for key, chip in chips.items()}
	if isinstance(chips, list):
		result: dict[str, dict[str, Any]] = {}
		for index, chip in enumerate(chips):
			chip_key = chip.get('chip_id') or chip.get('id') or f"chip_{index}"
			result[str(chip_key)] = dict(chip)
		return result
	raise TypeError(f"action_chips.default_chips must be a mapping or list, got {type(chips).__name__}")


def _showcase_list(showcase: Any) -> list[dict[str, Any]]:
	"""Accept either a bare list or a ``{"content_showcase": [...]}`` object."""
	if showcase is None:
		return []
	if isinstance(showcase, Mapping):
		showcase = showcase.get('content_showcase') or []
	if not isinstance(showcase, list):
		raise TypeError(f"content_showcase must be a list, got {type(showcase).__name__}")
	return [dict(item) for item in showcase]


def collections_from_tenant_config(config: Mapping[str, Any]) -> EntityCollections:
	"""
	Extract the six entity collections from a tenant configuration document.

	Args:
		config: Tenant config with ``programs``, ``conversational_forms``,
			``cta_definitions``, ``conversation_branches``,
			``action_chips.default_chips`` and ``content_showcase``

	Returns:
		EntityCollections snapshot

	Raises:
		TypeError: If the config or one of its collections has the wrong shape
	"""
	if not isinstance(config, Mapping):
		raise TypeError(f"Tenant config must be a mapping, got {type(config).__name__}")

	action_chips = config.get('action_chips') or {}
	collections = EntityCollections(
		programs=dict(config.get('programs') or {}),
		forms=dict(config.get('conversational_forms') or {}),
		ctas=dict(config.get('cta_definitions') or {}),
		branches=dict(config.get('conversation_branches') or {}),
		action_chips=_chips_by_id(action_chips.get('default_chips')),
		showcase_items=_showcase_list(config.get('content_showcase')),
	)
	logger.debug(f"Loaded tenant config {config.get('tenant_id', '<unknown>')}: {collections.counts()}")
	return collections


# =============================================================================
# Record Normalisation
# =============================================================================

# Alternate spellings accepted from older config writers, per entity type
FIELD_ALIASES: dict[EntityType, dict[str, str]] = {
	EntityType.PROGRAM: {'programId': 'program_id', 'name': 'program_name'},
	EntityType.FORM: {
		'formId': 'form_id',
		'triggerPhrases': 'trigger_phrases',
		'onCompletionBranch': 'on_completion_branch',
		'postSubmission': 'post_submission',
	},
	EntityType.CTA: {
		'ctaId': 'cta_id',
		'form_id': 'formId',
		'targetBranch': 'target_branch',
		'targetShowcaseId': 'target_showcase_id',
	},
	EntityType.BRANCH: {
		'branchId': 'branch_id',
		'detectionKeywords': 'detection_keywords',
		'availableCtas': 'available_ctas',
	},
	EntityType.ACTION_CHIP: {
		'chipId': 'chip_id',
		'targetBranch': 'target_branch',
		'targetShowcaseId': 'target_showcase_id',
	},
	EntityType.SHOWCASE: {'imageUrl': 'image_url'},
}


def _rename_keys(data: Mapping[str, Any], aliases: Mapping[str, str]) -> dict[str, Any]:
	result: dict[str, Any] = {}
	for key, value in data.items():
		target = aliases.get(key, key)
		if target in result and result[target] is not None:
			continue
		result[target] = value
	return result


def normalize_record(
	entity_type: 'EntityType | str',
	record: Mapping[str, Any],
	entity_id: str | None = None,
) -> dict[str, Any]:
	"""
	Return a copy of a raw record with canonical field names.

	Alternate spellings are renamed, ``None`` values are dropped, a missing
	ID field is filled from the collection key, and per-type defaults are
	applied (action chips default to ``send_query``).

	Args:
		entity_type: Type of the record
		record: Raw record as stored
		entity_id: Collection key of the record, if any

	Returns:
		Normalised copy; the input is never modified

	Raises:
		TypeError: If the record is not a mapping
	"""
	entity_type = coerce_entity_type(entity_type)
	if not isinstance(record, Mapping):
		raise TypeError(f"{entity_type.value} record must be a mapping, got {type(record).__name__}")

	data = _rename_keys(record, FIELD_ALIASES[entity_type])
	data = {key: value for key, value in data.items() if value is not None}

	id_field = ID_FIELDS[entity_type]
	if entity_id is not None and not data.get(id_field):
		data[id_field] = entity_id

	if entity_type is EntityType.FORM and isinstance(data.get('post_submission'), Mapping):
		data['post_submission'] = _rename_keys(
			data['post_submission'],
			{'confirmationMessage': 'confirmation_message', 'nextSteps': 'next_steps'},
		)
	elif entity_type is EntityType.BRANCH and 'available_ctas' not in data:
		data['available_ctas'] = {}
	elif entity_type is EntityType.ACTION_CHIP and not data.get('action'):
		data['action'] = 'send_query'
	elif entity_type is EntityType.SHOWCASE and isinstance(data.get('action'), Mapping):
		data['action'] = {
			key: value
			for key, value in _rename_keys(data['action'], {'ctaId': 'cta_id', 'openInNewTab': 'open_in_new_tab'}).items()
			if value is not None
		}

	return data
