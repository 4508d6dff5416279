"""
Configuration entity schemas.

Entity models, collections, lookups and declared references.
"""

from chatflow.schemas.collections import (
	EntityCollections,
	EntityType,
	collections_from_tenant_config,
	entity_key,
	normalize_record,
	parse_entity_key,
)
from chatflow.schemas.entities import (
	ActionChip,
	ConversationalForm,
	ConversationBranch,
	CTADefinition,
	Program,
	ShowcaseItem,
)
from chatflow.schemas.lookups import (
	find_branch,
	find_cta,
	find_form,
	find_program,
	find_showcase_item,
	resolve_key,
)
from chatflow.schemas.references import Reference, declared_references

__all__ = [
	# Collections
	'EntityCollections',
	'EntityType',
	'collections_from_tenant_config',
	'entity_key',
	'normalize_record',
	'parse_entity_key',
	# Entities
	'ActionChip',
	'ConversationalForm',
	'ConversationBranch',
	'CTADefinition',
	'Program',
	'ShowcaseItem',
	# Lookups
	'find_branch',
	'find_cta',
	'find_form',
	'find_program',
	'find_showcase_item',
	'resolve_key',
	# References
	'Reference',
	'declared_references',
]
