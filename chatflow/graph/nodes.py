"""
Flow Graph Node Creation.

One node per Action Chip, Branch, CTA and Form. Node IDs use the entity-key
format ``"{type}-{entityId}"`` so graph findings line up with validation
findings.
"""

import logging
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from chatflow.schemas.collections import EntityType, entity_key, normalize_record

logger = logging.getLogger(__name__)

ReferenceType = Literal[
	'target_branch',
	'formId',
	'available_ctas',
	'on_completion_branch',
	'program',
	'target_showcase_id',
]


# =============================================================================
# Node Models
# =============================================================================

class BrokenReference(BaseModel):
	"""A node's reference to an entity that does not exist."""
	model_config = ConfigDict(frozen=True)

	node_id: str = Field(..., description="Node declaring the reference")
	reference_type: ReferenceType = Field(..., description="Which reference field is broken")
	referenced_id: str = Field(..., description="ID that failed to resolve")
	severity: Literal['error', 'warning'] = Field(..., description="warning only for Form -> Program")
	issue: str = Field(..., description="Human-readable description")
	field: str = Field(..., description="Field path on the declaring entity")


class GraphNode(BaseModel):
	"""Flow graph node for a single entity."""
	model_config = ConfigDict(frozen=True)

	id: str = Field(..., description="Node ID (type-entityId)")
	entity_type: EntityType = Field(..., description="Entity type")
	entity_id: str = Field(..., description="Entity ID within its collection")
	label: str = Field(..., description="Display label")
	data: dict[str, Any] = Field(default_factory=dict, description="Raw entity record")
	metadata: dict[str, Any] = Field(default_factory=dict, description="Derived counts and targets")
	is_orphaned: bool = Field(default=False, description="No incoming edge and not a root")
	broken_references: list[BrokenReference] = Field(default_factory=list)
	has_errors: bool = Field(default=False, description="Any error-severity finding on this entity")
	validation_status: Literal['error', 'warning', 'success', 'none'] = 'none'


# =============================================================================
# Node Creation Functions
# =============================================================================

def _text(value: Any) -> str | None:
	return value.strip() if isinstance(value, str) and value.strip() else None


def create_chip_node(chip_id: str, chip: Mapping[str, Any]) -> GraphNode:
	data = normalize_record(EntityType.ACTION_CHIP, chip, chip_id)
	return GraphNode(
		id=entity_key(EntityType.ACTION_CHIP, chip_id),
		entity_type=EntityType.ACTION_CHIP,
		entity_id=chip_id,
		label=_text(data.get('label')) or chip_id,
		data=dict(chip),
		metadata={
			'action': data.get('action'),
			'target_branch': _text(data.get('target_branch')),
		},
	)


def create_branch_node(branch_id: str, branch: Mapping[str, Any]) -> GraphNode:
	data = normalize_record(EntityType.BRANCH, branch, branch_id)
	available = data.get('available_ctas') if isinstance(data.get('available_ctas'), Mapping) else {}
	secondary = [item for item in (available.get('secondary') or []) if _text(item)]
	keywords = data.get('detection_keywords') or []
	return GraphNode(
		id=entity_key(EntityType.BRANCH, branch_id),
		entity_type=EntityType.BRANCH,
		entity_id=branch_id,
		label=_text(data.get('name')) or branch_id,
		data=dict(branch),
		metadata={
			'keyword_count': len(keywords) if isinstance(keywords, list) else 0,
			'cta_count': (1 if _text(available.get('primary')) else 0) + len(secondary),
		},
	)


def create_cta_node(cta_id: str, cta: Mapping[str, Any]) -> GraphNode:
	data = normalize_record(EntityType.CTA, cta, cta_id)
	return GraphNode(
		id=entity_key(EntityType.CTA, cta_id),
		entity_type=EntityType.CTA,
		entity_id=cta_id,
		label=_text(data.get('label')) or cta_id,
		data=dict(cta),
		metadata={
			'action': data.get('action'),
			'target_id': (
				_text(data.get('formId'))
				or _text(data.get('target_branch'))
				or _text(data.get('url'))
				or _text(data.get('target_showcase_id'))
			),
		},
	)


def create_form_node(form_id: str, form: Mapping[str, Any]) -> GraphNode:
	data = normalize_record(EntityType.FORM, form, form_id)
	fields = data.get('fields') or []
	return GraphNode(
		id=entity_key(EntityType.FORM, form_id),
		entity_type=EntityType.FORM,
		entity_id=form_id,
		label=_text(data.get('title')) or form_id,
		data=dict(form),
		metadata={
			'field_count': len(fields) if isinstance(fields, list) else 0,
			'program': _text(data.get('program')),
			'target_branch': _text(data.get('on_completion_branch')),
		},
	)


def create_nodes(
	action_chips: Mapping[str, Any],
	branches: Mapping[str, Any],
	ctas: Mapping[str, Any],
	forms: Mapping[str, Any],
) -> list[GraphNode]:
	"""
	Create one node per entity: chips, then branches, CTAs and forms.

	Args:
		action_chips: Action chips by ID
		branches: Conversation branches by ID
		ctas: CTA definitions by ID
		forms: Conversational forms by ID

	Returns:
		Nodes in creation order
	"""
	nodes: list[GraphNode] = []
	nodes.extend(create_chip_node(key, record) for key, record in action_chips.items())
	nodes.extend(create_branch_node(key, record) for key, record in branches.items())
	nodes.extend(create_cta_node(key, record) for key, record in ctas.items())
	nodes.extend(create_form_node(key, record) for key, record in forms.items())
	logger.debug(f"Created {len(nodes)} flow graph nodes")
	return nodes
