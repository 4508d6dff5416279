"""
Flow Graph Edge Creation.

Edges follow declared references between graph entities. An edge is only
created when its target node exists; unresolved references are left to the
broken-reference detector.
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from chatflow.schemas.collections import EntityType, entity_key
from chatflow.schemas.lookups import resolve_key
from chatflow.schemas.references import Reference, declared_references

logger = logging.getLogger(__name__)

GRAPH_TYPES = frozenset({EntityType.ACTION_CHIP, EntityType.BRANCH, EntityType.CTA, EntityType.FORM})


# =============================================================================
# Edge Models
# =============================================================================

class GraphEdge(BaseModel):
	"""Directed edge from a referencing entity to the referenced one."""
	model_config = ConfigDict(frozen=True)

	id: str = Field(..., description="Edge ID, unique per reference")
	source: str = Field(..., description="Source node ID")
	target: str = Field(..., description="Target node ID")
	label: str = Field(..., description="Edge label")
	reference_type: str = Field(..., description="Reference field that produced the edge")


def edge_id_and_label(ref: Reference, source: str, target: str) -> tuple[str, str]:
	"""
	Build the edge ID and label for a reference.

	Args:
		ref: Reference producing the edge
		source: Source node ID
		target: Target node ID

	Returns:
		(edge_id, label)
	"""
	if ref.source_type is EntityType.BRANCH:
		if ref.role == 'primary':
			return f"{source}__{target}__primary", 'primary CTA'
		return f"{source}__{target}__secondary_{ref.index}", 'secondary CTA'
	if ref.source_type is EntityType.CTA and ref.reference_type == 'target_branch':
		return f"{source}__{target}__target_branch", 'target_branch'
	if ref.source_type is EntityType.CTA:
		return f"{source}__{target}", 'start_form'
	if ref.source_type is EntityType.FORM:
		return f"{source}__{target}", 'on_completion'
	return f"{source}__{target}", 'target_branch'


# =============================================================================
# Edge Creation Functions
# =============================================================================

def create_edges(
	action_chips: Mapping[str, Any],
	branches: Mapping[str, Any],
	ctas: Mapping[str, Any],
	forms: Mapping[str, Any],
	node_ids: set[str],
) -> list[GraphEdge]:
	"""
	Create edges for every resolvable reference between graph entities.

	Args:
		action_chips: Action chips by ID
		branches: Conversation branches by ID
		ctas: CTA definitions by ID
		forms: Conversational forms by ID
		node_ids: IDs of the nodes already created

	Returns:
		Edges in source order
	"""
	targets: dict[EntityType, Mapping[str, Any]] = {
		EntityType.BRANCH: branches,
		EntityType.CTA: ctas,
		EntityType.FORM: forms,
	}
	sources: list[tuple[EntityType, Mapping[str, Any]]] = [
		(EntityType.ACTION_CHIP, action_chips),
		(EntityType.BRANCH, branches),
		(EntityType.CTA, ctas),
		(EntityType.FORM, forms),
	]

	edges: list[GraphEdge] = []
	seen: set[str] = set()
	for source_type, collection in sources:
		for source_key, record in collection.items():
			source = entity_key(source_type, source_key)
			for ref in declared_references(source_type, source_key, record):
				if ref.is_missing or ref.target_type not in targets:
					continue
				target_key = resolve_key(targets[ref.target_type], ref.target_type, ref.target_id)
				if target_key is None:
					continue
				target = entity_key(ref.target_type, target_key)
				if target not in node_ids:
					continue
				edge_id, label = edge_id_and_label(ref, source, target)
				if edge_id in seen:
					continue
				seen.add(edge_id)
				edges.append(GraphEdge(
					id=edge_id,
					source=source,
					target=target,
					label=label,
					reference_type=ref.reference_type,
				))

	logger.debug(f"Created {len(edges)} flow graph edges")
	return edges
