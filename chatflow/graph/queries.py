"""
Dependency Queries.

In-memory dependency index over all entity types (including Programs and
Showcase Items, which the flow graph leaves out) for "what uses this" and
"what does this use" questions and deletion-impact reports.

Edges point from the referencing entity to the referenced one, so the
dependents of an entity are its ancestors and its dependencies are its
descendants.
"""

import logging

import networkx as nx
from pydantic import BaseModel, Field

from chatflow.schemas.collections import COLLECTION_FIELDS, EntityCollections, EntityType, entity_key, parse_entity_key
from chatflow.schemas.lookups import find_showcase_item, resolve_key
from chatflow.schemas.messages import ENTITY_LABELS
from chatflow.schemas.references import declared_references

logger = logging.getLogger(__name__)

SAFE_TO_DELETE = 'No dependencies found. Safe to delete.'


class DeletionImpact(BaseModel):
	"""What breaks if an entity is deleted."""
	node_id: str = Field(..., description="Entity key of the entity being deleted")
	can_delete: bool = Field(default=True, description="False when deletion is blocked")
	blocking_reasons: list[str] = Field(default_factory=list)
	warnings: list[str] = Field(default_factory=list)
	affected: dict[str, list[str]] = Field(
		default_factory=dict,
		description="Entity keys of direct and indirect dependents, grouped by entity type",
	)


def build_dependency_index(collections: EntityCollections) -> nx.DiGraph:
	"""
	Build the dependency index for every entity in the collections.

	Args:
		collections: Entity collections snapshot

	Returns:
		DiGraph keyed by entity key; edges carry ``reference_type`` and ``field``
	"""
	graph = nx.DiGraph()
	for entity_type in EntityType:
		for key, record in collections.records(entity_type):
			graph.add_node(entity_key(entity_type, key), entity_type=entity_type, entity_id=key, record=record)

	for entity_type in EntityType:
		for key, record in collections.records(entity_type):
			source = entity_key(entity_type, key)
			for ref in declared_references(entity_type, key, record):
				if ref.is_missing:
					continue
				if ref.target_type is EntityType.SHOWCASE:
					item = find_showcase_item(collections.showcase_items, ref.target_id)
					target_key = ref.target_id if item is not None else None
				else:
					target_key = resolve_key(
						getattr(collections, COLLECTION_FIELDS[ref.target_type]),
						ref.target_type,
						ref.target_id,
					)
				if target_key is None:
					continue
				graph.add_edge(
					source,
					entity_key(ref.target_type, target_key),
					reference_type=ref.reference_type,
					field=ref.field,
				)

	logger.debug(f"Dependency index: {graph.number_of_nodes()} nodes, {graph.number_of_edges()} edges")
	return graph


def _group_by_type(node_ids: set[str]) -> dict[str, list[str]]:
	grouped: dict[str, list[str]] = {}
	for node_id in sorted(node_ids):
		entity_type, _ = parse_entity_key(node_id)
		grouped.setdefault(entity_type.value, []).append(node_id)
	return grouped


def get_dependents(index: nx.DiGraph, node_id: str) -> dict[str, list[str]]:
	"""
	Entities that directly or transitively reference ``node_id``.

	Returns:
		Entity keys grouped by entity type; empty for unknown nodes
	"""
	if node_id not in index:
		return {}
	return _group_by_type(nx.ancestors(index, node_id))


def get_dependencies(index: nx.DiGraph, node_id: str) -> dict[str, list[str]]:
	"""
	Entities that ``node_id`` directly or transitively references.

	Returns:
		Entity keys grouped by entity type; empty for unknown nodes
	"""
	if node_id not in index:
		return {}
	return _group_by_type(nx.descendants(index, node_id))


def _plural(entity_type: EntityType, count: int) -> str:
	label = ENTITY_LABELS[entity_type.value]
	if count == 1:
		return label
	return f"{label}es" if label.endswith('ch') else f"{label}s"


def get_deletion_impact(index: nx.DiGraph, node_id: str) -> DeletionImpact:
	"""
	Report what deleting an entity would break.

	Deletion is never blocked; direct referrers are listed by name and
	indirect dependents are counted per type.

	Args:
		index: Dependency index from ``build_dependency_index``
		node_id: Entity key of the entity to delete

	Returns:
		DeletionImpact report
	"""
	if node_id not in index:
		return DeletionImpact(node_id=node_id, warnings=[SAFE_TO_DELETE])

	entity_type, _ = parse_entity_key(node_id)
	subject = ENTITY_LABELS[entity_type.value].lower() if entity_type is not EntityType.CTA else 'CTA'

	direct = set(index.predecessors(node_id))
	indirect = nx.ancestors(index, node_id) - direct

	warnings: list[str] = []
	for type_value, keys in _group_by_type(direct).items():
		referrer_type = EntityType(type_value)
		names = ', '.join(index.nodes[key]['entity_id'] for key in keys)
		verb = 'references' if len(keys) == 1 else 'reference'
		warnings.append(f"{len(keys)} {_plural(referrer_type, len(keys))} {verb} this {subject}: {names}")
	for type_value, keys in _group_by_type(indirect).items():
		dependent_type = EntityType(type_value)
		verb = 'depends' if len(keys) == 1 else 'depend'
		warnings.append(f"{len(keys)} {_plural(dependent_type, len(keys))} indirectly {verb} on this {subject}")

	return DeletionImpact(
		node_id=node_id,
		can_delete=True,
		warnings=warnings or [SAFE_TO_DELETE],
		affected=_group_by_type(direct | indirect),
	)


def format_deletion_impact(impact: DeletionImpact, entity_name: str | None = None) -> str:
	"""Render a deletion impact report as human-readable text."""
	entity_type, entity_id = parse_entity_key(impact.node_id)
	lines = [f'⚠️  WARNING: Deleting {entity_type.value} "{entity_name or entity_id}"', '']
	if not impact.can_delete:
		lines.append('❌ CANNOT DELETE')
		lines.append('')
		lines.append('Blocking reasons:')
		lines.extend(f"  • {reason}" for reason in impact.blocking_reasons)
	elif impact.warnings:
		lines.append('Impact:')
		lines.extend(f"  • {warning}" for warning in impact.warnings)
	return '\n'.join(lines)
