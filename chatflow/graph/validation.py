"""
Flow Graph Analysis.

Orphan detection and broken-reference detection over the built graph. The
two analyses are independent: a node can be orphaned, broken, both or
neither. Decorators return new node lists and never modify their input.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from chatflow.graph.edges import GRAPH_TYPES, GraphEdge
from chatflow.graph.nodes import BrokenReference, GraphNode
from chatflow.schemas.collections import EntityType, entity_key
from chatflow.schemas.lookups import find_program, find_showcase_item, resolve_key
from chatflow.schemas.messages import missing_reference_message, secondary_cta_missing_message
from chatflow.schemas.references import Reference, declared_references

logger = logging.getLogger(__name__)

# Entry points of the conversation; never reported as orphaned
ROOT_TYPES = frozenset({EntityType.ACTION_CHIP})


# =============================================================================
# Orphan Detection
# =============================================================================

def detect_orphans(nodes: Iterable[GraphNode], edges: Iterable[GraphEdge]) -> set[str]:
	"""
	Find nodes that no edge points at.

	Args:
		nodes: Graph nodes
		edges: Graph edges

	Returns:
		IDs of orphaned nodes; root types are never included
	"""
	targets = {edge.target for edge in edges}
	orphans = {
		node.id
		for node in nodes
		if node.entity_type not in ROOT_TYPES and node.id not in targets
	}
	logger.debug(f"Detected {len(orphans)} orphaned node(s)")
	return orphans


# =============================================================================
# Broken Reference Detection
# =============================================================================

def _issue_text(ref: Reference) -> str:
	if ref.role == 'secondary' and ref.index is not None:
		return secondary_cta_missing_message(ref.index, ref.target_id or '')
	return missing_reference_message(ref.target_type.value, ref.target_id or '')


def detect_broken_references(
	nodes: Iterable[GraphNode],
	action_chips: Mapping[str, Any],
	branches: Mapping[str, Any],
	ctas: Mapping[str, Any],
	forms: Mapping[str, Any],
	programs: Mapping[str, Any] | None = None,
	showcase_items: list[Mapping[str, Any]] | None = None,
) -> list[BrokenReference]:
	"""
	Re-scan the collections for references whose target does not exist.

	Graph-type targets resolve against the node set; programs and showcase
	items resolve against their collections and are skipped when those are
	not supplied. Absent references are not broken references.

	Args:
		nodes: Graph nodes
		action_chips: Action chips by ID
		branches: Conversation branches by ID
		ctas: CTA definitions by ID
		forms: Conversational forms by ID
		programs: Programs by ID (optional)
		showcase_items: Showcase items (optional)

	Returns:
		Broken references in source order
	"""
	node_ids = {node.id for node in nodes}
	collections: dict[EntityType, Mapping[str, Any]] = {
		EntityType.ACTION_CHIP: action_chips,
		EntityType.BRANCH: branches,
		EntityType.CTA: ctas,
		EntityType.FORM: forms,
	}

	def resolves(ref: Reference) -> bool | None:
		if ref.target_type in GRAPH_TYPES:
			target_key = resolve_key(collections[ref.target_type], ref.target_type, ref.target_id)
			return target_key is not None and entity_key(ref.target_type, target_key) in node_ids
		if ref.target_type is EntityType.PROGRAM:
			return None if programs is None else find_program(programs, ref.target_id) is not None
		if ref.target_type is EntityType.SHOWCASE:
			return None if showcase_items is None else find_showcase_item(showcase_items, ref.target_id) is not None
		return None

	broken: list[BrokenReference] = []
	for source_type, collection in collections.items():
		for source_key, record in collection.items():
			for ref in declared_references(source_type, source_key, record):
				if ref.is_missing or resolves(ref) is not False:
					continue
				broken.append(BrokenReference(
					node_id=entity_key(source_type, source_key),
					reference_type=ref.reference_type,
					referenced_id=ref.target_id,
					severity=ref.severity,
					issue=_issue_text(ref),
					field=ref.field,
				))

	if broken:
		logger.info(f"⚠️  Detected {len(broken)} broken reference(s)")
	return broken


# =============================================================================
# Node Decorators
# =============================================================================

def mark_orphaned_nodes(nodes: Iterable[GraphNode], orphan_ids: set[str]) -> list[GraphNode]:
	"""Return copies of the nodes with ``is_orphaned`` set from ``orphan_ids``."""
	return [node.model_copy(update={'is_orphaned': node.id in orphan_ids}) for node in nodes]


def mark_broken_references(nodes: Iterable[GraphNode], broken_refs: Iterable[BrokenReference]) -> list[GraphNode]:
	"""
	Return copies of the nodes carrying their broken references.

	A node with an error-severity broken reference is also flagged
	``has_errors``.
	"""
	by_node: dict[str, list[BrokenReference]] = {}
	for ref in broken_refs:
		by_node.setdefault(ref.node_id, []).append(ref)

	marked: list[GraphNode] = []
	for node in nodes:
		refs = by_node.get(node.id)
		if not refs:
			marked.append(node)
			continue
		marked.append(node.model_copy(update={
			'broken_references': [*node.broken_references, *refs],
			'has_errors': node.has_errors or any(ref.severity == 'error' for ref in refs),
		}))
	return marked
