"""
Flow Graph Construction.

Builds the conversation flow graph (Action Chip -> Branch -> CTA -> Form ->
Branch) from the entity collections and runs the graph analyses over it.
"""

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from chatflow.graph.edges import GraphEdge, create_edges
from chatflow.graph.nodes import BrokenReference, GraphNode, create_nodes
from chatflow.graph.validation import (
	detect_broken_references,
	detect_orphans,
	mark_broken_references,
	mark_orphaned_nodes,
)
from chatflow.schemas.collections import EntityCollections

if TYPE_CHECKING:
	from chatflow.validation.aggregator import ValidationSnapshot

logger = logging.getLogger(__name__)


class FlowGraph(BaseModel):
	"""Nodes and edges of the conversation flow."""
	model_config = ConfigDict(frozen=True)

	nodes: list[GraphNode] = Field(default_factory=list)
	edges: list[GraphEdge] = Field(default_factory=list)

	def node(self, node_id: str) -> GraphNode | None:
		for node in self.nodes:
			if node.id == node_id:
				return node
		return None

	def outgoing(self, node_id: str) -> list[GraphEdge]:
		return [edge for edge in self.edges if edge.source == node_id]

	def incoming(self, node_id: str) -> list[GraphEdge]:
		return [edge for edge in self.edges if edge.target == node_id]


class FlowStatistics(BaseModel):
	"""Counts shown alongside the flow diagram."""
	nodes: int = 0
	connections: int = 0
	errors: int = Field(default=0, description="Nodes with error findings")
	warnings: int = Field(default=0, description="Nodes with warnings but no errors")
	valid: int = Field(default=0, description="Nodes with no findings")
	orphaned: int = 0
	broken_refs: int = 0


class ConversationFlow(BaseModel):
	"""Decorated flow graph plus the analysis results behind it."""
	graph: FlowGraph
	orphan_ids: set[str] = Field(default_factory=set)
	broken_references: list[BrokenReference] = Field(default_factory=list)
	statistics: FlowStatistics = Field(default_factory=FlowStatistics)


def build_graph(
	action_chips: Mapping[str, Any],
	branches: Mapping[str, Any],
	ctas: Mapping[str, Any],
	forms: Mapping[str, Any],
) -> FlowGraph:
	"""
	Build the flow graph from the four graph-bearing collections.

	Args:
		action_chips: Action chips by ID
		branches: Conversation branches by ID
		ctas: CTA definitions by ID
		forms: Conversational forms by ID

	Returns:
		FlowGraph with one node per entity and one edge per resolvable reference
	"""
	for name, collection in (('action_chips', action_chips), ('branches', branches), ('ctas', ctas), ('forms', forms)):
		if not isinstance(collection, Mapping):
			raise TypeError(f"{name} must be a mapping of id -> record, got {type(collection).__name__}")

	nodes = create_nodes(action_chips, branches, ctas, forms)
	edges = create_edges(action_chips, branches, ctas, forms, {node.id for node in nodes})
	return FlowGraph(nodes=nodes, edges=edges)


def _apply_snapshot(nodes: list[GraphNode], snapshot: 'ValidationSnapshot') -> list[GraphNode]:
	decorated: list[GraphNode] = []
	for node in nodes:
		status = snapshot.status_for(node.id)
		decorated.append(node.model_copy(update={
			'validation_status': status,
			'has_errors': node.has_errors or status == 'error',
		}))
	return decorated


def compute_statistics(graph: FlowGraph, snapshot: 'ValidationSnapshot | None' = None) -> FlowStatistics:
	"""
	Count nodes by validation status.

	Without a snapshot, status comes from the node decorations alone.
	"""
	errors = warnings = 0
	for node in graph.nodes:
		status = snapshot.status_for(node.id) if snapshot is not None else node.validation_status
		if status == 'error' or node.has_errors:
			errors += 1
		elif status == 'warning' or node.is_orphaned or node.broken_references:
			warnings += 1
	return FlowStatistics(
		nodes=len(graph.nodes),
		connections=len(graph.edges),
		errors=errors,
		warnings=warnings,
		valid=len(graph.nodes) - errors - warnings,
		orphaned=sum(1 for node in graph.nodes if node.is_orphaned),
		broken_refs=sum(len(node.broken_references) for node in graph.nodes),
	)


def build_conversation_flow(
	collections: EntityCollections,
	snapshot: 'ValidationSnapshot | None' = None,
) -> ConversationFlow:
	"""
	Build, analyse and decorate the flow graph in one call.

	Args:
		collections: Entity collections snapshot
		snapshot: Validation snapshot used to colour nodes (optional)

	Returns:
		ConversationFlow with decorated nodes and statistics
	"""
	graph = build_graph(collections.action_chips, collections.branches, collections.ctas, collections.forms)
	orphan_ids = detect_orphans(graph.nodes, graph.edges)
	broken = detect_broken_references(
		graph.nodes,
		collections.action_chips,
		collections.branches,
		collections.ctas,
		collections.forms,
		programs=collections.programs,
		showcase_items=collections.showcase_items,
	)

	nodes = mark_orphaned_nodes(graph.nodes, orphan_ids)
	nodes = mark_broken_references(nodes, broken)
	decorated = FlowGraph(nodes=nodes, edges=graph.edges)
	flow = ConversationFlow(
		graph=decorated,
		orphan_ids=orphan_ids,
		broken_references=broken,
		statistics=compute_statistics(decorated),
	)
	if snapshot is not None:
		flow = apply_validation(flow, snapshot)

	statistics = flow.statistics
	logger.info(
		f"✅ Built conversation flow: {statistics.nodes} nodes, {statistics.connections} connections, "
		f"{statistics.orphaned} orphaned, {statistics.broken_refs} broken reference(s)"
	)
	return flow


def apply_validation(flow: ConversationFlow, snapshot: 'ValidationSnapshot') -> ConversationFlow:
	"""Return a copy of the flow with node status and statistics taken from a snapshot."""
	graph = FlowGraph(nodes=_apply_snapshot(flow.graph.nodes, snapshot), edges=flow.graph.edges)
	return flow.model_copy(update={
		'graph': graph,
		'statistics': compute_statistics(graph, snapshot),
	})
