"""
Conversation Flow Graph Module.

Builds the dependency graph of chips, branches, CTAs and forms, analyses it
for orphans and broken references, and answers dependency queries.
"""

from chatflow.graph.edges import GraphEdge, create_edges
from chatflow.graph.graphs import (
	ConversationFlow,
	FlowGraph,
	FlowStatistics,
	apply_validation,
	build_conversation_flow,
	build_graph,
	compute_statistics,
)
from chatflow.graph.nodes import BrokenReference, GraphNode, create_nodes
from chatflow.graph.queries import (
	DeletionImpact,
	build_dependency_index,
	format_deletion_impact,
	get_deletion_impact,
	get_dependencies,
	get_dependents,
)
from chatflow.graph.validation import (
	detect_broken_references,
	detect_orphans,
	mark_broken_references,
	mark_orphaned_nodes,
)

__all__ = [
	# Models
	'BrokenReference',
	'ConversationFlow',
	'FlowGraph',
	'FlowStatistics',
	'GraphEdge',
	'GraphNode',
	# Construction
	'apply_validation',
	'build_conversation_flow',
	'build_graph',
	'compute_statistics',
	'create_edges',
	'create_nodes',
	# Analysis
	'detect_broken_references',
	'detect_orphans',
	'mark_broken_references',
	'mark_orphaned_nodes',
	# Queries
	'DeletionImpact',
	'build_dependency_index',
	'format_deletion_impact',
	'get_deletion_impact',
	'get_dependencies',
	'get_dependents',
]
