"""
Configuration validator.

Runs the full pipeline over one set of entity collections:
schema and uniqueness checks, relationship validation, graph build and
analysis, optional quality checks, then aggregation into a snapshot.
"""

import logging

from chatflow.config.features import FeatureFlags, get_feature_flags
from chatflow.graph.graphs import ConversationFlow, apply_validation, build_conversation_flow
from chatflow.schemas.collections import EntityCollections
from chatflow.validation.aggregator import ValidationSnapshot, aggregate
from chatflow.validation.entity_schemas import validate_entities
from chatflow.validation.quality import validate_quality
from chatflow.validation.relationships import validate_relationships

logger = logging.getLogger(__name__)


class ConfigValidator:
	"""
	Validates a tenant's entity collections end to end.

	Holds no state between runs besides the feature flags; every call to
	``validate`` returns a fresh snapshot.
	"""

	def __init__(self, flags: FeatureFlags | None = None):
		"""
		Initialize config validator.

		Args:
			flags: Feature flags; defaults to the global instance
		"""
		self.flags = flags or get_feature_flags()

	def validate(self, collections: EntityCollections) -> ValidationSnapshot:
		"""
		Run every validation stage and aggregate the findings.

		Args:
			collections: Entity collections snapshot

		Returns:
			ValidationSnapshot for the collections
		"""
		snapshot, _ = self.validate_with_flow(collections)
		return snapshot

	def validate_with_flow(self, collections: EntityCollections) -> tuple[ValidationSnapshot, ConversationFlow]:
		"""
		Validate and also return the flow graph decorated with the results.

		Returns:
			(snapshot, conversation flow)
		"""
		if not isinstance(collections, EntityCollections):
			raise TypeError(f"Expected EntityCollections, got {type(collections).__name__}")

		counts = collections.counts()
		logger.debug(f"Validating configuration: {counts}")

		schema_results = validate_entities(collections, self.flags.max_ctas_per_response, flags=self.flags)
		relationship_results = validate_relationships(
			collections.programs,
			collections.forms,
			collections.ctas,
			collections.branches,
			action_chips=collections.action_chips,
			showcase_items=collections.showcase_items,
			flags=self.flags,
		)
		flow = build_conversation_flow(collections)
		quality_results = validate_quality(collections, self.flags) if self.flags.quality_warnings_enabled else None

		snapshot = aggregate(
			schema_results,
			relationship_results,
			flow.broken_references,
			orphan_ids=flow.orphan_ids,
			quality_results=quality_results,
		)
		return snapshot, apply_validation(flow, snapshot)


def validate_config(collections: EntityCollections, flags: FeatureFlags | None = None) -> ValidationSnapshot:
	"""
	Validate a configuration and return its snapshot.

	Args:
		collections: Entity collections snapshot
		flags: Feature flags; defaults to the global instance

	Returns:
		ValidationSnapshot; ``may_deploy`` is the deploy gate
	"""
	return ConfigValidator(flags).validate(collections)
