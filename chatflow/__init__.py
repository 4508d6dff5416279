"""
Chatflow - Configuration Validation Engine

Validates a tenant's conversational-app configuration (programs, forms, CTAs,
branches, action chips and showcase items), builds its conversation flow
graph and decides whether it may be deployed.
"""

from chatflow.graph.graphs import ConversationFlow, build_conversation_flow
from chatflow.schemas.collections import EntityCollections, EntityType, collections_from_tenant_config
from chatflow.validation.aggregator import ValidationSnapshot
from chatflow.validation.config_validator import ConfigValidator, validate_config
from chatflow.validation.deployment import DeploymentChecklist, generate_deployment_checklist

__all__ = [
	'ConfigValidator',
	'ConversationFlow',
	'DeploymentChecklist',
	'EntityCollections',
	'EntityType',
	'ValidationSnapshot',
	'build_conversation_flow',
	'collections_from_tenant_config',
	'generate_deployment_checklist',
	'validate_config',
]
