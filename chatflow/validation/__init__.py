"""
Configuration Validation Module.

Entity schema checks, ID uniqueness, relationship validation, quality
warnings, aggregation into a deploy-gating snapshot and the pre-deployment
checklist.
"""

from chatflow.validation.aggregator import ValidationSnapshot, aggregate
from chatflow.validation.config_validator import ConfigValidator, validate_config
from chatflow.validation.deployment import (
	DeploymentChecklist,
	format_deployment_checklist,
	generate_deployment_checklist,
	is_deployment_ready,
)
from chatflow.validation.entity_schemas import ValidationContext, validate_entities, validate_entity
from chatflow.validation.issues import IssueCategory, Severity, ValidationIssue, ValidationResult
from chatflow.validation.quality import validate_quality
from chatflow.validation.relationships import RelationshipResult, validate_relationships
from chatflow.validation.uniqueness import check_unique_id, find_duplicate_ids

__all__ = [
	# Issues
	'IssueCategory',
	'Severity',
	'ValidationIssue',
	'ValidationResult',
	# Entity schemas
	'ValidationContext',
	'validate_entities',
	'validate_entity',
	# Uniqueness
	'check_unique_id',
	'find_duplicate_ids',
	# Relationships
	'RelationshipResult',
	'validate_relationships',
	# Quality
	'validate_quality',
	# Aggregation
	'ValidationSnapshot',
	'aggregate',
	'ConfigValidator',
	'validate_config',
	# Deployment
	'DeploymentChecklist',
	'format_deployment_checklist',
	'generate_deployment_checklist',
	'is_deployment_ready',
]
