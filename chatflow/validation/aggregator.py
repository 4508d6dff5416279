"""
Validation aggregation and deploy gate.

Merges schema, relationship, graph and quality findings into one immutable
``ValidationSnapshot`` indexed by entity key. A new snapshot replaces the old
one wholesale; snapshots are never updated in place.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from chatflow.graph.nodes import BrokenReference
from chatflow.schemas.collections import parse_entity_key
from chatflow.schemas.messages import orphan_message
from chatflow.validation.issues import IssueCategory, Severity, ValidationIssue, ValidationResult

logger = logging.getLogger(__name__)

ValidationStatus = Literal['error', 'warning', 'success']


class ValidationSnapshot(BaseModel):
	"""All findings for one configuration, indexed by entity key."""
	model_config = ConfigDict(frozen=True)

	errors_by_entity: dict[str, list[ValidationIssue]] = Field(default_factory=dict)
	warnings_by_entity: dict[str, list[ValidationIssue]] = Field(default_factory=dict)
	total_errors: int = 0
	total_warnings: int = 0
	may_deploy: bool = True

	def errors_for(self, key: str) -> list[ValidationIssue]:
		return list(self.errors_by_entity.get(key, []))

	def warnings_for(self, key: str) -> list[ValidationIssue]:
		return list(self.warnings_by_entity.get(key, []))

	def status_for(self, key: str) -> ValidationStatus:
		"""Colour of an entity in the dashboard."""
		if self.errors_by_entity.get(key):
			return 'error'
		if self.warnings_by_entity.get(key):
			return 'warning'
		return 'success'

	def all_errors(self) -> list[ValidationIssue]:
		return [issue for issues in self.errors_by_entity.values() for issue in issues]

	def all_warnings(self) -> list[ValidationIssue]:
		return [issue for issues in self.warnings_by_entity.values() for issue in issues]

	def summary(self) -> dict[str, Any]:
		return {
			'total_errors': self.total_errors,
			'total_warnings': self.total_warnings,
			'entities_with_errors': len(self.errors_by_entity),
			'entities_with_warnings': len(self.warnings_by_entity),
			'may_deploy': self.may_deploy,
		}


# =============================================================================
# Conversion to Issues
# =============================================================================

def _schema_issues(schema_results: Mapping[str, Mapping[str, str]]) -> list[ValidationIssue]:
	issues: list[ValidationIssue] = []
	for key, field_errors in schema_results.items():
		entity_type, entity_id = parse_entity_key(key)
		for field_path, message in field_errors.items():
			issues.append(ValidationIssue(
				entity_type=entity_type,
				entity_id=entity_id,
				message=message,
				severity=Severity.ERROR,
				category=IssueCategory.UNIQUENESS if 'already exists' in message else IssueCategory.FIELD,
				field=field_path,
			))
	return issues


def _broken_reference_issues(broken_refs: Iterable[BrokenReference]) -> list[ValidationIssue]:
	issues: list[ValidationIssue] = []
	for ref in broken_refs:
		entity_type, entity_id = parse_entity_key(ref.node_id)
		issues.append(ValidationIssue(
			entity_type=entity_type,
			entity_id=entity_id,
			message=ref.issue,
			severity=Severity(ref.severity),
			category=IssueCategory.BROKEN_REFERENCE,
			field=ref.field,
			details={'referenced_id': ref.referenced_id, 'reference_type': ref.reference_type},
		))
	return issues


def _orphan_issues(orphan_ids: Iterable[str]) -> list[ValidationIssue]:
	issues: list[ValidationIssue] = []
	for node_id in sorted(orphan_ids):
		entity_type, entity_id = parse_entity_key(node_id)
		issues.append(ValidationIssue(
			entity_type=entity_type,
			entity_id=entity_id,
			message=orphan_message(entity_type.value, entity_id),
			severity=Severity.WARNING,
			category=IssueCategory.ORPHAN,
		))
	return issues


# =============================================================================
# Aggregation
# =============================================================================

def aggregate(
	schema_results: Mapping[str, Mapping[str, str]],
	relationship_results: ValidationResult,
	broken_ref_results: Iterable[BrokenReference],
	orphan_ids: Iterable[str] | None = None,
	quality_results: ValidationResult | None = None,
) -> ValidationSnapshot:
	"""
	Merge all findings into a single snapshot.

	Identical findings (same entity, field, message and severity) reported by
	more than one stage are kept once.

	Args:
		schema_results: ``{entity_key: {field: message}}`` from schema validation
		relationship_results: Relationship validator result
		broken_ref_results: Broken references from the graph analyzer
		orphan_ids: Orphaned node IDs from the graph analyzer (optional)
		quality_results: Quality warnings (optional)

	Returns:
		ValidationSnapshot with ``may_deploy == (total_errors == 0)``
	"""
	candidates: list[ValidationIssue] = []
	candidates.extend(_schema_issues(schema_results))
	candidates.extend(relationship_results.issues)
	candidates.extend(_broken_reference_issues(broken_ref_results))
	candidates.extend(_orphan_issues(orphan_ids or ()))
	if quality_results is not None:
		candidates.extend(quality_results.issues)

	errors_by_entity: dict[str, list[ValidationIssue]] = {}
	warnings_by_entity: dict[str, list[ValidationIssue]] = {}
	seen: set[tuple[str, str | None, str, str]] = set()
	for issue in candidates:
		if issue.merge_key in seen:
			continue
		seen.add(issue.merge_key)
		target = errors_by_entity if issue.is_error else warnings_by_entity
		target.setdefault(issue.entity_key, []).append(issue)

	total_errors = sum(len(issues) for issues in errors_by_entity.values())
	total_warnings = sum(len(issues) for issues in warnings_by_entity.values())
	snapshot = ValidationSnapshot(
		errors_by_entity=errors_by_entity,
		warnings_by_entity=warnings_by_entity,
		total_errors=total_errors,
		total_warnings=total_warnings,
		may_deploy=total_errors == 0,
	)

	if snapshot.may_deploy:
		logger.info(f"✅ Validation complete: 0 errors, {total_warnings} warning(s)")
	else:
		logger.info(f"❌ Validation complete: {total_errors} error(s), {total_warnings} warning(s)")
	return snapshot
