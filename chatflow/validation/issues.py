"""
Validation issue records.

Findings are accumulated into a ``ValidationResult`` and never raised.
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any

from chatflow.schemas.collections import EntityType, coerce_entity_type, entity_key


class Severity(str, Enum):
	ERROR = 'error'
	WARNING = 'warning'
	INFO = 'info'


class IssueCategory(str, Enum):
	"""Where a finding came from."""
	FIELD = 'field'
	UNIQUENESS = 'uniqueness'
	REFERENCE = 'reference'
	ORPHAN = 'orphan'
	BROKEN_REFERENCE = 'broken_reference'
	QUALITY = 'quality'
	CIRCULAR = 'circular'


@dataclass(frozen=True)
class ValidationIssue:
	"""A validation finding attached to one entity."""
	entity_type: EntityType
	entity_id: str
	message: str
	severity: Severity
	category: IssueCategory
	field: str | None = None
	suggested_fix: str | None = None
	details: dict[str, Any] = dataclasses.field(default_factory=dict, compare=False, hash=False)

	@property
	def entity_key(self) -> str:
		return entity_key(self.entity_type, self.entity_id)

	@property
	def is_error(self) -> bool:
		return self.severity is Severity.ERROR

	@property
	def merge_key(self) -> tuple[str, str | None, str, str]:
		"""Issues with the same merge key describe the same problem."""
		return (self.entity_key, self.field, self.message, self.severity.value)

	def to_dict(self) -> dict[str, Any]:
		result: dict[str, Any] = {
			'entity_type': self.entity_type.value,
			'entity_id': self.entity_id,
			'message': self.message,
			'severity': self.severity.value,
			'category': self.category.value,
		}
		if self.field:
			result['field'] = self.field
		if self.suggested_fix:
			result['suggested_fix'] = self.suggested_fix
		return result


@dataclass
class ValidationResult:
	"""Accumulated findings of one validation stage."""
	errors: list[ValidationIssue] = dataclasses.field(default_factory=list)
	warnings: list[ValidationIssue] = dataclasses.field(default_factory=list)

	@property
	def valid(self) -> bool:
		return not self.errors

	@property
	def issues(self) -> list[ValidationIssue]:
		return [*self.errors, *self.warnings]

	def add_issue(
		self,
		entity_type: 'EntityType | str',
		entity_id: str,
		message: str,
		severity: 'Severity | str' = Severity.ERROR,
		category: 'IssueCategory | str' = IssueCategory.FIELD,
		field: str | None = None,
		suggested_fix: str | None = None,
		details: dict[str, Any] | None = None,
	) -> ValidationIssue:
		"""Add a validation issue; errors and warnings are kept apart."""
		issue = ValidationIssue(
			entity_type=coerce_entity_type(entity_type),
			entity_id=entity_id,
			message=message,
			severity=Severity(severity),
			category=IssueCategory(category),
			field=field,
			suggested_fix=suggested_fix,
			details=details or {},
		)
		if issue.is_error:
			self.errors.append(issue)
		else:
			self.warnings.append(issue)
		return issue

	def extend(self, other: 'ValidationResult') -> None:
		self.errors.extend(other.errors)
		self.warnings.extend(other.warnings)
