"""
Pre-deployment checklist.

Turns a validation snapshot into the checklist shown before publishing a
configuration: the deploy decision, the blocking errors, the non-blocking
warnings, entity counts and human-readable summary lines.
"""

import logging

from pydantic import BaseModel, Field

from chatflow.config.features import FeatureFlags
from chatflow.schemas.collections import EntityCollections, EntityType, normalize_record
from chatflow.validation.aggregator import ValidationSnapshot
from chatflow.validation.config_validator import validate_config
from chatflow.validation.issues import ValidationIssue

logger = logging.getLogger(__name__)

MAX_LISTED_WARNINGS = 5


class DeploymentSummary(BaseModel):
	"""Entity counts reported by the checklist."""
	total_programs: int = 0
	total_forms: int = 0
	total_ctas: int = 0
	total_branches: int = 0
	total_action_chips: int = 0
	total_showcase_items: int = 0
	forms_with_programs: int = 0
	forms_without_programs: int = 0
	ctas_with_errors: int = 0
	branches_with_errors: int = 0


class DeploymentChecklist(BaseModel):
	"""Everything needed to decide whether a configuration may be published."""
	can_deploy: bool = Field(..., description="True when no error-severity finding exists")
	critical_issues: list[ValidationIssue] = Field(default_factory=list, description="Blocking errors")
	warnings: list[ValidationIssue] = Field(default_factory=list, description="Non-blocking findings")
	summary: DeploymentSummary = Field(default_factory=DeploymentSummary)
	messages: list[str] = Field(default_factory=list)


def _plural(count: int, singular: str, plural: str | None = None) -> str:
	return f"{count} {singular if count == 1 else (plural or singular + 's')}"


def _build_summary(collections: EntityCollections, snapshot: ValidationSnapshot) -> DeploymentSummary:
	counts = collections.counts()
	forms_with_programs = sum(
		1
		for form_id, record in collections.records(EntityType.FORM)
		if str(normalize_record(EntityType.FORM, record, form_id).get('program') or '').strip()
	)
	entities_with_errors = {
		entity_type: {issue.entity_id for issue in snapshot.all_errors() if issue.entity_type is entity_type}
		for entity_type in (EntityType.CTA, EntityType.BRANCH)
	}
	return DeploymentSummary(
		total_programs=counts[EntityType.PROGRAM.value],
		total_forms=counts[EntityType.FORM.value],
		total_ctas=counts[EntityType.CTA.value],
		total_branches=counts[EntityType.BRANCH.value],
		total_action_chips=counts[EntityType.ACTION_CHIP.value],
		total_showcase_items=counts[EntityType.SHOWCASE.value],
		forms_with_programs=forms_with_programs,
		forms_without_programs=counts[EntityType.FORM.value] - forms_with_programs,
		ctas_with_errors=len(entities_with_errors[EntityType.CTA]),
		branches_with_errors=len(entities_with_errors[EntityType.BRANCH]),
	)


def _build_messages(can_deploy: bool, summary: DeploymentSummary, total_errors: int, total_warnings: int) -> list[str]:
	messages: list[str] = []
	if can_deploy:
		messages.append('✅ Configuration is ready for deployment')
	else:
		messages.append('❌ Configuration has critical issues that must be resolved')
	messages.append('')

	messages.append('Configuration Summary:')
	messages.append(f"  • {_plural(summary.total_programs, 'Program')} defined")
	messages.append(
		f"  • {_plural(summary.total_forms, 'Form')} created ({summary.forms_with_programs} with program assignments)"
	)
	messages.append(f"  • {_plural(summary.total_ctas, 'CTA')} defined")
	messages.append(f"  • {_plural(summary.total_branches, 'Branch', 'Branches')} configured")
	messages.append('')

	if total_errors:
		messages.append(f"❌ {_plural(total_errors, 'Critical Error')}")
	if total_warnings:
		messages.append(f"⚠️  {_plural(total_warnings, 'Warning')} (non-blocking)")
	if not total_errors and not total_warnings:
		messages.append('✅ No errors or warnings found')
	messages.append('')

	if not can_deploy:
		messages.append('Please resolve critical errors before deployment.')
	elif total_warnings:
		messages.append('You can deploy with warnings, but we recommend reviewing them first.')
	else:
		messages.append('Configuration is valid and ready for deployment.')
	return messages


def generate_deployment_checklist(
	collections: EntityCollections,
	snapshot: ValidationSnapshot | None = None,
	flags: FeatureFlags | None = None,
) -> DeploymentChecklist:
	"""
	Build the pre-deployment checklist.

	Args:
		collections: Entity collections snapshot
		snapshot: Existing validation snapshot; validated afresh when omitted
		flags: Feature flags used when validating afresh

	Returns:
		DeploymentChecklist whose ``can_deploy`` equals the snapshot's ``may_deploy``
	"""
	if snapshot is None:
		snapshot = validate_config(collections, flags)
	critical = snapshot.all_errors()
	warnings = snapshot.all_warnings()
	summary = _build_summary(collections, snapshot)

	checklist = DeploymentChecklist(
		can_deploy=snapshot.may_deploy,
		critical_issues=critical,
		warnings=warnings,
		summary=summary,
		messages=_build_messages(snapshot.may_deploy, summary, len(critical), len(warnings)),
	)
	if not checklist.can_deploy:
		logger.warning(f"❌ Deployment blocked by {len(critical)} critical issue(s)")
	return checklist


def is_deployment_ready(collections: EntityCollections, flags: FeatureFlags | None = None) -> bool:
	"""Quick deploy-gate check."""
	return generate_deployment_checklist(collections, flags=flags).can_deploy


def format_deployment_checklist(checklist: DeploymentChecklist) -> str:
	"""
	Render a checklist as text.

	All critical errors are listed with their suggested fix; warnings are
	capped at the first five.
	"""
	lines = list(checklist.messages)

	if checklist.critical_issues:
		lines.append('')
		lines.append('Critical Errors:')
		for index, issue in enumerate(checklist.critical_issues, start=1):
			lines.append(f"  {index}. {issue.message}")
			if issue.suggested_fix:
				lines.append(f"     Fix: {issue.suggested_fix}")

	if checklist.warnings:
		lines.append('')
		lines.append('Warnings:')
		for index, issue in enumerate(checklist.warnings[:MAX_LISTED_WARNINGS], start=1):
			lines.append(f"  {index}. {issue.message}")
		remaining = len(checklist.warnings) - MAX_LISTED_WARNINGS
		if remaining > 0:
			lines.append(f"  ... and {remaining} more warning(s)")

	return '\n'.join(lines)
