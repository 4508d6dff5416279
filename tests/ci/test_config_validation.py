"""
Configuration Validation Test Suite

End-to-end tests for the validation pipeline and the aggregated snapshot
that gates deployment.
"""

import pytest
from pydantic import ValidationError

from chatflow.config.features import FeatureFlags
from chatflow.schemas.collections import EntityCollections, EntityType
from chatflow.validation import (
	ConfigValidator,
	IssueCategory,
	Severity,
	ValidationIssue,
	ValidationResult,
	aggregate,
	validate_config,
)


class TestDeployGate:
	"""Test the deploy decision on common configurations."""

	def test_valid_configuration(self, collections):
		snapshot = validate_config(collections)

		assert snapshot.may_deploy
		assert snapshot.total_errors == 0
		assert snapshot.total_warnings == 0
		assert snapshot.status_for('cta-apply_mentor') == 'success'

	def test_start_form_without_form_id(self, entity_data):
		"""Test a missing formId is reported once, however many stages see it."""
		del entity_data['ctas']['apply_mentor']['formId']

		snapshot = validate_config(EntityCollections(**entity_data))

		assert not snapshot.may_deploy
		assert snapshot.total_errors == 1
		errors = snapshot.errors_for('cta-apply_mentor')
		assert len(errors) == 1
		assert 'Form ID is required' in errors[0].message
		assert snapshot.status_for('cta-apply_mentor') == 'error'

	def test_external_link_empty_url(self, entity_data):
		entity_data['ctas']['mentor_faq']['url'] = ''

		snapshot = validate_config(EntityCollections(**entity_data))

		assert not snapshot.may_deploy
		assert snapshot.total_errors == 1
		error = snapshot.errors_for('cta-mentor_faq')[0]
		assert error.field == 'url'
		assert error.category is IssueCategory.FIELD

	def test_form_without_program_still_deploys(self, entity_data):
		"""Test an empty form program is a warning only."""
		entity_data['forms']['mentor_application']['program'] = ''

		snapshot = validate_config(EntityCollections(**entity_data))

		assert snapshot.may_deploy
		assert snapshot.total_errors == 0
		messages = [issue.message for issue in snapshot.warnings_for('form-mentor_application')]
		assert 'Program reference is required' in messages

	def test_unknown_primary_cta(self, entity_data):
		entity_data['branches']['mentoring_interest']['available_ctas']['primary'] = 'nonexistent_cta'

		snapshot, flow = ConfigValidator().validate_with_flow(EntityCollections(**entity_data))

		assert not snapshot.may_deploy
		errors = snapshot.errors_for('branch-mentoring_interest')
		assert [issue.message for issue in errors] == ['Referenced CTA "nonexistent_cta" does not exist']
		assert len(flow.broken_references) == 1
		assert not any(edge.target == 'cta-nonexistent_cta' for edge in flow.graph.edges)
		assert flow.graph.node('branch-mentoring_interest').validation_status == 'error'

	def test_duplicate_program_id(self, entity_data):
		entity_data['programs']['youth_mentoring_copy'] = dict(entity_data['programs']['youth_mentoring'])

		snapshot = validate_config(EntityCollections(**entity_data))

		assert not snapshot.may_deploy
		errors = snapshot.errors_for('program-youth_mentoring_copy')
		assert len(errors) == 1
		assert errors[0].message == 'A Program with this ID already exists'
		assert errors[0].category is IssueCategory.UNIQUENESS
		assert snapshot.errors_for('program-youth_mentoring') == []

	def test_orphans_do_not_block(self, entity_data):
		entity_data['ctas']['partner_site'] = {
			'cta_id': 'partner_site',
			'label': 'Partner site',
			'action': 'external_link',
			'url': 'https://partner.example.org',
		}

		snapshot = validate_config(EntityCollections(**entity_data))

		assert snapshot.may_deploy
		warnings = snapshot.warnings_for('cta-partner_site')
		assert [issue.message for issue in warnings] == [
			'Orphaned CTA "partner_site" is not referenced by any other entity',
		]

	def test_rejects_raw_dict(self, entity_data):
		with pytest.raises(TypeError):
			ConfigValidator().validate(entity_data)


class TestQualityFlag:

	def test_generic_label_warning(self, entity_data):
		entity_data['ctas']['apply_mentor']['label'] = 'Click Here'

		snapshot = validate_config(EntityCollections(**entity_data))

		assert snapshot.may_deploy
		warnings = snapshot.warnings_for('cta-apply_mentor')
		assert [issue.category for issue in warnings] == [IssueCategory.QUALITY]

	def test_quality_warnings_disabled(self, entity_data, monkeypatch):
		monkeypatch.setenv('FEATURE_QUALITY_WARNINGS', 'false')
		entity_data['ctas']['apply_mentor']['label'] = 'Click Here'

		snapshot = validate_config(EntityCollections(**entity_data), FeatureFlags())

		assert snapshot.total_warnings == 0

	def test_cta_limit_from_flags(self, entity_data, monkeypatch):
		monkeypatch.setenv('MAX_CTAS_PER_RESPONSE', '1')

		snapshot = validate_config(EntityCollections(**entity_data), FeatureFlags())

		errors = snapshot.errors_for('branch-mentoring_interest')
		assert [issue.message for issue in errors] == ['Total CTAs (2) exceeds max limit of 1 set in Settings']


class TestAggregate:
	"""Test merging of findings from the separate stages."""

	@staticmethod
	def _issue(message, severity=Severity.ERROR, field='formId'):
		return ValidationIssue(
			entity_type=EntityType.CTA,
			entity_id='apply_mentor',
			message=message,
			severity=severity,
			category=IssueCategory.REFERENCE,
			field=field,
		)

	def test_identical_findings_merge(self):
		"""Test a schema error and a relationship error with the same text count once."""
		relationships = ValidationResult(errors=[self._issue('Form ID is required for start_form action')])
		schema = {'cta-apply_mentor': {'formId': 'Form ID is required for start_form action'}}

		snapshot = aggregate(schema, relationships, [])

		assert snapshot.total_errors == 1
		assert snapshot.errors_for('cta-apply_mentor')[0].category is IssueCategory.FIELD

	def test_distinct_findings_kept(self):
		relationships = ValidationResult(
			errors=[self._issue('Referenced form "ghost_form" does not exist')],
			warnings=[self._issue('Button text is generic', Severity.WARNING, 'label')],
		)

		snapshot = aggregate({}, relationships, [])

		assert snapshot.total_errors == 1
		assert snapshot.total_warnings == 1
		assert not snapshot.may_deploy
		assert snapshot.summary()['entities_with_errors'] == 1

	def test_orphan_ids_become_warnings(self):
		snapshot = aggregate({}, ValidationResult(), [], orphan_ids={'form-mentor_application'})

		warning = snapshot.warnings_for('form-mentor_application')[0]
		assert warning.message == 'Orphaned Form "mentor_application" is not referenced by any other entity'
		assert warning.category is IssueCategory.ORPHAN
		assert snapshot.may_deploy

	def test_snapshot_is_immutable(self):
		snapshot = aggregate({}, ValidationResult(), [])
		with pytest.raises(ValidationError):
			snapshot.may_deploy = False

	def test_status_without_findings(self):
		assert aggregate({}, ValidationResult(), []).status_for('branch-anything') == 'success'
