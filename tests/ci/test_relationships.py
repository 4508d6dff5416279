"""
Relationship Validation Tests

Referential integrity, orphan warnings and circular-content warnings.
"""

import pytest

from chatflow.config.features import FeatureFlags
from chatflow.validation.issues import IssueCategory, Severity
from chatflow.validation.relationships import validate_relationships


def _validate(data, flags=None):
	return validate_relationships(
		data['programs'],
		data['forms'],
		data['ctas'],
		data['branches'],
		action_chips=data['action_chips'],
		showcase_items=data['showcase_items'],
		flags=flags,
	)


def _messages(issues):
	return [issue.message for issue in issues]


class TestValidConfiguration:

	def test_no_findings(self, entity_data):
		"""Test the reference configuration has no relationship findings."""
		result = _validate(entity_data)

		assert result.valid
		assert result.errors == []
		assert result.warnings == []

	def test_optional_collections(self, entity_data):
		"""Test chips and showcase items may be omitted."""
		result = validate_relationships(
			entity_data['programs'],
			entity_data['forms'],
			entity_data['ctas'],
			entity_data['branches'],
		)
		assert result.valid

	def test_missing_collection_raises(self, entity_data):
		with pytest.raises(TypeError):
			validate_relationships(None, entity_data['forms'], entity_data['ctas'], entity_data['branches'])

	def test_reference_by_record_id(self, entity_data):
		"""Test a reference resolves against the record's own ID when the key differs."""
		program = entity_data['programs'].pop('youth_mentoring')
		entity_data['programs']['program_1'] = program

		result = _validate(entity_data)

		assert result.errors == []
		assert result.warnings == []


class TestFormProgramReference:
	"""Form -> Program problems are warnings."""

	def test_empty_program(self, entity_data):
		entity_data['forms']['mentor_application']['program'] = ''

		result = _validate(entity_data)

		assert result.valid
		form_warnings = [issue for issue in result.warnings if issue.entity_id == 'mentor_application']
		assert len(form_warnings) == 1
		assert form_warnings[0].message == 'Program reference is required'
		assert form_warnings[0].field == 'program'
		assert form_warnings[0].severity is Severity.WARNING

	def test_unknown_program(self, entity_data):
		entity_data['forms']['mentor_application']['program'] = 'ghost_program'

		result = _validate(entity_data)

		assert result.valid
		assert 'Referenced program "ghost_program" does not exist' in _messages(result.warnings)
		assert 'Orphaned Program "youth_mentoring" is not referenced by any other entity' in _messages(result.warnings)


class TestReferenceErrors:

	def test_cta_unknown_form(self, entity_data):
		entity_data['ctas']['apply_mentor']['formId'] = 'ghost_form'

		result = _validate(entity_data)

		assert _messages(result.errors) == ['Referenced form "ghost_form" does not exist']
		issue = result.errors[0]
		assert issue.entity_key == 'cta-apply_mentor'
		assert issue.field == 'formId'
		assert issue.category is IssueCategory.REFERENCE
		assert issue.details['referenced_id'] == 'ghost_form'
		assert issue.suggested_fix == 'Create form "ghost_form" or select an existing one'

	def test_cta_missing_form(self, entity_data):
		del entity_data['ctas']['apply_mentor']['formId']

		result = _validate(entity_data)

		assert _messages(result.errors) == ['Form ID is required for start_form action']
		assert result.errors[0].suggested_fix == 'Edit CTA "apply_mentor" and select a form'

	def test_cta_unknown_branch(self, entity_data):
		entity_data['ctas']['donate_route'] = {
			'cta_id': 'donate_route',
			'label': 'Donate today',
			'action': 'target_branch',
			'target_branch': 'ghost_branch',
		}
		entity_data['branches']['mentoring_interest']['available_ctas']['secondary'].append('donate_route')

		result = _validate(entity_data)

		assert _messages(result.errors) == ['Referenced branch "ghost_branch" does not exist']

	def test_cta_target_branch_ignored_for_other_actions(self, entity_data):
		"""Test a stray target_branch on a start_form CTA is not a reference."""
		entity_data['ctas']['apply_mentor']['target_branch'] = 'ghost_branch'

		assert _validate(entity_data).valid

	def test_branch_unknown_primary(self, entity_data):
		entity_data['branches']['mentoring_interest']['available_ctas']['primary'] = 'nonexistent_cta'

		result = _validate(entity_data)

		assert _messages(result.errors) == ['Referenced CTA "nonexistent_cta" does not exist']
		assert result.errors[0].field == 'available_ctas.primary'

	def test_branch_unknown_secondary(self, entity_data):
		entity_data['branches']['mentoring_interest']['available_ctas']['secondary'] = ['mentor_faq', 'ghost_cta']

		result = _validate(entity_data)

		assert _messages(result.errors) == ['Secondary CTA 2 "ghost_cta" does not exist']
		assert result.errors[0].field == 'available_ctas.secondary[1]'

	def test_branch_missing_primary(self, entity_data):
		entity_data['branches']['mentoring_interest']['available_ctas'] = {'secondary': ['mentor_faq']}

		result = _validate(entity_data)

		assert _messages(result.errors) == ['Primary CTA is required']
		assert result.errors[0].suggested_fix == 'Edit Branch "mentoring_interest" and select a CTA'

	def test_chip_unknown_branch(self, entity_data):
		entity_data['action_chips']['explore_mentoring']['target_branch'] = 'ghost_branch'

		result = _validate(entity_data)

		assert _messages(result.errors) == ['Referenced branch "ghost_branch" does not exist']
		assert result.errors[0].entity_key == 'actionchip-explore_mentoring'

	def test_chip_unknown_showcase_item(self, entity_data):
		entity_data['action_chips']['spring_events'] = {
			'chip_id': 'spring_events',
			'label': 'Spring events',
			'action': 'show_showcase',
			'target_showcase_id': 'ghost_item',
		}

		result = _validate(entity_data)

		assert _messages(result.errors) == ['Referenced showcase item "ghost_item" does not exist']

	def test_showcase_unknown_cta(self, entity_data):
		entity_data['showcase_items'][0]['action']['cta_id'] = 'ghost_cta'

		result = _validate(entity_data)

		assert _messages(result.errors) == ['Referenced CTA "ghost_cta" does not exist']
		assert result.errors[0].entity_key == 'showcase-spring_drive'
		assert result.errors[0].field == 'action.cta_id'


class TestOrphanWarnings:

	def test_unreferenced_cta(self, entity_data):
		entity_data['ctas']['partner_site'] = {
			'cta_id': 'partner_site',
			'label': 'Partner site',
			'action': 'external_link',
			'url': 'https://partner.example.org',
		}

		result = _validate(entity_data)

		assert result.valid
		assert len(result.warnings) == 1
		warning = result.warnings[0]
		assert warning.message == 'Orphaned CTA "partner_site" is not referenced by any other entity'
		assert warning.category is IssueCategory.ORPHAN
		assert warning.field is None

	def test_unreferenced_program(self, entity_data):
		entity_data['programs']['food_bank'] = {'program_id': 'food_bank', 'program_name': 'Food Bank'}

		result = _validate(entity_data)

		assert _messages(result.warnings) == ['Orphaned Program "food_bank" is not referenced by any other entity']


class TestCircularContent:

	def test_confirmation_repeats_trigger(self, entity_data):
		form = entity_data['forms']['mentor_application']
		form['post_submission']['confirmation_message'] = 'Thanks! Want to become a mentor again? Just ask.'

		result = _validate(entity_data)

		assert result.valid
		assert len(result.warnings) == 1
		warning = result.warnings[0]
		assert warning.category is IssueCategory.CIRCULAR
		assert warning.field == 'post_submission.confirmation_message'
		assert 'become a mentor' in warning.message

	def test_check_can_be_disabled(self, entity_data, monkeypatch):
		monkeypatch.setenv('FEATURE_CIRCULAR_CONTENT_CHECK', 'false')
		form = entity_data['forms']['mentor_application']
		form['post_submission']['confirmation_message'] = 'Thanks! Want to become a mentor again? Just ask.'

		result = _validate(entity_data, flags=FeatureFlags())

		assert result.warnings == []

	def test_confirmation_repeats_trigger_fragment(self, entity_data):
		"""Test a run of consecutive trigger words is enough to warn."""
		form = entity_data['forms']['mentor_application']
		form['trigger_phrases'] = ['I want to volunteer as a mentor']
		form['post_submission']['confirmation_message'] = 'Thanks! Reply "volunteer as a mentor" to apply again.'

		result = _validate(entity_data)

		assert len(result.warnings) == 1
		warning = result.warnings[0]
		assert warning.category is IssueCategory.CIRCULAR
		assert warning.message == (
			'Confirmation message repeats "volunteer as a mentor" from trigger phrase '
			'"I want to volunteer as a mentor", which may restart the form'
		)

	def test_fragment_below_min_length(self, entity_data, monkeypatch):
		"""Test fragments shorter than the configured minimum are ignored."""
		form = entity_data['forms']['mentor_application']
		form['post_submission']['confirmation_message'] = 'Thanks! We will pair you with a mentor soon.'

		assert len(_validate(entity_data).warnings) == 1

		monkeypatch.setenv('CIRCULAR_FRAGMENT_MIN_LENGTH', '10')
		result = _validate(entity_data, flags=FeatureFlags())

		assert result.warnings == []

	def test_single_shared_word_is_not_circular(self, entity_data):
		form = entity_data['forms']['mentor_application']
		form['post_submission']['confirmation_message'] = 'Thanks! Every mentor gets a welcome pack.'

		assert _validate(entity_data).warnings == []


class TestOmittedShowcaseCollection:

	def _add_showcase_cta(self, data):
		data['ctas']['see_drive'] = {
			'cta_id': 'see_drive',
			'label': 'See the spring drive',
			'action': 'show_showcase',
			'target_showcase_id': 'spring_drive',
		}
		data['branches']['mentoring_interest']['available_ctas']['secondary'].append('see_drive')

	def test_showcase_references_skipped(self, entity_data):
		"""Test showcase targets are not reported when showcase items are omitted."""
		self._add_showcase_cta(entity_data)

		result = validate_relationships(
			entity_data['programs'],
			entity_data['forms'],
			entity_data['ctas'],
			entity_data['branches'],
			action_chips=entity_data['action_chips'],
		)

		assert result.valid
		assert result.errors == []

	def test_empty_showcase_collection_still_checked(self, entity_data):
		"""Test an explicitly empty showcase list still resolves references."""
		self._add_showcase_cta(entity_data)

		result = validate_relationships(
			entity_data['programs'],
			entity_data['forms'],
			entity_data['ctas'],
			entity_data['branches'],
			action_chips=entity_data['action_chips'],
			showcase_items=[],
		)

		assert _messages(result.errors) == ['Referenced showcase item "spring_drive" does not exist']
