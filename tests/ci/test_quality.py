"""
Tests for content quality warnings.
"""

from chatflow.config.features import FeatureFlags
from chatflow.schemas.collections import EntityCollections
from chatflow.validation.issues import IssueCategory
from chatflow.validation.quality import (
	is_generic_label,
	is_vague_prompt,
	keyword_overlap,
	question_words,
	validate_quality,
)


def _fields(issues):
	return [(issue.entity_key, issue.field) for issue in issues]


# =============================================================================
# Helpers
# =============================================================================

def test_generic_labels():
	assert is_generic_label('Click Here')
	assert is_generic_label('  learn more ')
	assert not is_generic_label('Apply to Mentor')


def test_vague_prompts():
	assert is_vague_prompt('Tell me more')
	assert is_vague_prompt('what is this?')
	assert not is_vague_prompt('What are the eligibility requirements?')


def test_question_words_match_whole_words():
	"""Test question words inside other words are ignored."""
	assert question_words(['how to apply', 'showcase']) == ['how']
	assert question_words(['Tell me about volunteering']) == ['tell me']
	assert question_words(['somewhere', 'whatever']) == []


def test_keyword_overlap_is_case_insensitive():
	assert keyword_overlap(['Donate', 'gift', 'money'], ['donate', 'GIFT']) == ['donate', 'gift']


# =============================================================================
# Configuration Checks
# =============================================================================

def test_reference_configuration_is_clean(collections):
	assert validate_quality(collections).warnings == []


def test_results_are_warnings_only(entity_data):
	entity_data['ctas']['apply_mentor']['label'] = 'Submit'
	entity_data['branches']['mentoring_interest']['detection_keywords'] = []

	result = validate_quality(EntityCollections(**entity_data))

	assert result.errors == []
	assert all(issue.category is IssueCategory.QUALITY for issue in result.warnings)
	assert _fields(result.warnings) == [
		('cta-apply_mentor', 'label'),
		('branch-mentoring_interest', 'detection_keywords'),
	]


def test_vague_info_prompt(entity_data):
	entity_data['ctas']['mentor_faq'] = {
		'cta_id': 'mentor_faq',
		'label': 'Mentoring details',
		'action': 'show_info',
		'prompt': 'more',
	}

	result = validate_quality(EntityCollections(**entity_data))

	assert _fields(result.warnings) == [('cta-mentor_faq', 'prompt')]


def test_start_form_without_program(entity_data):
	del entity_data['forms']['mentor_application']['program']

	result = validate_quality(EntityCollections(**entity_data))

	assert _fields(result.warnings) == [('cta-apply_mentor', 'formId')]
	assert 'mentor_application' in result.warnings[0].message


def test_question_word_keywords(entity_data):
	entity_data['branches']['mentoring_interest']['detection_keywords'] = ['how do I volunteer', 'mentoring']

	result = validate_quality(EntityCollections(**entity_data))

	assert len(result.warnings) == 1
	assert result.warnings[0].suggested_fix == 'Found question words: how'


def test_too_many_ctas_for_runtime(entity_data):
	entity_data['branches']['mentoring_interest']['available_ctas']['secondary'] = ['mentor_faq', 'a', 'b']

	result = validate_quality(EntityCollections(**entity_data))

	assert _fields(result.warnings) == [('branch-mentoring_interest', 'available_ctas.secondary')]
	assert 'only first 3 will be shown' in result.warnings[0].message


def test_runtime_limit_from_flags(entity_data, monkeypatch):
	monkeypatch.setenv('RUNTIME_CTA_DISPLAY_LIMIT', '1')

	result = validate_quality(EntityCollections(**entity_data), FeatureFlags())

	assert _fields(result.warnings) == [('branch-mentoring_interest', 'available_ctas.secondary')]


def test_keyword_overlap_between_branches(entity_data):
	entity_data['branches']['volunteering'] = {
		'branch_id': 'volunteering',
		'detection_keywords': ['Volunteer', 'mentoring', 'help out'],
		'available_ctas': {'primary': 'mentor_faq'},
	}

	result = validate_quality(EntityCollections(**entity_data))

	assert _fields(result.warnings) == [('branch-volunteering', 'detection_keywords')]
	assert result.warnings[0].message == (
		'Keywords overlap significantly with branch "mentoring_interest": volunteer, mentoring'
	)


def test_form_checks(entity_data):
	form = entity_data['forms']['mentor_application']
	form['trigger_phrases'] = []
	form['fields'] = [
		{'id': f'answer_{index}', 'type': 'text', 'label': 'Answer', 'prompt': 'Your answer?'}
		for index in range(11)
	]

	result = validate_quality(EntityCollections(**entity_data))

	messages = [issue.message for issue in result.warnings]
	assert messages == [
		'Form has no trigger phrases - users can only access it via CTA',
		'Form should have at least one required field',
		'Form has too many fields (11 total). Long forms (>10 fields) may reduce completion rates',
	]
