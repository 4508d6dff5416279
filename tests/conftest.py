"""
Pytest configuration and shared fixtures for all tests.
"""

import copy

import pytest

from chatflow.config.features import reload_feature_flags
from chatflow.schemas.collections import EntityCollections

FLAG_ENV_VARS = (
	'FEATURE_HTTPS_ONLY_LINKS',
	'FEATURE_QUALITY_WARNINGS',
	'FEATURE_CIRCULAR_CONTENT_CHECK',
	'MAX_CTAS_PER_RESPONSE',
	'RUNTIME_CTA_DISPLAY_LIMIT',
	'CIRCULAR_FRAGMENT_MIN_LENGTH',
)


@pytest.fixture(autouse=True)
def default_feature_flags(monkeypatch):
	"""Run every test against default feature flags, whatever the shell exports."""
	for env_var in FLAG_ENV_VARS:
		monkeypatch.delenv(env_var, raising=False)
	yield reload_feature_flags()
	reload_feature_flags()


# =============================================================================
# Configuration Fixtures
# =============================================================================

_PROGRAMS = {
	'youth_mentoring': {
		'program_id': 'youth_mentoring',
		'program_name': 'Youth Mentoring',
		'description': 'One-to-one mentoring for young people aged 12 to 18',
	},
}

_FORMS = {
	'mentor_application': {
		'form_id': 'mentor_application',
		'program': 'youth_mentoring',
		'title': 'Mentor Application',
		'description': 'Apply to become a volunteer mentor',
		'trigger_phrases': ['become a mentor'],
		'fields': [
			{
				'id': 'full_name',
				'type': 'text',
				'label': 'Full name',
				'prompt': 'What is your full name?',
				'required': True,
			},
			{
				'id': 'email',
				'type': 'email',
				'label': 'Email',
				'prompt': 'What email address should we use?',
				'required': True,
			},
		],
		'post_submission': {
			'confirmation_message': 'Thanks! Our volunteer team will reach out within a week.',
		},
	},
}

_CTAS = {
	'apply_mentor': {
		'cta_id': 'apply_mentor',
		'label': 'Apply to Mentor',
		'action': 'start_form',
		'formId': 'mentor_application',
	},
	'mentor_faq': {
		'cta_id': 'mentor_faq',
		'label': 'Mentoring FAQ',
		'action': 'external_link',
		'url': 'https://example.org/mentoring/faq',
	},
}

_BRANCHES = {
	'mentoring_interest': {
		'branch_id': 'mentoring_interest',
		'detection_keywords': ['mentoring', 'volunteer'],
		'available_ctas': {
			'primary': 'apply_mentor',
			'secondary': ['mentor_faq'],
		},
	},
}

_ACTION_CHIPS = {
	'explore_mentoring': {
		'chip_id': 'explore_mentoring',
		'label': 'Explore mentoring',
		'action': 'send_query',
		'value': 'Tell me about mentoring',
		'target_branch': 'mentoring_interest',
	},
}

_SHOWCASE_ITEMS = [
	{
		'id': 'spring_drive',
		'type': 'campaign',
		'name': 'Spring Mentor Drive',
		'tagline': 'Make a difference this spring',
		'description': 'We are recruiting twenty new mentors before June.',
		'keywords': ['spring', 'mentors'],
		'action': {'type': 'cta', 'label': 'Apply now', 'cta_id': 'apply_mentor'},
	},
]


@pytest.fixture
def entity_data():
	"""
	A fully valid configuration as plain collections.

	Each test gets its own deep copy, so tests may mutate it freely before
	building ``EntityCollections`` from it.
	"""
	return copy.deepcopy({
		'programs': _PROGRAMS,
		'forms': _FORMS,
		'ctas': _CTAS,
		'branches': _BRANCHES,
		'action_chips': _ACTION_CHIPS,
		'showcase_items': _SHOWCASE_ITEMS,
	})


@pytest.fixture
def collections(entity_data):
	"""EntityCollections snapshot of the valid configuration."""
	return EntityCollections(**entity_data)


@pytest.fixture
def tenant_config():
	"""The valid configuration in tenant-config document layout."""
	return copy.deepcopy({
		'tenant_id': 'tenant_test',
		'programs': _PROGRAMS,
		'conversational_forms': _FORMS,
		'cta_definitions': _CTAS,
		'conversation_branches': _BRANCHES,
		'action_chips': {'enabled': True, 'default_chips': _ACTION_CHIPS},
		'content_showcase': _SHOWCASE_ITEMS,
	})
