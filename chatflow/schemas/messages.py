"""
Validation message templates.

Every user-facing finding text is produced here so that the schema checks,
the relationship validator and the graph analyzer word the same problem the
same way. The aggregator relies on that to merge identical findings.
"""

import re

ID_PATTERN = r'^[A-Za-z0-9_-]+$'
FORM_FIELD_ID_PATTERN = r'^[a-z][a-z0-9_]*$'

ENTITY_LABELS: dict[str, str] = {
	'program': 'Program',
	'form': 'Form',
	'cta': 'CTA',
	'branch': 'Branch',
	'actionchip': 'Action Chip',
	'showcase': 'Showcase item',
}

# Wire field names whose human label is not derivable from the name
FIELD_LABELS: dict[str, str] = {
	'formId': 'Form ID',
	'url': 'URL',
	'cta_id': 'CTA ID',
	'program_id': 'Program ID',
	'program_name': 'Program name',
	'form_id': 'Form ID',
	'branch_id': 'Branch ID',
	'chip_id': 'Chip ID',
	'image_url': 'Image URL',
	'target_branch': 'Target branch',
	'target_showcase_id': 'Showcase item',
	'on_completion_branch': 'Completion branch',
	'trigger_phrases': 'Trigger phrase',
	'detection_keywords': 'Keyword',
	'confirmation_message': 'Confirmation message',
}

# Messages for a missing or empty value, keyed by (entity type, field path)
REQUIRED_MESSAGES: dict[tuple[str, str], str] = {
	('program', 'program_id'): 'Program ID is required',
	('program', 'program_name'): 'Program name is required',
	('form', 'form_id'): 'Form ID is required',
	('form', 'title'): 'Title is required',
	('form', 'description'): 'Description is required',
	('form', 'trigger_phrases'): 'At least one trigger phrase is required',
	('form', 'fields'): 'At least one field is required',
	('form', 'post_submission.confirmation_message'): 'Confirmation message is required',
	('cta', 'cta_id'): 'CTA ID is required',
	('cta', 'label'): 'Label is required',
	('cta', 'formId'): 'Form ID is required for start_form action',
	('cta', 'url'): 'URL is required for external_link action',
	('cta', 'query'): 'Query is required for send_query action',
	('cta', 'prompt'): 'Prompt is required for show_info action',
	('cta', 'target_branch'): 'Target branch is required for target_branch action',
	('cta', 'target_showcase_id'): 'Showcase item is required for show_showcase action',
	('branch', 'branch_id'): 'Branch ID is required',
	('branch', 'available_ctas'): 'Primary CTA is required',
	('branch', 'available_ctas.primary'): 'Primary CTA is required',
	('actionchip', 'chip_id'): 'Chip ID is required',
	('actionchip', 'label'): 'Label is required',
	('actionchip', 'value'): 'Query is required',
	('actionchip', 'target_showcase_id'): 'Showcase item is required for this action',
	('showcase', 'id'): 'Showcase item ID is required',
	('showcase', 'name'): 'Name is required',
	('showcase', 'tagline'): 'Tagline is required',
	('showcase', 'description'): 'Description is required',
	('showcase', 'type'): 'Type is required',
	('showcase', 'keywords'): 'At least one keyword is required',
	('showcase', 'action.label'): 'Action label is required',
	('showcase', 'action.type'): 'Action type is required',
	('showcase', 'action.prompt'): 'Prompt is required for prompt action',
	('showcase', 'action.url'): 'URL is required for URL action',
	('showcase', 'action.cta_id'): 'CTA is required for CTA action',
}

# Which CTA field each action owns
CTA_ACTION_FIELDS: dict[str, str] = {
	'start_form': 'formId',
	'external_link': 'url',
	'send_query': 'query',
	'show_info': 'prompt',
	'target_branch': 'target_branch',
	'show_showcase': 'target_showcase_id',
}

GENERIC_CTA_LABELS = frozenset({
	'click here',
	'click',
	'learn more',
	'submit',
	'go',
	'start',
	'begin',
	'next',
	'continue',
	'more info',
	'info',
})

VAGUE_PROMPT_PATTERNS = (
	re.compile(r'^more$', re.IGNORECASE),
	re.compile(r'^info$', re.IGNORECASE),
	re.compile(r'^tell me more$', re.IGNORECASE),
	re.compile(r'^learn more$', re.IGNORECASE),
	re.compile(r'^what is this\??$', re.IGNORECASE),
	re.compile(r'^help$', re.IGNORECASE),
)

QUESTION_WORDS = ('how', 'what', 'when', 'where', 'who', 'why', 'tell me', 'show me')


# =============================================================================
# Text helpers
# =============================================================================

def humanize_field(field_path: str) -> str:
	"""Turn a field path like ``post_submission.confirmation_message`` into a label."""
	leaf = field_path.split('.')[-1]
	leaf = re.sub(r'\[\d+\]$', '', leaf)
	if leaf in FIELD_LABELS:
		return FIELD_LABELS[leaf]
	spaced = re.sub(r'(?<=[a-z])(?=[A-Z])', ' ', leaf).replace('_', ' ').strip()
	return spaced[:1].upper() + spaced[1:].lower() if spaced else 'Value'


def text_words(value: str) -> list[str]:
	"""Lowercase words of a text with punctuation dropped."""
	return re.findall(r"[a-z0-9']+", value.lower())


def _reference_label(entity_type: str) -> str:
	"""Entity label as used mid-sentence; "CTA" keeps its capitals."""
	return ENTITY_LABELS[entity_type] if entity_type == 'cta' else ENTITY_LABELS[entity_type].lower()


# =============================================================================
# Message builders
# =============================================================================

def required_message(entity_type: str, field_path: str) -> str:
	"""Message for a missing or empty required value."""
	message = REQUIRED_MESSAGES.get((entity_type, field_path))
	if message:
		return message
	if entity_type == 'form' and field_path.startswith('fields['):
		return f"Field {humanize_field(field_path).lower()} is required"
	return f"{humanize_field(field_path)} is required"


def too_long_message(field_path: str, max_length: int) -> str:
	return f"{humanize_field(field_path)} must be {max_length} characters or less"


def id_format_message(entity_type: str) -> str:
	return f"{ENTITY_LABELS[entity_type]} ID can only contain letters, numbers, hyphens, and underscores"


def duplicate_id_message(entity_type: str) -> str:
	return f"A {ENTITY_LABELS[entity_type]} with this ID already exists"


def irrelevant_field_message(field_name: str, action: str) -> str:
	return f'{humanize_field(field_name)} is only used when action is "{action}"'


def missing_reference_message(entity_type: str, entity_id: str) -> str:
	"""Message for a reference whose target does not exist."""
	return f'Referenced {_reference_label(entity_type)} "{entity_id}" does not exist'


def secondary_cta_missing_message(index: int, cta_id: str) -> str:
	return f'Secondary CTA {index + 1} "{cta_id}" does not exist'


def orphan_message(entity_type: str, entity_id: str) -> str:
	return f'Orphaned {ENTITY_LABELS[entity_type]} "{entity_id}" is not referenced by any other entity'


def cta_limit_message(total: int, limit: int) -> str:
	return f"Total CTAs ({total}) exceeds max limit of {limit} set in Settings"


def select_reference_fix(source_type: str, source_id: str, target_type: str) -> str:
	"""Suggested fix for a required reference that was left empty."""
	return f'Edit {ENTITY_LABELS[source_type]} "{source_id}" and select a {_reference_label(target_type)}'


def create_reference_fix(target_type: str, target_id: str) -> str:
	"""Suggested fix for a reference to an entity that does not exist."""
	return f'Create {_reference_label(target_type)} "{target_id}" or select an existing one'
