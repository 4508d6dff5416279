"""
Content quality checks.

Warnings only: nothing here blocks deployment. Covers wording that tends to
hurt engagement and configuration that works but behaves poorly at runtime.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any

from chatflow.config.features import FeatureFlags, get_feature_flags
from chatflow.schemas.collections import EntityCollections, EntityType, normalize_record
from chatflow.schemas.lookups import find_form
from chatflow.schemas.messages import GENERIC_CTA_LABELS, QUESTION_WORDS, VAGUE_PROMPT_PATTERNS
from chatflow.validation.issues import IssueCategory, Severity, ValidationResult

logger = logging.getLogger(__name__)

MIN_SHARED_KEYWORDS = 2
MAX_FORM_FIELDS = 10

_QUESTION_PATTERNS = {word: re.compile(rf'\b{re.escape(word)}\b') for word in QUESTION_WORDS}


def is_generic_label(label: str) -> bool:
	"""Exact (case-insensitive) match against the generic label list."""
	return label.strip().lower() in GENERIC_CTA_LABELS


def is_vague_prompt(prompt: str) -> bool:
	return any(pattern.match(prompt.strip()) for pattern in VAGUE_PROMPT_PATTERNS)


def question_words(keywords: list[str]) -> list[str]:
	"""Question words used in any keyword, in first-seen order."""
	found: list[str] = []
	for keyword in keywords:
		lower = keyword.lower()
		for word, pattern in _QUESTION_PATTERNS.items():
			if word not in found and pattern.search(lower):
				found.append(word)
	return found


def keyword_overlap(first: list[str], second: list[str]) -> list[str]:
	"""Keywords shared by two branches, compared case-insensitively."""
	other = {keyword.lower() for keyword in second}
	seen: list[str] = []
	for keyword in first:
		lower = keyword.lower()
		if lower in other and lower not in seen:
			seen.append(lower)
	return seen


def _strings(value: Any) -> list[str]:
	if not isinstance(value, list):
		return []
	return [item for item in value if isinstance(item, str) and item.strip()]


# =============================================================================
# Per-Entity Checks
# =============================================================================

def _check_cta(result: ValidationResult, cta_id: str, data: Mapping[str, Any], forms: Mapping[str, Any]) -> None:
	label = data.get('label')
	if isinstance(label, str) and label.strip() and is_generic_label(label):
		result.add_issue(
			EntityType.CTA, cta_id,
			'Button text is generic. Consider using more specific, actionable text',
			severity=Severity.WARNING, category=IssueCategory.QUALITY, field='label',
			suggested_fix='Generic labels like "Click Here", "Learn More", or "Submit" reduce user engagement',
		)

	action = data.get('action')
	prompt = data.get('prompt')
	if action == 'show_info' and isinstance(prompt, str) and prompt.strip() and is_vague_prompt(prompt):
		result.add_issue(
			EntityType.CTA, cta_id,
			'Info CTA prompts should be specific questions or requests, not vague or generic phrases',
			severity=Severity.WARNING, category=IssueCategory.QUALITY, field='prompt',
			suggested_fix='Use a specific prompt such as "What are the eligibility requirements for this program?"',
		)

	if action == 'start_form':
		form = find_form(forms, data.get('formId'))
		if form is not None and not str(form.get('program') or '').strip():
			result.add_issue(
				EntityType.CTA, cta_id,
				f'Form "{data["formId"]}" referenced by this CTA doesn\'t have a program assigned',
				severity=Severity.WARNING, category=IssueCategory.QUALITY, field='formId',
				suggested_fix=f'Edit form "{data["formId"]}" and assign a program',
			)


def _check_branch(result: ValidationResult, branch_id: str, data: Mapping[str, Any], display_limit: int) -> None:
	keywords = _strings(data.get('detection_keywords'))
	if not keywords:
		result.add_issue(
			EntityType.BRANCH, branch_id,
			'Branch must have at least one detection keyword',
			severity=Severity.WARNING, category=IssueCategory.QUALITY, field='detection_keywords',
		)
	else:
		found = question_words(keywords)
		if found:
			result.add_issue(
				EntityType.BRANCH, branch_id,
				'Keywords contain question words. Detection keywords should match anticipated responses, not user queries',
				severity=Severity.WARNING, category=IssueCategory.QUALITY, field='detection_keywords',
				suggested_fix=f"Found question words: {', '.join(found)}",
			)

	available = data.get('available_ctas')
	if isinstance(available, Mapping):
		total = (1 if str(available.get('primary') or '').strip() else 0) + len(_strings(available.get('secondary')))
		if total > display_limit:
			result.add_issue(
				EntityType.BRANCH, branch_id,
				f'Branch has too many CTAs ({total} total). Runtime limits to {display_limit} buttons - only first {display_limit} will be shown',
				severity=Severity.WARNING, category=IssueCategory.QUALITY, field='available_ctas.secondary',
				suggested_fix=f'Remove secondary CTAs to keep total at {display_limit} or fewer',
			)


def _check_form(result: ValidationResult, form_id: str, data: Mapping[str, Any]) -> None:
	if not _strings(data.get('trigger_phrases')):
		result.add_issue(
			EntityType.FORM, form_id,
			'Form has no trigger phrases - users can only access it via CTA',
			severity=Severity.WARNING, category=IssueCategory.QUALITY, field='trigger_phrases',
		)

	fields = data.get('fields')
	if not isinstance(fields, list) or not fields:
		return
	if not any(isinstance(field, Mapping) and field.get('required') for field in fields):
		result.add_issue(
			EntityType.FORM, form_id,
			'Form should have at least one required field',
			severity=Severity.WARNING, category=IssueCategory.QUALITY, field='fields',
			suggested_fix='Mark at least one field as required to ensure meaningful data collection',
		)
	if len(fields) > MAX_FORM_FIELDS:
		result.add_issue(
			EntityType.FORM, form_id,
			f'Form has too many fields ({len(fields)} total). Long forms (>{MAX_FORM_FIELDS} fields) may reduce completion rates',
			severity=Severity.WARNING, category=IssueCategory.QUALITY, field='fields',
		)


def _check_keyword_overlap(result: ValidationResult, branches: list[tuple[str, list[str]]]) -> None:
	"""Warn on the later branch of each pair sharing several keywords."""
	for index, (branch_id, keywords) in enumerate(branches):
		for other_id, other_keywords in branches[:index]:
			overlap = keyword_overlap(keywords, other_keywords)
			if len(overlap) >= MIN_SHARED_KEYWORDS:
				shown = ', '.join(overlap[:3]) + ('...' if len(overlap) > 3 else '')
				result.add_issue(
					EntityType.BRANCH, branch_id,
					f'Keywords overlap significantly with branch "{other_id}": {shown}',
					severity=Severity.WARNING, category=IssueCategory.QUALITY, field='detection_keywords',
				)


def validate_quality(collections: EntityCollections, flags: FeatureFlags | None = None) -> ValidationResult:
	"""
	Run all content quality checks.

	Args:
		collections: Entity collections snapshot
		flags: Feature flags; defaults to the global instance

	Returns:
		ValidationResult holding warnings only
	"""
	flags = flags or get_feature_flags()
	result = ValidationResult()

	for cta_id, record in collections.records(EntityType.CTA):
		_check_cta(result, cta_id, normalize_record(EntityType.CTA, record, cta_id), collections.forms)

	branch_keywords: list[tuple[str, list[str]]] = []
	for branch_id, record in collections.records(EntityType.BRANCH):
		data = normalize_record(EntityType.BRANCH, record, branch_id)
		_check_branch(result, branch_id, data, flags.runtime_cta_display_limit)
		branch_keywords.append((branch_id, _strings(data.get('detection_keywords'))))
	_check_keyword_overlap(result, branch_keywords)

	for form_id, record in collections.records(EntityType.FORM):
		_check_form(result, form_id, normalize_record(EntityType.FORM, record, form_id))

	logger.debug(f"Quality checks produced {len(result.warnings)} warning(s)")
	return result
