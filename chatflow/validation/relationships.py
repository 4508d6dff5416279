"""
Relationship validation.

Checks referential integrity across the entity collections:
- Missing required references (CTA start_form without a form, branch without a primary CTA)
- References to entities that do not exist
- Orphaned programs and CTAs that nothing references
- Forms whose confirmation message repeats words from their own trigger phrases

Form -> Program problems are warnings; every other reference problem is an error.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from chatflow.config.features import FeatureFlags, get_feature_flags
from chatflow.schemas.collections import EntityType, normalize_record, record_id
from chatflow.schemas.lookups import find_branch, find_cta, find_form, find_program, find_showcase_item
from chatflow.schemas.messages import (
	create_reference_fix,
	missing_reference_message,
	orphan_message,
	required_message,
	secondary_cta_missing_message,
	select_reference_fix,
	text_words,
)
from chatflow.schemas.references import Reference, declared_references
from chatflow.validation.issues import IssueCategory, Severity, ValidationResult

logger = logging.getLogger(__name__)

RelationshipResult = ValidationResult


def _require_mapping(name: str, value: Any) -> Mapping[str, Any]:
	if value is None or not isinstance(value, Mapping):
		raise TypeError(f"{name} must be a mapping of id -> record, got {type(value).__name__}")
	return value


class _Resolver:
	"""Resolves reference targets through the lookup functions."""

	def __init__(
		self,
		programs: Mapping[str, Any],
		forms: Mapping[str, Any],
		ctas: Mapping[str, Any],
		branches: Mapping[str, Any],
		showcase_items: list[Mapping[str, Any]] | None,
	):
		self.programs = programs
		self.forms = forms
		self.ctas = ctas
		self.branches = branches
		self.showcase_items = showcase_items

	def exists(self, ref: Reference) -> bool:
		if ref.target_type is EntityType.PROGRAM:
			return find_program(self.programs, ref.target_id) is not None
		if ref.target_type is EntityType.FORM:
			return find_form(self.forms, ref.target_id) is not None
		if ref.target_type is EntityType.CTA:
			return find_cta(self.ctas, ref.target_id) is not None
		if ref.target_type is EntityType.BRANCH:
			return find_branch(self.branches, ref.target_id) is not None
		if ref.target_type is EntityType.SHOWCASE:
			# Showcase targets are unchecked when no showcase collection was supplied
			if self.showcase_items is None:
				return True
			return find_showcase_item(self.showcase_items, ref.target_id) is not None
		return False


def _missing_message(ref: Reference) -> str:
	if ref.source_type is EntityType.FORM and ref.reference_type == 'program':
		return 'Program reference is required'
	return required_message(ref.source_type.value, ref.field)


def _unresolved_message(ref: Reference) -> str:
	if ref.role == 'secondary' and ref.index is not None:
		return secondary_cta_missing_message(ref.index, ref.target_id or '')
	return missing_reference_message(ref.target_type.value, ref.target_id or '')


def _check_reference(result: ValidationResult, ref: Reference, resolver: _Resolver) -> None:
	severity = Severity(ref.severity)
	if ref.is_missing:
		if ref.required:
			result.add_issue(
				ref.source_type,
				ref.source_id,
				_missing_message(ref),
				severity=severity,
				category=IssueCategory.REFERENCE,
				field=ref.field,
				suggested_fix=select_reference_fix(ref.source_type.value, ref.source_id, ref.target_type.value),
			)
		return
	if not resolver.exists(ref):
		result.add_issue(
			ref.source_type,
			ref.source_id,
			_unresolved_message(ref),
			severity=severity,
			category=IssueCategory.REFERENCE,
			field=ref.field,
			suggested_fix=create_reference_fix(ref.target_type.value, ref.target_id or ''),
			details={'referenced_id': ref.target_id, 'reference_type': ref.reference_type},
		)


def _check_orphans(
	result: ValidationResult,
	programs: Mapping[str, Any],
	ctas: Mapping[str, Any],
	references: Iterable[Reference],
) -> None:
	"""Warn once per program or CTA that no other entity references."""
	referenced: dict[EntityType, set[str]] = {EntityType.PROGRAM: set(), EntityType.CTA: set()}
	for ref in references:
		if ref.target_id and ref.target_type in referenced:
			referenced[ref.target_type].add(ref.target_id)

	for entity_type, collection in ((EntityType.PROGRAM, programs), (EntityType.CTA, ctas)):
		used = referenced[entity_type]
		for key, record in collection.items():
			own_id = record_id(entity_type, key, record)
			if key in used or own_id in used:
				continue
			result.add_issue(
				entity_type,
				key,
				orphan_message(entity_type.value, key),
				severity=Severity.WARNING,
				category=IssueCategory.ORPHAN,
			)


def _repeated_fragment(phrase: str, haystack: str, min_length: int) -> str | None:
	"""
	Longest run of consecutive phrase words found in the haystack.

	Runs are at least two words long (one for single-word phrases) and at
	least ``min_length`` characters. The haystack is the space-padded word
	sequence of the confirmation message, so matches align on word edges.
	"""
	words = text_words(phrase)
	shortest = min(2, len(words))
	for size in range(len(words), shortest - 1, -1):
		for start in range(len(words) - size + 1):
			fragment = ' '.join(words[start:start + size])
			if len(fragment) >= min_length and f' {fragment} ' in haystack:
				return fragment
	return None


def _check_circular_content(
	result: ValidationResult,
	forms: Mapping[str, Any],
	min_length: int,
) -> None:
	"""Warn when a form's confirmation message repeats part of one of its trigger phrases."""
	for form_key, record in forms.items():
		data = normalize_record(EntityType.FORM, record, form_key)
		post_submission = data.get('post_submission')
		if not isinstance(post_submission, Mapping):
			continue
		confirmation = post_submission.get('confirmation_message')
		if not isinstance(confirmation, str) or not confirmation.strip():
			continue
		haystack = f" {' '.join(text_words(confirmation))} "
		for phrase in data.get('trigger_phrases') or []:
			if not isinstance(phrase, str):
				continue
			fragment = _repeated_fragment(phrase, haystack, min_length)
			if fragment is None:
				continue
			result.add_issue(
				EntityType.FORM,
				form_key,
				f'Confirmation message repeats "{fragment}" from trigger phrase "{phrase.strip()}", which may restart the form',
				severity=Severity.WARNING,
				category=IssueCategory.CIRCULAR,
				field='post_submission.confirmation_message',
				suggested_fix='Reword the confirmation message so it does not contain a trigger phrase',
			)
			break


def validate_relationships(
	programs: Mapping[str, Any],
	forms: Mapping[str, Any],
	ctas: Mapping[str, Any],
	branches: Mapping[str, Any],
	action_chips: Mapping[str, Any] | None = None,
	showcase_items: list[Mapping[str, Any]] | None = None,
	flags: FeatureFlags | None = None,
) -> RelationshipResult:
	"""
	Validate referential integrity across all entity collections.

	Args:
		programs: Programs by ID
		forms: Conversational forms by ID
		ctas: CTA definitions by ID
		branches: Conversation branches by ID
		action_chips: Action chips by ID (optional)
		showcase_items: Showcase items (optional); when omitted, references
			to showcase items are not checked
		flags: Feature flags; defaults to the global instance

	Returns:
		ValidationResult with reference errors and hygiene warnings

	Raises:
		TypeError: If a required collection is None or not a mapping
	"""
	programs = _require_mapping('programs', programs)
	forms = _require_mapping('forms', forms)
	ctas = _require_mapping('ctas', ctas)
	branches = _require_mapping('branches', branches)
	action_chips = _require_mapping('action_chips', action_chips) if action_chips is not None else {}
	showcase_items = list(showcase_items) if showcase_items is not None else None
	flags = flags or get_feature_flags()

	resolver = _Resolver(programs, forms, ctas, branches, showcase_items)
	result = ValidationResult()
	references: list[Reference] = []

	sources: list[tuple[EntityType, Iterable[tuple[str, Any]]]] = [
		(EntityType.FORM, forms.items()),
		(EntityType.CTA, ctas.items()),
		(EntityType.BRANCH, branches.items()),
		(EntityType.ACTION_CHIP, action_chips.items()),
		(EntityType.SHOWCASE, ((str(item.get('id') or index), item) for index, item in enumerate(showcase_items or []))),
	]
	for entity_type, records in sources:
		for entity_id, record in records:
			for ref in declared_references(entity_type, entity_id, record):
				references.append(ref)
				_check_reference(result, ref, resolver)

	_check_orphans(result, programs, ctas, references)

	if flags.circular_content_check_enabled:
		_check_circular_content(result, forms, flags.circular_fragment_min_length)

	if result.errors:
		logger.info(
			f"❌ Relationship validation: {len(result.errors)} error(s), {len(result.warnings)} warning(s)"
		)
	else:
		logger.debug(f"✅ Relationship validation passed with {len(result.warnings)} warning(s)")
	return result
