"""
Declared references.

Single source of truth for which field of which entity points at which other
entity. The relationship validator, the graph builder and the broken-reference
detector all walk the references produced here, so they agree on what a
reference is.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from chatflow.schemas.collections import EntityType, coerce_entity_type, normalize_record


@dataclass(frozen=True)
class Reference:
	"""A reference declared by one entity to another."""
	source_type: EntityType
	source_id: str
	field: str  # wire path, e.g. 'formId', 'available_ctas.secondary[1]'
	reference_type: str  # 'formId', 'available_ctas', 'target_branch', 'on_completion_branch', 'program', ...
	target_type: EntityType
	target_id: str | None  # None when a required reference is absent
	required: bool = False
	role: str = ''  # 'primary' / 'secondary' for branch CTAs
	index: int | None = None

	@property
	def is_missing(self) -> bool:
		return not self.target_id

	@property
	def severity(self) -> str:
		"""Form -> Program problems are warnings; every other reference problem is an error."""
		if self.source_type is EntityType.FORM and self.reference_type == 'program':
			return 'warning'
		return 'error'


def _text(value: Any) -> str | None:
	if isinstance(value, str) and value.strip():
		return value.strip()
	return None


def declared_references(
	entity_type: 'EntityType | str',
	entity_id: str,
	record: Mapping[str, Any],
) -> list[Reference]:
	"""
	List the references an entity declares.

	Optional references are only listed when set. Required references are
	always listed, with ``target_id=None`` when absent. A Form's program is
	listed even when absent: it is optional but recommended.

	Args:
		entity_type: Type of the declaring entity
		entity_id: ID of the declaring entity
		record: Raw record

	Returns:
		References in field order
	"""
	entity_type = coerce_entity_type(entity_type)
	data = normalize_record(entity_type, record, entity_id)
	refs: list[Reference] = []

	def add(field: str, reference_type: str, target_type: EntityType, target: Any, **kwargs: Any) -> None:
		refs.append(Reference(
			source_type=entity_type,
			source_id=entity_id,
			field=field,
			reference_type=reference_type,
			target_type=target_type,
			target_id=_text(target),
			**kwargs,
		))

	if entity_type is EntityType.FORM:
		add('program', 'program', EntityType.PROGRAM, data.get('program'), required=True)
		if _text(data.get('on_completion_branch')):
			add('on_completion_branch', 'on_completion_branch', EntityType.BRANCH, data['on_completion_branch'])

	elif entity_type is EntityType.CTA:
		action = data.get('action')
		if action == 'start_form':
			add('formId', 'formId', EntityType.FORM, data.get('formId'), required=True)
		elif action == 'target_branch':
			add('target_branch', 'target_branch', EntityType.BRANCH, data.get('target_branch'), required=True)
		elif action == 'show_showcase':
			add('target_showcase_id', 'target_showcase_id', EntityType.SHOWCASE, data.get('target_showcase_id'), required=True)

	elif entity_type is EntityType.BRANCH:
		available = data.get('available_ctas')
		available = available if isinstance(available, Mapping) else {}
		add('available_ctas.primary', 'available_ctas', EntityType.CTA, available.get('primary'), required=True, role='primary')
		secondary = available.get('secondary') or []
		if isinstance(secondary, list):
			for index, cta_id in enumerate(item for item in secondary if _text(item)):
				add(
					f'available_ctas.secondary[{index}]',
					'available_ctas',
					EntityType.CTA,
					cta_id,
					role='secondary',
					index=index,
				)

	elif entity_type is EntityType.ACTION_CHIP:
		if _text(data.get('target_branch')):
			add('target_branch', 'target_branch', EntityType.BRANCH, data['target_branch'])
		if data.get('action') == 'show_showcase':
			add('target_showcase_id', 'target_showcase_id', EntityType.SHOWCASE, data.get('target_showcase_id'), required=True)

	elif entity_type is EntityType.SHOWCASE:
		action = data.get('action')
		if isinstance(action, Mapping) and action.get('type') == 'cta':
			add('action.cta_id', 'cta_id', EntityType.CTA, action.get('cta_id'), required=True)

	return refs
