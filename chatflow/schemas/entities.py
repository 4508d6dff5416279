"""
Configuration Entity Models.

Pydantic models for the six entity types of a tenant's conversational
configuration:
- Program: organisational program or service
- ConversationalForm: data-collection form started from a CTA
- CTADefinition: call-to-action button, a tagged union on ``action``
- ConversationBranch: keyword-routed branch offering CTAs
- ActionChip: welcome-screen chip, a tagged union on ``action``
- ShowcaseItem: content showcase card with an optional tagged ``action``

Cross-field rules that only need the entity itself are expressed as field
validators so that pydantic reports them against the right field. Rules that
need other entities live in the relationship validator.
"""

import logging
from typing import Annotated, Any, Literal, Union

from pydantic import (
	AnyUrl,
	BaseModel,
	ConfigDict,
	Field,
	StringConstraints,
	TypeAdapter,
	ValidationError,
	ValidationInfo,
	field_validator,
)
from pydantic_core import PydanticCustomError

from chatflow.schemas.messages import (
	FORM_FIELD_ID_PATTERN,
	ID_PATTERN,
	cta_limit_message,
	missing_reference_message,
)

logger = logging.getLogger(__name__)

EntityId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, pattern=ID_PATTERN)]
Phrase = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Keyword = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]

_URL_ADAPTER = TypeAdapter(AnyUrl)


def _context_value(info: ValidationInfo, key: str, default: Any = None) -> Any:
	"""Read a value from the validation context passed by the caller."""
	if not info.context:
		return default
	return info.context.get(key, default)


def check_url(value: str, https_only: bool = False) -> str:
	"""
	Validate an absolute URL with any scheme (https, mailto, tel, ...).

	Args:
		value: URL text
		https_only: Reject any scheme other than https

	Returns:
		The URL unchanged

	Raises:
		PydanticCustomError: If the URL is malformed or not https when required
	"""
	try:
		parsed = _URL_ADAPTER.validate_python(value)
	except ValidationError:
		raise PydanticCustomError('invalid_url', 'Must be a valid URL') from None
	if https_only and parsed.scheme != 'https':
		raise PydanticCustomError('insecure_url', 'URL must use https:// protocol')
	return value


class EntityModel(BaseModel):
	"""Base for all configuration entities."""
	model_config = ConfigDict(str_strip_whitespace=True, extra='ignore', populate_by_name=True)


# =============================================================================
# Program
# =============================================================================

class Program(EntityModel):
	"""Organisational program referenced by forms."""
	program_id: EntityId = Field(..., description="Program identifier")
	program_name: str = Field(..., min_length=1, max_length=100, description="Display name")
	description: str | None = Field(None, max_length=500, description="Program description")


# =============================================================================
# Conversational Form
# =============================================================================

FormFieldType = Literal['text', 'email', 'phone', 'select', 'textarea', 'number', 'date']


class FieldOption(EntityModel):
	"""Choice offered by a select field."""
	value: str = Field(..., min_length=1)
	label: str = Field(..., min_length=1)


class FormField(EntityModel):
	"""Single question asked by a conversational form."""
	id: str = Field(..., min_length=1, pattern=FORM_FIELD_ID_PATTERN, description="Field identifier")
	type: FormFieldType = Field(..., description="Input type")
	label: str = Field(..., min_length=1, max_length=100)
	prompt: str = Field(..., min_length=1, max_length=500, description="Question asked in chat")
	hint: str | None = None
	required: bool = False
	options: list[FieldOption] | None = Field(None, validate_default=True)
	eligibility_gate: bool = Field(False, validate_default=True)
	failure_message: str | None = Field(None, max_length=500, validate_default=True)

	@field_validator('options')
	@classmethod
	def options_match_type(cls, value: list[FieldOption] | None, info: ValidationInfo) -> list[FieldOption] | None:
		field_type = info.data.get('type')
		if field_type == 'select' and not value:
			raise PydanticCustomError('select_options', 'Select fields must have at least one option')
		if field_type and field_type != 'select' and value:
			raise PydanticCustomError('unexpected_options', 'Only select fields can have options')
		return value

	@field_validator('eligibility_gate')
	@classmethod
	def gate_requires_select(cls, value: bool, info: ValidationInfo) -> bool:
		field_type = info.data.get('type')
		if value and field_type and field_type != 'select':
			raise PydanticCustomError(
				'gate_not_select',
				'Eligibility gates are only available for select (dropdown) fields',
			)
		return value

	@field_validator('failure_message')
	@classmethod
	def gate_requires_failure_message(cls, value: str | None, info: ValidationInfo) -> str | None:
		if info.data.get('eligibility_gate') and not value:
			raise PydanticCustomError('gate_message', 'Eligibility gate fields must have a failure message')
		return value


class PostSubmission(EntityModel):
	"""What the assistant says once a form is submitted."""
	confirmation_message: str = Field(..., min_length=1, max_length=1000)
	next_steps: list[str] = Field(default_factory=list)


class ConversationalForm(EntityModel):
	"""Conversational data-collection form."""
	form_id: EntityId = Field(..., description="Form identifier")
	enabled: bool = True
	program: str | None = Field(None, description="Owning program ID")
	title: str = Field(..., min_length=1, max_length=100)
	description: str = Field(..., min_length=1, max_length=500)
	cta_text: str | None = None
	trigger_phrases: list[Phrase] = Field(default_factory=list, description="Phrases that start the form")
	fields: list[FormField] = Field(..., min_length=1)
	post_submission: PostSubmission | None = None
	on_completion_branch: str | None = Field(None, description="Branch shown after submission")

	@field_validator('fields')
	@classmethod
	def field_ids_unique(cls, value: list[FormField]) -> list[FormField]:
		seen: set[str] = set()
		for form_field in value:
			if form_field.id in seen:
				raise PydanticCustomError(
					'duplicate_field_id',
					'Duplicate field ID: {field_id}',
					{'field_id': form_field.id},
				)
			seen.add(form_field.id)
		return value


# =============================================================================
# CTA Definition
# =============================================================================

class CTABase(EntityModel):
	"""Fields shared by every CTA variant."""
	cta_id: EntityId = Field(..., description="CTA identifier")
	label: str = Field(..., min_length=1, max_length=100, description="Button text")
	type: str | None = Field(None, description="Legacy CTA type")
	style: str | None = None


class StartFormCTA(CTABase):
	action: Literal['start_form']
	form_id: str = Field(..., alias='formId', min_length=1, description="Form to start")


class ExternalLinkCTA(CTABase):
	action: Literal['external_link']
	url: str = Field(..., min_length=1, description="Link target")

	@field_validator('url')
	@classmethod
	def url_is_valid(cls, value: str, info: ValidationInfo) -> str:
		return check_url(value, https_only=_context_value(info, 'https_only_links', False))


class SendQueryCTA(CTABase):
	action: Literal['send_query']
	query: str = Field(..., min_length=1, max_length=500, description="Query sent to the assistant")


class ShowInfoCTA(CTABase):
	action: Literal['show_info']
	prompt: str = Field(..., min_length=1, max_length=1000, description="Prompt answered inline")


class TargetBranchCTA(CTABase):
	action: Literal['target_branch']
	target_branch: str = Field(..., min_length=1, description="Branch to route to")


class ShowShowcaseCTA(CTABase):
	action: Literal['show_showcase']
	target_showcase_id: str = Field(..., min_length=1, description="Showcase item to display")


CTADefinition = Annotated[
	Union[StartFormCTA, ExternalLinkCTA, SendQueryCTA, ShowInfoCTA, TargetBranchCTA, ShowShowcaseCTA],
	Field(discriminator='action'),
]


# =============================================================================
# Conversation Branch
# =============================================================================

class AvailableCTAs(EntityModel):
	"""CTAs a branch offers; primary first."""
	primary: str = Field(..., min_length=1, description="Primary CTA ID")
	secondary: list[str] = Field(default_factory=list, description="Secondary CTA IDs")

	@field_validator('secondary', mode='before')
	@classmethod
	def drop_empty_entries(cls, value: Any) -> Any:
		if value is None:
			return []
		if isinstance(value, list):
			return [item for item in value if item is not None and not (isinstance(item, str) and not item.strip())]
		return value

	@field_validator('secondary')
	@classmethod
	def secondary_distinct(cls, value: list[str], info: ValidationInfo) -> list[str]:
		primary = info.data.get('primary')
		if primary and primary in value:
			raise PydanticCustomError('primary_in_secondary', 'Primary CTA cannot also be a secondary CTA')
		if len(set(value)) != len(value):
			raise PydanticCustomError('duplicate_secondary', 'Secondary CTAs must be unique')
		return value

	@property
	def all_ids(self) -> list[str]:
		return [self.primary, *self.secondary]


class ConversationBranch(EntityModel):
	"""Keyword-routed conversation branch."""
	branch_id: EntityId = Field(..., description="Branch identifier")
	detection_keywords: list[Keyword] = Field(default_factory=list, max_length=20)
	available_ctas: AvailableCTAs

	@field_validator('detection_keywords')
	@classmethod
	def keywords_distinct(cls, value: list[str]) -> list[str]:
		lowered = [keyword.lower() for keyword in value]
		if len(set(lowered)) != len(lowered):
			raise PydanticCustomError('duplicate_keywords', 'Duplicate keywords are not allowed')
		return value

	@field_validator('available_ctas')
	@classmethod
	def within_cta_limit(cls, value: AvailableCTAs, info: ValidationInfo) -> AvailableCTAs:
		limit = _context_value(info, 'max_ctas_per_response')
		total = len(value.all_ids)
		if limit is not None and total > limit:
			raise PydanticCustomError('cta_limit', cta_limit_message(total, limit))
		return value


# =============================================================================
# Action Chip
# =============================================================================

class ChipBase(EntityModel):
	"""Fields shared by every action chip variant."""
	chip_id: EntityId = Field(..., description="Chip identifier")
	label: str = Field(..., min_length=1, max_length=50, description="Chip text")
	target_branch: str | None = Field(None, description="Branch the chip routes to")


class SendQueryChip(ChipBase):
	action: Literal['send_query']
	value: str = Field(..., min_length=1, max_length=200, description="Query sent when clicked")


class ExplicitRoutingChip(ChipBase):
	action: Literal['explicit_routing']
	value: str = Field(..., min_length=1, max_length=200)


class ShowShowcaseChip(ChipBase):
	action: Literal['show_showcase']
	value: str | None = Field(None, max_length=200)
	target_showcase_id: str = Field(..., min_length=1, description="Showcase item to display")


ActionChip = Annotated[
	Union[SendQueryChip, ExplicitRoutingChip, ShowShowcaseChip],
	Field(discriminator='action'),
]


# =============================================================================
# Showcase Item
# =============================================================================

class ShowcaseActionBase(EntityModel):
	label: str = Field(..., min_length=1, max_length=100)


class PromptShowcaseAction(ShowcaseActionBase):
	type: Literal['prompt']
	prompt: str = Field(..., min_length=1)


class UrlShowcaseAction(ShowcaseActionBase):
	type: Literal['url']
	url: str = Field(..., min_length=1)
	open_in_new_tab: bool = False

	@field_validator('url')
	@classmethod
	def url_is_valid(cls, value: str) -> str:
		return check_url(value)


class CtaShowcaseAction(ShowcaseActionBase):
	type: Literal['cta']
	cta_id: str = Field(..., min_length=1)

	@field_validator('cta_id')
	@classmethod
	def cta_exists(cls, value: str, info: ValidationInfo) -> str:
		available = _context_value(info, 'available_cta_ids')
		if available is not None and value not in available:
			raise PydanticCustomError('unknown_cta', missing_reference_message('cta', value))
		return value


ShowcaseAction = Annotated[
	Union[PromptShowcaseAction, UrlShowcaseAction, CtaShowcaseAction],
	Field(discriminator='type'),
]


class ShowcaseItem(EntityModel):
	"""Content showcase card."""
	id: EntityId = Field(..., description="Showcase item identifier")
	type: Literal['program', 'event', 'initiative', 'campaign']
	enabled: bool = True
	name: str = Field(..., min_length=1)
	tagline: str = Field(..., min_length=1)
	description: str = Field(..., min_length=1)
	image_url: str | None = None
	stats: str | None = None
	testimonial: str | None = None
	highlights: list[str] = Field(default_factory=list)
	keywords: list[Keyword] = Field(..., min_length=1)
	action: ShowcaseAction | None = None

	@field_validator('image_url')
	@classmethod
	def image_url_is_valid(cls, value: str | None) -> str | None:
		if not value:
			return None
		return check_url(value)
