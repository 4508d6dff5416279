"""
Feature Flags Configuration

Centralized feature flag and limit management for config validation.
"""

import logging
import os
from typing import Any

logger = logging.getLogger(__name__)


class FeatureFlags:
	"""
	Feature flag manager for optional validation behaviour.

	Flags and limits are read from environment variables:
	- FEATURE_HTTPS_ONLY_LINKS=true
	- FEATURE_QUALITY_WARNINGS=false
	- MAX_CTAS_PER_RESPONSE=10
	- etc.
	"""

	def __init__(self):
		"""Initialize feature flags from environment variables."""
		# Link policy
		self.https_only_links = self._get_flag('FEATURE_HTTPS_ONLY_LINKS', default=False)

		# Optional checks
		self.quality_warnings_enabled = self._get_flag('FEATURE_QUALITY_WARNINGS', default=True)
		self.circular_content_check_enabled = self._get_flag('FEATURE_CIRCULAR_CONTENT_CHECK', default=True)

		# Limits
		self.max_ctas_per_response = self._get_int('MAX_CTAS_PER_RESPONSE', default=10)
		self.runtime_cta_display_limit = self._get_int('RUNTIME_CTA_DISPLAY_LIMIT', default=3)
		self.circular_fragment_min_length = self._get_int('CIRCULAR_FRAGMENT_MIN_LENGTH', default=4)

		self._log_enabled_features()

	def _get_flag(self, env_var: str, default: bool = False) -> bool:
		"""
		Get feature flag from environment variable.

		Args:
			env_var: Environment variable name
			default: Default value if not set

		Returns:
			True if enabled, False otherwise
		"""
		value = os.getenv(env_var, str(default)).lower()
		return value in ('true', '1', 'yes', 'on', 'enabled')

	def _get_int(self, env_var: str, default: int) -> int:
		"""
		Get a positive integer limit from environment variable.

		Args:
			env_var: Environment variable name
			default: Default value if not set or unparseable

		Returns:
			Parsed limit
		"""
		raw = os.getenv(env_var)
		if raw is None or not raw.strip():
			return default
		try:
			value = int(raw.strip())
		except ValueError:
			logger.warning(f"⚠️  Ignoring non-integer {env_var}={raw!r}, using {default}")
			return default
		if value < 1:
			logger.warning(f"⚠️  Ignoring non-positive {env_var}={value}, using {default}")
			return default
		return value

	def _log_enabled_features(self):
		"""Log enabled features for debugging."""
		enabled_features = []

		if self.https_only_links:
			enabled_features.append('HttpsOnlyLinks')
		if self.quality_warnings_enabled:
			enabled_features.append('QualityWarnings')
		if self.circular_content_check_enabled:
			enabled_features.append('CircularContentCheck')

		if enabled_features:
			logger.debug(f"✅ Enabled features: {', '.join(enabled_features)}")
		else:
			logger.debug("ℹ️  No optional validation features enabled")

	def to_dict(self) -> dict[str, Any]:
		"""Export feature flags as dictionary."""
		return {
			'https_only_links': self.https_only_links,
			'quality_warnings': self.quality_warnings_enabled,
			'circular_content_check': self.circular_content_check_enabled,
			'max_ctas_per_response': self.max_ctas_per_response,
			'runtime_cta_display_limit': self.runtime_cta_display_limit,
			'circular_fragment_min_length': self.circular_fragment_min_length,
		}


# Global feature flags instance
_feature_flags: FeatureFlags | None = None


def get_feature_flags() -> FeatureFlags:
	"""
	Get global feature flags instance.

	Returns:
		FeatureFlags instance
	"""
	global _feature_flags
	if _feature_flags is None:
		_feature_flags = FeatureFlags()
	return _feature_flags


def reload_feature_flags() -> FeatureFlags:
	"""Reload feature flags from environment (useful for testing)."""
	global _feature_flags
	_feature_flags = FeatureFlags()
	return _feature_flags
