"""
Configuration module for chatflow.

Provides feature flags and validation limits.
"""

from chatflow.config.features import FeatureFlags, get_feature_flags, reload_feature_flags

__all__ = [
	'FeatureFlags',
	'get_feature_flags',
	'reload_feature_flags',
]
