"""Configuration rules"""

from .ats import ATSExceptionRule
from .app_requirements import MissingEncryptionFlagRule, MissingLaunchStoryboardRule

__all__ = ['ATSExceptionRule', 'MissingEncryptionFlagRule', 'MissingLaunchStoryboardRule']
