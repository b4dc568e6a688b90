"""Source code rules"""

from .private_api import PrivateAPIUsageRule
from .external_payment import ExternalPaymentRule
from .dynamic_code import DynamicCodeExecutionRule

__all__ = ['PrivateAPIUsageRule', 'ExternalPaymentRule', 'DynamicCodeExecutionRule']
