"""Authentication rules"""

from .sign_in_with_apple import ThirdPartyLoginNoSIWARule

__all__ = ['ThirdPartyLoginNoSIWARule']
