"""Referral engine.

Signup attribution and login rewards:
- A user registering with another user's code is linked to that referrer
  and the referrer's referral count goes up by one
- A login presenting a coupon code bumps the matching referral's login
  count and earns the referrer one reward
"""

from referly.referral.service import (
    UNKNOWN_REFERRER,
    LoginResult,
    ReferralEngine,
    ReferralStats,
    RegistrationResult,
)

__all__ = ["UNKNOWN_REFERRER", "LoginResult", "ReferralEngine", "ReferralStats", "RegistrationResult"]
