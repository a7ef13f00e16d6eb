"""Users app package.

Defines the custom user model (email login) together with the cashback
wallet, loyalty tiers and referral links that the booking core reads
and adjusts. Use ``apps.users.models.CustomUser`` as the
AUTH_USER_MODEL throughout the project.
"""
