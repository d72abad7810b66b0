"""Domain models for the application"""
from .tenant import Tenant, TenantCreate, TenantUpdate
from .user import AppUser, AppUserCreate, AppUserUpdate
from .subscription import Subscription, SubscriptionCreate, SubscriptionUpdate, ACTIVE_SUBSCRIPTION_STATUSES
from .feature_request import (
    FeatureRequest, FeatureRequestCreate, FeatureRequestUpdate, FeatureRequestStatus,
    FeatureVote, FeatureVoteCreate,
)
from .referral import ReferralCode, ReferralCodeCreate, Referral, ReferralCreate, ReferralUpdate
from .price_map import PriceMapEntry

__all__ = [
    'Tenant', 'TenantCreate', 'TenantUpdate',
    'AppUser', 'AppUserCreate', 'AppUserUpdate',
    'Subscription', 'SubscriptionCreate', 'SubscriptionUpdate', 'ACTIVE_SUBSCRIPTION_STATUSES',
    'FeatureRequest', 'FeatureRequestCreate', 'FeatureRequestUpdate', 'FeatureRequestStatus',
    'FeatureVote', 'FeatureVoteCreate',
    'ReferralCode', 'ReferralCodeCreate', 'Referral', 'ReferralCreate', 'ReferralUpdate',
    'PriceMapEntry',
]
